from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promptforge.core.config import load_settings
from promptforge.core.http import probe
from promptforge.core.logging import configure_logging
from promptforge.core.logging.context import log_context
from promptforge.core.models.llm_provider import select_backend
from promptforge.core.sessions.store import SessionStore

from .routes_chat import router as chat_router
from .routes_enrich import router as enrich_router

LOG = logging.getLogger("promptforge.api")


async def _ollama_reachable(base_url: str) -> bool:
    return await probe(f"{base_url.rstrip('/')}/api/tags", load_settings().http)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session_store = SessionStore()
    selection = select_backend(load_settings())
    LOG.info(
        "api_startup",
        extra={"extra_fields": {"provider": selection.name, "model": selection.model, "base_url": selection.base_url}},
    )
    if selection.name == "ollama" and not await _ollama_reachable(selection.base_url or ""):
        LOG.warning(
            "ollama_unreachable",
            extra={"extra_fields": {"base_url": selection.base_url, "hint": "is `ollama serve` running?"}},
        )
    yield
    LOG.info("api_shutdown", extra={"extra_fields": {"sessions": len(app.state.session_store.session_ids())}})


load_dotenv()
configure_logging()

app = FastAPI(title="PromptForge API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOG.info("request_rejected", extra={"extra_fields": {"path": request.url.path, "errors": len(exc.errors())}})
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


app.include_router(enrich_router)
app.include_router(chat_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/healthz/full")
async def healthz_full() -> dict[str, object]:
    selection = select_backend(load_settings())
    reachable: bool | None
    if selection.name == "mock":
        reachable = True
    elif selection.name == "ollama":
        reachable = await _ollama_reachable(selection.base_url or "")
    else:
        reachable = None
    return {
        "status": "ok",
        "llm": {
            "provider": selection.name,
            "model": selection.model,
            "base_url": selection.base_url,
            "reachable": reachable,
        },
    }


def run() -> None:
    api = load_settings().api
    uvicorn.run("promptforge.apps.api.main:app", host=api.host, port=api.port)
