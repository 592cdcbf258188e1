from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from promptforge.core.enrichment.pipeline import format_enriched_prompt, run_pipeline
from promptforge.core.infra.cancellation import CancellationToken
from promptforge.core.models.errors import LLMCancelledError
from promptforge.core.models.llm import LLMClient

from .deps import get_llm_client
from .disconnect import cancel_on_disconnect
from .schemas import EnrichMetadata, EnrichRequest, EnrichResponse

LOG = logging.getLogger("promptforge.api.enrich")

# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499

router = APIRouter(prefix="/api", tags=["enrich"])


@router.post("/enrich", response_model=EnrichResponse)
async def enrich(
    payload: EnrichRequest,
    request: Request,
    llm: LLMClient = Depends(get_llm_client),
):
    token = CancellationToken()
    async with cancel_on_disconnect(request, token):
        try:
            result = await run_pipeline(
                payload.message,
                session_id=payload.session_id,
                intent_level=payload.intent_level,
                cancel=token,
                llm=llm,
            )
        except LLMCancelledError as exc:
            LOG.info("enrich_cancelled", extra={"extra_fields": {"reason": exc.reason}})
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except Exception:
            LOG.exception("enrich_failed")
            return JSONResponse(status_code=500, content={"error": "Enrichment failed"})

    meta = result.context.metadata()
    return EnrichResponse(
        enriched_prompt=format_enriched_prompt(result.messages),
        metadata=EnrichMetadata(
            language=meta["language"],
            intent=meta["intent"],
            safety_flags=list(meta["safetyFlags"]),
        ),
    )
