from __future__ import annotations

from fastapi.testclient import TestClient

from promptforge.apps.api import main
from promptforge.apps.api.main import app


def test_health_is_static() -> None:
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_healthz_full_defaults_to_simulator() -> None:
    with TestClient(app) as client:
        payload = client.get("/healthz/full").json()

    assert payload["status"] == "ok"
    assert payload["llm"] == {"provider": "mock", "model": None, "base_url": None, "reachable": True}


def test_healthz_full_reports_unreachable_ollama(monkeypatch) -> None:
    probed: list[str] = []

    async def fake_probe(url, settings=None, transport=None) -> bool:
        probed.append(url)
        return False

    monkeypatch.setenv("PROMPTFORGE_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("PROMPTFORGE_LLM_BASE_URL", "http://ollama.test:11434/")
    monkeypatch.setattr(main, "probe", fake_probe)

    with TestClient(app) as client:
        payload = client.get("/healthz/full").json()

    assert payload["llm"]["provider"] == "ollama"
    assert payload["llm"]["model"] == "llama3"
    assert payload["llm"]["base_url"] == "http://ollama.test:11434"
    assert payload["llm"]["reachable"] is False
    # once at startup, once for the health request
    assert probed == ["http://ollama.test:11434/api/tags"] * 2


def test_hosted_backend_is_not_probed(monkeypatch) -> None:
    monkeypatch.setenv("PROMPTFORGE_LLM_API_KEY", "sk-live-000000000")

    with TestClient(app) as client:
        payload = client.get("/healthz/full").json()

    assert payload["llm"]["provider"] == "openai"
    assert payload["llm"]["reachable"] is None
