from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_promptforge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("PROMPTFORGE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PROMPTFORGE_MOCK_THINK_MS", "0")
    monkeypatch.setenv("PROMPTFORGE_MOCK_CHUNK_MS", "0")
