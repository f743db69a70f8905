from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from painel_financeiro.api.app import create_app
from painel_financeiro.config.settings import get_settings


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch) -> FastAPI:
    monkeypatch.setenv("SERVICE_NAME", "painel_financeiro")
    get_settings.cache_clear()
    application = create_app()
    # Backend fora do ar por padrão: cada teste define as respostas
    application.state.backend_api = AsyncMock()
    return application


@pytest.fixture()
def client(app: FastAPI):
    with TestClient(app) as test_client:
        yield test_client
