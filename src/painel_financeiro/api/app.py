"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy

from fastapi import FastAPI

from painel_financeiro.api.dependencies import GuardRedirect, guard_redirect_handler
from painel_financeiro.api.middleware import RouteProtectionMiddleware
from painel_financeiro.api.routes import router
from painel_financeiro.config.settings import Settings, get_settings
from painel_financeiro.infra.api_client import ApiClient
from painel_financeiro.infra.http import create_http_client
from painel_financeiro.observability.logging import configure_logging, get_logger
from painel_financeiro.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def _create_backend_api(settings: Settings) -> ApiClient:
    """ApiClient do lado servidor.

    O jar recusa todo Set-Cookie: cada requisição repassa os cookies do
    próprio navegador e nada pode vazar entre usuários.
    """
    jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    http = create_http_client(settings, cookie_jar=jar)
    return ApiClient(http)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.backend_api.close()
    logger.info("Aplicação finalizada")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_redirect_paths())
    validation_errors.extend(settings.validate_http_config())
    validation_errors.extend(settings.validate_auth_cookies())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan)
    # Último adicionado é o mais externo: correlation_id já existe no redirect
    app.add_middleware(RouteProtectionMiddleware, settings=settings)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(GuardRedirect, guard_redirect_handler)
    app.include_router(router)

    app.state.settings = settings
    app.state.backend_api = _create_backend_api(settings)

    return app


app = create_app()
