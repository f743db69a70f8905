"""Proteção de rotas por presença de token (antes de qualquer página)."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from painel_financeiro.config.settings import Settings
from painel_financeiro.infra.cookies import has_auth_token
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)


def is_protected_path(path: str, prefixes: list[str]) -> bool:
    """Prefixo casa por segmento: /admin protege /admin/x, não /administrativo."""
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def route_redirect(path: str, has_token: bool, settings: Settings) -> str | None:
    """Destino de redirect para a rota, ou None para seguir.

    - rota protegida sem token → login
    - login com token → home da área empresarial
    """
    if is_protected_path(path, settings.protected_route_prefixes) and not has_token:
        return settings.login_path
    if has_token and path == settings.login_path:
        return settings.enterprise_home_path
    return None


class RouteProtectionMiddleware(BaseHTTPMiddleware):
    """Redireciona sem consultar o backend; só olha os cookies de auth."""

    def __init__(self, app: ASGIApp, settings: Settings) -> None:
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        has_token = has_auth_token(request.cookies, self._settings.auth_cookie_names)
        target = route_redirect(request.url.path, has_token, self._settings)
        if target is not None:
            logger.info(
                "Route protection redirect",
                extra={"path": request.url.path, "location": target},
            )
            return RedirectResponse(target, status_code=307)
        return await call_next(request)
