"""Dependências injetadas nas rotas (settings, backend e guards de papel)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends, Request
from starlette.responses import RedirectResponse

from painel_financeiro.application.auth_session import parse_user
from painel_financeiro.config.settings import Settings
from painel_financeiro.domain.errors import PainelError
from painel_financeiro.domain.guard import (
    ADMIN_ONLY,
    ENTERPRISE_AREA,
    GuardState,
    RedirectTargets,
    RolePolicy,
    evaluate,
)
from painel_financeiro.domain.models import SessionSnapshot, User
from painel_financeiro.infra.api_client import PROFILE_ROUTE, ApiClient
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)


class GuardRedirect(Exception):
    """Negação do guard de papel: vira um redirect 307.

    `clear_cookies` lista os cookies de auth a apagar junto do redirect
    (token presente mas sessão inválida).
    """

    def __init__(self, location: str, clear_cookies: tuple[str, ...] = ()) -> None:
        super().__init__(location)
        self.location = location
        self.clear_cookies = clear_cookies


async def guard_redirect_handler(request: Request, exc: GuardRedirect) -> RedirectResponse:
    """Exception handler registrado em create_app."""

    response = RedirectResponse(exc.location, status_code=307)
    for name in exc.clear_cookies:
        response.delete_cookie(name, path="/")
    return response


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_backend_api(request: Request) -> ApiClient:
    """Retorna o cliente do backend (sem cookie jar próprio)."""

    return request.app.state.backend_api


def forwarded_cookie_headers(request: Request) -> dict[str, str]:
    """Repassa os cookies do navegador para o backend."""

    cookie_header = request.headers.get("cookie")
    return {"Cookie": cookie_header} if cookie_header else {}


async def get_current_user(
    request: Request,
    api: ApiClient = Depends(get_backend_api),
) -> User | None:
    """Resolve o usuário pelos cookies da requisição; None se anônimo/inválido."""

    headers = forwarded_cookie_headers(request)
    if not headers:
        return None
    try:
        payload = await api.get(PROFILE_ROUTE, headers=headers)
    except PainelError as exc:
        logger.info(
            "Perfil não resolvido",
            extra={"error_type": type(exc).__name__, "status_code": exc.status_code},
        )
        return None
    return parse_user(payload)


def require_role(policy: RolePolicy) -> Callable[..., Awaitable[User]]:
    """Fábrica de dependência: autoriza pela política ou responde com redirect."""

    async def _checker(
        user: User | None = Depends(get_current_user),
        settings: Settings = Depends(get_settings),
    ) -> User:
        decision = evaluate(
            SessionSnapshot(user=user, loading=False),
            policy,
            RedirectTargets.from_settings(settings),
        )
        if not decision.renders_children or user is None:
            # Token presente mas sessão inválida: apaga os cookies de auth
            clear = (
                tuple(settings.auth_cookie_names)
                if decision.state == GuardState.DENIED_NO_USER
                else ()
            )
            logger.info(
                "Guard de papel negou acesso",
                extra={"guard": policy.name, "state": decision.state},
            )
            raise GuardRedirect(decision.redirect_to or settings.login_path, clear)
        return user

    return _checker


require_admin = require_role(ADMIN_ONLY)
require_enterprise = require_role(ENTERPRISE_AREA)
