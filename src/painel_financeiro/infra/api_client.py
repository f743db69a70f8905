"""Cliente da API do backend com mapeamento de erros e interceptador de 401.

Regras:
- 401 → AuthExpiredError; fora das rotas de auth, dispara o handler de
  "sessão expirada" (logout + redirect) uma única vez por rajada.
- 403 → ForbiddenError
- Demais falhas → TransportError com a mensagem do backend quando houver
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from painel_financeiro.domain.errors import (
    AuthExpiredError,
    ForbiddenError,
    PainelError,
    TransportError,
)
from painel_financeiro.infra.http import HttpClient, HttpError
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

UnauthorizedHandler = Callable[[], Awaitable[None]]

LOGIN_ROUTE = "/auth/login"
LOGOUT_ROUTE = "/auth/logout"
PROFILE_ROUTE = "/auth/profile"


def extract_error_message(response: httpx.Response | None) -> str | None:
    """Lê o campo "message" do corpo de erro do backend (se JSON)."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


class ApiClient:
    """Fachada do backend usada por sessão, guards e loaders."""

    def __init__(
        self,
        http: HttpClient,
        on_unauthorized: UnauthorizedHandler | None = None,
        cooldown_seconds: float = 1.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._http = http
        self._on_unauthorized = on_unauthorized
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock or time.monotonic
        self._handling_unauthorized = False
        self._last_unauthorized_at: float | None = None

    def set_unauthorized_handler(self, handler: UnauthorizedHandler | None) -> None:
        self._on_unauthorized = handler

    async def close(self) -> None:
        await self._http.close()

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self._call("GET", path, **kwargs)

    async def post(self, path: str, json: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        return await self._call("POST", path, json=json, **kwargs)

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Executa a chamada e devolve o corpo JSON (ou None se vazio)."""
        try:
            response = await self._http.request(method, path, **kwargs)
        except HttpError as exc:
            raise await self._translate(exc, path) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Resposta inválida do servidor") from exc

    async def _translate(self, exc: HttpError, path: str) -> PainelError:
        message = extract_error_message(exc.response)

        if exc.status_code == 401:
            await self._maybe_handle_unauthorized(path)
            return AuthExpiredError(message, status_code=401)
        if exc.status_code == 403:
            return ForbiddenError(message, status_code=403)
        return TransportError(message, status_code=exc.status_code)

    async def _maybe_handle_unauthorized(self, path: str) -> None:
        """Dispara o handler de sessão expirada, no máximo uma vez por janela."""
        if self._on_unauthorized is None:
            return
        if path.startswith((LOGIN_ROUTE, LOGOUT_ROUTE, PROFILE_ROUTE)):
            # Bootstrap/login tratam o próprio 401
            return
        if self._handling_unauthorized:
            return
        now = self._clock()
        if (
            self._last_unauthorized_at is not None
            and now - self._last_unauthorized_at < self._cooldown_seconds
        ):
            return

        self._handling_unauthorized = True
        self._last_unauthorized_at = now
        logger.info("Sessão expirada; executando logout", extra={"path": path})
        try:
            await self._on_unauthorized()
        except Exception:
            logger.exception("Falha no handler de sessão expirada")
        finally:
            self._handling_unauthorized = False
