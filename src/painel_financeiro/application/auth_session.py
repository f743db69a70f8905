"""Estado de sessão autenticada: instância única injetada em guards e hooks.

Ciclo de vida:
- criado com loading=True, user=None
- start(): uma única resolução assíncrona (/auth/profile)
- login()/logout() são as únicas mutações permitidas
- close(): teardown (listeners + cliente HTTP)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from painel_financeiro.domain.errors import PainelError
from painel_financeiro.domain.models import SessionSnapshot, User
from painel_financeiro.domain.protocols import LoggingNotifier, Notifier
from painel_financeiro.infra.api_client import (
    LOGIN_ROUTE,
    LOGOUT_ROUTE,
    PROFILE_ROUTE,
    ApiClient,
)
from painel_financeiro.infra.cookies import CookieStore
from painel_financeiro.infra.http import create_http_client
from painel_financeiro.observability.logging import get_logger

if TYPE_CHECKING:
    from painel_financeiro.config.settings import Settings

logger = get_logger(__name__)

SessionListener = Callable[[SessionSnapshot], None]


def parse_user(payload: Any) -> User | None:
    """Extrai o usuário de {"user": {...}} ou do próprio corpo."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("user") or payload
    if not isinstance(data, dict):
        logger.warning("Perfil de usuário inválido", extra={"payload_type": type(data).__name__})
        return None
    try:
        return User.model_validate(data)
    except ValidationError:
        logger.warning("Perfil de usuário inválido", extra={"keys": sorted(data)[:10]})
        return None


class AuthSession:
    """Sessão do usuário atual: {user, loading} + login/logout."""

    def __init__(
        self,
        api: ApiClient,
        cookies: CookieStore,
        notifier: Notifier | None = None,
    ) -> None:
        self._api = api
        self._cookies = cookies
        self._notifier = notifier or LoggingNotifier()
        self._user: User | None = None
        self._loading = True
        self._started = False
        self._logging_out = False
        # Incrementado a cada logout; respostas de perfil antigas são descartadas
        self._generation = 0
        self._listeners: list[SessionListener] = []

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def api(self) -> ApiClient:
        return self._api

    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(user=self._user, loading=self._loading)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Registra listener; retorna função para cancelar a inscrição."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, user: User | None, loading: bool) -> None:
        if user == self._user and loading == self._loading:
            return
        self._user = user
        self._loading = loading
        snapshot = self.snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    async def start(self) -> None:
        """Resolve a sessão uma única vez (chamadas seguintes são no-op)."""
        if self._started:
            return
        self._started = True
        generation = self._generation

        if not self._cookies.has_auth_token():
            logger.debug("Sem token de sessão; usuário anônimo")
            self._set(None, False)
            return

        user: User | None = None
        try:
            user = parse_user(await self._api.get(PROFILE_ROUTE))
        except PainelError as exc:
            logger.info(
                "Falha ao resolver sessão",
                extra={"error_type": type(exc).__name__, "status_code": exc.status_code},
            )
            self._cookies.clear_auth()
        finally:
            if generation == self._generation:
                self._set(user, False)

        logger.info("Sessão resolvida", extra={"authenticated": user is not None})

    async def login(self, identifier: str, password: str) -> bool:
        """Autentica com e-mail ou CNPJ; o backend grava os cookies."""
        self._set(self._user, True)
        user: User | None = self._user
        try:
            payload = await self._api.post(
                LOGIN_ROUTE, json={"identifier": identifier, "password": password}
            )
            parsed = parse_user(payload)
            if parsed is None:
                self._notifier.error("Erro ao fazer login")
                return False
            user = parsed
            self._generation += 1
            self._notifier.success("Login realizado com sucesso!")
            logger.info("Login concluído", extra={"user_type": parsed.type})
            return True
        except PainelError as exc:
            self._notifier.error(exc.detail or "Erro ao fazer login")
            return False
        finally:
            self._started = True
            self._set(user, False)

    async def logout(self) -> None:
        """Limpa o usuário imediatamente; depois invalida no backend.

        Idempotente: chamada concorrente ou sem sessão não repete o POST.
        """
        if self._logging_out:
            return
        if self._user is None and not self._cookies.has_auth_token():
            self._set(None, False)
            return

        self._logging_out = True
        self._generation += 1
        self._set(None, False)
        try:
            await self._api.post(LOGOUT_ROUTE)
        except PainelError as exc:
            logger.warning("Erro ao fazer logout", extra={"error_type": type(exc).__name__})
        finally:
            self._cookies.clear_auth()
            self._logging_out = False
        logger.info("Logout concluído")

    async def close(self) -> None:
        self._listeners.clear()
        await self._api.close()

    async def __aenter__(self) -> AuthSession:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def create_auth_session(settings: Settings, notifier: Notifier | None = None) -> AuthSession:
    """Monta sessão + ApiClient + CookieStore compartilhando o mesmo jar."""
    cookies = CookieStore(settings.auth_cookie_names)
    http = create_http_client(settings, cookie_jar=cookies.jar)
    api = ApiClient(http, cooldown_seconds=settings.logout_redirect_cooldown_seconds)
    session = AuthSession(api, cookies, notifier=notifier)
    api.set_unauthorized_handler(session.logout)
    return session
