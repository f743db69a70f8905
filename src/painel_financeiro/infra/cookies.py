"""Armazenamento local dos cookies de sessão (tokens opacos do backend)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from http.cookiejar import CookieJar

import httpx

from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_AUTH_COOKIES: tuple[str, ...] = ("access_token", "refresh_token")

# Valores que o front-end já gravou por engano e que não representam token
_INVALID_TOKEN_VALUES = frozenset({"", "undefined", "null"})


def is_usable_token(value: str | None) -> bool:
    """True se o valor do cookie parece um token de verdade."""
    if value is None:
        return False
    return value.strip() not in _INVALID_TOKEN_VALUES


def has_auth_token(
    cookies: Mapping[str, str],
    cookie_names: Iterable[str] = DEFAULT_AUTH_COOKIES,
) -> bool:
    """Verifica se algum dos cookies de autenticação está presente e válido."""
    return any(is_usable_token(cookies.get(name)) for name in cookie_names)


class CookieStore:
    """Cookie jar compartilhado entre a sessão e o cliente HTTP.

    O jar é entregue ao HttpClient; o backend grava/limpa os tokens via
    Set-Cookie e este store permite inspecionar e limpar localmente.
    """

    def __init__(
        self,
        cookie_names: Iterable[str] = DEFAULT_AUTH_COOKIES,
        jar: CookieJar | None = None,
    ) -> None:
        self._jar = jar if jar is not None else CookieJar()
        self._cookie_names = tuple(cookie_names)

    @property
    def jar(self) -> CookieJar:
        return self._jar

    @property
    def cookie_names(self) -> tuple[str, ...]:
        return self._cookie_names

    def _view(self) -> httpx.Cookies:
        return httpx.Cookies(self._jar)

    def get(self, name: str) -> str | None:
        # Cookies com mesmo nome em domínios distintos: vale o primeiro
        for cookie in self._jar:
            if cookie.name == name:
                return cookie.value
        return None

    def set(self, name: str, value: str, domain: str = "") -> None:
        self._view().set(name, value, domain=domain)

    def has_auth_token(self) -> bool:
        return any(is_usable_token(self.get(name)) for name in self._cookie_names)

    def clear_auth(self) -> None:
        """Remove os tokens localmente (fallback do logout)."""
        removed = 0
        for cookie in list(self._jar):
            if cookie.name in self._cookie_names:
                self._jar.clear(cookie.domain, cookie.path, cookie.name)
                removed += 1
        logger.debug("Cookies de autenticação removidos", extra={"removed": removed})
