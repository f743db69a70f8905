"""Cliente HTTP centralizado com retry, timeout e logging.

Usado tanto para o backend da aplicação (via ApiClient) quanto para as
consultas públicas de CEP/CNPJ:
- Retry com backoff exponencial em 429/5xx/timeout/conexão
- Timeouts configuráveis
- Logging estruturado (sem tokens nem documentos)
- Cookie jar compartilhável (sessão por cookies do backend)
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from http.cookiejar import CookieJar
from typing import TYPE_CHECKING, Any

import httpx

from painel_financeiro.observability.logging import get_logger

if TYPE_CHECKING:
    from painel_financeiro.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

# Documentos (CEP/CNPJ) aparecem no path das consultas públicas
_LONG_DIGITS_PATTERN = re.compile(r"\d{5,}")


def _sanitize_url(url: str) -> str:
    """Mascara sequências numéricas longas da URL para logging seguro."""
    return _LONG_DIGITS_PATTERN.sub("***", url)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    base_url: str = ""
    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 5.0
    default_headers: dict[str, str] = field(default_factory=dict)


class HttpError(Exception):
    """Erro de requisição HTTP sem expor informações sensíveis.

    `response` é preservado para que camadas superiores leiam o corpo de
    erro do backend (ex.: campo "message").
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable
        self.response = response


def _is_retryable_status(status_code: int) -> bool:
    """429 ou 5xx permitem retry."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Backoff exponencial limitado."""
    return min((2**attempt) * base_seconds, max_seconds)


def _handle_transient_exception(exc: Exception, method: str, url: str, attempt: int) -> HttpError:
    """Converte timeout/conexão em HttpError retentável; demais erros sobem."""
    if isinstance(exc, httpx.TimeoutException):
        logger.warning(
            "Timeout em requisição HTTP",
            extra={"method": method, "url": _sanitize_url(url), "attempt": attempt + 1},
        )
        return HttpError("Timeout", is_retryable=True)

    if isinstance(exc, httpx.TransportError):
        logger.warning(
            "Erro de conexão HTTP",
            extra={
                "method": method,
                "url": _sanitize_url(url),
                "attempt": attempt + 1,
                "error_type": type(exc).__name__,
            },
        )
        return HttpError("Erro de conexão", is_retryable=True)

    logger.error(
        "Erro inesperado em requisição HTTP",
        extra={"method": method, "url": _sanitize_url(url), "error_type": type(exc).__name__},
    )
    raise HttpError(f"Erro inesperado: {type(exc).__name__}") from exc


class HttpClient:
    """Cliente HTTP assíncrono com retry e logging.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.get("/auth/profile")
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        cookie_jar: CookieJar | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._cookie_jar = cookie_jar if cookie_jar is not None else CookieJar()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                cookies=self._cookie_jar,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa requisição com retry automático.

        Raises:
            HttpError: status não retentável ou tentativas esgotadas
        """
        client = await self._get_client()
        cfg = self._config
        last_error: HttpError | None = None

        for attempt in range(cfg.max_retries + 1):
            logger.debug(
                "Executando requisição HTTP",
                extra={"method": method, "url": _sanitize_url(url), "attempt": attempt + 1},
            )
            try:
                response = await client.request(method, url, **kwargs)
            except Exception as exc:
                last_error = _handle_transient_exception(exc, method, url, attempt)
            else:
                if response.is_success:
                    logger.debug(
                        "Requisição HTTP bem-sucedida",
                        extra={
                            "method": method,
                            "url": _sanitize_url(url),
                            "status_code": response.status_code,
                        },
                    )
                    return response

                retryable = _is_retryable_status(response.status_code)
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=retryable,
                    response=response,
                )
                if not retryable:
                    logger.warning(
                        "Requisição HTTP falhou (não retryable)",
                        extra={
                            "method": method,
                            "url": _sanitize_url(url),
                            "status_code": response.status_code,
                        },
                    )
                    raise last_error

            if attempt < cfg.max_retries:
                backoff = _calculate_backoff(
                    attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
                )
                logger.info(
                    "Aguardando backoff antes de retry",
                    extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(backoff)

        logger.error(
            "Esgotou tentativas de retry",
            extra={
                "method": method,
                "url": _sanitize_url(url),
                "total_attempts": cfg.max_retries + 1,
            },
        )
        raise last_error or HttpError("Falha após todos os retries")

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self.request("POST", url, json=json, **kwargs)


def create_http_client(
    settings: Settings | None = None,
    *,
    base_url: str | None = None,
    cookie_jar: CookieJar | None = None,
) -> HttpClient:
    """Factory para criar cliente HTTP configurado.

    Args:
        settings: Configurações da aplicação. Se None, usa get_settings()
        base_url: Base das URLs relativas (default: settings.api_base_url)
        cookie_jar: CookieJar compartilhado com o CookieStore da sessão
    """
    if settings is None:
        from painel_financeiro.config.settings import get_settings

        settings = get_settings()

    config = HttpClientConfig(
        base_url=settings.api_base_url if base_url is None else base_url,
        timeout_seconds=float(settings.http_timeout_seconds),
        max_retries=settings.http_max_retries,
        backoff_base_seconds=float(settings.http_retry_backoff_seconds),
        backoff_max_seconds=float(settings.http_retry_backoff_max_seconds),
        default_headers={
            "Accept": "application/json",
            "User-Agent": f"{settings.service_name}/{settings.version}",
        },
    )

    logger.info(
        "Cliente HTTP criado",
        extra={"timeout_seconds": config.timeout_seconds, "max_retries": config.max_retries},
    )

    return HttpClient(config, cookie_jar=cookie_jar)
