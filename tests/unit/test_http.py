"""Testes unitários para infra/http.py.

Valida cliente HTTP com retry, timeout e logging.
"""

from __future__ import annotations

from http.cookiejar import CookieJar
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from painel_financeiro.config.settings import Settings
from painel_financeiro.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    _calculate_backoff,
    _is_retryable_status,
    _sanitize_url,
    create_http_client,
)


def _response(status_code: int) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    return response


def _mock_httpx_client(client: HttpClient) -> AsyncMock:
    mock_httpx_client = AsyncMock()
    mock_httpx_client.is_closed = False
    client._client = mock_httpx_client
    return mock_httpx_client


class TestHttpClientConfig:
    """Testes para HttpClientConfig."""

    def test_default_values(self) -> None:
        """Valores padrão devem ser seguros."""
        config = HttpClientConfig()
        assert config.base_url == ""
        assert config.timeout_seconds == 15.0
        assert config.max_retries == 2
        assert config.backoff_base_seconds == 0.5
        assert config.backoff_max_seconds == 5.0
        assert config.default_headers == {}


class TestHttpError:
    """Testes para HttpError."""

    def test_error_with_status_code(self) -> None:
        """Deve armazenar status code."""
        error = HttpError("Not found", status_code=404)
        assert error.status_code == 404
        assert error.response is None
        assert str(error) == "Not found"

    def test_error_retryable_flag(self) -> None:
        """Deve armazenar flag de retryable."""
        error = HttpError("Server error", status_code=500, is_retryable=True)
        assert error.is_retryable is True


class TestHelpers:
    """Helpers de módulo."""

    def test_sanitize_url_masks_documents(self) -> None:
        """CEP/CNPJ no path não devem ir para o log."""
        url = "https://brasilapi.com.br/api/cnpj/v1/11222333000181"
        sanitized = _sanitize_url(url)
        assert "11222333000181" not in sanitized
        assert sanitized.endswith("/cnpj/v1/***")

    def test_sanitize_url_preserves_clean_url(self) -> None:
        """Deve preservar URL sem documentos."""
        url = "https://api.example.com/cep/v1/path"
        assert _sanitize_url(url) == url

    def test_is_retryable_status(self) -> None:
        """429 e 5xx são retryable; demais 4xx não."""
        assert _is_retryable_status(429) is True
        assert _is_retryable_status(500) is True
        assert _is_retryable_status(503) is True
        assert _is_retryable_status(400) is False
        assert _is_retryable_status(401) is False
        assert _is_retryable_status(404) is False

    def test_calculate_backoff(self) -> None:
        """Backoff deve ser exponencial."""
        assert _calculate_backoff(0, 0.5, 5.0) == 0.5
        assert _calculate_backoff(1, 0.5, 5.0) == 1.0
        assert _calculate_backoff(2, 0.5, 5.0) == 2.0

    def test_calculate_backoff_respects_max(self) -> None:
        """Backoff deve respeitar máximo configurado."""
        assert _calculate_backoff(6, 0.5, 5.0) == 5.0


class TestHttpClientAsync:
    """Testes assíncronos para HttpClient."""

    @pytest.mark.asyncio
    async def test_get_success(self) -> None:
        """GET deve retornar response em sucesso."""
        client = HttpClient()
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.return_value = _response(200)

        response = await client.get("https://api.example.com")

        assert response.status_code == 200
        mock_httpx_client.request.assert_called_once()

    @pytest.mark.asyncio
    async def test_post_with_json(self) -> None:
        """POST deve enviar JSON."""
        client = HttpClient()
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.return_value = _response(200)

        payload = {"identifier": "user@example.com"}
        await client.post("https://api.example.com", json=payload)

        mock_httpx_client.request.assert_called_once_with(
            "POST",
            "https://api.example.com",
            json=payload,
        )

    @pytest.mark.asyncio
    async def test_retry_on_5xx(self) -> None:
        """Deve fazer retry em erros 5xx."""
        client = HttpClient(HttpClientConfig(max_retries=2))
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.side_effect = [_response(500), _response(500), _response(200)]

        with patch("asyncio.sleep", new_callable=AsyncMock):
            response = await client.get("https://api.example.com")

        assert response.status_code == 200
        assert mock_httpx_client.request.call_count == 3

    @pytest.mark.asyncio
    async def test_no_retry_on_4xx(self) -> None:
        """Não deve fazer retry em erros 4xx; response fica no erro."""
        client = HttpClient(HttpClientConfig(max_retries=3))
        mock_httpx_client = _mock_httpx_client(client)
        error_response = _response(401)
        mock_httpx_client.request.return_value = error_response

        with pytest.raises(HttpError) as exc_info:
            await client.get("https://api.example.com")

        assert exc_info.value.status_code == 401
        assert exc_info.value.is_retryable is False
        assert exc_info.value.response is error_response
        assert mock_httpx_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_exhaust_retries(self) -> None:
        """Deve levantar erro após esgotar retries."""
        client = HttpClient(HttpClientConfig(max_retries=2))
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.return_value = _response(503)

        with (
            patch("asyncio.sleep", new_callable=AsyncMock),
            pytest.raises(HttpError) as exc_info,
        ):
            await client.get("https://api.example.com")

        assert exc_info.value.status_code == 503
        # 1 tentativa inicial + 2 retries = 3 chamadas
        assert mock_httpx_client.request.call_count == 3

    @pytest.mark.asyncio
    async def test_timeout_is_retried_without_status(self) -> None:
        """Timeout vira HttpError retryable sem status_code."""
        client = HttpClient(HttpClientConfig(max_retries=1))
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.side_effect = httpx.ReadTimeout("slow")

        with (
            patch("asyncio.sleep", new_callable=AsyncMock),
            pytest.raises(HttpError) as exc_info,
        ):
            await client.get("https://api.example.com")

        assert exc_info.value.status_code is None
        assert exc_info.value.is_retryable is True
        assert mock_httpx_client.request.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_recovers(self) -> None:
        """Erro de conexão seguido de sucesso retorna a resposta."""
        client = HttpClient(HttpClientConfig(max_retries=1))
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.side_effect = [httpx.ConnectError("down"), _response(200)]

        with patch("asyncio.sleep", new_callable=AsyncMock):
            response = await client.get("https://api.example.com")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unexpected_error_is_not_retried(self) -> None:
        """Erros fora de transporte sobem como HttpError sem retry."""
        client = HttpClient(HttpClientConfig(max_retries=3))
        mock_httpx_client = _mock_httpx_client(client)
        mock_httpx_client.request.side_effect = RuntimeError("bug")

        with pytest.raises(HttpError, match="RuntimeError"):
            await client.get("https://api.example.com")

        assert mock_httpx_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Deve funcionar como async context manager."""
        async with HttpClient() as client:
            assert client is not None

    @pytest.mark.asyncio
    async def test_close_client(self) -> None:
        """close() deve fechar o cliente httpx."""
        client = HttpClient()
        mock_httpx_client = _mock_httpx_client(client)

        await client.close()

        mock_httpx_client.aclose.assert_called_once()

    @pytest.mark.asyncio
    async def test_shared_cookie_jar(self) -> None:
        """O jar informado é o mesmo usado pelo httpx."""
        jar = CookieJar()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"set-cookie": "access_token=abc; Path=/"})

        client = HttpClient(HttpClientConfig(base_url="http://backend.test"), cookie_jar=jar)
        client._client = httpx.AsyncClient(
            base_url="http://backend.test",
            cookies=jar,
            transport=httpx.MockTransport(handler),
        )

        await client.post("/auth/login")
        await client.close()

        assert [cookie.name for cookie in jar] == ["access_token"]


class TestCreateHttpClient:
    """Testes para factory function create_http_client."""

    def test_creates_client_with_settings(self) -> None:
        """Deve criar cliente com configurações de Settings."""
        settings = Settings(
            http_timeout_seconds=60,
            http_max_retries=5,
            http_retry_backoff_seconds=3,
        )

        client = create_http_client(settings)

        assert client._config.timeout_seconds == 60.0
        assert client._config.max_retries == 5
        assert client._config.backoff_base_seconds == 3.0
        assert client._config.base_url == settings.api_base_url

    def test_base_url_override(self) -> None:
        """base_url vazio é aceito (URLs absolutas)."""
        client = create_http_client(Settings(), base_url="")
        assert client._config.base_url == ""

    def test_includes_user_agent(self) -> None:
        """Deve incluir User-Agent com service_name/version."""
        settings = Settings(service_name="test_service", version="1.2.3")

        client = create_http_client(settings)

        assert client._config.default_headers["User-Agent"] == "test_service/1.2.3"
        assert client._config.default_headers["Accept"] == "application/json"

    def test_uses_given_cookie_jar(self) -> None:
        jar = CookieJar()
        client = create_http_client(Settings(), cookie_jar=jar)
        assert client._cookie_jar is jar
