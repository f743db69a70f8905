"""Camada de infraestrutura: adapters para serviços externos.

- HTTP: HttpClient (retry/backoff/timeout)
- Backend: ApiClient (erros tipados + interceptador de 401)
- Consultas públicas: CepClient, CnpjClient
- Sessão: CookieStore

Infraestrutura não decide regra de negócio; logs estruturados sem PII.
"""

from painel_financeiro.infra.api_client import ApiClient
from painel_financeiro.infra.brasilapi import CepClient, CnpjClient, create_lookup_clients
from painel_financeiro.infra.cookies import CookieStore, has_auth_token
from painel_financeiro.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    create_http_client,
)

__all__ = [
    "ApiClient",
    "CepClient",
    "CnpjClient",
    "create_lookup_clients",
    "CookieStore",
    "has_auth_token",
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "create_http_client",
]
