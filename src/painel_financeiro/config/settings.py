"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars.
Tokens de sessão nunca passam por aqui: são cookies opacos do backend.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Serviços externos de consulta (CEP / CNPJ)
# Referência: https://brasilapi.com.br/docs
# -----------------------------------------------------------------------------
BRASILAPI_BASE_URL: str = "https://brasilapi.com.br/api"
CEP_DIGITS: int = 8
CNPJ_DIGITS: int = 14


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "painel_financeiro"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Backend (API REST externa)
    api_base_url: str = "http://localhost:3001/api"  # Base das rotas /auth, /users, ...
    brasilapi_base_url: str = BRASILAPI_BASE_URL  # Consultas de CEP e CNPJ

    # Transporte HTTP
    http_timeout_seconds: float = 15.0
    http_max_retries: int = 2  # Retries em 429/5xx/timeout
    http_retry_backoff_seconds: float = 0.5  # Base do backoff exponencial
    http_retry_backoff_max_seconds: float = 5.0

    # Destinos de redirecionamento
    login_path: str = "/login"
    enterprise_home_path: str = "/dashboard"
    admin_home_path: str = "/admin/dashboard"

    # Proteção de rotas (lado servidor)
    protected_route_prefixes: list[str] = [
        "/dashboard",
        "/nova-transacao",
        "/configuracoes",
        "/categorias",
        "/admin",
    ]
    auth_cookie_names: list[str] = ["access_token", "refresh_token"]

    # Sessão
    logout_redirect_cooldown_seconds: float = 1.0  # Janela anti-logout em cascata

    def validate_redirect_paths(self) -> list[str]:
        """Valida os destinos usados pelos guards.

        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        paths = {
            "LOGIN_PATH": self.login_path,
            "ENTERPRISE_HOME_PATH": self.enterprise_home_path,
            "ADMIN_HOME_PATH": self.admin_home_path,
        }
        for name, value in paths.items():
            if not value.startswith("/"):
                errors.append(f"{name} deve ser um caminho absoluto (começando com '/')")

        # Login não pode ser protegido, senão o redirect entra em loop
        if any(self.login_path.startswith(p) for p in self.protected_route_prefixes):
            errors.append("LOGIN_PATH não pode estar sob PROTECTED_ROUTE_PREFIXES")
        return errors

    def validate_http_config(self) -> list[str]:
        """Valida timeouts e política de retry."""
        errors: list[str] = []
        if self.http_timeout_seconds <= 0:
            errors.append("HTTP_TIMEOUT_SECONDS deve ser > 0")
        if self.http_max_retries < 0:
            errors.append("HTTP_MAX_RETRIES deve ser >= 0")
        if self.http_retry_backoff_seconds < 0:
            errors.append("HTTP_RETRY_BACKOFF_SECONDS deve ser >= 0")
        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append("API_BASE_URL deve usar http:// ou https://")
        if self.is_production and self.api_base_url.startswith("http://"):
            errors.append("API_BASE_URL deve usar https em produção")
        return errors

    def validate_auth_cookies(self) -> list[str]:
        """Valida nomes de cookies de autenticação."""
        errors: list[str] = []
        if not self.auth_cookie_names:
            errors.append("AUTH_COOKIE_NAMES não pode ser vazio")
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def cep_url(self, cep: str) -> str:
        """URL da consulta de CEP (cep já normalizado)."""
        return f"{self.brasilapi_base_url.rstrip('/')}/cep/v1/{cep}"

    def cnpj_url(self, cnpj: str) -> str:
        """URL da consulta de CNPJ (cnpj já normalizado)."""
        return f"{self.brasilapi_base_url.rstrip('/')}/cnpj/v1/{cnpj}"


@lru_cache
def get_settings() -> Settings:
    """Retorna instância única de Settings (cacheada)."""
    return Settings()
