"""Configurações centralizadas do painel_financeiro.

Uso típico:
    from painel_financeiro.config import get_settings
"""

from painel_financeiro.config.settings import (
    BRASILAPI_BASE_URL,
    CEP_DIGITS,
    CNPJ_DIGITS,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "BRASILAPI_BASE_URL",
    "CEP_DIGITS",
    "CNPJ_DIGITS",
]
