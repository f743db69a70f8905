"""Carregamento das estatísticas do painel administrativo."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from painel_financeiro.domain.errors import AuthExpiredError, ForbiddenError, PainelError
from painel_financeiro.domain.models import AdminStats
from painel_financeiro.domain.protocols import LoggingNotifier, Notifier
from painel_financeiro.infra.api_client import ApiClient
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

STATS_ROUTE = "/users/dashboard"


def normalize_stats(payload: Any) -> AdminStats:
    """Aceita {"data": {...}} ou o objeto direto; chaves ausentes viram zero/vazio."""
    data = payload.get("data", payload) if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return AdminStats()
    return AdminStats.model_validate(data)


class AdminStatsLoader:
    """Mantém {stats, loading, error}; ignora chamadas concorrentes."""

    def __init__(self, api: ApiClient, notifier: Notifier | None = None) -> None:
        self._api = api
        self._notifier = notifier or LoggingNotifier()
        self.stats: AdminStats | None = None
        self.loading = True
        self.error: str | None = None
        self._in_progress = False

    async def load(self) -> AdminStats | None:
        if self._in_progress:
            logger.debug("Carregamento de estatísticas já em andamento")
            return self.stats

        self._in_progress = True
        self.loading = True
        self.error = None
        try:
            self.stats = normalize_stats(await self._api.get(STATS_ROUTE))
            logger.info("Estatísticas carregadas", extra={"total_users": self.stats.total_users})
        except AuthExpiredError:
            # O interceptador do ApiClient já cuida do logout/redirect
            self.error = "Sessão expirada"
        except ForbiddenError:
            self.error = "Você não tem permissão para acessar estatísticas"
            self._notifier.error(self.error)
        except (PainelError, ValidationError) as exc:
            message = getattr(exc, "detail", None) or "Erro ao carregar estatísticas"
            self.error = message
            self._notifier.error(message)
            logger.warning("Falha ao carregar estatísticas", extra={"error_type": type(exc).__name__})
        finally:
            self.loading = False
            self._in_progress = False
        return self.stats

    async def ensure_loaded(self) -> AdminStats | None:
        """Carrega apenas se ainda não há dados."""
        if self.stats is None and not self._in_progress:
            return await self.load()
        return self.stats
