"""Portas de saída usadas por Application (notificação, navegação, formulário)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

FieldSetter = Callable[[str, str], None]
"""Escreve um valor num campo de formulário: setter(nome_do_campo, valor)."""


class Notifier(ABC):
    """Contrato para notificações visíveis ao usuário (toasts)."""

    @abstractmethod
    def success(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str) -> None: ...


class Navigator(ABC):
    """Contrato para navegação client-side (redirect)."""

    @abstractmethod
    def redirect(self, path: str) -> None: ...


class LoggingNotifier(Notifier):
    """Notifier padrão: apenas registra no log estruturado."""

    def success(self, message: str) -> None:
        logger.info("notification", extra={"level_ui": "success", "ui_message": message})

    def error(self, message: str) -> None:
        logger.warning("notification", extra={"level_ui": "error", "ui_message": message})


class RecordingNavigator(Navigator):
    """Navigator em memória: guarda o histórico de destinos."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None

    def redirect(self, path: str) -> None:
        logger.info("redirect", extra={"path": path})
        self.history.append(path)
