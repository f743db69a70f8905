"""Modal de confirmação: CLOSED → OPEN → CONFIRMING → CLOSED.

- show_alert: abre (substitui configuração anterior)
- close_alert: fecha, exceto durante CONFIRMING
- confirm_alert: executa a ação e fecha mesmo se ela falhar (falha só é logada)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from painel_financeiro.domain.enums import AlertKind
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

ConfirmAction = Callable[[], Awaitable[None] | None]


class ModalState(StrEnum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    CONFIRMING = "CONFIRMING"


@dataclass(frozen=True, slots=True)
class AlertConfig:
    title: str
    description: str
    on_confirm: ConfirmAction
    kind: AlertKind = AlertKind.WARNING
    confirm_label: str = "Confirmar"
    cancel_label: str = "Cancelar"


class AlertModal:
    """Estado de um modal de confirmação para ações destrutivas."""

    def __init__(self) -> None:
        self._state = ModalState.CLOSED
        self._config: AlertConfig | None = None

    @property
    def state(self) -> ModalState:
        return self._state

    @property
    def config(self) -> AlertConfig | None:
        return self._config

    @property
    def is_open(self) -> bool:
        return self._state != ModalState.CLOSED

    @property
    def is_loading(self) -> bool:
        return self._state == ModalState.CONFIRMING

    def show_alert(self, config: AlertConfig) -> None:
        self._config = config
        self._state = ModalState.OPEN

    def close_alert(self) -> None:
        if self._state == ModalState.CONFIRMING:
            return
        self._state = ModalState.CLOSED
        self._config = None

    async def confirm_alert(self) -> None:
        if self._config is None or self._state == ModalState.CONFIRMING:
            return

        config = self._config
        self._state = ModalState.CONFIRMING
        try:
            result = config.on_confirm()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Erro ao executar ação", extra={"alert_title": config.title})
        finally:
            self._state = ModalState.CLOSED
            self._config = None

    # Atalhos para os tipos de alerta mais comuns

    def show_delete_alert(self, item_name: str, on_confirm: ConfirmAction) -> None:
        self.show_alert(
            AlertConfig(
                title="Confirmar Exclusão",
                description=(
                    f'Tem certeza que deseja excluir "{item_name}"? '
                    "Esta ação não pode ser desfeita."
                ),
                kind=AlertKind.DANGER,
                confirm_label="Excluir",
                on_confirm=on_confirm,
            )
        )

    def show_edit_alert(self, item_name: str, on_confirm: ConfirmAction) -> None:
        self.show_alert(
            AlertConfig(
                title="Confirmar Edição",
                description=f'Deseja editar a categoria "{item_name}"?',
                kind=AlertKind.INFO,
                confirm_label="Editar",
                on_confirm=on_confirm,
            )
        )

    def show_warning_alert(self, title: str, description: str, on_confirm: ConfirmAction) -> None:
        self.show_alert(
            AlertConfig(
                title=title,
                description=description,
                kind=AlertKind.WARNING,
                confirm_label="Continuar",
                on_confirm=on_confirm,
            )
        )
