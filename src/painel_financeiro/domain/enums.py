"""Enums de domínio: tipos de usuário e tipos de alerta."""

from __future__ import annotations

from enum import StrEnum


class UserType(StrEnum):
    """Tipos de conta aceitos pelo backend."""

    ENTERPRISE = "ENTERPRISE"
    ADMIN = "ADMIN"


class AlertKind(StrEnum):
    """Severidade visual do modal de confirmação."""

    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"
