"""Configuração de logging estruturado (JSON)."""

from __future__ import annotations

import logging
import re

from pythonjsonlogger.json import JsonFormatter

from painel_financeiro.observability.middleware import get_correlation_id

_NON_DIGITS = re.compile(r"\D")


class CorrelationIdFilter(logging.Filter):
    """Insere correlation_id e service no record de log.

    Importante: nunca adicionar tokens, CNPJ/CPF completos ou e-mails nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else get_correlation_id()
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str) -> None:
    """Configura logging JSON com campos padrão do serviço."""

    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s",
        rename_fields={"levelname": "level", "name": "logger"},
    )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger simples; o filtro injeta service/correlation_id."""

    return logging.getLogger(name)


def mask_document(value: str) -> str:
    """Mascara CPF/CNPJ/CEP para log, mantendo só os 4 últimos dígitos.

    Exemplo:
        mask_document("12.345.678/0001-95") -> "**********0195"
    """
    digits = _NON_DIGITS.sub("", value or "")
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
