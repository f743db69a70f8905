"""Taxonomia de erros do núcleo (guards, sessão e consultas externas).

Política de propagação:
- Hooks de consulta capturam tudo localmente (nunca relançam ao chamador).
- Guards não lançam: estados não autorizados são renderizados.
- AuthExpiredError é tratado pelo interceptador do ApiClient, não pelos hooks.
"""

from __future__ import annotations


class PainelError(Exception):
    """Erro base da aplicação."""

    default_message = "Erro inesperado"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        # Mensagem recebida do colaborador (None quando ausente)
        self.detail = message
        self.message = message or self.default_message
        self.status_code = status_code


class LookupValidationError(PainelError):
    """Entrada malformada para uma consulta (silenciosamente ignorada)."""

    default_message = "Entrada inválida"


class NotFoundError(PainelError):
    """Consulta concluída sem registro correspondente.

    Os clientes de CEP/CNPJ sinalizam "não encontrado" retornando None; os
    hooks de busca tratam este erro da mesma forma (mensagem "não encontrado").
    """

    default_message = "Registro não encontrado"


class TransportError(PainelError):
    """Falha de rede ou de parse; mensagem do colaborador quando houver."""

    default_message = "Erro de comunicação com o servidor"


class AuthExpiredError(PainelError):
    """401 em chamada autenticada."""

    default_message = "Sessão expirada"


class ForbiddenError(PainelError):
    """403: usuário sem permissão para o recurso."""

    default_message = "Você não tem permissão para acessar este recurso"
