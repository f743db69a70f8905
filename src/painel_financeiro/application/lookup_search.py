"""Hooks de busca externa com autopreenchimento (CEP e CNPJ).

Fluxo de search(raw):
1. normaliza (só dígitos) e valida o comprimento; inválido = no-op
2. aplica a regra de supressão de repetição
3. in_flight=True, chama o cliente externo
4. sucesso com dados → escreve cada campo presente via setter
5. sucesso sem dados → notificação "não encontrado"
6. falha → mensagem do colaborador ou genérica
7. in_flight volta a False sempre

Cada chamada recebe um número de sequência; respostas mais antigas que a
última emitida são descartadas (sem escrita nem notificação).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Generic, Protocol, TypeVar

from painel_financeiro.config.settings import CEP_DIGITS, CNPJ_DIGITS
from painel_financeiro.domain.errors import NotFoundError, PainelError
from painel_financeiro.domain.models import AddressData, CompanyData
from painel_financeiro.domain.protocols import FieldSetter, LoggingNotifier, Notifier
from painel_financeiro.infra.brasilapi import CepClient, CnpjClient
from painel_financeiro.observability.logging import get_logger, mask_document
from painel_financeiro.utils.masks import only_digits

logger = get_logger(__name__)


class SuppressionPolicy(StrEnum):
    """Quando uma consulta repetida deixa de ser emitida."""

    SAME_VALUE = "same_value"
    SAME_VALUE_IN_FLIGHT = "same_value_in_flight"


class _Autofill(Protocol):
    def form_fields(self) -> dict[str, str]: ...


R = TypeVar("R", bound=_Autofill)


class LookupSearch(ABC, Generic[R]):
    """Base dos hooks de busca; subclasses definem cliente e mensagens."""

    kind: str = ""
    digits: int = 0
    default_policy: SuppressionPolicy = SuppressionPolicy.SAME_VALUE
    not_found_message: str = ""
    generic_error_message: str = ""
    success_message: str | None = None
    surface_error_message: bool = False

    def __init__(
        self,
        set_value: FieldSetter,
        notifier: Notifier | None = None,
        policy: SuppressionPolicy | None = None,
    ) -> None:
        self._set_value = set_value
        self._notifier = notifier or LoggingNotifier()
        self._policy = policy or self.default_policy
        self._last_query_value = ""
        self._pending = 0
        self._sequence = 0

    @property
    def last_query_value(self) -> str:
        return self._last_query_value

    @property
    def in_flight(self) -> bool:
        return self._pending > 0

    @property
    def policy(self) -> SuppressionPolicy:
        return self._policy

    def reset_search(self) -> None:
        """Esquece o último valor: a próxima consulta idêntica é emitida."""
        self._last_query_value = ""

    def _is_suppressed(self, clean: str) -> bool:
        if clean != self._last_query_value:
            return False
        if self._policy == SuppressionPolicy.SAME_VALUE_IN_FLIGHT:
            return self.in_flight
        return True

    async def search(self, raw: str) -> bool:
        """Executa a busca; retorna True se uma chamada externa foi emitida.

        Nunca lança: toda falha vira notificação.
        """
        clean = only_digits(raw)
        if len(clean) != self.digits:
            return False
        if self._is_suppressed(clean):
            logger.debug("Consulta repetida suprimida", extra={"lookup": self.kind})
            return False

        self._sequence += 1
        sequence = self._sequence
        self._pending += 1
        self._last_query_value = clean
        try:
            result = await self._fetch(clean)
        except NotFoundError:
            if self._is_current(sequence):
                self._notifier.error(self.not_found_message)
        except PainelError as exc:
            if self._is_current(sequence):
                message = exc.message if self.surface_error_message else None
                self._notifier.error(message or self.generic_error_message)
            logger.info(
                "Consulta externa falhou",
                extra={
                    "lookup": self.kind,
                    "query": mask_document(clean),
                    "error_type": type(exc).__name__,
                },
            )
        except Exception:
            logger.exception("Erro inesperado na consulta externa", extra={"lookup": self.kind})
            if self._is_current(sequence):
                self._notifier.error(self.generic_error_message)
        else:
            if not self._is_current(sequence):
                logger.info("Resposta obsoleta descartada", extra={"lookup": self.kind})
            elif result is None:
                self._notifier.error(self.not_found_message)
            else:
                self._apply(result)
        finally:
            self._pending -= 1
        return True

    def _is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def _apply(self, result: R) -> None:
        fields = result.form_fields()
        for name, value in fields.items():
            self._set_value(name, value)
        logger.debug("Campos preenchidos", extra={"lookup": self.kind, "fields": sorted(fields)})
        if self.success_message:
            self._notifier.success(self.success_message)

    @abstractmethod
    async def _fetch(self, clean: str) -> R | None: ...


class CepSearch(LookupSearch[AddressData]):
    """Busca de endereço por CEP; preenche address/district/city/state."""

    kind = "cep"
    digits = CEP_DIGITS
    default_policy = SuppressionPolicy.SAME_VALUE
    not_found_message = "CEP não encontrado"
    generic_error_message = "Erro ao buscar CEP"

    def __init__(
        self,
        client: CepClient,
        set_value: FieldSetter,
        notifier: Notifier | None = None,
        policy: SuppressionPolicy | None = None,
    ) -> None:
        super().__init__(set_value, notifier, policy)
        self._client = client

    async def _fetch(self, clean: str) -> AddressData | None:
        return await self._client.fetch_address(clean)


class CnpjSearch(LookupSearch[CompanyData]):
    """Busca de empresa por CNPJ; preenche apenas campos não vazios."""

    kind = "cnpj"
    digits = CNPJ_DIGITS
    default_policy = SuppressionPolicy.SAME_VALUE_IN_FLIGHT
    not_found_message = "CNPJ não encontrado"
    generic_error_message = "Erro ao buscar CNPJ"
    success_message = "Dados da empresa encontrados e preenchidos!"
    surface_error_message = True

    def __init__(
        self,
        client: CnpjClient,
        set_value: FieldSetter,
        notifier: Notifier | None = None,
        policy: SuppressionPolicy | None = None,
    ) -> None:
        super().__init__(set_value, notifier, policy)
        self._client = client

    async def _fetch(self, clean: str) -> CompanyData | None:
        return await self._client.fetch_company(clean)
