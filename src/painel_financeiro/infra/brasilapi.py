"""Clientes de consulta pública (BrasilAPI): CEP e CNPJ.

Clientes sem estado: normalizam a entrada, chamam o serviço externo e
devolvem os dados já no formato dos formulários.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from painel_financeiro.domain.errors import LookupValidationError, TransportError
from painel_financeiro.domain.models import AddressData, CompanyData
from painel_financeiro.infra.http import HttpClient, HttpError, create_http_client
from painel_financeiro.observability.logging import get_logger, mask_document
from painel_financeiro.utils.masks import format_cep, has_cnpj_length, is_valid_cep, only_digits

if TYPE_CHECKING:
    from painel_financeiro.config.settings import Settings

logger = get_logger(__name__)


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


class CepClient:
    """Consulta de endereço por CEP.

    Contrato: status não-2xx ou corpo malformado = "não encontrado" (None).
    Só falhas de transporte (sem resposta) viram TransportError.
    """

    def __init__(self, http: HttpClient, settings: Settings) -> None:
        self._http = http
        self._settings = settings

    async def fetch_address(self, cep: str) -> AddressData | None:
        clean = only_digits(cep)
        if not is_valid_cep(clean):
            raise LookupValidationError("CEP deve ter 8 dígitos")

        try:
            response = await self._http.get(self._settings.cep_url(clean))
        except HttpError as exc:
            if exc.status_code is None:
                raise TransportError("Erro ao buscar CEP") from exc
            logger.info(
                "CEP não encontrado",
                extra={"cep": mask_document(clean), "status_code": exc.status_code},
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Resposta de CEP malformada", extra={"cep": mask_document(clean)})
            return None
        if not isinstance(data, dict):
            return None

        return AddressData(
            address=_text(data, "street") or None,
            district=_text(data, "neighborhood") or None,
            city=_text(data, "city") or None,
            state=_text(data, "state") or None,
            zip_code=format_cep(clean),
        )


def _format_company_phone(raw: str) -> str:
    """DDD + número da Receita ("1133334444") → "(11) 33334444"."""
    digits = only_digits(raw)
    if not digits:
        return ""
    return f"({digits[:2]}) {digits[2:]}"


def company_from_record(data: dict[str, Any]) -> CompanyData:
    """Converte o registro da Receita no formato dos formulários."""
    street = f"{_text(data, 'descricao_tipo_logradouro')} {_text(data, 'logradouro')}".strip()
    zip_raw = _text(data, "cep")
    return CompanyData(
        name=_text(data, "razao_social"),
        fantasy_name=_text(data, "nome_fantasia"),
        email=_text(data, "email"),
        phone=_format_company_phone(_text(data, "ddd_telefone_1")),
        address=street,
        number=_text(data, "numero"),
        complement=_text(data, "complemento"),
        district=_text(data, "bairro"),
        city=_text(data, "municipio"),
        state=_text(data, "uf"),
        zip_code=format_cep(zip_raw) if zip_raw else "",
    )


class CnpjClient:
    """Consulta de empresa por CNPJ.

    - 404 → None ("não encontrado")
    - demais falhas → TransportError("Erro ao buscar CNPJ")
    """

    def __init__(self, http: HttpClient, settings: Settings) -> None:
        self._http = http
        self._settings = settings

    async def fetch_company(self, cnpj: str) -> CompanyData | None:
        clean = only_digits(cnpj)
        if not has_cnpj_length(clean):
            raise LookupValidationError("CNPJ inválido")

        try:
            response = await self._http.get(self._settings.cnpj_url(clean))
        except HttpError as exc:
            if exc.status_code == 404:
                logger.info("CNPJ não encontrado", extra={"cnpj": mask_document(clean)})
                return None
            raise TransportError("Erro ao buscar CNPJ", status_code=exc.status_code) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError("Resposta inválida ao buscar CNPJ") from exc
        if not isinstance(data, dict):
            raise TransportError("Resposta inválida ao buscar CNPJ")

        return company_from_record(data)


def create_lookup_clients(settings: Settings) -> tuple[CepClient, CnpjClient]:
    """Cria os dois clientes sobre um HttpClient sem base_url (URLs absolutas)."""
    http = create_http_client(settings, base_url="")
    return CepClient(http, settings), CnpjClient(http, settings)
