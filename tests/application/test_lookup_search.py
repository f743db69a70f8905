"""Testes dos hooks de busca com autopreenchimento (CEP e CNPJ)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from painel_financeiro.application.lookup_search import (
    CepSearch,
    CnpjSearch,
    SuppressionPolicy,
)
from painel_financeiro.domain.errors import NotFoundError, TransportError
from painel_financeiro.domain.models import AddressData, CompanyData
from painel_financeiro.domain.protocols import Notifier

PAULISTA = AddressData(
    address="Avenida Paulista",
    district="Bela Vista",
    city="São Paulo",
    state="SP",
    zip_code="01310-100",
)

COMPANY = CompanyData(
    name="EMPRESA EXEMPLO LTDA",
    fantasy_name="EXEMPLO",
    phone="(11) 33334444",
    city="SAO PAULO",
    state="SP",
)


class FormRecorder:
    """Setter de formulário que guarda as escritas."""

    def __init__(self) -> None:
        self.writes: list[tuple[str, str]] = []

    def __call__(self, name: str, value: str) -> None:
        self.writes.append((name, value))

    @property
    def values(self) -> dict[str, str]:
        return dict(self.writes)


@pytest.fixture
def form() -> FormRecorder:
    return FormRecorder()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


class TestCepSearch:
    @pytest.mark.asyncio
    async def test_fills_exactly_four_fields(self, form: FormRecorder, notifier: MagicMock) -> None:
        client = AsyncMock()
        client.fetch_address.return_value = PAULISTA
        search = CepSearch(client, form, notifier)

        assert await search.search("01310-100") is True

        client.fetch_address.assert_awaited_once_with("01310100")
        assert form.values == {
            "address": "Avenida Paulista",
            "district": "Bela Vista",
            "city": "São Paulo",
            "state": "SP",
        }
        assert len(form.writes) == 4
        assert search.in_flight is False
        assert search.last_query_value == "01310100"
        notifier.success.assert_not_called()

    @pytest.mark.asyncio
    async def test_in_flight_during_fetch(self, form: FormRecorder) -> None:
        client = AsyncMock()
        search = CepSearch(client, form)
        observed: list[bool] = []

        async def fetch(cep: str) -> AddressData:
            observed.append(search.in_flight)
            return PAULISTA

        client.fetch_address.side_effect = fetch
        await search.search("01310100")

        assert observed == [True]
        assert search.in_flight is False

    @pytest.mark.asyncio
    async def test_same_value_twice_issues_one_call(self, form: FormRecorder) -> None:
        client = AsyncMock()
        client.fetch_address.return_value = PAULISTA
        search = CepSearch(client, form)

        assert await search.search("01310100") is True
        assert await search.search("01310-100") is False

        assert client.fetch_address.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_search_allows_repeat(self, form: FormRecorder) -> None:
        client = AsyncMock()
        client.fetch_address.return_value = PAULISTA
        search = CepSearch(client, form)

        await search.search("01310100")
        search.reset_search()
        await search.search("01310100")

        assert client.fetch_address.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "0131010", "013101000", "abc"])
    async def test_malformed_input_is_noop(self, form: FormRecorder, raw: str) -> None:
        client = AsyncMock()
        search = CepSearch(client, form)

        assert await search.search(raw) is False
        client.fetch_address.assert_not_awaited()
        assert search.last_query_value == ""

    @pytest.mark.asyncio
    async def test_not_found(self, form: FormRecorder, notifier: MagicMock) -> None:
        client = AsyncMock()
        client.fetch_address.return_value = None
        search = CepSearch(client, form, notifier)

        await search.search("99999999")

        notifier.error.assert_called_once_with("CEP não encontrado")
        assert form.writes == []

    @pytest.mark.asyncio
    async def test_not_found_error_shows_not_found(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        client = AsyncMock()
        client.fetch_address.side_effect = NotFoundError()
        search = CepSearch(client, form, notifier)

        await search.search("99999999")

        notifier.error.assert_called_once_with("CEP não encontrado")
        assert form.writes == []
        assert search.in_flight is False

    @pytest.mark.asyncio
    async def test_transport_error_uses_generic_message(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        client = AsyncMock()
        client.fetch_address.side_effect = TransportError("timeout interno")
        search = CepSearch(client, form, notifier)

        await search.search("01310100")

        notifier.error.assert_called_once_with("Erro ao buscar CEP")
        assert search.in_flight is False

    @pytest.mark.asyncio
    async def test_unexpected_error_never_propagates(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        client = AsyncMock()
        client.fetch_address.side_effect = RuntimeError("bug")
        search = CepSearch(client, form, notifier)

        assert await search.search("01310100") is True

        notifier.error.assert_called_once_with("Erro ao buscar CEP")
        assert search.in_flight is False

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        gate = asyncio.Event()
        centro = AddressData(address="Rua do Ouvidor", city="Rio de Janeiro", state="RJ")

        async def fetch(cep: str) -> AddressData:
            if cep == "01310100":
                await gate.wait()
                return PAULISTA
            return centro

        client = AsyncMock()
        client.fetch_address.side_effect = fetch
        search = CepSearch(client, form, notifier)

        slow = asyncio.create_task(search.search("01310100"))
        await asyncio.sleep(0)
        assert search.in_flight is True

        await search.search("20040020")
        gate.set()
        await slow

        assert form.values == {
            "address": "Rua do Ouvidor",
            "city": "Rio de Janeiro",
            "state": "RJ",
        }
        assert search.in_flight is False
        notifier.error.assert_not_called()


class TestCnpjSearch:
    @pytest.mark.asyncio
    async def test_malformed_cnpj_issues_no_call(self, form: FormRecorder) -> None:
        client = AsyncMock()
        search = CnpjSearch(client, form)

        assert await search.search("11.222.333/0001") is False

        client.fetch_company.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fills_only_present_fields(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        client = AsyncMock()
        client.fetch_company.return_value = COMPANY
        search = CnpjSearch(client, form, notifier)

        await search.search("11.222.333/0001-81")

        client.fetch_company.assert_awaited_once_with("11222333000181")
        assert form.values == {
            "name": "EMPRESA EXEMPLO LTDA",
            "phone": "(11) 33334444",
            "city": "SAO PAULO",
            "state": "SP",
            "fantasyName": "EXEMPLO",
        }
        notifier.success.assert_called_once_with("Dados da empresa encontrados e preenchidos!")

    @pytest.mark.asyncio
    async def test_not_found(self, form: FormRecorder, notifier: MagicMock) -> None:
        client = AsyncMock()
        client.fetch_company.return_value = None
        search = CnpjSearch(client, form, notifier)

        await search.search("11222333000181")

        notifier.error.assert_called_once_with("CNPJ não encontrado")

    @pytest.mark.asyncio
    async def test_error_message_is_surfaced(
        self, form: FormRecorder, notifier: MagicMock
    ) -> None:
        client = AsyncMock()
        client.fetch_company.side_effect = TransportError("Erro ao buscar CNPJ", status_code=500)
        search = CnpjSearch(client, form, notifier)

        await search.search("11222333000181")

        notifier.error.assert_called_once_with("Erro ao buscar CNPJ")

    @pytest.mark.asyncio
    async def test_same_value_after_completion_is_reissued(self, form: FormRecorder) -> None:
        client = AsyncMock()
        client.fetch_company.return_value = COMPANY
        search = CnpjSearch(client, form)

        await search.search("11222333000181")
        await search.search("11222333000181")

        assert search.policy == SuppressionPolicy.SAME_VALUE_IN_FLIGHT
        assert client.fetch_company.await_count == 2

    @pytest.mark.asyncio
    async def test_same_value_in_flight_is_suppressed(self, form: FormRecorder) -> None:
        gate = asyncio.Event()

        async def fetch(cnpj: str) -> CompanyData:
            await gate.wait()
            return COMPANY

        client = AsyncMock()
        client.fetch_company.side_effect = fetch
        search = CnpjSearch(client, form)

        first = asyncio.create_task(search.search("11222333000181"))
        await asyncio.sleep(0)

        assert await search.search("11.222.333/0001-81") is False
        gate.set()
        assert await first is True
        assert client.fetch_company.await_count == 1

    @pytest.mark.asyncio
    async def test_policy_override(self, form: FormRecorder) -> None:
        client = AsyncMock()
        client.fetch_company.return_value = COMPANY
        search = CnpjSearch(client, form, policy=SuppressionPolicy.SAME_VALUE)

        await search.search("11222333000181")
        await search.search("11222333000181")

        assert client.fetch_company.await_count == 1
