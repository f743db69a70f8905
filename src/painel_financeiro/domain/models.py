"""Modelos de domínio (contratos principais)."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from painel_financeiro.domain.enums import UserType


class User(BaseModel):
    """Usuário autenticado, como devolvido por /auth/profile."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str
    name: str
    type: UserType
    cnpj: str | None = None
    plan_id: str | None = Field(default=None, alias="planId")


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Estado observável da sessão num instante: {user, loading}."""

    user: User | None
    loading: bool


class AddressData(BaseModel):
    """Resultado de autopreenchimento de endereço (consulta de CEP).

    Campos ausentes na origem ficam None e não são aplicados no formulário.
    """

    address: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    def form_fields(self) -> dict[str, str]:
        """Campos presentes, já com os nomes usados nos formulários."""
        return _present_fields(
            {
                "address": self.address,
                "district": self.district,
                "city": self.city,
                "state": self.state,
            }
        )


class CompanyData(BaseModel):
    """Dados da empresa formatados para os formulários (consulta de CNPJ)."""

    name: str = ""
    fantasy_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    number: str = ""
    complement: str = ""
    district: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    def form_fields(self) -> dict[str, str]:
        """Somente campos não vazios; nomes em camelCase como no formulário."""
        return _present_fields(
            {
                "name": self.name,
                "email": self.email,
                "phone": self.phone,
                "address": self.address,
                "number": self.number,
                "complement": self.complement,
                "district": self.district,
                "city": self.city,
                "state": self.state,
                "zipCode": self.zip_code,
                "fantasyName": self.fantasy_name,
            }
        )


class PlanUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_name: str = Field(default="", alias="planName")
    user_count: int = Field(default=0, alias="userCount")
    plan_id: str = Field(default="", alias="planId")


class TypeUsage(BaseModel):
    type: UserType
    count: int = 0


class RecentUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    email: str
    type: UserType
    status: str = "ACTIVE"
    created_at: str = Field(default="", alias="createdAt")


class AdminStats(BaseModel):
    """Estatísticas do painel administrativo (/users/dashboard)."""

    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(default=0, alias="totalUsers")
    active_users: int = Field(default=0, alias="activeUsers")
    inactive_users: int = Field(default=0, alias="inactiveUsers")
    users_by_plan: list[PlanUsage] = Field(default_factory=list, alias="usersByPlan")
    users_by_type: list[TypeUsage] = Field(default_factory=list, alias="usersByType")
    recent_users: list[RecentUser] = Field(default_factory=list, alias="recentUsers")


def _present_fields(values: dict[str, str | None]) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}
