"""Máquina de estados do guard de rotas: função de transição pura.

Estados:
- CHECKING: sessão ainda resolvendo (loading=True). Placeholder, sem redirect.
- DENIED_NO_USER: sessão resolvida sem usuário. Placeholder + redirect ao login.
- DENIED_WRONG_ROLE: usuário sem o papel exigido. "Acesso negado" + redirect
  para a home da área a que o papel dá direito (ou login se nenhuma).
- AUTHORIZED: conteúdo protegido renderizado sem modificação.

Nada aqui executa navegação; o AccessGuard (application) aplica o redirect
quando uma transição entra num estado negado.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from painel_financeiro.domain.enums import UserType
from painel_financeiro.domain.models import SessionSnapshot, User

if TYPE_CHECKING:
    from painel_financeiro.config.settings import Settings


class GuardState(StrEnum):
    """Estados canônicos do guard."""

    CHECKING = "CHECKING"
    DENIED_NO_USER = "DENIED_NO_USER"
    DENIED_WRONG_ROLE = "DENIED_WRONG_ROLE"
    AUTHORIZED = "AUTHORIZED"


DENIED_STATES = frozenset({GuardState.DENIED_NO_USER, GuardState.DENIED_WRONG_ROLE})


@dataclass(frozen=True, slots=True)
class RolePolicy:
    """Predicado de papel de um guard."""

    name: str
    allowed_types: frozenset[UserType]
    denied_message: str = "Acesso negado."

    def allows(self, user: User) -> bool:
        return user.type in self.allowed_types


ADMIN_ONLY = RolePolicy(
    name="admin",
    allowed_types=frozenset({UserType.ADMIN}),
    denied_message="Acesso negado. Apenas administradores podem acessar esta funcionalidade.",
)
ENTERPRISE_AREA = RolePolicy(
    name="enterprise",
    allowed_types=frozenset({UserType.ENTERPRISE, UserType.ADMIN}),
    denied_message="Acesso negado. Área restrita a contas empresariais.",
)


@dataclass(frozen=True, slots=True)
class RedirectTargets:
    """Destinos consumidos pelos guards."""

    login: str = "/login"
    enterprise_home: str = "/dashboard"
    admin_home: str = "/admin/dashboard"

    @classmethod
    def from_settings(cls, settings: Settings) -> RedirectTargets:
        return cls(
            login=settings.login_path,
            enterprise_home=settings.enterprise_home_path,
            admin_home=settings.admin_home_path,
        )

    def home_for(self, user_type: UserType) -> str | None:
        """Home da área protegida que o tipo de usuário pode acessar."""
        if user_type == UserType.ADMIN:
            return self.admin_home
        if user_type == UserType.ENTERPRISE:
            return self.enterprise_home
        return None


@dataclass(frozen=True, slots=True)
class GuardDecision:
    """Resultado da avaliação: estado + destino de redirect (se houver)."""

    state: GuardState
    redirect_to: str | None = None

    @property
    def renders_children(self) -> bool:
        return self.state == GuardState.AUTHORIZED

    @property
    def is_denied(self) -> bool:
        return self.state in DENIED_STATES


def evaluate(
    snapshot: SessionSnapshot,
    policy: RolePolicy,
    targets: RedirectTargets,
) -> GuardDecision:
    """Projeta (user, loading) num estado do guard.

    Contrato:
    - Nunca lança exceção
    - Determinístico e sem side effects
    """
    if snapshot.loading:
        return GuardDecision(GuardState.CHECKING)

    user = snapshot.user
    if user is None:
        return GuardDecision(GuardState.DENIED_NO_USER, redirect_to=targets.login)

    if policy.allows(user):
        return GuardDecision(GuardState.AUTHORIZED)

    home = targets.home_for(user.type)
    return GuardDecision(GuardState.DENIED_WRONG_ROLE, redirect_to=home or targets.login)


def should_redirect(previous: GuardState | None, decision: GuardDecision) -> bool:
    """True apenas na entrada num estado negado (um redirect por transição)."""
    return decision.is_denied and decision.redirect_to is not None and previous != decision.state
