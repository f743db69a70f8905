"""Guard de rotas autenticadas: aplica a máquina pura de domain.guard.

O guard é uma projeção do estado da sessão: reavaliado a cada mudança,
sem timers próprios e sem lançar exceções. O único side effect é o
redirect, executado na entrada de um estado negado.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from painel_financeiro.application.auth_session import AuthSession
from painel_financeiro.domain.guard import (
    ADMIN_ONLY,
    ENTERPRISE_AREA,
    GuardDecision,
    GuardState,
    RedirectTargets,
    RolePolicy,
    evaluate,
    should_redirect,
)
from painel_financeiro.domain.models import SessionSnapshot
from painel_financeiro.domain.protocols import Navigator
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RenderKind(StrEnum):
    PLACEHOLDER = "placeholder"
    ACCESS_DENIED = "access_denied"
    CONTENT = "content"


@dataclass(frozen=True, slots=True)
class RenderResult(Generic[T]):
    """O que a página deve exibir no frame atual."""

    kind: RenderKind
    content: T | None = None
    message: str | None = None


class AccessGuard(Generic[T]):
    """Protege conteúdo conforme o papel exigido pela política."""

    def __init__(
        self,
        session: AuthSession,
        policy: RolePolicy,
        navigator: Navigator,
        targets: RedirectTargets | None = None,
    ) -> None:
        self._session = session
        self._policy = policy
        self._navigator = navigator
        self._targets = targets or RedirectTargets()
        self._state: GuardState | None = None
        self._decision = GuardDecision(GuardState.CHECKING)
        self._unsubscribe = session.subscribe(self._on_session_change)
        self._on_session_change(session.snapshot)

    @property
    def policy(self) -> RolePolicy:
        return self._policy

    @property
    def state(self) -> GuardState:
        return self._decision.state

    @property
    def decision(self) -> GuardDecision:
        return self._decision

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        decision = evaluate(snapshot, self._policy, self._targets)
        previous = self._state
        self._state = decision.state
        self._decision = decision

        if previous != decision.state:
            logger.debug(
                "Guard transition",
                extra={
                    "guard": self._policy.name,
                    "previous_state": previous,
                    "next_state": decision.state,
                },
            )

        if should_redirect(previous, decision):
            logger.info(
                "Guard redirect",
                extra={
                    "guard": self._policy.name,
                    "state": decision.state,
                    "path": decision.redirect_to,
                },
            )
            self._navigator.redirect(decision.redirect_to)  # type: ignore[arg-type]

    def render(self, children: T) -> RenderResult[T]:
        """Decide o frame a partir do estado corrente da sessão.

        Reavalia o snapshot antes de decidir, então conteúdo protegido nunca
        sai num frame em que a sessão já não autoriza.
        """
        current = evaluate(self._session.snapshot, self._policy, self._targets)
        if current.state != self._decision.state:
            self._on_session_change(self._session.snapshot)

        state = self._decision.state
        if state == GuardState.AUTHORIZED:
            return RenderResult(RenderKind.CONTENT, content=children)
        if state == GuardState.DENIED_WRONG_ROLE:
            return RenderResult(RenderKind.ACCESS_DENIED, message=self._policy.denied_message)
        return RenderResult(RenderKind.PLACEHOLDER)

    def close(self) -> None:
        """Cancela a inscrição na sessão (desmontagem da página)."""
        self._unsubscribe()

    def __enter__(self) -> AccessGuard[T]:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def admin_guard(
    session: AuthSession,
    navigator: Navigator,
    targets: RedirectTargets | None = None,
) -> AccessGuard[Any]:
    """Autoriza apenas user.type == ADMIN."""
    return AccessGuard(session, ADMIN_ONLY, navigator, targets)


def enterprise_guard(
    session: AuthSession,
    navigator: Navigator,
    targets: RedirectTargets | None = None,
) -> AccessGuard[Any]:
    """Autoriza user.type em {ENTERPRISE, ADMIN}."""
    return AccessGuard(session, ENTERPRISE_AREA, navigator, targets)
