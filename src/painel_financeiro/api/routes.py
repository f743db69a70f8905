"""Rotas HTTP das áreas protegidas."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from painel_financeiro.api.dependencies import (
    forwarded_cookie_headers,
    get_backend_api,
    get_settings,
    require_admin,
    require_enterprise,
)
from painel_financeiro.application.admin_stats import STATS_ROUTE, normalize_stats
from painel_financeiro.config.settings import Settings
from painel_financeiro.domain.errors import ForbiddenError, PainelError
from painel_financeiro.domain.models import User
from painel_financeiro.infra.api_client import ApiClient
from painel_financeiro.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.get("/dashboard")
def enterprise_dashboard(user: User = Depends(require_enterprise)) -> dict[str, Any]:
    """Área empresarial (ENTERPRISE ou ADMIN)."""
    return {"user": user.model_dump(mode="json")}


@router.get("/admin/dashboard")
async def admin_dashboard(
    request: Request,
    user: User = Depends(require_admin),
    api: ApiClient = Depends(get_backend_api),
) -> dict[str, Any]:
    """Painel administrativo com estatísticas normalizadas."""
    try:
        payload = await api.get(STATS_ROUTE, headers=forwarded_cookie_headers(request))
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc
    except PainelError as exc:
        logger.warning("Falha ao obter estatísticas", extra={"error_type": type(exc).__name__})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc

    try:
        stats = normalize_stats(payload)
    except ValidationError as exc:
        logger.warning("Estatísticas malformadas", extra={"error_count": exc.error_count()})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Erro ao carregar estatísticas",
        ) from exc

    return {"user": user.model_dump(mode="json"), "stats": stats.model_dump(mode="json")}
