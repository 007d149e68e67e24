# app/api/routers/health.py

from fastapi import APIRouter, Depends, Request

from app.api.dependencies import get_metrics
from app.config.settings import get_settings
from app.observability.metrics import MetricsCollector

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Health check with correlation ID and actor (if any) from request state."""
    settings = get_settings()
    context = getattr(request.state, "audit_context", None)
    return {
        "status": "ok",
        "actor_id": context.actor_id if context else None,
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
        "version": settings.version,
    }


@router.get("/metrics")
async def metrics(collector: MetricsCollector = Depends(get_metrics)):
    return collector.export_metrics()
