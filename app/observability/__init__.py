"""Observability layer: in-process counters for audit, version and retention activity."""

from app.observability.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
