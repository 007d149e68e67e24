"""Scalability layer: distributed locking so one node runs the retention sweep. No FastAPI."""

from app.scalability.distributed_lock import DistributedLock

__all__ = ["DistributedLock"]
