"""Who is acting. Built per request by the API layer, passed explicitly to every mutation."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuditContext:
    """Immutable actor snapshot: identity, role, and request metadata."""

    actor_id: str
    actor_name: str
    role: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None


SYSTEM_ACTOR_NAME = "System"
SYSTEM_ROLE = "system"
