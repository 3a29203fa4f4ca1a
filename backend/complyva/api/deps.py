"""
Request-scoped dependencies.

Identity is resolved once per request from the headers set by the
upstream identity provider and passed down as plain data; nothing below
the API layer reads headers or ambient state.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from complyva.core.exceptions import UnauthorizedError
from complyva.core.logging_config import set_org_id, set_user_id
from complyva.models.enums import Role
from complyva.services.activity import ActivityRecorder, activity_recorder
from complyva.services.aggregation import AggregationEngine, aggregation_engine


@dataclass(frozen=True)
class ActorContext:
    org_id: str
    user_id: Optional[str]
    role: Role

    @property
    def can_write(self) -> bool:
        return self.role in (Role.ADMIN, Role.AUDITOR)


async def get_actor(
    x_org_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    x_role: Optional[str] = Header(None),
) -> ActorContext:
    """Build the actor from X-Org-Id / X-User-Id / X-Role; role defaults to VIEWER"""
    if not x_org_id:
        raise UnauthorizedError("Missing organisation context")

    try:
        role = Role((x_role or Role.VIEWER.value).upper())
    except ValueError:
        raise UnauthorizedError(f"Unknown role: {x_role}", role=x_role)

    set_org_id(x_org_id)
    set_user_id(x_user_id or "")
    return ActorContext(org_id=x_org_id, user_id=x_user_id or None, role=role)


async def require_writer(actor: ActorContext = Depends(get_actor)) -> ActorContext:
    """Gate for every mutating route; VIEWER never reaches the core"""
    if not actor.can_write:
        raise UnauthorizedError("Your role does not allow changes", role=actor.role.value)
    return actor


def get_recorder() -> ActivityRecorder:
    return activity_recorder


def get_aggregation_engine() -> AggregationEngine:
    return aggregation_engine
