"""
Activity Recorder - append-only log of register mutations.

Recording is diagnostic, not transactional: `record()` writes through its
own session after the triggering operation has committed, and a failure
to write is logged and dropped, never raised to the caller.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from complyva.core.config import settings
from complyva.core.database import get_session_local
from complyva.core.guards import storage_guard
from complyva.core.logging_config import get_logger
from complyva.models.activity_log import ActivityLogEntry
from complyva.models.enums import ActivityAction, EntityType

logger = get_logger(__name__)


class ActivityRecorder:
    """
    Writes and reads the activity log.

    A process-wide instance (`activity_recorder`) uses the application
    session factory; tests inject their own.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory or get_session_local()

    async def record(
        self,
        org_id: str,
        actor_user_id: Optional[str],
        action: ActivityAction,
        entity_type: EntityType,
        entity_id: Optional[str],
        name: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        """Append one entry. Never raises."""
        try:
            entry = ActivityLogEntry(
                org_id=org_id,
                user_id=actor_user_id,
                action=ActivityAction(action),
                entity_type=EntityType(entity_type),
                entity_id=entity_id,
                meta={"name": name, "details": details},
            )
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception as e:
            logger.log_error_with_context(
                e,
                context="activity.record",
                activity_action=str(getattr(action, "value", action)),
                entity_type=str(getattr(entity_type, "value", entity_type)),
                entity_id=entity_id,
            )

    @storage_guard
    async def list(
        self,
        db: AsyncSession,
        org_id: str,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ActivityLogEntry]:
        """
        Entries for an organisation, newest first.

        With entity_type and entity_id this is the per-entity activity tab
        (default limit ENTITY_ACTIVITY_LIMIT); otherwise the global feed
        (default limit ACTIVITY_LIST_LIMIT).
        """
        query = select(ActivityLogEntry).where(ActivityLogEntry.org_id == org_id)

        if entity_type is not None:
            query = query.where(ActivityLogEntry.entity_type == EntityType(entity_type))
        if entity_id is not None:
            query = query.where(ActivityLogEntry.entity_id == entity_id)

        if limit is None:
            scoped = entity_type is not None and entity_id is not None
            limit = settings.ENTITY_ACTIVITY_LIMIT if scoped else settings.ACTIVITY_LIST_LIMIT

        query = query.order_by(ActivityLogEntry.created_at.desc(), ActivityLogEntry.id.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


# Singleton instance
activity_recorder = ActivityRecorder()
