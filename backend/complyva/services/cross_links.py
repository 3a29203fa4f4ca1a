"""
Cross-Link Graph - directed provenance edges between register rows.

Edges are polymorphic (type tag + id on each end) and carry no foreign
keys, so deleting a row leaves its edges dangling; readers substitute a
fallback label for the missing side.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import select, or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from complyva.core.config import settings
from complyva.core.exceptions import InvalidInputError
from complyva.core.guards import storage_guard
from complyva.core.logging_config import get_logger
from complyva.models.cross_link import CrossLink
from complyva.models.enums import ActivityAction, EntityType, LinkType
from complyva.services.activity import ActivityRecorder, activity_recorder
from complyva.services.register_store import RegisterStore, resolve_kind, title_of

logger = get_logger(__name__)


@dataclass(frozen=True)
class EntityRef:
    """One end of an edge"""
    type: EntityType
    id: str

    @classmethod
    def of(cls, entity_type: Union[EntityType, str], entity_id: str) -> "EntityRef":
        return cls(resolve_kind(entity_type), str(entity_id))

    @classmethod
    def for_entity(cls, entity) -> "EntityRef":
        return cls(entity.entity_type, entity.id)


@dataclass
class ResolvedLink:
    """A CrossLink with display titles for both ends"""
    id: str
    source_type: EntityType
    source_id: str
    source_title: str
    target_type: EntityType
    target_id: str
    target_title: str
    link_type: LinkType
    created_by: Optional[str]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "source_title": self.source_title,
            "target_type": self.target_type.value,
            "target_id": self.target_id,
            "target_title": self.target_title,
            "link_type": self.link_type.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def fallback_label(entity_type: EntityType, entity_id: str) -> str:
    """Label for an edge end whose row no longer exists"""
    return f"{EntityType(entity_type).label} ({str(entity_id)[:8]}…)"


def partition(
    links: Sequence[ResolvedLink],
    entity_type: Union[EntityType, str],
    entity_id: str,
) -> Tuple[List[ResolvedLink], List[ResolvedLink]]:
    """Split links_for() output into (outgoing, incoming) relative to one entity"""
    entity_type = EntityType(entity_type)
    outgoing, incoming = [], []
    for link in links:
        if link.source_type == entity_type and link.source_id == entity_id:
            outgoing.append(link)
        if link.target_type == entity_type and link.target_id == entity_id:
            incoming.append(link)
    return outgoing, incoming


class CrossLinkGraph:
    """Create and query cross-links for one session"""

    def __init__(self, db: AsyncSession, recorder: Optional[ActivityRecorder] = None):
        self.db = db
        self.recorder = recorder or activity_recorder
        self.store = RegisterStore(db, self.recorder)

    @storage_guard
    async def link(
        self,
        org_id: str,
        source: EntityRef,
        target: EntityRef,
        link_type: LinkType = LinkType.MANUAL,
        actor_user_id: Optional[str] = None,
        commit: bool = True,
    ) -> CrossLink:
        """
        Create an edge, or return the identical edge if it already exists.

        Both ends must exist in the organisation. With commit=False the edge
        is only flushed and the caller owns the transaction.
        """
        link_type = LinkType(link_type)
        if source.type == target.type and source.id == target.id:
            raise InvalidInputError("An entity cannot be linked to itself", field="target_id")

        source_row = await self.store.get(org_id, source.type, source.id)
        target_row = await self.store.get(org_id, target.type, target.id)

        existing = await self._find_edge(org_id, source, target, link_type)
        if existing is not None:
            return existing

        edge = CrossLink(
            org_id=org_id,
            source_type=source.type,
            source_id=source.id,
            target_type=target.type,
            target_id=target.id,
            link_type=link_type,
            created_by=actor_user_id,
        )
        self.db.add(edge)

        if not commit:
            await self.db.flush()
            return edge

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with an identical insert
            await self.db.rollback()
            existing = await self._find_edge(org_id, source, target, link_type)
            if existing is None:
                raise
            return existing

        logger.info(
            f"Linked {source.type.value}:{source.id} -> {target.type.value}:{target.id} ({link_type.value})",
            extra={"event_type": "cross_link", "link_id": edge.id},
        )
        await self.recorder.record(
            org_id, actor_user_id, ActivityAction.LINKED, source.type, source.id,
            name=title_of(source_row),
            details=f"Linked to {target.type.label}: {title_of(target_row)}",
        )
        return edge

    async def _find_edge(self, org_id: str, source: EntityRef, target: EntityRef, link_type: LinkType):
        result = await self.db.execute(
            select(CrossLink).where(
                CrossLink.org_id == org_id,
                CrossLink.source_type == source.type,
                CrossLink.source_id == source.id,
                CrossLink.target_type == target.type,
                CrossLink.target_id == target.id,
                CrossLink.link_type == link_type,
            )
        )
        return result.scalars().first()

    @storage_guard
    async def links_for(
        self,
        org_id: str,
        entity_type: Union[EntityType, str],
        entity_id: str,
    ) -> List[ResolvedLink]:
        """Edges in either direction touching one entity, newest first"""
        entity_type = resolve_kind(entity_type)
        entity_id = str(entity_id)

        result = await self.db.execute(
            select(CrossLink)
            .where(
                CrossLink.org_id == org_id,
                or_(
                    and_(CrossLink.source_type == entity_type, CrossLink.source_id == entity_id),
                    and_(CrossLink.target_type == entity_type, CrossLink.target_id == entity_id),
                ),
            )
            .order_by(CrossLink.created_at.desc())
        )

        seen = set()
        edges = []
        for edge in result.scalars().all():
            if edge.id in seen:
                continue
            seen.add(edge.id)
            edges.append(edge)

        return await self._resolve(org_id, edges)

    @storage_guard
    async def generated_target(
        self,
        org_id: str,
        source: EntityRef,
        target_type: Union[EntityType, str],
    ) -> Optional[CrossLink]:
        """The GENERATED edge from `source` into `target_type`, if a derivation already ran"""
        result = await self.db.execute(
            select(CrossLink)
            .where(
                CrossLink.org_id == org_id,
                CrossLink.source_type == source.type,
                CrossLink.source_id == source.id,
                CrossLink.target_type == resolve_kind(target_type),
                CrossLink.link_type == LinkType.GENERATED,
            )
            .order_by(CrossLink.created_at.asc())
        )
        return result.scalars().first()

    @storage_guard
    async def recent_links(self, org_id: str, limit: Optional[int] = None) -> List[ResolvedLink]:
        """Newest edges across the organisation"""
        result = await self.db.execute(
            select(CrossLink)
            .where(CrossLink.org_id == org_id)
            .order_by(CrossLink.created_at.desc())
            .limit(limit or settings.RECENT_LINKS_LIMIT)
        )
        return await self._resolve(org_id, list(result.scalars().all()))

    async def _resolve(self, org_id: str, edges: Sequence[CrossLink]) -> List[ResolvedLink]:
        """Attach titles, one batched lookup per register touched"""
        wanted: Dict[EntityType, set] = {}
        for edge in edges:
            wanted.setdefault(edge.source_type, set()).add(edge.source_id)
            wanted.setdefault(edge.target_type, set()).add(edge.target_id)

        titles: Dict[Tuple[EntityType, str], str] = {}
        for entity_type, ids in wanted.items():
            for entity_id, title in (await self.store.titles_for(org_id, entity_type, ids)).items():
                titles[(entity_type, entity_id)] = title

        def label(entity_type, entity_id):
            return titles.get((entity_type, entity_id)) or fallback_label(entity_type, entity_id)

        return [
            ResolvedLink(
                id=edge.id,
                source_type=edge.source_type,
                source_id=edge.source_id,
                source_title=label(edge.source_type, edge.source_id),
                target_type=edge.target_type,
                target_id=edge.target_id,
                target_title=label(edge.target_type, edge.target_id),
                link_type=edge.link_type,
                created_by=edge.created_by,
                created_at=edge.created_at,
            )
            for edge in edges
        ]
