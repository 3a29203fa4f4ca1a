"""
Derivation Engine - runs the "send to X" transformations.

Creating the target row and its GENERATED link happen in one transaction:
either both are committed or neither is. A source that already produced
a target of the same register is rejected with AlreadyLinkedError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from complyva.core.exceptions import AlreadyLinkedError, InvalidInputError
from complyva.core.guards import storage_guard
from complyva.core.logging_config import get_logger
from complyva.models.cross_link import CrossLink
from complyva.models.enums import ActivityAction, LinkType
from complyva.rules.derivation import Transformation, build_fields, get_rule
from complyva.services.activity import ActivityRecorder, activity_recorder
from complyva.services.cross_links import CrossLinkGraph, EntityRef
from complyva.services.register_store import RegisterStore, created_details, title_of

logger = get_logger(__name__)


@dataclass
class DerivationResult:
    target: Any
    link: CrossLink

    def to_dict(self) -> Dict[str, Any]:
        return {"target": self.target.to_dict(), "link": self.link.to_dict()}


class DerivationEngine:
    """Applies a Transformation to one source row"""

    def __init__(self, db: AsyncSession, recorder: Optional[ActivityRecorder] = None):
        self.db = db
        self.recorder = recorder or activity_recorder
        self.store = RegisterStore(db, self.recorder)
        self.graph = CrossLinkGraph(db, self.recorder)

    @storage_guard
    async def derive(
        self,
        org_id: str,
        transformation: Union[Transformation, str],
        source_id: str,
        actor_user_id: Optional[str] = None,
    ) -> DerivationResult:
        """
        Create the target row for `transformation` from the source row.

        Raises:
            InvalidInputError: Unknown transformation
            NotFoundError: Source does not exist in the organisation
            AlreadyLinkedError: Source already produced a target of this register
        """
        rule = get_rule(transformation)
        if rule is None:
            raise InvalidInputError(f"Unknown transformation: {transformation}", field="transformation")

        source = await self.store.get(org_id, rule.source_type, source_id)
        source_ref = EntityRef.for_entity(source)

        await self._reject_if_derived(org_id, source_ref, rule.target_type)

        fields = build_fields(transformation, source)
        try:
            target = await self.store.create(
                org_id, rule.target_type, fields, actor_user_id=actor_user_id, commit=False,
            )
            link = await self.graph.link(
                org_id, source_ref, EntityRef.for_entity(target),
                link_type=LinkType.GENERATED, actor_user_id=actor_user_id, commit=False,
            )
            await self.db.commit()
        except IntegrityError:
            # A concurrent derive committed the same edge first
            await self.db.rollback()
            await self._reject_if_derived(org_id, source_ref, rule.target_type)
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.log_mutation(
            rule.activity_action, source_ref.type.value, source_ref.id,
            target_type=rule.target_type.value, target_id=target.id,
        )
        await self.recorder.record(
            org_id, actor_user_id, ActivityAction.CREATED, rule.target_type, target.id,
            name=title_of(target), details=created_details(target),
        )
        await self.recorder.record(
            org_id, actor_user_id, ActivityAction(rule.activity_action), source_ref.type, source_ref.id,
            name=title_of(source), details=f"Created {rule.target_type.label}: {target.id}",
        )
        return DerivationResult(target=target, link=link)

    async def _reject_if_derived(self, org_id: str, source_ref: EntityRef, target_type) -> None:
        existing = await self.graph.generated_target(org_id, source_ref, target_type)
        if existing is not None:
            raise AlreadyLinkedError(
                source_ref.type.value, source_ref.id, target_type.value, existing.target_id,
            )
