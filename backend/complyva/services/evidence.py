"""
Evidence Registry - metadata for files attached to register rows.

The blob bytes live in the external evidence store under `storage_key`;
this registry only records what was uploaded, where, and by whom.
"""

from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from complyva.core.exceptions import NotFoundError
from complyva.core.guards import storage_guard
from complyva.core.logging_config import get_logger
from complyva.models.enums import ActivityAction, EntityType
from complyva.models.evidence_file import EvidenceFile
from complyva.services.activity import ActivityRecorder, activity_recorder
from complyva.services.register_store import RegisterStore, resolve_kind

logger = get_logger(__name__)


class EvidenceRegistry:
    def __init__(self, db: AsyncSession, recorder: Optional[ActivityRecorder] = None):
        self.db = db
        self.recorder = recorder or activity_recorder
        self.store = RegisterStore(db, self.recorder)

    @storage_guard
    async def attach(
        self,
        org_id: str,
        entity_type: Union[EntityType, str],
        entity_id: str,
        file_name: str,
        storage_key: str,
        mime_type: Optional[str] = None,
        file_size: Optional[int] = None,
        uploaded_by: Optional[str] = None,
    ) -> EvidenceFile:
        """Record an uploaded file against a row that exists in the organisation"""
        entity_type = resolve_kind(entity_type)
        await self.store.get(org_id, entity_type, entity_id)

        evidence = EvidenceFile(
            org_id=org_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            file_name=file_name,
            storage_key=storage_key,
            mime_type=mime_type,
            file_size=file_size,
            uploaded_by=uploaded_by,
        )
        self.db.add(evidence)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Evidence {evidence.id} attached to {entity_type.value}:{entity_id}")
        await self.recorder.record(
            org_id, uploaded_by, ActivityAction.UPLOADED, entity_type, entity_id,
            name=file_name, details=f"Evidence: {evidence.id}",
        )
        return evidence

    @storage_guard
    async def list_for(
        self,
        org_id: str,
        entity_type: Union[EntityType, str],
        entity_id: str,
    ) -> List[EvidenceFile]:
        """Files attached to one row, newest first"""
        result = await self.db.execute(
            select(EvidenceFile)
            .where(
                EvidenceFile.org_id == org_id,
                EvidenceFile.entity_type == resolve_kind(entity_type),
                EvidenceFile.entity_id == str(entity_id),
            )
            .order_by(EvidenceFile.uploaded_at.desc())
        )
        return list(result.scalars().all())

    @storage_guard
    async def get(self, org_id: str, file_id: str) -> EvidenceFile:
        result = await self.db.execute(
            select(EvidenceFile).where(EvidenceFile.id == str(file_id), EvidenceFile.org_id == org_id)
        )
        evidence = result.scalar_one_or_none()
        if evidence is None:
            raise NotFoundError("EVIDENCE", file_id)
        return evidence

    @storage_guard
    async def remove(self, org_id: str, file_id: str, actor_user_id: Optional[str] = None) -> EvidenceFile:
        """
        Delete the metadata row and return it.

        The caller is responsible for removing the blob at `storage_key`.
        """
        evidence = await self.get(org_id, file_id)
        try:
            await self.db.delete(evidence)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.recorder.record(
            org_id, actor_user_id, ActivityAction.EVIDENCE_DELETED, evidence.entity_type, evidence.entity_id,
            name=evidence.file_name, details=f"Evidence: {evidence.id}",
        )
        return evidence
