"""
Register Store - tenant-scoped CRUD over the nine registers.

Every query is filtered by org_id; an id that belongs to another
organisation is indistinguishable from one that does not exist.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from complyva.core.config import settings
from complyva.core.exceptions import InvalidInputError, NotFoundError
from complyva.core.guards import storage_guard
from complyva.core.logging_config import get_logger
from complyva.models import REGISTER_MODELS
from complyva.models.audit import AuditFinding
from complyva.models.enums import ActivityAction, EntityType
from complyva.schemas.payload import validate_payload
from complyva.schemas.registers import CREATE_SCHEMAS, UPDATE_SCHEMAS
from complyva.services.activity import ActivityRecorder, activity_recorder

logger = get_logger(__name__)

# Columns callers may never filter or write through `equals`
_PROTECTED_COLUMNS = {"org_id"}

# Detail line written with CREATED entries: (label, column, default when unset)
CREATED_DETAILS = {
    EntityType.RISK: ("Score", "inherent_score", None),
    EntityType.AUDIT: ("Type", "audit_type", None),
    EntityType.FINDING: ("Severity", "severity", None),
    EntityType.ASSET: ("Type", "asset_type", None),
    EntityType.INCIDENT: ("Severity", "severity", "MEDIUM"),
    EntityType.NC: ("Severity", "severity", "MINOR"),
    EntityType.CAPA: ("Type", "capa_type", "CORRECTIVE"),
    EntityType.CHANGE: ("Type", "change_type", "STANDARD"),
}


def resolve_kind(kind: Union[EntityType, str]) -> EntityType:
    try:
        return EntityType(kind)
    except ValueError:
        raise InvalidInputError(f"Unknown register: {kind}", field="kind")


def model_for(kind: Union[EntityType, str]) -> Type:
    return REGISTER_MODELS[resolve_kind(kind)]


def title_of(entity) -> Optional[str]:
    """Display title of any register row (certifications and assets use `name`)"""
    if entity is None:
        return None
    return entity.display_title


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def created_details(entity) -> Optional[str]:
    detail = CREATED_DETAILS.get(entity.entity_type)
    if detail is None:
        return None
    label, column, default = detail
    value = _plain(getattr(entity, column, None))
    if value is None:
        value = default
    return f"{label}: {value}" if value is not None else None


@dataclass
class RegisterFilter:
    """Optional narrowing for RegisterStore.list()"""
    statuses: Optional[Iterable[str]] = None
    equals: Dict[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    limit: Optional[int] = None


class RegisterStore:
    """
    CRUD for register rows, bound to one session (unit of work).

    Mutations commit and record activity by default. The derivation engine
    passes commit=False to compose several writes into one transaction and
    records activity itself once that transaction has committed.
    """

    def __init__(self, db: AsyncSession, recorder: Optional[ActivityRecorder] = None):
        self.db = db
        self.recorder = recorder or activity_recorder

    # ==================== Reads ====================

    @storage_guard
    async def get(self, org_id: str, kind: Union[EntityType, str], entity_id: str):
        """Fetch one row by id within the organisation, or raise NotFoundError"""
        kind = resolve_kind(kind)
        entity = await self._find(org_id, kind, entity_id)
        if entity is None:
            raise NotFoundError(kind.value, entity_id)
        return entity

    async def _find(self, org_id: str, kind: EntityType, entity_id: str):
        model = REGISTER_MODELS[kind]
        result = await self.db.execute(
            select(model).where(model.id == str(entity_id), model.org_id == org_id)
        )
        return result.scalar_one_or_none()

    @storage_guard
    async def list(
        self,
        org_id: str,
        kind: Union[EntityType, str],
        filters: Optional[RegisterFilter] = None,
    ) -> List[Any]:
        """Rows of one register, newest first"""
        kind = resolve_kind(kind)
        model = REGISTER_MODELS[kind]
        filters = filters or RegisterFilter()

        query = select(model).where(model.org_id == org_id)

        if filters.statuses:
            status_enum = model.__table__.c.status.type.enum_class
            try:
                statuses = [status_enum(_plain(s)) for s in filters.statuses]
            except ValueError:
                raise InvalidInputError(
                    f"Unknown status for {kind.value}: {', '.join(map(str, filters.statuses))}",
                    field="status",
                )
            query = query.where(model.status.in_(statuses))

        for column_name, value in (filters.equals or {}).items():
            if column_name in _PROTECTED_COLUMNS or column_name not in model.__table__.c:
                raise InvalidInputError(f"Cannot filter {kind.value} by '{column_name}'", field=column_name)
            query = query.where(getattr(model, column_name) == value)

        if filters.search:
            title_column = getattr(model, model.title_field)
            query = query.where(title_column.ilike(f"%{_escape_like(filters.search)}%", escape="\\"))

        if filters.created_from is not None:
            query = query.where(model.created_at >= filters.created_from)
        if filters.created_to is not None:
            query = query.where(model.created_at <= filters.created_to)

        limit = filters.limit or settings.LIST_LIMIT
        query = query.order_by(model.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    @storage_guard
    async def find_title(self, org_id: str, kind: Union[EntityType, str], entity_id: str) -> Optional[str]:
        """Title of a row, or None when it does not exist (e.g. deleted)"""
        entity = await self._find(org_id, resolve_kind(kind), entity_id)
        return title_of(entity)

    @storage_guard
    async def titles_for(self, org_id: str, kind: EntityType, ids: Iterable[str]) -> Dict[str, str]:
        """Batch title lookup; missing ids are simply absent from the result"""
        ids = {str(i) for i in ids}
        if not ids:
            return {}
        model = REGISTER_MODELS[resolve_kind(kind)]
        title_column = getattr(model, model.title_field)
        result = await self.db.execute(
            select(model.id, title_column).where(model.org_id == org_id, model.id.in_(list(ids)))
        )
        return {row[0]: row[1] for row in result.all()}

    # ==================== Writes ====================

    @storage_guard
    async def create(
        self,
        org_id: str,
        kind: Union[EntityType, str],
        fields: Mapping[str, Any],
        actor_user_id: Optional[str] = None,
        commit: bool = True,
    ):
        """
        Validate and insert a new row.

        Args:
            org_id: Owning organisation
            kind: Register to write to
            fields: Raw payload; "" and None values count as not provided
            actor_user_id: Acting user, also the default owner
            commit: False to leave the row flushed inside the caller's transaction

        Returns:
            The created row with its derived columns populated
        """
        kind = resolve_kind(kind)
        model = REGISTER_MODELS[kind]
        data = validate_payload(CREATE_SCHEMAS[kind], fields)

        await self._check_references(org_id, data)

        entity = model(org_id=org_id, **data)
        if entity.owner_user_id is None:
            entity.owner_user_id = actor_user_id
        self._refresh_derived(entity)

        try:
            self.db.add(entity)
            await self.db.flush()
            if commit:
                await self.db.commit()
        except Exception:
            if commit:
                await self.db.rollback()
            raise

        if commit:
            logger.log_mutation("CREATED", kind.value, entity.id)
            await self.recorder.record(
                org_id, actor_user_id, ActivityAction.CREATED, kind, entity.id,
                name=title_of(entity), details=created_details(entity),
            )
        return entity

    @storage_guard
    async def update(
        self,
        org_id: str,
        kind: Union[EntityType, str],
        entity_id: str,
        partial_fields: Mapping[str, Any],
        actor_user_id: Optional[str] = None,
        commit: bool = True,
    ):
        """Apply a sparse update; derived columns are recomputed in the same flush"""
        kind = resolve_kind(kind)
        data = validate_payload(UPDATE_SCHEMAS[kind], partial_fields, partial=True)

        entity = await self.get(org_id, kind, entity_id)
        await self._check_references(org_id, data)

        for key, value in data.items():
            setattr(entity, key, value)
        self._refresh_derived(entity)

        try:
            await self.db.flush()
            if commit:
                await self.db.commit()
        except Exception:
            if commit:
                await self.db.rollback()
            raise

        if commit:
            logger.log_mutation("UPDATED", kind.value, entity.id, fields=sorted(data))
            await self.recorder.record(
                org_id, actor_user_id, ActivityAction.UPDATED, kind, entity.id,
                name=title_of(entity), details=f"Fields: {', '.join(data)}",
            )
        return entity

    @storage_guard
    async def delete(
        self,
        org_id: str,
        kind: Union[EntityType, str],
        entity_id: str,
        actor_user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Hard-delete a row.

        Deleting an audit deletes its findings. Cross-links and evidence
        metadata pointing at the row are left in place; readers render a
        fallback label for the missing side.
        """
        kind = resolve_kind(kind)
        entity = await self.get(org_id, kind, entity_id)
        name = title_of(entity)

        try:
            if kind == EntityType.AUDIT:
                await self.db.execute(
                    delete(AuditFinding).where(
                        AuditFinding.audit_id == entity.id,
                        AuditFinding.org_id == org_id,
                    )
                )
            await self.db.delete(entity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.log_mutation("DELETED", kind.value, entity_id)
        await self.recorder.record(
            org_id, actor_user_id, ActivityAction.DELETED, kind, entity_id, name=name,
        )
        return {"deleted": True, "id": entity_id}

    # ==================== Helpers ====================

    async def _check_references(self, org_id: str, data: Mapping[str, Any]) -> None:
        """Referenced audits and assets must exist inside the same organisation"""
        if data.get("audit_id") is not None:
            if await self._find(org_id, EntityType.AUDIT, data["audit_id"]) is None:
                raise NotFoundError(EntityType.AUDIT.value, data["audit_id"])
        if data.get("asset_id") is not None:
            if await self._find(org_id, EntityType.ASSET, data["asset_id"]) is None:
                raise NotFoundError(EntityType.ASSET.value, data["asset_id"])

    @staticmethod
    def _refresh_derived(entity) -> None:
        try:
            entity.refresh_derived()
        except ValueError as e:
            raise InvalidInputError(str(e))
