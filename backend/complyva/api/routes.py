"""
Complyva API v1

Thin HTTP surface over the core services. Every handler runs under the
per-request timeout; typed errors are mapped to statuses in main.py.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from complyva.api.deps import (
    ActorContext,
    get_actor,
    get_aggregation_engine,
    get_recorder,
    require_writer,
)
from complyva.core.database import get_db
from complyva.core.exceptions import InvalidInputError
from complyva.core.guards import with_timeout
from complyva.models.enums import EntityType
from complyva.rules.derivation import Transformation
from complyva.schemas.requests import EvidenceCreate, LinkCreate
from complyva.services.activity import ActivityRecorder
from complyva.services.aggregation import AggregationEngine
from complyva.services.cross_links import CrossLinkGraph, EntityRef, partition
from complyva.services.derivation_service import DerivationEngine
from complyva.services.evidence import EvidenceRegistry
from complyva.services.register_store import RegisterFilter, RegisterStore

router = APIRouter()


def parse_kind(kind: str) -> EntityType:
    try:
        return EntityType(kind.upper())
    except ValueError:
        raise InvalidInputError(f"Unknown register: {kind}", field="kind")


# ==================== Registers ====================

@router.get("/registers/{kind}", tags=["Registers"])
async def list_records(
    kind: str,
    status: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    """List one register, newest first"""
    store = RegisterStore(db, recorder)
    filters = RegisterFilter(statuses=status, search=search, limit=limit)
    rows = await with_timeout(store.list(actor.org_id, parse_kind(kind), filters), operation="list")
    return [row.to_dict() for row in rows]


@router.post("/registers/{kind}", status_code=201, tags=["Registers"])
async def create_record(
    kind: str,
    payload: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    store = RegisterStore(db, recorder)
    entity = await with_timeout(
        store.create(actor.org_id, parse_kind(kind), payload, actor_user_id=actor.user_id),
        operation="create",
    )
    return entity.to_dict()


@router.get("/registers/{kind}/{entity_id}", tags=["Registers"])
async def get_record(
    kind: str,
    entity_id: str,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    store = RegisterStore(db, recorder)
    entity = await with_timeout(store.get(actor.org_id, parse_kind(kind), entity_id), operation="get")
    return entity.to_dict()


@router.patch("/registers/{kind}/{entity_id}", tags=["Registers"])
async def update_record(
    kind: str,
    entity_id: str,
    payload: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    """Sparse update; omitted, null and empty-string fields are left untouched"""
    store = RegisterStore(db, recorder)
    entity = await with_timeout(
        store.update(actor.org_id, parse_kind(kind), entity_id, payload, actor_user_id=actor.user_id),
        operation="update",
    )
    return entity.to_dict()


@router.delete("/registers/{kind}/{entity_id}", tags=["Registers"])
async def delete_record(
    kind: str,
    entity_id: str,
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    store = RegisterStore(db, recorder)
    return await with_timeout(
        store.delete(actor.org_id, parse_kind(kind), entity_id, actor_user_id=actor.user_id),
        operation="delete",
    )


@router.get("/registers/{kind}/{entity_id}/links", tags=["Links"])
async def get_record_links(
    kind: str,
    entity_id: str,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    """Linked items panel: outgoing and incoming edges with titles"""
    entity_type = parse_kind(kind)
    graph = CrossLinkGraph(db, recorder)
    links = await with_timeout(graph.links_for(actor.org_id, entity_type, entity_id), operation="links")
    outgoing, incoming = partition(links, entity_type, entity_id)
    return {
        "outgoing": [link.to_dict() for link in outgoing],
        "incoming": [link.to_dict() for link in incoming],
    }


@router.get("/registers/{kind}/{entity_id}/activity", tags=["Activity"])
async def get_record_activity(
    kind: str,
    entity_id: str,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    entries = await with_timeout(
        recorder.list(db, actor.org_id, entity_type=parse_kind(kind), entity_id=entity_id),
        operation="activity",
    )
    return [entry.to_dict() for entry in entries]


@router.get("/registers/{kind}/{entity_id}/evidence", tags=["Evidence"])
async def get_record_evidence(
    kind: str,
    entity_id: str,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    registry = EvidenceRegistry(db, recorder)
    files = await with_timeout(
        registry.list_for(actor.org_id, parse_kind(kind), entity_id), operation="evidence",
    )
    return [f.to_dict() for f in files]


# ==================== Links & Derivations ====================

@router.post("/links", status_code=201, tags=["Links"])
async def create_link(
    body: LinkCreate,
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    """Manual link; an identical existing link is returned as-is"""
    graph = CrossLinkGraph(db, recorder)
    link = await with_timeout(
        graph.link(
            actor.org_id,
            EntityRef.of(body.source_type, body.source_id),
            EntityRef.of(body.target_type, body.target_id),
            actor_user_id=actor.user_id,
        ),
        operation="link",
    )
    return link.to_dict()


@router.get("/links/recent", tags=["Links"])
async def recent_links(
    limit: Optional[int] = Query(None, ge=1, le=100),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    graph = CrossLinkGraph(db, recorder)
    links = await with_timeout(graph.recent_links(actor.org_id, limit), operation="recent_links")
    return [link.to_dict() for link in links]


@router.post("/derive/{transformation}/{source_id}", status_code=201, tags=["Links"])
async def derive(
    transformation: str,
    source_id: str,
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    """Send to Risk / NC / CAPA"""
    try:
        kind = Transformation(transformation.upper())
    except ValueError:
        raise InvalidInputError(f"Unknown transformation: {transformation}", field="transformation")

    engine = DerivationEngine(db, recorder)
    result = await with_timeout(
        engine.derive(actor.org_id, kind, source_id, actor_user_id=actor.user_id),
        operation="derive",
    )
    return result.to_dict()


# ==================== Activity ====================

@router.get("/activity", tags=["Activity"])
async def list_activity(
    limit: Optional[int] = Query(None, ge=1, le=500),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    entries = await with_timeout(recorder.list(db, actor.org_id, limit=limit), operation="activity")
    return [entry.to_dict() for entry in entries]


# ==================== Evidence ====================

@router.post("/evidence", status_code=201, tags=["Evidence"])
async def attach_evidence(
    body: EvidenceCreate,
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    registry = EvidenceRegistry(db, recorder)
    evidence = await with_timeout(
        registry.attach(
            actor.org_id,
            body.entity_type,
            body.entity_id,
            file_name=body.file_name,
            storage_key=body.storage_key,
            mime_type=body.mime_type,
            file_size=body.file_size,
            uploaded_by=actor.user_id,
        ),
        operation="attach_evidence",
    )
    return evidence.to_dict()


@router.get("/evidence/{file_id}", tags=["Evidence"])
async def get_evidence(
    file_id: str,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    registry = EvidenceRegistry(db, recorder)
    evidence = await with_timeout(registry.get(actor.org_id, file_id), operation="get_evidence")
    return evidence.to_dict()


@router.delete("/evidence/{file_id}", tags=["Evidence"])
async def remove_evidence(
    file_id: str,
    actor: ActorContext = Depends(require_writer),
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_recorder),
):
    registry = EvidenceRegistry(db, recorder)
    evidence = await with_timeout(
        registry.remove(actor.org_id, file_id, actor_user_id=actor.user_id), operation="remove_evidence",
    )
    return {"deleted": True, "id": evidence.id, "storage_key": evidence.storage_key}


# ==================== Dashboard ====================

@router.get("/dashboard", tags=["Dashboard"])
async def dashboard(
    actor: ActorContext = Depends(get_actor),
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    """Summary, KPIs, KRIs and trends; failed pieces are listed in `errors`"""
    result = await with_timeout(engine.dashboard(actor.org_id), operation="dashboard")
    return result.to_dict()


@router.get("/dashboard/deadlines", tags=["Dashboard"])
async def deadlines(
    actor: ActorContext = Depends(get_actor),
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    errors: List[str] = []
    digest = await with_timeout(engine.deadline_digest(actor.org_id, errors=errors), operation="deadlines")
    return {"deadlines": digest, "errors": errors}
