"""
Unit Tests for CrossLinkGraph
"""
import pytest
from sqlalchemy import select, func

from complyva.core.exceptions import InvalidInputError, NotFoundError
from complyva.models.cross_link import CrossLink
from complyva.models.enums import EntityType, LinkType
from complyva.services.cross_links import EntityRef, fallback_label, partition


async def count_links(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(CrossLink))).scalar_one()


class TestLink:

    @pytest.mark.asyncio
    async def test_manual_link(self, create, graph, org_id, user_id):
        risk = await create("RISK")
        asset = await create("ASSET")

        edge = await graph.link(
            org_id, EntityRef.for_entity(risk), EntityRef.for_entity(asset), actor_user_id=user_id,
        )

        assert edge.source_type == EntityType.RISK
        assert edge.target_id == asset.id
        assert edge.link_type == LinkType.MANUAL
        assert edge.created_by == user_id

    @pytest.mark.asyncio
    async def test_identical_link_is_idempotent(self, create, graph, db_session, org_id):
        risk = await create("RISK")
        capa = await create("CAPA")
        source, target = EntityRef.for_entity(risk), EntityRef.for_entity(capa)

        first = await graph.link(org_id, source, target)
        second = await graph.link(org_id, source, target)

        assert first.id == second.id
        assert await count_links(db_session) == 1

    @pytest.mark.asyncio
    async def test_reverse_direction_is_a_separate_edge(self, create, graph, db_session, org_id):
        risk = await create("RISK")
        capa = await create("CAPA")

        await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(capa))
        await graph.link(org_id, EntityRef.for_entity(capa), EntityRef.for_entity(risk))

        assert await count_links(db_session) == 2

    @pytest.mark.asyncio
    async def test_self_link_rejected(self, create, graph, org_id):
        risk = await create("RISK")
        ref = EntityRef.for_entity(risk)

        with pytest.raises(InvalidInputError):
            await graph.link(org_id, ref, ref)

    @pytest.mark.asyncio
    async def test_missing_end_rejected(self, create, graph, db_session, org_id):
        risk = await create("RISK")

        with pytest.raises(NotFoundError):
            await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.of("CAPA", "no-such-capa"))
        assert await count_links(db_session) == 0

    @pytest.mark.asyncio
    async def test_cross_tenant_link_rejected(self, create, graph, org_id, other_org_id):
        risk = await create("RISK")
        foreign = await create("CAPA", org=other_org_id)

        with pytest.raises(NotFoundError):
            await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(foreign))

    @pytest.mark.asyncio
    async def test_link_is_recorded_on_source(self, create, graph, recorder, db_session, org_id):
        risk = await create("RISK")
        asset = await create("ASSET", name="HR portal")
        await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(asset))

        entries = await recorder.list(db_session, org_id, EntityType.RISK, risk.id)

        assert entries[0].action.value == "LINKED"
        assert entries[0].details == "Linked to Asset: HR portal"


class TestQueries:

    @pytest.mark.asyncio
    async def test_links_for_resolves_titles(self, create, graph, org_id):
        incident = await create("INCIDENT", title="Phishing wave")
        nc = await create("NC", title="Awareness gap")
        await graph.link(org_id, EntityRef.for_entity(incident), EntityRef.for_entity(nc))

        links = await graph.links_for(org_id, EntityType.NC, nc.id)

        assert len(links) == 1
        assert links[0].source_title == "Phishing wave"
        assert links[0].target_title == "Awareness gap"

    @pytest.mark.asyncio
    async def test_partition_by_direction(self, create, graph, org_id):
        incident = await create("INCIDENT")
        nc = await create("NC")
        capa = await create("CAPA")
        await graph.link(org_id, EntityRef.for_entity(incident), EntityRef.for_entity(nc))
        await graph.link(org_id, EntityRef.for_entity(nc), EntityRef.for_entity(capa))

        links = await graph.links_for(org_id, EntityType.NC, nc.id)
        outgoing, incoming = partition(links, EntityType.NC, nc.id)

        assert [l.target_id for l in outgoing] == [capa.id]
        assert [l.source_id for l in incoming] == [incident.id]

    @pytest.mark.asyncio
    async def test_deleted_end_gets_fallback_label(self, create, graph, store, org_id):
        risk = await create("RISK")
        capa = await create("CAPA")
        await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(capa))

        await store.delete(org_id, EntityType.CAPA, capa.id)
        links = await graph.links_for(org_id, EntityType.RISK, risk.id)

        assert len(links) == 1
        assert links[0].target_title == fallback_label(EntityType.CAPA, capa.id)
        assert links[0].target_title.startswith("CAPA (")

    @pytest.mark.asyncio
    async def test_links_are_tenant_scoped(self, create, graph, org_id, other_org_id):
        risk = await create("RISK")
        capa = await create("CAPA")
        await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(capa))

        assert await graph.links_for(other_org_id, EntityType.RISK, risk.id) == []
        assert await graph.recent_links(other_org_id) == []

    @pytest.mark.asyncio
    async def test_recent_links_limit(self, create, graph, org_id):
        risk = await create("RISK")
        for _ in range(3):
            capa = await create("CAPA")
            await graph.link(org_id, EntityRef.for_entity(risk), EntityRef.for_entity(capa))

        assert len(await graph.recent_links(org_id)) == 3
        assert len(await graph.recent_links(org_id, limit=2)) == 2


class TestFallbackLabel:

    def test_truncates_id(self):
        label = fallback_label(EntityType.FINDING, "12345678-abcd-ef00-0000-000000000000")

        assert label == "Audit Finding (12345678…)"
