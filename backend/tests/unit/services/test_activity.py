"""
Unit Tests for ActivityRecorder
"""
import pytest

from complyva.models.enums import ActivityAction, EntityType
from complyva.services.activity import ActivityRecorder


class TestRecord:

    @pytest.mark.asyncio
    async def test_record_and_read_back(self, recorder, db_session, org_id, user_id):
        await recorder.record(
            org_id, user_id, ActivityAction.CREATED, EntityType.RISK, "r-1",
            name="Vendor failure", details="Score: 12",
        )

        entries = await recorder.list(db_session, org_id)

        assert len(entries) == 1
        assert entries[0].user_id == user_id
        assert entries[0].name == "Vendor failure"
        assert entries[0].to_dict()["meta"] == {"name": "Vendor failure", "details": "Score: 12"}

    @pytest.mark.asyncio
    async def test_record_never_raises(self, org_id):
        def broken_factory():
            raise RuntimeError("database is gone")

        recorder = ActivityRecorder(broken_factory)

        await recorder.record(org_id, None, ActivityAction.CREATED, EntityType.RISK, "r-1")

    @pytest.mark.asyncio
    async def test_invalid_action_is_swallowed(self, recorder, db_session, org_id):
        await recorder.record(org_id, None, "EXPLODED", EntityType.RISK, "r-1")

        assert await recorder.list(db_session, org_id) == []


class TestList:

    @pytest.mark.asyncio
    async def test_newest_first(self, recorder, db_session, org_id):
        for action in (ActivityAction.CREATED, ActivityAction.UPDATED, ActivityAction.DELETED):
            await recorder.record(org_id, None, action, EntityType.CAPA, "c-1")

        entries = await recorder.list(db_session, org_id)

        assert [e.action for e in entries] == [
            ActivityAction.DELETED, ActivityAction.UPDATED, ActivityAction.CREATED,
        ]

    @pytest.mark.asyncio
    async def test_scoped_to_entity(self, recorder, db_session, org_id):
        await recorder.record(org_id, None, ActivityAction.CREATED, EntityType.CAPA, "c-1")
        await recorder.record(org_id, None, ActivityAction.CREATED, EntityType.CAPA, "c-2")
        await recorder.record(org_id, None, ActivityAction.CREATED, EntityType.NC, "c-1")

        entries = await recorder.list(db_session, org_id, EntityType.CAPA, "c-1")

        assert len(entries) == 1
        assert entries[0].entity_type == EntityType.CAPA

    @pytest.mark.asyncio
    async def test_scoped_to_org(self, recorder, db_session, org_id, other_org_id):
        await recorder.record(other_org_id, None, ActivityAction.CREATED, EntityType.RISK, "r-1")

        assert await recorder.list(db_session, org_id) == []

    @pytest.mark.asyncio
    async def test_limit(self, recorder, db_session, org_id):
        for i in range(4):
            await recorder.record(org_id, None, ActivityAction.CREATED, EntityType.RISK, f"r-{i}")

        assert len(await recorder.list(db_session, org_id, limit=3)) == 3
