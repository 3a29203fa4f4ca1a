"""
Unit Tests for EvidenceRegistry
"""
import pytest

from complyva.core.exceptions import NotFoundError
from complyva.models.enums import EntityType


class TestEvidence:

    @pytest.mark.asyncio
    async def test_attach_and_list(self, create, evidence, org_id, user_id):
        capa = await create("CAPA")

        record = await evidence.attach(
            org_id, EntityType.CAPA, capa.id,
            file_name="training-log.pdf", storage_key=f"{org_id}/capa/training-log.pdf",
            mime_type="application/pdf", file_size=20480, uploaded_by=user_id,
        )
        files = await evidence.list_for(org_id, EntityType.CAPA, capa.id)

        assert [f.id for f in files] == [record.id]
        assert files[0].to_dict()["file_size"] == 20480

    @pytest.mark.asyncio
    async def test_attach_to_missing_entity(self, evidence, org_id):
        with pytest.raises(NotFoundError):
            await evidence.attach(org_id, "RISK", "missing", file_name="a.txt", storage_key="k")

    @pytest.mark.asyncio
    async def test_get_is_tenant_scoped(self, create, evidence, org_id, other_org_id):
        risk = await create("RISK")
        record = await evidence.attach(org_id, "RISK", risk.id, file_name="dpia.docx", storage_key="k/dpia")

        assert (await evidence.get(org_id, record.id)).id == record.id
        with pytest.raises(NotFoundError):
            await evidence.get(other_org_id, record.id)

    @pytest.mark.asyncio
    async def test_remove_records_activity_on_parent(self, create, evidence, recorder, db_session, org_id, user_id):
        risk = await create("RISK")
        record = await evidence.attach(org_id, "RISK", risk.id, file_name="dpia.docx", storage_key="k/dpia")

        removed = await evidence.remove(org_id, record.id, actor_user_id=user_id)

        assert removed.storage_key == "k/dpia"
        assert await evidence.list_for(org_id, "RISK", risk.id) == []
        entries = await recorder.list(db_session, org_id, EntityType.RISK, risk.id)
        assert [e.action.value for e in entries[:2]] == ["EVIDENCE_DELETED", "UPLOADED"]
