"""
Unit Tests for RegisterStore
"""
from datetime import date

import pytest

from complyva.core.exceptions import InvalidInputError, NotFoundError
from complyva.models.enums import EntityType
from complyva.models.risk import RiskStatus
from complyva.services.register_store import RegisterFilter, created_details, title_of


class TestCreate:

    @pytest.mark.asyncio
    async def test_risk_scores_are_derived(self, create):
        risk = await create("RISK", likelihood=4, impact=5, residual_likelihood=2, residual_impact=2)

        assert risk.inherent_score == 20
        assert risk.residual_score == 4
        assert risk.status == RiskStatus.OPEN

    @pytest.mark.asyncio
    async def test_residual_score_waits_for_both_inputs(self, create):
        risk = await create("RISK", residual_likelihood=2)

        assert risk.residual_score is None

    @pytest.mark.asyncio
    async def test_asset_combined_classification(self, create):
        assessed = await create("ASSET", bia_score=1, dca_score=4)
        partial = await create("ASSET", bia_score=3)

        assert assessed.combined_classification == 4
        assert partial.combined_classification is None

    @pytest.mark.asyncio
    async def test_owner_defaults_to_actor(self, create, user_id):
        incident = await create("INCIDENT")

        assert incident.owner_user_id == user_id

    @pytest.mark.asyncio
    async def test_empty_strings_are_not_stored(self, create):
        incident = await create("INCIDENT", description="", category="  ")

        assert incident.description is None
        assert incident.category is None

    @pytest.mark.asyncio
    async def test_invalid_payload_writes_nothing(self, store, org_id):
        with pytest.raises(InvalidInputError):
            await store.create(org_id, EntityType.RISK, {"title": "Bad scores", "likelihood": 9, "impact": 1})

        assert await store.list(org_id, EntityType.RISK) == []

    @pytest.mark.asyncio
    async def test_finding_requires_audit_in_same_org(self, create, other_org_id):
        foreign_audit = await create("AUDIT", org=other_org_id)

        with pytest.raises(NotFoundError):
            await create("FINDING", audit_id=foreign_audit.id)

    @pytest.mark.asyncio
    async def test_unknown_asset_reference(self, create):
        with pytest.raises(NotFoundError):
            await create("INCIDENT", asset_id="00000000-0000-0000-0000-000000000000")

    @pytest.mark.asyncio
    async def test_unknown_register(self, store, org_id):
        with pytest.raises(InvalidInputError):
            await store.create(org_id, "POLICY", {"title": "Acceptable use"})

    @pytest.mark.asyncio
    async def test_created_is_recorded(self, create, recorder, db_session, org_id):
        risk = await create("RISK", likelihood=4, impact=5)

        entries = await recorder.list(db_session, org_id, EntityType.RISK, risk.id)

        assert [e.action.value for e in entries] == ["CREATED"]
        assert entries[0].name == risk.title
        assert entries[0].details == "Score: 20"


class TestRead:

    @pytest.mark.asyncio
    async def test_get_is_tenant_scoped(self, create, store, org_id, other_org_id):
        risk = await create("RISK")

        assert (await store.get(org_id, EntityType.RISK, risk.id)).id == risk.id
        with pytest.raises(NotFoundError):
            await store.get(other_org_id, EntityType.RISK, risk.id)

    @pytest.mark.asyncio
    async def test_list_never_returns_other_orgs(self, create, store, org_id, other_org_id):
        mine = await create("CAPA")
        await create("CAPA", org=other_org_id)

        rows = await store.list(org_id, EntityType.CAPA)

        assert [r.id for r in rows] == [mine.id]

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, create, store, org_id):
        await create("RISK", status="CLOSED")
        open_risk = await create("RISK", status="OPEN")

        rows = await store.list(org_id, EntityType.RISK, RegisterFilter(statuses=["OPEN"]))

        assert [r.id for r in rows] == [open_risk.id]

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_status(self, store, org_id):
        with pytest.raises(InvalidInputError):
            await store.list(org_id, EntityType.RISK, RegisterFilter(statuses=["ON_FIRE"]))

    @pytest.mark.asyncio
    async def test_list_search_matches_title(self, create, store, org_id):
        await create("CERTIFICATION", name="SOC 2 Type II")
        iso = await create("CERTIFICATION", name="ISO 27001:2022")

        rows = await store.list(org_id, EntityType.CERTIFICATION, RegisterFilter(search="27001"))

        assert [r.id for r in rows] == [iso.id]

    @pytest.mark.asyncio
    async def test_list_search_wildcards_are_literal(self, create, store, org_id):
        percent = await create("CERTIFICATION", name="Coverage 50% target")
        await create("CERTIFICATION", name="Coverage 500 target")
        underscore = await create("CERTIFICATION", name="PCI_DSS v4")
        await create("CERTIFICATION", name="PCI-DSS v3")

        by_percent = await store.list(org_id, EntityType.CERTIFICATION, RegisterFilter(search="50%"))
        by_underscore = await store.list(org_id, EntityType.CERTIFICATION, RegisterFilter(search="I_D"))

        assert [r.id for r in by_percent] == [percent.id]
        assert [r.id for r in by_underscore] == [underscore.id]

    @pytest.mark.asyncio
    async def test_list_equals_filter(self, create, store, org_id):
        audit = await create("AUDIT")
        other = await create("AUDIT")
        finding = await create("FINDING", audit_id=audit.id)
        await create("FINDING", audit_id=other.id)

        rows = await store.list(org_id, EntityType.FINDING, RegisterFilter(equals={"audit_id": audit.id}))

        assert [r.id for r in rows] == [finding.id]

    @pytest.mark.asyncio
    async def test_list_cannot_filter_on_org(self, store, org_id, other_org_id):
        with pytest.raises(InvalidInputError):
            await store.list(org_id, EntityType.RISK, RegisterFilter(equals={"org_id": other_org_id}))

    @pytest.mark.asyncio
    async def test_list_limit(self, create, store, org_id):
        for _ in range(3):
            await create("CHANGE")

        assert len(await store.list(org_id, EntityType.CHANGE, RegisterFilter(limit=2))) == 2

    @pytest.mark.asyncio
    async def test_titles_for(self, create, store, org_id):
        asset = await create("ASSET", name="Payroll database")

        titles = await store.titles_for(org_id, EntityType.ASSET, [asset.id, "missing"])

        assert titles == {asset.id: "Payroll database"}


class TestUpdate:

    @pytest.mark.asyncio
    async def test_scores_recomputed_on_update(self, create, store, org_id):
        risk = await create("RISK", likelihood=2, impact=2)

        updated = await store.update(org_id, EntityType.RISK, risk.id, {"impact": 5})

        assert updated.inherent_score == 10
        assert updated.likelihood == 2

    @pytest.mark.asyncio
    async def test_empty_fields_leave_values_untouched(self, create, store, org_id):
        capa = await create("CAPA", description="Original")

        updated = await store.update(org_id, EntityType.CAPA, capa.id, {"description": "", "priority": "HIGH"})

        assert updated.description == "Original"
        assert updated.priority.value == "HIGH"

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, create, store, org_id):
        capa = await create("CAPA")

        with pytest.raises(InvalidInputError):
            await store.update(org_id, EntityType.CAPA, capa.id, {"title": ""})

    @pytest.mark.asyncio
    async def test_update_other_org_is_not_found(self, create, store, other_org_id):
        nc = await create("NC")

        with pytest.raises(NotFoundError):
            await store.update(other_org_id, EntityType.NC, nc.id, {"title": "Hijacked"})

    @pytest.mark.asyncio
    async def test_updated_is_recorded(self, create, store, recorder, db_session, org_id):
        nc = await create("NC")
        await store.update(org_id, EntityType.NC, nc.id, {"severity": "MAJOR", "due_date": date(2030, 1, 1)})

        entries = await recorder.list(db_session, org_id, EntityType.NC, nc.id)

        assert entries[0].action.value == "UPDATED"
        assert entries[0].details == "Fields: severity, due_date"


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_row(self, create, store, org_id):
        change = await create("CHANGE")

        result = await store.delete(org_id, EntityType.CHANGE, change.id)

        assert result == {"deleted": True, "id": change.id}
        with pytest.raises(NotFoundError):
            await store.get(org_id, EntityType.CHANGE, change.id)

    @pytest.mark.asyncio
    async def test_deleting_audit_deletes_findings(self, create, store, org_id):
        audit = await create("AUDIT")
        finding = await create("FINDING", audit_id=audit.id)

        await store.delete(org_id, EntityType.AUDIT, audit.id)

        with pytest.raises(NotFoundError):
            await store.get(org_id, EntityType.FINDING, finding.id)

    @pytest.mark.asyncio
    async def test_delete_other_org_is_not_found(self, create, store, org_id, other_org_id):
        risk = await create("RISK")

        with pytest.raises(NotFoundError):
            await store.delete(other_org_id, EntityType.RISK, risk.id)
        assert (await store.get(org_id, EntityType.RISK, risk.id)).id == risk.id

    @pytest.mark.asyncio
    async def test_deleted_is_recorded_with_title(self, create, store, recorder, db_session, org_id):
        risk = await create("RISK", title="Supplier outage")
        await store.delete(org_id, EntityType.RISK, risk.id)

        entries = await recorder.list(db_session, org_id, EntityType.RISK, risk.id)

        assert entries[0].action.value == "DELETED"
        assert entries[0].name == "Supplier outage"


class TestHelpers:

    @pytest.mark.asyncio
    async def test_title_of_uses_name_for_assets(self, create):
        asset = await create("ASSET", name="Build server")

        assert title_of(asset) == "Build server"
        assert title_of(None) is None

    @pytest.mark.asyncio
    async def test_find_title_of_deleted_row(self, create, store, org_id):
        change = await create("CHANGE", title="Firewall rule update")

        assert await store.find_title(org_id, EntityType.CHANGE, change.id) == "Firewall rule update"
        await store.delete(org_id, EntityType.CHANGE, change.id)
        assert await store.find_title(org_id, EntityType.CHANGE, change.id) is None

    @pytest.mark.asyncio
    async def test_created_details(self, create):
        capa = await create("CAPA")
        cert = await create("CERTIFICATION")

        assert created_details(capa) == "Type: CORRECTIVE"
        assert created_details(cert) is None
