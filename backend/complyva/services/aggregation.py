"""
Aggregation Engine - dashboard summary, KPIs, KRIs, trends and deadline digest.

Everything is recomputed from the registers on every call. Each piece
runs in its own session: a failing query is logged, its value comes back
as None (or is omitted) and its name is added to `errors`, while every
other piece is still returned.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from complyva.core.config import settings
from complyva.core.database import get_session_local
from complyva.core.logging_config import get_logger
from complyva.core.types import utcnow
from complyva.models import (
    Audit,
    AuditFinding,
    CAPA,
    Certification,
    Incident,
    NonConformity,
    Risk,
)
from complyva.models.enums import EntityType, Severity
from complyva.rules.scoring import days_until_due, is_overdue
from complyva.rules.statuses import (
    ACTIVE_FINDING_STATUSES,
    ACTIVE_RISK_STATUSES,
    OPEN_INCIDENT_STATUSES,
    OPEN_STATUSES,
    TREATED_RISK_STATUSES,
)

logger = get_logger(__name__)

Query = Callable[[AsyncSession, str, datetime], Awaitable[Any]]

# (amber, red): band is AMBER at value >= amber, RED at value >= red
KRI_THRESHOLDS = {
    "high_critical_risks": (3, 5),
    "critical_incidents": (1, 3),
    "overdue_capas": (2, 5),
    "overdue_ncs": (2, 5),
    "expiring_certifications": (1, 3),
}

HIGH_RISK_SCORE = 15
SUMMARY_RECENT_LIMIT = 5
TREND_MONTHS = 6


# ==================== Pure helpers ====================

def percentage(numerator: int, denominator: int) -> Optional[int]:
    """Integer percentage rounded half-up; None when there is nothing to divide by"""
    if not denominator:
        return None
    ratio = Decimal(numerator) * 100 / Decimal(denominator)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def band_for(value: int, amber: int, red: int) -> str:
    if value >= red:
        return "RED"
    if value >= amber:
        return "AMBER"
    return "GREEN"


def month_labels(now: datetime, months: int = 6) -> List[str]:
    """Labels ("YYYY-MM") for the trailing `months` calendar months, oldest first"""
    year, month = now.year, now.month
    labels = []
    for _ in range(months):
        labels.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(labels))


def _month_start(label: str) -> datetime:
    year, month = label.split("-")
    return datetime(int(year), int(month), 1)


@dataclass
class KRI:
    name: str
    value: int
    amber: int
    red: int
    band: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "amber": self.amber,
            "red": self.red,
            "band": self.band,
        }


@dataclass
class Dashboard:
    summary: Dict[str, Any] = field(default_factory=dict)
    kpis: Dict[str, Any] = field(default_factory=dict)
    kris: List[KRI] = field(default_factory=list)
    trends: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "kpis": self.kpis,
            "kris": [k.to_dict() for k in self.kris],
            "trends": self.trends,
            "errors": self.errors,
        }


# ==================== Queries ====================

async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


async def _count_overdue(db: AsyncSession, model, entity_type: EntityType, org_id: str, now: datetime) -> int:
    open_statuses = OPEN_STATUSES[entity_type]
    result = await db.execute(
        select(model.due_date, model.status).where(
            model.org_id == org_id,
            model.due_date.isnot(None),
            model.status.in_(list(open_statuses)),
        )
    )
    return sum(1 for due, status in result.all() if is_overdue(due, status, open_statuses, now))


async def expiring_certifications(db, org_id, now):
    horizon = now.date() + timedelta(days=settings.CERT_EXPIRY_WINDOW_DAYS)
    return await _count(
        db, Certification,
        Certification.org_id == org_id,
        Certification.expiry_date.isnot(None),
        Certification.expiry_date <= horizon,
        Certification.status == "ACTIVE",
    )


async def open_risks(db, org_id, now):
    return await _count(db, Risk, Risk.org_id == org_id, Risk.status.in_(list(ACTIVE_RISK_STATUSES)))


async def open_findings(db, org_id, now):
    return await _count(
        db, AuditFinding,
        AuditFinding.org_id == org_id,
        AuditFinding.status.in_(list(ACTIVE_FINDING_STATUSES)),
    )


async def active_audits(db, org_id, now):
    return await _count(db, Audit, Audit.org_id == org_id, Audit.status == "IN_PROGRESS")


async def recent_risks(db, org_id, now):
    result = await db.execute(
        select(Risk).where(Risk.org_id == org_id).order_by(Risk.created_at.desc()).limit(SUMMARY_RECENT_LIMIT)
    )
    return [
        {
            "id": r.id,
            "title": r.title,
            "category": r.category,
            "likelihood": r.likelihood,
            "impact": r.impact,
            "inherent_score": r.inherent_score,
            "status": r.status.value,
        }
        for r in result.scalars().all()
    ]


async def upcoming_audits(db, org_id, now):
    result = await db.execute(
        select(Audit).where(Audit.org_id == org_id).order_by(Audit.created_at.desc()).limit(SUMMARY_RECENT_LIMIT)
    )
    return [
        {
            "id": a.id,
            "title": a.title,
            "audit_type": a.audit_type.value,
            "status": a.status.value,
            "start_date": a.start_date.isoformat() if a.start_date else None,
        }
        for a in result.scalars().all()
    ]


async def mttr_days(db, org_id, now):
    """Mean days from incident to resolution over incidents resolved in the trailing window"""
    window_start = now - timedelta(days=settings.MTTR_WINDOW_DAYS)
    result = await db.execute(
        select(Incident.incident_date, Incident.resolved_date).where(
            Incident.org_id == org_id,
            Incident.incident_date.isnot(None),
            Incident.resolved_date.isnot(None),
            Incident.resolved_date >= window_start,
        )
    )
    durations = [
        (resolved - occurred).total_seconds() / 86400
        for occurred, resolved in result.all()
        if resolved >= occurred
    ]
    if not durations:
        return None
    return round(sum(durations) / len(durations), 1)


async def capa_effectiveness_rate(db, org_id, now):
    reviewed = await _count(
        db, CAPA,
        CAPA.org_id == org_id,
        CAPA.status == "CLOSED",
        CAPA.effectiveness_status.isnot(None),
    )
    effective = await _count(
        db, CAPA,
        CAPA.org_id == org_id,
        CAPA.status == "CLOSED",
        CAPA.effectiveness_status == "EFFECTIVE",
    )
    return percentage(effective, reviewed)


async def risk_treatment_rate(db, org_id, now):
    total = await _count(db, Risk, Risk.org_id == org_id, Risk.status != "REJECTED")
    treated = await _count(db, Risk, Risk.org_id == org_id, Risk.status.in_(list(TREATED_RISK_STATUSES)))
    return percentage(treated, total)


async def audit_completion_rate(db, org_id, now):
    """Completed / planned audits this calendar year, dated by start date or else creation"""
    result = await db.execute(
        select(Audit.start_date, Audit.created_at, Audit.status).where(
            Audit.org_id == org_id,
            Audit.status != "CANCELLED",
        )
    )
    total = completed = 0
    for start_date, created_at, status in result.all():
        reference = start_date or created_at.date()
        if reference.year != now.year:
            continue
        total += 1
        if status == "COMPLETED":
            completed += 1
    return percentage(completed, total)


async def nc_closure_rate(db, org_id, now):
    window_start = now - timedelta(days=settings.NC_CLOSURE_WINDOW_DAYS)
    scope = (NonConformity.org_id == org_id, NonConformity.created_at >= window_start)
    total = await _count(db, NonConformity, *scope)
    closed = await _count(db, NonConformity, *scope, NonConformity.status == "CLOSED")
    return percentage(closed, total)


async def pending_risks(db, org_id, now):
    return await _count(db, Risk, Risk.org_id == org_id, Risk.status == "PENDING_REVIEW")


async def open_incidents(db, org_id, now):
    return await _count(
        db, Incident, Incident.org_id == org_id, Incident.status.in_(list(OPEN_INCIDENT_STATUSES)),
    )


async def overdue_capas(db, org_id, now):
    return await _count_overdue(db, CAPA, EntityType.CAPA, org_id, now)


async def overdue_ncs(db, org_id, now):
    return await _count_overdue(db, NonConformity, EntityType.NC, org_id, now)


async def high_critical_risks(db, org_id, now):
    return await _count(
        db, Risk,
        Risk.org_id == org_id,
        Risk.status.in_(list(ACTIVE_RISK_STATUSES)),
        Risk.inherent_score >= HIGH_RISK_SCORE,
    )


async def critical_incidents(db, org_id, now):
    return await _count(
        db, Incident,
        Incident.org_id == org_id,
        Incident.status.in_(list(OPEN_INCIDENT_STATUSES)),
        Incident.severity == Severity.CRITICAL,
    )


def _trend(model) -> Query:
    async def query(db, org_id, now):
        labels = month_labels(now, TREND_MONTHS)
        counts = dict.fromkeys(labels, 0)
        result = await db.execute(
            select(model.created_at).where(
                model.org_id == org_id,
                model.created_at >= _month_start(labels[0]),
            )
        )
        for (created_at,) in result.all():
            label = created_at.strftime("%Y-%m")
            if label in counts:
                counts[label] += 1
        return [{"month": label, "count": counts[label]} for label in labels]
    return query


def _digest_rows(rows, date_attr, now):
    return [
        {
            "id": row.id,
            "title": row.display_title,
            "status": row.status.value,
            "date": getattr(row, date_attr).isoformat(),
            "days_left": days_until_due(getattr(row, date_attr), now),
            "owner_user_id": row.owner_user_id,
        }
        for row in rows
    ]


async def certifications_expiring(db, org_id, now):
    today = now.date()
    result = await db.execute(
        select(Certification).where(
            Certification.org_id == org_id,
            Certification.expiry_date.isnot(None),
            Certification.expiry_date > today,
            Certification.expiry_date <= today + timedelta(days=settings.CERT_EXPIRY_WINDOW_DAYS),
            Certification.status == "ACTIVE",
        ).order_by(Certification.expiry_date)
    )
    return _digest_rows(result.scalars().all(), "expiry_date", now)


def _due_soon(model, date_attr: str, statuses) -> Query:
    async def query(db, org_id, now):
        today = now.date()
        column = getattr(model, date_attr)
        result = await db.execute(
            select(model).where(
                model.org_id == org_id,
                column.isnot(None),
                column >= today,
                column <= today + timedelta(days=settings.DUE_SOON_WINDOW_DAYS),
                model.status.in_(list(statuses)),
            ).order_by(column)
        )
        return _digest_rows(result.scalars().all(), date_attr, now)
    return query


SUMMARY_QUERIES: Dict[str, Query] = {
    "expiring_certifications": expiring_certifications,
    "open_risks": open_risks,
    "open_findings": open_findings,
    "active_audits": active_audits,
    "recent_risks": recent_risks,
    "upcoming_audits": upcoming_audits,
}

KPI_QUERIES: Dict[str, Query] = {
    "mttr_days": mttr_days,
    "capa_effectiveness_rate": capa_effectiveness_rate,
    "risk_treatment_rate": risk_treatment_rate,
    "audit_completion_rate": audit_completion_rate,
    "nc_closure_rate": nc_closure_rate,
    "pending_risks": pending_risks,
    "open_incidents": open_incidents,
    "overdue_capas": overdue_capas,
    "overdue_ncs": overdue_ncs,
}

KRI_QUERIES: Dict[str, Query] = {
    "high_critical_risks": high_critical_risks,
    "critical_incidents": critical_incidents,
    "overdue_capas": overdue_capas,
    "overdue_ncs": overdue_ncs,
    "expiring_certifications": expiring_certifications,
}

TREND_QUERIES: Dict[str, Query] = {
    "incidents": _trend(Incident),
    "risks": _trend(Risk),
    "nonconformities": _trend(NonConformity),
    "capas": _trend(CAPA),
}

DIGEST_QUERIES: Dict[str, Query] = {
    "certifications": certifications_expiring,
    "risks": _due_soon(Risk, "due_date", ACTIVE_RISK_STATUSES),
    "findings": _due_soon(AuditFinding, "due_date", ACTIVE_FINDING_STATUSES),
    "audits": _due_soon(Audit, "start_date", {"PLANNED"}),
}


# ==================== Engine ====================

class AggregationEngine:
    """Computes dashboard pieces, each in an isolated session"""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory or get_session_local()

    async def _run(self, name: str, query: Query, org_id: str, now: datetime, errors: Optional[List[str]]):
        try:
            async with self.session_factory() as session:
                return await query(session, org_id, now)
        except Exception as e:
            logger.log_error_with_context(e, context=f"aggregation.{name}")
            if errors is not None:
                errors.append(name)
            return None

    async def _run_all(self, group: str, queries: Dict[str, Query], org_id, now, errors) -> Dict[str, Any]:
        return {
            name: await self._run(f"{group}.{name}", query, org_id, now, errors)
            for name, query in queries.items()
        }

    async def summary(self, org_id: str, now: Optional[datetime] = None, errors: Optional[List[str]] = None) -> Dict[str, Any]:
        return await self._run_all("summary", SUMMARY_QUERIES, org_id, now or utcnow(), errors)

    async def kpis(self, org_id: str, now: Optional[datetime] = None, errors: Optional[List[str]] = None) -> Dict[str, Any]:
        return await self._run_all("kpis", KPI_QUERIES, org_id, now or utcnow(), errors)

    async def kris(self, org_id: str, now: Optional[datetime] = None, errors: Optional[List[str]] = None) -> List[KRI]:
        """KRIs whose count could be computed; failed ones are omitted"""
        now = now or utcnow()
        kris = []
        for name, query in KRI_QUERIES.items():
            value = await self._run(f"kris.{name}", query, org_id, now, errors)
            if value is None:
                continue
            amber, red = KRI_THRESHOLDS[name]
            kris.append(KRI(name=name, value=value, amber=amber, red=red, band=band_for(value, amber, red)))
        return kris

    async def trends(self, org_id: str, now: Optional[datetime] = None, errors: Optional[List[str]] = None) -> Dict[str, Any]:
        return await self._run_all("trends", TREND_QUERIES, org_id, now or utcnow(), errors)

    async def deadline_digest(self, org_id: str, now: Optional[datetime] = None, errors: Optional[List[str]] = None) -> Dict[str, Any]:
        """Rows the external reminder sender mails about, grouped by register"""
        return await self._run_all("digest", DIGEST_QUERIES, org_id, now or utcnow(), errors)

    async def dashboard(self, org_id: str, now: Optional[datetime] = None) -> Dashboard:
        now = now or utcnow()
        errors: List[str] = []
        dashboard = Dashboard(
            summary=await self.summary(org_id, now, errors),
            kpis=await self.kpis(org_id, now, errors),
            kris=await self.kris(org_id, now, errors),
            trends=await self.trends(org_id, now, errors),
        )
        dashboard.errors = errors
        if errors:
            logger.warning(f"Dashboard for org {org_id} degraded: {', '.join(errors)}")
        return dashboard


# Singleton instance
aggregation_engine = AggregationEngine()
