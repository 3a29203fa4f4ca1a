from complyva.services.activity import ActivityRecorder, activity_recorder
from complyva.services.register_store import RegisterStore, RegisterFilter, title_of
from complyva.services.cross_links import CrossLinkGraph, EntityRef, ResolvedLink, partition
from complyva.services.derivation_service import DerivationEngine, DerivationResult
from complyva.services.aggregation import AggregationEngine, Dashboard, KRI, aggregation_engine
from complyva.services.evidence import EvidenceRegistry

__all__ = [
    # Activity
    "ActivityRecorder",
    "activity_recorder",
    # Registers
    "RegisterStore",
    "RegisterFilter",
    "title_of",
    # Links and derivations
    "CrossLinkGraph",
    "EntityRef",
    "ResolvedLink",
    "partition",
    "DerivationEngine",
    "DerivationResult",
    # Dashboard
    "AggregationEngine",
    "Dashboard",
    "KRI",
    "aggregation_engine",
    # Evidence
    "EvidenceRegistry",
]
