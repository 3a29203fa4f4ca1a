from sqlalchemy import Column, DateTime, UniqueConstraint, Index, text

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType, generate_uuid, utcnow
from complyva.models.enums import EntityType, LinkType


class CrossLink(Base):
    """Directed edge between two register rows of one organisation"""
    __tablename__ = "cross_links"
    __table_args__ = (
        UniqueConstraint(
            'org_id', 'source_type', 'source_id', 'target_type', 'target_id', 'link_type',
            name='uq_cross_links_edge',
        ),
        Index('ix_cross_links_source', 'org_id', 'source_type', 'source_id'),
        Index('ix_cross_links_target', 'org_id', 'target_type', 'target_id'),
        # A source yields at most one generated target per register
        Index(
            'uq_cross_links_generated',
            'org_id', 'source_type', 'source_id', 'target_type',
            unique=True,
            sqlite_where=text("link_type = 'GENERATED'"),
            postgresql_where=text("link_type = 'GENERATED'"),
        ),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    org_id = Column(GUID, nullable=False, index=True)

    # Endpoints are polymorphic (type tag + id), so no foreign keys
    source_type = Column(EnumType(EntityType), nullable=False)
    source_id = Column(GUID, nullable=False)
    target_type = Column(EnumType(EntityType), nullable=False)
    target_id = Column(GUID, nullable=False)

    link_type = Column(EnumType(LinkType), default=LinkType.MANUAL, nullable=False)
    created_by = Column(GUID, nullable=True)  # Null for system-generated links
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "org_id": self.org_id,
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "target_type": self.target_type.value,
            "target_id": self.target_id,
            "link_type": self.link_type.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return (
            f"<CrossLink {self.source_type.value}:{self.source_id} -> "
            f"{self.target_type.value}:{self.target_id} ({self.link_type.value})>"
        )
