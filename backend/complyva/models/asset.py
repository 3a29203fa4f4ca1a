from sqlalchemy import Column, String, Date, Text, Integer
import enum

from complyva.core.database import Base
from complyva.core.types import EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType
from complyva.rules.scoring import combined_classification


class AssetType(str, enum.Enum):
    PRODUCT = "PRODUCT"
    SYSTEM = "SYSTEM"
    STUDIO = "STUDIO"
    DATA = "DATA"
    PEOPLE = "PEOPLE"
    FACILITY = "FACILITY"


class AssetStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    UNDER_REVIEW = "UNDER_REVIEW"
    DECOMMISSIONED = "DECOMMISSIONED"


# Display labels for the 1-4 scales
BIA_LABELS = {1: "Supporting", 2: "Significant", 3: "Critical", 4: "Highly Critical"}
DCA_LABELS = {1: "Public", 2: "Internal", 3: "Confidential", 4: "Highly Confidential"}


class Asset(RegisterMixin, Base):
    """Asset inventory entry with BIA / data-classification scores"""
    __tablename__ = "assets"

    entity_type = EntityType.ASSET
    title_field = "name"
    derived_fields = ("combined_classification",)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(200), nullable=True)
    asset_type = Column(EnumType(AssetType), nullable=False)
    owner = Column(String(200), nullable=True)

    bia_score = Column(Integer, nullable=True)  # Business impact analysis, 1-4
    dca_score = Column(Integer, nullable=True)  # Data classification assessment, 1-4
    combined_classification = Column(Integer, nullable=True)

    status = Column(EnumType(AssetStatus), default=AssetStatus.ACTIVE, nullable=False)
    review_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    def refresh_derived(self) -> None:
        self.combined_classification = combined_classification(self.bia_score, self.dca_score)
