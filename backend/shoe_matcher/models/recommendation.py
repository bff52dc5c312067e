import enum
from typing import Literal, Optional
from pydantic import BaseModel, model_validator

from shoe_matcher.models.catalog import Archetype, RunType, ShoeRecord


class GapType(str, enum.Enum):
    COVERAGE = "coverage"
    PERFORMANCE = "performance"
    RECOVERY = "recovery"
    REDUNDANCY = "redundancy"
    MISUSE = "misuse"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Badge(str, enum.Enum):
    CLOSEST_MATCH = "closest_match"
    CLOSE_MATCH = "close_match"
    TRADE_OFF = "trade_off"


class Position(str, enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# 1 = genuine gap, 2 = improvement, 3 = exploration
Tier = Literal[1, 2, 3]


class Gap(BaseModel):
    type: GapType
    severity: Severity
    reasoning: str
    recommended_archetype: Archetype
    run_type: Optional[RunType] = None
    redundant_shoe_ids: list[str] = []
    tier: Optional[Tier] = None

    @model_validator(mode="after")
    def default_tier(self) -> "Gap":
        if self.tier is None:
            self.tier = 1 if self.severity == Severity.HIGH else 2
        return self

    @property
    def is_exploration(self) -> bool:
        return self.tier == 3


class RecommendedShoe(BaseModel):
    shoe_id: str
    full_name: str
    brand: str
    model: str
    version: Optional[str] = None
    weight_g: int
    weight_feel_1to5: int
    heel_drop_mm: float
    has_plate: bool
    plate_material: Optional[str] = None
    retail_price_category: str
    release_status: str
    cushion_softness_1to5: int
    bounce_1to5: int
    stability_1to5: int
    archetypes: list[Archetype]
    is_super_trainer: bool = False
    badge: Badge
    position: Position
    score: float
    match_reason: list[str]
    key_strengths: list[str]
    trade_offs: list[str] = []

    @classmethod
    def from_record(cls, shoe: ShoeRecord, **fields) -> "RecommendedShoe":
        return cls(
            shoe_id=shoe.shoe_id,
            full_name=shoe.full_name,
            brand=shoe.brand,
            model=shoe.model,
            version=shoe.version,
            weight_g=shoe.weight_g,
            weight_feel_1to5=shoe.weight_feel_1to5,
            heel_drop_mm=shoe.heel_drop_mm,
            has_plate=shoe.has_plate,
            plate_material=shoe.plate_material,
            retail_price_category=shoe.retail_price_category.value,
            release_status=shoe.release_status.value,
            cushion_softness_1to5=shoe.cushion_softness_1to5,
            bounce_1to5=shoe.bounce_1to5,
            stability_1to5=shoe.stability_1to5,
            archetypes=shoe.archetypes,
            is_super_trainer=shoe.is_super_trainer,
            **fields,
        )
