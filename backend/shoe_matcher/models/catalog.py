"""
Shoe catalogue data model

A ShoeRecord is one entry of the static shoebase catalogue: identity,
archetype flags, 1-5 feel scores, specs, fit descriptors, availability
and free-text descriptions. Records are immutable once loaded.

Archetype = what the shoe IS (daily_trainer, race_shoe, ...)
RunType   = what the runner USES a shoe for (all_runs, workouts, ...)
"""

import enum
import re
from typing import Optional
from pydantic import BaseModel, Field


# ============================================================================
# ENUMS
# ============================================================================

class Archetype(str, enum.Enum):
    DAILY_TRAINER = "daily_trainer"
    RECOVERY_SHOE = "recovery_shoe"
    WORKOUT_SHOE = "workout_shoe"
    RACE_SHOE = "race_shoe"
    TRAIL_SHOE = "trail_shoe"


class RunType(str, enum.Enum):
    ALL_RUNS = "all_runs"
    RECOVERY = "recovery"
    LONG_RUNS = "long_runs"
    WORKOUTS = "workouts"
    RACES = "races"
    TRAIL = "trail"


class SupportType(str, enum.Enum):
    NEUTRAL = "neutral"
    STABLE_NEUTRAL = "stable_neutral"
    STABILITY = "stability"
    MAX_STABILITY = "max_stability"


class Surface(str, enum.Enum):
    ROAD = "road"
    TRAIL = "trail"
    TRACK = "track"
    MIXED = "mixed"


class WetGrip(str, enum.Enum):
    POOR = "poor"
    AVERAGE = "average"
    GOOD = "good"
    EXCELLENT = "excellent"


class ReleaseStatus(str, enum.Enum):
    AVAILABLE = "available"
    COMING_SOON = "coming_soon"
    DISCONTINUED = "discontinued"
    REGIONAL = "regional"


class PriceCategory(str, enum.Enum):
    BUDGET = "Budget"
    CORE = "Core"
    PREMIUM = "Premium"
    RACE_DAY = "Race_Day"


# The versatile default target when nothing more specific applies
DEFAULT_ARCHETYPE = Archetype.DAILY_TRAINER

# Suitable archetypes per run type, preferred first
RUN_TYPE_ARCHETYPES: dict[RunType, list[Archetype]] = {
    RunType.ALL_RUNS: [Archetype.DAILY_TRAINER],
    RunType.RECOVERY: [Archetype.RECOVERY_SHOE, Archetype.DAILY_TRAINER],
    RunType.LONG_RUNS: [Archetype.DAILY_TRAINER, Archetype.WORKOUT_SHOE, Archetype.RECOVERY_SHOE],
    RunType.WORKOUTS: [Archetype.WORKOUT_SHOE, Archetype.RACE_SHOE],
    RunType.RACES: [Archetype.RACE_SHOE, Archetype.WORKOUT_SHOE],
    RunType.TRAIL: [Archetype.TRAIL_SHOE],
}

HEEL_DROP_BUCKETS = ["0mm", "1-4mm", "5-8mm", "9-12mm", "12mm+"]

_VARIANT_SUFFIX = re.compile(r"(\s+\d+(\.\d+)?|\s+v\d+|\s+(x|plus|pro|max))$", re.IGNORECASE)


def heel_drop_bucket(drop_mm: float) -> str:
    """Map a heel drop in millimetres to its display bucket."""
    if drop_mm <= 0:
        return "0mm"
    if drop_mm <= 4:
        return "1-4mm"
    if drop_mm <= 8:
        return "5-8mm"
    if drop_mm <= 12:
        return "9-12mm"
    return "12mm+"


def heel_drop_distance(drop_mm: float, buckets: list[str]) -> int:
    """Smallest bucket distance between a shoe's drop and any selected bucket."""
    if not buckets:
        return 0
    index = HEEL_DROP_BUCKETS.index(heel_drop_bucket(drop_mm))
    return min(
        (abs(HEEL_DROP_BUCKETS.index(b) - index) for b in buckets if b in HEEL_DROP_BUCKETS),
        default=0,
    )


# ============================================================================
# SHOE RECORD
# ============================================================================

class ShoeRecord(BaseModel):
    """A single catalogue entry."""

    # Identity
    shoe_id: str
    brand: str
    model: str
    version: Optional[str] = None
    full_name: str

    # Archetype flags
    is_daily_trainer: bool = False
    is_recovery_shoe: bool = False
    is_workout_shoe: bool = False
    is_race_shoe: bool = False
    is_trail_shoe: bool = False
    is_super_trainer: bool = False

    # Feel scores
    cushion_softness_1to5: int = Field(ge=1, le=5)
    bounce_1to5: int = Field(ge=1, le=5)
    stability_1to5: int = Field(ge=1, le=5)
    rocker_1to5: int = Field(ge=1, le=5)
    ground_feel_1to5: int = Field(ge=1, le=5)
    weight_feel_1to5: int = Field(ge=1, le=5)

    # Specs
    weight_g: int
    heel_drop_mm: float
    has_plate: bool = False
    plate_tech_name: Optional[str] = None
    plate_material: Optional[str] = None

    # Fit
    fit_volume: str = "standard"
    toe_box: str = "standard"
    width_options: str = "standard only"
    support_type: SupportType = SupportType.NEUTRAL

    # Meta
    surface: Surface = Surface.ROAD
    wet_grip: WetGrip = WetGrip.AVERAGE
    release_status: ReleaseStatus = ReleaseStatus.AVAILABLE
    retail_price_category: PriceCategory = PriceCategory.CORE

    # Descriptions
    why_it_feels_this_way: str = ""
    avoid_if: str = ""
    similar_to: str = ""
    notable_detail: str = ""

    class Config:
        frozen = True

    @property
    def archetypes(self) -> list[Archetype]:
        flags = [
            (self.is_daily_trainer, Archetype.DAILY_TRAINER),
            (self.is_recovery_shoe, Archetype.RECOVERY_SHOE),
            (self.is_workout_shoe, Archetype.WORKOUT_SHOE),
            (self.is_race_shoe, Archetype.RACE_SHOE),
            (self.is_trail_shoe, Archetype.TRAIL_SHOE),
        ]
        return [archetype for flag, archetype in flags if flag]

    def has_archetype(self, archetype: Archetype) -> bool:
        return archetype in self.archetypes

    @property
    def is_trail_only(self) -> bool:
        return self.archetypes == [Archetype.TRAIL_SHOE]

    @property
    def is_carbon_plated(self) -> bool:
        return self.has_plate and (self.plate_material or "").lower() == "carbon"

    @property
    def base_model(self) -> str:
        """Model line name with version numbers and suffixes stripped."""
        return _VARIANT_SUFFIX.sub("", self.model.lower().strip()).strip()

    def is_variant_of(self, other: "ShoeRecord") -> bool:
        if self.brand.lower() != other.brand.lower():
            return False
        mine, theirs = self.base_model, other.base_model
        return mine == theirs or mine in theirs or theirs in mine
