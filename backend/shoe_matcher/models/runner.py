"""
Runner-side inputs: profile, current rotation, feel preferences and
structured context signals. All are supplied per request.
"""

import enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator

from shoe_matcher.models.catalog import HEEL_DROP_BUCKETS, RunType


# ============================================================================
# PROFILE ENUMS
# ============================================================================

class ExperienceLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERIENCED = "experienced"
    COMPETITIVE = "competitive"


class PrimaryGoal(str, enum.Enum):
    GENERAL_FITNESS = "general_fitness"
    GET_FASTER = "get_faster"
    RACE_TRAINING = "race_training"
    INJURY_COMEBACK = "injury_comeback"


class RunningPattern(str, enum.Enum):
    INFREQUENT = "infrequent"
    MOSTLY_EASY = "mostly_easy"
    STRUCTURED_TRAINING = "structured_training"
    WORKOUT_FOCUSED = "workout_focused"


class TrailPreference(str, enum.Enum):
    MOST_OR_ALL = "most_or_all"
    INFREQUENTLY = "infrequently"
    WANT_TO_START = "want_to_start"
    NO_TRAILS = "no_trails"


class FootStrike(str, enum.Enum):
    FOREFOOT = "forefoot"
    MIDFOOT = "midfoot"
    HEEL = "heel"
    UNSURE = "unsure"


class Sentiment(str, enum.Enum):
    LOVE = "love"
    NEUTRAL = "neutral"
    DISLIKE = "dislike"


class Lifecycle(str, enum.Enum):
    NEW = "new"
    MID_LIFE = "mid_life"
    NEAR_REPLACEMENT = "near_replacement"


class LoveTag(str, enum.Enum):
    BOUNCY = "bouncy"
    SOFT_CUSHION = "soft_cushion"
    LIGHTWEIGHT = "lightweight"
    STABLE = "stable"
    SMOOTH_ROCKER = "smooth_rocker"
    LONG_RUN_COMFORT = "long_run_comfort"
    FAST_FEELING = "fast_feeling"
    COMFORTABLE_FIT = "comfortable_fit"
    GOOD_GRIP = "good_grip"


class DislikeTag(str, enum.Enum):
    TOO_HEAVY = "too_heavy"
    TOO_SOFT = "too_soft"
    TOO_FIRM = "too_firm"
    UNSTABLE = "unstable"
    BLISTERS = "blisters"
    TOO_NARROW = "too_narrow"
    TOO_WIDE = "too_wide"
    WEARS_FAST = "wears_fast"
    CAUSES_PAIN = "causes_pain"
    SLOW_AT_SPEED = "slow_at_speed"


# Older clients send role-style names for run types
RUN_TYPE_ALIASES = {
    "all_my_runs": "all_runs",
    "daily": "all_runs",
    "easy": "recovery",
    "long": "long_runs",
    "tempo": "workouts",
    "intervals": "workouts",
    "race": "races",
}


# ============================================================================
# PROFILE
# ============================================================================

class WeeklyVolume(BaseModel):
    value: float = Field(ge=0)
    unit: Literal["km", "mi"] = "km"

    @property
    def km(self) -> float:
        return self.value * 1.6 if self.unit == "mi" else self.value


class RaceTime(BaseModel):
    distance: Literal["5k", "10k", "half", "marathon"]
    time_minutes: float = Field(gt=0)


class Height(BaseModel):
    value: float = Field(gt=0)
    unit: Literal["cm", "in"] = "cm"

    @property
    def metres(self) -> float:
        cm = self.value * 2.54 if self.unit == "in" else self.value
        return cm / 100


class BodyWeight(BaseModel):
    value: float = Field(gt=0)
    unit: Literal["kg", "lb"] = "kg"

    @property
    def kg(self) -> float:
        return self.value * 0.4536 if self.unit == "lb" else self.value


class BrandPreference(BaseModel):
    mode: Literal["all", "include", "exclude"] = "all"
    brands: list[str] = []


class RunnerProfile(BaseModel):
    first_name: Optional[str] = None
    experience: ExperienceLevel
    primary_goal: PrimaryGoal
    running_pattern: Optional[RunningPattern] = None
    trail_running: Optional[TrailPreference] = None
    weekly_volume: Optional[WeeklyVolume] = None
    race_time: Optional[RaceTime] = None
    height: Optional[Height] = None
    weight: Optional[BodyWeight] = None
    foot_strike: Optional[FootStrike] = None
    brand_preference: Optional[BrandPreference] = None

    @property
    def bmi(self) -> Optional[float]:
        if not self.height or not self.weight:
            return None
        metres = self.height.metres
        return self.weight.kg / (metres * metres)


class CurrentShoe(BaseModel):
    shoe_id: str
    run_types: list[RunType] = []
    sentiment: Sentiment = Sentiment.NEUTRAL
    love_tags: list[LoveTag] = []
    dislike_tags: list[DislikeTag] = []
    lifecycle: Optional[Lifecycle] = None

    @model_validator(mode="before")
    @classmethod
    def accept_roles(cls, data: Any) -> Any:
        if isinstance(data, dict) and "roles" in data and "run_types" not in data:
            data = dict(data)
            data["run_types"] = data.pop("roles")
        return data

    @field_validator("run_types", mode="before")
    @classmethod
    def normalize_run_types(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [RUN_TYPE_ALIASES.get(v, v) if isinstance(v, str) else v for v in value]
        return value


# ============================================================================
# FEEL PREFERENCES
# ============================================================================

class DecidePreference(BaseModel):
    """Let the engine pick a range appropriate for the target archetype."""
    mode: Literal["decide"] = "decide"


class ExplicitPreference(BaseModel):
    mode: Literal["explicit"] = "explicit"
    value: int = Field(ge=1, le=5)


class IgnorePreference(BaseModel):
    """Dimension contributes nothing to the score."""
    mode: Literal["ignore"] = "ignore"


class ExplicitHeelDrop(BaseModel):
    mode: Literal["explicit"] = "explicit"
    buckets: list[Literal["0mm", "1-4mm", "5-8mm", "9-12mm", "12mm+"]] = Field(min_length=1)


PreferenceValue = Annotated[
    Union[DecidePreference, ExplicitPreference, IgnorePreference],
    Field(discriminator="mode"),
]

HeelDropPreference = Annotated[
    Union[DecidePreference, ExplicitHeelDrop, IgnorePreference],
    Field(discriminator="mode"),
]

# Older wire names for the three modes
_MODE_ALIASES = {
    "cinda_decides": "decide",
    "user_set": "explicit",
    "wildcard": "ignore",
}


def _normalize_preference(raw: Any) -> Any:
    if raw is None:
        return {"mode": "decide"}
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return {"mode": "explicit", "value": raw}
    if isinstance(raw, list):
        return {"mode": "explicit", "buckets": raw}
    if isinstance(raw, dict):
        pref = dict(raw)
        mode = pref.get("mode", "decide")
        pref["mode"] = _MODE_ALIASES.get(mode, mode)
        if "values" in pref and "buckets" not in pref:
            pref["buckets"] = pref.pop("values")
        if pref["mode"] == "explicit" and "value" not in pref and "buckets" not in pref:
            pref["mode"] = "decide"
        return pref
    return raw


class FeelPreferences(BaseModel):
    cushion: PreferenceValue = DecidePreference()
    stability: PreferenceValue = DecidePreference()
    bounce: PreferenceValue = DecidePreference()
    rocker: PreferenceValue = DecidePreference()
    ground_feel: PreferenceValue = DecidePreference()
    stack_height: PreferenceValue = IgnorePreference()
    heel_drop: HeelDropPreference = DecidePreference()

    @model_validator(mode="before")
    @classmethod
    def normalize_modes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        renames = {
            "cushionAmount": "cushion",
            "stabilityAmount": "stability",
            "energyReturn": "bounce",
            "groundFeel": "ground_feel",
            "stackHeight": "stack_height",
            "heelDropPreference": "heel_drop",
        }
        normalized = {}
        for key, raw in data.items():
            normalized[renames.get(key, key)] = _normalize_preference(raw)
        return normalized

    def explicit_value(self, dimension: str) -> Optional[int]:
        pref = getattr(self, dimension)
        return pref.value if isinstance(pref, ExplicitPreference) else None

    @property
    def heel_drop_buckets(self) -> list[str]:
        if isinstance(self.heel_drop, ExplicitHeelDrop):
            return [b for b in self.heel_drop.buckets if b in HEEL_DROP_BUCKETS]
        return []


# ============================================================================
# CONTEXT SIGNALS
# ============================================================================

class InjurySignal(BaseModel):
    injury: Literal["plantar_fasciitis", "achilles", "shin_splints", "knee", "it_band", "stress_fracture"]
    current: bool = True


class FitSignal(BaseModel):
    width: Optional[Literal["narrow", "standard", "wide", "extra_wide"]] = None
    volume: Optional[Literal["low", "standard", "high"]] = None
    needs_roomy_toe_box: bool = False


class PastShoeSignal(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    sentiment: Literal["loved", "liked", "neutral", "disliked", "hated"]


class ContextSignals(BaseModel):
    """Structured signals extracted upstream from free-form conversation."""

    injuries: list[InjurySignal] = []
    fit: Optional[FitSignal] = None
    climate: Optional[Literal["wet", "hot", "cold", "mixed"]] = None
    requests: list[Literal["lightweight", "cushioned", "fast", "stable", "long_runs"]] = []
    past_shoes: list[PastShoeSignal] = []

    @property
    def is_empty(self) -> bool:
        return not (self.injuries or self.fit or self.climate or self.requests or self.past_shoes)
