"""
Point tables for the scoring engine.

Every point value the scorer awards lives here, in one frozen object that is
injected into ScoringEngine. Tests build variants with dataclasses.replace.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from shoe_matcher.models.catalog import Archetype, ReleaseStatus
from shoe_matcher.models.runner import DislikeTag, LoveTag, Sentiment


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


# Acceptable (low, high) feel ranges per archetype when the runner lets the engine decide
_ARCHETYPE_RANGES = {
    Archetype.DAILY_TRAINER: {
        "cushion": (2, 4), "stability": (2, 4), "bounce": (2, 4), "rocker": (2, 4), "ground_feel": (2, 4),
    },
    Archetype.RECOVERY_SHOE: {
        "cushion": (4, 5), "stability": (3, 5), "bounce": (1, 3), "rocker": (2, 5), "ground_feel": (1, 2),
    },
    Archetype.WORKOUT_SHOE: {
        "cushion": (2, 4), "stability": (1, 3), "bounce": (4, 5), "rocker": (3, 5), "ground_feel": (2, 4),
    },
    Archetype.RACE_SHOE: {
        "cushion": (2, 4), "stability": (1, 3), "bounce": (4, 5), "rocker": (4, 5), "ground_feel": (1, 3),
    },
    Archetype.TRAIL_SHOE: {
        "cushion": (2, 4), "stability": (3, 5), "bounce": (1, 3), "rocker": (1, 3), "ground_feel": (3, 5),
    },
}

# Heel drop: rows = selected bucket, columns = shoe bucket
# Buckets: 0mm, 1-4mm, 5-8mm, 9-12mm, 12mm+
_HEEL_DROP_TABLE = (
    (30, 10, -15, -30, -40),
    (10, 30, 10, -15, -30),
    (-15, 10, 30, 10, -15),
    (-30, -15, 10, 30, 10),
    (-40, -30, -15, 10, 30),
)


@dataclass(frozen=True)
class ScoringTables:
    # Category match
    category_points: Mapping = field(default_factory=lambda: _frozen({
        Archetype.DAILY_TRAINER: 10,
        Archetype.RECOVERY_SHOE: 10,
        Archetype.WORKOUT_SHOE: 12,
        Archetype.RACE_SHOE: 15,
        Archetype.TRAIL_SHOE: 15,
    }))
    category_cap: int = 30
    super_trainer_stand_in: int = 5

    # Feel match
    explicit_distance_points: Mapping = field(default_factory=lambda: _frozen({
        0: 20, 1: -5, 2: -15, 3: -30, 4: -50,
    }))
    range_in_points: int = 10
    range_out_penalty_per_unit: int = 4
    archetype_ranges: Mapping = field(default_factory=lambda: _frozen({
        k: _frozen(v) for k, v in _ARCHETYPE_RANGES.items()
    }))

    # Heel drop
    heel_drop_table: tuple = _HEEL_DROP_TABLE

    # Flat bonuses
    stability_support_bonus: int = 15
    max_stability_support_bonus: int = 12
    stable_feel_bonus: int = 10
    availability_points: Mapping = field(default_factory=lambda: _frozen({
        ReleaseStatus.AVAILABLE: 10,
        ReleaseStatus.COMING_SOON: 5,
        ReleaseStatus.REGIONAL: 3,
        ReleaseStatus.DISCONTINUED: 0,
    }))
    versatility_bonus: int = 8

    # Runner profile
    profile_points: Mapping = field(default_factory=lambda: _frozen({
        "beginner_stable": 5,
        "competitive_plated": 5,
        "speed_goal_bounce": 6,
        "comeback_cushion": 6,
        "comeback_stable": 4,
        "comeback_unstable": -6,
        "workout_pattern": 5,
        "easy_pattern_cushion": 3,
        "fast_pace_plated": 8,
        "relaxed_pace_carbon_racer": -6,
        "relaxed_pace_cushion": 3,
        "high_bmi_firm": -10,
        "high_bmi_stable": 4,
        "raised_bmi_firm": -5,
        "low_bmi_light": 3,
        "heel_strike_high_drop": 5,
        "heel_strike_low_drop": -5,
        "forefoot_low_drop": 5,
        "forefoot_high_drop": -3,
        "midfoot_mid_drop": 3,
        "trail_regular_grip": 4,
        "trail_regular_stable": 2,
        "trail_casual_mixed": 3,
    }))
    high_bmi: float = 30.0
    raised_bmi: float = 25.0
    low_bmi: float = 20.0

    # Current shoe sentiment tags
    love_tag_points: Mapping = field(default_factory=lambda: _frozen({
        LoveTag.BOUNCY: 5,
        LoveTag.SOFT_CUSHION: 5,
        LoveTag.LIGHTWEIGHT: 5,
        LoveTag.STABLE: 5,
        LoveTag.SMOOTH_ROCKER: 4,
        LoveTag.FAST_FEELING: 4,
        LoveTag.LONG_RUN_COMFORT: 3,
        LoveTag.GOOD_GRIP: 3,
    }))
    dislike_tag_points: Mapping = field(default_factory=lambda: _frozen({
        DislikeTag.TOO_HEAVY: -6,
        DislikeTag.TOO_SOFT: -6,
        DislikeTag.TOO_FIRM: -6,
        DislikeTag.UNSTABLE: -6,
        DislikeTag.TOO_NARROW: -5,
        DislikeTag.TOO_WIDE: -4,
        DislikeTag.SLOW_AT_SPEED: -4,
    }))
    model_line_points: Mapping = field(default_factory=lambda: _frozen({
        Sentiment.LOVE: 6,
        Sentiment.DISLIKE: -15,
    }))

    # Context signals
    injury_points: Mapping = field(default_factory=lambda: _frozen({
        "plantar_fasciitis": _frozen({"soft": 6, "stable": 3, "ground_feel": -6}),
        "achilles": _frozen({"high_drop": 6, "low_drop": -8}),
        "shin_splints": _frozen({"soft": 6, "firm": -5}),
        "knee": _frozen({"stable": 5, "soft": 3}),
        "it_band": _frozen({"stable": 4, "max_rocker": -3}),
        "stress_fracture": _frozen({"soft": 8, "firm": -8, "carbon": -5}),
    }))
    past_injury_weight: float = 0.5
    fit_points: Mapping = field(default_factory=lambda: _frozen({
        "wide_available": 6,
        "wide_snug": -4,
        "narrow_match": 5,
        "narrow_roomy": -3,
        "volume_match": 3,
        "roomy_toe_box": 5,
        "narrow_toe_box": -5,
    }))
    climate_points: Mapping = field(default_factory=lambda: _frozen({
        "wet_grip": 5,
        "wet_poor_grip": -5,
        "hot_light": 3,
        "cold_grip": 2,
    }))
    request_points: Mapping = field(default_factory=lambda: _frozen({
        "lightweight": 5,
        "heavy": -3,
        "cushioned": 5,
        "fast": 5,
        "stable": 5,
        "long_runs": 4,
    }))
    past_model_points: Mapping = field(default_factory=lambda: _frozen({
        "loved": 8, "liked": 4, "neutral": 0, "disliked": -8, "hated": -12,
    }))
    past_brand_points: Mapping = field(default_factory=lambda: _frozen({
        "loved": 3, "liked": 3, "neutral": 0, "disliked": -3, "hated": -3,
    }))

    # Pace buckets by 5k-equivalent minutes
    riegel_exponent: float = 1.06
    pace_elite_5k: float = 18.0
    pace_fast_5k: float = 22.0
    pace_moderate_5k: float = 28.0

    # Bounds on the open-ended modifier groups
    sentiment_bounds: tuple = (-20, 15)
    context_bounds: tuple = (-25, 20)

    # Contrast (exploration tier only)
    contrast_far_points: int = 5
    contrast_near_points: int = 2
    contrast_cap: int = 15

    # Retrieval sizes
    top_n: int = 30
    min_candidates: int = 10
    min_after_relaxation: int = 3
    fallback_size: int = 10


DEFAULT_TABLES = ScoringTables()

RELATED_ARCHETYPES = _frozen({
    Archetype.DAILY_TRAINER: (Archetype.RECOVERY_SHOE, Archetype.WORKOUT_SHOE),
    Archetype.RECOVERY_SHOE: (Archetype.DAILY_TRAINER,),
    Archetype.WORKOUT_SHOE: (Archetype.DAILY_TRAINER, Archetype.RACE_SHOE),
    Archetype.RACE_SHOE: (Archetype.WORKOUT_SHOE,),
    Archetype.TRAIL_SHOE: (),
})
