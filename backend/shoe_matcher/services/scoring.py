import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from shoe_matcher.models.catalog import (
    Archetype, ShoeRecord, Surface, SupportType, WetGrip, DEFAULT_ARCHETYPE, HEEL_DROP_BUCKETS,
    heel_drop_bucket,
)
from shoe_matcher.models.runner import (
    ContextSignals, CurrentShoe, DecidePreference, DislikeTag, ExperienceLevel, ExplicitPreference,
    FeelPreferences, FootStrike, LoveTag, PrimaryGoal, RunnerProfile, RunningPattern, Sentiment,
    TrailPreference,
)
from shoe_matcher.services.scoring_tables import DEFAULT_TABLES, ScoringTables

logger = logging.getLogger(__name__)

FEEL_ATTRIBUTES = {
    "cushion": "cushion_softness_1to5",
    "stability": "stability_1to5",
    "bounce": "bounce_1to5",
    "rocker": "rocker_1to5",
    "ground_feel": "ground_feel_1to5",
}

# Archetypes a super trainer can stand in for
SUPER_TRAINER_COVERS = (Archetype.DAILY_TRAINER, Archetype.RECOVERY_SHOE, Archetype.WORKOUT_SHOE)

RACE_DISTANCE_KM = {
    "5k": 5.0,
    "10k": 10.0,
    "half": 21.0975,
    "marathon": 42.195,
}

GOOD_GRIP = (WetGrip.GOOD, WetGrip.EXCELLENT)


@dataclass
class RetrievalConstraints:
    archetypes: list[Archetype] = field(default_factory=lambda: [DEFAULT_ARCHETYPE])
    archetype_context: Optional[Archetype] = None
    feel_preferences: Optional[FeelPreferences] = None
    stability_need: Optional[str] = None  # 'neutral', 'stability', 'stable_feel'
    stability_preference: str = "no_preference"  # 'neutral_only', 'stability_only', 'no_preference'
    exclude_ids: frozenset = frozenset()
    profile: Optional[RunnerProfile] = None
    current_shoes: list[CurrentShoe] = field(default_factory=list)
    owned_shoes: list[ShoeRecord] = field(default_factory=list)
    context: Optional[ContextSignals] = None
    contrast_profile: Optional[dict[str, int]] = None

    @property
    def is_trail_request(self) -> bool:
        return Archetype.TRAIL_SHOE in self.archetypes

    @property
    def range_archetype(self) -> Archetype:
        if self.archetype_context:
            return self.archetype_context
        return self.archetypes[0] if self.archetypes else DEFAULT_ARCHETYPE


@dataclass
class ScoredCandidate:
    shoe: ShoeRecord
    score: float
    breakdown: dict[str, float]

    @property
    def shoe_id(self) -> str:
        return self.shoe.shoe_id


def sort_candidates(candidates: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Highest score first; equal scores by ascending shoe id."""
    return sorted(candidates, key=lambda c: (-c.score, c.shoe.shoe_id))


def five_k_equivalent(distance: str, minutes: float, exponent: float) -> float:
    """Riegel conversion of a race time to a 5k time."""
    km = RACE_DISTANCE_KM[distance]
    return minutes * (5.0 / km) ** exponent


def _clamp(value: float, bounds: tuple) -> float:
    low, high = bounds
    return max(low, min(high, value))


def _names_model(model: Optional[str], shoe: ShoeRecord) -> bool:
    """Whole-word match of a mentioned model name against the shoe's name."""
    if not model or not model.strip():
        return False
    pattern = rf"\b{re.escape(model.strip().lower())}\b"
    return bool(re.search(pattern, shoe.full_name.lower())) or model.strip().lower() == shoe.base_model


class ScoringEngine:
    """Hard filters and additive scoring of catalogue shoes against constraints."""

    def __init__(self, tables: ScoringTables = DEFAULT_TABLES):
        self.tables = tables

    # ------------------------------------------------------------------
    # Hard filters
    # ------------------------------------------------------------------

    def passes_identity_filters(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> bool:
        """Filters that survive every relaxation stage, fallback included."""
        if shoe.shoe_id in constraints.exclude_ids:
            return False

        profile = constraints.profile
        if profile and profile.brand_preference and profile.brand_preference.brands:
            brands = {b.lower() for b in profile.brand_preference.brands}
            mode = profile.brand_preference.mode
            if mode == "include" and shoe.brand.lower() not in brands:
                return False
            if mode == "exclude" and shoe.brand.lower() in brands:
                return False

        if constraints.is_trail_request:
            if not shoe.is_trail_shoe:
                return False
        elif shoe.is_trail_only:
            return False

        if profile and profile.experience == ExperienceLevel.BEGINNER and shoe.is_carbon_plated:
            return False

        if constraints.stability_preference == "neutral_only" and shoe.support_type in (
            SupportType.STABILITY, SupportType.MAX_STABILITY,
        ):
            return False

        return True

    def matches_category(self, shoe: ShoeRecord, archetypes: Sequence[Archetype]) -> bool:
        if any(shoe.has_archetype(a) for a in archetypes):
            return True
        return shoe.is_super_trainer and any(a in SUPER_TRAINER_COVERS for a in archetypes)

    def passes_hard_filters(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> bool:
        return (
            self.passes_identity_filters(shoe, constraints)
            and self.matches_category(shoe, constraints.archetypes)
        )

    # ------------------------------------------------------------------
    # Soft scoring
    # ------------------------------------------------------------------

    def _score_category(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> float:
        points = sum(
            self.tables.category_points.get(a, 0)
            for a in constraints.archetypes
            if shoe.has_archetype(a)
        )
        if points == 0 and self.matches_category(shoe, constraints.archetypes):
            return self.tables.super_trainer_stand_in
        return min(points, self.tables.category_cap)

    def _score_dimension(self, value: int, pref, acceptable: tuple[int, int]) -> float:
        if isinstance(pref, ExplicitPreference):
            distance = min(abs(value - pref.value), 4)
            return self.tables.explicit_distance_points[distance]
        if isinstance(pref, DecidePreference):
            low, high = acceptable
            if low <= value <= high:
                return self.tables.range_in_points
            edge_distance = low - value if value < low else value - high
            return -self.tables.range_out_penalty_per_unit * edge_distance
        return 0

    def _score_feel(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> float:
        prefs = constraints.feel_preferences
        if prefs is None:
            return 0

        ranges = self.tables.archetype_ranges[constraints.range_archetype]
        total = 0
        for dimension, attr in FEEL_ATTRIBUTES.items():
            total += self._score_dimension(getattr(shoe, attr), getattr(prefs, dimension), ranges[dimension])

        # Stack height is read as the inverse of ground feel
        ground_low, ground_high = ranges["ground_feel"]
        total += self._score_dimension(
            6 - shoe.ground_feel_1to5,
            prefs.stack_height,
            (6 - ground_high, 6 - ground_low),
        )
        return total

    def _score_heel_drop(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> float:
        prefs = constraints.feel_preferences
        if prefs is None or not prefs.heel_drop_buckets:
            return 0
        column = HEEL_DROP_BUCKETS.index(heel_drop_bucket(shoe.heel_drop_mm))
        return max(
            self.tables.heel_drop_table[HEEL_DROP_BUCKETS.index(b)][column]
            for b in prefs.heel_drop_buckets
        )

    def _score_stability(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> float:
        need = constraints.stability_need
        if need == "stability":
            if shoe.support_type == SupportType.STABILITY:
                return self.tables.stability_support_bonus
            if shoe.support_type == SupportType.MAX_STABILITY:
                return self.tables.max_stability_support_bonus
        if need == "stable_feel" and shoe.stability_1to5 >= 4:
            return self.tables.stable_feel_bonus
        return 0

    def _score_availability(self, shoe: ShoeRecord) -> float:
        return self.tables.availability_points.get(shoe.release_status, 0)

    def _score_versatility(self, shoe: ShoeRecord) -> float:
        return self.tables.versatility_bonus if shoe.is_super_trainer else 0

    def _score_profile(self, shoe: ShoeRecord, profile: Optional[RunnerProfile]) -> float:
        if profile is None:
            return 0

        pts = self.tables.profile_points
        points = 0
        fast_shoe = shoe.is_workout_shoe or shoe.is_race_shoe

        # Experience
        if profile.experience == ExperienceLevel.BEGINNER and shoe.stability_1to5 >= 3:
            points += pts["beginner_stable"]
        elif profile.experience == ExperienceLevel.COMPETITIVE and shoe.has_plate and fast_shoe:
            points += pts["competitive_plated"]

        # Goal
        goal = profile.primary_goal
        if goal in (PrimaryGoal.GET_FASTER, PrimaryGoal.RACE_TRAINING) and shoe.bounce_1to5 >= 4:
            points += pts["speed_goal_bounce"]
        elif goal == PrimaryGoal.INJURY_COMEBACK:
            if shoe.cushion_softness_1to5 >= 4:
                points += pts["comeback_cushion"]
            if shoe.stability_1to5 >= 4:
                points += pts["comeback_stable"]
            elif shoe.stability_1to5 <= 2:
                points += pts["comeback_unstable"]

        # Training pattern
        pattern = profile.running_pattern
        if pattern == RunningPattern.WORKOUT_FOCUSED and shoe.is_workout_shoe:
            points += pts["workout_pattern"]
        elif pattern in (RunningPattern.MOSTLY_EASY, RunningPattern.INFREQUENT) and shoe.cushion_softness_1to5 >= 4:
            points += pts["easy_pattern_cushion"]

        # Pace bucket
        bucket = self.pace_bucket(profile)
        if bucket in ("elite", "fast") and shoe.has_plate and fast_shoe:
            points += pts["fast_pace_plated"]
        elif bucket == "relaxed":
            if shoe.is_race_shoe and shoe.is_carbon_plated:
                points += pts["relaxed_pace_carbon_racer"]
            if shoe.cushion_softness_1to5 >= 4:
                points += pts["relaxed_pace_cushion"]

        # Body mass index
        bmi = profile.bmi
        if bmi is not None:
            if bmi >= self.tables.high_bmi:
                if shoe.cushion_softness_1to5 <= 2:
                    points += pts["high_bmi_firm"]
                if shoe.stability_1to5 >= 4:
                    points += pts["high_bmi_stable"]
            elif bmi >= self.tables.raised_bmi:
                if shoe.cushion_softness_1to5 <= 2:
                    points += pts["raised_bmi_firm"]
            elif bmi < self.tables.low_bmi and shoe.weight_g <= 230:
                points += pts["low_bmi_light"]

        # Foot strike
        drop = shoe.heel_drop_mm
        if profile.foot_strike == FootStrike.HEEL:
            if drop >= 8:
                points += pts["heel_strike_high_drop"]
            elif drop <= 4:
                points += pts["heel_strike_low_drop"]
        elif profile.foot_strike == FootStrike.FOREFOOT:
            if drop <= 6:
                points += pts["forefoot_low_drop"]
            elif drop >= 10:
                points += pts["forefoot_high_drop"]
        elif profile.foot_strike == FootStrike.MIDFOOT and 4 <= drop <= 8:
            points += pts["midfoot_mid_drop"]

        # Trail frequency
        if shoe.is_trail_shoe:
            if profile.trail_running == TrailPreference.MOST_OR_ALL:
                if shoe.wet_grip in GOOD_GRIP:
                    points += pts["trail_regular_grip"]
                if shoe.stability_1to5 >= 4:
                    points += pts["trail_regular_stable"]
            elif profile.trail_running in (TrailPreference.INFREQUENTLY, TrailPreference.WANT_TO_START):
                if shoe.surface == Surface.MIXED:
                    points += pts["trail_casual_mixed"]

        return points

    def pace_bucket(self, profile: RunnerProfile) -> Optional[str]:
        if not profile.race_time:
            return None
        five_k = five_k_equivalent(
            profile.race_time.distance, profile.race_time.time_minutes, self.tables.riegel_exponent,
        )
        if five_k < self.tables.pace_elite_5k:
            return "elite"
        if five_k < self.tables.pace_fast_5k:
            return "fast"
        if five_k < self.tables.pace_moderate_5k:
            return "moderate"
        return "relaxed"

    def _score_sentiment(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> float:
        current = constraints.current_shoes
        if not current:
            return 0

        love_tags = {tag for c in current if c.sentiment == Sentiment.LOVE for tag in c.love_tags}
        dislike_tags = {tag for c in current if c.sentiment == Sentiment.DISLIKE for tag in c.dislike_tags}

        loved = {
            LoveTag.BOUNCY: shoe.bounce_1to5 >= 4,
            LoveTag.SOFT_CUSHION: shoe.cushion_softness_1to5 >= 4,
            LoveTag.LIGHTWEIGHT: shoe.weight_g <= 240,
            LoveTag.STABLE: shoe.stability_1to5 >= 4,
            LoveTag.SMOOTH_ROCKER: shoe.rocker_1to5 >= 4,
            LoveTag.FAST_FEELING: shoe.has_plate or shoe.bounce_1to5 >= 4,
            LoveTag.LONG_RUN_COMFORT: shoe.cushion_softness_1to5 >= 4,
            LoveTag.GOOD_GRIP: shoe.wet_grip in GOOD_GRIP,
        }
        disliked = {
            DislikeTag.TOO_HEAVY: shoe.weight_g >= 280,
            DislikeTag.TOO_SOFT: shoe.cushion_softness_1to5 >= 4,
            DislikeTag.TOO_FIRM: shoe.cushion_softness_1to5 <= 2,
            DislikeTag.UNSTABLE: shoe.stability_1to5 <= 2,
            DislikeTag.TOO_NARROW: shoe.fit_volume in ("snug", "narrow") or shoe.toe_box == "narrow",
            DislikeTag.TOO_WIDE: shoe.fit_volume == "roomy",
            DislikeTag.SLOW_AT_SPEED: shoe.bounce_1to5 <= 2,
        }

        points = 0
        for tag in love_tags:
            if loved.get(tag):
                points += self.tables.love_tag_points.get(tag, 0)
        for tag in dislike_tags:
            if disliked.get(tag):
                points += self.tables.dislike_tag_points.get(tag, 0)

        # Model-line sentiment
        sentiments = {c.shoe_id: c.sentiment for c in current}
        for owned in constraints.owned_shoes:
            if owned.shoe_id == shoe.shoe_id or not shoe.is_variant_of(owned):
                continue
            points += self.tables.model_line_points.get(sentiments.get(owned.shoe_id), 0)

        return _clamp(points, self.tables.sentiment_bounds)

    def _score_injury(self, shoe: ShoeRecord, injury: str) -> float:
        pts = self.tables.injury_points.get(injury, {})
        cushion = shoe.cushion_softness_1to5
        checks = {
            "soft": cushion >= 4,
            "firm": cushion <= 2,
            "stable": shoe.stability_1to5 >= 4,
            "ground_feel": shoe.ground_feel_1to5 >= 4,
            "high_drop": shoe.heel_drop_mm >= 8,
            "low_drop": shoe.heel_drop_mm <= 4,
            "max_rocker": shoe.rocker_1to5 >= 5,
            "carbon": shoe.is_carbon_plated,
        }
        return sum(value for rule, value in pts.items() if checks.get(rule))

    def _score_context(self, shoe: ShoeRecord, context: Optional[ContextSignals]) -> float:
        if context is None or context.is_empty:
            return 0

        points = 0.0
        cushion = shoe.cushion_softness_1to5
        stability = shoe.stability_1to5

        for signal in context.injuries:
            weight = 1.0 if signal.current else self.tables.past_injury_weight
            points += self._score_injury(shoe, signal.injury) * weight

        fit = context.fit
        if fit:
            pts = self.tables.fit_points
            widths = shoe.width_options.lower()
            if fit.width in ("wide", "extra_wide"):
                points += pts["wide_available"] if "wide" in widths else 0
                points += pts["wide_snug"] if shoe.fit_volume in ("snug", "narrow") else 0
            elif fit.width == "narrow":
                points += pts["narrow_match"] if ("narrow" in widths or shoe.fit_volume in ("snug", "narrow")) else 0
                points += pts["narrow_roomy"] if shoe.fit_volume == "roomy" else 0
            if fit.volume == "high" and shoe.fit_volume == "roomy":
                points += pts["volume_match"]
            elif fit.volume == "low" and shoe.fit_volume == "snug":
                points += pts["volume_match"]
            if fit.needs_roomy_toe_box:
                if shoe.toe_box in ("wide", "roomy"):
                    points += pts["roomy_toe_box"]
                elif shoe.toe_box == "narrow":
                    points += pts["narrow_toe_box"]

        pts = self.tables.climate_points
        if context.climate == "wet":
            if shoe.wet_grip in GOOD_GRIP:
                points += pts["wet_grip"]
            elif shoe.wet_grip == WetGrip.POOR:
                points += pts["wet_poor_grip"]
        elif context.climate == "hot" and shoe.weight_g <= 250:
            points += pts["hot_light"]
        elif context.climate in ("cold", "mixed") and shoe.wet_grip in GOOD_GRIP:
            points += pts["cold_grip"]

        pts = self.tables.request_points
        for request in context.requests:
            if request == "lightweight":
                if shoe.weight_g <= 240:
                    points += pts["lightweight"]
                elif shoe.weight_g >= 290:
                    points += pts["heavy"]
            elif request == "cushioned" and cushion >= 4:
                points += pts["cushioned"]
            elif request == "fast" and (shoe.bounce_1to5 >= 4 or shoe.has_plate):
                points += pts["fast"]
            elif request == "stable" and stability >= 4:
                points += pts["stable"]
            elif request == "long_runs" and cushion >= 3 and shoe.rocker_1to5 >= 3:
                points += pts["long_runs"]

        for past in context.past_shoes:
            brand_match = bool(past.brand) and past.brand.lower() == shoe.brand.lower()
            if _names_model(past.model, shoe) and (brand_match or not past.brand):
                points += self.tables.past_model_points[past.sentiment]
            elif brand_match:
                points += self.tables.past_brand_points[past.sentiment]

        return _clamp(round(points, 1), self.tables.context_bounds)

    def _score_contrast(self, shoe: ShoeRecord, contrast: Optional[dict[str, int]]) -> float:
        if not contrast:
            return 0
        points = 0
        for dimension, average in contrast.items():
            attr = FEEL_ATTRIBUTES.get(dimension)
            if attr is None:
                continue
            difference = abs(getattr(shoe, attr) - average)
            if difference >= 2:
                points += self.tables.contrast_far_points
            elif difference == 1:
                points += self.tables.contrast_near_points
        return min(points, self.tables.contrast_cap)

    # ------------------------------------------------------------------
    # Combined
    # ------------------------------------------------------------------

    def calculate_match_score(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> tuple[float, dict]:
        """Sum every modifier, floored at zero. Returns (score, breakdown)."""
        scores = {
            "category": self._score_category(shoe, constraints),
            "feel": self._score_feel(shoe, constraints),
            "heel_drop": self._score_heel_drop(shoe, constraints),
            "stability": self._score_stability(shoe, constraints),
            "availability": self._score_availability(shoe),
            "versatility": self._score_versatility(shoe),
            "profile": self._score_profile(shoe, constraints.profile),
            "sentiment": self._score_sentiment(shoe, constraints),
            "context": self._score_context(shoe, constraints.context),
            "contrast": self._score_contrast(shoe, constraints.contrast_profile),
        }
        final_score = max(0, sum(scores.values()))
        return final_score, scores

    def score(self, shoe: ShoeRecord, constraints: RetrievalConstraints) -> ScoredCandidate:
        final_score, breakdown = self.calculate_match_score(shoe, constraints)
        return ScoredCandidate(shoe=shoe, score=final_score, breakdown=breakdown)
