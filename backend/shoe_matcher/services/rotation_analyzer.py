"""
Rotation analysis.

Pure functions over (current shoes, profile, catalogue): which run types
and archetypes the rotation covers, which ones the profile says it should
cover, clusters of shoes that feel alike and do the same job, per-shoe
misuse, and the rotation's average feel.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from shoe_matcher.models.catalog import (
    Archetype, RunType, ShoeRecord, Surface, RUN_TYPE_ARCHETYPES,
)
from shoe_matcher.models.runner import (
    CurrentShoe, Lifecycle, PrimaryGoal, RunnerProfile, RunningPattern, Sentiment, TrailPreference,
)

logger = logging.getLogger(__name__)

FEEL_DIMENSIONS = {
    "cushion": "cushion_softness_1to5",
    "stability": "stability_1to5",
    "bounce": "bounce_1to5",
    "rocker": "rocker_1to5",
    "ground_feel": "ground_feel_1to5",
}

# Run type each expected archetype is normally used for
_ARCHETYPE_RUN_TYPE = {
    Archetype.DAILY_TRAINER: RunType.ALL_RUNS,
    Archetype.RECOVERY_SHOE: RunType.RECOVERY,
    Archetype.WORKOUT_SHOE: RunType.WORKOUTS,
    Archetype.RACE_SHOE: RunType.RACES,
    Archetype.TRAIL_SHOE: RunType.TRAIL,
}


@dataclass
class Redundancy:
    shoe_ids: list[str]
    overlapping_run_types: list[RunType]


@dataclass
class ShoeUsage:
    """How one rotation shoe is being used, and whether that suits it."""
    shoe: ShoeRecord
    run_types: list[RunType]
    archetypes: list[Archetype]
    misuse_level: str = "good"  # 'severe', 'suboptimal', 'good'
    misuse_message: Optional[str] = None


@dataclass
class ContrastProfile:
    """Rounded average feel of the rotation."""
    cushion: Optional[int] = None
    stability: Optional[int] = None
    bounce: Optional[int] = None
    rocker: Optional[int] = None
    ground_feel: Optional[int] = None

    def as_dict(self) -> dict[str, int]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class RotationAnalysis:
    covered_run_types: list[RunType] = field(default_factory=list)
    uncovered_run_types: list[RunType] = field(default_factory=list)
    covered_archetypes: list[Archetype] = field(default_factory=list)
    missing_archetypes: list[Archetype] = field(default_factory=list)
    redundancies: list[Redundancy] = field(default_factory=list)
    all_shoes_loved: bool = False
    has_disliked_shoes: bool = False
    has_near_replacement_shoes: bool = False
    shoe_usage: list[ShoeUsage] = field(default_factory=list)
    contrast_profile: ContrastProfile = field(default_factory=ContrastProfile)


def expected_archetypes(profile: RunnerProfile) -> list[Archetype]:
    """Archetypes this runner should have covered, in taxonomy order."""
    expected = {Archetype.DAILY_TRAINER}

    pattern = profile.running_pattern
    if pattern == RunningPattern.MOSTLY_EASY:
        expected.add(Archetype.RECOVERY_SHOE)
    elif pattern == RunningPattern.STRUCTURED_TRAINING:
        expected.update([Archetype.RECOVERY_SHOE, Archetype.WORKOUT_SHOE])
    elif pattern == RunningPattern.WORKOUT_FOCUSED:
        expected.add(Archetype.WORKOUT_SHOE)

    goal = profile.primary_goal
    if goal == PrimaryGoal.GET_FASTER:
        expected.add(Archetype.WORKOUT_SHOE)
    elif goal == PrimaryGoal.RACE_TRAINING:
        expected.update([Archetype.WORKOUT_SHOE, Archetype.RACE_SHOE])
    elif goal == PrimaryGoal.INJURY_COMEBACK:
        expected.add(Archetype.RECOVERY_SHOE)

    if profile.trail_running in (TrailPreference.MOST_OR_ALL, TrailPreference.INFREQUENTLY):
        expected.add(Archetype.TRAIL_SHOE)

    return [a for a in Archetype if a in expected]


def detect_misuse(run_types: Sequence[RunType], shoe: ShoeRecord) -> tuple[str, Optional[str]]:
    """Check a shoe's assigned run types against what it was built for."""
    archetypes = shoe.archetypes
    used_easy = RunType.ALL_RUNS in run_types or RunType.RECOVERY in run_types
    used_fast = RunType.RACES in run_types or RunType.WORKOUTS in run_types

    if Archetype.RACE_SHOE in archetypes and Archetype.DAILY_TRAINER not in archetypes and used_easy:
        return "severe", (
            "This is a race-day shoe. Using it for everyday and easy miles wears it out "
            "quickly and you miss the benefit it is designed for."
        )

    is_recovery_only = (
        Archetype.RACE_SHOE not in archetypes
        and Archetype.WORKOUT_SHOE not in archetypes
        and (Archetype.RECOVERY_SHOE in archetypes or shoe.cushion_softness_1to5 >= 4)
    )
    if is_recovery_only and used_fast:
        return "severe", (
            "This is a soft recovery shoe. It is not built for the demands of racing "
            "or speed work and could slow you down."
        )

    if shoe.surface == Surface.TRAIL and RunType.RACES in run_types and RunType.TRAIL not in run_types:
        return "severe", (
            "This is a lugged trail shoe. The aggressive tread works against you on "
            "smooth pavement on race day."
        )

    if shoe.surface == Surface.ROAD and Archetype.RACE_SHOE in archetypes and RunType.TRAIL in run_types:
        return "severe", (
            "This is a road race shoe with minimal grip and protection. It is risky "
            "on loose or technical trail."
        )

    if shoe.weight_g > 290 and RunType.WORKOUTS in run_types and Archetype.WORKOUT_SHOE not in archetypes:
        return "suboptimal", (
            f"At {shoe.weight_g}g this is a heavy, max-cushion shoe. The extra weight "
            "blunts speed sessions."
        )

    return "good", None


def _similar_feel(a: ShoeRecord, b: ShoeRecord) -> bool:
    return (
        abs(a.cushion_softness_1to5 - b.cushion_softness_1to5) <= 1
        and abs(a.stability_1to5 - b.stability_1to5) <= 1
        and abs(a.bounce_1to5 - b.bounce_1to5) <= 1
    )


def find_redundancies(
    current_shoes: Sequence[CurrentShoe],
    records: dict[str, ShoeRecord],
) -> list[Redundancy]:
    """Clusters of 2+ shoes that share a run type and feel alike."""
    groups: dict[RunType, list[CurrentShoe]] = {}
    for current in current_shoes:
        if current.shoe_id not in records:
            continue
        for run_type in current.run_types:
            groups.setdefault(run_type, []).append(current)

    redundancies: list[Redundancy] = []
    seen_clusters: set[tuple[str, ...]] = set()

    for run_type in RunType:
        shoes = groups.get(run_type, [])
        if len(shoes) < 2:
            continue

        clustered: set[str] = set()
        for i, anchor in enumerate(shoes):
            if anchor.shoe_id in clustered:
                continue
            cluster = [anchor]
            for other in shoes[i + 1:]:
                if other.shoe_id in clustered or other.shoe_id == anchor.shoe_id:
                    continue
                if all(_similar_feel(records[s.shoe_id], records[other.shoe_id]) for s in cluster):
                    cluster.append(other)

            if len(cluster) < 2:
                continue

            clustered.update(s.shoe_id for s in cluster)
            key = tuple(sorted(s.shoe_id for s in cluster))
            if key in seen_clusters:
                continue
            seen_clusters.add(key)

            overlapping = [
                rt for rt in RunType
                if all(rt in s.run_types for s in cluster)
            ]
            redundancies.append(Redundancy(shoe_ids=[s.shoe_id for s in cluster], overlapping_run_types=overlapping))

    return redundancies


def build_contrast_profile(shoes: Sequence[ShoeRecord]) -> ContrastProfile:
    if not shoes:
        return ContrastProfile()
    averages = {}
    for name, attr in FEEL_DIMENSIONS.items():
        total = sum(getattr(s, attr) for s in shoes)
        # round half up
        averages[name] = int(total / len(shoes) + 0.5)
    return ContrastProfile(**averages)


def analyze_rotation(
    current_shoes: Sequence[CurrentShoe],
    profile: RunnerProfile,
    catalogue: Sequence[ShoeRecord],
) -> RotationAnalysis:
    """Analyze the runner's current rotation. No side effects."""
    expected = expected_archetypes(profile)
    expected_run_types = [_ARCHETYPE_RUN_TYPE[a] for a in expected]

    if not current_shoes:
        return RotationAnalysis(
            uncovered_run_types=expected_run_types,
            missing_archetypes=expected,
        )

    records = {s.shoe_id: s for s in catalogue}
    owned = [records[c.shoe_id] for c in current_shoes if c.shoe_id in records]

    unknown = [c.shoe_id for c in current_shoes if c.shoe_id not in records]
    if unknown:
        logger.warning(f"Rotation references shoes missing from catalogue: {unknown}")

    covered_run_types = [rt for rt in RunType if any(rt in c.run_types for c in current_shoes)]
    covered_archetypes = [a for a in Archetype if any(s.has_archetype(a) for s in owned)]

    usage = []
    for current in current_shoes:
        shoe = records.get(current.shoe_id)
        if not shoe:
            continue
        level, message = detect_misuse(current.run_types, shoe)
        usage.append(ShoeUsage(
            shoe=shoe,
            run_types=list(current.run_types),
            archetypes=shoe.archetypes,
            misuse_level=level,
            misuse_message=message,
        ))

    return RotationAnalysis(
        covered_run_types=covered_run_types,
        uncovered_run_types=[rt for rt in expected_run_types if rt not in covered_run_types],
        covered_archetypes=covered_archetypes,
        missing_archetypes=[a for a in expected if a not in covered_archetypes],
        redundancies=find_redundancies(current_shoes, records),
        all_shoes_loved=all(c.sentiment == Sentiment.LOVE for c in current_shoes),
        has_disliked_shoes=any(c.sentiment == Sentiment.DISLIKE for c in current_shoes),
        has_near_replacement_shoes=any(c.lifecycle == Lifecycle.NEAR_REPLACEMENT for c in current_shoes),
        shoe_usage=usage,
        contrast_profile=build_contrast_profile(owned),
    )


def suitable_archetype_owned(run_type: RunType, owned: Sequence[ShoeRecord]) -> bool:
    """Whether any owned shoe carries an archetype suited to this run type."""
    suitable = RUN_TYPE_ARCHETYPES[run_type]
    return any(shoe.has_archetype(a) for shoe in owned for a in suitable)
