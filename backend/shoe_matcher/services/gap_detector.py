"""
Primary gap identification.

Candidate gaps are checked in ladder order:
    misuse > coverage > performance > recovery > redundancy
The first high-severity candidate wins, then the first medium, then the
first low. When nothing applies the rotation gets an exploration gap.
"""

import logging
from typing import Optional, Sequence

from shoe_matcher.models.catalog import (
    Archetype, RunType, ShoeRecord, DEFAULT_ARCHETYPE, RUN_TYPE_ARCHETYPES,
)
from shoe_matcher.models.recommendation import Gap, GapType, Severity
from shoe_matcher.models.runner import (
    CurrentShoe, ExperienceLevel, PrimaryGoal, RunnerProfile, RunningPattern, TrailPreference,
)
from shoe_matcher.services.catalogue import owned_records
from shoe_matcher.services.rotation_analyzer import RotationAnalysis, suitable_archetype_owned

logger = logging.getLogger(__name__)

# Lower number = more urgent
RUN_TYPE_PRIORITY = {
    RunType.ALL_RUNS: 1,
    RunType.WORKOUTS: 2,
    RunType.RACES: 3,
    RunType.LONG_RUNS: 4,
    RunType.RECOVERY: 5,
    RunType.TRAIL: 6,
}

COVERAGE_MESSAGES = {
    RunType.ALL_RUNS: "You don't have a versatile daily trainer. One would handle the bulk of your miles.",
    RunType.RECOVERY: "Nothing in your rotation is built for easy days. A cushioned recovery shoe would help your legs absorb the load.",
    RunType.LONG_RUNS: "Your long runs lack a shoe that stays comfortable deep into the distance.",
    RunType.WORKOUTS: "You're running workouts without a responsive shoe. A workout shoe would make faster sessions feel snappier.",
    RunType.RACES: "You race without a dedicated race shoe. A lighter, plated option would help on race day.",
    RunType.TRAIL: "You're heading onto trails without grip or protection. A trail shoe would keep you secure underfoot.",
}

# Weekly volume in km above which shoe count matters
VOLUME_BOOST_KM = 50
VOLUME_NOTE_KM = 70

EXPLORATION_REASONING = (
    "Your rotation covers the basics well. Trying something with a different feel "
    "could add variety to your training."
)


def _owns(owned: Sequence[ShoeRecord], archetype: Archetype) -> bool:
    return any(shoe.has_archetype(archetype) for shoe in owned)


# ============================================================================
# LADDER STEPS
# ============================================================================

def check_misuse(current_shoes: Sequence[CurrentShoe], catalogue: Sequence[ShoeRecord]) -> Optional[Gap]:
    records = {s.shoe_id: s for s in catalogue}

    for current in current_shoes:
        shoe = records.get(current.shoe_id)
        if not shoe:
            continue

        for run_type in current.run_types:
            if (
                shoe.has_archetype(Archetype.RACE_SHOE)
                and not shoe.has_archetype(Archetype.DAILY_TRAINER)
                and run_type in (RunType.RECOVERY, RunType.ALL_RUNS)
            ):
                what = "all your runs" if run_type == RunType.ALL_RUNS else "easy runs"
                return Gap(
                    type=GapType.MISUSE,
                    severity=Severity.HIGH,
                    reasoning=f"Your {shoe.full_name} is a race shoe. Using it for {what} wears it out without the benefit.",
                    run_type=run_type,
                    recommended_archetype=Archetype.DAILY_TRAINER,
                )

            if (
                shoe.has_archetype(Archetype.RECOVERY_SHOE)
                and not shoe.has_archetype(Archetype.WORKOUT_SHOE)
                and not shoe.has_archetype(Archetype.RACE_SHOE)
                and run_type in (RunType.WORKOUTS, RunType.RACES)
            ):
                feel = "slow on race day" if run_type == RunType.RACES else "sluggish during speed work"
                return Gap(
                    type=GapType.MISUSE,
                    severity=Severity.HIGH,
                    reasoning=f"Your {shoe.full_name} is built for easy days. It will feel {feel}.",
                    run_type=run_type,
                    recommended_archetype=(
                        Archetype.RACE_SHOE if run_type == RunType.RACES else Archetype.WORKOUT_SHOE
                    ),
                )

            if (
                shoe.is_trail_only
                and run_type == RunType.RACES
                and RunType.TRAIL not in current.run_types
            ):
                return Gap(
                    type=GapType.MISUSE,
                    severity=Severity.HIGH,
                    reasoning=f"Your {shoe.full_name} is a trail shoe. Its lugs work against you in road races.",
                    run_type=run_type,
                    recommended_archetype=Archetype.RACE_SHOE,
                )

            if (
                shoe.has_archetype(Archetype.RACE_SHOE)
                and not shoe.is_trail_shoe
                and run_type == RunType.TRAIL
            ):
                return Gap(
                    type=GapType.MISUSE,
                    severity=Severity.HIGH,
                    reasoning=f"Your {shoe.full_name} is a road racer. It has neither the grip nor the protection for trails.",
                    run_type=run_type,
                    recommended_archetype=Archetype.TRAIL_SHOE,
                )

    return None


def check_coverage(
    profile: RunnerProfile,
    current_shoes: Sequence[CurrentShoe],
    owned: Sequence[ShoeRecord],
) -> Optional[Gap]:
    required = {rt for c in current_shoes for rt in c.run_types}
    if profile.trail_running == TrailPreference.MOST_OR_ALL:
        required.add(RunType.TRAIL)

    uncovered = [rt for rt in required if not suitable_archetype_owned(rt, owned)]
    if not uncovered:
        return None

    run_type = sorted(uncovered, key=lambda rt: RUN_TYPE_PRIORITY[rt])[0]
    goal = profile.primary_goal

    severity = Severity.MEDIUM
    if run_type == RunType.ALL_RUNS and not current_shoes:
        severity = Severity.HIGH
    elif run_type == RunType.WORKOUTS and goal in (PrimaryGoal.GET_FASTER, PrimaryGoal.RACE_TRAINING):
        severity = Severity.HIGH
    elif run_type == RunType.RACES and goal == PrimaryGoal.RACE_TRAINING:
        severity = Severity.HIGH
    elif run_type == RunType.TRAIL and profile.trail_running == TrailPreference.MOST_OR_ALL:
        severity = Severity.HIGH

    return Gap(
        type=GapType.COVERAGE,
        severity=severity,
        reasoning=COVERAGE_MESSAGES[run_type],
        run_type=run_type,
        recommended_archetype=RUN_TYPE_ARCHETYPES[run_type][0],
    )


def check_performance(profile: RunnerProfile, owned: Sequence[ShoeRecord]) -> Optional[Gap]:
    focused = (
        profile.primary_goal in (PrimaryGoal.GET_FASTER, PrimaryGoal.RACE_TRAINING)
        or profile.experience == ExperienceLevel.COMPETITIVE
    )
    if not focused:
        return None

    has_workout = _owns(owned, Archetype.WORKOUT_SHOE)
    has_race = _owns(owned, Archetype.RACE_SHOE)

    if not has_workout and not has_race:
        focus = "racing" if profile.primary_goal == PrimaryGoal.RACE_TRAINING else "improving pace"
        return Gap(
            type=GapType.PERFORMANCE,
            severity=Severity.HIGH,
            reasoning=(
                f"You're focused on {focus} but your rotation lacks a responsive shoe for "
                "faster work. A workout shoe would unlock your speed training."
            ),
            recommended_archetype=Archetype.WORKOUT_SHOE,
        )

    if profile.primary_goal == PrimaryGoal.RACE_TRAINING and not has_race:
        return Gap(
            type=GapType.PERFORMANCE,
            severity=Severity.MEDIUM,
            reasoning="Your workouts are covered, but a dedicated race shoe would help you get the most out of race day.",
            recommended_archetype=Archetype.RACE_SHOE,
        )

    return None


def check_recovery(profile: RunnerProfile, owned: Sequence[ShoeRecord]) -> Optional[Gap]:
    needs_recovery = (
        profile.running_pattern in (
            RunningPattern.STRUCTURED_TRAINING,
            RunningPattern.WORKOUT_FOCUSED,
            RunningPattern.MOSTLY_EASY,
        )
        or profile.primary_goal == PrimaryGoal.INJURY_COMEBACK
    )
    if not needs_recovery or _owns(owned, Archetype.RECOVERY_SHOE):
        return None

    heavy_load = (
        profile.running_pattern == RunningPattern.STRUCTURED_TRAINING
        or profile.primary_goal == PrimaryGoal.INJURY_COMEBACK
    )
    if heavy_load:
        return Gap(
            type=GapType.RECOVERY,
            severity=Severity.HIGH,
            reasoning=(
                "Your training load calls for a protective, cushioned shoe for easy days "
                "and recovery runs. It will help you absorb the work and stay healthy."
            ),
            recommended_archetype=Archetype.RECOVERY_SHOE,
        )

    return Gap(
        type=GapType.RECOVERY,
        severity=Severity.MEDIUM,
        reasoning="A cushioned recovery shoe would help your legs bounce back between harder efforts.",
        recommended_archetype=Archetype.RECOVERY_SHOE,
    )


def check_redundancy(analysis: RotationAnalysis) -> Optional[Gap]:
    if not analysis.redundancies or not analysis.missing_archetypes:
        return None

    redundancy = analysis.redundancies[0]
    missing = analysis.missing_archetypes[0]
    label = missing.value.replace("_", " ")

    return Gap(
        type=GapType.REDUNDANCY,
        severity=Severity.LOW,
        reasoning=(
            f"You have {len(redundancy.shoe_ids)} shoes that feel alike but nothing as a {label}. "
            "Swapping one of them would add range to your rotation."
        ),
        recommended_archetype=missing,
        redundant_shoe_ids=list(redundancy.shoe_ids),
    )


def exploration_gap() -> Gap:
    return Gap(
        type=GapType.COVERAGE,
        severity=Severity.LOW,
        reasoning=EXPLORATION_REASONING,
        recommended_archetype=DEFAULT_ARCHETYPE,
        tier=3,
    )


# ============================================================================
# VOLUME ESCALATION
# ============================================================================

def _volume_context(profile: RunnerProfile, shoe_count: int) -> tuple[Optional[str], bool]:
    """Returns (sentence to append, whether to bump severity to high)."""
    volume = profile.weekly_volume
    if not volume:
        return None, False

    amount = f"{volume.value:g}{volume.unit}/week"
    if volume.km >= VOLUME_BOOST_KM and shoe_count < 2:
        return (
            f"At {amount} on a single shoe, adding this would also spread the load and help prevent injury.",
            True,
        )
    if volume.km >= VOLUME_NOTE_KM and shoe_count < 3:
        return f"At {amount}, another shoe would help spread the load across your training.", False
    return None, False


def _apply_volume(gap: Gap, profile: RunnerProfile, shoe_count: int) -> Gap:
    sentence, boost = _volume_context(profile, shoe_count)
    if not sentence:
        return gap

    update = {"reasoning": f"{gap.reasoning} {sentence}"}
    if boost and gap.severity != Severity.HIGH:
        update["severity"] = Severity.HIGH
        update["tier"] = 1
    return gap.model_copy(update=update)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def identify_primary_gap(
    analysis: RotationAnalysis,
    profile: RunnerProfile,
    current_shoes: Sequence[CurrentShoe],
    catalogue: Sequence[ShoeRecord],
) -> Gap:
    """Pick the single most important gap in the rotation. Deterministic."""
    if not current_shoes:
        gap = Gap(
            type=GapType.COVERAGE,
            severity=Severity.HIGH,
            reasoning=(
                "A versatile daily trainer is the best place to start your rotation. "
                "It will be your go-to shoe for most runs."
            ),
            run_type=RunType.ALL_RUNS,
            recommended_archetype=DEFAULT_ARCHETYPE,
        )
        return _apply_volume(gap, profile, 0)

    owned = owned_records(current_shoes, catalogue)

    candidates = [
        check_misuse(current_shoes, catalogue),
        check_coverage(profile, current_shoes, owned),
        check_performance(profile, owned),
        check_recovery(profile, owned),
        check_redundancy(analysis),
    ]
    candidates = [c for c in candidates if c is not None]

    chosen = None
    for severity in (Severity.HIGH, Severity.MEDIUM, Severity.LOW):
        chosen = next((c for c in candidates if c.severity == severity), None)
        if chosen:
            break

    if chosen is None:
        chosen = exploration_gap()

    gap = _apply_volume(chosen, profile, len(current_shoes))
    logger.info(f"Primary gap: {gap.type.value}/{gap.severity.value} -> {gap.recommended_archetype.value}")
    return gap
