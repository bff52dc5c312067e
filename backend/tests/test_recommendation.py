import asyncio

import pytest

from shoe_matcher.core.exceptions import InsufficientCandidatesError
from shoe_matcher.models.catalog import Archetype, heel_drop_distance
from shoe_matcher.models.recommendation import Badge, Gap, Position, RecommendedShoe
from shoe_matcher.models.runner import CurrentShoe, ExplicitPreference, FeelPreferences
from shoe_matcher.services.catalogue import owned_records
from shoe_matcher.services.recommendation import (
    RecommendationService, assign_badge, build_constraints_from_gap, build_discovery_constraints,
    build_discovery_reasoning, build_summary, layout_positions, stability_need_for,
)
from shoe_matcher.services.scoring import ScoringEngine


def _gap(archetype, gap_type="coverage", severity="high", **fields):
    return Gap(
        type=gap_type,
        severity=severity,
        reasoning="Your rotation needs another shoe.",
        recommended_archetype=archetype,
        **fields,
    )


def _recommend(gap, profile, catalogue, describer, current=(), feel=None):
    feel = feel or FeelPreferences()
    current = list(current)
    constraints = build_constraints_from_gap(
        gap, profile, current, owned_records(current, catalogue), feel,
    )
    service = RecommendationService(ScoringEngine(), describer)
    return asyncio.run(service.recommend_for_gap(gap, constraints, catalogue, feel))


# ============================================================================
# GAP RECOMMENDATIONS
# ============================================================================

def test_gap_yields_three_positioned_shoes(catalogue, beginner, offline_describer):
    recs = _recommend(_gap(Archetype.DAILY_TRAINER), beginner, catalogue, offline_describer)
    assert len(recs) == 3
    assert [r.position for r in recs] == [Position.LEFT, Position.CENTER, Position.RIGHT]
    assert len({r.shoe_id for r in recs}) == 3
    badges = {r.position: r.badge for r in recs}
    assert badges[Position.CENTER] == Badge.CLOSEST_MATCH
    assert badges[Position.LEFT] == Badge.CLOSE_MATCH
    assert badges[Position.RIGHT] == Badge.TRADE_OFF
    for rec in recs:
        assert rec.match_reason
        assert 1 <= len(rec.key_strengths) <= 3
        assert len(rec.trade_offs) <= 2


def test_owned_shoes_are_never_recommended(catalogue, intermediate, offline_describer):
    current = [
        CurrentShoe(shoe_id="shoe_0001", run_types=["all_runs"]),
        CurrentShoe(shoe_id="shoe_0003", run_types=["long_runs"]),
    ]
    recs = _recommend(_gap(Archetype.DAILY_TRAINER), intermediate, catalogue, offline_describer, current)
    assert not {"shoe_0001", "shoe_0003"} & {r.shoe_id for r in recs}


def test_trail_gap_only_returns_trail_shoes(catalogue, intermediate, offline_describer):
    recs = _recommend(_gap(Archetype.TRAIL_SHOE), intermediate, catalogue, offline_describer)
    assert all(Archetype.TRAIL_SHOE in r.archetypes for r in recs)


def test_road_gap_never_returns_trail_only_shoes(catalogue, intermediate, offline_describer):
    recs = _recommend(_gap(Archetype.DAILY_TRAINER), intermediate, catalogue, offline_describer)
    assert all(r.archetypes != [Archetype.TRAIL_SHOE] for r in recs)


def test_beginner_race_request_has_no_carbon(catalogue, beginner, offline_describer):
    recs = _recommend(_gap(Archetype.RACE_SHOE, severity="medium"), beginner, catalogue, offline_describer)
    assert len(recs) == 3
    assert not any(r.has_plate and (r.plate_material or "").lower() == "carbon" for r in recs)


def test_far_heel_drop_is_marked_trade_off(catalogue, intermediate, offline_describer):
    feel = FeelPreferences(heel_drop=["0mm"])
    recs = _recommend(_gap(Archetype.DAILY_TRAINER), intermediate, catalogue, offline_describer, feel=feel)
    for rec in recs:
        if heel_drop_distance(rec.heel_drop_mm, ["0mm"]) >= 2:
            assert rec.badge == Badge.TRADE_OFF


def test_too_few_candidates_raises(make_shoe, intermediate, offline_describer):
    shoes = [
        make_shoe("t1", is_daily_trainer=False, is_trail_shoe=True, surface="trail"),
        make_shoe("t2", is_daily_trainer=False, is_trail_shoe=True, surface="trail"),
        make_shoe("road"),
    ]
    with pytest.raises(InsufficientCandidatesError) as exc:
        _recommend(_gap(Archetype.TRAIL_SHOE), intermediate, shoes, offline_describer)
    assert exc.value.found == 2
    assert "trail shoe" in str(exc.value)


def test_category_returns_up_to_three(engine, catalogue, intermediate, offline_describer):
    feel = FeelPreferences(cushion=5)
    constraints = build_discovery_constraints(Archetype.RECOVERY_SHOE, intermediate, [], [], feel)
    service = RecommendationService(engine, offline_describer)
    recs = asyncio.run(service.recommend_for_category(Archetype.RECOVERY_SHOE, constraints, catalogue, feel))
    assert 1 <= len(recs) <= 3
    assert any(r.position == Position.CENTER and r.badge == Badge.CLOSEST_MATCH for r in recs)


# ============================================================================
# CONSTRAINT BUILDING
# ============================================================================

def test_performance_gap_targets_fast_shoes(racer):
    gap = _gap(Archetype.RACE_SHOE, gap_type="performance")
    constraints = build_constraints_from_gap(gap, racer, [], [], FeelPreferences())
    assert constraints.archetypes == [Archetype.WORKOUT_SHOE, Archetype.RACE_SHOE]
    assert constraints.archetype_context == Archetype.RACE_SHOE
    assert constraints.feel_preferences.bounce == ExplicitPreference(value=4)


def test_recovery_gap_keeps_runner_choices(intermediate):
    gap = _gap(Archetype.RECOVERY_SHOE, gap_type="recovery")
    feel = FeelPreferences(cushion=3)
    constraints = build_constraints_from_gap(gap, intermediate, [], [], feel)
    assert constraints.archetypes == [Archetype.RECOVERY_SHOE, Archetype.DAILY_TRAINER]
    assert constraints.feel_preferences.cushion == ExplicitPreference(value=3)
    assert constraints.feel_preferences.stability == ExplicitPreference(value=4)
    # The engine's stability target does not count as a runner request
    assert constraints.stability_need is None


@pytest.mark.parametrize("gap_type", ["performance", "recovery"])
def test_trail_target_survives_gap_type(gap_type, catalogue, intermediate, offline_describer):
    gap = _gap(Archetype.TRAIL_SHOE, gap_type=gap_type)
    constraints = build_constraints_from_gap(gap, intermediate, [], [], FeelPreferences())
    assert constraints.archetypes == [Archetype.TRAIL_SHOE]
    assert constraints.archetype_context == Archetype.TRAIL_SHOE

    recs = _recommend(gap, intermediate, catalogue, offline_describer)
    assert len(recs) == 3
    assert all(Archetype.TRAIL_SHOE in r.archetypes for r in recs)


def test_road_gap_target_is_kept_in_categories(intermediate):
    gap = _gap(Archetype.DAILY_TRAINER, gap_type="performance")
    constraints = build_constraints_from_gap(gap, intermediate, [], [], FeelPreferences())
    assert constraints.archetypes == [Archetype.WORKOUT_SHOE, Archetype.RACE_SHOE, Archetype.DAILY_TRAINER]


def test_contrast_profile_only_for_exploration(intermediate):
    contrast = {"cushion": 3}
    plain = build_constraints_from_gap(
        _gap(Archetype.DAILY_TRAINER), intermediate, [], [], FeelPreferences(), contrast_profile=contrast,
    )
    explore = build_constraints_from_gap(
        _gap(Archetype.DAILY_TRAINER, gap_type="redundancy", severity="low", tier=3),
        intermediate, [], [], FeelPreferences(), contrast_profile=contrast,
    )
    assert plain.contrast_profile is None
    assert explore.contrast_profile == contrast


def test_stability_need_from_preferences():
    assert stability_need_for(None, "stability_only") == "stability"
    assert stability_need_for(FeelPreferences(stability=4), "no_preference") == "stable_feel"
    assert stability_need_for(FeelPreferences(stability=2), "no_preference") is None


# ============================================================================
# BADGES, LAYOUT, TEXT
# ============================================================================

def test_layout_keeps_top_pick_centered():
    assert layout_positions(1) == [Position.CENTER]
    assert layout_positions(2) == [Position.CENTER, Position.LEFT]
    assert layout_positions(3) == [Position.CENTER, Position.LEFT, Position.RIGHT]


def test_badges_by_rank(make_shoe):
    shoe = make_shoe("a", heel_drop_mm=8)
    assert assign_badge(shoe, 0, None) == Badge.CLOSEST_MATCH
    assert assign_badge(shoe, 1, None) == Badge.CLOSE_MATCH
    assert assign_badge(shoe, 2, None) == Badge.TRADE_OFF
    assert assign_badge(shoe, 0, FeelPreferences(heel_drop=["9-12mm"])) == Badge.CLOSEST_MATCH
    assert assign_badge(shoe, 0, FeelPreferences(heel_drop=["0mm"])) == Badge.TRADE_OFF


def test_summary_mentions_trade_off_pick(make_shoe):
    def rec(shoe_id, badge, position, trade_offs=()):
        return RecommendedShoe.from_record(
            make_shoe(shoe_id, brand="Acme", full_name=f"Acme {shoe_id}"),
            badge=badge, position=position, score=50, match_reason=["x"],
            key_strengths=["y"], trade_offs=list(trade_offs),
        )

    recs = [
        rec("a", Badge.CLOSE_MATCH, Position.LEFT),
        rec("b", Badge.CLOSEST_MATCH, Position.CENTER),
        rec("c", Badge.TRADE_OFF, Position.RIGHT, ["Firmer ride than softer alternatives"]),
    ]
    summary = build_summary(_gap(Archetype.DAILY_TRAINER), recs)
    assert summary.startswith("Your rotation needs another shoe.")
    assert "3 shoes to cover daily trainer from Acme" in summary
    assert "Note: Acme c takes a different approach but firmer ride than softer alternatives." in summary


def test_discovery_reasoning_describes_preferences():
    feel = FeelPreferences(cushion=5, bounce=2, stability={"mode": "ignore"})
    assert build_discovery_reasoning(Archetype.RECOVERY_SHOE, feel) == (
        "Based on your preference for a recovery shoe with max cushion, damped response, and flexible platform."
    )
