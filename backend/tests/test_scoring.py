from dataclasses import replace

import pytest

from shoe_matcher.models.catalog import Archetype
from shoe_matcher.models.runner import (
    ContextSignals, CurrentShoe, FeelPreferences, RunnerProfile,
)
from shoe_matcher.services.scoring import (
    RetrievalConstraints, ScoredCandidate, ScoringEngine, five_k_equivalent, sort_candidates,
)
from shoe_matcher.services.scoring_tables import DEFAULT_TABLES


def _constraints(**overrides) -> RetrievalConstraints:
    fields = {"archetypes": [Archetype.DAILY_TRAINER]}
    fields.update(overrides)
    return RetrievalConstraints(**fields)


# ============================================================================
# HARD FILTERS
# ============================================================================

def test_excluded_ids_never_pass(engine, make_shoe):
    shoe = make_shoe("owned")
    assert not engine.passes_hard_filters(shoe, _constraints(exclude_ids=frozenset({"owned"})))


def test_brand_include_and_exclude_are_case_insensitive(engine, make_shoe):
    shoe = make_shoe("a", brand="Hoka")
    include = RunnerProfile(
        experience="intermediate", primary_goal="general_fitness",
        brand_preference={"mode": "include", "brands": ["hoka"]},
    )
    exclude = RunnerProfile(
        experience="intermediate", primary_goal="general_fitness",
        brand_preference={"mode": "exclude", "brands": ["HOKA"]},
    )
    assert engine.passes_hard_filters(shoe, _constraints(profile=include))
    assert not engine.passes_hard_filters(shoe, _constraints(profile=exclude))


def test_trail_requests_need_trail_flag(engine, make_shoe):
    road = make_shoe("road")
    hybrid = make_shoe("hybrid", is_trail_shoe=True)
    trail = _constraints(archetypes=[Archetype.TRAIL_SHOE])
    assert not engine.passes_hard_filters(road, trail)
    assert engine.passes_hard_filters(hybrid, trail)


def test_road_requests_exclude_trail_only_shoes(engine, make_shoe):
    trail_only = make_shoe("t", is_daily_trainer=False, is_trail_shoe=True)
    hybrid = make_shoe("h", is_trail_shoe=True)
    assert not engine.passes_hard_filters(trail_only, _constraints())
    assert engine.passes_hard_filters(hybrid, _constraints())


def test_beginners_never_get_carbon(engine, make_shoe, beginner):
    carbon = make_shoe("c", is_race_shoe=True, has_plate=True, plate_material="carbon")
    nylon = make_shoe("n", is_race_shoe=True, has_plate=True, plate_material="nylon")
    constraints = _constraints(archetypes=[Archetype.RACE_SHOE], profile=beginner)
    assert not engine.passes_hard_filters(carbon, constraints)
    assert engine.passes_hard_filters(nylon, constraints)


def test_super_trainer_stands_in_for_daily(engine, make_shoe):
    super_trainer = make_shoe("s", is_daily_trainer=False, is_workout_shoe=False, is_super_trainer=True)
    assert engine.passes_hard_filters(super_trainer, _constraints())
    assert not engine.passes_hard_filters(super_trainer, _constraints(archetypes=[Archetype.RACE_SHOE]))


def test_neutral_only_drops_stability_shoes(engine, make_shoe):
    posted = make_shoe("p", support_type="stability")
    assert not engine.passes_hard_filters(posted, _constraints(stability_preference="neutral_only"))
    assert engine.passes_hard_filters(posted, _constraints())


# ============================================================================
# SOFT SCORING
# ============================================================================

def test_explicit_cushion_penalises_distance_steeply(engine, make_shoe):
    feel = FeelPreferences(cushion={"mode": "explicit", "value": 5})
    constraints = _constraints(feel_preferences=feel)
    soft = make_shoe("soft", cushion_softness_1to5=5)
    firm = make_shoe("firm", cushion_softness_1to5=1)
    _, soft_scores = engine.calculate_match_score(soft, constraints)
    _, firm_scores = engine.calculate_match_score(firm, constraints)
    assert soft_scores["feel"] - firm_scores["feel"] >= 25


def test_ignored_dimensions_contribute_nothing(engine, make_shoe):
    feel = FeelPreferences(**{d: {"mode": "ignore"} for d in ("cushion", "stability", "bounce", "rocker", "ground_feel")})
    _, scores = engine.calculate_match_score(make_shoe("x", cushion_softness_1to5=1), _constraints(feel_preferences=feel))
    assert scores["feel"] == 0


def test_decide_scores_flat_inside_archetype_range(engine, make_shoe):
    constraints = _constraints(feel_preferences=FeelPreferences())
    a = make_shoe("a", cushion_softness_1to5=2)
    b = make_shoe("b", cushion_softness_1to5=4)
    assert engine.calculate_match_score(a, constraints)[1]["feel"] == engine.calculate_match_score(b, constraints)[1]["feel"]


def test_heel_drop_uses_best_selected_bucket(engine, make_shoe):
    feel = FeelPreferences(heel_drop={"mode": "explicit", "buckets": ["0mm", "9-12mm"]})
    constraints = _constraints(feel_preferences=feel)
    _, scores = engine.calculate_match_score(make_shoe("x", heel_drop_mm=10), constraints)
    assert scores["heel_drop"] == 30


def test_category_points_are_capped(engine, make_shoe):
    shoe = make_shoe("x", is_workout_shoe=True, is_race_shoe=True, is_recovery_shoe=True)
    constraints = _constraints(archetypes=list(Archetype)[:4])
    _, scores = engine.calculate_match_score(shoe, constraints)
    assert scores["category"] == DEFAULT_TABLES.category_cap


def test_stability_need_rewards_stability_support(engine, make_shoe):
    posted = make_shoe("p", support_type="stability")
    _, scores = engine.calculate_match_score(posted, _constraints(stability_need="stability"))
    assert scores["stability"] == 15


def test_disliked_model_line_is_penalised(engine, make_shoe):
    owned = make_shoe("old", brand="Nike", model="Pegasus", version="40")
    newer = make_shoe("new", brand="Nike", model="Pegasus", version="41")
    constraints = _constraints(
        current_shoes=[CurrentShoe(shoe_id="old", run_types=["all_runs"], sentiment="dislike")],
        owned_shoes=[owned],
    )
    _, scores = engine.calculate_match_score(newer, constraints)
    assert scores["sentiment"] == -15


def test_sentiment_is_bounded(engine, make_shoe):
    shoe = make_shoe(
        "x", bounce_1to5=5, cushion_softness_1to5=5, weight_g=200, stability_1to5=5,
        rocker_1to5=5, has_plate=True, wet_grip="excellent",
    )
    loved = CurrentShoe(
        shoe_id="other", run_types=["all_runs"], sentiment="love",
        love_tags=["bouncy", "soft_cushion", "lightweight", "stable", "smooth_rocker", "fast_feeling"],
    )
    _, scores = engine.calculate_match_score(shoe, _constraints(current_shoes=[loved]))
    assert scores["sentiment"] == DEFAULT_TABLES.sentiment_bounds[1]


def test_context_signals_shift_score(engine, make_shoe):
    context = ContextSignals(
        injuries=[{"injury": "achilles"}],
        climate="wet",
    )
    low_drop = make_shoe("low", heel_drop_mm=0, wet_grip="poor")
    high_drop = make_shoe("high", heel_drop_mm=10, wet_grip="excellent")
    low = engine.calculate_match_score(low_drop, _constraints(context=context))[1]["context"]
    high = engine.calculate_match_score(high_drop, _constraints(context=context))[1]["context"]
    assert low == -13
    assert high == 11


def test_contrast_bonus_rewards_different_feel(engine, make_shoe):
    contrast = {"cushion": 3, "bounce": 3}
    different = make_shoe("d", cushion_softness_1to5=5, bounce_1to5=5)
    alike = make_shoe("a")
    assert engine.calculate_match_score(different, _constraints(contrast_profile=contrast))[1]["contrast"] == 10
    assert engine.calculate_match_score(alike, _constraints(contrast_profile=contrast))[1]["contrast"] == 0


def test_final_score_is_floored_at_zero(make_shoe):
    harsh = replace(DEFAULT_TABLES, availability_points={}, category_points={})
    engine = ScoringEngine(harsh)
    feel = FeelPreferences(cushion={"mode": "explicit", "value": 5})
    score, _ = engine.calculate_match_score(make_shoe("x", cushion_softness_1to5=1), _constraints(feel_preferences=feel))
    assert score == 0


def test_scoring_is_deterministic(engine, catalogue, racer):
    constraints = _constraints(profile=racer, feel_preferences=FeelPreferences())
    first = [engine.calculate_match_score(s, constraints) for s in catalogue]
    second = [engine.calculate_match_score(s, constraints) for s in catalogue]
    assert first == second


# ============================================================================
# ORDERING AND PACE
# ============================================================================

def test_ties_break_by_ascending_id(make_shoe):
    candidates = [
        ScoredCandidate(shoe=make_shoe("b"), score=80, breakdown={}),
        ScoredCandidate(shoe=make_shoe("c"), score=60, breakdown={}),
        ScoredCandidate(shoe=make_shoe("a"), score=80, breakdown={}),
    ]
    assert [c.shoe_id for c in sort_candidates(candidates)] == ["a", "b", "c"]


def test_riegel_conversion_of_marathon():
    assert five_k_equivalent("marathon", 180, 1.06) == pytest.approx(180 * (5 / 42.195) ** 1.06)


@pytest.mark.parametrize("distance,minutes,bucket", [
    ("5k", 17, "elite"),
    ("10k", 40, "fast"),
    ("half", 110, "moderate"),
    ("marathon", 300, "relaxed"),
])
def test_pace_buckets(engine, distance, minutes, bucket):
    profile = RunnerProfile(
        experience="intermediate", primary_goal="general_fitness",
        race_time={"distance": distance, "time_minutes": minutes},
    )
    assert engine.pace_bucket(profile) == bucket


# ============================================================================
# RUNNER PROFILE
# ============================================================================

def _profile(**overrides) -> RunnerProfile:
    fields = {"experience": "intermediate", "primary_goal": "general_fitness"}
    fields.update(overrides)
    return RunnerProfile(**fields)


@pytest.mark.parametrize("profile_fields,shoe_fields,expected", [
    # Heavier runners on firm foam
    ({"height": {"value": 170}, "weight": {"value": 95}}, {"cushion_softness_1to5": 2}, -10),
    ({"height": {"value": 170}, "weight": {"value": 78}}, {"cushion_softness_1to5": 2}, -5),
    # Fast runners on plated workout shoes
    ({"race_time": {"distance": "10k", "time_minutes": 40}}, {"is_workout_shoe": True, "has_plate": True}, 8),
    (
        {"race_time": {"distance": "marathon", "time_minutes": 300}},
        {"is_race_shoe": True, "has_plate": True, "plate_material": "carbon"},
        -6,
    ),
    ({"foot_strike": "heel"}, {"heel_drop_mm": 10}, 5),
    ({"foot_strike": "heel"}, {"heel_drop_mm": 2}, -5),
    ({"foot_strike": "forefoot"}, {"heel_drop_mm": 4}, 5),
    ({"foot_strike": "forefoot"}, {"heel_drop_mm": 12}, -3),
    ({"foot_strike": "midfoot"}, {"heel_drop_mm": 6}, 3),
    ({"primary_goal": "injury_comeback"}, {"stability_1to5": 2}, -6),
    ({"trail_running": "most_or_all"}, {"is_trail_shoe": True, "wet_grip": "excellent", "stability_1to5": 4}, 6),
    ({}, {}, 0),
])
def test_profile_modifiers(engine, make_shoe, profile_fields, shoe_fields, expected):
    shoe = make_shoe("x", **shoe_fields)
    _, scores = engine.calculate_match_score(shoe, _constraints(profile=_profile(**profile_fields)))
    assert scores["profile"] == expected


def test_profile_points_come_from_tables(make_shoe):
    points = dict(DEFAULT_TABLES.profile_points, heel_strike_high_drop=12)
    engine = ScoringEngine(replace(DEFAULT_TABLES, profile_points=points))
    _, scores = engine.calculate_match_score(make_shoe("x", heel_drop_mm=10), _constraints(profile=_profile(foot_strike="heel")))
    assert scores["profile"] == 12


# ============================================================================
# PAST SHOE MENTIONS
# ============================================================================

@pytest.mark.parametrize("past,expected", [
    ({"brand": "Nike", "model": "Zoom Fly", "sentiment": "loved"}, 8),
    ({"brand": "Nike", "model": "Fly", "sentiment": "loved"}, 8),
    ({"brand": "Nike", "model": "Zoom", "sentiment": "hated"}, -12),
    # Partial words are not model mentions, only the brand counts
    ({"brand": "Nike", "model": "Zoo", "sentiment": "loved"}, 3),
    ({"brand": "Adidas", "model": "Fly", "sentiment": "hated"}, 0),
])
def test_past_shoe_model_matches_whole_words(engine, make_shoe, past, expected):
    shoe = make_shoe("z", brand="Nike", model="Zoom Fly", version="5", full_name="Nike Zoom Fly 5")
    context = ContextSignals(past_shoes=[past])
    assert engine.calculate_match_score(shoe, _constraints(context=context))[1]["context"] == expected
