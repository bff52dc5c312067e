from shoe_matcher.models.catalog import Archetype, RunType
from shoe_matcher.models.runner import CurrentShoe, RunnerProfile
from shoe_matcher.services.rotation_analyzer import (
    analyze_rotation, build_contrast_profile, detect_misuse, expected_archetypes,
)


def test_expected_archetypes_always_include_daily_trainer(beginner):
    assert expected_archetypes(beginner) == [Archetype.DAILY_TRAINER]


def test_expected_archetypes_for_structured_race_training_with_trails():
    profile = RunnerProfile(
        experience="experienced",
        primary_goal="race_training",
        running_pattern="structured_training",
        trail_running="infrequently",
    )
    assert expected_archetypes(profile) == [
        Archetype.DAILY_TRAINER,
        Archetype.RECOVERY_SHOE,
        Archetype.WORKOUT_SHOE,
        Archetype.RACE_SHOE,
        Archetype.TRAIL_SHOE,
    ]


def test_empty_rotation_reports_every_expected_type_uncovered(beginner, catalogue):
    analysis = analyze_rotation([], beginner, catalogue)
    assert analysis.covered_run_types == []
    assert analysis.uncovered_run_types == [RunType.ALL_RUNS]
    assert analysis.missing_archetypes == [Archetype.DAILY_TRAINER]
    assert analysis.redundancies == []


def test_covered_archetypes_come_from_catalogue_flags(make_shoe, intermediate):
    shoes = [
        make_shoe("a", is_daily_trainer=True, is_recovery_shoe=True),
        make_shoe("b", is_daily_trainer=False, is_race_shoe=True, has_plate=True, plate_material="carbon"),
    ]
    current = [
        CurrentShoe(shoe_id="a", run_types=["all_runs"]),
        CurrentShoe(shoe_id="b", run_types=["races"]),
    ]
    analysis = analyze_rotation(current, intermediate, shoes)
    assert analysis.covered_archetypes == [
        Archetype.DAILY_TRAINER, Archetype.RECOVERY_SHOE, Archetype.RACE_SHOE,
    ]
    assert analysis.covered_run_types == [RunType.ALL_RUNS, RunType.RACES]


def test_redundant_shoes_are_clustered_once(make_shoe, intermediate):
    shoes = [
        make_shoe("a", cushion_softness_1to5=3, bounce_1to5=3, stability_1to5=3),
        make_shoe("b", cushion_softness_1to5=4, bounce_1to5=3, stability_1to5=3),
        make_shoe("c", cushion_softness_1to5=1, bounce_1to5=5, stability_1to5=1),
    ]
    current = [
        CurrentShoe(shoe_id="a", run_types=["all_runs", "long_runs"]),
        CurrentShoe(shoe_id="b", run_types=["all_runs", "long_runs"]),
        CurrentShoe(shoe_id="c", run_types=["all_runs"]),
    ]
    analysis = analyze_rotation(current, intermediate, shoes)
    assert len(analysis.redundancies) == 1
    assert analysis.redundancies[0].shoe_ids == ["a", "b"]
    assert analysis.redundancies[0].overlapping_run_types == [RunType.ALL_RUNS, RunType.LONG_RUNS]


def test_quality_signals(make_shoe, intermediate):
    shoes = [make_shoe("a"), make_shoe("b")]
    current = [
        CurrentShoe(shoe_id="a", run_types=["all_runs"], sentiment="love"),
        CurrentShoe(shoe_id="b", run_types=["recovery"], sentiment="dislike", lifecycle="near_replacement"),
    ]
    analysis = analyze_rotation(current, intermediate, shoes)
    assert not analysis.all_shoes_loved
    assert analysis.has_disliked_shoes
    assert analysis.has_near_replacement_shoes


def test_unknown_shoe_ids_are_ignored(make_shoe, intermediate):
    current = [CurrentShoe(shoe_id="missing", run_types=["all_runs"])]
    analysis = analyze_rotation(current, intermediate, [make_shoe("a")])
    assert analysis.shoe_usage == []
    assert analysis.covered_archetypes == []


def test_race_shoe_used_for_easy_runs_is_severe(make_shoe):
    racer = make_shoe("r", is_daily_trainer=False, is_race_shoe=True)
    level, message = detect_misuse([RunType.RECOVERY], racer)
    assert level == "severe"
    assert "race-day shoe" in message


def test_heavy_shoe_for_workouts_is_suboptimal(make_shoe):
    heavy = make_shoe("h", weight_g=310, cushion_softness_1to5=3)
    level, _ = detect_misuse([RunType.WORKOUTS], heavy)
    assert level == "suboptimal"


def test_daily_trainer_used_for_daily_runs_is_good(make_shoe):
    assert detect_misuse([RunType.ALL_RUNS], make_shoe("d")) == ("good", None)


def test_contrast_profile_rounds_half_up(make_shoe):
    profile = build_contrast_profile([
        make_shoe("a", cushion_softness_1to5=2, bounce_1to5=4),
        make_shoe("b", cushion_softness_1to5=3, bounce_1to5=4),
    ])
    assert profile.cushion == 3
    assert profile.bounce == 4
    assert build_contrast_profile([]).as_dict() == {}
