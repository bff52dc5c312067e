"""
Shared fixtures: a shoe factory, the bundled catalogue, runner profiles and
a match describer that never calls out.
"""

import pytest

from shoe_matcher.core.config import DEFAULT_CATALOGUE_PATH
from shoe_matcher.models.catalog import ShoeRecord
from shoe_matcher.models.runner import RunnerProfile
from shoe_matcher.services.catalogue import load_catalogue
from shoe_matcher.services.llm_provider import NoOpProvider
from shoe_matcher.services.match_description import MatchDescriber
from shoe_matcher.services.scoring import ScoringEngine


def build_shoe(shoe_id: str, **overrides) -> ShoeRecord:
    """A neutral, available daily trainer unless overridden."""
    fields = {
        "shoe_id": shoe_id,
        "brand": "Testbrand",
        "model": f"Model {shoe_id}",
        "version": None,
        "full_name": f"Testbrand Model {shoe_id}",
        "is_daily_trainer": True,
        "cushion_softness_1to5": 3,
        "bounce_1to5": 3,
        "stability_1to5": 3,
        "rocker_1to5": 3,
        "ground_feel_1to5": 3,
        "weight_feel_1to5": 3,
        "weight_g": 260,
        "heel_drop_mm": 8,
        "why_it_feels_this_way": "Balanced foam gives a smooth ride at most paces.",
        "avoid_if": "You want a race shoe.",
        "notable_detail": "Dependable all-rounder",
    }
    fields.update(overrides)
    return ShoeRecord(**fields)


@pytest.fixture
def make_shoe():
    return build_shoe


@pytest.fixture(scope="session")
def catalogue() -> tuple[ShoeRecord, ...]:
    return load_catalogue(DEFAULT_CATALOGUE_PATH)


@pytest.fixture
def engine() -> ScoringEngine:
    return ScoringEngine()


@pytest.fixture
def beginner() -> RunnerProfile:
    return RunnerProfile(experience="beginner", primary_goal="general_fitness")


@pytest.fixture
def intermediate() -> RunnerProfile:
    return RunnerProfile(experience="intermediate", primary_goal="general_fitness")


@pytest.fixture
def racer() -> RunnerProfile:
    return RunnerProfile(
        experience="competitive",
        primary_goal="race_training",
        running_pattern="structured_training",
        race_time={"distance": "10k", "time_minutes": 38},
    )


@pytest.fixture
def offline_describer() -> MatchDescriber:
    return MatchDescriber(provider=NoOpProvider(), timeout=1.0)
