"""
Candidate retrieval with constraint relaxation.

1. Hard-filter and score the catalogue against the constraints.
2. While fewer than min_candidates survive:
     a. widen the archetype set with related archetypes
     b. drop feel preferences (stability need is kept)
3. Below min_after_relaxation, fall back to the best-available
   versatile shoes that still pass the identity filters.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from shoe_matcher.core.exceptions import CatalogueUnavailableError
from shoe_matcher.models.catalog import Archetype, ReleaseStatus, ShoeRecord
from shoe_matcher.services.scoring import (
    RetrievalConstraints, ScoredCandidate, ScoringEngine, sort_candidates,
)
from shoe_matcher.services.scoring_tables import RELATED_ARCHETYPES

logger = logging.getLogger(__name__)


@dataclass
class RetrievalResult:
    candidates: list[ScoredCandidate]
    constraints: RetrievalConstraints
    relaxation_steps: list[str] = field(default_factory=list)
    used_fallback: bool = False


def widen_archetypes(archetypes: Sequence[Archetype]) -> list[Archetype]:
    widened = list(archetypes)
    for archetype in archetypes:
        for related in RELATED_ARCHETYPES.get(archetype, ()):
            if related not in widened:
                widened.append(related)
    return widened


def score_catalogue(
    engine: ScoringEngine,
    constraints: RetrievalConstraints,
    catalogue: Sequence[ShoeRecord],
) -> list[ScoredCandidate]:
    survivors = [shoe for shoe in catalogue if engine.passes_hard_filters(shoe, constraints)]
    return sort_candidates([engine.score(shoe, constraints) for shoe in survivors])


def fallback_candidates(
    engine: ScoringEngine,
    constraints: RetrievalConstraints,
    catalogue: Sequence[ShoeRecord],
) -> list[ScoredCandidate]:
    """Best-available versatile shoes: most stable first, then lightest."""
    target = Archetype.TRAIL_SHOE if constraints.is_trail_request else Archetype.DAILY_TRAINER
    pool = [
        shoe for shoe in catalogue
        if shoe.has_archetype(target)
        and shoe.release_status == ReleaseStatus.AVAILABLE
        and engine.passes_identity_filters(shoe, constraints)
    ]
    pool.sort(key=lambda s: (-s.stability_1to5, s.weight_g, s.shoe_id))
    chosen = pool[:engine.tables.fallback_size]
    return sort_candidates([engine.score(shoe, constraints) for shoe in chosen])


def retrieve_candidates(
    engine: ScoringEngine,
    constraints: RetrievalConstraints,
    catalogue: Sequence[ShoeRecord],
) -> RetrievalResult:
    """Scored, sorted top-N candidates for the constraints, relaxing as needed."""
    if not catalogue:
        raise CatalogueUnavailableError("Shoe catalogue unavailable")

    tables = engine.tables
    steps: list[str] = []
    candidates = score_catalogue(engine, constraints, catalogue)
    logger.info(
        f"Retrieval for {[a.value for a in constraints.archetypes]}: {len(candidates)} candidates"
    )

    if len(candidates) < tables.min_candidates:
        widened = widen_archetypes(constraints.archetypes)
        if widened != list(constraints.archetypes):
            constraints = replace(constraints, archetypes=widened)
            candidates = score_catalogue(engine, constraints, catalogue)
            steps.append("widened_archetypes")
            logger.info(f"Relaxed to {[a.value for a in widened]}: {len(candidates)} candidates")

    if len(candidates) < tables.min_candidates and constraints.feel_preferences is not None:
        constraints = replace(constraints, feel_preferences=None)
        candidates = score_catalogue(engine, constraints, catalogue)
        steps.append("dropped_feel_preferences")
        logger.info(f"Dropped feel preferences: {len(candidates)} candidates")

    used_fallback = False
    if len(candidates) < tables.min_after_relaxation:
        fallback = fallback_candidates(engine, constraints, catalogue)
        seen = {c.shoe_id for c in candidates}
        merged = candidates + [c for c in fallback if c.shoe_id not in seen]
        if len(merged) > len(candidates):
            logger.warning(
                f"Only {len(candidates)} candidates after relaxation, using {len(merged) - len(candidates)} fallback shoes"
            )
            candidates = sort_candidates(merged)
            used_fallback = True
            steps.append("fallback")

    return RetrievalResult(
        candidates=candidates[:tables.top_n],
        constraints=constraints,
        relaxation_steps=steps,
        used_fallback=used_fallback,
    )
