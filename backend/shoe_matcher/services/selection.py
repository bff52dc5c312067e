import logging
from typing import Sequence

from shoe_matcher.core.exceptions import InsufficientCandidatesError
from shoe_matcher.models.catalog import ShoeRecord
from shoe_matcher.services.scoring import ScoredCandidate, sort_candidates

logger = logging.getLogger(__name__)

SIMILAR_FEEL_POINTS = 1
SIMILAR_WEIGHT_G = 30
DIFFERENT_FEEL_POINTS = 2
DIFFERENT_WEIGHT_G = 40
DIFFERENT_MIN_AXES = 2


def are_similar(a: ShoeRecord, b: ShoeRecord) -> bool:
    """Close on cushion, bounce, stability and weight, with the same plate presence."""
    return (
        abs(a.cushion_softness_1to5 - b.cushion_softness_1to5) <= SIMILAR_FEEL_POINTS
        and abs(a.bounce_1to5 - b.bounce_1to5) <= SIMILAR_FEEL_POINTS
        and abs(a.stability_1to5 - b.stability_1to5) <= SIMILAR_FEEL_POINTS
        and abs(a.weight_g - b.weight_g) <= SIMILAR_WEIGHT_G
        and a.has_plate == b.has_plate
    )


def differing_axes(a: ShoeRecord, b: ShoeRecord) -> int:
    axes = [
        abs(a.cushion_softness_1to5 - b.cushion_softness_1to5) >= DIFFERENT_FEEL_POINTS,
        abs(a.bounce_1to5 - b.bounce_1to5) >= DIFFERENT_FEEL_POINTS,
        abs(a.stability_1to5 - b.stability_1to5) >= DIFFERENT_FEEL_POINTS,
        abs(a.rocker_1to5 - b.rocker_1to5) >= DIFFERENT_FEEL_POINTS,
        abs(a.weight_g - b.weight_g) >= DIFFERENT_WEIGHT_G,
        a.has_plate != b.has_plate,
    ]
    return sum(axes)


def are_different(a: ShoeRecord, b: ShoeRecord) -> bool:
    return differing_axes(a, b) >= DIFFERENT_MIN_AXES


def select_diverse_three(candidates: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """
    Pick [top, similar-to-top, different-from-both].

    Falls back to the next-highest unused candidate when no similar or
    different shoe exists. Raises InsufficientCandidatesError below three.
    """
    ranked = []
    seen = set()
    for candidate in sort_candidates(candidates):
        if candidate.shoe_id not in seen:
            seen.add(candidate.shoe_id)
            ranked.append(candidate)

    if len(ranked) < 3:
        raise InsufficientCandidatesError(found=len(ranked))

    first = ranked[0]
    remaining = ranked[1:]

    second = next((c for c in remaining if are_similar(c.shoe, first.shoe)), remaining[0])
    remaining = [c for c in remaining if c is not second]

    third = next(
        (c for c in remaining if are_different(c.shoe, first.shoe) and are_different(c.shoe, second.shoe)),
        remaining[0],
    )

    logger.info(f"Selected {first.shoe_id}, {second.shoe_id}, {third.shoe_id}")
    return [first, second, third]


def select_discovery(candidates: Sequence[ScoredCandidate], limit: int = 3) -> list[ScoredCandidate]:
    """Top picks for a category, skipping other versions of an already picked model line."""
    selected: list[ScoredCandidate] = []
    for candidate in sort_candidates(candidates):
        if len(selected) >= limit:
            break
        if any(candidate.shoe_id == s.shoe_id or candidate.shoe.is_variant_of(s.shoe) for s in selected):
            continue
        selected.append(candidate)
    return selected
