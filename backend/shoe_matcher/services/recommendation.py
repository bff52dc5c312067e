import logging
from typing import Optional, Sequence

from shoe_matcher.core.exceptions import InsufficientCandidatesError
from shoe_matcher.models.catalog import Archetype, PriceCategory, ShoeRecord, heel_drop_distance
from shoe_matcher.models.recommendation import Badge, Gap, GapType, Position, RecommendedShoe
from shoe_matcher.models.runner import (
    ContextSignals, CurrentShoe, DecidePreference, ExplicitPreference, FeelPreferences, RunnerProfile,
)
from shoe_matcher.services.match_description import MatchDescriber, archetype_label
from shoe_matcher.services.retrieval import retrieve_candidates
from shoe_matcher.services.scoring import RetrievalConstraints, ScoredCandidate, ScoringEngine
from shoe_matcher.services.selection import select_discovery, select_diverse_three

logger = logging.getLogger(__name__)

PREMIUM_PRICES = (PriceCategory.PREMIUM, PriceCategory.RACE_DAY)
AFFORDABLE_PRICES = (PriceCategory.BUDGET, PriceCategory.CORE)


# ============================================================================
# CONSTRAINTS
# ============================================================================

def stability_need_for(feel: Optional[FeelPreferences], stability_preference: str) -> Optional[str]:
    if stability_preference == "stability_only":
        return "stability"
    if feel is not None:
        value = feel.explicit_value("stability")
        if value is not None and value >= 4:
            return "stable_feel"
    return None


def _decided_to_explicit(feel: FeelPreferences, **targets: int) -> FeelPreferences:
    """Turn 'decide' dimensions into explicit targets, leaving runner choices alone."""
    updates = {
        dimension: ExplicitPreference(value=value)
        for dimension, value in targets.items()
        if isinstance(getattr(feel, dimension), DecidePreference)
    }
    return feel.model_copy(update=updates) if updates else feel


def build_constraints_from_gap(
    gap: Gap,
    profile: RunnerProfile,
    current_shoes: Sequence[CurrentShoe],
    owned_shoes: Sequence[ShoeRecord],
    feel: FeelPreferences,
    context: Optional[ContextSignals] = None,
    stability_preference: str = "no_preference",
    contrast_profile: Optional[dict[str, int]] = None,
) -> RetrievalConstraints:
    requested_feel = feel
    target = gap.recommended_archetype
    archetypes = [target]
    archetype_context = target

    if gap.type == GapType.PERFORMANCE:
        if target != Archetype.TRAIL_SHOE:
            archetypes = [Archetype.WORKOUT_SHOE, Archetype.RACE_SHOE]
            if target not in archetypes:
                archetypes.append(target)
                archetype_context = Archetype.WORKOUT_SHOE
        feel = _decided_to_explicit(feel, bounce=4)
    elif gap.type == GapType.RECOVERY:
        if target != Archetype.TRAIL_SHOE:
            archetypes = [Archetype.RECOVERY_SHOE, Archetype.DAILY_TRAINER]
            if target not in archetypes:
                archetypes.append(target)
            archetype_context = Archetype.RECOVERY_SHOE
        feel = _decided_to_explicit(feel, cushion=5, stability=4)

    return RetrievalConstraints(
        archetypes=archetypes,
        archetype_context=archetype_context,
        feel_preferences=feel,
        stability_need=stability_need_for(requested_feel, stability_preference),
        stability_preference=stability_preference,
        exclude_ids=frozenset(c.shoe_id for c in current_shoes),
        profile=profile,
        current_shoes=list(current_shoes),
        owned_shoes=list(owned_shoes),
        context=context,
        contrast_profile=contrast_profile if gap.is_exploration else None,
    )


def build_discovery_constraints(
    archetype: Archetype,
    profile: RunnerProfile,
    current_shoes: Sequence[CurrentShoe],
    owned_shoes: Sequence[ShoeRecord],
    feel: FeelPreferences,
    context: Optional[ContextSignals] = None,
    stability_preference: str = "no_preference",
) -> RetrievalConstraints:
    return RetrievalConstraints(
        archetypes=[archetype],
        archetype_context=archetype,
        feel_preferences=feel,
        stability_need=stability_need_for(feel, stability_preference),
        stability_preference=stability_preference,
        exclude_ids=frozenset(c.shoe_id for c in current_shoes),
        profile=profile,
        current_shoes=list(current_shoes),
        owned_shoes=list(owned_shoes),
        context=context,
    )


# ============================================================================
# BADGES, STRENGTHS, TRADE-OFFS
# ============================================================================

def assign_badge(shoe: ShoeRecord, rank: int, feel: Optional[FeelPreferences]) -> Badge:
    """rank 0 = top pick, 1 = similar pick, 2 = different pick."""
    buckets = feel.heel_drop_buckets if feel else []
    if buckets and heel_drop_distance(shoe.heel_drop_mm, buckets) >= 2:
        return Badge.TRADE_OFF
    if rank == 0:
        return Badge.CLOSEST_MATCH
    if rank == 1:
        return Badge.CLOSE_MATCH
    return Badge.TRADE_OFF


def layout_positions(count: int) -> list[Position]:
    """Screen position per pick rank; the top pick is always centered."""
    if count == 1:
        return [Position.CENTER]
    if count == 2:
        return [Position.CENTER, Position.LEFT]
    return [Position.CENTER, Position.LEFT, Position.RIGHT]


def extract_strengths(shoe: ShoeRecord, group: Sequence[ShoeRecord], archetype: Archetype) -> list[str]:
    """Strengths phrased relative to the other recommended shoes."""
    strengths: list[str] = []
    others = [s for s in group if s.shoe_id != shoe.shoe_id]

    weights = [s.weight_g for s in group]
    if shoe.weight_g == min(weights) and shoe.weight_g < 240:
        strengths.append(f"Lightest option at {shoe.weight_g}g for a nimble feel")
    elif shoe.weight_g == max(weights) and any(shoe.weight_g - w >= 30 for w in weights):
        strengths.append(f"Most protective build at {shoe.weight_g}g")

    cushions = [s.cushion_softness_1to5 for s in group]
    if shoe.cushion_softness_1to5 == max(cushions) and shoe.cushion_softness_1to5 >= 4:
        level = "max" if shoe.cushion_softness_1to5 == 5 else "plush"
        strengths.append(f"Softest ride with {level} cushioning")
    elif shoe.cushion_softness_1to5 == min(cushions) and shoe.cushion_softness_1to5 <= 2:
        strengths.append("Firmest platform for responsive efficiency")

    if len(strengths) < 3 and shoe.bounce_1to5 >= 4 and shoe.bounce_1to5 == max(s.bounce_1to5 for s in group):
        strengths.append("Most energetic foam returns power with each step")

    if len(strengths) < 3 and shoe.has_plate and shoe.plate_tech_name:
        if not any(s.has_plate for s in others):
            strengths.append(f"Only plated option, with {shoe.plate_tech_name}")
        else:
            strengths.append(f"{shoe.plate_tech_name} for snappy propulsion")

    if len(strengths) < 3 and shoe.stability_1to5 >= 4 and shoe.stability_1to5 == max(s.stability_1to5 for s in group):
        strengths.append("Most stable platform for controlled landings")

    if len(strengths) < 3 and shoe.rocker_1to5 >= 4 and shoe.rocker_1to5 == max(s.rocker_1to5 for s in group):
        strengths.append("Aggressive rocker for smooth transitions")

    count = len(shoe.archetypes)
    if len(strengths) < 3 and count >= 2 and count > max((len(s.archetypes) for s in others), default=0):
        strengths.append(f"Most versatile across {count} shoe types")

    if len(strengths) < 2 and shoe.notable_detail:
        strengths.append(shoe.notable_detail)
    if len(strengths) < 2 and shoe.why_it_feels_this_way:
        strengths.append(shoe.why_it_feels_this_way)

    if not strengths:
        if shoe.cushion_softness_1to5 >= 4:
            strengths.append("Soft, protective cushioning")
        elif shoe.bounce_1to5 >= 4:
            strengths.append("Bouncy, responsive foam")
        else:
            strengths.append(f"Balanced ride for {archetype_label(archetype)}")

    return strengths[:3]


def identify_trade_offs(shoe: ShoeRecord, group: Sequence[ShoeRecord]) -> list[str]:
    trade_offs: list[str] = []
    others = [s for s in group if s.shoe_id != shoe.shoe_id]

    lightest = min(s.weight_g for s in group)
    if shoe.weight_g == max(s.weight_g for s in group) and shoe.weight_g - lightest >= 30:
        trade_offs.append(f"Heavier than alternatives ({shoe.weight_g}g vs {lightest}g)")

    cushions = [s.cushion_softness_1to5 for s in group]
    if shoe.cushion_softness_1to5 == min(cushions) and max(cushions) - shoe.cushion_softness_1to5 >= 2:
        trade_offs.append("Firmer ride than softer alternatives")

    stabilities = [s.stability_1to5 for s in group]
    if shoe.stability_1to5 == min(stabilities) and max(stabilities) - shoe.stability_1to5 >= 2:
        trade_offs.append("Less stability than structured alternatives")

    if shoe.retail_price_category in PREMIUM_PRICES and any(
        s.retail_price_category in AFFORDABLE_PRICES for s in others
    ):
        trade_offs.append("Premium price vs more affordable alternatives")

    if not trade_offs:
        if shoe.cushion_softness_1to5 <= 2:
            trade_offs.append("Firmer ride may take adjustment")
        elif shoe.retail_price_category in PREMIUM_PRICES:
            trade_offs.append("Premium price point")

    return trade_offs[:2]


# ============================================================================
# SUMMARY TEXT
# ============================================================================

def build_summary(gap: Gap, recommendations: Sequence[RecommendedShoe]) -> str:
    """Gap reasoning plus a sentence about the picks."""
    count = len(recommendations)
    brands = ", ".join(dict.fromkeys(r.brand for r in recommendations))
    all_plated = all(r.has_plate for r in recommendations)
    all_cushioned = all(r.cushion_softness_1to5 >= 4 for r in recommendations)
    avg_weight = round(sum(r.weight_g for r in recommendations) / count) if count else 0
    label = archetype_label(gap.recommended_archetype)

    summary = gap.reasoning + " "
    if gap.is_exploration:
        summary += f"Here are {count} picks from {brands} that feel different from what you run in now."
    elif gap.type in (GapType.COVERAGE, GapType.MISUSE):
        if all_cushioned:
            summary += f"I've recommended {count} cushioned options for {label} from {brands}."
        elif all_plated:
            summary += f"I've recommended {count} plated shoes for {label} from {brands}."
        else:
            summary += f"I've recommended {count} shoes to cover {label} from {brands}."
    elif gap.type == GapType.PERFORMANCE:
        if all_plated:
            summary += f"All {count} recommendations are plated for speed: {brands}."
        else:
            summary += f"I've recommended {count} responsive trainers (avg {avg_weight}g) from {brands}."
    elif gap.type == GapType.RECOVERY:
        summary += f"These {count} cushioned shoes from {brands} will protect your legs on easy days."
    else:
        summary += f"These {count} options from {brands} would diversify your rotation without overlap."

    trade_off = next(
        (r for r in recommendations if r.badge == Badge.TRADE_OFF and r.trade_offs),
        None,
    )
    if trade_off:
        note = ", ".join(trade_off.trade_offs).lower()
        summary += f" Note: {trade_off.full_name} takes a different approach but {note}."
    return summary


def _describe_pref(pref, labels: tuple[str, str, str]) -> str:
    if isinstance(pref, ExplicitPreference):
        low, mid, high = labels
        if pref.value <= 2:
            return low
        if pref.value >= 4:
            return high
        return mid
    if isinstance(pref, DecidePreference):
        return "balanced"
    return "flexible"


def build_discovery_reasoning(archetype: Archetype, feel: FeelPreferences) -> str:
    cushion = _describe_pref(feel.cushion, ("minimal", "balanced", "max"))
    bounce = _describe_pref(feel.bounce, ("damped", "moderate", "bouncy"))
    stability = _describe_pref(feel.stability, ("neutral", "balanced", "stable"))
    return (
        f"Based on your preference for a {archetype_label(archetype)} with {cushion} cushion, "
        f"{bounce} response, and {stability} platform."
    )


# ============================================================================
# ASSEMBLY
# ============================================================================

class RecommendationService:
    """Turns scored candidates into positioned, badged, described recommendations."""

    def __init__(self, engine: ScoringEngine, describer: MatchDescriber):
        self.engine = engine
        self.describer = describer

    async def assemble(
        self,
        picks: Sequence[ScoredCandidate],
        archetype: Archetype,
        feel: Optional[FeelPreferences],
    ) -> list[RecommendedShoe]:
        """Badges and text for ranked picks, returned in left/center/right order."""
        shoes = [p.shoe for p in picks]
        bullets = await self.describer.describe_many(shoes, archetype)
        positions = layout_positions(len(picks))

        recommendations = []
        for rank, (pick, reason, position) in enumerate(zip(picks, bullets, positions)):
            badge = assign_badge(pick.shoe, rank, feel)
            recommendations.append(RecommendedShoe.from_record(
                pick.shoe,
                badge=badge,
                position=position,
                score=pick.score,
                match_reason=reason,
                key_strengths=extract_strengths(pick.shoe, shoes, archetype),
                trade_offs=identify_trade_offs(pick.shoe, shoes) if badge == Badge.TRADE_OFF else [],
            ))

        order = {Position.LEFT: 0, Position.CENTER: 1, Position.RIGHT: 2}
        recommendations.sort(key=lambda r: order[r.position])
        return recommendations

    async def recommend_for_gap(
        self,
        gap: Gap,
        constraints: RetrievalConstraints,
        catalogue: Sequence[ShoeRecord],
        feel: FeelPreferences,
    ) -> list[RecommendedShoe]:
        """Exactly three recommendations, or InsufficientCandidatesError."""
        retrieval = retrieve_candidates(self.engine, constraints, catalogue)
        if len(retrieval.candidates) < 3:
            raise InsufficientCandidatesError(
                found=len(retrieval.candidates), context=archetype_label(gap.recommended_archetype),
            )
        picks = select_diverse_three(retrieval.candidates)
        return await self.assemble(picks, gap.recommended_archetype, feel)

    async def recommend_for_category(
        self,
        archetype: Archetype,
        constraints: RetrievalConstraints,
        catalogue: Sequence[ShoeRecord],
        feel: FeelPreferences,
    ) -> list[RecommendedShoe]:
        """Up to three recommendations for one requested category."""
        retrieval = retrieve_candidates(self.engine, constraints, catalogue)
        if not retrieval.candidates:
            raise InsufficientCandidatesError(found=0, required=1, context=archetype_label(archetype))
        picks = select_discovery(retrieval.candidates)
        return await self.assemble(picks, archetype, feel)
