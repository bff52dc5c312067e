"""
Mode orchestration for /v1/analyze.

- gap_detection: rotation analysis + primary gap, no recommendations
- discovery: one to three requested categories, up to three shoes each
- analysis: exactly three shoes for a gap from a prior gap_detection call
"""

import asyncio
import logging
from typing import Optional, Sequence

from shoe_matcher.core.exceptions import InvalidRequestError
from shoe_matcher.models.catalog import ShoeRecord
from shoe_matcher.models.runner import ContextSignals
from shoe_matcher.schemas.analyze import (
    AnalysisResult, AnalyzeRequest, AnalyzeResponse, ChatContext, DiscoveryResult,
    DiscoveryResults, GapDetectionResult, RotationShoeSummary, ShoeRequest,
)
from shoe_matcher.services.catalogue import owned_records, require_catalogue
from shoe_matcher.services.context_signals import classify_notes, merge_signals
from shoe_matcher.services.gap_detector import identify_primary_gap
from shoe_matcher.services.match_description import MatchDescriber
from shoe_matcher.services.recommendation import (
    RecommendationService, build_constraints_from_gap, build_discovery_constraints,
    build_discovery_reasoning, build_summary,
)
from shoe_matcher.services.rotation_analyzer import RotationAnalysis, analyze_rotation
from shoe_matcher.services.scoring import ScoringEngine

logger = logging.getLogger(__name__)

MAX_DISCOVERY_REQUESTS = 3


def rotation_summary(analysis: RotationAnalysis) -> list[RotationShoeSummary]:
    return [
        RotationShoeSummary(
            shoe_id=usage.shoe.shoe_id,
            full_name=usage.shoe.full_name,
            brand=usage.shoe.brand,
            user_run_types=usage.run_types,
            archetypes=usage.archetypes,
            misuse_level=usage.misuse_level,
            misuse_message=usage.misuse_message,
        )
        for usage in analysis.shoe_usage
    ]


def resolve_context(chat_context: Optional[ChatContext], catalogue: Sequence[ShoeRecord]) -> Optional[ContextSignals]:
    """Structured signals merged with whatever the free-text notes classify to."""
    if chat_context is None:
        return None
    classified = None
    if chat_context.notes:
        brands = {shoe.brand for shoe in catalogue}
        classified = classify_notes(chat_context.notes, brands)
    return merge_signals(chat_context.signals, classified)


class ShoeAnalyzer:
    """Runs one analyze request against a catalogue."""

    def __init__(
        self,
        catalogue: Sequence[ShoeRecord],
        describer: MatchDescriber,
        engine: Optional[ScoringEngine] = None,
    ):
        self.catalogue = catalogue
        self.engine = engine or ScoringEngine()
        self.recommender = RecommendationService(self.engine, describer)

    async def analyze(self, request: AnalyzeRequest) -> AnalyzeResponse:
        require_catalogue(self.catalogue)
        logger.info(
            f"Analyze mode={request.mode} experience={request.profile.experience.value} "
            f"goal={request.profile.primary_goal.value} shoes={len(request.current_shoes)}"
        )

        if request.mode == "gap_detection":
            result = self.detect_gap(request)
        elif request.mode == "discovery":
            result = await self.discover(request)
        else:
            result = await self.recommend_for_gap(request)

        return AnalyzeResponse(mode=request.mode, result=result)

    def detect_gap(self, request: AnalyzeRequest) -> GapDetectionResult:
        analysis = analyze_rotation(request.current_shoes, request.profile, self.catalogue)
        gap = identify_primary_gap(analysis, request.profile, request.current_shoes, self.catalogue)
        return GapDetectionResult(gap=gap, rotation_summary=rotation_summary(analysis))

    async def discover(self, request: AnalyzeRequest) -> DiscoveryResults:
        if request.shoe_requests:
            shoe_requests = request.shoe_requests
        elif request.requested_archetypes:
            shoe_requests = [ShoeRequest(archetype=a) for a in request.requested_archetypes]
        else:
            raise InvalidRequestError("Discovery mode requires either shoe_requests or requested_archetypes")

        if len(shoe_requests) > MAX_DISCOVERY_REQUESTS:
            raise InvalidRequestError(
                f"Discovery mode supports a maximum of {MAX_DISCOVERY_REQUESTS} archetype requests"
            )

        context = resolve_context(request.chat_context, self.catalogue)
        owned = owned_records(request.current_shoes, self.catalogue)

        async def run(shoe_request: ShoeRequest) -> DiscoveryResult:
            constraints = build_discovery_constraints(
                shoe_request.archetype,
                request.profile,
                request.current_shoes,
                owned,
                shoe_request.feel_preferences,
                context=context,
                stability_preference=request.constraints.stability_preference,
            )
            recommendations = await self.recommender.recommend_for_category(
                shoe_request.archetype, constraints, self.catalogue, shoe_request.feel_preferences,
            )
            return DiscoveryResult(
                archetype=shoe_request.archetype,
                recommendations=recommendations,
                reasoning=build_discovery_reasoning(shoe_request.archetype, shoe_request.feel_preferences),
            )

        results = await asyncio.gather(*(run(r) for r in shoe_requests))
        return DiscoveryResults(discovery_results=list(results))

    async def recommend_for_gap(self, request: AnalyzeRequest) -> AnalysisResult:
        if request.gap is None:
            raise InvalidRequestError("Analysis mode requires a gap from prior gap_detection call")
        if request.feel_preferences is None:
            raise InvalidRequestError("Analysis mode requires feel_preferences for the identified gap")

        gap = request.gap
        logger.info(f"Analysis for gap {gap.type.value}/{gap.severity.value} -> {gap.recommended_archetype.value}")

        analysis = analyze_rotation(request.current_shoes, request.profile, self.catalogue)
        constraints = build_constraints_from_gap(
            gap,
            request.profile,
            request.current_shoes,
            owned_records(request.current_shoes, self.catalogue),
            request.feel_preferences,
            context=resolve_context(request.chat_context, self.catalogue),
            stability_preference=request.constraints.stability_preference,
            contrast_profile=analysis.contrast_profile.as_dict(),
        )
        recommendations = await self.recommender.recommend_for_gap(
            gap, constraints, self.catalogue, request.feel_preferences,
        )
        logger.info(f"Recommended {[f'{r.shoe_id} ({r.badge.value})' for r in recommendations]}")

        return AnalysisResult(
            gap=gap,
            recommendations=recommendations,
            summary_reasoning=build_summary(gap, recommendations),
            rotation_summary=rotation_summary(analysis),
        )
