from typing import Any, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from shoe_matcher.models.catalog import Archetype, RunType
from shoe_matcher.models.recommendation import Gap, RecommendedShoe
from shoe_matcher.models.runner import ContextSignals, CurrentShoe, FeelPreferences, RunnerProfile


# Role names sent by older discovery clients
ROLE_ARCHETYPES = {
    "daily_trainer": Archetype.DAILY_TRAINER,
    "recovery": Archetype.RECOVERY_SHOE,
    "tempo": Archetype.WORKOUT_SHOE,
    "race_day": Archetype.RACE_SHOE,
    "trail": Archetype.TRAIL_SHOE,
    "not_sure": Archetype.DAILY_TRAINER,
}

# camelCase request keys accepted alongside snake_case
REQUEST_KEY_ALIASES = {
    "currentShoes": "current_shoes",
    "feelPreferences": "feel_preferences",
    "shoeRequests": "shoe_requests",
    "requestedArchetypes": "requested_archetypes",
    "chatContext": "chat_context",
}


def _rename_keys(data: Any, aliases: dict[str, str]) -> Any:
    if not isinstance(data, dict):
        return data
    return {aliases.get(key, key): value for key, value in data.items()}


class ShoeRequest(BaseModel):
    archetype: Archetype
    feel_preferences: FeelPreferences = FeelPreferences()

    @model_validator(mode="before")
    @classmethod
    def accept_role(cls, data: Any) -> Any:
        data = _rename_keys(data, REQUEST_KEY_ALIASES)
        if isinstance(data, dict) and not data.get("archetype") and data.get("role"):
            data = dict(data)
            data["archetype"] = ROLE_ARCHETYPES.get(data.pop("role"), Archetype.DAILY_TRAINER)
        return data


class ChatContext(BaseModel):
    signals: Optional[ContextSignals] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_flat_signals(cls, data: Any) -> Any:
        # Signals may also be sent flat, without the "signals" wrapper
        if isinstance(data, dict) and "signals" not in data:
            signal_keys = set(ContextSignals.model_fields)
            flat = {k: v for k, v in data.items() if k in signal_keys}
            if flat:
                rest = {k: v for k, v in data.items() if k not in signal_keys}
                return {**rest, "signals": flat}
        return data


class RequestConstraints(BaseModel):
    stability_preference: Literal["neutral_only", "stability_only", "no_preference"] = "no_preference"

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        return _rename_keys(data, {"stabilityPreference": "stability_preference"})


class AnalyzeRequest(BaseModel):
    mode: Literal["gap_detection", "discovery", "analysis"]
    profile: RunnerProfile
    current_shoes: list[CurrentShoe] = []
    gap: Optional[Gap] = None
    feel_preferences: Optional[FeelPreferences] = None
    shoe_requests: Optional[list[ShoeRequest]] = None
    requested_archetypes: Optional[list[Archetype]] = None
    chat_context: Optional[ChatContext] = None
    constraints: RequestConstraints = RequestConstraints()

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        return _rename_keys(data, REQUEST_KEY_ALIASES)

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value: Any) -> Any:
        return "discovery" if value == "shopping" else value


# ============================================================================
# RESPONSES
# ============================================================================

class RotationShoeSummary(BaseModel):
    shoe_id: str
    full_name: str
    brand: str
    user_run_types: list[RunType]
    archetypes: list[Archetype]
    misuse_level: Literal["severe", "suboptimal", "good"]
    misuse_message: Optional[str] = None


class GapDetectionResult(BaseModel):
    gap: Gap
    rotation_summary: list[RotationShoeSummary]


class DiscoveryResult(BaseModel):
    archetype: Archetype
    recommendations: list[RecommendedShoe] = Field(min_length=1, max_length=3)
    reasoning: str


class DiscoveryResults(BaseModel):
    discovery_results: list[DiscoveryResult]


class AnalysisResult(BaseModel):
    gap: Gap
    recommendations: list[RecommendedShoe] = Field(min_length=3, max_length=3)
    summary_reasoning: str
    rotation_summary: list[RotationShoeSummary]


class AnalyzeResponse(BaseModel):
    success: bool = True
    mode: Literal["gap_detection", "discovery", "analysis"]
    result: GapDetectionResult | DiscoveryResults | AnalysisResult
