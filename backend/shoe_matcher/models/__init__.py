from shoe_matcher.models.catalog import (
    Archetype, RunType, SupportType, Surface, WetGrip, ReleaseStatus, PriceCategory,
    ShoeRecord, DEFAULT_ARCHETYPE, RUN_TYPE_ARCHETYPES, HEEL_DROP_BUCKETS,
    heel_drop_bucket, heel_drop_distance,
)
from shoe_matcher.models.runner import (
    ExperienceLevel, PrimaryGoal, RunningPattern, TrailPreference, FootStrike,
    Sentiment, Lifecycle, LoveTag, DislikeTag,
    WeeklyVolume, RaceTime, Height, BodyWeight, BrandPreference, RunnerProfile, CurrentShoe,
    DecidePreference, ExplicitPreference, IgnorePreference, ExplicitHeelDrop, FeelPreferences,
    InjurySignal, FitSignal, PastShoeSignal, ContextSignals,
)
from shoe_matcher.models.recommendation import (
    GapType, Severity, Badge, Position, Gap, RecommendedShoe,
)

__all__ = [
    # Catalogue
    "Archetype", "RunType", "SupportType", "Surface", "WetGrip", "ReleaseStatus", "PriceCategory",
    "ShoeRecord", "DEFAULT_ARCHETYPE", "RUN_TYPE_ARCHETYPES", "HEEL_DROP_BUCKETS",
    "heel_drop_bucket", "heel_drop_distance",
    # Runner
    "ExperienceLevel", "PrimaryGoal", "RunningPattern", "TrailPreference", "FootStrike",
    "Sentiment", "Lifecycle", "LoveTag", "DislikeTag",
    "WeeklyVolume", "RaceTime", "Height", "BodyWeight", "BrandPreference", "RunnerProfile", "CurrentShoe",
    "DecidePreference", "ExplicitPreference", "IgnorePreference", "ExplicitHeelDrop", "FeelPreferences",
    "InjurySignal", "FitSignal", "PastShoeSignal", "ContextSignals",
    # Recommendation
    "GapType", "Severity", "Badge", "Position", "Gap", "RecommendedShoe",
]
