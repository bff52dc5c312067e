from shoe_matcher.schemas.analyze import (
    ShoeRequest, ChatContext, RequestConstraints, AnalyzeRequest,
    RotationShoeSummary, GapDetectionResult, DiscoveryResult, DiscoveryResults, AnalysisResult,
    AnalyzeResponse,
)
from shoe_matcher.schemas.shoe import ShoeSummary, ShoeListResponse, ShoeDetailResponse

__all__ = [
    # Analyze
    "ShoeRequest", "ChatContext", "RequestConstraints", "AnalyzeRequest",
    "RotationShoeSummary", "GapDetectionResult", "DiscoveryResult", "DiscoveryResults", "AnalysisResult",
    "AnalyzeResponse",
    # Shoes
    "ShoeSummary", "ShoeListResponse", "ShoeDetailResponse",
]
