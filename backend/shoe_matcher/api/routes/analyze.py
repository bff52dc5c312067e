import logging
from fastapi import APIRouter, Depends, HTTPException, status

from shoe_matcher.core.exceptions import (
    CatalogueUnavailableError, InsufficientCandidatesError, InvalidRequestError,
)
from shoe_matcher.models.catalog import ShoeRecord
from shoe_matcher.schemas.analyze import AnalyzeRequest, AnalyzeResponse
from shoe_matcher.services.analyzer import ShoeAnalyzer
from shoe_matcher.services.catalogue import get_catalogue
from shoe_matcher.services.match_description import MatchDescriber, get_match_describer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    request: AnalyzeRequest,
    catalogue: tuple[ShoeRecord, ...] = Depends(get_catalogue),
    describer: MatchDescriber = Depends(get_match_describer),
):
    """Gap detection, discovery or gap-based analysis, depending on mode."""
    analyzer = ShoeAnalyzer(catalogue, describer)
    try:
        return await analyzer.analyze(request)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InsufficientCandidatesError as e:
        logger.warning(f"Analyze {request.mode}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except CatalogueUnavailableError as e:
        logger.error(f"Catalogue unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
