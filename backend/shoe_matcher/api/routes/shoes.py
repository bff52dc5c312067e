from fastapi import APIRouter, Depends, HTTPException, status, Query

from shoe_matcher.models.catalog import Archetype, ShoeRecord
from shoe_matcher.schemas.shoe import ShoeDetailResponse, ShoeListResponse, ShoeSummary
from shoe_matcher.services.catalogue import find_shoe, get_catalogue
from shoe_matcher.services.selection import are_similar

router = APIRouter()


@router.get("", response_model=ShoeListResponse)
async def list_shoes(
    archetype: Archetype | None = None,
    brand: str | None = None,
    limit: int = Query(default=50, le=100),
    offset: int = 0,
    catalogue: tuple[ShoeRecord, ...] = Depends(get_catalogue),
):
    """List catalogue shoes with optional filters."""
    shoes = list(catalogue)

    if archetype:
        shoes = [s for s in shoes if s.has_archetype(archetype)]

    if brand:
        shoes = [s for s in shoes if s.brand.lower() == brand.lower()]

    shoes.sort(key=lambda s: s.shoe_id)
    return ShoeListResponse(
        shoes=[ShoeSummary.from_record(s) for s in shoes[offset:offset + limit]],
        total=len(shoes),
    )


@router.get("/{shoe_id}", response_model=ShoeDetailResponse)
async def get_shoe(
    shoe_id: str,
    catalogue: tuple[ShoeRecord, ...] = Depends(get_catalogue),
):
    """Get a single shoe with the catalogue shoes that feel like it."""
    shoe = find_shoe(catalogue, shoe_id)
    if not shoe:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Shoe not found",
        )

    similar = [
        other.shoe_id for other in catalogue
        if other.shoe_id != shoe.shoe_id
        and set(other.archetypes) & set(shoe.archetypes)
        and are_similar(shoe, other)
    ]
    return ShoeDetailResponse(shoe=shoe, archetypes=shoe.archetypes, similar_shoe_ids=sorted(similar))
