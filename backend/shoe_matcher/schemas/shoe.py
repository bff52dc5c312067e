from typing import Optional
from pydantic import BaseModel

from shoe_matcher.models.catalog import Archetype, ShoeRecord


class ShoeSummary(BaseModel):
    shoe_id: str
    brand: str
    model: str
    version: Optional[str] = None
    full_name: str
    archetypes: list[Archetype]
    is_super_trainer: bool = False
    weight_g: int
    heel_drop_mm: float
    has_plate: bool
    release_status: str
    retail_price_category: str

    class Config:
        from_attributes = True

    @classmethod
    def from_record(cls, shoe: ShoeRecord) -> "ShoeSummary":
        return cls(
            shoe_id=shoe.shoe_id,
            brand=shoe.brand,
            model=shoe.model,
            version=shoe.version,
            full_name=shoe.full_name,
            archetypes=shoe.archetypes,
            is_super_trainer=shoe.is_super_trainer,
            weight_g=shoe.weight_g,
            heel_drop_mm=shoe.heel_drop_mm,
            has_plate=shoe.has_plate,
            release_status=shoe.release_status.value,
            retail_price_category=shoe.retail_price_category.value,
        )


class ShoeListResponse(BaseModel):
    shoes: list[ShoeSummary]
    total: int


class ShoeDetailResponse(BaseModel):
    shoe: ShoeRecord
    archetypes: list[Archetype]
    similar_shoe_ids: list[str] = []
