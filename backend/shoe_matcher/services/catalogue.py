"""
Catalogue provider.

Loads the shoebase JSON once per process and exposes it as an immutable
tuple of ShoeRecord. Used as a FastAPI dependency so tests can override it.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from shoe_matcher.core.config import settings
from shoe_matcher.core.exceptions import CatalogueUnavailableError
from shoe_matcher.models.catalog import ShoeRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[ShoeRecord])


def load_catalogue(path: str) -> tuple[ShoeRecord, ...]:
    """Read and validate a catalogue file. Raises if it is missing or empty."""
    catalogue_path = Path(path)
    if not catalogue_path.exists():
        raise CatalogueUnavailableError(f"Shoe catalogue not found at {path}")

    try:
        raw = json.loads(catalogue_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogueUnavailableError(f"Shoe catalogue is not valid JSON: {e}") from e

    # Accept either a bare list or {"shoes": [...]}
    if isinstance(raw, dict):
        raw = raw.get("shoes", [])

    try:
        records = _records_adapter.validate_python(raw)
    except ValidationError as e:
        raise CatalogueUnavailableError(f"Shoe catalogue failed validation: {e.error_count()} errors") from e

    if not records:
        raise CatalogueUnavailableError("Shoe catalogue is empty")

    logger.info(f"Catalogue loaded: {len(records)} shoes from {catalogue_path.name}")
    return tuple(records)


@lru_cache(maxsize=4)
def _cached_catalogue(path: str) -> tuple[ShoeRecord, ...]:
    return load_catalogue(path)


def get_catalogue() -> tuple[ShoeRecord, ...]:
    """FastAPI dependency returning the process-wide catalogue."""
    return _cached_catalogue(settings.CATALOGUE_PATH)


def find_shoe(catalogue: tuple[ShoeRecord, ...], shoe_id: str) -> Optional[ShoeRecord]:
    for shoe in catalogue:
        if shoe.shoe_id == shoe_id:
            return shoe
    return None


def require_catalogue(catalogue) -> None:
    if not catalogue:
        raise CatalogueUnavailableError("Shoe catalogue unavailable")


def owned_records(current_shoes, catalogue) -> list[ShoeRecord]:
    """Catalogue records for the runner's current shoes; unknown ids are skipped."""
    records = {shoe.shoe_id: shoe for shoe in catalogue}
    return [records[c.shoe_id] for c in current_shoes if c.shoe_id in records]
