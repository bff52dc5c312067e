"""
Three-bullet match descriptions for recommended shoes.

Bullets come from the configured LLM provider. Each call runs under its own
timeout and falls back to text built from the shoe's own descriptions, so
one slow or broken call never affects the others.
"""

import asyncio
import logging
from typing import Optional, Sequence

from shoe_matcher.core.config import settings
from shoe_matcher.models.catalog import Archetype, ShoeRecord
from shoe_matcher.services.llm_provider import LLMProvider, extract_bullets, get_llm_provider

logger = logging.getLogger(__name__)

BULLET_COUNT = 3
FALLBACK_SNIPPET_CHARS = 80


def archetype_label(archetype: Archetype) -> str:
    return archetype.value.replace("_", " ")


def build_prompt(shoe: ShoeRecord, archetype: Archetype) -> str:
    cushion = "firm" if shoe.cushion_softness_1to5 <= 2 else "soft" if shoe.cushion_softness_1to5 >= 4 else "moderate"
    bounce = "muted" if shoe.bounce_1to5 <= 2 else "bouncy" if shoe.bounce_1to5 >= 4 else "balanced"
    weight = "lightweight" if shoe.weight_g < 230 else "heavier" if shoe.weight_g > 280 else "moderate weight"
    plate = f"Has {shoe.plate_tech_name} ({shoe.plate_material})" if shoe.plate_tech_name else "No plate"

    return f"""You're writing shoe card bullets for runners choosing shoes.

SHOE: {shoe.full_name}
USE CASE: {archetype_label(archetype)}

TECH & FEEL:
{shoe.why_it_feels_this_way}

NOTABLE:
{shoe.notable_detail}

CONTEXT (do not output numbers):
- Weight: {weight}
- Cushion: {cushion}
- Response: {bounce}
- {plate}
- Wet grip: {shoe.wet_grip.value}

AVOID IF:
{shoe.avoid_if}

Write exactly 3 bullets, at most 13 words each:
1. How the foam or plate affects the ride, naming the tech.
2. What makes this shoe stand out.
3. What else it is good for, or who it suits best.

No marketing language. No weights or drop numbers. Start each bullet with the feature."""


def _trim(text: str) -> str:
    return text.strip().rstrip(".")


def fallback_bullets(shoe: ShoeRecord, archetype: Archetype) -> list[str]:
    """Deterministic bullets from the shoe's own description fields."""
    why = shoe.why_it_feels_this_way.strip()
    if len(why) > FALLBACK_SNIPPET_CHARS:
        why = _trim(why[:FALLBACK_SNIPPET_CHARS - 3]) + "..."
    else:
        why = _trim(why)

    bullets = [_trim(shoe.notable_detail), why, f"Well-suited for {archetype_label(archetype)}"]
    return [b for b in bullets if b] or [f"Well-suited for {archetype_label(archetype)}"]


def complete_bullets(lines: list[str], shoe: ShoeRecord, archetype: Archetype) -> list[str]:
    """Top up a short reply with fallback lines; an empty reply means full fallback."""
    if not lines:
        return fallback_bullets(shoe, archetype)
    bullets = lines[:BULLET_COUNT]
    for extra in fallback_bullets(shoe, archetype):
        if len(bullets) >= BULLET_COUNT:
            break
        if extra not in bullets:
            bullets.append(extra)
    return bullets


class MatchDescriber:
    """Prompt in, three bullets out."""

    def __init__(self, provider: Optional[LLMProvider] = None, timeout: Optional[float] = None):
        self.provider = provider or get_llm_provider()
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS

    async def describe(self, shoe: ShoeRecord, archetype: Archetype) -> list[str]:
        try:
            reply = await asyncio.wait_for(
                self.provider.generate(build_prompt(shoe, archetype)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Match description timed out for {shoe.shoe_id}, using fallback")
            return fallback_bullets(shoe, archetype)
        except Exception as e:
            logger.warning(f"Match description failed for {shoe.shoe_id}: {e}, using fallback")
            return fallback_bullets(shoe, archetype)

        return complete_bullets(extract_bullets(reply), shoe, archetype)

    async def describe_many(self, shoes: Sequence[ShoeRecord], archetype: Archetype) -> list[list[str]]:
        """Describe several shoes concurrently; results keep input order."""
        return list(await asyncio.gather(*(self.describe(shoe, archetype) for shoe in shoes)))


def get_match_describer() -> MatchDescriber:
    """FastAPI dependency."""
    return MatchDescriber()
