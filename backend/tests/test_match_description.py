import asyncio
from unittest.mock import AsyncMock, patch

from shoe_matcher.models.catalog import Archetype
from shoe_matcher.services.llm_provider import (
    LLMProvider, NoOpProvider, OllamaProvider, ReplicateProvider, extract_bullets, get_llm_provider,
)
from shoe_matcher.services.match_description import (
    MatchDescriber, build_prompt, complete_bullets, fallback_bullets,
)


class SlowProvider(LLMProvider):
    async def generate(self, prompt: str, max_tokens: int = 300) -> str:
        await asyncio.sleep(5)
        return "1. Too late"


def test_extract_bullets_strips_numbering_and_labels():
    reply = "1. MIDSOLE/RIDE: Supercritical foam feels lively.\n- Wide base keeps landings calm\n\n* Handles long runs"
    assert extract_bullets(reply) == [
        "Supercritical foam feels lively",
        "Wide base keeps landings calm",
        "Handles long runs",
    ]
    assert extract_bullets("") == []


def test_fallback_uses_shoe_descriptions(make_shoe):
    shoe = make_shoe("a", why_it_feels_this_way="x" * 120)
    bullets = fallback_bullets(shoe, Archetype.RECOVERY_SHOE)
    assert bullets[0] == "Dependable all-rounder"
    assert bullets[1].endswith("...")
    assert len(bullets[1]) == 80
    assert bullets[2] == "Well-suited for recovery shoe"


def test_short_reply_is_topped_up(make_shoe):
    shoe = make_shoe("a")
    bullets = complete_bullets(["Bouncy foam"], shoe, Archetype.DAILY_TRAINER)
    assert bullets == ["Bouncy foam", "Dependable all-rounder", "Balanced foam gives a smooth ride at most paces"]


def test_prompt_hides_numbers(make_shoe):
    prompt = build_prompt(make_shoe("a", weight_g=210, plate_tech_name="Carbitex", plate_material="carbon"), Archetype.RACE_SHOE)
    assert "lightweight" in prompt
    assert "Has Carbitex (carbon)" in prompt
    assert "210" not in prompt


def test_provider_reply_becomes_bullets(make_shoe):
    provider = AsyncMock(spec=LLMProvider)
    provider.generate.return_value = "1. Foam one\n2. Foam two\n3. Foam three\n4. Extra"
    describer = MatchDescriber(provider=provider, timeout=1.0)
    bullets = asyncio.run(describer.describe(make_shoe("a"), Archetype.DAILY_TRAINER))
    assert bullets == ["Foam one", "Foam two", "Foam three"]
    provider.generate.assert_awaited_once()


def test_provider_error_falls_back(make_shoe):
    provider = AsyncMock(spec=LLMProvider)
    provider.generate.side_effect = RuntimeError("boom")
    describer = MatchDescriber(provider=provider, timeout=1.0)
    shoe = make_shoe("a")
    assert asyncio.run(describer.describe(shoe, Archetype.DAILY_TRAINER)) == fallback_bullets(shoe, Archetype.DAILY_TRAINER)


def test_slow_provider_times_out_to_fallback(make_shoe):
    describer = MatchDescriber(provider=SlowProvider(), timeout=0.05)
    shoes = [make_shoe("a"), make_shoe("b", notable_detail="Wide platform")]
    bullets = asyncio.run(describer.describe_many(shoes, Archetype.DAILY_TRAINER))
    assert bullets[0][0] == "Dependable all-rounder"
    assert bullets[1][0] == "Wide platform"


@patch("shoe_matcher.services.llm_provider.settings")
def test_provider_factory(mock_settings):
    mock_settings.LLM_PROVIDER = "Ollama"
    mock_settings.LLM_TIMEOUT_SECONDS = 2.0
    assert isinstance(get_llm_provider(), OllamaProvider)

    # Replicate without a token degrades to no descriptions
    mock_settings.LLM_PROVIDER = "replicate"
    mock_settings.REPLICATE_API_TOKEN = None
    assert isinstance(get_llm_provider(), NoOpProvider)


def test_replicate_rejects_bad_model_name():
    provider = ReplicateProvider(api_token="token", model="no-owner", timeout=1.0)
    assert asyncio.run(provider.generate("prompt")) == ""
