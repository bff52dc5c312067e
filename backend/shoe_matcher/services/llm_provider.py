"""
LLM provider abstraction for match descriptions.

Supports:
- Replicate (cloud, pay-per-use)
- Ollama (local, free)
- None (deterministic text only)

Providers return an empty string on any failure; callers fall back.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from shoe_matcher.core.config import settings

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_TOKENS = 300
DESCRIPTION_TEMPERATURE = 0.3


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int = DESCRIPTION_MAX_TOKENS) -> str:
        """Generate text from prompt."""
        pass


class HTTPProvider(LLMProvider):
    """Shared request handling for providers reached over HTTP."""

    name = "llm"

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> Optional[httpx.Response]:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request failed: {e}")
            return None


class ReplicateProvider(HTTPProvider):
    """Replicate.com models endpoint; versions are resolved server-side."""

    name = "Replicate"
    POLL_ATTEMPTS = 30
    API_URL = "https://api.replicate.com/v1/models/{model}/predictions"

    def __init__(self, api_token: Optional[str] = None, model: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(timeout)
        self.api_token = api_token or settings.REPLICATE_API_TOKEN
        self.model = model or settings.REPLICATE_MODEL

        if not self.api_token:
            raise ValueError("REPLICATE_API_TOKEN not set")

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def generate(self, prompt: str, max_tokens: int = DESCRIPTION_MAX_TOKENS) -> str:
        # owner/name
        if self.model.count("/") != 1:
            logger.error(f"Invalid model format: {self.model}")
            return ""

        payload = {
            "input": {
                "prompt": prompt,
                "max_new_tokens": max_tokens,
                "temperature": DESCRIPTION_TEMPERATURE,
            },
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await self._request(
                client, "POST", self.API_URL.format(model=self.model),
                headers={**self.headers, "Prefer": "wait"},
                json=payload,
            )
            if response is None:
                return ""
            if response.status_code == 200:
                return self._extract_output(response.json())
            if response.status_code == 201:
                return await self._poll_prediction(client, response.json())

            logger.error(f"Replicate API error: {response.status_code} {response.text}")
            return ""

    async def _poll_prediction(self, client: httpx.AsyncClient, prediction: dict) -> str:
        prediction_url = prediction.get("urls", {}).get("get")
        if not prediction_url:
            logger.error("No prediction URL returned")
            return ""

        for _ in range(self.POLL_ATTEMPTS):
            await asyncio.sleep(1)
            response = await self._request(client, "GET", prediction_url, headers=self.headers)
            if response is None or response.status_code != 200:
                continue

            result = response.json()
            status = result.get("status")
            if status == "succeeded":
                return self._extract_output(result)
            if status in ("failed", "canceled"):
                logger.error(f"Prediction {status}: {result.get('error')}")
                return ""

        logger.error(f"Prediction not finished after {self.POLL_ATTEMPTS} polls")
        return ""

    @staticmethod
    def _extract_output(result: dict) -> str:
        output = result.get("output") or ""
        # Streaming models return a list of tokens
        if isinstance(output, list):
            return "".join(str(token) for token in output)
        return str(output)


class OllamaProvider(HTTPProvider):
    """Local Ollama provider."""

    name = "Ollama"

    def __init__(self, model: Optional[str] = None, url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(timeout)
        self.model = model or settings.OLLAMA_MODEL
        self.url = url or settings.OLLAMA_URL

    async def generate(self, prompt: str, max_tokens: int = DESCRIPTION_MAX_TOKENS) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": DESCRIPTION_TEMPERATURE},
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await self._request(client, "POST", self.url, json=payload)

        if response is None:
            return ""
        if response.status_code != 200:
            logger.error(f"Ollama error: {response.status_code}")
            return ""
        return response.json().get("response", "")


class NoOpProvider(LLMProvider):
    """Disabled LLM provider - returns empty string."""

    async def generate(self, prompt: str, max_tokens: int = DESCRIPTION_MAX_TOKENS) -> str:
        return ""


def get_llm_provider() -> LLMProvider:
    """Factory for the configured provider."""
    provider_name = settings.LLM_PROVIDER.lower()

    if provider_name == "replicate":
        try:
            return ReplicateProvider()
        except ValueError as e:
            logger.warning(f"Replicate not configured: {e}, falling back to none")
            return NoOpProvider()

    if provider_name == "ollama":
        return OllamaProvider()

    return NoOpProvider()


_BULLET_PREFIX = re.compile(r"^(\d+[.)]\s*|[-•*]\s*)")
_SECTION_LABEL = re.compile(r"^[A-Z/ ]{3,}:\s*")


def extract_bullets(text: str) -> list[str]:
    """Split an LLM reply into clean bullet lines, numbering and trailing periods removed."""
    if not text:
        return []
    lines = []
    for line in text.splitlines():
        line = _BULLET_PREFIX.sub("", line.strip()).strip()
        # Drop section labels like "MIDSOLE/RIDE:"
        line = _SECTION_LABEL.sub("", line)
        line = line.rstrip(".").strip()
        if line:
            lines.append(line)
    return lines
