"""
Keyword classifier turning free-text runner notes into ContextSignals.

Notes arrive from an upstream chat step as plain sentences ("recovering from
shin splints, I have wide feet, hate Nike"). Matching is keyword based and
deterministic; anything unrecognised is ignored.
"""

import logging
import re
from typing import Iterable, Optional

from shoe_matcher.models.runner import ContextSignals, FitSignal, InjurySignal, PastShoeSignal

logger = logging.getLogger(__name__)


INJURY_KEYWORDS = {
    "plantar_fasciitis": ["plantar", "fasciitis", "heel pain", "arch pain"],
    "achilles": ["achilles"],
    "shin_splints": ["shin splint", "shin splints", "shin pain", "shins"],
    "knee": ["knee", "runner's knee", "patellofemoral"],
    "it_band": ["it band", "itb", "iliotibial"],
    "stress_fracture": ["stress fracture", "stress reaction"],
}

PAST_INJURY_KEYWORDS = [
    "used to", "years ago", "months ago", "last year", "recovered", "healed", "no longer",
    "in the past", "history of", "previously",
]

CLIMATE_KEYWORDS = {
    "wet": ["rain", "rainy", "wet", "puddle", "drizzle", "slippery"],
    "hot": ["hot", "humid", "heat", "summer", "tropical"],
    "cold": ["cold", "snow", "icy", "winter", "freezing"],
}

REQUEST_KEYWORDS = {
    "lightweight": ["light", "lightweight", "lighter"],
    "cushioned": ["cushion", "soft", "plush", "comfy", "comfortable"],
    "fast": ["fast", "speed", "quick", "personal best"],
    "stable": ["stable", "stability", "support", "overpronat"],
    "long_runs": ["long run", "long runs", "marathon", "long distance"],
}

WIDTH_KEYWORDS = {
    "extra_wide": ["extra wide", "very wide", "4e"],
    "wide": ["wide feet", "wide foot", "wide fit", "2e", "feet are wide", "foot is wide"],
    "narrow": ["narrow feet", "narrow foot", "narrow heel", "feet are narrow", "foot is narrow"],
}

TOE_BOX_KEYWORDS = ["toe box", "toebox", "bunion", "toes squashed", "cramped toes", "black toenail"]
HIGH_VOLUME_KEYWORDS = ["high volume", "high arch", "thick feet", "high instep"]
LOW_VOLUME_KEYWORDS = ["low volume", "flat feet", "heel slip", "heel slippage", "slim feet"]

SENTIMENT_KEYWORDS = [
    ("hated", ["hate", "hated", "awful", "terrible", "never again", "doesn't work", "don't work", "didn't work"]),
    ("disliked", ["dislike", "disliked", "didn't like", "not a fan", "hurt", "gave me"]),
    ("loved", ["love", "loved", "favourite", "favorite", "amazing", "best shoe"]),
    ("liked", ["like", "liked", "enjoy", "enjoyed", "good", "decent"]),
]

_SENTENCE_SPLIT = re.compile(r"[.!?;\n]+|\bbut\b")

# A negator up to two words before a sentiment keyword ("don't really like", "never loved")
_NEGATION = re.compile(r"\b(?:not|never|no longer|(?:do|does|did|was|is)n['’]?t)(?:\s+\w+){0,2}\s*$")
POSITIVE_SENTIMENTS = ("loved", "liked")


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(kw in text for kw in keywords)


def _contains_word(text: str, keywords: Iterable[str]) -> bool:
    return any(re.search(rf"\b{re.escape(kw)}", text) for kw in keywords)


def _sentence_sentiment(sentence: str) -> Optional[str]:
    """Sentiment of a sentence; negated praise reads as dislike, negated complaints as neutral."""
    for label, keywords in SENTIMENT_KEYWORDS:
        for kw in keywords:
            match = re.search(rf"\b{re.escape(kw)}", sentence)
            if match is None:
                continue
            if _NEGATION.search(sentence[:match.start()]):
                return "disliked" if label in POSITIVE_SENTIMENTS else "neutral"
            return label
    return None


def classify_injuries(sentences: list[str]) -> list[InjurySignal]:
    found: dict[str, bool] = {}
    for sentence in sentences:
        for injury, keywords in INJURY_KEYWORDS.items():
            if not _contains_word(sentence, keywords):
                continue
            current = not _contains_any(sentence, PAST_INJURY_KEYWORDS)
            # A current mention anywhere wins over a past one.
            found[injury] = found.get(injury, False) or current
    return [InjurySignal(injury=injury, current=current) for injury, current in found.items()]


def classify_fit(text: str) -> Optional[FitSignal]:
    width = next(
        (width for width, keywords in WIDTH_KEYWORDS.items() if _contains_any(text, keywords)),
        None,
    )
    volume = None
    if _contains_any(text, HIGH_VOLUME_KEYWORDS):
        volume = "high"
    elif _contains_any(text, LOW_VOLUME_KEYWORDS):
        volume = "low"
    roomy_toes = _contains_any(text, TOE_BOX_KEYWORDS)

    if width is None and volume is None and not roomy_toes:
        return None
    return FitSignal(width=width, volume=volume, needs_roomy_toe_box=roomy_toes)


def classify_climate(text: str) -> Optional[str]:
    matched = [climate for climate, keywords in CLIMATE_KEYWORDS.items() if _contains_word(text, keywords)]
    if not matched:
        return None
    return matched[0] if len(matched) == 1 else "mixed"


def classify_requests(text: str) -> list[str]:
    return [request for request, keywords in REQUEST_KEYWORDS.items() if _contains_word(text, keywords)]


def classify_past_shoes(sentences: list[str], brands: Iterable[str]) -> list[PastShoeSignal]:
    """Brand mentions paired with the sentiment expressed in the same sentence."""
    signals = []
    brand_names = sorted({b for b in brands if b}, key=len, reverse=True)
    for sentence in sentences:
        sentiment = _sentence_sentiment(sentence)
        if sentiment is None:
            continue
        for brand in brand_names:
            if re.search(rf"\b{re.escape(brand.lower())}\b", sentence):
                signals.append(PastShoeSignal(brand=brand, sentiment=sentiment))
                break
    return signals


def classify_notes(notes: str, brands: Iterable[str] = ()) -> ContextSignals:
    """Structured context signals for free-text notes."""
    text = (notes or "").lower()
    if not text.strip():
        return ContextSignals()

    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text) if s and s.strip()]
    signals = ContextSignals(
        injuries=classify_injuries(sentences),
        fit=classify_fit(text),
        climate=classify_climate(text),
        requests=classify_requests(text),
        past_shoes=classify_past_shoes(sentences, brands),
    )
    logger.info(
        f"Classified notes: {len(signals.injuries)} injuries, {len(signals.requests)} requests, "
        f"{len(signals.past_shoes)} past shoes"
    )
    return signals


def merge_signals(structured: Optional[ContextSignals], classified: Optional[ContextSignals]) -> Optional[ContextSignals]:
    """Structured signals take precedence; classified ones fill the gaps."""
    if structured is None:
        return classified
    if classified is None:
        return structured

    injuries = {s.injury: s for s in classified.injuries}
    injuries.update({s.injury: s for s in structured.injuries})
    requests = list(structured.requests) + [r for r in classified.requests if r not in structured.requests]

    return ContextSignals(
        injuries=list(injuries.values()),
        fit=structured.fit or classified.fit,
        climate=structured.climate or classified.climate,
        requests=requests,
        past_shoes=list(structured.past_shoes) + list(classified.past_shoes),
    )
