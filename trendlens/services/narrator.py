"""
Insight narration boundary.

The analysis core never talks to a language model directly. It builds a plain
StructuredSummary and hands it to an injected InsightNarrator. Every call goes
through narrate_with_fallback(), which bounds it with a timeout and replaces any
failure with deterministic text built from the same structured data.

Providers:
- NullNarrator: always unavailable (no API key configured, tests)
- GeminiNarrator: Google Gemini generateContent REST API via aiohttp
"""

import asyncio
import json
import logging
import re
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol, Sequence

import aiohttp
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from trendlens.models.schemas import (
    CategoryMetrics,
    CategoryTrend,
    Cluster,
    EmergingCategory,
    StrongRelation,
    SubCategory,
    TrendRecord,
)
from trendlens.services.errors import NarrationUnavailable

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_SUBCATEGORY_LIST = TypeAdapter(List[SubCategory])
_TREND_LIST = TypeAdapter(List[CategoryTrend])


class StructuredSummary(BaseModel):
    """Serializable prompt context; never carries database or HTTP handles."""
    kind: Literal["category_insight", "sub_categories", "category_trends", "relations", "emerging"]
    subject: str = Field(description="Category name or analysis scope")
    facts: Dict[str, Any] = Field(default_factory=dict)
    samples: List[str] = Field(default_factory=list, description="Example titles or hashtags")


class InsightNarrator(Protocol):
    """Turns a structured summary into text, or raises NarrationUnavailable."""

    async def narrate(self, summary: StructuredSummary) -> str:
        ...


class NullNarrator:
    """Narrator used when no language model is configured."""

    async def narrate(self, summary: StructuredSummary) -> str:
        raise NarrationUnavailable("No narrator configured")


# === Summaries ===

def category_summary(metrics: CategoryMetrics) -> StructuredSummary:
    return StructuredSummary(
        kind="category_insight",
        subject=metrics.category,
        facts={
            "video_count": metrics.video_count,
            "total_views": metrics.total_views,
            "avg_views": round(metrics.avg_views),
            "total_likes": metrics.total_likes,
            "growth_rate_percent": round(metrics.growth_rate_percent, 1),
        },
    )


def sub_category_summary(category: str, records: Sequence[TrendRecord]) -> StructuredSummary:
    hashtags: Dict[str, None] = {}
    for record in records:
        for tag in record.hashtags:
            hashtags.setdefault(tag, None)
    return StructuredSummary(
        kind="sub_categories",
        subject=category,
        facts={"hashtags": list(hashtags)[:20]},
        samples=[record.title for record in records[:10] if record.title],
    )


def category_trends_summary(category: str, records: Sequence[TrendRecord]) -> StructuredSummary:
    hashtags: Dict[str, None] = {}
    for record in records:
        for tag in record.hashtags:
            hashtags.setdefault(tag, None)
    return StructuredSummary(
        kind="category_trends",
        subject=category,
        facts={"hashtags": list(hashtags)[:15]},
        samples=[record.title for record in records[:20] if record.title],
    )


def relations_summary(relations: Sequence[StrongRelation], clusters: Sequence[Cluster]) -> StructuredSummary:
    return StructuredSummary(
        kind="relations",
        subject="category relations",
        facts={
            "strong_relations": [
                f"{r.category_a} <-> {r.category_b} ({r.score * 100:.1f}%)" for r in relations[:5]
            ],
            "clusters": [", ".join(c.categories) for c in clusters[:3]],
        },
    )


def emerging_summary(categories: Sequence[EmergingCategory]) -> StructuredSummary:
    return StructuredSummary(
        kind="emerging",
        subject="emerging categories",
        facts={
            "categories": [
                {"name": c.name, "confidence": round(c.confidence, 2), "views": c.estimated_size}
                for c in categories[:5]
            ],
        },
    )


# === Deterministic Fallbacks ===

def category_fallback(metrics: CategoryMetrics) -> str:
    return (
        f"{metrics.category} had {metrics.video_count} items totaling "
        f"{metrics.total_views:,} views."
    )


def sub_category_fallback(category: str, records: Sequence[TrendRecord]) -> List[SubCategory]:
    return [SubCategory(
        name=f"{category} - General",
        percentage=100,
        examples=[record.title for record in records[:3] if record.title],
    )]


def relations_fallback(relations: Sequence[StrongRelation], clusters: Sequence[Cluster]) -> str:
    if not relations and not clusters:
        return "No strong relationships were found between categories."
    text = f"Found {len(relations)} strong category relations and {len(clusters)} clusters."
    if relations:
        top = relations[0]
        text += f" Strongest pair: {top.category_a} and {top.category_b} ({top.score * 100:.1f}%)."
    return text


def emerging_fallback(categories: Sequence[EmergingCategory]) -> str:
    if not categories:
        return "No emerging categories were detected."
    top = categories[0]
    return (
        f"Detected {len(categories)} emerging categories; {top.name} leads with "
        f"confidence {top.confidence:.2f} and {top.estimated_size:,} views."
    )


def extract_json_array(text: str) -> Any:
    """First [...] block in free-form text, parsed as JSON."""
    match = _JSON_ARRAY.search(text or "")
    if not match:
        raise ValueError("no JSON array in response")
    return json.loads(match.group(0))


def parse_sub_categories(text: str) -> List[SubCategory]:
    """
    Best-effort extraction of narrated sub-categories.

    Raises:
        NarrationUnavailable: the text holds no valid sub-category list
    """
    try:
        parsed = _SUBCATEGORY_LIST.validate_python(extract_json_array(text))
    except (ValueError, ValidationError) as e:
        raise NarrationUnavailable(f"Malformed sub-category response: {e}") from e
    if not parsed:
        raise NarrationUnavailable("Empty sub-category response")
    return parsed


def parse_category_trends(text: str) -> List[CategoryTrend]:
    """
    Best-effort extraction of narrated in-category trends.

    Raises:
        NarrationUnavailable: the text holds no valid trend list
    """
    try:
        return _TREND_LIST.validate_python(extract_json_array(text))
    except (ValueError, ValidationError) as e:
        raise NarrationUnavailable(f"Malformed trend response: {e}") from e


async def narrate_with_fallback(
    narrator: Optional[InsightNarrator],
    summary: StructuredSummary,
    fallback: str,
    timeout: float
) -> str:
    """
    Narrate `summary`, returning `fallback` on failure or timeout.

    The narrator call is cancelled when the timeout expires.
    """
    if narrator is None:
        return fallback
    try:
        text = await asyncio.wait_for(narrator.narrate(summary), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Narration timed out after {timeout}s for {summary.kind}:{summary.subject}")
        return fallback
    except NarrationUnavailable as e:
        logger.warning(f"Narration unavailable for {summary.kind}:{summary.subject}: {e}")
        return fallback
    text = (text or "").strip()
    return text or fallback


async def narrate_sub_categories(
    narrator: Optional[InsightNarrator],
    category: str,
    records: Sequence[TrendRecord],
    timeout: float
) -> List[SubCategory]:
    """Narrated sub-categories with a single 'General' bucket as fallback."""
    return await _narrate_list(
        narrator,
        sub_category_summary(category, records),
        parse_sub_categories,
        sub_category_fallback(category, records),
        timeout,
    )


async def narrate_category_trends(
    narrator: Optional[InsightNarrator],
    category: str,
    records: Sequence[TrendRecord],
    timeout: float
) -> List[CategoryTrend]:
    """Narrated trends inside a category; empty when narration is unavailable."""
    return await _narrate_list(
        narrator, category_trends_summary(category, records), parse_category_trends, [], timeout
    )


async def _narrate_list(
    narrator: Optional[InsightNarrator],
    summary: StructuredSummary,
    parse: Callable[[str], list],
    fallback: list,
    timeout: float
) -> list:
    if narrator is None:
        return fallback
    try:
        text = await asyncio.wait_for(narrator.narrate(summary), timeout=timeout)
        return parse(text)
    except asyncio.TimeoutError:
        logger.warning(f"Narration timed out after {timeout}s for {summary.kind}:{summary.subject}")
    except NarrationUnavailable as e:
        logger.warning(f"Narration unavailable for {summary.kind}:{summary.subject}: {e}")
    return fallback


# === Gemini Provider ===

PROMPTS = {
    "category_insight": (
        "Write a short insight (under 60 words) about the '{subject}' content category "
        "with its main characteristics and one strategic suggestion.\nData: {facts}"
    ),
    "sub_categories": (
        "Identify 3-5 sub-categories of the '{subject}' category from these examples.\n"
        "Titles:\n{samples}\nData: {facts}\n"
        'Answer only with a JSON array: [{{"name": str, "percentage": number 0-100, '
        '"examples": [str]}}]'
    ),
    "category_trends": (
        "Identify 3 emerging trends inside the '{subject}' category from its latest content.\n"
        "Titles:\n{samples}\nData: {facts}\n"
        'Answer only with a JSON array: [{{"trend": str, "confidence": number 0-1, '
        '"evidence": [str]}}]'
    ),
    "relations": (
        "Summarize these category relationships in under 60 words, including one "
        "marketing implication.\nData: {facts}"
    ),
    "emerging": (
        "Summarize these emerging content categories in under 60 words.\nData: {facts}"
    ),
}


def render_prompt(summary: StructuredSummary) -> str:
    return PROMPTS[summary.kind].format(
        subject=summary.subject,
        facts=json.dumps(summary.facts, ensure_ascii=False, default=str),
        samples="\n".join(summary.samples),
    )


class GeminiNarrator:
    """
    Narrator backed by the Gemini generateContent endpoint.

    Usage:
    ```python
    narrator = GeminiNarrator(api_key="...", model="gemini-1.5-flash")
    text = await narrator.narrate(summary)
    ```
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        temperature: float = 0.4,
        max_output_tokens: int = 400,
        request_timeout: float = 30.0
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.request_timeout = request_timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def build_payload(self, summary: StructuredSummary) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": render_prompt(summary)}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    @staticmethod
    def parse_response(body: Any) -> str:
        """
        Extract generated text from a generateContent response body.

        Raises:
            NarrationUnavailable: no candidate text in the body
        """
        try:
            parts = body["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise NarrationUnavailable(f"Malformed Gemini response: {e}") from e
        if not text.strip():
            raise NarrationUnavailable("Gemini returned empty text")
        return text

    async def narrate(self, summary: StructuredSummary) -> str:
        if not self.api_key:
            raise NarrationUnavailable("GEMINI_API_KEY is not configured")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=self.build_payload(summary),
                    timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                ) as response:
                    if response.status == 429:
                        raise NarrationUnavailable("Gemini quota exceeded")
                    if response.status != 200:
                        detail = await response.text()
                        raise NarrationUnavailable(f"Gemini HTTP {response.status}: {detail[:200]}")
                    body = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NarrationUnavailable(f"Gemini request failed: {e}") from e
        except json.JSONDecodeError as e:
            raise NarrationUnavailable(f"Gemini returned invalid JSON: {e}") from e

        return self.parse_response(body)
