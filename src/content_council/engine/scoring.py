"""
Quality scoring for generated content.

Two independent measures are combined into one score:

- E-E-A-T compliance: per dimension, a fixed list of indicator keywords; each
  distinct indicator found in the lower-cased body is worth 20 points.
- SEO rubric: additive points for title and description windows, content
  length, keyword density, headings and metadata presence, capped at 100.

Both are lexical heuristics. They are deterministic and reproducible from the
text alone, not a semantic judgement of quality.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from content_council.protocol.types import ContentDraft, EATCompliance, ScoreResult, SEOAnalysis

logger = logging.getLogger(__name__)

EAT_DIMENSIONS = ("expertise", "experience", "authoritativeness", "trustworthiness")

THAI_INDICATORS: dict[str, tuple[str, ...]] = {
    "expertise": ("วิเคราะห์", "ศึกษา", "ข้อมูล", "วิธีการ", "เทคนิค", "ผลการ"),
    "experience": ("ประสบการณ์", "ได้ลอง", "ปฏิบัติ", "การใช้งาน", "ผลลัพธ์"),
    "authoritativeness": ("อ้างอิง", "แหล่งที่มา", "สถิติ", "การศึกษา", "ผู้เชี่ยวชาญ"),
    "trustworthiness": ("ตรวจสอบ", "เชื่อถือได้", "โปร่งใส", "ข้อเท็จจริง", "ความจริง"),
}

ENGLISH_INDICATORS: dict[str, tuple[str, ...]] = {
    "expertise": ("technical terms", "detailed analysis", "case studies", "professional insights"),
    "experience": ("personal experience", "practical advice", "real results", "hands-on"),
    "authoritativeness": (
        "credible sources",
        "statistics",
        "expert analysis",
        "comprehensive coverage",
    ),
    "trustworthiness": (
        "verifiable information",
        "transparent sources",
        "up-to-date",
        "honest assessment",
    ),
}


def indicators_for_language(language: str) -> dict[str, tuple[str, ...]]:
    """Return the default indicator table for a content language."""
    if language.strip().lower() in ("thai", "th"):
        return dict(THAI_INDICATORS)
    return dict(ENGLISH_INDICATORS)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (``round`` rounds half to even)."""
    return int(math.floor(round(value, 9) + 0.5))


class ScoringRubric(BaseModel):
    """Thresholds and point values for the scoring engine."""

    model_config = ConfigDict(frozen=True)

    indicator_points: int = 20

    title_length: tuple[int, int] = (30, 60)
    title_length_points: int = 10
    title_keyword_points: int = 10

    description_length: tuple[int, int] = (120, 160)
    description_length_points: int = 8
    description_keyword_points: int = 7

    long_content_words: int = 800
    long_content_points: int = 15
    medium_content_words: int = 500
    medium_content_points: int = 10

    keyword_density: tuple[float, float] = (0.5, 2.5)
    keyword_density_points: int = 20

    heading_markers: tuple[str, ...] = ("#", "<h")
    heading_points: int = 15

    schema_markup_points: int = 5
    tags_points: int = 5
    internal_links_points: int = 5

    qualitative_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    seo_weight: float = Field(default=0.4, ge=0.0, le=1.0)


def count_words(text: str) -> int:
    return len(text.split())


def keyword_density(text: str, keyword: str) -> float:
    """Keyword occurrences per 100 words (case-insensitive, non-overlapping)."""
    words = count_words(text)
    keyword = keyword.strip().lower()
    if not words or not keyword:
        return 0.0
    return text.lower().count(keyword) / words * 100


class QualityScorer:
    """Computes E-E-A-T compliance, SEO analysis and the combined score."""

    def __init__(
        self,
        rubric: ScoringRubric | None = None,
        indicators: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self.rubric = rubric or ScoringRubric()
        table = indicators if indicators is not None else THAI_INDICATORS
        missing = [dimension for dimension in EAT_DIMENSIONS if dimension not in table]
        if missing:
            raise ValueError(f"Indicator table is missing dimensions: {', '.join(missing)}")
        self.indicators = {dimension: tuple(table[dimension]) for dimension in EAT_DIMENSIONS}

    def eat_compliance(self, body: str | None) -> EATCompliance:
        text = (body or "").lower()
        scores: dict[str, int] = {}
        details: dict[str, list[str]] = {}
        for dimension, indicators in self.indicators.items():
            matched = sorted({indicator for indicator in indicators if indicator.lower() in text})
            details[dimension] = matched
            scores[dimension] = min(100, self.rubric.indicator_points * len(matched))

        overall = round_half_up(sum(scores.values()) / len(scores))
        return EATCompliance(**scores, overall=overall, details=details)

    def seo_analysis(self, draft: ContentDraft, keyword: str) -> SEOAnalysis:
        rubric = self.rubric
        keyword_lower = keyword.strip().lower()
        details: dict[str, int] = {}
        recommendations: list[str] = []

        def award(check: str, passed: bool, points: int, advice: str) -> None:
            details[check] = points if passed else 0
            if not passed:
                recommendations.append(advice)

        title = draft.title or ""
        low, high = rubric.title_length
        award(
            "title_length",
            bool(title) and low <= len(title) <= high,
            rubric.title_length_points,
            f"Keep the title between {low} and {high} characters",
        )
        award(
            "title_keyword",
            bool(title) and bool(keyword_lower) and keyword_lower in title.lower(),
            rubric.title_keyword_points,
            "Include the target keyword in the title",
        )

        description = draft.meta_description or ""
        low, high = rubric.description_length
        award(
            "description_length",
            bool(description) and low <= len(description) <= high,
            rubric.description_length_points,
            f"Keep the meta description between {low} and {high} characters",
        )
        award(
            "description_keyword",
            bool(description) and bool(keyword_lower) and keyword_lower in description.lower(),
            rubric.description_keyword_points,
            "Include the target keyword in the meta description",
        )

        body = draft.body or ""
        words = count_words(body)
        if words >= rubric.long_content_words:
            details["content_length"] = rubric.long_content_points
        elif words >= rubric.medium_content_words:
            details["content_length"] = rubric.medium_content_points
            recommendations.append(f"Expand the content to {rubric.long_content_words}+ words")
        else:
            details["content_length"] = 0
            recommendations.append(f"Expand the content to {rubric.long_content_words}+ words")

        low_density, high_density = rubric.keyword_density
        density = keyword_density(body, keyword_lower)
        award(
            "keyword_density",
            bool(keyword_lower) and low_density <= density <= high_density,
            rubric.keyword_density_points,
            f"Adjust keyword density to {low_density}-{high_density}% (now {density:.2f}%)",
        )
        award(
            "headings",
            any(marker in body for marker in rubric.heading_markers),
            rubric.heading_points,
            "Structure the content with headings",
        )
        award(
            "schema_markup",
            bool(draft.schema_markup),
            rubric.schema_markup_points,
            "Add schema markup",
        )
        award("tags", bool(draft.suggested_tags), rubric.tags_points, "Suggest tags")
        award(
            "internal_links",
            bool(draft.internal_links),
            rubric.internal_links_points,
            "Suggest internal links",
        )

        score = min(100, sum(details.values()))
        return SEOAnalysis(score=score, details=details, recommendations=recommendations)

    def combine(self, eat: EATCompliance, seo: SEOAnalysis) -> ScoreResult:
        combined = round_half_up(
            eat.overall * self.rubric.qualitative_weight + seo.score * self.rubric.seo_weight
        )
        return ScoreResult(
            expertise=eat.expertise,
            experience=eat.experience,
            authoritativeness=eat.authoritativeness,
            trustworthiness=eat.trustworthiness,
            overall_qualitative=eat.overall,
            seo_score=seo.score,
            combined_score=min(100, combined),
        )

    def score(
        self, draft: ContentDraft, keyword: str
    ) -> tuple[EATCompliance, SEOAnalysis, ScoreResult]:
        """Run both analyses over *draft* and combine them."""
        eat = self.eat_compliance(draft.body)
        seo = self.seo_analysis(draft, keyword)
        result = self.combine(eat, seo)
        logger.debug(
            "Scored content: eat=%d seo=%d combined=%d",
            eat.overall,
            seo.score,
            result.combined_score,
        )
        return eat, seo, result


__all__ = [
    "EAT_DIMENSIONS",
    "ENGLISH_INDICATORS",
    "THAI_INDICATORS",
    "QualityScorer",
    "ScoringRubric",
    "count_words",
    "indicators_for_language",
    "keyword_density",
    "round_half_up",
]
