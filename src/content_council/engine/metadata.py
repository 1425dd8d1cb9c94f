"""
Structured metadata and SEO structure parsing for the quality pipeline.

:class:`StructuredMetadataGenerator` builds a schema.org ``Article`` or
``BlogPosting`` document from a :class:`ContentDraft` without any external
calls. :func:`parse_seo_structure` turns the reviewer's reply into draft
fields, falling back to regex extraction when the reply is not valid JSON.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from jsonschema import Draft7Validator
from pydantic import ValidationError

from content_council.config.settings import OrganizationIdentity
from content_council.engine.scoring import count_words
from content_council.protocol.types import ContentDraft
from content_council.schemas import load_schema

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
DEFAULT_TITLE = "Generated Title"
DEFAULT_META_DESCRIPTION = "Generated meta description"

_TITLE_PATTERN = re.compile(r"""title['":\s]+([^'"\n]{10,60})""", re.IGNORECASE)
_DESCRIPTION_PATTERN = re.compile(
    r"""meta[^:]*description['":\s]+([^'"\n]{50,160})""", re.IGNORECASE
)
_SNIPPET_PATTERN = re.compile(r"""snippet['":\s]+([^'"\n]{50,200})""", re.IGNORECASE)


_DECODER = json.JSONDecoder()


def extract_json(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in *text*, or ``None``.

    Code fences and surrounding prose are skipped: decoding is attempted at
    each ``{`` in turn until one starts a complete object.
    """
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def _regex_fallback(text: str) -> ContentDraft:
    title = _TITLE_PATTERN.search(text)
    description = _DESCRIPTION_PATTERN.search(text)
    snippet = _SNIPPET_PATTERN.search(text)
    return ContentDraft(
        title=title.group(1).strip() if title else DEFAULT_TITLE,
        meta_description=description.group(1).strip() if description else DEFAULT_META_DESCRIPTION,
        featured_snippet=snippet.group(1).strip() if snippet else None,
        body=text,
    )


def parse_seo_structure(text: str) -> tuple[ContentDraft, bool]:
    """Parse the reviewer's reply into draft fields.

    Returns:
        ``(draft, structured)`` where *structured* is False when the regex
        fallback was used. Only fields present in the reply are marked as set,
        so callers can merge with ``model_dump(exclude_unset=True)``.
    """
    parsed = extract_json(text)
    if parsed is not None:
        validator = Draft7Validator(load_schema("seo_structure"))
        errors = [err.message for err in validator.iter_errors(parsed)]
        if not errors:
            try:
                return ContentDraft.model_validate(parsed), True
            except ValidationError as exc:
                errors = [str(exc)]
        logger.debug("SEO structure failed validation: %s", "; ".join(errors))
    else:
        logger.debug("SEO structure reply is not JSON, using regex fallback")
    return _regex_fallback(text), False


def merge_draft(draft: ContentDraft, update: ContentDraft) -> ContentDraft:
    """Return *draft* with every field explicitly set on *update* replaced."""
    return draft.model_copy(update=update.model_dump(exclude_unset=True))


class StructuredMetadataGenerator:
    """Builds schema.org metadata for generated content."""

    def __init__(self, organization: OrganizationIdentity | None = None) -> None:
        self.organization = organization or OrganizationIdentity()

    def _organization_node(self) -> dict[str, str]:
        return {
            "@type": "Organization",
            "name": self.organization.name,
            "url": self.organization.url,
        }

    def generate(
        self,
        draft: ContentDraft,
        content_type: str,
        keyword: str,
        *,
        url: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the metadata document.

        Args:
            draft: Final content of the run.
            content_type: ``"article"`` yields ``Article``; anything else ``BlogPosting``.
            keyword: Target keyword, listed first in ``keywords``.
            url: Canonical page URL; defaults to the organization URL.
            now: Timestamp for the publish/modify dates.
        """
        timestamp = (now or datetime.now(timezone.utc)).isoformat()

        keywords: list[str] = []
        for candidate in [keyword, *draft.keyword_variations]:
            candidate = candidate.strip()
            if candidate and candidate not in keywords:
                keywords.append(candidate)

        metadata: dict[str, Any] = {
            "@context": SCHEMA_CONTEXT,
            "@type": "Article" if content_type == "article" else "BlogPosting",
            "headline": draft.title or "Untitled",
            "description": draft.meta_description or "",
            "datePublished": timestamp,
            "dateModified": timestamp,
            "author": self._organization_node(),
            "publisher": self._organization_node(),
            "mainEntityOfPage": {"@type": "WebPage", "@id": url or self.organization.url},
            "keywords": keywords,
            "wordCount": count_words(draft.body or ""),
        }
        if draft.featured_snippet:
            metadata["abstract"] = draft.featured_snippet

        errors = self.validate(metadata)
        if errors:
            logger.warning("Structured metadata failed validation: %s", "; ".join(errors))
        return metadata

    @staticmethod
    def validate(metadata: Mapping[str, Any]) -> list[str]:
        """Return schema violations of *metadata*, empty when valid."""
        validator = Draft7Validator(load_schema("structured_metadata"))
        return [error.message for error in validator.iter_errors(metadata)]


__all__ = [
    "DEFAULT_META_DESCRIPTION",
    "DEFAULT_TITLE",
    "StructuredMetadataGenerator",
    "extract_json",
    "merge_draft",
    "parse_seo_structure",
]
