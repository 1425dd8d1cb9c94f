"""Quality variant of the council.

Runs a fixed five-stage E-E-A-T pipeline over a structured
:class:`ContentDraft` instead of a plain text buffer, then scores the result
and attaches schema.org metadata. Lifecycle, degradation and health handling
are inherited unchanged from :class:`CouncilOrchestrator`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from content_council.config.settings import CouncilSettings, Variant
from content_council.engine.degradation import DegradationReport
from content_council.engine.metadata import (
    StructuredMetadataGenerator,
    merge_draft,
    parse_seo_structure,
)
from content_council.engine.orchestrator import CouncilOrchestrator
from content_council.engine.pipeline import execute_stage
from content_council.engine.prompts import (
    authority_seo_prompt,
    comprehensiveness_prompt,
    eat_creation_prompt,
    expertise_validation_prompt,
    local_authority_prompt,
)
from content_council.engine.scoring import QualityScorer, indicators_for_language
from content_council.protocol.types import ContentDraft, QualityRun, Role
from content_council.providers.registry import ProviderRegistry

if TYPE_CHECKING:
    from content_council.providers.pool import ProviderPool

logger = logging.getLogger(__name__)

QUALITY_WORKFLOW = "quality"

# Later-stage prompt builders: (body, keyword, excerpt length) -> prompt
_StageBrief = Callable[[str, str, int], str]

QUALITY_STAGES: tuple[tuple[Role, _StageBrief | None], ...] = (
    (Role.CREATOR, None),
    (Role.REVIEWER, authority_seo_prompt),
    (Role.VALIDATOR, expertise_validation_prompt),
    (Role.ENHANCER, comprehensiveness_prompt),
    (Role.LOCALIZER, local_authority_prompt),
)


class QualityCouncil(CouncilOrchestrator):
    """Council that produces scored, SEO-structured content.

    Providers are always initialized in ascending ``priority`` order.
    """

    variant: ClassVar[Variant] = "quality"

    def __init__(
        self,
        settings: CouncilSettings | None = None,
        registry: ProviderRegistry | None = None,
        *,
        provider_pool: ProviderPool | None = None,
    ) -> None:
        super().__init__(settings, registry, provider_pool=provider_pool)
        if not self._settings.sort_by_priority:
            self._settings = self._settings.model_copy(update={"sort_by_priority": True})
        self._scorer = QualityScorer(
            indicators=indicators_for_language(self._settings.target_language)
        )
        self._metadata = StructuredMetadataGenerator(self._settings.organization)

    @property
    def scorer(self) -> QualityScorer:
        return self._scorer

    async def create_optimized_content(
        self,
        prompt: str,
        target_keyword: str,
        content_type: str = "article",
        *,
        timeout: float | None = None,
    ) -> QualityRun:
        """Run the quality pipeline and score its output.

        Args:
            prompt: Topic or brief for the content.
            target_keyword: SEO keyword the content is optimized for.
            content_type: ``"article"`` or any other value for a blog post.
            timeout: Optional deadline in seconds for the whole run.

        Returns:
            A :class:`QualityRun`. Scores and metadata are present whenever the
            run ended with a body, including degraded runs.

        Raises:
            CouncilNotReadyError: The council is not (partially) initialized.
            CouncilValidationError: Empty prompt or keyword.
        """
        self._ensure_ready()
        self._validate_text(prompt)
        self._validate_text(target_keyword, "target keyword")

        run = QualityRun(
            original_prompt=prompt,
            target_keyword=target_keyword,
            content_type=content_type,
        )

        async def body(generation: int) -> None:
            await self._execute_stages(run, generation)

        def on_fallback(fallback: str, report: DegradationReport) -> None:
            run.content = run.content.model_copy(update={"body": fallback})

        await self._run_guarded(
            run, QUALITY_WORKFLOW, body, timeout=timeout, on_fallback=on_fallback
        )
        self._finalize(run)
        return run

    async def _execute_stages(self, run: QualityRun, generation: int) -> None:
        keyword = run.target_keyword
        limit = self._settings.excerpt_chars

        for index, (role, brief) in enumerate(QUALITY_STAGES):
            self.ensure_generation(generation)

            provider_id = self.member_for_role(role.value)
            if provider_id is None:
                logger.debug("Skipping %s stage: no member assigned", role.value)
                continue
            if index > 0 and not run.content.body:
                logger.debug("Skipping %s stage: no content to work on", role.value)
                continue

            if brief is None:
                stage_prompt = eat_creation_prompt(run.original_prompt, keyword)
            else:
                stage_prompt = brief(run.content.body or "", keyword, limit)

            output = await execute_stage(
                self, generation, run.steps, role.value, provider_id, stage_prompt
            )

            if role == Role.REVIEWER:
                parsed, structured = parse_seo_structure(output)
                if not structured:
                    logger.warning("Reviewer output was not valid SEO JSON, using regex fallback")
                run.content = merge_draft(run.content, parsed)
            else:
                run.content = run.content.model_copy(update={"body": output})

            if role == Role.VALIDATOR:
                run.content = run.content.model_copy(
                    update={"schema_markup": self._schema_markup(run)}
                )

    def _schema_markup(self, run: QualityRun) -> dict[str, Any]:
        return self._metadata.generate(run.content, run.content_type, run.target_keyword)

    def _finalize(self, run: QualityRun) -> None:
        """Score the final draft and attach structured metadata."""
        if not run.content.body:
            logger.info("Quality run produced no content, skipping scoring")
            return

        draft: ContentDraft = run.content
        eat, seo, score = self._scorer.score(draft, run.target_keyword)
        run.eat_compliance = eat
        run.seo_analysis = seo
        run.score = score
        run.structured_metadata = self._schema_markup(run)
        logger.info(
            "Quality run scored %d (E-E-A-T %d, SEO %d)",
            score.combined_score,
            eat.overall,
            seo.score,
        )


__all__ = ["QUALITY_STAGES", "QUALITY_WORKFLOW", "QualityCouncil"]
