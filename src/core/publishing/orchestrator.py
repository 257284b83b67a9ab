#!/usr/bin/env python3
"""
Publish pipeline orchestration.

One run walks Fetch -> Analyze -> Generate media -> Post and returns a
PublishRun describing everything that happened. Only a failed fetch stops the
run early; analysis and media failures are logged and the run carries on with
what it has. Posting is sequential and stops at the first failed post.
"""

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, Tuple

from ..analysis.commentary import CommentaryGenerator
from ..analysis.content_analyzer import ContentAnalyzer
from ..exceptions import EmptyContentError, PostingError, PublisherError
from ..formatting.commentary_formatter import (
    CommentaryFormatter, expressive_image_caption, format_date_for_commentary
)
from ..models.article import Article, FetchedIssue
from ..models.analysis import AnalysisResult, InfoImageData, Language
from ..models.publish import PostOutcome, PostStatus, PublishRun, RunState
from ..sources.base import ContentSource
from .interfaces import ImageRenderer, SocialPublisher

logger = logging.getLogger(__name__)

STEP_PRIMARY_BUNDLE = "zh_bundle"
STEP_SECONDARY_BUNDLE = "en_bundle"
STEP_EXPRESSIVE_IMAGE = "expressive_image"

SKIP_PREVIOUS_FAILED = "previous post failed"
SKIP_DRY_RUN = "dry run"


def _error_message(error: BaseException) -> str:
    if isinstance(error, PublisherError):
        return error.message
    return str(error) or error.__class__.__name__


class PublishOrchestrator:
    """Runs the fetch, analyze, generate and post sequence for one edition."""

    def __init__(self, content_source: ContentSource, analyzer: ContentAnalyzer,
                 generator: CommentaryGenerator, image_renderer: ImageRenderer,
                 publisher: Optional[SocialPublisher], formatter: Optional[CommentaryFormatter] = None,
                 post_delay_seconds: float = 2.0, max_titles_for_images: int = 15):
        """
        Args:
            content_source: Edition fetcher
            analyzer: Keyword scorer
            generator: Commentary and translation generator
            image_renderer: Infographic and illustration renderer
            publisher: Social publisher; may be None for dry runs and previews
            formatter: Post formatter, default 280-unit budget
            post_delay_seconds: Pause before each post after the first
            max_titles_for_images: Headline cap for image inputs
        """
        self.content_source = content_source
        self.analyzer = analyzer
        self.generator = generator
        self.image_renderer = image_renderer
        self.publisher = publisher
        self.formatter = formatter or CommentaryFormatter()
        self.post_delay_seconds = post_delay_seconds
        self.max_titles_for_images = max_titles_for_images

    async def run(self, date: str, custom_context: Optional[str] = None, dry_run: bool = False) -> PublishRun:
        """
        Run the full pipeline for one edition date.

        Never raises: unexpected errors end the run in the FAILED state with a
        critical entry in the error log.
        """
        run = PublishRun(requested_date=date)
        logger.info(f"Starting publish run for {date}{' (dry run)' if dry_run else ''}")

        try:
            issue = await self._fetch(run, date)
            if issue is None:
                return run

            analysis, articles = await self._analyze(run, issue, custom_context)
            await self._generate_media(run, analysis, articles)

            if not dry_run and self.publisher is None:
                raise PostingError(STEP_PRIMARY_BUNDLE, "no social publisher configured")
            await self._post_all(run, dry_run)

            run.state = RunState.DONE
            run.message = self._summarize(run, dry_run)
        except Exception as e:
            logger.error(f"Critical error in publish run for {date}: {e}", exc_info=True)
            run.state = RunState.FAILED
            run.success = False
            run.log_error("critical", _error_message(e))
            run.message = f"Critical error: {_error_message(e)}"

        logger.info(f"Publish run for {date} finished: {run.message}")
        return run

    async def preview(self, date: str, custom_context: Optional[str] = None,
                      front_page_only: bool = True) -> PublishRun:
        """Fetch and analyze only: commentary is generated and formatted, nothing is rendered or posted."""
        run = PublishRun(requested_date=date)
        try:
            issue = await self._fetch(run, date, front_page_only=front_page_only)
            if issue is None:
                return run
            await self._analyze(run, issue, custom_context)
            run.state = RunState.DONE
            run.success = True
            run.message = f"Analyzed {run.fetched_articles_count} articles"
        except Exception as e:
            logger.error(f"Critical error in preview for {date}: {e}", exc_info=True)
            run.state = RunState.FAILED
            run.log_error("critical", _error_message(e))
            run.message = f"Critical error: {_error_message(e)}"
        return run

    # Step 1
    async def _fetch(self, run: PublishRun, date: str, front_page_only: bool = True) -> Optional[FetchedIssue]:
        run.state = RunState.FETCHING
        try:
            issue = await self.content_source.fetch(date, front_page_only=front_page_only)
        except Exception as e:
            return self._fail_fetch(run, _error_message(e))

        run.fetched_articles_count = len(issue.articles)
        run.fetched_date = issue.date
        run.source_url = issue.url

        if issue.error:
            return self._fail_fetch(run, issue.error)
        if not issue.articles:
            return self._fail_fetch(run, EmptyContentError("No articles fetched").message)

        run.fetch_completed = True
        logger.info(f"Fetched {run.fetched_articles_count} articles for {issue.date}")
        return issue

    def _fail_fetch(self, run: PublishRun, reason: str) -> None:
        logger.error(f"Fetch failed: {reason}")
        run.log_error("fetch", reason)
        run.state = RunState.FAILED
        run.success = False
        run.message = f"Fetch failed: {reason}"
        return None

    # Step 2
    async def _analyze(self, run: PublishRun, issue: FetchedIssue,
                       custom_context: Optional[str]) -> Tuple[Optional[AnalysisResult], List[Article]]:
        run.state = RunState.ANALYZING

        english_titles = await self.generator.translate_titles([article.title for article in issue.articles])
        articles = [article.with_english_title(english)
                    for article, english in zip(issue.articles, english_titles)]

        try:
            analysis = self.analyzer.analyze(articles, custom_context)
        except EmptyContentError as e:
            logger.warning(f"Analysis skipped: {e.message}")
            run.log_error("analysis", e.message)
            return None, articles

        run.analysis_performed = True
        run.analysis = analysis.to_dict()

        pair = await self.generator.generate_both(analysis, articles, custom_context)

        if pair.primary.ok:
            run.primary_commentary = pair.primary.raw_text
            run.formatted_primary_commentary = self.formatter.format(pair.primary.raw_text, issue.date, Language.ZH)
            run.primary_commentary_generated = True
        else:
            run.log_error("commentary:zh", pair.primary.error or "empty commentary")

        if pair.secondary.ok:
            run.secondary_commentary = pair.secondary.raw_text
            run.formatted_secondary_commentary = self.formatter.format(pair.secondary.raw_text, issue.date, Language.EN)
            run.secondary_commentary_generated = True
        else:
            run.log_error("commentary:en", pair.secondary.error or "empty commentary")

        return analysis, articles

    # Step 3
    def _image_titles(self, analysis: Optional[AnalysisResult], articles: List[Article]) -> Tuple[List[str], List[str]]:
        ordered = analysis.categories.combined if analysis else articles
        ordered = [article for article in ordered if article.title.strip()][:self.max_titles_for_images]
        return [article.title for article in ordered], [article.display_english_title for article in ordered]

    def _info_data(self, run: PublishRun, analysis: AnalysisResult, titles: List[str]) -> InfoImageData:
        return InfoImageData(
            fetched_date=format_date_for_commentary(run.fetched_date),
            title_unique_mentions=analysis.title_unique_mentions,
            body_unique_mentions=analysis.body_unique_mentions,
            article_count=analysis.article_count,
            xi_index=analysis.xi_index,
            article_titles=titles
        )

    async def _generate_media(self, run: PublishRun, analysis: Optional[AnalysisResult],
                              articles: List[Article]) -> None:
        run.state = RunState.GENERATING
        titles, english_titles = self._image_titles(analysis, articles)

        # (log tag, image attribute, completion flag, coroutine)
        jobs: List[Tuple[str, str, str, Awaitable[Any]]] = []

        if run.secondary_commentary:
            jobs.append((
                "media:expressive", "expressive_image", "expressive_image_generated",
                self.image_renderer.render_expressive(
                    run.secondary_commentary, Language.EN, titles_hint="; ".join(english_titles)
                )
            ))
        else:
            logger.info("Skipping expressive image: no English commentary")

        if analysis is not None:
            jobs.append((
                "media:info-zh", "primary_info_image", "primary_info_image_generated",
                self.image_renderer.render_info(self._info_data(run, analysis, titles), Language.ZH)
            ))
            jobs.append((
                "media:info-en", "secondary_info_image", "secondary_info_image_generated",
                self.image_renderer.render_info(self._info_data(run, analysis, english_titles), Language.EN)
            ))
        else:
            logger.info("Skipping infographics: no analysis scores")

        if not jobs:
            return

        results = await asyncio.gather(*(job[3] for job in jobs), return_exceptions=True)
        for (tag, attribute, flag, _), result in zip(jobs, results):
            if isinstance(result, BaseException):
                logger.warning(f"{tag} failed: {_error_message(result)}")
                run.log_error(tag, _error_message(result))
            elif not result:
                run.log_error(tag, "renderer returned no image")
            else:
                setattr(run, attribute, result)
                setattr(run, flag, True)

    # Steps 4-6
    async def _post_all(self, run: PublishRun, dry_run: bool) -> None:
        run.state = RunState.POSTING
        steps = [
            (STEP_PRIMARY_BUNDLE, run.formatted_primary_commentary, run.primary_info_image,
             "Chinese commentary or infographic missing"),
            (STEP_SECONDARY_BUNDLE, run.formatted_secondary_commentary, run.secondary_info_image,
             "English commentary or infographic missing"),
            (STEP_EXPRESSIVE_IMAGE, expressive_image_caption(run.fetched_date), run.expressive_image,
             "expressive image missing"),
        ]

        chain_broken = False
        for index, (step, text, image, missing_reason) in enumerate(steps):
            if dry_run:
                run.record_post(PostOutcome(step, PostStatus.SKIPPED, reason=SKIP_DRY_RUN))
                continue
            if chain_broken:
                logger.info(f"Skipping {step}: {SKIP_PREVIOUS_FAILED}")
                run.record_post(PostOutcome(step, PostStatus.SKIPPED, reason=SKIP_PREVIOUS_FAILED))
                continue
            if not text or not image:
                logger.info(f"Skipping {step}: {missing_reason}")
                run.log_error(f"post:{step}", missing_reason)
                run.record_post(PostOutcome(step, PostStatus.SKIPPED, reason=missing_reason))
                continue

            if index > 0 and self.post_delay_seconds > 0:
                await asyncio.sleep(self.post_delay_seconds)

            outcome = await self._post(step, text, image)
            run.record_post(outcome)
            if outcome.status == PostStatus.FAILED:
                chain_broken = True
                run.log_error(f"post:{step}", outcome.reason)

        run.success = not chain_broken

    async def _post(self, step: str, text: str, image: str) -> PostOutcome:
        logger.info(f"Posting {step}")
        try:
            result = await self.publisher.post(text, image)
        except Exception as e:
            error = e if isinstance(e, PostingError) else PostingError(step, _error_message(e))
            logger.error(error.message)
            return PostOutcome(step, PostStatus.FAILED, reason=error.message)

        if not result.success:
            error = PostingError(step, result.message or "publisher reported failure")
            logger.error(error.message)
            return PostOutcome(step, PostStatus.FAILED, reason=error.message)

        logger.info(f"Posted {step}: {result.post_ref}")
        return PostOutcome(step, PostStatus.POSTED, post_ref=result.post_ref)

    @staticmethod
    def _summarize(run: PublishRun, dry_run: bool) -> str:
        posted = [outcome for outcome in run.posts if outcome.status == PostStatus.POSTED]
        failed = [outcome for outcome in run.posts if outcome.status == PostStatus.FAILED]

        if dry_run:
            summary = "Dry run complete; nothing posted"
        elif failed:
            summary = f"Posting stopped at {failed[0].step}: {failed[0].reason}"
        else:
            summary = f"Published {len(posted)} of {len(run.posts)} posts"

        if run.error_log:
            summary += f" ({len(run.error_log)} issue{'s' if len(run.error_log) != 1 else ''} logged)"
        return summary
