import asyncio

from core.exceptions import FetchError
from core.formatting.commentary_formatter import expressive_image_caption, weighted_length
from core.models.article import Article, FetchedIssue
from core.models.publish import PostStatus, RunState
from core.publishing.orchestrator import (
    SKIP_DRY_RUN,
    SKIP_PREVIOUS_FAILED,
    STEP_EXPRESSIVE_IMAGE,
    STEP_PRIMARY_BUNDLE,
    STEP_SECONDARY_BUNDLE,
)

from conftest import FakeContentSource, FakeImageRenderer, FakeLanguageModel, FakePublisher

DATE = "2025-06-01"


def test_full_run_posts_three_bundles_in_order(orchestrator_factory):
    """A clean run posts all three bundles in order."""
    publisher = FakePublisher()
    orchestrator = orchestrator_factory(publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is True
    assert run.state == RunState.DONE
    assert [outcome.step for outcome in run.posts] == [
        STEP_PRIMARY_BUNDLE, STEP_SECONDARY_BUNDLE, STEP_EXPRESSIVE_IMAGE
    ]
    assert all(outcome.status == PostStatus.POSTED for outcome in run.posts)
    assert run.posted_refs == [f"https://x.com/i/status/{n}" for n in (1, 2, 3)]

    assert publisher.posts[0] == (run.formatted_primary_commentary, run.primary_info_image)
    assert publisher.posts[1] == (run.formatted_secondary_commentary, run.secondary_info_image)
    assert publisher.posts[2] == (expressive_image_caption("20250601"), run.expressive_image)
    assert run.formatted_primary_commentary.startswith("【人民日报头版总结 2025-06-01】\n")
    assert weighted_length(run.formatted_secondary_commentary) <= 280
    assert run.error_log == []


def test_zero_articles_fails_without_posting(orchestrator_factory):
    """An issue with no articles stops the run before posting."""
    publisher = FakePublisher()
    empty_issue = FetchedIssue(articles=[], url="http://example.com/node_01.html", date="20250601")
    orchestrator = orchestrator_factory(issue=empty_issue, publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is False
    assert run.state == RunState.FAILED
    assert publisher.posts == []
    assert run.posts == []
    assert run.error_log[0].startswith("[fetch]")
    assert run.message.startswith("Fetch failed")


def test_source_error_aborts_run(orchestrator_factory):
    """A fetch error ends the run as failed."""
    publisher = FakePublisher()
    renderer = FakeImageRenderer()
    source = FakeContentSource(error=FetchError("fake", DATE, "cannot fetch future dates"))
    orchestrator = orchestrator_factory(source=source, renderer=renderer, publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is False
    assert run.fetch_completed is False
    assert publisher.posts == []
    assert renderer.info_calls == []
    assert "cannot fetch future dates" in run.message
    assert source.requests == [(DATE, True)]


def test_issue_error_is_fatal(orchestrator_factory, sample_articles):
    """An issue carrying an error ends the run as failed."""
    publisher = FakePublisher()
    issue = FetchedIssue(articles=sample_articles, url="u", date="20250601", error="layout missing")
    orchestrator = orchestrator_factory(issue=issue, publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is False
    assert run.fetched_articles_count == 2
    assert publisher.posts == []


def test_first_post_failure_skips_remaining_posts(orchestrator_factory):
    """A failed post skips every later post."""
    publisher = FakePublisher(fail_on_call=1)
    orchestrator = orchestrator_factory(publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert len(publisher.posts) == 1
    assert run.success is False
    assert run.state == RunState.DONE
    assert run.post_for(STEP_PRIMARY_BUNDLE).status == PostStatus.FAILED
    assert "rate limited" in run.post_for(STEP_PRIMARY_BUNDLE).reason
    for step in (STEP_SECONDARY_BUNDLE, STEP_EXPRESSIVE_IMAGE):
        assert run.post_for(step).status == PostStatus.SKIPPED
        assert run.post_for(step).reason == SKIP_PREVIOUS_FAILED
    # Generated content is still reported
    assert run.formatted_secondary_commentary
    assert run.expressive_image


def test_publisher_exception_breaks_chain(orchestrator_factory):
    """A publisher exception is recorded and breaks the chain."""
    publisher = FakePublisher(fail_on_call=2, raise_error=True)
    orchestrator = orchestrator_factory(publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert len(publisher.posts) == 2
    assert run.post_for(STEP_SECONDARY_BUNDLE).status == PostStatus.FAILED
    assert "connection reset" in run.post_for(STEP_SECONDARY_BUNDLE).reason
    assert run.post_for(STEP_EXPRESSIVE_IMAGE).reason == SKIP_PREVIOUS_FAILED
    assert any(entry.startswith(f"[post:{STEP_SECONDARY_BUNDLE}]") for entry in run.error_log)


def test_missing_prerequisite_skips_step_but_continues(orchestrator_factory):
    """A step missing its inputs is skipped without breaking the chain."""
    publisher = FakePublisher()
    renderer = FakeImageRenderer(failing=["info-zh"])
    orchestrator = orchestrator_factory(renderer=renderer, publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is True
    assert run.primary_info_image_generated is False
    assert run.post_for(STEP_PRIMARY_BUNDLE).status == PostStatus.SKIPPED
    assert run.post_for(STEP_SECONDARY_BUNDLE).status == PostStatus.POSTED
    assert run.post_for(STEP_EXPRESSIVE_IMAGE).status == PostStatus.POSTED
    assert len(publisher.posts) == 2
    assert any(entry.startswith("[media:info-zh]") for entry in run.error_log)
    assert f"[post:{STEP_PRIMARY_BUNDLE}] Chinese commentary or infographic missing" in run.error_log


def test_expressive_image_requires_english_commentary(orchestrator_factory):
    """No English commentary means no illustration."""
    publisher = FakePublisher()
    renderer = FakeImageRenderer()
    model = FakeLanguageModel({"commentary_en": RuntimeError("model unavailable")})
    orchestrator = orchestrator_factory(language_model=model, renderer=renderer, publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert renderer.expressive_calls == []
    assert len(renderer.info_calls) == 2
    assert any(entry.startswith("[commentary:en]") for entry in run.error_log)
    assert run.post_for(STEP_PRIMARY_BUNDLE).status == PostStatus.POSTED
    assert run.post_for(STEP_SECONDARY_BUNDLE).status == PostStatus.SKIPPED
    assert run.post_for(STEP_EXPRESSIVE_IMAGE).status == PostStatus.SKIPPED
    assert run.success is True


def test_translation_failure_keeps_original_titles(orchestrator_factory):
    """English media falls back to Chinese titles when translation fails."""
    renderer = FakeImageRenderer()
    model = FakeLanguageModel({"translate_titles": RuntimeError("quota exceeded")})
    orchestrator = orchestrator_factory(language_model=model, renderer=renderer, publisher=FakePublisher())

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is True
    english_info = [data for data, language in renderer.info_calls if language.value == "en"][0]
    assert english_info.article_titles == ["习近平出席中央经济工作会议", "全国秋粮收购进展顺利"]
    assert not any(entry.startswith("[translation") for entry in run.error_log)


def test_media_inputs_are_capped_and_keyword_first(orchestrator_factory):
    """Media titles are capped with keyword articles first."""
    articles = [
        Article(title=f"其他新闻 {n}", content="内容", url=f"http://example.com/{n}.html") for n in range(20)
    ]
    articles.append(Article(title="习近平回信", content="内容", url="http://example.com/xi.html"))
    renderer = FakeImageRenderer()
    issue = FetchedIssue(articles=articles, url="u", date="20250601")
    orchestrator = orchestrator_factory(issue=issue, renderer=renderer, publisher=FakePublisher())

    asyncio.run(orchestrator.run(DATE))

    chinese_info = [data for data, language in renderer.info_calls if language.value == "zh"][0]
    assert len(chinese_info.article_titles) == 15
    assert chinese_info.article_titles[0] == "习近平回信"
    assert chinese_info.article_count == 21
    assert chinese_info.fetched_date == "2025-06-01"
    _, _, titles_hint = renderer.expressive_calls[0]
    assert titles_hint.startswith("EN 习近平回信; EN 其他新闻 0")


def test_dry_run_generates_without_posting(orchestrator_factory):
    """Dry runs build all content but post nothing."""
    orchestrator = orchestrator_factory(publisher=None)

    run = asyncio.run(orchestrator.run(DATE, dry_run=True))

    assert run.success is True
    assert run.expressive_image_generated and run.primary_info_image_generated
    assert [outcome.status for outcome in run.posts] == [PostStatus.SKIPPED] * 3
    assert all(outcome.reason == SKIP_DRY_RUN for outcome in run.posts)


def test_missing_publisher_is_a_critical_failure(orchestrator_factory):
    """A live run without a publisher fails critically."""
    orchestrator = orchestrator_factory(publisher=None)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.success is False
    assert run.state == RunState.FAILED
    assert run.message.startswith("Critical error")
    assert run.error_log[-1].startswith("[critical]")


def test_unexpected_exception_becomes_failed_result(orchestrator_factory):
    """Unexpected errors become a failed run instead of escaping."""
    publisher = FakePublisher()
    orchestrator = orchestrator_factory(source=FakeContentSource(issue=None), publisher=publisher)

    run = asyncio.run(orchestrator.run(DATE))

    assert run.state == RunState.FAILED
    assert run.success is False
    assert publisher.posts == []


def test_posts_are_spaced_by_delay(orchestrator_factory, monkeypatch):
    """Consecutive posts are separated by the configured delay."""
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("core.publishing.orchestrator.asyncio.sleep", fake_sleep)
    orchestrator = orchestrator_factory(publisher=FakePublisher())
    orchestrator.post_delay_seconds = 2.0

    asyncio.run(orchestrator.run(DATE))

    assert delays == [2.0, 2.0]


def test_preview_analyzes_without_media(orchestrator_factory, sample_issue):
    """Preview stops after analysis."""
    renderer = FakeImageRenderer()
    source = FakeContentSource(sample_issue)
    orchestrator = orchestrator_factory(source=source, renderer=renderer, publisher=None)

    run = asyncio.run(orchestrator.preview(DATE, front_page_only=False))

    assert run.success is True
    assert run.analysis["xi_index"] == 3
    assert run.formatted_primary_commentary
    assert renderer.info_calls == [] and renderer.expressive_calls == []
    assert source.requests == [(DATE, False)]


class RendezvousImageRenderer(FakeImageRenderer):
    """Every render blocks until all three images have started."""

    def __init__(self, timeout=1.0):
        super().__init__()
        self.timeout = timeout
        self.started = []
        self._all_started = None

    async def _arrive(self, tag):
        if self._all_started is None:
            self._all_started = asyncio.Event()
        self.started.append(tag)
        if len(self.started) == 3:
            self._all_started.set()
        await asyncio.wait_for(self._all_started.wait(), timeout=self.timeout)

    async def render_info(self, data, language):
        await self._arrive(f"info-{language.value}")
        return await super().render_info(data, language)

    async def render_expressive(self, text, language, titles_hint=None):
        await self._arrive("expressive")
        return await super().render_expressive(text, language, titles_hint)


def test_media_is_generated_concurrently(orchestrator_factory):
    """Both infographics and the illustration render at the same time."""
    renderer = RendezvousImageRenderer()
    orchestrator = orchestrator_factory(renderer=renderer, publisher=FakePublisher())

    run = asyncio.run(orchestrator.run(DATE))

    assert sorted(renderer.started) == ["expressive", "info-en", "info-zh"]
    assert run.primary_info_image_generated is True
    assert run.secondary_info_image_generated is True
    assert run.expressive_image_generated is True
    assert not any(entry.startswith("[media:") for entry in run.error_log)
