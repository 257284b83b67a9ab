import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Also add the project root to handle absolute imports
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.analysis.commentary import CommentaryGenerator  # noqa: E402
from core.analysis.content_analyzer import ContentAnalyzer  # noqa: E402
from core.models.analysis import InfoImageData, Language  # noqa: E402
from core.models.article import Article, FetchedIssue  # noqa: E402
from core.models.publish import PostResult  # noqa: E402
from core.publishing.interfaces import ImageRenderer, LanguageModel, SocialPublisher  # noqa: E402
from core.publishing.orchestrator import PublishOrchestrator  # noqa: E402
from core.sources.base import ContentSource  # noqa: E402

FALLBACK_MODEL = "fallback-model"
FAKE_IMAGE = "data:image/png;base64,iVBORw0KGgo="

ScriptedResponse = Union[Dict[str, Any], Exception, Callable[[Dict[str, Any]], Dict[str, Any]]]


def _default_responses() -> Dict[str, ScriptedResponse]:
    return {
        "commentary_zh": {"commentary": "标题提及 1/2，正文提及 1/2，习近平指数 3\n今天头版聚焦会议。其他报道关注经济。"},
        "commentary_en": {"english_commentary": "Title 1/2, body 1/2, Xi Index 3\nThe front page leads with a meeting. Other stories cover the economy."},
        "translate_titles": lambda payload: {"translated_titles": [f"EN {title}" for title in payload["titles"]]},
    }


class FakeLanguageModel(LanguageModel):
    """
    Scripted language model.

    Responses are looked up by (prompt_id, model_override) first, then by
    prompt_id alone. A scripted exception is raised instead of returned.
    """

    def __init__(self, responses: Optional[Dict[Any, ScriptedResponse]] = None) -> None:
        self.responses: Dict[Any, ScriptedResponse] = _default_responses()
        self.responses.update(responses or {})
        self.calls: List[Tuple[str, Dict[str, Any], Optional[str]]] = []

    async def generate(self, prompt_id: str, structured_input: Dict[str, Any],
                       model_override: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append((prompt_id, structured_input, model_override))
        response = self.responses.get((prompt_id, model_override), self.responses.get(prompt_id))
        if response is None:
            raise RuntimeError(f"no scripted response for {prompt_id}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(structured_input)
        return response

    def calls_for(self, prompt_id: str) -> List[Optional[str]]:
        return [model for called_id, _, model in self.calls if called_id == prompt_id]


class FakeContentSource(ContentSource):
    name = "fake"

    def __init__(self, issue: Optional[FetchedIssue] = None, error: Optional[Exception] = None) -> None:
        super().__init__()
        self.issue = issue
        self.error = error
        self.requests: List[Tuple[str, bool]] = []

    async def fetch(self, date: str, front_page_only: bool = True) -> FetchedIssue:
        self.requests.append((date, front_page_only))
        if self.error is not None:
            raise self.error
        return self.issue


class FakeImageRenderer(ImageRenderer):
    def __init__(self, failing: Optional[List[str]] = None) -> None:
        self.failing = set(failing or [])
        self.info_calls: List[Tuple[InfoImageData, Language]] = []
        self.expressive_calls: List[Tuple[str, Language, Optional[str]]] = []

    async def render_info(self, data: InfoImageData, language: Language) -> str:
        self.info_calls.append((data, language))
        if f"info-{language.value}" in self.failing:
            raise RuntimeError(f"{language.value} infographic exploded")
        return f"{FAKE_IMAGE}#info-{language.value}"

    async def render_expressive(self, text: str, language: Language,
                                titles_hint: Optional[str] = None) -> str:
        self.expressive_calls.append((text, language, titles_hint))
        if "expressive" in self.failing:
            raise RuntimeError("image model refused")
        return f"{FAKE_IMAGE}#expressive"


class FakePublisher(SocialPublisher):
    def __init__(self, fail_on_call: Optional[int] = None, raise_error: bool = False) -> None:
        self.fail_on_call = fail_on_call
        self.raise_error = raise_error
        self.posts: List[Tuple[str, Optional[str]]] = []

    async def post(self, text: str, image_ref: Optional[str] = None) -> PostResult:
        self.posts.append((text, image_ref))
        if self.fail_on_call == len(self.posts):
            if self.raise_error:
                raise ConnectionError("connection reset")
            return PostResult(success=False, message="rate limited")
        return PostResult(success=True, message="Posted successfully",
                          post_ref=f"https://x.com/i/status/{len(self.posts)}")


@pytest.fixture
def sample_articles() -> List[Article]:
    return [
        Article(
            title="习近平出席中央经济工作会议",
            content="习近平在会上发表重要讲话。会议强调，习近平经济思想是根本遵循。",
            url="http://paper.people.com.cn/rmrb/pc/content/202506/01/content_1.html",
        ),
        Article(
            title="全国秋粮收购进展顺利",
            content="各地秋粮收购有序推进，市场运行总体平稳。",
            url="http://paper.people.com.cn/rmrb/pc/content/202506/01/content_2.html",
        ),
    ]


@pytest.fixture
def sample_issue(sample_articles) -> FetchedIssue:
    return FetchedIssue(
        articles=sample_articles,
        url="http://paper.people.com.cn/rmrb/pc/layout/202506/01/node_01.html",
        date="20250601",
    )


@pytest.fixture
def fake_language_model_factory() -> Callable[..., FakeLanguageModel]:
    def _factory(responses: Optional[Dict[Any, ScriptedResponse]] = None) -> FakeLanguageModel:
        return FakeLanguageModel(responses)

    return _factory


@pytest.fixture
def generator_factory(fake_language_model_factory) -> Callable[..., CommentaryGenerator]:
    def _factory(responses: Optional[Dict[Any, ScriptedResponse]] = None,
                 language_model: Optional[FakeLanguageModel] = None) -> CommentaryGenerator:
        return CommentaryGenerator(
            language_model=language_model or fake_language_model_factory(responses),
            fallback_model=FALLBACK_MODEL,
        )

    return _factory


@pytest.fixture
def orchestrator_factory(sample_issue, generator_factory) -> Callable[..., PublishOrchestrator]:
    def _factory(
        issue: Optional[FetchedIssue] = None,
        source: Optional[ContentSource] = None,
        language_model: Optional[FakeLanguageModel] = None,
        renderer: Optional[FakeImageRenderer] = None,
        publisher: Optional[SocialPublisher] = None,
    ) -> PublishOrchestrator:
        return PublishOrchestrator(
            content_source=source or FakeContentSource(issue if issue is not None else sample_issue),
            analyzer=ContentAnalyzer(keyword="习近平"),
            generator=generator_factory(language_model=language_model),
            image_renderer=renderer or FakeImageRenderer(),
            publisher=publisher,
            post_delay_seconds=0,
        )

    return _factory
