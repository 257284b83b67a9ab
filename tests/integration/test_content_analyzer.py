import pytest

from core.analysis.content_analyzer import ContentAnalyzer, count_occurrences
from core.exceptions import EmptyContentError
from core.models.article import Article


def _article(title: str, content: str = "") -> Article:
    return Article(title=title, content=content, url=f"http://example.com/{abs(hash(title))}.html")


def test_unique_title_mentions_and_occurrences():
    """Titles count once per article but every occurrence adds to the index."""
    analyzer = ContentAnalyzer(keyword="习近平")

    result = analyzer.analyze([_article("习近平 A"), _article("B")])

    assert result.title_unique_mentions == 1
    assert result.title_occurrence_count == 1
    assert result.body_occurrence_count == 0
    assert result.article_count == 2


def test_scores_and_categories(sample_articles):
    """Score strings and the keyword partition match the sample issue."""
    analyzer = ContentAnalyzer(keyword="习近平")

    result = analyzer.analyze(sample_articles, custom_context="plenary week")

    assert result.title_occurrence_count == 1
    assert result.body_occurrence_count == 2
    assert result.body_unique_mentions == 1
    assert result.xi_index == 3
    assert result.title_unique_score == "1/2"
    assert result.body_occurrence_score == "2/2"
    assert [a.title for a in result.categories.with_keyword] == ["习近平出席中央经济工作会议"]
    assert [a.title for a in result.categories.other] == ["全国秋粮收购进展顺利"]
    assert result.custom_context == "plenary week"


def test_unique_mentions_never_exceed_occurrences():
    """Unique mentions never exceed raw occurrence counts."""
    articles = [
        _article("Xi and xi and XI", "xi xi"),
        _article("nothing here", "still nothing"),
        _article("one xi", ""),
    ]

    result = ContentAnalyzer(keyword="Xi").analyze(articles)

    assert result.title_occurrence_count == 4
    assert result.title_unique_mentions == 2
    assert result.body_occurrence_count == 2
    assert result.body_unique_mentions == 1
    assert result.title_unique_mentions <= result.title_occurrence_count


def test_keyword_in_body_only_counts_as_with_keyword():
    """A body-only mention still classifies the article as with keyword."""
    result = ContentAnalyzer(keyword="习近平").analyze([_article("会议召开", "习近平出席")])

    assert len(result.categories.with_keyword) == 1
    assert result.title_unique_mentions == 0


def test_analysis_is_deterministic(sample_articles):
    """The same input always yields the same analysis."""
    analyzer = ContentAnalyzer()

    assert analyzer.analyze(sample_articles).to_dict() == analyzer.analyze(sample_articles).to_dict()


@pytest.mark.parametrize("articles", [
    [],
    [Article(title="  ", content="\n\t", url="http://example.com/1.html")],
])
def test_empty_input_raises(articles):
    """Empty or blank input is rejected."""
    with pytest.raises(EmptyContentError):
        ContentAnalyzer().analyze(articles)


def test_count_occurrences_is_literal():
    """Keyword matching treats regex metacharacters literally."""
    assert count_occurrences("a.b a.b axb", "a.b") == 2
    assert count_occurrences("", "x") == 0
    assert count_occurrences("text", "") == 0
