#!/usr/bin/env python3
"""
Analysis result data models.

Contains keyword scores, article categories, commentary results and the
data fed to the infographic renderer.
"""

from enum import Enum
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field

from .article import Article


class Language(str, Enum):
    """Commentary languages. Chinese is the primary language."""
    ZH = "zh"
    EN = "en"


@dataclass(frozen=True)
class ArticleCategories:
    """Articles partitioned by keyword presence, input order preserved."""
    with_keyword: List[Article] = field(default_factory=list)
    other: List[Article] = field(default_factory=list)
    # Kept for output compatibility; nothing populates it.
    keyword_faction_only: List[Article] = field(default_factory=list)

    @property
    def combined(self) -> List[Article]:
        return self.with_keyword + self.other


@dataclass(frozen=True)
class AnalysisResult:
    """Keyword scores for one batch of articles."""
    title_occurrence_count: int
    body_occurrence_count: int
    title_unique_mentions: int
    body_unique_mentions: int
    categories: ArticleCategories
    article_count: int
    custom_context: Optional[str] = None

    @property
    def xi_index(self) -> int:
        """Total keyword occurrences across titles and bodies."""
        return self.title_occurrence_count + self.body_occurrence_count

    @property
    def denominator(self) -> int:
        return max(self.article_count, 1)

    @property
    def title_occurrence_score(self) -> str:
        return f"{self.title_occurrence_count}/{self.denominator}"

    @property
    def body_occurrence_score(self) -> str:
        return f"{self.body_occurrence_count}/{self.denominator}"

    @property
    def title_unique_score(self) -> str:
        return f"{self.title_unique_mentions}/{self.denominator}"

    @property
    def body_unique_score(self) -> str:
        return f"{self.body_unique_mentions}/{self.denominator}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title_occurrence_count': self.title_occurrence_count,
            'body_occurrence_count': self.body_occurrence_count,
            'title_unique_mentions': self.title_unique_mentions,
            'body_unique_mentions': self.body_unique_mentions,
            'xi_index': self.xi_index,
            'article_count': self.article_count,
            'scores': {
                'title_occurrence': self.title_occurrence_score,
                'body_occurrence': self.body_occurrence_score,
                'title_unique': self.title_unique_score,
                'body_unique': self.body_unique_score
            },
            'categories': {
                'with_keyword': [article.title for article in self.categories.with_keyword],
                'keyword_faction_only': [article.title for article in self.categories.keyword_faction_only],
                'other': [article.title for article in self.categories.other]
            }
        }


@dataclass(frozen=True)
class CommentaryResult:
    """Raw commentary for one language, or the reason it is missing."""
    language: Language
    raw_text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.raw_text.strip())


@dataclass(frozen=True)
class CommentaryPair:
    """Primary (Chinese) and secondary (English) commentary."""
    primary: CommentaryResult
    secondary: CommentaryResult

    @property
    def errors(self) -> List[str]:
        return [result.error for result in (self.primary, self.secondary) if result.error]


@dataclass(frozen=True)
class InfoImageData:
    """Input for the infographic renderer."""
    fetched_date: str  # YYYY-MM-DD
    title_unique_mentions: int
    body_unique_mentions: int
    article_count: int
    xi_index: int
    article_titles: List[str] = field(default_factory=list)
