#!/usr/bin/env python3
"""
Article data model.

Represents a newspaper article and the issue (one dated edition) it was fetched from.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Any, List, Optional


@dataclass(frozen=True)
class Article:
    """
    A single article as delivered by a content source.

    Articles are immutable once fetched; the translated title is attached by
    producing a copy with ``with_english_title``.
    """
    title: str
    content: str
    url: str
    source_layout_url: str = ""
    english_title: Optional[str] = None

    def __post_init__(self):
        """Clean text fields after initialization."""
        object.__setattr__(self, 'title', (self.title or "").strip())
        object.__setattr__(self, 'content', (self.content or "").strip())
        object.__setattr__(self, 'url', (self.url or "").strip())
        if isinstance(self.english_title, str):
            object.__setattr__(self, 'english_title', self.english_title.strip() or None)

    def with_english_title(self, english_title: Optional[str]) -> 'Article':
        """Return a copy carrying the translated title."""
        return replace(self, english_title=english_title)

    @property
    def display_english_title(self) -> str:
        """English title when known, otherwise the original title."""
        return self.english_title or self.title

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'title': self.title,
            'content': self.content,
            'url': self.url,
            'source_layout_url': self.source_layout_url,
            'english_title': self.english_title
        }

    def __repr__(self):
        return f"Article(title='{self.title[:50]}', url='{self.url}')"


@dataclass(frozen=True)
class PageLayout:
    """One page (layout) of a printed edition."""
    url: str
    title: str


@dataclass
class FetchedIssue:
    """Result of fetching one dated edition from a content source."""
    articles: List[Article]
    url: str
    date: str  # YYYYMMDD
    layouts: List[PageLayout] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.error and bool(self.articles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'articles': [article.to_dict() for article in self.articles],
            'url': self.url,
            'date': self.date,
            'layouts': [{'url': layout.url, 'title': layout.title} for layout in self.layouts],
            'error': self.error
        }
