#!/usr/bin/env python3
"""
Keyword scoring for a batch of articles.

Counts how often the tracked keyword appears in titles and bodies, how many
articles mention it at all, and splits articles into keyword / other buckets.
"""

import re
import logging
from typing import List, Optional

from ..exceptions import EmptyContentError
from ..models.article import Article
from ..models.analysis import AnalysisResult, ArticleCategories

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD = "习近平"


def count_occurrences(text: str, keyword: str) -> int:
    """Case-insensitive, non-overlapping count of a literal keyword."""
    if not text or not keyword:
        return 0
    return len(re.findall(re.escape(keyword), text, flags=re.IGNORECASE))


class ContentAnalyzer:
    """Scores and categorizes articles by presence of a tracked keyword."""

    def __init__(self, keyword: str = DEFAULT_KEYWORD):
        self.keyword = keyword

    def analyze(self, articles: List[Article], custom_context: Optional[str] = None) -> AnalysisResult:
        """
        Score a batch of articles.

        Args:
            articles: Articles to score, in display order
            custom_context: Free-text context carried through to commentary

        Returns:
            AnalysisResult with counts, unique mentions and categories

        Raises:
            EmptyContentError: No articles, or nothing but whitespace in them
        """
        if not articles:
            raise EmptyContentError("No articles provided for analysis")

        if not any(f"{article.title}{article.content}".strip() for article in articles):
            raise EmptyContentError("Combined article content is empty")

        title_occurrences = 0
        body_occurrences = 0
        title_unique = 0
        body_unique = 0
        with_keyword: List[Article] = []
        other: List[Article] = []

        for article in articles:
            in_title = count_occurrences(article.title, self.keyword)
            in_body = count_occurrences(article.content, self.keyword)

            title_occurrences += in_title
            body_occurrences += in_body
            if in_title > 0:
                title_unique += 1
            if in_body > 0:
                body_unique += 1

            if in_title > 0 or in_body > 0:
                with_keyword.append(article)
            else:
                other.append(article)

        result = AnalysisResult(
            title_occurrence_count=title_occurrences,
            body_occurrence_count=body_occurrences,
            title_unique_mentions=title_unique,
            body_unique_mentions=body_unique,
            categories=ArticleCategories(with_keyword=with_keyword, other=other),
            article_count=len(articles),
            custom_context=custom_context
        )

        logger.info(
            f"Analyzed {len(articles)} articles: keyword in {title_unique} titles / {body_unique} bodies, "
            f"index {result.xi_index}"
        )
        return result
