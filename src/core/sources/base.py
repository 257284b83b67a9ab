#!/usr/bin/env python3
"""
Base class for content sources.

A content source delivers one dated newspaper edition as a FetchedIssue.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from ..models.article import FetchedIssue


class ContentSource(ABC):
    """
    Abstract base class for all content sources.

    Implementations report soft failures through ``FetchedIssue.error`` and
    may raise ``FetchError`` for hard ones; callers treat both as fatal.
    """

    name = "content_source"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize content source.

        Args:
            config: Source-specific configuration
        """
        self.config = config or {}

    @abstractmethod
    async def fetch(self, date: str, front_page_only: bool = True) -> FetchedIssue:
        """
        Fetch one edition.

        Args:
            date: Edition date as YYYY-MM-DD
            front_page_only: Only collect articles from the first page layout

        Returns:
            FetchedIssue with articles in page order
        """
        pass
