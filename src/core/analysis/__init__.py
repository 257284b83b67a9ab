#!/usr/bin/env python3
"""
Keyword analysis and commentary generation for fetched editions.
"""

from .content_analyzer import ContentAnalyzer, count_occurrences
from .commentary import CommentaryGenerator

__all__ = ['ContentAnalyzer', 'count_occurrences', 'CommentaryGenerator']
