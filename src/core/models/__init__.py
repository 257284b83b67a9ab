#!/usr/bin/env python3
"""
Core data models for the publish pipeline.

Contains all data structures used throughout the application.
"""

from .article import Article, PageLayout, FetchedIssue
from .analysis import (
    Language, ArticleCategories, AnalysisResult, CommentaryResult, CommentaryPair, InfoImageData
)
from .publish import RunState, PostStatus, PostResult, PostOutcome, PublishRun

__all__ = [
    'Article', 'PageLayout', 'FetchedIssue',
    'Language', 'ArticleCategories', 'AnalysisResult', 'CommentaryResult', 'CommentaryPair', 'InfoImageData',
    'RunState', 'PostStatus', 'PostResult', 'PostOutcome', 'PublishRun'
]
