#!/usr/bin/env python3
"""
Exception hierarchy for the publish pipeline.

Each exception carries a machine-readable code and a context dictionary so
failures can be logged or serialized without losing detail.
"""

from typing import Optional, Dict, Any


class PublisherError(Exception):
    """Base exception for all publisher errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Fetch-stage exceptions (fatal for a run)
class FetchError(PublisherError):
    """Content source could not deliver an issue."""

    def __init__(self, source_name: str, date: str, reason: str):
        message = f"Fetch failed for {source_name} on {date}: {reason}"
        context = {
            'source_name': source_name,
            'date': date,
            'reason': reason
        }
        super().__init__(message, context=context)


class EmptyContentError(PublisherError):
    """There is nothing to analyze."""

    def __init__(self, reason: str = "No article content to analyze"):
        super().__init__(reason, context={'reason': reason})


EmptyInputError = EmptyContentError


# Generation-stage exceptions (non-fatal, scoped to one task)
class GenerationError(PublisherError):
    """Both the primary and the fallback model failed for one prompt."""

    def __init__(self, prompt_id: str, primary_error: str, fallback_error: str):
        message = (
            f"Both primary and fallback models failed for {prompt_id}. "
            f"Primary error: {primary_error}. Fallback error: {fallback_error}"
        )
        context = {
            'prompt_id': prompt_id,
            'primary_error': primary_error,
            'fallback_error': fallback_error
        }
        super().__init__(message, context=context)


class TranslationError(PublisherError):
    """Title translation produced no usable output."""

    def __init__(self, reason: str, title_count: int = 0):
        message = f"Title translation failed: {reason}"
        context = {
            'reason': reason,
            'title_count': title_count
        }
        super().__init__(message, context=context)


class MediaGenerationError(PublisherError):
    """An image rendering task failed."""

    def __init__(self, task: str, original_error: Exception):
        message = f"Image generation failed for {task}: {original_error}"
        context = {
            'task': task,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Posting exceptions (break the remaining posting chain)
class PostingError(PublisherError):
    """Social publisher rejected or failed a post."""

    def __init__(self, step: str, reason: str):
        message = f"Posting failed at {step}: {reason}"
        context = {
            'step': step,
            'reason': reason
        }
        super().__init__(message, context=context)


# Configuration-related exceptions
class ConfigurationError(PublisherError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str):
        message = f"Configuration error for {config_key}: {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)
