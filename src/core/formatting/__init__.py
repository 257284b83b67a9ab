#!/usr/bin/env python3
"""
Formatting utilities for post-ready commentary.

Handles header prefixes, weighted length accounting and budget truncation.
"""

from .commentary_formatter import (
    CommentaryFormatter, weighted_length, truncate_to_weight,
    format_date_for_commentary, expressive_image_caption,
    MAX_WEIGHTED_LENGTH
)

__all__ = [
    'CommentaryFormatter', 'weighted_length', 'truncate_to_weight',
    'format_date_for_commentary', 'expressive_image_caption',
    'MAX_WEIGHTED_LENGTH'
]
