#!/usr/bin/env python3
"""
Content sources delivering dated newspaper editions.
"""

from .base import ContentSource
from .peoples_daily import PeoplesDailySource

__all__ = ['ContentSource', 'PeoplesDailySource']
