#!/usr/bin/env python3
"""
Publish pipeline: collaborator interfaces and the step-sequenced orchestrator.
"""

from .interfaces import LanguageModel, ImageRenderer, SocialPublisher

__all__ = ['LanguageModel', 'ImageRenderer', 'SocialPublisher']
