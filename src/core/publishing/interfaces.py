#!/usr/bin/env python3
"""
Collaborator interfaces used by the publish pipeline.

Every method is a coroutine; adapters backed by blocking SDKs push the work
onto a worker thread.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.analysis import InfoImageData, Language
from ..models.publish import PostResult


class LanguageModel(ABC):
    """Structured text generation addressed by prompt id."""

    @abstractmethod
    async def generate(self, prompt_id: str, structured_input: Dict[str, Any],
                       model_override: Optional[str] = None) -> Dict[str, Any]:
        """
        Run a prompt and return the parsed structured response.

        Raises on transport or provider failure. A missing or blank output
        field is reported by returning a dictionary without it.
        """
        pass


class ImageRenderer(ABC):
    """Produces image references (data URIs) for posts."""

    @abstractmethod
    async def render_info(self, data: InfoImageData, language: Language) -> str:
        """Render the score infographic for one language."""
        pass

    @abstractmethod
    async def render_expressive(self, text: str, language: Language,
                                titles_hint: Optional[str] = None) -> str:
        """Render a text-free illustration inspired by the commentary."""
        pass


class SocialPublisher(ABC):
    """Posts text, optionally with one image, to a social network."""

    @abstractmethod
    async def post(self, text: str, image_ref: Optional[str] = None) -> PostResult:
        """
        Publish a post.

        Returns an unsuccessful PostResult for rejected posts; never posts the
        text alone when an image was supplied but could not be attached.
        """
        pass
