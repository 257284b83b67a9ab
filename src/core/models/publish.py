#!/usr/bin/env python3
"""
Publish run data models.

A PublishRun accumulates everything one pipeline invocation produced: step
flags, generated content, post outcomes and the ordered error log.
"""

from enum import Enum
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    POSTING = "posting"
    DONE = "done"
    FAILED = "failed"


class PostStatus(str, Enum):
    POSTED = "posted"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PostResult:
    """What a social publisher reports back for a single post."""
    success: bool
    message: str = ""
    post_ref: Optional[str] = None


@dataclass
class PostOutcome:
    """Outcome of one posting step."""
    step: str
    status: PostStatus
    post_ref: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step,
            'status': self.status.value,
            'post_ref': self.post_ref,
            'reason': self.reason
        }


@dataclass
class PublishRun:
    """Aggregated result of one publish pipeline invocation."""
    requested_date: str
    state: RunState = RunState.IDLE
    success: bool = False
    message: str = ""

    # Fetch
    fetched_articles_count: int = 0
    fetched_date: Optional[str] = None  # YYYYMMDD
    source_url: Optional[str] = None

    # Step completion flags
    fetch_completed: bool = False
    analysis_performed: bool = False
    primary_commentary_generated: bool = False
    secondary_commentary_generated: bool = False
    expressive_image_generated: bool = False
    primary_info_image_generated: bool = False
    secondary_info_image_generated: bool = False

    # Generated content
    primary_commentary: str = ""
    secondary_commentary: str = ""
    formatted_primary_commentary: str = ""
    formatted_secondary_commentary: str = ""
    expressive_image: Optional[str] = None
    primary_info_image: Optional[str] = None
    secondary_info_image: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None

    posts: List[PostOutcome] = field(default_factory=list)
    error_log: List[str] = field(default_factory=list)

    def log_error(self, tag: str, message: str) -> None:
        """Append a tag-prefixed entry to the error log."""
        self.error_log.append(f"[{tag}] {message}")

    def record_post(self, outcome: PostOutcome) -> None:
        self.posts.append(outcome)

    def post_for(self, step: str) -> Optional[PostOutcome]:
        for outcome in self.posts:
            if outcome.step == step:
                return outcome
        return None

    @property
    def posted_refs(self) -> List[str]:
        return [outcome.post_ref for outcome in self.posts
                if outcome.status == PostStatus.POSTED and outcome.post_ref]

    def to_dict(self, include_images: bool = False) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON output.

        Image data URIs are large, so by default only their presence is reported.
        """
        def image(value: Optional[str]) -> Any:
            if include_images:
                return value
            return bool(value)

        return {
            'requested_date': self.requested_date,
            'state': self.state.value,
            'success': self.success,
            'message': self.message,
            'fetched_articles_count': self.fetched_articles_count,
            'fetched_date': self.fetched_date,
            'source_url': self.source_url,
            'steps': {
                'fetch_completed': self.fetch_completed,
                'analysis_performed': self.analysis_performed,
                'primary_commentary_generated': self.primary_commentary_generated,
                'secondary_commentary_generated': self.secondary_commentary_generated,
                'expressive_image_generated': self.expressive_image_generated,
                'primary_info_image_generated': self.primary_info_image_generated,
                'secondary_info_image_generated': self.secondary_info_image_generated
            },
            'analysis': self.analysis,
            'primary_commentary': self.formatted_primary_commentary or self.primary_commentary,
            'secondary_commentary': self.formatted_secondary_commentary or self.secondary_commentary,
            'images': {
                'expressive': image(self.expressive_image),
                'primary_info': image(self.primary_info_image),
                'secondary_info': image(self.secondary_info_image)
            },
            'posts': [outcome.to_dict() for outcome in self.posts],
            'error_log': list(self.error_log)
        }
