#!/usr/bin/env python3
"""
Formatting utilities for terminal display of runs and analysis results.
"""

from typing import Any, Dict, Optional

from core.formatting.commentary_formatter import format_date_for_commentary, weighted_length
from core.models.publish import PostStatus, PublishRun

STATUS_ICONS = {
    PostStatus.POSTED: "✅",
    PostStatus.FAILED: "❌",
    PostStatus.SKIPPED: "⏭️",
}


def format_analysis(analysis: Optional[Dict[str, Any]]) -> str:
    """Format the analysis dictionary of a run for display."""
    if not analysis:
        return "\n=== Analysis ===\nNo analysis available\n"

    scores = analysis.get('scores', {})
    categories = analysis.get('categories', {})
    lines = [
        "\n=== Analysis ===",
        f"📰 Articles analyzed: {analysis.get('article_count', 0)}",
        f"🎯 Xi Index: {analysis.get('xi_index', 0)}",
        f"  Title mentions: {scores.get('title_unique', '0/1')} (occurrences {scores.get('title_occurrence', '0/1')})",
        f"  Body mentions:  {scores.get('body_unique', '0/1')} (occurrences {scores.get('body_occurrence', '0/1')})",
    ]

    with_keyword = categories.get('with_keyword', [])
    if with_keyword:
        lines.extend(["", f"🔍 Articles with keyword ({len(with_keyword)}):"])
        for title in with_keyword:
            lines.append(f"  • {title}")

    other = categories.get('other', [])
    if other:
        lines.extend(["", f"📄 Other articles ({len(other)}):"])
        for title in other:
            lines.append(f"  • {title}")

    return "\n".join(lines) + "\n"


def format_commentary(label: str, text: str) -> str:
    if not text:
        return f"\n=== {label} ===\n(not generated)\n"
    return f"\n=== {label} ({weighted_length(text)}/280) ===\n{text}\n"


def format_publish_run(run: PublishRun) -> str:
    """Format a publish run for display."""
    status = "✅ SUCCESS" if run.success else "❌ FAILED"
    lines = [
        f"\n=== Publish run {run.requested_date} ===",
        f"{status}: {run.message}",
        f"📅 Edition: {format_date_for_commentary(run.fetched_date)}",
        f"📰 Articles fetched: {run.fetched_articles_count}",
    ]

    if run.analysis_performed:
        lines.append(format_analysis(run.analysis))

    if run.fetch_completed:
        lines.append(format_commentary("Chinese commentary", run.formatted_primary_commentary))
        lines.append(format_commentary("English commentary", run.formatted_secondary_commentary))

        images = [
            ("Expressive image", run.expressive_image_generated),
            ("Chinese infographic", run.primary_info_image_generated),
            ("English infographic", run.secondary_info_image_generated),
        ]
        lines.append("=== Images ===")
        for label, generated in images:
            lines.append(f"  {'✅' if generated else '❌'} {label}")

    if run.posts:
        lines.extend(["", "=== Posts ==="])
        for outcome in run.posts:
            detail = outcome.post_ref or outcome.reason or ""
            lines.append(f"  {STATUS_ICONS[outcome.status]} {outcome.step}: {outcome.status.value} {detail}".rstrip())

    if run.error_log:
        lines.extend(["", f"⚠️ Issues ({len(run.error_log)}):"])
        for entry in run.error_log:
            lines.append(f"  • {entry}")

    return "\n".join(lines) + "\n"
