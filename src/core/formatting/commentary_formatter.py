#!/usr/bin/env python3
"""
Commentary formatter for social posts.

Posts are limited by a weighted length in which CJK characters count double.
The formatter prepends a dated header and truncates the analytical body so the
header and score line always survive.
"""

import re
from typing import Optional, Union

from core.models.analysis import Language

MAX_WEIGHTED_LENGTH = 280

# CJK punctuation, kana, fullwidth forms and unified ideographs (incl. extension A)
WIDE_CHAR_PATTERN = re.compile(
    "[\u3000-\u303f\u3040-\u309f\u30a0-\u30ff\uff00-\uffef\u4e00-\u9faf\u3400-\u4dbf]"
)

SENTENCE_TERMINATORS = ('。', '.')

HEADER_TEMPLATES = {
    Language.ZH: "【人民日报头版总结 {date}】\n",
    Language.EN: "【People's Daily Front Page Summary {date}】\n",
}


def char_weight(char: str) -> int:
    return 2 if WIDE_CHAR_PATTERN.match(char) else 1


def weighted_length(text: str) -> int:
    """Weighted length of text: CJK characters count 2, everything else 1."""
    if not isinstance(text, str):
        return 0
    return sum(char_weight(char) for char in text)


def truncate_to_weight(text: str, budget: int) -> str:
    """Longest prefix of text whose weighted length fits within budget."""
    total = 0
    for index, char in enumerate(text):
        weight = char_weight(char)
        if total + weight > budget:
            return text[:index]
        total += weight
    return text


def format_date_for_commentary(date_tag: Optional[str]) -> str:
    """Render a YYYYMMDD tag as YYYY-MM-DD; anything else is returned unchanged."""
    if not date_tag or len(date_tag) != 8:
        return date_tag or 'N/A'
    return f"{date_tag[:4]}-{date_tag[4:6]}-{date_tag[6:]}"


def expressive_image_caption(date_tag: Optional[str]) -> str:
    """Bilingual caption posted with the expressive image."""
    if not date_tag or len(date_tag) != 8:
        return "人民日报总结"
    iso_date = format_date_for_commentary(date_tag)
    day_first = f"{date_tag[6:]}-{date_tag[4:6]}-{date_tag[:4]}"
    return f"北京时间 {iso_date} 人民日报总结\nBeijing Time {day_first} People's Daily Summary"


class CommentaryFormatter:
    """Formats raw model commentary into a post that fits the weighted budget."""

    def __init__(self, max_weighted_length: int = MAX_WEIGHTED_LENGTH):
        self.max_weighted_length = max_weighted_length

    def build_header(self, date_tag: Optional[str], language: Union[Language, str]) -> str:
        """Dated header line including its trailing newline, or '' without a date."""
        if not date_tag:
            return ""
        template = HEADER_TEMPLATES[Language(language)]
        return template.format(date=format_date_for_commentary(date_tag))

    def format(self, raw_commentary: Optional[str], date_tag: Optional[str],
               language: Union[Language, str]) -> str:
        """
        Prepend the dated header and enforce the weighted budget.

        The first two lines (header and score line) are protected; only the
        analytical body after them is shortened, preferably at a sentence end.

        Args:
            raw_commentary: Model output, score line first
            date_tag: Edition date as YYYYMMDD, or None for no header
            language: Commentary language

        Returns:
            Post-ready text, '' for blank input
        """
        if not raw_commentary or not raw_commentary.strip():
            return ""

        budget = self.max_weighted_length
        header = self.build_header(date_tag, language)
        combined = f"{header}{raw_commentary}"

        if weighted_length(combined) <= budget:
            return combined

        parts = combined.split('\n')
        protected = f"{parts[0]}\n{parts[1] if len(parts) > 1 else ''}"
        body = '\n'.join(parts[2:])

        remaining = budget - weighted_length(protected) - (1 if body else 0)

        if remaining < 0:
            result = truncate_to_weight(protected, budget)
        else:
            fitting = truncate_to_weight(body, remaining)
            cut = max(fitting.rfind(terminator) for terminator in SENTENCE_TERMINATORS)
            if cut != -1:
                fitting = fitting[:cut + 1]
            result = f"{protected}\n{fitting}" if fitting else protected

        if weighted_length(result) > budget:
            result = truncate_to_weight(result, budget)

        # Never hand back a bare date header for real commentary
        if header and result.strip() == header.strip():
            return truncate_to_weight(combined, budget)

        return result

