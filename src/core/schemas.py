#!/usr/bin/env python3
"""
Centralized JSON schemas for OpenAI structured outputs.

Each prompt id maps to the schema its response must satisfy.
"""

from typing import Dict, Any

from core.analysis.prompts import PROMPT_COMMENTARY_ZH, PROMPT_COMMENTARY_EN, PROMPT_TRANSLATE_TITLES

# Chinese commentary: score line, newline, analytical text
COMMENTARY_ZH_SCHEMA = {
    "type": "object",
    "properties": {
        "commentary": {
            "type": "string",
            "description": "含习量 score line, a newline, then the analytical text in Chinese"
        }
    },
    "required": ["commentary"],
    "additionalProperties": False
}

# English commentary: score line, newline, analytical text
COMMENTARY_EN_SCHEMA = {
    "type": "object",
    "properties": {
        "english_commentary": {
            "type": "string",
            "description": "Xi Content score line, a newline, then the analytical text in English"
        }
    },
    "required": ["english_commentary"],
    "additionalProperties": False
}

# Title translation, same order and count as the input
TRANSLATE_TITLES_SCHEMA = {
    "type": "object",
    "properties": {
        "translated_titles": {
            "type": "array",
            "items": {"type": "string"},
            "description": "English titles in the same order as the input"
        }
    },
    "required": ["translated_titles"],
    "additionalProperties": False
}


SCHEMAS: Dict[str, Dict[str, Any]] = {
    PROMPT_COMMENTARY_ZH: COMMENTARY_ZH_SCHEMA,
    PROMPT_COMMENTARY_EN: COMMENTARY_EN_SCHEMA,
    PROMPT_TRANSLATE_TITLES: TRANSLATE_TITLES_SCHEMA,
}


def get_schema(prompt_id: str) -> Dict[str, Any]:
    """Get the response schema for a prompt id."""
    if prompt_id not in SCHEMAS:
        raise ValueError(f"No schema registered for prompt: {prompt_id}")
    return SCHEMAS[prompt_id]
