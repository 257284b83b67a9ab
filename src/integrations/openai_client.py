#!/usr/bin/env python3
"""
OpenAI integration for commentary generation and title translation.

Implements the LanguageModel interface with structured outputs: every prompt
id has a JSON schema, so responses parse straight into dictionaries.
"""

import os
import json
import logging
from typing import List, Dict, Optional, Any

from openai import AsyncOpenAI

from core.analysis.prompts import CommentaryPrompts, render_prompt
from core.publishing.interfaces import LanguageModel
from core.schemas import get_schema

logger = logging.getLogger(__name__)


class OpenAILanguageModel(LanguageModel):
    """LanguageModel backed by the OpenAI chat completions API."""

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o",
                 base_url: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, tries to get from environment.
            model: Default model when no override is given
            base_url: Alternative API endpoint (OpenAI-compatible gateways)
            client: Pre-built async client
        """
        if client is None:
            api_key = api_key or os.getenv('OPENAI_API_KEY')
            if not api_key:
                raise ValueError("OpenAI API key not provided and not found in OPENAI_API_KEY environment variable")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)

        self.client = client
        self.model = model
        self.max_tokens = 1200
        self.temperature = 0.7

    async def _make_structured_request(self, messages: List[Dict[str, str]], schema: Dict[str, Any],
                                       prompt_id: str, model: str) -> Dict[str, Any]:
        """Make a structured request to OpenAI API with JSON schema enforcement."""
        logger.info(f"Making OpenAI structured API call for {prompt_id} with {model}")
        for i, msg in enumerate(messages):
            content = msg.get('content', '')
            if len(content) > 1000:
                content = content[:500] + "\n...\n" + content[-500:]
            logger.debug(f"Message {i+1} [{msg.get('role', 'unknown').upper()}]:\n{content}")

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": f"{prompt_id}_response",
                        "schema": schema,
                        "strict": True
                    }
                }
            )

            # Detect truncated responses early
            finish_reason = getattr(response.choices[0], "finish_reason", None)
            if finish_reason == "length":
                logger.error(
                    "OpenAI response for %s was truncated due to max_tokens=%s.",
                    prompt_id,
                    self.max_tokens,
                )
                raise ValueError("OpenAI response truncated (finish_reason=length)")

            content = response.choices[0].message.content
            logger.debug(f"=== LLM OUTPUT ({prompt_id}) ===\n{content}")

            usage = response.usage
            if usage is not None:
                logger.info(
                    f"OpenAI API call successful - tokens: {usage.prompt_tokens} prompt + "
                    f"{usage.completion_tokens} completion = {usage.total_tokens} total"
                )

            if not content:
                return {}
            return json.loads(content)

        except Exception as e:
            logger.error(f"OpenAI structured API request failed for {prompt_id}: {e}")
            raise

    async def generate(self, prompt_id: str, structured_input: Dict[str, Any],
                       model_override: Optional[str] = None) -> Dict[str, Any]:
        """
        Render a prompt by id and return the parsed structured response.

        Args:
            prompt_id: One of the registered prompt ids
            structured_input: Values the prompt template needs
            model_override: Model to use instead of the default

        Returns:
            Parsed JSON response
        """
        messages = [
            {"role": "system", "content": CommentaryPrompts.SYSTEM_PROMPT},
            {"role": "user", "content": render_prompt(prompt_id, structured_input)}
        ]
        return await self._make_structured_request(
            messages, get_schema(prompt_id), prompt_id, model_override or self.model
        )

    async def test_connection(self) -> bool:
        """Test OpenAI API connection."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=5
            )

            if response and response.choices:
                logger.info("OpenAI API connection test successful")
                return True
            else:
                logger.error("OpenAI API connection test failed: no response")
                return False

        except Exception as e:
            logger.error(f"OpenAI API connection test failed: {e}")
            return False
