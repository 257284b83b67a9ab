#!/usr/bin/env python3
"""
Dual-language commentary generation.

Every model call goes through one retry-then-fallback combinator: the primary
model is tried first and, on any failure or a blank answer, the fallback model
gets exactly one attempt.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import GenerationError, TranslationError
from ..models.article import Article
from ..models.analysis import AnalysisResult, CommentaryPair, CommentaryResult, Language
from ..publishing.interfaces import LanguageModel
from ..config import DEFAULT_FALLBACK_MODEL
from .prompts import OUTPUT_FIELDS, PROMPT_COMMENTARY_EN, PROMPT_COMMENTARY_ZH, PROMPT_TRANSLATE_TITLES

logger = logging.getLogger(__name__)

COMMENTARY_PROMPTS = {
    Language.ZH: PROMPT_COMMENTARY_ZH,
    Language.EN: PROMPT_COMMENTARY_EN,
}


def _is_non_blank_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list)


def reconcile_translations(titles: List[str], translated: List[Any]) -> List[str]:
    """
    Align a translation list with its source titles.

    Missing or blank positions fall back to the original title; surplus
    entries are dropped.
    """
    if len(translated) != len(titles):
        logger.warning(
            f"Translation count mismatch: expected {len(titles)}, got {len(translated)}; "
            f"filling gaps with original titles"
        )

    aligned = []
    for index, original in enumerate(titles):
        candidate = translated[index] if index < len(translated) else None
        aligned.append(candidate.strip() if _is_non_blank_text(candidate) else original)
    return aligned


class CommentaryGenerator:
    """Generates Chinese and English commentary and translates titles."""

    def __init__(self, language_model: LanguageModel, fallback_model: str = DEFAULT_FALLBACK_MODEL,
                 primary_model: Optional[str] = None):
        """
        Args:
            language_model: Structured generation backend
            fallback_model: Model used for the single retry
            primary_model: Model for the first attempt, None for the backend default
        """
        self.language_model = language_model
        self.fallback_model = fallback_model
        self.primary_model = primary_model

    async def _attempt(self, prompt_id: str, payload: Dict[str, Any], output_field: str,
                       model: Optional[str], is_valid: Callable[[Any], bool]) -> Any:
        response = await self.language_model.generate(prompt_id, payload, model_override=model)
        value = response.get(output_field) if isinstance(response, dict) else None
        if not is_valid(value):
            raise ValueError(f"Model returned no usable '{output_field}'")
        return value

    async def _generate_with_fallback(self, prompt_id: str, payload: Dict[str, Any],
                                      is_valid: Callable[[Any], bool] = _is_non_blank_text) -> Any:
        """
        Run a prompt on the primary model, retrying once on the fallback model.

        Raises:
            GenerationError: Both attempts failed
        """
        output_field = OUTPUT_FIELDS[prompt_id]
        try:
            value = await self._attempt(prompt_id, payload, output_field, self.primary_model, is_valid)
            logger.info(f"Prompt '{prompt_id}' succeeded with primary model")
            return value
        except Exception as primary_error:
            logger.warning(f"Primary model failed for '{prompt_id}': {primary_error}. Trying {self.fallback_model}")
            try:
                value = await self._attempt(prompt_id, payload, output_field, self.fallback_model, is_valid)
                logger.info(f"Prompt '{prompt_id}' succeeded with fallback model {self.fallback_model}")
                return value
            except Exception as fallback_error:
                logger.error(f"Fallback model also failed for '{prompt_id}': {fallback_error}")
                raise GenerationError(prompt_id, str(primary_error), str(fallback_error)) from fallback_error

    @staticmethod
    def build_commentary_input(analysis: AnalysisResult, articles: List[Article],
                               custom_context: Optional[str] = None) -> Dict[str, Any]:
        """Structured input shared by both commentary prompts."""
        return {
            'title': '; '.join(article.title for article in articles if article.title),
            'title_occurrence_score': analysis.title_occurrence_score,
            'body_occurrence_score': analysis.body_occurrence_score,
            'title_unique_score': analysis.title_unique_score,
            'body_unique_score': analysis.body_unique_score,
            'xi_index': analysis.xi_index,
            'custom_context': custom_context or analysis.custom_context
        }

    async def generate(self, language: Language, payload: Dict[str, Any]) -> CommentaryResult:
        """Generate commentary for one language; failures become an error result."""
        try:
            text = await self._generate_with_fallback(COMMENTARY_PROMPTS[language], payload)
            return CommentaryResult(language=language, raw_text=text.strip())
        except GenerationError as e:
            return CommentaryResult(language=language, error=e.message)

    async def generate_both(self, analysis: AnalysisResult, articles: List[Article],
                            custom_context: Optional[str] = None) -> CommentaryPair:
        """
        Generate Chinese and English commentary concurrently.

        One language failing never cancels or affects the other.
        """
        payload = self.build_commentary_input(analysis, articles, custom_context)
        outcomes = await asyncio.gather(
            self.generate(Language.ZH, payload),
            self.generate(Language.EN, payload),
            return_exceptions=True
        )

        results = []
        for language, outcome in zip((Language.ZH, Language.EN), outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Unexpected error generating {language.value} commentary: {outcome}")
                outcome = CommentaryResult(language=language, error=str(outcome))
            results.append(outcome)

        pair = CommentaryPair(primary=results[0], secondary=results[1])
        if not pair.primary.ok and not pair.secondary.ok:
            logger.error("All commentary generation failed")
        return pair

    async def translate_titles(self, titles: List[str]) -> List[str]:
        """
        Translate titles to English, one output per input, order preserved.

        Never raises: if the models cannot produce a usable list the original
        titles are returned unchanged.
        """
        if not titles:
            return []

        titles = list(titles)
        try:
            translated = await self._generate_with_fallback(
                PROMPT_TRANSLATE_TITLES, {'titles': titles}, is_valid=_is_string_list
            )
        except GenerationError as e:
            error = TranslationError(e.message, len(titles))
            logger.warning(f"{error.message}. Keeping original titles")
            return titles

        return reconcile_translations(titles, translated)
