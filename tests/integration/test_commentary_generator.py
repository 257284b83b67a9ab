import asyncio
import logging

from core.analysis.content_analyzer import ContentAnalyzer
from core.models.analysis import Language

from conftest import FakeLanguageModel

FALLBACK_MODEL = "fallback-model"


def _analysis(articles):
    return ContentAnalyzer(keyword="习近平").analyze(articles)


def test_both_languages_use_primary_model(generator_factory, sample_articles):
    """Both languages succeed on the primary model alone."""
    generator = generator_factory()

    pair = asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles))

    assert pair.primary.ok and pair.secondary.ok
    assert pair.primary.language == Language.ZH
    assert pair.secondary.raw_text.startswith("Title 1/2")
    assert generator.language_model.calls_for("commentary_zh") == [None]
    assert generator.language_model.calls_for("commentary_en") == [None]


def test_blank_primary_answer_retries_on_fallback(fake_language_model_factory, generator_factory, sample_articles):
    """A blank primary answer is retried once on the fallback model."""
    model = fake_language_model_factory({
        ("commentary_zh", None): {"commentary": "   "},
        ("commentary_zh", FALLBACK_MODEL): {"commentary": "分数行\n备用模型的分析。"},
    })
    generator = generator_factory(language_model=model)

    pair = asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles))

    assert pair.primary.raw_text == "分数行\n备用模型的分析。"
    assert model.calls_for("commentary_zh") == [None, FALLBACK_MODEL]


def test_failed_language_does_not_affect_sibling(fake_language_model_factory, generator_factory, sample_articles):
    """One language failing leaves the other intact."""
    model = fake_language_model_factory({
        ("commentary_en", None): RuntimeError("primary down"),
        ("commentary_en", FALLBACK_MODEL): {"english_commentary": ""},
    })
    generator = generator_factory(language_model=model)

    pair = asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles))

    assert pair.primary.ok
    assert not pair.secondary.ok
    assert "primary down" in pair.secondary.error
    assert "Fallback error" in pair.secondary.error
    assert pair.errors == [pair.secondary.error]


def test_all_commentary_failing_is_logged(fake_language_model_factory, generator_factory, sample_articles, caplog):
    """Total commentary failure is logged as an error."""
    caplog.set_level(logging.ERROR, logger="core.analysis.commentary")
    model = fake_language_model_factory({
        "commentary_zh": RuntimeError("zh down"),
        "commentary_en": RuntimeError("en down"),
    })
    generator = generator_factory(language_model=model)

    pair = asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles))

    assert not pair.primary.ok and not pair.secondary.ok
    assert "All commentary generation failed" in caplog.text


def test_commentary_input_carries_scores(generator_factory, sample_articles):
    """The commentary prompt receives the computed scores."""
    generator = generator_factory()

    asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles, custom_context="context"))

    _, payload, _ = generator.language_model.calls[0]
    assert payload["title"] == "习近平出席中央经济工作会议; 全国秋粮收购进展顺利"
    assert payload["title_unique_score"] == "1/2"
    assert payload["xi_index"] == 3
    assert payload["custom_context"] == "context"


def test_translate_titles_preserves_order(generator_factory):
    """Translated titles keep the input order."""
    generator = generator_factory()

    assert asyncio.run(generator.translate_titles(["a", "b", "c"])) == ["EN a", "EN b", "EN c"]


def test_translate_titles_falls_back_to_originals(fake_language_model_factory, generator_factory):
    """Translation failure returns the original titles."""
    model = fake_language_model_factory({"translate_titles": RuntimeError("quota exceeded")})
    generator = generator_factory(language_model=model)

    assert asyncio.run(generator.translate_titles(["a", "b", "c"])) == ["a", "b", "c"]
    assert model.calls_for("translate_titles") == [None, FALLBACK_MODEL]


def test_translate_titles_reconciles_count_mismatch(fake_language_model_factory, generator_factory):
    """Extra translations are dropped and gaps take the original title."""
    model = fake_language_model_factory({"translate_titles": {"translated_titles": ["A", "", "C", "D"]}})
    generator = generator_factory(language_model=model)

    assert asyncio.run(generator.translate_titles(["a", "b", "c"])) == ["A", "b", "C"]

    model.responses["translate_titles"] = {"translated_titles": ["A"]}
    assert asyncio.run(generator.translate_titles(["a", "b", "c"])) == ["A", "b", "c"]


def test_translate_titles_empty_input_skips_model(generator_factory):
    """No titles means no model call."""
    generator = generator_factory()

    assert asyncio.run(generator.translate_titles([])) == []
    assert generator.language_model.calls == []


class RendezvousLanguageModel(FakeLanguageModel):
    """Commentary calls block until both languages have started."""

    def __init__(self, timeout=1.0):
        super().__init__()
        self.timeout = timeout
        self.started = set()
        self._all_started = None

    async def generate(self, prompt_id, structured_input, model_override=None):
        if prompt_id in ("commentary_zh", "commentary_en"):
            if self._all_started is None:
                self._all_started = asyncio.Event()
            self.started.add(prompt_id)
            if len(self.started) == 2:
                self._all_started.set()
            await asyncio.wait_for(self._all_started.wait(), timeout=self.timeout)
        return await super().generate(prompt_id, structured_input, model_override)


def test_languages_generate_concurrently(generator_factory, sample_articles):
    """Chinese and English commentary are requested at the same time."""
    model = RendezvousLanguageModel()
    generator = generator_factory(language_model=model)

    pair = asyncio.run(generator.generate_both(_analysis(sample_articles), sample_articles))

    assert pair.primary.ok and pair.secondary.ok
    assert model.calls_for("commentary_zh") == [None]
    assert model.calls_for("commentary_en") == [None]
