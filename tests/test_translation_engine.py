"""Tests for single-attempt evaluation and slang merging."""

import json

import pytest

from bile_translator.errors import ErrorKind
from bile_translator.models import Chunk, ContentElement, ElementKind, Strategy
from bile_translator.openai_client import RawModelOutput
from bile_translator.translation_engine import TranslationEngine, attach_slang_terms

from .conftest import result_json


def raw(content="", reasoning=None, supplement=None):
    return RawModelOutput(
        content=content,
        reasoning=reasoning,
        supplement=supplement,
        model="llama-3.3-70b-versatile",
        provider="groq",
        latency_ms=1800,
    )


CHUNK = Chunk(index=0, title="Test", elements=[ContentElement(text="Hallo Welt")])


class TestEvaluate:
    """Tests for TranslationEngine.evaluate()."""

    def test_accepted_output_builds_result(self):
        outcome = TranslationEngine().evaluate(raw(result_json()), CHUNK, "en", Strategy.MINIMAL)

        assert outcome.ok
        assert outcome.quality_score == pytest.approx(0.9)
        assert outcome.result.sections[0].translated == "Hello World"
        assert outcome.result.metadata.duration_ms == 1800

        record = outcome.to_record()
        assert record.success is True
        assert record.error_kind is None

    def test_unparseable_output(self):
        outcome = TranslationEngine().evaluate(raw("I am unable to help."), CHUNK, "en", Strategy.MINIMAL)

        assert not outcome.ok
        assert outcome.error.kind == ErrorKind.MALFORMED_OUTPUT
        assert outcome.to_record().error_kind == ErrorKind.MALFORMED_OUTPUT

    def test_reasoning_used_when_content_empty(self):
        outcome = TranslationEngine().evaluate(raw("", reasoning=result_json()), CHUNK, "en", Strategy.MINIMAL)
        assert outcome.ok

    def test_quality_rejection(self):
        outcome = TranslationEngine().evaluate(raw(result_json(target="fr")), CHUNK, "en", Strategy.MINIMAL)

        assert outcome.error.kind == ErrorKind.QUALITY_REJECTED
        assert outcome.quality_score == pytest.approx(0.9)

    def test_unknown_kind_falls_back_to_element_kind(self):
        chunk = Chunk(index=0, title="T", elements=[ContentElement(ElementKind.HEADING, "Titel", level=2)])
        content = json.dumps({
            "tl": "en",
            "content": [{"type": "headline", "o": "Titel", "t": "Title"}],
        })

        outcome = TranslationEngine().evaluate(raw(content), chunk, "en", Strategy.MINIMAL, source_language="de")

        section = outcome.result.sections[0]
        assert section.kind == "heading"
        assert outcome.result.source_language == "de"
        assert outcome.result.title_original == "T"


class TestAttachSlangTerms:
    """Tests for attach_slang_terms()."""

    def sections(self):
        return {"sections": [
            {"original": "Erster Satz", "translated": "First", "slangTerms": []},
            {"original": "Echt krass", "translated": "Really wild", "slangTerms": []},
        ]}

    def test_by_index(self):
        candidate = self.sections()
        count = attach_slang_terms(candidate, '{"st":[{"i":1,"tm":"Satz","tr":"sentence","eo":"a","et":"b"}]}')

        assert count == 1
        assert candidate["sections"][1]["slangTerms"][0]["term"] == "Satz"
        assert "section" not in candidate["sections"][1]["slangTerms"][0]

    def test_by_substring(self):
        candidate = self.sections()
        attach_slang_terms(candidate, '{"st":[{"tm":"krass","tr":"wild","eo":"a","et":"b"}]}')

        assert candidate["sections"][1]["slangTerms"][0]["translation"] == "wild"

    def test_fallback_to_first_section(self):
        candidate = self.sections()
        attach_slang_terms(candidate, '{"st":[{"i":9,"tm":"Nirgends","tr":"x","eo":"a","et":"b"}]}')

        assert candidate["sections"][0]["slangTerms"][0]["term"] == "Nirgends"

    def test_unparseable_supplement(self):
        candidate = self.sections()
        assert attach_slang_terms(candidate, "no terms today") == 0
