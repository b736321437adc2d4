"""Tests for quality validation."""

import pytest

from bile_translator.models import ContentElement, ContentRecord
from bile_translator.quality import QualityValidator


def record_with(n):
    return ContentRecord(title="T", elements=[ContentElement(text=f"Satz {i}") for i in range(n)])


def candidate(n, target="en", translated="Sentence", slang=False):
    return {
        "targetLanguage": target,
        "sections": [
            {
                "original": f"Satz {i}",
                "translated": f"{translated} {i}",
                "slangTerms": [{"term": "x"}] if slang and i == 0 else [],
            }
            for i in range(n)
        ],
    }


class TestScore:
    """Tests for QualityValidator.score()."""

    @pytest.fixture
    def validator(self):
        return QualityValidator()

    def test_empty_candidate_scores_base(self, validator):
        assert validator.score({}, record_with(1)) == 0.5

    def test_sections_and_changed_translation(self, validator):
        assert validator.score(candidate(2), record_with(2)) == pytest.approx(0.9)

    def test_untranslated_sections_score_lower(self, validator):
        data = {"sections": [{"original": "Satz", "translated": "Satz"}]}
        assert validator.score(data, record_with(1)) == pytest.approx(0.7)

    def test_slang_terms_reach_maximum(self, validator):
        assert validator.score(candidate(1, slang=True), record_with(1)) == pytest.approx(1.0)


class TestAccept:
    """Tests for QualityValidator.accept() and evaluate()."""

    @pytest.fixture
    def validator(self):
        return QualityValidator()

    def test_accepts_good_candidate(self, validator):
        assert validator.accept(candidate(8), record_with(8), "en")

    def test_rejects_heavy_content_loss(self, validator):
        # 3 of 8 sections is more than 20% loss, whatever the score
        data = candidate(3, slang=True)
        assert validator.score(data, record_with(8)) == pytest.approx(1.0)
        assert not validator.accept(data, record_with(8), "en")

    def test_accepts_twenty_percent_loss(self, validator):
        assert validator.accept(candidate(4), record_with(5), "en")

    def test_rejects_wrong_target_language(self, validator):
        verdict = validator.evaluate(candidate(1, target="de"), record_with(1), "en")

        assert not verdict.accepted
        assert "target language" in verdict.reason

    def test_target_language_compares_base_codes(self, validator):
        assert validator.accept(candidate(1, target="en-US"), record_with(1), "en")

    def test_rejects_below_threshold(self, validator):
        verdict = validator.evaluate({"targetLanguage": "en", "sections": []}, record_with(0), "en")

        assert not verdict.accepted
        assert verdict.score == 0.5

    def test_threshold_override(self, validator):
        data = {"targetLanguage": "en", "sections": [{"original": "a", "translated": "a"}]}

        assert validator.accept(data, record_with(1), "en")
        assert not validator.accept(data, record_with(1), "en", min_threshold=0.8)
