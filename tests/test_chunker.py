"""Tests for chunking and merging."""

import pytest

from bile_translator.chunker import chunk_record, merge_results
from bile_translator.models import (
    ContentElement,
    ContentRecord,
    ResultMetadata,
    TranslatedSection,
    TranslationResult,
)


def make_record(*texts, title="Artikel"):
    return ContentRecord(title=title, elements=[ContentElement(text=t) for t in texts])


def make_result(*texts, title="Title", duration=100, attempts=1):
    return TranslationResult(
        source_language="de",
        target_language="en",
        title_original=title,
        title_translated=f"{title} (en)",
        sections=[TranslatedSection("paragraph", t, t.upper()) for t in texts],
        metadata=ResultMetadata("groq", "llama-3.3-70b-versatile", "minimal", duration, attempts),
    )


class TestChunkRecord:
    """Tests for chunk_record()."""

    def test_fitting_record_is_one_whole_chunk(self):
        record = make_record("a" * 50, "b" * 50)
        chunks = chunk_record(record, max_chars=100)

        assert len(chunks) == 1
        assert chunks[0].index == 0
        assert chunks[0].title == "Artikel"
        assert chunks[0].elements == record.elements

    def test_greedy_packing_never_splits_elements(self):
        record = make_record("a" * 40, "b" * 40, "c" * 40, "d" * 200, "e" * 10)
        chunks = chunk_record(record, max_chars=100)

        assert [len(c.elements) for c in chunks] == [2, 1, 1, 1]
        assert chunks[2].elements[0].text == "d" * 200

    def test_concatenated_chunks_reproduce_elements(self):
        record = make_record(*[str(i) * (i * 7 % 90 + 1) for i in range(30)])
        chunks = chunk_record(record, max_chars=120)

        rebuilt = [e for chunk in sorted(chunks, key=lambda c: c.index) for e in chunk.elements]
        assert rebuilt == record.elements
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_part_titles_after_first_chunk(self):
        record = make_record("a" * 80, "b" * 80, "c" * 80)
        chunks = chunk_record(record, max_chars=100)

        assert chunks[0].title == "Artikel"
        assert chunks[1].title == "Artikel (part 2)"
        assert chunks[2].title == "Artikel (part 3)"


class TestMergeResults:
    """Tests for merge_results()."""

    def test_single_result_is_identity(self):
        result = make_result("x")
        assert merge_results([result]) is result

    def test_empty_input_raises(self):
        with pytest.raises(ValueError):
            merge_results([])

    def test_concatenates_sections_in_order(self):
        merged = merge_results([
            make_result("eins", "zwei", title="Erst", duration=100, attempts=1),
            make_result("drei", title="Zweit", duration=250, attempts=2),
        ])

        assert [s.original for s in merged.sections] == ["eins", "zwei", "drei"]
        assert merged.title_translated == "Erst (en)"
        assert merged.source_language == "de"
        assert merged.metadata.chunked is True
        assert merged.metadata.chunk_count == 2
        assert merged.metadata.attempt_count == 3
        assert merged.metadata.duration_ms == 350

    def test_merged_metadata_dict_flags_chunking(self):
        merged = merge_results([make_result("a"), make_result("b")])
        meta = merged.to_dict()["metadata"]

        assert meta["chunked"] is True
        assert meta["chunkCount"] == 2
