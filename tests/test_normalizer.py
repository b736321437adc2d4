"""Tests for input normalization."""

from types import SimpleNamespace

from bile_translator.models import ContentElement, ContentRecord, ElementKind
from bile_translator.normalizer import estimate_chars, normalize


class TestNormalize:
    """Tests for normalize()."""

    def test_string_becomes_single_paragraph(self):
        record = normalize("Hallo Welt")

        assert record.title == "Untitled"
        assert len(record.elements) == 1
        assert record.elements[0].kind == ElementKind.PARAGRAPH
        assert record.elements[0].text == "Hallo Welt"

    def test_none_gives_empty_untitled_record(self):
        record = normalize(None)

        assert record.title == "Untitled"
        assert record.elements == []

    def test_record_passes_through(self):
        record = ContentRecord(title="T", elements=[ContentElement(text="x")])
        assert normalize(record) is record

    def test_array_of_elements(self):
        record = normalize([
            {"type": "h1", "text": "Titel"},
            "Freier Text",
            {"kind": "quote", "text": "Zitat"},
        ])

        kinds = [e.kind for e in record.elements]
        assert kinds == [ElementKind.HEADING, ElementKind.PARAGRAPH, ElementKind.QUOTE]
        assert record.elements[0].level == 1

    def test_object_with_content_field(self):
        record = normalize({
            "title": "Kleine Stadt, großer Wandel",
            "content": [{"type": "paragraph", "text": "Die Stadt hat sich stark verändert."}],
        })

        assert record.title == "Kleine Stadt, großer Wandel"
        assert record.elements[0].text == "Die Stadt hat sich stark verändert."

    def test_object_with_sections_field(self):
        record = normalize({"title": "T", "sections": [{"text": "a"}, {"text": "b"}]})
        assert [e.text for e in record.elements] == ["a", "b"]

    def test_attribute_object(self):
        raw = SimpleNamespace(
            title="Obj",
            elements=[SimpleNamespace(kind="paragraph", text="Hallo")],
        )
        record = normalize(raw)

        assert record.title == "Obj"
        assert record.elements[0].text == "Hallo"

    def test_unknown_kind_defaults_to_paragraph(self):
        record = normalize([{"type": "marquee", "text": "Blink"}])
        assert record.elements[0].kind == ElementKind.PARAGRAPH

    def test_missing_fields_get_safe_defaults(self):
        record = normalize({"content": [{}, {"type": "heading"}]})

        assert record.title == "Untitled"
        assert record.elements[0].text == ""
        assert record.elements[1].kind == ElementKind.HEADING
        assert record.elements[1].level == 2

    def test_heading_level_is_clamped(self):
        record = normalize([{"kind": "heading", "level": 9, "text": "x"}])
        assert record.elements[0].level == 6

    def test_list_items_are_joined(self):
        record = normalize([{"type": "ol", "items": ["eins", "zwei"]}])
        element = record.elements[0]

        assert element.kind == ElementKind.LIST
        assert element.ordered is True
        assert element.text == "eins\nzwei"

    def test_image_text_falls_back_to_alt(self):
        record = normalize([{"type": "img", "src": "a.png", "alt": "Ein Hund"}])
        element = record.elements[0]

        assert element.kind == ElementKind.IMAGE
        assert element.src == "a.png"
        assert element.text == "Ein Hund"

    def test_domain_from_url(self):
        record = normalize({"title": "T", "url": "https://www.Spiegel.de/artikel", "content": []})
        assert record.domain == "www.spiegel.de"

    def test_domain_and_language_hints(self):
        record = normalize({
            "title": "T",
            "metadata": {"domain": "github.com"},
            "language": "de",
            "content": ["x"],
        })

        assert record.domain == "github.com"
        assert record.language == "de"


class TestEstimateChars:
    """Tests for estimate_chars()."""

    def test_sums_element_text_lengths(self):
        record = normalize({"title": "Long title not counted", "content": ["abc", "de"]})
        assert estimate_chars(record) == 5
