"""Cheap content heuristics used to bias model selection and prompting.

None of these block a translation; they only reorder candidates or decide
whether a second, slang-only pass is worth paying for.
"""

import re
from typing import Optional

from .models import ContentRecord, ContentType


class ContentClassifier:
    """Classify content type and detect source language."""

    # Domain fragments, checked before anything else
    DOMAIN_HINTS = [
        (ContentType.TECHNICAL, ("github.com", "stackoverflow.com", "dev.to", "docs.")),
        (ContentType.NEWS, ("news", "bbc.", "cnn.", "reuters.", "spiegel.", "lemonde.", "elpais.", "tagesschau.")),
        (ContentType.ACADEMIC, ("arxiv.", "jstor.", "pubmed", ".edu")),
        (ContentType.BLOG, ("blog", "medium.com", "substack.com", "wordpress.")),
    ]

    TITLE_KEYWORDS = [
        (ContentType.TECHNICAL, ("tutorial", "guide", "how to", "api", "release notes", "anleitung")),
        (ContentType.BLOG, ("opinion", "editorial", "kolumne", "meinung")),
        (ContentType.CREATIVE, ("story", "poem", "fiction", "gedicht", "erzählung")),
    ]

    TEXT_PATTERNS = [
        (ContentType.NEWS, r"\b(breaking|reported|according to|sources said|investigation|laut|berichtet)\b"),
        (ContentType.ACADEMIC, r"\b(research|study|methodology|hypothesis|references|studie)\b"),
        (ContentType.TECHNICAL, r"\b(function|server|install|database|deploy|algorithm)\b"),
        (ContentType.PROFESSIONAL, r"\b(quarterly|revenue|stakeholder|compliance|strategy|umsatz)\b"),
        (ContentType.BLOG, r"\b(I think|my opinion|personally|in my experience|ich finde)\b"),
        (ContentType.CREATIVE, r"\b(once upon|she whispered|he whispered|es war einmal)\b"),
    ]

    LONG_FORM_CHARS = 8000

    LANGUAGE_PATTERNS = {
        "en": (
            r"\b(the|and|or|but|in|on|at|to|for|of|with|is|are|was|were|have|has|will|would)\b",
            r"\b(through|although|because|however|therefore|nevertheless)\b",
        ),
        "de": (
            r"\b(der|die|das|und|oder|aber|auf|zu|für|von|mit|bei|ist|sind|war|haben|hat|wird|nicht|ein|eine)\b",
            r"\b(jedoch|obwohl|deshalb|trotzdem|außerdem|während|nachdem)\b",
        ),
        "fr": (
            r"\b(le|la|les|et|ou|mais|dans|sur|pour|avec|par|est|sont|était|avoir|une|des)\b",
            r"\b(cependant|bien que|parce que|néanmoins|donc|pendant|après)\b",
        ),
        "es": (
            r"\b(el|los|las|y|pero|en|sobre|para|con|por|es|son|era|tiene|una|del)\b",
            r"\b(sin embargo|aunque|porque|por lo tanto|además|mientras|después)\b",
        ),
    }

    def classify(self, record: ContentRecord, domain: Optional[str] = None) -> ContentType:
        """Classify a record; defaults to blog."""
        domain = (domain or record.domain or "").lower()
        for content_type, fragments in self.DOMAIN_HINTS:
            if any(fragment in domain for fragment in fragments):
                return content_type

        title = record.title.lower()
        for content_type, keywords in self.TITLE_KEYWORDS:
            if any(keyword in title for keyword in keywords):
                return content_type

        text = record.full_text()
        if len(text) > self.LONG_FORM_CHARS:
            return ContentType.LONG_FORM

        for content_type, pattern in self.TEXT_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE):
                return content_type

        return ContentType.BLOG

    def detect_language(self, text: str) -> str:
        """Best-guess language code, or "auto" when nothing matches."""
        best, best_score = "auto", 0
        for language, (common, unique) in self.LANGUAGE_PATTERNS.items():
            score = (
                len(re.findall(common, text, re.IGNORECASE))
                + 2 * len(re.findall(unique, text, re.IGNORECASE))
            )
            if score > best_score:
                best, best_score = language, score
        return best


# Indicators that a text likely contains slang or culture-bound terms
CULTURAL_INDICATORS = (
    "<slang>", "<s>", "„", "«", "»",
    "startup", "fintech", "ki", "münchen", "berlin", "deutschland",
    "gonna", "wanna", "gotta", "dude", "bro", "krass", "geil", "digger", "alter",
    "chévere", "guay", "tío", "pibe",
)

_CULTURAL_PATTERNS = [
    re.compile(r"\b[A-ZÄÖÜ][a-zäöüß]+(?:ung|heit|keit|schaft)\b"),  # German compounds
    re.compile(r"\b[A-Z]{2,5}\b"),  # acronyms and brand shorthand
    re.compile(r"[\"'][^\"']{2,30}[\"']"),  # quoted coinages
]


def looks_cultural(source_text: str, translated_text: str = "") -> bool:
    """Keyword/pattern scan deciding whether slang analysis is worthwhile."""
    combined = f"{source_text}\n{translated_text}"
    lowered = combined.lower()

    words = set(re.findall(r"\w+", lowered))
    for indicator in CULTURAL_INDICATORS:
        if indicator.isalpha():
            if indicator in words:
                return True
        elif indicator in lowered:
            return True

    return any(pattern.search(combined) for pattern in _CULTURAL_PATTERNS)
