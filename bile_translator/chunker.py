"""Splitting oversized records into chunks and merging chunk results."""

from dataclasses import replace
from typing import List, Sequence

from .models import Chunk, ContentRecord, TranslationResult
from .normalizer import estimate_chars


def chunk_record(record: ContentRecord, max_chars: int) -> List[Chunk]:
    """Greedily pack elements into chunks of at most ``max_chars``.

    Elements are never split; an element larger than ``max_chars`` gets a
    chunk of its own. Concatenating the chunks' elements in index order
    reproduces ``record.elements``.

    Args:
        record: Normalized record
        max_chars: Character budget per chunk (sum of element text lengths)

    Returns:
        Ordered list of chunks (a single whole-record chunk if it fits)
    """
    if estimate_chars(record) <= max_chars:
        return [Chunk(index=0, title=record.title, elements=list(record.elements))]

    chunks: List[Chunk] = []
    current: List = []
    current_chars = 0

    for element in record.elements:
        size = len(element.text)
        if current and current_chars + size > max_chars:
            chunks.append(_make_chunk(record.title, len(chunks), current))
            current = []
            current_chars = 0

        current.append(element)
        current_chars += size

    if current or not chunks:
        chunks.append(_make_chunk(record.title, len(chunks), current))

    return chunks


def _make_chunk(title: str, index: int, elements: List) -> Chunk:
    # Part titles only help trace chunks in logs and prompts
    chunk_title = title if index == 0 else f"{title} (part {index + 1})"
    return Chunk(index=index, title=chunk_title, elements=list(elements))


def merge_results(results: Sequence[TranslationResult]) -> TranslationResult:
    """Concatenate chunk results in chunk-index order.

    Language and titles come from the first chunk. Merging one result
    returns it unchanged.

    Raises:
        ValueError: If there is nothing to merge
    """
    if not results:
        raise ValueError("No chunk results to merge")

    if len(results) == 1:
        return results[0]

    first = results[0]
    sections = []
    for result in results:
        sections.extend(result.sections)

    metadata = None
    if first.metadata is not None:
        metadata = replace(
            first.metadata,
            duration_ms=sum(r.metadata.duration_ms for r in results if r.metadata),
            attempt_count=sum(r.metadata.attempt_count for r in results if r.metadata),
            chunked=True,
            chunk_count=len(results),
        )

    return TranslationResult(
        source_language=first.source_language,
        target_language=first.target_language,
        title_original=first.title_original,
        title_translated=first.title_translated,
        sections=sections,
        metadata=metadata,
    )
