"""Split extracted document text into overlapping, sentence-aligned chunks.

Window sizes are in characters, derived from token settings at 1 token ≈ 4
characters of English text.  With the defaults a chunk is ~3200 characters,
consecutive windows start 2600 characters apart and therefore overlap by
~600 characters.
"""

from __future__ import annotations

import math
import re

from models.chunk import TextChunk

CHARS_PER_TOKEN = 4
CHUNK_CHARS = 800 * CHARS_PER_TOKEN
OVERLAP_CHARS = 150 * CHARS_PER_TOKEN
MIN_CHUNK_CHARS = 50

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def chunk_text(
    text: str,
    *,
    chunk_chars: int = CHUNK_CHARS,
    overlap_chars: int = OVERLAP_CHARS,
    chars_per_token: int = CHARS_PER_TOKEN,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> list[TextChunk]:
    """Chunk *text* into an ordered list of :class:`TextChunk`.

    Each window starts at ``start`` and tentatively ends ``chunk_chars``
    characters later.  Unless it is the last window, the end is pulled back
    to the nearest ". " in the back half of the window, or failing that to
    the nearest space after ``start``.  ``start`` always advances by the
    fixed step, so the overlap is approximate once snapping kicks in.

    Chunks of ``min_chunk_chars`` or fewer characters are dropped and do not
    consume a ``chunk_index``.
    """
    cleaned = normalize_whitespace(text)
    if not cleaned:
        return []

    step = chunk_chars - overlap_chars
    if step <= 0:
        raise ValueError("chunk overlap must be smaller than the chunk size")

    length = len(cleaned)
    chunks: list[TextChunk] = []
    start = 0
    while start < length:
        end = min(start + chunk_chars, length)

        if end < length:
            # A boundary may begin exactly at ``end``.
            sentence = cleaned.rfind(". ", 0, end + 2)
            if sentence > start + step * 0.5:
                end = sentence + 2
            else:
                word = cleaned.rfind(" ", 0, end + 1)
                if word > start:
                    end = word + 1

        content = cleaned[start:end].strip()
        if len(content) > min_chunk_chars:
            chunks.append(
                TextChunk(
                    content=content,
                    chunk_index=len(chunks),
                    token_count=math.ceil(len(content) / chars_per_token),
                )
            )

        start += step

    return chunks
