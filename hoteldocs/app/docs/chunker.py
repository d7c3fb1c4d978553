"""Document chunker - deterministic text splitting for embedding."""

import re
from dataclasses import dataclass

# A new section starts at a heading line ("Breakfast:"), a numbered item
# ("1. ") or a bulleted item ("- ", "* ", "• ").
_SECTION_START = re.compile(r"^\s*(?:[A-Z][^.\n]*:|\d+\.\s|[•*\-]\s)")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True)
class TextChunk:
    """One chunk of document text."""

    index: int
    content: str
    chunk_type: str  # "section" or "subsection"


def split_sections(text: str) -> list[str]:
    """Split text into sections on blank lines and section markers."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")

    sections: list[str] = []
    current: list[str] = []

    def flush() -> None:
        if current:
            sections.append("\n".join(current))
            current.clear()

    for line in normalized.split("\n"):
        stripped = line.strip()
        if not stripped:
            flush()
            continue
        if current and _SECTION_START.match(line):
            flush()
        current.append(stripped)

    flush()
    return sections


def _pack_sentences(section: str, max_chars: int, overlap_words: int) -> list[str]:
    flat = " ".join(section.split())
    sentences = [s for s in _SENTENCE_END.split(flat) if s.strip()]

    pieces: list[str] = []
    current = ""
    for sentence in sentences:
        if current and len(current) + 1 + len(sentence) > max_chars:
            pieces.append(current)
            tail = current.split()[-overlap_words:] if overlap_words > 0 else []
            current = " ".join([*tail, sentence])
        else:
            current = f"{current} {sentence}" if current else sentence

    if current:
        pieces.append(current)
    return pieces


def chunk_document(
    text: str,
    *,
    max_chars: int = 400,
    overlap_words: int = 20,
) -> list[TextChunk]:
    """Chunk document text into ordered segments.

    Pure function with no I/O or randomness.

    Args:
        text: Raw document text to chunk
        max_chars: Maximum characters for a section kept whole
        overlap_words: Words carried from the end of one subsection into the next

    Returns:
        List of TextChunk where:
        - index is 0-based, strictly increasing
        - content is stripped, non-empty text
        - chunk_type is "section" for whole sections, "subsection" for pieces
          of a section longer than max_chars

    Strategy:
        1. Normalize line endings to \\n
        2. Split into sections on blank lines and section markers
        3. Sections within max_chars become one chunk
        4. Longer sections are packed sentence by sentence, each new piece
           starting with the last overlap_words words of the previous one
        5. A single sentence longer than max_chars is kept as its own piece
    """
    if not text or not text.strip():
        return []

    chunks: list[TextChunk] = []
    for section in split_sections(text):
        if len(section) <= max_chars:
            chunks.append(TextChunk(index=len(chunks), content=section, chunk_type="section"))
            continue

        for piece in _pack_sentences(section, max_chars, overlap_words):
            chunks.append(TextChunk(index=len(chunks), content=piece, chunk_type="subsection"))

    return chunks
