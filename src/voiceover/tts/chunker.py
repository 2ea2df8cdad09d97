"""
Text Chunking.

Input text is split on a single delimiter character, by default the Bengali
danda "।" (U+0964), which ends a sentence in Bengali and Hindi. A period is
deliberately not a delimiter: abbreviations and decimals inside a sentence
must stay together.

Each piece is trimmed and empty pieces are dropped, so repeated delimiters
or trailing whitespace never produce empty requests.

Example:
    >>> split_text("আমি ভাত খাই। তুমি কী খাও?।")
    ['আমি ভাত খাই', 'তুমি কী খাও?']
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from voiceover.core.config import Defaults
from voiceover.core.logging import get_logger, verbose
from voiceover.utils.timeit import timeit

_LOG = get_logger("voiceover.chunker")

DANDA = Defaults.GENERATION_DELIMITER


@dataclass
class ChunkResult:
    """
    Result of chunking.

    Attributes:
        chunks: Ordered, non-empty, trimmed pieces.
        timings_s: Stage timings in seconds.
    """
    chunks: List[str]
    timings_s: Dict[str, float]


def split_text(text: str, delimiter: str = DANDA) -> List[str]:
    """
    Split ``text`` on ``delimiter``, trim each piece and drop empty ones.

    Pure function: same input, same output, no I/O.

    Examples:
        >>> split_text("a।b।।c")
        ['a', 'b', 'c']
        >>> split_text("  x  ।  y  ")
        ['x', 'y']
    """
    if not delimiter:
        raise ValueError("delimiter must not be empty")
    return [piece.strip() for piece in text.split(delimiter) if piece.strip()]


def chunk_text(text: str, delimiter: str = DANDA) -> ChunkResult:
    """split_text() with timing and a verbose log line, for the pipeline."""
    with timeit("chunk") as t:
        chunks = split_text(text, delimiter)

    verbose(_LOG, "chunked", chunks=len(chunks), chars=len(text), seconds=round(t.seconds, 4))
    return ChunkResult(chunks=chunks, timings_s={"chunk": t.seconds})
