"""
Rendering sink.

The pipeline never draws anything. It tells a sink what happened, in order:

    cleared()
    chunk_started(text)            -> chunk handle
    variant_pending(chunk)
    variant_ready(chunk, reference) | variant_error(chunk, message)
    ...

A ready or error event settles the most recent pending variant of that
chunk. Variants of one chunk are generated one after another, so there is
never more than one pending variant per chunk.

RecordingSink keeps the events and a per-chunk view of them (used by the
HTTP API and tests). ConsoleSink prints progress for the CLI.
"""
from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Protocol, TextIO, Union


class RenderSink(Protocol):
    def chunk_started(self, text: str) -> Any:
        """Start a new chunk; returns the handle passed to the variant events."""
        ...

    def variant_pending(self, chunk: Any) -> None:
        ...

    def variant_ready(self, chunk: Any, reference: str) -> None:
        ...

    def variant_error(self, chunk: Any, message: str) -> None:
        ...

    def cleared(self) -> None:
        ...


# =============================================================================
# Events
# =============================================================================

@dataclass
class ChunkStarted:
    chunk: int
    text: str
    type: str = "chunk_started"


@dataclass
class VariantPending:
    chunk: int
    type: str = "variant_pending"


@dataclass
class VariantReady:
    chunk: int
    reference: str
    type: str = "variant_ready"


@dataclass
class VariantError:
    chunk: int
    message: str
    type: str = "variant_error"


@dataclass
class Cleared:
    type: str = "cleared"


Event = Union[ChunkStarted, VariantPending, VariantReady, VariantError, Cleared]


@dataclass
class VariantView:
    """One variant slot as a renderer would show it."""
    status: str = "pending"         # pending | ready | error
    reference: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ChunkView:
    text: str
    variants: List[VariantView] = field(default_factory=list)

    def pending_slot(self) -> VariantView:
        for variant in reversed(self.variants):
            if variant.status == "pending":
                return variant
        # Settled without a pending event (history replay).
        variant = VariantView()
        self.variants.append(variant)
        return variant


# =============================================================================
# Implementations
# =============================================================================

class RecordingSink:
    """
    Sink that remembers everything.

    Attributes:
        events: Every event since construction, including ones before the
            last ``cleared()``.
        chunks: What is currently "on screen"; reset by ``cleared()``.
    """

    def __init__(self) -> None:
        self.events: List[Event] = []
        self.chunks: List[ChunkView] = []

    def chunk_started(self, text: str) -> int:
        self.chunks.append(ChunkView(text=text))
        index = len(self.chunks) - 1
        self.events.append(ChunkStarted(chunk=index, text=text))
        return index

    def variant_pending(self, chunk: int) -> None:
        self.chunks[chunk].variants.append(VariantView())
        self.events.append(VariantPending(chunk=chunk))

    def variant_ready(self, chunk: int, reference: str) -> None:
        variant = self.chunks[chunk].pending_slot()
        variant.status = "ready"
        variant.reference = reference
        self.events.append(VariantReady(chunk=chunk, reference=reference))

    def variant_error(self, chunk: int, message: str) -> None:
        variant = self.chunks[chunk].pending_slot()
        variant.status = "error"
        variant.message = message
        self.events.append(VariantError(chunk=chunk, message=message))

    def cleared(self) -> None:
        self.chunks = []
        self.events.append(Cleared())

    def event_types(self) -> List[str]:
        return [e.type for e in self.events]

    def drain(self) -> List[Dict[str, Any]]:
        """Return the recorded events as dicts and forget them."""
        out = [asdict(e) for e in self.events]
        self.events = []
        return out


class ConsoleSink:
    """Prints chunks and variant outcomes to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdout
        self._count = 0
        self._variants: Dict[int, int] = {}

    def _write(self, line: str) -> None:
        print(line, file=self._stream, flush=True)

    def chunk_started(self, text: str) -> int:
        self._count += 1
        self._variants[self._count] = 0
        self._write(f"[{self._count}] {text}")
        return self._count

    def _settle(self, chunk: int) -> int:
        self._variants[chunk] = self._variants.get(chunk, 0) + 1
        return self._variants[chunk]

    def variant_pending(self, chunk: int) -> None:
        self._write(f"    v{self._variants.get(chunk, 0) + 1}  Generating audio...")

    def variant_ready(self, chunk: int, reference: str) -> None:
        self._write(f"    v{self._settle(chunk)}  {reference}")

    def variant_error(self, chunk: int, message: str) -> None:
        self._write(f"    v{self._settle(chunk)}  Error generating audio: {message}")

    def cleared(self) -> None:
        self._count = 0
        self._variants = {}
