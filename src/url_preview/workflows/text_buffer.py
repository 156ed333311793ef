"""In-memory host text container with live anchors and read-only spans.

Anchors behave like editor markers: an insertion strictly before an anchor
shifts it, an insertion at its own offset leaves it in place, and a deletion
that covers it collapses it to the deletion start.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Set


class ReadOnlyRegionError(RuntimeError):
    """Raised when a user edit touches a rendered (read-only) span."""


class AnchorConsumedError(RuntimeError):
    """Raised when an anchor is used after it was consumed or released."""


class Anchor:
    """Stable position handle into a :class:`TextBuffer`."""

    __slots__ = ("buffer", "_offset", "_live")

    def __init__(self, buffer: "TextBuffer", offset: int) -> None:
        self.buffer = buffer
        self._offset = offset
        self._live = True

    @property
    def position(self) -> int:
        if not self._live:
            raise AnchorConsumedError("anchor already consumed")
        return self._offset

    @property
    def live(self) -> bool:
        return self._live

    def consume(self) -> int:
        """Return the current offset and detach; valid exactly once."""

        offset = self.position
        self.release()
        return offset

    def release(self) -> None:
        """Detach without reading; releasing twice is harmless."""

        if self._live:
            self._live = False
            self.buffer._anchors.discard(self)

    def __repr__(self) -> str:
        state = self._offset if self._live else "consumed"
        return f"Anchor({self.buffer.name!r}, {state})"


class TextBuffer:
    """Mutable text with marker tracking."""

    def __init__(self, text: str = "", name: str = "*scratch*") -> None:
        self.name = name
        self._text = text
        self._anchors: Set[Anchor] = set()
        self._read_only: List[List[int]] = []

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def _check_offset(self, pos: int) -> None:
        if pos < 0 or pos > len(self._text):
            raise ValueError(f"offset {pos} outside buffer {self.name!r} (0..{len(self._text)})")

    # -- anchors ------------------------------------------------------------

    def capture_anchor(self, offset: int) -> Anchor:
        self._check_offset(offset)
        anchor = Anchor(self, offset)
        self._anchors.add(anchor)
        return anchor

    @property
    def live_anchors(self) -> int:
        return len(self._anchors)

    # -- read-only spans ----------------------------------------------------

    def mark_read_only(self, start: int, end: int) -> None:
        self._check_offset(start)
        self._check_offset(end)
        if end > start:
            self._read_only.append([start, end])

    def is_read_only(self, pos: int) -> bool:
        return any(start <= pos < end for start, end in self._read_only)

    def read_only_spans(self) -> List[tuple]:
        return [(start, end) for start, end in self._read_only]

    # -- editing ------------------------------------------------------------

    def insert(self, pos: int, text: str, *, force: bool = False) -> None:
        """Insert ``text`` at ``pos``; ``force`` bypasses read-only spans."""

        self._check_offset(pos)
        if not text:
            return
        if not force and any(start < pos < end for start, end in self._read_only):
            raise ReadOnlyRegionError(f"cannot insert inside read-only text at {pos}")
        size = len(text)
        self._text = self._text[:pos] + text + self._text[pos:]
        for anchor in self._anchors:
            if anchor._offset > pos:
                anchor._offset += size
        for span in self._read_only:
            if span[0] >= pos:
                span[0] += size
                span[1] += size
            elif span[1] > pos:
                span[1] += size

    def delete(self, start: int, end: int) -> None:
        self._check_offset(start)
        self._check_offset(end)
        if end <= start:
            return
        if any(s < end and e > start for s, e in self._read_only):
            raise ReadOnlyRegionError(f"cannot delete read-only text in {start}..{end}")
        size = end - start
        self._text = self._text[:start] + self._text[end:]
        for anchor in self._anchors:
            if anchor._offset >= end:
                anchor._offset -= size
            elif anchor._offset > start:
                anchor._offset = start
        for span in self._read_only:
            if span[0] >= end:
                span[0] -= size
                span[1] -= size

    # -- navigation / hooks -------------------------------------------------

    def line_end(self, pos: int) -> int:
        self._check_offset(pos)
        idx = self._text.find("\n", pos)
        return len(self._text) if idx < 0 else idx

    def next_line_start(self, pos: int) -> int:
        end = self.line_end(pos)
        return min(end + 1, len(self._text))

    def run_hooks(self, hooks: Iterable[Callable[["TextBuffer"], None]]) -> None:
        for hook in hooks:
            hook(self)


class Workspace:
    """Named buffers; the lookup target for modules that render elsewhere."""

    def __init__(self) -> None:
        self._buffers: Dict[str, TextBuffer] = {}

    def add(self, buffer: TextBuffer) -> TextBuffer:
        self._buffers.setdefault(buffer.name, buffer)
        return self._buffers[buffer.name]

    def get(self, name: str) -> Optional[TextBuffer]:
        return self._buffers.get(name)

    def get_or_create(self, name: str) -> TextBuffer:
        if name not in self._buffers:
            self._buffers[name] = TextBuffer(name=name)
        return self._buffers[name]

    def names(self) -> List[str]:
        return list(self._buffers)


__all__ = [
    "Anchor",
    "AnchorConsumedError",
    "ReadOnlyRegionError",
    "TextBuffer",
    "Workspace",
]
