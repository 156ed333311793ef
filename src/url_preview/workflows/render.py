"""Placement and insertion of rendered previews."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Tuple

from .module import PreviewModule
from .text_buffer import Anchor, TextBuffer, Workspace

logger = logging.getLogger(__name__)

# renderer(buffer, position) inserts its own text with buffer.insert(..., force=True)
Renderer = Callable[[TextBuffer, int], None]


def display_at_next_line(buffer: TextBuffer, anchor: Anchor) -> Anchor:
    """Anchor at the start of the line after ``anchor`` (or the buffer end)."""

    return buffer.capture_anchor(buffer.next_line_start(anchor.position))


def display_after_url(buffer: TextBuffer, anchor: Anchor) -> Anchor:
    """Anchor immediately after the URL itself."""

    return buffer.capture_anchor(anchor.position)


def display(
    module: PreviewModule,
    message: Any,
    anchor: Anchor,
    *,
    workspace: Optional[Workspace] = None,
    hooks: Iterable[Callable[[TextBuffer], None]] = (),
) -> Optional[Tuple[TextBuffer, int, int]]:
    """Insert ``message`` (a string or a renderer) and mark it read-only.

    With ``module.buffer`` set the preview goes to the end of that named
    buffer; otherwise it goes to the anchor. The anchor is consumed either way.
    Returns ``(buffer, start, end)`` of the inserted span, or None.
    """

    if message is None:
        anchor.release()
        return None
    if module.buffer:
        if workspace is None:
            anchor.release()
            raise ValueError(f"module {module.name} targets buffer {module.buffer!r} but no workspace is set")
        target = workspace.get_or_create(module.buffer)
        anchor.release()
        position = len(target)
    else:
        target = anchor.buffer
        position = anchor.consume()

    start = position
    before = len(target)
    if position == len(target) and target.text and not target.text.endswith("\n"):
        target.insert(position, "\n", force=True)
        position += 1
    if callable(message):
        message(target, position)
    else:
        target.insert(position, str(message), force=True)
    end = start + (len(target) - before)
    target.mark_read_only(start, end)
    logger.debug("rendered %s into %s at %d..%d", module.name, target.name, start, end)
    target.run_hooks(hooks)
    return target, start, end


__all__ = ["Renderer", "display", "display_after_url", "display_at_next_line"]
