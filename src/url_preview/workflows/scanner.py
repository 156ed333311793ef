"""URL recognition and anchor capture over a buffer region."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Set, Tuple

from .text_buffer import Anchor, TextBuffer

URL_REGEX = re.compile(r"\b(?:https?|ftp|file)://[^\s<>\"'`]+", re.IGNORECASE)
_TRAILING = ".,;:!?'\""

# (url, start, end) relative to the scanned text
UrlMatch = Tuple[str, int, int]
Recognizer = Callable[[str], List[UrlMatch]]


def _trim_trailing(url: str) -> str:
    """Drop sentence punctuation and unbalanced closing brackets."""

    while url:
        last = url[-1]
        if last in _TRAILING:
            url = url[:-1]
            continue
        if last in ")]}":
            opener = {")": "(", "]": "[", "}": "{"}[last]
            if url.count(opener) < url.count(last):
                url = url[:-1]
                continue
        break
    return url


def find_urls(text: str) -> List[UrlMatch]:
    """Default URL recognizer."""

    found: List[UrlMatch] = []
    for match in URL_REGEX.finditer(text or ""):
        url = _trim_trailing(match.group(0))
        if "://" not in url or url.endswith("://"):
            continue
        found.append((url, match.start(), match.start() + len(url)))
    return found


def scan_region(
    buffer: TextBuffer,
    start: int = 0,
    end: Optional[int] = None,
    recognizer: Recognizer = find_urls,
) -> List[Tuple[str, Anchor]]:
    """Return ``(url, anchor)`` pairs; each anchor sits right after its URL.

    URLs inside read-only spans (earlier previews) are ignored, and at most one
    anchor is captured per offset. Repeated occurrences of the same URL at
    different offsets are each reported.
    """

    stop = len(buffer) if end is None else min(end, len(buffer))
    region = buffer.text[start:stop]
    seen: Set[int] = set()
    pairs: List[Tuple[str, Anchor]] = []
    for url, rel_start, rel_end in recognizer(region):
        abs_start = start + rel_start
        abs_end = start + rel_end
        if buffer.is_read_only(abs_start) or abs_end in seen:
            continue
        seen.add(abs_end)
        pairs.append((url, buffer.capture_anchor(abs_end)))
    return pairs


__all__ = ["URL_REGEX", "find_urls", "scan_region"]
