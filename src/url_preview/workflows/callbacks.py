"""Stock chain members for ``on_success`` / ``on_error``.

Handlers follow the chain calling convention: ``handler(module)`` when they
run first with no seed, ``handler(module, previous)`` otherwise.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Optional

from bs4 import BeautifulSoup  # type: ignore

from ..core.keys import K_CACHE_DIR, K_PREFIX
from .cache import ContentCache
from .module import PreviewModule
from .preview_config import DEFAULT_CACHE_DIR, DEFAULT_MESSAGE_PREFIX
from .render import Renderer
from .web_fetch import ErrorInfo

SNIPPET_MAX_CHARS = 120


def _prefix(module: PreviewModule) -> str:
    return str(module.extra.get(K_PREFIX) or DEFAULT_MESSAGE_PREFIX)


def _cache_for(module: PreviewModule) -> ContentCache:
    return ContentCache(Path(module.extra.get(K_CACHE_DIR) or DEFAULT_CACHE_DIR))


def _decode(payload: Optional[bytes]) -> str:
    return (payload or b"").decode("utf-8", "replace")


def format_message(module: PreviewModule, msg: Any = None) -> Optional[str]:
    if msg is None:
        return None
    return f"[{_prefix(module)}] {module.name} - {msg}\n"


def format_error(module: PreviewModule, error: ErrorInfo) -> str:
    kind, message = error
    return f"[{_prefix(module)}] {module.name} ({kind}): {message}\n"


def save_cache(module: PreviewModule, _previous: Any = None) -> None:
    """Persist the fetched body with ``\\n`` line endings; bytes are not re-encoded."""

    if module.content is None or not module.url:
        return None
    payload = bytes(module.content).replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    _cache_for(module).write(module.url, payload)
    return None


def save_cache_binary(module: PreviewModule, _previous: Any = None) -> None:
    """Persist the fetched body byte for byte."""

    if module.content is None or not module.url:
        return None
    _cache_for(module).write(module.url, bytes(module.content))
    return None


def use_content(module: PreviewModule, _previous: Any = None) -> str:
    return _decode(module.content)


def extract_title(module: PreviewModule, _previous: Any = None) -> Optional[str]:
    """Return the page ``<title>`` (or ``og:title``), whitespace-collapsed."""

    html = _decode(module.content)
    if not html.strip():
        return None
    soup = BeautifulSoup(html, "lxml")
    title = ""
    if soup.title is not None:
        title = soup.title.get_text(" ", strip=True)
    if not title:
        meta = soup.find("meta", attrs={"property": "og:title"})
        if meta is not None:
            title = str(meta.get("content") or "")
    title = " ".join(title.split())
    return title or None


def first_line(module: PreviewModule, _previous: Any = None) -> Optional[str]:
    """First non-blank line of the body, truncated for inline display."""

    for line in _decode(module.content).splitlines():
        line = line.strip()
        if not line:
            continue
        if len(line) > SNIPPET_MAX_CHARS:
            line = line[: SNIPPET_MAX_CHARS - 3].rstrip() + "..."
        return line
    return None


def _sniff_image(payload: bytes, url: Optional[str]) -> str:
    if payload.startswith(b"\x89PNG"):
        return "image/png"
    if payload.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if payload.startswith(b"GIF8"):
        return "image/gif"
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    if b"<svg" in payload[:512]:
        return "image/svg+xml"
    guessed, _ = mimetypes.guess_type(url or "")
    return guessed or "application/octet-stream"


def render_image(module: PreviewModule, _previous: Any = None) -> Optional[Renderer]:
    """Return a renderer that embeds a placeholder for the fetched image."""

    if not module.content:
        return None
    kind = _sniff_image(module.content, module.url)
    size = len(module.content)
    location = _cache_for(module).path_for(module.url or "")
    label = f"[{_prefix(module)}] {module.name} - {kind}, {size} bytes <{location}>\n"

    def _render(buffer, position: int) -> None:
        buffer.insert(position, label, force=True)

    return _render


__all__ = [
    "extract_title",
    "first_line",
    "format_error",
    "format_message",
    "render_image",
    "save_cache",
    "save_cache_binary",
    "use_content",
]
