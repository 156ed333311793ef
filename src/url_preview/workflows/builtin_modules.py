"""Stock preview modules shipped with url-preview."""

from __future__ import annotations

import os
from typing import Dict, List, Optional
from urllib.parse import urlparse, urlunparse

from ..core.keys import K_HEADERS
from .callbacks import extract_title, first_line, format_message, render_image, save_cache, save_cache_binary
from .module import PreviewModule

IMAGE_PATTERN = r"(?i)\.(?:png|jpe?g|gif|webp|svg)$"
TITLE_PATTERN = r"(?i)^https?://(?!\S*\.(?:png|jpe?g|gif|webp|svg)$)"
GITHUB_PATTERN = r"^https?://(?:www\.)?(?:github\.com/[^/]+/[^/]+/blob/|raw\.githubusercontent\.com/)"


def _auth_headers() -> Dict[str, str]:
    headers: Dict[str, str] = {}
    token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
    if token:
        headers["Authorization"] = f"token {token}"
    return headers


def github_raw_url(url: str) -> Optional[str]:
    """Map a GitHub blob URL to its raw.githubusercontent.com form.

    Raw URLs pass through; anything else is declined (None).
    """

    parsed = urlparse(url)
    host = parsed.netloc.lower()
    path = parsed.path.strip("/")
    if host == "raw.githubusercontent.com":
        return url if len(path.split("/", 3)) == 4 else None
    if host not in {"github.com", "www.github.com"}:
        return None
    parts = path.split("/")
    if len(parts) < 5 or parts[2] != "blob":
        return None
    owner, repo, _, ref = parts[:4]
    remainder = "/".join(parts[4:])
    return urlunparse(("https", "raw.githubusercontent.com", f"/{owner}/{repo}/{ref}/{remainder}", "", "", ""))


def github_request_args(module: PreviewModule) -> None:
    headers = dict(module.request_options.get(K_HEADERS) or {})
    headers.setdefault("Accept", "text/plain")
    headers.update(_auth_headers())
    module.request_options[K_HEADERS] = headers


def image_module() -> PreviewModule:
    return PreviewModule(
        name="image",
        pattern=IMAGE_PATTERN,
        on_success=[save_cache_binary, render_image],
        enabled=False,
    )


def github_module() -> PreviewModule:
    return PreviewModule(
        name="github",
        pattern=GITHUB_PATTERN,
        retrieve_url=github_raw_url,
        retrieve_args=github_request_args,
        on_success=[save_cache, first_line, format_message],
        enabled=False,
    )


def title_module() -> PreviewModule:
    return PreviewModule(
        name="title",
        pattern=TITLE_PATTERN,
        on_success=[save_cache, extract_title, format_message],
    )


def default_modules() -> List[PreviewModule]:
    """Fresh instances of every stock module, in registration order."""

    return [image_module(), github_module(), title_module()]


__all__ = [
    "default_modules",
    "github_module",
    "github_raw_url",
    "image_module",
    "title_module",
]
