"""url-preview defaults (cache location, message prefix, HTTP headers).

Centralizes static defaults so the pipeline has no embedded magic strings.
Callers can construct their own PreviewConfig to override any of them; the
environment (and a local ``.env``) is consulted only by :func:`load_config`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "url-preview"
DEFAULT_MESSAGE_PREFIX = "url-preview"
DEFAULT_TIMEOUT = 20.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

ENV_CACHE_DIR = "URL_PREVIEW_CACHE_DIR"
ENV_PREFIX = "URL_PREVIEW_PREFIX"
ENV_TIMEOUT = "URL_PREVIEW_TIMEOUT"
ENV_USER_AGENT = "URL_PREVIEW_USER_AGENT"

# Hooks receive the target TextBuffer after a preview was inserted into it.
PostRenderHook = Callable[..., None]


@dataclass
class PreviewConfig:
    """Configuration consumed read-only by the preview pipeline."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    message_prefix: str = DEFAULT_MESSAGE_PREFIX
    post_render_hooks: List[PostRenderHook] = field(default_factory=list)
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def load_config(
    cache_dir: Optional[Path] = None,
    message_prefix: Optional[str] = None,
    *,
    dotenv: bool = True,
) -> PreviewConfig:
    """Build a PreviewConfig from explicit arguments, then env, then defaults."""

    if dotenv:
        load_dotenv(override=False)
    env_cache = os.getenv(ENV_CACHE_DIR)
    resolved_cache = cache_dir or (Path(env_cache).expanduser() if env_cache else DEFAULT_CACHE_DIR)
    prefix = message_prefix or os.getenv(ENV_PREFIX) or DEFAULT_MESSAGE_PREFIX
    return PreviewConfig(
        cache_dir=resolved_cache,
        message_prefix=prefix,
        timeout=_env_float(ENV_TIMEOUT, DEFAULT_TIMEOUT),
        user_agent=os.getenv(ENV_USER_AGENT) or DEFAULT_USER_AGENT,
    )


__all__ = [
    "DEFAULT_CACHE_DIR",
    "DEFAULT_MESSAGE_PREFIX",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "PreviewConfig",
    "load_config",
]
