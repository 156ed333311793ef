"""High-level exports for the url-preview pipeline."""

from .builtin_modules import default_modules
from .cache import ContentCache, cache_key
from .chain import normalize_handlers, run_chain
from .dispatch import Dispatcher
from .module import PreviewModule
from .preview_config import PreviewConfig, load_config
from .registry import ModuleRegistry
from .scanner import find_urls, scan_region
from .session import PreviewSession
from .text_buffer import Anchor, AnchorConsumedError, ReadOnlyRegionError, TextBuffer, Workspace
from .web_fetch import AiohttpRetriever, ErrorInfo, Fetcher, FetchStatus

__all__ = [
    "AiohttpRetriever",
    "Anchor",
    "AnchorConsumedError",
    "ContentCache",
    "Dispatcher",
    "ErrorInfo",
    "FetchStatus",
    "Fetcher",
    "ModuleRegistry",
    "PreviewConfig",
    "PreviewModule",
    "PreviewSession",
    "ReadOnlyRegionError",
    "TextBuffer",
    "Workspace",
    "cache_key",
    "default_modules",
    "find_urls",
    "load_config",
    "normalize_handlers",
    "run_chain",
    "scan_region",
]
