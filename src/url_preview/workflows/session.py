"""Wiring of config, registry, cache, fetcher and dispatcher."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .cache import ContentCache
from .dispatch import Dispatcher
from .module import PreviewModule
from .preview_config import PreviewConfig
from .registry import ModuleRegistry
from .scanner import Recognizer, find_urls, scan_region
from .text_buffer import TextBuffer, Workspace
from .web_fetch import AiohttpRetriever, Fetcher, Retriever

logger = logging.getLogger(__name__)


class PreviewSession:
    """One preview pipeline: own registry, cache, fetcher and workspace.

    Network fetches are scheduled on the running event loop, so
    :meth:`preview_region` must be called from inside one when anything can
    miss the cache; :meth:`drain` waits for the outstanding fetches.
    """

    def __init__(
        self,
        config: Optional[PreviewConfig] = None,
        *,
        registry: Optional[ModuleRegistry] = None,
        retriever: Optional[Retriever] = None,
        workspace: Optional[Workspace] = None,
        recognizer: Recognizer = find_urls,
        modules: Iterable[PreviewModule] = (),
    ) -> None:
        self.config = config or PreviewConfig()
        self.registry = registry if registry is not None else ModuleRegistry()
        self.cache = ContentCache(self.config.cache_dir)
        self.retriever = retriever or AiohttpRetriever(self.config)
        self.fetcher = Fetcher(self.cache, self.retriever)
        self.workspace = workspace or Workspace()
        self.recognizer = recognizer
        self.dispatcher = Dispatcher(self.registry, self.fetcher, self.config, self.workspace)
        for module in modules:
            self.registry.define(module)

    def define(self, module: PreviewModule) -> bool:
        return self.registry.define(module)

    def preview_region(self, buffer: TextBuffer, start: int = 0, end: Optional[int] = None) -> int:
        """Scan ``buffer[start:end]`` and dispatch every URL; returns the dispatch count."""

        self.workspace.add(buffer)
        dispatched = 0
        for url, anchor in scan_region(buffer, start, end, self.recognizer):
            dispatched += self.dispatcher.dispatch_all(url, anchor)
            anchor.release()
        logger.debug("dispatched %d module run(s) in %s", dispatched, buffer.name)
        return dispatched

    async def drain(self) -> None:
        await self.fetcher.drain()

    async def preview_text(self, text: str, name: str = "*preview*") -> str:
        """Preview every URL in ``text`` and return the rendered result."""

        buffer = TextBuffer(text, name=name)
        self.preview_region(buffer)
        await self.drain()
        return buffer.text

    async def close(self) -> None:
        closer = getattr(self.retriever, "close", None)
        if closer is not None:
            await closer()


__all__ = ["PreviewSession"]
