"""Per-URL module dispatch and the retrieve -> chain -> display pipeline."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.keys import K_CACHE_DIR, K_CONTENT_TYPE, K_FROM_CACHE, K_PREFIX
from .callbacks import format_error
from .chain import run_chain
from .module import PreviewModule
from .preview_config import PreviewConfig
from .registry import ModuleRegistry
from .render import display, display_at_next_line
from .text_buffer import Anchor, Workspace
from .web_fetch import ErrorInfo, Fetcher, FetchStatus

logger = logging.getLogger(__name__)


class Dispatcher:
    """Matches URLs against enabled modules and runs each match's pipeline.

    Every match works on a private copy of the module, so concurrent
    dispatches of the same module never see each other's per-fetch state.
    Failures inside one module are logged and contained.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        fetcher: Fetcher,
        config: Optional[PreviewConfig] = None,
        workspace: Optional[Workspace] = None,
    ) -> None:
        self.registry = registry
        self.fetcher = fetcher
        self.config = config or PreviewConfig()
        self.workspace = workspace or Workspace()

    def dispatch_all(self, url: str, anchor: Anchor) -> int:
        """Dispatch ``url`` to every enabled module; returns the match count."""

        matched = 0
        for module in self.registry.enabled_list():
            if self.dispatch(module, url, anchor):
                matched += 1
        return matched

    def dispatch(self, module: PreviewModule, url: str, anchor: Anchor) -> bool:
        if not module.matches(url):
            return False
        target: Optional[Anchor] = None
        try:
            job = module.copy()
            job.extra.setdefault(K_PREFIX, self.config.message_prefix)
            job.extra.setdefault(K_CACHE_DIR, str(self.fetcher.cache.cache_dir))
            place = job.display_at or display_at_next_line
            target = place(anchor.buffer, anchor)
            if target is anchor:
                target = anchor.buffer.capture_anchor(anchor.position)
            retrieve = job.retrieve or self.retrieve
            retrieve(job, url, target)
        except Exception:
            logger.exception("module %s failed while dispatching %s", module.name, url)
            if target is not None:
                target.release()
        return True

    def retrieve(self, module: PreviewModule, url: str, anchor: Anchor) -> None:
        """Default retrieval: rewrite, add request args, then resolve cache-first."""

        target_url = module.retrieve_url(url) if module.retrieve_url else url
        if not target_url:
            logger.debug("module %s declined %s", module.name, url)
            anchor.release()
            return
        module.url = target_url
        if module.retrieve_args:
            module.retrieve_args(module)
        self.fetcher.resolve(
            module.url,
            self._on_fetched,
            (module, anchor),
            silent=True,
            options=module.request_options,
        )

    def _on_fetched(self, status: FetchStatus, module: PreviewModule, anchor: Anchor) -> None:
        try:
            if not status.ok:
                handler = module.retrieve_error or self.retrieve_error
                handler(status.error, module, anchor)
            else:
                module.content = status.content
                module.extra[K_FROM_CACHE] = status.from_cache
                module.extra[K_CONTENT_TYPE] = status.content_type
                handler = module.retrieve_success or self.retrieve_success
                handler(None, module, anchor)
        except Exception:
            logger.exception("module %s failed to render %s", module.name, module.url)
            anchor.release()

    def retrieve_error(self, error: ErrorInfo, module: PreviewModule, anchor: Anchor) -> None:
        message = run_chain(module.on_error or format_error, module, error)
        self.render(module, message, anchor)

    def retrieve_success(self, _error: None, module: PreviewModule, anchor: Anchor) -> None:
        message = run_chain(module.on_success, module)
        self.render(module, message, anchor)

    def render(self, module: PreviewModule, message: Any, anchor: Anchor) -> None:
        if message is None:
            anchor.release()
            return
        if module.display is not None:
            module.display(module, message, anchor)
            return
        display(
            module,
            message,
            anchor,
            workspace=self.workspace,
            hooks=self.config.post_render_hooks,
        )


__all__ = ["Dispatcher"]
