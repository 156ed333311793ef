from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, NamedTuple, Optional, Protocol, Sequence, Set
from urllib.parse import unquote, urlparse

import aiohttp

from ..core.keys import K_HEADERS, K_TIMEOUT
from .cache import ContentCache
from .preview_config import PreviewConfig

logger = logging.getLogger(__name__)


class ErrorInfo(NamedTuple):
    """A failed fetch, as (kind, message)."""

    kind: str
    message: str


@dataclass
class FetchStatus:
    """Outcome of a single resolve: either ``content`` or ``error`` is set."""

    url: str
    content: Optional[bytes] = None
    error: Optional[ErrorInfo] = None
    from_cache: bool = False
    status_code: Optional[int] = None
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


FetchCallback = Callable[..., None]


class Retriever(Protocol):
    """Host network primitive: fetch ``url`` and eventually call ``callback(status, *args)``."""

    def retrieve_async(
        self,
        url: str,
        callback: FetchCallback,
        args: Sequence[Any],
        silent: bool,
        options: Dict[str, Any],
    ) -> Any:
        ...


class AiohttpRetriever:
    """Non-blocking retriever backed by a shared aiohttp session."""

    def __init__(self, config: Optional[PreviewConfig] = None) -> None:
        self.config = config or PreviewConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    def retrieve_async(
        self,
        url: str,
        callback: FetchCallback,
        args: Sequence[Any],
        silent: bool,
        options: Dict[str, Any],
    ) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._run(url, callback, tuple(args), silent, options))

    async def _run(
        self,
        url: str,
        callback: FetchCallback,
        args: Sequence[Any],
        silent: bool,
        options: Dict[str, Any],
    ) -> None:
        try:
            status = await self.fetch(url, options)
        except Exception as exc:
            logger.exception("unexpected failure fetching %s", url)
            status = FetchStatus(url=url, error=ErrorInfo(exc.__class__.__name__, str(exc) or exc.__class__.__name__))
        if not status.ok:
            log = logger.debug if silent else logger.warning
            log("fetch failed %s (%s): %s", url, status.error.kind, status.error.message)
        try:
            callback(status, *args)
        except Exception:
            logger.exception("completion callback failed for %s", url)

    async def fetch(self, url: str, options: Optional[Dict[str, Any]] = None) -> FetchStatus:
        """Fetch ``url`` and fold every failure into an :class:`ErrorInfo`."""

        options = options or {}
        try:
            parsed = urlparse(url)
        except ValueError as exc:
            return FetchStatus(url=url, error=ErrorInfo("url", str(exc)))
        if parsed.scheme == "file":
            return self._fetch_from_file(url, parsed)

        total = float(options.get(K_TIMEOUT) or self.config.timeout)
        try:
            session = await self._ensure_session()
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=total),
                headers=options.get(K_HEADERS) or None,
            ) as resp:
                code = resp.status
                content_type = resp.headers.get("Content-Type", "").split(";")[0] or None
                raw_bytes = await resp.read()
                if code >= 400:
                    message = f"{code} {resp.reason or ''}".strip()
                    return FetchStatus(
                        url=url,
                        error=ErrorInfo("http", message),
                        status_code=code,
                        content_type=content_type,
                    )
                return FetchStatus(
                    url=url,
                    content=raw_bytes,
                    status_code=code,
                    content_type=content_type,
                )
        except asyncio.TimeoutError:
            return FetchStatus(url=url, error=ErrorInfo("timeout", f"no response after {total:g}s"))
        except (aiohttp.InvalidURL, ValueError) as exc:
            return FetchStatus(url=url, error=ErrorInfo("url", str(exc) or url))
        except aiohttp.ClientError as exc:
            return FetchStatus(url=url, error=ErrorInfo("connection", str(exc) or exc.__class__.__name__))

    def _fetch_from_file(self, url: str, parsed: Any) -> FetchStatus:
        path = Path(unquote(parsed.path or ""))
        try:
            payload = path.read_bytes()
        except OSError as exc:
            return FetchStatus(url=url, error=ErrorInfo("file", exc.strerror or str(exc)))
        return FetchStatus(url=url, content=payload, status_code=200)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {
                "User-Agent": self.config.user_agent,
                "Accept-Language": self.config.accept_language,
                "Accept-Encoding": "gzip, deflate",
            }
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class Fetcher:
    """Cache-first resolver: reads the content cache, else defers to the retriever.

    The fetcher never writes the cache; persisting a body is left to the
    module's success chain.
    """

    def __init__(self, cache: ContentCache, retriever: Retriever) -> None:
        self.cache = cache
        self.retriever = retriever
        self._pending: Set[asyncio.Future] = set()

    def resolve(
        self,
        url: str,
        callback: FetchCallback,
        args: Sequence[Any] = (),
        silent: bool = True,
        options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        payload = self.cache.read(url)
        if payload is not None:
            logger.debug("cache hit %s", url)
            callback(FetchStatus(url=url, content=payload, from_cache=True), *args)
            return None
        logger.debug("cache miss %s", url)
        handle = self.retriever.retrieve_async(url, callback, tuple(args), silent, dict(options or {}))
        if isinstance(handle, asyncio.Future):
            self._pending.add(handle)
            handle.add_done_callback(self._pending.discard)
        return handle

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every outstanding network fetch has completed."""

        while self.pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


__all__ = [
    "AiohttpRetriever",
    "ErrorInfo",
    "FetchStatus",
    "Fetcher",
    "Retriever",
]
