import asyncio
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest

from url_preview.workflows.web_fetch import ErrorInfo, FetchStatus

Response = Union[bytes, ErrorInfo]


class FakeRetriever:
    """Network stand-in: completes on the event loop after an optional delay."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None, delays: Optional[Dict[str, float]] = None):
        self.responses = responses or {}
        self.delays = delays or {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.silent_flags: List[bool] = []

    def retrieve_async(self, url, callback, args, silent, options):
        self.calls.append((url, dict(options)))
        self.silent_flags.append(silent)
        loop = asyncio.get_running_loop()
        return loop.create_task(self._complete(url, callback, args))

    async def _complete(self, url, callback, args):
        await asyncio.sleep(self.delays.get(url, 0))
        response = self.responses.get(url, ErrorInfo("http", "404 Not Found"))
        if isinstance(response, ErrorInfo):
            status = FetchStatus(url=url, error=response, status_code=404)
        else:
            status = FetchStatus(url=url, content=response, status_code=200)
        callback(status, *args)


class ExplodingRetriever:
    def retrieve_async(self, url, callback, args, silent, options):
        raise AssertionError(f"network must not be used for {url}")


@pytest.fixture
def fake_retriever_cls():
    return FakeRetriever


@pytest.fixture
def exploding_retriever():
    return ExplodingRetriever()
