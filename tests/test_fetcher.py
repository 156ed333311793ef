import asyncio
import socket
from pathlib import Path

from aiohttp import web

from url_preview.core.keys import K_TIMEOUT
from url_preview.workflows.cache import ContentCache
from url_preview.workflows.web_fetch import AiohttpRetriever, ErrorInfo, Fetcher


def test_cache_hit_is_synchronous_and_skips_network(tmp_path, exploding_retriever):
    cache = ContentCache(tmp_path)
    url = "http://example.com/a.png"
    cache.write(url, b"IMGDATA")
    fetcher = Fetcher(cache, exploding_retriever)
    received = []

    handle = fetcher.resolve(url, lambda status, *args: received.append((status, args)), ("m", "anchor"))

    assert handle is None
    (status, args), = received
    assert status.ok
    assert status.from_cache is True
    assert status.content == b"IMGDATA"
    assert args == ("m", "anchor")


def test_cache_miss_defers_to_retriever_without_writing(tmp_path, fake_retriever_cls):
    cache = ContentCache(tmp_path)
    retriever = fake_retriever_cls({"http://example.com/page": b"<html></html>"})
    fetcher = Fetcher(cache, retriever)
    received = []

    async def run():
        handle = fetcher.resolve(
            "http://example.com/page",
            lambda status, tag: received.append((status, tag)),
            ("tag",),
            options={"headers": {"Accept": "text/html"}},
        )
        assert handle is not None
        assert received == []
        assert fetcher.pending == 1
        await fetcher.drain()

    asyncio.run(run())

    (status, tag), = received
    assert tag == "tag"
    assert status.content == b"<html></html>"
    assert status.from_cache is False
    assert retriever.calls == [("http://example.com/page", {"headers": {"Accept": "text/html"}})]
    assert not cache.exists("http://example.com/page")
    assert fetcher.pending == 0


def test_fetch_error_is_delivered_as_value(tmp_path, fake_retriever_cls):
    fetcher = Fetcher(ContentCache(tmp_path), fake_retriever_cls())
    received = []

    async def run():
        fetcher.resolve("http://example.com/missing", received.append)
        await fetcher.drain()

    asyncio.run(run())

    (status,) = received
    assert status.content is None
    assert status.error == ErrorInfo("http", "404 Not Found")


def test_aiohttp_retriever_reads_file_urls(tmp_path: Path):
    target = tmp_path / "note.txt"
    target.write_bytes(b"local body")
    retriever = AiohttpRetriever()

    ok = asyncio.run(retriever.fetch(target.as_uri()))
    missing = asyncio.run(retriever.fetch((tmp_path / "nope.txt").as_uri()))

    assert ok.content == b"local body"
    assert ok.error is None
    assert missing.content is None
    assert missing.error.kind == "file"


def test_aiohttp_retriever_surfaces_completion_through_callback(tmp_path: Path):
    target = tmp_path / "doc.txt"
    target.write_bytes(b"hello")
    fetcher = Fetcher(ContentCache(tmp_path / "cache"), AiohttpRetriever())
    received = []

    async def run():
        fetcher.resolve(target.as_uri(), lambda status, tag: received.append((status.content, tag)), ("x",))
        await fetcher.drain()
        await fetcher.retriever.close()

    asyncio.run(run())

    assert received == [(b"hello", "x")]


def test_malformed_url_completes_with_error_value():
    retriever = AiohttpRetriever()
    received = []

    async def run():
        task = retriever.retrieve_async("http://[bad/x", lambda status, tag: received.append((status, tag)), ("t",), True, {})
        await task
        await retriever.close()

    asyncio.run(run())

    (status, tag), = received
    assert tag == "t"
    assert not status.ok
    assert status.error.kind == "url"


def test_unexpected_fetch_failure_still_reaches_callback(monkeypatch):
    retriever = AiohttpRetriever()
    received = []

    async def broken_fetch(url, options=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(retriever, "fetch", broken_fetch)

    async def run():
        await retriever.retrieve_async("http://example.com/x", received.append, (), True, {})

    asyncio.run(run())

    (status,) = received
    assert status.error == ErrorInfo("RuntimeError", "boom")


async def _ok(request):
    return web.Response(text="hello", content_type="text/html")


async def _missing(request):
    return web.Response(status=404)


async def _slow(request):
    await asyncio.sleep(0.5)
    return web.Response(text="late")


def _app():
    app = web.Application()
    app.router.add_get("/ok", _ok)
    app.router.add_get("/missing", _missing)
    app.router.add_get("/slow", _slow)
    return app


def _fetch_from_local_server(path, options=None):
    async def run():
        runner = web.AppRunner(_app())
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        host, port = runner.addresses[0][:2]
        retriever = AiohttpRetriever()
        try:
            return await retriever.fetch(f"http://{host}:{port}{path}", options)
        finally:
            await retriever.close()
            await runner.cleanup()

    return asyncio.run(run())


def test_aiohttp_retriever_returns_body_and_content_type():
    status = _fetch_from_local_server("/ok")

    assert status.ok
    assert status.content == b"hello"
    assert status.status_code == 200
    assert status.content_type == "text/html"


def test_aiohttp_retriever_maps_http_errors():
    status = _fetch_from_local_server("/missing")

    assert status.content is None
    assert status.status_code == 404
    assert status.error == ErrorInfo("http", "404 Not Found")


def test_aiohttp_retriever_maps_timeouts():
    status = _fetch_from_local_server("/slow", {K_TIMEOUT: 0.05})

    assert status.error.kind == "timeout"
    assert status.content is None


def test_aiohttp_retriever_maps_refused_connections():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    retriever = AiohttpRetriever()

    async def run():
        try:
            return await retriever.fetch(f"http://127.0.0.1:{port}/", {K_TIMEOUT: 2})
        finally:
            await retriever.close()

    status = asyncio.run(run())

    assert status.error.kind == "connection"
    assert status.content is None
