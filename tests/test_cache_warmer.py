import pytest
import requests

from url_preview.tools.cache_warmer import parse_manifest_lines, warm_cache
from url_preview.workflows.cache import ContentCache


def test_parse_manifest_lines_allows_comments_and_blank():
    lines = ["# comment", "", "https://example.com/a", "   ", "https://example.com/b"]
    assert parse_manifest_lines(lines) == ["https://example.com/a", "https://example.com/b"]


def test_parse_manifest_lines_rejects_inline_metadata():
    with pytest.raises(ValueError):
        parse_manifest_lines(["https://example.com/a # nope"])


def test_warm_cache_writes_entries(tmp_path):
    cache = ContentCache(tmp_path)
    cache.write("https://example.com/old", b"old")

    def fake_fetch(url: str) -> bytes:
        if url.endswith("broken"):
            raise requests.ConnectionError("refused")
        return f"body:{url}".encode("utf-8")

    stats = warm_cache(
        ["https://example.com/new", "https://example.com/old", "https://example.com/broken"],
        tmp_path,
        fetch=fake_fetch,
    )

    assert [row["status"] for row in stats] == ["cached", "exists", "failed"]
    assert cache.read("https://example.com/new") == b"body:https://example.com/new"
    assert cache.read("https://example.com/old") == b"old"
    assert "refused" in stats[2]["error"]


def test_warm_cache_dry_run(tmp_path):
    def fake_fetch(url: str) -> bytes:
        raise AssertionError("dry run must not fetch")

    stats = warm_cache(["https://example.com/a"], tmp_path / "cache", fetch=fake_fetch, dry_run=True)

    assert stats[0]["status"] == "skipped"
    assert not (tmp_path / "cache").exists()
