"""Cache warmer CLI: prefetch URLs into the url-preview content cache."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import requests

from ..workflows.cache import ContentCache
from ..workflows.preview_config import DEFAULT_USER_AGENT, load_config

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], bytes]


def _default_fetch(url: str, *, timeout: int = 30) -> bytes:
    resp = requests.get(url, timeout=timeout, headers={"User-Agent": DEFAULT_USER_AGENT})
    resp.raise_for_status()
    return resp.content


def parse_manifest_lines(lines: Iterable[str]) -> List[str]:
    urls: List[str] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if any(ch.isspace() for ch in line):
            raise ValueError(f"Invalid manifest line (one URL per line): {raw_line.rstrip()}")
        urls.append(line)
    return urls


def warm_cache(
    urls: Iterable[str],
    cache_dir: Path,
    *,
    fetch: Optional[FetchFunc] = None,
    dry_run: bool = False,
    timeout: int = 30,
) -> List[Dict[str, str]]:
    fetcher = fetch or (lambda url: _default_fetch(url, timeout=timeout))
    cache = ContentCache(cache_dir)
    results: List[Dict[str, str]] = []

    for url in urls:
        target = cache.path_for(url)
        if cache.exists(url):
            results.append({"url": url, "path": str(target), "status": "exists"})
            continue
        if dry_run:
            logger.info("dry-run: would cache %s -> %s", url, target)
            results.append({"url": url, "path": str(target), "status": "skipped"})
            continue
        try:
            payload = fetcher(url)
        except requests.RequestException as exc:
            logger.warning("failed %s: %s", url, exc)
            results.append({"url": url, "path": str(target), "status": "failed", "error": str(exc)})
            continue
        written = cache.write(url, payload)
        results.append({
            "url": url,
            "path": str(target),
            "status": "cached" if written else "exists",
            "bytes": str(len(payload)),
        })
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Prefetch URLs into the url-preview content cache")
    parser.add_argument("--manifest", required=True, type=Path, help="Text file with one URL per line ('-' for stdin)")
    parser.add_argument("--cache-dir", type=Path, default=None, help="Cache directory (default: URL_PREVIEW_CACHE_DIR or ~/.cache/url-preview)")
    parser.add_argument("--dry-run", action="store_true", help="Print actions without downloading")
    parser.add_argument("--timeout", type=int, default=30, help="HTTP timeout per URL (seconds)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    if str(args.manifest) == "-":
        lines = sys.stdin.read().splitlines()
    else:
        lines = args.manifest.read_text(encoding="utf-8").splitlines()
    config = load_config(cache_dir=args.cache_dir)
    warm_cache(parse_manifest_lines(lines), config.cache_dir, dry_run=args.dry_run, timeout=args.timeout)


if __name__ == "__main__":
    main()
