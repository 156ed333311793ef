"""Content-addressed on-disk cache for fetched URL bodies.

One file per URL, named by the SHA-256 of the URL. Presence of the file is the
only hit signal; entries are never expired or rewritten.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def cache_key(url: str) -> str:
    """Return the deterministic cache filename for ``url``."""

    return hashlib.sha256((url or "").encode("utf-8")).hexdigest()


class ContentCache:
    """Read-through storage keyed by :func:`cache_key`."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir).expanduser()

    def path_for(self, url: str) -> Path:
        return self.cache_dir / cache_key(url)

    def exists(self, url: str) -> bool:
        return self.path_for(url).is_file()

    def read(self, url: str) -> Optional[bytes]:
        path = self.path_for(url)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write(self, url: str, payload: bytes) -> bool:
        """Persist ``payload`` for ``url`` unless an entry already exists.

        Returns True when this call created the entry. Exclusive-create mode
        makes concurrent writers for the same URL safe: the loser is skipped.
        """

        path = self.path_for(url)
        if path.exists():
            logger.debug("cache write skipped (exists) %s -> %s", url, path.name)
            return False
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("xb") as fh:
                fh.write(payload)
        except FileExistsError:
            logger.debug("cache write lost race %s -> %s", url, path.name)
            return False
        logger.info("cached %s (%d bytes) -> %s", url, len(payload), path.name)
        return True

    def clear(self) -> int:
        """Remove every cache entry; returns the number of files deleted."""

        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for entry in self.cache_dir.iterdir():
            if entry.is_file() and len(entry.name) == 64:
                entry.unlink()
                removed += 1
        return removed


__all__ = ["ContentCache", "cache_key"]
