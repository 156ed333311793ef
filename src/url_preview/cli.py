from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .core.keys import K_MODULE, K_STATUS, K_TEXT, K_URL
from .workflows.builtin_modules import default_modules
from .workflows.cache import ContentCache
from .workflows.preview_config import PreviewConfig, load_config
from .workflows.session import PreviewSession
from .workflows.text_buffer import TextBuffer

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Inline previews for URLs found in text.")


def _read_input(path_or_dash: str) -> str:
    if path_or_dash == "-":
        return sys.stdin.read()
    path = Path(path_or_dash)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}")
    return path.read_text(encoding="utf-8")


def _build_session(config: PreviewConfig, modules: List[str]) -> PreviewSession:
    session = PreviewSession(config, modules=default_modules())
    if modules:
        unknown = sorted(set(modules) - set(session.registry.names()))
        if unknown:
            raise typer.BadParameter(f"Unknown module(s): {', '.join(unknown)}")
        for name in session.registry.names():
            if name in modules:
                session.registry.enable(name)
            else:
                session.registry.disable(name)
    return session


async def _run_preview(session: PreviewSession, text: str) -> Tuple[str, int]:
    buffer = TextBuffer(text, name="*input*")
    try:
        dispatched = session.preview_region(buffer)
        await session.drain()
    finally:
        await session.close()
    return buffer.text, dispatched


@app.command("preview")
def preview(
    path_or_dash: str = typer.Argument(..., help="Text file to annotate, or '-' for stdin."),
    module: List[str] = typer.Option([], "--module", "-m", help="Enable only these modules (repeatable)."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Content cache directory."),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Message prefix for inline annotations."),
    json_out: bool = typer.Option(False, "--json", help="Print a JSON summary instead of the annotated text."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log fetch failures and cache activity."),
) -> None:
    """Annotate every URL in the input with its preview."""

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    try:
        text = _read_input(path_or_dash)
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    config = load_config(cache_dir=cache_dir, message_prefix=prefix)
    session = _build_session(config, module)
    try:
        rendered, dispatched = asyncio.run(_run_preview(session, text))
    except Exception as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        summary = {K_TEXT: rendered, "dispatched": dispatched, "cache_dir": str(config.cache_dir)}
        sys.stdout.write(json.dumps(summary, ensure_ascii=False) + "\n")
        return
    sys.stdout.write(rendered)


@app.command("modules")
def list_modules(json_out: bool = typer.Option(False, "--json", help="Print JSON.")) -> None:
    """List the stock preview modules."""

    rows = [
        {K_MODULE: m.name, "enabled": m.enabled, "pattern": m.pattern}
        for m in default_modules()
    ]
    if json_out:
        sys.stdout.write(json.dumps(rows) + "\n")
        return
    for row in rows:
        flag = "on " if row["enabled"] else "off"
        typer.echo(f"{flag} {row[K_MODULE]:<8} {row['pattern']}")


@app.command("cache-key")
def cache_key_cmd(
    url: str = typer.Argument(..., help="URL to locate in the cache."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Content cache directory."),
) -> None:
    """Print the cache file path for a URL and whether it is cached."""

    cache = ContentCache(load_config(cache_dir=cache_dir).cache_dir)
    status = "cached" if cache.exists(url) else "missing"
    typer.echo(json.dumps({K_URL: url, "path": str(cache.path_for(url)), K_STATUS: status}))


@app.command("cache-clear")
def cache_clear(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Content cache directory."),
) -> None:
    """Delete every cached body."""

    cache = ContentCache(load_config(cache_dir=cache_dir).cache_dir)
    removed = cache.clear()
    typer.echo(f"removed {removed} cache entr{'y' if removed == 1 else 'ies'} from {cache.cache_dir}")


if __name__ == "__main__":
    app()
