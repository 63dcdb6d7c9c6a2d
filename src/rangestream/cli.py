"""CLI implementation for rangestream."""

import base64
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import open_stream
from .core.config import StreamSettings

app = typer.Typer(add_completion=False, help="Read byte ranges from large remote files.")


def _read_slice(source: str, offset: int, length: Optional[int], settings: StreamSettings,
                known_length: Optional[int]) -> dict:
    """Open a stream on ``source`` and read ``length`` bytes at ``offset``.

    Offsets past the end are clamped, and the clamped value is reported.
    """
    with open_stream(source, length=known_length, settings=settings) as stream:
        offset = stream.seek(offset)
        remaining = stream.length - stream.tell()
        size = remaining if length is None else min(length, remaining)
        data = stream.read_fully(size)
        stats = stream.stats
        return {
            "success": True,
            "length": stream.length,
            "offset": offset,
            "read": len(data),
            "data": base64.b64encode(data).decode("ascii"),
            "downloads": stats.downloads,
            "cache_hits": stats.cache_hits,
            "bytes_downloaded": stats.bytes_downloaded,
        }


@app.command()
def main(
    source: str = typer.Argument(..., help="URL or local path to read from"),
    offset: int = typer.Option(0, "--offset", min=0, help="Byte offset to start reading at"),
    length: Optional[int] = typer.Option(None, "--length", min=0, help="Bytes to read (default: to the end)"),
    window_size: Optional[int] = typer.Option(None, "--window-size", min=1, help="Window (chunk) size in bytes"),
    max_cache_bytes: Optional[int] = typer.Option(None, "--max-cache-bytes", min=0, help="Window cache size in bytes, 0 disables"),
    known_length: Optional[int] = typer.Option(None, "--known-length", min=0, help="Resource length; skips the HEAD probe"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log fetches and cache hits to stderr"),
):
    """Read a slice of a URL or local file through a windowed seekable stream."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(levelname)s %(name)s: %(message)s")

    overrides = {}
    if window_size is not None:
        overrides["window_size"] = window_size
    if max_cache_bytes is not None:
        overrides["max_cache_bytes"] = max_cache_bytes

    try:
        settings = StreamSettings(**overrides)
        obj = _read_slice(source, offset, length, settings, known_length)
    except (RuntimeError, ValueError, OSError, EOFError) as e:
        obj = {"success": False, "error": str(e)}

    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        json.dump(obj, sink, indent=2)
        sink.write("\n")
    finally:
        if output:
            sink.close()

    if not obj["success"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
