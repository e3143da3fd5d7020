"""CLI implementation for rangestream."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional

import typer

from . import create_loader
from .io.http_async import HttpxStreamLoader
from .core.model import ByteRange, ErrorInfo, LoaderErrorKind, LoaderNotSupportedError
from .core.util import summary_asdict
from .io.base import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT

app = typer.Typer(add_completion=False, help="Stream a byte range of a URL.")


class _Sink:
    """Collects loader callbacks for one fetch."""

    def __init__(self, out: Optional[BinaryIO], range_start: int):
        self.out = out
        self.range_start = range_start
        self.error: Optional[tuple[LoaderErrorKind, ErrorInfo]] = None

    def on_data_arrival(self, chunk: bytes, byte_start: int, received_length: int) -> None:
        if self.out is not None:
            self.out.seek(byte_start - self.range_start)
            self.out.write(chunk)

    def on_error(self, kind: LoaderErrorKind, info: ErrorInfo) -> None:
        self.error = (kind, info)


async def _fetch_async(url: str, byte_range: ByteRange, sink: _Sink, name: Optional[str], options: dict):
    loader = create_loader(sink.on_error, name=name, on_data_arrival=sink.on_data_arrival, **options)
    try:
        loader.open(url, byte_range)
        if isinstance(loader, HttpxStreamLoader):
            await loader.join()
        else:
            await asyncio.to_thread(loader.join)
        return summary_asdict(loader, error=sink.error)
    finally:
        loader.destroy()


def _fetch_sync(url: str, byte_range: ByteRange, sink: _Sink, name: Optional[str], options: dict):
    loader = create_loader(sink.on_error, name=name, on_data_arrival=sink.on_data_arrival, **options)
    try:
        loader.open(url, byte_range)
        loader.join()
        return summary_asdict(loader, error=sink.error)
    finally:
        loader.destroy()


@app.command()
def main(
    url: str = typer.Argument(..., help="URL to fetch"),
    range_from: int = typer.Option(0, "--from", min=0, help="First byte to fetch"),
    range_to: int = typer.Option(-1, "--to", min=-1, help="Last byte to fetch (inclusive), -1 for end of resource"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write the received bytes to PATH"),
    sync: bool = typer.Option(False, "--sync", help="Use the threaded (requests) loader"),
    loader: Optional[str] = typer.Option(None, "--loader", help="Force a loader backend by name"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", min=0.0, help="Connect/read timeout in seconds"),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, "--chunk-size", min=1, help="Largest chunk delivered at once"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log loader events to stderr"),
):
    """Fetch one byte range and print a JSON summary."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        byte_range = ByteRange(range_from, range_to)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)

    options = {"timeout": timeout, "chunk_size": chunk_size}
    out = open(output, "wb") if output else None
    try:
        sink = _Sink(out, byte_range.start)
        if sync:
            summary = _fetch_sync(url, byte_range, sink, loader, options)
        else:
            summary = asyncio.run(_fetch_async(url, byte_range, sink, loader, options))
    except LoaderNotSupportedError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)
    finally:
        if out is not None:
            out.close()

    json.dump(summary, sys.stdout, indent=2)
    sys.stdout.write("\n")

    # exit code
    if not summary["success"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
