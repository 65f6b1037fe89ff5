"""CLI for the WebP upload optimizer."""

from __future__ import annotations

import json
import logging
import mimetypes
import sys
from pathlib import Path

import click

from upload_shared.config import OptimizerConfig
from upload_shared.errors import ActivationError
from upload_shared.types import UploadDescriptor

from .hooks import HookRegistry
from .plugin import UPLOAD_HANDLED, UPLOAD_SIDELOADED, UploadOptimizer


def _activated_optimizer() -> tuple[HookRegistry, UploadOptimizer]:
    registry = HookRegistry()
    optimizer = UploadOptimizer(registry, OptimizerConfig.load())
    optimizer.boot()
    try:
        optimizer.activate()
    except ActivationError as e:
        raise click.ClickException(str(e)) from e
    return registry, optimizer


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """Convert uploaded images to WebP."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@cli.command()
def check() -> None:
    """Check that this machine can write WebP."""
    _, optimizer = _activated_optimizer()
    click.echo(f"WebP output available (editors: {', '.join(optimizer.config.editors)})")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "mime_type", default=None, help="Declared MIME type (guessed from the name if omitted)")
@click.option("--url", default=None, help="Public URL of the file")
@click.option("--sideload", is_flag=True, help="Treat the file as a sideloaded upload")
def convert(file: Path, mime_type: str | None, url: str | None, sideload: bool) -> None:
    """Run FILE through the upload filter and print the resulting upload."""
    registry, _ = _activated_optimizer()

    declared = mime_type or mimetypes.guess_type(file.name)[0] or ""
    upload = UploadDescriptor(path=str(file), type=declared, url=url)

    hook = UPLOAD_SIDELOADED if sideload else UPLOAD_HANDLED
    result = registry.apply_filters(hook, upload)
    click.echo(json.dumps(result.to_dict(), indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
