"""Command-line entry points for mirrorkit."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from mirrorkit.config import ConfigError, MirrorConfig, dump_example_config, load_config
from mirrorkit.errors import MirrorError, ResourceNotFoundError, TransportError
from mirrorkit.io.fetcher import CachedFetcher
from mirrorkit.io.replace import replace_files
from mirrorkit.util.hashing import sha256sum
from mirrorkit.util.logging import configure_logging
from mirrorkit.util.retry import retry

app = typer.Typer(add_completion=False, help="Mirror remote files onto the local filesystem")


def _load(config: Optional[Path]) -> MirrorConfig:
    try:
        return load_config(config)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL, or a reference relative to http.base_url"),
    dest: Optional[Path] = typer.Option(None, "--dest", help="Exact destination path (disables the server filename)"),
    directory: Optional[Path] = typer.Option(None, "--dir", help="Directory for the URL-derived filename"),
    force: bool = typer.Option(False, "--force", help="Download even if the local copy looks current"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML/TOML/JSON config file"),
) -> None:
    """Download URL unless the local copy is current, replacing it atomically."""

    cfg = _load(config)
    logger = configure_logging(log_path=cfg.runtime.log_path)
    target_dir = directory if directory is not None else cfg.runtime.directory

    try:
        with CachedFetcher(cfg.http) as fetcher:
            path = retry(
                lambda: fetcher.fetch(url, dest, directory=target_dir, force=force),
                attempts=cfg.http.retries + 1,
                backoff_seconds=cfg.http.backoff_seconds,
                retry_on=(TransportError,),
                give_up_on=(ResourceNotFoundError,),
            )
    except MirrorError as exc:
        logger.error("Fetch of %s failed: %s", url, exc)
        raise typer.Exit(code=1)

    logger.info("Fetched %s -> %s", url, path)
    typer.echo(f"{path} sha256={sha256sum(path)}")


@app.command()
def replace(
    src: List[Path] = typer.Option(..., "--src", help="Source file; repeat once per pair"),
    dest: List[Path] = typer.Option(..., "--dest", help="Destination file; repeat once per pair"),
) -> None:
    """Move each --src onto the matching --dest, all or nothing."""

    logger = configure_logging()
    try:
        replace_files(src, dest)
    except MirrorError as exc:
        logger.error("Replace failed: %s", exc)
        raise typer.Exit(code=1)
    logger.info("Replaced %s file(s)", len(dest))


@app.command()
def dump_config(dest: Path = typer.Argument(..., help="Where to write the default config (.yaml or .json)")) -> None:
    """Write the default configuration."""

    try:
        dump_example_config(dest)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    typer.echo(f"Wrote {dest}")


def main() -> None:
    app()


__all__ = ["main", "app"]
