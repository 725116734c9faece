"""Click CLI for llmcache — inspect and maintain an on-disk response cache."""

from __future__ import annotations

import logging
import sys
import time

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from llmcache.cache.disk import DiskMirror
from llmcache.config.hierarchy import load_config_hierarchy
from llmcache.config.loader import load_settings, load_settings_yaml
from llmcache.errors.exceptions import ConfigError

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """Route library logs through rich on stderr.

    ``-v``/``-vv`` win over the configured ``log_level``.
    """
    if verbosity >= 2:
        level: int | str = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = str(load_config_hierarchy().get("log_level", "WARNING")).upper()
        if level not in logging.getLevelNamesMapping():
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _mirror(cache_dir: str | None) -> DiskMirror:
    if cache_dir:
        return DiskMirror(cache_dir)
    try:
        settings = load_settings()
    except ConfigError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    return DiskMirror(settings.cache.directory)


cache_dir_option = click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Cache directory (default: from configuration).",
)


@click.group()
@click.version_option(package_name="llmcache")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """llmcache — LLM response cache and request metrics."""
    _setup_logging(verbose)


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
@cache_dir_option
def cache_stats(cache_dir: str | None) -> None:
    """Show statistics for the on-disk cache."""
    mirror = _mirror(cache_dir)
    now = time.time()

    entries = list(mirror.iter_entries())
    expired = sum(1 for e in entries if e.is_expired(now))
    size = sum(e.size_bytes for e in entries)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Directory", str(mirror.directory))
    table.add_row("Entries", str(len(entries)))
    table.add_row("Expired", str(expired))
    table.add_row("Size (MB)", f"{size / (1024 * 1024):.2f}")
    table.add_row("Total hits", str(sum(e.hit_count for e in entries)))

    console.print(table)


@cache.command("entries")
@cache_dir_option
@click.option("--limit", type=int, default=20, show_default=True, help="Rows to show.")
def cache_entries(cache_dir: str | None, limit: int) -> None:
    """List cached entries, most-hit first."""
    mirror = _mirror(cache_dir)
    now = time.time()
    entries = sorted(mirror.iter_entries(), key=lambda e: e.hit_count, reverse=True)

    if not entries:
        console.print("[yellow]Cache is empty.[/yellow]")
        return

    table = Table(title="Cache Entries", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Hits", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Expires in")

    for entry in entries[:limit]:
        remaining = entry.expires_at - now
        expires = "[red]expired[/red]" if remaining <= 0 else f"{remaining:.0f}s"
        table.add_row(entry.key, str(entry.hit_count), f"{entry.size_bytes:,}", expires)

    console.print(table)
    if len(entries) > limit:
        console.print(f"... {len(entries) - limit} more")


@cache.command("purge")
@cache_dir_option
def cache_purge(cache_dir: str | None) -> None:
    """Delete expired cache files."""
    removed = _mirror(cache_dir).purge_expired(time.time())
    console.print(f"[green]Removed {removed} expired entries.[/green]")


@cache.command("clear")
@cache_dir_option
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(cache_dir: str | None) -> None:
    """Clear all cached data."""
    removed = _mirror(cache_dir).clear()
    console.print(f"[green]Cache cleared ({removed} files).[/green]")


@cli.command("config")
@click.option(
    "--file",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Validate a settings YAML instead of the resolved hierarchy.",
)
def show_config(settings_file: str | None) -> None:
    """Print the resolved settings."""
    try:
        settings = load_settings_yaml(settings_file) if settings_file else load_settings()
    except ConfigError as e:
        error_console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    for section, values in settings.model_dump(mode="json").items():
        if not isinstance(values, dict):
            table.add_row(section, str(values))
            continue
        for key, value in _flatten(values, prefix=section):
            table.add_row(key, value)

    console.print(table)


def _flatten(values: dict, prefix: str) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    for key, value in values.items():
        name = f"{prefix}.{key}"
        if isinstance(value, dict) and any(isinstance(v, dict) for v in value.values()):
            rows.extend(_flatten(value, name))
        elif isinstance(value, dict):
            rows.append((name, ", ".join(f"{k}={v}" for k, v in value.items()) or "-"))
        else:
            rows.append((name, str(value)))
    return rows


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
