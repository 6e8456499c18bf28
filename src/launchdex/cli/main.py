"""
Launchdex CLI

Command-line interface for searching and managing launcher history.

Usage::

    launchdex search "visual studio"        # Ranked launcher results
    launchdex search code --explain         # ... with per-result scores
    launchdex recent                        # What an empty query shows
    launchdex record "code" --target-kind installed --target-key "/Applications/Visual Studio Code.app"
    launchdex catalog build cask.json       # Trim a Homebrew cask dump
    launchdex mcp                           # Start the MCP server
"""

import dataclasses
import logging
import time

import click

from launchdex.core.catalog import CatalogStore, build_catalog
from launchdex.core.config import PROGRAM_INDEX_BACKENDS, LaunchdexConfig
from launchdex.core.formatter import ResultFormatter
from launchdex.core.models import TargetRef
from launchdex.exceptions import CatalogError, ConfigError


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool, config: LaunchdexConfig | None = None) -> None:
    """Set up logging for the CLI session."""
    cfg = config or LaunchdexConfig.from_env()
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=cfg.log_format)


# ---------------------------------------------------------------------------
# Config / client helpers
# ---------------------------------------------------------------------------

def _config_from_context(ctx: click.Context) -> LaunchdexConfig:
    """Environment config overlaid with the group-level options."""
    overrides = {k: v for k, v in (ctx.obj or {}).items() if v is not None}
    try:
        config = dataclasses.replace(LaunchdexConfig.from_env(), **overrides)
        config.validate()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    return config


def _make_launcher(config: LaunchdexConfig):
    from launchdex.client import Launchdex
    return Launchdex(config=config, validate_on_init=False)


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="launchdex")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              help="History/catalog directory (default: $LAUNCHDEX_DATA_DIR or ~/.launchdex).")
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), default=None,
              help="Catalog JSON (default: $LAUNCHDEX_CATALOG or DATA_DIR/catalog.json).")
@click.option("--program-index", type=click.Choice(PROGRAM_INDEX_BACKENDS), default=None,
              help="Installed-program backend (default: $LAUNCHDEX_PROGRAM_INDEX or 'auto').")
@click.pass_context
def cli(ctx: click.Context, data_dir: str | None, catalog_path: str | None,
        program_index: str | None):
    """Launchdex — ranked launcher search over apps, packages and history."""
    ctx.ensure_object(dict)
    ctx.obj.update(data_dir=data_dir, catalog_path=catalog_path, program_index=program_index)


# ---------------------------------------------------------------------------
# launchdex search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query", default="")
@click.option("-f", "--format", "fmt",
              type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.option("-n", "--max-results", type=int, default=None,
              help="Maximum number of results.")
@click.option("--explain", is_flag=True, help="Show the rerank score of each result.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def search(ctx: click.Context, query: str, fmt: str, max_results: int | None,
           explain: bool, verbose: bool):
    """Search installed programs, the catalog and history for QUERY.

    An empty QUERY shows the most recent history entries.
    """
    config = _config_from_context(ctx)
    _configure_logging(verbose, config)
    if max_results is not None and max_results <= 0:
        click.echo("Error: --max-results must be positive.", err=True)
        raise SystemExit(1)

    t0 = time.perf_counter()
    with _make_launcher(config) as launcher:
        results = launcher.search(query, max_results=max_results)
        scores = launcher.last_scores if explain else None
    elapsed = time.perf_counter() - t0

    home = str(config.get_home_dir())
    if fmt == "json":
        click.echo(ResultFormatter.format_json(results, home=home, scores=scores))
    elif fmt == "compact":
        click.echo(ResultFormatter.format_compact(results, home=home))
    else:
        click.echo(ResultFormatter.format_console(
            results, home=home, scores=scores, elapsed_time=elapsed,
        ))


# ---------------------------------------------------------------------------
# launchdex recent / complete
# ---------------------------------------------------------------------------

@cli.command()
@click.option("-n", "--limit", type=int, default=None, help="Number of entries (default: 8).")
@click.option("-f", "--format", "fmt",
              type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.pass_context
def recent(ctx: click.Context, limit: int | None, fmt: str):
    """Show the most recent history entries."""
    config = _config_from_context(ctx)
    _configure_logging(False, config)
    if limit is not None and limit <= 0:
        click.echo("Error: --limit must be positive.", err=True)
        raise SystemExit(1)

    with _make_launcher(config) as launcher:
        results = launcher.recent(limit)

    home = str(config.get_home_dir())
    if fmt == "json":
        click.echo(ResultFormatter.format_json(results, home=home))
    elif fmt == "compact":
        click.echo(ResultFormatter.format_compact(results, home=home))
    else:
        click.echo(ResultFormatter.format_console(results, home=home, title="RECENT"))


@cli.command()
@click.argument("prefix")
@click.option("-n", "--limit", type=int, default=10, help="Maximum completions.")
@click.pass_context
def complete(ctx: click.Context, prefix: str, limit: int):
    """List history commands that start with PREFIX."""
    config = _config_from_context(ctx)
    _configure_logging(False, config)
    with _make_launcher(config) as launcher:
        for command in launcher.complete(prefix, limit=limit):
            click.echo(command)


# ---------------------------------------------------------------------------
# launchdex record / forget
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("command")
@click.option("--display", default=None, help="Title shown for the entry.")
@click.option("--subtitle", default=None, help="Secondary line shown for the entry.")
@click.option("--target-kind", type=click.Choice(TargetRef.KINDS), default=None,
              help="What the command launched.")
@click.option("--target-key", default=None,
              help="Catalog token, program path, URL or file path of the target.")
@click.pass_context
def record(ctx: click.Context, command: str, display: str | None, subtitle: str | None,
           target_kind: str | None, target_key: str | None):
    """Record COMMAND as successfully launched."""
    config = _config_from_context(ctx)
    _configure_logging(False, config)
    if (target_kind is None) != (target_key is None):
        click.echo("Error: --target-kind and --target-key must be given together.", err=True)
        raise SystemExit(1)

    target = TargetRef(kind=target_kind, key=target_key) if target_kind else None
    with _make_launcher(config) as launcher:
        entry = launcher.record_success(command, display=display, subtitle=subtitle, target=target)
    if entry is None:
        click.echo("Error: command must not be blank.", err=True)
        raise SystemExit(1)
    click.echo(f"Recorded '{entry.command}'")


@cli.command()
@click.argument("command")
@click.pass_context
def forget(ctx: click.Context, command: str):
    """Remove COMMAND from history."""
    config = _config_from_context(ctx)
    _configure_logging(False, config)
    with _make_launcher(config) as launcher:
        removed = launcher.remove_history_entry(command)
    if not removed:
        click.echo(f"No history entry for '{command}'", err=True)
        raise SystemExit(1)
    click.echo(f"Removed '{command}'")


# ---------------------------------------------------------------------------
# launchdex catalog
# ---------------------------------------------------------------------------

@cli.group()
def catalog():
    """Build and inspect the offline package catalog."""


@catalog.command("build")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("dest", type=click.Path(dir_okay=False), required=False)
@click.option("--no-progress", is_flag=True, help="Disable the progress bar.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def catalog_build(ctx: click.Context, source: str, dest: str | None,
                  no_progress: bool, verbose: bool):
    """Trim a raw Homebrew cask dump SOURCE into the catalog DEST.

    DEST defaults to the configured catalog path.
    """
    config = _config_from_context(ctx)
    _configure_logging(verbose, config)
    target = dest or str(config.get_catalog_path())
    try:
        count = build_catalog(source, target, show_progress=not no_progress)
    except CatalogError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    click.echo(f"Wrote {count:,} catalog entries to {target}")


@catalog.command("stats")
@click.pass_context
def catalog_stats(ctx: click.Context):
    """Show catalog statistics."""
    config = _config_from_context(ctx)
    path = config.get_catalog_path()
    try:
        store = CatalogStore.from_file(path, strict=True)
    except CatalogError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo("Run 'launchdex catalog build <cask.json>' first.", err=True)
        raise SystemExit(1)

    s = store.stats()
    click.echo("─" * 50)
    click.echo("  LAUNCHDEX — Catalog Statistics")
    click.echo("─" * 50)
    click.echo(f"  Catalog location : {path}")
    click.echo()
    click.echo(f"  Entries             {s['entries']:>8,}")
    click.echo(f"  Deprecated          {s['deprecated']:>8,}")
    click.echo(f"  Names indexed       {s['names_indexed']:>8,}")
    click.echo(f"  Program files       {s['program_files_indexed']:>8,}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# launchdex mcp
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--transport", type=click.Choice(["stdio", "sse"]),
              default="stdio", help="MCP transport (default: stdio).")
@click.option("-v", "--verbose", is_flag=True)
@click.pass_context
def mcp(ctx: click.Context, transport: str, verbose: bool):
    """Start the Launchdex MCP server for agent integration."""
    config = _config_from_context(ctx)
    _configure_logging(verbose, config)
    try:
        from launchdex.mcp.server import create_server  # noqa: E402
    except ImportError:
        click.echo(
            "Error: MCP dependencies not installed.\n"
            "Install with:  pip install 'launchdex[mcp]'",
            err=True,
        )
        raise SystemExit(1)

    server = create_server(config)
    server.run(transport=transport)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
