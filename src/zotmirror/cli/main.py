"""Main CLI entry point using Click."""

import logging
from contextlib import closing
from pathlib import Path

import click
from dotenv import load_dotenv

from zotmirror import __version__
from zotmirror.config import Settings, load_settings
from zotmirror.core.exceptions import ConfigurationError, ZotMirrorError
from zotmirror.pipeline import SyncOrchestrator
from zotmirror.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _get_base_dir() -> Path:
    """Get base directory from current working directory or a parent with config."""
    cwd = Path.cwd()
    if (cwd / "config" / "config.yaml").exists():
        return cwd
    for parent in cwd.parents:
        if (parent / "config" / "config.yaml").exists():
            return parent
    return cwd


@click.group()
@click.option("--base-dir", type=click.Path(exists=True), default=None, help="Repository base directory")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="zotmirror")
@click.pass_context
def cli(ctx: click.Context, base_dir: str | None, verbose: bool) -> None:
    """ZotMirror - mirror Zotero group libraries into a relational database."""
    ctx.ensure_object(dict)

    base = Path(base_dir) if base_dir else _get_base_dir()
    load_dotenv(base / ".env")
    setup_logging(verbose=verbose)

    ctx.obj["base_dir"] = base


def _get_settings(ctx: click.Context) -> Settings:
    try:
        return load_settings(ctx.obj["base_dir"])
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option("--full", is_flag=True, help="Ignore stored version cursors and refetch everything")
@click.pass_context
def sync(ctx: click.Context, full: bool) -> None:
    """Sync all groups, their collections, items and PDF attachments."""
    settings = _get_settings(ctx)
    orchestrator = SyncOrchestrator.from_settings(settings, ctx.obj["base_dir"])

    click.echo("Syncing Zotero groups...")
    try:
        with orchestrator.storage, closing(orchestrator.library):
            results = orchestrator.run(full=full)
    except ZotMirrorError as exc:
        raise click.ClickException(str(exc)) from exc

    for stats in results:
        click.echo(
            f"  Group {stats.group_id}: {stats.items} items, {stats.collections} collections, "
            f"+{stats.associations_inserted}/-{stats.associations_deleted} memberships, "
            f"attachments {stats.attachments_done} done / {stats.attachments_skipped} skipped / "
            f"{stats.attachments_failed} failed, version {stats.items_version}"
        )
        if (
            stats.unknown_types
            or stats.malformed_records
            or stats.unresolved_memberships
            or stats.malformed_chunks
            or stats.hierarchy_cycles
        ):
            click.echo(
                f"    Diagnostics: {stats.unknown_types} unknown types, "
                f"{stats.malformed_records} malformed records, "
                f"{stats.unresolved_memberships} unresolved memberships, "
                f"{stats.malformed_chunks} malformed chunks, {stats.hierarchy_cycles} hierarchy cycles"
            )


if __name__ == "__main__":
    cli()
