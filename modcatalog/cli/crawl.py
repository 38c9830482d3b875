"""
crawl and info subcommands.

``crawl`` runs one update session against the latest catalog snapshot and
writes the result as the next version, with its change notes.
"""

import sys
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import msgspec

from modcatalog.controllers.catalog_updater import CatalogUpdater
from modcatalog.controllers.crawler import Crawler
from modcatalog.models.catalog import Catalog
from modcatalog.models.settings import UpdaterSettings, load_settings
from modcatalog.utils.app_info import AppInfo
from modcatalog.utils.downloader import RequestsDownloader
from modcatalog.utils.exception import SnapshotLoadError
from modcatalog.utils.logging_setup import setup_logging
from modcatalog.utils.retry import RetryConfig
from modcatalog.utils.versioned_store import VersionedStore

folder_option = click.option(
    "--folder",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="MODCATALOG_FOLDER",
    help="Catalog folder. Can also be set via MODCATALOG_FOLDER environment variable.",
)


def resolve_folder(folder: Optional[Path], settings: UpdaterSettings | None = None) -> Path:
    """Command line first, then the settings file, then the default catalogs folder."""
    if folder:
        return folder
    if settings is not None and settings.catalog_folder:
        return Path(settings.catalog_folder)
    return AppInfo().catalogs_folder


def load_latest_or_exit(store: VersionedStore) -> Catalog:
    try:
        catalog = store.load_latest()
    except SnapshotLoadError as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)
    if catalog is None:
        click.secho(f"Error: No catalog snapshot found in {store.folder}", fg="red", err=True)
        sys.exit(1)
    return catalog


@click.command("crawl")
@folder_option
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings JSON file. Defaults to settings.json in the application folder.",
)
@click.option("--max-pages", type=int, help="Maximum number of pages per listing.")
@click.option(
    "--max-failures",
    type=int,
    help="Failed mod page downloads tolerated before the detail phase is aborted.",
)
@click.option("--debug", is_flag=True, help="Write debug messages to the log files.")
@click.option(
    "--quiet",
    is_flag=True,
    help="Suppress progress output (errors still shown).",
)
def crawl(
    folder: Optional[Path],
    settings_file: Optional[Path],
    max_pages: Optional[int],
    max_failures: Optional[int],
    debug: bool,
    quiet: bool,
) -> None:
    """Crawl the Steam Workshop and save a new catalog version.

    \b
    Examples:
      modcatalog crawl --folder ./catalogs
      MODCATALOG_FOLDER=./catalogs modcatalog crawl --max-pages 5 --quiet
    """
    settings_file = settings_file or AppInfo().app_settings_file
    try:
        settings = load_settings(settings_file)
    except msgspec.DecodeError as e:
        click.secho(f"Error: Invalid settings file {settings_file}: {e}", fg="red", err=True)
        sys.exit(1)

    if max_pages is not None:
        settings.max_listing_pages = max_pages
    if max_failures is not None:
        settings.max_failed_downloads = max_failures

    updater_log = setup_logging(
        AppInfo().user_log_folder, debug or settings.debug_logging_enabled
    )

    def progress_callback(msg: str) -> None:
        if not quiet:
            click.echo(msg, err=True)

    store = VersionedStore(resolve_folder(folder, settings))
    catalog = load_latest_or_exit(store)
    progress_callback(f"Starting crawl on catalog {catalog.version_string()}...")

    updater = CatalogUpdater(catalog, review_date=datetime.now())
    downloader = RequestsDownloader(
        timeout=settings.download_timeout,
        retry_config=RetryConfig(
            max_retries=settings.download_retries,
            backoff_factor=settings.download_backoff_factor,
        ),
    )
    try:
        result = Crawler(updater, downloader, settings, progress_callback).run()
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user, catalog not saved.", err=True)
        sys.exit(2)

    if result.listing_mods == 0:
        click.secho("✗ No mods found in the listings, catalog not saved", fg="red", err=True)
        sys.exit(1)

    if not updater.change_notes:
        progress_callback("No changes found, no new catalog version written")
        return

    if not store.save(catalog, updater.change_notes, created=updater.review_date):
        click.secho(f"✗ Could not save the catalog in {store.folder}", fg="red", err=True)
        sys.exit(1)

    click.secho(
        f"✓ Catalog {catalog.version_string()} saved with {len(updater.change_notes)} changes "
        f"(updater log: {updater_log})",
        fg="green",
        err=True,
    )


@click.command("info")
@folder_option
def info(folder: Optional[Path]) -> None:
    """Summarise the latest catalog snapshot."""
    store = VersionedStore(resolve_folder(folder))
    catalog = load_latest_or_exit(store)

    click.echo(f"Catalog {catalog.version_string()}")
    if catalog.updated:
        click.echo(f"Updated: {catalog.updated:%Y-%m-%d %H:%M}")
    if catalog.game_version:
        click.echo(f"Game version: {catalog.game_version}")
    click.echo(
        f"{len(catalog.mods)} mods ({catalog.reviewed_mod_count} reviewed), "
        f"{len(catalog.authors)} authors, {len(catalog.groups)} groups, "
        f"{len(catalog.compatibilities)} compatibilities"
    )
    stabilities = Counter(mod.stability for mod in catalog.mods)
    for stability in sorted(stabilities):
        click.echo(f"  {stability.value}: {stabilities[stability]}")
