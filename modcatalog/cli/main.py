"""
Main CLI entry point for ModCatalog.

This module defines the Click command group and registers all subcommands.
"""

import click

from modcatalog.cli.crawl import crawl, info
from modcatalog.utils.app_info import AppInfo


@click.group()
@click.version_option(version=AppInfo().app_version, prog_name="ModCatalog")
def cli() -> None:
    """ModCatalog - Workshop mod catalog updater

    Crawls the Steam Workshop and keeps a versioned catalog of mods,
    authors and their requirements up to date.
    """
    pass


# Register subcommands
cli.add_command(crawl)
cli.add_command(info)


if __name__ == "__main__":
    cli()
