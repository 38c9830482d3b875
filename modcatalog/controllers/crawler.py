"""
Web crawler for the Steam Workshop.

A session has two phases, always in this order:

1. Listing: page through every configured mod listing, adding new mods and
   refreshing name, author and stability for every mod found.
2. Detail: download the page of every regular catalog mod and apply what is
   found there. Whether a mod is unlisted depends on phase 1 having seen it.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from modcatalog.controllers.catalog_updater import CatalogUpdater
from modcatalog.models.catalog import Mod, ModField, Stability, Status
from modcatalog.models.settings import ListingSource, UpdaterSettings
from modcatalog.models.update import UNSET, ModUpdate
from modcatalog.utils.constants import NO_DESCRIPTION_MARGIN, PROGRESS_LOG_INTERVAL
from modcatalog.utils.downloader import Downloader
from modcatalog.utils.line_cursor import LineCursor
from modcatalog.utils.page_extractor import (
    AuthorFact,
    DatesFact,
    DescriptionFact,
    DetailPage,
    GameVersionFact,
    ListingEntry,
    NameFact,
    RequiredDlcFact,
    RequiredModFact,
    extract_detail,
    extract_listing,
    select_source_url,
)
from modcatalog.utils.retry import retry_once

log = logger.bind(updater=True)


@dataclass
class CrawlResult:
    listing_pages: int = 0
    listing_mods: int = 0
    detail_pages: int = 0
    failed_downloads: int = 0
    aborted: bool = False
    retired_authors: int = 0


def elapsed(start: float) -> str:
    return f"{time.perf_counter() - start:.1f}s"


class Crawler:
    """
    Drives the downloader, feeds pages to the extractor and routes the facts to the catalog updater.

    Args:
        updater: The update session to apply facts to
        downloader: Fetches pages into its temp file
        settings: Listing sources, page and failure limits, author retirement window
        progress_callback: Optional callback for progress messages
    """

    def __init__(
        self,
        updater: CatalogUpdater,
        downloader: Downloader,
        settings: UpdaterSettings,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.updater = updater
        self.catalog = updater.catalog
        self.downloader = downloader
        self.settings = settings
        self.progress_callback = progress_callback or (lambda msg: None)
        self.result = CrawlResult()

    def run(self) -> CrawlResult:
        """
        Run a complete crawl session.

        The detail phase is skipped when the listings yielded no mods at all,
        which points at Steam being down rather than every mod being gone.
        """
        start = time.perf_counter()
        self.result = CrawlResult()

        if not self.crawl_listings():
            log.error("No mods found in any listing, skipping the individual mod pages")
            self.result.aborted = True
            return self.result

        self.crawl_details()
        self.result.retired_authors = self.updater.retire_inactive_authors(
            self.settings.author_retirement_days
        )
        log.info(f"Web crawler finished in {elapsed(start)}")
        return self.result

    # Listing phase

    def crawl_listings(self) -> int:
        """
        Crawl every configured listing source.

        :return: The number of mods found across all listings
        """
        start = time.perf_counter()
        for source in self.settings.listing_sources:
            self._crawl_listing_source(source)
            self.downloader.delete_temp()

        log.info(
            f"Found {self.result.listing_mods} mods on {self.result.listing_pages} listing pages "
            f"in {elapsed(start)}"
        )
        self.progress_callback(f"Found {self.result.listing_mods} mods in the listings")
        return self.result.listing_mods

    def _crawl_listing_source(self, source: ListingSource) -> None:
        for page_number in range(1, self.settings.max_listing_pages + 1):
            url = f"{source.url}&p={page_number}"
            if not self.downloader.fetch(url):
                log.error(f"Permanent error while downloading listing page {page_number}: {url}")
                return

            page = extract_listing(
                LineCursor.from_file(self.downloader.temp_path), source.incompatible
            )
            # An empty page means the previous one was the last
            if not page.entries:
                log.debug(f"Listing exhausted after {page_number - 1} pages: {source.url}")
                return

            for entry in page.entries:
                self._apply_listing_entry(entry)
            self.result.listing_pages += 1
            self.result.listing_mods += len(page)

        log.warning(
            f"Stopped at the maximum of {self.settings.max_listing_pages} pages: {source.url}"
        )

    def _apply_listing_entry(self, entry: ListingEntry) -> None:
        mod = self.updater.add_mod(entry.mod_id, entry.name, entry.incompatible)

        if entry.incompatible:
            stability = Stability.INCOMPATIBLE_PER_LISTING
        elif mod.stability == Stability.INCOMPATIBLE_PER_LISTING:
            stability = Stability.NOT_REVIEWED
        else:
            stability = UNSET

        self.updater.update_mod(
            mod,
            ModUpdate(
                name=entry.name or UNSET,
                author_id=entry.author_id or UNSET,
                author_url=entry.author_url or UNSET,
                stability=stability,
            ),
            updated_by_web_crawler=True,
        )
        self.updater.remove_status(mod, Status.REMOVED_FROM_LISTING, updated_by_web_crawler=True)
        self.updater.remove_status(mod, Status.UNLISTED, updated_by_web_crawler=True)
        self.updater.mark_seen_in_listing(mod)

        if entry.author_id or entry.author_url:
            self.updater.get_or_add_author(entry.author_id, entry.author_url, entry.author_name)

    # Detail phase

    def crawl_details(self) -> None:
        """
        Crawl the individual page of every regular mod in the catalog.

        Mods added while this runs, like unknown required mods, wait for the next session.
        """
        start = time.perf_counter()
        for mod in list(self.catalog.mods):
            if not mod.mod_id.is_regular:
                continue

            if not self._crawl_detail(mod):
                self.result.failed_downloads += 1
                if self.result.failed_downloads > self.settings.max_failed_downloads:
                    log.error(
                        f"Too many failed downloads ({self.result.failed_downloads}), "
                        "stopped downloading mod pages"
                    )
                    self.result.aborted = True
                    break
                log.warning(f"Download failed for {mod}, skipped")
                continue

            self.result.detail_pages += 1
            if self.result.detail_pages % PROGRESS_LOG_INTERVAL == 0:
                log.info(f"{self.result.detail_pages} mod pages processed")
                self.progress_callback(f"{self.result.detail_pages} mod pages processed")

        self.downloader.delete_temp()
        log.info(
            f"Processed {self.result.detail_pages} mod pages in {elapsed(start)}, "
            f"{self.result.failed_downloads} failed downloads"
        )

    def _crawl_detail(self, mod: Mod) -> bool:
        """
        Download, parse and apply the page of one mod.

        :return: False on a download failure, True otherwise
        """

        def fetch_and_extract() -> DetailPage | None:
            if not self.downloader.fetch(mod.url):
                return None
            return extract_detail(
                LineCursor.from_file(self.downloader.temp_path),
                mod.mod_id,
                now=self.updater.review_date,
            )

        def looks_inconsistent(page: DetailPage | None) -> bool:
            if page is None:
                return False
            if page.not_found:
                return self.updater.seen_in_listing(mod)
            return not page.id_matched and Status.REMOVED_FROM_LISTING not in mod.statuses

        try:
            page = retry_once(fetch_and_extract, looks_inconsistent)
            if page is None:
                return False
            self._apply_detail(mod, page)
        except Exception:
            log.exception(f"Error while processing the page of {mod}, skipped")
        return True

    def _apply_detail(self, mod: Mod, page: DetailPage) -> None:
        if page.not_found:
            if self.updater.seen_in_listing(mod):
                log.error(f"Mod found in the listing, but its page is an error page: {mod}")
            else:
                self.updater.add_status(mod, Status.REMOVED_FROM_LISTING, updated_by_web_crawler=True)
            return

        if not page.id_matched:
            if Status.REMOVED_FROM_LISTING not in mod.statuses:
                log.error(f"Steam ID not found on the downloaded page of {mod}, mod info not updated")
            return

        self.updater.remove_status(mod, Status.REMOVED_FROM_LISTING, updated_by_web_crawler=True)
        if not self.updater.seen_in_listing(mod):
            self.updater.add_status(mod, Status.UNLISTED, updated_by_web_crawler=True)
        unlisted = Status.UNLISTED in mod.statuses

        for fact in page.facts:
            # Author and name come from the listing, unless the mod is not in there
            if isinstance(fact, AuthorFact):
                if unlisted and (fact.steam_id or fact.custom_url):
                    self._update(
                        mod,
                        author_id=fact.steam_id or UNSET,
                        author_url=fact.custom_url or UNSET,
                    )
                    self.updater.get_or_add_author(fact.steam_id, fact.custom_url, fact.name)

            elif isinstance(fact, NameFact):
                if unlisted and fact.name:
                    self._update(mod, name=fact.name)

            elif isinstance(fact, GameVersionFact):
                self._update(mod, game_version=fact.game_version)

            elif isinstance(fact, DatesFact):
                self._update(
                    mod,
                    published=fact.published or UNSET,
                    updated=fact.updated or UNSET,
                )
                author = self.catalog.get_author(mod.author_id, mod.author_url)
                if author is not None and mod.updated is not None:
                    self.updater.update_author_activity(author, mod.updated)

            elif isinstance(fact, RequiredDlcFact):
                self.updater.add_required_dlc(mod, fact.dlc, updated_by_web_crawler=True)

            elif isinstance(fact, RequiredModFact):
                self.updater.add_required_mod(mod, fact.mod_id, updated_by_web_crawler=True)

            elif isinstance(fact, DescriptionFact):
                self._apply_description(mod, fact)

    def _apply_description(self, mod: Mod, fact: DescriptionFact) -> None:
        if fact.length <= len(mod.name) + NO_DESCRIPTION_MARGIN:
            self.updater.add_status(mod, Status.NO_DESCRIPTION, updated_by_web_crawler=True)
        else:
            self.updater.remove_status(mod, Status.NO_DESCRIPTION, updated_by_web_crawler=True)

        if not fact.source_urls or mod.is_excluded(ModField.SOURCE_URL):
            return
        choice = select_source_url(fact.source_urls)
        if not choice.selected or choice.selected == mod.source_url:
            return
        if choice.discarded:
            log.info(
                f"Source URL for {mod}: selected {choice.selected}, "
                f"discarded {', '.join(choice.discarded)}"
            )
        self._update(mod, source_url=choice.selected)

    def _update(self, mod: Mod, **fields: object) -> int:
        return self.updater.update_mod(
            mod, ModUpdate(**fields), updated_by_web_crawler=True  # type: ignore[arg-type]
        )
