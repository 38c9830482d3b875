from contextlib import suppress
from datetime import datetime
from pathlib import Path
from typing import Generator, Union

import pytest
from loguru import logger

from modcatalog.controllers.catalog_updater import CatalogUpdater
from modcatalog.models.catalog import Catalog, Stability
from modcatalog.models.ids import ModId
from modcatalog.models.settings import ListingSource, UpdaterSettings

REVIEW_DATE = datetime(2024, 6, 1, 12, 0)
LISTING_URL = "https://steamcommunity.com/workshop/browse/?appid=255710&requiredtags%5B%5D=Mod"
INCOMPATIBLE_URL = f"{LISTING_URL}&requiredflags%5B%5D=incompatible"


class FakeDownloader:
    """
    Serves canned pages by URL.

    A list of pages is served one per fetch, the last one repeating. URLs without a
    page fail, unless a default page is given.
    """

    def __init__(
        self,
        temp_path: Path,
        pages: dict[str, Union[str, list[str]]],
        default: Union[str, None] = None,
    ) -> None:
        self._temp_path = temp_path
        self.pages = pages
        self.default = default
        self.fetched: list[str] = []
        self.deleted = 0

    @property
    def temp_path(self) -> Path:
        return self._temp_path

    def fetch(self, url: str) -> bool:
        self.fetched.append(url)
        page = self.pages.get(url, self.default)
        if isinstance(page, list):
            page = page.pop(0) if len(page) > 1 else page[0]
        if page is None:
            return False
        self._temp_path.write_text(page, encoding="utf-8")
        return True

    def delete_temp(self) -> None:
        self.deleted += 1
        self._temp_path.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
def capture_logs() -> Generator[list[str], None, None]:
    """Route loguru into a list for the duration of a test."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level} {message}")
    yield messages
    # setup_logging may have removed every handler already
    with suppress(ValueError):
        logger.remove(handler_id)


@pytest.fixture
def catalog() -> Catalog:
    catalog = Catalog(version=3)
    catalog.add_mod(ModId.from_legacy(1), "Built-in Mod")
    catalog.add_mod(
        ModId.regular(1000001),
        "Network Extensions",
        author_id=76561198000000001,
        stability=Stability.STABLE,
    )
    catalog.add_mod(ModId.regular(1000002), "Move It", author_url="quboid")
    catalog.add_author(steam_id=76561198000000001, name="Author One")
    catalog.add_author(custom_url="quboid", name="Quboid")
    return catalog


@pytest.fixture
def updater(catalog: Catalog) -> CatalogUpdater:
    return CatalogUpdater(catalog, review_date=REVIEW_DATE)


@pytest.fixture
def settings() -> UpdaterSettings:
    return UpdaterSettings(
        listing_sources=[
            ListingSource(url=LISTING_URL),
            ListingSource(url=INCOMPATIBLE_URL, incompatible=True),
        ],
        max_listing_pages=10,
        max_failed_downloads=2,
    )
