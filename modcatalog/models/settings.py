from pathlib import Path

import msgspec
from loguru import logger

from modcatalog.utils.constants import DEFAULT_LISTING_SOURCES


class ListingSource(msgspec.Struct):
    url: str
    # Mods found through this listing are flagged incompatible with the game
    incompatible: bool = False


def _default_listing_sources() -> list[ListingSource]:
    return [msgspec.convert(source, ListingSource) for source in DEFAULT_LISTING_SOURCES]


class UpdaterSettings(msgspec.Struct):
    """
    Settings for one crawl session.

    Pure data class; loading and saving is done by the module level helpers.
    """

    listing_sources: list[ListingSource] = msgspec.field(
        default_factory=_default_listing_sources
    )
    max_listing_pages: int = 300
    max_failed_downloads: int = 4
    author_retirement_days: int = 365
    catalog_folder: str = ""
    download_timeout: float = 30.0
    download_retries: int = 3
    download_backoff_factor: float = 1.0
    debug_logging_enabled: bool = False


def load_settings(path: Path) -> UpdaterSettings:
    """
    Load settings from a JSON file. A missing file is created with defaults.

    :raises msgspec.DecodeError: If the file exists but is not valid settings JSON
    """
    try:
        with open(path, "rb") as file:
            settings = msgspec.json.decode(file.read(), type=UpdaterSettings)
    except FileNotFoundError:
        logger.info(f"No settings found at {path}, creating defaults")
        settings = UpdaterSettings()
        save_settings(settings, path)
    return settings


def save_settings(settings: UpdaterSettings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as file:
        file.write(msgspec.json.format(msgspec.json.encode(settings), indent=4))
