"""
Turns downloaded Steam Workshop pages into facts.

The pages are HTML, but not parsed as such: each field sits between a fixed
left and right marker, sometimes a fixed number of lines after a "find"
marker. The page layout has been stable for years, a grammar it is not.

Nothing here touches the catalog. Deciding what a fact means for a mod is
up to the crawler and the catalog updater.
"""

import html
import re
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urlsplit

from loguru import logger

from modcatalog.models.catalog import GameVersion
from modcatalog.models.ids import ModId, is_valid_id
from modcatalog.utils.constants import (
    MAX_REQUIRED_MOD_BLOCKS,
    MAX_SOURCE_URL_COMPARISONS,
    STEAM_APPID,
)
from modcatalog.utils.line_cursor import LineCursor

log = logger.bind(updater=True)

# Mod listing pages
LISTING_MOD_FIND = '<div class="workshopItemTitle ellipsis">'
LISTING_MOD_ID_LEFT = "steamcommunity.com/sharedfiles/filedetails/?id="
LISTING_MOD_ID_RIGHT = "&searchtext"
LISTING_MOD_NAME_LEFT = '<div class="workshopItemTitle ellipsis">'
LISTING_MOD_NAME_RIGHT = "</div>"
LISTING_AUTHOR_LINE_OFFSET = 2
LISTING_AUTHOR_ID_LEFT = "steamcommunity.com/profiles/"
LISTING_AUTHOR_URL_LEFT = "steamcommunity.com/id/"
LISTING_AUTHOR_RIGHT = "/myworkshopfiles"
LISTING_AUTHOR_NAME_LEFT = f'/myworkshopfiles/?appid={STEAM_APPID}">'
LISTING_AUTHOR_NAME_RIGHT = "</a>"

# Individual mod pages
DETAIL_ITEM_NOT_FOUND = "<title>Steam Community :: Error</title>"
DETAIL_MOD_ID_LEFT = '<input type="hidden" name="id" value="'
DETAIL_AUTHOR_FIND = '&nbsp;<a href="https://steamcommunity.com/'
DETAIL_AUTHOR_MID = f'/myworkshopfiles/?appid={STEAM_APPID}">'
DETAIL_AUTHOR_RIGHT = "</a>"
DETAIL_NAME_LEFT = '<div class="workshopItemTitle">'
DETAIL_NAME_RIGHT = "</div>"
DETAIL_VERSION_TAG_FIND = '<span class="workshopTagsTitle">Compatible with:'
DETAIL_VERSION_TAG_LEFT = "&requiredtags[]="
DETAIL_VERSION_TAG_RIGHT = '">'
DETAIL_DATES_FIND = '<div class="detailsStatsContainerRight">'
DETAIL_DATES_LEFT = '<div class="detailsStatRight">'
DETAIL_DATES_RIGHT = "</div>"
DETAIL_REQUIRED_DLC_FIND = '<div class="requiredDLCItem">'
DETAIL_REQUIRED_DLC_LEFT = "https://store.steampowered.com/app/"
DETAIL_REQUIRED_DLC_RIGHT = '"'
DETAIL_REQUIRED_MOD_FIND = '<div class="requiredItemsContainer" id="RequiredItems">'
DETAIL_REQUIRED_MOD_LEFT = "https://steamcommunity.com/workshop/filedetails/?id="
DETAIL_REQUIRED_MOD_RIGHT = '" target='
DETAIL_REQUIRED_MOD_BLOCK_LINES = 4
DETAIL_DESCRIPTION_FIND = '<div class="workshopItemDescriptionTitle">Description</div>'
DETAIL_DESCRIPTION_LEFT = 'id="highlightContent">'
DETAIL_DESCRIPTION_RIGHT = "</div>"
DETAIL_SOURCE_URL_LEFT = "https://steamcommunity.com/linkfilter/?url=https://github.com/"
DETAIL_SOURCE_URL_RIGHT = '"'

SOURCE_URL_HOST = "https://github.com/"
# Utility repositories linked from countless descriptions, never a mod's own source
SOURCE_URL_PLACEHOLDERS = (
    "https://github.com/pardeike",
    "https://github.com/sschoener/cities-skylines-detour",
)
SOURCE_URL_STOPLIST = (
    "issue",
    "wiki",
    "documentation",
    "readme",
    "guide",
    "translation",
)

WORKSHOP_DATE_FORMATS = ("%d %b, %Y @ %I:%M%p", "%b %d, %Y @ %I:%M%p")
WORKSHOP_DATE_FORMATS_WITHOUT_YEAR = ("%d %b @ %I:%M%p", "%b %d @ %I:%M%p")


def mid_string(text: str, left: str, right: str) -> str:
    """
    Return the part of ``text`` between the first ``left`` and the next ``right``.

    Returns an empty string if either marker is missing.
    """
    start = text.find(left)
    if start < 0:
        return ""
    start += len(left)
    end = text.find(right, start)
    if end < 0:
        return ""
    return text[start:end]


def clean_html(text: str) -> str:
    return re.sub(r"<[^>]+>", "", html.unescape(text)).strip()


def to_int(text: str) -> int:
    text = text.strip()
    return int(text) if text.isdigit() else 0


def parse_workshop_date(text: str, now: datetime | None = None) -> datetime | None:
    """
    Parse a Workshop date like ``10 Mar, 2015 @ 4:14pm``.

    Dates in the current year are shown without one, ``now`` supplies it.
    """
    text = clean_html(text).replace(" am", "am").replace(" pm", "pm")
    if not text:
        return None
    for date_format in WORKSHOP_DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            pass
    year = (now or datetime.now()).year
    for date_format in WORKSHOP_DATE_FORMATS_WITHOUT_YEAR:
        try:
            return datetime.strptime(f"{text} {year}", f"{date_format} %Y")
        except ValueError:
            pass
    log.warning(f"Unrecognized Workshop date: {text}")
    return None


@dataclass(frozen=True)
class ListingEntry:
    mod_id: ModId
    name: str
    author_id: int
    author_url: str
    author_name: str
    incompatible: bool


@dataclass
class ListingPage:
    entries: list[ListingEntry] = field(default_factory=list)
    anomalies: int = 0

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ItemNotFound:
    pass


@dataclass(frozen=True)
class ModIdMatched:
    pass


@dataclass(frozen=True)
class AuthorFact:
    steam_id: int
    custom_url: str
    name: str


@dataclass(frozen=True)
class NameFact:
    name: str


@dataclass(frozen=True)
class GameVersionFact:
    game_version: GameVersion


@dataclass(frozen=True)
class DatesFact:
    published: datetime | None
    updated: datetime | None


@dataclass(frozen=True)
class RequiredDlcFact:
    dlc: int


@dataclass(frozen=True)
class RequiredModFact:
    mod_id: ModId


@dataclass(frozen=True)
class DescriptionFact:
    length: int
    source_urls: tuple[str, ...] = ()


DetailFact = (
    ItemNotFound
    | ModIdMatched
    | AuthorFact
    | NameFact
    | GameVersionFact
    | DatesFact
    | RequiredDlcFact
    | RequiredModFact
    | DescriptionFact
)


@dataclass
class DetailPage:
    facts: list[DetailFact] = field(default_factory=list)

    @property
    def not_found(self) -> bool:
        return any(isinstance(fact, ItemNotFound) for fact in self.facts)

    @property
    def id_matched(self) -> bool:
        return any(isinstance(fact, ModIdMatched) for fact in self.facts)


@dataclass(frozen=True)
class SourceUrlChoice:
    selected: str
    discarded: tuple[str, ...] = ()


def extract_listing(cursor: LineCursor, incompatible: bool = False) -> ListingPage:
    """
    Extract mod and author facts from one mod listing page.

    :param cursor: The lines of the page
    :param incompatible: Whether the page belongs to a listing of incompatible mods
    """
    page = ListingPage()
    while not cursor.at_end:
        line = cursor.advance()
        if LISTING_MOD_FIND not in line:
            continue

        legacy_id = to_int(mid_string(line, LISTING_MOD_ID_LEFT, LISTING_MOD_ID_RIGHT))
        if not is_valid_id(legacy_id, allow_builtin=False):
            log.error(f"Steam ID not recognized on HTML line: {line.strip()}")
            page.anomalies += 1
            continue

        name = clean_html(mid_string(line, LISTING_MOD_NAME_LEFT, LISTING_MOD_NAME_RIGHT))
        author_line = cursor.peek(LISTING_AUTHOR_LINE_OFFSET - 1)
        author_id = to_int(
            mid_string(author_line, LISTING_AUTHOR_ID_LEFT, LISTING_AUTHOR_RIGHT)
        )
        author_url = (
            ""
            if author_id
            else mid_string(author_line, LISTING_AUTHOR_URL_LEFT, LISTING_AUTHOR_RIGHT)
        )
        author_name = clean_html(
            mid_string(author_line, LISTING_AUTHOR_NAME_LEFT, LISTING_AUTHOR_NAME_RIGHT)
        )
        page.entries.append(
            ListingEntry(
                mod_id=ModId.regular(legacy_id),
                name=name,
                author_id=author_id,
                author_url=author_url,
                author_name=author_name,
                incompatible=incompatible,
            )
        )
        cursor.skip(LISTING_AUTHOR_LINE_OFFSET)
    return page


def extract_detail(
    cursor: LineCursor, mod_id: ModId, now: datetime | None = None
) -> DetailPage:
    """
    Extract facts, in page order, from the individual page of one mod.

    Nothing is read before the mod's own ID is found on the page. An empty
    result means neither the ID nor Steam's error page was found, which
    usually points at a cut-off download.
    """
    page = DetailPage()
    id_marker = f'{DETAIL_MOD_ID_LEFT}{mod_id.to_legacy()}"'
    first = cursor.advance_to(lambda l: DETAIL_ITEM_NOT_FOUND in l or id_marker in l)
    if first is None:
        return page
    if DETAIL_ITEM_NOT_FOUND in first:
        page.facts.append(ItemNotFound())
        return page
    page.facts.append(ModIdMatched())

    while not cursor.at_end:
        line = cursor.advance()

        if DETAIL_AUTHOR_FIND in line:
            steam_id = to_int(
                mid_string(line, DETAIL_AUTHOR_FIND + "profiles/", DETAIL_AUTHOR_MID)
            )
            custom_url = mid_string(line, DETAIL_AUTHOR_FIND + "id/", DETAIL_AUTHOR_MID)
            name = clean_html(mid_string(line, DETAIL_AUTHOR_MID, DETAIL_AUTHOR_RIGHT))
            page.facts.append(AuthorFact(steam_id, "" if steam_id else custom_url, name))

        elif DETAIL_NAME_LEFT in line:
            page.facts.append(
                NameFact(clean_html(mid_string(line, DETAIL_NAME_LEFT, DETAIL_NAME_RIGHT)))
            )

        elif DETAIL_VERSION_TAG_FIND in line:
            tag = mid_string(line, DETAIL_VERSION_TAG_LEFT, DETAIL_VERSION_TAG_RIGHT)
            game_version = GameVersion.parse(tag)
            if game_version is None:
                log.warning(f"Unrecognized game version tag for {mod_id}: {tag}")
            else:
                page.facts.append(GameVersionFact(game_version))

        elif DETAIL_DATES_FIND in line:
            # File size first, then the published and (optional) updated dates
            _, published_line, updated_line = cursor.take(3)
            published = parse_workshop_date(
                mid_string(published_line, DETAIL_DATES_LEFT, DETAIL_DATES_RIGHT), now
            )
            updated = parse_workshop_date(
                mid_string(updated_line, DETAIL_DATES_LEFT, DETAIL_DATES_RIGHT), now
            )
            page.facts.append(DatesFact(published, updated or published))

        elif DETAIL_REQUIRED_DLC_FIND in line:
            dlc_line = cursor.advance()
            dlc = to_int(
                mid_string(dlc_line, DETAIL_REQUIRED_DLC_LEFT, DETAIL_REQUIRED_DLC_RIGHT)
            )
            if dlc:
                page.facts.append(RequiredDlcFact(dlc))
            else:
                log.warning(f"Unrecognized required DLC for {mod_id}: {dlc_line.strip()}")

        elif DETAIL_REQUIRED_MOD_FIND in line:
            for _ in range(MAX_REQUIRED_MOD_BLOCKS):
                legacy_id = to_int(
                    mid_string(
                        cursor.peek(), DETAIL_REQUIRED_MOD_LEFT, DETAIL_REQUIRED_MOD_RIGHT
                    )
                )
                if not legacy_id:
                    break
                cursor.skip(DETAIL_REQUIRED_MOD_BLOCK_LINES)
                if is_valid_id(legacy_id, allow_builtin=False):
                    page.facts.append(RequiredModFact(ModId.regular(legacy_id)))
                else:
                    log.warning(f"Unrecognized required mod ID {legacy_id} for {mod_id}")

        elif DETAIL_DESCRIPTION_FIND in line:
            page.facts.append(_extract_description(cursor.advance()))
            # The description is the last thing we need from the page
            break

    return page


def _extract_description(line: str) -> DescriptionFact:
    start = line.find(DETAIL_DESCRIPTION_LEFT)
    if start < 0:
        log.warning("Description marker not found on mod page")
        return DescriptionFact(0)
    length = len(line) - start - len(DETAIL_DESCRIPTION_LEFT) - len(DETAIL_DESCRIPTION_RIGHT)

    candidates: list[str] = []
    rest = line
    while DETAIL_SOURCE_URL_LEFT in rest and len(candidates) <= MAX_SOURCE_URL_COMPARISONS:
        path = mid_string(rest, DETAIL_SOURCE_URL_LEFT, DETAIL_SOURCE_URL_RIGHT)
        if path:
            candidates.append(SOURCE_URL_HOST + path)
        rest = rest[rest.find(DETAIL_SOURCE_URL_LEFT) + len(DETAIL_SOURCE_URL_LEFT) :]
    return DescriptionFact(max(length, 0), tuple(candidates))


def _is_placeholder(url: str) -> bool:
    lower = url.lower()
    return any(placeholder in lower for placeholder in SOURCE_URL_PLACEHOLDERS)


def _is_low_signal(url: str) -> bool:
    path = urlsplit(url.lower()).path
    return any(segment in path for segment in SOURCE_URL_STOPLIST)


def select_source_url(candidates: list[str] | tuple[str, ...]) -> SourceUrlChoice:
    """
    Pick the most likely source repository out of the links in a description.

    Best effort, and wrong for some mods, which is why curators can exclude the field:

    * placeholder repositories lose against anything, and are dropped if nothing else is left
    * case-insensitive duplicates are ignored
    * a current pick pointing at issues, a wiki, docs and the like gives way to the next link
    * otherwise the earlier link wins and the later one is discarded
    """
    if not candidates:
        return SourceUrlChoice("")

    selected = candidates[0]
    discarded: list[str] = []
    for candidate in candidates[1 : MAX_SOURCE_URL_COMPARISONS + 1]:
        if _is_placeholder(candidate) or candidate.lower() == selected.lower():
            continue
        if _is_placeholder(selected):
            selected = candidate
        elif _is_low_signal(selected):
            discarded.append(selected)
            selected = candidate
        else:
            discarded.append(candidate)

    if _is_placeholder(selected):
        selected = ""
    return SourceUrlChoice(selected, tuple(discarded))
