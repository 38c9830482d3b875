from enum import Enum


class IdKind(str, Enum):
    BUILTIN = "Builtin"
    GROUP = "Group"
    LOCAL = "Local"
    REGULAR = "Regular"


# Inclusive (lowest, highest) bounds. Regular Workshop IDs have no upper bound.
BUILTIN_ID_RANGE = (1, 999)
GROUP_ID_RANGE = (1000, 9999)
LOCAL_ID_RANGE = (10000, 999999)
LOWEST_REGULAR_ID = 1000000

STEAM_APPID = 255710
WORKSHOP_ITEM_URL = "https://steamcommunity.com/sharedfiles/filedetails/?id="
WORKSHOP_BROWSE_URL = (
    f"https://steamcommunity.com/workshop/browse/?appid={STEAM_APPID}"
    "&browsesort=mostrecent&section=readytouseitems&actualsort=mostrecent"
)

DEFAULT_LISTING_SOURCES = [
    {"url": f"{WORKSHOP_BROWSE_URL}&requiredtags%5B%5D=Mod", "incompatible": False},
    {
        "url": f"{WORKSHOP_BROWSE_URL}&requiredtags%5B%5D=Mod&requiredflags%5B%5D=incompatible",
        "incompatible": True,
    },
    {
        "url": f"{WORKSHOP_BROWSE_URL}&requiredtags%5B%5D=Cinematic+Cameras",
        "incompatible": False,
    },
    {
        "url": f"{WORKSHOP_BROWSE_URL}&requiredtags%5B%5D=Cinematic+Cameras&requiredflags%5B%5D=incompatible",
        "incompatible": True,
    },
]

CATALOG_FILE_PREFIX = "ModCatalog_v"
SNAPSHOT_SUFFIX = ".json"
CHANGE_NOTES_SUFFIX = "_ChangeNotes.txt"
TEMP_DOWNLOAD_NAME = "modcatalog_download.tmp"

# A mod without this many more characters than its name counts as undescribed
NO_DESCRIPTION_MARGIN = 5
MAX_REQUIRED_MOD_BLOCKS = 50
MAX_SOURCE_URL_COMPARISONS = 50
PROGRESS_LOG_INTERVAL = 100

KNOWN_DLC_METADATA = {
    346791: {"name": "Deluxe Edition"},
    369150: {"name": "After Dark"},
    420610: {"name": "Snowfall"},
    456200: {"name": "Match Day"},
    515191: {"name": "Natural Disasters"},
    547502: {"name": "Mass Transit"},
    563850: {"name": "Stadiums: European Club Pack"},
    614580: {"name": "Green Cities"},
    614581: {"name": "Concerts"},
    715191: {"name": "Parklife"},
    715194: {"name": "Industries"},
    944071: {"name": "Campus"},
    1146930: {"name": "Sunset Harbor"},
    1726380: {"name": "Airports"},
    2144480: {"name": "Plazas & Promenades"},
    2224690: {"name": "Financial Districts"},
    2148900: {"name": "Hotels & Retreats"},
}
