"""
Which required mods of a mod are not subscribed, or not enabled.

Only the dependency rules live here; turning the lines into a report is up
to the caller.
"""

from loguru import logger

from modcatalog.models.catalog import Catalog, Group, Mod
from modcatalog.models.ids import ModId
from modcatalog.utils.constants import WORKSHOP_ITEM_URL

GROUP_MEMBER_INDENT = "  - "
DETAIL_INDENT = "    "


def _label(catalog: Catalog, mod_id: ModId) -> str:
    mod = catalog.get_mod(mod_id)
    if mod is None:
        logger.warning(f"Required mod {mod_id} not found in catalog")
        return f"[Steam ID {mod_id.value:>10}]"
    return str(mod)


def _unmet_group(
    catalog: Catalog, group: Group | None, subscriptions: dict[ModId, bool]
) -> list[str]:
    if group is None or not group.members:
        return ["one of the following mods: <missing information in catalog>"]

    disabled: list[str] = []
    missing: list[str] = []
    for member in group.members:
        if member not in subscriptions:
            missing.append(GROUP_MEMBER_INDENT + _label(catalog, member))
        elif subscriptions[member]:
            # One enabled member satisfies the whole group
            return []
        else:
            disabled.append(_label(catalog, member))

    if not disabled:
        return ["one of the following mods:", *missing]
    if len(disabled) == 1:
        return disabled
    return [
        "one of the following mods should be enabled:",
        *(GROUP_MEMBER_INDENT + label for label in disabled),
    ]


def unmet_required_mods(
    catalog: Catalog, mod: Mod, subscriptions: dict[ModId, bool]
) -> list[str]:
    """
    List the required mods of ``mod`` that are missing or disabled.

    A required group is satisfied by any one enabled member. If exactly one
    member is subscribed but disabled, only that member is named.

    :param catalog: The catalog holding the mods and groups
    :param mod: The mod whose requirements to check
    :param subscriptions: Subscribed mod IDs, mapped to whether they are enabled
    :return: Report lines, empty if every requirement is met
    """
    lines: list[str] = []
    for required_id in sorted(mod.required_mods):
        if required_id.is_group:
            lines += _unmet_group(catalog, catalog.get_group(required_id), subscriptions)
        elif required_id in subscriptions:
            if not subscriptions[required_id]:
                lines.append(_label(catalog, required_id))
        else:
            lines.append(_label(catalog, required_id))
            if required_id.is_regular:
                lines.append(f"{DETAIL_INDENT}Workshop page: {WORKSHOP_ITEM_URL}{required_id}")
    return lines
