from dataclasses import dataclass, field

from modcatalog.utils.constants import (
    BUILTIN_ID_RANGE,
    GROUP_ID_RANGE,
    LOCAL_ID_RANGE,
    LOWEST_REGULAR_ID,
    IdKind,
)
from modcatalog.utils.exception import InvalidModId


def classify_id(value: int) -> IdKind | None:
    """
    Classify a legacy numeric ID by the range it falls in.

    :param value: The integer ID as it appears on disk or in a Workshop URL
    :return: The kind of ID, or None if the value is not a valid ID at all
    """
    if value >= LOWEST_REGULAR_ID:
        return IdKind.REGULAR
    for kind, (lowest, highest) in (
        (IdKind.BUILTIN, BUILTIN_ID_RANGE),
        (IdKind.GROUP, GROUP_ID_RANGE),
        (IdKind.LOCAL, LOCAL_ID_RANGE),
    ):
        if lowest <= value <= highest:
            return kind
    return None


def is_valid_id(
    value: int,
    allow_builtin: bool = True,
    allow_group: bool = False,
    allow_local: bool = False,
) -> bool:
    kind = classify_id(value)
    if kind is None:
        return False
    if kind == IdKind.BUILTIN:
        return allow_builtin
    if kind == IdKind.GROUP:
        return allow_group
    if kind == IdKind.LOCAL:
        return allow_local
    return True


@dataclass(frozen=True, order=True)
class ModId:
    """
    Identifier of a mod or group, tagged with the kind of entity it refers to.

    Only the serialization boundary (snapshots, URLs) deals with the raw
    integer form. Everything else compares and routes on ``kind``.
    """

    value: int
    kind: IdKind = field(compare=False)

    def __post_init__(self) -> None:
        if classify_id(self.value) != self.kind:
            raise InvalidModId(f"{self.value} is not a valid {self.kind.value} ID")

    @classmethod
    def from_legacy(cls, value: int) -> "ModId":
        kind = classify_id(value)
        if kind is None:
            raise InvalidModId(f"{value} is not in any known ID range")
        return cls(value, kind)

    @classmethod
    def regular(cls, value: int) -> "ModId":
        return cls(value, IdKind.REGULAR)

    @classmethod
    def group(cls, value: int) -> "ModId":
        return cls(value, IdKind.GROUP)

    def to_legacy(self) -> int:
        return self.value

    @property
    def is_builtin(self) -> bool:
        return self.kind == IdKind.BUILTIN

    @property
    def is_group(self) -> bool:
        return self.kind == IdKind.GROUP

    @property
    def is_local(self) -> bool:
        return self.kind == IdKind.LOCAL

    @property
    def is_regular(self) -> bool:
        return self.kind == IdKind.REGULAR

    def __str__(self) -> str:
        return str(self.value)
