"""Data classes for members and the family-tree structures built from them."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional, Union

GHOST_STATUS = "Not Registered"

# Record keys accepted for the name-reference columns, in addition to the
# snake_case field names.
_FIELD_ALIASES = {
    "spouseName": "spouse_name",
    "fathersName": "fathers_name",
    "mothersName": "mothers_name",
    "currentStatus": "current_status",
    "profilePhoto": "profile_photo",
}


@dataclass
class Member:
    id: str
    name: str
    dob: Optional[str] = None
    anniversary: Optional[str] = None
    spouse_name: Optional[str] = None
    fathers_name: Optional[str] = None
    mothers_name: Optional[str] = None
    # Opaque payload, carried through unchanged.
    email: Optional[str] = None
    phone: Optional[str] = None
    qualification: Optional[str] = None
    current_status: Optional[str] = None
    profile_photo: Optional[str] = None
    linkedin: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    timezone: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    is_ghost = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Member":
        """Build a member from a database row / JSON object.

        Unknown keys are kept in ``extra``; date values are stored as ISO strings.
        """

        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for raw_key, value in record.items():
            key = _FIELD_ALIASES.get(raw_key, raw_key)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value
        for key in ("id", "name"):
            v = kwargs.get(key)
            kwargs[key] = "" if v is None else str(v)
        return cls(**kwargs, extra=extra)


@dataclass(eq=False)
class GhostMember:
    """Stand-in for a name that is referenced but matches no registered member.

    Lives only for one tree build. Identity matters: every reference to the same
    normalized name within a build shares one instance.
    """

    id: str
    name: str
    current_status: str = GHOST_STATUS

    is_ghost = True


Person = Union[Member, GhostMember]


@dataclass(frozen=True)
class ParentSlot:
    """One occupant position of a couple. The two slots of a couple are symmetric."""

    member: Person
    is_ghost: bool = False


@dataclass
class CoupleUnit:
    key: str
    first: Optional[ParentSlot] = None
    second: Optional[ParentSlot] = None
    children: list[Member] = field(default_factory=list)

    def slots(self) -> list[ParentSlot]:
        return [s for s in (self.first, self.second) if s is not None]

    def real_occupants(self) -> list[Member]:
        return [s.member for s in self.slots() if not s.is_ghost]

    def add_child(self, child: Member) -> None:
        if any(c.id == child.id for c in self.children):
            return
        self.children.append(child)


@dataclass
class TreeNode:
    couple_key: str
    first: Optional[ParentSlot] = None
    second: Optional[ParentSlot] = None
    children: list["TreeNode"] = field(default_factory=list)

    # Renderer-facing names for the two slots.
    @property
    def father(self) -> Optional[ParentSlot]:
        return self.first

    @property
    def mother(self) -> Optional[ParentSlot]:
        return self.second

    def slots(self) -> list[ParentSlot]:
        return [s for s in (self.first, self.second) if s is not None]

    @property
    def is_terminal(self) -> bool:
        return not self.children
