"""Map raw entries onto user / group / computer / OU records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

from ..utils.dn import dn_first_component_value, parent_dn
from .models import ADComputer, ADGroup, ADOrganizationalUnit, ADUser, Entry, str_list
from .utils import filetime_to_dt_str, uac_enabled


class ObjectKind(str, Enum):
    USER = "user"
    GROUP = "group"
    COMPUTER = "computer"
    ORGANIZATIONAL_UNIT = "organizationalUnit"
    OTHER = "other"


Record = Union[ADUser, ADGroup, ADComputer, ADOrganizationalUnit, Entry]


def classify(entry: Entry) -> ObjectKind:
    classes = set(entry.object_classes)
    # AD computers also carry the user class
    if "computer" in classes:
        return ObjectKind.COMPUTER
    if "group" in classes:
        return ObjectKind.GROUP
    if "organizationalunit" in classes:
        return ObjectKind.ORGANIZATIONAL_UNIT
    if "user" in classes or "inetorgperson" in classes:
        return ObjectKind.USER
    return ObjectKind.OTHER


def _text(entry: Entry, *names: str) -> str:
    for name in names:
        v = entry.first(name, "")
        if v:
            return str(v)
    return ""


def _name(entry: Entry, *names: str) -> str:
    return _text(entry, *names) or dn_first_component_value(entry.dn)


def _last_logon(entry: Entry) -> Optional[str]:
    return filetime_to_dt_str(entry.first("lastLogonTimestamp", None) or entry.first("lastLogon", None))


def to_user(entry: Entry) -> ADUser:
    sam = _text(entry, "sAMAccountName")
    return ADUser(
        dn=entry.dn,
        sam=sam,
        upn=_text(entry, "userPrincipalName"),
        display_name=_name(entry, "displayName", "cn", "name") or sam,
        mail=_text(entry, "mail"),
        member_of=str_list(entry.values("memberOf")),
        enabled=uac_enabled(entry.first("userAccountControl", None)),
        last_logon=_last_logon(entry),
        entry=entry,
    )


def to_group(entry: Entry) -> ADGroup:
    return ADGroup(
        dn=entry.dn,
        name=_name(entry, "cn", "name", "displayName", "sAMAccountName"),
        sam=_text(entry, "sAMAccountName"),
        description=_text(entry, "description"),
        members=str_list(entry.values("member")),
        member_of=str_list(entry.values("memberOf")),
        entry=entry,
    )


def to_computer(entry: Entry) -> ADComputer:
    return ADComputer(
        dn=entry.dn,
        name=_name(entry, "cn", "name"),
        dns_host_name=_text(entry, "dNSHostName"),
        operating_system=_text(entry, "operatingSystem"),
        enabled=uac_enabled(entry.first("userAccountControl", None)),
        last_logon=_last_logon(entry),
        entry=entry,
    )


def to_organizational_unit(entry: Entry) -> ADOrganizationalUnit:
    return ADOrganizationalUnit(
        dn=entry.dn,
        name=_name(entry, "ou", "name"),
        description=_text(entry, "description"),
        parent_dn=parent_dn(entry.dn),
        entry=entry,
    )


_MAPPERS = {
    ObjectKind.USER: to_user,
    ObjectKind.GROUP: to_group,
    ObjectKind.COMPUTER: to_computer,
    ObjectKind.ORGANIZATIONAL_UNIT: to_organizational_unit,
}


def map_entry(entry: Entry) -> Record:
    """Typed record for the entry, or the entry itself when its kind is OTHER."""
    mapper = _MAPPERS.get(classify(entry))
    return mapper(entry) if mapper else entry


def first_of(kind: ObjectKind, entries: Iterable[Entry]) -> Optional[Record]:
    """First entry of `kind`, mapped. Stops consuming `entries` at the match."""
    for entry in entries:
        if classify(entry) is kind:
            return map_entry(entry)
    return None


def all_of(kind: ObjectKind, entries: Iterable[Entry]) -> list:
    return [map_entry(e) for e in entries if classify(e) is kind]


@dataclass
class SearchResult:
    """Search results bucketed by object kind."""

    users: list[ADUser] = field(default_factory=list)
    groups: list[ADGroup] = field(default_factory=list)
    computers: list[ADComputer] = field(default_factory=list)
    organizational_units: list[ADOrganizationalUnit] = field(default_factory=list)
    other: list[Entry] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> "SearchResult":
        res = cls()
        for entry in entries:
            res.add(entry)
        return res

    def add(self, entry: Entry) -> None:
        self._bucket(classify(entry)).append(map_entry(entry))

    def _bucket(self, kind: ObjectKind) -> list:
        return {
            ObjectKind.USER: self.users,
            ObjectKind.GROUP: self.groups,
            ObjectKind.COMPUTER: self.computers,
            ObjectKind.ORGANIZATIONAL_UNIT: self.organizational_units,
            ObjectKind.OTHER: self.other,
        }[kind]

    def all(self, kind: ObjectKind) -> list:
        return list(self._bucket(kind))

    def first(self, kind: ObjectKind) -> Optional[Record]:
        bucket = self._bucket(kind)
        return bucket[0] if bucket else None

    def __len__(self) -> int:
        return (
            len(self.users)
            + len(self.groups)
            + len(self.computers)
            + len(self.organizational_units)
            + len(self.other)
        )

    def __bool__(self) -> bool:
        return len(self) > 0
