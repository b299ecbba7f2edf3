from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from ldap3 import BASE, LEVEL, SAFE_SYNC, SUBTREE
from ldap3.utils.ciDict import CaseInsensitiveDict

from ..ad_utils import build_ldap_url, domain_to_base_dn, looks_like_dn, parse_ldap_url
from ..utils.net import resolve_hostname_with_dns


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(default="", repr=False)


@dataclass
class ADConfig:
    url: str
    base_dn: str = ""
    bind_username: str = ""
    bind_password: str = field(default="", repr=False)
    domain: str = ""
    starttls: bool = False
    tls_validate: bool = False
    ca_pem: str = field(default="", repr=False)
    dns_server: str = ""
    connect_timeout_s: float = 5.0
    receive_timeout_s: float = 30.0
    page_size: int = 500
    size_limit: int = 0
    client_strategy: str = SAFE_SYNC
    _resolved_host: str = field(default="", init=False, repr=False)

    def __post_init__(self) -> None:
        self._scheme, self._url_host, self._port = parse_ldap_url(self.url)
        self.base_dn = (self.base_dn or "").strip() or domain_to_base_dn(self.domain)
        if self._scheme == "ldaps" and self.starttls:
            raise ValueError("StartTLS cannot be combined with an ldaps:// URL")

    @classmethod
    def from_url(cls, url: str, username: str, password: str, base_dn: str = "", **options: Any) -> "ADConfig":
        return cls(url=url, base_dn=base_dn, bind_username=username, bind_password=password, **options)

    @property
    def use_ssl(self) -> bool:
        return self._scheme == "ldaps"

    @property
    def port(self) -> int:
        return self._port

    @property
    def host(self) -> str:
        if self._resolved_host:
            return self._resolved_host
        # Resolve through the configured DNS server first, fall back to the URL host
        if self.dns_server:
            resolved_ip = resolve_hostname_with_dns(self._url_host, self.dns_server)
            if resolved_ip:
                self._resolved_host = resolved_ip
                return self._resolved_host
        self._resolved_host = self._url_host
        return self._resolved_host

    @property
    def server_url(self) -> str:
        return build_ldap_url(self._scheme, self.host, self.port)

    @property
    def bind_principal(self) -> str:
        u = (self.bind_username or "").strip()
        d = (self.domain or "").strip().strip(".")
        if not u:
            return ""
        if "@" in u or "\\" in u or looks_like_dn(u):
            return u
        return f"{u}@{d}" if d else u

    @property
    def credentials(self) -> Credentials:
        return Credentials(self.bind_principal, self.bind_password)

    def with_credentials(self, credentials: Credentials) -> "ADConfig":
        return replace(self, bind_username=credentials.username, bind_password=credentials.password)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class Scope(str, Enum):
    BASE = "base"
    ONE = "one"
    SUB = "sub"

    @property
    def ldap3(self) -> str:
        return {Scope.BASE: BASE, Scope.ONE: LEVEL, Scope.SUB: SUBTREE}[self]


_QUERY_KEY_ALIASES = {
    "baseDN": "base_dn",
    "basedn": "base_dn",
    "sizeLimit": "size_limit",
}


@dataclass(frozen=True)
class Query:
    filter: str
    base_dn: Optional[str] = None
    scope: Scope = Scope.SUB
    attributes: tuple[str, ...] = ("*",)
    size_limit: int = 0

    def __post_init__(self) -> None:
        flt = (self.filter or "").strip()
        if flt and not flt.startswith("("):
            flt = f"({flt})"
        object.__setattr__(self, "filter", flt)
        object.__setattr__(self, "scope", Scope(self.scope))
        object.__setattr__(self, "base_dn", (self.base_dn or "").strip() or None)
        if isinstance(self.attributes, str):
            object.__setattr__(self, "attributes", (self.attributes,))
        else:
            object.__setattr__(self, "attributes", tuple(self.attributes or ("*",)))
        if self.size_limit < 0:
            raise ValueError("size_limit must be >= 0")

    def at(self, base_dn: Optional[str]) -> "Query":
        """Copy of this query rooted at another base DN."""
        return replace(self, base_dn=base_dn)

    @classmethod
    def coerce(cls, query: "str | Query | Mapping[str, Any]") -> "Query":
        """Accept a filter string, a Query, or a mapping of Query fields."""
        if isinstance(query, Query):
            return query
        if isinstance(query, str):
            return cls(filter=query)
        if isinstance(query, Mapping):
            kwargs = {_QUERY_KEY_ALIASES.get(k, k): v for k, v in query.items()}
            return cls(**kwargs)
        raise TypeError(f"cannot build a Query from {type(query).__name__}")


@dataclass
class Entry:
    """One search result: DN plus attribute name -> list of values."""

    dn: str
    attributes: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)

    @classmethod
    def from_attributes(cls, dn: str, attributes: Mapping[str, Any]) -> "Entry":
        attrs = CaseInsensitiveDict()
        for name, value in (attributes or {}).items():
            values = _as_list(value)
            if values:
                attrs[name] = values
        return cls(dn=dn, attributes=attrs)

    def values(self, name: str) -> list:
        return list(self.attributes.get(name, []) or [])

    def first(self, name: str, default: Any = "") -> Any:
        vals = self.attributes.get(name) or []
        return vals[0] if vals else default

    def __contains__(self, name: str) -> bool:
        return name in self.attributes

    @property
    def object_classes(self) -> list[str]:
        return [str(c).lower() for c in self.values("objectClass")]

    def as_dict(self) -> dict[str, list]:
        return {k: list(v) for k, v in self.attributes.items()}


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [v for v in value if v is not None and v != ""]
    if value == "":
        return []
    return [value]


@dataclass
class ADUser:
    dn: str
    sam: str
    upn: str
    display_name: str
    mail: str
    member_of: List[str]
    enabled: Optional[bool] = None
    last_logon: Optional[str] = None
    entry: Optional[Entry] = field(default=None, repr=False, compare=False)


@dataclass
class ADGroup:
    dn: str
    name: str
    sam: str
    description: str
    members: List[str]
    member_of: List[str]
    entry: Optional[Entry] = field(default=None, repr=False, compare=False)


@dataclass
class ADComputer:
    dn: str
    name: str
    dns_host_name: str
    operating_system: str
    enabled: Optional[bool] = None
    last_logon: Optional[str] = None
    entry: Optional[Entry] = field(default=None, repr=False, compare=False)


@dataclass
class ADOrganizationalUnit:
    dn: str
    name: str
    description: str
    parent_dn: str
    entry: Optional[Entry] = field(default=None, repr=False, compare=False)


def str_list(values: Iterable[Any]) -> list[str]:
    return [str(v) for v in values if v is not None and str(v) != ""]
