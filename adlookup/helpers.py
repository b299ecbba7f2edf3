"""Function-style API: bind once, then pass the session to each lookup.

    session = bind("ldaps://dc01.example.com", "svc-lookup", "secret", "DC=example,DC=com")
    with session:
        pc = find_computer(session, "WS-042")
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ldap3 import Server

from .ad.client import ADClient
from .ad.mapper import SearchResult
from .ad.models import ADComputer, ADConfig, ADGroup, ADOrganizationalUnit, ADUser, Query
from .ad.session import Session, connect


def bind(
    url: str,
    username: str,
    password: str,
    base_dn: str = "",
    *,
    server: Optional[Server] = None,
    **options: Any,
) -> Session:
    """Connect to `url` and authenticate.

    Extra keyword options are ADConfig fields (domain, starttls, page_size...).
    Raises DirectoryConnectionError or AuthenticationError.
    """
    cfg = ADConfig.from_url(url, username, password, base_dn, **options)
    return connect(cfg, server=server)


def find(session: Session, query: "str | Query | Mapping[str, Any]", *, timeout_s: Optional[float] = None) -> SearchResult:
    return ADClient(session).find(query, timeout_s=timeout_s)


def find_at(
    session: Session,
    query: "str | Query | Mapping[str, Any]",
    base_dn: str,
    *,
    timeout_s: Optional[float] = None,
) -> SearchResult:
    return ADClient(session).find_at(query, base_dn, timeout_s=timeout_s)


def find_many(
    session: Session,
    queries: Iterable["str | Query | Mapping[str, Any]"],
    *,
    timeout_s: Optional[float] = None,
) -> list[SearchResult]:
    return ADClient(session).find_many(queries, timeout_s=timeout_s)


def find_user(session: Session, username: str, *, timeout_s: Optional[float] = None) -> Optional[ADUser]:
    return ADClient(session).find_user(username, timeout_s=timeout_s)


def find_users(session: Session, base_dn: Optional[str] = None, *, timeout_s: Optional[float] = None) -> list[ADUser]:
    return ADClient(session).find_users(base_dn, timeout_s=timeout_s)


def find_group(session: Session, group: str, *, timeout_s: Optional[float] = None) -> Optional[ADGroup]:
    return ADClient(session).find_group(group, timeout_s=timeout_s)


def find_groups(session: Session, base_dn: Optional[str] = None, *, timeout_s: Optional[float] = None) -> list[ADGroup]:
    return ADClient(session).find_groups(base_dn, timeout_s=timeout_s)


def find_computer(session: Session, name: str, *, timeout_s: Optional[float] = None) -> Optional[ADComputer]:
    return ADClient(session).find_computer(name, timeout_s=timeout_s)


def find_computers_by_ou(session: Session, dn: str, *, timeout_s: Optional[float] = None) -> list[ADComputer]:
    return ADClient(session).find_computers_by_ou(dn, timeout_s=timeout_s)


def find_ou(session: Session, name: str, *, timeout_s: Optional[float] = None) -> Optional[ADOrganizationalUnit]:
    return ADClient(session).find_ou(name, timeout_s=timeout_s)


def find_ous(
    session: Session,
    base_dn: Optional[str] = None,
    *,
    timeout_s: Optional[float] = None,
) -> list[ADOrganizationalUnit]:
    return ADClient(session).find_ous(base_dn, timeout_s=timeout_s)


def authenticate(session: Session, username: str, password: str) -> bool:
    return ADClient(session).authenticate(username, password)
