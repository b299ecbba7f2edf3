"""Active Directory (LDAP) client core.

- Session / connect: connection manager
- search: query executor
- classify / map_entry / SearchResult: result mapper
- ADClient: lookups by user, group, computer and OU
"""

from .client import ADClient
from .mapper import ObjectKind, SearchResult, all_of, classify, first_of, map_entry
from .models import (
    ADComputer,
    ADConfig,
    ADGroup,
    ADOrganizationalUnit,
    ADUser,
    Credentials,
    Entry,
    Query,
    Scope,
    SessionState,
)
from .query import search, search_all
from .session import Session, connect

__all__ = [
    "ADClient",
    "ADComputer",
    "ADConfig",
    "ADGroup",
    "ADOrganizationalUnit",
    "ADUser",
    "Credentials",
    "Entry",
    "ObjectKind",
    "Query",
    "Scope",
    "SearchResult",
    "Session",
    "SessionState",
    "all_of",
    "classify",
    "connect",
    "first_of",
    "map_entry",
    "search",
    "search_all",
]
