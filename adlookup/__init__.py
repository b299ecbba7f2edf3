"""Active Directory lookups on top of ldap3."""

from .ad import (
    ADClient,
    ADComputer,
    ADConfig,
    ADGroup,
    ADOrganizationalUnit,
    ADUser,
    Credentials,
    Entry,
    ObjectKind,
    Query,
    Scope,
    SearchResult,
    Session,
    SessionState,
    connect,
    search,
)
from .errors import (
    AuthenticationError,
    DirectoryConnectionError,
    DirectoryError,
    MalformedFilterError,
    QueryError,
    QueryTimeoutError,
    SearchBaseNotFoundError,
    SessionStateError,
    SizeLimitExceededError,
)
from .helpers import (
    authenticate,
    bind,
    find,
    find_at,
    find_computer,
    find_computers_by_ou,
    find_group,
    find_groups,
    find_many,
    find_ou,
    find_ous,
    find_user,
    find_users,
)

__version__ = "0.1.0"

__all__ = [
    "ADClient",
    "ADComputer",
    "ADConfig",
    "ADGroup",
    "ADOrganizationalUnit",
    "ADUser",
    "AuthenticationError",
    "Credentials",
    "DirectoryConnectionError",
    "DirectoryError",
    "Entry",
    "MalformedFilterError",
    "ObjectKind",
    "Query",
    "QueryError",
    "QueryTimeoutError",
    "Scope",
    "SearchBaseNotFoundError",
    "SearchResult",
    "Session",
    "SessionState",
    "SessionStateError",
    "SizeLimitExceededError",
    "authenticate",
    "bind",
    "connect",
    "find",
    "find_at",
    "find_computer",
    "find_computers_by_ou",
    "find_group",
    "find_groups",
    "find_many",
    "find_ou",
    "find_ous",
    "find_user",
    "find_users",
    "search",
]
