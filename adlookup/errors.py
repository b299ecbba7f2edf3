"""Exception hierarchy for directory operations.

Bind-time failures are split into transport problems and credential
rejections; search-time failures carry the LDAP result code when the
server sent one.
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for everything raised by adlookup."""


class DirectoryConnectionError(DirectoryError):
    """The server could not be reached or the transport broke."""


class AuthenticationError(DirectoryError):
    """The server rejected the bind credentials."""

    def __init__(self, message: str, result_code: int | None = None) -> None:
        super().__init__(message)
        self.result_code = result_code


class SessionStateError(DirectoryError):
    """Operation attempted on a closed or unauthenticated session."""


class QueryError(DirectoryError):
    def __init__(self, message: str, result_code: int | None = None) -> None:
        super().__init__(message)
        self.result_code = result_code


class MalformedFilterError(QueryError):
    pass


class SearchBaseNotFoundError(QueryError):
    pass


class SizeLimitExceededError(QueryError):
    pass


class QueryTimeoutError(QueryError):
    pass
