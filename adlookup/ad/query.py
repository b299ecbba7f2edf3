"""Query executor.

Searches never touch session state: base DN, scope and deadline are per
call. Results come back as a lazy generator that follows the simple paged
results cookie (RFC 2696) one page at a time.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Iterator, Mapping, Optional

from ldap3.core.exceptions import LDAPCommunicationError, LDAPException, LDAPInvalidFilterError
from ldap3.core.results import (
    RESULT_NO_SUCH_OBJECT,
    RESULT_SIZE_LIMIT_EXCEEDED,
    RESULT_SUCCESS,
    RESULT_TIME_LIMIT_EXCEEDED,
)

from ..errors import (
    DirectoryConnectionError,
    DirectoryError,
    MalformedFilterError,
    QueryError,
    QueryTimeoutError,
    SearchBaseNotFoundError,
    SizeLimitExceededError,
)
from .models import Entry, Query
from .session import Session, unpack_result

log = logging.getLogger(__name__)

PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"
# filterError is a client-side code in RFC 4511 but some servers send it back
RESULT_FILTER_ERROR = 87

_RESULT_ERRORS: dict[int, type[QueryError]] = {
    RESULT_SIZE_LIMIT_EXCEEDED: SizeLimitExceededError,
    RESULT_TIME_LIMIT_EXCEEDED: QueryTimeoutError,
    RESULT_NO_SUCH_OBJECT: SearchBaseNotFoundError,
    RESULT_FILTER_ERROR: MalformedFilterError,
}


def check_result(result: Mapping[str, Any], base_dn: str) -> None:
    """Raise the QueryError subclass matching a non-success result code."""
    code = result.get("result", RESULT_SUCCESS)
    if code is None or code == RESULT_SUCCESS:
        return
    desc = result.get("description") or "error"
    message = (result.get("message") or "").strip()
    text = f"search under {base_dn!r} failed: {desc}"
    if message:
        text += f" ({message})"
    raise _RESULT_ERRORS.get(code, QueryError)(text, code)


def next_cookie(result: Mapping[str, Any]) -> Optional[bytes]:
    controls = result.get("controls") or {}
    paged = controls.get(PAGED_RESULTS_OID) or {}
    value = paged.get("value") or {}
    return value.get("cookie") or None


def _time_limit(deadline: Optional[float], base_dn: str) -> int:
    """Seconds left before the deadline, rounded up for the server-side time limit (0 = none)."""
    if deadline is None:
        return 0
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise QueryTimeoutError(f"search under {base_dn!r} exceeded its deadline")
    return max(1, math.ceil(remaining))


def _run_search(session: Session, kwargs: dict[str, Any]) -> tuple[dict, list]:
    with session.locked() as conn:
        try:
            out = conn.search(**kwargs)
        except LDAPInvalidFilterError as e:
            raise MalformedFilterError(f"invalid filter {kwargs['search_filter']!r}: {e}") from e
        except LDAPCommunicationError as e:
            raise DirectoryConnectionError(f"connection to {session.url} lost during search: {e}") from e
        except LDAPException as e:
            raise QueryError(f"search under {kwargs['search_base']!r} failed: {e}") from e
        _, result, response = unpack_result(out, conn)
    return result, response


def _release_paged_search(session: Session, kwargs: dict[str, Any], cookie: bytes) -> None:
    """Tell the server to drop a paged result set the caller stopped reading."""
    release = dict(kwargs, paged_size=0, paged_cookie=cookie, time_limit=0)
    try:
        _run_search(session, release)
    except DirectoryError:
        log.debug("could not release paged search under %s", kwargs["search_base"], exc_info=True)


def search(
    session: Session,
    query: "str | Query | Mapping[str, Any]",
    *,
    page_size: Optional[int] = None,
    timeout_s: Optional[float] = None,
) -> Iterator[Entry]:
    """Yield the entries matching `query`.

    The base is `query.base_dn` when set, else the session's base DN.
    An unmatched filter yields nothing. `page_size=0` disables paging.
    Closing the generator early releases the server-side paged result set.
    """
    q = Query.coerce(query)
    base = q.base_dn or session.base_dn
    if not base:
        raise QueryError("no search base: set base_dn on the query or the session config")
    if not q.filter:
        raise MalformedFilterError("empty filter")

    if page_size is None:
        page_size = session.config.page_size
    size_limit = q.size_limit or session.config.size_limit
    deadline = time.monotonic() + timeout_s if timeout_s else None

    kwargs: dict[str, Any] = {
        "search_base": base,
        "search_filter": q.filter,
        "search_scope": q.scope.ldap3,
        "attributes": list(q.attributes),
        "size_limit": size_limit,
    }
    # cookie of a page the server still holds open for us
    cookie: Optional[bytes] = None
    pages = 0
    count = 0
    try:
        while True:
            kwargs["time_limit"] = _time_limit(deadline, base)
            if page_size > 0:
                kwargs["paged_size"] = page_size
                kwargs["paged_cookie"] = cookie
            cookie = None

            result, response = _run_search(session, kwargs)
            check_result(result, base)
            pages += 1
            if page_size > 0:
                cookie = next_cookie(result)

            for item in response:
                if item.get("type") != "searchResEntry":
                    continue
                count += 1
                yield Entry.from_attributes(item.get("dn", ""), item.get("attributes") or {})

            if not cookie:
                break
    finally:
        if cookie:
            _release_paged_search(session, kwargs, cookie)

    log.debug("search %s under %s (%s): %d entries in %d page(s)", q.filter, base, q.scope.value, count, pages)


def search_all(
    session: Session,
    query: "str | Query | Mapping[str, Any]",
    *,
    page_size: Optional[int] = None,
    timeout_s: Optional[float] = None,
) -> list[Entry]:
    return list(search(session, query, page_size=page_size, timeout_s=timeout_s))
