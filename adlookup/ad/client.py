from __future__ import annotations

import concurrent.futures
import logging
from contextlib import closing
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, TypeVar

from ldap3 import Server

from ..ad_utils import looks_like_dn
from ..errors import QueryTimeoutError, SearchBaseNotFoundError
from ..utils.timeout import run_with_timeout
from .mapper import ObjectKind, SearchResult, all_of, first_of
from .models import ADComputer, ADConfig, ADGroup, ADOrganizationalUnit, ADUser, Entry, Query, Scope
from .query import search
from .session import Session, connect
from .utils import escape_ldap_filter_value

log = logging.getLogger(__name__)

T = TypeVar("T")

USER_FILTER = "(&(objectClass=user)(!(objectClass=computer)))"
GROUP_FILTER = "(objectClass=group)"
COMPUTER_FILTER = "(objectClass=computer)"
OU_FILTER = "(objectClass=organizationalUnit)"


def user_filter(login: str) -> str:
    """Match a user by sAMAccountName or userPrincipalName.

    `DOMAIN\\login` is reduced to its login part.
    """
    login = (login or "").strip()
    if "\\" in login and "@" not in login:
        login = login.split("\\", 1)[1]
    v = escape_ldap_filter_value(login)
    return f"(&{USER_FILTER}(|(sAMAccountName={v})(userPrincipalName={v})))"


def group_filter(name: str) -> str:
    v = escape_ldap_filter_value((name or "").strip())
    return f"(&{GROUP_FILTER}(|(cn={v})(sAMAccountName={v})))"


def computer_filter(name: str) -> str:
    name = (name or "").strip()
    v = escape_ldap_filter_value(name)
    if name.endswith("$"):
        return f"(&{COMPUTER_FILTER}(sAMAccountName={v}))"
    return f"(&{COMPUTER_FILTER}(cn={v}))"


def ou_filter(name: str) -> str:
    v = escape_ldap_filter_value((name or "").strip())
    return f"(&{OU_FILTER}(ou={v}))"


class ADClient:
    """Directory lookups over one Session.

    Every method takes its base DN as an argument; nothing here changes the
    session. Single-object lookups return None when nothing matches,
    collection lookups return an empty list. Errors propagate.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @classmethod
    def connect(cls, cfg: ADConfig, *, server: Optional[Server] = None) -> "ADClient":
        return cls(connect(cfg, server=server))

    def __enter__(self) -> "ADClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    @property
    def base_dn(self) -> str:
        return self.session.base_dn

    def _run(self, fn: Callable[[], T], timeout_s: Optional[float]) -> T:
        try:
            return run_with_timeout(fn, timeout_s)
        except concurrent.futures.TimeoutError as e:
            raise QueryTimeoutError(f"directory call did not finish within {timeout_s}s") from e

    def _entries(self, query: Query, timeout_s: Optional[float]) -> Iterator[Entry]:
        return search(self.session, query, timeout_s=timeout_s)

    def _first(self, kind: ObjectKind, query: Query, timeout_s: Optional[float]) -> Any:
        def run() -> Any:
            with closing(self._entries(query, timeout_s)) as entries:
                return first_of(kind, entries)

        return self._run(run, timeout_s)

    def _all(self, kind: ObjectKind, query: Query, timeout_s: Optional[float]) -> list:
        return self._run(lambda: all_of(kind, self._entries(query, timeout_s)), timeout_s)

    def _first_at_dn(self, kind: ObjectKind, dn: str, flt: str, timeout_s: Optional[float]) -> Any:
        """Read one object by DN; a DN that does not exist is a miss, not an error."""
        try:
            return self._first(kind, Query(flt, base_dn=dn, scope=Scope.BASE), timeout_s)
        except SearchBaseNotFoundError:
            return None

    def search(self, query: "str | Query | Mapping[str, Any]", *, timeout_s: Optional[float] = None) -> list[Entry]:
        q = Query.coerce(query)
        return self._run(lambda: list(self._entries(q, timeout_s)), timeout_s)

    def find(self, query: "str | Query | Mapping[str, Any]", *, timeout_s: Optional[float] = None) -> SearchResult:
        """Run a query and bucket the results by object kind."""
        q = Query.coerce(query)
        return self._run(lambda: SearchResult.from_entries(self._entries(q, timeout_s)), timeout_s)

    def find_at(
        self,
        query: "str | Query | Mapping[str, Any]",
        base_dn: str,
        *,
        timeout_s: Optional[float] = None,
    ) -> SearchResult:
        """Same as find, rooted at `base_dn` for this call only."""
        return self.find(Query.coerce(query).at(base_dn), timeout_s=timeout_s)

    def find_user(self, username: str, *, timeout_s: Optional[float] = None) -> Optional[ADUser]:
        """Look a user up by sAMAccountName, userPrincipalName or DN."""
        username = (username or "").strip()
        if not username:
            return None
        if looks_like_dn(username):
            return self._first_at_dn(ObjectKind.USER, username, USER_FILTER, timeout_s)
        return self._first(ObjectKind.USER, Query(user_filter(username)), timeout_s)

    def find_users(self, base_dn: Optional[str] = None, *, timeout_s: Optional[float] = None) -> list[ADUser]:
        return self._all(ObjectKind.USER, Query(USER_FILTER, base_dn=base_dn), timeout_s)

    def find_group(self, group: str, *, timeout_s: Optional[float] = None) -> Optional[ADGroup]:
        """Look a group up by cn, sAMAccountName or DN."""
        group = (group or "").strip()
        if not group:
            return None
        if looks_like_dn(group):
            return self._first_at_dn(ObjectKind.GROUP, group, GROUP_FILTER, timeout_s)
        return self._first(ObjectKind.GROUP, Query(group_filter(group)), timeout_s)

    def find_groups(self, base_dn: Optional[str] = None, *, timeout_s: Optional[float] = None) -> list[ADGroup]:
        return self._all(ObjectKind.GROUP, Query(GROUP_FILTER, base_dn=base_dn), timeout_s)

    def find_computer(self, name: str, *, timeout_s: Optional[float] = None) -> Optional[ADComputer]:
        """Find a computer by cn (or sAMAccountName when it ends with `$`).

        Only computer objects match; a user or group with the same name is
        never returned.
        """
        name = (name or "").strip()
        if not name:
            return None
        return self._first(ObjectKind.COMPUTER, Query(computer_filter(name)), timeout_s)

    def find_computers_by_ou(self, ou_dn: str, *, timeout_s: Optional[float] = None) -> list[ADComputer]:
        return self._all(ObjectKind.COMPUTER, Query(COMPUTER_FILTER, base_dn=ou_dn), timeout_s)

    def find_ou(self, name: str, *, timeout_s: Optional[float] = None) -> Optional[ADOrganizationalUnit]:
        name = (name or "").strip()
        if not name:
            return None
        return self._first(ObjectKind.ORGANIZATIONAL_UNIT, Query(ou_filter(name)), timeout_s)

    def find_ous(self, base_dn: Optional[str] = None, *, timeout_s: Optional[float] = None) -> list[ADOrganizationalUnit]:
        return self._all(ObjectKind.ORGANIZATIONAL_UNIT, Query(OU_FILTER, base_dn=base_dn), timeout_s)

    def find_many(
        self,
        queries: Iterable["str | Query | Mapping[str, Any]"],
        *,
        timeout_s: Optional[float] = None,
        max_workers: int = 8,
    ) -> list[SearchResult]:
        """Run several queries in parallel on this session.

        Results keep the order of `queries`. The first failing query's
        error is raised once all workers are done.
        """
        qs = [Query.coerce(q) for q in queries]
        if not qs:
            return []
        results: list[Optional[SearchResult]] = [None] * len(qs)
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, min(max_workers, len(qs))),
            thread_name_prefix="adlookup-find",
        ) as ex:
            futs = {ex.submit(self.find, q, timeout_s=timeout_s): i for i, q in enumerate(qs)}
            for fut in concurrent.futures.as_completed(futs):
                results[futs[fut]] = fut.result()
        return results  # type: ignore[return-value]

    def authenticate(self, username: str, password: str, *, timeout_s: Optional[float] = None) -> bool:
        """Check a user's password.

        A bare login is resolved to the user's DN first; unknown users are
        rejected without contacting the server a second time.
        """
        username = (username or "").strip()
        if not username or not password:
            return False
        principal = username
        if not looks_like_dn(username) and "@" not in username:
            user = self.find_user(username, timeout_s=timeout_s)
            if user is None:
                log.info("Password check for unknown user %s", username)
                return False
            principal = user.dn
        return self._run(lambda: self.session.verify_password(principal, password), timeout_s)
