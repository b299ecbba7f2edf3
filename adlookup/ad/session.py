"""Connection manager: one authenticated ldap3 connection per Session."""

from __future__ import annotations

import hashlib
import logging
import os
import ssl
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ldap3 import ALL, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException
from ldap3.core.results import RESULT_BUSY, RESULT_UNAVAILABLE

from ..errors import AuthenticationError, DirectoryConnectionError, SessionStateError
from .models import ADConfig, Credentials, SessionState

log = logging.getLogger(__name__)

# Bind result codes that mean "server cannot serve us" rather than "wrong password"
_TRANSPORT_BIND_CODES = {RESULT_BUSY, RESULT_UNAVAILABLE}


def _normalize_pem(pem: str) -> str:
    """Normalize PEM text (strip outer whitespace and normalize line endings)."""
    data = (pem or "").strip()
    return data.replace("\r\n", "\n").replace("\r", "\n")


def _ensure_ca_file(pem: str) -> str:
    """Materialize CA PEM into a stable file path.

    ldap3.Tls takes a ca_certs_file path. The file name carries a content
    hash so several processes can reuse the same file.
    """
    data = _normalize_pem(pem)
    if not data:
        return ""

    if "-----BEGIN CERTIFICATE-----" not in data or "-----END CERTIFICATE-----" not in data:
        raise ValueError("CA PEM does not look like a certificate (BEGIN/END CERTIFICATE block expected)")

    h = hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]
    path = os.path.join(tempfile.gettempdir(), f"adlookup_ca_{h}.pem")

    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            if f.read().strip() == data:
                return path

    with open(path, "w", encoding="utf-8") as f:
        f.write(data)
        f.write("\n")
    os.chmod(path, 0o600)
    return path


def build_server(cfg: ADConfig) -> Server:
    tls_kwargs: dict[str, Any] = {
        "validate": ssl.CERT_REQUIRED if cfg.tls_validate else ssl.CERT_NONE,
    }
    # Custom CA only matters when verification is enabled.
    ca_pem = _normalize_pem(cfg.ca_pem)
    if cfg.tls_validate and ca_pem:
        tls_kwargs["ca_certs_file"] = _ensure_ca_file(ca_pem)

    return Server(
        host=cfg.host,
        port=cfg.port,
        use_ssl=cfg.use_ssl,
        get_info=ALL,
        tls=Tls(**tls_kwargs),
        connect_timeout=cfg.connect_timeout_s,
    )


def unpack_result(out: Any, conn: Connection) -> tuple[bool, dict, list]:
    """Normalize the return value of an ldap3 operation.

    Thread-safe strategies return (status, result, response, request);
    the others return a bool and park result/response on the connection.
    """
    if isinstance(out, tuple):
        status, result, response = out[0], out[1], out[2]
    else:
        status, result, response = out, conn.result, conn.response
    return bool(status), dict(result or {}), list(response or [])


def _safe_unbind(conn: Optional[Connection]) -> None:
    if conn is None:
        return
    try:
        conn.unbind()
    except LDAPException:
        log.debug("unbind failed", exc_info=True)


class Session:
    """A single bound connection to a directory server.

    The base DN is fixed for the lifetime of the session; searches that
    need another base pass it per call.
    """

    def __init__(self, config: ADConfig, *, server: Optional[Server] = None) -> None:
        self.config = config
        self.server = server if server is not None else build_server(config)
        self.state = SessionState.UNAUTHENTICATED
        self._conn: Optional[Connection] = None
        self._lock = threading.RLock()
        self._closed = False

    def __repr__(self) -> str:
        return f"<Session url={self.config.url!r} base_dn={self.base_dn!r} state={self.state.value}>"

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def base_dn(self) -> str:
        return self.config.base_dn

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and self._conn is not None

    @property
    def connection(self) -> Connection:
        if self._closed:
            raise SessionStateError("session is closed")
        if not self.authenticated:
            raise SessionStateError(f"session is not authenticated (state={self.state.value})")
        return self._conn  # type: ignore[return-value]

    def _open(self, credentials: Credentials) -> Connection:
        cfg = self.config
        user = credentials.username or None
        conn = Connection(
            self.server,
            user=user,
            password=credentials.password if user else None,
            auto_bind=False,
            client_strategy=cfg.client_strategy,
            receive_timeout=cfg.receive_timeout_s,
            raise_exceptions=False,
            read_only=True,
        )
        try:
            conn.open()
            if cfg.starttls and not conn.start_tls():
                raise DirectoryConnectionError(f"StartTLS negotiation with {cfg.url} failed")
        except LDAPException as e:
            _safe_unbind(conn)
            raise DirectoryConnectionError(f"cannot reach {cfg.url}: {e}") from e
        except DirectoryConnectionError:
            _safe_unbind(conn)
            raise
        return conn

    def bind(self, credentials: Optional[Credentials] = None) -> "Session":
        """(Re)authenticate. On failure the state becomes FAILED and the transport is released.

        Credentials passed here replace the configured ones for later rebinds.
        """
        if self._closed:
            raise SessionStateError("session is closed")
        creds = credentials or self.config.credentials

        with self._lock:
            old, self._conn = self._conn, None
            _safe_unbind(old)
            self.state = SessionState.UNAUTHENTICATED

            if creds.username and not creds.password:
                # An empty password turns a simple bind into an unauthenticated one
                self.state = SessionState.FAILED
                raise AuthenticationError(f"password is required to bind as {creds.username!r}")

            try:
                conn = self._open(creds)
            except DirectoryConnectionError:
                self.state = SessionState.FAILED
                log.warning("Connection to %s failed", self.config.url)
                raise

            try:
                ok, result, _ = unpack_result(conn.bind(), conn)
            except LDAPException as e:
                self.state = SessionState.FAILED
                _safe_unbind(conn)
                raise DirectoryConnectionError(f"bind to {self.config.url} failed: {e}") from e

            if not ok:
                self.state = SessionState.FAILED
                _safe_unbind(conn)
                code = result.get("result")
                desc = result.get("description") or "unknown error"
                msg = result.get("message") or ""
                log.warning("Bind to %s as %s rejected: %s %s", self.config.url, creds.username or "<anonymous>", desc, msg)
                if code in _TRANSPORT_BIND_CODES:
                    raise DirectoryConnectionError(f"server {self.config.url} refused the bind: {desc}")
                raise AuthenticationError(f"authentication failed for {creds.username!r}: {desc}", code)

            self._conn = conn
            self.state = SessionState.AUTHENTICATED
            if credentials is not None:
                self.config = self.config.with_credentials(credentials)
            log.info("Bound to %s as %s", self.config.server_url, creds.username or "<anonymous>")
        return self

    def close(self) -> None:
        """Release the transport. Safe to call more than once."""
        with self._lock:
            conn, self._conn = self._conn, None
            _safe_unbind(conn)
            if not self._closed:
                log.debug("Session to %s closed", self.config.url)
            self._closed = True
            self.state = SessionState.UNAUTHENTICATED

    @contextmanager
    def locked(self) -> Iterator[Connection]:
        """Yield the connection, serialized when the ldap3 strategy is not thread safe."""
        conn = self.connection
        if getattr(conn.strategy, "thread_safe", False):
            yield conn
            return
        with self._lock:
            yield conn

    def verify_password(self, user: str, password: str) -> bool:
        """Check a user's password on a throwaway connection.

        The session's own binding is left alone. Returns False when the
        server rejects the credentials; transport failures raise.
        """
        if not user or not password:
            return False
        conn = self._open(Credentials(user, password))
        try:
            ok, result, _ = unpack_result(conn.bind(), conn)
        except LDAPException as e:
            raise DirectoryConnectionError(f"bind to {self.config.url} failed: {e}") from e
        finally:
            _safe_unbind(conn)
        if not ok and result.get("result") in _TRANSPORT_BIND_CODES:
            raise DirectoryConnectionError(f"server {self.config.url} refused the bind: {result.get('description')}")
        log.info("Password check for %s: %s", user, "ok" if ok else "rejected")
        return ok


def connect(config: ADConfig, *, server: Optional[Server] = None) -> Session:
    """Open and authenticate a Session.

    Raises DirectoryConnectionError when the server cannot be reached and
    AuthenticationError when it rejects the credentials.
    """
    return Session(config, server=server).bind()
