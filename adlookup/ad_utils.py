from __future__ import annotations

import re
from urllib.parse import urlsplit

DEFAULT_PORTS = {"ldap": 389, "ldaps": 636}

_DN_RE = re.compile(r"^\s*[A-Za-z][A-Za-z0-9-]*\s*=.+", re.S)


def domain_to_base_dn(domain: str) -> str:
    domain = (domain or "").strip().strip(".")
    if not domain or "." not in domain:
        return ""
    parts = [p for p in domain.split(".") if p]
    return ",".join([f"DC={p}" for p in parts])


def parse_ldap_url(url: str) -> tuple[str, str, int]:
    """Split an ldap:// or ldaps:// URL into (scheme, host, port).

    A bare host name is treated as ldap://host:389.
    """
    raw = (url or "").strip()
    if not raw:
        raise ValueError("empty LDAP URL")
    if "://" not in raw:
        raw = f"ldap://{raw}"
    parts = urlsplit(raw)
    scheme = (parts.scheme or "ldap").lower()
    if scheme not in DEFAULT_PORTS:
        raise ValueError(f"unsupported LDAP URL scheme: {scheme!r}")
    host = parts.hostname or ""
    if not host:
        raise ValueError(f"LDAP URL has no host: {url!r}")
    port = parts.port or DEFAULT_PORTS[scheme]
    return scheme, host, port


def build_ldap_url(scheme: str, host: str, port: int) -> str:
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{scheme}://{host}:{int(port)}"


def looks_like_dn(value: str) -> bool:
    """True for strings shaped like `CN=...,OU=...` rather than a login or name."""
    s = (value or "").strip()
    if "=" not in s or "@" in s.split("=", 1)[0]:
        return False
    return bool(_DN_RE.match(s)) and ("," in s or s.lower().startswith(("cn=", "ou=", "dc=")))
