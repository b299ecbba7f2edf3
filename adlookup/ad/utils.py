from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# userAccountControl flags
UAC_ACCOUNTDISABLE = 0x0002

_FILTER_ESCAPES = {
    "\\": "\\5c",
    "*": "\\2a",
    "(": "\\28",
    ")": "\\29",
    "\x00": "\\00",
}


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    return "".join(_FILTER_ESCAPES.get(ch, ch) for ch in value)


def filetime_to_dt_str(v: Any) -> str | None:
    """Convert Windows FILETIME (100ns since 1601-01-01) to ISO datetime string (UTC)."""
    if isinstance(v, datetime):
        # ldap3 already decodes FILETIME attributes when the schema is known
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v.year <= 1601:
            return None
        return v.astimezone(timezone.utc).isoformat(timespec="seconds")
    try:
        n = int(v)
    except (TypeError, ValueError):
        return None
    if n <= 0:
        return None
    seconds = (n / 10_000_000) - 11_644_473_600
    if seconds <= 0:
        return None
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return dt.isoformat(timespec="seconds")


def uac_enabled(v: Any) -> bool | None:
    """Decode the ACCOUNTDISABLE bit; None when the attribute is missing or garbage."""
    if v is None or v == "":
        return None
    try:
        flags = int(v)
    except (TypeError, ValueError):
        return None
    return not (flags & UAC_ACCOUNTDISABLE)
