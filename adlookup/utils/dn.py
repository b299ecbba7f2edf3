from __future__ import annotations


def _split_first_rdn(dn: str) -> tuple[str, str]:
    """Split a DN at its first unescaped comma: (first_rdn, rest)."""
    first: list[str] = []
    esc = False
    for i, ch in enumerate(dn):
        if esc:
            first.append(ch)
            esc = False
            continue
        if ch == "\\":
            first.append(ch)
            esc = True
            continue
        if ch == ",":
            return "".join(first).strip(), dn[i + 1:].strip()
        first.append(ch)
    return "".join(first).strip(), ""


def dn_first_component_value(dn: str) -> str:
    """Return first RDN value from a DN (e.g. CN=WS-042,OU=Workstations,... -> WS-042)."""
    s = (dn or "").strip()
    if not s:
        return ""

    rdn, _ = _split_first_rdn(s)
    if "=" in rdn:
        _, val = rdn.split("=", 1)
        val = val.strip()
    else:
        val = rdn

    # Unescape common DN escapes
    val = (
        val.replace("\\,", ",")
        .replace("\\+", "+")
        .replace("\\=", "=")
        .replace('\\"', '"')
        .replace("\\\\", "\\")
    )
    return val.strip()


def parent_dn(dn: str) -> str:
    """DN of the containing object, "" for a top-level DN."""
    s = (dn or "").strip()
    if not s:
        return ""
    _, rest = _split_first_rdn(s)
    return rest
