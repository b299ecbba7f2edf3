from __future__ import annotations

import ipaddress
import logging

import dns.exception
import dns.resolver

log = logging.getLogger(__name__)


def looks_like_ip(s: str) -> bool:
    try:
        ipaddress.ip_address((s or "").strip())
        return True
    except ValueError:
        return False


def resolve_hostname_with_dns(hostname: str, dns_server: str, timeout_s: float = 5.0) -> str | None:
    """Resolve hostname using a specific DNS server.

    Returns the first A record, or None when the name does not resolve.
    """
    if not dns_server or not hostname:
        return None
    if looks_like_ip(hostname):
        return hostname

    resolver = dns.resolver.Resolver(configure=False)
    resolver.nameservers = [dns_server]
    resolver.timeout = float(timeout_s)
    resolver.lifetime = float(timeout_s)

    try:
        answers = resolver.resolve(hostname, "A")
        if answers:
            return str(answers[0])
    except dns.resolver.NXDOMAIN:
        log.warning("DNS: hostname %r not found on %s", hostname, dns_server)
    except dns.resolver.NoAnswer:
        log.warning("DNS: %s returned no A record for %r", dns_server, hostname)
    except dns.resolver.NoNameservers:
        log.warning("DNS: nameserver %s failed to answer for %r", dns_server, hostname)
    except dns.exception.Timeout:
        log.warning("DNS: timeout querying %s for %r", dns_server, hostname)

    return None
