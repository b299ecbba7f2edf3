from __future__ import annotations

import concurrent.futures
import time
from datetime import datetime, timezone

import pytest

from adlookup.ad.utils import escape_ldap_filter_value, filetime_to_dt_str, uac_enabled
from adlookup.ad_utils import build_ldap_url, domain_to_base_dn, looks_like_dn, parse_ldap_url
from adlookup.utils.dn import dn_first_component_value, parent_dn
from adlookup.utils.net import looks_like_ip, resolve_hostname_with_dns
from adlookup.utils.timeout import run_with_timeout


def test_escape_ldap_filter_value():
    assert escape_ldap_filter_value("plain") == "plain"
    assert escape_ldap_filter_value("a*(b)\\c\x00") == "a\\2a\\28b\\29\\5cc\\00"


def test_filetime_to_dt_str():
    assert filetime_to_dt_str("116444736000000000") is None  # exactly the unix epoch
    assert filetime_to_dt_str(116444736010000000) == "1970-01-01T00:00:01+00:00"
    assert filetime_to_dt_str("0") is None
    assert filetime_to_dt_str("garbage") is None
    assert filetime_to_dt_str(None) is None


def test_filetime_accepts_decoded_datetimes():
    dt = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert filetime_to_dt_str(dt) == "2024-03-01T12:00:00+00:00"
    assert filetime_to_dt_str(datetime(1601, 1, 1, tzinfo=timezone.utc)) is None


def test_uac_enabled():
    assert uac_enabled("512") is True
    assert uac_enabled(514) is False
    assert uac_enabled(None) is None
    assert uac_enabled("x") is None


def test_domain_to_base_dn():
    assert domain_to_base_dn("corp.example.com") == "DC=corp,DC=example,DC=com"
    assert domain_to_base_dn("example.com.") == "DC=example,DC=com"
    assert domain_to_base_dn("localhost") == ""


@pytest.mark.parametrize(
    "url, expected",
    [
        ("ldap://dc01.example.com", ("ldap", "dc01.example.com", 389)),
        ("ldaps://dc01.example.com", ("ldaps", "dc01.example.com", 636)),
        ("LDAPS://10.0.0.5:3269", ("ldaps", "10.0.0.5", 3269)),
        ("dc01", ("ldap", "dc01", 389)),
    ],
)
def test_parse_ldap_url(url, expected):
    assert parse_ldap_url(url) == expected


@pytest.mark.parametrize("url", ["", "http://dc01", "ldap://"])
def test_parse_ldap_url_rejects(url):
    with pytest.raises(ValueError):
        parse_ldap_url(url)


def test_build_ldap_url():
    assert build_ldap_url("ldaps", "dc01", 636) == "ldaps://dc01:636"
    assert build_ldap_url("ldap", "::1", 389) == "ldap://[::1]:389"


def test_looks_like_dn():
    assert looks_like_dn("CN=John Doe,OU=Staff,DC=example,DC=com")
    assert looks_like_dn("cn=admin")
    assert not looks_like_dn("jdoe")
    assert not looks_like_dn("jdoe@example.com")
    assert not looks_like_dn("")


def test_dn_helpers():
    assert dn_first_component_value("CN=WS-042,OU=Workstations,DC=example,DC=com") == "WS-042"
    assert dn_first_component_value("CN=Doe\\, John,OU=Staff,DC=example,DC=com") == "Doe, John"
    assert dn_first_component_value("") == ""
    assert parent_dn("CN=Doe\\, John,OU=Staff,DC=example,DC=com") == "OU=Staff,DC=example,DC=com"
    assert parent_dn("DC=com") == ""


def test_resolve_hostname_with_dns_short_circuits():
    assert resolve_hostname_with_dns("dc01.example.com", "") is None
    assert resolve_hostname_with_dns("10.1.2.3", "10.0.0.1") == "10.1.2.3"
    assert looks_like_ip("::1")
    assert not looks_like_ip("dc01")


def test_run_with_timeout():
    assert run_with_timeout(lambda: 42, None) == 42
    assert run_with_timeout(lambda: 42, 0) == 42
    assert run_with_timeout(lambda: 42, 1.0) == 42
    with pytest.raises(concurrent.futures.TimeoutError):
        run_with_timeout(lambda: time.sleep(0.5), 0.05)


def test_zero_timeout_means_no_deadline():
    def slow():
        time.sleep(0.05)
        return "done"

    assert run_with_timeout(slow, 0) == "done"
