from __future__ import annotations

import pytest
from ldap3 import MOCK_SYNC, NONE, Connection, Server

from adlookup import ADClient, ADConfig, connect

BASE_DN = "DC=example,DC=com"
SERVICE_DN = "CN=svc-lookup,OU=Service Accounts,DC=example,DC=com"
SERVICE_PASSWORD = "S3cret!pass"

STAFF_OU = "OU=Staff,DC=example,DC=com"
GROUPS_OU = "OU=Groups,DC=example,DC=com"
WORKSTATIONS_OU = "OU=Workstations,DC=example,DC=com"
SERVERS_OU = "OU=Servers,DC=example,DC=com"

JDOE_DN = f"CN=John Doe,{STAFF_OU}"
ASMITH_DN = f"CN=Anna Smith,{STAFF_OU}"
HELPDESK_DN = f"CN=Helpdesk,{GROUPS_OU}"
WS042_DN = f"CN=WS-042,{WORKSTATIONS_OU}"
SRV01_DN = f"CN=SRV-01,{SERVERS_OU}"

USER_CLASSES = ["top", "person", "organizationalPerson", "user"]
COMPUTER_CLASSES = ["top", "person", "organizationalPerson", "user", "computer"]
OU_CLASSES = ["top", "organizationalUnit"]

DIRECTORY = [
    (BASE_DN, {"objectClass": ["top", "domain", "domainDNS"], "dc": "example"}),
    ("OU=Service Accounts,DC=example,DC=com", {"objectClass": OU_CLASSES, "ou": "Service Accounts"}),
    (STAFF_OU, {"objectClass": OU_CLASSES, "ou": "Staff", "description": "People"}),
    (GROUPS_OU, {"objectClass": OU_CLASSES, "ou": "Groups"}),
    (WORKSTATIONS_OU, {"objectClass": OU_CLASSES, "ou": "Workstations"}),
    (SERVERS_OU, {"objectClass": OU_CLASSES, "ou": "Servers"}),
    (
        SERVICE_DN,
        {
            "objectClass": USER_CLASSES,
            "cn": "svc-lookup",
            "sAMAccountName": "svc-lookup",
            "userPassword": SERVICE_PASSWORD,
            "userAccountControl": "66048",
        },
    ),
    (
        JDOE_DN,
        {
            "objectClass": USER_CLASSES,
            "cn": "John Doe",
            "sAMAccountName": "jdoe",
            "userPrincipalName": "jdoe@example.com",
            "displayName": "John Doe",
            "mail": "john.doe@example.com",
            "memberOf": [HELPDESK_DN],
            "userAccountControl": "512",
            "lastLogonTimestamp": "133000000000000000",
            "userPassword": "hunter2!",
        },
    ),
    (
        ASMITH_DN,
        {
            "objectClass": USER_CLASSES,
            "cn": "Anna Smith",
            "sAMAccountName": "asmith",
            "userPrincipalName": "asmith@example.com",
            "userAccountControl": "514",
        },
    ),
    # A user whose cn collides with a workstation name
    (
        f"CN=WS-042,{STAFF_OU}",
        {
            "objectClass": USER_CLASSES,
            "cn": "WS-042",
            "sAMAccountName": "ws042-user",
        },
    ),
    (
        HELPDESK_DN,
        {
            "objectClass": ["top", "group"],
            "cn": "Helpdesk",
            "sAMAccountName": "Helpdesk",
            "description": "First line support",
            "member": [JDOE_DN],
        },
    ),
    # ... and a group with the same name
    (
        f"CN=WS-042,{GROUPS_OU}",
        {"objectClass": ["top", "group"], "cn": "WS-042", "sAMAccountName": "WS-042-admins"},
    ),
    (
        WS042_DN,
        {
            "objectClass": COMPUTER_CLASSES,
            "cn": "WS-042",
            "sAMAccountName": "WS-042$",
            "dNSHostName": "ws-042.example.com",
            "operatingSystem": "Windows 11 Enterprise",
            "userAccountControl": "4096",
        },
    ),
    (
        SRV01_DN,
        {
            "objectClass": COMPUTER_CLASSES,
            "cn": "SRV-01",
            "sAMAccountName": "SRV-01$",
            "dNSHostName": "srv-01.example.com",
            "operatingSystem": "Windows Server 2022",
            "userAccountControl": "4098",
        },
    ),
    (
        f"CN=Vendor Contact,{STAFF_OU}",
        {"objectClass": ["top", "person", "organizationalPerson", "contact"], "cn": "Vendor Contact"},
    ),
]


@pytest.fixture
def directory_server() -> Server:
    """An in-memory directory populated with a small AD-like tree."""
    server = Server("dc01.example.com", get_info=NONE)
    seed = Connection(server, user=SERVICE_DN, password=SERVICE_PASSWORD, client_strategy=MOCK_SYNC)
    for dn, attrs in DIRECTORY:
        seed.strategy.add_entry(dn, attrs)
    return server


@pytest.fixture
def config() -> ADConfig:
    return ADConfig(
        url="ldap://dc01.example.com",
        base_dn=BASE_DN,
        bind_username=SERVICE_DN,
        bind_password=SERVICE_PASSWORD,
        client_strategy=MOCK_SYNC,
    )


@pytest.fixture
def session(config, directory_server):
    s = connect(config, server=directory_server)
    yield s
    s.close()


@pytest.fixture
def client(session) -> ADClient:
    return ADClient(session)
