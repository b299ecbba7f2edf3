from __future__ import annotations

from adlookup import ADComputer, ADGroup, ADOrganizationalUnit, ADUser, Entry, ObjectKind, SearchResult
from adlookup.ad.mapper import all_of, classify, first_of, map_entry


def make(dn: str, classes: list[str], **attrs) -> Entry:
    return Entry.from_attributes(dn, {"objectClass": classes, **attrs})


USER = make(
    "CN=John Doe,OU=Staff,DC=example,DC=com",
    ["top", "person", "organizationalPerson", "user"],
    sAMAccountName="jdoe",
    userPrincipalName="jdoe@example.com",
    displayName="John Doe",
    memberOf=["CN=Helpdesk,OU=Groups,DC=example,DC=com"],
    userAccountControl=512,
    lastLogonTimestamp="133000000000000000",
)
COMPUTER = make(
    "CN=WS-042,OU=Workstations,DC=example,DC=com",
    ["top", "person", "organizationalPerson", "user", "computer"],
    cn="WS-042",
    dNSHostName="ws-042.example.com",
    userAccountControl="4098",
)
GROUP = make("CN=Helpdesk,OU=Groups,DC=example,DC=com", ["top", "group"], cn="Helpdesk", member=["CN=John Doe,OU=Staff,DC=example,DC=com"])
OU = make("OU=Staff,DC=example,DC=com", ["top", "organizationalUnit"], ou="Staff")
CONTACT = make("CN=Vendor,OU=Staff,DC=example,DC=com", ["top", "person", "contact"])


def test_classify():
    assert classify(USER) is ObjectKind.USER
    assert classify(COMPUTER) is ObjectKind.COMPUTER
    assert classify(GROUP) is ObjectKind.GROUP
    assert classify(OU) is ObjectKind.ORGANIZATIONAL_UNIT
    assert classify(CONTACT) is ObjectKind.OTHER


def test_classify_ignores_object_class_case():
    e = make("CN=x,DC=example,DC=com", ["TOP", "OrganizationalUnit"])
    assert classify(e) is ObjectKind.ORGANIZATIONAL_UNIT


def test_map_user():
    user = map_entry(USER)
    assert isinstance(user, ADUser)
    assert user.sam == "jdoe"
    assert user.upn == "jdoe@example.com"
    assert user.display_name == "John Doe"
    assert user.member_of == ["CN=Helpdesk,OU=Groups,DC=example,DC=com"]
    assert user.enabled is True
    assert user.last_logon == "2022-06-18T04:26:40+00:00"
    assert user.entry is USER


def test_map_computer_reads_disabled_flag():
    pc = map_entry(COMPUTER)
    assert isinstance(pc, ADComputer)
    assert pc.name == "WS-042"
    assert pc.dns_host_name == "ws-042.example.com"
    assert pc.enabled is False


def test_map_group_and_ou():
    group = map_entry(GROUP)
    assert isinstance(group, ADGroup)
    assert group.members == ["CN=John Doe,OU=Staff,DC=example,DC=com"]

    ou = map_entry(OU)
    assert isinstance(ou, ADOrganizationalUnit)
    assert ou.name == "Staff"
    assert ou.parent_dn == "DC=example,DC=com"


def test_name_falls_back_to_rdn():
    ou = map_entry(make("OU=Remote Sites,DC=example,DC=com", ["organizationalUnit"]))
    assert ou.name == "Remote Sites"


def test_other_entries_are_returned_as_is():
    assert map_entry(CONTACT) is CONTACT


def test_first_of_stops_at_first_match():
    consumed = []

    def entries():
        for e in (GROUP, COMPUTER, USER, OU):
            consumed.append(e)
            yield e

    pc = first_of(ObjectKind.COMPUTER, entries())
    assert isinstance(pc, ADComputer)
    assert consumed == [GROUP, COMPUTER]
    assert first_of(ObjectKind.USER, [GROUP, OU]) is None


def test_all_of():
    assert [u.dn for u in all_of(ObjectKind.USER, [USER, COMPUTER, USER])] == [USER.dn, USER.dn]
    assert all_of(ObjectKind.GROUP, []) == []


def test_search_result_buckets():
    res = SearchResult.from_entries([USER, COMPUTER, GROUP, OU, CONTACT])
    assert len(res) == 5
    assert [u.sam for u in res.users] == ["jdoe"]
    assert res.first(ObjectKind.COMPUTER).name == "WS-042"
    assert res.all(ObjectKind.ORGANIZATIONAL_UNIT)[0].name == "Staff"
    assert res.other == [CONTACT]
    assert not SearchResult()
