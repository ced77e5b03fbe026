import pytest
from ldap3.core.exceptions import LDAPSocketReceiveError

from core import NotFoundError
from services.directory import OrganizationalUnitLookup, relative_ou_path, split_dn


@pytest.fixture
def lookup(ldap_connections):
    return OrganizationalUnitLookup(connection_factory=ldap_connections, base_dn="DC=contoso,DC=com")


def test_relative_ou_path():
    assert relative_ou_path("OU=Servers,OU=Corp,DC=contoso,DC=com") == "OU=Servers,OU=Corp"
    assert relative_ou_path("OU=Servers") == "OU=Servers"


def test_split_dn_honors_escaped_commas():
    assert split_dn(r"OU=Sales\, EMEA,DC=contoso,DC=com") == [r"OU=Sales\, EMEA", "DC=contoso", "DC=com"]


def test_membership_matches_relative_path(lookup):
    match = lookup.check_membership("Servers", "OU=Servers,OU=Corp")
    assert match.matches is True
    assert match.relative_path == "OU=Servers,OU=Corp"
    assert match.distinguished_name == "OU=Servers,OU=Corp,DC=contoso,DC=com"


def test_membership_ignores_case_and_domain(lookup):
    match = lookup.check_membership("Servers", "ou=servers, ou=corp, dc=contoso, dc=com")
    assert match.matches is True


def test_membership_mismatch(lookup):
    match = lookup.check_membership("Servers", "OU=Desktops,OU=Corp")
    assert match.matches is False


def test_missing_existing_value_does_not_match(lookup):
    assert lookup.check_membership("Servers", None).matches is False


def test_first_match_is_used(lookup):
    match = lookup.check_membership("Mail", "OU=Mail,OU=Servers,OU=Corp")
    assert match.matches is True


def test_not_found_raises(lookup, ldap_connections):
    with pytest.raises(NotFoundError, match="Archive"):
        lookup.check_membership("Archive", "OU=Archive")
    assert ldap_connections.created[-1].unbound is True


def test_search_filter_and_base(lookup, ldap_connections):
    lookup.find_ou("Servers")
    conn = ldap_connections.created[-1]
    assert conn.searches == [
        ("DC=contoso,DC=com", "(&(objectCategory=organizationalUnit)(name=Servers))"),
    ]
    assert conn.unbound is True


def test_search_errors_propagate_and_unbind(failing_ldap_connections):
    connections = failing_ldap_connections(LDAPSocketReceiveError("connection reset"))
    lookup = OrganizationalUnitLookup(connection_factory=connections, base_dn="DC=contoso,DC=com")

    with pytest.raises(LDAPSocketReceiveError):
        lookup.check_membership("Servers", "OU=Servers,OU=Corp")
    assert len(connections.created) == 1
    assert connections.created[0].unbound is True
