# Statecheck v1.0.0
"""
Organizational unit lookup against LDAP / Active Directory.

Finds an OU by name and tells whether a computer's existing OU value
points at it. The relative path of an OU is its distinguished name
without the DC= components, e.g.

    OU=Servers,OU=Corp,DC=contoso,DC=com -> OU=Servers,OU=Corp
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ldap3 import Server, Connection, ALL, SUBTREE
from ldap3.utils.conv import escape_filter_chars

from config import settings
from core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

OU_FILTER = "(&(objectCategory=organizationalUnit)(name={name}))"


@dataclass
class OuMatch:
    """Result of an OU membership check."""
    distinguished_name: str
    relative_path: str
    matches: bool

    def to_dict(self) -> dict:
        return {
            "distinguished_name": self.distinguished_name,
            "relative_path": self.relative_path,
            "matches": self.matches,
        }


def split_dn(distinguished_name: str) -> list[str]:
    """Split a DN into its RDNs, honoring escaped commas."""
    parts, current, escaped = [], [], False
    for char in distinguished_name:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == ",":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if current:
        parts.append("".join(current).strip())
    return [p for p in parts if p]


def relative_ou_path(distinguished_name: str) -> str:
    """Strip the domain (DC=) components from a DN."""
    return ",".join(
        rdn for rdn in split_dn(distinguished_name)
        if not rdn.upper().startswith("DC=")
    )


def _same_path(left: Optional[str], right: Optional[str]) -> bool:
    def normalize(value):
        return ",".join(rdn.casefold() for rdn in split_dn(value or ""))
    return normalize(left) == normalize(right)


def default_connection() -> Connection:
    """Connect to the configured directory with the service account, or anonymously."""
    if not settings.LDAP_SERVER:
        raise ValueError("LDAP_SERVER is not configured")

    server = Server(settings.LDAP_SERVER, port=settings.LDAP_PORT, use_ssl=settings.LDAP_USE_SSL, get_info=ALL)
    if settings.LDAP_BIND_DN and settings.LDAP_BIND_PASSWORD:
        return Connection(server, user=settings.LDAP_BIND_DN, password=settings.LDAP_BIND_PASSWORD, auto_bind=True)
    return Connection(server, auto_bind=True)


class OrganizationalUnitLookup:
    """Searches the directory for OUs by name."""

    def __init__(self, connection_factory: Optional[Callable[[], Connection]] = None,
                 base_dn: Optional[str] = None):
        self.connection_factory = connection_factory or default_connection
        self.base_dn = settings.LDAP_BASE_DN if base_dn is None else base_dn

    def find_ou(self, ou_name: str) -> str:
        """
        Distinguished name of the first OU named ou_name.

        Raises:
            NotFoundError: no OU carries that name
        """
        search_filter = OU_FILTER.format(name=escape_filter_chars(ou_name))

        conn = self.connection_factory()
        try:
            conn.search(self.base_dn, search_filter, search_scope=SUBTREE,
                        attributes=['distinguishedName', 'name'])
            if not conn.entries:
                raise NotFoundError(f"Organizational unit not found: {ou_name}")
            if len(conn.entries) > 1:
                logger.warning(f"{len(conn.entries)} OUs named {ou_name}; using {conn.entries[0].entry_dn}")
            return str(conn.entries[0].entry_dn)
        finally:
            conn.unbind()

    def check_membership(self, desired_ou: str, existing_ou: Optional[str]) -> OuMatch:
        """
        Compare the relative path of desired_ou with existing_ou.

        existing_ou may be a relative path or a full distinguished name;
        domain components are ignored on both sides.
        """
        dn = self.find_ou(desired_ou)
        relative_path = relative_ou_path(dn)
        matches = _same_path(relative_path, relative_ou_path(existing_ou or ""))

        logger.info(
            f"OU {desired_ou} resolves to {relative_path}; "
            f"existing value {existing_ou!r} {'matches' if matches else 'does not match'}"
        )
        return OuMatch(distinguished_name=dn, relative_path=relative_path, matches=matches)
