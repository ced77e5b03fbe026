# Statecheck v1.0.0
"""
Trust-zone registry entries for network servers.

A server is trusted for UNC access when both the escalated
(EscDomains, used under Enhanced Security Configuration) and the normal
(Domains) zone maps carry a subkey for it with the "file" flag set.
"""
import logging
from typing import Optional

from config import settings
from services.registry import RegistryStore, get_registry, join_key

logger = logging.getLogger(__name__)

ESCALATED_BRANCH = "EscDomains"
NORMAL_BRANCH = "Domains"


class TrustZoneStore:
    """Adds, removes and tests trust-zone entries for server names."""

    def __init__(
        self,
        registry: Optional[RegistryStore] = None,
        root: Optional[str] = None,
        flag_name: Optional[str] = None,
        flag_value: Optional[int] = None
    ):
        self.registry = registry or get_registry()
        self.root = root or settings.TRUST_ZONE_ROOT
        self.flag_name = flag_name or settings.TRUST_ZONE_FLAG_NAME
        self.flag_value = settings.TRUST_ZONE_FLAG_VALUE if flag_value is None else flag_value

    def zone_keys(self, server_name: str) -> list[str]:
        """Escalated and normal key paths for server_name, in that order."""
        if not server_name or not server_name.strip():
            raise ValueError("Server name must not be empty")
        name = server_name.strip()
        return [
            join_key(self.root, ESCALATED_BRANCH, name),
            join_key(self.root, NORMAL_BRANCH, name),
        ]

    def add_server(self, server_name: str) -> bool:
        """
        Ensure both zone keys exist with the flag set.

        Returns:
            True if anything was written
        """
        changed = False
        for key in self.zone_keys(server_name):
            if not self.registry.key_exists(key):
                self.registry.create_key(key)
                logger.info(f"Created trust-zone key {key}")
                changed = True

            if self.registry.get_value(key, self.flag_name) != self.flag_value:
                self.registry.set_dword(key, self.flag_name, self.flag_value)
                logger.info(f"Set {self.flag_name}={self.flag_value} on {key}")
                changed = True

        if not changed:
            logger.debug(f"{server_name} is already in the trust zone")
        return changed

    def remove_server(self, server_name: str) -> bool:
        """
        Remove both zone keys. Missing keys are not an error.

        Returns:
            True if any key was deleted
        """
        removed = False
        for key in self.zone_keys(server_name):
            if self.registry.key_exists(key) and self.registry.delete_key(key):
                logger.info(f"Removed trust-zone key {key}")
                removed = True
        return removed

    def is_trusted(self, server_name: str) -> bool:
        """True when both zone keys carry the expected flag."""
        return all(
            self.registry.get_value(key, self.flag_name) == self.flag_value
            for key in self.zone_keys(server_name)
        )
