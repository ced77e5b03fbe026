# Statecheck v1.0.0
"""
Installed product version discovery.

Scans the Uninstall registry keys for entries whose DisplayName is one of
the recognized products and parses the DisplayVersion of the first match.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from config import settings
from services.registry import RegistryStore, get_registry, join_key

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r'^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?')


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """Structured product version. Missing components are 0."""
    major: int
    minor: int = 0
    patch: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, value: str) -> "SemanticVersion":
        """
        Parse "15.1.2507.6", "8.0", "v2" and similar strings.

        Raises:
            ValueError: value does not start with a numeric component
        """
        match = VERSION_PATTERN.match("" if value is None else str(value))
        if not match:
            raise ValueError(f"Not a version string: {value!r}")
        return cls(*(int(part) if part else 0 for part in match.groups()))

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}.{self.revision}"


@dataclass
class InstalledProduct:
    display_name: str
    version: SemanticVersion
    key: str


class ProductVersionLookup:
    """Looks up the version of the first recognized installed product."""

    def __init__(
        self,
        registry: Optional[RegistryStore] = None,
        display_names: Optional[Iterable[str]] = None,
        uninstall_keys: Optional[Iterable[str]] = None
    ):
        self.registry = registry or get_registry()
        self.display_names = list(display_names or settings.PRODUCT_DISPLAY_NAMES)
        self.uninstall_keys = list(uninstall_keys or settings.UNINSTALL_KEYS)

    def _entries(self):
        for root in self.uninstall_keys:
            for name in self.registry.subkeys(root):
                key = join_key(root, name)
                yield key, self.registry.get_value(key, "DisplayName")

    def find_product(self) -> Optional[InstalledProduct]:
        """First recognized entry with a readable DisplayVersion, or None."""
        for key, display_name in self._entries():
            if display_name not in self.display_names:
                continue

            raw_version = self.registry.get_value(key, "DisplayVersion")
            try:
                version = SemanticVersion.parse(raw_version)
            except ValueError:
                logger.warning(f"Skipping {display_name} at {key}: unreadable DisplayVersion {raw_version!r}")
                continue

            logger.info(f"Found {display_name} {version} at {key}")
            return InstalledProduct(display_name=display_name, version=version, key=key)

        logger.debug(f"None of {self.display_names} is installed")
        return None

    def get_installed_version(self) -> Optional[SemanticVersion]:
        product = self.find_product()
        return product.version if product else None
