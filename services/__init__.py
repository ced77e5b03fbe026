# Statecheck v1.0.0
"""
Services package for Statecheck.
Contains the registry and directory collaborators used next to the comparator.
"""
from services.registry import RegistryStore, WindowsRegistry, get_registry
from services.environment import EnvironmentPathStore, merge_path_lists
from services.trust_zones import TrustZoneStore
from services.directory import OrganizationalUnitLookup, OuMatch, relative_ou_path
from services.products import ProductVersionLookup, SemanticVersion, InstalledProduct

__all__ = [
    "RegistryStore",
    "WindowsRegistry",
    "get_registry",
    "EnvironmentPathStore",
    "merge_path_lists",
    "TrustZoneStore",
    "OrganizationalUnitLookup",
    "OuMatch",
    "relative_ou_path",
    "ProductVersionLookup",
    "SemanticVersion",
    "InstalledProduct"
]
