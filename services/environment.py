# Statecheck v1.0.0
"""
Module search path merge.

Copies entries of a machine-scoped, semicolon-delimited search path
(PSModulePath by default) into the current process so modules installed
machine-wide become visible without a restart. Entries are only ever
added, never removed.
"""
import logging
import os
from typing import MutableMapping, Optional

from config import settings
from services.registry import RegistryStore, get_registry

logger = logging.getLogger(__name__)

PATH_SEPARATOR = ";"


def split_path_list(value: Optional[str]) -> list[str]:
    """Split a search path, dropping empty entries."""
    if not value:
        return []
    return [entry.strip() for entry in value.split(PATH_SEPARATOR) if entry.strip()]


def _normalize(entry: str) -> str:
    return entry.rstrip("\\/").casefold()


def merge_path_lists(process_value: Optional[str], machine_value: Optional[str]) -> tuple[str, list[str]]:
    """
    Append machine entries missing from the process list.

    Entries compare case-insensitively, ignoring a trailing separator.

    Returns:
        (merged value, entries that were added)
    """
    merged = split_path_list(process_value)
    present = {_normalize(entry) for entry in merged}

    added = []
    for entry in split_path_list(machine_value):
        key = _normalize(entry)
        if key not in present:
            present.add(key)
            merged.append(entry)
            added.append(entry)

    return PATH_SEPARATOR.join(merged), added


class EnvironmentPathStore:
    """Reads the machine scope from the registry and writes the process scope."""

    def __init__(
        self,
        registry: Optional[RegistryStore] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        machine_key: Optional[str] = None
    ):
        self.registry = registry or get_registry()
        self.environ = environ if environ is not None else os.environ
        self.machine_key = machine_key or settings.MACHINE_ENVIRONMENT_KEY

    def get_machine_value(self, variable: str) -> Optional[str]:
        return self.registry.get_value(self.machine_key, variable)

    def merge_machine_path(self, variable: Optional[str] = None) -> list[str]:
        """
        Merge the machine-scoped value of variable into the process scope.

        Returns:
            Entries added to the process value (empty when nothing changed)
        """
        variable = variable or settings.MODULE_PATH_VARIABLE
        machine_value = self.get_machine_value(variable)
        merged, added = merge_path_lists(self.environ.get(variable), machine_value)

        if added:
            self.environ[variable] = merged
            logger.info(f"Added {len(added)} machine entr{'y' if len(added) == 1 else 'ies'} to {variable}: {added}")
        else:
            logger.debug(f"{variable} already contains every machine entry")

        return added
