# Statecheck v1.0.0
"""
Registry access for Statecheck collaborators.

Keys are addressed by full path strings such as
"HKEY_LOCAL_MACHINE\\SOFTWARE\\Contoso". Short hive names (HKLM, HKCU,
HKCR, HKU) are accepted too.

Lookups that find nothing return None / False. Any other OS error
propagates to the caller.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)

HIVE_ALIASES = {
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKCU": "HKEY_CURRENT_USER",
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKU": "HKEY_USERS",
}


def join_key(*parts: str) -> str:
    """Join registry path segments with a single backslash."""
    return "\\".join(p.strip("\\") for p in parts if p)


def split_key(path: str) -> tuple[str, str]:
    """Split a key path into (hive name, sub path)."""
    hive, _, sub_path = path.strip("\\").partition("\\")
    hive = hive.upper()
    return HIVE_ALIASES.get(hive, hive), sub_path


class RegistryStore(ABC):
    """Minimal registry surface used by the collaborators."""

    @abstractmethod
    def key_exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def create_key(self, path: str) -> None:
        """Create the key and any missing parents. Existing keys are left alone."""

    @abstractmethod
    def delete_key(self, path: str) -> bool:
        """Delete the key. Returns False when it did not exist."""

    @abstractmethod
    def get_value(self, path: str, name: str) -> Optional[Any]:
        """Read a value; None when the key or value is absent."""

    @abstractmethod
    def set_dword(self, path: str, name: str, value: int) -> None:
        ...

    @abstractmethod
    def subkeys(self, path: str) -> list[str]:
        """Names of the direct subkeys; empty when the key is absent."""


class WindowsRegistry(RegistryStore):
    """RegistryStore backed by the winreg module (Windows only)."""

    def __init__(self):
        import winreg
        self._winreg = winreg

    def _hive(self, hive_name: str):
        try:
            return getattr(self._winreg, hive_name)
        except AttributeError:
            raise ValueError(f"Unknown registry hive: {hive_name}") from None

    def _open(self, path: str, access=None):
        hive_name, sub_path = split_key(path)
        access = self._winreg.KEY_READ if access is None else access
        return self._winreg.OpenKey(self._hive(hive_name), sub_path, 0, access)

    def key_exists(self, path: str) -> bool:
        try:
            with self._open(path):
                return True
        except FileNotFoundError:
            return False

    def create_key(self, path: str) -> None:
        hive_name, sub_path = split_key(path)
        key = self._winreg.CreateKeyEx(self._hive(hive_name), sub_path, 0, self._winreg.KEY_WRITE)
        key.Close()

    def delete_key(self, path: str) -> bool:
        hive_name, sub_path = split_key(path)
        try:
            self._winreg.DeleteKey(self._hive(hive_name), sub_path)
        except FileNotFoundError:
            return False
        return True

    def get_value(self, path: str, name: str) -> Optional[Any]:
        try:
            with self._open(path) as key:
                value, _ = self._winreg.QueryValueEx(key, name)
                return value
        except FileNotFoundError:
            return None

    def set_dword(self, path: str, name: str, value: int) -> None:
        with self._open(path, self._winreg.KEY_SET_VALUE) as key:
            self._winreg.SetValueEx(key, name, 0, self._winreg.REG_DWORD, value)

    def subkeys(self, path: str) -> list[str]:
        try:
            with self._open(path) as key:
                count = self._winreg.QueryInfoKey(key)[0]
                return [self._winreg.EnumKey(key, i) for i in range(count)]
        except FileNotFoundError:
            return []


_default_registry: Optional[RegistryStore] = None


def get_registry() -> RegistryStore:
    """Shared WindowsRegistry instance."""
    global _default_registry
    if _default_registry is None:
        _default_registry = WindowsRegistry()
    return _default_registry
