import re

import pytest

from services.registry import RegistryStore, join_key, split_key


class FakeRegistry(RegistryStore):
    """In-memory RegistryStore. Paths are case-insensitive like the real registry."""

    def __init__(self):
        self.keys = {}   # normalized path -> {value name: value}
        self.names = {}  # normalized path -> path as first written

    @staticmethod
    def _norm(path):
        hive, sub_path = split_key(path)
        return join_key(hive, sub_path).casefold()

    def key_exists(self, path):
        return self._norm(path) in self.keys

    def create_key(self, path):
        hive, sub_path = split_key(path)
        current = hive
        for part in sub_path.split("\\"):
            current = join_key(current, part)
            norm = current.casefold()
            if norm not in self.keys:
                self.keys[norm] = {}
                self.names[norm] = current

    def delete_key(self, path):
        norm = self._norm(path)
        if norm not in self.keys:
            return False
        del self.keys[norm]
        del self.names[norm]
        return True

    def get_value(self, path, name):
        return self.keys.get(self._norm(path), {}).get(name)

    def set_dword(self, path, name, value):
        norm = self._norm(path)
        if norm not in self.keys:
            raise FileNotFoundError(path)
        self.keys[norm][name] = value

    def set_value(self, path, name, value):
        """Test helper: write any value, creating the key."""
        self.create_key(path)
        self.keys[self._norm(path)][name] = value

    def subkeys(self, path):
        prefix = self._norm(path) + "\\"
        return [
            self.names[norm].rsplit("\\", 1)[-1]
            for norm in self.keys
            if norm.startswith(prefix) and "\\" not in norm[len(prefix):]
        ]


class FailingRegistry(FakeRegistry):
    """FakeRegistry whose named operations raise the given OS error."""

    def __init__(self, error, fail_on=("get_value", "set_dword")):
        super().__init__()
        self.error = error
        self.fail_on = set(fail_on)

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise self.error

    def get_value(self, path, name):
        self._maybe_fail("get_value")
        return super().get_value(path, name)

    def set_dword(self, path, name, value):
        self._maybe_fail("set_dword")
        super().set_dword(path, name, value)


class FakeEntry:
    def __init__(self, dn):
        self.entry_dn = dn


class FakeConnection:
    """Stands in for an ldap3 Connection; answers OU name searches."""

    def __init__(self, directory):
        self.directory = directory
        self.entries = []
        self.searches = []
        self.unbound = False

    def search(self, search_base, search_filter, search_scope=None, attributes=None):
        self.searches.append((search_base, search_filter))
        match = re.search(r'\(name=([^)]*)\)', search_filter)
        name = match.group(1) if match else ""
        self.entries = [FakeEntry(dn) for dn in self.directory.get(name, [])]
        return bool(self.entries)

    def unbind(self):
        self.unbound = True


class FailingConnection(FakeConnection):
    """FakeConnection whose search raises the given ldap3 error."""

    def __init__(self, directory, error):
        super().__init__(directory)
        self.error = error

    def search(self, search_base, search_filter, search_scope=None, attributes=None):
        self.searches.append((search_base, search_filter))
        raise self.error


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def directory():
    """OU name -> distinguished names."""
    return {
        "Servers": ["OU=Servers,OU=Corp,DC=contoso,DC=com"],
        "Mail": [
            "OU=Mail,OU=Servers,OU=Corp,DC=contoso,DC=com",
            "OU=Mail,OU=Lab,DC=contoso,DC=com",
        ],
    }


@pytest.fixture
def ldap_connections(directory):
    """Connection factory that records every connection it hands out."""
    created = []

    def factory():
        conn = FakeConnection(directory)
        created.append(conn)
        return conn

    factory.created = created
    return factory


@pytest.fixture
def failing_registry():
    """Builds a FailingRegistry; access is denied on reads and DWORD writes by default."""

    def build(error=None, fail_on=("get_value", "set_dword")):
        return FailingRegistry(error or PermissionError(13, "Access is denied"), fail_on)

    return build


@pytest.fixture
def failing_ldap_connections(directory):
    """Connection factory whose connections fail on search with the given error."""

    def build(error):
        created = []

        def factory():
            conn = FailingConnection(directory, error)
            created.append(conn)
            return conn

        factory.created = created
        return factory

    return build
