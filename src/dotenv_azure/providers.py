"""Store protocols and in-memory implementations."""

from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Protocol

from dotenv_azure.models import ConfigurationEntry


class ConfigurationStore(Protocol):
    """Protocol that remote configuration backends must satisfy."""

    def list_entries(self) -> AsyncIterator[ConfigurationEntry]:
        """Yield every configuration entry once. Not restartable."""
        ...

    async def close(self) -> None: ...


class SecretStore(Protocol):
    """Protocol for a client bound to a single secret vault."""

    async def get_secret(self, name: str, version: str | None = None) -> str | None:
        """Return the secret's value. Raises if it cannot be fetched."""
        ...

    async def close(self) -> None: ...


class InMemoryConfigurationStore:
    """ConfigurationStore serving a fixed list of entries."""

    def __init__(self, entries: Iterable[ConfigurationEntry] = ()) -> None:
        self._entries = list(entries)
        self.closed = False

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "InMemoryConfigurationStore":
        """Build a store of plain entries only."""
        return cls(ConfigurationEntry(key=k, value=v) for k, v in data.items())

    async def list_entries(self) -> AsyncIterator[ConfigurationEntry]:
        for entry in self._entries:
            yield entry

    async def close(self) -> None:
        self.closed = True


class InMemorySecretStore:
    """SecretStore backed by a dict of name -> value.

    Versioned lookups use ``"<name>/<version>"`` keys and fall back to the
    unversioned name.
    """

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets: dict[str, str] = dict(secrets or {})
        self.closed = False

    async def get_secret(self, name: str, version: str | None = None) -> str | None:
        if version and f"{name}/{version}" in self._secrets:
            return self._secrets[f"{name}/{version}"]
        try:
            return self._secrets[name]
        except KeyError:
            raise LookupError(f"Secret '{name}' not found") from None

    async def close(self) -> None:
        self.closed = True
