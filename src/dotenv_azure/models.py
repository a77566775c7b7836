"""Domain models."""

from dataclasses import dataclass, field

# key -> value
VariablesObject = dict[str, str]


@dataclass(frozen=True)
class AzureCredentials:
    """Credential for the App Configuration store. Lives for a single load."""

    connection_string: str


@dataclass(frozen=True)
class ConfigurationEntry:
    """One setting as listed by the App Configuration store."""

    key: str
    value: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class KeyVaultReferenceInfo:
    """A decoded pointer from an App Configuration entry into Key Vault.

    ``vault_url`` is the vault origin (scheme and host, no path) and is used
    as the key when reusing secret clients.
    """

    vault_url: str
    secret_url: str
    secret_name: str
    secret_version: str | None = None


# key -> reference
KeyVaultReferences = dict[str, KeyVaultReferenceInfo]


@dataclass
class AppConfigurations:
    """Entries of one App Configuration listing, split by kind.

    The key sets of ``variables`` and ``references`` never overlap.
    """

    variables: VariablesObject = field(default_factory=dict)
    references: KeyVaultReferences = field(default_factory=dict)


@dataclass
class SecretsResult:
    """Outcome of resolving every Key Vault reference of a load.

    Either ``secrets`` holds the resolved values, or ``error`` holds the
    exception that made the phase fail (``secrets`` is then empty).
    """

    secrets: VariablesObject = field(default_factory=dict)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RemoteVariables:
    """Remote values kept apart by the store they came from."""

    app_configuration: VariablesObject = field(default_factory=dict)
    key_vault: VariablesObject = field(default_factory=dict)


@dataclass
class ConfigOutput:
    """Result of ``DotenvAzure.config``.

    - ``parsed``: everything merged, local values winning.
    - ``local``: values read from the .env file.
    - ``remote``: App Configuration and Key Vault values merged.
    """

    parsed: VariablesObject
    local: VariablesObject
    remote: VariablesObject
