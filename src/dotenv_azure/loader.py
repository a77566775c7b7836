"""Load configuration from a .env file, Azure App Configuration and Key Vault.

Typical use::

    async with DotenvAzure() as loader:
        result = await loader.config(safe=True)

``config`` applies everything to ``os.environ``; ``parse`` and
``load_from_azure`` only return values.
"""

import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

from azure.core.credentials_async import AsyncTokenCredential

from dotenv_azure.azure.client import (
    AppConfigurationStore,
    KeyVaultSecretStore,
    create_identity_credential,
)
from dotenv_azure.config import ConfigOptions, LoaderOptions, validate_options
from dotenv_azure.constants import CONNECTION_STRING_VAR, DEFAULT_RATE_LIMIT
from dotenv_azure.domain.merge import merge_variables
from dotenv_azure.domain.references import is_key_vault_reference, parse_key_vault_reference
from dotenv_azure.environment import (
    compact,
    load_env_file,
    missing_keys,
    parse_env_text,
    populate_environ,
    read_env_file,
)
from dotenv_azure.errors import MissingAppConfigCredentialsError, MissingEnvVarsError
from dotenv_azure.models import (
    AppConfigurations,
    AzureCredentials,
    ConfigOutput,
    KeyVaultReferences,
    RemoteVariables,
    SecretsResult,
    VariablesObject,
)
from dotenv_azure.providers import ConfigurationStore, SecretStore
from dotenv_azure.resolver import SecretStoreFactory, SecretStoreRegistry, resolve_secrets

logger = logging.getLogger(__name__)

ConfigurationStoreFactory = Callable[[AzureCredentials], ConfigurationStore]


class DotenvAzure:
    """Loads and merges local, App Configuration and Key Vault variables.

    Args:
        rate_limit: Maximum Key Vault requests started per second.
        tenant_id, client_id, client_secret: Service principal used for Key
            Vault. All three or none; without them the default Azure
            credential chain is used.
        connection_string: App Configuration connection string. Overrides
            AZURE_APP_CONFIG_CONNECTION_STRING from the environment or .env.
        configuration_store_factory: Builds the App Configuration client
            from credentials. Defaults to the Azure SDK.
        secret_store_factory: Builds a Key Vault client for a vault origin.
            Defaults to the Azure SDK.

    Key Vault clients are reused across calls until ``close``.
    """

    def __init__(
        self,
        rate_limit: float = DEFAULT_RATE_LIMIT,
        tenant_id: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        connection_string: str | None = None,
        *,
        configuration_store_factory: ConfigurationStoreFactory | None = None,
        secret_store_factory: SecretStoreFactory | None = None,
    ) -> None:
        self.options = validate_options(
            LoaderOptions,
            {
                "rate_limit": rate_limit,
                "tenant_id": tenant_id,
                "client_id": client_id,
                "client_secret": client_secret,
                "connection_string": connection_string,
            },
        )
        self._configuration_store_factory = configuration_store_factory or AppConfigurationStore
        self._secret_stores = SecretStoreRegistry(secret_store_factory or self._create_secret_store)
        self._identity: AsyncTokenCredential | None = None

    async def __aenter__(self) -> "DotenvAzure":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close cached Key Vault clients and the identity credential."""
        await self._secret_stores.close()
        if self._identity is not None:
            await self._identity.close()
            self._identity = None

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def config(self, options: ConfigOptions | None = None, **kwargs: Any) -> ConfigOutput:
        """Load the .env file and Azure variables into ``os.environ``.

        The .env file is applied first by python-dotenv.  Remote values are
        then written for every key the .env file does not define, so local
        values win in the environment as well as in the returned mapping.
        Variables already present in the environment are kept unless
        ``override`` is set.

        In safe mode, raises MissingEnvVarsError if a variable of the example
        file is still missing afterwards.
        """
        opts = _config_options(options, kwargs)
        local_vars, dotenv_error = load_env_file(opts.path, opts.encoding, opts.override)

        remote_vars = await self.load_from_azure(local_vars)
        written = populate_environ(remote_vars, override=opts.override, exclude=local_vars)
        logger.debug("Applied %d remote variable(s) to the environment", len(written))

        if opts.safe:
            self.validate_from_env_example(opts, dotenv_error)

        return ConfigOutput(
            parsed=merge_variables(remote=remote_vars, local=local_vars),
            local=local_vars,
            remote=remote_vars,
        )

    async def parse(
        self, src: str | bytes, options: ConfigOptions | None = None, **kwargs: Any
    ) -> VariablesObject:
        """Parse .env formatted ``src`` and merge it with the Azure variables.

        Does not change ``os.environ``.
        """
        opts = _config_options(options, kwargs)
        local_vars = parse_env_text(src, opts.encoding)
        remote = await self.load_sources(local_vars)
        return merge_variables(
            secrets=remote.key_vault,
            remote=remote.app_configuration,
            local=local_vars,
        )

    async def load_from_azure(self, local_vars: Mapping[str, str] | None = None) -> VariablesObject:
        """Return App Configuration and Key Vault variables merged.

        ``local_vars`` is only consulted for the connection string.  Does not
        change ``os.environ``.
        """
        remote = await self.load_sources(local_vars)
        return merge_variables(secrets=remote.key_vault, remote=remote.app_configuration)

    async def load_sources(self, local_vars: Mapping[str, str] | None = None) -> RemoteVariables:
        """Like ``load_from_azure`` but keeps both remote layers apart.

        A failure while resolving secrets is logged and yields an empty Key
        Vault layer; the plain App Configuration values are still returned.
        """
        credentials = self.get_azure_credentials(local_vars)
        store = self._configuration_store_factory(credentials)
        try:
            app_config = await self.get_app_configurations(store)
        finally:
            await store.close()

        result = await self.get_secrets_from_key_vault(app_config.references)
        if not result.ok:
            logger.warning("Unable to load secrets from Key Vault: %s", result.error)

        return RemoteVariables(app_configuration=app_config.variables, key_vault=result.secrets)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def get_azure_credentials(
        self, local_vars: Mapping[str, str] | None = None
    ) -> AzureCredentials:
        """Find the App Configuration connection string.

        The constructor value wins; otherwise the environment is overlaid on
        ``local_vars`` and AZURE_APP_CONFIG_CONNECTION_STRING is read from
        the result.
        """
        env = {**(local_vars or {}), **os.environ}
        connection_string = self.options.connection_string or env.get(CONNECTION_STRING_VAR)
        if not connection_string:
            raise MissingAppConfigCredentialsError()
        return AzureCredentials(connection_string=connection_string)

    async def get_app_configurations(self, store: ConfigurationStore) -> AppConfigurations:
        """Enumerate every setting and split plain values from references.

        A key listed more than once keeps only its last entry, so the two
        key sets never overlap.  An undecodable reference raises
        InvalidKeyVaultUrlError and aborts the listing.
        """
        variables: VariablesObject = {}
        references: KeyVaultReferences = {}

        async for entry in store.list_entries():
            # The last listed entry for a key decides its kind.
            if is_key_vault_reference(entry):
                references[entry.key] = parse_key_vault_reference(entry)
                variables.pop(entry.key, None)
            else:
                references.pop(entry.key, None)
                variables[entry.key] = entry.value if entry.value is not None else ""

        logger.debug(
            "Loaded %d App Configuration value(s) and %d Key Vault reference(s)",
            len(variables),
            len(references),
        )
        return AppConfigurations(variables=variables, references=references)

    async def get_secrets_from_key_vault(self, references: KeyVaultReferences) -> SecretsResult:
        """Resolve references, limited to ``rate_limit`` requests per second."""
        return await resolve_secrets(references, self._secret_stores, self.options.min_interval)

    def validate_from_env_example(
        self,
        options: ConfigOptions,
        dotenv_error: Exception | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Check that every variable of the example file is set.

        ``env`` defaults to ``os.environ``.  Empty variables count as missing
        unless ``allow_empty_values``.
        """
        current = os.environ if env is None else env
        available = dict(current) if options.allow_empty_values else compact(current)
        example_vars = read_env_file(options.example, options.encoding)
        missing = missing_keys(example_vars, available)
        if missing:
            raise MissingEnvVarsError(
                options.allow_empty_values, options.path, options.example, missing, dotenv_error
            )

    def _create_secret_store(self, vault_url: str) -> SecretStore:
        if self._identity is None:
            self._identity = create_identity_credential(self.options)
        return KeyVaultSecretStore(vault_url, self._identity)


def _config_options(options: ConfigOptions | None, overrides: dict[str, Any]) -> ConfigOptions:
    if options is None:
        return validate_options(ConfigOptions, overrides)
    if overrides:
        return validate_options(ConfigOptions, {**options.model_dump(), **overrides})
    return options
