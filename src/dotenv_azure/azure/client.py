"""Thin wrappers around the Azure SDK async clients.

``AppConfigurationStore`` and ``KeyVaultSecretStore`` satisfy the
``ConfigurationStore`` and ``SecretStore`` protocols so the loader never
touches the SDK directly.  Authentication is left to the SDK: App
Configuration uses a connection string, Key Vault an identity credential.

Raises ``AzureClientError`` whenever the SDK reports a failure.
"""

from collections.abc import AsyncIterator

from azure.appconfiguration.aio import AzureAppConfigurationClient
from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import AzureError
from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from dotenv_azure.config import LoaderOptions
from dotenv_azure.errors import DotenvAzureError
from dotenv_azure.models import AzureCredentials, ConfigurationEntry


class AzureClientError(DotenvAzureError):
    """Raised when an Azure SDK call fails."""


class AppConfigurationStore:
    """Lists the settings of an Azure App Configuration store.

    Args:
        credentials: Carries the store's connection string.
    """

    def __init__(self, credentials: AzureCredentials) -> None:
        try:
            self._client = AzureAppConfigurationClient.from_connection_string(
                credentials.connection_string
            )
        except ValueError as exc:
            raise AzureClientError(f"Invalid App Configuration connection string: {exc}") from exc

    async def list_entries(self) -> AsyncIterator[ConfigurationEntry]:
        """Yield every setting; paging is handled by the SDK."""
        try:
            async for setting in self._client.list_configuration_settings():
                yield ConfigurationEntry(
                    key=setting.key,
                    value=setting.value,
                    content_type=setting.content_type,
                )
        except AzureError as exc:
            raise AzureClientError(f"Failed to list App Configuration settings: {exc}") from exc

    async def close(self) -> None:
        await self._client.close()


class KeyVaultSecretStore:
    """Reads secrets from a single Key Vault.

    Args:
        vault_url: The vault origin, e.g. ``https://my-vault.vault.azure.net``.
        credential: Identity used to authenticate against the vault.
    """

    def __init__(self, vault_url: str, credential: AsyncTokenCredential) -> None:
        self.vault_url = vault_url
        self._client = SecretClient(vault_url=vault_url, credential=credential)

    async def get_secret(self, name: str, version: str | None = None) -> str | None:
        """Return the value of a secret, optionally pinned to a version."""
        try:
            secret = await self._client.get_secret(name, version=version)
        except AzureError as exc:
            raise AzureClientError(
                f"Failed to get secret '{name}' from {self.vault_url}: {exc}"
            ) from exc
        return secret.value

    async def close(self) -> None:
        await self._client.close()


def create_identity_credential(options: LoaderOptions) -> AsyncTokenCredential:
    """Return the credential Key Vault clients authenticate with.

    An explicit service principal wins; otherwise the SDK's default chain
    (environment, managed identity, Azure CLI, ...) is used.
    """
    secret = options.client_secret
    if options.has_service_principal and secret is not None:
        return ClientSecretCredential(
            tenant_id=options.tenant_id,
            client_id=options.client_id,
            client_secret=secret.get_secret_value(),
        )
    return DefaultAzureCredential()
