"""Tests for the Azure SDK adapters, with the SDK clients replaced."""

from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError
from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential

from dotenv_azure.azure.client import (
    AppConfigurationStore,
    AzureClientError,
    KeyVaultSecretStore,
    create_identity_credential,
)
from dotenv_azure.config import LoaderOptions
from dotenv_azure.models import AzureCredentials, ConfigurationEntry

CONN = "Endpoint=https://appcs.azconfig.io;Id=id;Secret=c2VjcmV0"


class FakePager:
    def __init__(self, settings, error=None):
        self._settings = settings
        self._error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for setting in self._settings:
            yield setting
        if self._error is not None:
            raise self._error


class FakeAppConfigClient:
    def __init__(self, settings, error=None):
        self._pager = FakePager(settings, error)
        self.closed = False

    def list_configuration_settings(self):
        return self._pager

    async def close(self):
        self.closed = True


class FakeCredential:
    async def get_token(self, *scopes, **kwargs):
        raise AssertionError("no token should be requested")

    async def close(self):
        pass


class FakeSecretClient:
    def __init__(self, value=None, error=None):
        self._value = value
        self._error = error
        self.calls: list[tuple[str, str | None]] = []

    async def get_secret(self, name, version=None):
        self.calls.append((name, version))
        if self._error is not None:
            raise self._error
        return SimpleNamespace(value=self._value)

    async def close(self):
        pass


class TestAppConfigurationStore:
    async def test_maps_settings_to_entries(self):
        """
        Given SDK settings
        When list_entries is iterated
        Then each becomes a ConfigurationEntry with key, value and content type
        """
        store = AppConfigurationStore(AzureCredentials(CONN))
        store._client = FakeAppConfigClient(
            [SimpleNamespace(key="A", value="1", content_type="text/plain")]
        )
        entries = [entry async for entry in store.list_entries()]
        assert entries == [ConfigurationEntry("A", "1", "text/plain")]

    async def test_sdk_error_is_wrapped(self):
        """
        Given the SDK fails mid-listing
        When list_entries is iterated
        Then AzureClientError is raised
        """
        store = AppConfigurationStore(AzureCredentials(CONN))
        store._client = FakeAppConfigClient([], error=ServiceRequestError("offline"))
        with pytest.raises(AzureClientError, match="offline"):
            [entry async for entry in store.list_entries()]

    async def test_close_closes_client(self):
        store = AppConfigurationStore(AzureCredentials(CONN))
        fake = FakeAppConfigClient([])
        store._client = fake
        await store.close()
        assert fake.closed is True

    def test_bad_connection_string(self):
        with pytest.raises(AzureClientError):
            AppConfigurationStore(AzureCredentials("not-a-connection-string"))


class TestKeyVaultSecretStore:
    async def test_returns_secret_value(self):
        """
        Given an SDK client returning a secret
        When get_secret is called with a version
        Then the value is returned and the version is passed through
        """
        store = KeyVaultSecretStore("https://kv.vault.azure.net", credential=FakeCredential())
        fake = FakeSecretClient(value="3")
        store._client = fake
        assert await store.get_secret("s", "v1") == "3"
        assert fake.calls == [("s", "v1")]

    async def test_sdk_error_is_wrapped(self):
        store = KeyVaultSecretStore("https://kv.vault.azure.net", credential=FakeCredential())
        store._client = FakeSecretClient(error=HttpResponseError("forbidden"))
        with pytest.raises(AzureClientError, match="kv.vault.azure.net"):
            await store.get_secret("s")


class TestCreateIdentityCredential:
    async def test_service_principal(self):
        credential = create_identity_credential(
            LoaderOptions(tenant_id="t", client_id="c", client_secret="s")
        )
        assert isinstance(credential, ClientSecretCredential)
        await credential.close()

    async def test_default_chain(self):
        credential = create_identity_credential(LoaderOptions())
        assert isinstance(credential, DefaultAzureCredential)
        await credential.close()
