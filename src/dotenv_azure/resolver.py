"""Rate-limited resolution of Key Vault references."""

import asyncio
import logging
from collections.abc import Callable

from dotenv_azure.errors import SecretResolutionError
from dotenv_azure.models import KeyVaultReferenceInfo, KeyVaultReferences, SecretsResult
from dotenv_azure.providers import SecretStore
from dotenv_azure.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

SecretStoreFactory = Callable[[str], SecretStore]


class SecretStoreRegistry:
    """One secret store per vault origin, created on first use.

    Stores are kept until ``close`` so repeated loads reuse connections.
    Only clients are cached here, never secret values.
    """

    def __init__(self, factory: SecretStoreFactory) -> None:
        self._factory = factory
        self._stores: dict[str, SecretStore] = {}

    def get(self, vault_url: str) -> SecretStore:
        # No await between lookup and insert: concurrent tasks cannot race here.
        store = self._stores.get(vault_url)
        if store is None:
            store = self._factory(vault_url)
            self._stores[vault_url] = store
            logger.debug("Created secret client for %s", vault_url)
        return store

    def __contains__(self, vault_url: object) -> bool:
        return vault_url in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    async def close(self) -> None:
        stores = list(self._stores.values())
        self._stores.clear()
        for store in stores:
            await store.close()


async def resolve_secrets(
    references: KeyVaultReferences,
    registry: SecretStoreRegistry,
    min_interval: float,
) -> SecretsResult:
    """Resolve every reference to its secret value.

    All lookups run concurrently behind one ``RateLimiter`` shared by every
    vault.  The first failure cancels the remaining lookups and is returned
    in the result instead of being raised.
    """
    if not references:
        return SecretsResult()

    limiter = RateLimiter(min_interval)

    async def fetch(key: str, info: KeyVaultReferenceInfo) -> tuple[str, str]:
        try:
            store = registry.get(info.vault_url)
            value = await store.get_secret(info.secret_name, info.secret_version)
        except Exception as exc:
            raise SecretResolutionError(key, str(exc)) from exc
        return key, value if value is not None else ""

    tasks = [
        asyncio.create_task(limiter.schedule(lambda k=key, i=info: fetch(k, i)))
        for key, info in references.items()
    ]
    try:
        pairs = await asyncio.gather(*tasks)
    except Exception as exc:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        return SecretsResult(error=exc)

    logger.debug("Resolved %d Key Vault reference(s)", len(pairs))
    return SecretsResult(secrets=dict(pairs))
