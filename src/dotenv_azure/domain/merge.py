"""Merging of the configuration layers.

Layers are applied lowest precedence first; a later layer overwrites an
earlier one on key collision.  Anything from the local .env file therefore
beats anything remote, and plain App Configuration values beat Key Vault
secrets (in practice a key is never both).
"""

from collections.abc import Mapping

from dotenv_azure.models import VariablesObject

KEY_VAULT = "key_vault"
APP_CONFIGURATION = "app_configuration"
LOCAL = "local"

# Lowest to highest.
MERGE_PRECEDENCE: tuple[str, ...] = (KEY_VAULT, APP_CONFIGURATION, LOCAL)


def merge_layers(layers: Mapping[str, Mapping[str, str]]) -> VariablesObject:
    """Merge named layers following MERGE_PRECEDENCE.

    Missing layers are treated as empty; unknown layer names are rejected.
    """
    unknown = set(layers) - set(MERGE_PRECEDENCE)
    if unknown:
        raise ValueError(f"Unknown configuration layer(s): {', '.join(sorted(unknown))}")

    merged: VariablesObject = {}
    for name in MERGE_PRECEDENCE:
        merged.update(layers.get(name, {}))
    return merged


def merge_variables(
    secrets: Mapping[str, str] | None = None,
    remote: Mapping[str, str] | None = None,
    local: Mapping[str, str] | None = None,
) -> VariablesObject:
    """Merge Key Vault secrets, plain remote values and local values."""
    return merge_layers(
        {
            KEY_VAULT: secrets or {},
            APP_CONFIGURATION: remote or {},
            LOCAL: local or {},
        }
    )
