"""Pure domain functions for Key Vault reference detection and decoding.

App Configuration stores a Key Vault reference as an ordinary setting whose
content type is a fixed media type and whose value is a small JSON document:

    {"uri": "https://my-vault.vault.azure.net/secrets/db-password/0123abcd"}

The path carries the secret name and, optionally, a pinned version.  These
functions classify and decode such settings without any I/O.
"""

import json
from urllib.parse import urlsplit

from dotenv_azure.constants import KEY_VAULT_REFERENCE_CONTENT_TYPE
from dotenv_azure.errors import InvalidKeyVaultUrlError
from dotenv_azure.models import ConfigurationEntry, KeyVaultReferenceInfo

_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_key_vault_reference(entry: ConfigurationEntry) -> bool:
    """Return True if the entry points into Key Vault.

    Only the content type decides; the value is never inspected, so a plain
    setting that happens to hold ``{"uri": ...}`` stays plain.
    """
    return entry.content_type == KEY_VAULT_REFERENCE_CONTENT_TYPE


def parse_key_vault_reference(entry: ConfigurationEntry) -> KeyVaultReferenceInfo:
    """Decode a reference entry into a ``KeyVaultReferenceInfo``.

    Raises InvalidKeyVaultUrlError for the entry's key if the value is not
    JSON, has no usable ``uri``, the uri is not an absolute URL, or the path
    has no secret name.
    """
    try:
        return _decode(entry.value)
    except (ValueError, TypeError, KeyError) as exc:
        raise InvalidKeyVaultUrlError(entry.key) from exc


def _decode(value: str | None) -> KeyVaultReferenceInfo:
    if not value:
        raise ValueError("Key Vault reference has no value")
    uri = json.loads(value)["uri"]
    if not isinstance(uri, str):
        raise TypeError("Key Vault reference uri must be a string")

    parts = urlsplit(uri.strip())
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {uri!r}")

    # "/secrets/<name>/<version>" -> ["", "secrets", "<name>", "<version>"]
    segments = parts.path.split("/")
    secret_name = segments[2] if len(segments) > 2 else ""
    secret_version = segments[3] if len(segments) > 3 else ""
    if not secret_name:
        raise ValueError("Key Vault URL does not have a secret name")

    return KeyVaultReferenceInfo(
        vault_url=_origin(parts.scheme, parts.hostname, parts.port),
        secret_url=parts.geturl(),
        secret_name=secret_name,
        secret_version=secret_version or None,
    )


def _origin(scheme: str, hostname: str, port: int | None) -> str:
    scheme = scheme.lower()
    if port is None or _DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{hostname}"
    return f"{scheme}://{hostname}:{port}"
