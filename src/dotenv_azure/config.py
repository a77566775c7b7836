"""Loader options and their validation.

Two option sets exist:

    LoaderOptions  - given once to ``DotenvAzure`` (rate limit, credentials)
    ConfigOptions  - given per ``config``/``parse`` call (file paths, safe mode)

Both are pydantic models; validation failures surface as ``OptionsError``.
"""

import math
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, Field, SecretStr, ValidationError, model_validator

from dotenv_azure.constants import (
    DEFAULT_ENCODING,
    DEFAULT_ENV_PATH,
    DEFAULT_EXAMPLE_PATH,
    DEFAULT_RATE_LIMIT,
)
from dotenv_azure.errors import DotenvAzureError


class OptionsError(DotenvAzureError):
    """Raised when loader or config options fail validation."""


class LoaderOptions(BaseModel):
    """Options bound to a ``DotenvAzure`` instance."""

    rate_limit: float = Field(default=DEFAULT_RATE_LIMIT, gt=0)
    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None
    connection_string: str | None = None

    @model_validator(mode="after")
    def _check_service_principal(self) -> "LoaderOptions":
        secret = self._secret_value()
        given = [self.tenant_id, self.client_id, secret]
        if any(given) and not all(given):
            raise ValueError("tenant_id, client_id and client_secret must be given together")
        return self

    @property
    def has_service_principal(self) -> bool:
        secret = self._secret_value()
        return bool(self.tenant_id and self.client_id and secret)

    def _secret_value(self) -> str | None:
        return self.client_secret.get_secret_value() if self.client_secret is not None else None

    @property
    def min_interval(self) -> float:
        """Minimum spacing between Key Vault requests, in seconds."""
        return math.ceil(1000 / self.rate_limit) / 1000


class ConfigOptions(BaseModel):
    """Options for a single ``config`` or ``parse`` call."""

    path: Path = Path(DEFAULT_ENV_PATH)
    example: Path = Path(DEFAULT_EXAMPLE_PATH)
    encoding: str = DEFAULT_ENCODING
    safe: bool = False
    allow_empty_values: bool = False
    override: bool = False


_Options = TypeVar("_Options", bound=BaseModel)


def validate_options(model: type[_Options], values: dict[str, Any]) -> _Options:
    """Build ``model`` from ``values``, raising OptionsError if invalid."""
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        raise OptionsError(f"Invalid {model.__name__}: {exc}") from exc
