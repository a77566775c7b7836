"""Errors raised while loading configuration."""

from pathlib import Path


class DotenvAzureError(Exception):
    """Base class for every error raised by dotenv-azure."""


class MissingAppConfigCredentialsError(DotenvAzureError):
    """Raised when no App Configuration connection string can be found."""

    def __init__(self) -> None:
        super().__init__(
            "Unable to connect to Azure App Configuration: set "
            "AZURE_APP_CONFIG_CONNECTION_STRING in the environment or the .env file, "
            "or pass connection_string explicitly"
        )


class InvalidKeyVaultUrlError(DotenvAzureError):
    """Raised when a Key Vault reference cannot be decoded.

    The failure is reported the same way whatever went wrong (bad JSON,
    bad URL, missing secret name); ``key`` names the offending entry.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Invalid Key Vault reference for App Configuration key '{key}'")


class SecretResolutionError(DotenvAzureError):
    """Raised when a Key Vault reference cannot be resolved to its value."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Failed to fetch secret for '{key}': {message}")


class MissingEnvVarsError(DotenvAzureError):
    """Raised in safe mode when variables of the example file are not set."""

    def __init__(
        self,
        allow_empty_values: bool,
        path: str | Path,
        example: str | Path,
        missing: list[str],
        dotenv_error: Exception | None = None,
    ) -> None:
        self.allow_empty_values = allow_empty_values
        self.path = str(path)
        self.example = str(example)
        self.missing = missing
        self.dotenv_error = dotenv_error

        lines = [
            f"The following variables were defined in {self.example} but are not "
            f"present in the environment:\n  {', '.join(missing)}",
            f"Make sure to add them to {self.path}, to Azure App Configuration "
            "or directly to the environment.",
        ]
        if not allow_empty_values:
            lines.append(
                "If you expect any of these variables to be empty, you can set "
                "allow_empty_values to True."
            )
        if dotenv_error is not None:
            lines.append(f"Also, the following error was thrown when trying to read {self.path}:")
            lines.append(str(dotenv_error))
        super().__init__("\n".join(lines))
