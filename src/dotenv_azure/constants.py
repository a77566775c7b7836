"""Application-wide constants."""

APP_NAME = "dotenv-azure"

# Content type App Configuration assigns to Key Vault references.
KEY_VAULT_REFERENCE_CONTENT_TYPE = (
    "application/vnd.microsoft.appconfig.keyvaultref+json;charset=utf-8"
)

CONNECTION_STRING_VAR = "AZURE_APP_CONFIG_CONNECTION_STRING"

# Requests per second issued against Key Vault; keeps us under the Azure AD
# throttling limits.
DEFAULT_RATE_LIMIT: float = 45

DEFAULT_ENV_PATH = ".env"
DEFAULT_EXAMPLE_PATH = ".env.example"
DEFAULT_ENCODING = "utf-8"

# Display labels for where a merged value came from.
SOURCE_LOCAL = "local"
SOURCE_APP_CONFIG = "app config"
SOURCE_KEY_VAULT = "key vault"

TABLE_COLUMNS = ("#", "Key", "Source", "Value")

MASKED_VALUE = "********"
