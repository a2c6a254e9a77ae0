"""
Constants for the Cosmos DB management report.

This module defines the magic strings and numbers shared by the config
loader, the clients and the report printer.
"""

# =============================================================================
# Settings
# =============================================================================

DEFAULT_SETTINGS_FILE = "appsettings.json"

# Keys of the settings document, in the order they are reported
SETTING_TENANT_ID = "TenantId"
SETTING_CLIENT_ID = "ClientId"
SETTING_CLIENT_SECRET = "ClientSecret"
SETTING_SUBSCRIPTION_ID = "SubscriptionId"

REQUIRED_SETTINGS = (
    SETTING_TENANT_ID,
    SETTING_CLIENT_ID,
    SETTING_CLIENT_SECRET,
    SETTING_SUBSCRIPTION_ID,
)

# Template values look like "[your tenant id]"
PLACEHOLDER_PREFIX = "["

PLACEHOLDER_GUIDANCE = "Please provide values for tenantId, clientId, secret and subscriptionId."

# =============================================================================
# Azure
# =============================================================================

ARM_SCOPE = "https://management.azure.com/.default"

DEFAULT_PROVIDER_NAMESPACE = "Microsoft.Search"

# Display names for the provider block title; other namespaces print as-is
PROVIDER_TITLES = {
    "Microsoft.Search": "Azure Search",
}

# =============================================================================
# Runtime Defaults
# =============================================================================

DEFAULT_PARALLEL_GROUPS = 1
DEFAULT_RETRY_ATTEMPTS = 1
RETRY_MIN_WAIT = 1
RETRY_MAX_WAIT = 30

# HTTP status codes worth another attempt when retries are enabled
TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2

# =============================================================================
# Report Layout
# =============================================================================

SEPARATOR = "-" * 52
INDENT = "   "
