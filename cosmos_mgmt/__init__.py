"""
Cosmos DB management report shared library.
"""
from . import constants
from .auth import authenticate, get_credential
from .clients import (
    ManagementClients,
    create_clients,
    get_subscription,
    list_accounts_by_group,
    list_database_accounts,
    list_resource_groups,
    register_provider,
)
from .config import (
    ConfigError,
    PlaceholderError,
    find_placeholders,
    load_settings,
    validate_settings,
)
from .models import DatabaseAccountRecord, ResourceGroupAccounts, Settings
from .report import (
    build_report,
    print_database_accounts,
    print_provider_details,
    print_subscription_details,
)
from .utils import AuthError, setup_logging, write_json

__all__ = [
    'constants',
    # Models
    'Settings',
    'ResourceGroupAccounts',
    'DatabaseAccountRecord',
    # Config
    'ConfigError',
    'PlaceholderError',
    'load_settings',
    'find_placeholders',
    'validate_settings',
    # Auth / clients
    'authenticate',
    'get_credential',
    'ManagementClients',
    'create_clients',
    'get_subscription',
    'register_provider',
    'list_resource_groups',
    'list_database_accounts',
    'list_accounts_by_group',
    # Report
    'print_subscription_details',
    'print_provider_details',
    'print_database_accounts',
    'build_report',
    # Utils
    'AuthError',
    'setup_logging',
    'write_json',
]
