#!/usr/bin/env python3
"""
Cosmos DB Management Report

Logs in with an Azure AD service principal, prints the subscription
details, registers a resource provider and lists the Cosmos DB database
accounts in every resource group.

The service principal needs Reader on the subscription plus permission to
register resource providers. See
https://docs.microsoft.com/azure/active-directory/develop/howto-create-service-principal-portal

Usage:
    python3 cosmosdb_report.py                       # reads ./appsettings.json
    python3 cosmosdb_report.py --settings prod.yaml
    python3 cosmosdb_report.py --parallel-groups 8 --output-json report.json
    python3 cosmosdb_report.py --generate-settings > appsettings.json
"""
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from cosmos_mgmt.auth import authenticate
from cosmos_mgmt.clients import (
    create_clients,
    get_subscription,
    list_accounts_by_group,
    list_resource_groups,
    register_provider,
)
from cosmos_mgmt.config import (
    ConfigError,
    PlaceholderError,
    generate_sample_settings,
    load_settings,
    validate_settings,
)
from cosmos_mgmt.constants import (
    DEFAULT_PARALLEL_GROUPS,
    DEFAULT_PROVIDER_NAMESPACE,
    DEFAULT_RETRY_ATTEMPTS,
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_RUNTIME_ERROR,
    PLACEHOLDER_GUIDANCE,
    SETTING_CLIENT_ID,
    SETTING_SUBSCRIPTION_ID,
    SETTING_TENANT_ID,
)
from cosmos_mgmt.models import Settings
from cosmos_mgmt.report import (
    build_report,
    print_database_accounts,
    print_provider_details,
    print_subscription_details,
)
from cosmos_mgmt.utils import AuthError, setup_logging, write_json

logger = logging.getLogger(__name__)


def run(
    settings: Settings,
    provider_namespace: str = DEFAULT_PROVIDER_NAMESPACE,
    parallel_groups: int = DEFAULT_PARALLEL_GROUPS,
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    output_json: Optional[str] = None
) -> Dict[str, Any]:
    """
    Run the report for one subscription.

    Each stage prints its block as soon as its data is in, so a failure
    leaves only the blocks of the stages already completed on stdout.
    The accounts section is the exception: it is printed once every
    resource group has been listed, so a failure while listing accounts
    prints no part of it.

    Args:
        settings: Service principal credential and target subscription
        provider_namespace: Resource provider to register
        parallel_groups: Number of resource groups listed concurrently
        max_attempts: Attempts per management call (1 = no retry)
        output_json: Optional path for a JSON copy of the report

    Returns:
        The report as a dict

    Raises:
        PlaceholderError: If settings still hold template values
        AuthError: On authentication/authorization failures
        Exception: Any other Azure SDK error
    """
    validate_settings(settings)

    credential = authenticate(settings)
    clients = create_clients(credential, settings.subscription_id, max_attempts=max_attempts)

    subscription = get_subscription(clients, settings.subscription_id)
    print_subscription_details(subscription)

    # A provider must be registered in a subscription before its resource
    # types can be used; re-registering is a no-op.
    provider = register_provider(clients, provider_namespace)
    print_provider_details(provider)

    groups = list_resource_groups(clients)
    group_accounts = list_accounts_by_group(clients, groups, parallel_groups=parallel_groups)
    print_database_accounts(group_accounts)

    report = build_report(subscription, provider, group_accounts)
    if output_json:
        write_json(report, output_json)
    return report


def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(description='Cosmos DB Management Report')
    parser.add_argument('--settings', help='Settings file, JSON or YAML (default: ./appsettings.json if present)')
    parser.add_argument('--tenant-id', help='Azure AD tenant ID (overrides settings file)')
    parser.add_argument('--client-id', help='Service principal client ID (overrides settings file)')
    parser.add_argument('--subscription-id', help='Subscription ID (overrides settings file)')
    parser.add_argument(
        '--provider-namespace',
        default=DEFAULT_PROVIDER_NAMESPACE,
        help=f'Resource provider to register (default: {DEFAULT_PROVIDER_NAMESPACE})'
    )
    parser.add_argument(
        '--parallel-groups',
        type=_positive_int,
        default=DEFAULT_PARALLEL_GROUPS,
        help='Number of resource groups to list concurrently (default: 1, serial)'
    )
    parser.add_argument(
        '--retries',
        type=_positive_int,
        default=DEFAULT_RETRY_ATTEMPTS,
        help='Attempts per management call on throttling/transient errors (default: 1, no retry)'
    )
    parser.add_argument('--output-json', help='Also write the report as JSON to this path')
    parser.add_argument('--log-level', help='Logging level', default='INFO')
    parser.add_argument('--log-file', help='Also write (redacted) logs to this file')
    parser.add_argument(
        '--generate-settings',
        action='store_true',
        help='Print a sample settings file and exit'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        Process exit code: 0 on success, 2 for unusable settings, 1 when
        authentication or an Azure call fails
    """
    args = build_parser().parse_args(argv)

    if args.generate_settings:
        print(generate_sample_settings(), end='')
        return EXIT_OK

    setup_logging(args.log_level, log_file=args.log_file)

    # No secret flag; it comes from the settings file or AZURE_CLIENT_SECRET
    overrides = {
        SETTING_TENANT_ID: args.tenant_id,
        SETTING_CLIENT_ID: args.client_id,
        SETTING_SUBSCRIPTION_ID: args.subscription_id,
    }

    try:
        settings = load_settings(args.settings, overrides)
        run(
            settings,
            provider_namespace=args.provider_namespace,
            parallel_groups=args.parallel_groups,
            max_attempts=args.retries,
            output_json=args.output_json,
        )
    except PlaceholderError as e:
        logger.debug(str(e))
        print(PLACEHOLDER_GUIDANCE)
        return EXIT_CONFIG_ERROR
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR
    except AuthError as e:
        logger.error(str(e))
        logger.error("Check the service principal credentials and its role assignments on the subscription.")
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        logger.error(f"Report failed: {type(e).__name__}: {e}")
        logger.debug("Traceback:", exc_info=True)
        return EXIT_RUNTIME_ERROR

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
