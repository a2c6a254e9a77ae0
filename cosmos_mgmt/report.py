"""
Console report for the subscription, the registered provider and the
database accounts per resource group.

Printers take SDK objects as returned by the management clients. Missing
fields print as empty strings; nothing here raises on incomplete data.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .constants import INDENT, PROVIDER_TITLES, SEPARATOR
from .models import DatabaseAccountRecord, ResourceGroupAccounts
from .utils import generate_run_id, get_timestamp


def _text(value: Any) -> str:
    """Render a field; None is blank and SDK enums print their value."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def print_subscription_details(sub) -> None:
    """Print the subscription block."""
    policies = getattr(sub, 'subscription_policies', None)

    print(SEPARATOR)
    print("Subscription Details")
    print(SEPARATOR)
    print()
    print(f"id: {_text(getattr(sub, 'id', None))}")
    print(f"subscriptionId: {_text(getattr(sub, 'subscription_id', None))}")
    print(f"displayName: {_text(getattr(sub, 'display_name', None))}")
    print(f"state: {_text(getattr(sub, 'state', None))}")
    print("subscriptionPolicies:")
    print(f"{INDENT}locationPlacementId: {_text(getattr(policies, 'location_placement_id', None))}")
    print(f"{INDENT}quotaId: {_text(getattr(policies, 'quota_id', None))}")
    print(f"{INDENT}spendingLimit: {_text(getattr(policies, 'spending_limit', None))}")
    print()
    print(SEPARATOR)
    print()


def print_provider_details(provider) -> None:
    """Print the resource provider block, one entry per resource type."""
    namespace = _text(getattr(provider, 'namespace', None))

    print(SEPARATOR)
    print(f"{PROVIDER_TITLES.get(namespace, namespace)} Provider Details")
    print(SEPARATOR)
    print()
    print(f"id: {_text(getattr(provider, 'id', None))}")
    print(f"namespace: {namespace}")
    print(f"registrationPolicy: {_text(getattr(provider, 'registration_policy', None))}")
    print("resourceTypes:")
    for rt in getattr(provider, 'resource_types', None) or []:
        print(f"{INDENT}resourceType: {_text(rt.resource_type)}")
        print(f"{INDENT * 2}locations:")
        for location in rt.locations or []:
            print(f"{INDENT * 3}{_text(location)}")
        print(f"{INDENT * 2}apiVersions:")
        for api_version in rt.api_versions or []:
            print(f"{INDENT * 3}{_text(api_version)}")
    print(f"registrationState: {_text(getattr(provider, 'registration_state', None))}")
    print()
    print(SEPARATOR)
    print()


def print_accounts_header() -> None:
    """Print the title of the accounts section."""
    print(SEPARATOR)
    print("List all database accounts in the subscription by resource group")
    print(SEPARATOR)


def print_group_accounts(group: ResourceGroupAccounts) -> None:
    """Print one resource group; a group without accounts prints nothing."""
    if group.accounts:
        print(f"resourceGroup: {group.resource_group}")
    for account in group.accounts:
        print(f"{INDENT}database name: {_text(account.name)}, "
              f"type: {_text(account.kind)}, location: {_text(account.location)}")


def print_database_accounts(groups: Sequence[ResourceGroupAccounts]) -> None:
    """Print the accounts section for all resource groups in order."""
    print_accounts_header()
    for group in groups:
        print_group_accounts(group)
    print()


# =============================================================================
# Machine-readable report
# =============================================================================

def account_records(groups: Sequence[ResourceGroupAccounts]) -> List[DatabaseAccountRecord]:
    """Flatten grouped accounts into records."""
    return [
        DatabaseAccountRecord(
            resource_group=group.resource_group,
            name=account.name,
            kind=_text(account.kind) or None,
            location=account.location,
            id=getattr(account, 'id', None),
        )
        for group in groups
        for account in group.accounts
    ]


def build_report(sub, provider, groups: Sequence[ResourceGroupAccounts],
                 run_id: Optional[str] = None) -> Dict[str, Any]:
    """Build the JSON-serialisable copy of what the console report shows."""
    policies = getattr(sub, 'subscription_policies', None)
    records = account_records(groups)

    return {
        'run_id': run_id or generate_run_id(),
        'timestamp': get_timestamp(),
        'subscription': {
            'id': getattr(sub, 'id', None),
            'subscription_id': getattr(sub, 'subscription_id', None),
            'display_name': getattr(sub, 'display_name', None),
            'state': _text(getattr(sub, 'state', None)) or None,
            'location_placement_id': getattr(policies, 'location_placement_id', None),
            'quota_id': getattr(policies, 'quota_id', None),
            'spending_limit': _text(getattr(policies, 'spending_limit', None)) or None,
        },
        'provider': {
            'id': getattr(provider, 'id', None),
            'namespace': getattr(provider, 'namespace', None),
            'registration_policy': getattr(provider, 'registration_policy', None),
            'registration_state': getattr(provider, 'registration_state', None),
            'resource_types': [
                {
                    'resource_type': rt.resource_type,
                    'locations': list(rt.locations or []),
                    'api_versions': list(rt.api_versions or []),
                }
                for rt in getattr(provider, 'resource_types', None) or []
            ],
        },
        'resource_group_count': len(groups),
        'account_count': len(records),
        'accounts': [r.to_dict() for r in records],
    }
