"""
Azure management clients and the read/register calls made through them.

Every call is blocking and every SDK error propagates. Auth failures are
re-raised as AuthError. Transient failures of the read calls are retried
only when the clients were created with max_attempts > 1; provider
registration is never retried.
"""
import logging
from typing import Any, Callable, List, NamedTuple, Sequence

from azure.mgmt.cosmosdb import CosmosDBManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.subscription import SubscriptionClient

from .constants import (
    DEFAULT_PARALLEL_GROUPS,
    DEFAULT_RETRY_ATTEMPTS,
    RETRY_MAX_WAIT,
    RETRY_MIN_WAIT,
)
from .models import ResourceGroupAccounts
from .utils import (
    ProgressTracker,
    check_and_raise_auth_error,
    ordered_parallel_map,
    retry_with_backoff,
)

logger = logging.getLogger(__name__)


class ManagementClients(NamedTuple):
    subscription: Any
    resource: Any
    cosmosdb: Any
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_max_wait: float = RETRY_MAX_WAIT


def create_clients(credential, subscription_id: str,
                   max_attempts: int = DEFAULT_RETRY_ATTEMPTS) -> ManagementClients:
    """Create the subscription, resource and Cosmos DB clients sharing one credential."""
    return ManagementClients(
        subscription=SubscriptionClient(credential),
        resource=ResourceManagementClient(credential, subscription_id),
        cosmosdb=CosmosDBManagementClient(credential, subscription_id),
        max_attempts=max_attempts,
    )


def _call(clients: ManagementClients, context: str, operation: Callable, *args):
    decorator = retry_with_backoff(
        max_attempts=clients.max_attempts,
        min_wait=min(RETRY_MIN_WAIT, clients.retry_max_wait),
        max_wait=clients.retry_max_wait,
    )
    try:
        return decorator(operation)(*args)
    except Exception as e:
        check_and_raise_auth_error(e, context)
        raise


def get_subscription(clients: ManagementClients, subscription_id: str):
    """Fetch the subscription by id."""
    return _call(clients, "get subscription", clients.subscription.subscriptions.get, subscription_id)


def register_provider(clients: ManagementClients, namespace: str):
    """
    Register a resource provider with the subscription.

    Registration is an idempotent upsert on the Azure side: it succeeds
    whether or not the provider was already registered. It is a write and
    is called exactly once, even when retries are enabled for reads.
    """
    logger.info(f"Registering resource provider {namespace}")
    try:
        provider = clients.resource.providers.register(namespace)
    except Exception as e:
        check_and_raise_auth_error(e, f"register provider {namespace}")
        raise
    logger.info(f"Provider {namespace} registration state: {getattr(provider, 'registration_state', None)}")
    return provider


def list_resource_groups(clients: ManagementClients) -> List[Any]:
    """List all resource groups in the subscription."""
    groups = _call(clients, "list resource groups",
                   lambda: list(clients.resource.resource_groups.list()))
    logger.info(f"Found {len(groups)} resource groups")
    return groups


def list_database_accounts(clients: ManagementClients, resource_group_name: str) -> List[Any]:
    """List the Cosmos DB database accounts in one resource group."""
    accounts = _call(
        clients,
        f"list database accounts in {resource_group_name}",
        lambda: list(clients.cosmosdb.database_accounts.list_by_resource_group(resource_group_name)),
    )
    logger.debug(f"Listed {len(accounts)} database accounts in {resource_group_name}")
    return accounts


def list_accounts_by_group(
    clients: ManagementClients,
    groups: Sequence[Any],
    parallel_groups: int = DEFAULT_PARALLEL_GROUPS
) -> List[ResourceGroupAccounts]:
    """
    List database accounts for every resource group.

    The per-group calls are independent. With parallel_groups > 1 they run
    on a thread pool; the result keeps the order the groups were listed in.

    Raises:
        AuthError: On an authentication/authorization failure
        Exception: Any other SDK error from the first failing group
    """
    def list_group(group) -> ResourceGroupAccounts:
        return ResourceGroupAccounts(
            resource_group=group.name,
            accounts=list_database_accounts(clients, group.name),
        )

    with ProgressTracker("Listing database accounts", total=len(groups)) as tracker:
        results = ordered_parallel_map(
            list_group,
            groups,
            parallel_workers=parallel_groups,
            on_done=lambda group: tracker.advance(group.name),
        )

    total = sum(len(r.accounts) for r in results)
    logger.info(f"Found {total} database accounts in {len(results)} resource groups")
    return results
