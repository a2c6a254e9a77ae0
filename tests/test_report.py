"""
Tests for the console report layout and the JSON report.
"""
import os
import sys
from enum import Enum
from types import SimpleNamespace
from unittest.mock import Mock

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cosmos_mgmt.models import ResourceGroupAccounts
from cosmos_mgmt.report import (
    account_records,
    build_report,
    print_database_accounts,
    print_provider_details,
    print_subscription_details,
)

SEP = "-" * 52


class SubscriptionState(str, Enum):
    ENABLED = "Enabled"


class SpendingLimit(str, Enum):
    OFF = "Off"


# =============================================================================
# Helper Functions
# =============================================================================

def create_mock_subscription():
    sub = Mock()
    sub.id = "/subscriptions/12345678-1234-1234-1234-123456789012"
    sub.subscription_id = "12345678-1234-1234-1234-123456789012"
    sub.display_name = "Dev Subscription"
    sub.state = SubscriptionState.ENABLED
    sub.subscription_policies = Mock()
    sub.subscription_policies.location_placement_id = "Public_2014-09-01"
    sub.subscription_policies.quota_id = "PayAsYouGo_2014-09-01"
    sub.subscription_policies.spending_limit = SpendingLimit.OFF
    return sub


def create_mock_provider():
    provider = Mock()
    provider.id = "/subscriptions/12345678-1234-1234-1234-123456789012/providers/Microsoft.Search"
    provider.namespace = "Microsoft.Search"
    provider.registration_policy = "RegistrationRequired"
    provider.registration_state = "Registered"
    provider.resource_types = [
        SimpleNamespace(
            resource_type="searchServices",
            locations=["West US", "East US"],
            api_versions=["2020-08-01", "2015-08-19"],
        ),
        SimpleNamespace(resource_type="operations", locations=[], api_versions=["2020-08-01"]),
    ]
    return provider


def create_mock_account(name: str, kind: str = "GlobalDocumentDB", location: str = "East US"):
    account = Mock()
    account.name = name
    account.kind = kind
    account.location = location
    account.id = f"/subscriptions/x/resourceGroups/rg/providers/Microsoft.DocumentDB/databaseAccounts/{name}"
    return account


# =============================================================================
# Subscription block
# =============================================================================

class TestPrintSubscriptionDetails:
    """Tests for print_subscription_details."""

    def test_layout(self, capsys):
        print_subscription_details(create_mock_subscription())

        assert capsys.readouterr().out.splitlines() == [
            SEP,
            "Subscription Details",
            SEP,
            "",
            "id: /subscriptions/12345678-1234-1234-1234-123456789012",
            "subscriptionId: 12345678-1234-1234-1234-123456789012",
            "displayName: Dev Subscription",
            "state: Enabled",
            "subscriptionPolicies:",
            "   locationPlacementId: Public_2014-09-01",
            "   quotaId: PayAsYouGo_2014-09-01",
            "   spendingLimit: Off",
            "",
            SEP,
            "",
        ]

    def test_missing_fields_print_empty(self, capsys):
        sub = SimpleNamespace(id=None, subscription_id=None, display_name=None, state=None,
                              subscription_policies=None)

        print_subscription_details(sub)

        lines = capsys.readouterr().out.splitlines()
        assert "displayName: " in lines
        assert "   quotaId: " in lines
        assert "   spendingLimit: " in lines


# =============================================================================
# Provider block
# =============================================================================

class TestPrintProviderDetails:
    """Tests for print_provider_details."""

    def test_layout(self, capsys):
        print_provider_details(create_mock_provider())

        assert capsys.readouterr().out.splitlines() == [
            SEP,
            "Azure Search Provider Details",
            SEP,
            "",
            "id: /subscriptions/12345678-1234-1234-1234-123456789012/providers/Microsoft.Search",
            "namespace: Microsoft.Search",
            "registrationPolicy: RegistrationRequired",
            "resourceTypes:",
            "   resourceType: searchServices",
            "      locations:",
            "         West US",
            "         East US",
            "      apiVersions:",
            "         2020-08-01",
            "         2015-08-19",
            "   resourceType: operations",
            "      locations:",
            "      apiVersions:",
            "         2020-08-01",
            "registrationState: Registered",
            "",
            SEP,
            "",
        ]

    def test_no_resource_types(self, capsys):
        provider = SimpleNamespace(id=None, namespace="Microsoft.DocumentDB", registration_policy=None,
                                   registration_state="Registering", resource_types=None)

        print_provider_details(provider)

        out = capsys.readouterr().out
        assert "resourceTypes:\nregistrationState: Registering\n" in out

    def test_other_namespace_title(self, capsys):
        provider = SimpleNamespace(id=None, namespace="Microsoft.DocumentDB", registration_policy=None,
                                   registration_state="Registered", resource_types=[])

        print_provider_details(provider)

        lines = capsys.readouterr().out.splitlines()
        assert lines[1] == "Microsoft.DocumentDB Provider Details"
        assert "namespace: Microsoft.DocumentDB" in lines


# =============================================================================
# Accounts block
# =============================================================================

class TestPrintDatabaseAccounts:
    """Tests for print_database_accounts."""

    def test_empty_group_prints_nothing(self, capsys):
        """G1 with two accounts gets a header and two lines; G2 with none is absent."""
        groups = [
            ResourceGroupAccounts("G1", [
                create_mock_account("db-one"),
                create_mock_account("db-two", kind="MongoDB", location="West Europe"),
            ]),
            ResourceGroupAccounts("G2", []),
        ]

        print_database_accounts(groups)

        assert capsys.readouterr().out.splitlines() == [
            SEP,
            "List all database accounts in the subscription by resource group",
            SEP,
            "resourceGroup: G1",
            "   database name: db-one, type: GlobalDocumentDB, location: East US",
            "   database name: db-two, type: MongoDB, location: West Europe",
            "",
        ]

    def test_group_order_preserved(self, capsys):
        groups = [
            ResourceGroupAccounts("zeta", [create_mock_account("z")]),
            ResourceGroupAccounts("alpha", [create_mock_account("a")]),
        ]

        print_database_accounts(groups)

        out = capsys.readouterr().out
        assert out.index("resourceGroup: zeta") < out.index("resourceGroup: alpha")

    def test_no_groups(self, capsys):
        print_database_accounts([])

        assert capsys.readouterr().out.splitlines() == [
            SEP,
            "List all database accounts in the subscription by resource group",
            SEP,
            "",
        ]


# =============================================================================
# JSON report
# =============================================================================

class TestBuildReport:
    """Tests for build_report and account_records."""

    def test_account_records(self):
        groups = [
            ResourceGroupAccounts("G1", [create_mock_account("db-one")]),
            ResourceGroupAccounts("G2", []),
        ]

        records = account_records(groups)

        assert len(records) == 1
        assert records[0].to_dict() == {
            "resource_group": "G1",
            "name": "db-one",
            "kind": "GlobalDocumentDB",
            "location": "East US",
            "id": "/subscriptions/x/resourceGroups/rg/providers/Microsoft.DocumentDB/databaseAccounts/db-one",
        }

    def test_report_contents(self):
        groups = [
            ResourceGroupAccounts("G1", [create_mock_account("a"), create_mock_account("b")]),
            ResourceGroupAccounts("G2", []),
        ]

        report = build_report(create_mock_subscription(), create_mock_provider(), groups, run_id="run-1")

        assert report["run_id"] == "run-1"
        assert report["subscription"]["state"] == "Enabled"
        assert report["subscription"]["spending_limit"] == "Off"
        assert report["provider"]["namespace"] == "Microsoft.Search"
        assert report["provider"]["resource_types"][0]["locations"] == ["West US", "East US"]
        assert report["resource_group_count"] == 2
        assert report["account_count"] == 2
        assert [a["name"] for a in report["accounts"]] == ["a", "b"]
