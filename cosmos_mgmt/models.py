"""
Data models for the Cosmos DB management report.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Service principal credential and target subscription.

    Passed explicitly from the entry point into authentication and client
    construction; nothing reads these values from global state.
    """
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    subscription_id: str = ""


@dataclass
class ResourceGroupAccounts:
    """A resource group and the database accounts listed in it."""
    resource_group: str
    accounts: List[Any] = field(default_factory=list)


@dataclass
class DatabaseAccountRecord:
    """
    Flat view of a Cosmos DB database account for JSON output.
    """
    resource_group: str
    name: Optional[str] = None
    kind: Optional[str] = None
    location: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
