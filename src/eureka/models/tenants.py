"""Tenant and consortium models."""

from dataclasses import dataclass
from typing import Any


@dataclass
class Tenant:
    """A live tenant record from the management service.

    ``access_token`` is filled in by the partitioner right before the
    per-tenant action runs.
    """

    id: str
    name: str
    description: str = ""
    access_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tenant":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
        )


@dataclass
class Consortium:
    """A consortium as stored by the consortia API."""

    id: str
    name: str


@dataclass
class ConsortiumTenant:
    """A configured tenant inside a consortium."""

    consortium: str
    tenant: str
    is_central: bool = False

    @property
    def sort_weight(self) -> int:
        """1 for the central tenant, 0 for members. Higher sorts first."""
        return 1 if self.is_central else 0

    @property
    def code(self) -> str:
        return self.tenant[0:3]

    def __str__(self) -> str:
        if self.is_central:
            return f"{self.tenant} (central)"
        return self.tenant


def sort_consortium_tenants(tenants: list[ConsortiumTenant]) -> list[ConsortiumTenant]:
    """Central tenant first, members after in their original order."""
    return sorted(tenants, key=lambda t: -t.sort_weight)


__all__ = ["Consortium", "ConsortiumTenant", "Tenant", "sort_consortium_tenants"]
