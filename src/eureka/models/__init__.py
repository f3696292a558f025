"""
Eureka Data Models

Shared dataclasses for deployment and tenancy, depending only on
eureka.constants to avoid circular dependencies.
"""

from .containers import (
    ContainerSet,
    ContainerSpec,
    ContainerSummary,
    ModuleDescriptor,
    ModulePair,
    RegistryModule,
    ResourceLimits,
)
from .readiness import ReadinessEntry, ReadinessOutcome, ReadinessRecord
from .tenants import Consortium, ConsortiumTenant, Tenant, sort_consortium_tenants

__all__ = [
    "Consortium",
    "ConsortiumTenant",
    "ContainerSet",
    "ContainerSpec",
    "ContainerSummary",
    "ModuleDescriptor",
    "ModulePair",
    "ReadinessEntry",
    "ReadinessOutcome",
    "ReadinessRecord",
    "RegistryModule",
    "ResourceLimits",
    "Tenant",
    "sort_consortium_tenants",
]
