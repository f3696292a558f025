"""Tenant and consortium partitioning.

A partition is a (consortium, tenant type) pair. Without consortiums there is
a single synthetic partition, ``("nop", "default")``. With consortiums every
consortium is visited in config order, central partition before member
partition, so a central tenant is always processed before its members.

Everything here runs sequentially: each step needs state (fresh tokens, new
tenant ids) produced by the one before it.
"""

import logging
from typing import Callable

from eureka import constants
from eureka.config_manager import EurekaConfig
from eureka.identity_provider import GrantType, IdentityProvider
from eureka.management_service import ManagementService
from eureka.models import Tenant

logger = logging.getLogger(__name__)

PartitionAction = Callable[[str, str], None]
TenantAction = Callable[[Tenant, str], None]


class TenantPartitioner:
    """Drive per-partition and per-tenant actions in a deterministic order."""

    def __init__(
        self,
        config: EurekaConfig,
        identity: IdentityProvider,
        management: ManagementService,
    ):
        self.config = config
        self.identity = identity
        self.management = management
        self.master_token: str | None = None

    def partitions(self) -> list[tuple[str, str]]:
        """All (consortium, tenant type) pairs in traversal order."""
        if not self.config.consortiums:
            return [(constants.NO_CONSORTIUM, constants.DEFAULT_TENANT_TYPE)]
        return [
            (consortium, tenant_type)
            for consortium in self.config.consortiums
            for tenant_type in constants.TENANT_TYPES
        ]

    def partition(self, fn: PartitionAction) -> None:
        """Invoke ``fn(consortium, tenant_type)`` for every partition.

        The first exception aborts the remaining partitions.
        """
        for consortium, tenant_type in self.partitions():
            logger.info(f"Running partition {consortium}-{tenant_type}")
            fn(consortium, tenant_type)

    def for_each_tenant(self, consortium: str, tenant_type: str, fn: TenantAction) -> None:
        """Invoke ``fn(tenant, description)`` for each configured live tenant.

        Tenants are visited in the order the management service returns them.
        Each tenant carries a freshly issued access token.
        """
        description = f"{consortium}-{tenant_type}"
        self.master_token = self.identity.get_access_token(
            constants.MASTER_REALM, GrantType.CLIENT_CREDENTIALS
        )

        for tenant in self.management.get_tenants(consortium, tenant_type):
            if tenant.name not in self.config.tenants:
                logger.debug(f"Skipping tenant {tenant.name}: not in config")
                continue
            tenant.access_token = self.identity.get_access_token(tenant.name)
            fn(tenant, description)

    def for_all_tenants(self, fn: TenantAction) -> None:
        """Every partition, every configured tenant, central tenants first."""
        self.partition(lambda consortium, tenant_type: self.for_each_tenant(consortium, tenant_type, fn))


__all__ = ["PartitionAction", "TenantAction", "TenantPartitioner"]
