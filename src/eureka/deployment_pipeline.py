"""Top-level deployment pipeline.

Sequences the deployment engine for the CLI commands:

    resolve -> deploy management -> readiness -> gateway routes
            -> deploy modules -> readiness -> application -> tenants
            -> per partition: entitlement, roles, users, capability sets
            -> consortiums

Every step is sequential and fails fast. Containers from a failed pass are
left running for an explicit undeploy.
"""

import logging
from dataclasses import dataclass

from eureka import constants
from eureka.api_gateway import MANAGEMENT_ROUTE_EXPRESSIONS
from eureka.capability_saga import CapabilitySetSaga, capability_consumer_group
from eureka.deployment_orchestrator import DeploymentOrchestrator
from eureka.errors import ContainerRuntimeError
from eureka.models import ContainerSet, ModuleDescriptor, RegistryModule, ResourceLimits, Tenant
from eureka.module_resolver import ModuleResolver, apply_resources
from eureka.port_allocator import PortAllocator, is_port_free
from eureka.readiness_verifier import ReadinessVerifier, http_health_probe
from eureka.registry_client import sidecar_image
from eureka.services import Services
from eureka.tenant_partitioner import TenantPartitioner

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Registry listings plus the descriptors resolved from them."""

    registry_modules: dict[str, list[RegistryModule]]
    descriptors: dict[str, ModuleDescriptor]


class DeploymentPipeline:
    """Run deployment and tenancy steps against a set of collaborators."""

    def __init__(
        self,
        services: Services,
        orchestrator: DeploymentOrchestrator | None = None,
        verifier: ReadinessVerifier | None = None,
        check_host_ports: bool = True,
    ):
        self.services = services
        self.config = services.config
        self.orchestrator = orchestrator or DeploymentOrchestrator(services.runtime)
        self.verifier = verifier or ReadinessVerifier(
            http_health_probe(services.http, self.config.application.gateway_hostname),
            max_retries=services.timing.readiness_max_retries,
            retry_delay=services.timing.readiness_delay,
        )
        self.partitioner = TenantPartitioner(self.config, services.identity, services.management)
        self.check_host_ports = check_host_ports

    # Deployment

    def resolve(self) -> Resolution:
        """Fetch registry listings and resolve every configured module."""
        registry_modules = self.services.registry.get_modules()
        application = self.config.application
        allocator = PortAllocator(
            application.port_start,
            application.port_end,
            is_free=is_port_free if self.check_host_ports else None,
        )
        descriptors = ModuleResolver(allocator).resolve(self.config.backend_modules, registry_modules)
        return Resolution(registry_modules=registry_modules, descriptors=descriptors)

    def _vault_token(self, required: bool) -> str:
        try:
            return self.services.secret_store.get_root_token()
        except ContainerRuntimeError as e:
            if required:
                raise
            logger.warning(f"Vault root token unavailable, continuing without it: {e}")
            return ""

    def container_set(self, resolution: Resolution, management_only: bool) -> ContainerSet:
        """Project a resolution onto one deployment pass."""
        containers = ContainerSet(
            profile=self.config.profile,
            descriptors=resolution.descriptors,
            registry_modules=resolution.registry_modules,
            management_only=management_only,
            global_env=self.config.global_env(),
            sidecar_env=self.config.global_env(),
            sidecar_env_overrides=dict(self.config.sidecar.environment),
            sidecar_resources=apply_resources(
                ResourceLimits.sidecar_defaults(), self.config.sidecar.resources
            ),
        )

        selected = containers.selected()
        if not management_only and any(d.has_sidecar for d in selected):
            containers.sidecar_image, containers.pull_sidecar_image = sidecar_image(
                self.config.sidecar, resolution.registry_modules
            )

        needs_vault = any(d.use_vault or d.has_sidecar for d in selected)
        containers.vault_token = self._vault_token(required=needs_vault)
        return containers

    def deploy_pass(self, resolution: Resolution, management_only: bool) -> dict[str, int]:
        """Deploy one pass and wait for its modules to become ready."""
        kind = "management" if management_only else "module"
        containers = self.container_set(resolution, management_only)
        ports = self.orchestrator.deploy_all(containers)
        self.verifier.check_all(kind, ports)
        return ports

    def deploy_management(self) -> dict[str, int]:
        return self.deploy_pass(self.resolve(), management_only=True)

    def deploy_modules(self) -> dict[str, int]:
        return self.deploy_pass(self.resolve(), management_only=False)

    def deploy_application(self, initial_delay: float | None = None) -> Resolution:
        """Run the whole pipeline, from containers to consortiums."""
        resolution = self.resolve()

        self.deploy_pass(resolution, management_only=True)
        self.services.gateway.wait_for_routes(MANAGEMENT_ROUTE_EXPRESSIONS)
        self.deploy_pass(resolution, management_only=False)

        self.services.management.create_application(resolution.descriptors)
        self.services.management.create_tenants()

        saga = self.capability_saga(initial_delay)

        def setup_tenant(tenant: Tenant, description: str) -> None:
            logger.info(f"Setting up tenant {tenant.name} ({description})")
            token = tenant.access_token or ""
            self.services.identity.create_roles(tenant.name, token)
            self.services.identity.create_users(tenant.name, token)
            saga.run(tenant)

        def setup_partition(consortium: str, tenant_type: str) -> None:
            self.services.management.create_tenant_entitlement(consortium, tenant_type)
            self.partitioner.for_each_tenant(consortium, tenant_type, setup_tenant)

        self.partitioner.partition(setup_partition)
        self.services.consortiums.create_consortiums()
        return resolution

    def undeploy(self, name_pattern: str) -> list[str]:
        return self.orchestrator.undeploy_by_pattern(name_pattern)

    # Tenancy

    def capability_saga(self, initial_delay: float | None = None) -> CapabilitySetSaga:
        timing = self.services.timing
        return CapabilitySetSaga(
            self.services.broker,
            self.services.identity,
            capability_consumer_group(self.config.env_name),
            timeout=timing.saga_timeout,
            poll_interval=timing.saga_poll_interval,
            initial_delay=timing.saga_initial_delay if initial_delay is None else initial_delay,
        )

    def create_tenant_entitlements(self) -> None:
        self.partitioner.partition(self.services.management.create_tenant_entitlement)

    def remove_tenant_entitlements(self, purge: bool) -> None:
        self.partitioner.partition(
            lambda consortium, tenant_type: self.services.management.remove_tenant_entitlements(
                consortium, tenant_type, purge
            )
        )

    def remove_tenants(self) -> None:
        self.partitioner.partition(self.services.management.remove_tenants)

    def create_roles(self) -> None:
        identity = self.services.identity
        self.partitioner.for_all_tenants(
            lambda tenant, _: identity.create_roles(tenant.name, tenant.access_token or "")
        )

    def remove_roles(self) -> None:
        identity = self.services.identity
        self.partitioner.for_all_tenants(
            lambda tenant, _: identity.remove_roles(tenant.name, tenant.access_token or "")
        )

    def create_users(self) -> None:
        identity = self.services.identity
        self.partitioner.for_all_tenants(
            lambda tenant, _: identity.create_users(tenant.name, tenant.access_token or "")
        )

    def remove_users(self) -> None:
        identity = self.services.identity
        self.partitioner.for_all_tenants(
            lambda tenant, _: identity.remove_users(tenant.name, tenant.access_token or "")
        )

    def attach_capability_sets(self, initial_delay: float | None = None) -> None:
        saga = self.capability_saga(initial_delay)
        self.partitioner.for_all_tenants(lambda tenant, _: saga.run(tenant))

    def detach_capability_sets(self) -> None:
        identity = self.services.identity
        self.partitioner.for_all_tenants(
            lambda tenant, _: identity.detach_capability_sets(tenant.name, tenant.access_token or "")
        )

    def update_realm_lifespan(self, seconds: int, realm: str = constants.MASTER_REALM) -> None:
        identity = self.services.identity
        token = identity.get_access_token(constants.MASTER_REALM)
        identity.update_realm_access_token_lifespan(realm, seconds, token)


__all__ = ["DeploymentPipeline", "Resolution"]
