"""Module descriptor resolution.

Merges config-declared backend modules with registry listings into
deployable ModuleDescriptors.

Rules:
- DEFAULT entries (YAML null) take every default: deploy the module, and
  deploy a sidecar unless the name starts with ``mgr-`` or ``edge-``
- EXPLICIT entries fall back to the default only for fields they omit
- A fixed version in config always wins over the registry
- A deployable module with no version anywhere is a fatal config error
- Explicit ports are reserved before anything is auto-allocated, and all
  allocation finishes here, before any concurrent deployment starts
"""

import logging

from eureka import constants
from eureka.config_manager import ModuleEntry, ResourceSettings
from eureka.errors import ModuleVersionUnresolved
from eureka.models import ModuleDescriptor, RegistryModule, ResourceLimits
from eureka.port_allocator import PortAllocator
from eureka.registry_client import find_registry_version, module_image, sidecar_name_for

logger = logging.getLogger(__name__)


def supports_sidecar(name: str) -> bool:
    """Management and edge modules never run behind a sidecar."""
    return not (
        name.startswith(constants.MANAGEMENT_MODULE_PREFIX)
        or name.startswith(constants.EDGE_MODULE_PREFIX)
    )


def apply_resources(defaults: ResourceLimits, overrides: ResourceSettings | None) -> ResourceLimits:
    """Overlay configured resource fields onto defaults."""
    if overrides is None:
        return defaults
    return ResourceLimits(
        cpu_count=overrides.cpu_count if overrides.cpu_count is not None else defaults.cpu_count,
        memory_reservation=(
            overrides.memory_reservation
            if overrides.memory_reservation is not None
            else defaults.memory_reservation
        ),
        memory=overrides.memory if overrides.memory is not None else defaults.memory,
        memory_swap=(
            overrides.memory_swap if overrides.memory_swap is not None else defaults.memory_swap
        ),
        oom_kill_disable=(
            overrides.oom_kill_disable
            if overrides.oom_kill_disable is not None
            else defaults.oom_kill_disable
        ),
    )


class ModuleResolver:
    """Resolve config entries plus registry listings into descriptors."""

    def __init__(self, allocator: PortAllocator):
        self.allocator = allocator

    def resolve(
        self,
        entries: dict[str, ModuleEntry],
        registry_modules: dict[str, list[RegistryModule]],
    ) -> dict[str, ModuleDescriptor]:
        """Build descriptors for every configured module, in config order.

        Args:
            entries: Config module name -> tagged entry (already merged)
            registry_modules: Registry name -> modules from the install listings

        Returns:
            Module name -> ModuleDescriptor. Modules flagged not to deploy are
            kept only when a version is known.

        Raises:
            ModuleVersionUnresolved: If a deployable module has no version
            PortRangeExhausted: If the port range runs out
            ConfigurationError: If two modules pin the same port
        """
        for entry in entries.values():
            port = entry.settings.port
            if port is not None and entry.settings.deploy_module is not False:
                self.allocator.reserve(port)

        descriptors: dict[str, ModuleDescriptor] = {}
        for name, entry in entries.items():
            descriptor = self._resolve_one(name, entry, registry_modules)
            if descriptor is not None:
                descriptors[name] = descriptor

        logger.debug(f"Resolved {len(descriptors)} module descriptors")
        return descriptors

    def _resolve_one(
        self,
        name: str,
        entry: ModuleEntry,
        registry_modules: dict[str, list[RegistryModule]],
    ) -> ModuleDescriptor | None:
        settings = entry.settings
        deploy_module = settings.deploy_module if settings.deploy_module is not None else True

        version = settings.version or find_registry_version(registry_modules, name)
        if version is None:
            if deploy_module:
                raise ModuleVersionUnresolved(name)
            logger.debug(f"Skipping {name}: not deployed and no version known")
            return None

        deploy_sidecar = supports_sidecar(name)
        if settings.deploy_sidecar is not None:
            if settings.deploy_sidecar and not deploy_sidecar:
                logger.warning(f"Ignoring deploy-sidecar for {name}: module runs without a sidecar")
            deploy_sidecar = deploy_sidecar and settings.deploy_sidecar

        descriptor = ModuleDescriptor(
            name=name,
            version=version,
            image=module_image(name, version),
            deploy_module=deploy_module,
            deploy_sidecar=deploy_sidecar,
            use_vault=bool(settings.use_vault),
            use_gateway_url=bool(settings.use_gateway_url),
            disable_system_user=bool(settings.disable_system_user),
            private_port=settings.port_server or constants.PRIVATE_SERVER_PORT,
            sidecar_name=sidecar_name_for(name),
            environment=dict(settings.environment or {}),
            resources=apply_resources(ResourceLimits.module_defaults(), settings.resources),
            volumes=list(settings.volumes or []),
            local_descriptor_path=settings.local_descriptor_path,
        )

        if deploy_module:
            descriptor.port = settings.port if settings.port is not None else self.allocator.allocate()
            descriptor.debug_port = self.allocator.allocate()
            if deploy_sidecar:
                descriptor.sidecar_port = self.allocator.allocate()
                descriptor.sidecar_debug_port = self.allocator.allocate()

            logger.debug(
                f"Resolved {name} {version}: port={descriptor.port} "
                f"debug={descriptor.debug_port} sidecar={descriptor.sidecar_port}"
            )

        return descriptor


__all__ = ["ModuleResolver", "apply_resources", "supports_sidecar"]
