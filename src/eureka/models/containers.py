"""Container deployment models.

These are in-memory projections built per command invocation and discarded
at process exit. Nothing here is persisted.
"""

from dataclasses import dataclass, field

from eureka import constants


@dataclass
class RegistryModule:
    """A module entry from a registry install listing."""

    id: str
    action: str = "enable"
    name: str = ""
    version: str | None = None
    sidecar_name: str = ""

    @property
    def is_management(self) -> bool:
        return self.name.startswith(constants.MANAGEMENT_MODULE_PREFIX)


@dataclass
class ResourceLimits:
    """Resolved container resources (memory values in MiB)."""

    cpu_count: int
    memory_reservation: int
    memory: int
    memory_swap: int
    oom_kill_disable: bool = False

    @classmethod
    def module_defaults(cls) -> "ResourceLimits":
        return cls(
            cpu_count=constants.MODULE_CPU,
            memory_reservation=constants.MODULE_MEMORY_RESERVATION,
            memory=constants.MODULE_MEMORY,
            memory_swap=constants.MODULE_SWAP,
        )

    @classmethod
    def sidecar_defaults(cls) -> "ResourceLimits":
        return cls(
            cpu_count=constants.SIDECAR_CPU,
            memory_reservation=constants.SIDECAR_MEMORY_RESERVATION,
            memory=constants.SIDECAR_MEMORY,
            memory_swap=constants.SIDECAR_SWAP,
        )


@dataclass
class ModuleDescriptor:
    """A fully resolved, deployable backend module.

    ``version`` is resolved exactly once, from config or from the registry.
    Ports are host ports from the allocator unless pinned in config.
    """

    name: str
    version: str
    image: str = ""
    deploy_module: bool = True
    deploy_sidecar: bool = True
    use_vault: bool = False
    use_gateway_url: bool = False
    disable_system_user: bool = False
    port: int = 0
    debug_port: int = 0
    private_port: int = constants.PRIVATE_SERVER_PORT
    private_debug_port: int = constants.PRIVATE_DEBUG_PORT
    sidecar_port: int | None = None
    sidecar_debug_port: int | None = None
    sidecar_name: str = ""
    environment: dict[str, str] = field(default_factory=dict)
    resources: ResourceLimits = field(default_factory=ResourceLimits.module_defaults)
    volumes: list[str] = field(default_factory=list)
    local_descriptor_path: str | None = None

    @property
    def module_id(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def is_management(self) -> bool:
        return self.name.startswith(constants.MANAGEMENT_MODULE_PREFIX)

    @property
    def pull_image(self) -> bool:
        """Locally built modules (with a descriptor on disk) are never pulled."""
        return self.local_descriptor_path is None

    @property
    def has_sidecar(self) -> bool:
        return self.deploy_sidecar and self.sidecar_port is not None


@dataclass
class ContainerSpec:
    """Everything the container runtime needs to create and start a container."""

    name: str
    hostname: str
    image: str
    env: list[str] = field(default_factory=list)
    port_bindings: dict[int, int] = field(default_factory=dict)
    resources: ResourceLimits = field(default_factory=ResourceLimits.module_defaults)
    volumes: list[str] = field(default_factory=list)
    restart_policy: str = constants.RESTART_POLICY
    network: str = constants.NETWORK_ID
    pull_image: bool = True


@dataclass
class ContainerSummary:
    """A container as reported by the runtime's list operation."""

    id: str
    name: str
    image: str = ""
    status: str = ""


@dataclass
class ModulePair:
    """A module container and its optional sidecar container."""

    module: ContainerSpec
    sidecar: ContainerSpec | None = None

    @property
    def container_names(self) -> list[str]:
        names = [self.module.name]
        if self.sidecar is not None:
            names.append(self.sidecar.name)
        return names

    @property
    def host_ports(self) -> set[int]:
        ports = set(self.module.port_bindings.values())
        if self.sidecar is not None:
            ports |= set(self.sidecar.port_bindings.values())
        return ports


@dataclass
class ContainerSet:
    """The projection used for one deployment pass.

    ``management_only`` selects the management pass (``mgr-`` modules) or the
    business pass (everything else). The two never mix.
    """

    profile: str
    descriptors: dict[str, ModuleDescriptor]
    registry_modules: dict[str, list[RegistryModule]] = field(default_factory=dict)
    management_only: bool = False
    global_env: list[str] = field(default_factory=list)
    sidecar_env: list[str] = field(default_factory=list)
    sidecar_env_overrides: dict[str, str] = field(default_factory=dict)
    vault_token: str = ""
    sidecar_image: str | None = None
    pull_sidecar_image: bool = True
    sidecar_resources: ResourceLimits = field(default_factory=ResourceLimits.sidecar_defaults)

    def container_name(self, name: str) -> str:
        """Derived container name, ``<profile>-<name>``."""
        return f"{self.profile}-{name}"

    def selected(self) -> list[ModuleDescriptor]:
        """Descriptors deployed by this pass, in config order."""
        return [
            d
            for d in self.descriptors.values()
            if d.deploy_module and d.is_management == self.management_only
        ]


__all__ = [
    "ContainerSet",
    "ContainerSpec",
    "ContainerSummary",
    "ModuleDescriptor",
    "ModulePair",
    "RegistryModule",
    "ResourceLimits",
]
