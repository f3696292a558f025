"""Configuration management module.

This module loads the eureka YAML configuration and validates it once into
typed dataclasses, so the rest of the pipeline never inspects raw mappings.

Module entries are tagged:
- DEFAULT: the YAML value is null, every field takes its resolver default
- EXPLICIT: the YAML value is a mapping, only the keys present are set

Security:
- Path validation (config must live in an allowed directory)
- yaml.safe_load only
"""

import logging
import tempfile
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from eureka import constants
from eureka.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigError(ConfigurationError):
    """Raised when configuration operations fail."""

    pass


class ModuleEntryKind(Enum):
    """Kind of a backend module entry in the config."""

    DEFAULT = "default"
    EXPLICIT = "explicit"


_RESOURCE_KEYS = {
    "cpu-count": "cpu_count",
    "memory-reservation": "memory_reservation",
    "memory": "memory",
    "memory-swap": "memory_swap",
    "oom-kill-disable": "oom_kill_disable",
}

_MODULE_BOOL_KEYS = {
    "deploy-module": "deploy_module",
    "deploy-sidecar": "deploy_sidecar",
    "use-vault": "use_vault",
    "disable-system-user": "disable_system_user",
    "use-okapi-url": "use_gateway_url",
    "use-gateway-url": "use_gateway_url",
}

_MODULE_INT_KEYS = {
    "port": "port",
    "port-server": "port_server",
}


def _require_bool(owner: str, key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{owner}: '{key}' must be a boolean, got {value!r}")
    return value


def _require_int(owner: str, key: str, value: Any) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{owner}: '{key}' must be an integer, got {value!r}")
    return value


def _require_mapping(owner: str, key: str, value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{owner}: '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _normalize_version(owner: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"{owner}: 'version' must be a string or number, got {value!r}")
    return str(value)


def _environment(owner: str, key: str, value: Any) -> dict[str, str]:
    mapping = _require_mapping(owner, key, value or {})
    return {str(k): "" if v is None else str(v) for k, v in mapping.items() if k}


@dataclass
class ResourceSettings:
    """Container resource overrides. None means "use the default"."""

    cpu_count: int | None = None
    memory_reservation: int | None = None
    memory: int | None = None
    memory_swap: int | None = None
    oom_kill_disable: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], owner: str) -> "ResourceSettings":
        """Validate a ``resources`` mapping."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            attr = _RESOURCE_KEYS.get(key)
            if attr is None:
                raise ConfigError(f"{owner}: unknown resource setting '{key}'")
            if attr == "oom_kill_disable":
                values[attr] = _require_bool(owner, key, value)
            else:
                values[attr] = _require_int(owner, key, value)
        return cls(**values)

    def merge(self, other: "ResourceSettings") -> "ResourceSettings":
        """Return a copy where every field set in ``other`` wins."""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)


@dataclass
class ModuleSettings:
    """Fields a module entry may set explicitly. None means "unspecified"."""

    deploy_module: bool | None = None
    deploy_sidecar: bool | None = None
    use_vault: bool | None = None
    disable_system_user: bool | None = None
    use_gateway_url: bool | None = None
    version: str | None = None
    port: int | None = None
    port_server: int | None = None
    local_descriptor_path: str | None = None
    environment: dict[str, str] | None = None
    resources: ResourceSettings | None = None
    volumes: list[str] | None = None

    def specified(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class ModuleEntry:
    """A backend module as declared in config."""

    name: str
    kind: ModuleEntryKind
    settings: ModuleSettings = field(default_factory=ModuleSettings)

    @classmethod
    def from_yaml(cls, name: str, value: Any) -> "ModuleEntry":
        """Build a tagged entry from the raw YAML value.

        Raises:
            ConfigError: If any field has the wrong type or the local
                descriptor path does not exist
        """
        if value is None:
            return cls(name=name, kind=ModuleEntryKind.DEFAULT)

        owner = f"Module {name}"
        data = _require_mapping(owner, name, value)
        settings = ModuleSettings()

        for key, raw in data.items():
            if raw is None:
                continue
            if key in _MODULE_BOOL_KEYS:
                setattr(settings, _MODULE_BOOL_KEYS[key], _require_bool(owner, key, raw))
            elif key in _MODULE_INT_KEYS:
                setattr(settings, _MODULE_INT_KEYS[key], _require_int(owner, key, raw))
            elif key == "version":
                settings.version = _normalize_version(owner, raw)
            elif key == "local-descriptor-path":
                path = Path(str(raw)).expanduser()
                if not path.is_file():
                    raise ConfigError(f"{owner}: local descriptor path does not exist: {path}")
                settings.local_descriptor_path = str(path)
            elif key == "environment":
                settings.environment = _environment(owner, key, raw)
            elif key == "resources":
                settings.resources = ResourceSettings.from_dict(
                    _require_mapping(owner, key, raw), owner
                )
            elif key == "volumes":
                if not isinstance(raw, list):
                    raise ConfigError(f"{owner}: 'volumes' must be a list")
                settings.volumes = [str(v) for v in raw]
            else:
                logger.warning(f"{owner}: ignoring unknown setting '{key}'")

        return cls(name=name, kind=ModuleEntryKind.EXPLICIT, settings=settings)

    def merge(self, other: "ModuleEntry") -> "ModuleEntry":
        """Merge a later occurrence of the same module field by field.

        Fields specified by ``other`` override, everything else is kept.
        Resources merge per resource field.
        """
        if other.kind is ModuleEntryKind.DEFAULT:
            return self

        updates = other.settings.specified()
        if self.settings.resources and other.settings.resources:
            updates["resources"] = self.settings.resources.merge(other.settings.resources)

        return ModuleEntry(
            name=self.name,
            kind=ModuleEntryKind.EXPLICIT,
            settings=replace(self.settings, **updates),
        )


@dataclass
class ApplicationConfig:
    """Application identity and networking settings."""

    name: str = "app-platform-minimal"
    version: str = "1.0.0"
    platform: str = "base"
    port_start: int = constants.DEFAULT_PORT_START
    port_end: int = constants.DEFAULT_PORT_END
    gateway_hostname: str = "localhost"
    dependencies: dict[str, Any] = field(default_factory=dict)

    @property
    def application_id(self) -> str:
        """Application id as registered with the management service."""
        return f"{self.name}-{self.version}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApplicationConfig":
        owner = "Application"
        config = cls(
            name=str(data.get("name", cls.name)),
            version=_normalize_version(owner, data.get("version", cls.version)),
            platform=str(data.get("platform", cls.platform)),
            port_start=_require_int(owner, "port-start", data.get("port-start", cls.port_start)),
            port_end=_require_int(owner, "port-end", data.get("port-end", cls.port_end)),
            gateway_hostname=str(data.get("gateway-hostname", cls.gateway_hostname)),
            dependencies=_require_mapping(owner, "dependencies", data.get("dependencies") or {}),
        )
        if config.port_start >= config.port_end:
            raise ConfigError(
                f"Application: port-start {config.port_start} must be below port-end {config.port_end}"
            )
        return config


@dataclass
class SidecarConfig:
    """Sidecar image and runtime settings shared by all sidecars."""

    image: str = constants.SIDECAR_PROJECT_NAME
    version: str | None = None
    local_image: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    resources: ResourceSettings = field(default_factory=ResourceSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SidecarConfig":
        owner = "Sidecar module"
        version = data.get("version")
        return cls(
            image=str(data.get("image") or constants.SIDECAR_PROJECT_NAME),
            version=_normalize_version(owner, version) if version is not None else None,
            local_image=data.get("local-image") or None,
            environment=_environment(owner, "environment", data.get("environment")),
            resources=ResourceSettings.from_dict(
                _require_mapping(owner, "resources", data.get("resources") or {}), owner
            ),
        )


@dataclass
class ConsortiumConfig:
    """Consortium creation switches."""

    name: str
    create_consortium: bool = True
    enable_central_ordering: bool = False


@dataclass
class TenantConfig:
    """A tenant declared in config."""

    name: str
    consortium: str | None = None
    central: bool = False
    deploy_ui: bool = False

    @property
    def description(self) -> str:
        """Description the management service stores for this tenant."""
        if self.consortium is None:
            return f"{constants.NO_CONSORTIUM}-{constants.DEFAULT_TENANT_TYPE}"
        tenant_type = constants.CENTRAL_TENANT_TYPE if self.central else constants.MEMBER_TENANT_TYPE
        return f"{self.consortium}-{tenant_type}"


@dataclass
class RoleConfig:
    """A role and the capability sets attached to it."""

    name: str
    tenant: str
    capability_sets: list[str] = field(default_factory=list)


@dataclass
class UserConfig:
    """A user created in a tenant."""

    username: str
    tenant: str
    password: str
    first_name: str = ""
    last_name: str = ""
    roles: list[str] = field(default_factory=list)
    consortium: str | None = None


@dataclass
class EurekaConfig:
    """Validated eureka configuration."""

    profile: str = "combined"
    application: ApplicationConfig = field(default_factory=ApplicationConfig)
    registry_url: str = constants.DEFAULT_REGISTRY_URL
    registry_urls: dict[str, str] = field(default_factory=dict)
    environment: dict[str, str] = field(default_factory=dict)
    sidecar: SidecarConfig = field(default_factory=SidecarConfig)
    backend_modules: dict[str, ModuleEntry] = field(default_factory=dict)
    consortiums: dict[str, ConsortiumConfig] = field(default_factory=dict)
    tenants: dict[str, TenantConfig] = field(default_factory=dict)
    roles: dict[str, RoleConfig] = field(default_factory=dict)
    users: dict[str, UserConfig] = field(default_factory=dict)

    @property
    def env_name(self) -> str:
        """Platform environment name (the ``ENV`` variable)."""
        return self.environment.get("ENV", constants.DEFAULT_ENV_NAME)

    def global_env(self) -> list[str]:
        """Global environment as ``KEY=VALUE`` strings, keys uppercased."""
        return [f"{k.upper()}={v}" for k, v in self.environment.items()]

    def consortium_tenants(self, consortium: str) -> list[TenantConfig]:
        """Configured tenants of a consortium, in config order."""
        return [t for t in self.tenants.values() if t.consortium == consortium]

    def central_tenant(self, consortium: str) -> str | None:
        """Name of the consortium's central tenant, if any."""
        for tenant in self.consortium_tenants(consortium):
            if tenant.central:
                return tenant.name
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EurekaConfig":
        """Create from a parsed YAML document.

        Raises:
            ConfigError: If any section is malformed
        """
        profile = data.get("profile") or {}
        install = data.get("install") or {}
        registry = data.get("registry") or {}

        registry_urls = {str(k): str(v) for k, v in install.items() if v}
        for registry_name in (constants.FOLIO_REGISTRY, constants.EUREKA_REGISTRY):
            install_url = registry.get(f"{registry_name}-install-json-url")
            if install_url and registry_name not in registry_urls:
                registry_urls[registry_name] = str(install_url)

        backend_modules: dict[str, ModuleEntry] = {}
        for section in ("backend-modules", "custom-backend-modules"):
            raw_modules = data.get(section) or {}
            for name, value in _require_mapping("Config", section, raw_modules).items():
                entry = ModuleEntry.from_yaml(name, value)
                if name in backend_modules:
                    backend_modules[name] = backend_modules[name].merge(entry)
                else:
                    backend_modules[name] = entry

        return cls(
            profile=str(profile.get("name", "combined")) if isinstance(profile, dict) else str(profile),
            application=ApplicationConfig.from_dict(data.get("application") or {}),
            registry_url=str(registry.get("url") or constants.DEFAULT_REGISTRY_URL).rstrip("/"),
            registry_urls=registry_urls,
            environment=_environment("Config", "environment", data.get("environment")),
            sidecar=SidecarConfig.from_dict(data.get("sidecar-module") or {}),
            backend_modules=backend_modules,
            consortiums=_parse_consortiums(data.get("consortiums") or {}),
            tenants=_parse_tenants(data.get("tenants") or {}),
            roles=_parse_roles(data.get("roles") or {}),
            users=_parse_users(data.get("users") or {}),
        )


def _parse_consortiums(raw: dict[str, Any]) -> dict[str, ConsortiumConfig]:
    result = {}
    for name, value in _require_mapping("Config", "consortiums", raw).items():
        value = value or {}
        result[name] = ConsortiumConfig(
            name=name,
            create_consortium=_require_bool(name, "create-consortium", value.get("create-consortium", True)),
            enable_central_ordering=_require_bool(
                name, "enable-central-ordering", value.get("enable-central-ordering", False)
            ),
        )
    return result


def _parse_tenants(raw: dict[str, Any]) -> dict[str, TenantConfig]:
    result = {}
    for name, value in _require_mapping("Config", "tenants", raw).items():
        value = value or {}
        result[name] = TenantConfig(
            name=name,
            consortium=value.get("consortium"),
            central=_require_bool(name, "central-tenant", value.get("central-tenant", False)),
            deploy_ui=_require_bool(name, "deploy-ui", value.get("deploy-ui", False)),
        )
    return result


def _parse_roles(raw: dict[str, Any]) -> dict[str, RoleConfig]:
    result = {}
    for name, value in _require_mapping("Config", "roles", raw).items():
        value = _require_mapping(f"Role {name}", name, value or {})
        capability_sets = value.get("capability-sets") or []
        if isinstance(capability_sets, str):
            capability_sets = [capability_sets]
        result[name.lower()] = RoleConfig(
            name=name.lower(),
            tenant=str(value.get("tenant", "")),
            capability_sets=[str(c) for c in capability_sets],
        )
    return result


def _parse_users(raw: dict[str, Any]) -> dict[str, UserConfig]:
    result = {}
    for username, value in _require_mapping("Config", "users", raw).items():
        value = _require_mapping(f"User {username}", username, value or {})
        if not value.get("tenant"):
            raise ConfigError(f"User {username}: 'tenant' is required")
        result[username] = UserConfig(
            username=username,
            tenant=str(value["tenant"]),
            password=str(value.get("password", "")),
            first_name=str(value.get("first-name", "")),
            last_name=str(value.get("last-name", "")),
            roles=[str(r) for r in value.get("roles") or []],
            consortium=value.get("consortium"),
        )
    return result


class ConfigManager:
    """Load eureka configuration files.

    Configuration is stored at ~/.eureka/config.eureka.yaml by default.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".eureka"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.eureka.yaml"

    @classmethod
    def _validate_config_path(cls, path: Path) -> Path:
        """Validate configuration file path for security.

        Security:
            - Resolves symlinks to prevent symlink attacks
            - Validates path is within ~/.eureka/, the cwd or the temp dir
        """
        resolved_path = path.resolve()

        allowed_dirs = [
            cls.DEFAULT_CONFIG_DIR.resolve(),
            Path.cwd().resolve(),
            Path(tempfile.gettempdir()).resolve(),
        ]

        for allowed_dir in allowed_dirs:
            try:
                resolved_path.relative_to(allowed_dir)
                return resolved_path
            except ValueError:
                continue

        raise ConfigError(
            f"Config path outside allowed directories: {resolved_path}\n"
            f"Allowed directories:\n"
            f"  - {cls.DEFAULT_CONFIG_DIR}\n"
            f"  - {Path.cwd()}"
        )

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Raises:
            ConfigError: If path is invalid or does not exist
        """
        if custom_path:
            path = cls._validate_config_path(Path(custom_path).expanduser())
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> EurekaConfig:
        """Load and validate configuration from file.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            EurekaConfig object

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}\n"
                "Create it or pass --config <path>"
            )

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")

        logger.debug(f"Loaded config from: {config_path}")
        return EurekaConfig.from_dict(data)


__all__ = [
    "ApplicationConfig",
    "ConfigError",
    "ConfigManager",
    "ConsortiumConfig",
    "EurekaConfig",
    "ModuleEntry",
    "ModuleEntryKind",
    "ModuleSettings",
    "ResourceSettings",
    "RoleConfig",
    "SidecarConfig",
    "TenantConfig",
    "UserConfig",
]
