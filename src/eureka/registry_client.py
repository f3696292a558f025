"""Module registry client.

Fetches install listings (``[{"id": "mod-users-19.3.0", "action": "enable"}]``)
and splits each id into module name and version.

Id pattern: ``^([a-z_-]+)([\\d_.-]+)([-\\w.]+)$``. The name is group 1 without
its trailing hyphen, the version is groups 2 and 3 joined.
"""

import logging
import os
import re

from eureka import constants
from eureka.config_manager import SidecarConfig
from eureka.errors import ConfigurationError
from eureka.http_client import HTTPClient
from eureka.models import RegistryModule

logger = logging.getLogger(__name__)

MODULE_ID_RE = re.compile(constants.MODULE_ID_PATTERN)


def split_module_id(module_id: str) -> tuple[str, str]:
    """Split ``name-version`` into its parts.

    Example:
        >>> split_module_id("mod-inventory-1.0.0-SNAPSHOT.123")
        ('mod-inventory', '1.0.0-SNAPSHOT.123')

    Raises:
        ConfigurationError: If the id does not match the pattern
    """
    match = MODULE_ID_RE.match(module_id)
    if match is None:
        raise ConfigurationError(f"Module id does not match name-version pattern: {module_id}")
    return match.group(1).rstrip("-"), match.group(2) + match.group(3)


def sidecar_name_for(module_name: str) -> str:
    """Edge modules are their own sidecar, everything else gets ``-sc``."""
    if module_name.startswith("edge"):
        return module_name
    return f"{module_name}{constants.SIDECAR_SUFFIX}"


def image_namespace(version: str) -> str:
    """Image namespace: ECR override, snapshot namespace or release namespace."""
    override = os.getenv(constants.ECR_REPOSITORY_ENV)
    if override:
        return override
    if "SNAPSHOT" in version:
        return constants.SNAPSHOT_NAMESPACE
    return constants.RELEASE_NAMESPACE


def module_image(name: str, version: str) -> str:
    return f"{image_namespace(version)}/{name}:{version}"


def find_registry_version(
    registry_modules: dict[str, list[RegistryModule]], name: str
) -> str | None:
    """Version reported by the first registry entry named ``name``."""
    for modules in registry_modules.values():
        for module in modules:
            if module.name == name:
                return module.version
    return None


def sidecar_image(
    sidecar: SidecarConfig, registry_modules: dict[str, list[RegistryModule]]
) -> tuple[str, bool]:
    """Resolve the sidecar image and whether it must be pulled.

    Returns:
        (image, pull_image) tuple. Local images are never pulled.

    Raises:
        ConfigurationError: If no sidecar version is configured or registered
    """
    version = sidecar.version or find_registry_version(
        registry_modules, constants.SIDECAR_PROJECT_NAME
    )
    if not version:
        raise ConfigurationError(
            "Sidecar version is not found in the registry or in the current config"
        )

    if sidecar.local_image:
        return f"{sidecar.local_image}:{version}", False

    return f"{image_namespace(version)}/{sidecar.image}:{version}", True


class RegistryClient:
    """Read module listings from install-json URLs."""

    def __init__(self, http: HTTPClient, install_urls: dict[str, str]):
        self.http = http
        self.install_urls = install_urls

    def get_modules(self) -> dict[str, list[RegistryModule]]:
        """Fetch and decompose every registry listing.

        Returns:
            Registry name -> modules sorted by id (``okapi`` excluded)

        Raises:
            HTTPRequestError: If a listing cannot be fetched
            ConfigurationError: If a listing entry has a malformed id
        """
        registries: dict[str, list[RegistryModule]] = {}
        for registry_name, url in self.install_urls.items():
            entries = self.http.get_json(url) or []
            modules = []
            for entry in sorted(entries, key=lambda e: e.get("id", "")):
                module_id = entry.get("id", "")
                if module_id == "okapi":
                    continue
                name, version = split_module_id(module_id)
                modules.append(
                    RegistryModule(
                        id=module_id,
                        action=entry.get("action", "enable"),
                        name=name,
                        version=version,
                        sidecar_name=sidecar_name_for(name),
                    )
                )
            logger.info(f"Read registry {registry_name} with {len(modules)} modules")
            registries[registry_name] = modules
        return registries


__all__ = [
    "RegistryClient",
    "find_registry_version",
    "image_namespace",
    "module_image",
    "sidecar_image",
    "sidecar_name_for",
    "split_module_id",
]
