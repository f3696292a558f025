"""Management service operations (tenants, entitlements, applications).

All calls go through the API gateway. Tenants are partitioned by their
stored description, ``<consortium>-<tenant type>``, so a partition lookup is
a single description query.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from eureka import constants
from eureka.config_manager import EurekaConfig
from eureka.errors import ConfigurationError
from eureka.http_client import HTTPClient
from eureka.models import ModuleDescriptor, Tenant

logger = logging.getLogger(__name__)


@runtime_checkable
class ManagementService(Protocol):
    """Protocol for tenant and application lifecycle operations."""

    def get_tenants(self, consortium: str, tenant_type: str) -> list[Tenant]:
        ...

    def create_tenants(self) -> None:
        ...

    def remove_tenants(self, consortium: str, tenant_type: str) -> None:
        ...

    def create_tenant_entitlement(self, consortium: str, tenant_type: str) -> None:
        ...

    def remove_tenant_entitlements(self, consortium: str, tenant_type: str, purge: bool) -> None:
        ...

    def create_application(self, modules: dict[str, ModuleDescriptor]) -> None:
        ...

    def remove_application(self, application_id: str) -> None:
        ...

    def get_applications(self) -> list[dict[str, Any]]:
        ...


def tenant_parameters(config: EurekaConfig, consortium: str) -> str:
    """Entitlement tenant parameters for a partition.

    Example:
        >>> tenant_parameters(config, "nop")
        'loadReference=true,loadSample=true'

    Raises:
        ConfigurationError: If a consortium has no central tenant
    """
    params = "loadReference=true,loadSample=true"
    if consortium == constants.NO_CONSORTIUM:
        return params

    central = config.central_tenant(consortium)
    if central is None:
        raise ConfigurationError(f"Consortium {consortium} has no central tenant")
    return f"{params},centralTenantId={central}"


def load_local_descriptor(path: str) -> dict[str, Any]:
    """Read a module descriptor JSON file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        return json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read local module descriptor {path}: {e}") from e


class HTTPManagementService:
    """ManagementService over the gateway's management routes."""

    def __init__(self, http: HTTPClient, config: EurekaConfig, gateway_url: str):
        self.http = http
        self.config = config
        self.gateway_url = gateway_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.gateway_url}{path}"

    def get_tenants(self, consortium: str, tenant_type: str) -> list[Tenant]:
        """Live tenants whose description matches the partition."""
        body = self.http.get_json(
            self._url(f"/tenants?query=description=={consortium}-{tenant_type}")
        ) or {}
        tenants = [Tenant.from_dict(t) for t in body.get("tenants") or []]
        if not tenants:
            logger.warning(f"Did not find any tenants for {consortium}-{tenant_type}")
        return tenants

    def _configured(self, tenants: list[Tenant]) -> list[Tenant]:
        return [t for t in tenants if t.name in self.config.tenants]

    def create_tenants(self) -> None:
        for tenant in self.config.tenants.values():
            self.http.post_json(
                self._url("/tenants"), {"name": tenant.name, "description": tenant.description}
            )
            logger.info(f"Created tenant {tenant.name} ({tenant.description})")

    def remove_tenants(self, consortium: str, tenant_type: str) -> None:
        for tenant in self._configured(self.get_tenants(consortium, tenant_type)):
            self.http.delete(self._url(f"/tenants/{tenant.id}?purgeKafkaTopics=true"))
            logger.info(f"Removed tenant {tenant.name}")

    def _entitlement_body(self, tenant: Tenant) -> dict[str, Any]:
        return {
            "tenantId": tenant.id,
            "applications": [self.config.application.application_id],
        }

    def create_tenant_entitlement(self, consortium: str, tenant_type: str) -> None:
        params = tenant_parameters(self.config, consortium)
        url = self._url(
            "/entitlements?purgeOnRollback=true&ignoreErrors=false"
            f"&tenantParameters={params}"
        )
        for tenant in self._configured(self.get_tenants(consortium, tenant_type)):
            self.http.post_json(url, self._entitlement_body(tenant))
            logger.info(f"Created entitlement for tenant {tenant.name}")

    def remove_tenant_entitlements(self, consortium: str, tenant_type: str, purge: bool) -> None:
        url = self._url(f"/entitlements?purge={str(purge).lower()}&ignoreErrors=false")
        for tenant in self._configured(self.get_tenants(consortium, tenant_type)):
            self.http.delete(url, payload=self._entitlement_body(tenant))
            logger.info(f"Removed entitlement for tenant {tenant.name}")

    def get_applications(self) -> list[dict[str, Any]]:
        body = self.http.get_json(self._url("/applications")) or {}
        return body.get("applicationDescriptors") or []

    def create_application(self, modules: dict[str, ModuleDescriptor]) -> None:
        """Register the application and its module discovery entries.

        Management modules are not part of the application. Modules with a
        local descriptor have it inlined, the rest reference the registry.
        """
        application = self.config.application
        entries: list[dict[str, str]] = []
        descriptors: list[dict[str, Any]] = []
        discovery: list[dict[str, str]] = []

        for module in modules.values():
            if module.is_management or not module.deploy_module:
                continue

            entry = {"id": module.module_id, "name": module.name, "version": module.version}
            if module.local_descriptor_path:
                descriptors.append(load_local_descriptor(module.local_descriptor_path))
            else:
                entry["url"] = f"{self.config.registry_url}/_/proxy/modules/{module.module_id}"
            entries.append(entry)

            discovery.append(
                {
                    **{k: entry[k] for k in ("id", "name", "version")},
                    "location": f"http://{module.sidecar_name}.eureka:{module.private_port}",
                }
            )
            logger.debug(f"Including {module.module_id} in application {application.application_id}")

        self.http.post_json(
            self._url("/applications?check=true"),
            {
                "id": application.application_id,
                "name": application.name,
                "version": application.version,
                "description": "Default",
                "platform": application.platform,
                "dependencies": application.dependencies or None,
                "modules": entries,
                "uiModules": [],
                "moduleDescriptors": descriptors,
                "uiModuleDescriptors": [],
            },
        )
        logger.info(f"Created application {application.application_id}")

        if discovery:
            self.http.post_json(self._url("/modules/discovery"), {"discovery": discovery})
        logger.info(f"Created {len(discovery)} module discovery entries")

    def remove_application(self, application_id: str) -> None:
        self.http.delete(self._url(f"/applications/{application_id}"))
        logger.info(f"Removed application {application_id}")


__all__ = [
    "HTTPManagementService",
    "ManagementService",
    "load_local_descriptor",
    "tenant_parameters",
]
