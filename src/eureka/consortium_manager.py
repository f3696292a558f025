"""Consortium management.

For every configured consortium, in the central tenant's context:

1. Find the consortium by name or create it
2. Register its tenants, central first, skipping ones already registered
3. Poll each new tenant's setup status until it completes
4. Optionally enable central ordering

Setup status polling is a bounded loop with a monotonic deadline.
"""

import logging
import time
import uuid
from typing import Any, Callable

from eureka.config_manager import EurekaConfig
from eureka.errors import ConfigurationError, ExternalCallError, SagaTimeoutError
from eureka.http_client import HTTPClient, tenant_headers
from eureka.identity_provider import IdentityProvider
from eureka.models import Consortium, ConsortiumTenant, sort_consortium_tenants

logger = logging.getLogger(__name__)

CENTRAL_ORDERING_KEY = "ALLOW_ORDERING_WITH_AFFILIATED_LOCATIONS"

SETUP_COMPLETED = "COMPLETED"
SETUP_FAILED = {"FAILED", "COMPLETED_WITH_ERRORS"}


class ConsortiumManager:
    """Create consortia and register their tenants through the gateway."""

    def __init__(
        self,
        http: HTTPClient,
        config: EurekaConfig,
        identity: IdentityProvider,
        gateway_url: str,
        status_wait: float,
        status_timeout: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http = http
        self.config = config
        self.identity = identity
        self.gateway_url = gateway_url.rstrip("/")
        self.status_wait = status_wait
        self.status_timeout = status_timeout
        self._clock = clock
        self._sleep = sleep

    def _url(self, path: str) -> str:
        return f"{self.gateway_url}{path}"

    def consortium_tenants(self, consortium: str) -> list[ConsortiumTenant]:
        """Configured tenants of a consortium, central first."""
        tenants = [
            ConsortiumTenant(consortium=consortium, tenant=t.name, is_central=t.central)
            for t in self.config.consortium_tenants(consortium)
        ]
        return sort_consortium_tenants(tenants)

    def admin_username(self, consortium: str, central_tenant: str) -> str | None:
        """First configured consortium user that lives in the central tenant."""
        for user in self.config.users.values():
            if user.consortium == consortium and user.tenant == central_tenant:
                return user.username
        return None

    def get_consortium(self, headers: dict[str, str], name: str) -> Consortium | None:
        body = self.http.get_json(self._url(f"/consortia?query=name=={name}&limit=1"), headers=headers) or {}
        consortia = body.get("consortia") or []
        if not consortia:
            return None
        return Consortium(id=str(consortia[0]["id"]), name=str(consortia[0]["name"]))

    def create_consortium(self, headers: dict[str, str], name: str) -> Consortium:
        existing = self.get_consortium(headers, name)
        if existing is not None:
            logger.info(f"Consortium {name} is already created")
            return existing

        consortium = Consortium(id=str(uuid.uuid4()), name=name)
        self.http.post_json(self._url("/consortia"), {"id": consortium.id, "name": name}, headers=headers)
        logger.info(f"Created consortium {name}")
        return consortium

    def registered_tenants(self, headers: dict[str, str], consortium_id: str) -> set[str]:
        body = self.http.get_json(self._url(f"/consortia/{consortium_id}/tenants"), headers=headers) or {}
        return {str(t.get("name")) for t in body.get("tenants") or []}

    def _user_id(self, headers: dict[str, str], username: str) -> str:
        body = self.http.get_json(self._url(f"/users?query=username=={username}"), headers=headers) or {}
        users = body.get("users") or []
        if not users:
            raise ConfigurationError(f"Consortium admin user {username} does not exist")
        return str(users[0]["id"])

    def create_consortium_tenants(
        self,
        headers: dict[str, str],
        consortium: Consortium,
        tenants: list[ConsortiumTenant],
        admin_username: str | None,
    ) -> None:
        registered = self.registered_tenants(headers, consortium.id)
        for tenant in tenants:
            if tenant.tenant in registered:
                logger.info(f"Consortium tenant {tenant} is already created")
                continue

            path = f"/consortia/{consortium.id}/tenants"
            if not tenant.is_central:
                if admin_username is None:
                    raise ConfigurationError(
                        f"Consortium {consortium.name} has no admin user in its central tenant"
                    )
                path += f"?adminUserId={self._user_id(headers, admin_username)}"

            logger.info(f"Creating consortium tenant {tenant}")
            self.http.post_json(
                self._url(path),
                {
                    "id": tenant.tenant,
                    "code": tenant.code,
                    "name": tenant.tenant,
                    "isCentral": tenant.sort_weight,
                },
                headers=headers,
            )
            self.wait_for_tenant_setup(headers, consortium, tenant.tenant)

    def wait_for_tenant_setup(self, headers: dict[str, str], consortium: Consortium, tenant: str) -> None:
        """Poll a consortium tenant's setup status until it completes.

        Raises:
            ExternalCallError: If setup failed
            SagaTimeoutError: If setup is still running at the deadline
        """
        url = self._url(f"/consortia/{consortium.id}/tenants/{tenant}")
        start = self._clock()
        while True:
            body = self.http.get_json(url, headers=headers) or {}
            status = body.get("setupStatus")
            if status == SETUP_COMPLETED:
                logger.info(f"Created consortium tenant {tenant} in {consortium.name}")
                return
            if status in SETUP_FAILED:
                raise ExternalCallError(f"Consortium tenant {tenant} setup ended with {status}")

            elapsed = self._clock() - start
            if elapsed + self.status_wait > self.status_timeout:
                raise SagaTimeoutError(f"consortium tenant {tenant} setup", elapsed)
            logger.warning(f"Waiting for consortium tenant {tenant} setup (status: {status})")
            self._sleep(self.status_wait)

    def enable_central_ordering(self, headers: dict[str, str], central_tenant: str) -> None:
        body = self.http.get_json(
            self._url(f"/orders-storage/settings?query=key=={CENTRAL_ORDERING_KEY}&limit=1"),
            headers=headers,
        ) or {}
        settings: list[dict[str, Any]] = body.get("settings") or []
        if settings and str(settings[0].get("value", "")).lower() == "true":
            logger.info(f"Central ordering is already enabled in {central_tenant}")
            return

        self.http.post_json(
            self._url("/orders-storage/settings"),
            {"key": CENTRAL_ORDERING_KEY, "value": "true"},
            headers=headers,
        )
        logger.info(f"Enabled central ordering in {central_tenant}")

    def create_consortiums(self) -> list[Consortium]:
        """Set up every configured consortium, in config order.

        Raises:
            ConfigurationError: If a consortium has no central tenant
        """
        created = []
        for name, consortium_config in self.config.consortiums.items():
            central_tenant = self.config.central_tenant(name)
            if central_tenant is None:
                raise ConfigurationError(f"Consortium {name} has no central tenant")

            if not consortium_config.create_consortium:
                logger.info(f"Skipping consortium {name}: creation disabled")
                continue

            token = self.identity.get_access_token(central_tenant)
            headers = tenant_headers(central_tenant, token)

            consortium = self.create_consortium(headers, name)
            tenants = self.consortium_tenants(name)
            logger.info(f"Consortium {name} tenants: {', '.join(str(t) for t in tenants)}")
            self.create_consortium_tenants(
                headers, consortium, tenants, self.admin_username(name, central_tenant)
            )

            if consortium_config.enable_central_ordering:
                self.enable_central_ordering(headers, central_tenant)
            created.append(consortium)
        return created


__all__ = ["CENTRAL_ORDERING_KEY", "ConsortiumManager"]
