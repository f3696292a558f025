"""Identity provider operations (Keycloak).

Tokens come straight from Keycloak. Role, capability-set and user calls go
through the API gateway with ``X-Okapi-Tenant`` / ``X-Okapi-Token`` headers.

Security:
- Tenant client secrets and system user passwords are read from vault on
  demand and never logged
"""

import logging
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from eureka import constants
from eureka.config_manager import EurekaConfig
from eureka.env_composer import env_lookup
from eureka.errors import ConfigurationError, HTTPRequestError
from eureka.http_client import HTTPClient, bearer_headers, tenant_headers
from eureka.secret_store import SecretStore

logger = logging.getLogger(__name__)


class GrantType(Enum):
    """OAuth2 grant used for master realm tokens."""

    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"  # noqa: S105 - grant type name, not a credential


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for identity and access management operations."""

    def get_access_token(self, tenant: str, grant_type: GrantType | None = None) -> str:
        """Return a master realm token, or a tenant token for any other realm."""
        ...

    def create_roles(self, tenant: str, token: str) -> None:
        ...

    def remove_roles(self, tenant: str, token: str) -> None:
        ...

    def attach_capability_sets(self, tenant: str, token: str) -> None:
        ...

    def detach_capability_sets(self, tenant: str, token: str) -> None:
        ...

    def update_realm_access_token_lifespan(self, realm: str, seconds: int, token: str) -> None:
        ...

    def create_users(self, tenant: str, token: str) -> None:
        ...

    def remove_users(self, tenant: str, token: str) -> None:
        ...


def batched(items: list[str], size: int) -> list[list[str]]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class KeycloakIdentityProvider:
    """IdentityProvider backed by Keycloak and the platform's role/user APIs."""

    def __init__(
        self,
        http: HTTPClient,
        secret_store: SecretStore,
        config: EurekaConfig,
        gateway_url: str,
        vault_token: str | None = None,
        keycloak_url: str = constants.KEYCLOAK_HTTP,
    ):
        self.http = http
        self.secret_store = secret_store
        self.config = config
        self.gateway_url = gateway_url.rstrip("/")
        self.keycloak_url = keycloak_url.rstrip("/")
        self._vault_token = vault_token

    @property
    def vault_token(self) -> str:
        if self._vault_token is None:
            self._vault_token = self.secret_store.get_root_token()
        return self._vault_token

    def _token_from(self, url: str, form: dict[str, str]) -> str:
        body = self.http.post_form(url, form) or {}
        token = body.get("access_token")
        if not token:
            raise HTTPRequestError(f"Access token not found in response from {url}", url=url)
        return token

    def get_access_token(self, tenant: str, grant_type: GrantType | None = None) -> str:
        """Obtain an access token.

        Args:
            tenant: Realm name. ``master`` issues an admin token.
            grant_type: Grant for the master realm (client credentials by default)

        Returns:
            The raw access token

        Raises:
            HTTPRequestError: If the token endpoint fails or returns no token
            ConfigurationError: If the tenant's secrets are missing from vault
        """
        if tenant == constants.MASTER_REALM:
            return self.get_master_access_token(grant_type or GrantType.CLIENT_CREDENTIALS)

        secrets = self.secret_store.get_secret(self.vault_token, f"folio/{tenant}")
        client_id = env_lookup(self.config.global_env(), "KC_SERVICE_CLIENT_ID")
        system_user = f"{tenant}-system-user"
        if client_id not in secrets or system_user not in secrets:
            raise ConfigurationError(f"Vault secret folio/{tenant} lacks client or system user credentials")

        url = f"{self.keycloak_url}/realms/{tenant}/protocol/openid-connect/token"
        return self._token_from(
            url,
            {
                "grant_type": GrantType.PASSWORD.value,
                "client_id": client_id,
                "client_secret": secrets[client_id],
                "username": system_user,
                "password": secrets[system_user],
            },
        )

    def get_master_access_token(self, grant_type: GrantType) -> str:
        url = f"{self.keycloak_url}/realms/{constants.MASTER_REALM}/protocol/openid-connect/token"
        if grant_type is GrantType.CLIENT_CREDENTIALS:
            form = {
                "grant_type": grant_type.value,
                "client_id": constants.ADMIN_CLIENT_ID,
                "client_secret": constants.ADMIN_CLIENT_SECRET,
            }
        else:
            form = {
                "grant_type": grant_type.value,
                "client_id": constants.ADMIN_CLI_CLIENT_ID,
                "username": constants.KEYCLOAK_ADMIN_USERNAME,
                "password": constants.KEYCLOAK_ADMIN_PASSWORD,
            }
        return self._token_from(url, form)

    def update_realm_access_token_lifespan(self, realm: str, seconds: int, token: str) -> None:
        url = f"{self.keycloak_url}/admin/realms/{realm}"
        self.http.put_json(url, {"accessTokenLifespan": seconds}, headers=bearer_headers(token))
        logger.info(f"Updated realm {realm} access token lifespan to {seconds}s")

    # Roles

    def get_roles(self, tenant: str, token: str) -> list[dict[str, Any]]:
        body = self.http.get_json(
            f"{self.gateway_url}/roles?offset=0&limit=10000", headers=tenant_headers(tenant, token)
        ) or {}
        return body.get("roles") or []

    def get_role_by_name(self, tenant: str, token: str, name: str) -> dict[str, Any]:
        """Look up exactly one role by name.

        Raises:
            ConfigurationError: If the role does not exist or is ambiguous
        """
        body = self.http.get_json(
            f"{self.gateway_url}/roles?query=name=={name}", headers=tenant_headers(tenant, token)
        ) or {}
        roles = body.get("roles") or []
        if len(roles) != 1:
            raise ConfigurationError(f"Role {name} not found in tenant {tenant}")
        return roles[0]

    def create_roles(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        for role in self.config.roles.values():
            if role.tenant != tenant:
                continue
            self.http.post_json(
                f"{self.gateway_url}/roles",
                {"name": role.name, "description": "Default"},
                headers=headers,
            )
            logger.info(f"Created role {role.name} in tenant {tenant}")

    def remove_roles(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        for role in self.get_roles(tenant, token):
            name = str(role.get("name", "")).lower()
            if name not in self.config.roles:
                continue
            self.http.delete(f"{self.gateway_url}/roles/{role['id']}", headers=headers)
            logger.info(f"Removed role {name} from tenant {tenant}")

    # Capability sets

    def _application_ids(self, headers: dict[str, str]) -> list[str]:
        body = self.http.get_json(f"{self.gateway_url}/applications", headers=headers) or {}
        return [str(a.get("id")) for a in body.get("applicationDescriptors") or [] if a.get("id")]

    def _all_capability_set_ids(self, headers: dict[str, str]) -> list[str]:
        ids: list[str] = []
        for application_id in self._application_ids(headers):
            body = self.http.get_json(
                f"{self.gateway_url}/capability-sets?query=applicationId=={application_id}"
                "&offset=0&limit=10000",
                headers=headers,
            ) or {}
            ids.extend(str(cs["id"]) for cs in body.get("capabilitySets") or [])
        return ids

    def _capability_set_ids_by_name(self, headers: dict[str, str], name: str) -> list[str]:
        body = self.http.get_json(
            f"{self.gateway_url}/capability-sets?query=name=={name}&limit=1", headers=headers
        ) or {}
        return [str(cs["id"]) for cs in body.get("capabilitySets") or []]

    def resolve_capability_set_ids(self, headers: dict[str, str], names: list[str]) -> list[str]:
        """Capability-set ids for configured names. ``all`` selects every set."""
        if not names:
            return []
        if "all" in names:
            return self._all_capability_set_ids(headers)

        ids: list[str] = []
        for name in names:
            ids.extend(self._capability_set_ids_by_name(headers, name))
        return ids

    def attach_capability_sets(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        roles = self.get_roles(tenant, token)
        if not roles:
            logger.warning(f"Found no roles to attach capability sets to in tenant {tenant}")
            return

        for role in roles:
            name = str(role.get("name", "")).lower()
            role_config = self.config.roles.get(name)
            if role_config is None or role_config.tenant != tenant:
                continue

            ids = self.resolve_capability_set_ids(headers, role_config.capability_sets)
            if not ids:
                logger.warning(f"No capability sets were attached to role {name} in tenant {tenant}")
                continue

            for batch in batched(ids, constants.CAPABILITY_SET_BATCH_SIZE):
                self.http.post_json(
                    f"{self.gateway_url}/roles/capability-sets",
                    {"roleId": role["id"], "capabilitySetIds": batch},
                    headers=headers,
                )
            logger.info(f"Attached {len(ids)} capability sets to role {name} in tenant {tenant}")

    def detach_capability_sets(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        for role in self.get_roles(tenant, token):
            name = str(role.get("name", "")).lower()
            if name not in self.config.roles:
                continue
            try:
                self.http.delete(f"{self.gateway_url}/roles/{role['id']}/capability-sets", headers=headers)
            except HTTPRequestError as e:
                if e.status_code == 404:
                    logger.debug(f"No capability sets to detach from role {name} in tenant {tenant}")
                    continue
                raise
            logger.info(f"Detached capability sets from role {name} in tenant {tenant}")

    # Users

    def get_users(self, tenant: str, token: str) -> list[dict[str, Any]]:
        body = self.http.get_json(
            f"{self.gateway_url}/users?offset=0&limit=10000", headers=tenant_headers(tenant, token)
        ) or {}
        return body.get("users") or []

    def create_users(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        for username in sorted(self.config.users):
            user = self.config.users[username]
            if user.tenant != tenant:
                continue

            created = self.http.post_json(
                f"{self.gateway_url}/users-keycloak/users",
                {
                    "username": username,
                    "active": True,
                    "type": "staff",
                    "personal": {
                        "firstName": user.first_name,
                        "lastName": user.last_name,
                        "email": f"{tenant}_{username}@test.org",
                        "preferredContactTypeId": "002",
                    },
                },
                headers=headers,
            ) or {}
            user_id = str(created.get("id", ""))
            logger.info(f"Created user {username} in tenant {tenant}")

            self.http.post_json(
                f"{self.gateway_url}/authn/credentials",
                {"userId": user_id, "username": username, "password": user.password},
                headers=headers,
            )
            logger.info(f"Attached credentials to user {username}")

            role_ids = [self.get_role_by_name(tenant, token, role)["id"] for role in user.roles]
            if not role_ids:
                continue
            self.http.post_json(
                f"{self.gateway_url}/roles/users",
                {"userId": user_id, "roleIds": role_ids},
                headers=headers,
            )
            logger.info(f"Attached {len(role_ids)} roles to user {username}")

    def remove_users(self, tenant: str, token: str) -> None:
        headers = tenant_headers(tenant, token)
        for user in self.get_users(tenant, token):
            username = user.get("username")
            configured = self.config.users.get(username) if username else None
            if configured is None or configured.tenant != tenant:
                continue
            self.http.delete(f"{self.gateway_url}/users-keycloak/users/{user['id']}", headers=headers)
            logger.info(f"Removed user {username} from tenant {tenant}")


__all__ = ["GrantType", "IdentityProvider", "KeycloakIdentityProvider", "batched"]
