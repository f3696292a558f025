"""Container environment composition.

Builds the ordered ``KEY=VALUE`` list for a module or its sidecar from layered
fragments:

1. global shared environment
2. vault secret-store wiring (modules flagged use-vault, every sidecar)
3. identity provider / gateway wiring (every sidecar, modules flagged
   use-okapi-url)
4. declared overrides, keys uppercased

Duplicate keys resolve last-writer-wins in layer order, so user overrides
always beat defaults. A key keeps the position of its first occurrence.
Every function here is pure.
"""

from collections.abc import Iterable

from eureka import constants
from eureka.models import ModuleDescriptor


def compose_environment(*layers: Iterable[str]) -> list[str]:
    """Merge ``KEY=VALUE`` layers, later layers overriding earlier ones.

    Example:
        >>> compose_environment(["A=1", "B=2"], ["A=3"])
        ['A=3', 'B=2']
    """
    merged: dict[str, str] = {}
    for layer in layers:
        for entry in layer:
            key, _, value = entry.partition("=")
            if key:
                merged[key] = value
    return [f"{key}={value}" for key, value in merged.items()]


def env_lookup(env: Iterable[str], key: str, default: str = "") -> str:
    """Value of ``key`` in a ``KEY=VALUE`` list (last occurrence wins)."""
    value = default
    for entry in env:
        k, sep, v = entry.partition("=")
        if sep and k == key:
            value = v
    return value


def vault_env(vault_token: str) -> list[str]:
    return [
        "SECRET_STORE_TYPE=VAULT",
        f"SECRET_STORE_VAULT_TOKEN={vault_token}",
        f"SECRET_STORE_VAULT_ADDRESS={constants.VAULT_HTTP}",
    ]


def gateway_env(sidecar_name: str, port: int) -> list[str]:
    """Point a module's gateway client at its own sidecar."""
    return [
        f"OKAPI_HOST={sidecar_name}.eureka",
        f"OKAPI_PORT={port}",
        f"OKAPI_SERVICE_HOST={sidecar_name}.eureka",
        f"OKAPI_SERVICE_URL=http://{sidecar_name}.eureka:{port}",
        f"OKAPI_URL=http://{sidecar_name}.eureka:{port}",
    ]


def disabled_system_user_env(module_name: str) -> list[str]:
    return [
        "FOLIO_SYSTEM_USER_ENABLED=false",
        "SYSTEM_USER_CREATE=false",
        "SYSTEM_USER_ENABLED=false",
        f"SYSTEM_USER_NAME={module_name}",
        f"SYSTEM_USER_USERNAME={module_name}",
    ]


def identity_provider_env(global_env: Iterable[str]) -> list[str]:
    """Issuer URL plus client ids taken from the global environment."""
    global_env = list(global_env)
    return [
        f"KC_URL={constants.KEYCLOAK_HTTP}",
        f"KC_ADMIN_CLIENT_ID={env_lookup(global_env, 'KC_ADMIN_CLIENT_ID')}",
        f"KC_SERVICE_CLIENT_ID={env_lookup(global_env, 'KC_SERVICE_CLIENT_ID')}",
        f"KC_LOGIN_CLIENT_SUFFIX={env_lookup(global_env, 'KC_LOGIN_CLIENT_SUFFIX')}",
    ]


def sidecar_wiring_env(descriptor: ModuleDescriptor) -> list[str]:
    """Tell a sidecar which module it fronts."""
    port = descriptor.private_port
    env = [
        f"MODULE_NAME={descriptor.name}",
        f"MODULE_VERSION={descriptor.version}",
        f"MODULE_URL=http://{descriptor.name}.eureka:{port}",
        f"SIDECAR_NAME={descriptor.sidecar_name}",
        f"SIDECAR_URL=http://{descriptor.sidecar_name}.eureka:{port}",
    ]
    # The sidecar's HTTP server defaults to 8081
    if port != constants.PRIVATE_SERVER_PORT:
        env.append(f"QUARKUS_HTTP_PORT={port}")
    return env


def override_env(overrides: dict[str, str]) -> list[str]:
    return [f"{key.upper()}={value}" for key, value in overrides.items() if key]


def module_environment(
    global_env: list[str], descriptor: ModuleDescriptor, vault_token: str
) -> list[str]:
    """Environment for a module container."""
    layers: list[list[str]] = [global_env]
    if descriptor.use_vault:
        layers.append(vault_env(vault_token))
    if descriptor.use_gateway_url:
        layers.append(gateway_env(descriptor.sidecar_name, descriptor.private_port))
    if descriptor.disable_system_user:
        layers.append(disabled_system_user_env(descriptor.name))
    layers.append(override_env(descriptor.environment))
    return compose_environment(*layers)


def sidecar_environment(
    sidecar_env: list[str],
    global_env: list[str],
    descriptor: ModuleDescriptor,
    vault_token: str,
    overrides: dict[str, str] | None = None,
) -> list[str]:
    """Environment for a sidecar container."""
    return compose_environment(
        sidecar_env,
        vault_env(vault_token),
        identity_provider_env(global_env),
        sidecar_wiring_env(descriptor),
        override_env(overrides or {}),
    )


__all__ = [
    "compose_environment",
    "disabled_system_user_env",
    "env_lookup",
    "gateway_env",
    "identity_provider_env",
    "module_environment",
    "override_env",
    "sidecar_environment",
    "sidecar_wiring_env",
    "vault_env",
]
