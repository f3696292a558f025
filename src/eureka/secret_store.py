"""Secret store access.

The vault root token is not configured anywhere: the vault bootstrap script
prints it once at startup, so it is recovered from the container log.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from eureka import constants
from eureka.container_runtime import ContainerRuntime
from eureka.errors import ContainerRuntimeError
from eureka.http_client import HTTPClient

logger = logging.getLogger(__name__)


@runtime_checkable
class SecretStore(Protocol):
    """Protocol for secret store operations."""

    def get_root_token(self) -> str:
        """Return the root token of the secret store."""
        ...

    def get_secret(self, token: str, path: str) -> dict[str, Any]:
        """Return the key/value data stored at ``path``."""
        ...


def parse_root_token(log_text: str) -> str | None:
    """Extract the root token from the vault bootstrap log.

    Example:
        >>> parse_root_token("init.sh: Root VAULT TOKEN is: hvs.abc\\n")
        'hvs.abc'
    """
    for line in log_text.splitlines():
        if constants.VAULT_ROOT_TOKEN_MARKER in line:
            return line.rsplit(":", 1)[-1].strip()
    return None


class VaultSecretStore:
    """SecretStore backed by the vault container and its KV v2 HTTP API."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        http: HTTPClient,
        address: str = constants.VAULT_HTTP,
        container_name: str = constants.VAULT_CONTAINER,
    ):
        self.runtime = runtime
        self.http = http
        self.address = address.rstrip("/")
        self.container_name = container_name

    def get_root_token(self) -> str:
        """Scan the vault container log for the root token line.

        Raises:
            ContainerRuntimeError: If the container is missing or the
                marker line is not in its log
        """
        token = parse_root_token(self.runtime.logs(self.container_name))
        if not token:
            raise ContainerRuntimeError(
                f"Vault root token not found in {self.container_name} container logs"
            )
        logger.debug("Found vault root token")
        return token

    def get_secret(self, token: str, path: str) -> dict[str, Any]:
        """Read a KV v2 secret."""
        url = f"{self.address}/v1/secret/data/{path}"
        body = self.http.get_json(url, headers={constants.VAULT_TOKEN_HEADER: token}) or {}
        return body.get("data", {}).get("data", {})


__all__ = ["SecretStore", "VaultSecretStore", "parse_root_token"]
