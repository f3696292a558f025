"""Container runtime abstraction.

ContainerRuntime is the contract the deployment pipeline uses to talk to the
container engine. DockerRuntime implements it with the docker SDK; tests use
an in-memory fake.

Every docker SDK failure is translated to ContainerRuntimeError at this
boundary.
"""

import logging
import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import docker
from docker.errors import DockerException, NotFound

from eureka import constants
from eureka.errors import ContainerRuntimeError
from eureka.models import ContainerSpec, ContainerSummary

logger = logging.getLogger(__name__)


@dataclass
class ExecResult:
    """Result of running a command inside a container."""

    exit_code: int
    stdout: str
    stderr: str


@runtime_checkable
class ContainerRuntime(Protocol):
    """Protocol for container engine operations."""

    def create_and_start(self, spec: ContainerSpec) -> str:
        """Create and start a container, returning its id."""
        ...

    def pull_image(self, image: str, auth: dict[str, str] | None = None) -> None:
        """Pull an image from its registry."""
        ...

    def stop(self, container_id: str) -> None:
        """Stop a running container."""
        ...

    def remove(self, container_id: str) -> None:
        """Force-remove a container and its anonymous volumes."""
        ...

    def list_containers(self, name_pattern: str) -> list[ContainerSummary]:
        """List containers (running or not) whose name matches the pattern."""
        ...

    def logs(self, container_name: str) -> str:
        """Return the combined stdout/stderr log of a container."""
        ...

    def exec(self, container_name: str, command: list[str]) -> ExecResult:
        """Run a command inside a running container."""
        ...

    def disconnect_network(self, container_id: str) -> None:
        """Detach a container from the platform network."""
        ...


class DockerRuntime:
    """ContainerRuntime backed by the docker SDK."""

    def __init__(self, client: docker.DockerClient | None = None):
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise ContainerRuntimeError(f"Cannot connect to the docker daemon: {e}") from e
        return self._client

    def create_and_start(self, spec: ContainerSpec) -> str:
        resources = spec.resources
        try:
            container = self.client.containers.create(
                spec.image,
                name=spec.name,
                hostname=spec.hostname,
                environment=spec.env,
                ports={
                    f"{private}/tcp": (constants.HOST_IP, host)
                    for private, host in spec.port_bindings.items()
                },
                restart_policy={"Name": spec.restart_policy},
                network=spec.network,
                nano_cpus=int(resources.cpu_count * 1_000_000_000),
                mem_reservation=f"{resources.memory_reservation}m",
                mem_limit=f"{resources.memory}m",
                memswap_limit=(
                    resources.memory_swap
                    if resources.memory_swap < 0
                    else f"{resources.memory_swap}m"
                ),
                oom_kill_disable=resources.oom_kill_disable,
                volumes=spec.volumes or None,
            )
            container.start()
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to deploy {spec.name}: {e}") from e

        logger.info(f"Deployed container {spec.name}")
        return container.id

    def pull_image(self, image: str, auth: dict[str, str] | None = None) -> None:
        logger.info(f"Pulling image {image}")
        try:
            self.client.images.pull(image, auth_config=auth)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to pull image {image}: {e}") from e

    def stop(self, container_id: str) -> None:
        try:
            self.client.containers.get(container_id).stop(timeout=0)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to stop {container_id}: {e}") from e

    def remove(self, container_id: str) -> None:
        try:
            self.client.containers.get(container_id).remove(force=True, v=True)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to remove {container_id}: {e}") from e

    def list_containers(self, name_pattern: str) -> list[ContainerSummary]:
        """Containers whose name matches ``name_pattern`` (a Python regex).

        Matching happens client side: the daemon name filter has no lookahead.
        """
        pattern = re.compile(name_pattern)
        try:
            containers = self.client.containers.list(all=True)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to list containers: {e}") from e

        return [
            ContainerSummary(
                id=c.id,
                name=c.name,
                image=c.attrs.get("Config", {}).get("Image", ""),
                status=c.status,
            )
            for c in containers
            if pattern.search(c.name)
        ]

    def logs(self, container_name: str) -> str:
        try:
            raw = self.client.containers.get(container_name).logs(stdout=True, stderr=True)
        except NotFound as e:
            raise ContainerRuntimeError(f"Container {container_name} not found") from e
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to read logs of {container_name}: {e}") from e
        return raw.decode("utf-8", errors="replace")

    def exec(self, container_name: str, command: list[str]) -> ExecResult:
        try:
            result = self.client.containers.get(container_name).exec_run(command, demux=True)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to exec in {container_name}: {e}") from e

        stdout, stderr = result.output or (None, None)
        return ExecResult(
            exit_code=result.exit_code or 0,
            stdout=(stdout or b"").decode("utf-8", errors="replace"),
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )

    def disconnect_network(self, container_id: str) -> None:
        try:
            self.client.networks.get(constants.NETWORK_ID).disconnect(container_id)
        except DockerException as e:
            raise ContainerRuntimeError(f"Failed to disconnect {container_id}: {e}") from e


__all__ = ["ContainerRuntime", "DockerRuntime", "ExecResult"]
