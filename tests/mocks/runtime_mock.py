"""
Mock container runtime for testing.

This module provides an in-memory ContainerRuntime that records every call
without talking to a container engine.
"""

import re
import threading
import time

from eureka.container_runtime import ExecResult
from eureka.errors import ContainerRuntimeError
from eureka.models import ContainerSpec, ContainerSummary


class MockContainerRuntime:
    """In-memory ContainerRuntime.

    Containers whose name is in ``fail_on`` fail to start. ``deploy_delay``
    makes every create_and_start block for that many seconds.
    """

    def __init__(self, fail_on: set[str] | None = None, deploy_delay: float = 0.0):
        self.fail_on = set(fail_on or ())
        self.deploy_delay = deploy_delay
        self.created: list[ContainerSpec] = []
        self.pulled: list[str] = []
        self.stopped: list[str] = []
        self.removed: list[str] = []
        self.disconnected: list[str] = []
        self.exec_calls: list[tuple[str, list[str]]] = []
        self.containers: dict[str, ContainerSummary] = {}
        self.container_logs: dict[str, str] = {}
        self.exec_results: dict[str, list[ExecResult]] = {}
        self.disconnect_fails = False
        self._lock = threading.Lock()

    @property
    def created_names(self) -> list[str]:
        return [spec.name for spec in self.created]

    def add_container(self, name: str, image: str = "") -> str:
        container_id = f"id-{name}"
        self.containers[container_id] = ContainerSummary(
            id=container_id, name=name, image=image, status="running"
        )
        return container_id

    def create_and_start(self, spec: ContainerSpec) -> str:
        if self.deploy_delay:
            time.sleep(self.deploy_delay)
        if spec.name in self.fail_on:
            raise ContainerRuntimeError(f"Failed to deploy {spec.name}: simulated failure")
        with self._lock:
            self.created.append(spec)
            return self.add_container(spec.name, spec.image)

    def pull_image(self, image: str, auth: dict[str, str] | None = None) -> None:
        with self._lock:
            self.pulled.append(image)

    def stop(self, container_id: str) -> None:
        self.stopped.append(container_id)

    def remove(self, container_id: str) -> None:
        self.removed.append(container_id)
        self.containers.pop(container_id, None)

    def list_containers(self, name_pattern: str) -> list[ContainerSummary]:
        pattern = re.compile(name_pattern)
        return [c for c in self.containers.values() if pattern.search(c.name)]

    def logs(self, container_name: str) -> str:
        if container_name not in self.container_logs:
            raise ContainerRuntimeError(f"Container {container_name} not found")
        return self.container_logs[container_name]

    def exec(self, container_name: str, command: list[str]) -> ExecResult:
        self.exec_calls.append((container_name, command))
        results = self.exec_results.get(container_name)
        if results:
            return results.pop(0) if len(results) > 1 else results[0]
        return ExecResult(exit_code=0, stdout="", stderr="")

    def disconnect_network(self, container_id: str) -> None:
        if self.disconnect_fails:
            raise ContainerRuntimeError(f"Failed to disconnect {container_id}: not connected")
        self.disconnected.append(container_id)
