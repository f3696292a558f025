"""Container deployment orchestration.

Deploys every selected module of a ContainerSet and, where configured, its
sidecar. Module containers are created sequentially; sidecars are handed to a
thread pool so they come up alongside the next modules.

Guarantees:
- Management and business passes never mix (ContainerSet.management_only)
- A module creation failure aborts the pass, not-yet-started sidecar tasks
  are cancelled and running ones are awaited
- Every sidecar task is awaited and its failure fails the pass
- Each sidecar image is pulled at most once per run
- No rollback: containers from a failed pass stay up until undeployed
"""

import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from eureka import constants
from eureka.container_runtime import ContainerRuntime
from eureka.env_composer import module_environment, sidecar_environment
from eureka.errors import EurekaError, ExternalCallError
from eureka.models import ContainerSet, ContainerSpec, ModuleDescriptor, ModulePair

logger = logging.getLogger(__name__)


def application_pattern(profile: str) -> str:
    return f"^{re.escape(profile)}-"


def management_pattern(profile: str) -> str:
    return f"^{re.escape(profile)}-{constants.MANAGEMENT_MODULE_PREFIX}"


def business_pattern(profile: str) -> str:
    return f"^{re.escape(profile)}-(?!{constants.MANAGEMENT_MODULE_PREFIX})"


def single_module_pattern(profile: str, module_name: str) -> str:
    return f"^{re.escape(profile)}-{re.escape(module_name)}(-sc)?$"


class DeploymentOrchestrator:
    """Create and start module/sidecar containers through a ContainerRuntime."""

    def __init__(self, runtime: ContainerRuntime, max_sidecar_workers: int = 10):
        self.runtime = runtime
        self.max_sidecar_workers = max_sidecar_workers

    def build_pair(self, containers: ContainerSet, descriptor: ModuleDescriptor) -> ModulePair:
        """Derive container specs for a module and its optional sidecar."""
        module = ContainerSpec(
            name=containers.container_name(descriptor.name),
            hostname=descriptor.name,
            image=descriptor.image,
            env=module_environment(containers.global_env, descriptor, containers.vault_token),
            port_bindings={
                descriptor.private_port: descriptor.port,
                descriptor.private_debug_port: descriptor.debug_port,
            },
            resources=descriptor.resources,
            volumes=descriptor.volumes,
            pull_image=descriptor.pull_image,
        )

        sidecar = None
        if descriptor.has_sidecar and containers.sidecar_image:
            sidecar = ContainerSpec(
                name=containers.container_name(descriptor.sidecar_name),
                hostname=descriptor.sidecar_name,
                image=containers.sidecar_image,
                env=sidecar_environment(
                    containers.sidecar_env,
                    containers.global_env,
                    descriptor,
                    containers.vault_token,
                    containers.sidecar_env_overrides,
                ),
                port_bindings={
                    descriptor.private_port: descriptor.sidecar_port,
                    descriptor.private_debug_port: descriptor.sidecar_debug_port,
                },
                resources=containers.sidecar_resources,
                pull_image=containers.pull_sidecar_image,
            )
        elif descriptor.has_sidecar:
            logger.warning(f"No sidecar image resolved, deploying {descriptor.name} without sidecar")

        return ModulePair(module=module, sidecar=sidecar)

    def deploy_all(self, containers: ContainerSet) -> dict[str, int]:
        """Deploy every selected module of the pass.

        Args:
            containers: The pass projection (management or business)

        Returns:
            Module name -> exposed host port, for readiness probing

        Raises:
            ExternalCallError: If any module or sidecar fails to deploy
        """
        pass_name = "management" if containers.management_only else "business"
        selected = containers.selected()
        logger.info(f"Deploying {len(selected)} {pass_name} modules")

        deployed: dict[str, int] = {}
        pulled: set[str] = set()
        pull_lock = threading.Lock()

        with ThreadPoolExecutor(max_workers=self.max_sidecar_workers) as executor:
            sidecar_futures: dict[Future, str] = {}
            try:
                for descriptor in selected:
                    pair = self.build_pair(containers, descriptor)
                    self._deploy(pair.module)
                    deployed[descriptor.name] = descriptor.port

                    if pair.sidecar is not None:
                        future = executor.submit(self._deploy_sidecar, pair.sidecar, pulled, pull_lock)
                        sidecar_futures[future] = pair.sidecar.name
            except EurekaError:
                for future in sidecar_futures:
                    future.cancel()
                raise

            failures: list[str] = []
            for future in as_completed(sidecar_futures):
                name = sidecar_futures[future]
                try:
                    future.result()
                except EurekaError as e:
                    logger.error(f"Failed to deploy sidecar {name}: {e}")
                    failures.append(f"{name}: {e}")

        if failures:
            raise ExternalCallError(f"Sidecar deployment failed: {'; '.join(sorted(failures))}")

        logger.info(f"Deployed {len(deployed)} {pass_name} modules")
        return deployed

    def _deploy(self, spec: ContainerSpec) -> str:
        if spec.pull_image:
            self.runtime.pull_image(spec.image)
        return self.runtime.create_and_start(spec)

    def _deploy_sidecar(self, spec: ContainerSpec, pulled: set[str], pull_lock: threading.Lock) -> str:
        if spec.pull_image:
            with pull_lock:
                if spec.image not in pulled:
                    self.runtime.pull_image(spec.image)
                    pulled.add(spec.image)
        return self.runtime.create_and_start(spec)

    def undeploy_by_pattern(self, name_pattern: str) -> list[str]:
        """Kill and remove every container whose name matches the pattern.

        Network disconnect failures are logged and ignored.

        Returns:
            Names of the removed containers
        """
        removed = []
        for summary in self.runtime.list_containers(name_pattern):
            try:
                self.runtime.disconnect_network(summary.id)
            except ExternalCallError as e:
                logger.warning(f"Container {summary.name} network disconnected with warnings: {e}")

            self.runtime.stop(summary.id)
            self.runtime.remove(summary.id)
            logger.info(f"Undeployed container {summary.name}")
            removed.append(summary.name)
        return removed


__all__ = [
    "DeploymentOrchestrator",
    "application_pattern",
    "business_pattern",
    "management_pattern",
    "single_module_pattern",
]
