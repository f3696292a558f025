"""Collaborator wiring.

Builds the production implementation of every collaborator from a loaded
config. Tests build a Services with fakes instead.
"""

from dataclasses import dataclass

from eureka import constants
from eureka.api_gateway import APIGateway, KongGateway, kong_admin_url
from eureka.broker_admin import BrokerAdmin, KafkaBrokerAdmin
from eureka.config_manager import EurekaConfig
from eureka.consortium_manager import ConsortiumManager
from eureka.container_runtime import ContainerRuntime, DockerRuntime
from eureka.http_client import HTTPClient
from eureka.identity_provider import IdentityProvider, KeycloakIdentityProvider
from eureka.management_service import HTTPManagementService, ManagementService
from eureka.registry_client import RegistryClient
from eureka.secret_store import SecretStore, VaultSecretStore
from eureka.timing_config import TimingConfig, get_timing_config


def gateway_url(config: EurekaConfig) -> str:
    return f"http://{config.application.gateway_hostname}:{constants.GATEWAY_PORT}"


@dataclass
class Services:
    """Every collaborator a command may need."""

    config: EurekaConfig
    timing: TimingConfig
    http: HTTPClient
    runtime: ContainerRuntime
    registry: RegistryClient
    secret_store: SecretStore
    identity: IdentityProvider
    management: ManagementService
    broker: BrokerAdmin
    gateway: APIGateway
    consortiums: ConsortiumManager


def build_services(
    config: EurekaConfig,
    timing: TimingConfig | None = None,
    runtime: ContainerRuntime | None = None,
    http: HTTPClient | None = None,
) -> Services:
    """Wire production collaborators for a config."""
    timing = timing or get_timing_config()
    http = http or HTTPClient(timing=timing)
    runtime = runtime or DockerRuntime()
    url = gateway_url(config)

    secret_store = VaultSecretStore(runtime, http)
    identity = KeycloakIdentityProvider(http, secret_store, config, url)
    management = HTTPManagementService(http, config, url)

    return Services(
        config=config,
        timing=timing,
        http=http,
        runtime=runtime,
        registry=RegistryClient(http, config.registry_urls),
        secret_store=secret_store,
        identity=identity,
        management=management,
        broker=KafkaBrokerAdmin(runtime),
        gateway=KongGateway(
            http,
            kong_admin_url(config.application.gateway_hostname),
            max_retries=timing.gateway_route_max_retries,
            retry_delay=timing.gateway_route_delay,
        ),
        consortiums=ConsortiumManager(
            http,
            config,
            identity,
            url,
            status_wait=timing.consortium_status_wait,
            status_timeout=timing.consortium_status_timeout,
        ),
    )


__all__ = ["Services", "build_services", "gateway_url"]
