"""Unit tests for services wiring and collaborator protocols."""

from unittest.mock import Mock

from eureka.api_gateway import APIGateway, KongGateway
from eureka.broker_admin import BrokerAdmin, KafkaBrokerAdmin
from eureka.container_runtime import ContainerRuntime
from eureka.http_client import HTTPClient
from eureka.identity_provider import IdentityProvider, KeycloakIdentityProvider
from eureka.management_service import HTTPManagementService, ManagementService
from eureka.secret_store import SecretStore, VaultSecretStore
from eureka.services import build_services, gateway_url

from ..mocks.platform_mock import (
    MockAPIGateway,
    MockBrokerAdmin,
    MockIdentityProvider,
    MockManagementService,
    MockSecretStore,
)
from ..mocks.runtime_mock import MockContainerRuntime


class TestBuildServices:
    """Test production wiring."""

    def test_wires_production_collaborators(self, eureka_config, fast_timing_config):
        runtime = MockContainerRuntime()
        http = Mock(spec=HTTPClient)

        services = build_services(eureka_config, fast_timing_config, runtime=runtime, http=http)

        assert services.runtime is runtime
        assert services.http is http
        assert isinstance(services.secret_store, VaultSecretStore)
        assert isinstance(services.identity, KeycloakIdentityProvider)
        assert isinstance(services.management, HTTPManagementService)
        assert isinstance(services.broker, KafkaBrokerAdmin)
        assert isinstance(services.gateway, KongGateway)
        assert services.gateway.admin_url == "http://localhost:8001"
        assert services.gateway.max_retries == fast_timing_config.gateway_route_max_retries
        assert services.registry.install_urls == {"folio": "https://registry.test/install.json"}
        assert services.consortiums.gateway_url == "http://localhost:8000"

    def test_gateway_url(self, eureka_config):
        assert gateway_url(eureka_config) == "http://localhost:8000"


class TestProtocols:
    """In-memory collaborators satisfy the runtime-checkable protocols."""

    def test_mocks_implement_protocols(self):
        assert isinstance(MockContainerRuntime(), ContainerRuntime)
        assert isinstance(MockIdentityProvider(), IdentityProvider)
        assert isinstance(MockManagementService(), ManagementService)
        assert isinstance(MockSecretStore(), SecretStore)
        assert isinstance(MockBrokerAdmin(), BrokerAdmin)
        assert isinstance(MockAPIGateway(), APIGateway)
