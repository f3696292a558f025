"""
Shared test fixtures and configuration for eureka CLI tests.

This module provides common fixtures used across all test types:
- Parsed sample configurations
- In-memory collaborators (runtime, identity, management, broker, gateway)
- A fully wired Services bundle and DeploymentPipeline
"""

import copy
from unittest.mock import Mock

import pytest

from eureka.config_manager import EurekaConfig
from eureka.consortium_manager import ConsortiumManager
from eureka.deployment_pipeline import DeploymentPipeline
from eureka.http_client import HTTPClient
from eureka.readiness_verifier import ReadinessVerifier
from eureka.registry_client import RegistryClient
from eureka.services import Services
from eureka.timing_config import TimingConfig

from .fixtures.sample_configs import COMPLETE_CONFIG, CONSORTIUM_CONFIG, registry_modules
from .mocks.platform_mock import (
    MockAPIGateway,
    MockBrokerAdmin,
    MockIdentityProvider,
    MockManagementService,
    MockSecretStore,
)
from .mocks.runtime_mock import MockContainerRuntime

# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def eureka_config(monkeypatch):
    """COMPLETE_CONFIG parsed into an EurekaConfig."""
    monkeypatch.delenv("AWS_ECR_FOLIO_REPO", raising=False)
    return EurekaConfig.from_dict(copy.deepcopy(COMPLETE_CONFIG))


@pytest.fixture
def consortium_config(monkeypatch):
    """CONSORTIUM_CONFIG parsed into an EurekaConfig."""
    monkeypatch.delenv("AWS_ECR_FOLIO_REPO", raising=False)
    return EurekaConfig.from_dict(copy.deepcopy(CONSORTIUM_CONFIG))


@pytest.fixture
def fast_timing_config():
    """Timing with no waits, for collaborators built directly in tests."""
    return TimingConfig(
        readiness_max_retries=2,
        readiness_delay=0.0,
        gateway_route_max_retries=2,
        gateway_route_delay=0.0,
        saga_timeout=1.0,
        saga_poll_interval=0.0,
        consortium_status_wait=0.0,
        consortium_status_timeout=1.0,
        http_max_attempts=1,
        http_initial_delay=0.0,
        http_max_delay=0.0,
    )


# ============================================================================
# COLLABORATOR FIXTURES
# ============================================================================


@pytest.fixture
def mock_runtime():
    return MockContainerRuntime()


@pytest.fixture
def mock_identity():
    return MockIdentityProvider()


@pytest.fixture
def mock_management():
    return MockManagementService(tenants={"nop-default": ["diku"]})


@pytest.fixture
def mock_http():
    """HTTPClient mock. Configure get_json/post_json per test."""
    return Mock(spec=HTTPClient)


@pytest.fixture
def services(eureka_config, fast_timing_config, mock_runtime, mock_identity, mock_management, mock_http):
    """Services wired entirely with in-memory collaborators."""
    registry = Mock(spec=RegistryClient)
    registry.get_modules.return_value = registry_modules()

    consortiums = Mock(spec=ConsortiumManager)
    consortiums.create_consortiums.return_value = []

    return Services(
        config=eureka_config,
        timing=fast_timing_config,
        http=mock_http,
        runtime=mock_runtime,
        registry=registry,
        secret_store=MockSecretStore(),
        identity=mock_identity,
        management=mock_management,
        broker=MockBrokerAdmin(),
        gateway=MockAPIGateway(),
        consortiums=consortiums,
    )


@pytest.fixture
def always_ready_verifier():
    return ReadinessVerifier(lambda name, port: True, max_retries=1, retry_delay=0.0)


@pytest.fixture
def pipeline(services, always_ready_verifier):
    """DeploymentPipeline over the in-memory services, no host port checks."""
    return DeploymentPipeline(services, verifier=always_ready_verifier, check_host_ports=False)
