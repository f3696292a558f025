"""Pytest configuration and fixtures for eureka tests.

CRITICAL: Protects the production configuration and keeps every wait short.
"""

import os
import shutil
from pathlib import Path

import pytest

from eureka.timing_config import reset_timing_config

FAST_TIMING_ENV = {
    "EUREKA_TEST_MODE": "true",
    "EUREKA_READINESS_MAX_RETRIES": "3",
    "EUREKA_READINESS_DELAY": "0",
    "EUREKA_GATEWAY_ROUTE_MAX_RETRIES": "2",
    "EUREKA_GATEWAY_ROUTE_DELAY": "0",
    "EUREKA_SAGA_TIMEOUT": "1",
    "EUREKA_SAGA_POLL_INTERVAL": "0",
    "EUREKA_HTTP_MAX_ATTEMPTS": "1",
    "EUREKA_HTTP_INITIAL_DELAY": "0",
}


@pytest.fixture(scope="session", autouse=True)
def protect_production_config():
    """Protect ~/.eureka/config.eureka.yaml from being modified by tests.

    Backs up the real config before any test runs and restores it after
    the whole session.
    """
    config_path = Path.home() / ".eureka" / "config.eureka.yaml"
    backup_path = Path.home() / ".eureka" / ".config.eureka.yaml.pytest-backup"

    config_existed = config_path.exists()
    if config_existed:
        shutil.copy2(config_path, backup_path)

    yield

    if config_existed and backup_path.exists():
        shutil.copy2(backup_path, config_path)
        backup_path.unlink()
    elif backup_path.exists():
        backup_path.unlink()


@pytest.fixture(scope="session", autouse=True)
def fast_timing():
    """Shrink every retry budget and delay for the test session."""
    saved = {key: os.environ.get(key) for key in FAST_TIMING_ENV}
    os.environ.update(FAST_TIMING_ENV)
    reset_timing_config()

    yield

    for key, value in saved.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    reset_timing_config()


@pytest.fixture
def isolated_config(tmp_path):
    """Provide an isolated config directory for tests.

    Example:
        def test_something(isolated_config):
            config_path = isolated_config / "config.eureka.yaml"
            # Safe to write - it's in tmp_path
    """
    config_dir = tmp_path / ".eureka"
    config_dir.mkdir(parents=True)
    return config_dir
