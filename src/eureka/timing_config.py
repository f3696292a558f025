"""Timing configuration for retries, readiness checks and polling.

This module provides configurable wait and retry settings that can be tuned
for slow laptops, CI runners or fast local loops.

Design Philosophy:
- Ruthless simplicity: Single configuration dataclass
- Sensible defaults: Works out of the box
- Environment-aware: Can be overridden via env vars
"""

import os
from dataclasses import dataclass


@dataclass
class TimingConfig:
    """Timing settings for the deployment pipeline.

    These settings control every bounded wait eureka performs.
    """

    # Module readiness probes
    readiness_max_retries: int = 50
    readiness_delay: float = 10.0

    # API gateway route readiness
    gateway_route_max_retries: int = 30
    gateway_route_delay: float = 10.0

    # Capability-set saga
    saga_timeout: float = 900.0
    saga_poll_interval: float = 30.0
    saga_initial_delay: float = 0.0

    # Consortium tenant setup polling
    consortium_status_wait: float = 10.0
    consortium_status_timeout: float = 600.0

    # HTTP calls
    http_max_attempts: int = 5
    http_initial_delay: float = 2.0
    http_max_delay: float = 10.0

    @classmethod
    def from_environment(cls) -> "TimingConfig":
        """Load timing configuration from environment variables.

        Environment variables (all optional):
            EUREKA_READINESS_MAX_RETRIES: Probe attempts per module (default: 50)
            EUREKA_READINESS_DELAY: Seconds between probes (default: 10)
            EUREKA_GATEWAY_ROUTE_MAX_RETRIES: Route checks (default: 30)
            EUREKA_GATEWAY_ROUTE_DELAY: Seconds between route checks (default: 10)
            EUREKA_SAGA_TIMEOUT: Total quiescence wait in seconds (default: 900)
            EUREKA_SAGA_POLL_INTERVAL: Seconds between broker polls (default: 30)
            EUREKA_SAGA_INITIAL_DELAY: Seconds before the first poll (default: 0)
            EUREKA_CONSORTIUM_STATUS_WAIT: Seconds between status polls (default: 10)
            EUREKA_CONSORTIUM_STATUS_TIMEOUT: Total status wait (default: 600)
            EUREKA_HTTP_MAX_ATTEMPTS: HTTP attempts (default: 5)
            EUREKA_HTTP_INITIAL_DELAY: First HTTP retry delay (default: 2)
            EUREKA_HTTP_MAX_DELAY: Max HTTP retry delay (default: 10)

        Returns:
            TimingConfig with values from environment or defaults
        """
        return cls(
            readiness_max_retries=int(os.getenv("EUREKA_READINESS_MAX_RETRIES", "50")),
            readiness_delay=float(os.getenv("EUREKA_READINESS_DELAY", "10.0")),
            gateway_route_max_retries=int(os.getenv("EUREKA_GATEWAY_ROUTE_MAX_RETRIES", "30")),
            gateway_route_delay=float(os.getenv("EUREKA_GATEWAY_ROUTE_DELAY", "10.0")),
            saga_timeout=float(os.getenv("EUREKA_SAGA_TIMEOUT", "900.0")),
            saga_poll_interval=float(os.getenv("EUREKA_SAGA_POLL_INTERVAL", "30.0")),
            saga_initial_delay=float(os.getenv("EUREKA_SAGA_INITIAL_DELAY", "0.0")),
            consortium_status_wait=float(os.getenv("EUREKA_CONSORTIUM_STATUS_WAIT", "10.0")),
            consortium_status_timeout=float(
                os.getenv("EUREKA_CONSORTIUM_STATUS_TIMEOUT", "600.0")
            ),
            http_max_attempts=int(os.getenv("EUREKA_HTTP_MAX_ATTEMPTS", "5")),
            http_initial_delay=float(os.getenv("EUREKA_HTTP_INITIAL_DELAY", "2.0")),
            http_max_delay=float(os.getenv("EUREKA_HTTP_MAX_DELAY", "10.0")),
        )


# Global configuration instance (lazily loaded)
_config: TimingConfig | None = None


def get_timing_config() -> TimingConfig:
    """Get global timing configuration.

    Returns:
        TimingConfig instance (loaded from environment on first access)
    """
    global _config
    if _config is None:
        _config = TimingConfig.from_environment()
    return _config


def reset_timing_config() -> None:
    """Reset global timing configuration.

    Forces reload from environment on next access.
    """
    global _config
    _config = None


__all__ = ["TimingConfig", "get_timing_config", "reset_timing_config"]
