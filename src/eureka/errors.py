"""Error taxonomy for the deployment pipeline.

Every error raised by eureka derives from EurekaError, so the CLI can catch
one type, print a sanitized message and exit with ``exit_code``.

Hierarchy:
    EurekaError
    ├── ConfigurationError          (fatal before any container is touched)
    │   ├── ModuleVersionUnresolved
    │   └── PortRangeExhausted
    ├── ExternalCallError           (fatal unless a step downgrades it)
    │   ├── ContainerRuntimeError
    │   ├── HTTPRequestError
    │   └── BrokerAdminError
    ├── ReadinessTimeoutError
    └── SagaTimeoutError
"""


class EurekaError(Exception):
    """Base exception for eureka errors."""

    exit_code = 1


class ConfigurationError(EurekaError):
    """Raised when configuration is missing, malformed or unresolvable."""

    pass


class ModuleVersionUnresolved(ConfigurationError):
    """Raised when neither config nor the registry supplies a module version."""

    def __init__(self, module_name: str):
        self.module_name = module_name
        super().__init__(
            f"Module {module_name} has no version in config and no matching registry entry"
        )


class PortRangeExhausted(ConfigurationError):
    """Raised when every port in the allocation range has been handed out."""

    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end
        super().__init__(f"Failed to find free TCP ports in range: {start}-{end}")


class ExternalCallError(EurekaError):
    """Raised when an external collaborator call fails."""

    pass


class ContainerRuntimeError(ExternalCallError):
    """Raised when the container runtime rejects or fails an operation."""

    pass


class HTTPRequestError(ExternalCallError):
    """Raised when an HTTP call fails or returns an unexpected status."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class BrokerAdminError(ExternalCallError):
    """Raised when the message broker admin tooling fails."""

    pass


class ReadinessTimeoutError(EurekaError):
    """Raised when one or more components never became ready."""

    def __init__(self, kind: str, unready: list[str]):
        self.kind = kind
        self.unready = sorted(unready)
        super().__init__(
            f"{kind.capitalize()} readiness failed, unready: {', '.join(self.unready)}"
        )


class SagaTimeoutError(EurekaError):
    """Raised when a polled condition is not reached before its deadline."""

    def __init__(self, subject: str, elapsed: float):
        self.subject = subject
        self.elapsed = elapsed
        super().__init__(f"Timed out after {elapsed:.1f}s waiting for {subject}")


__all__ = [
    "BrokerAdminError",
    "ConfigurationError",
    "ContainerRuntimeError",
    "EurekaError",
    "ExternalCallError",
    "HTTPRequestError",
    "ModuleVersionUnresolved",
    "PortRangeExhausted",
    "ReadinessTimeoutError",
    "SagaTimeoutError",
]
