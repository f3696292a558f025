"""API gateway route readiness (Kong).

The management routes are registered asynchronously after the management
modules start. Nothing that calls them may run before every expected route
expression is present in the gateway.
"""

import logging
import time
from typing import Callable, Protocol, runtime_checkable

from eureka import constants
from eureka.errors import HTTPRequestError, ReadinessTimeoutError
from eureka.http_client import HTTPClient

logger = logging.getLogger(__name__)

MANAGEMENT_ROUTE_EXPRESSIONS = [
    '(http.path == "/applications" && http.method == "GET")',
    '(http.path == "/applications" && http.method == "POST")',
    '(http.path ~ "^/applications/([^/]+)$" && http.method == "DELETE")',
    '(http.path == "/modules/discovery" && http.method == "GET")',
    '(http.path == "/modules/discovery" && http.method == "POST")',
    '(http.path ~ "^/modules/([^/]+)/discovery$" && http.method == "PUT")',
    '(http.path == "/tenants" && http.method == "GET")',
    '(http.path == "/tenants" && http.method == "POST")',
    '(http.path ~ "^/tenants/([^/]+)$" && http.method == "DELETE")',
    '(http.path == "/entitlements" && http.method == "GET")',
    '(http.path == "/entitlements" && http.method == "POST")',
    '(http.path == "/entitlements" && http.method == "PUT")',
    '(http.path == "/entitlements" && http.method == "DELETE")',
]


@runtime_checkable
class APIGateway(Protocol):
    """Protocol for API gateway route inspection."""

    def get_route_status(self, expressions: list[str]) -> bool:
        """True when every expression has a matching route."""
        ...

    def wait_for_routes(self, expressions: list[str]) -> None:
        """Block until every expression has a route, or raise."""
        ...


class KongGateway:
    """APIGateway backed by the Kong admin API."""

    def __init__(
        self,
        http: HTTPClient,
        admin_url: str,
        max_retries: int,
        retry_delay: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http = http
        self.admin_url = admin_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def list_route_expressions(self) -> set[str]:
        body = self.http.get_json(f"{self.admin_url}/routes") or {}
        return {route.get("expression") for route in body.get("data") or [] if route.get("expression")}

    def missing_routes(self, expressions: list[str]) -> list[str]:
        present = self.list_route_expressions()
        return [e for e in expressions if e not in present]

    def get_route_status(self, expressions: list[str]) -> bool:
        return not self.missing_routes(expressions)

    def wait_for_routes(self, expressions: list[str]) -> None:
        """Poll the admin API until every expected route exists.

        Raises:
            ReadinessTimeoutError: With kind ``gateway`` naming the missing
                route expressions
        """
        logger.info(f"Waiting for {len(expressions)} gateway routes")
        missing = list(expressions)
        for attempt in range(1, self.max_retries + 1):
            try:
                missing = self.missing_routes(expressions)
            except HTTPRequestError as e:
                logger.debug(f"Gateway admin API not answering: {e}")
                missing = list(expressions)

            if not missing:
                logger.info("All gateway routes are ready")
                return

            logger.info(
                f"Gateway routes are unready: {len(expressions) - len(missing)}/{len(expressions)} "
                f"({attempt}/{self.max_retries})"
            )
            if attempt < self.max_retries:
                self._sleep(self.retry_delay)

        logger.error(f"Gateway routes not ready after {self.max_retries} attempts")
        raise ReadinessTimeoutError("gateway", missing)


def kong_admin_url(gateway_hostname: str) -> str:
    return f"http://{gateway_hostname}:{constants.GATEWAY_ADMIN_PORT}"


__all__ = ["APIGateway", "KongGateway", "MANAGEMENT_ROUTE_EXPRESSIONS", "kong_admin_url"]
