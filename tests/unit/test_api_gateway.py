"""Unit tests for api_gateway module."""

from unittest.mock import Mock

import pytest

from eureka.api_gateway import MANAGEMENT_ROUTE_EXPRESSIONS, KongGateway, kong_admin_url
from eureka.errors import HTTPRequestError, ReadinessTimeoutError
from eureka.http_client import HTTPClient

ADMIN_URL = "http://localhost:8001"


def routes(expressions: list[str]) -> dict:
    return {"data": [{"id": str(i), "expression": e} for i, e in enumerate(expressions)]}


def make_gateway(http, max_retries=3):
    sleep = Mock()
    return KongGateway(http, ADMIN_URL, max_retries=max_retries, retry_delay=5, sleep=sleep), sleep


class TestKongGateway:
    """Test route readiness against the Kong admin API."""

    def test_all_routes_present(self):
        http = Mock(spec=HTTPClient)
        http.get_json.return_value = routes(MANAGEMENT_ROUTE_EXPRESSIONS)
        gateway, sleep = make_gateway(http)

        gateway.wait_for_routes(MANAGEMENT_ROUTE_EXPRESSIONS)

        http.get_json.assert_called_once_with(f"{ADMIN_URL}/routes")
        sleep.assert_not_called()

    def test_route_status(self):
        http = Mock(spec=HTTPClient)
        http.get_json.return_value = routes(MANAGEMENT_ROUTE_EXPRESSIONS[:2])
        gateway, _ = make_gateway(http)

        assert gateway.get_route_status(MANAGEMENT_ROUTE_EXPRESSIONS[:2]) is True
        assert gateway.get_route_status(MANAGEMENT_ROUTE_EXPRESSIONS) is False

    def test_waits_until_routes_appear(self):
        http = Mock(spec=HTTPClient)
        http.get_json.side_effect = [
            routes([]),
            routes(MANAGEMENT_ROUTE_EXPRESSIONS[:5]),
            routes(MANAGEMENT_ROUTE_EXPRESSIONS),
        ]
        gateway, sleep = make_gateway(http)

        gateway.wait_for_routes(MANAGEMENT_ROUTE_EXPRESSIONS)

        assert sleep.call_count == 2
        sleep.assert_called_with(5)

    def test_missing_routes_after_retries(self):
        http = Mock(spec=HTTPClient)
        http.get_json.return_value = routes(MANAGEMENT_ROUTE_EXPRESSIONS[1:])
        gateway, sleep = make_gateway(http)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            gateway.wait_for_routes(MANAGEMENT_ROUTE_EXPRESSIONS)

        assert exc_info.value.kind == "gateway"
        assert exc_info.value.unready == [MANAGEMENT_ROUTE_EXPRESSIONS[0]]
        assert http.get_json.call_count == 3
        assert sleep.call_count == 2

    def test_admin_api_errors_count_as_unready(self):
        http = Mock(spec=HTTPClient)
        http.get_json.side_effect = [
            HTTPRequestError("connection refused"),
            routes(MANAGEMENT_ROUTE_EXPRESSIONS),
        ]
        gateway, _ = make_gateway(http)

        gateway.wait_for_routes(MANAGEMENT_ROUTE_EXPRESSIONS)

        assert http.get_json.call_count == 2


def test_kong_admin_url():
    assert kong_admin_url("localhost") == "http://localhost:8001"
