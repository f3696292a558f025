"""Unit tests for http_client module.

The requests.Session is mocked. Retry delays are zero and sleep is a Mock.
"""

from unittest.mock import Mock

import pytest
import requests

from eureka.errors import HTTPRequestError
from eureka.http_client import HTTPClient, bearer_headers, tenant_headers
from eureka.timing_config import TimingConfig


def response(status_code=200, body=None, text=""):
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.content = b"x" if body is not None else b""
    resp.json.return_value = body
    resp.text = text
    resp.url = "http://test"
    return resp


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


def make_client(session, attempts=1):
    timing = TimingConfig(http_max_attempts=attempts, http_initial_delay=0.0, http_max_delay=0.0)
    return HTTPClient(timing=timing, session=session, sleep=Mock())


class TestHeaders:
    def test_tenant_headers(self):
        assert tenant_headers("diku", "tok") == {
            "Content-Type": "application/json",
            "X-Okapi-Tenant": "diku",
            "X-Okapi-Token": "tok",
        }

    def test_tenant_headers_without_token(self):
        assert "X-Okapi-Token" not in tenant_headers("diku", None)

    def test_bearer_headers(self):
        assert bearer_headers("tok")["Authorization"] == "Bearer tok"


class TestHTTPClient:
    """Test request handling and retries."""

    def test_get_json(self, session):
        session.request.return_value = response(body={"tenants": []})

        assert make_client(session).get_json("http://gw/tenants") == {"tenants": []}
        session.request.assert_called_once_with(
            "GET", "http://gw/tenants", headers=None, json=None, data=None, timeout=600
        )

    def test_empty_body_is_none(self, session):
        session.request.return_value = response(status_code=201)

        assert make_client(session).post_json("http://gw/tenants", {"name": "diku"}) is None

    def test_client_error_raises(self, session):
        session.request.return_value = response(status_code=404, text="Tenant not found")

        with pytest.raises(HTTPRequestError) as exc_info:
            make_client(session).get_json("http://gw/tenants/x")

        assert exc_info.value.status_code == 404
        assert "Tenant not found" in str(exc_info.value)
        assert session.request.call_count == 1

    def test_retryable_status_is_retried(self, session):
        session.request.side_effect = [response(status_code=503), response(body={"ok": True})]

        assert make_client(session, attempts=3).get_json("http://gw/applications") == {"ok": True}
        assert session.request.call_count == 2

    def test_retry_budget_exhausted(self, session):
        session.request.return_value = response(status_code=502)

        with pytest.raises(HTTPRequestError) as exc_info:
            make_client(session, attempts=2).get_json("http://gw/applications")

        assert exc_info.value.status_code == 502
        assert session.request.call_count == 2

    def test_connection_error(self, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(HTTPRequestError, match="GET http://gw/x failed"):
            make_client(session).get_json("http://gw/x")

    def test_error_body_is_sanitized(self, session):
        session.request.return_value = response(status_code=400, text="bad client_secret=abc123")

        with pytest.raises(HTTPRequestError) as exc_info:
            make_client(session).post_form("http://kc/token", {"grant_type": "password"})

        assert "abc123" not in str(exc_info.value)

    def test_post_form_sets_content_type(self, session):
        session.request.return_value = response(body={"access_token": "t"})

        make_client(session).post_form("http://kc/token", {"grant_type": "client_credentials"})

        kwargs = session.request.call_args.kwargs
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert kwargs["data"] == {"grant_type": "client_credentials"}

    def test_delete_with_payload(self, session):
        session.request.return_value = response(status_code=204)

        make_client(session).delete("http://gw/entitlements", payload={"tenantId": "1"})

        assert session.request.call_args.args == ("DELETE", "http://gw/entitlements")
        assert session.request.call_args.kwargs["json"] == {"tenantId": "1"}


class TestPing:
    def test_ready(self, session):
        session.get.return_value = response(status_code=200)

        assert make_client(session).ping("http://localhost:30000/admin/health") is True

    def test_not_ready(self, session):
        session.get.return_value = response(status_code=503)

        assert make_client(session).ping("http://localhost:30000/admin/health") is False

    def test_connection_refused(self, session):
        session.get.side_effect = requests.ConnectionError("refused")

        assert make_client(session).ping("http://localhost:30000/admin/health") is False
