"""HTTP client with bounded retries for platform REST APIs.

Wraps a requests.Session. Transient failures (connection errors, timeouts,
408/429/5xx) are retried with exponential backoff using the budget from
TimingConfig. Anything else surfaces as HTTPRequestError.

Security:
- Response bodies in error messages are truncated and sanitized
"""

import logging
import time
from typing import Any, Callable

import requests

from eureka import constants
from eureka.errors import HTTPRequestError
from eureka.log_sanitizer import LogSanitizer
from eureka.retry_handler import (
    TransientError,
    retry_with_exponential_backoff,
    should_retry_http_error,
)
from eureka.timing_config import TimingConfig, get_timing_config

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600


class RetryableStatusError(TransientError):
    """A response with a status worth retrying."""

    def __init__(self, method: str, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(f"{method} {url} returned {status_code}")


class HTTPClient:
    """Thin JSON-oriented wrapper over requests with retries."""

    def __init__(
        self,
        timing: TimingConfig | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timing = timing or get_timing_config()
        self.session = session or requests.Session()
        self.timeout = timeout
        self._sleep = sleep

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: dict[str, str] | None = None,
        retry: bool = True,
    ) -> requests.Response:
        """Send a request and return the response.

        Raises:
            HTTPRequestError: On transport failure, an exhausted retry budget
                or any status >= 400
        """

        def send() -> requests.Response:
            logger.debug(f"{method} {url}")
            response = self.session.request(
                method, url, headers=headers, json=json, data=data, timeout=self.timeout
            )
            if should_retry_http_error(response.status_code):
                raise RetryableStatusError(method, url, response.status_code)
            return response

        attempts = self.timing.http_max_attempts if retry else 1
        send_with_retry = retry_with_exponential_backoff(
            max_attempts=attempts,
            initial_delay=self.timing.http_initial_delay,
            max_delay=self.timing.http_max_delay,
            sleep=self._sleep,
        )(send)

        try:
            response = send_with_retry()
        except RetryableStatusError as e:
            raise HTTPRequestError(str(e), status_code=e.status_code, url=url) from e
        except requests.RequestException as e:
            raise HTTPRequestError(
                LogSanitizer.create_safe_error_message(e, f"{method} {url} failed"), url=url
            ) from e

        if response.status_code >= 400:
            body = LogSanitizer.sanitize(response.text[:200])
            raise HTTPRequestError(
                f"{method} {url} returned {response.status_code}: {body}",
                status_code=response.status_code,
                url=url,
            )
        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HTTPRequestError(
                f"Invalid JSON from {response.url}", status_code=response.status_code, url=response.url
            ) from e

    def get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        return self._decode(self.request("GET", url, headers=headers))

    def post_json(self, url: str, payload: Any, headers: dict[str, str] | None = None) -> Any:
        return self._decode(self.request("POST", url, headers=headers, json=payload))

    def post_form(self, url: str, form: dict[str, str], headers: dict[str, str] | None = None) -> Any:
        form_headers = {"Content-Type": "application/x-www-form-urlencoded", **(headers or {})}
        return self._decode(self.request("POST", url, headers=form_headers, data=form))

    def put_json(self, url: str, payload: Any, headers: dict[str, str] | None = None) -> Any:
        return self._decode(self.request("PUT", url, headers=headers, json=payload))

    def delete(self, url: str, headers: dict[str, str] | None = None, payload: Any = None) -> None:
        self.request("DELETE", url, headers=headers, json=payload)

    def ping(self, url: str) -> bool:
        """Single GET with a short timeout. True only on HTTP 200."""
        try:
            response = self.session.get(url, timeout=constants.PING_TIMEOUT)
        except requests.RequestException as e:
            logger.debug(f"Ping {url} failed: {e}")
            return False
        return response.status_code == 200


def tenant_headers(tenant: str, token: str | None) -> dict[str, str]:
    """JSON headers carrying the tenant and its access token."""
    headers = {"Content-Type": "application/json", constants.OKAPI_TENANT_HEADER: tenant}
    if token:
        headers[constants.OKAPI_TOKEN_HEADER] = token
    return headers


def bearer_headers(token: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}


__all__ = ["HTTPClient", "RetryableStatusError", "bearer_headers", "tenant_headers"]
