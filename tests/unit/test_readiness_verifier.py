"""Unit tests for readiness_verifier module.

Tests cover:
- Concurrent probing (wall-clock bound)
- Retry budget per module
- Failure iff at least one module is unready
"""

import threading
import time
from unittest.mock import Mock

import pytest

from eureka.errors import ReadinessTimeoutError
from eureka.http_client import HTTPClient
from eureka.models import ReadinessOutcome
from eureka.readiness_verifier import ReadinessVerifier, http_health_probe


class TestReadinessVerifier:
    """Test readiness verification."""

    def test_all_ready(self):
        verifier = ReadinessVerifier(lambda name, port: True, max_retries=3, retry_delay=0)

        record = verifier.check_all("module", {"mod-a": 30000, "mod-b": 30010})

        assert record.all_ready
        assert record.entries["mod-a"].attempts == 1

    def test_unready_module_fails_the_gate(self):
        verifier = ReadinessVerifier(
            lambda name, port: name != "mod-b", max_retries=3, retry_delay=0
        )

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            verifier.check_all("module", {"mod-a": 30000, "mod-b": 30010})

        assert exc_info.value.unready == ["mod-b"]
        assert exc_info.value.kind == "module"

    def test_every_unready_module_is_named(self):
        verifier = ReadinessVerifier(lambda name, port: False, max_retries=1, retry_delay=0)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            verifier.check_all("management", {"mgr-b": 1, "mgr-a": 2})

        assert exc_info.value.unready == ["mgr-a", "mgr-b"]

    def test_retries_until_ready(self):
        attempts = {"count": 0}
        sleep = Mock()

        def probe(name, port):
            attempts["count"] += 1
            return attempts["count"] >= 3

        verifier = ReadinessVerifier(probe, max_retries=5, retry_delay=2.5, sleep=sleep)

        record = verifier.verify("module", {"mod-a": 30000})

        assert record.entries["mod-a"].outcome is ReadinessOutcome.READY
        assert record.entries["mod-a"].attempts == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(2.5)

    def test_timed_out_after_retry_budget(self):
        sleep = Mock()
        verifier = ReadinessVerifier(lambda name, port: False, max_retries=4, retry_delay=1, sleep=sleep)

        record = verifier.verify("module", {"mod-a": 30000})

        assert record.entries["mod-a"].outcome is ReadinessOutcome.TIMED_OUT
        assert sleep.call_count == 3

    def test_crashing_probe_is_errored(self):
        def probe(name, port):
            raise RuntimeError("socket exploded")

        verifier = ReadinessVerifier(probe, max_retries=2, retry_delay=0)

        record = verifier.verify("module", {"mod-a": 30000})

        assert record.entries["mod-a"].outcome is ReadinessOutcome.ERRORED
        assert "socket exploded" in record.entries["mod-a"].error
        assert record.unready() == ["mod-a"]

    def test_empty_pass_is_ready(self):
        verifier = ReadinessVerifier(lambda name, port: False, max_retries=1, retry_delay=0)

        record = verifier.check_all("module", {})

        assert record.entries == {}

    def test_probes_run_concurrently(self):
        """Ten modules each taking 0.2s finish in far less than 2s."""
        lock = threading.Lock()
        active = {"now": 0, "peak": 0}

        def slow_probe(name, port):
            with lock:
                active["now"] += 1
                active["peak"] = max(active["peak"], active["now"])
            time.sleep(0.2)
            with lock:
                active["now"] -= 1
            return True

        verifier = ReadinessVerifier(slow_probe, max_retries=1, retry_delay=0)
        ports = {f"mod-{i}": 30000 + i for i in range(10)}

        start = time.monotonic()
        record = verifier.check_all("module", ports)
        elapsed = time.monotonic() - start

        assert record.all_ready
        assert elapsed < 1.0
        assert active["peak"] > 1


class TestHttpHealthProbe:
    def test_pings_health_endpoint(self):
        http = Mock(spec=HTTPClient)
        http.ping.return_value = True

        probe = http_health_probe(http, "localhost")

        assert probe("mod-a", 30000) is True
        http.ping.assert_called_once_with("http://localhost:30000/admin/health")
