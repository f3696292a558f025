"""Concurrent readiness verification.

One probe task per module, all started at once. Each probe retries up to
``max_retries`` with a constant ``retry_delay`` between attempts, so a fully
ready fleet finishes in roughly the time of its slowest straggler.

The caller blocks until every probe has finished. Any module that never
answered fails the whole gate.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from eureka import constants
from eureka.errors import ReadinessTimeoutError
from eureka.http_client import HTTPClient
from eureka.models import ReadinessEntry, ReadinessOutcome, ReadinessRecord

logger = logging.getLogger(__name__)

Probe = Callable[[str, int], bool]


def http_health_probe(http: HTTPClient, host: str) -> Probe:
    """Probe that pings ``http://<host>:<port>/admin/health``."""

    def probe(name: str, port: int) -> bool:
        return http.ping(f"http://{host}:{port}{constants.HEALTH_PATH}")

    return probe


class ReadinessVerifier:
    """Fan out health probes and gather a ReadinessRecord."""

    def __init__(
        self,
        probe: Probe,
        max_retries: int,
        retry_delay: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.probe = probe
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def _wait_for(self, name: str, port: int) -> ReadinessEntry:
        for attempt in range(1, self.max_retries + 1):
            if self.probe(name, port):
                logger.info(f"Module {name} is ready on port {port}")
                return ReadinessEntry(port=port, outcome=ReadinessOutcome.READY, attempts=attempt)

            logger.debug(f"Module {name} not ready yet ({attempt}/{self.max_retries})")
            if attempt < self.max_retries:
                self._sleep(self.retry_delay)

        logger.error(f"Module {name} did not become ready after {self.max_retries} attempts")
        return ReadinessEntry(
            port=port, outcome=ReadinessOutcome.TIMED_OUT, attempts=self.max_retries
        )

    def verify(self, kind: str, ports: dict[str, int]) -> ReadinessRecord:
        """Probe every module concurrently and record each outcome."""
        record = ReadinessRecord(kind=kind)
        if not ports:
            return record

        logger.info(f"Checking readiness of {len(ports)} {kind} modules")
        with ThreadPoolExecutor(max_workers=len(ports)) as executor:
            futures = {
                executor.submit(self._wait_for, name, port): name for name, port in ports.items()
            }
            for future in as_completed(futures):
                name = futures[future]
                try:
                    record.entries[name] = future.result()
                except Exception as e:  # noqa: BLE001 - a crashing probe is an unready module
                    logger.error(f"Readiness probe for {name} failed: {e}")
                    record.entries[name] = ReadinessEntry(
                        port=ports[name], outcome=ReadinessOutcome.ERRORED, error=str(e)
                    )
        return record

    def check_all(self, kind: str, ports: dict[str, int]) -> ReadinessRecord:
        """Verify readiness and fail if any module is unready.

        Args:
            kind: Component kind for messages (``management``, ``module``)
            ports: Module name -> exposed host port

        Returns:
            ReadinessRecord with every module READY

        Raises:
            ReadinessTimeoutError: Naming every unready module
        """
        record = self.verify(kind, ports)
        if not record.all_ready:
            raise ReadinessTimeoutError(kind, record.unready())
        logger.info(f"All {kind} modules are ready")
        return record


__all__ = ["Probe", "ReadinessVerifier", "http_health_probe"]
