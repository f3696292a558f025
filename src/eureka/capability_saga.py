"""Capability-set attachment saga.

Capability sets are created asynchronously: the roles module consumes
capability events from the broker. Attaching capability sets before that
consumer group has drained would attach against a stale set, so each tenant
runs two phases:

1. Poll the consumer group until it reports no active members and no
   rebalance, within a bounded deadline (monotonic clock)
2. Attach capability sets to the tenant's roles

A deadline miss is fatal. Nothing is attached in that case.
"""

import logging
import time
from typing import Callable

from eureka import constants
from eureka.broker_admin import BrokerAdmin
from eureka.errors import SagaTimeoutError
from eureka.identity_provider import IdentityProvider
from eureka.models import Tenant

logger = logging.getLogger(__name__)


def capability_consumer_group(env_name: str) -> str:
    return constants.CAPABILITY_CONSUMER_GROUP.format(env=env_name)


class CapabilitySetSaga:
    """Wait for broker quiescence, then attach capability sets."""

    def __init__(
        self,
        broker: BrokerAdmin,
        identity: IdentityProvider,
        group: str,
        timeout: float,
        poll_interval: float,
        initial_delay: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.broker = broker
        self.identity = identity
        self.group = group
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.initial_delay = initial_delay
        self._clock = clock
        self._sleep = sleep

    def wait_for_quiescence(self) -> int:
        """Poll the consumer group until it is quiescent.

        Returns:
            Number of polls it took

        Raises:
            SagaTimeoutError: If the deadline passes first
            BrokerAdminError: If the broker tooling fails outright
        """
        if self.initial_delay > 0:
            logger.info(f"Waiting {self.initial_delay:.0f}s before polling {self.group}")
            self._sleep(self.initial_delay)

        start = self._clock()
        deadline = start + self.timeout
        polls = 0
        while True:
            polls += 1
            state = self.broker.describe_consumer_group(self.group)
            if state.quiescent:
                logger.info(f"Consumer group {self.group} is quiescent after {polls} polls")
                return polls

            if not state.reachable:
                logger.info("Broker timed out, waiting for it to become ready")
            else:
                logger.info(
                    f"Waiting for consumer group {self.group}: "
                    f"members={state.member_count} rebalancing={state.rebalancing}"
                )

            now = self._clock()
            if now + self.poll_interval > deadline:
                logger.error(f"Consumer group {self.group} did not settle within {self.timeout:.0f}s")
                raise SagaTimeoutError(f"consumer group {self.group}", now - start)
            self._sleep(self.poll_interval)

    def run(self, tenant: Tenant) -> int:
        """Run both phases for one tenant.

        Args:
            tenant: Live tenant with its access token filled in

        Returns:
            Number of broker polls before attachment
        """
        polls = self.wait_for_quiescence()
        logger.info(f"Attaching capability sets to roles in tenant {tenant.name}")
        self.identity.attach_capability_sets(tenant.name, tenant.access_token or "")
        return polls


__all__ = ["CapabilitySetSaga", "capability_consumer_group"]
