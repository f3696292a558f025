"""Message broker administration (Kafka consumer groups).

KafkaBrokerAdmin runs ``kafka-consumer-groups.sh`` inside the ``kafka-tools``
container and turns its ``--state`` output into a ConsumerGroupState.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from eureka import constants
from eureka.container_runtime import ContainerRuntime, ExecResult
from eureka.errors import BrokerAdminError

logger = logging.getLogger(__name__)

NO_ACTIVE_MEMBERS = "has no active members"
REBALANCING = "is rebalancing"
BROKER_TIMEOUT = "TimeoutException"

REBALANCING_STATES = {"PreparingRebalance", "CompletingRebalance"}


@dataclass
class ConsumerGroupState:
    """Membership snapshot of a consumer group.

    ``reachable`` is False when the broker did not answer in time; the other
    fields are then meaningless.
    """

    member_count: int = 0
    rebalancing: bool = False
    reachable: bool = True

    @property
    def quiescent(self) -> bool:
        return self.reachable and self.member_count == 0 and not self.rebalancing


@runtime_checkable
class BrokerAdmin(Protocol):
    """Protocol for broker consumer-group inspection."""

    def describe_consumer_group(self, group: str) -> ConsumerGroupState:
        ...


def parse_group_state(group: str, result: ExecResult) -> ConsumerGroupState:
    """Interpret ``kafka-consumer-groups.sh --describe --state`` output.

    Raises:
        BrokerAdminError: If the output is neither a known condition nor a
            state table row for ``group``
    """
    stderr = result.stderr.strip()
    if NO_ACTIVE_MEMBERS in stderr:
        return ConsumerGroupState(member_count=0, rebalancing=False)
    if REBALANCING in stderr:
        return ConsumerGroupState(rebalancing=True)
    if BROKER_TIMEOUT in stderr:
        return ConsumerGroupState(reachable=False)

    for line in result.stdout.splitlines():
        tokens = line.split()
        if len(tokens) < 2 or tokens[0] != group:
            continue
        state, members = tokens[-2], tokens[-1]
        try:
            member_count = int(members)
        except ValueError as e:
            raise BrokerAdminError(f"Unexpected member count for {group}: {line!r}") from e
        return ConsumerGroupState(
            member_count=member_count, rebalancing=state in REBALANCING_STATES
        )

    detail = stderr or result.stdout.strip() or f"exit code {result.exit_code}"
    raise BrokerAdminError(f"Failed to describe consumer group {group}: {detail}")


class KafkaBrokerAdmin:
    """BrokerAdmin using the Kafka CLI tools container."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        container_name: str = constants.KAFKA_TOOLS_CONTAINER,
        bootstrap_server: str = constants.KAFKA_TCP,
    ):
        self.runtime = runtime
        self.container_name = container_name
        self.bootstrap_server = bootstrap_server

    def describe_consumer_group(self, group: str) -> ConsumerGroupState:
        command = (
            f"timeout 30s kafka-consumer-groups.sh --bootstrap-server {self.bootstrap_server} "
            f"--describe --group {group} --state"
        )
        result = self.runtime.exec(self.container_name, ["bash", "-c", command])
        state = parse_group_state(group, result)
        logger.debug(f"Consumer group {group}: {state}")
        return state


__all__ = [
    "BrokerAdmin",
    "ConsumerGroupState",
    "KafkaBrokerAdmin",
    "parse_group_state",
]
