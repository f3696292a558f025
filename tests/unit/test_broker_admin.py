"""Unit tests for broker_admin module."""

import pytest

from eureka.broker_admin import KafkaBrokerAdmin, parse_group_state
from eureka.container_runtime import ExecResult
from eureka.errors import BrokerAdminError

from ..mocks.runtime_mock import MockContainerRuntime

GROUP = "folio-mod-roles-keycloak-capability-group"

STATE_HEADER = "GROUP                                       COORDINATOR (ID)          ASSIGNMENT-STRATEGY  STATE           #MEMBERS"


def result(stdout: str = "", stderr: str = "", exit_code: int = 0) -> ExecResult:
    return ExecResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


class TestParseGroupState:
    """Test interpretation of kafka-consumer-groups.sh output."""

    def test_no_active_members(self):
        state = parse_group_state(
            GROUP, result(stderr=f"Consumer group '{GROUP}' has no active members.")
        )

        assert state.quiescent is True

    def test_rebalancing_message(self):
        state = parse_group_state(GROUP, result(stderr=f"Consumer group '{GROUP}' is rebalancing."))

        assert state.rebalancing is True
        assert state.quiescent is False

    def test_broker_timeout(self):
        state = parse_group_state(
            GROUP,
            result(stderr="org.apache.kafka.common.errors.TimeoutException: Timed out", exit_code=1),
        )

        assert state.reachable is False

    def test_stable_group_with_members(self):
        stdout = f"\n{STATE_HEADER}\n{GROUP} kafka:9092 (1)  range  Stable  2\n"

        state = parse_group_state(GROUP, result(stdout=stdout))

        assert state.member_count == 2
        assert state.rebalancing is False

    def test_preparing_rebalance_row(self):
        stdout = f"{STATE_HEADER}\n{GROUP} kafka:9092 (1)  range  PreparingRebalance  1\n"

        state = parse_group_state(GROUP, result(stdout=stdout))

        assert state.rebalancing is True

    def test_unknown_output_raises(self):
        with pytest.raises(BrokerAdminError, match="Failed to describe consumer group"):
            parse_group_state(GROUP, result(stderr="Error: unknown option --state", exit_code=1))

    def test_malformed_member_count_raises(self):
        with pytest.raises(BrokerAdminError, match="Unexpected member count"):
            parse_group_state(GROUP, result(stdout=f"{GROUP} kafka:9092 range Stable many"))


class TestKafkaBrokerAdmin:
    def test_runs_state_describe_in_tools_container(self):
        runtime = MockContainerRuntime()
        runtime.exec_results["kafka-tools"] = [
            result(stderr=f"Consumer group '{GROUP}' has no active members.")
        ]

        state = KafkaBrokerAdmin(runtime).describe_consumer_group(GROUP)

        assert state.quiescent is True
        container, command = runtime.exec_calls[0]
        assert container == "kafka-tools"
        assert command[:2] == ["bash", "-c"]
        assert f"--describe --group {GROUP} --state" in command[2]
        assert "--bootstrap-server kafka.eureka:9092" in command[2]
