"""Unit tests for timing_config module."""

from eureka.timing_config import TimingConfig, get_timing_config, reset_timing_config


class TestTimingConfig:
    """Test defaults and environment overrides."""

    def test_defaults(self):
        config = TimingConfig()

        assert config.readiness_max_retries == 50
        assert config.saga_timeout == 900.0
        assert config.http_max_attempts == 5

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EUREKA_READINESS_MAX_RETRIES", "3")
        monkeypatch.setenv("EUREKA_SAGA_POLL_INTERVAL", "1.5")

        config = TimingConfig.from_environment()

        assert config.readiness_max_retries == 3
        assert config.saga_poll_interval == 1.5

    def test_global_instance_is_cached_until_reset(self, monkeypatch):
        reset_timing_config()
        first = get_timing_config()

        assert get_timing_config() is first

        monkeypatch.setenv("EUREKA_GATEWAY_ROUTE_DELAY", "0.25")
        reset_timing_config()

        assert get_timing_config().gateway_route_delay == 0.25
