"""Unit tests for AdapterConfig environment loading."""

from __future__ import annotations

import pytest

from cdevents_adapter.config import AdapterConfig, ConfigError


class TestDefaults:
    """Tests for values used when no variables are set."""

    def test_from_empty_environment_matches_defaults(self) -> None:
        """An empty environment yields the documented defaults."""
        config = AdapterConfig.from_env({})

        assert config == AdapterConfig()
        assert config.http_port == 8080
        assert config.nats_url == "nats://localhost:4222"
        assert config.webhook_stream_name == "cdevents-adapter-webhooks"
        assert config.webhook_consumer_name == "cdevents-adapter"
        assert config.event_stream_name == "cdevents-adapter-events"
        assert config.publish_timeout == pytest.approx(10.0)
        assert config.ack_on_publish_failure is False

    def test_stream_subjects_use_full_wildcard(self) -> None:
        """Both streams bind every subject below their base."""
        config = AdapterConfig()

        assert config.webhook_subjects == "webhooks.>"
        assert config.event_subjects == "dev.cdevents.>"

    def test_ack_wait_covers_a_full_backlog(self) -> None:
        """Fetched messages outlive the worst-case wait in the local queue."""
        config = AdapterConfig(queue_size=4, fetch_batch=2, publish_timeout=3.0)

        assert config.max_ack_pending == 6
        assert config.ack_wait == pytest.approx(21.0)
        assert config.ack_wait > config.max_ack_pending * config.publish_timeout


class TestFromEnv:
    """Tests for parsing CDEVENTS_* variables."""

    def test_reads_every_setting(self) -> None:
        """Every documented variable is honoured."""
        config = AdapterConfig.from_env(
            {
                "CDEVENTS_HTTP_HOST": "127.0.0.1",
                "CDEVENTS_HTTP_PORT": "9090",
                "CDEVENTS_NATS_URL": "nats://nats.nats.svc.cluster.local:4222",
                "CDEVENTS_LOG_LEVEL": "debug",
                "CDEVENTS_WEBHOOK_STREAM_NAME": "hooks",
                "CDEVENTS_WEBHOOK_SUBJECT_BASE": "ingress",
                "CDEVENTS_WEBHOOK_CONSUMER_NAME": "worker",
                "CDEVENTS_EVENT_STREAM_NAME": "events",
                "CDEVENTS_EVENT_SUBJECT_BASE": "ci.events",
                "CDEVENTS_PUBLISH_TIMEOUT": "2.5",
                "CDEVENTS_QUEUE_SIZE": "8",
                "CDEVENTS_FETCH_BATCH": "4",
                "CDEVENTS_FETCH_TIMEOUT": "1",
                "CDEVENTS_SHUTDOWN_TIMEOUT": "12",
                "CDEVENTS_REDELIVERY_DELAY": "0.5",
                "CDEVENTS_ACK_ON_PUBLISH_FAILURE": "yes",
            }
        )

        assert config == AdapterConfig(
            http_host="127.0.0.1",
            http_port=9090,
            nats_url="nats://nats.nats.svc.cluster.local:4222",
            log_level="debug",
            webhook_stream_name="hooks",
            webhook_subject_base="ingress",
            webhook_consumer_name="worker",
            event_stream_name="events",
            event_subject_base="ci.events",
            publish_timeout=2.5,
            queue_size=8,
            fetch_batch=4,
            fetch_timeout=1.0,
            shutdown_timeout=12.0,
            redelivery_delay=0.5,
            ack_on_publish_failure=True,
        )

    def test_blank_optional_values_fall_back_to_defaults(self) -> None:
        """Whitespace-only numeric settings are treated as unset."""
        config = AdapterConfig.from_env(
            {"CDEVENTS_HTTP_PORT": "  ", "CDEVENTS_QUEUE_SIZE": ""}
        )

        assert config.http_port == 8080
        assert config.queue_size == 64

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1", True), ("TRUE", True), ("on", True), ("0", False), ("No", False)],
    )
    def test_boolean_spellings(self, raw: str, *, expected: bool) -> None:
        """Common boolean spellings are accepted in any case."""
        config = AdapterConfig.from_env({"CDEVENTS_ACK_ON_PUBLISH_FAILURE": raw})

        assert config.ack_on_publish_failure is expected


class TestInvalidValues:
    """Tests for rejected settings."""

    @pytest.mark.parametrize(
        ("env", "message"),
        [
            ({"CDEVENTS_HTTP_PORT": "http"}, "CDEVENTS_HTTP_PORT must be an integer"),
            ({"CDEVENTS_HTTP_PORT": "70000"}, "outside valid range 1-65535"),
            ({"CDEVENTS_HTTP_PORT": "0"}, "outside valid range 1-65535"),
            ({"CDEVENTS_QUEUE_SIZE": "0"}, "CDEVENTS_QUEUE_SIZE must be positive"),
            ({"CDEVENTS_FETCH_BATCH": "2.5"}, "CDEVENTS_FETCH_BATCH must be an integer"),
            (
                {"CDEVENTS_PUBLISH_TIMEOUT": "soon"},
                "CDEVENTS_PUBLISH_TIMEOUT must be a number",
            ),
            (
                {"CDEVENTS_SHUTDOWN_TIMEOUT": "-1"},
                "CDEVENTS_SHUTDOWN_TIMEOUT must be positive",
            ),
            (
                {"CDEVENTS_ACK_ON_PUBLISH_FAILURE": "maybe"},
                "CDEVENTS_ACK_ON_PUBLISH_FAILURE must be a boolean",
            ),
            (
                {"CDEVENTS_EVENT_STREAM_NAME": " "},
                "CDEVENTS_EVENT_STREAM_NAME must not be empty",
            ),
        ],
    )
    def test_invalid_value_raises_config_error(
        self, env: dict[str, str], message: str
    ) -> None:
        """Invalid values raise ConfigError naming the variable."""
        with pytest.raises(ConfigError, match=message):
            AdapterConfig.from_env(env)

    def test_config_error_is_value_error(self) -> None:
        """ConfigError can be handled as a ValueError."""
        assert issubclass(ConfigError, ValueError)
