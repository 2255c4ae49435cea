"""Runtime configuration for the CDEvents adapter.

All settings come from ``CDEVENTS_*`` environment variables, are read once
at startup and never change afterwards.

Usage
-----
Defaults:

>>> config = AdapterConfig()
>>> config.webhook_subject_base
'webhooks'

From the environment:

>>> import os
>>> os.environ["CDEVENTS_HTTP_PORT"] = "9090"
>>> AdapterConfig.from_env().http_port
9090

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

_MIN_PORT = 1
_MAX_PORT = 65535
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    @classmethod
    def not_an_integer(cls, env_var: str, raw: str) -> ConfigError:
        """Return an error for a non-integer value."""
        return cls(f"{env_var} must be an integer, got: {raw!r}")

    @classmethod
    def not_a_number(cls, env_var: str, raw: str) -> ConfigError:
        """Return an error for a non-numeric value."""
        return cls(f"{env_var} must be a number, got: {raw!r}")

    @classmethod
    def not_positive(cls, env_var: str, value: float) -> ConfigError:
        """Return an error for zero or negative values."""
        return cls(f"{env_var} must be positive, got: {value}")

    @classmethod
    def port_out_of_range(cls, env_var: str, value: int) -> ConfigError:
        """Return an error for a port outside 1-65535."""
        return cls(
            f"{env_var} port {value} outside valid range {_MIN_PORT}-{_MAX_PORT}"
        )

    @classmethod
    def not_a_boolean(cls, env_var: str, raw: str) -> ConfigError:
        """Return an error for an unrecognised boolean spelling."""
        return cls(f"{env_var} must be a boolean, got: {raw!r}")

    @classmethod
    def empty_name(cls, env_var: str) -> ConfigError:
        """Return an error for a blank stream, subject or consumer name."""
        return cls(f"{env_var} must not be empty")


@dc.dataclass(frozen=True, slots=True)
class AdapterConfig:
    """Settings for the HTTP ingress, the JetStream topology and the worker.

    Attributes
    ----------
    http_host
        Bind address for the HTTP listener.
    http_port
        Listen port for the HTTP listener.
    nats_url
        NATS server URL.
    log_level
        Raw log level; normalised by :func:`cdevents_adapter.logging.configure_logging`.
    webhook_stream_name
        Work-queue stream holding raw webhook bodies.
    webhook_subject_base
        Subject prefix of the webhook stream; messages use
        ``<base>.<routing key>``.
    webhook_consumer_name
        Durable pull consumer reading the webhook stream.
    event_stream_name
        Stream receiving published CloudEvents.
    event_subject_base
        Subject prefix of the event stream.
    publish_timeout
        Seconds allowed for one publish before it is abandoned.
    queue_size
        Capacity of the in-process queue between delivery and the worker.
    fetch_batch
        Messages requested per pull from the webhook consumer.
    fetch_timeout
        Seconds one pull request waits for messages.
    shutdown_timeout
        Seconds the worker may take to finish during shutdown.
    redelivery_delay
        Seconds the broker waits before redelivering a transient failure.
    ack_on_publish_failure
        Acknowledge messages whose publish failed instead of requesting
        redelivery. Loses events; kept for parity with older deployments.

    """

    http_host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    http_port: int = 8080
    nats_url: str = "nats://localhost:4222"
    log_level: str = "INFO"
    webhook_stream_name: str = "cdevents-adapter-webhooks"
    webhook_subject_base: str = "webhooks"
    webhook_consumer_name: str = "cdevents-adapter"
    event_stream_name: str = "cdevents-adapter-events"
    event_subject_base: str = "dev.cdevents"
    publish_timeout: float = 10.0
    queue_size: int = 64
    fetch_batch: int = 10
    fetch_timeout: float = 5.0
    shutdown_timeout: float = 30.0
    redelivery_delay: float = 5.0
    ack_on_publish_failure: bool = False

    @property
    def webhook_subjects(self) -> str:
        """Return the wildcard subject bound to the webhook stream."""
        return f"{self.webhook_subject_base}.>"

    @property
    def event_subjects(self) -> str:
        """Return the wildcard subject bound to the event stream."""
        return f"{self.event_subject_base}.>"

    @property
    def max_ack_pending(self) -> int:
        """Return how many fetched messages may await settlement at once."""
        return self.queue_size + self.fetch_batch

    @property
    def ack_wait(self) -> float:
        """Return the seconds a fetched message may stay unsettled.

        A message can sit behind a full local backlog, each entry taking up
        to ``publish_timeout``, before the worker settles it.
        """
        return (self.max_ack_pending + 1) * self.publish_timeout

    @classmethod
    def from_env(cls, environ: typ.Mapping[str, str] | None = None) -> AdapterConfig:
        """Create configuration from ``CDEVENTS_*`` environment variables.

        Parameters
        ----------
        environ
            Mapping to read instead of ``os.environ``.

        Returns
        -------
        AdapterConfig
            Configuration with unset variables left at their defaults.

        Raises
        ------
        ConfigError
            If any variable is set to an invalid value.

        """
        reader = _EnvReader(os.environ if environ is None else environ)
        defaults = cls()
        return cls(
            http_host=reader.text("CDEVENTS_HTTP_HOST", defaults.http_host),
            http_port=reader.port("CDEVENTS_HTTP_PORT", defaults.http_port),
            nats_url=reader.text("CDEVENTS_NATS_URL", defaults.nats_url),
            log_level=reader.text("CDEVENTS_LOG_LEVEL", defaults.log_level),
            webhook_stream_name=reader.name(
                "CDEVENTS_WEBHOOK_STREAM_NAME", defaults.webhook_stream_name
            ),
            webhook_subject_base=reader.name(
                "CDEVENTS_WEBHOOK_SUBJECT_BASE", defaults.webhook_subject_base
            ),
            webhook_consumer_name=reader.name(
                "CDEVENTS_WEBHOOK_CONSUMER_NAME", defaults.webhook_consumer_name
            ),
            event_stream_name=reader.name(
                "CDEVENTS_EVENT_STREAM_NAME", defaults.event_stream_name
            ),
            event_subject_base=reader.name(
                "CDEVENTS_EVENT_SUBJECT_BASE", defaults.event_subject_base
            ),
            publish_timeout=reader.positive_float(
                "CDEVENTS_PUBLISH_TIMEOUT", defaults.publish_timeout
            ),
            queue_size=reader.positive_int("CDEVENTS_QUEUE_SIZE", defaults.queue_size),
            fetch_batch=reader.positive_int(
                "CDEVENTS_FETCH_BATCH", defaults.fetch_batch
            ),
            fetch_timeout=reader.positive_float(
                "CDEVENTS_FETCH_TIMEOUT", defaults.fetch_timeout
            ),
            shutdown_timeout=reader.positive_float(
                "CDEVENTS_SHUTDOWN_TIMEOUT", defaults.shutdown_timeout
            ),
            redelivery_delay=reader.positive_float(
                "CDEVENTS_REDELIVERY_DELAY", defaults.redelivery_delay
            ),
            ack_on_publish_failure=reader.boolean(
                "CDEVENTS_ACK_ON_PUBLISH_FAILURE",
                default=defaults.ack_on_publish_failure,
            ),
        )


class _EnvReader:
    """Typed accessors over an environment mapping."""

    def __init__(self, environ: typ.Mapping[str, str]) -> None:
        self._environ = environ

    def _raw(self, env_var: str) -> str | None:
        raw = self._environ.get(env_var, "").strip()
        return raw or None

    def text(self, env_var: str, default: str) -> str:
        return self._raw(env_var) or default

    def name(self, env_var: str, default: str) -> str:
        if env_var in self._environ and self._raw(env_var) is None:
            raise ConfigError.empty_name(env_var)
        return self.text(env_var, default)

    def positive_int(self, env_var: str, default: int) -> int:
        raw = self._raw(env_var)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigError.not_an_integer(env_var, raw) from exc
        if value < 1:
            raise ConfigError.not_positive(env_var, value)
        return value

    def positive_float(self, env_var: str, default: float) -> float:
        raw = self._raw(env_var)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigError.not_a_number(env_var, raw) from exc
        if value <= 0:
            raise ConfigError.not_positive(env_var, value)
        return value

    def port(self, env_var: str, default: int) -> int:
        raw = self._raw(env_var)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigError.not_an_integer(env_var, raw) from exc
        if not (_MIN_PORT <= value <= _MAX_PORT):
            raise ConfigError.port_out_of_range(env_var, value)
        return value

    def boolean(self, env_var: str, *, default: bool) -> bool:
        raw = self._raw(env_var)
        if raw is None:
            return default
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigError.not_a_boolean(env_var, raw)


__all__ = ["AdapterConfig", "ConfigError"]
