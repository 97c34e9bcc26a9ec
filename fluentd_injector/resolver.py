"""Merge process defaults with per-Pod annotations."""

from typing import Mapping

from pydantic import BaseModel, ConfigDict

from .config import ANNOTATION_PREFIX, ProcessDefaults

DEFAULT_SEND_TIMEOUT = "60s"
DEFAULT_RECOVER_WAIT = "10s"
DEFAULT_HARD_TIMEOUT = "120s"


class InjectorError(Exception):
    """Base class for errors raised while building a mutation."""


class MissingRequiredConfig(InjectorError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required")


class EffectiveConfig(BaseModel):
    """Sidecar configuration for a single Pod."""

    model_config = ConfigDict(frozen=True)

    docker_image: str
    application_log_dir: str
    time_format: str
    time_key: str
    tag_prefix: str
    aggregator_host: str
    aggregator_port: str
    send_timeout: str
    recover_wait: str
    hard_timeout: str


def annotation_key(name: str) -> str:
    return f"{ANNOTATION_PREFIX}/{name}"


def resolve_annotation(key: str, annotations: Mapping[str, str], fallback: str) -> str:
    """Return the annotation value when the key is present, even if empty."""
    if key in annotations:
        return annotations[key]
    return fallback


def resolve_config(defaults: ProcessDefaults, annotations: Mapping[str, str]) -> EffectiveConfig:
    """Build the effective configuration for a Pod.

    Annotations take precedence over process defaults. Raises
    MissingRequiredConfig when the aggregator host or the application log
    directory resolves to an empty value, checked in that order.
    """

    def resolve(name: str, fallback: str) -> str:
        return resolve_annotation(annotation_key(name), annotations, fallback)

    aggregator_host = resolve("aggregator-host", defaults.aggregator_host)
    if not aggregator_host:
        raise MissingRequiredConfig("aggregator host")

    application_log_dir = resolve("application-log-dir", defaults.application_log_dir)
    if not application_log_dir:
        raise MissingRequiredConfig("application log dir")

    return EffectiveConfig(
        docker_image=resolve("docker-image", defaults.docker_image),
        application_log_dir=application_log_dir,
        time_format=resolve("time-format", defaults.time_format),
        time_key=resolve("time-key", defaults.time_key),
        tag_prefix=resolve("tag-prefix", defaults.tag_prefix),
        aggregator_host=aggregator_host,
        aggregator_port=resolve("aggregator-port", defaults.aggregator_port),
        send_timeout=resolve("send-timeout", DEFAULT_SEND_TIMEOUT),
        recover_wait=resolve("recover-wait", DEFAULT_RECOVER_WAIT),
        hard_timeout=resolve("hard-timeout", DEFAULT_HARD_TIMEOUT),
    )
