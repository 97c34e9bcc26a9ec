"""Fluentd sidecar container construction."""

from typing import List

from .models import Container, EnvVar, ResourceRequirements, VolumeMount
from .resolver import EffectiveConfig

SIDECAR_NAME = "fluentd-sidecar"
LOG_VOLUME_NAME = "fluentd-sidecar-injector-logs"

# 200Mi memory + 100m CPU requested, memory capped at 1000Mi, no CPU limit
SIDECAR_REQUESTS = {"memory": "200Mi", "cpu": "100m"}
SIDECAR_LIMITS = {"memory": "1000Mi"}


def build_log_volume_mount(config: EffectiveConfig) -> VolumeMount:
    return VolumeMount(name=LOG_VOLUME_NAME, mount_path=config.application_log_dir, read_only=False)


def build_sidecar_env(config: EffectiveConfig) -> List[EnvVar]:
    """Sidecar environment in its fixed order.

    The timeouts, host and log dir are always present; port, tag prefix,
    time key and time format are left out when empty.
    """
    env = [
        EnvVar(name="SEND_TIMEOUT", value=config.send_timeout),
        EnvVar(name="RECOVER_WAIT", value=config.recover_wait),
        EnvVar(name="HARD_TIMEOUT", value=config.hard_timeout),
        EnvVar(name="AGGREGATOR_HOST", value=config.aggregator_host),
    ]
    if config.aggregator_port:
        env.append(EnvVar(name="AGGREGATOR_PORT", value=config.aggregator_port))
    env.append(EnvVar(name="APPLICATION_LOG_DIR", value=config.application_log_dir))
    if config.tag_prefix:
        env.append(EnvVar(name="TAG_PREFIX", value=config.tag_prefix))
    if config.time_key:
        env.append(EnvVar(name="TIME_KEY", value=config.time_key))
    if config.time_format:
        env.append(EnvVar(name="TIME_FORMAT", value=config.time_format))
    return env


def build_sidecar(config: EffectiveConfig) -> Container:
    """Build the fluentd sidecar container for an effective configuration."""
    return Container(
        name=SIDECAR_NAME,
        image=config.docker_image,
        resources=ResourceRequirements(
            requests=dict(SIDECAR_REQUESTS),
            limits=dict(SIDECAR_LIMITS),
        ),
        env=build_sidecar_env(config),
        volume_mounts=[build_log_volume_mount(config)],
    )
