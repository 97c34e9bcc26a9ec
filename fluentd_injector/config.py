"""Process-wide injector configuration.

Defaults are read from the environment exactly once and frozen; every
admission request shares the same instance read-only.
"""

from functools import lru_cache
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .utils import get_env_or_default

ANNOTATION_PREFIX = "fluentd-sidecar-injector.h3poteto.dev"

DEFAULT_DOCKER_IMAGE = "h3poteto/fluentd-forward:latest"
DEFAULT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DEFAULT_TIME_KEY = "time"
DEFAULT_TAG_PREFIX = "app"
DEFAULT_AGGREGATOR_PORT = "24224"


class ProcessDefaults(BaseModel):
    """Sidecar defaults applied when a Pod does not override them."""

    model_config = ConfigDict(frozen=True)

    docker_image: str = DEFAULT_DOCKER_IMAGE
    application_log_dir: str = ""
    time_format: str = DEFAULT_TIME_FORMAT
    time_key: str = DEFAULT_TIME_KEY
    tag_prefix: str = DEFAULT_TAG_PREFIX
    aggregator_host: str = ""
    aggregator_port: str = DEFAULT_AGGREGATOR_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProcessDefaults":
        return cls(
            docker_image=get_env_or_default("DOCKER_IMAGE", DEFAULT_DOCKER_IMAGE, environ),
            application_log_dir=get_env_or_default("APPLICATION_LOG_DIR", "", environ),
            time_format=get_env_or_default("TIME_FORMAT", DEFAULT_TIME_FORMAT, environ),
            time_key=get_env_or_default("TIME_KEY", DEFAULT_TIME_KEY, environ),
            tag_prefix=get_env_or_default("TAG_PREFIX", DEFAULT_TAG_PREFIX, environ),
            aggregator_host=get_env_or_default("AGGREGATOR_HOST", "", environ),
            aggregator_port=get_env_or_default("AGGREGATOR_PORT", DEFAULT_AGGREGATOR_PORT, environ),
        )


@lru_cache(maxsize=1)
def get_process_defaults() -> ProcessDefaults:
    """Load the defaults on first use and return the same instance afterwards."""
    return ProcessDefaults.from_env()
