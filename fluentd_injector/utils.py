"""Environment lookup and admission request logging helpers."""

import os
import logging
from typing import Dict, Any, Mapping, Optional

logger = logging.getLogger("webhook")

ENV_PREFIX = "FLUENTD"


def get_env_or_default(key: str, default: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Read `FLUENTD_<key>` or `<key>` from the environment, else return the default."""
    if environ is None:
        environ = os.environ
    prefixed = f"{ENV_PREFIX}_{key}"
    if prefixed in environ:
        return environ[prefixed]
    return environ.get(key, default)


def log_admission_request(request: Dict[str, Any]) -> None:
    """Log the kind, name and namespace of an admission request."""
    try:
        kind = request["request"]["kind"]["kind"]
        namespace = request["request"].get("namespace", "unknown")
        metadata = request["request"]["object"].get("metadata") or {}
        name = metadata.get("name") or metadata.get("generateName", "unknown")
        operation = request["request"]["operation"]

        logger.info(f"Processing {operation} request for {kind}/{name} in namespace {namespace}")
    except (KeyError, TypeError, AttributeError) as e:
        logger.warning(f"Could not log request details: {e}")
