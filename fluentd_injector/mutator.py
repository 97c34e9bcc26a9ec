"""Sidecar injection decision and Pod rewriting.

The mutator never halts admission: it either returns the object untouched,
returns a mutated copy, or raises MissingRequiredConfig before anything has
been changed. Applying it twice injects a second volume and sidecar.
"""

from enum import Enum
from typing import NamedTuple, Optional

from .config import ProcessDefaults
from .models import AdmissionObject, EmptyDirVolumeSource, Pod, Volume
from .resolver import annotation_key, resolve_config
from .sidecar import LOG_VOLUME_NAME, build_sidecar

INJECTION_ANNOTATION = annotation_key("injection")
INJECTION_ENABLED = "enabled"


class SkipReason(str, Enum):
    NOT_APPLICABLE = "not-applicable"
    INJECTION_DISABLED = "injection-disabled"


class MutationResult(NamedTuple):
    object: AdmissionObject
    mutated: bool
    skip_reason: Optional[SkipReason] = None
    stop: bool = False


def injection_enabled(pod: Pod) -> bool:
    return pod.annotations.get(INJECTION_ANNOTATION) == INJECTION_ENABLED


def mutate(candidate: AdmissionObject, defaults: ProcessDefaults) -> MutationResult:
    if not isinstance(candidate, Pod):
        return MutationResult(candidate, mutated=False, skip_reason=SkipReason.NOT_APPLICABLE)

    if not injection_enabled(candidate):
        return MutationResult(candidate, mutated=False, skip_reason=SkipReason.INJECTION_DISABLED)

    return MutationResult(inject_sidecar(candidate, defaults), mutated=True)


def inject_sidecar(pod: Pod, defaults: ProcessDefaults) -> Pod:
    """Return a copy of the Pod with the log volume, mounts and sidecar added."""
    config = resolve_config(defaults, pod.annotations)
    sidecar = build_sidecar(config)
    log_mount = sidecar.volume_mounts[0]

    volumes = list(pod.spec.volumes)
    volumes.append(Volume(name=LOG_VOLUME_NAME, empty_dir=EmptyDirVolumeSource()))

    containers = []
    for container in pod.spec.containers:
        mounts = [*container.volume_mounts, log_mount.model_copy()]
        containers.append(container.model_copy(update={"volume_mounts": mounts}))
    containers.append(sidecar)

    spec = pod.spec.model_copy(update={"containers": containers, "volumes": volumes})
    return pod.model_copy(update={"spec": spec})
