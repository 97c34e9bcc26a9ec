"""AdmissionReview handling and JSON Patch encoding."""

import base64
import json
import logging
from typing import Dict, List, Any, Optional

from pydantic import ValidationError

from .config import ProcessDefaults
from .models import K8sModel, Pod, parse_admission_object
from .mutator import SkipReason, mutate
from .resolver import InjectorError

logger = logging.getLogger("webhook")


class InvalidAdmissionReview(ValueError):
    """The request body is not a usable AdmissionReview."""


def process_admission_request(request: Dict[str, Any], defaults: ProcessDefaults) -> Dict[str, Any]:
    """Handle an AdmissionReview and build the AdmissionReview response."""
    review = request.get("request") if isinstance(request, dict) else None
    if not isinstance(review, dict) or "uid" not in review:
        raise InvalidAdmissionReview("AdmissionReview has no request uid")
    if not isinstance(review.get("kind"), dict):
        raise InvalidAdmissionReview("AdmissionReview request kind is not an object")
    if not isinstance(review.get("object"), (dict, type(None))):
        raise InvalidAdmissionReview("AdmissionReview request object is not an object")

    uid = review["uid"]
    kind = review["kind"].get("kind", "")

    try:
        candidate = parse_admission_object(kind, review.get("object"))
    except ValidationError as e:
        logger.error(f"Could not decode {kind} object: {e}")
        return create_admission_response(uid, allowed=False, message=f"invalid {kind} object", code=400)

    try:
        result = mutate(candidate, defaults)
    except InjectorError as e:
        logger.error(f"Failed to inject fluentd sidecar: {e}")
        return create_admission_response(uid, allowed=False, message=str(e), code=400)

    if result.skip_reason == SkipReason.NOT_APPLICABLE:
        logger.info(f"Skipping non-Pod resource: {kind}/{candidate.display_name}")
        return create_admission_response(uid, allowed=True)

    if result.skip_reason == SkipReason.INJECTION_DISABLED:
        logger.info(f"Skipping Pod {candidate.display_name}: injection not enabled")
        return create_admission_response(uid, allowed=True)

    patch = create_fluentd_patch(candidate, result.object)
    encoded_patch = base64.b64encode(json.dumps(patch).encode()).decode()

    logger.info(f"Injecting fluentd sidecar into Pod {candidate.display_name}")

    return create_admission_response(uid, allowed=True, patch=encoded_patch)


def _append_ops(path: str, existing: List[Any], added: List[K8sModel]) -> List[Dict[str, Any]]:
    """JSON Patch ops appending `added` to the list at `path`.

    An empty or absent list is created in a single op with all new items.
    """
    if not added:
        return []
    if not existing:
        return [{"op": "add", "path": path, "value": [item.to_dict() for item in added]}]
    return [{"op": "add", "path": f"{path}/-", "value": item.to_dict()} for item in added]


def create_fluentd_patch(original: Pod, mutated: Pod) -> List[Dict[str, Any]]:
    """Create the JSON Patch that turns `original` into `mutated`.

    The mutation only ever appends, so the patch is a sequence of adds for
    the new volumes, the new mounts of each existing container and the new
    containers.
    """
    patch = []

    volumes = original.spec.volumes
    patch.extend(_append_ops("/spec/volumes", volumes, mutated.spec.volumes[len(volumes):]))

    containers = original.spec.containers
    for i, container in enumerate(containers):
        mounts = container.volume_mounts
        added = mutated.spec.containers[i].volume_mounts[len(mounts):]
        patch.extend(_append_ops(f"/spec/containers/{i}/volumeMounts", mounts, added))

    patch.extend(_append_ops("/spec/containers", containers, mutated.spec.containers[len(containers):]))

    return patch


def create_admission_response(
    uid: str,
    allowed: bool,
    patch: Optional[str] = None,
    message: Optional[str] = None,
    code: Optional[int] = None,
) -> Dict[str, Any]:
    """Create an AdmissionReview response."""
    response = {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "response": {
            "uid": uid,
            "allowed": allowed
        }
    }

    if patch:
        response["response"]["patchType"] = "JSONPatch"
        response["response"]["patch"] = patch

    if message:
        status = {"message": message}
        if code is not None:
            status["code"] = code
        response["response"]["status"] = status

    return response
