"""Pydantic models for the parts of the Kubernetes API the injector touches.

Only the fields the injector reads or writes are declared. Everything else
in the incoming object is kept as extra data so nothing is lost between
decoding a Pod and encoding the patch.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class K8sModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with Kubernetes field names, leaving out unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EnvVar(K8sModel):
    name: str
    value: Optional[str] = None


class VolumeMount(K8sModel):
    name: str
    mount_path: str = Field(alias="mountPath")
    read_only: Optional[bool] = Field(None, alias="readOnly")


class ResourceRequirements(K8sModel):
    requests: Optional[Dict[str, Any]] = None
    limits: Optional[Dict[str, Any]] = None


class Container(K8sModel):
    name: str
    image: Optional[str] = None
    resources: Optional[ResourceRequirements] = None
    env: List[EnvVar] = Field(default_factory=list)
    volume_mounts: List[VolumeMount] = Field(default_factory=list, alias="volumeMounts")

    @field_validator("env", "volume_mounts", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class EmptyDirVolumeSource(K8sModel):
    medium: Optional[str] = None
    size_limit: Optional[str] = Field(None, alias="sizeLimit")


class Volume(K8sModel):
    name: str
    empty_dir: Optional[EmptyDirVolumeSource] = Field(None, alias="emptyDir")


class ObjectMeta(K8sModel):
    name: Optional[str] = None
    namespace: Optional[str] = None
    annotations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("annotations", mode="before")
    @classmethod
    def normalize_annotations(cls, value: Any) -> Any:
        return {} if value is None else value


class PodSpec(K8sModel):
    containers: List[Container] = Field(default_factory=list)
    volumes: List[Volume] = Field(default_factory=list)

    @field_validator("containers", "volumes", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class Pod(K8sModel):
    api_version: str = Field("v1", alias="apiVersion")
    kind: Literal["Pod"] = "Pod"
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)

    @property
    def annotations(self) -> Dict[str, str]:
        return self.metadata.annotations

    @property
    def display_name(self) -> str:
        return self.metadata.name or "unknown"


class UnsupportedObject(BaseModel):
    """Any admission object the injector does not mutate."""

    kind: str
    body: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        metadata = self.body.get("metadata") or {}
        return metadata.get("name") or "unknown"


AdmissionObject = Union[Pod, UnsupportedObject]


def parse_admission_object(kind: str, obj: Optional[Dict[str, Any]]) -> AdmissionObject:
    """Decode a raw admission object into one of the known variants.

    Raises pydantic.ValidationError when a Pod body cannot be decoded.
    """
    obj = obj or {}
    if kind == "Pod":
        return Pod.model_validate(obj)
    return UnsupportedObject(kind=kind or "unknown", body=obj)
