"""Tests for fluentd_injector.mutator."""

import pytest

from conftest import annotations
from fluentd_injector.models import Pod, UnsupportedObject, parse_admission_object
from fluentd_injector.mutator import SkipReason, mutate
from fluentd_injector.resolver import MissingRequiredConfig
from fluentd_injector.sidecar import LOG_VOLUME_NAME, SIDECAR_NAME


def make_pod(pod_annotations=None, containers=None, volumes=None):
    return Pod.model_validate(
        {
            "metadata": {"name": "web", "annotations": pod_annotations},
            "spec": {
                "containers": containers if containers is not None else [
                    {"name": "a", "image": "app-a"},
                    {"name": "b", "image": "app-b", "volumeMounts": [{"name": "data", "mountPath": "/data"}]},
                ],
                "volumes": volumes or [],
            },
        }
    )


ENABLED = annotations(
    injection="enabled",
    aggregator_host="agg.example.com",
    application_log_dir="/var/log/app",
)


class TestMutateSkips:
    """Test cases where nothing is injected."""

    def test_non_pod_object(self, configured_defaults):
        candidate = parse_admission_object("Deployment", {"metadata": {"name": "web"}})

        result = mutate(candidate, configured_defaults)

        assert isinstance(candidate, UnsupportedObject)
        assert result.object is candidate
        assert result.mutated is False
        assert result.skip_reason == SkipReason.NOT_APPLICABLE
        assert result.stop is False

    @pytest.mark.parametrize(
        "pod_annotations",
        [
            None,
            {},
            annotations(injection="disabled"),
            annotations(injection="Enabled"),
            annotations(injection="true"),
            {"injection": "enabled"},
        ],
    )
    def test_injection_not_enabled(self, configured_defaults, pod_annotations):
        pod = make_pod(pod_annotations)
        before = pod.model_dump()

        result = mutate(pod, configured_defaults)

        assert result.object is pod
        assert result.mutated is False
        assert result.skip_reason == SkipReason.INJECTION_DISABLED
        assert result.stop is False
        assert pod.model_dump() == before


class TestMutateFailures:
    """Test cases for missing required configuration."""

    def test_missing_aggregator_host_leaves_pod_untouched(self, defaults):
        pod = make_pod(annotations(injection="enabled", application_log_dir="/var/log/app"))
        before = pod.model_dump()

        with pytest.raises(MissingRequiredConfig) as exc_info:
            mutate(pod, defaults)

        assert exc_info.value.field == "aggregator host"
        assert pod.model_dump() == before

    def test_missing_application_log_dir(self, defaults):
        pod = make_pod(annotations(injection="enabled", aggregator_host="agg.example.com"))
        before = pod.model_dump()

        with pytest.raises(MissingRequiredConfig) as exc_info:
            mutate(pod, defaults)

        assert exc_info.value.field == "application log dir"
        assert pod.model_dump() == before


class TestMutateInjects:
    """Test cases for sidecar injection."""

    def test_full_injection(self, defaults):
        pod = make_pod(ENABLED)

        result = mutate(pod, defaults)
        mutated = result.object

        assert result.mutated is True
        assert result.skip_reason is None
        assert result.stop is False

        containers = mutated.spec.containers
        assert [c.name for c in containers] == ["a", "b", SIDECAR_NAME]

        a, b, sidecar = containers
        assert a.image == "app-a"
        assert [(m.name, m.mount_path) for m in a.volume_mounts] == [(LOG_VOLUME_NAME, "/var/log/app")]
        assert [(m.name, m.mount_path) for m in b.volume_mounts] == [
            ("data", "/data"),
            (LOG_VOLUME_NAME, "/var/log/app"),
        ]

        assert [(e.name, e.value) for e in sidecar.env] == [
            ("SEND_TIMEOUT", "60s"),
            ("RECOVER_WAIT", "10s"),
            ("HARD_TIMEOUT", "120s"),
            ("AGGREGATOR_HOST", "agg.example.com"),
            ("AGGREGATOR_PORT", "24224"),
            ("APPLICATION_LOG_DIR", "/var/log/app"),
            ("TAG_PREFIX", "app"),
            ("TIME_KEY", "time"),
            ("TIME_FORMAT", "%Y-%m-%dT%H:%M:%S%z"),
        ]

        assert len(mutated.spec.volumes) == 1
        volume = mutated.spec.volumes[0]
        assert volume.name == LOG_VOLUME_NAME
        assert volume.empty_dir is not None

    def test_input_pod_is_not_modified(self, defaults):
        pod = make_pod(ENABLED)
        before = pod.model_dump()

        mutate(pod, defaults)

        assert pod.model_dump() == before

    def test_existing_volumes_kept_in_order(self, defaults):
        pod = make_pod(
            ENABLED,
            volumes=[{"name": "data", "emptyDir": {}}, {"name": "config", "configMap": {"name": "cfg"}}],
        )

        mutated = mutate(pod, defaults).object

        assert [v.name for v in mutated.spec.volumes] == ["data", "config", LOG_VOLUME_NAME]
        assert mutated.spec.volumes[1].to_dict() == {"name": "config", "configMap": {"name": "cfg"}}

    def test_other_container_fields_untouched(self, defaults):
        pod = make_pod(
            ENABLED,
            containers=[{"name": "a", "image": "app-a", "ports": [{"containerPort": 80}], "env": [{"name": "X", "value": "1"}]}],
        )

        a = mutate(pod, defaults).object.spec.containers[0]

        data = a.to_dict()
        assert data["ports"] == [{"containerPort": 80}]
        assert data["env"] == [{"name": "X", "value": "1"}]

    def test_empty_port_omitted_from_env(self, defaults):
        pod = make_pod({**ENABLED, **annotations(aggregator_port="")})

        sidecar = mutate(pod, defaults).object.spec.containers[-1]

        assert "AGGREGATOR_PORT" not in [e.name for e in sidecar.env]

    def test_reapplying_injects_again(self, defaults):
        pod = make_pod(ENABLED)

        once = mutate(pod, defaults).object
        twice = mutate(once, defaults)

        assert twice.mutated is True
        containers = twice.object.spec.containers
        assert [c.name for c in containers] == ["a", "b", SIDECAR_NAME, SIDECAR_NAME]
        assert [v.name for v in twice.object.spec.volumes] == [LOG_VOLUME_NAME, LOG_VOLUME_NAME]
        assert len(containers[0].volume_mounts) == 2
        assert len(containers[2].volume_mounts) == 2
