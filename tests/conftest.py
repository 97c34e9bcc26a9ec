"""Shared pytest fixtures and configuration."""

import pytest
from fastapi.testclient import TestClient

from fluentd_injector.config import ANNOTATION_PREFIX, ProcessDefaults, get_process_defaults
from fluentd_injector.main import app


def annotations(**values):
    """Prefix-qualify annotation names, turning underscores into dashes."""
    return {f"{ANNOTATION_PREFIX}/{name.replace('_', '-')}": value for name, value in values.items()}


@pytest.fixture
def defaults():
    """Process defaults as loaded from an environment with nothing set."""
    return ProcessDefaults.from_env({})


@pytest.fixture
def configured_defaults():
    """Process defaults with the required fields set."""
    return ProcessDefaults.from_env(
        {
            "AGGREGATOR_HOST": "fluentd.logging.svc",
            "APPLICATION_LOG_DIR": "/var/log/default",
        }
    )


@pytest.fixture
def pod_dict():
    """A Pod with two containers, one existing volume and mount."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": "web",
            "namespace": "default",
            "annotations": annotations(injection="enabled"),
        },
        "spec": {
            "containers": [
                {
                    "name": "app",
                    "image": "nginx:1.25",
                    "ports": [{"containerPort": 80}],
                    "volumeMounts": [{"name": "config", "mountPath": "/etc/app"}],
                },
                {"name": "worker", "image": "busybox"},
            ],
            "volumes": [{"name": "config", "configMap": {"name": "app-config"}}],
        },
    }


@pytest.fixture
def admission_review(pod_dict):
    """AdmissionReview request wrapping the Pod fixture."""
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
            "kind": {"group": "", "version": "v1", "kind": "Pod"},
            "namespace": "default",
            "operation": "CREATE",
            "object": pod_dict,
        },
    }


@pytest.fixture
def client(configured_defaults):
    """Test client with the process defaults dependency overridden."""
    app.dependency_overrides[get_process_defaults] = lambda: configured_defaults
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
