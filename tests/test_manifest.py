import logging
from pathlib import Path

import pytest
import yaml

from kubectl_rabbitmq import manifest
from kubectl_rabbitmq.errors import MissingOptionValue, UsageError

DEFAULT_DEMO = """\
apiVersion: rabbitmq.com/v1beta1
kind: RabbitmqCluster
metadata:
  name: demo
spec:
  replicas: 1
"""


def test_create_without_options_defaults_to_one_replica():
    document = manifest.build_manifest("demo", [])

    assert document == {
        "apiVersion": "rabbitmq.com/v1beta1",
        "kind": "RabbitmqCluster",
        "metadata": {"name": "demo"},
        "spec": {"replicas": 1},
    }
    assert manifest.render_manifest(document) == DEFAULT_DEMO


def test_header_order_is_fixed():
    document = manifest.build_manifest("demo", ["--image", "rabbitmq:3.8"])

    assert list(document) == ["apiVersion", "kind", "metadata", "spec"]


@pytest.mark.parametrize("value", ["3", "5", "abc"])
def test_replicas_value_is_kept_verbatim(value):
    document = manifest.build_manifest("demo", ["--replicas", value])

    assert document["spec"] == {"replicas": value}
    assert f"  replicas: {value}\n" in manifest.render_manifest(document)


def test_numeric_replicas_render_as_integer():
    rendered = manifest.render_manifest(manifest.build_manifest("demo", ["--replicas", "3"]))

    assert yaml.safe_load(rendered)["spec"]["replicas"] == 3


def test_service_and_unlimited_omit_default_replicas():
    document = manifest.build_manifest("demo", ["--service", "LoadBalancer", "--unlimited"])

    assert document["spec"] == {
        "service": {"type": "LoadBalancer"},
        "resources": {"requests": {}, "limits": {}},
    }
    loaded = yaml.safe_load(manifest.render_manifest(document))
    assert "replicas" not in loaded["spec"]
    assert loaded["spec"]["resources"] == {"requests": {}, "limits": {}}


def test_all_options():
    document = manifest.build_manifest(
        "demo",
        [
            "--replicas",
            "3",
            "--image",
            "rabbitmq:3.8.9",
            "--image-pull-secret",
            "registry-creds",
            "--tls-secret",
            "demo-tls",
            "--service",
            "NodePort",
        ],
    )

    assert yaml.safe_load(manifest.render_manifest(document))["spec"] == {
        "replicas": 3,
        "image": "rabbitmq:3.8.9",
        "imagePullSecret": "registry-creds",
        "tls": {"secretName": "demo-tls"},
        "service": {"type": "NodePort"},
    }


def test_unrecognized_option_warns_and_continues(caplog):
    with caplog.at_level(logging.WARNING, logger="kubectl_rabbitmq"):
        document = manifest.build_manifest("foo", ["--bogus"])

    assert document["metadata"] == {"name": "foo"}
    assert document["spec"] == {"replicas": 1}
    assert any("--bogus" in record.getMessage() for record in caplog.records)


def test_unrecognized_option_between_known_options(caplog):
    with caplog.at_level(logging.WARNING, logger="kubectl_rabbitmq"):
        document = manifest.build_manifest("foo", ["--replicas", "2", "--persistence", "--image", "rabbitmq"])

    assert document["spec"] == {"replicas": "2", "image": "rabbitmq"}
    assert [record.getMessage() for record in caplog.records] == ["[Create] Ignoring unrecognized option=--persistence"]


@pytest.mark.parametrize("option", ["--replicas", "--service", "--image", "--image-pull-secret", "--tls-secret"])
def test_option_without_value_is_rejected(option):
    with pytest.raises(MissingOptionValue) as excinfo:
        manifest.build_manifest("demo", ["--unlimited", option])

    assert excinfo.value.option == option


def test_empty_instance_name_is_rejected():
    with pytest.raises(UsageError):
        manifest.build_manifest("", [])


def test_submit_applies_rendered_manifest_once(fake_kubectl):
    document = manifest.build_manifest("demo", [])

    manifest.submit_manifest(fake_kubectl, document)

    assert len(fake_kubectl.calls) == 1
    assert fake_kubectl.calls[0][:3] == ["kubectl", "apply", "-f"]
    assert fake_kubectl.calls[0][3].endswith("demo.yaml")
    assert fake_kubectl.applied == [DEFAULT_DEMO]


def test_submit_removes_temporary_manifest(fake_kubectl):
    manifest.submit_manifest(fake_kubectl, manifest.build_manifest("demo", []))

    assert not Path(fake_kubectl.calls[0][3]).exists()
    assert not Path(fake_kubectl.calls[0][3]).parent.exists()
