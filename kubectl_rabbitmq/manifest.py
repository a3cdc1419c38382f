"""Translate ``create`` options into a RabbitmqCluster manifest."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import yaml

from kubectl_rabbitmq.errors import MissingOptionValue, UsageError
from kubectl_rabbitmq.kubectl import Kubectl
from kubectl_rabbitmq.logs import get_logger

API_VERSION = "rabbitmq.com/v1beta1"
KIND = "RabbitmqCluster"
DEFAULT_REPLICAS = 1

ManifestDocument = Dict[str, Any]


class Verbatim(str):
    """A value that must reach the YAML output exactly as typed."""


# option -> (path under spec, value when the option takes no argument)
OPTIONS: Dict[str, Tuple[Tuple[str, ...], Optional[Any]]] = {
    "--replicas": (("replicas",), None),
    "--service": (("service", "type"), None),
    "--image": (("image",), None),
    "--image-pull-secret": (("imagePullSecret",), None),
    "--unlimited": (("resources",), {"requests": {}, "limits": {}}),
    "--tls-secret": (("tls", "secretName"), None),
}


class ManifestDumper(yaml.SafeDumper):
    pass


def _represent_verbatim(dumper: ManifestDumper, data: Verbatim) -> yaml.ScalarNode:
    # Tag the scalar with whatever its text resolves to so it is emitted unquoted.
    value = str(data)
    tag = dumper.resolve(yaml.ScalarNode, value, (True, False))
    return dumper.represent_scalar(tag, value)


ManifestDumper.add_representer(Verbatim, _represent_verbatim)


def build_manifest(instance: str, options: Sequence[str]) -> ManifestDocument:
    if not instance:
        raise UsageError("Instance name must not be empty")

    spec: Dict[str, Any] = {}
    document: ManifestDocument = {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": {"name": instance},
        "spec": spec,
    }

    logger = get_logger()
    tokens = list(options)
    recognized = False
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if token not in OPTIONS:
            logger.warning(f"[Create] Ignoring unrecognized option={token}")
            continue

        recognized = True
        path, flag_value = OPTIONS[token]
        if flag_value is None:
            if index >= len(tokens):
                raise MissingOptionValue(token)
            value: Any = tokens[index]
            index += 1
            if token == "--replicas":
                value = Verbatim(value)
        else:
            value = {key: dict(inner) for key, inner in flag_value.items()}
        _set_path(spec, path, value)

    if not recognized:
        spec["replicas"] = DEFAULT_REPLICAS
    return document


def _set_path(target: Dict[str, Any], path: Tuple[str, ...], value: Any) -> None:
    for key in path[:-1]:
        target = target.setdefault(key, {})
    target[path[-1]] = value


def render_manifest(document: ManifestDocument) -> str:
    return yaml.dump(document, Dumper=ManifestDumper, sort_keys=False, default_flow_style=False)


def submit_manifest(kubectl: Kubectl, document: ManifestDocument) -> None:
    """Write ``document`` into a private temporary directory and apply it."""
    name = document["metadata"]["name"]
    logger = get_logger()
    with tempfile.TemporaryDirectory(prefix="kubectl-rabbitmq-") as temp_dir:
        manifest_path = Path(temp_dir) / f"{name}.yaml"
        manifest_path.write_text(render_manifest(document), encoding="utf-8")
        logger.debug(f"[Create] Wrote manifest path={manifest_path}")
        kubectl.apply_file(str(manifest_path))
    logger.info(f"[Create] Submitted {KIND} name={name}")
