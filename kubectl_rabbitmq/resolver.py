"""Naming conventions and credential lookup for RabbitmqCluster instances."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass

from kubectl_rabbitmq.errors import SecretFieldMissing
from kubectl_rabbitmq.kubectl import Kubectl

NAME_LABEL = "app.kubernetes.io/name"


@dataclass(frozen=True)
class InstanceDetails:
    username: str
    password: str
    service: str

    def __repr__(self) -> str:
        return f"InstanceDetails(username={self.username!r}, password='***', service={self.service!r})"


def admin_secret_name(instance: str) -> str:
    return f"{instance}-rabbitmq-admin"


def client_service_name(instance: str) -> str:
    return f"{instance}-rabbitmq-client"


def server_pod_name(instance: str, index: str) -> str:
    return f"{instance}-rabbitmq-server-{index}"


def instance_selector(instance: str) -> str:
    return f"{NAME_LABEL}={instance}"


def resolve(kubectl: Kubectl, instance: str) -> InstanceDetails:
    """Look up the admin credentials and client service of ``instance``.

    A missing secret surfaces as the ``CalledProcessError`` from kubectl.
    """
    secret_name = admin_secret_name(instance)
    secret = json.loads(kubectl.output(["get", "secret", secret_name, "-o", "json"]))
    data = secret.get("data") or {}
    return InstanceDetails(
        username=_decode_field(data, secret_name, "username"),
        password=_decode_field(data, secret_name, "password"),
        service=client_service_name(instance),
    )


def _decode_field(data: dict, secret_name: str, field: str) -> str:
    value = data.get(field)
    if not value:
        raise SecretFieldMissing(secret_name, field)
    return base64.b64decode(value).decode("utf-8")
