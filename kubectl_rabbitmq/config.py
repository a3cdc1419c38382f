from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from kubectl_rabbitmq.errors import ConfigError

DEFAULT_OPERATOR_REPO = "https://github.com/rabbitmq/cluster-operator.git"
DEFAULT_PERF_TEST_IMAGE = "pivotalrabbitmq/perf-test"
DEFAULT_BROWSER_DELAY = 2.0
MANAGEMENT_PORT = 15672


@dataclass(frozen=True)
class Settings:
    kubectl: str = "kubectl"
    namespace: Optional[str] = None
    operator_repo: str = DEFAULT_OPERATOR_REPO
    operator_ref: Optional[str] = None
    perf_test_image: str = DEFAULT_PERF_TEST_IMAGE
    browser_delay: float = DEFAULT_BROWSER_DELAY

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            kubectl=env.get("KUBECTL_RABBITMQ_KUBECTL") or "kubectl",
            namespace=env.get("KUBECTL_RABBITMQ_NAMESPACE") or None,
            operator_repo=env.get("KUBECTL_RABBITMQ_OPERATOR_REPO") or DEFAULT_OPERATOR_REPO,
            operator_ref=env.get("KUBECTL_RABBITMQ_OPERATOR_REF") or None,
            perf_test_image=env.get("KUBECTL_RABBITMQ_PERF_TEST_IMAGE") or DEFAULT_PERF_TEST_IMAGE,
            browser_delay=_parse_delay(env.get("KUBECTL_RABBITMQ_BROWSER_DELAY")),
        )

    def with_namespace(self, namespace: Optional[str]) -> "Settings":
        if not namespace:
            return self
        return replace(self, namespace=namespace)


def _parse_delay(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_BROWSER_DELAY
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"[Config] KUBECTL_RABBITMQ_BROWSER_DELAY must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"[Config] KUBECTL_RABBITMQ_BROWSER_DELAY must not be negative, got {raw!r}")
    return value
