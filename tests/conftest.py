from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from kubectl_rabbitmq.kubectl import Kubectl
from kubectl_rabbitmq.logs import LOGGER_NAME


class FakeKubectl(Kubectl):
    """Records kubectl invocations instead of spawning a process."""

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, ...], str]] = None,
        fail_on: Optional[Callable[[List[str]], bool]] = None,
        namespace: Optional[str] = None,
        calls: Optional[List[List[str]]] = None,
        applied: Optional[List[str]] = None,
    ) -> None:
        super().__init__("kubectl", namespace=namespace, env={})
        self.responses = responses or {}
        self.fail_on = fail_on
        self.calls: List[List[str]] = calls if calls is not None else []
        self.applied: List[str] = applied if applied is not None else []

    def with_namespace(self, namespace: Optional[str]) -> "FakeKubectl":
        return FakeKubectl(self.responses, self.fail_on, namespace=namespace, calls=self.calls, applied=self.applied)

    def run(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        capture_output: bool = False,
        redact: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        args = list(args)
        cmd = self.command(args)
        self.calls.append(cmd)
        if args[:2] == ["apply", "-f"] and Path(args[2]).is_file():
            self.applied.append(Path(args[2]).read_text(encoding="utf-8"))
        if self.fail_on is not None and self.fail_on(args):
            if check:
                raise subprocess.CalledProcessError(1, cmd, output="", stderr="Error from server (NotFound)")
            return subprocess.CompletedProcess(cmd, 1, "", "Error from server (NotFound)")
        return subprocess.CompletedProcess(cmd, 0, self.responses.get(tuple(args), ""), "")


@pytest.fixture
def fake_kubectl() -> FakeKubectl:
    return FakeKubectl()


@pytest.fixture
def make_kubectl() -> Callable[..., FakeKubectl]:
    return FakeKubectl


@pytest.fixture(autouse=True)
def reset_plugin_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
