from __future__ import annotations

import os
import subprocess
from typing import Dict, List, Optional, Sequence

from kubectl_rabbitmq.logs import get_logger


class Kubectl:
    """Thin wrapper around the kubectl binary.

    Every call runs with ``check=True`` by default so a failing kubectl
    aborts the current command with ``subprocess.CalledProcessError``.
    """

    def __init__(self, binary: str = "kubectl", namespace: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> None:
        self.binary = binary
        self.namespace = namespace
        self.env = env if env is not None else os.environ.copy()
        self.logger = get_logger()

    def with_namespace(self, namespace: Optional[str]) -> "Kubectl":
        return Kubectl(self.binary, namespace=namespace, env=self.env)

    def command(self, args: Sequence[str]) -> List[str]:
        cmd = [self.binary]
        if self.namespace:
            cmd.extend(["-n", self.namespace])
        cmd.extend(args)
        return cmd

    def run(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        capture_output: bool = False,
        redact: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        cmd = self.command(args)
        shown = cmd[: len(cmd) - len(args) + 1] + ["<redacted>"] if redact else cmd
        self.logger.debug(f"[Kubectl] Running {' '.join(shown)}")
        try:
            return subprocess.run(
                cmd,
                check=check,
                text=True,
                capture_output=capture_output,
                env=self.env,
            )
        except subprocess.CalledProcessError as exc:
            # the failing command ends up in the error log
            exc.cmd = shown
            raise

    def output(self, args: Sequence[str]) -> str:
        return self.run(args, capture_output=True).stdout

    def apply_file(self, path: str) -> None:
        self.run(["apply", "-f", path])

    def apply_kustomize(self, directory: str) -> None:
        self.run(["apply", "--kustomize", directory])
