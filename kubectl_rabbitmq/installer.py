"""Install the RabbitMQ Cluster Operator from its git repository."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kubectl_rabbitmq.config import Settings
from kubectl_rabbitmq.errors import InstallError, PrerequisiteMissing
from kubectl_rabbitmq.kubectl import Kubectl
from kubectl_rabbitmq.logs import get_logger

DEFAULT_OPERATOR_NAMESPACE = "rabbitmq-system"

NAMESPACE_MANIFEST = Path("config/namespace/base/namespace.yaml")
CRD_MANIFEST = Path("config/crd/bases/rabbitmq.com_rabbitmqclusters.yaml")
RBAC_DIR = Path("config/rbac")
MANAGER_DIR = Path("config/manager")
MANAGER_MANIFEST = MANAGER_DIR / "manager.yaml"


class OperatorInstaller:
    def __init__(self, settings: Settings, kubectl: Kubectl, image: Optional[str] = None) -> None:
        self.settings = settings
        self.kubectl = kubectl
        self.image = image
        self.logger = get_logger()
        self._temp_dir = tempfile.TemporaryDirectory(prefix="kubectl-rabbitmq-install-")
        self.source_dir = Path(self._temp_dir.name) / "cluster-operator"

    def __enter__(self) -> "OperatorInstaller":
        return self

    def __exit__(self, exc_type, exc, traceback) -> bool:
        self.cleanup()
        return False

    def cleanup(self) -> None:
        self._temp_dir.cleanup()

    # --------------------------------------------------------- Execution flow
    def execute(self) -> None:
        self.ensure_command("git")
        self.ensure_command(self.kubectl.binary)
        self.fetch_source()
        if self.image:
            self.patch_manager_image(self.image)
        namespace = self.load_operator_namespace()
        self.kubectl.with_namespace(None).apply_file(str(self.source_path(NAMESPACE_MANIFEST)))
        self.kubectl.with_namespace(None).apply_file(str(self.source_path(CRD_MANIFEST)))
        scoped = self.kubectl.with_namespace(namespace)
        self.logger.info(f"[Install] Applying RBAC namespace={namespace}")
        scoped.apply_kustomize(str(self.source_path(RBAC_DIR)))
        self.logger.info(f"[Install] Applying controller namespace={namespace}")
        scoped.apply_kustomize(str(self.source_path(MANAGER_DIR)))
        self.logger.info(f"[Install] Complete namespace={namespace}")

    # ------------------------------------------------------------- Source
    def fetch_source(self) -> None:
        cmd = ["git", "clone", "--depth", "1"]
        if self.settings.operator_ref:
            cmd.extend(["--branch", self.settings.operator_ref])
        cmd.extend([self.settings.operator_repo, str(self.source_dir)])
        self.logger.info(f"[Install] Fetching operator repo={self.settings.operator_repo} ref={self.settings.operator_ref or 'default'}")
        self.run(cmd, capture_output=True)

    def source_path(self, relative: Path) -> Path:
        path = self.source_dir / relative
        if not path.exists():
            raise InstallError(f"[Install] Expected {relative} in {self.settings.operator_repo}")
        return path

    def patch_manager_image(self, image: str) -> None:
        manager_path = self.source_path(MANAGER_MANIFEST)
        with manager_path.open("r", encoding="utf-8") as handle:
            documents: List[Any] = list(yaml.safe_load_all(handle))

        patched = 0
        for document in documents:
            if not isinstance(document, dict) or document.get("kind") != "Deployment":
                continue
            containers = (((document.get("spec") or {}).get("template") or {}).get("spec") or {}).get("containers") or []
            for container in containers:
                container["image"] = image
                patched += 1

        if not patched:
            raise InstallError(f"[Install] No Deployment containers found in {MANAGER_MANIFEST}")

        with manager_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump_all(documents, handle, sort_keys=False)
        self.logger.info(f"[Install] Using operator image={image}")

    def load_operator_namespace(self) -> str:
        with self.source_path(NAMESPACE_MANIFEST).open("r", encoding="utf-8") as handle:
            data: Dict[str, Any] = yaml.safe_load(handle) or {}
        metadata = data.get("metadata") or {}
        return str(metadata.get("name") or DEFAULT_OPERATOR_NAMESPACE)

    # --------------------------------------------------------------- Helpers
    def ensure_command(self, name: str) -> None:
        if shutil.which(name) is None:
            raise PrerequisiteMissing(f"[Deps] {name} is required but not found in PATH")

    def run(self, cmd: List[str], *, check: bool = True, capture_output: bool = False) -> subprocess.CompletedProcess[str]:
        self.logger.debug(f"[Install] Running {' '.join(cmd)}")
        return subprocess.run(cmd, check=check, text=True, capture_output=capture_output)
