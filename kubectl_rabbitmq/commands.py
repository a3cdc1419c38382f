"""Handlers for each plugin verb.

Handlers receive the already-validated argument list and let kubectl
failures propagate to the entry point.
"""

from __future__ import annotations

import threading
import webbrowser
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from kubectl_rabbitmq import manifest, resolver
from kubectl_rabbitmq.config import MANAGEMENT_PORT, Settings
from kubectl_rabbitmq.installer import OperatorInstaller
from kubectl_rabbitmq.kubectl import Kubectl
from kubectl_rabbitmq.logs import get_logger

PERF_TEST_NAME = "perf-test"
PERF_TEST_LABELS = "app=perf-test,run=perf-test"
MANAGEMENT_URL = f"http://localhost:{MANAGEMENT_PORT}/"


@dataclass
class Context:
    settings: Settings
    kubectl: Kubectl


def install_cluster_operator(ctx: Context, args: List[str]) -> None:
    image: Optional[str] = args[0] if args else None
    with OperatorInstaller(ctx.settings, ctx.kubectl, image=image) as installer:
        installer.execute()


def list_clusters(ctx: Context, args: List[str]) -> None:
    ctx.kubectl.run(["get", "rabbitmqclusters"])


def delete(ctx: Context, args: List[str]) -> None:
    for instance in args:
        ctx.kubectl.run(["delete", "rabbitmqcluster", instance])


def create(ctx: Context, args: List[str]) -> None:
    instance, options = args[0], args[1:]
    document = manifest.build_manifest(instance, options)
    manifest.submit_manifest(ctx.kubectl, document)


def get(ctx: Context, args: List[str]) -> None:
    ctx.kubectl.run(["get", "all", "-l", resolver.instance_selector(args[0])])


def debug(ctx: Context, args: List[str]) -> None:
    selector = resolver.instance_selector(args[0])
    pods = ctx.kubectl.output(["get", "pods", "-l", selector, "-o", "jsonpath={.items[*].metadata.name}"]).split()
    if not pods:
        get_logger().warning(f"[Debug] No pods found selector={selector}")
    for pod in pods:
        print(f"Pod: {pod}", flush=True)
        ctx.kubectl.run(["exec", pod, "--", "rabbitmqctl", "set_log_level", "debug"])


def observe(ctx: Context, args: List[str]) -> None:
    pod = resolver.server_pod_name(args[0], args[1])
    ctx.kubectl.run(["exec", "-it", pod, "--", "rabbitmq-diagnostics", "observer"])


def secrets(ctx: Context, args: List[str]) -> None:
    details = resolver.resolve(ctx.kubectl, args[0])
    print(f"username: {details.username}")
    print(f"password: {details.password}")


def manage(ctx: Context, args: List[str]) -> None:
    details = resolver.resolve(ctx.kubectl, args[0])
    # Not joined or cancelled: if the port-forward ends first the browser may never open.
    opener = threading.Timer(ctx.settings.browser_delay, webbrowser.open, args=(MANAGEMENT_URL,))
    opener.daemon = True
    opener.start()
    get_logger().info(f"[Manage] Forwarding service={details.service} port={MANAGEMENT_PORT} url={MANAGEMENT_URL}")
    ctx.kubectl.run(["port-forward", f"service/{details.service}", str(MANAGEMENT_PORT)])


def perf_test(ctx: Context, args: List[str]) -> None:
    instance, passthrough = args[0], args[1:]
    details = resolver.resolve(ctx.kubectl, instance)
    ctx.kubectl.run(
        [
            "run",
            PERF_TEST_NAME,
            f"--image={ctx.settings.perf_test_image}",
            f"--labels={PERF_TEST_LABELS}",
            "--",
            "--uri",
            amqp_uri(details),
            *passthrough,
        ],
        redact=True,
    )
    get_logger().info(f"[PerfTest] Started pod={PERF_TEST_NAME} follow-with='kubectl logs -f {PERF_TEST_NAME}'")


def amqp_uri(details: resolver.InstanceDetails) -> str:
    return f"amqp://{quote(details.username, safe='')}:{quote(details.password, safe='')}@{details.service}"
