from __future__ import annotations

import argparse
import enum
import re
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, NoReturn, Optional

from kubectl_rabbitmq import commands
from kubectl_rabbitmq.config import Settings
from kubectl_rabbitmq.errors import PluginError, UsageError
from kubectl_rabbitmq.kubectl import Kubectl
from kubectl_rabbitmq.logs import build_logger

FLAG_PATTERN = re.compile(r"--[a-z-]+")

USAGE = """\
USAGE:
  Install RabbitMQ Cluster Operator (optionally specify image to use)
    kubectl rabbitmq install-cluster-operator [IMAGE]

  Open Management UI for an instance
    kubectl rabbitmq manage INSTANCE

  Display secrets of an instance
    kubectl rabbitmq secrets INSTANCE

  List all instances
    kubectl rabbitmq list

  Delete instances
    kubectl rabbitmq delete INSTANCE...

  Create an instance
    kubectl rabbitmq create INSTANCE [--replicas N] [--service ClusterIP|LoadBalancer|NodePort]
                                     [--image IMAGE] [--image-pull-secret NAME] [--unlimited]
                                     [--tls-secret SECRET-NAME]

  Get instance resources
    kubectl rabbitmq get INSTANCE

  Set log level to 'debug' on all nodes
    kubectl rabbitmq debug INSTANCE

  Run 'rabbitmq-diagnostics observer' on a specific INSTANCE NODE
    kubectl rabbitmq observe INSTANCE 0

  Run perf-test against an instance - you can pass as many perf test parameters as you want
    kubectl rabbitmq perf-test INSTANCE [--rate 100 ...]
    If you want to monitor perf-test, create the following ServiceMonitor:
      apiVersion: monitoring.coreos.com/v1
      kind: ServiceMonitor
      metadata:
        name: kubectl-perf-test
      spec:
        endpoints:
        - interval: 15s
          targetPort: 8080
        selector:
          matchLabels:
            app: perf-test

GLOBAL OPTIONS:
  -n, --namespace NAMESPACE   Namespace of the instances (default: current kubectl namespace)
  -v, --verbose               Log every kubectl invocation
"""


class Verb(str, enum.Enum):
    INSTALL_CLUSTER_OPERATOR = "install-cluster-operator"
    MANAGE = "manage"
    SECRETS = "secrets"
    LIST = "list"
    DELETE = "delete"
    CREATE = "create"
    GET = "get"
    DEBUG = "debug"
    OBSERVE = "observe"
    PERF_TEST = "perf-test"
    HELP = "help"


Handler = Callable[[commands.Context, List[str]], None]


@dataclass(frozen=True)
class CommandDefinition:
    """Arity contract and handler for a single verb."""

    handler: Optional[Handler]
    min_args: int = 0
    max_args: Optional[int] = None
    instance_first: bool = False

    def validate(self, args: List[str]) -> None:
        if len(args) < self.min_args:
            raise UsageError("Missing instance name" if self.instance_first or self.min_args == 1 else "Missing arguments")
        if self.max_args is not None and len(args) > self.max_args:
            raise UsageError("Too many arguments")
        if self.instance_first and FLAG_PATTERN.match(args[0]):
            raise UsageError("Missing instance name")


COMMANDS: Dict[Verb, CommandDefinition] = {
    Verb.INSTALL_CLUSTER_OPERATOR: CommandDefinition(commands.install_cluster_operator, max_args=1),
    Verb.MANAGE: CommandDefinition(commands.manage, min_args=1, instance_first=True),
    Verb.SECRETS: CommandDefinition(commands.secrets, min_args=1, max_args=1),
    Verb.LIST: CommandDefinition(commands.list_clusters),
    Verb.DELETE: CommandDefinition(commands.delete, min_args=1),
    Verb.CREATE: CommandDefinition(commands.create, min_args=1),
    Verb.GET: CommandDefinition(commands.get, min_args=1, max_args=1),
    Verb.DEBUG: CommandDefinition(commands.debug, min_args=1, max_args=1),
    Verb.OBSERVE: CommandDefinition(commands.observe, min_args=2, max_args=2),
    Verb.PERF_TEST: CommandDefinition(commands.perf_test, min_args=1, instance_first=True),
    Verb.HELP: CommandDefinition(None),
}


class UsageArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = UsageArgumentParser(prog="kubectl rabbitmq", add_help=False)
    parser.add_argument("-n", "--namespace", help="Namespace of the instances")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every kubectl invocation")
    parser.add_argument("-h", "--help", dest="help", action="store_true")
    parser.add_argument("verb", nargs="?")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def select(verb: Optional[str], args: List[str]) -> CommandDefinition:
    """Resolve ``verb`` to its definition after checking the argument shape."""
    if not verb:
        raise UsageError()
    try:
        definition = COMMANDS[Verb(verb)]
    except ValueError:
        raise UsageError(f"Unknown command {verb}") from None
    definition.validate(args)
    return definition


def dispatch(ctx: commands.Context, verb: Optional[str], args: List[str]) -> None:
    definition = select(verb, args)
    if definition.handler is None:
        print(USAGE, end="")
        return
    definition.handler(ctx, args)


def usage_exit(message: str = "") -> NoReturn:
    if message:
        print(message)
    print(USAGE, end="")
    sys.stdout.flush()
    raise SystemExit(1)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        parsed = parse_args(argv)
    except UsageError as exc:
        usage_exit(str(exc))

    if parsed.help:
        print(USAGE, end="")
        return

    logger = build_logger(parsed.verbose)
    try:
        settings = Settings.from_env().with_namespace(parsed.namespace)
        ctx = commands.Context(settings, Kubectl(settings.kubectl, namespace=settings.namespace))
        dispatch(ctx, parsed.verb, list(parsed.args))
    except UsageError as exc:
        usage_exit(str(exc))
    except (PluginError, subprocess.CalledProcessError) as exc:
        message = str(exc)
        if isinstance(exc, subprocess.CalledProcessError) and exc.stderr:
            message = f"{message}\n{exc.stderr.strip()}"
        logger.error(message)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        raise SystemExit(130) from None


if __name__ == "__main__":  # pragma: no cover
    main()
