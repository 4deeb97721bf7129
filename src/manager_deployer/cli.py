"""
Command-line entry point.

    manager-deployer --kubeconfig ~/.kube/config deploy cluster-api
    manager-deployer --kubeconfig ~/.kube/config delete cluster-api
    manager-deployer render cluster-api > clusterapi.yaml

The kubeconfig path falls back to MANAGER_DEPLOYER_KUBECONFIG.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .apiserver import render_apiserver_manifest
from .config import ENV_KUBECONFIG, load_config, read_kubeconfig
from .deployer import delete_cluster_api, deploy_cluster_api
from .error_handling import DeployerError

logger = logging.getLogger("manager-deployer")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manager-deployer",
        description="Deploys tools to create cluster-api manager to your existing cluster",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-k", "--kubeconfig",
        help=f"kubeconfig file path (default: ${ENV_KUBECONFIG})",
    )
    parser.add_argument(
        "-v", "--verbose",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="log level",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    for command, help_text in (
        ("deploy", "Deploy different tools to your cluster"),
        ("delete", "Remove deployed tools from your cluster"),
        ("render", "Print the manifest that deploy would apply"),
    ):
        sub = commands.add_parser(command, help=help_text)
        targets = sub.add_subparsers(dest="target", required=True)
        targets.add_parser(
            "cluster-api",
            help="The cluster-api aggregate apiserver stack",
        )

    return parser


def run(args: argparse.Namespace) -> None:
    """Execute a parsed command.

    Raises:
        DeployerError: If the command fails
        ValueError: If the configuration is invalid
    """
    config = load_config(kubeconfig_file=args.kubeconfig)

    if args.command == "render":
        sys.stdout.write(render_apiserver_manifest(config))
        return

    logger.info("kubeconfig file: %s", config.kubeconfig_file)
    kubeconfig = read_kubeconfig(config.kubeconfig_file)

    if args.command == "deploy":
        result = deploy_cluster_api(kubeconfig, config)
    else:
        result = delete_cluster_api(kubeconfig, config)
    logger.info(result.message)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.verbose),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        run(args)
    except (DeployerError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
