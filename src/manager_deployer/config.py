"""
Configuration for the deployer.

Resolves image references, the target namespace and the polling
budgets from explicit values or environment variables. Nothing here is read
lazily at import time; callers resolve a DeployerConfig once and pass it
down.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .error_handling import (
    CredentialError,
    validate_kubeconfig,
    validate_namespace,
    validate_poll_budget,
)

# The aggregate apiserver is launched into this namespace. The service name
# is fixed by the manifest template.
DEFAULT_NAMESPACE = "default"
DEFAULT_NAME = "clusterapi"
DEFAULT_CLUSTER_DOMAIN = "cluster.local"

DEFAULT_APISERVER_IMAGE = "gcr.io/k8s-cluster-api/cluster-apiserver:0.0.5"
DEFAULT_CONTROLLER_MANAGER_IMAGE = "gcr.io/k8s-cluster-api/controller-manager:0.0.5"

# Intervals and budgets, in seconds
RETRY_INTERVAL_KUBECTL_APPLY = 10
RETRY_INTERVAL_RESOURCE_READY = 10
RETRY_INTERVAL_RESOURCE_DELETE = 10
TIMEOUT_KUBECTL_APPLY = 15 * 60
TIMEOUT_RESOURCE_READY = 15 * 60
TIMEOUT_MACHINE_READY = 30 * 60
TIMEOUT_RESOURCE_DELETE = 15 * 60

ENV_KUBECONFIG = "MANAGER_DEPLOYER_KUBECONFIG"
ENV_NAMESPACE = "MANAGER_DEPLOYER_NAMESPACE"
ENV_CLUSTER_DOMAIN = "MANAGER_DEPLOYER_CLUSTER_DOMAIN"
ENV_APPLY_INTERVAL = "MANAGER_DEPLOYER_APPLY_INTERVAL"
ENV_APPLY_TIMEOUT = "MANAGER_DEPLOYER_APPLY_TIMEOUT"
ENV_APISERVER_IMAGE = "CLUSTER_API_SERVER_IMAGE"
ENV_CONTROLLER_MANAGER_IMAGE = "CLUSTER_API_CONTROLLER_MANAGER_IMAGE"
ENV_MACHINE_CONTROLLER_IMAGE = "CLUSTER_API_MACHINE_CONTROLLER_IMAGE"


@dataclass
class PollSettings:
    """Interval and budget for one kind of polling loop, in seconds."""
    interval: float
    timeout: float


@dataclass
class DeployerConfig:
    """Configuration for deploying the aggregate apiserver.

    Attributes:
        namespace: Namespace the stack is deployed into
        cluster_domain: Cluster DNS domain used in certificate SANs
        apiserver_image: Aggregate apiserver image reference
        controller_manager_image: Controller manager image reference
        machine_controller_image: Machine controller image (empty = none)
        token: Bootstrap token handed to the machine controller
        kubeconfig_file: Path of the kubeconfig to read, if any
        apply: Interval/budget for the transient apply loop
        resource_ready: Interval/budget for the readiness waiter
        resource_delete: Interval/budget for waiting on deletions
        machine_ready_timeout: Budget for machines to become ready
    """
    namespace: str = DEFAULT_NAMESPACE
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
    apiserver_image: str = DEFAULT_APISERVER_IMAGE
    controller_manager_image: str = DEFAULT_CONTROLLER_MANAGER_IMAGE
    machine_controller_image: str = ""
    token: str = ""
    kubeconfig_file: Optional[str] = None
    apply: PollSettings = field(
        default_factory=lambda: PollSettings(
            RETRY_INTERVAL_KUBECTL_APPLY, TIMEOUT_KUBECTL_APPLY
        )
    )
    resource_ready: PollSettings = field(
        default_factory=lambda: PollSettings(
            RETRY_INTERVAL_RESOURCE_READY, TIMEOUT_RESOURCE_READY
        )
    )
    resource_delete: PollSettings = field(
        default_factory=lambda: PollSettings(
            RETRY_INTERVAL_RESOURCE_DELETE, TIMEOUT_RESOURCE_DELETE
        )
    )
    machine_ready_timeout: float = TIMEOUT_MACHINE_READY

    @property
    def name(self) -> str:
        """Service name of the aggregate apiserver."""
        return DEFAULT_NAME

    @classmethod
    def from_env(cls) -> "DeployerConfig":
        """Create configuration from environment variables.

        Unset variables fall back to the built-in defaults.
        """
        config = cls(
            namespace=os.environ.get(ENV_NAMESPACE, DEFAULT_NAMESPACE),
            cluster_domain=os.environ.get(ENV_CLUSTER_DOMAIN, DEFAULT_CLUSTER_DOMAIN),
            apiserver_image=os.environ.get(ENV_APISERVER_IMAGE, DEFAULT_APISERVER_IMAGE),
            controller_manager_image=os.environ.get(
                ENV_CONTROLLER_MANAGER_IMAGE, DEFAULT_CONTROLLER_MANAGER_IMAGE
            ),
            machine_controller_image=os.environ.get(ENV_MACHINE_CONTROLLER_IMAGE, ""),
            kubeconfig_file=os.environ.get(ENV_KUBECONFIG) or None,
        )

        if os.environ.get(ENV_APPLY_INTERVAL):
            config.apply.interval = _seconds(ENV_APPLY_INTERVAL)
        if os.environ.get(ENV_APPLY_TIMEOUT):
            config.apply.timeout = _seconds(ENV_APPLY_TIMEOUT)

        return config

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If a field is malformed
        """
        validate_namespace(self.namespace)

        if not self.apiserver_image:
            raise ValueError("Aggregate apiserver image is required")
        if not self.controller_manager_image:
            raise ValueError("Controller manager image is required")

        for settings in (self.apply, self.resource_ready, self.resource_delete):
            validate_poll_budget(settings.interval, settings.timeout)


def _seconds(var: str) -> float:
    raw = os.environ[var]
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{var} must be a number of seconds, got '{raw}'") from None


def read_kubeconfig(path: Optional[str]) -> str:
    """Read kubeconfig contents from a file.

    Args:
        path: Path to the kubeconfig file

    Returns:
        The kubeconfig contents

    Raises:
        CredentialError: If no path is given, the file is missing,
            unreadable, or empty
    """
    if not path:
        raise CredentialError("valid kubeconfig file path is required")

    kubeconfig_path = Path(path).expanduser()
    if not kubeconfig_path.exists():
        raise CredentialError(f"file at {kubeconfig_path} does not exist")

    try:
        contents = kubeconfig_path.read_text()
    except OSError as e:
        raise CredentialError(f"unable to read kubeconfig {kubeconfig_path}: {e}") from e

    try:
        return validate_kubeconfig(contents)
    except CredentialError:
        raise CredentialError(f"valid kubeconfig file is required, {kubeconfig_path} is empty") from None


def load_config(kubeconfig_file: Optional[str] = None) -> DeployerConfig:
    """Load and validate configuration.

    Args:
        kubeconfig_file: Explicit kubeconfig path, overriding the environment

    Returns:
        Validated DeployerConfig
    """
    config = DeployerConfig.from_env()
    if kubeconfig_file:
        config.kubeconfig_file = kubeconfig_file
    config.validate()
    return config
