"""
Deploys the cluster-api aggregate apiserver stack.

Ties the pieces together: open a cluster client on the kubeconfig, issue
certificates and render the manifest, apply it until the cluster accepts
it, and release the temporary credential file on the way out.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from .apiserver import ClusterClient, render_apiserver_manifest
from .config import DeployerConfig
from .error_handling import CredentialError, DeployerError, DeploymentError

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., ClusterClient]


@dataclass
class DeploymentResult:
    """Result of a deployment operation.

    Attributes:
        success: Whether the operation succeeded
        name: Name of the aggregate apiserver
        namespace: Target namespace
        message: Human-readable status message
        error: Error message if failed
        details: Additional details
    """
    success: bool
    name: str
    namespace: str
    message: str
    error: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, config: DeployerConfig, message: str, error: Exception) -> "DeploymentResult":
        """Build a failed result from an exception."""
        details = {"error_type": type(error).__name__}
        cause = getattr(error, "cause", None)
        if cause is not None:
            details["cause_type"] = type(cause).__name__
        return cls(
            success=False,
            name=config.name,
            namespace=config.namespace,
            message=message,
            error=str(error),
            details=details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "success": self.success,
            "name": self.name,
            "namespace": self.namespace,
            "message": self.message,
            "details": self.details,
        }
        if self.error:
            result["error"] = self.error
        return result


def _open_client(
    kubeconfig: str,
    config: DeployerConfig,
    client_factory: ClientFactory,
) -> ClusterClient:
    try:
        return client_factory(kubeconfig, config.namespace, config=config)
    except DeployerError as e:
        raise DeploymentError(
            "create a kubernetes client object", config.name, config.namespace, e
        ) from e


@contextmanager
def _cluster_client(
    kubeconfig: str,
    config: DeployerConfig,
    client_factory: ClientFactory,
) -> Iterator[ClusterClient]:
    """Open a client and release its temporary kubeconfig afterwards.

    A failed release after a successful run is reported as a
    DeploymentError. When the run itself failed, the release failure is
    only logged so the original error propagates.
    """
    client = _open_client(kubeconfig, config, client_factory)
    try:
        yield client
    except BaseException:
        try:
            client.close()
        except OSError as e:
            logger.warning("Error closing cluster client: %s", e)
        raise

    try:
        client.close()
    except OSError as e:
        cause = CredentialError(f"unable to remove temporary kubeconfig: {e}")
        raise DeploymentError(
            "remove temporary kubeconfig", config.name, config.namespace, cause
        ) from e


def _render(config: DeployerConfig) -> str:
    try:
        return render_apiserver_manifest(config)
    except DeployerError as e:
        raise DeploymentError(
            "generate apiserver yaml", config.name, config.namespace, e
        ) from e


def deploy_cluster_api(
    kubeconfig: str,
    config: Optional[DeployerConfig] = None,
    client_factory: ClientFactory = ClusterClient.from_kubeconfig,
) -> DeploymentResult:
    """Deploy the aggregate apiserver stack.

    Args:
        kubeconfig: Kubeconfig contents
        config: Deployer configuration, defaults to DeployerConfig()
        client_factory: Builds a ClusterClient from kubeconfig contents

    Returns:
        A successful DeploymentResult

    Raises:
        DeploymentError: Wrapping the failure of whichever step failed
    """
    config = config or DeployerConfig()

    with _cluster_client(kubeconfig, config, client_factory) as client:
        manifest = _render(config)

        logger.info(
            "Applying aggregate apiserver %s to namespace %s",
            config.name,
            config.namespace,
        )
        try:
            client.apply(manifest)
        except DeployerError as e:
            raise DeploymentError(
                "apply apiserver yaml", config.name, config.namespace, e
            ) from e

    return DeploymentResult(
        success=True,
        name=config.name,
        namespace=config.namespace,
        message="Aggregate apiserver deployed successfully",
        details={
            "apiserver_image": config.apiserver_image,
            "controller_manager_image": config.controller_manager_image,
            "service": f"{config.name}.{config.namespace}.svc",
        },
    )


def delete_cluster_api(
    kubeconfig: str,
    config: Optional[DeployerConfig] = None,
    client_factory: ClientFactory = ClusterClient.from_kubeconfig,
) -> DeploymentResult:
    """Delete the aggregate apiserver stack.

    The manifest is rendered with fresh certificates; deletion only looks
    at object identities, so the key material does not need to match.

    Raises:
        DeploymentError: Wrapping the failure of whichever step failed
    """
    config = config or DeployerConfig()

    with _cluster_client(kubeconfig, config, client_factory) as client:
        manifest = _render(config)

        logger.info(
            "Deleting aggregate apiserver %s from namespace %s",
            config.name,
            config.namespace,
        )
        try:
            client.delete(manifest)
        except DeployerError as e:
            raise DeploymentError(
                "delete apiserver yaml", config.name, config.namespace, e
            ) from e

    return DeploymentResult(
        success=True,
        name=config.name,
        namespace=config.namespace,
        message="Aggregate apiserver deleted successfully",
    )
