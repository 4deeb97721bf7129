"""
Cluster client façade.

Owns a kubeconfig materialised to a private temporary file for the lifetime
of the client, and composes the kubectl executor, the transient apply loop
and the readiness waiter around it.
"""

import logging
import os
import tempfile
import time
from typing import Any, Callable, Optional

import yaml
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from ..config import DeployerConfig
from ..error_handling import CredentialError, validate_kubeconfig
from .executor import ConfigOverrides, KubectlExecutor, ManifestExecutor
from .polling import TransientApplyLoop
from .readiness import ResourceReadinessWaiter

logger = logging.getLogger(__name__)


def _create_temp_file(contents: str) -> str:
    """Write contents to a new 0600 temporary file and return its path."""
    fd, path = tempfile.mkstemp(prefix="kubeconfig-", suffix=".yaml")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(contents)
    except BaseException:
        _remove_quietly(path)
        raise
    return path


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("Error removing file '%s': %s", path, e)


def _check_kubeconfig_file(path: str) -> None:
    """Make sure a kubeconfig file parses to a mapping."""
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise CredentialError(f"unable to load kubeconfig {path}: {e}") from e

    if not isinstance(document, dict):
        raise CredentialError(f"kubeconfig {path} is not a kubeconfig document")


class ClusterClient:
    """Applies and deletes manifests against one cluster.

    Use ``ClusterClient.from_kubeconfig`` to hand over kubeconfig contents;
    the client then owns a temporary copy that ``close`` removes. Clients
    built directly from a kubeconfig path never delete that file.
    """

    def __init__(
        self,
        kubeconfig_file: str,
        namespace: str,
        overrides: Optional[ConfigOverrides] = None,
        config: Optional[DeployerConfig] = None,
        executor: Optional[ManifestExecutor] = None,
        api_client: Optional[Any] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the client.

        Args:
            kubeconfig_file: Path to a kubeconfig file
            namespace: Namespace the manifests deploy into
            overrides: Context/cluster/namespace/user overrides
            config: Deployer configuration (polling budgets)
            executor: Manifest executor, defaults to kubectl
            api_client: kubernetes ApiClient, built from the kubeconfig if None
            sleep: Sleep function for polling, replaceable in tests

        Raises:
            CredentialError: If the kubeconfig cannot be loaded
        """
        self.kubeconfig_file = kubeconfig_file
        self.namespace = namespace
        self.overrides = overrides or ConfigOverrides()
        self.config = config or DeployerConfig(namespace=namespace)
        self._sleep = sleep
        self._close_fn: Optional[Callable[[], None]] = None

        if api_client is None:
            _check_kubeconfig_file(kubeconfig_file)
            try:
                api_client = k8s_config.new_client_from_config(
                    config_file=kubeconfig_file,
                    context=self.overrides.context or None,
                    persist_config=False,
                )
            except ConfigException as e:
                raise CredentialError(
                    f"unable to create a kubernetes client from {kubeconfig_file}: {e}"
                ) from e
        self.api_client = api_client

        self.executor = executor or KubectlExecutor(
            kubeconfig_file=kubeconfig_file,
            target_namespace=namespace,
            overrides=self.overrides,
        )

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str,
        namespace: str,
        **kwargs: Any,
    ) -> "ClusterClient":
        """Create a client from kubeconfig contents.

        The contents are written to a private temporary file that is removed
        by ``close``, or immediately if construction fails.

        Args:
            kubeconfig: The kubeconfig document as a string
            namespace: Namespace the manifests deploy into
            **kwargs: Passed through to the constructor

        Raises:
            CredentialError: If the kubeconfig is empty or unusable
        """
        validate_kubeconfig(kubeconfig)

        path = _create_temp_file(kubeconfig)
        try:
            instance = cls(path, namespace, **kwargs)
        except BaseException:
            _remove_quietly(path)
            raise

        instance._close_fn = instance._remove_kubeconfig_file
        return instance

    def _remove_kubeconfig_file(self) -> None:
        try:
            os.remove(self.kubeconfig_file)
        except OSError as e:
            logger.warning("Error removing file '%s': %s", self.kubeconfig_file, e)
            raise

    def close(self) -> None:
        """Free resources held by the client.

        Removes the temporary kubeconfig if this client owns one. Only the
        first call does any work.

        Raises:
            OSError: If the temporary kubeconfig could not be removed
        """
        close_fn, self._close_fn = self._close_fn, None
        if close_fn is not None:
            close_fn()

    def apply(self, manifest: str) -> None:
        """Apply a manifest, retrying while the cluster is not ready yet."""
        TransientApplyLoop(
            self.executor,
            interval=self.config.apply.interval,
            timeout=self.config.apply.timeout,
            sleep=self._sleep,
        ).run(manifest)

    def delete(self, manifest: str) -> None:
        """Delete the objects in a manifest, once, without retrying."""
        self.executor.delete(manifest)

    def wait_for_cluster_resource_ready(self) -> None:
        """Wait for cluster-api Cluster objects to be listable."""
        ResourceReadinessWaiter(
            k8s_client.CustomObjectsApi(self.api_client),
            self.namespace,
            interval=self.config.resource_ready.interval,
            timeout=self.config.resource_ready.timeout,
            sleep=self._sleep,
        ).wait()

    def __enter__(self) -> "ClusterClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        if exc_type is None:
            self.close()
            return

        # Don't mask the error already propagating
        try:
            self.close()
        except OSError as e:
            logger.warning("Error closing cluster client: %s", e)
