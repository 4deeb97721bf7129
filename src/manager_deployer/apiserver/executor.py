"""
Single-shot manifest apply/delete through kubectl.

Each call runs kubectl exactly once with the manifest streamed on stdin, so
no manifest (and none of the key material inside it) touches disk.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ..error_handling import ApplyErrorKind, ManifestCommandError, classify_apply_output

logger = logging.getLogger(__name__)


class ManifestExecutor(Protocol):
    """Anything that can apply or delete a manifest once."""

    def apply(self, manifest: str) -> None: ...

    def delete(self, manifest: str) -> None: ...


@dataclass
class ConfigOverrides:
    """Overrides layered on top of the kubeconfig's current context.

    Attributes:
        context: Kubeconfig context to use
        cluster: Cluster entry to use
        namespace: Namespace for namespaced objects without one
        user: Kubeconfig user (auth info) to use
    """
    context: str = ""
    cluster: str = ""
    namespace: str = ""
    user: str = ""


class KubectlExecutor:
    """Apply and delete manifests by shelling out to kubectl."""

    def __init__(
        self,
        kubeconfig_file: str = "",
        target_namespace: str = "",
        overrides: Optional[ConfigOverrides] = None,
        kubectl: str = "kubectl",
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        """Initialize the executor.

        Args:
            kubeconfig_file: Path passed as --kubeconfig (omitted if empty)
            target_namespace: Namespace the manifest deploys into; a
                "namespace not found" failure for it is treated as transient
            overrides: Context/cluster/namespace/user overrides
            kubectl: kubectl binary name or path
            runner: subprocess.run compatible callable
        """
        self.kubeconfig_file = kubeconfig_file
        self.target_namespace = target_namespace
        self.overrides = overrides or ConfigOverrides()
        self.kubectl = kubectl
        self._run = runner

    def build_args(self, command: str) -> list[str]:
        """Build the kubectl argument list for a manifest command."""
        args = [command]
        if self.kubeconfig_file:
            args += ["--kubeconfig", self.kubeconfig_file]
        if self.overrides.context:
            args += ["--context", self.overrides.context]
        if self.overrides.cluster:
            args += ["--cluster", self.overrides.cluster]
        if self.overrides.namespace:
            args += ["--namespace", self.overrides.namespace]
        if self.overrides.user:
            args += ["--user", self.overrides.user]
        return args + ["-f", "-"]

    def apply(self, manifest: str) -> None:
        """Run ``kubectl apply`` once."""
        self._manifest_command("apply", manifest)

    def delete(self, manifest: str) -> None:
        """Run ``kubectl delete`` once."""
        self._manifest_command("delete", manifest)

    def _manifest_command(self, command: str, manifest: str) -> None:
        cmd = [self.kubectl] + self.build_args(command)
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = self._run(
                cmd,
                input=manifest,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            raise ManifestCommandError(
                command,
                ApplyErrorKind.FATAL,
                reason=f"unable to run {self.kubectl}: {e}",
            ) from e

        if result.returncode != 0:
            output = result.stdout or ""
            raise ManifestCommandError(
                command,
                classify_apply_output(output, self.target_namespace),
                returncode=result.returncode,
                output=output,
            )
