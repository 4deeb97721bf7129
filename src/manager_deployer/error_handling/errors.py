"""
Exception hierarchy for the deployer.

Every failure the core can surface derives from DeployerError so callers can
catch the whole family while still telling the categories apart.
"""

from typing import Optional


class DeployerError(Exception):
    """Base class for all deployer failures."""


class CredentialError(DeployerError):
    """Missing, empty or unusable kubeconfig."""


class IssuanceError(DeployerError):
    """Certificate material could not be generated."""


class CertificateAuthorityError(IssuanceError):
    """The self-signed CA could not be created."""


class ServerKeyPairError(IssuanceError):
    """The CA-signed server key pair could not be created."""


class RenderError(DeployerError):
    """The manifest template failed to parse or render."""


class ApplyError(DeployerError):
    """An apply or delete against the cluster was rejected."""


class PollTimeoutError(DeployerError):
    """A polling budget elapsed before the condition was met.

    Attributes:
        operation: What was being waited for
        timeout: The budget in seconds
        last_error: The last error observed while polling, if any
    """

    def __init__(
        self,
        operation: str,
        timeout: float,
        last_error: Optional[BaseException] = None,
    ):
        message = f"timed out after {timeout:g}s waiting for {operation}"
        if last_error is not None:
            message += f": last error: {last_error}"
        super().__init__(message)
        self.operation = operation
        self.timeout = timeout
        self.last_error = last_error


class ApplyTimeoutError(PollTimeoutError):
    """The apply never stopped failing transiently within its budget."""


class ReadinessTimeoutError(PollTimeoutError):
    """A cluster resource never became available within its budget."""


class DeploymentError(DeployerError):
    """A deployment step failed.

    Attributes:
        stage: The step that failed, e.g. "apply apiserver yaml"
        name: Name of the aggregate apiserver
        namespace: Target namespace
        cause: The underlying deployer error
    """

    def __init__(self, stage: str, name: str, namespace: str, cause: DeployerError):
        super().__init__(f"unable to {stage} for {name} in namespace {namespace}: {cause}")
        self.stage = stage
        self.name = name
        self.namespace = namespace
        self.cause = cause
