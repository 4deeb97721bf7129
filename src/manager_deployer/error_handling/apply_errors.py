"""
Apply error classification.

Maps kubectl failures to a typed error kind and determines which kinds are
transient, i.e. expected to clear once the control plane finishes starting.
"""

from enum import Enum
from typing import Any, Optional

from .errors import ApplyError


class ApplyErrorKind(Enum):
    """Why an apply or delete against the cluster failed."""
    CONNECTION_REFUSED = "connection_refused"
    UNRECOGNIZED_TYPE = "unrecognized_type"
    NAMESPACE_NOT_FOUND = "namespace_not_found"
    FATAL = "fatal"

    @property
    def is_transient(self) -> bool:
        return self in TRANSIENT_KINDS


TRANSIENT_KINDS = frozenset({
    ApplyErrorKind.CONNECTION_REFUSED,
    ApplyErrorKind.UNRECOGNIZED_TYPE,
    ApplyErrorKind.NAMESPACE_NOT_FOUND,
})

# kubectl wording for resource kinds the apiserver does not serve yet
_UNRECOGNIZED_MARKERS = (
    "unable to recognize",
    "no matches for kind",
    "resource mapping not found",
)


class ManifestCommandError(ApplyError):
    """A single kubectl invocation exited unsuccessfully.

    Attributes:
        command: The kubectl subcommand (apply or delete)
        kind: Classified failure kind
        returncode: Process exit status (None if it never started)
        output: Combined stdout and stderr of the invocation
    """

    def __init__(
        self,
        command: str,
        kind: ApplyErrorKind,
        returncode: Optional[int] = None,
        output: str = "",
        reason: str = "",
    ):
        reason = reason or f"exit status {returncode}"
        super().__init__(
            f"couldn't kubectl {command}: {reason}, output: {output.strip()}"
        )
        self.command = command
        self.kind = kind
        self.returncode = returncode
        self.output = output


def classify_apply_output(output: str, namespace: str) -> ApplyErrorKind:
    """Classify the diagnostic output of a failed kubectl call.

    Args:
        output: Combined stdout and stderr of the failed call
        namespace: The namespace the manifest deploys into

    Returns:
        The matching ApplyErrorKind, FATAL when nothing transient matches
    """
    if "refused" in output:
        # API server is not accepting connections yet
        return ApplyErrorKind.CONNECTION_REFUSED

    if any(marker in output for marker in _UNRECOGNIZED_MARKERS):
        return ApplyErrorKind.UNRECOGNIZED_TYPE

    if namespace and f'namespaces "{namespace}" not found' in output:
        return ApplyErrorKind.NAMESPACE_NOT_FOUND

    return ApplyErrorKind.FATAL


def is_transient_apply_error(exception: Any) -> bool:
    """Determine if an apply failure should be retried.

    Args:
        exception: The exception to check

    Returns:
        True if the error carries a transient kind, False otherwise
    """
    kind = getattr(exception, "kind", None)
    if not isinstance(exception, ApplyError) or not isinstance(kind, ApplyErrorKind):
        return False
    return kind.is_transient
