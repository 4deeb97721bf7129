"""
Error handling utilities for the deployer.

Provides the exception hierarchy, apply error classification, and input
validators.
"""

from .errors import (
    DeployerError,
    CredentialError,
    IssuanceError,
    CertificateAuthorityError,
    ServerKeyPairError,
    RenderError,
    ApplyError,
    PollTimeoutError,
    ApplyTimeoutError,
    ReadinessTimeoutError,
    DeploymentError,
)
from .apply_errors import (
    ApplyErrorKind,
    ManifestCommandError,
    classify_apply_output,
    is_transient_apply_error,
)
from .validators import (
    validate_kubeconfig,
    validate_dns_label,
    validate_namespace,
    validate_poll_budget,
)

__all__ = [
    # Errors
    "DeployerError",
    "CredentialError",
    "IssuanceError",
    "CertificateAuthorityError",
    "ServerKeyPairError",
    "RenderError",
    "ApplyError",
    "PollTimeoutError",
    "ApplyTimeoutError",
    "ReadinessTimeoutError",
    "DeploymentError",
    # Apply classification
    "ApplyErrorKind",
    "ManifestCommandError",
    "classify_apply_output",
    "is_transient_apply_error",
    # Validators
    "validate_kubeconfig",
    "validate_dns_label",
    "validate_namespace",
    "validate_poll_budget",
]
