"""
Input validation functions for the deployer.

Provides validation for kubeconfig content, resource names, namespaces and
polling budgets before any of them reach the cluster.
"""

import re

from .errors import CredentialError

# RFC 1123 label, which is what Kubernetes requires for names and namespaces
_DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_DNS_LABEL_MAX = 63


def validate_kubeconfig(kubeconfig: str) -> str:
    """Validate raw kubeconfig contents.

    Args:
        kubeconfig: The kubeconfig document as a string

    Returns:
        The validated kubeconfig

    Raises:
        CredentialError: If the kubeconfig is missing or blank
    """
    if kubeconfig is None or not kubeconfig.strip():
        raise CredentialError(
            "valid kubeconfig is required. "
            "Hint: pass --kubeconfig or set MANAGER_DEPLOYER_KUBECONFIG."
        )
    return kubeconfig


def validate_dns_label(value: str, what: str = "name") -> str:
    """Validate a Kubernetes object name or namespace.

    Args:
        value: The label to validate
        what: What the value names, used in the error message

    Returns:
        The validated label

    Raises:
        ValueError: If the label is empty or not a valid DNS-1123 label
    """
    if not value:
        raise ValueError(f"{what.capitalize()} cannot be empty.")

    if len(value) > _DNS_LABEL_MAX:
        raise ValueError(
            f"Invalid {what}: '{value}' is longer than {_DNS_LABEL_MAX} characters."
        )

    if not _DNS_LABEL.match(value):
        raise ValueError(
            f"Invalid {what}: '{value}'. "
            "Must consist of lower case alphanumeric characters or '-', "
            "and start and end with an alphanumeric character "
            "(e.g., 'clusterapi')."
        )

    return value


def validate_namespace(namespace: str) -> str:
    """Validate a Kubernetes namespace."""
    return validate_dns_label(namespace, "namespace")


def validate_poll_budget(interval: float, timeout: float) -> tuple[float, float]:
    """Validate a polling interval and timeout pair.

    Args:
        interval: Seconds between attempts
        timeout: Total budget in seconds

    Returns:
        The validated (interval, timeout) pair

    Raises:
        ValueError: If the interval is not positive or the timeout is negative
    """
    if interval <= 0:
        raise ValueError(f"Poll interval must be positive, got {interval}.")

    if timeout < 0:
        raise ValueError(f"Poll timeout cannot be negative, got {timeout}.")

    return interval, timeout
