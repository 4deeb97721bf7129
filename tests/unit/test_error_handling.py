"""
Unit tests for error handling utilities.

Tests validators, apply error classification, and the error hierarchy.
"""

import pytest

from manager_deployer.error_handling import (
    ApplyError,
    ApplyErrorKind,
    ApplyTimeoutError,
    CredentialError,
    DeployerError,
    DeploymentError,
    ManifestCommandError,
    PollTimeoutError,
    ReadinessTimeoutError,
    classify_apply_output,
    is_transient_apply_error,
    validate_dns_label,
    validate_kubeconfig,
    validate_namespace,
    validate_poll_budget,
)


# ==================== Validator Tests ====================


@pytest.mark.unit
def test_validate_kubeconfig_valid(valid_kubeconfig):
    """Non-empty kubeconfig passes validation unchanged."""
    assert validate_kubeconfig(valid_kubeconfig) == valid_kubeconfig


@pytest.mark.unit
@pytest.mark.parametrize("kubeconfig", [None, "", "   \n\t"])
def test_validate_kubeconfig_empty(kubeconfig):
    """Missing or blank kubeconfig raises CredentialError."""
    with pytest.raises(CredentialError) as exc_info:
        validate_kubeconfig(kubeconfig)
    assert "valid kubeconfig is required" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.parametrize("label", ["clusterapi", "kube-system", "a", "ns-01"])
def test_validate_dns_label_valid(label):
    """Valid DNS-1123 labels pass validation."""
    assert validate_dns_label(label) == label


@pytest.mark.unit
def test_validate_dns_label_empty():
    """Empty label raises ValueError."""
    with pytest.raises(ValueError) as exc_info:
        validate_dns_label("")
    assert "cannot be empty" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.parametrize("label", ["Default", "-ns", "ns-", "my_ns", "ns.sub"])
def test_validate_dns_label_invalid_format(label):
    """Labels outside the DNS-1123 alphabet raise ValueError."""
    with pytest.raises(ValueError) as exc_info:
        validate_dns_label(label)
    assert label in str(exc_info.value)


@pytest.mark.unit
def test_validate_dns_label_too_long():
    """Labels over 63 characters raise ValueError."""
    with pytest.raises(ValueError) as exc_info:
        validate_dns_label("a" * 64)
    assert "63" in str(exc_info.value)


@pytest.mark.unit
def test_validate_namespace_names_field():
    """Namespace errors mention the namespace."""
    with pytest.raises(ValueError) as exc_info:
        validate_namespace("Bad_NS")
    assert "namespace" in str(exc_info.value)


@pytest.mark.unit
def test_validate_dns_label_default_field():
    """Errors default to describing a name."""
    with pytest.raises(ValueError) as exc_info:
        validate_dns_label("")
    assert "Name cannot be empty" in str(exc_info.value)


@pytest.mark.unit
def test_validate_poll_budget_valid():
    """Positive interval and non-negative timeout pass."""
    assert validate_poll_budget(10, 900) == (10, 900)
    assert validate_poll_budget(0.5, 0) == (0.5, 0)


@pytest.mark.unit
@pytest.mark.parametrize("interval", [0, -1])
def test_validate_poll_budget_bad_interval(interval):
    """Non-positive interval raises ValueError."""
    with pytest.raises(ValueError) as exc_info:
        validate_poll_budget(interval, 60)
    assert "interval must be positive" in str(exc_info.value)


@pytest.mark.unit
def test_validate_poll_budget_negative_timeout():
    """Negative timeout raises ValueError."""
    with pytest.raises(ValueError):
        validate_poll_budget(10, -1)


# ==================== Apply Classification Tests ====================


@pytest.mark.unit
@pytest.mark.parametrize("output", [
    "The connection to the server localhost:8080 was refused - did you specify the right host or port?",
    "dial tcp 10.0.0.1:443: connect: connection refused",
])
def test_classify_connection_refused(output):
    """Refused connections are classified as transient."""
    kind = classify_apply_output(output, "default")
    assert kind is ApplyErrorKind.CONNECTION_REFUSED
    assert kind.is_transient


@pytest.mark.unit
@pytest.mark.parametrize("output", [
    'error: unable to recognize "STDIN": no matches for kind "APIService" in version "apiregistration.k8s.io/v1beta1"',
    'error: resource mapping not found for name: "clusterapi" namespace: "" from "STDIN"',
])
def test_classify_unrecognized_type(output):
    """Unregistered resource kinds are classified as transient."""
    kind = classify_apply_output(output, "default")
    assert kind is ApplyErrorKind.UNRECOGNIZED_TYPE
    assert kind.is_transient


@pytest.mark.unit
def test_classify_namespace_not_found():
    """Missing target namespace is classified as transient."""
    output = 'Error from server (NotFound): error when creating "STDIN": namespaces "default" not found'
    assert classify_apply_output(output, "default") is ApplyErrorKind.NAMESPACE_NOT_FOUND


@pytest.mark.unit
def test_classify_namespace_follows_target():
    """Namespace classification matches the deployment namespace."""
    output = 'Error from server (NotFound): namespaces "kube-ops" not found'

    assert classify_apply_output(output, "kube-ops") is ApplyErrorKind.NAMESPACE_NOT_FOUND
    # Another namespace missing is not something waiting will fix
    assert classify_apply_output(output, "default") is ApplyErrorKind.FATAL


@pytest.mark.unit
@pytest.mark.parametrize("output", [
    'error: error validating "STDIN": error validating data: unknown field "replica"',
    'Error from server (Forbidden): deployments.apps is forbidden: User "bob" cannot create resource',
    "",
])
def test_classify_fatal(output):
    """Everything else is fatal."""
    kind = classify_apply_output(output, "default")
    assert kind is ApplyErrorKind.FATAL
    assert not kind.is_transient


@pytest.mark.unit
def test_is_transient_apply_error():
    """Only apply errors with a transient kind are retryable."""
    transient = ManifestCommandError("apply", ApplyErrorKind.UNRECOGNIZED_TYPE, returncode=1)
    fatal = ManifestCommandError("apply", ApplyErrorKind.FATAL, returncode=1)

    assert is_transient_apply_error(transient)
    assert not is_transient_apply_error(fatal)
    assert not is_transient_apply_error(ApplyError("rejected"))
    assert not is_transient_apply_error(ConnectionRefusedError("refused"))


@pytest.mark.unit
def test_manifest_command_error_message():
    """Command errors carry the command, status, and output."""
    err = ManifestCommandError("delete", ApplyErrorKind.FATAL, returncode=2, output="boom\n")

    assert str(err) == "couldn't kubectl delete: exit status 2, output: boom"
    assert err.command == "delete"
    assert err.output == "boom\n"


# ==================== Error Hierarchy Tests ====================


@pytest.mark.unit
def test_timeouts_are_not_apply_errors():
    """Timeouts are distinguishable from fatal apply failures."""
    assert issubclass(ApplyTimeoutError, PollTimeoutError)
    assert issubclass(ReadinessTimeoutError, PollTimeoutError)
    assert not issubclass(ApplyTimeoutError, ApplyError)
    assert issubclass(PollTimeoutError, DeployerError)


@pytest.mark.unit
def test_poll_timeout_message():
    """Timeout messages name the operation and the last error."""
    last = ManifestCommandError("apply", ApplyErrorKind.CONNECTION_REFUSED, returncode=1, output="refused")
    err = ApplyTimeoutError("kubectl apply", 900, last)

    assert "timed out after 900s waiting for kubectl apply" in str(err)
    assert "refused" in str(err)
    assert err.last_error is last


@pytest.mark.unit
def test_deployment_error_wraps_cause():
    """Deployment errors keep the underlying error."""
    cause = ApplyTimeoutError("kubectl apply", 60)
    err = DeploymentError("apply apiserver yaml", "clusterapi", "default", cause)

    assert str(err).startswith("unable to apply apiserver yaml for clusterapi in namespace default")
    assert err.cause is cause
    assert isinstance(err.cause, PollTimeoutError)
