"""
Aggregate apiserver provisioning.

Certificate issuance, manifest rendering, and the cluster client that
applies the result.
"""

from .certificates import (
    CertificateIssuer,
    EncodedCertificateBundle,
    issue_server_certificate,
)
from .manifest import (
    ManifestParameters,
    load_template,
    render,
    render_apiserver_manifest,
)
from .executor import ConfigOverrides, KubectlExecutor, ManifestExecutor
from .polling import TransientApplyLoop, poll_immediate
from .readiness import ResourceReadinessWaiter, wait_for_cluster_resource_ready
from .client import ClusterClient

__all__ = [
    "CertificateIssuer",
    "EncodedCertificateBundle",
    "issue_server_certificate",
    "ManifestParameters",
    "load_template",
    "render",
    "render_apiserver_manifest",
    "ConfigOverrides",
    "KubectlExecutor",
    "ManifestExecutor",
    "TransientApplyLoop",
    "poll_immediate",
    "ResourceReadinessWaiter",
    "wait_for_cluster_resource_ready",
    "ClusterClient",
]
