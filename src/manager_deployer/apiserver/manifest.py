"""
Manifest rendering for the aggregate apiserver.

Rendering is plain text substitution. The template is opaque text here;
values must already be safe to drop into YAML, which is why certificate
material arrives base64 encoded.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from jinja2 import Environment, StrictUndefined, TemplateError

from ..config import DeployerConfig
from ..error_handling import RenderError
from .certificates import CertificateIssuer, EncodedCertificateBundle
from .templates import APISERVER_TEMPLATE, get_template_path

logger = logging.getLogger(__name__)

_environment = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class ManifestParameters:
    """Values substituted into the apiserver manifest template.

    Attributes:
        token: Bootstrap token for the machine controller
        apiserver_image: Aggregate apiserver image reference
        controller_manager_image: Controller manager image reference
        machine_controller_image: Machine controller image reference
        ca_bundle: Base64 CA certificate PEM
        tls_crt: Base64 server certificate PEM
        tls_key: Base64 server private key PEM
        namespace: Namespace the stack is deployed into
    """
    token: str
    apiserver_image: str
    controller_manager_image: str
    machine_controller_image: str
    ca_bundle: str
    tls_crt: str
    tls_key: str
    namespace: str

    def as_template_vars(self) -> dict[str, str]:
        """Map fields to the placeholder names used by the template."""
        return {
            "Token": self.token,
            "APIServerImage": self.apiserver_image,
            "ControllerManagerImage": self.controller_manager_image,
            "MachineControllerImage": self.machine_controller_image,
            "CABundle": self.ca_bundle,
            "TLSCrt": self.tls_crt,
            "TLSKey": self.tls_key,
            "Namespace": self.namespace,
        }


def load_template(name: str = APISERVER_TEMPLATE) -> str:
    """Read a packaged manifest template.

    Raises:
        RenderError: If the template does not exist
    """
    path = get_template_path(name)
    try:
        return path.read_text()
    except OSError as e:
        raise RenderError(f"unable to read template {name}: {e}") from e


def render(
    template: str,
    params: Union[ManifestParameters, Mapping[str, Any]],
) -> str:
    """Render a manifest template.

    Args:
        template: Template text using ``{{ Placeholder }}`` syntax
        params: Parameters, either a ManifestParameters or a mapping of
            placeholder name to value

    Returns:
        The rendered manifest

    Raises:
        RenderError: On template syntax errors or unresolved placeholders
    """
    if isinstance(params, ManifestParameters):
        params = params.as_template_vars()

    try:
        return _environment.from_string(template).render(**params)
    except TemplateError as e:
        raise RenderError(f"unable to render manifest template: {e}") from e


def build_parameters(
    config: DeployerConfig,
    bundle: EncodedCertificateBundle,
) -> ManifestParameters:
    """Combine configuration and certificate material into parameters."""
    return ManifestParameters(
        token=config.token,
        apiserver_image=config.apiserver_image,
        controller_manager_image=config.controller_manager_image,
        machine_controller_image=config.machine_controller_image,
        ca_bundle=bundle.ca_bundle,
        tls_crt=bundle.tls_crt,
        tls_key=bundle.tls_key,
        namespace=config.namespace,
    )


def render_apiserver_manifest(
    config: DeployerConfig,
    bundle: Optional[EncodedCertificateBundle] = None,
    template: Optional[str] = None,
) -> str:
    """Render the aggregate apiserver manifest.

    Issues fresh certificates for ``config.name`` in ``config.namespace``
    unless a bundle is supplied.

    Args:
        config: Deployer configuration
        bundle: Pre-issued certificate material
        template: Template text, defaults to the packaged template

    Returns:
        The rendered manifest
    """
    if bundle is None:
        logger.info(
            "Issuing certificates for %s.%s.svc", config.name, config.namespace
        )
        bundle = CertificateIssuer().issue_server_certificate(
            config.name,
            config.namespace,
            cluster_domain=config.cluster_domain,
        )

    if template is None:
        template = load_template()

    return render(template, build_parameters(config, bundle))
