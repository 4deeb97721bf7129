"""
PKI for the aggregate apiserver.

Generates a throwaway CA and a CA-signed serving certificate for the
apiserver's in-cluster service name. Nothing is written to disk: the only
output is base64 text ready to be embedded in a manifest.
"""

import base64
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from ipaddress import ip_address
from typing import Iterable, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.x509.oid import NameOID, ExtendedKeyUsageOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PrivateFormat,
    NoEncryption,
)

from ..config import DEFAULT_CLUSTER_DOMAIN
from ..error_handling import CertificateAuthorityError, ServerKeyPairError

_KEYGEN_ERRORS = (ValueError, TypeError, OSError, UnsupportedAlgorithm)


@dataclass(frozen=True)
class EncodedCertificateBundle:
    """Base64-encoded PEM material for the aggregate apiserver.

    Attributes:
        ca_bundle: CA certificate PEM, base64 encoded
        tls_crt: Server certificate PEM, base64 encoded
        tls_key: Server private key PEM, base64 encoded
    """
    ca_bundle: str
    tls_crt: str
    tls_key: str

    @staticmethod
    def decode(field_value: str) -> bytes:
        """Decode one bundle field back to PEM bytes."""
        return base64.b64decode(field_value)


def service_dns_names(name: str, namespace: str, cluster_domain: str) -> list[str]:
    """Return the DNS names a service is reachable under inside the cluster."""
    return [
        name,
        f"{name}.{namespace}",
        f"{name}.{namespace}.svc",
        f"{name}.{namespace}.svc.{cluster_domain}",
    ]


class CertificateIssuer:
    """Issues CA and serving certificates for an in-cluster service."""

    DEFAULT_KEY_SIZE = 2048
    DEFAULT_CA_VALIDITY_DAYS = 3650  # 10 years
    DEFAULT_CERT_VALIDITY_DAYS = 365  # 1 year

    def __init__(self, key_size: int = None):
        self.key_size = key_size or self.DEFAULT_KEY_SIZE

    def _generate_private_key(self) -> rsa.RSAPrivateKey:
        """Generate an RSA private key."""
        return rsa.generate_private_key(
            public_exponent=65537,
            key_size=self.key_size,
        )

    @staticmethod
    def _key_to_pem(key: rsa.RSAPrivateKey) -> bytes:
        """Convert private key to PKCS#1 PEM bytes."""
        return key.private_bytes(
            encoding=Encoding.PEM,
            format=PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=NoEncryption(),
        )

    @staticmethod
    def _cert_to_pem(cert: x509.Certificate) -> bytes:
        """Convert certificate to PEM bytes."""
        return cert.public_bytes(Encoding.PEM)

    @staticmethod
    def _b64(pem: bytes) -> str:
        return base64.b64encode(pem).decode("ascii")

    def generate_ca(
        self,
        common_name: str,
        validity_days: int = None,
    ) -> Tuple[x509.Certificate, rsa.RSAPrivateKey]:
        """Generate a self-signed CA certificate and key.

        Args:
            common_name: CA common name
            validity_days: Certificate validity in days

        Returns:
            Tuple of (certificate, private_key)

        Raises:
            CertificateAuthorityError: If key generation or signing fails
        """
        validity_days = validity_days or self.DEFAULT_CA_VALIDITY_DAYS

        try:
            key = self._generate_private_key()

            subject = issuer = x509.Name([
                x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            ])

            now = datetime.now(timezone.utc)
            cert = (
                x509.CertificateBuilder()
                .subject_name(subject)
                .issuer_name(issuer)
                .public_key(key.public_key())
                .serial_number(x509.random_serial_number())
                .not_valid_before(now)
                .not_valid_after(now + timedelta(days=validity_days))
                .add_extension(
                    x509.BasicConstraints(ca=True, path_length=None),
                    critical=True,
                )
                .add_extension(
                    x509.KeyUsage(
                        digital_signature=True,
                        key_cert_sign=True,
                        crl_sign=False,
                        key_encipherment=True,
                        content_commitment=False,
                        data_encipherment=False,
                        key_agreement=False,
                        encipher_only=False,
                        decipher_only=False,
                    ),
                    critical=True,
                )
                .add_extension(
                    x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
                    critical=False,
                )
                .sign(key, hashes.SHA256())
            )
        except _KEYGEN_ERRORS as e:
            raise CertificateAuthorityError(f"failed to create root-ca: {e}") from e

        return cert, key

    def generate_server_cert(
        self,
        ca_cert: x509.Certificate,
        ca_key: rsa.RSAPrivateKey,
        common_name: str,
        san_dns: Iterable[str] = (),
        san_ips: Iterable[str] = (),
        validity_days: int = None,
    ) -> Tuple[x509.Certificate, rsa.RSAPrivateKey]:
        """Generate a serving certificate signed by the CA.

        Args:
            ca_cert: CA certificate
            ca_key: CA private key
            common_name: Server common name
            san_dns: DNS SANs
            san_ips: IP SANs
            validity_days: Certificate validity in days

        Returns:
            Tuple of (certificate, private_key)

        Raises:
            ServerKeyPairError: If key generation, an IP SAN, or signing fails
        """
        validity_days = validity_days or self.DEFAULT_CERT_VALIDITY_DAYS

        try:
            key = self._generate_private_key()

            # Duplicates are dropped, order kept
            san_list = [x509.DNSName(dns) for dns in dict.fromkeys(san_dns)]
            san_list.extend(x509.IPAddress(ip_address(ip)) for ip in dict.fromkeys(san_ips))
            if not san_list:
                san_list.append(x509.DNSName(common_name))

            now = datetime.now(timezone.utc)
            cert = (
                x509.CertificateBuilder()
                .subject_name(x509.Name([
                    x509.NameAttribute(NameOID.COMMON_NAME, common_name),
                ]))
                .issuer_name(ca_cert.subject)
                .public_key(key.public_key())
                .serial_number(x509.random_serial_number())
                .not_valid_before(now)
                .not_valid_after(now + timedelta(days=validity_days))
                .add_extension(
                    x509.BasicConstraints(ca=False, path_length=None),
                    critical=True,
                )
                .add_extension(
                    x509.KeyUsage(
                        digital_signature=True,
                        key_encipherment=True,
                        key_cert_sign=False,
                        crl_sign=False,
                        content_commitment=False,
                        data_encipherment=False,
                        key_agreement=False,
                        encipher_only=False,
                        decipher_only=False,
                    ),
                    critical=True,
                )
                .add_extension(
                    x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
                    critical=False,
                )
                .add_extension(
                    x509.SubjectAlternativeName(san_list),
                    critical=False,
                )
                .add_extension(
                    x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
                    critical=False,
                )
                .sign(ca_key, hashes.SHA256())
            )
        except _KEYGEN_ERRORS as e:
            raise ServerKeyPairError(f"failed to create apiserver key pair: {e}") from e

        return cert, key

    def issue_server_certificate(
        self,
        service_name: str,
        namespace: str,
        cluster_domain: str = DEFAULT_CLUSTER_DOMAIN,
        extra_dns_names: Iterable[str] = (),
        extra_ips: Iterable[str] = (),
    ) -> EncodedCertificateBundle:
        """Issue a fresh CA and serving certificate for a service.

        Args:
            service_name: Name of the Kubernetes service
            namespace: Namespace of the service
            cluster_domain: Cluster DNS domain
            extra_dns_names: Additional DNS SANs
            extra_ips: Additional IP SANs

        Returns:
            The encoded CA bundle, server certificate and server key
        """
        ca_cert, ca_key = self.generate_ca(f"{service_name}-certificate-authority")

        san_dns = service_dns_names(service_name, namespace, cluster_domain)
        san_dns.extend(extra_dns_names)

        server_cert, server_key = self.generate_server_cert(
            ca_cert=ca_cert,
            ca_key=ca_key,
            common_name=f"{service_name}.{namespace}.svc",
            san_dns=san_dns,
            san_ips=extra_ips,
        )

        return EncodedCertificateBundle(
            ca_bundle=self._b64(self._cert_to_pem(ca_cert)),
            tls_crt=self._b64(self._cert_to_pem(server_cert)),
            tls_key=self._b64(self._key_to_pem(server_key)),
        )


def issue_server_certificate(
    service_name: str,
    namespace: str,
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN,
    extra_dns_names: Iterable[str] = (),
    extra_ips: Iterable[str] = (),
) -> EncodedCertificateBundle:
    """Issue certificates with a default CertificateIssuer."""
    return CertificateIssuer().issue_server_certificate(
        service_name,
        namespace,
        cluster_domain=cluster_domain,
        extra_dns_names=extra_dns_names,
        extra_ips=extra_ips,
    )
