"""TLS certificate provisioning.

This module decides the certificate scope for an ingress host and, when
asked to, generates a self-signed key pair with openssl in the scratch area.
"""

import contextlib
from pathlib import Path

from cde_utils import console
from cde_utils.exceptions import ValidationError
from cde_utils.models import CertificatePair, CertificateSource
from cde_utils.shell import run_command

# Names at or above this length get a wildcard certificate instead
MAX_DOMAIN_LENGTH = 64

KEY_SIZE = 2048
VALIDITY_DAYS = 365

KEY_FILE = "ssl.key"
CERT_FILE = "ssl.crt"
_CSR_FILE = "ssl.csr"
_CONF_FILE = "req.conf"

_REQ_CONF = """[req]
distinguished_name = req_distinguished_name
req_extensions = v3_req

prompt = no
[req_distinguished_name]
CN = {domain}
[v3_req]
keyUsage = nonRepudiation, digitalSignature, keyEncipherment
extendedKeyUsage = serverAuth
subjectAltName = @alt_names
[alt_names]
DNS.1 = {domain}
"""


def certificate_domain(fqdn: str) -> str:
    """Pick the certificate subject for a host.

    Short names are used as-is. Longer ones would exceed CA limits, so the
    leading cluster-id label is swapped for ``*``.

    Args:
        fqdn: The ingress host.

    Returns:
        The host itself, or its wildcard form.

    """
    if len(fqdn) < MAX_DOMAIN_LENGTH:
        console.info(f"Using the domain name as-is: {console.highlight(fqdn)}")
        return fqdn

    cluster_id = fqdn.split(".", 1)[0]
    domain = "*" + fqdn[len(cluster_id) :]
    console.info(f"Domain name is too long, generating wildcard certificate with the domain: {console.highlight(domain)}")
    return domain


class CertificateProvisioner:
    """Supplies the TLS key pair for an ingress.

    Attributes:
        scratch_dir: Scratch area; certificates go to ``<scratch_dir>/certs``.
        openssl: openssl executable.

    """

    def __init__(self, scratch_dir: Path, openssl: str = "openssl") -> None:
        self.scratch_dir = scratch_dir
        self.openssl = openssl

    @property
    def cert_dir(self) -> Path:
        """Directory holding generated certificates."""
        return self.scratch_dir / "certs"

    def generate(self, fqdn: str) -> CertificatePair:
        """Generate a self-signed RSA certificate for a host.

        The request config and CSR are removed afterwards; the key and
        certificate stay in the scratch area for the caller.

        Args:
            fqdn: The ingress host.

        Returns:
            CertificatePair pointing at the generated files.

        Raises:
            ExternalCommandError: If openssl fails.

        """
        domain = certificate_domain(fqdn)
        self.cert_dir.mkdir(parents=True, exist_ok=True)

        conf = self.cert_dir / _CONF_FILE
        csr = self.cert_dir / _CSR_FILE
        key = self.cert_dir / KEY_FILE
        cert = self.cert_dir / CERT_FILE

        conf.write_text(_REQ_CONF.format(domain=domain))
        try:
            with console.spinner("Generating self-signed certificate..."):
                run_command(
                    [
                        self.openssl, "req", "-new",
                        "-newkey", f"RSA:{KEY_SIZE}", "-nodes",
                        "-keyout", str(key), "-out", str(csr),
                        "-extensions", "v3_req", "-config", str(conf),
                    ]
                )
                run_command(
                    [
                        self.openssl, "x509", "-req",
                        "-days", str(VALIDITY_DAYS),
                        "-in", str(csr), "-signkey", str(key), "-out", str(cert),
                        "-extensions", "v3_req", "-extfile", str(conf),
                    ]
                )
        finally:
            for intermediate in (conf, csr):
                with contextlib.suppress(OSError):
                    intermediate.unlink(missing_ok=True)

        console.success(f"Generated certificate {console.highlight(str(cert))}")
        return CertificatePair(cert_path=cert, key_path=key, generated=True)

    def resolve(self, source: CertificateSource, fqdn: str) -> CertificatePair:
        """Return operator-supplied material, or generate it.

        Args:
            source: Where the material comes from.
            fqdn: Host the certificate is for (used when generating).

        Returns:
            The certificate pair to use.

        Raises:
            ValidationError: If a supplied file does not exist.

        """
        if source.auto_generate:
            return self.generate(fqdn)

        cert_path, key_path = source.cert_path, source.key_path
        if cert_path is None or not cert_path.is_file():
            raise ValidationError(f"No cert file found at location: {cert_path}")
        if key_path is None or not key_path.is_file():
            raise ValidationError(f"No key file found at location: {key_path}")
        return CertificatePair(cert_path=cert_path, key_path=key_path)
