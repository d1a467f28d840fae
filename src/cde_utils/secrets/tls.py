"""TLS secret creation.

The secret is rendered locally with ``kubectl create --dry-run=client`` and
then applied, so re-running replaces the previous certificate (last write
wins) instead of failing on an existing secret.
"""

from cde_utils import console
from cde_utils.exceptions import ValidationError
from cde_utils.kubectl import Kubectl
from cde_utils.models import CertificatePair


def apply_tls_secret(kubectl: Kubectl, name: str, namespace: str, certificates: CertificatePair) -> None:
    """Create or replace a ``tls`` secret from a certificate pair.

    Args:
        kubectl: kubectl wrapper.
        name: Secret name.
        namespace: Target namespace.
        certificates: Certificate and key files.

    Raises:
        ValidationError: If the certificate or key file does not exist.
        RemoteRejectedError: If the API server refuses the secret.

    """
    missing_files = [str(path) for path in (certificates.cert_path, certificates.key_path) if not path.is_file()]
    if missing_files:
        raise ValidationError(f"Required TLS file(s) not found: {', '.join(missing_files)}")

    console.step(f"Creating secret {console.highlight(name)} out of TLS certs")
    manifest = kubectl.render_tls_secret(name, namespace, certificates.cert_path, certificates.key_path)
    kubectl.apply(manifest, namespace=namespace)
