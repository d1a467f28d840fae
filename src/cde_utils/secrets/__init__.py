"""Secrets management subpackage.

This package contains modules for certificate provisioning, TLS secrets
and Kerberos credential secrets.
"""

from cde_utils.secrets.certificates import CertificateProvisioner, certificate_domain
from cde_utils.secrets.kerberos import (
    KerberosSecretNames,
    delete_user_secrets,
    encode_username,
    kerberos_secret_names,
    provision_user_secrets,
)
from cde_utils.secrets.tls import apply_tls_secret

__all__ = [
    # certificates
    "CertificateProvisioner",
    "certificate_domain",
    # tls
    "apply_tls_secret",
    # kerberos
    "KerberosSecretNames",
    "encode_username",
    "kerberos_secret_names",
    "provision_user_secrets",
    "delete_user_secrets",
]
