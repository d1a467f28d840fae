"""Ingress TLS reconciliation.

Binds a TLS secret to a virtual cluster ingress: the secret is (re)applied
every time, the ingress is only patched when no TLS entry already pairs
that secret with that host.
"""

import json

from cde_utils import console
from cde_utils.guards import ingress_has_tls_binding, load_resource
from cde_utils.kubectl import Kubectl
from cde_utils.models import CertificateSource, IngressBinding, ResourceRef
from cde_utils.patching import InsertBeforeAnchor, ResourcePatcher
from cde_utils.secrets.certificates import CertificateProvisioner
from cde_utils.secrets.tls import apply_tls_secret

# Top-level key that follows spec in kubectl's YAML output
_STATUS_ANCHOR = r"^status:"
_TLS_SCOPE = r"^\s+tls:\s*$"
_LIST_ITEM_ANCHOR = r"^\s*- "


def tls_block_transform(current: str, binding: IngressBinding) -> InsertBeforeAnchor:
    """Build the insertion that adds ``binding`` to an ingress's TLS section.

    A new ``tls`` section is placed at the end of ``spec`` (right before
    ``status``); an existing section gets the new entry prepended.

    Args:
        current: The ingress as fetched.
        binding: Secret and hosts to add.

    Returns:
        The transform to apply.

    """
    hosts = [f"  - {json.dumps(host)}" for host in binding.hosts]
    entry = ("- hosts:", *hosts, f"  secretName: {binding.secret_name}")

    spec = load_resource(current).get("spec") or {}
    if spec.get("tls"):
        return InsertBeforeAnchor(anchor=_LIST_ITEM_ANCHOR, lines=entry, scope=_TLS_SCOPE)
    return InsertBeforeAnchor(anchor=_STATUS_ANCHOR, lines=("  tls:", *(f"  {line}" for line in entry)))


class IngressTlsReconciler:
    """Applies TLS secrets and binds them to ingresses.

    Attributes:
        kubectl: kubectl wrapper.
        patcher: Resource patcher sharing the same kubectl.
        provisioner: Source of certificate material.

    """

    def __init__(self, kubectl: Kubectl, patcher: ResourcePatcher, provisioner: CertificateProvisioner) -> None:
        self.kubectl = kubectl
        self.patcher = patcher
        self.provisioner = provisioner

    def reconcile(self, binding: IngressBinding, source: CertificateSource, *, wildcard: bool = False) -> bool:
        """Make ``binding`` effective on its ingress.

        Args:
            binding: Ingress, secret and hosts.
            source: Operator-supplied or auto-generated certificates.
            wildcard: Shared wildcard certificate; the ingress is left untouched.

        Returns:
            True if the ingress was patched.

        Raises:
            ValidationError: If supplied certificate files are missing.
            ResourceNotFoundError: If the ingress does not exist.
            MalformedResourceError: If the ingress has no insertion anchor.

        """
        console.action(
            f"Setting up TLS for {console.highlight(binding.ingress_name)} in {console.highlight(binding.namespace)}"
        )
        certificates = self.provisioner.resolve(source, binding.host)
        apply_tls_secret(self.kubectl, binding.secret_name, binding.namespace, certificates)

        console.step("Checking if the ingress was already fixed before")
        ref = ResourceRef(kind="ingress", name=binding.ingress_name, namespace=binding.namespace)
        current = self.patcher.fetch(ref)
        if ingress_has_tls_binding(current, binding.secret_name, binding.host):
            console.success(
                f"Ingress {console.highlight(binding.ingress_name)} patched already with the updated tls secret"
            )
            return False

        if wildcard:
            console.info("Not editing ingress because of wildcard certificate feature")
            return False

        console.step("Ingress not already fixed, injecting TLS secret")
        self.patcher.patch(ref, tls_block_transform(current, binding))
        console.success(f"Bound {console.highlight(binding.secret_name)} to {console.highlight(binding.host)}")
        return True
