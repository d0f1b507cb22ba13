"""Cert-manager resource manager.

Creates, reads and deletes Issuers, ClusterIssuers and CertificateRequests
through the Kubernetes ``CustomObjectsApi``. This is the read accessor the
condition waiter polls and the source of the issued artifacts.
"""

from __future__ import annotations

import base64
from typing import Any

from issuance_verifier.integrations.kubernetes.exceptions import (
    IssuanceArtifactError,
    KubernetesNotFoundError,
)
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    CERT_MANAGER_GROUP,
    CERT_MANAGER_VERSION,
    IssuancePayload,
    ObservedStatus,
    ResourceKind,
    ResourceRef,
    issuer_ref_dict,
)
from issuance_verifier.services.kubernetes.base import K8sBaseManager

# Key usages requested when the caller does not list any; cert-manager's own default
DEFAULT_USAGES = ("digital signature", "key encipherment")


class CertManagerManager(K8sBaseManager):
    """Manager for cert-manager resources.

    ``read_status`` performs exactly one GET per call and never retries; a
    404 is reported as a snapshot with ``exists=False`` rather than raised.
    Writes and artifact fetches go through the client's retry decorator.
    """

    _entity_name = "certmanager"

    # =========================================================================
    # Reads
    # =========================================================================

    def _get_object(self, ref: ResourceRef) -> dict[str, Any]:
        """GET the raw CRD object for ``ref``."""
        api = self._client.custom_objects
        try:
            if ref.kind.namespaced:
                result: dict[str, Any] = api.get_namespaced_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    ref.namespace,
                    ref.kind.plural,
                    ref.name,
                    _request_timeout=self._client.request_timeout,
                )
            else:
                result = api.get_cluster_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    ref.kind.plural,
                    ref.name,
                    _request_timeout=self._client.request_timeout,
                )
            return result
        except Exception as e:
            self._handle_api_error(e, ref.kind.value, ref.name, ref.namespace or None)

    def read_status(self, ref: ResourceRef) -> ObservedStatus:
        """Read the current status conditions of a resource.

        Args:
            ref: Resource to read.

        Returns:
            A fresh snapshot; ``exists`` is False if the resource is absent.

        Raises:
            KubernetesError: For any failure other than not-found.
        """
        try:
            obj = self._get_object(ref)
        except KubernetesNotFoundError:
            self._log.debug("read_status_not_found", ref=str(ref))
            return ObservedStatus.not_found()
        status = ObservedStatus.from_k8s_object(obj)
        self._log.debug(
            "read_status",
            ref=str(ref),
            revision=status.revision,
            conditions=[c.describe() for c in status.conditions],
        )
        return status

    def fetch_issued_artifact(self, ref: ResourceRef) -> IssuancePayload:
        """Fetch the signed certificate, CA and original CSR of a request.

        Args:
            ref: A CertificateRequest reference.

        Returns:
            Decoded PEM artifacts.

        Raises:
            ValueError: If ``ref`` is not a CertificateRequest.
            IssuanceArtifactError: If no certificate has been issued yet.
            KubernetesError: If the read fails.
        """
        if ref.kind is not ResourceKind.CERTIFICATE_REQUEST:
            raise ValueError(f"cannot fetch issued artifacts from {ref.kind.value}")

        retry_decorator = self._client.make_retry_decorator()
        obj = retry_decorator(self._get_object)(ref)
        try:
            payload = IssuancePayload.from_k8s_object(obj)
        except ValueError as e:
            raise IssuanceArtifactError(str(e), resource_name=ref.name, namespace=ref.namespace) from e
        if not payload.certificate_pem:
            raise IssuanceArtifactError(resource_name=ref.name, namespace=ref.namespace)

        self._log.info(
            "fetched_issued_artifact",
            ref=str(ref),
            has_ca=payload.ca_bundle_pem is not None,
        )
        return payload

    # =========================================================================
    # Writes
    # =========================================================================

    def _create_object(self, kind: ResourceKind, namespace: str, body: dict[str, Any]) -> None:
        api = self._client.custom_objects
        name = body["metadata"]["name"]
        try:
            if kind.namespaced:
                api.create_namespaced_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    namespace,
                    kind.plural,
                    body,
                    _request_timeout=self._client.request_timeout,
                )
            else:
                api.create_cluster_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    kind.plural,
                    body,
                    _request_timeout=self._client.request_timeout,
                )
        except Exception as e:
            self._handle_api_error(e, kind.value, name, namespace or None)

    def create_issuer(
        self,
        name: str,
        namespace: str | None = None,
        *,
        spec: dict[str, Any],
        cluster_scoped: bool = False,
        labels: dict[str, str] | None = None,
    ) -> ResourceRef:
        """Create an Issuer or ClusterIssuer.

        Args:
            name: Issuer name.
            namespace: Target namespace (ignored for ClusterIssuers).
            spec: Issuer spec, e.g. ``{"selfSigned": {}}`` or ``{"ca": {...}}``.
            cluster_scoped: Create a ClusterIssuer instead of an Issuer.
            labels: Optional labels.

        Returns:
            Reference to the created issuer.
        """
        kind = ResourceKind.CLUSTER_ISSUER if cluster_scoped else ResourceKind.ISSUER
        ns = "" if cluster_scoped else self._resolve_namespace(namespace)
        self._log.debug("creating_issuer", name=name, namespace=ns, kind=kind.value)

        metadata: dict[str, Any] = {"name": name, "labels": labels or {}}
        if ns:
            metadata["namespace"] = ns
        body: dict[str, Any] = {
            "apiVersion": f"{CERT_MANAGER_GROUP}/{CERT_MANAGER_VERSION}",
            "kind": kind.value,
            "metadata": metadata,
            "spec": spec,
        }

        retry_decorator = self._client.make_retry_decorator()
        retry_decorator(self._create_object)(kind, ns, body)
        self._log.info("created_issuer", name=name, namespace=ns, kind=kind.value)
        return ResourceRef(name=name, namespace=ns, kind=kind)

    def create_certificate_request(
        self,
        name: str,
        namespace: str | None = None,
        *,
        csr_pem: bytes,
        issuer: ResourceRef,
        usages: list[str] | None = None,
        duration: str | None = None,
        is_ca: bool = False,
        labels: dict[str, str] | None = None,
    ) -> ResourceRef:
        """Create a CertificateRequest for a PEM CSR.

        Args:
            name: CertificateRequest name.
            namespace: Target namespace.
            csr_pem: PEM encoded certificate signing request.
            issuer: Issuer or ClusterIssuer that should sign it.
            usages: Requested key usages, DEFAULT_USAGES when omitted.
            duration: Requested validity (e.g. ``2160h``).
            is_ca: Request a CA certificate.
            labels: Optional labels.

        Returns:
            Reference to the created request.
        """
        if issuer.kind is ResourceKind.CERTIFICATE_REQUEST:
            raise ValueError("issuer must be an Issuer or ClusterIssuer")

        ns = self._resolve_namespace(namespace)
        self._log.debug("creating_certificate_request", name=name, namespace=ns, issuer=str(issuer))

        spec: dict[str, Any] = {
            "request": base64.b64encode(csr_pem).decode("ascii"),
            "issuerRef": issuer_ref_dict(issuer),
            "isCA": is_ca,
            "usages": list(usages or DEFAULT_USAGES),
        }
        if duration:
            spec["duration"] = duration

        body: dict[str, Any] = {
            "apiVersion": f"{CERT_MANAGER_GROUP}/{CERT_MANAGER_VERSION}",
            "kind": ResourceKind.CERTIFICATE_REQUEST.value,
            "metadata": {
                "name": name,
                "namespace": ns,
                "labels": labels or {},
            },
            "spec": spec,
        }

        retry_decorator = self._client.make_retry_decorator()
        retry_decorator(self._create_object)(ResourceKind.CERTIFICATE_REQUEST, ns, body)
        self._log.info("created_certificate_request", name=name, namespace=ns)
        return ResourceRef(name=name, namespace=ns, kind=ResourceKind.CERTIFICATE_REQUEST)

    def delete_resource(self, ref: ResourceRef, *, missing_ok: bool = True) -> None:
        """Delete a resource.

        Args:
            ref: Resource to delete.
            missing_ok: Treat an already deleted resource as success.
        """
        self._log.debug("deleting_resource", ref=str(ref))
        api = self._client.custom_objects
        try:
            if ref.kind.namespaced:
                api.delete_namespaced_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    ref.namespace,
                    ref.kind.plural,
                    ref.name,
                    _request_timeout=self._client.request_timeout,
                )
            else:
                api.delete_cluster_custom_object(
                    CERT_MANAGER_GROUP,
                    CERT_MANAGER_VERSION,
                    ref.kind.plural,
                    ref.name,
                    _request_timeout=self._client.request_timeout,
                )
        except Exception as e:
            try:
                self._handle_api_error(e, ref.kind.value, ref.name, ref.namespace or None)
            except KubernetesNotFoundError:
                if not missing_ok:
                    raise
                self._log.debug("delete_skipped_missing", ref=str(ref))
                return
        self._log.info("deleted_resource", ref=str(ref))
