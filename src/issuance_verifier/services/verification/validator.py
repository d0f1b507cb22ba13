"""Cross-validation of an issued certificate, its key, and its request.

Every check runs even when an earlier one fails, so a single call reports
every defect. Only an unparseable leaf certificate stops validation early;
malformed extensions or keys are reported as errors rather than raised.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

import structlog
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.x509.oid import NameOID

from issuance_verifier.integrations.kubernetes.models.certmanager import IssuancePayload
from issuance_verifier.services.verification.models import ValidationResult
from issuance_verifier.utils.pki import load_certificates, public_keys_equal

logger = structlog.get_logger()


def normalize_dns_name(name: str) -> str:
    """Lowercase and drop the trailing root dot."""
    return name.strip().rstrip(".").lower()


def certificate_names(cert: x509.Certificate) -> set[str]:
    """Return the normalized CommonName and DNS SANs of a certificate.

    Raises:
        ValueError: If the certificate's extensions cannot be parsed.
    """
    names: set[str] = set()
    for attribute in cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME):
        value = attribute.value
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        names.add(normalize_dns_name(value))
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return names
    names.update(normalize_dns_name(name) for name in san.get_values_for_type(x509.DNSName))
    return names


def _issued_by(child: x509.Certificate, parent: x509.Certificate) -> bool:
    try:
        child.verify_directly_issued_by(parent)
    except (ValueError, TypeError, InvalidSignature):
        return False
    return True


def _issuer_defect(parent: x509.Certificate, intermediates_below: int) -> str | None:
    """Return why ``parent`` may not sign certificates, or None if it may.

    ``intermediates_below`` counts the CA certificates between ``parent``
    and the leaf, which ``path_length`` limits.
    """
    try:
        constraints = parent.extensions.get_extension_for_class(x509.BasicConstraints).value
    except x509.ExtensionNotFound:
        return "has no BasicConstraints extension"
    except ValueError as e:
        return f"has unparseable extensions: {e}"
    if not constraints.ca:
        return "is not a CA (BasicConstraints ca=False)"
    if constraints.path_length is not None and intermediates_below > constraints.path_length:
        return (
            f"allows {constraints.path_length} intermediate(s) below it "
            f"but {intermediates_below} are present"
        )
    try:
        usage = parent.extensions.get_extension_for_class(x509.KeyUsage).value
    except x509.ExtensionNotFound:
        return None
    if not usage.key_cert_sign:
        return "lacks the keyCertSign key usage"
    return None


def _subject(cert: x509.Certificate) -> str:
    return cert.subject.rfc4514_string() or "<empty subject>"


class IssuanceValidator:
    """Validates issued certificates against what was requested.

    Args:
        now: Clock used for validity-period checks.
    """

    def __init__(self, *, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(UTC))

    def validate(
        self,
        payload: IssuancePayload,
        expected_key: PrivateKeyTypes,
        requested_names: Iterable[str],
        trust_bundle: Sequence[x509.Certificate] | None = None,
    ) -> ValidationResult:
        """Validate an issued certificate.

        Args:
            payload: Issued artifacts. The first PEM block of
                ``certificate_pem`` is the leaf; further blocks and
                ``ca_bundle_pem`` are candidate intermediates.
            expected_key: Private key the certificate should certify.
            requested_names: DNS names (and CN) that were requested.
            trust_bundle: Anchors the chain must reach. The chain check is
                skipped when None.

        Returns:
            A complete ValidationResult; defects are reported, not raised.
        """
        errors: list[str] = []
        requested = {normalize_dns_name(name) for name in requested_names}
        now = self._now()

        try:
            certs = load_certificates(payload.certificate_pem)
        except ValueError as e:
            errors.append(f"certificate could not be parsed: {e}")
            result = ValidationResult(
                key_matches=False,
                names_match=False,
                chain_valid=False if trust_bundle is not None else None,
                request_matches=False if payload.csr_pem is not None else None,
                errors=tuple(errors),
            )
            logger.warning("validation_completed", ok=False, errors=list(result.errors))
            return result

        leaf, chain = certs[0], certs[1:]

        try:
            key_matches = public_keys_equal(leaf.public_key(), expected_key.public_key())
            if not key_matches:
                errors.append("certificate public key does not match the private key")
        except (ValueError, UnsupportedAlgorithm) as e:
            key_matches = False
            errors.append(f"certificate public key could not be loaded: {e}")

        names_match = self._check_names(leaf, requested, errors)

        chain_valid: bool | None = None
        if trust_bundle is not None:
            intermediates = list(chain)
            if payload.ca_bundle_pem:
                try:
                    intermediates.extend(load_certificates(payload.ca_bundle_pem))
                except ValueError as e:
                    errors.append(f"CA bundle could not be parsed: {e}")
            chain_valid = self._check_chain(leaf, intermediates, trust_bundle, now, errors)

        request_matches: bool | None = None
        if payload.csr_pem is not None:
            request_matches = self._check_request(leaf, payload.csr_pem, errors)

        result = ValidationResult(
            key_matches=key_matches,
            names_match=names_match,
            chain_valid=chain_valid,
            request_matches=request_matches,
            errors=tuple(errors),
        )
        logger.info(
            "validation_completed",
            ok=result.ok,
            subject=_subject(leaf),
            errors=list(result.errors),
        )
        return result

    @staticmethod
    def _check_names(leaf: x509.Certificate, requested: set[str], errors: list[str]) -> bool:
        try:
            issued = certificate_names(leaf)
        except ValueError as e:
            errors.append(f"certificate extensions could not be parsed: {e}")
            return False
        if issued == requested:
            return True
        unexpected = sorted(issued - requested)
        missing = sorted(requested - issued)
        if unexpected:
            errors.append(f"certificate carries names that were not requested: {', '.join(unexpected)}")
        if missing:
            errors.append(f"certificate is missing requested names: {', '.join(missing)}")
        return False

    @staticmethod
    def _check_validity(cert: x509.Certificate, now: datetime, errors: list[str]) -> bool:
        if now < cert.not_valid_before_utc:
            errors.append(
                f"certificate {_subject(cert)} is not valid before "
                f"{cert.not_valid_before_utc.isoformat()}"
            )
            return False
        if now > cert.not_valid_after_utc:
            errors.append(
                f"certificate {_subject(cert)} expired at {cert.not_valid_after_utc.isoformat()}"
            )
            return False
        return True

    def _check_chain(
        self,
        leaf: x509.Certificate,
        intermediates: list[x509.Certificate],
        anchors: Sequence[x509.Certificate],
        now: datetime,
        errors: list[str],
    ) -> bool:
        rejected: list[str] = []
        path = self._build_path(leaf, intermediates, anchors, rejected)
        if path is None:
            errors.append("certificate does not chain to any certificate in the trust bundle")
            errors.extend(dict.fromkeys(rejected))
            return False
        valid = True
        for cert in path:
            valid = self._check_validity(cert, now, errors) and valid
        return valid

    @staticmethod
    def _build_path(
        leaf: x509.Certificate,
        intermediates: list[x509.Certificate],
        anchors: Sequence[x509.Certificate],
        rejected: list[str],
    ) -> list[x509.Certificate] | None:
        """Depth-first search for leaf -> intermediates* -> anchor.

        Only CA certificates may act as issuers. Signers that fail that test
        are described in ``rejected``.
        """
        anchor_fingerprints = {anchor.fingerprint(hashes.SHA256()) for anchor in anchors}
        if leaf.fingerprint(hashes.SHA256()) in anchor_fingerprints:
            return [leaf]

        def may_issue(child: x509.Certificate, parent: x509.Certificate, below: int) -> bool:
            if not _issued_by(child, parent):
                return False
            defect = _issuer_defect(parent, below)
            if defect is not None:
                rejected.append(f"issuer {_subject(parent)} of {_subject(child)} {defect}")
                return False
            return True

        def extend(path: list[x509.Certificate]) -> list[x509.Certificate] | None:
            current = path[-1]
            below = len(path) - 1
            for anchor in anchors:
                if may_issue(current, anchor, below):
                    return [*path, anchor]
            for candidate in intermediates:
                if candidate in path or not may_issue(current, candidate, below):
                    continue
                found = extend([*path, candidate])
                if found is not None:
                    return found
            return None

        return extend([leaf])

    @staticmethod
    def _check_request(leaf: x509.Certificate, csr_pem: bytes, errors: list[str]) -> bool:
        try:
            csr = x509.load_pem_x509_csr(csr_pem)
        except ValueError as e:
            errors.append(f"certificate request could not be parsed: {e}")
            return False
        matches = True
        try:
            if not csr.is_signature_valid:
                errors.append("certificate request signature is invalid")
                matches = False
            if not public_keys_equal(leaf.public_key(), csr.public_key()):
                errors.append("certificate public key does not match the certificate request")
                matches = False
        except (ValueError, UnsupportedAlgorithm) as e:
            errors.append(f"certificate request could not be checked: {e}")
            return False
        return matches
