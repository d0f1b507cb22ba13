"""Key, CSR and certificate helpers built on ``cryptography``."""

from __future__ import annotations

import secrets
import string
from collections.abc import Iterable
from enum import Enum

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import (
    CertificateIssuerPrivateKeyTypes,
    PrivateKeyTypes,
    PublicKeyTypes,
)
from cryptography.x509.oid import NameOID

DEFAULT_RSA_KEY_SIZE = 2048


class KeyAlgorithm(str, Enum):
    """Private key algorithms a CSR can be generated with."""

    RSA = "rsa"
    ECDSA = "ecdsa"
    ED25519 = "ed25519"


def generate_private_key(
    algorithm: KeyAlgorithm = KeyAlgorithm.RSA,
    *,
    rsa_key_size: int = DEFAULT_RSA_KEY_SIZE,
) -> CertificateIssuerPrivateKeyTypes:
    """Generate a fresh private key.

    ECDSA keys use P-256, matching cert-manager's default for that algorithm.
    """
    if algorithm is KeyAlgorithm.RSA:
        return rsa.generate_private_key(public_exponent=65537, key_size=rsa_key_size)
    if algorithm is KeyAlgorithm.ECDSA:
        return ec.generate_private_key(ec.SECP256R1())
    return ed25519.Ed25519PrivateKey.generate()


def _signing_hash(key: CertificateIssuerPrivateKeyTypes) -> hashes.HashAlgorithm | None:
    # EdDSA signs the message directly
    if isinstance(key, ed25519.Ed25519PrivateKey | ed448.Ed448PrivateKey):
        return None
    return hashes.SHA256()


def build_csr(
    key: CertificateIssuerPrivateKeyTypes,
    *,
    common_name: str | None = None,
    dns_names: Iterable[str] = (),
) -> bytes:
    """Build and sign a PEM certificate signing request.

    Args:
        key: Private key the CSR is signed with.
        common_name: Subject CN, omitted when None.
        dns_names: DNS Subject Alternative Names.

    Returns:
        The PEM encoded CSR.
    """
    subject = x509.Name(
        [x509.NameAttribute(NameOID.COMMON_NAME, common_name)] if common_name else []
    )
    builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
    names = [x509.DNSName(name) for name in dns_names]
    if names:
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)
    csr = builder.sign(key, _signing_hash(key))
    return csr.public_bytes(serialization.Encoding.PEM)


def private_key_to_pem(key: PrivateKeyTypes) -> bytes:
    """Serialize a private key as unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def load_private_key(data: bytes, password: bytes | None = None) -> PrivateKeyTypes:
    """Load a PEM private key (PKCS#1, SEC1 or PKCS#8).

    Raises:
        ValueError: If the data is not a parseable private key.
    """
    return serialization.load_pem_private_key(data, password=password)


def load_certificates(data: bytes) -> list[x509.Certificate]:
    """Load every certificate of a PEM bundle, in file order.

    Raises:
        ValueError: If the data holds no parseable certificate.
    """
    return x509.load_pem_x509_certificates(data)


def public_keys_equal(a: PublicKeyTypes, b: PublicKeyTypes) -> bool:
    """Compare two public keys by their mathematical value.

    Encodings of equal keys can differ (PKCS#1 vs SubjectPublicKeyInfo, PEM
    vs DER), so the comparison uses the key's own parameters: modulus and
    exponent for RSA, curve and point for EC, raw bytes for EdDSA.
    """
    if isinstance(a, rsa.RSAPublicKey) and isinstance(b, rsa.RSAPublicKey):
        return a.public_numbers() == b.public_numbers()
    if isinstance(a, ec.EllipticCurvePublicKey) and isinstance(b, ec.EllipticCurvePublicKey):
        return a.curve.name == b.curve.name and a.public_numbers() == b.public_numbers()
    if isinstance(a, ed25519.Ed25519PublicKey) and isinstance(b, ed25519.Ed25519PublicKey):
        return a.public_bytes_raw() == b.public_bytes_raw()
    if isinstance(a, ed448.Ed448PublicKey) and isinstance(b, ed448.Ed448PublicKey):
        return a.public_bytes_raw() == b.public_bytes_raw()
    return False


def random_dns_label(length: int = 10) -> str:
    """Random lowercase alphanumeric DNS label for throwaway test names."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
