"""Shared pytest fixtures for issuance_verifier tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog
import typer
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes
from cryptography.x509.oid import NameOID
from typer.testing import CliRunner

from issuance_verifier.cli.main import app

CertFactory = Callable[..., x509.Certificate]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    # Clear any IV_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("IV_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def quiet_structlog() -> Generator[None]:
    """Keep structlog output out of captured CLI output."""
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Fixture to capture log output."""
    import logging

    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


# =============================================================================
# PKI fixtures
# =============================================================================


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """A 2048-bit RSA key, generated once per session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    """A second RSA key that never matches ``rsa_key``."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ca_key() -> ec.EllipticCurvePrivateKey:
    """Key of the test CA."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def make_cert() -> CertFactory:
    """Factory for test certificates.

    Keyword arguments: ``key`` (subject key), ``issuer_key`` and
    ``issuer_cert`` (defaults to self-signed), ``common_name``,
    ``dns_names``, ``is_ca``, ``path_length``, ``key_cert_sign`` (adds a
    KeyUsage extension when not None), ``not_before`` and ``not_after``.
    """

    def _make(
        key: CertificateIssuerPrivateKeyTypes,
        *,
        issuer_key: CertificateIssuerPrivateKeyTypes | None = None,
        issuer_cert: x509.Certificate | None = None,
        common_name: str | None = "foo.example",
        dns_names: tuple[str, ...] = ("foo.example",),
        is_ca: bool = False,
        path_length: int | None = None,
        key_cert_sign: bool | None = None,
        not_before: datetime | None = None,
        not_after: datetime | None = None,
    ) -> x509.Certificate:
        now = datetime.now(UTC)
        subject = x509.Name(
            [x509.NameAttribute(NameOID.COMMON_NAME, common_name)] if common_name else []
        )
        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer_cert.subject if issuer_cert else subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before or now - timedelta(minutes=5))
            .not_valid_after(not_after or now + timedelta(days=90))
            .add_extension(x509.BasicConstraints(ca=is_ca, path_length=path_length), critical=True)
        )
        if key_cert_sign is not None:
            builder = builder.add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=key_cert_sign,
                    crl_sign=key_cert_sign,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
        if dns_names:
            builder = builder.add_extension(
                x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names]),
                critical=False,
            )
        return builder.sign(issuer_key or key, hashes.SHA256())

    return _make


@pytest.fixture
def ca_cert(ca_key: ec.EllipticCurvePrivateKey, make_cert: CertFactory) -> x509.Certificate:
    """Self-signed test CA certificate."""
    return make_cert(ca_key, common_name="Test Root CA", dns_names=(), is_ca=True)
