"""Shared fixtures for unit tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from serving_cert_keystore_operator.config import OperatorConfig, set_config

CERT_SERIAL = 0x5EED1234
CERT_COMMON_NAME = "svc-a.default.svc"


@pytest.fixture(autouse=True)
def operator_config():
    """Use a config with no effective rate limiting for every test."""
    config = OperatorConfig(k8s_rate_limit_per_second=100000.0, retry_delay_seconds=5.0)
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """Generate an RSA key once per test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def certificate(rsa_key: rsa.RSAPrivateKey) -> x509.Certificate:
    """Self-signed serving certificate with a known serial and subject."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, CERT_COMMON_NAME)])
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(rsa_key.public_key())
        .serial_number(CERT_SERIAL)
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=30))
        .sign(rsa_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def cert_pem(certificate: x509.Certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope="session")
def key_pem(rsa_key: rsa.RSAPrivateKey) -> bytes:
    """RSA key as a PKCS#1 ``RSA PRIVATE KEY`` block, as written by the service CA."""
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def key_pem_pkcs8(rsa_key: rsa.RSAPrivateKey) -> bytes:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def ec_key_pem() -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
