"""PKCS#12 keystore encoding from PEM certificate and key material."""

from __future__ import annotations

import enum

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from ..exceptions import CertificateParseError, KeyParseError

# PBKDF iteration count for the legacy (PBES1) format, matching OpenSSL's default
LEGACY_KDF_ROUNDS = 2048


class KeystoreEncryption(str, enum.Enum):
    """Protection scheme for the generated keystore."""

    # AES-256-CBC with PBKDF2, readable by JDK 12+ and OpenSSL 1.1+
    MODERN = "modern"
    # PBES1 SHA1/3DES with SHA1 MAC, readable by every PKCS#12 consumer
    LEGACY = "legacy"


def parse_certificate(cert_pem: bytes) -> x509.Certificate:
    """Parse the first PEM certificate block.

    Args:
        cert_pem: PEM encoded X.509 certificate

    Returns:
        Parsed certificate

    Raises:
        CertificateParseError: If no PEM certificate could be read
    """
    if not cert_pem:
        raise CertificateParseError("certificate data is empty")
    try:
        return x509.load_pem_x509_certificate(cert_pem)
    except ValueError as e:
        raise CertificateParseError(f"invalid PEM certificate: {e}") from e


def parse_private_key(key_pem: bytes) -> rsa.RSAPrivateKey:
    """Parse an unencrypted PEM RSA private key.

    Both ``RSA PRIVATE KEY`` (PKCS#1) and ``PRIVATE KEY`` (PKCS#8) blocks are
    accepted as long as the key inside is RSA.

    Raises:
        KeyParseError: If the key cannot be read or is not an RSA key
    """
    if not key_pem:
        raise KeyParseError("private key data is empty")
    try:
        key = serialization.load_pem_private_key(key_pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"invalid PEM private key: {e}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyParseError(f"expected an RSA private key, got {type(key).__name__}")
    return key


def _encryption_for(
    password: bytes,
    encryption: KeystoreEncryption,
) -> serialization.KeySerializationEncryption:
    if encryption is KeystoreEncryption.LEGACY:
        return (
            serialization.PrivateFormat.PKCS12.encryption_builder()
            .kdf_rounds(LEGACY_KDF_ROUNDS)
            .key_cert_algorithm(pkcs12.PBES.PBESv1SHA1And3KeyTripleDESCBC)
            .hmac_hash(hashes.SHA1())
            .build(password)
        )
    return serialization.BestAvailableEncryption(password)


def create_pkcs12(
    cert_pem: bytes,
    key_pem: bytes,
    password: str,
    encryption: KeystoreEncryption = KeystoreEncryption.MODERN,
) -> bytes:
    """Create a password protected PKCS#12 keystore.

    The keystore holds the private key and the leaf certificate only, no CA
    chain. Salts and IVs are drawn fresh on every call, so two keystores built
    from identical inputs differ byte for byte but decode to the same content.

    Args:
        cert_pem: PEM encoded X.509 certificate
        key_pem: PEM encoded RSA private key
        password: Keystore password
        encryption: Keystore protection scheme

    Returns:
        DER encoded PKCS#12 keystore

    Raises:
        CertificateParseError: If the certificate cannot be parsed
        KeyParseError: If the private key cannot be parsed or does not belong
            to the certificate
    """
    certificate = parse_certificate(cert_pem)
    private_key = parse_private_key(key_pem)

    try:
        return pkcs12.serialize_key_and_certificates(
            name=None,
            key=private_key,
            cert=certificate,
            cas=None,
            encryption_algorithm=_encryption_for(password.encode("utf-8"), encryption),
        )
    except ValueError as e:
        raise KeyParseError(f"private key does not match certificate: {e}") from e


def load_pkcs12(
    data: bytes,
    password: str,
) -> tuple[rsa.RSAPrivateKey | None, x509.Certificate | None]:
    """Decode a keystore produced by :func:`create_pkcs12`.

    Returns:
        Tuple of (private key, certificate)
    """
    key, certificate, _ = pkcs12.load_key_and_certificates(data, password.encode("utf-8"))
    return key, certificate
