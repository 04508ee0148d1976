"""Keystore building blocks."""

from .password import generate_password
from .pkcs12 import (
    KeystoreEncryption,
    create_pkcs12,
    load_pkcs12,
    parse_certificate,
    parse_private_key,
)

__all__ = [
    "KeystoreEncryption",
    "create_pkcs12",
    "generate_password",
    "load_pkcs12",
    "parse_certificate",
    "parse_private_key",
]
