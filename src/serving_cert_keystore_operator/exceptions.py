"""Exception types raised by the keystore operator."""

from __future__ import annotations


class KeystoreOperatorError(Exception):
    """Base class for all operator errors."""


class SecretNotFoundError(KeystoreOperatorError):
    """The secret named by a Service annotation does not exist."""

    def __init__(self, namespace: str, name: str):
        super().__init__(f"Secret '{name}' not found in namespace '{namespace}'")
        self.namespace = namespace
        self.name = name


class KeystoreEncodeError(KeystoreOperatorError):
    """The certificate or key material could not be turned into a keystore."""


class CertificateParseError(KeystoreEncodeError):
    """The certificate is not a PEM encoded X.509 certificate."""


class KeyParseError(KeystoreEncodeError):
    """The private key is not a PEM encoded RSA private key."""


class RandomSourceError(KeystoreOperatorError):
    """The system random source could not provide bytes."""
