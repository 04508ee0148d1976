"""Keeps the PKCS#12 keystore in a serving-cert secret in line with its Service."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Mapping

from . import metrics
from .constants import (
    ANNOTATION_CREATE_PKCS12,
    ANNOTATION_SERVING_CERT_SECRET_NAME,
    KIND_SERVICE,
    SECRET_KEY_PKCS12,
    SECRET_KEY_PKCS12_PASSWORD,
    SECRET_KEY_TLS_CERT,
    SECRET_KEY_TLS_KEY,
)
from .exceptions import CertificateParseError, KeyParseError
from .keystore.password import generate_password
from .keystore.pkcs12 import KeystoreEncryption, create_pkcs12
from .store import ResourceStore, SecretData, ServiceRef
from .tracing import add_span_attribute, trace_span

logger = logging.getLogger(__name__)

# Spellings accepted by Go's strconv.ParseBool, which the annotation format follows
_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class Action(str, enum.Enum):
    """Change to apply to the secret."""

    CREATE = "create"
    REMOVE = "remove"
    NOOP = "noop"


class Outcome(str, enum.Enum):
    """Result of one synchronize call."""

    CREATED = "created"
    REMOVED = "removed"
    NOOP = "noop"


def parse_bool(value: str | None) -> bool:
    """Parse an annotation flag, treating anything unrecognised as false."""
    if value is None:
        return False
    if value in _TRUE_VALUES:
        return True
    if value not in _FALSE_VALUES:
        logger.debug(f"Unrecognised boolean annotation value {value!r}, treating as false")
    return False


def has_keystore(data: Mapping[str, bytes]) -> bool:
    """Whether both keystore fields are present and non-empty."""
    return bool(data.get(SECRET_KEY_PKCS12)) and bool(data.get(SECRET_KEY_PKCS12_PASSWORD))


def has_any_keystore_field(data: Mapping[str, bytes]) -> bool:
    """Whether either keystore field is present and non-empty."""
    return bool(data.get(SECRET_KEY_PKCS12)) or bool(data.get(SECRET_KEY_PKCS12_PASSWORD))


def decide_action(create_pkcs12: bool, data: Mapping[str, bytes]) -> Action:
    """Decide what to do with a secret's keystore fields.

    A secret holding only one of the two fields is treated as needing repair:
    it is completed by CREATE when the keystore is wanted and cleared by
    REMOVE when it is not.
    """
    if create_pkcs12:
        return Action.NOOP if has_keystore(data) else Action.CREATE
    return Action.REMOVE if has_any_keystore_field(data) else Action.NOOP


class BundleSynchronizer:
    """Creates or removes the keystore in a Service's serving-cert secret.

    Every call recomputes the decision from what the store returns, so calls
    can be repeated safely after a failure. The caller must not run two calls
    for the same Service at once.
    """

    def __init__(
        self,
        store: ResourceStore,
        password_generator: Callable[[], str] = generate_password,
        encoder: Callable[..., bytes] = create_pkcs12,
        encryption: KeystoreEncryption = KeystoreEncryption.MODERN,
    ):
        self.store = store
        self.password_generator = password_generator
        self.encoder = encoder
        self.encryption = encryption

    def synchronize(self, ref: ServiceRef) -> Outcome:
        """Bring the keystore fields of the Service's secret to the desired state.

        Args:
            ref: The Service to reconcile

        Returns:
            What was done to the secret

        Raises:
            SecretNotFoundError: If the annotated secret does not exist
            CertificateParseError: If tls.crt is missing or invalid on create
            KeyParseError: If tls.key is missing or invalid on create
            RandomSourceError: If no password could be generated
            kubernetes.client.exceptions.ApiException: If reading or writing fails
        """
        with trace_span("synchronize", kind=KIND_SERVICE, attributes={"service": str(ref)}):
            resource = self.store.get_resource(ref)
            if resource is None:
                logger.debug(f"Service {ref} not found, nothing to do")
                return Outcome.NOOP

            secret_name = resource.annotations.get(ANNOTATION_SERVING_CERT_SECRET_NAME, "")
            if not secret_name:
                return Outcome.NOOP

            create = parse_bool(resource.annotations.get(ANNOTATION_CREATE_PKCS12))
            logger.info(f"Service {ref}: secret {secret_name}, create keystore {create}")

            secret = self.store.get_secret(ref.namespace, secret_name)
            action = decide_action(create, secret.data)
            add_span_attribute("keystore.action", action.value)

            if action is Action.CREATE:
                self._create(secret)
                return Outcome.CREATED
            if action is Action.REMOVE:
                self._remove(secret)
                return Outcome.REMOVED

            metrics.keystore_operations_total.labels(operation=Action.NOOP.value, result="success").inc()
            return Outcome.NOOP

    def _create(self, secret: SecretData) -> None:
        cert_pem = secret.data.get(SECRET_KEY_TLS_CERT)
        key_pem = secret.data.get(SECRET_KEY_TLS_KEY)
        try:
            if not cert_pem:
                raise CertificateParseError(f"secret {secret.name} has no {SECRET_KEY_TLS_CERT} field")
            if not key_pem:
                raise KeyParseError(f"secret {secret.name} has no {SECRET_KEY_TLS_KEY} field")

            password = self.password_generator()
            with trace_span("encode_pkcs12", kind=KIND_SERVICE):
                keystore = self.encoder(cert_pem, key_pem, password, self.encryption)

            updated = secret.copy()
            updated.data[SECRET_KEY_PKCS12] = keystore
            updated.data[SECRET_KEY_PKCS12_PASSWORD] = password.encode("utf-8")
            self.store.update_secret(updated)
        except Exception:
            metrics.keystore_operations_total.labels(operation=Action.CREATE.value, result="error").inc()
            raise

        metrics.keystore_operations_total.labels(operation=Action.CREATE.value, result="success").inc()
        logger.info(f"Keystore created in secret {secret.namespace}/{secret.name}")

    def _remove(self, secret: SecretData) -> None:
        updated = secret.copy()
        updated.data.pop(SECRET_KEY_PKCS12, None)
        updated.data.pop(SECRET_KEY_PKCS12_PASSWORD, None)
        try:
            self.store.update_secret(updated)
        except Exception:
            metrics.keystore_operations_total.labels(operation=Action.REMOVE.value, result="error").inc()
            raise

        metrics.keystore_operations_total.labels(operation=Action.REMOVE.value, result="success").inc()
        logger.info(f"Keystore removed from secret {secret.namespace}/{secret.name}")
