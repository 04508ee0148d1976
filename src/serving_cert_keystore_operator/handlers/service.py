"""Handlers that trigger keystore synchronization for Services and their secrets."""

from __future__ import annotations

from typing import Any

import kopf

from ..config import get_config
from ..constants import (
    ANNOTATION_ORIGINATING_SERVICE_NAME,
    ANNOTATION_SERVING_CERT_SECRET_NAME,
    KIND_SECRET,
    KIND_SERVICE,
)
from ..exceptions import KeystoreEncodeError, SecretNotFoundError
from ..store import KubernetesResourceStore, ServiceRef
from ..synchronizer import BundleSynchronizer, Outcome
from ..utils.errors import sanitize_exception
from ..utils.events import emit_keystore_created, emit_keystore_removed
from .base import BaseHandler
from .shared import get_core_v1_api


class ServiceHandler(BaseHandler):
    """Handler for Services annotated with a serving-cert secret."""

    def __init__(self, synchronizer: BundleSynchronizer | None = None, kind: str = KIND_SERVICE):
        """Initialize service handler.

        Args:
            synchronizer: Synchronizer to use; built from the cluster config on first use if None
            kind: Resource kind reported in logs and metrics
        """
        super().__init__(kind)
        self._synchronizer = synchronizer

    @property
    def synchronizer(self) -> BundleSynchronizer:
        if self._synchronizer is None:
            self._synchronizer = BundleSynchronizer(
                KubernetesResourceStore(get_core_v1_api()),
                encryption=get_config().keystore_encryption,
            )
        return self._synchronizer

    def reconcile(self, body: Any, meta: dict[str, Any], ref: ServiceRef) -> Outcome:
        """Synchronize the keystore for a Service.

        Missing or unreadable certificate material and a missing secret are
        reported as kopf.TemporaryError, since the service CA fills them in
        asynchronously. Everything else propagates for kopf's default retry.
        """
        try:
            outcome = self.synchronizer.synchronize(ref)
        except (KeystoreEncodeError, SecretNotFoundError) as e:
            delay = get_config().retry_delay_seconds
            self.log_warning(
                meta,
                f"Keystore not synchronized, retrying in {delay}s: {sanitize_exception(e)}",
                reason=type(e).__name__,
                service=str(ref),
            )
            raise kopf.TemporaryError(sanitize_exception(e), delay=delay) from e

        secret_name = self._secret_name(meta, ref)
        if outcome is Outcome.CREATED:
            self.log_info(meta, "Keystore created", event="keystore", reason="KeystoreCreated", secret=secret_name)
            emit_keystore_created(body, secret_name)
        elif outcome is Outcome.REMOVED:
            self.log_info(meta, "Keystore removed", event="keystore", reason="KeystoreRemoved", secret=secret_name)
            emit_keystore_removed(body, secret_name)
        return outcome

    def _secret_name(self, meta: dict[str, Any], ref: ServiceRef) -> str:
        if self.kind == KIND_SECRET:
            return meta.get("name", "unknown")
        annotations = meta.get("annotations") or {}
        return annotations.get(ANNOTATION_SERVING_CERT_SECRET_NAME, "unknown")


# Global handler instances
_service_handler = ServiceHandler()
_secret_handler = ServiceHandler(kind=KIND_SECRET)

# Secret events are only of interest for secrets written by the service CA
_SECRET_EVENT_TYPES = {None, "ADDED", "MODIFIED"}


def service_reference(ref: ServiceRef) -> dict[str, Any]:
    """Build an object reference to the Service so events are posted on it."""
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": {"name": ref.name, "namespace": ref.namespace},
    }


@kopf.on.create("v1", "services", annotations={ANNOTATION_SERVING_CERT_SECRET_NAME: kopf.PRESENT})
@kopf.on.update("v1", "services", annotations={ANNOTATION_SERVING_CERT_SECRET_NAME: kopf.PRESENT})
@kopf.on.resume("v1", "services", annotations={ANNOTATION_SERVING_CERT_SECRET_NAME: kopf.PRESENT})
def handle_service(
    body: kopf.Body,
    meta: kopf.Meta,
    name: str,
    namespace: str,
    **kwargs: Any,
) -> None:
    """Handle Service reconciliation."""
    ref = ServiceRef(namespace=namespace, name=name)
    _service_handler.reconcile_with_metrics(
        body,
        dict(meta),
        lambda: _service_handler.reconcile(body, dict(meta), ref),
    )


@kopf.on.event("v1", "secrets", annotations={ANNOTATION_ORIGINATING_SERVICE_NAME: kopf.PRESENT})
def handle_serving_cert_secret(
    event: kopf.RawEvent,
    body: kopf.Body,
    meta: kopf.Meta,
    namespace: str,
    **kwargs: Any,
) -> None:
    """Re-synchronize the owning Service when its serving-cert secret changes."""
    if event.get("type") not in _SECRET_EVENT_TYPES:
        return

    service_name = meta.get("annotations", {}).get(ANNOTATION_ORIGINATING_SERVICE_NAME)
    if not service_name:
        return

    ref = ServiceRef(namespace=namespace, name=service_name)
    service_body = service_reference(ref)
    _secret_handler.reconcile_with_metrics(
        service_body,
        dict(meta),
        lambda: _secret_handler.reconcile(service_body, dict(meta), ref),
    )
