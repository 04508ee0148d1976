"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_KEYSTORE_CREATED,
    EVENT_REASON_KEYSTORE_REMOVED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)


def emit_event(
    body: Any,
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body or metadata the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: Any) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: Any, message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_keystore_created(body: Any, secret_name: str) -> None:
    """Emit keystore created event."""
    emit_event(body, EVENT_REASON_KEYSTORE_CREATED, f"PKCS#12 keystore created in secret {secret_name}")


def emit_keystore_removed(body: Any, secret_name: str) -> None:
    """Emit keystore removed event."""
    emit_event(body, EVENT_REASON_KEYSTORE_REMOVED, f"PKCS#12 keystore removed from secret {secret_name}")
