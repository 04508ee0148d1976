"""Utility functions for the Serving Cert Keystore Operator."""

from .errors import sanitize_error_message, sanitize_exception
from .events import (
    emit_event,
    emit_keystore_created,
    emit_keystore_removed,
    emit_reconcile_failed,
    emit_reconcile_started,
)
from .rate_limit import call_with_rate_limit_retry, is_rate_limit_error, rate_limit_k8s

__all__ = [
    "emit_event",
    "emit_keystore_created",
    "emit_keystore_removed",
    "emit_reconcile_failed",
    "emit_reconcile_started",
    "sanitize_error_message",
    "sanitize_exception",
    "rate_limit_k8s",
    "is_rate_limit_error",
    "call_with_rate_limit_retry",
]
