"""Rate limiting utilities for Kubernetes API calls."""

from __future__ import annotations

import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..config import get_config

_F = TypeVar("_F", bound=Callable[..., Any])

_lock = threading.Lock()
_k8s_last_call_time: float = 0.0


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Spaces calls at least ``1 / K8S_RATE_LIMIT_PER_SECOND`` apart across all
    handler threads to avoid overwhelming the API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        min_interval = 1.0 / get_config().k8s_rate_limit_per_second

        with _lock:
            time_since_last_call = time.time() - _k8s_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _k8s_last_call_time = time.time()

        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: Exception) -> bool:
    """Check if an exception is a Kubernetes API rate limit response."""
    if not isinstance(e, ApiException):
        return False
    # Kubernetes API rate limit errors typically return 429 or 503
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())


def call_with_rate_limit_retry(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = 3,
    **kwargs: Any,
) -> Any:
    """Call a rate limited API function, backing off on 429 responses.

    Exponential backoff: 1s, 2s, 4s. The last rate limit error is re-raised
    once ``max_retries`` is exhausted; other errors propagate immediately.
    """
    limited = rate_limit_k8s(func)
    attempt = 0
    while True:
        try:
            return limited(*args, **kwargs)
        except ApiException as e:
            if not is_rate_limit_error(e) or attempt >= max_retries:
                raise
            metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
            time.sleep(2 ** attempt)
            attempt += 1
