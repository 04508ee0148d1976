"""Main entry point for the Serving Cert Keystore Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .config import get_config
from .tracing import initialize_tracing

# Prefix for kopf's bookkeeping annotations on watched Services
KOPF_ANNOTATIONS_PREFIX = "keystore.ykoer.github.com"

logger = logging.getLogger(__name__)

_http_server: Any = None


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    global _http_server
    config = get_config()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(config.log_level)

    if config.tracing_enabled:
        initialize_tracing()

    # Keep kopf's progress and diff-base in annotations, Services have no status of our own
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=KOPF_ANNOTATIONS_PREFIX)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=KOPF_ANNOTATIONS_PREFIX,
        key="last-handled-configuration",
    )

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = config.max_workers

    # Start metrics HTTP server with health check endpoints
    _http_server = health.start_http_server(config.metrics_port)
    health.set_ready(True)
    logger.info(
        f"Operator started: metrics port {config.metrics_port}, "
        f"keystore encryption {config.keystore_encryption.value}"
    )


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop serving health checks."""
    global _http_server
    health.set_ready(False)
    if _http_server is not None:
        _http_server.shutdown()
        _http_server = None


def run() -> None:
    """Run the operator until interrupted."""
    config = get_config()
    kopf.run(
        standalone=True,
        clusterwide=config.clusterwide,
        namespaces=config.watch_namespaces,
    )
