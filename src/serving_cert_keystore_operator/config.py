"""Runtime configuration for the operator, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from .keystore.pkcs12 import KeystoreEncryption

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class OperatorConfig:
    """Operator settings.

    Environment Variables:
        METRICS_PORT: Port for /metrics, /healthz and /readyz (default: 8080)
        LOG_LEVEL: Root log level (default: INFO)
        WATCH_NAMESPACE: Comma separated namespaces to watch (default: all)
        KEYSTORE_ENCRYPTION: "modern" or "legacy" (default: modern)
        K8S_RATE_LIMIT_PER_SECOND: Client side Kubernetes API rate (default: 10.0)
        MAX_WORKERS: Kopf execution workers (default: 4)
        RETRY_DELAY_SECONDS: Delay before retrying on bad certificate input (default: 30)
        OTEL_TRACES_ENABLED: Enable OpenTelemetry tracing (default: false)
    """

    metrics_port: int = 8080
    log_level: str = "INFO"
    watch_namespaces: list[str] = field(default_factory=list)
    keystore_encryption: KeystoreEncryption = KeystoreEncryption.MODERN
    k8s_rate_limit_per_second: float = 10.0
    max_workers: int = 4
    retry_delay_seconds: float = 30.0
    tracing_enabled: bool = False

    @property
    def clusterwide(self) -> bool:
        """Whether the operator watches every namespace."""
        return not self.watch_namespaces

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Build configuration from environment variables.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        log_level = env.get("LOG_LEVEL", "INFO").upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {log_level!r}")

        encryption_name = env.get("KEYSTORE_ENCRYPTION", KeystoreEncryption.MODERN.value).lower()
        try:
            encryption = KeystoreEncryption(encryption_name)
        except ValueError as e:
            raise ValueError(
                f"KEYSTORE_ENCRYPTION must be 'modern' or 'legacy', got {encryption_name!r}"
            ) from e

        namespaces = [
            ns.strip() for ns in env.get("WATCH_NAMESPACE", "").split(",") if ns.strip()
        ]

        config = cls(
            metrics_port=int(env.get("METRICS_PORT", "8080")),
            log_level=log_level,
            watch_namespaces=namespaces,
            keystore_encryption=encryption,
            k8s_rate_limit_per_second=float(env.get("K8S_RATE_LIMIT_PER_SECOND", "10.0")),
            max_workers=int(env.get("MAX_WORKERS", "4")),
            retry_delay_seconds=float(env.get("RETRY_DELAY_SECONDS", "30")),
            tracing_enabled=_env_bool(env.get("OTEL_TRACES_ENABLED", "false")),
        )

        if not 0 < config.metrics_port < 65536:
            raise ValueError(f"METRICS_PORT out of range: {config.metrics_port}")
        if config.k8s_rate_limit_per_second <= 0:
            raise ValueError("K8S_RATE_LIMIT_PER_SECOND must be positive")
        if config.max_workers < 1:
            raise ValueError("MAX_WORKERS must be at least 1")
        if config.retry_delay_seconds < 0:
            raise ValueError("RETRY_DELAY_SECONDS must not be negative")
        return config


_config: OperatorConfig | None = None


def get_config() -> OperatorConfig:
    """Return the process wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = OperatorConfig.from_env()
    return _config


def set_config(config: OperatorConfig | None) -> None:
    """Replace the process wide configuration (None forces a reload)."""
    global _config
    _config = config
