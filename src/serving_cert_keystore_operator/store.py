"""Read and write access to Services and their serving-cert Secrets."""

from __future__ import annotations

import base64
import copy
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from kubernetes import client

from . import metrics
from .constants import FIELD_MANAGER, KIND_SECRET, KIND_SERVICE
from .exceptions import SecretNotFoundError
from .tracing import trace_span
from .utils.rate_limit import call_with_rate_limit_retry


@dataclass(frozen=True)
class ServiceRef:
    """Namespace and name of a Service."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class OwningResource:
    """The Service whose annotations declare the desired keystore state."""

    namespace: str
    name: str
    annotations: dict[str, str] = field(default_factory=dict)
    uid: str = "unknown"


@dataclass
class SecretData:
    """A Secret with its data decoded to raw bytes."""

    namespace: str
    name: str
    data: dict[str, bytes] = field(default_factory=dict)
    resource_version: str | None = None
    # Object as read from the API server, kept so a replace preserves metadata
    source: Any = field(default=None, repr=False, compare=False)

    def copy(self) -> SecretData:
        return SecretData(
            namespace=self.namespace,
            name=self.name,
            data=dict(self.data),
            resource_version=self.resource_version,
            source=self.source,
        )


class ResourceStore(Protocol):
    """Protocol defining the resource operations the synchronizer needs."""

    def get_resource(self, ref: ServiceRef) -> OwningResource | None:
        """Get the owning Service, or None if it does not exist."""
        ...

    def get_secret(self, namespace: str, name: str) -> SecretData:
        """Get a Secret.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        ...

    def update_secret(self, secret: SecretData) -> None:
        """Persist the full data of a Secret read earlier with get_secret."""
        ...


def decode_secret_data(data: dict[str, Any] | None) -> dict[str, bytes]:
    """Decode the base64 values of a V1Secret's data field."""
    result: dict[str, bytes] = {}
    for key, value in (data or {}).items():
        if value is None:
            continue
        if isinstance(value, bytes):
            result[key] = base64.b64decode(value)
        else:
            result[key] = base64.b64decode(value.encode("ascii"))
    return result


def encode_secret_data(data: dict[str, bytes]) -> dict[str, str]:
    """Encode raw bytes as base64 strings for a V1Secret's data field."""
    return {key: base64.b64encode(value).decode("ascii") for key, value in data.items()}


class KubernetesResourceStore:
    """ResourceStore backed by the Kubernetes CoreV1 API."""

    def __init__(self, api: client.CoreV1Api):
        self.api = api

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = call_with_rate_limit_retry(func, **kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except client.exceptions.ApiException as e:
            result_label = "not_found" if e.status == 404 else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get_resource(self, ref: ServiceRef) -> OwningResource | None:
        with trace_span("get_service", kind=KIND_SERVICE, attributes={"service": str(ref)}):
            try:
                service = self._call(
                    "get_service",
                    self.api.read_namespaced_service,
                    name=ref.name,
                    namespace=ref.namespace,
                )
            except client.exceptions.ApiException as e:
                if e.status == 404:
                    return None
                raise

        meta = service.metadata
        return OwningResource(
            namespace=meta.namespace or ref.namespace,
            name=meta.name or ref.name,
            annotations=dict(meta.annotations or {}),
            uid=meta.uid or "unknown",
        )

    def get_secret(self, namespace: str, name: str) -> SecretData:
        with trace_span("get_secret", kind=KIND_SECRET, attributes={"secret": f"{namespace}/{name}"}):
            try:
                secret = self._call(
                    "get_secret",
                    self.api.read_namespaced_secret,
                    name=name,
                    namespace=namespace,
                )
            except client.exceptions.ApiException as e:
                if e.status == 404:
                    raise SecretNotFoundError(namespace, name) from e
                raise

        return SecretData(
            namespace=namespace,
            name=name,
            data=decode_secret_data(secret.data),
            resource_version=secret.metadata.resource_version,
            source=secret,
        )

    def update_secret(self, secret: SecretData) -> None:
        """Replace the secret's data.

        A replace carrying the resourceVersion that was read fails with 409
        when someone else wrote the secret in between.
        """
        if secret.source is not None:
            body = copy.deepcopy(secret.source)
        else:
            body = client.V1Secret(
                metadata=client.V1ObjectMeta(name=secret.name, namespace=secret.namespace),
            )
        body.metadata.resource_version = secret.resource_version
        body.data = encode_secret_data(secret.data)

        with trace_span("update_secret", kind=KIND_SECRET, attributes={"secret": f"{secret.namespace}/{secret.name}"}):
            self._call(
                "update_secret",
                self.api.replace_namespaced_secret,
                name=secret.name,
                namespace=secret.namespace,
                body=body,
                field_manager=FIELD_MANAGER,
            )


class InMemoryResourceStore:
    """ResourceStore backed by dictionaries.

    Used by tests and dry runs. ``update_count`` tracks how many times a
    secret was written.
    """

    def __init__(self) -> None:
        self.resources: dict[tuple[str, str], OwningResource] = {}
        self.secrets: dict[tuple[str, str], SecretData] = {}
        self.update_count = 0

    def add_resource(self, resource: OwningResource) -> None:
        self.resources[(resource.namespace, resource.name)] = resource

    def add_secret(self, secret: SecretData) -> None:
        self.secrets[(secret.namespace, secret.name)] = secret.copy()

    def get_resource(self, ref: ServiceRef) -> OwningResource | None:
        resource = self.resources.get((ref.namespace, ref.name))
        return copy.deepcopy(resource)

    def get_secret(self, namespace: str, name: str) -> SecretData:
        secret = self.secrets.get((namespace, name))
        if secret is None:
            raise SecretNotFoundError(namespace, name)
        return secret.copy()

    def update_secret(self, secret: SecretData) -> None:
        key = (secret.namespace, secret.name)
        if key not in self.secrets:
            raise SecretNotFoundError(secret.namespace, secret.name)
        self.secrets[key] = secret.copy()
        self.update_count += 1
