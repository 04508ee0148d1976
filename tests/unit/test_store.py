"""Tests for the Kubernetes and in-memory resource stores."""

from __future__ import annotations

import base64
from unittest.mock import Mock, patch

import pytest
from kubernetes import client

from serving_cert_keystore_operator.constants import FIELD_MANAGER
from serving_cert_keystore_operator.exceptions import SecretNotFoundError
from serving_cert_keystore_operator.store import (
    InMemoryResourceStore,
    KubernetesResourceStore,
    OwningResource,
    SecretData,
    ServiceRef,
    decode_secret_data,
    encode_secret_data,
)


def b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def make_v1_secret(data: dict[str, str] | None, resource_version: str = "42") -> client.V1Secret:
    return client.V1Secret(
        metadata=client.V1ObjectMeta(
            name="svc-a-tls",
            namespace="default",
            resource_version=resource_version,
            annotations={"service.alpha.openshift.io/originating-service-name": "svc-a"},
        ),
        type="kubernetes.io/tls",
        data=data,
    )


class TestSecretDataEncoding:
    """Test base64 conversion of secret data."""

    def test_decode_strings(self) -> None:
        assert decode_secret_data({"tls.crt": b64(b"cert")}) == {"tls.crt": b"cert"}

    def test_decode_none(self) -> None:
        assert decode_secret_data(None) == {}

    def test_decode_skips_null_values(self) -> None:
        assert decode_secret_data({"a": None, "b": b64(b"x")}) == {"b": b"x"}

    def test_encode_binary(self) -> None:
        encoded = encode_secret_data({"tls.p12": b"\x00\xff"})

        assert encoded == {"tls.p12": "AP8="}


class TestKubernetesResourceStore:
    """Test cases for KubernetesResourceStore."""

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_resource(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_service.return_value = client.V1Service(
            metadata=client.V1ObjectMeta(
                name="svc-a",
                namespace="default",
                uid="uid-1",
                annotations={"ykoer.github.com/serving-cert-create-pkcs12": "true"},
            )
        )

        resource = KubernetesResourceStore(mock_api).get_resource(ServiceRef("default", "svc-a"))

        assert resource == OwningResource(
            namespace="default",
            name="svc-a",
            annotations={"ykoer.github.com/serving-cert-create-pkcs12": "true"},
            uid="uid-1",
        )
        mock_api.read_namespaced_service.assert_called_once_with(name="svc-a", namespace="default")
        mock_metrics.api_call_total.labels.assert_called_with(
            api_type="k8s", operation="get_service", result="success"
        )

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_resource_not_found(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_service.side_effect = client.exceptions.ApiException(status=404)

        resource = KubernetesResourceStore(mock_api).get_resource(ServiceRef("default", "gone"))

        assert resource is None
        mock_metrics.api_call_total.labels.assert_called_with(
            api_type="k8s", operation="get_service", result="not_found"
        )

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_resource_api_error(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_service.side_effect = client.exceptions.ApiException(status=500)

        with pytest.raises(client.exceptions.ApiException):
            KubernetesResourceStore(mock_api).get_resource(ServiceRef("default", "svc-a"))

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_secret(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = make_v1_secret(
            {"tls.crt": b64(b"cert"), "tls.key": b64(b"key")}
        )

        secret = KubernetesResourceStore(mock_api).get_secret("default", "svc-a-tls")

        assert secret.data == {"tls.crt": b"cert", "tls.key": b"key"}
        assert secret.resource_version == "42"
        assert secret.name == "svc-a-tls"

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_secret_not_found(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(SecretNotFoundError, match="svc-a-tls"):
            KubernetesResourceStore(mock_api).get_secret("default", "svc-a-tls")

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_get_secret_api_error(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=403)

        with pytest.raises(client.exceptions.ApiException):
            KubernetesResourceStore(mock_api).get_secret("default", "svc-a-tls")

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_update_secret_replaces_data(self, mock_metrics) -> None:
        """Test update keeps metadata and sends the resourceVersion that was read."""
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = make_v1_secret(
            {"tls.crt": b64(b"cert"), "tls.key": b64(b"key")}
        )
        store = KubernetesResourceStore(mock_api)
        secret = store.get_secret("default", "svc-a-tls")
        secret.data["tls.p12"] = b"\x00keystore"

        store.update_secret(secret)

        mock_api.replace_namespaced_secret.assert_called_once()
        call_args = mock_api.replace_namespaced_secret.call_args
        assert call_args[1]["name"] == "svc-a-tls"
        assert call_args[1]["namespace"] == "default"
        assert call_args[1]["field_manager"] == FIELD_MANAGER
        body = call_args[1]["body"]
        assert body.metadata.resource_version == "42"
        assert body.metadata.annotations == {"service.alpha.openshift.io/originating-service-name": "svc-a"}
        assert body.type == "kubernetes.io/tls"
        assert body.data == {
            "tls.crt": b64(b"cert"),
            "tls.key": b64(b"key"),
            "tls.p12": b64(b"\x00keystore"),
        }

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_update_secret_removed_fields_are_dropped(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_secret.return_value = make_v1_secret(
            {"tls.crt": b64(b"cert"), "tls.p12": b64(b"p12"), "tls-pkcs12-password": b64(b"pw")}
        )
        store = KubernetesResourceStore(mock_api)
        secret = store.get_secret("default", "svc-a-tls")
        del secret.data["tls.p12"]
        del secret.data["tls-pkcs12-password"]

        store.update_secret(secret)

        body = mock_api.replace_namespaced_secret.call_args[1]["body"]
        assert body.data == {"tls.crt": b64(b"cert")}

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_update_does_not_mutate_read_object(self, mock_metrics) -> None:
        mock_api = Mock()
        original = make_v1_secret({"tls.crt": b64(b"cert")})
        mock_api.read_namespaced_secret.return_value = original
        store = KubernetesResourceStore(mock_api)
        secret = store.get_secret("default", "svc-a-tls")
        secret.data["tls.p12"] = b"x"

        store.update_secret(secret)

        assert original.data == {"tls.crt": b64(b"cert")}

    @patch("serving_cert_keystore_operator.store.metrics")
    def test_update_conflict_propagates(self, mock_metrics) -> None:
        mock_api = Mock()
        mock_api.replace_namespaced_secret.side_effect = client.exceptions.ApiException(status=409)
        secret = SecretData(namespace="default", name="svc-a-tls", data={}, resource_version="1")

        with pytest.raises(client.exceptions.ApiException) as exc_info:
            KubernetesResourceStore(mock_api).update_secret(secret)

        assert exc_info.value.status == 409
        mock_metrics.api_call_total.labels.assert_called_with(
            api_type="k8s", operation="update_secret", result="error"
        )

    @patch("serving_cert_keystore_operator.utils.rate_limit.time.sleep")
    @patch("serving_cert_keystore_operator.store.metrics")
    def test_rate_limited_read_is_retried(self, mock_metrics, mock_sleep) -> None:
        mock_api = Mock()
        mock_api.read_namespaced_secret.side_effect = [
            client.exceptions.ApiException(status=429),
            make_v1_secret({"tls.crt": b64(b"cert")}),
        ]

        secret = KubernetesResourceStore(mock_api).get_secret("default", "svc-a-tls")

        assert secret.data == {"tls.crt": b"cert"}
        assert mock_api.read_namespaced_secret.call_count == 2


class TestInMemoryResourceStore:
    """Test cases for InMemoryResourceStore."""

    def test_returns_copies(self) -> None:
        store = InMemoryResourceStore()
        store.add_secret(SecretData(namespace="default", name="s", data={"a": b"1"}))

        secret = store.get_secret("default", "s")
        secret.data["b"] = b"2"

        assert store.get_secret("default", "s").data == {"a": b"1"}
        assert store.update_count == 0

    def test_update_counts_writes(self) -> None:
        store = InMemoryResourceStore()
        store.add_secret(SecretData(namespace="default", name="s"))

        store.update_secret(SecretData(namespace="default", name="s", data={"a": b"1"}))

        assert store.update_count == 1
        assert store.get_secret("default", "s").data == {"a": b"1"}

    def test_missing_secret(self) -> None:
        store = InMemoryResourceStore()

        with pytest.raises(SecretNotFoundError):
            store.get_secret("default", "missing")

    def test_missing_resource(self) -> None:
        assert InMemoryResourceStore().get_resource(ServiceRef("default", "missing")) is None
