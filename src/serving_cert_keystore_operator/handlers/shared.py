"""Shared utilities for handlers."""

from __future__ import annotations

from kubernetes import client, config


def get_core_v1_api() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client.

    Uses the in-cluster service account when running in a pod and falls back
    to the local kubeconfig otherwise.

    Returns:
        CoreV1Api instance
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CoreV1Api()
