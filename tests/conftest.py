# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Shared fixtures: Kubernetes clients backed by MagicMock APIs.
"""

import json
from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from k8s_clone.core.cluster import KubeClient
from k8s_clone.core.config import Settings


def make_client(context: str) -> KubeClient:
    """Build a KubeClient whose CoreV1Api/AppsV1Api are mocks."""
    client = KubeClient(context=context, api_client=MagicMock())
    client.core_api = MagicMock()
    client.apps_api = MagicMock()
    return client


def api_error(status: int, reason: str = None, message: str = None, http_reason: str = None):
    """Build an ApiException carrying a Kubernetes Status body."""
    exc = ApiException(status=status, reason=http_reason)
    body = {"kind": "Status", "apiVersion": "v1", "status": "Failure", "code": status}
    if reason:
        body["reason"] = reason
    if message:
        body["message"] = message
    exc.body = json.dumps(body)
    return exc


def already_exists(kind: str, name: str):
    return api_error(
        409,
        reason="AlreadyExists",
        message=f'{kind.lower()}s "{name}" already exists',
        http_reason="Conflict",
    )


@pytest.fixture
def source_client():
    return make_client("source-context")


@pytest.fixture
def dest_client():
    return make_client("dest-context")


@pytest.fixture
def settings():
    return Settings(pod_poll_interval=0, pod_poll_attempts=3)
