# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Migration errors and helpers for classifying Kubernetes API failures.
"""

import json
from typing import Any, Dict, Optional

from kubernetes.client import ApiException

from k8s_clone.core.constants import REASON_ALREADY_EXISTS


class MigrationError(Exception):
    """Base class for failures raised inside the migration engine."""


class PodStartTimeout(MigrationError):
    """A worker pod did not reach the Running phase in time."""

    def __init__(self, pod_name: str, attempts: int):
        super().__init__(f"Pod {pod_name} did not start in time.")
        self.pod_name = pod_name
        self.attempts = attempts


class TransferFailure(MigrationError):
    """The streaming copy between worker pods exited non-zero."""

    def __init__(self, exit_code: int):
        super().__init__(f"Data transfer failed with code {exit_code}")
        self.exit_code = exit_code


class VolumeCloneFailure(MigrationError):
    """Cloning a manually provisioned PersistentVolume failed."""


def _error_body(exc: ApiException) -> Dict[str, Any]:
    body = exc.body
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not body:
        return {}
    try:
        decoded = json.loads(body)
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def api_error_reason(exc: BaseException) -> Optional[str]:
    """Return the machine readable reason of a Kubernetes API error."""
    if not isinstance(exc, ApiException):
        return None
    return _error_body(exc).get("reason")


def is_already_exists(exc: BaseException) -> bool:
    """Best-effort check for a create that hit an existing object."""
    return api_error_reason(exc) == REASON_ALREADY_EXISTS


def error_message(exc: BaseException) -> str:
    """Return the most specific message available for `exc`.

    The server-provided message wins over the HTTP reason phrase, which in
    turn wins over the exception text.
    """
    if isinstance(exc, ApiException):
        message = _error_body(exc).get("message")
        if message:
            return str(message)
        if exc.reason:
            return str(exc.reason)
    return str(exc) or exc.__class__.__name__
