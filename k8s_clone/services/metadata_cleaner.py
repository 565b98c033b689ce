# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Strip cluster-assigned fields from fetched resources.

An object read from one namespace carries identity and bookkeeping that the
API server rejects (or silently misapplies) on create. The functions here
reduce metadata to name, namespace, labels and annotations, drop `status`
and remove kind-specific fields allocated by the cluster.
"""

from typing import Any, Dict, Optional

from k8s_clone.core.constants import SERVICE_ALLOCATED_FIELDS
from k8s_clone.models.resources import ResourceKind


def clean(obj: Dict[str, Any], target_namespace: Optional[str]) -> Dict[str, Any]:
    """Sanitize `obj` in place for creation in `target_namespace`.

    Args:
        obj: Manifest dictionary as read from the source cluster.
        target_namespace: Destination namespace. None for cluster scoped
            objects, in which case no namespace is written.

    Returns:
        The same dictionary.
    """
    metadata = obj.get("metadata") or {}

    new_metadata: Dict[str, Any] = {"name": metadata.get("name")}
    if target_namespace is not None:
        new_metadata["namespace"] = target_namespace
    for field in ("labels", "annotations"):
        if metadata.get(field) is not None:
            new_metadata[field] = metadata[field]

    obj.pop("status", None)

    if obj.get("kind") == ResourceKind.SERVICE.value:
        _clean_service_spec(obj)

    obj["metadata"] = new_metadata
    return obj


def _clean_service_spec(obj: Dict[str, Any]) -> None:
    spec = obj.get("spec")
    if spec:
        for field in SERVICE_ALLOCATED_FIELDS:
            spec.pop(field, None)


def clean_persistent_volume(obj: Dict[str, Any], new_name: str) -> Dict[str, Any]:
    """Sanitize a PersistentVolume under a new name with no claim bound."""
    cleaned = clean(obj, None)
    cleaned["metadata"]["name"] = new_name
    spec = cleaned.get("spec")
    if spec is not None:
        spec.pop("claimRef", None)
    return cleaned


def clean_pvc(
    obj: Dict[str, Any], target_namespace: str, keep_volume_name: bool = False
) -> Dict[str, Any]:
    """Sanitize a PersistentVolumeClaim.

    `volumeName` is removed so the destination provisions a fresh volume,
    unless `keep_volume_name` is set for an explicit static binding.
    """
    cleaned = clean(obj, target_namespace)
    spec = cleaned.get("spec")
    if not keep_volume_name and spec is not None:
        spec.pop("volumeName", None)
    cleaned.pop("status", None)
    return cleaned
