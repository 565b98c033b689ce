# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Apply per-resource overwrite specs to sanitized resources.
"""

import copy
from typing import Any, Dict

# Keys that address an object's prototype or constructor slot when the
# manifest is handed to other tooling; never merged at any depth.
FORBIDDEN_KEYS = frozenset({"__proto__", "constructor", "prototype"})


def _is_plain_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def deep_merge(target: Dict[str, Any], overwrite: Dict[str, Any]) -> None:
    """Merge `overwrite` into `target` in place.

    Nested mappings are merged key by key. Lists, scalars and None replace
    the existing value outright.
    """
    for key, value in overwrite.items():
        if not isinstance(key, str) or key in FORBIDDEN_KEYS:
            continue
        existing = target.get(key)
        if _is_plain_mapping(value) and _is_plain_mapping(existing):
            deep_merge(existing, value)
        else:
            target[key] = _copy_value(value)


def _copy_value(value: Any) -> Any:
    """Copy an incoming value, dropping forbidden keys from nested mappings.

    Mappings inside lists are filtered the same way.
    """
    if _is_plain_mapping(value):
        return {
            k: _copy_value(v)
            for k, v in value.items()
            if isinstance(k, str) and k not in FORBIDDEN_KEYS
        }
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return copy.deepcopy(value)


def apply_overwrite_spec(resource: Dict[str, Any], overwrite_spec: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge `overwrite_spec` onto `resource["spec"]`.

    Creates an empty spec when the resource has none. `metadata` and
    `status` are never touched.

    Returns:
        The same resource dictionary.
    """
    if not _is_plain_mapping(resource.get("spec")):
        resource["spec"] = {}
    deep_merge(resource["spec"], overwrite_spec)
    return resource
