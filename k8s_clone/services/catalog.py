# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Defaults catalog of clusters, namespaces and resource names.

The catalog is an optional JSON file:

    {
      "clusters": [{"name": "cluster1"}],
      "namespaces": {"cluster1": [{"name": "ns1"}]},
      "services": {"ns1": [{"name": "svc1"}]},
      "deployments": {...},
      "configMaps": {...},
      "secrets": {...},
      "persistentVolumeClaims": {...}
    }

Lookups return None when the catalog has no entry, so callers fall back to
listing the cluster.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from k8s_clone.models.resources import ResourceKind

logger = logging.getLogger(__name__)

CATALOG_KEYS: Dict[ResourceKind, str] = {
    ResourceKind.CONFIG_MAP: "configMaps",
    ResourceKind.SECRET: "secrets",
    ResourceKind.SERVICE: "services",
    ResourceKind.DEPLOYMENT: "deployments",
    ResourceKind.PERSISTENT_VOLUME_CLAIM: "persistentVolumeClaims",
}


def _names(entries: Any) -> Optional[List[str]]:
    if not isinstance(entries, list) or not entries:
        return None
    names = [e["name"] for e in entries if isinstance(e, dict) and e.get("name")]
    return names or None


class DefaultsCatalog:
    def __init__(self, path: Union[str, Path] = "k8s-defaults.json"):
        self.path = Path(path).expanduser().resolve()
        self.data: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.is_file():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to parse {self.path}: {e}. Using default behavior.")
            return
        if isinstance(data, dict):
            self.data = data
        else:
            logger.warning(f"Ignoring {self.path}: expected a JSON object")

    def get_clusters(self) -> Optional[List[str]]:
        return _names(self.data.get("clusters"))

    def get_namespaces(self, cluster: str) -> Optional[List[str]]:
        return _names((self.data.get("namespaces") or {}).get(cluster))

    def get_resources(self, kind: ResourceKind, namespace: str) -> Optional[List[str]]:
        return _names((self.data.get(CATALOG_KEYS[kind]) or {}).get(namespace))
