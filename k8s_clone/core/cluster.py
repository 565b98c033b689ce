# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Kubernetes client bound to a single kubeconfig context.

Every cluster taking part in a run gets its own `KubeClient`, so a source
and a destination context can be used side by side. Resource bodies are
handled as plain camelCase manifest dictionaries.
"""

import copy
import logging
from typing import Any, Dict, List, NamedTuple, Optional

import kubernetes
import kubernetes.client
import kubernetes.config

from k8s_clone.models.resources import ResourceKind

logger = logging.getLogger(__name__)


class KindApi(NamedTuple):
    """Which API group serves a kind and the method names for it."""

    group: str  # "core" or "apps"
    read: str
    create: str
    delete: str
    list: str


KIND_APIS: Dict[ResourceKind, KindApi] = {
    ResourceKind.CONFIG_MAP: KindApi(
        "core",
        "read_namespaced_config_map",
        "create_namespaced_config_map",
        "delete_namespaced_config_map",
        "list_namespaced_config_map",
    ),
    ResourceKind.SECRET: KindApi(
        "core",
        "read_namespaced_secret",
        "create_namespaced_secret",
        "delete_namespaced_secret",
        "list_namespaced_secret",
    ),
    ResourceKind.SERVICE: KindApi(
        "core",
        "read_namespaced_service",
        "create_namespaced_service",
        "delete_namespaced_service",
        "list_namespaced_service",
    ),
    ResourceKind.DEPLOYMENT: KindApi(
        "apps",
        "read_namespaced_deployment",
        "create_namespaced_deployment",
        "delete_namespaced_deployment",
        "list_namespaced_deployment",
    ),
    ResourceKind.PERSISTENT_VOLUME_CLAIM: KindApi(
        "core",
        "read_namespaced_persistent_volume_claim",
        "create_namespaced_persistent_volume_claim",
        "delete_namespaced_persistent_volume_claim",
        "list_namespaced_persistent_volume_claim",
    ),
}


class KubeClient:
    """Typed read/create/delete access to one cluster."""

    def __init__(self, context: Optional[str] = None, api_client: Any = None):
        """Initialize Kubernetes clients for `context`.

        Uses the kubeconfig context when one is given or a kubeconfig
        exists; otherwise falls back to the in-cluster service account.
        """
        self.context = context
        if api_client is None:
            api_client = self._load_api_client(context)
        self.api_client = api_client
        self.core_api = kubernetes.client.CoreV1Api(self.api_client)
        self.apps_api = kubernetes.client.AppsV1Api(self.api_client)

    @staticmethod
    def _load_api_client(context: Optional[str]) -> kubernetes.client.ApiClient:
        try:
            api_client = kubernetes.config.new_client_from_config(context=context)
            logger.info(f"Using kubeconfig context '{context or 'current'}'")
            return api_client
        except kubernetes.config.ConfigException:
            if context:
                raise
            configuration = kubernetes.client.Configuration()
            kubernetes.config.load_incluster_config(client_configuration=configuration)
            logger.info("Using in-cluster Kubernetes configuration")
            return kubernetes.client.ApiClient(configuration)

    @staticmethod
    def list_contexts() -> List[str]:
        """Return the context names of the local kubeconfig."""
        try:
            contexts, _ = kubernetes.config.list_kube_config_contexts()
        except kubernetes.config.ConfigException:
            return []
        return [ctx["name"] for ctx in contexts or []]

    @staticmethod
    def current_context() -> Optional[str]:
        """Return the active context of the local kubeconfig, if any."""
        try:
            _, active = kubernetes.config.list_kube_config_contexts()
        except kubernetes.config.ConfigException:
            return None
        return (active or {}).get("name")

    def to_dict(self, obj: Any) -> Dict[str, Any]:
        """Convert an API model into a manifest dictionary.

        Dictionaries are deep-copied so callers can mutate the result freely.
        """
        if obj is None:
            return {}
        if isinstance(obj, dict):
            return copy.deepcopy(obj)
        return self.api_client.sanitize_for_serialization(obj)

    def _api(self, kind: ResourceKind) -> Any:
        return self.apps_api if KIND_APIS[kind].group == "apps" else self.core_api

    def read(self, kind: ResourceKind, name: str, namespace: str) -> Dict[str, Any]:
        method = getattr(self._api(kind), KIND_APIS[kind].read)
        return self.to_dict(method(name=name, namespace=namespace))

    def create(self, kind: ResourceKind, namespace: str, body: Dict[str, Any]) -> Any:
        method = getattr(self._api(kind), KIND_APIS[kind].create)
        return method(namespace=namespace, body=body)

    def delete(self, kind: ResourceKind, name: str, namespace: str) -> Any:
        method = getattr(self._api(kind), KIND_APIS[kind].delete)
        return method(name=name, namespace=namespace)

    def list_names(self, kind: ResourceKind, namespace: str) -> List[str]:
        method = getattr(self._api(kind), KIND_APIS[kind].list)
        items = method(namespace=namespace).items or []
        return [item.metadata.name for item in items if item.metadata and item.metadata.name]

    def list_namespaces(self) -> List[str]:
        items = self.core_api.list_namespace().items or []
        return [ns.metadata.name for ns in items if ns.metadata and ns.metadata.name]

    # PersistentVolumes are cluster scoped

    def read_persistent_volume(self, name: str) -> Dict[str, Any]:
        return self.to_dict(self.core_api.read_persistent_volume(name=name))

    def create_persistent_volume(self, body: Dict[str, Any]) -> Any:
        return self.core_api.create_persistent_volume(body=body)

    # Worker pods

    def create_pod(self, namespace: str, body: Dict[str, Any]) -> Any:
        return self.core_api.create_namespaced_pod(namespace=namespace, body=body)

    def read_pod_phase(self, name: str, namespace: str) -> Optional[str]:
        pod = self.to_dict(self.core_api.read_namespaced_pod(name=name, namespace=namespace))
        return (pod.get("status") or {}).get("phase")

    def delete_pod(self, name: str, namespace: str) -> Any:
        return self.core_api.delete_namespaced_pod(name=name, namespace=namespace)
