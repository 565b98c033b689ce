# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Unit tests for KubeClient.
"""

from unittest.mock import MagicMock, patch

import kubernetes
import pytest
from kubernetes.client import ApiClient, V1ConfigMap, V1ObjectMeta

from conftest import make_client
from k8s_clone.core.cluster import KubeClient
from k8s_clone.models.resources import ResourceKind


def named(*names):
    return MagicMock(items=[MagicMock(metadata=V1ObjectMeta(name=n)) for n in names])


class TestKindDispatch:
    """Per-kind calls reach the right API group."""

    def test_deployment_uses_apps_api(self):
        client = make_client("dev")
        client.apps_api.read_namespaced_deployment.return_value = {"metadata": {"name": "web"}}

        assert client.read(ResourceKind.DEPLOYMENT, "web", "team1") == {"metadata": {"name": "web"}}
        client.apps_api.read_namespaced_deployment.assert_called_once_with(
            name="web", namespace="team1"
        )
        client.core_api.assert_not_called()

    def test_create_and_delete(self):
        client = make_client("dev")
        body = {"metadata": {"name": "cfg"}}

        client.create(ResourceKind.CONFIG_MAP, "team1", body)
        client.delete(ResourceKind.SECRET, "sec", "team1")

        client.core_api.create_namespaced_config_map.assert_called_once_with(
            namespace="team1", body=body
        )
        client.core_api.delete_namespaced_secret.assert_called_once_with(
            name="sec", namespace="team1"
        )

    def test_list_names(self):
        client = make_client("dev")
        client.core_api.list_namespaced_service.return_value = named("a", "b")
        client.core_api.list_namespace.return_value = named("default", "team1")

        assert client.list_names(ResourceKind.SERVICE, "team1") == ["a", "b"]
        assert client.list_namespaces() == ["default", "team1"]


class TestToDict:
    def test_dicts_are_copied(self):
        client = make_client("dev")
        original = {"metadata": {"name": "cfg"}}

        result = client.to_dict(original)
        result["metadata"]["name"] = "changed"

        assert original["metadata"]["name"] == "cfg"

    def test_models_are_serialized_camel_case(self):
        client = KubeClient(context="dev", api_client=ApiClient())
        config_map = V1ConfigMap(
            metadata=V1ObjectMeta(name="cfg", resource_version="42"), data={"k": "v"}
        )

        assert client.to_dict(config_map) == {
            "metadata": {"name": "cfg", "resourceVersion": "42"},
            "data": {"k": "v"},
        }

    def test_pod_phase(self):
        client = make_client("dev")
        client.core_api.read_namespaced_pod.return_value = {"status": {"phase": "Pending"}}

        assert client.read_pod_phase("worker", "team1") == "Pending"


class TestLoading:
    def test_named_context_does_not_fall_back(self):
        with patch(
            "k8s_clone.core.cluster.kubernetes.config.new_client_from_config",
            side_effect=kubernetes.config.ConfigException("no context"),
        ), patch("k8s_clone.core.cluster.kubernetes.config.load_incluster_config") as incluster:
            with pytest.raises(kubernetes.config.ConfigException):
                KubeClient(context="missing")

        incluster.assert_not_called()

    def test_list_contexts_without_kubeconfig(self):
        with patch(
            "k8s_clone.core.cluster.kubernetes.config.list_kube_config_contexts",
            side_effect=kubernetes.config.ConfigException("no kubeconfig"),
        ):
            assert KubeClient.list_contexts() == []

    def test_current_context(self):
        with patch(
            "k8s_clone.core.cluster.kubernetes.config.list_kube_config_contexts",
            return_value=([{"name": "dev"}, {"name": "prod"}], {"name": "prod"}),
        ):
            assert KubeClient.current_context() == "prod"

    def test_current_context_without_kubeconfig(self):
        with patch(
            "k8s_clone.core.cluster.kubernetes.config.list_kube_config_contexts",
            side_effect=kubernetes.config.ConfigException("no kubeconfig"),
        ):
            assert KubeClient.current_context() is None
