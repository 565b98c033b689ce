# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Unit tests for per-kind migration and deletion handlers.
"""

import logging

import pytest

from conftest import already_exists, api_error
from k8s_clone.models.resources import OutcomeStatus, ResourceKind
from k8s_clone.services.resource_handlers import (
    create_delete_handlers,
    create_migration_handlers,
)


class TestMigrationHandlerFactory:
    """Tests for create_migration_handlers."""

    def test_handlers_in_migration_order(self, source_client, dest_client):
        handlers = create_migration_handlers(source_client, dest_client)

        assert list(handlers) == [
            ResourceKind.CONFIG_MAP,
            ResourceKind.SECRET,
            ResourceKind.SERVICE,
            ResourceKind.DEPLOYMENT,
        ]
        assert ResourceKind.PERSISTENT_VOLUME_CLAIM not in handlers


class TestResourceHandler:
    """Tests for ResourceHandler.migrate."""

    def test_configmap_is_read_cleaned_and_created(self, source_client, dest_client, caplog):
        caplog.set_level(logging.INFO)
        source_client.core_api.read_namespaced_config_map.return_value = {
            "kind": "ConfigMap",
            "metadata": {"name": "cfg-a", "namespace": "source", "uid": "u-1"},
            "data": {"k": "v"},
        }
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.CONFIG_MAP]

        outcome = handler.migrate("cfg-a", "source", "dest")

        source_client.core_api.read_namespaced_config_map.assert_called_once_with(
            name="cfg-a", namespace="source"
        )
        dest_client.core_api.create_namespaced_config_map.assert_called_once()
        kwargs = dest_client.core_api.create_namespaced_config_map.call_args.kwargs
        assert kwargs["namespace"] == "dest"
        assert kwargs["body"]["metadata"] == {"name": "cfg-a", "namespace": "dest"}
        assert kwargs["body"]["data"] == {"k": "v"}
        assert outcome.status == OutcomeStatus.MIGRATED
        assert outcome.message == "ConfigMap cfg-a migrated."
        assert "ConfigMap cfg-a migrated." in caplog.text

    def test_source_is_never_written(self, source_client, dest_client):
        source_client.core_api.read_namespaced_secret.return_value = {
            "metadata": {"name": "sec-a"},
            "data": {"key": "dmFsdWU="},
        }
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.SECRET]

        handler.migrate("sec-a", "source", "dest")

        source_client.core_api.create_namespaced_secret.assert_not_called()
        dest_client.core_api.read_namespaced_secret.assert_not_called()
        dest_client.core_api.create_namespaced_secret.assert_called_once()

    def test_deployment_uses_apps_api_and_overwrite(self, source_client, dest_client):
        source_client.apps_api.read_namespaced_deployment.return_value = {
            "kind": "Deployment",
            "metadata": {"name": "dep-a"},
            "spec": {"replicas": 2, "selector": {"matchLabels": {"app": "a"}}},
            "status": {"readyReplicas": 2},
        }
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.DEPLOYMENT]

        outcome = handler.migrate("dep-a", "source", "dest", {"replicas": 0})

        body = dest_client.apps_api.create_namespaced_deployment.call_args.kwargs["body"]
        assert body["spec"] == {"replicas": 0, "selector": {"matchLabels": {"app": "a"}}}
        assert "status" not in body
        assert outcome.status == OutcomeStatus.MIGRATED

    def test_service_cluster_ip_is_dropped(self, source_client, dest_client):
        source_client.core_api.read_namespaced_service.return_value = {
            "metadata": {"name": "svc-a"},
            "spec": {"clusterIP": "10.0.0.5", "clusterIPs": ["10.0.0.5"], "ports": []},
        }
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.SERVICE]

        handler.migrate("svc-a", "source", "dest")

        body = dest_client.core_api.create_namespaced_service.call_args.kwargs["body"]
        assert "clusterIP" not in body["spec"]
        assert "clusterIPs" not in body["spec"]

    def test_already_exists_is_a_skip(self, source_client, dest_client, caplog):
        source_client.core_api.read_namespaced_config_map.return_value = {
            "metadata": {"name": "cfg-a"}
        }
        dest_client.core_api.create_namespaced_config_map.side_effect = already_exists(
            "ConfigMap", "cfg-a"
        )
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.CONFIG_MAP]

        outcome = handler.migrate("cfg-a", "source", "dest")

        assert outcome.status == OutcomeStatus.SKIPPED
        assert outcome.message == "ConfigMap 'cfg-a' already exists in destination. Skipping."
        assert "already exists in destination" in caplog.text

    def test_server_message_is_preferred(self, source_client, dest_client):
        source_client.core_api.read_namespaced_secret.side_effect = api_error(
            403, reason="Forbidden", message="secrets is forbidden", http_reason="Forbidden"
        )
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.SECRET]

        outcome = handler.migrate("sec-a", "source", "dest")

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "Failed to migrate Secret sec-a: secrets is forbidden"
        dest_client.core_api.create_namespaced_secret.assert_not_called()

    def test_http_reason_used_without_body(self, source_client, dest_client):
        exc = api_error(500, http_reason="Internal Server Error")
        exc.body = None
        source_client.core_api.read_namespaced_secret.side_effect = exc
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.SECRET]

        outcome = handler.migrate("sec-a", "source", "dest")

        assert outcome.message == "Failed to migrate Secret sec-a: Internal Server Error"

    def test_plain_exception_message(self, source_client, dest_client):
        source_client.core_api.read_namespaced_service.side_effect = RuntimeError("boom")
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.SERVICE]

        outcome = handler.migrate("svc-a", "source", "dest")

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "Failed to migrate Service svc-a: boom"

    def test_unclassified_conflict_is_a_failure(self, source_client, dest_client):
        source_client.core_api.read_namespaced_config_map.return_value = {
            "metadata": {"name": "cfg-a"}
        }
        dest_client.core_api.create_namespaced_config_map.side_effect = api_error(
            409, message="conflict", http_reason="Conflict"
        )
        handler = create_migration_handlers(source_client, dest_client)[ResourceKind.CONFIG_MAP]

        outcome = handler.migrate("cfg-a", "source", "dest")

        assert outcome.status == OutcomeStatus.FAILED


class TestDeleteHandlers:
    """Tests for create_delete_handlers and DeleteHandler.delete."""

    def test_handlers_in_deletion_order(self, source_client):
        handlers = create_delete_handlers(source_client)

        assert list(handlers) == [
            ResourceKind.DEPLOYMENT,
            ResourceKind.SERVICE,
            ResourceKind.PERSISTENT_VOLUME_CLAIM,
            ResourceKind.CONFIG_MAP,
            ResourceKind.SECRET,
        ]

    @pytest.mark.parametrize(
        "kind, api, method",
        [
            (ResourceKind.DEPLOYMENT, "apps_api", "delete_namespaced_deployment"),
            (ResourceKind.SERVICE, "core_api", "delete_namespaced_service"),
            (
                ResourceKind.PERSISTENT_VOLUME_CLAIM,
                "core_api",
                "delete_namespaced_persistent_volume_claim",
            ),
            (ResourceKind.CONFIG_MAP, "core_api", "delete_namespaced_config_map"),
            (ResourceKind.SECRET, "core_api", "delete_namespaced_secret"),
        ],
    )
    def test_delete_calls_kind_api(self, source_client, kind, api, method):
        handler = create_delete_handlers(source_client)[kind]

        outcome = handler.delete("thing", "team1")

        getattr(getattr(source_client, api), method).assert_called_once_with(
            name="thing", namespace="team1"
        )
        assert outcome.status == OutcomeStatus.DELETED
        assert outcome.message == f"{kind.value} thing deleted."

    def test_not_found_is_reported_as_failure(self, source_client, caplog):
        source_client.core_api.delete_namespaced_service.side_effect = api_error(
            404, reason="NotFound", message='services "gone" not found', http_reason="Not Found"
        )
        handler = create_delete_handlers(source_client)[ResourceKind.SERVICE]

        outcome = handler.delete("gone", "team1")

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == 'Failed to delete Service gone: services "gone" not found'
        assert "Failed to delete Service gone" in caplog.text
