# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Per-kind migration and deletion handlers.

A handler binds one resource kind to the clusters it works on and turns
every API failure into a `ResourceOutcome`, so a single resource can never
abort a run. The factories return handlers keyed by kind, in the order the
orchestrators must process them.
"""

import logging
from typing import Any, Dict, Optional

from k8s_clone.core.cluster import KubeClient
from k8s_clone.core.constants import DELETION_ORDER, MIGRATION_ORDER
from k8s_clone.core.errors import error_message, is_already_exists
from k8s_clone.models.resources import OutcomeStatus, ResourceKind, ResourceOutcome
from k8s_clone.services import metadata_cleaner
from k8s_clone.services.spec_overwriter import apply_overwrite_spec

logger = logging.getLogger(__name__)


def migrated(kind: ResourceKind, name: str) -> ResourceOutcome:
    message = f"{kind.value} {name} migrated."
    logger.info(message)
    return ResourceOutcome(kind=kind, name=name, status=OutcomeStatus.MIGRATED, message=message)


def migration_failed(kind: ResourceKind, name: str, exc: BaseException) -> ResourceOutcome:
    """Classify a migration failure as a skip or a failure and report it."""
    if is_already_exists(exc):
        message = f"{kind.value} '{name}' already exists in destination. Skipping."
        logger.warning(message)
        return ResourceOutcome(
            kind=kind, name=name, status=OutcomeStatus.SKIPPED, message=message
        )
    message = f"Failed to migrate {kind.value} {name}: {error_message(exc)}"
    logger.error(message)
    return ResourceOutcome(kind=kind, name=name, status=OutcomeStatus.FAILED, message=message)


class ResourceHandler:
    """Copies resources of one kind from a source to a destination cluster."""

    def __init__(self, kind: ResourceKind, source: KubeClient, destination: KubeClient):
        self.kind = kind
        self.source = source
        self.destination = destination

    def migrate(
        self,
        name: str,
        source_namespace: str,
        dest_namespace: str,
        overwrite_spec: Optional[Dict[str, Any]] = None,
    ) -> ResourceOutcome:
        """Read, sanitize, optionally overwrite and create one resource."""
        try:
            obj = self.source.read(self.kind, name, source_namespace)
            # Manifests read through the typed API may omit `kind`
            obj.setdefault("kind", self.kind.value)
            cleaned = metadata_cleaner.clean(obj, dest_namespace)
            if overwrite_spec:
                apply_overwrite_spec(cleaned, overwrite_spec)
            self.destination.create(self.kind, dest_namespace, cleaned)
        except Exception as e:
            return migration_failed(self.kind, name, e)
        return migrated(self.kind, name)


class DeleteHandler:
    """Deletes resources of one kind from a single cluster."""

    def __init__(self, kind: ResourceKind, client: KubeClient):
        self.kind = kind
        self.client = client

    def delete(self, name: str, namespace: str) -> ResourceOutcome:
        try:
            self.client.delete(self.kind, name, namespace)
        except Exception as e:
            message = f"Failed to delete {self.kind.value} {name}: {error_message(e)}"
            logger.error(message)
            return ResourceOutcome(
                kind=self.kind, name=name, status=OutcomeStatus.FAILED, message=message
            )
        message = f"{self.kind.value} {name} deleted."
        logger.info(message)
        return ResourceOutcome(
            kind=self.kind, name=name, status=OutcomeStatus.DELETED, message=message
        )


def create_migration_handlers(
    source: KubeClient, destination: KubeClient
) -> Dict[ResourceKind, ResourceHandler]:
    """Create migration handlers for every kind except PVCs, in migration order."""
    return {kind: ResourceHandler(kind, source, destination) for kind in MIGRATION_ORDER}


def create_delete_handlers(client: KubeClient) -> Dict[ResourceKind, DeleteHandler]:
    """Create deletion handlers for every kind, in deletion order."""
    return {kind: DeleteHandler(kind, client) for kind in DELETION_ORDER}
