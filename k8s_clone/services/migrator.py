# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Migration orchestrator.
"""

import logging
from typing import Any, Dict, List, Optional

from k8s_clone.core.cluster import KubeClient
from k8s_clone.core.config import Settings
from k8s_clone.models.resources import ResourceKind, ResourceOutcome, ResourceSelection
from k8s_clone.services.pvc_migrator import PvcMigrator
from k8s_clone.services.resource_handlers import create_migration_handlers
from k8s_clone.services.transfer import StreamCopier

logger = logging.getLogger(__name__)


class Migrator:
    """Copies a selection of resources from one namespace to another.

    Resources are processed one at a time: ConfigMaps, Secrets, Services
    and Deployments in that order, then PersistentVolumeClaims with their
    data. Every selected resource is attempted exactly once; a failure is
    reported and the run moves on.
    """

    def __init__(
        self,
        source: KubeClient,
        destination: KubeClient,
        settings: Settings,
        copier: Optional[StreamCopier] = None,
        pvc_migrator: Optional[PvcMigrator] = None,
    ):
        self.source = source
        self.destination = destination
        self.settings = settings
        self.handlers = create_migration_handlers(source, destination)
        self.pvc_migrator = pvc_migrator or PvcMigrator(
            source, destination, settings, copier=copier
        )

    def migrate_resources(
        self,
        source_namespace: str,
        dest_namespace: str,
        selection: ResourceSelection,
        overwrites: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> List[ResourceOutcome]:
        """Migrate every selected resource.

        Args:
            source_namespace: Namespace to read from in the source cluster.
            dest_namespace: Namespace to create in at the destination.
            selection: Names to migrate per kind.
            overwrites: Optional partial specs keyed by resource name.

        Returns:
            One outcome per selected resource, in processing order.
        """
        overwrites = overwrites or {}
        outcomes: List[ResourceOutcome] = []

        for kind, handler in self.handlers.items():
            for name in selection.names(kind):
                outcomes.append(
                    handler.migrate(name, source_namespace, dest_namespace, overwrites.get(name))
                )

        for name in selection.names(ResourceKind.PERSISTENT_VOLUME_CLAIM):
            outcomes.append(
                self.pvc_migrator.migrate(
                    name, source_namespace, dest_namespace, overwrites.get(name)
                )
            )

        if outcomes:
            logger.debug(
                f"Migration {source_namespace} -> {dest_namespace} finished "
                f"with {len(outcomes)} outcome(s)"
            )
        return outcomes
