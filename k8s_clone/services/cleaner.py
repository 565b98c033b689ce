# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Deletion orchestrator for the clean namespace workflow.
"""

from typing import List

from k8s_clone.core.cluster import KubeClient
from k8s_clone.models.resources import ResourceOutcome, ResourceSelection
from k8s_clone.services.resource_handlers import create_delete_handlers


class Cleaner:
    """Deletes selected resources, consumers first.

    PVC deletion only removes the claim; what happens to the volume is up
    to its reclaim policy.
    """

    def __init__(self, client: KubeClient):
        self.client = client
        self.handlers = create_delete_handlers(client)

    def clean_resources(self, namespace: str, selection: ResourceSelection) -> List[ResourceOutcome]:
        outcomes: List[ResourceOutcome] = []
        for kind, handler in self.handlers.items():
            for name in selection.names(kind):
                outcomes.append(handler.delete(name, namespace))
        return outcomes
