# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Pydantic models for resource selections and per-resource outcomes.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


class ResourceKind(str, Enum):
    """Kubernetes kinds the tool can copy or delete."""

    CONFIG_MAP = "ConfigMap"
    SECRET = "Secret"
    SERVICE = "Service"
    DEPLOYMENT = "Deployment"
    PERSISTENT_VOLUME_CLAIM = "PersistentVolumeClaim"


# ResourceSelection field holding the names of each kind
SELECTION_FIELDS: Dict[ResourceKind, str] = {
    ResourceKind.CONFIG_MAP: "config_maps",
    ResourceKind.SECRET: "secrets",
    ResourceKind.SERVICE: "services",
    ResourceKind.DEPLOYMENT: "deployments",
    ResourceKind.PERSISTENT_VOLUME_CLAIM: "pvcs",
}


class ResourceSelection(BaseModel):
    """Names chosen per kind for one migration or deletion run."""

    model_config = ConfigDict(frozen=True)

    config_maps: Tuple[str, ...] = ()
    secrets: Tuple[str, ...] = ()
    services: Tuple[str, ...] = ()
    deployments: Tuple[str, ...] = ()
    pvcs: Tuple[str, ...] = ()

    @field_validator("config_maps", "secrets", "services", "deployments", "pvcs")
    @classmethod
    def _validate_names(cls, names: Tuple[str, ...]) -> Tuple[str, ...]:
        seen = set()
        for name in names:
            if not name or not name.strip():
                raise ValueError("resource names must not be empty")
            if name in seen:
                raise ValueError(f"duplicate resource name '{name}'")
            seen.add(name)
        return names

    @classmethod
    def from_mapping(cls, names: Dict[ResourceKind, Iterable[str]]) -> "ResourceSelection":
        """Build a selection from a kind -> names mapping."""
        return cls(**{SELECTION_FIELDS[kind]: tuple(values) for kind, values in names.items()})

    def names(self, kind: ResourceKind) -> Tuple[str, ...]:
        return getattr(self, SELECTION_FIELDS[kind])

    def counts(self) -> Dict[ResourceKind, int]:
        return {kind: len(self.names(kind)) for kind in ResourceKind}

    def is_empty(self) -> bool:
        return not any(self.counts().values())


class OutcomeStatus(str, Enum):
    """Result category of one resource operation."""

    MIGRATED = "migrated"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


class ResourceOutcome(BaseModel):
    """Outcome of migrating or deleting a single resource."""

    kind: ResourceKind
    name: str
    status: OutcomeStatus
    message: str

    @property
    def succeeded(self) -> bool:
        return self.status in (OutcomeStatus.MIGRATED, OutcomeStatus.DELETED)


class PodRef(BaseModel):
    """Location of a worker pod: kubeconfig context, namespace and name."""

    model_config = ConfigDict(frozen=True)

    context: Optional[str] = None
    namespace: str
    name: str
    container: str = "worker"


class RunSummary(BaseModel):
    """Counts of outcomes for one run."""

    total: int
    succeeded: int
    skipped: int
    failed: int
    outcomes: List[ResourceOutcome]

    @classmethod
    def from_outcomes(cls, outcomes: List[ResourceOutcome]) -> "RunSummary":
        return cls(
            total=len(outcomes),
            succeeded=sum(1 for o in outcomes if o.succeeded),
            skipped=sum(1 for o in outcomes if o.status == OutcomeStatus.SKIPPED),
            failed=sum(1 for o in outcomes if o.status == OutcomeStatus.FAILED),
            outcomes=outcomes,
        )
