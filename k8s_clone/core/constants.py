# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Constants shared across the application.
"""

from k8s_clone.models.resources import ResourceKind

# Metadata fields assigned by the API server; never copied to a new object
SYSTEM_METADATA_FIELDS = (
    "uid",
    "resourceVersion",
    "creationTimestamp",
    "selfLink",
    "generation",
    "ownerReferences",
    "managedFields",
)

# Metadata fields carried over to the destination object
PRESERVED_METADATA_FIELDS = ("name", "labels", "annotations")

# Service fields allocated by the destination cluster
SERVICE_ALLOCATED_FIELDS = ("clusterIP", "clusterIPs")

# Migration order: ConfigMaps and Secrets may be referenced by workloads,
# Services come before the Deployments they front. PVCs are migrated last
# by the PVC migrator since they carry a data phase.
MIGRATION_ORDER = (
    ResourceKind.CONFIG_MAP,
    ResourceKind.SECRET,
    ResourceKind.SERVICE,
    ResourceKind.DEPLOYMENT,
)

# Deletion order: consumers before the things they reference
DELETION_ORDER = (
    ResourceKind.DEPLOYMENT,
    ResourceKind.SERVICE,
    ResourceKind.PERSISTENT_VOLUME_CLAIM,
    ResourceKind.CONFIG_MAP,
    ResourceKind.SECRET,
)

# API server reason code for a create on an existing object
REASON_ALREADY_EXISTS = "AlreadyExists"

# Pod phases
POD_PHASE_RUNNING = "Running"

# Worker pods
WORKER_CONTAINER_NAME = "worker"
WORKER_VOLUME_NAME = "data"
SENDER_POD_PREFIX = "migration-sender"
RECEIVER_POD_PREFIX = "migration-receiver"

# Cloned PersistentVolumes
MIGRATED_PV_PREFIX = "migrated"
MIGRATED_HOST_PATH_INFIX = "-migrated-"

# Kubernetes object names are limited to 253 characters (DNS subdomain)
MAX_OBJECT_NAME_LENGTH = 253

# Labels - Keys
APP_KUBERNETES_IO_MANAGED_BY = "app.kubernetes.io/managed-by"
APP_KUBERNETES_IO_COMPONENT = "app.kubernetes.io/component"

# Labels - Values
K8S_CLONE_MANAGER_LABEL = "k8s-clone"
WORKER_COMPONENT_LABEL = "pvc-migration-worker"
