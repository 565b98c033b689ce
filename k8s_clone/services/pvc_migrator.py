# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
PersistentVolumeClaim migration.

Each claim is moved in two phases:

1. Control plane: the claim is recreated at the destination. Claims bound
   to a statically provisioned hostPath volume get a cloned volume to bind
   to; every other claim is left to the destination's dynamic provisioner.
2. Data: a sender pod (source) and a receiver pod (destination) mount the
   two claims, and the volume contents are streamed between them as a tar
   archive. Both pods are removed afterwards, whatever the result.

A failure in either phase is reported for that claim only.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import tenacity as tc

from k8s_clone.core.cluster import KubeClient
from k8s_clone.core.config import Settings
from k8s_clone.core.constants import (
    APP_KUBERNETES_IO_COMPONENT,
    APP_KUBERNETES_IO_MANAGED_BY,
    K8S_CLONE_MANAGER_LABEL,
    MAX_OBJECT_NAME_LENGTH,
    MIGRATED_HOST_PATH_INFIX,
    MIGRATED_PV_PREFIX,
    POD_PHASE_RUNNING,
    RECEIVER_POD_PREFIX,
    SENDER_POD_PREFIX,
    WORKER_COMPONENT_LABEL,
    WORKER_CONTAINER_NAME,
    WORKER_VOLUME_NAME,
)
from k8s_clone.core.errors import (
    PodStartTimeout,
    TransferFailure,
    VolumeCloneFailure,
    error_message,
)
from k8s_clone.models.resources import OutcomeStatus, PodRef, ResourceKind, ResourceOutcome
from k8s_clone.services import metadata_cleaner
from k8s_clone.services.resource_handlers import migrated, migration_failed
from k8s_clone.services.spec_overwriter import apply_overwrite_spec
from k8s_clone.services.transfer import KubectlStreamCopier, StreamCopier

logger = logging.getLogger(__name__)

PVC = ResourceKind.PERSISTENT_VOLUME_CLAIM


def _on_pending(retry_state: tc.RetryCallState):
    """Log the phase of a worker pod that is not Running yet."""
    pod_name = retry_state.args[0]
    phase = retry_state.outcome.result()
    logger.debug(
        f"Pod {pod_name} is {phase or 'not scheduled'} (attempt {retry_state.attempt_number})"
    )


def _unique_name(prefix: str, name: str, timestamp: int) -> str:
    suffix = f"-{timestamp}"
    base = f"{prefix}-{name}"[: MAX_OBJECT_NAME_LENGTH - len(suffix)].rstrip("-.")
    return f"{base}{suffix}"


class PvcMigrator:
    """Migrates PersistentVolumeClaims together with their contents."""

    def __init__(
        self,
        source: KubeClient,
        destination: KubeClient,
        settings: Settings,
        copier: Optional[StreamCopier] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.destination = destination
        self.settings = settings
        self.copier = copier or KubectlStreamCopier(
            kubectl_binary=settings.kubectl_binary,
            mount_path=settings.worker_mount_path,
        )
        self._sleep = sleep
        self._clock = clock

    def _timestamp(self) -> int:
        return int(self._clock() * 1000)

    def migrate(
        self,
        name: str,
        source_namespace: str,
        dest_namespace: str,
        overwrite_spec: Optional[Dict[str, Any]] = None,
    ) -> ResourceOutcome:
        """Recreate the claim at the destination, then copy its data."""
        try:
            self.migrate_claim(name, source_namespace, dest_namespace, overwrite_spec)
        except Exception as e:
            return migration_failed(PVC, name, e)
        logger.info(f"{PVC.value} {name} created in destination.")

        try:
            self.migrate_data(source_namespace, name, dest_namespace, name)
        except Exception as e:
            message = f"Failed to migrate {PVC.value} {name}: {error_message(e)}"
            logger.error(message)
            return ResourceOutcome(kind=PVC, name=name, status=OutcomeStatus.FAILED, message=message)
        return migrated(PVC, name)

    # Control plane

    def migrate_claim(
        self,
        name: str,
        source_namespace: str,
        dest_namespace: str,
        overwrite_spec: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create the destination claim; return the body that was sent."""
        pvc = self.source.read(PVC, name, source_namespace)
        pvc.setdefault("kind", PVC.value)
        spec = pvc.get("spec") or {}
        storage_class = spec.get("storageClassName")
        volume_name = spec.get("volumeName")

        cleaned = metadata_cleaner.clean_pvc(pvc, dest_namespace)

        if storage_class == self.settings.manual_storage_class and volume_name:
            try:
                new_volume = self.clone_volume(volume_name)
            except VolumeCloneFailure as e:
                logger.error(
                    f"Failed to clone PV for manual PVC: {e}. "
                    "Proceeding with dynamic provisioning attempt."
                )
                new_volume = None
            if new_volume:
                cleaned.setdefault("spec", {})["volumeName"] = new_volume

        if overwrite_spec:
            apply_overwrite_spec(cleaned, overwrite_spec)

        self.destination.create(PVC, dest_namespace, cleaned)
        return cleaned

    def clone_volume(self, volume_name: str) -> Optional[str]:
        """Clone a hostPath PersistentVolume into the destination cluster.

        Returns:
            Name of the new volume, or None when the volume is not hostPath
            backed and cannot be cloned.

        Raises:
            VolumeCloneFailure: reading or creating the volume failed.
        """
        try:
            return self._clone_volume(volume_name)
        except Exception as e:
            raise VolumeCloneFailure(error_message(e)) from e

    def _clone_volume(self, volume_name: str) -> Optional[str]:
        pv = self.source.read_persistent_volume(volume_name)
        host_path = (pv.get("spec") or {}).get("hostPath")
        if not host_path:
            logger.info(f"PV {volume_name} is not hostPath backed; using dynamic provisioning.")
            return None

        timestamp = self._timestamp()
        new_name = _unique_name(MIGRATED_PV_PREFIX, volume_name, timestamp)
        new_pv = metadata_cleaner.clean_persistent_volume(pv, new_name)
        # Binding annotations belong to the original claim
        new_pv["metadata"].pop("annotations", None)
        new_pv["apiVersion"] = "v1"
        new_pv["kind"] = "PersistentVolume"
        new_pv["spec"]["hostPath"] = {
            **host_path,
            "path": f"{host_path.get('path', '')}{MIGRATED_HOST_PATH_INFIX}{timestamp}",
        }

        self.destination.create_persistent_volume(new_pv)
        logger.info(f"Created new PV {new_name} for manual migration.")
        return new_name

    # Data plane

    def worker_pod_manifest(self, pod: PodRef, claim_name: str) -> Dict[str, Any]:
        """Build a sleeping pod that mounts `claim_name` at the worker mount path."""
        return {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {
                "name": pod.name,
                "namespace": pod.namespace,
                "labels": {
                    APP_KUBERNETES_IO_MANAGED_BY: K8S_CLONE_MANAGER_LABEL,
                    APP_KUBERNETES_IO_COMPONENT: WORKER_COMPONENT_LABEL,
                },
            },
            "spec": {
                "containers": [
                    {
                        "name": pod.container,
                        "image": self.settings.worker_image,
                        "command": list(self.settings.worker_command),
                        "volumeMounts": [
                            {
                                "name": WORKER_VOLUME_NAME,
                                "mountPath": self.settings.worker_mount_path,
                            }
                        ],
                    }
                ],
                "volumes": [
                    {
                        "name": WORKER_VOLUME_NAME,
                        "persistentVolumeClaim": {"claimName": claim_name},
                    }
                ],
                "restartPolicy": "Never",
            },
        }

    def migrate_data(
        self, source_namespace: str, source_pvc: str, dest_namespace: str, dest_pvc: str
    ) -> None:
        """Copy the contents of `source_pvc` into `dest_pvc` through worker pods.

        Raises:
            PodStartTimeout: a worker pod never reached Running.
            TransferFailure: the copy pipeline exited non-zero.
        """
        logger.info(f"Starting data migration for PVC {source_pvc}...")
        timestamp = self._timestamp()
        sender = PodRef(
            context=self.source.context,
            namespace=source_namespace,
            name=_unique_name(SENDER_POD_PREFIX, source_pvc, timestamp),
            container=WORKER_CONTAINER_NAME,
        )
        receiver = PodRef(
            context=self.destination.context,
            namespace=dest_namespace,
            name=_unique_name(RECEIVER_POD_PREFIX, dest_pvc, timestamp),
            container=WORKER_CONTAINER_NAME,
        )

        try:
            logger.info(f"Creating sender pod {sender.name} in {source_namespace}...")
            self.source.create_pod(source_namespace, self.worker_pod_manifest(sender, source_pvc))

            logger.info(f"Creating receiver pod {receiver.name} in {dest_namespace}...")
            self.destination.create_pod(dest_namespace, self.worker_pod_manifest(receiver, dest_pvc))

            logger.info("Waiting for pods to be ready...")
            self.wait_for_pod_running(self.source, sender)
            self.wait_for_pod_running(self.destination, receiver)

            logger.info("Transferring data...")
            exit_code = self.copier.stream_copy(sender, receiver)
            if exit_code != 0:
                raise TransferFailure(exit_code)
            logger.info(f"Data migration for PVC {source_pvc} completed.")
        finally:
            self.cleanup_pods(sender, receiver)

    def wait_for_pod_running(self, client: KubeClient, pod: PodRef) -> None:
        """Poll the pod phase until it is Running.

        The phase is read at most `pod_poll_attempts` times, sleeping
        `pod_poll_interval` seconds between reads.

        Raises:
            PodStartTimeout: the pod was not Running after the last read.
        """
        attempts = self.settings.pod_poll_attempts
        retrying = tc.Retrying(
            stop=tc.stop_after_attempt(attempts),
            wait=tc.wait_fixed(self.settings.pod_poll_interval),
            retry=tc.retry_if_result(lambda phase: phase != POD_PHASE_RUNNING),
            before_sleep=_on_pending,
            sleep=self._sleep,
        )
        try:
            retrying(client.read_pod_phase, pod.name, pod.namespace)
        except tc.RetryError:
            raise PodStartTimeout(pod.name, attempts) from None

    def cleanup_pods(self, sender: PodRef, receiver: PodRef) -> None:
        """Delete both worker pods; failures are logged and ignored."""
        logger.info("Cleaning up migration pods...")
        for client, pod in ((self.source, sender), (self.destination, receiver)):
            try:
                client.delete_pod(pod.name, pod.namespace)
            except Exception as e:
                logger.debug(f"Ignoring cleanup failure for pod {pod.name}: {error_message(e)}")
