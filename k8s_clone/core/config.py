# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Run configuration using Pydantic Settings.
"""

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from K8S_CLONE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="K8S_CLONE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Defaults catalog (clusters, namespaces and resource names)
    config: str = "k8s-defaults.json"

    # Worker pods used for PVC data transfer
    worker_image: str = "alpine:latest"
    worker_mount_path: str = "/data"
    worker_command: List[str] = ["sleep", "infinity"]

    # Pod readiness polling
    pod_poll_interval: float = 1.0  # seconds between polls
    pod_poll_attempts: int = 60

    # PVCs on this storage class are bound to pre-created volumes
    manual_storage_class: str = "manual"

    # External command used to stream PVC contents between pods
    kubectl_binary: str = "kubectl"

    # Update notice shown before clone and clean runs
    skip_version_check: bool = False
    version_check_url: str = "https://pypi.org/pypi/k8s-clone/json"
    version_check_timeout: float = 3.0  # seconds

    @field_validator("pod_poll_attempts")
    @classmethod
    def _positive_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("pod_poll_attempts must be at least 1")
        return value

    @field_validator("pod_poll_interval")
    @classmethod
    def _non_negative_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("pod_poll_interval must not be negative")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
