# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Installed version lookup and the "update available" notice.

The check is advisory: any network or parsing problem is logged at debug
level and reported as "no update".
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Optional

import httpx
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, Field

from k8s_clone import __version__
from k8s_clone.core.config import Settings

logger = logging.getLogger(__name__)

PACKAGE_NAME = "k8s-clone"
BANNER_WIDTH = 70


class VersionCheckResult(BaseModel):
    """Outcome of comparing the installed version with the latest release."""

    current_version: str = Field(..., description="Installed version")
    latest_version: Optional[str] = Field(None, description="Latest released version, if known")
    has_update: bool = Field(False, description="Whether a newer release exists")


def get_current_version() -> str:
    """Return the installed distribution version."""
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        # Running from a source checkout
        return __version__


def fetch_latest_version(url: str, timeout: float) -> Optional[str]:
    """Return `info.version` from a package index JSON endpoint, or None."""
    try:
        response = httpx.get(
            url, timeout=timeout, follow_redirects=True, headers={"Accept": "application/json"}
        )
        response.raise_for_status()
        latest = response.json().get("info", {}).get("version")
    except httpx.HTTPError as e:
        logger.debug(f"Version check against {url} failed: {e}")
        return None
    except (ValueError, AttributeError) as e:
        logger.debug(f"Unexpected version check response from {url}: {e}")
        return None
    return latest or None


def check_for_update(settings: Settings) -> VersionCheckResult:
    current = get_current_version()
    if settings.skip_version_check:
        return VersionCheckResult(current_version=current)

    latest = fetch_latest_version(settings.version_check_url, settings.version_check_timeout)
    if not latest:
        return VersionCheckResult(current_version=current)

    try:
        has_update = Version(latest) > Version(current)
    except InvalidVersion:
        logger.debug(f"Cannot compare versions {current!r} and {latest!r}")
        has_update = False
    return VersionCheckResult(current_version=current, latest_version=latest, has_update=has_update)


def format_update_message(result: VersionCheckResult) -> str:
    """Render the boxed update notice; empty when there is nothing to report."""
    if not result.has_update or not result.latest_version:
        return ""

    lines = [
        "",
        "UPDATE AVAILABLE!",
        "",
        f"There is a newer version (v{result.latest_version}) of {PACKAGE_NAME}",
        "",
        f"To update, run: pip install --upgrade {PACKAGE_NAME}",
        "",
    ]
    border = "─" * (BANNER_WIDTH + 2)
    body = []
    for line in lines:
        if len(line) > BANNER_WIDTH:
            line = line[: BANNER_WIDTH - 1] + "…"
        body.append(f"│  {line.ljust(BANNER_WIDTH)}│")
    return "\n".join([f"┌{border}┐", *body, f"└{border}┘"])
