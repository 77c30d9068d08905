"""Loading and saving the project manifest file."""

from __future__ import annotations

import logging
import os

from openupm.constants import Constants
from openupm.domain.project_manifest import (
    ProjectManifest,
    parse_project_manifest,
    serialize_project_manifest,
)
from openupm.errors import ManifestLoadError, ManifestWriteError

logger = logging.getLogger(__name__)


def manifest_path_for(project_path: str) -> str:
    """Path of the manifest inside a project directory."""
    return os.path.join(project_path, *Constants.MANIFEST_PATH)


def load_project_manifest(project_path: str) -> ProjectManifest:
    """Read and parse the manifest of a project.

    Raises:
        ManifestLoadError: If the file is missing, unreadable or malformed.
    """
    path = manifest_path_for(project_path)
    try:
        with open(path, encoding="utf-8") as file:
            content = file.read()
    except OSError as e:
        logger.debug("Could not read manifest %s: %s", path, e)
        raise ManifestLoadError(path, e) from e
    try:
        return parse_project_manifest(content)
    except ValueError as e:
        logger.debug("Could not parse manifest %s: %s", path, e)
        raise ManifestLoadError(path, e) from e


def save_project_manifest(project_path: str, manifest: ProjectManifest) -> None:
    """Write the manifest back to the project.

    Raises:
        ManifestWriteError: If the file cannot be written.
    """
    path = manifest_path_for(project_path)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as file:
            file.write(serialize_project_manifest(manifest))
    except OSError as e:
        raise ManifestWriteError(path, e) from e
    logger.debug("Manifest written to %s", path)
