"""Determining the editor version a project was last opened with."""

from __future__ import annotations

import logging
import os
from typing import Union

import yaml

from openupm.constants import Constants
from openupm.domain.editor_version import EditorVersion, validate_project_version
from openupm.errors import ProjectVersionLoadError

logger = logging.getLogger(__name__)


def project_version_path_for(project_path: str) -> str:
    return os.path.join(project_path, *Constants.PROJECT_VERSION_PATH)


def load_project_version(project_path: str) -> str:
    """Read the raw ``m_EditorVersion`` value of a project.

    Raises:
        ProjectVersionLoadError: If the file is missing or has the wrong shape.
    """
    path = project_version_path_for(project_path)
    try:
        with open(path, encoding="utf-8") as file:
            # Scalars stay strings, so 2019.10 is not read as a float
            content = yaml.load(file, Loader=yaml.BaseLoader)
    except (OSError, yaml.YAMLError) as e:
        raise ProjectVersionLoadError(path, e) from e

    version = content.get("m_EditorVersion") if isinstance(content, dict) else None
    if not version or not isinstance(version, str):
        raise ProjectVersionLoadError(path)
    return version


def determine_editor_version(project_path: str) -> Union[EditorVersion, str]:
    """The project's editor version, or the raw string if it is not a release version."""
    unparsed = load_project_version(project_path)
    version = validate_project_version(unparsed)
    if isinstance(version, str):
        logger.warning("%s is unknown, the editor version check is disabled", unparsed)
    return version
