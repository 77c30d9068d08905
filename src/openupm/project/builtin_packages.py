"""Built-in packages of a locally installed editor."""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

from openupm.constants import Constants
from openupm.domain.editor_version import (
    EditorVersion,
    compare_editor_version,
    format_editor_version,
)
from openupm.errors import (
    BuiltInPackagesReadError,
    EditorNotInstalledError,
    EditorVersionNotSupportedError,
    OSNotSupportedError,
    VersionNotSupportedOnOsError,
)

logger = logging.getLogger(__name__)

# The package manager was introduced with 2018.1
FIRST_SUPPORTED_EDITOR_VERSION = EditorVersion(2018, 1)
FIRST_SUPPORTED_VERSION_ON_LINUX = EditorVersion(2019, 2)


def get_editor_install_path(editor_version: EditorVersion, platform: Optional[str] = None) -> str:
    """Default hub install path for an editor version. No trailing slash.

    Raises:
        EditorVersionNotSupportedError: For editors without package support.
        VersionNotSupportedOnOsError: For editors not built for this OS.
        OSNotSupportedError: For operating systems without editor builds.
    """
    if compare_editor_version(editor_version, FIRST_SUPPORTED_EDITOR_VERSION) < 0:
        raise EditorVersionNotSupportedError(editor_version)

    platform = platform or sys.platform
    version_string = format_editor_version(editor_version)

    if platform.startswith("win"):
        return "C:\\Program Files\\Unity\\Hub\\Editor\\" + version_string
    if platform.startswith("linux"):
        if compare_editor_version(editor_version, FIRST_SUPPORTED_VERSION_ON_LINUX) < 0:
            raise VersionNotSupportedOnOsError(editor_version, platform)
        return os.path.join(os.path.expanduser("~"), "Unity", "Hub", "Editor", version_string)
    if platform == "darwin":
        return "/Applications/Unity/Hub/Editor/" + version_string
    raise OSNotSupportedError(platform)


def find_builtin_packages(editor_version: EditorVersion, platform: Optional[str] = None) -> List[str]:
    """Names of the packages that ship with an installed editor.

    Raises:
        EditorNotInstalledError: If the editor's package directory does not exist.
        BuiltInPackagesReadError: If the directory exists but cannot be listed.
    """
    install_path = get_editor_install_path(editor_version, platform)
    packages_dir = os.path.join(install_path, *Constants.BUILTIN_PACKAGES_SUBDIR)
    try:
        entries = os.listdir(packages_dir)
    except FileNotFoundError as e:
        logger.debug("Failed to get directories in built-in package directory %s: %s", packages_dir, e)
        raise EditorNotInstalledError(editor_version) from e
    except OSError as e:
        raise BuiltInPackagesReadError(packages_dir, e) from e
    return sorted(entry for entry in entries if os.path.isdir(os.path.join(packages_dir, entry)))
