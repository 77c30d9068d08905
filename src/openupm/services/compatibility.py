"""Editor compatibility check for packages being added."""

from __future__ import annotations

import logging
from typing import Optional, Union

from openupm.domain.editor_version import EditorVersion, compare_editor_version
from openupm.domain.packument import PackumentVersion, try_get_target_editor_version
from openupm.errors import (
    CompatibilityCheckFailedError,
    InvalidTargetEditorError,
    PackageIncompatibleError,
)

logger = logging.getLogger(__name__)


def check_compatibility(
    package_ref: str,
    packument_version: PackumentVersion,
    editor_version: Union[EditorVersion, str, None],
    force: bool = False,
) -> Optional[EditorVersion]:
    """Check that a package version works with the project's editor.

    Args:
        package_ref: ``name@version`` used in messages.
        packument_version: The version info being added.
        editor_version: The project's editor version. A string (or None) means
            the version is unknown and the check is skipped.
        force: Add the package even if the check fails.

    Returns:
        The package's target editor version, or None if it has none, could not
        be determined or the check was skipped.

    Raises:
        CompatibilityCheckFailedError: If the target editor version is malformed.
        PackageIncompatibleError: If the package needs a newer editor.
    """
    if not isinstance(editor_version, EditorVersion):
        return None

    try:
        target = try_get_target_editor_version(packument_version)
    except InvalidTargetEditorError as e:
        if not force:
            logger.warning("%s: %s", package_ref, e)
            raise CompatibilityCheckFailedError(package_ref) from e
        logger.debug("Ignoring malformed target editor version of %s", package_ref)
        return None

    if target is None:
        return None

    if compare_editor_version(editor_version, target) < 0:
        if not force:
            raise PackageIncompatibleError(package_ref, target)
        logger.warning("%s requires editor %s, adding it anyway", package_ref, target)
    return target
