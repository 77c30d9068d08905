"""Atomically removing packages from a project manifest."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from openupm.domain.project_manifest import (
    ProjectManifest,
    has_dependency,
    remove_dependency,
    remove_empty_scoped_registries,
    remove_scope_from_all_scoped_registries,
    remove_testable,
)
from openupm.errors import PackumentNotFoundError
from openupm.project.manifest_io import load_project_manifest, save_project_manifest


@dataclass(frozen=True)
class RemovedPackage:
    name: str
    version: str


def remove_packages(
    manifest: ProjectManifest,
    names: Sequence[str],
) -> Tuple[ProjectManifest, List[RemovedPackage]]:
    """Remove packages together with their scopes and testable entries.

    Raises:
        PackumentNotFoundError: For the first name that is not a dependency.
            Nothing is removed in that case.
    """
    for name in names:
        if not has_dependency(manifest, name):
            raise PackumentNotFoundError(name)

    updated = manifest
    removed: List[RemovedPackage] = []
    for name in names:
        if not has_dependency(updated, name):
            # Listed twice
            continue
        removed.append(RemovedPackage(name, updated.dependencies[name]))
        updated = remove_dependency(updated, name)
        updated = remove_scope_from_all_scoped_registries(updated, name)
        updated = remove_empty_scoped_registries(updated)
        updated = remove_testable(updated, name)

    if updated.scoped_registries is not None and not updated.scoped_registries:
        updated = replace(updated, scoped_registries=None)
    if updated.testables is not None and not updated.testables:
        updated = replace(updated, testables=None)
    return updated, removed


def remove_packages_from_project(project_path: str, names: Sequence[str]) -> List[RemovedPackage]:
    """Remove packages from the project's manifest file.

    The file is only written if every name could be removed.
    """
    manifest = load_project_manifest(project_path)
    updated, removed = remove_packages(manifest, names)
    save_project_manifest(project_path, updated)
    return removed
