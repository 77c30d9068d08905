"""Atomically adding packages to a project manifest.

All requested packages are applied to one in-memory manifest value. If any
of them fails, the exception propagates before anything is written, so the
manifest on disk is either fully updated or untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from openupm.constants import Constants
from openupm.domain.dependency_graph import FailedNode, ResolvedNode
from openupm.domain.editor_version import EditorVersion
from openupm.domain.package_reference import (
    is_package_url,
    make_package_reference,
    split_package_reference,
)
from openupm.domain.project_manifest import (
    ProjectManifest,
    add_scope,
    add_testable,
    has_dependency,
    make_empty_scoped_registry_for,
    map_scoped_registry,
    set_dependency,
)
from openupm.domain.registry import Registry, UPSTREAM_REGISTRY
from openupm.errors import UnresolvedDependenciesError
from openupm.project.manifest_io import load_project_manifest, save_project_manifest
from openupm.registry.client import FetchPackument
from openupm.services.compatibility import check_compatibility
from openupm.services.dependency_resolver import DependencyResolver
from openupm.services.packument_version import resolve_packument_version

logger = logging.getLogger(__name__)


class AddResultType(Enum):
    """What happened to a package's manifest entry."""
    ADDED = "added"
    UPGRADED = "upgraded"
    NO_CHANGE = "noChange"


@dataclass(frozen=True)
class AddResult:
    type: AddResultType
    version: str
    from_version: Optional[str] = None


@dataclass(frozen=True)
class UnresolvedDependency:
    """A dependency that no registry could supply, with the error per registry."""
    name: str
    version: str
    errors: Mapping[str, Exception] = field(default_factory=dict)


@dataclass(frozen=True)
class AddOptions:
    force: bool = False
    add_as_testable: bool = False


@dataclass(frozen=True)
class AddEnv:
    """Project environment an add operation runs in.

    ``editor_version`` is None or a raw string when the project's editor is
    unknown; the compatibility check is skipped in that case.
    """
    primary_registry: Registry
    upstream: bool = True
    editor_version: Union[EditorVersion, str, None] = None


@dataclass(frozen=True)
class AddPackagesResult:
    manifest: ProjectManifest
    dirty: bool
    results: Dict[str, AddResult]


def _collect_scopes(
    manifest: ProjectManifest,
    resolver: DependencyResolver,
    env: AddEnv,
    name: str,
    version: str,
    force: bool,
) -> List[str]:
    """Resolve the full dependency graph of a package and list the names to scope."""
    graph = resolver.resolve([env.primary_registry, UPSTREAM_REGISTRY], name, version, deep=True)

    scopes: List[str] = []
    unresolved: List[UnresolvedDependency] = []
    for dep_name, dep_version, node in graph:
        if isinstance(node, FailedNode):
            # Already in the manifest, so the editor can obviously get it somehow
            if not has_dependency(manifest, dep_name):
                unresolved.append(UnresolvedDependency(dep_name, dep_version, dict(node.errors)))
            continue
        if not isinstance(node, ResolvedNode):
            continue
        if node.source in (Constants.BUILTIN_SOURCE, Constants.REGISTRY_URL_UPSTREAM):
            continue
        scopes.append(dep_name)

    if unresolved:
        package_ref = make_package_reference(name, version)
        if not force:
            raise UnresolvedDependenciesError(package_ref, unresolved)
        logger.warning(
            "%s has unresolved dependencies (%s), adding it anyway",
            package_ref,
            ", ".join(f"{dep.name}@{dep.version}" for dep in unresolved),
        )
    return scopes


def _add_single(
    manifest: ProjectManifest,
    env: AddEnv,
    reference: str,
    fetch_packument: FetchPackument,
    resolver: DependencyResolver,
    opts: AddOptions,
) -> Tuple[ProjectManifest, str, AddResult]:
    name, requested_version = split_package_reference(reference)
    scopes: List[str] = []
    is_upstream_package = False

    if requested_version is not None and is_package_url(requested_version):
        version_to_add = requested_version
    else:
        resolved = resolve_packument_version(
            fetch_packument, name, requested_version, env.primary_registry, env.upstream
        )
        version_to_add = resolved.version
        is_upstream_package = resolved.source == UPSTREAM_REGISTRY.url
        check_compatibility(
            make_package_reference(name, version_to_add),
            resolved.packument_version,
            env.editor_version,
            opts.force,
        )
        if not is_upstream_package:
            scopes = _collect_scopes(manifest, resolver, env, name, version_to_add, opts.force)

    old_version = manifest.dependencies.get(name)
    manifest = set_dependency(manifest, name, version_to_add)

    if scopes:
        def merge_scopes(current):
            updated = current or make_empty_scoped_registry_for(env.primary_registry.url)
            for scope in scopes:
                updated = add_scope(updated, scope)
            return updated

        manifest = map_scoped_registry(manifest, env.primary_registry.url, merge_scopes)

    if opts.add_as_testable:
        manifest = add_testable(manifest, name)

    if old_version is None:
        result = AddResult(AddResultType.ADDED, version_to_add)
    elif old_version != version_to_add:
        result = AddResult(AddResultType.UPGRADED, version_to_add, from_version=old_version)
    else:
        result = AddResult(AddResultType.NO_CHANGE, version_to_add)
    return manifest, name, result


def add_packages(
    manifest: ProjectManifest,
    env: AddEnv,
    references: Sequence[str],
    fetch_packument: FetchPackument,
    resolver: DependencyResolver,
    opts: Optional[AddOptions] = None,
) -> AddPackagesResult:
    """Compute the manifest with all requested packages added.

    Args:
        manifest: The current manifest. It is not modified.
        env: Registries and editor version of the project.
        references: Package references (``name``, ``name@version`` or ``name@url``).
        fetch_packument: Registry client.
        resolver: Resolver used to collect the scopes of each package.
        opts: Force and testable flags.

    Returns:
        AddPackagesResult with the new manifest, whether it differs from the
        input and the outcome per package name.

    Raises:
        OpenUpmError: The first failure; no partial result is returned.
    """
    opts = opts or AddOptions()
    current = manifest
    results: Dict[str, AddResult] = {}
    for reference in references:
        current, name, result = _add_single(current, env, reference, fetch_packument, resolver, opts)
        results[name] = result

    return AddPackagesResult(manifest=current, dirty=current != manifest, results=results)


def add_packages_to_project(
    project_path: str,
    env: AddEnv,
    references: Sequence[str],
    fetch_packument: FetchPackument,
    resolver: DependencyResolver,
    opts: Optional[AddOptions] = None,
) -> AddPackagesResult:
    """Load the project's manifest, add packages and save it if anything changed."""
    manifest = load_project_manifest(project_path)
    outcome = add_packages(manifest, env, references, fetch_packument, resolver, opts)
    if outcome.dirty:
        save_project_manifest(project_path, outcome.manifest)
    return outcome
