"""Dependency resolution.

Builds a :class:`DependencyGraph` for a package by walking its dependencies
breadth-first. Each package is looked up among the editor's built-in
packages first, then on each source registry in order, committing to the
first registry that has the exact version.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Sequence

from openupm.common.logging_utils import extra_context, is_debug_enabled
from openupm.constants import Constants
from openupm.domain.dependency_graph import (
    DependencyGraph,
    FailedNode,
    ResolvedNode,
    UnresolvedNode,
)
from openupm.domain.package_reference import is_package_url
from openupm.domain.packument import dependencies_of, try_resolve_packument_version
from openupm.domain.registry import Registry
from openupm.errors import (
    BuiltInPackagesUnavailableError,
    NoVersionsError,
    OpenUpmError,
    PackumentNotFoundError,
    RegistryError,
    VersionNotFoundError,
)
from openupm.registry.client import FetchPackument

logger = logging.getLogger(__name__)

ListBuiltInPackages = Callable[[], Iterable[str]]


class DependencyResolver:
    """Resolves dependency graphs against a list of registries.

    Args:
        fetch_packument: Client used to query registries.
        list_builtin_packages: Lists the built-in packages of the installed
            editor. None if the editor is unknown, in which case no package
            counts as built-in.
    """

    def __init__(
        self,
        fetch_packument: FetchPackument,
        list_builtin_packages: Optional[ListBuiltInPackages] = None,
    ):
        self.fetch_packument = fetch_packument
        self.list_builtin_packages = list_builtin_packages

    def resolve(
        self,
        sources: Sequence[Registry],
        package_name: str,
        version: str,
        deep: bool,
    ) -> DependencyGraph:
        """Resolve a package and (if ``deep``) all its transitive dependencies.

        Args:
            sources: Registries to query, in priority order.
            package_name: Root package name.
            version: Root package version.
            deep: Whether to descend into dependencies of dependencies.

        Returns:
            A fresh graph. With ``deep=False`` the root's dependencies are
            recorded as unresolved placeholders.

        Raises:
            BuiltInPackagesUnavailableError: If built-in packages could not be listed.
        """
        graph = DependencyGraph()
        builtins = _BuiltInCache(self.list_builtin_packages)
        worklist = deque([(package_name, version)])
        queued = {(package_name, version)}

        while worklist:
            name, current_version = worklist.popleft()
            if (name, current_version) in graph:
                continue

            if builtins.contains(name):
                node = ResolvedNode(source=Constants.BUILTIN_SOURCE, dependencies={})
            else:
                node = self._resolve_from_registries(sources, name, current_version)
            graph.add(name, current_version, node)
            self._log_node(name, current_version, node)

            if not isinstance(node, ResolvedNode):
                continue

            for dep_name, dep_version in node.dependencies.items():
                # Url-pinned dependencies have no packument to fetch
                if is_package_url(dep_version):
                    continue
                key = (dep_name, dep_version)
                if key in graph:
                    continue
                if deep:
                    if key not in queued:
                        queued.add(key)
                        worklist.append(key)
                else:
                    graph.add(dep_name, dep_version, UnresolvedNode())

            if not deep:
                break

        return graph

    def _resolve_from_registries(self, sources: Sequence[Registry], name: str, version: str):
        """Query sources in order and stop at the first one that has the version."""
        errors: Dict[str, Exception] = {}
        for source in sources:
            try:
                packument = self.fetch_packument(source, name)
            except RegistryError as e:
                errors[source.url] = e
                continue

            if packument is None:
                errors[source.url] = PackumentNotFoundError(name)
                continue

            try:
                packument_version, version_error = try_resolve_packument_version(packument, version)
            except NoVersionsError:
                packument_version, version_error = None, VersionNotFoundError(name, version, [])
            if version_error is not None:
                errors[source.url] = version_error
                continue

            return ResolvedNode(source=source.url, dependencies=dependencies_of(packument_version))

        return FailedNode(errors=errors)

    @staticmethod
    def _log_node(name: str, version: str, node) -> None:
        if not is_debug_enabled(logger):
            return
        if isinstance(node, ResolvedNode):
            tag = ""
            if node.source == Constants.BUILTIN_SOURCE:
                tag = " [internal]"
            elif node.source == Constants.REGISTRY_URL_UPSTREAM:
                tag = " [upstream]"
            logger.debug(
                "%s@%s%s",
                name,
                version,
                tag,
                extra=extra_context(
                    event="resolve",
                    component="dependency_resolver",
                    outcome="resolved",
                    target=node.source,
                )
            )
        else:
            logger.debug(
                "%s@%s could not be resolved",
                name,
                version,
                extra=extra_context(event="resolve", component="dependency_resolver", outcome="failed")
            )


class _BuiltInCache:
    """Lists built-in packages at most once per resolution run."""

    def __init__(self, list_builtin_packages: Optional[ListBuiltInPackages]):
        self._list = list_builtin_packages
        self._names: Optional[FrozenSet[str]] = None

    def contains(self, name: str) -> bool:
        if self._list is None:
            return False
        if self._names is None:
            try:
                self._names = frozenset(self._list())
            except OpenUpmError as e:
                raise BuiltInPackagesUnavailableError(e) from e
        return name in self._names
