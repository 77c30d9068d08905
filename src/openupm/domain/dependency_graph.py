"""Dependency graphs.

A graph maps ``(package name, version)`` keys to nodes recording whether and
where that package was found. Nodes never point at other nodes; a resolved
node lists its dependencies as name/version pairs, which are keys into the
same graph. Every key is inserted exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from openupm.constants import Constants
from openupm.domain.package_reference import is_package_url
from openupm.errors import reason_for

PackageKey = Tuple[str, str]


class NodeType(Enum):
    """Resolution state of a graph node."""
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class UnresolvedNode:
    """Placeholder for a dependency that shallow resolution did not descend into."""
    type: NodeType = field(default=NodeType.UNRESOLVED, init=False)


@dataclass(frozen=True)
class ResolvedNode:
    """A package that was found, either on a registry or built into the editor."""
    source: str  # registry url or Constants.BUILTIN_SOURCE
    dependencies: Mapping[str, str] = field(default_factory=dict)
    type: NodeType = field(default=NodeType.RESOLVED, init=False)

    @property
    def is_builtin(self) -> bool:
        return self.source == Constants.BUILTIN_SOURCE


@dataclass(frozen=True)
class FailedNode:
    """A package no source could supply. Errors are keyed by registry url."""
    errors: Mapping[str, Exception] = field(default_factory=dict)
    type: NodeType = field(default=NodeType.FAILED, init=False)


GraphNode = Union[UnresolvedNode, ResolvedNode, FailedNode]


class DependencyGraph:
    """Insertion-ordered mapping of package keys to nodes."""

    def __init__(self) -> None:
        self._nodes: Dict[PackageKey, GraphNode] = {}

    def __contains__(self, key: PackageKey) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Tuple[str, str, GraphNode]]:
        """Yield ``(name, version, node)`` in insertion order."""
        for (name, version), node in self._nodes.items():
            yield name, version, node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return list(self._nodes.items()) == list(other._nodes.items())

    def __repr__(self) -> str:
        return f"DependencyGraph({self._nodes!r})"

    def add(self, name: str, version: str, node: GraphNode) -> None:
        """Insert a node.

        Raises:
            ValueError: If the key is already present.
        """
        key = (name, version)
        if key in self._nodes:
            raise ValueError(f"{name}@{version} is already in the dependency graph")
        self._nodes[key] = node

    def get(self, name: str, version: str) -> Optional[GraphNode]:
        return self._nodes.get((name, version))

    def keys(self) -> List[PackageKey]:
        return list(self._nodes.keys())

    def nodes_of_type(self, node_type: NodeType) -> List[Tuple[str, str, GraphNode]]:
        return [(name, version, node) for name, version, node in self if node.type is node_type]


def stringify_dependency_graph(graph: DependencyGraph, root_name: str, root_version: str) -> List[str]:
    """Render the graph as an indented tree, one string per line.

    Packages printed before are shortened to ``name@version ..``.
    """
    printed = set()

    def render(name: str, version: str) -> List[str]:
        node = graph.get(name, version)
        if node is None and is_package_url(version):
            return [f"{name}@{version}"]
        if node is None:
            raise KeyError(f"Dependency graph did not contain a node for {name}@{version}")

        ref = f"{name}@{version}"
        if ref in printed:
            return [f"{ref} .."]
        printed.add(ref)

        if node.type is NodeType.UNRESOLVED:
            return [ref]

        if node.type is NodeType.FAILED:
            return [ref] + [f'  - "{url}": {reason_for(err)}' for url, err in node.errors.items()]

        tag = ""
        if node.source == Constants.BUILTIN_SOURCE:
            tag = " [internal]"
        elif node.source == Constants.REGISTRY_URL_UPSTREAM:
            tag = " [upstream]"

        blocks = [render(dep_name, dep_version) for dep_name, dep_version in node.dependencies.items()]
        lines = [ref + tag]
        for block_index, block in enumerate(blocks):
            for line_index, line in enumerate(block):
                if line_index == 0:
                    prefix = "└─ "
                elif block_index < len(blocks) - 1:
                    prefix = "│  "
                else:
                    prefix = "   "
                lines.append(prefix + line)
        return lines

    return render(root_name, root_version)
