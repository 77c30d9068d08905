"""The project manifest (``Packages/manifest.json``) and pure transformations on it.

Every function here returns a new manifest value instead of mutating its
input, so a batch of changes can be computed completely before anything is
written back to disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from openupm.domain.registry import registry_name_for, remove_trailing_slash


@dataclass(frozen=True)
class ScopedRegistry:
    """A registry plus the package scopes that should be fetched from it."""

    name: str
    url: str
    scopes: Tuple[str, ...] = ()

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes


def make_empty_scoped_registry_for(url: str) -> ScopedRegistry:
    return ScopedRegistry(name=registry_name_for(url), url=url, scopes=())


def add_scope(scoped_registry: ScopedRegistry, scope: str) -> ScopedRegistry:
    """Add a scope, keeping the list sorted and free of duplicates."""
    if scoped_registry.has_scope(scope):
        return scoped_registry
    return replace(scoped_registry, scopes=tuple(sorted(scoped_registry.scopes + (scope,))))


def remove_scope(scoped_registry: ScopedRegistry, scope: str) -> ScopedRegistry:
    return replace(scoped_registry, scopes=tuple(s for s in scoped_registry.scopes if s != scope))


@dataclass(frozen=True)
class ProjectManifest:
    """Content of a project manifest.

    ``extras`` holds top-level properties this tool does not manage; they are
    written back unchanged.
    """

    dependencies: Mapping[str, str] = field(default_factory=dict)
    scoped_registries: Optional[Tuple[ScopedRegistry, ...]] = None
    testables: Optional[Tuple[str, ...]] = None
    extras: Mapping[str, Any] = field(default_factory=dict)


EMPTY_PROJECT_MANIFEST = ProjectManifest()


def has_dependency(manifest: ProjectManifest, name: str) -> bool:
    return name in manifest.dependencies


def set_dependency(manifest: ProjectManifest, name: str, version: str) -> ProjectManifest:
    """Set a dependency, overwriting the version if it already exists."""
    dependencies = dict(manifest.dependencies)
    dependencies[name] = version
    return replace(manifest, dependencies=dependencies)


def remove_dependency(manifest: ProjectManifest, name: str) -> ProjectManifest:
    dependencies = {key: value for key, value in manifest.dependencies.items() if key != name}
    return replace(manifest, dependencies=dependencies)


def try_get_scoped_registry_by_url(manifest: ProjectManifest, url: str) -> Optional[ScopedRegistry]:
    """Find a scoped registry by url, ignoring trailing slashes."""
    wanted = remove_trailing_slash(url)
    for scoped_registry in manifest.scoped_registries or ():
        if remove_trailing_slash(scoped_registry.url) == wanted:
            return scoped_registry
    return None


def map_scoped_registry(
    manifest: ProjectManifest,
    url: str,
    map_fn: Callable[[Optional[ScopedRegistry]], Optional[ScopedRegistry]],
) -> ProjectManifest:
    """Update the scoped registry with the given url.

    ``map_fn`` receives the current entry (or None if there is none) and
    returns its replacement; returning None removes the entry. Existing
    entries keep their position, new ones are appended.
    """
    current = try_get_scoped_registry_by_url(manifest, url)
    updated = map_fn(current)
    registries = list(manifest.scoped_registries or ())

    if current is not None:
        index = registries.index(current)
        if updated is None:
            del registries[index]
        else:
            registries[index] = updated
    elif updated is not None:
        registries.append(updated)
    else:
        return manifest

    return replace(manifest, scoped_registries=tuple(registries))


def add_testable(manifest: ProjectManifest, name: str) -> ProjectManifest:
    """Add a testable, keeping the list sorted and deduplicated."""
    testables = manifest.testables or ()
    if name in testables:
        return manifest
    return replace(manifest, testables=tuple(sorted(set(testables) | {name})))


def remove_testable(manifest: ProjectManifest, name: str) -> ProjectManifest:
    if manifest.testables is None:
        return manifest
    return replace(manifest, testables=tuple(t for t in manifest.testables if t != name))


def remove_scope_from_all_scoped_registries(manifest: ProjectManifest, name: str) -> ProjectManifest:
    if manifest.scoped_registries is None:
        return manifest
    return replace(
        manifest,
        scoped_registries=tuple(remove_scope(sr, name) for sr in manifest.scoped_registries),
    )


def remove_empty_scoped_registries(manifest: ProjectManifest) -> ProjectManifest:
    if manifest.scoped_registries is None:
        return manifest
    return replace(
        manifest,
        scoped_registries=tuple(sr for sr in manifest.scoped_registries if sr.scopes),
    )


def parse_project_manifest(content: str) -> ProjectManifest:
    """Parse the text of a manifest file.

    Raises:
        ValueError: If the content is not JSON or has the wrong shape.
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("manifest must be a JSON object")

    dependencies = data.get("dependencies", {})
    if not isinstance(dependencies, dict):
        raise ValueError('"dependencies" must be an object')

    scoped_registries = None
    if "scopedRegistries" in data:
        raw_registries = data["scopedRegistries"]
        if not isinstance(raw_registries, list):
            raise ValueError('"scopedRegistries" must be an array')
        scoped_registries = tuple(_parse_scoped_registry(entry) for entry in raw_registries)

    testables = None
    if "testables" in data:
        if not isinstance(data["testables"], list):
            raise ValueError('"testables" must be an array')
        testables = tuple(data["testables"])

    extras = {
        key: value for key, value in data.items()
        if key not in ("dependencies", "scopedRegistries", "testables")
    }
    return ProjectManifest(
        dependencies=dict(dependencies),
        scoped_registries=scoped_registries,
        testables=testables,
        extras=extras,
    )


def _parse_scoped_registry(entry: Any) -> ScopedRegistry:
    if not isinstance(entry, dict) or "url" not in entry:
        raise ValueError("scoped registry entries need at least a url")
    return ScopedRegistry(
        name=str(entry.get("name", "")),
        url=str(entry["url"]),
        scopes=tuple(entry.get("scopes") or ()),
    )


def manifest_to_dict(manifest: ProjectManifest) -> Dict[str, Any]:
    """JSON-ready form of a manifest.

    Scoped registries without scopes are pruned, and the property is left out
    when none remain.
    """
    data: Dict[str, Any] = {
        "dependencies": {name: manifest.dependencies[name] for name in sorted(manifest.dependencies)},
    }
    if manifest.scoped_registries is not None:
        registries = [
            {"name": sr.name, "url": sr.url, "scopes": list(sr.scopes)}
            for sr in manifest.scoped_registries
            if sr.scopes
        ]
        if registries:
            data["scopedRegistries"] = registries
    if manifest.testables is not None:
        data["testables"] = list(manifest.testables)
    for key, value in manifest.extras.items():
        data[key] = value
    return data


def serialize_project_manifest(manifest: ProjectManifest) -> str:
    """Serialize with stable key order and two-space indentation."""
    return json.dumps(manifest_to_dict(manifest), indent=2, ensure_ascii=False) + "\n"
