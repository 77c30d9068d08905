"""Packument helpers.

Packuments are kept as the plain JSON dictionaries returned by the registry:
``{"name": ..., "versions": {semver: version_info}, "dist-tags": {...}}``.
Each ``version_info`` is the package's own manifest and may declare
``dependencies``, ``unity`` (``major.minor``) and ``unityRelease``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from openupm.constants import Constants
from openupm.domain.editor_version import EditorVersion, try_parse_editor_version
from openupm.errors import (
    InvalidTargetEditorError,
    NoVersionsError,
    VersionNotFoundError,
)

Packument = Mapping[str, Any]
PackumentVersion = Mapping[str, Any]


def versions_of(packument: Packument) -> List[str]:
    """Published versions in the order the registry listed them."""
    versions = packument.get("versions") or {}
    return list(versions.keys())


def packument_has_version(packument: Packument, version: str) -> bool:
    return version in (packument.get("versions") or {})


def try_get_packument_version(packument: Packument, version: str) -> Optional[PackumentVersion]:
    return (packument.get("versions") or {}).get(version)


def try_get_latest_version(packument: Packument) -> Optional[str]:
    """Latest version from dist-tags (``latest``, then ``stable``) or the legacy ``version`` field."""
    dist_tags = packument.get("dist-tags") or {}
    for tag in (Constants.LATEST_TAG, Constants.STABLE_TAG):
        if dist_tags.get(tag):
            return dist_tags[tag]
    legacy = packument.get("version")
    if isinstance(legacy, str) and legacy:
        return legacy
    return None


def try_resolve_packument_version(
    packument: Packument,
    requested_version: str,
) -> Tuple[Optional[PackumentVersion], Optional[VersionNotFoundError]]:
    """Resolve a version (or the ``latest`` tag) from a packument.

    Returns:
        Tuple of (packument_version, error); exactly one of them is None.

    Raises:
        NoVersionsError: If the packument has no versions at all.
    """
    name = packument.get("name", "")
    available = versions_of(packument)
    if not available:
        raise NoVersionsError(name)

    if requested_version == Constants.LATEST_TAG:
        latest = try_get_latest_version(packument)
        if latest is None or not packument_has_version(packument, latest):
            latest = available[-1]
        return _with_version(packument, latest), None

    if requested_version not in available:
        return None, VersionNotFoundError(name, requested_version, available)
    return _with_version(packument, requested_version), None


def _with_version(packument: Packument, version: str) -> Dict[str, Any]:
    """Version info guaranteed to carry its own version string."""
    info = dict(try_get_packument_version(packument, version) or {})
    info.setdefault("version", version)
    return info


def dependencies_of(packument_version: PackumentVersion) -> Dict[str, str]:
    """Direct dependencies of a package version, copied verbatim."""
    return dict(packument_version.get("dependencies") or {})


def try_get_target_editor_version(packument_version: PackumentVersion) -> Optional[EditorVersion]:
    """Extract the minimum editor version a package targets.

    Returns:
        The editor version, or None if the package supports every editor.

    Raises:
        InvalidTargetEditorError: If the declaration cannot be parsed.
    """
    major_minor = packument_version.get("unity")
    if major_minor is None:
        return None
    release = packument_version.get("unityRelease")
    version_string = f"{major_minor}.{release}" if release is not None else str(major_minor)
    parsed = try_parse_editor_version(version_string)
    if parsed is None:
        raise InvalidTargetEditorError(version_string)
    return parsed



def stringify_packument(packument: Packument) -> List[str]:
    """Human-readable summary of a package, built from its latest version.

    Raises:
        NoVersionsError: If the packument has no versions at all.
    """
    info, _ = try_resolve_packument_version(packument, Constants.LATEST_TAG)
    version = info["version"]
    versions = versions_of(packument)
    license_name = info.get("license") or "proprietary or unlicensed"
    description = info.get("description") or packument.get("description")
    keywords = info.get("keywords") or packument.get("keywords")
    latest = (packument.get("dist-tags") or {}).get(Constants.LATEST_TAG)
    times = packument.get("time") or {}
    published = times.get("modified") or (times.get(latest) if latest else None)

    lines = [f"{packument.get('name', '')}@{version} | {license_name} | versions: {len(versions)}", ""]
    if info.get("displayName"):
        lines.append(info["displayName"])
    if description:
        lines.append(description)
    if info.get("homepage"):
        lines.append(info["homepage"])
    if keywords:
        lines.append("keywords: " + ", ".join(keywords))

    dist = info.get("dist")
    if dist:
        lines += ["", "dist", f".tarball: {dist.get('tarball')}"]
        for key in ("shasum", "integrity"):
            if dist.get(key):
                lines.append(f".{key}: {dist[key]}")

    dependencies = dependencies_of(info)
    if dependencies:
        lines += ["", "dependencies"]
        lines += [f"{name} {dependencies[name]}" for name in sorted(dependencies)]

    lines += ["", f"latest: {latest}", "", f"published at {published}", "", "versions:"]
    lines += [f"  {v}" for v in versions]
    return lines
