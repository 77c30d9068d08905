"""Finding packuments and versions of packages across registries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from openupm.constants import Constants
from openupm.domain.packument import try_resolve_packument_version
from openupm.domain.registry import Registry, UPSTREAM_REGISTRY
from openupm.errors import (
    NoVersionsError,
    OpenUpmError,
    PackumentNotFoundError,
    RegistryError,
    VersionNotFoundError,
)
from openupm.registry.client import FetchPackument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPackumentVersion:
    """A version info plus the registry that supplied it."""

    packument_version: Mapping[str, Any]
    source: str

    @property
    def version(self) -> str:
        return self.packument_version["version"]


def _try_resolve_from(
    fetch_packument: FetchPackument,
    registry: Registry,
    name: str,
    requested_version: str,
):
    """Returns (ResolvedPackumentVersion or None, error or None)."""
    try:
        packument = fetch_packument(registry, name)
    except RegistryError as e:
        return None, e
    if packument is None:
        return None, PackumentNotFoundError(name)
    try:
        packument_version, error = try_resolve_packument_version(packument, requested_version)
    except NoVersionsError:
        return None, VersionNotFoundError(name, requested_version, [])
    if error is not None:
        return None, error
    return ResolvedPackumentVersion(packument_version, registry.url), None


def pick_most_fixable(primary_error: OpenUpmError, fallback_error: OpenUpmError) -> OpenUpmError:
    """Choose which of two lookup failures to report.

    "Package not found" is the least actionable, so any other error wins.
    """
    if isinstance(primary_error, PackumentNotFoundError) and not isinstance(
        fallback_error, PackumentNotFoundError
    ):
        return fallback_error
    return primary_error


def resolve_packument_version(
    fetch_packument: FetchPackument,
    name: str,
    requested_version: Optional[str],
    primary_registry: Registry,
    upstream: bool,
) -> ResolvedPackumentVersion:
    """Find the version info to add for a package.

    The upstream registry is only consulted when the primary registry does
    not know the package at all. A primary registry that has the package but
    not the requested version is final.

    Raises:
        PackumentNotFoundError: If no registry knows the package.
        VersionNotFoundError: If the version does not exist.
        RegistryError: If a registry could not be queried.
    """
    requested_version = requested_version or Constants.LATEST_TAG

    resolved, primary_error = _try_resolve_from(fetch_packument, primary_registry, name, requested_version)
    if resolved is not None:
        return resolved
    if not isinstance(primary_error, PackumentNotFoundError) or not upstream:
        raise primary_error

    logger.debug("%s not found on %s, trying upstream registry", name, primary_registry.url)
    resolved, upstream_error = _try_resolve_from(fetch_packument, UPSTREAM_REGISTRY, name, requested_version)
    if resolved is not None:
        return resolved
    raise pick_most_fixable(primary_error, upstream_error)


def resolve_latest_version(
    fetch_packument: FetchPackument,
    sources: Sequence[Registry],
    name: str,
) -> Optional[str]:
    """Latest version of a package from the first source that knows it.

    Later sources are not queried once one has answered.
    """
    for source in sources:
        packument = fetch_packument(source, name)
        if packument is None:
            continue
        try:
            packument_version, _ = try_resolve_packument_version(packument, Constants.LATEST_TAG)
        except NoVersionsError:
            logger.debug("%s has no versions on %s", name, source.url)
            continue
        return packument_version["version"]
    return None


def fetch_first_packument(
    fetch_packument: FetchPackument,
    sources: Sequence[Registry],
    name: str,
) -> Optional[Tuple[Dict[str, Any], Registry]]:
    """Packument of a package from the first source that has it, plus that source.

    Registry errors propagate; later sources are not queried after a hit.
    """
    for source in sources:
        packument = fetch_packument(source, name)
        if packument is not None:
            return packument, source
    return None
