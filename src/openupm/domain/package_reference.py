"""Versions, package urls and ``name@version`` package references."""

import re
from typing import Optional, Tuple

import semantic_version

from openupm.constants import Constants
from openupm.domain.domain_name import is_domain_name

_PACKAGE_URL_RE = re.compile(r"^(git\+)?(git|ssh|https?|file):|^git@", re.IGNORECASE)


def is_semantic_version(s: str) -> bool:
    """Check for a strict ``major.minor.patch[-pre][+build]`` string."""
    return isinstance(s, str) and semantic_version.validate(s)


def is_package_url(s: str) -> bool:
    """Check whether a version is a git/http/file locator instead of a semver."""
    return isinstance(s, str) and bool(_PACKAGE_URL_RE.match(s))


def is_version_reference(s: str) -> bool:
    """A version reference is ``latest``, a semantic version or a package url."""
    return s == Constants.LATEST_TAG or is_semantic_version(s) or is_package_url(s)


def split_package_reference(reference: str) -> Tuple[str, Optional[str]]:
    """Split a reference at the first ``@`` into name and optional version."""
    name, sep, version = reference.partition("@")
    return name, (version if sep else None)


def is_package_reference(s: str) -> bool:
    """Check if a string is a package reference."""
    name, version = split_package_reference(s)
    return is_domain_name(name) and (version is None or is_version_reference(version))


def make_package_reference(name: str, version: Optional[str] = None) -> str:
    """Build ``name`` or ``name@version``.

    Raises:
        ValueError: If name or version are malformed.
    """
    if not is_domain_name(name):
        raise ValueError(f'"{name}" is not a domain name')
    if version is None:
        return name
    if not is_version_reference(version):
        raise ValueError(f'"{version}" is not a valid version reference')
    return f"{name}@{version}"


def has_version(reference: str) -> bool:
    """Check if the reference includes a version."""
    return "@" in reference
