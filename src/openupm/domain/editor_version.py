"""Editor versions.

Editor versions mostly follow calendar versioning
(``year.minor[.patch[flag build[locale localeBuild]]]``), e.g. ``2019.1``,
``2021.3.5``, ``2022.2.1f2`` or the China-specific ``2019.4.1f1c1``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

_EDITOR_VERSION_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)"
    r"(\.(?P<patch>\d+)"
    r"((?P<flag>[abfc])(?P<build>\d+)"
    r"((?P<loc>c)(?P<loc_build>\d+))?)?)?"
)


@dataclass(frozen=True)
class EditorVersion:
    """A parsed editor version. Deeper fields are only set if all shallower ones are."""

    major: int
    minor: int
    patch: Optional[int] = None
    flag: Optional[str] = None
    build: Optional[int] = None
    loc: Optional[str] = None
    loc_build: Optional[int] = None

    def __post_init__(self) -> None:
        fields = (self.patch, self.flag, self.build, self.loc, self.loc_build)
        depth = next((i for i, value in enumerate(fields) if value is None), len(fields))
        # flag/build and loc/loc_build only come in pairs
        if depth not in (0, 1, 3, 5) or any(value is not None for value in fields[depth:]):
            raise ValueError(f"incomplete editor version {fields!r} for {self.major}.{self.minor}")

    @property
    def is_patch(self) -> bool:
        return self.patch is not None

    @property
    def is_release(self) -> bool:
        """Only release versions (with patch, flag and build) are fully resolvable."""
        return self.is_patch and self.flag is not None and self.build is not None

    @property
    def is_local(self) -> bool:
        return self.is_release and self.loc is not None and self.loc_build is not None

    def __str__(self) -> str:
        return format_editor_version(self)


def _flag_rank(flag: Optional[str]) -> int:
    if flag == "b":
        return 1
    if flag == "f":
        return 2
    return 0


def _locale_rank(loc: Optional[str]) -> int:
    return 1 if loc == "c" else 0


def _sort_key(version: EditorVersion) -> Tuple[int, ...]:
    release = (_flag_rank(version.flag), version.build) if version.is_release else (0, 0)
    local = (version.build, _locale_rank(version.loc), version.loc_build) if version.is_local else (0, 0, 0)
    return (version.major, version.minor, version.patch or 0) + release + local


def compare_editor_version(a: EditorVersion, b: EditorVersion) -> int:
    """Compare two editor versions.

    Missing fields compare as zero, so ``2019.1 < 2019.1.1 < 2019.1.1f1``.

    Returns:
        -1, 0 or 1.
    """
    key_a, key_b = _sort_key(a), _sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def try_parse_editor_version(version: str) -> Optional[EditorVersion]:
    """Parse an editor version string.

    Returns None instead of raising, since an unknown version is a valid
    state for a project.
    """
    if not isinstance(version, str):
        return None
    match = _EDITOR_VERSION_RE.match(version.strip())
    if not match:
        return None
    groups = match.groupdict()

    major, minor = int(groups["major"]), int(groups["minor"])
    if groups["patch"] is None:
        return EditorVersion(major, minor)
    patch = int(groups["patch"])
    if groups["flag"] is None:
        return EditorVersion(major, minor, patch)
    flag, build = groups["flag"], int(groups["build"])
    if groups["loc"] is None:
        return EditorVersion(major, minor, patch, flag, build)
    return EditorVersion(major, minor, patch, flag, build, groups["loc"], int(groups["loc_build"]))


def format_editor_version(version: EditorVersion) -> str:
    """Inverse of :func:`try_parse_editor_version`."""
    text = f"{version.major}.{version.minor}"
    if not version.is_patch:
        return text
    text += f".{version.patch}"
    if not version.is_release:
        return text
    text += f"{version.flag}{version.build}"
    if not version.is_local:
        return text
    return text + f"{version.loc}{version.loc_build}"


def validate_project_version(unparsed: str):
    """Return a release EditorVersion, or the raw string if it is none."""
    parsed = try_parse_editor_version(unparsed)
    if parsed is not None and parsed.is_release:
        return parsed
    return unparsed
