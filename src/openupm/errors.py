"""Error taxonomy for registry lookups, resolution and manifest transactions.

Registry failures are kept as values inside failed dependency-graph nodes;
everything else is raised and aborts the enclosing add/remove operation.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class OpenUpmError(Exception):
    """Base class for all errors raised by this package.

    Errors compare by type and fields so that graphs holding them as values
    can be compared structurally.
    """

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class PackumentNotFoundError(OpenUpmError):
    """The package is unknown to a registry, or absent from a manifest."""

    def __init__(self, package_name: str):
        super().__init__(f"package not found: {package_name}")
        self.package_name = package_name


class VersionNotFoundError(OpenUpmError):
    """A packument was found, but it lacks the requested version."""

    def __init__(self, package_name: str, requested_version: str, available_versions: Sequence[str]):
        super().__init__(f"version {requested_version} of {package_name} not found")
        self.package_name = package_name
        self.requested_version = requested_version
        self.available_versions = tuple(available_versions)


class NoVersionsError(OpenUpmError):
    """A packument was found, but it has no versions at all."""

    def __init__(self, package_name: str):
        super().__init__(f"package {package_name} has no published versions")
        self.package_name = package_name


class RegistryError(OpenUpmError):
    """A registry could not be queried."""

    def __init__(self, registry_url: str, message: str):
        super().__init__(f"{registry_url}: {message}")
        self.registry_url = registry_url


class RegistryAuthenticationError(RegistryError):
    """The registry rejected our credentials (or lack of them)."""

    def __init__(self, registry_url: str):
        super().__init__(registry_url, "authentication failed")


class GenericNetworkError(RegistryError):
    """The registry was unreachable or answered with an unexpected status."""

    def __init__(self, registry_url: str, status_code: Optional[int] = None, detail: str = ""):
        message = f"request failed (status {status_code})" if status_code else "request failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(registry_url, message)
        self.status_code = status_code


class MalformedPackumentError(RegistryError):
    """The registry answered with something that is not a packument."""

    def __init__(self, registry_url: str, package_name: str):
        super().__init__(registry_url, f"malformed packument for {package_name}")
        self.package_name = package_name


class InvalidTargetEditorError(OpenUpmError):
    """A package declares a target editor version that cannot be parsed."""

    def __init__(self, version_string: str):
        super().__init__(f"invalid target editor version: {version_string}")
        self.version_string = version_string


class CompatibilityCheckFailedError(OpenUpmError):
    """Compatibility of a package could not be evaluated."""

    def __init__(self, package_ref: str):
        super().__init__(
            f'"{package_ref}" is malformed. Target editor version could not be determined.'
        )
        self.package_ref = package_ref


class PackageIncompatibleError(OpenUpmError):
    """A package targets a newer editor than the project uses."""

    def __init__(self, package_ref: str, editor_version: Any):
        super().__init__(f'"{package_ref}" requires editor {editor_version}')
        self.package_ref = package_ref
        self.editor_version = editor_version


class UnresolvedDependenciesError(OpenUpmError):
    """One or more transitive dependencies of a package could not be found."""

    def __init__(self, package_ref: str, dependencies: Sequence[Any]):
        names = ", ".join(f"{dep.name}@{dep.version}" for dep in dependencies)
        super().__init__(f'"{package_ref}" has unresolved dependencies: {names}')
        self.package_ref = package_ref
        self.dependencies = tuple(dependencies)


class EditorNotInstalledError(OpenUpmError):
    """The editor with a given version is not installed locally."""

    def __init__(self, version: Any):
        super().__init__(f"editor {version} is not installed")
        self.version = version


class BuiltInPackagesReadError(OpenUpmError):
    """The built-in package directory of an installed editor could not be read."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"could not read built-in packages at {path}: {cause}")
        self.path = path
        self.cause = cause


class EditorVersionNotSupportedError(OpenUpmError):
    """The editor version predates package-manager support."""

    def __init__(self, version: Any):
        super().__init__(f"editor {version} is not supported")
        self.version = version


class VersionNotSupportedOnOsError(OpenUpmError):
    """The editor version does not exist for the current OS."""

    def __init__(self, version: Any, os_name: str):
        super().__init__(f"editor {version} is not supported on {os_name}")
        self.version = version
        self.os_name = os_name


class OSNotSupportedError(OpenUpmError):
    """The editor does not support the current OS."""

    def __init__(self, os_name: str):
        super().__init__(f"operating system {os_name} is not supported")
        self.os_name = os_name


class BuiltInPackagesUnavailableError(OpenUpmError):
    """Built-in packages could not be listed, so resolution cannot proceed."""

    def __init__(self, cause: Exception):
        super().__init__(f"built-in packages unavailable: {cause}")
        self.cause = cause


class ManifestLoadError(OpenUpmError):
    """The project manifest could not be read or parsed."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"could not load manifest at {path}: {cause}")
        self.path = path
        self.cause = cause


class ManifestWriteError(OpenUpmError):
    """The project manifest could not be written."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"could not write manifest at {path}: {cause}")
        self.path = path
        self.cause = cause


class ProjectVersionLoadError(OpenUpmError):
    """The project version file could not be read or parsed."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"could not load project version from {path}{detail}")
        self.path = path
        self.cause = cause


class ConfigError(OpenUpmError):
    """The configuration file is malformed."""


class InvalidPackageReferenceError(OpenUpmError):
    """A command-line argument is not a valid package reference."""

    def __init__(self, reference: str):
        super().__init__(f'"{reference}" is not a valid package reference')
        self.reference = reference


class PackageWithVersionError(OpenUpmError):
    """A version was given where only a package name is allowed."""

    def __init__(self, reference: str):
        super().__init__(f'please do not specify a version (write only the name instead of "{reference}")')
        self.reference = reference


def reason_for(error: Exception) -> str:
    """Short, user-facing reason for a per-registry resolution failure."""
    if isinstance(error, PackumentNotFoundError):
        return "package not found"
    if isinstance(error, VersionNotFoundError):
        available = ", ".join(error.available_versions) or "none"
        return f"version not found (available: {available})"
    if isinstance(error, RegistryAuthenticationError):
        return "authentication failed"
    if isinstance(error, RegistryError):
        return "registry unreachable"
    return str(error)
