"""Command line entry point: ``openupm add|remove|deps|view``."""

from __future__ import annotations

import logging
from typing import Optional

from openupm.args import parse_args
from openupm.common.logging_utils import configure_logging, extra_context, is_debug_enabled
from openupm.config import Env, parse_env
from openupm.constants import Constants, ExitCodes
from openupm.domain.dependency_graph import stringify_dependency_graph
from openupm.domain.domain_name import is_domain_name
from openupm.domain.editor_version import EditorVersion
from openupm.domain.packument import stringify_packument
from openupm.domain.package_reference import (
    has_version,
    is_package_reference,
    is_package_url,
    make_package_reference,
    split_package_reference,
)
from openupm.domain.registry import UPSTREAM_REGISTRY
from openupm.errors import (
    CompatibilityCheckFailedError,
    InvalidPackageReferenceError,
    OpenUpmError,
    PackageIncompatibleError,
    PackageWithVersionError,
    PackumentNotFoundError,
    ProjectVersionLoadError,
    UnresolvedDependenciesError,
    reason_for,
)
from openupm.project.builtin_packages import find_builtin_packages
from openupm.project.editor_version import determine_editor_version
from openupm.registry.client import fetch_packument
from openupm.services.add_packages import (
    AddEnv,
    AddOptions,
    AddResultType,
    add_packages_to_project,
)
from openupm.services.dependency_resolver import DependencyResolver
from openupm.services.packument_version import fetch_first_packument, resolve_latest_version
from openupm.services.remove_packages import remove_packages_from_project

logger = logging.getLogger(__name__)

APPLY_CHANGES_HINT = "please open Unity project to apply changes"


def _make_resolver(editor_version) -> DependencyResolver:
    """Resolver that knows the built-ins of the project's editor, if it is known."""
    list_builtin_packages = None
    if isinstance(editor_version, EditorVersion):
        def list_builtin_packages():
            return find_builtin_packages(editor_version)
    return DependencyResolver(fetch_packument, list_builtin_packages)


def cmd_add(args, env: Env) -> int:
    for reference in args.PACKAGES:
        if not is_package_reference(reference):
            raise InvalidPackageReferenceError(reference)

    editor_version = determine_editor_version(env.cwd)
    add_env = AddEnv(
        primary_registry=env.primary_registry,
        upstream=env.upstream,
        editor_version=editor_version,
    )
    outcome = add_packages_to_project(
        env.cwd,
        add_env,
        args.PACKAGES,
        fetch_packument,
        _make_resolver(editor_version),
        AddOptions(force=args.FORCE, add_as_testable=args.TEST),
    )

    for name, result in outcome.results.items():
        if result.type is AddResultType.ADDED:
            logger.info("added %s", make_package_reference(name, result.version))
        elif result.type is AddResultType.UPGRADED:
            logger.info("modified %s %s => %s", name, result.from_version, result.version)
        else:
            logger.info("existed %s", make_package_reference(name, result.version))
    if outcome.dirty:
        logger.info(APPLY_CHANGES_HINT)
    return ExitCodes.SUCCESS.value


def cmd_remove(args, env: Env) -> int:
    for name in args.PACKAGES:
        if has_version(name):
            raise PackageWithVersionError(name)
        if not is_domain_name(name):
            raise InvalidPackageReferenceError(name)

    removed = remove_packages_from_project(env.cwd, args.PACKAGES)
    for package in removed:
        logger.info("removed %s", make_package_reference(package.name, package.version))
    logger.info(APPLY_CHANGES_HINT)
    return ExitCodes.SUCCESS.value


def cmd_deps(args, env: Env) -> int:
    reference = args.PACKAGE
    if not is_package_reference(reference):
        raise InvalidPackageReferenceError(reference)
    name, requested_version = split_package_reference(reference)
    if requested_version is not None and is_package_url(requested_version):
        logger.error("cannot get dependencies for url-version")
        return ExitCodes.ERROR.value

    sources = [env.primary_registry, UPSTREAM_REGISTRY]
    version = requested_version
    if version is None or version == Constants.LATEST_TAG:
        version = resolve_latest_version(fetch_packument, sources, name)
    if version is None:
        raise PackumentNotFoundError(name)

    try:
        editor_version = determine_editor_version(env.cwd)
    except ProjectVersionLoadError as e:
        # deps also works outside of projects, just without built-in detection
        logger.debug("No project editor version: %s", e)
        editor_version = None

    logger.debug("fetch: %s, deep=%s", make_package_reference(name, version), args.DEEP)
    graph = _make_resolver(editor_version).resolve(sources, name, version, deep=args.DEEP)
    for line in stringify_dependency_graph(graph, name, version):
        logger.info(line)
    return ExitCodes.SUCCESS.value


def cmd_view(args, env: Env) -> int:
    name = args.PACKAGE
    if has_version(name):
        raise PackageWithVersionError(name)
    if not is_domain_name(name):
        raise InvalidPackageReferenceError(name)

    sources = [env.primary_registry] + ([UPSTREAM_REGISTRY] if env.upstream else [])
    found = fetch_first_packument(fetch_packument, sources, name)
    if found is None:
        raise PackumentNotFoundError(name)
    packument, source = found
    logger.debug("view: %s from %s", name, source.url)

    for line in stringify_packument(packument):
        logger.info(line)
    return ExitCodes.SUCCESS.value


COMMANDS = {
    "add": cmd_add,
    "remove": cmd_remove,
    "deps": cmd_deps,
    "view": cmd_view,
}


def log_error(error: OpenUpmError) -> None:
    """Log a fatal error together with a hint on how to get past it."""
    if isinstance(error, UnresolvedDependenciesError):
        logger.error("The package %s has unresolved dependencies and cannot be added", error.package_ref)
        for dependency in error.dependencies:
            logger.warning('Failed to resolve dependency "%s@%s"', dependency.name, dependency.version)
            for url, cause in dependency.errors.items():
                logger.warning('  - "%s": %s', url, reason_for(cause))
        logger.info("Install the missing dependencies manually, or use --force to add it anyway")
    elif isinstance(error, PackageIncompatibleError):
        logger.error("%s requires editor %s or newer", error.package_ref, error.editor_version)
        logger.info("Use --force to add it anyway")
    elif isinstance(error, CompatibilityCheckFailedError):
        logger.error(str(error))
        logger.info("Use --force to add it anyway")
    else:
        logger.error(str(error))


def main(argv: Optional[list] = None) -> int:
    """Main function of the program. Returns the exit code."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND)
        )

    try:
        env = parse_env(args)
        exit_code = COMMANDS[args.COMMAND](args, env)
    except OpenUpmError as e:
        log_error(e)
        exit_code = ExitCodes.ERROR.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action=args.COMMAND,
                outcome="success" if exit_code == ExitCodes.SUCCESS.value else "error",
            )
        )
    return exit_code
