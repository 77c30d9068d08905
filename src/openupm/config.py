"""Configuration loading and the runtime environment of a command.

Settings are layered with highest precedence first: CLI flags, environment
variables, the YAML config file and finally built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

from openupm.constants import Constants
from openupm.domain.registry import (
    Registry,
    RegistryAuth,
    coerce_registry_url,
    is_public_registry,
    remove_trailing_slash,
)
from openupm.errors import ConfigError

logger = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Env:
    """Resolved settings for one command invocation."""

    cwd: str
    primary_registry: Registry
    upstream: bool = True


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get(Constants.ENV_CONFIG) or os.path.join(
        os.path.expanduser("~"), Constants.CONFIG_FILE_NAME
    )


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the YAML config file.

    Returns:
        The config mapping, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping.
    """
    if not config_path or not os.path.isfile(config_path):
        logger.debug("No config file at %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")
    return data


def _parse_auth(entry: Any, url: str) -> RegistryAuth:
    if not isinstance(entry, dict):
        raise ConfigError(f"Auth entry for {url} must be a mapping")
    if entry.get("token"):
        return RegistryAuth(token=str(entry["token"]))
    if entry.get("username") and entry.get("password") is not None:
        return RegistryAuth(
            username=str(entry["username"]),
            password=str(entry["password"]),
        )
    raise ConfigError(f"Auth entry for {url} needs a token or username and password")


def auth_for(config: Mapping[str, Any], registry_url: str) -> Optional[RegistryAuth]:
    """Credentials configured for a registry, ignoring trailing slashes."""
    if is_public_registry(registry_url):
        return None
    auth_section = config.get("auth") or {}
    if not isinstance(auth_section, dict):
        raise ConfigError('"auth" must be a mapping of registry url to credentials')
    wanted = remove_trailing_slash(registry_url)
    for url, entry in auth_section.items():
        if remove_trailing_slash(str(url)) == wanted:
            return _parse_auth(entry, str(url))
    return None


def _parse_upstream(args, environ: Mapping[str, str], config: Mapping[str, Any]) -> bool:
    if getattr(args, "NO_UPSTREAM", False):
        return False
    env_value = environ.get(Constants.ENV_UPSTREAM)
    if env_value is not None:
        return env_value.strip().lower() not in _FALSE_VALUES
    if "upstream" in config:
        return bool(config["upstream"])
    return True


def parse_env(args, environ: Optional[Mapping[str, str]] = None) -> Env:
    """Build the Env for a command from parsed arguments.

    Raises:
        ConfigError: If the config is malformed, the registry url is invalid or
            the working directory does not exist.
    """
    environ = os.environ if environ is None else environ
    config = load_config(getattr(args, "CONFIG", None) or default_config_path(environ))

    raw_url = (
        getattr(args, "REGISTRY", None)
        or environ.get(Constants.ENV_REGISTRY)
        or config.get("registry")
        or Constants.REGISTRY_URL_DEFAULT
    )
    try:
        registry_url = coerce_registry_url(str(raw_url))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    cwd = os.path.abspath(getattr(args, "CHDIR", None) or os.getcwd())
    if not os.path.isdir(cwd):
        raise ConfigError(f"Can not resolve working directory {cwd}")

    env = Env(
        cwd=cwd,
        primary_registry=Registry(url=registry_url, auth=auth_for(config, registry_url)),
        upstream=_parse_upstream(args, environ, config),
    )
    logger.debug("Using registry %s (upstream %s)", registry_url, "on" if env.upstream else "off")
    return env
