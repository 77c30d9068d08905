"""Remote npm-compatible registries and their credentials."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit

from openupm.constants import Constants

_REGISTRY_URL_RE = re.compile(r"^https?://.*[^/]$", re.IGNORECASE)


@dataclass(frozen=True)
class RegistryAuth:
    """Credentials for a registry. Either a token or username/password."""

    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        """Authorization header for requests against the registry."""
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        if self.username and self.password is not None:
            raw = f"{self.username}:{self.password}".encode("utf-8")
            return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}
        return {}


@dataclass(frozen=True)
class Registry:
    """A registry url plus optional credentials."""

    url: str
    auth: Optional[RegistryAuth] = None


def is_registry_url(s: str) -> bool:
    """Registry urls are http(s) urls without trailing slash."""
    return isinstance(s, str) and bool(_REGISTRY_URL_RE.match(s))


def remove_trailing_slash(s: str) -> str:
    return s.rstrip("/")


def coerce_registry_url(s: str) -> str:
    """Prepend http:// if missing and strip trailing slashes.

    Raises:
        ValueError: If the result is not a registry url.
    """
    if not s.lower().startswith("http"):
        s = "http://" + s
    s = remove_trailing_slash(s)
    if not is_registry_url(s):
        raise ValueError(f'"{s}" is not a registry url')
    return s


def is_public_registry(url: str) -> bool:
    """The well-known registries never need authentication."""
    return remove_trailing_slash(url) in Constants.PUBLIC_REGISTRY_URLS


def registry_name_for(url: str) -> str:
    """Display name for a scoped registry created for this url."""
    return urlsplit(url).hostname or url


UPSTREAM_REGISTRY = Registry(url=Constants.REGISTRY_URL_UPSTREAM)
DEFAULT_REGISTRY = Registry(url=Constants.REGISTRY_URL_DEFAULT)
