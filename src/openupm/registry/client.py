"""Registry packument client.

Fetches packuments from npm-compatible registries and sorts failures into
"package unknown to this registry" (``None``) versus registry errors, so the
resolver can record an accurate reason per registry.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from openupm.common.http_client import robust_get
from openupm.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from openupm.constants import Constants
from openupm.domain.registry import Registry, is_public_registry
from openupm.errors import (
    GenericNetworkError,
    MalformedPackumentError,
    RegistryAuthenticationError,
)

logger = logging.getLogger(__name__)

# (registry, package name) -> packument or None if the registry does not know the package
FetchPackument = Callable[[Registry, str], Optional[Dict[str, Any]]]


def packument_url_for(registry: Registry, name: str) -> str:
    return f"{registry.url.rstrip('/')}/{quote(name, safe='@')}"


def _request_headers(registry: Registry) -> Dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": Constants.USER_AGENT}
    if registry.auth is not None and not is_public_registry(registry.url):
        headers.update(registry.auth.headers())
    return headers


def fetch_packument(registry: Registry, name: str) -> Optional[Dict[str, Any]]:
    """Get the packument for a package from a registry.

    Args:
        registry: Registry to query.
        name: Package name.

    Returns:
        The packument, or None if the registry does not know the package.

    Raises:
        RegistryAuthenticationError: On 401/403 responses.
        GenericNetworkError: If no usable response was received.
        MalformedPackumentError: If the body is not a packument.
    """
    url = packument_url_for(registry, name)
    with Timer() as timer:
        status_code, text = robust_get(url, headers=_request_headers(registry))

    if is_debug_enabled(logger):
        logger.debug(
            "Packument response",
            extra=extra_context(
                event="http_response",
                component="registry_client",
                action="fetch_packument",
                status_code=status_code,
                duration_ms=timer.duration_ms(),
                target=safe_url(url),
            )
        )

    if status_code == 404:
        return None
    if status_code in (401, 403):
        logger.warning("Registry %s rejected the request for %s (HTTP %s)", safe_url(registry.url), name, status_code)
        raise RegistryAuthenticationError(registry.url)
    if status_code == 0:
        raise GenericNetworkError(registry.url, detail=text)
    if not 200 <= status_code < 300:
        raise GenericNetworkError(registry.url, status_code=status_code)

    try:
        packument = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedPackumentError(registry.url, name) from exc
    if not isinstance(packument, dict):
        raise MalformedPackumentError(registry.url, name)
    return packument
