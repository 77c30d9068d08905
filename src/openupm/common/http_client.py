"""Shared HTTP helpers used by the registry client.

``robust_get`` hides timeouts, retries and response caching, so callers only
deal with ``(status_code, body)`` pairs. A status code of ``0`` means no
response was received at all.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from openupm.constants import Constants
from openupm.common.logging_utils import extra_context, safe_url

logger = logging.getLogger(__name__)

# (url, sorted headers) -> ((status_code, body), stored_at)
_http_cache: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], Tuple[Tuple[int, str], float]] = {}


def clear_cache() -> None:
    """Drop all cached responses."""
    _http_cache.clear()


def _cached(key) -> Optional[Tuple[int, str]]:
    entry = _http_cache.get(key)
    if entry is None:
        return None
    result, stored_at = entry
    if time.time() - stored_at >= Constants.HTTP_CACHE_TTL_SEC:
        del _http_cache[key]
        return None
    return result


def robust_get(url: str, *, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> Tuple[int, str]:
    """GET a url, retrying with exponential backoff when no response arrives.

    Responses below 500 are cached for ``Constants.HTTP_CACHE_TTL_SEC``.

    Returns:
        ``(status_code, body)``. After the last failed attempt the status is
        ``0`` and the body describes the failure.
    """
    key = (url, tuple(sorted((headers or {}).items())))
    cached = _cached(key)
    if cached is not None:
        logger.debug("HTTP cache hit", extra=extra_context(event="cache_hit", target=safe_url(url)))
        return cached

    failure = ""
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        if attempt > 1:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * 2 ** (attempt - 2))
        try:
            response = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, headers=headers, **kwargs)
        except requests.Timeout:
            failure = "timeout"
        except requests.RequestException as exc:
            failure = str(exc)
        else:
            result = (response.status_code, response.text)
            if response.status_code < 500:
                _http_cache[key] = (result, time.time())
            return result
        logger.debug(
            "HTTP attempt failed",
            extra=extra_context(event="http_exception", target=safe_url(url), attempt=attempt, outcome=failure),
        )

    return 0, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {failure}"
