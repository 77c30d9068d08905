"""Reverse-DNS package names such as ``com.company.tool``."""

import re

# Lowercase alphanumerics and hyphens; no leading, trailing or doubled hyphen.
_SEGMENT_RE = re.compile(r"^(?!.*--)(?!-)(?!.*-$)[a-z0-9-]+$")


def is_domain_name(s: str) -> bool:
    """Check if a string is a domain name. Only does basic syntax validation."""
    if not isinstance(s, str) or not s:
        return False
    return all(_SEGMENT_RE.match(segment) for segment in s.split("."))


def make_domain_name(s: str) -> str:
    """Validate and return a domain name.

    Raises:
        ValueError: If the string is not a domain name.
    """
    if not is_domain_name(s):
        raise ValueError(f'"{s}" is not a domain name')
    return s
