"""Domain matching rules shared by policy lookup, cleanup and first-party checks.

A stored domain pattern is either a plain host (``shop.example``) or a
wildcard pattern with a leading dot (``.example.com``) covering the domain
and all of its subdomains. Cookie domains follow the same convention: a
leading dot marks a domain cookie.
"""

from dataclasses import dataclass
from typing import List

WILDCARD_MARKER = "."
QUERY_WILDCARD = "%"
LIKE_ESCAPE = "\\"


def wildcard(domain: str) -> str:
    """Return the pattern covering ``domain`` and all of its subdomains."""
    return WILDCARD_MARKER + strip_marker(domain)


def strip_marker(domain: str) -> str:
    """Remove one leading wildcard marker."""
    return domain[1:] if domain.startswith(WILDCARD_MARKER) else domain


def sort_key(domain: str) -> str:
    """Ordering key for batch summaries: case-insensitive, marker stripped."""
    return strip_marker(domain).lower()


def same_domain(left: str, right: str) -> bool:
    return sort_key(left) == sort_key(right)


def _covers(base: str, host: str) -> bool:
    return host == base or host.endswith(WILDCARD_MARKER + base)


def domain_matches(cookie_domain: str, pattern: str) -> bool:
    """Check whether a policy pattern applies to a cookie domain.

    Matches when both are equal, when the pattern is a wildcard whose base
    covers the cookie's host, or when the cookie is a domain cookie whose
    base covers the pattern's host.
    """
    cookie_domain = cookie_domain.lower()
    pattern = pattern.lower()

    if cookie_domain == pattern:
        return True

    if pattern.startswith(WILDCARD_MARKER) and _covers(pattern[1:], strip_marker(cookie_domain)):
        return True

    if cookie_domain.startswith(WILDCARD_MARKER) and _covers(cookie_domain[1:], strip_marker(pattern)):
        return True

    return False


def wildcard_ancestors(host: str) -> List[str]:
    """Wildcard patterns that could cover ``host``, most specific first.

    ``a.b.example`` yields ``.a.b.example``, ``.b.example``, ``.example``.
    """
    labels = [label for label in strip_marker(host).lower().split('.') if label]
    return [WILDCARD_MARKER + '.'.join(labels[i:]) for i in range(len(labels))]


def escape_like(text: str) -> str:
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


@dataclass(frozen=True)
class CandidateQuery:
    """Textual pre-filter for stored patterns that could match a cookie domain.

    ``like_pattern`` is the cookie domain with its leading dot rewritten to
    the SQL wildcard; ``wildcard_patterns`` are the stored wildcard patterns
    that would cover the cookie's host.
    """

    like_pattern: str
    wildcard_patterns: List[str]

    @classmethod
    def for_domain(cls, cookie_domain: str) -> "CandidateQuery":
        host = strip_marker(cookie_domain)
        like_pattern = escape_like(host)
        if cookie_domain.startswith(WILDCARD_MARKER):
            like_pattern = QUERY_WILDCARD + like_pattern
        return cls(like_pattern=like_pattern, wildcard_patterns=wildcard_ancestors(host))
