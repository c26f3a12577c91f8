"""Domain matching utilities package."""

from .domain_matcher import (
    CandidateQuery,
    domain_matches,
    same_domain,
    sort_key,
    strip_marker,
    wildcard,
    wildcard_ancestors,
)

__all__ = [
    'CandidateQuery',
    'domain_matches',
    'same_domain',
    'sort_key',
    'strip_marker',
    'wildcard',
    'wildcard_ancestors',
]
