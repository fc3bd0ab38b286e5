"""
TapMock Request Matcher

Decides whether a registered response's constraints are satisfied by an
incoming request.

Features:
- Query parameter matching (subset semantics, string-coerced values)
- Body matching (structural JSON equality)
- Arrays compared in any order by default
- Per-candidate match reasons for debug output
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..common import stringify_query_value
from .models import IncomingRequest, RegisteredResponse


def query_matches(
    actual: Optional[Dict[str, Any]],
    constraint: Optional[Dict[str, Any]]
) -> bool:
    """
    Check a request's query parameters against a registration's constraint.

    Args:
        actual: Decoded query of the request (None when it had none)
        constraint: Query constraint of the registration (None = don't check)

    Returns:
        True if every constrained key is present with an equal string value.
        Extra request parameters are ignored. An empty constraint only
        accepts a request without query parameters.
    """
    if constraint is None:
        return True

    sanitised_actual = actual or {}

    if not constraint:
        return not sanitised_actual

    for key, expected in constraint.items():
        if key not in sanitised_actual:
            return False
        if stringify_query_value(sanitised_actual[key]) != stringify_query_value(expected):
            return False
    return True


def body_matches(
    actual: Any,
    constraint: Any,
    allow_arrays_in_any_order: bool = True
) -> bool:
    """
    Check a request body against a registration's body constraint.

    Args:
        actual: Decoded request body
        constraint: Body constraint of the registration (None = don't check)
        allow_arrays_in_any_order: Compare lists without regard to order

    Returns:
        True if the body structurally equals the constraint
    """
    if constraint is None:
        return True
    return values_equal(actual, constraint, allow_arrays_in_any_order)


def values_equal(actual: Any, expected: Any, allow_arrays_in_any_order: bool = True) -> bool:
    """
    Recursive structural equality over JSON values.

    Mappings need the same key count and matching values per key. Lists need
    the same length; in any-order mode every expected element must equal at
    least one actual element. An actual element may satisfy several expected
    elements, so ``[x, x]`` matches ``[x, y]``. Mismatched types never match.
    """
    if isinstance(expected, dict):
        if not isinstance(actual, dict) or len(actual) != len(expected):
            return False
        return all(
            key in actual and values_equal(actual[key], value, allow_arrays_in_any_order)
            for key, value in expected.items()
        )

    if isinstance(expected, list):
        if not isinstance(actual, list) or len(actual) != len(expected):
            return False
        if allow_arrays_in_any_order:
            return all(
                any(values_equal(candidate, item, allow_arrays_in_any_order) for candidate in actual)
                for item in expected
            )
        return all(
            values_equal(candidate, item, allow_arrays_in_any_order)
            for candidate, item in zip(actual, expected)
        )

    return _scalars_equal(actual, expected)


def _scalars_equal(actual: Any, expected: Any) -> bool:
    """Strict scalar equality: True is not 1, but 1 is 1.0."""
    if isinstance(actual, (dict, list)):
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


@dataclass
class MatchResult:
    """Result of checking one registration against a request."""

    matched: bool
    entry: Optional[RegisteredResponse] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'matched': self.matched,
            'reason': self.reason,
            'url': self.entry.url if self.entry else None
        }


class RequestMatcher:
    """
    Matches incoming requests against registered responses.

    Example:
        matcher = RequestMatcher()
        candidates = [e for e in entries if matcher.matches(request, e)]
    """

    def __init__(self, allow_arrays_in_any_order: bool = True):
        """
        Initialize request matcher.

        Args:
            allow_arrays_in_any_order: Compare body lists without regard to order
        """
        self.allow_arrays_in_any_order = allow_arrays_in_any_order

    def matches(self, request: IncomingRequest, entry: RegisteredResponse) -> bool:
        """Check both the query and the body constraint of ``entry``."""
        return (
            query_matches(request.query_params, entry.query_params)
            and body_matches(request.body, entry.body, self.allow_arrays_in_any_order)
        )

    def explain(self, request: IncomingRequest, entry: RegisteredResponse) -> MatchResult:
        """
        Check a registration and say why it did or didn't match.

        Args:
            request: Incoming request
            entry: Registered response to check

        Returns:
            MatchResult with a short reason
        """
        if not query_matches(request.query_params, entry.query_params):
            return MatchResult(matched=False, entry=entry, reason="Query parameters differ")
        if not body_matches(request.body, entry.body, self.allow_arrays_in_any_order):
            return MatchResult(matched=False, entry=entry, reason="Body differs")
        return MatchResult(matched=True, entry=entry, reason="Query and body match")
