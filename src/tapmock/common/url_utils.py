"""
TapMock URL Utilities

Query string encoding and decoding shared by the resolver and debug output.
"""

from urllib.parse import quote, unquote, urlencode
from typing import Dict, Any, Optional


def encode_query(params: Optional[Dict[str, Any]]) -> str:
    """
    Render a key/value mapping as a query string.

    Keys and values are percent-encoded the way encodeURIComponent does it
    (spaces become %20, not '+').

    Args:
        params: Mapping of query parameters, or None

    Returns:
        '?key=value&...' for a non-empty mapping, '' otherwise

    Example:
        encode_query({'q': 'a b', 'page': 2})  # '?q=a%20b&page=2'
    """
    if not params:
        return ''

    query = urlencode(
        [(str(key), stringify_query_value(value)) for key, value in params.items()],
        quote_via=quote,
        safe="-_.!~*'()"
    )
    return f'?{query}' if query else ''


def decode_query(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Parse a percent-encoded 'key=value&key=value' string.

    An empty or missing query string yields None, meaning "no query at all".
    That is different from an empty dict, which only a registration can carry.

    Args:
        raw: Raw query string without the leading '?'

    Returns:
        Dict of decoded parameters (last duplicate wins), or None
    """
    if not raw:
        return None

    params = {}
    for pair in raw.split('&'):
        if not pair:
            continue
        key, _, value = pair.partition('=')
        # '+' is a literal plus, as with decodeURIComponent
        params[unquote(key)] = unquote(value)
    return params


def full_url(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Join a path with its encoded query string."""
    return path + encode_query(params)


def stringify_query_value(value: Any) -> str:
    """Coerce a query value to the string sent on the wire."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    return str(value)
