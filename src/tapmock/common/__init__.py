"""
TapMock Common Utilities

Shared codecs and helpers used across TapMock modules.
"""

from .utils import decode_body, is_json_content_type, ConfigLoader, summarize_entries
from .url_utils import encode_query, decode_query, full_url, stringify_query_value

__all__ = [
    'decode_body',
    'is_json_content_type',
    'ConfigLoader',
    'summarize_entries',
    'encode_query',
    'decode_query',
    'full_url',
    'stringify_query_value',
]
