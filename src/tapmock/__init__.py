"""
TapMock - programmable HTTP responder for tests.
"""

from .mock import MockServer, MockConfig, create_mock_server
from .errors import MockServerError, ParseError, ValidationError, ConfigurationError

__all__ = [
    'MockServer',
    'MockConfig',
    'create_mock_server',
    'MockServerError',
    'ParseError',
    'ValidationError',
    'ConfigurationError',
]

__version__ = '1.0.0'
