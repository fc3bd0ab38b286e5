"""
TapMock Mock Server Module

Programmable HTTP responder for tests.

This module provides:
- FastAPI-based mock server
- Request matching engine
- Least-recently-used handler resolution
- Result validation and rendering
"""

from .server import MockServer, MockConfig, MockMetrics, create_mock_server
from .matcher import RequestMatcher, MatchResult, query_matches, body_matches
from .models import IncomingRequest, RegisteredResponse, HandlerResult
from .registry import HandlerRegistry
from .resolver import HandlerResolver, Resolution
from .responder import (
    ResponseWriter,
    RenderedResponse,
    validate,
    render,
    render_error,
)

__all__ = [
    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'create_mock_server',

    # Matcher
    'RequestMatcher',
    'MatchResult',
    'query_matches',
    'body_matches',

    # Model
    'IncomingRequest',
    'RegisteredResponse',
    'HandlerResult',

    # Resolution
    'HandlerRegistry',
    'HandlerResolver',
    'Resolution',

    # Responder
    'ResponseWriter',
    'RenderedResponse',
    'validate',
    'render',
    'render_error',
]

__version__ = '1.0.0'
