"""
TapMock Mock Server

FastAPI-based programmable HTTP responder. Test authors register canned
responses; every incoming request is answered with the best-matching one.

Features:
- Query and body constrained registrations
- Least-recently-used rotation between matching registrations
- Configurable default response
- Admin API (built-in handlers) for runtime registration
- Metrics and logging
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from fastapi import FastAPI, Request, Response
import uvicorn

from ..common import decode_body, decode_query
from .builtins import build_admin_handlers
from .models import IncomingRequest
from .registry import HandlerRegistry
from .resolver import HandlerResolver, SOURCE_BUILTIN, SOURCE_REGISTERED
from .responder import RenderedResponse, ResponseWriter, render, render_error, validate

ENV_PREFIX = 'TAPMOCK_'
TRUE_VALUES = ('1', 'true', 'yes', 'on')


def resolve_log_level(name: Optional[str]) -> int:
    """Map a level name to its logging constant, falling back to INFO for unknown names."""
    level = logging.getLevelName(str(name or '').upper())
    if isinstance(level, int):
        return level
    logging.getLogger("tapmock.mock").warning(f"Unknown log level {name!r}, using INFO")
    return logging.INFO


def raw_request_path(request: Request) -> str:
    """Request path exactly as sent, still percent-encoded."""
    raw_path = request.scope.get('raw_path')
    if not raw_path:
        return request.url.path
    return raw_path.decode('latin-1').split('?', 1)[0]


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Server options
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"
    debug: bool = False  # Log unmatched requests with the available URLs

    # Matching
    allow_arrays_in_any_order: bool = True

    # Seed registrations loaded at startup (JSON or YAML)
    config_file: Optional[str] = None

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'MockConfig':
        """
        Build a config from TAPMOCK_* environment variables.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Values that win over the environment

        Returns:
            MockConfig
        """
        env = os.environ if environ is None else environ
        config = cls()

        if env.get(f'{ENV_PREFIX}HOST'):
            config.host = env[f'{ENV_PREFIX}HOST']
        if env.get(f'{ENV_PREFIX}PORT'):
            config.port = int(env[f'{ENV_PREFIX}PORT'])
        if env.get(f'{ENV_PREFIX}LOG_LEVEL'):
            config.log_level = env[f'{ENV_PREFIX}LOG_LEVEL'].lower()
        if env.get(f'{ENV_PREFIX}DEBUG'):
            config.debug = env[f'{ENV_PREFIX}DEBUG'].lower() in TRUE_VALUES
        if env.get(f'{ENV_PREFIX}CONFIG'):
            config.config_file = env[f'{ENV_PREFIX}CONFIG']

        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    builtin_requests: int = 0
    error_responses: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def reset(self):
        """Zero every counter and restart the uptime clock."""
        self.total_requests = 0
        self.matched_requests = 0
        self.unmatched_requests = 0
        self.builtin_requests = 0
        self.error_responses = 0
        self.start_time = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'builtin_requests': self.builtin_requests,
            'error_responses': self.error_responses,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    FastAPI-based programmable mock server.

    Example:
        # Seed from a file and start
        server = MockServer(MockConfig(config_file='mocks.yaml'))
        server.start(port=8080)

        # Register at runtime
        server.registry.add({
            'method': 'GET',
            'path': '/users',
            'query': {'page': '2'},
            'statusCode': 200,
            'body': {'users': []}
        })
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        registry: Optional[HandlerRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for server behavior
            registry: Optional HandlerRegistry (will create if None)
            clock: Optional clock used to stamp selected registrations
        """
        self.config = config or MockConfig()
        self.metrics = MockMetrics()

        # Setup logging first (before loading registrations)
        self.logger = logging.getLogger("tapmock.mock")
        level = logging.DEBUG if self.config.debug else resolve_log_level(self.config.log_level)
        logging.getLogger("tapmock").setLevel(level)

        self.registry = registry or HandlerRegistry()
        if self.config.config_file:
            count = self.registry.load_file(self.config.config_file)
            self.logger.info(f"Loaded {count} handler(s) from {self.config.config_file}")

        builtins = {}
        if self.config.admin_enabled:
            builtins = build_admin_handlers(self.registry, self.metrics, prefix=self.config.admin_prefix)

        self.resolver = HandlerResolver(
            self.registry,
            builtins=builtins,
            clock=clock,
            allow_arrays_in_any_order=self.config.allow_arrays_in_any_order
        )

        # Setup FastAPI app
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with the catch-all route."""
        app = FastAPI(
            title="TapMock Server",
            description="Programmable HTTP responder for tests",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])
        async def mock_request(request: Request, path: str):
            """Handle incoming requests and serve mock responses."""
            return await self._handle_request(request)

        return app

    async def _handle_request(self, request: Request) -> Response:
        """
        Buffer the request body and answer the request.

        Args:
            request: FastAPI Request object

        Returns:
            FastAPI Response
        """
        body = await request.body()

        rendered = self.respond(
            method=request.method,
            path=raw_request_path(request),
            query_string=request.url.query,
            headers=dict(request.headers),
            raw_body=body
        )

        return Response(
            content=rendered.body,
            status_code=rendered.status_code,
            headers=rendered.headers
        )

    def respond(
        self,
        method: str,
        path: str,
        query_string: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        raw_body: Optional[bytes] = None
    ) -> RenderedResponse:
        """
        Answer one request. Never raises: every failure becomes an error body.

        Args:
            method: HTTP method
            path: Request path without query string
            query_string: Raw query string without the leading '?'
            headers: Request headers
            raw_body: Fully buffered request body

        Returns:
            RenderedResponse
        """
        writer = ResponseWriter()
        headers = headers or {}
        resolution = None

        try:
            content_type = next((v for k, v in headers.items() if k.lower() == 'content-type'), None)
            incoming = IncomingRequest(
                method=(method or 'GET').upper(),
                path=path,
                query_params=decode_query(query_string),
                body=decode_body(raw_body, content_type),
                headers=dict(headers)
            )

            self.logger.debug(f"Incoming: {incoming.method} {incoming.url}")

            resolution = self.resolver.resolve(incoming)
            self._count(resolution.source)

            result = validate(resolution.handler(incoming), request=incoming)
            return render(result, writer)
        except Exception as e:
            if resolution is None:
                self.metrics.total_requests += 1
            self.metrics.error_responses += 1
            return render_error(e, writer)

    def _count(self, source: str):
        """Update metrics for a resolved request."""
        if source == SOURCE_BUILTIN:
            self.metrics.builtin_requests += 1
            return

        self.metrics.total_requests += 1
        if source == SOURCE_REGISTERED:
            self.metrics.matched_requests += 1
        else:
            self.metrics.unmatched_requests += 1

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print(f"🚀 TapMock server starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   Handlers registered: {len(self.registry)}")

        if self.config.admin_enabled:
            print(f"   Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/handlers")

        if self.config.debug:
            print(f"   Debug output enabled")

        print()

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=resolve_log_level(self.config.log_level),
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    config_file: Optional[str] = None,
    host: str = "127.0.0.1",
    port: int = 8080,
    log_level: str = "info",
    debug: bool = False,
    admin_enabled: bool = True,
    admin_prefix: str = "/__admin__",
    allow_arrays_in_any_order: bool = True
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        config_file: Optional JSON/YAML seed file with registrations
        host: Host to bind to
        port: Port to bind to
        log_level: Logging level name
        debug: Log unmatched requests with the available URLs
        admin_enabled: Serve the built-in admin handlers
        admin_prefix: Path prefix of the admin handlers
        allow_arrays_in_any_order: Compare body lists without regard to order

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server('mocks.yaml', port=8080, debug=True)
        server.start()
    """
    config = MockConfig(
        host=host,
        port=port,
        log_level=log_level,
        debug=debug,
        config_file=config_file,
        admin_enabled=admin_enabled,
        admin_prefix=admin_prefix,
        allow_arrays_in_any_order=allow_arrays_in_any_order
    )

    return MockServer(config=config)
