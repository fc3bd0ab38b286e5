"""
TapMock Handler Resolver

Picks exactly one handler for an incoming request: a built-in control
handler, the least recently used matching registration, or the default
response.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .matcher import RequestMatcher
from .models import Handler, IncomingRequest, RegisteredResponse, STATUS_CODE_KEY, BODY_KEY
from .registry import HandlerRegistry

# Builtin handler table: method -> path -> handler
BuiltinTable = Dict[str, Dict[str, Handler]]

SOURCE_BUILTIN = 'builtin'
SOURCE_REGISTERED = 'registered'
SOURCE_FALLBACK = 'fallback'


def utc_now() -> datetime:
    """Default clock for usage stamps."""
    return datetime.now(timezone.utc)


def _last_used_key(entry: RegisteredResponse):
    """Sort key putting never-used entries first, then oldest use first."""
    if entry.last_used is None:
        return (0, datetime.min.replace(tzinfo=timezone.utc))
    stamp = entry.last_used
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return (1, stamp)


@dataclass
class Resolution:
    """Outcome of resolving one request."""

    handler: Handler
    source: str
    entry: Optional[RegisteredResponse] = None

    @property
    def matched(self) -> bool:
        """True when a registered response was selected."""
        return self.source == SOURCE_REGISTERED


class HandlerResolver:
    """
    Resolves incoming requests to handlers.

    Built-in handlers win unconditionally. Otherwise the registrations for
    the method and path are filtered by the matcher and the one used least
    recently is selected and stamped, so repeated requests cycle through
    every matching registration. With no match the registry's default
    response (or a bare 200) is served.

    Example:
        resolver = HandlerResolver(registry, builtins=admin_table)
        resolution = resolver.resolve(request)
        result = resolution.handler(request)
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        builtins: Optional[BuiltinTable] = None,
        clock: Optional[Callable[[], datetime]] = None,
        allow_arrays_in_any_order: bool = True
    ):
        """
        Initialize resolver.

        Args:
            registry: Store of registered responses
            builtins: Unconditional handlers, method -> path -> handler
            clock: Returns the stamp for a selected entry
            allow_arrays_in_any_order: Compare body lists without regard to order
        """
        self.registry = registry
        self.builtins = builtins or {}
        self.clock = clock or utc_now
        self.matcher = RequestMatcher(allow_arrays_in_any_order=allow_arrays_in_any_order)
        self.logger = logging.getLogger("tapmock.resolver")

    def resolve(self, request: IncomingRequest) -> Resolution:
        """
        Select the handler for a request.

        Args:
            request: Decoded incoming request

        Returns:
            Resolution with the handler and where it came from
        """
        method = request.method.upper()

        builtin = self.builtins.get(method, {}).get(request.path)
        if builtin is not None:
            return Resolution(handler=builtin, source=SOURCE_BUILTIN)

        with self.registry.lock:
            candidates = self.registry.lookup(method, request.path)
            filtered = [entry for entry in candidates if self.matcher.matches(request, entry)]

            if filtered:
                found = sorted(filtered, key=_last_used_key)[0]
                self.registry.record_use(found, self.clock())
                self.logger.debug(f"Handling {method} {request.url} with {found.url} -> {found.status_code}")
                return Resolution(handler=lambda _request: found.to_result(), source=SOURCE_REGISTERED, entry=found)

        if self.logger.isEnabledFor(logging.DEBUG):
            self._log_unmatched(request)

        return Resolution(handler=self._fallback_handler, source=SOURCE_FALLBACK)

    def fallback_result(self) -> Dict[str, Any]:
        """Result served when nothing matches."""
        configured = self.registry.default_response
        if configured is not None:
            return dict(configured)
        return {STATUS_CODE_KEY: 200, BODY_KEY: None}

    def _fallback_handler(self, request: IncomingRequest) -> Dict[str, Any]:
        return self.fallback_result()

    def _log_unmatched(self, request: IncomingRequest):
        """Log the unmatched request together with the URLs that are available."""
        method = request.method.upper()
        available = []
        for entry in self.registry.entries(method):
            if entry.url not in available:
                available.append(entry.url)

        lines = [
            f"No [{method}] handler found for URL:",
            f"  {request.url}"
        ]
        if request.body is not None:
            lines.append("With body:")
            lines.append(json.dumps(request.body, indent=2, default=str))
        lines.append("Available urls:")
        lines.extend(f" - {url}" for url in available)

        for entry in self.registry.lookup(method, request.path):
            lines.append(f"   {entry.url}: {self.matcher.explain(request, entry).reason}")

        self.logger.debug("\n".join(lines))
