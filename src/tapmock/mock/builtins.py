"""
TapMock Built-in Handlers

Control endpoints served under the admin prefix. They are looked up before
any registration and never go through matching.
"""

from typing import Any, Callable, Dict

from ..errors import ConfigurationError
from .models import IncomingRequest, STATUS_CODE_KEY, BODY_KEY
from .registry import HandlerRegistry
from .resolver import BuiltinTable


def _bad_request(message: str) -> Dict[str, Any]:
    return {STATUS_CODE_KEY: 400, BODY_KEY: {'error': message}}


def build_admin_handlers(
    registry: HandlerRegistry,
    metrics: Any,
    prefix: str = "/__admin__"
) -> BuiltinTable:
    """
    Build the built-in handler table.

    Args:
        registry: Registry the endpoints inspect and mutate
        metrics: MockMetrics instance (anything with to_dict() and reset())
        prefix: Path prefix for every control endpoint

    Returns:
        Table of method -> path -> handler
    """

    def health(request: IncomingRequest):
        """Self-test endpoint."""
        return {STATUS_CODE_KEY: 200, BODY_KEY: {'status': 'ok', 'handlers': len(registry)}}

    def list_handlers(request: IncomingRequest):
        """Dump every registration and the default response."""
        return {STATUS_CODE_KEY: 200, BODY_KEY: registry.to_dict()}

    def add_handlers(request: IncomingRequest):
        """Register one entry (object body) or many (list body)."""
        payload = request.body
        if isinstance(payload, dict) and 'handlers' in payload:
            payload = payload['handlers']
        entries = payload if isinstance(payload, list) else [payload]

        try:
            added = registry.add_many(entries)
        except ConfigurationError as e:
            return _bad_request(e.message)

        return {STATUS_CODE_KEY: 201, BODY_KEY: {
            'status': 'registered',
            'added': len(added),
            'total': len(registry)
        }}

    def reset_handlers(request: IncomingRequest):
        """Drop all registrations and the default response."""
        removed = registry.reset()
        return {STATUS_CODE_KEY: 200, BODY_KEY: {'status': 'reset', 'removed': removed}}

    def remove_handlers(request: IncomingRequest):
        """Remove every registration for {method, path}."""
        payload = request.body
        if not isinstance(payload, dict) or not isinstance(payload.get('path'), str):
            return _bad_request("Expected an object with 'method' and 'path'")

        removed = registry.remove(str(payload.get('method', 'GET')), payload['path'])
        return {STATUS_CODE_KEY: 200, BODY_KEY: {'status': 'removed', 'removed': removed}}

    def set_default(request: IncomingRequest):
        """Set (or clear, with a null body) the default response."""
        try:
            registry.set_default(request.body)
        except ConfigurationError as e:
            return _bad_request(e.message)
        return {STATUS_CODE_KEY: 200, BODY_KEY: {'status': 'updated', 'default': registry.default_response}}

    def get_metrics(request: IncomingRequest):
        """Server metrics."""
        return {STATUS_CODE_KEY: 200, BODY_KEY: metrics.to_dict()}

    def reset_metrics(request: IncomingRequest):
        """Reset server metrics."""
        metrics.reset()
        return {STATUS_CODE_KEY: 200, BODY_KEY: {'status': 'reset'}}

    routes: Dict[str, Dict[str, Callable[[IncomingRequest], Any]]] = {
        'GET': {
            f"{prefix}/health": health,
            f"{prefix}/handlers": list_handlers,
            f"{prefix}/metrics": get_metrics,
        },
        'POST': {
            f"{prefix}/handlers": add_handlers,
            f"{prefix}/handlers/remove": remove_handlers,
            f"{prefix}/default": set_default,
            f"{prefix}/metrics/reset": reset_metrics,
        },
        'DELETE': {
            f"{prefix}/handlers": reset_handlers,
        },
    }
    return routes
