"""
TapMock Responder

Validates handler results and renders them into status, headers and body,
or turns any failure into the structured error body.

Error body shape:
    {"error": true, "rawError": {"message", "type", "stack", "request", "result"}}
"""

import json
import logging
import math
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.utils import JSON_CONTENT_TYPE
from ..errors import ValidationError
from .models import HandlerResult, IncomingRequest, STATUS_CODE_KEY, HEADERS_KEY, BODY_KEY

logger = logging.getLogger("tapmock.responder")

MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 600  # exclusive


@dataclass
class RenderedResponse:
    """Transport-level response: status line, headers and body text."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ''


class ResponseWriter:
    """
    Collects one response the way a transport would write it.

    ``write_head`` may be called once; after it the response counts as
    started and its status can no longer change.
    """

    def __init__(self):
        self.status_code: Optional[int] = None
        self.headers: Dict[str, str] = {}
        self.started = False

    def write_head(self, status_code: int, headers: Optional[Dict[str, str]] = None):
        """Write the status line and headers."""
        if self.started:
            raise RuntimeError("Response already started")
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.started = True

    def end(self, body: str = '') -> RenderedResponse:
        """Finish the response with ``body``."""
        if not self.started:
            raise RuntimeError("Response ended before write_head")
        return RenderedResponse(status_code=self.status_code, headers=self.headers, body=body)


def validation_reasons(result: Any) -> List[str]:
    """
    List every rule a handler result violates.

    Args:
        result: Whatever the handler returned

    Returns:
        Human-readable reasons (empty when the result is valid)
    """
    if result is None:
        return ['Result was undefined, you must return an object from your handler function']
    if isinstance(result, HandlerResult):
        result = result.to_dict()
    if not isinstance(result, dict):
        return ['Result was not an object, you must return an object from your handler function']

    reasons = []
    status_code = result.get(STATUS_CODE_KEY)
    if isinstance(status_code, bool) or not isinstance(status_code, (int, float)):
        reasons.append(f'{STATUS_CODE_KEY} must be a number')
    elif not math.isfinite(status_code) or not MIN_STATUS_CODE <= status_code < MAX_STATUS_CODE:
        reasons.append(
            f'{STATUS_CODE_KEY} must be in range [{MIN_STATUS_CODE}, {MAX_STATUS_CODE}), got {status_code}'
        )

    headers = result.get(HEADERS_KEY)
    if headers is not None and not isinstance(headers, dict):
        reasons.append(f'{HEADERS_KEY} must be an object')

    return reasons


def validate(result: Any, request: Optional[IncomingRequest] = None) -> HandlerResult:
    """
    Validate a handler result.

    Args:
        result: Whatever the handler returned
        request: Request being answered, attached to the error

    Returns:
        HandlerResult

    Raises:
        ValidationError: Listing every violated rule
    """
    reasons = validation_reasons(result)
    if reasons:
        raise ValidationError(reasons, request=request, result=result)

    if isinstance(result, HandlerResult):
        return result

    headers = result.get(HEADERS_KEY) or {}
    return HandlerResult(
        status_code=int(result[STATUS_CODE_KEY]),
        headers={str(k): str(v) for k, v in headers.items()},
        body=result.get(BODY_KEY)
    )


def is_structured(body: Any) -> bool:
    """True for bodies that are serialized as JSON rather than passed through."""
    return body is not None and not isinstance(body, (str, bytes))


def response_headers(result: HandlerResult) -> Dict[str, str]:
    """JSON content type for structured bodies, overridden by explicit headers (case-insensitive)."""
    headers = {'Content-Type': JSON_CONTENT_TYPE} if is_structured(result.body) else {}
    supplied = {key.lower() for key in result.headers}
    headers = {key: value for key, value in headers.items() if key.lower() not in supplied}
    headers.update(result.headers)
    return headers


def render(result: HandlerResult, writer: ResponseWriter) -> RenderedResponse:
    """
    Render a validated result.

    The head is written before the body is serialized, so a body that fails
    to serialize leaves the writer started.
    """
    writer.write_head(result.status_code, response_headers(result))

    if is_structured(result.body):
        return writer.end(json.dumps(result.body))
    if isinstance(result.body, bytes):
        return writer.end(result.body.decode('utf-8', errors='replace'))
    if result.body:
        return writer.end(result.body)
    return writer.end()


def error_body(err: BaseException) -> Dict[str, Any]:
    """Build the structured error body for ``err``."""
    raw_error: Dict[str, Any] = {
        'message': getattr(err, 'message', None) or str(err),
        'type': getattr(err, 'type', None) or type(err).__name__,
        'stack': ''.join(traceback.format_exception(type(err), err, err.__traceback__))
    }

    request = getattr(err, 'request', None)
    if request is not None:
        raw_error['request'] = request.to_dict() if isinstance(request, IncomingRequest) else request

    result = getattr(err, 'result', None)
    if result is not None:
        raw_error['result'] = result.to_dict() if isinstance(result, HandlerResult) else result

    return {'error': True, 'rawError': raw_error}


def render_error(err: BaseException, writer: ResponseWriter) -> RenderedResponse:
    """
    Render any failure as the error body.

    Always logs. Writes a 500 JSON head only if the response hasn't started;
    otherwise the started status and headers stay and only the body is sent.
    """
    logger.error(f"Error handling request: {err}", exc_info=(type(err), err, err.__traceback__))

    if not writer.started:
        writer.write_head(500, {'Content-Type': JSON_CONTENT_TYPE})

    return writer.end(json.dumps(error_body(err), default=str))
