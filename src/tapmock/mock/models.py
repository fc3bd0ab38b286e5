"""
TapMock Data Model

Records passed between the codec, matcher, resolver and responder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..common import full_url
from ..errors import ConfigurationError

# Keys of a handler result mapping, as written in seed files and admin payloads
STATUS_CODE_KEY = 'statusCode'
HEADERS_KEY = 'headers'
BODY_KEY = 'body'


@dataclass(frozen=True)
class IncomingRequest:
    """A fully buffered request, decoded once and never modified."""

    method: str
    path: str
    query_params: Optional[Dict[str, str]] = None
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        """Path plus re-encoded query string."""
        return full_url(self.path, self.query_params)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'method': self.method,
            'url': self.path,
            'headers': dict(self.headers),
            'queryObj': self.query_params,
            'body': self.body
        }


@dataclass(frozen=True)
class HandlerResult:
    """Validated handler result, ready to render."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the wire mapping."""
        data: Dict[str, Any] = {STATUS_CODE_KEY: self.status_code}
        if self.headers:
            data[HEADERS_KEY] = dict(self.headers)
        if self.body is not None:
            data[BODY_KEY] = self.body
        return data


# A handler takes the incoming request and returns a result mapping (or HandlerResult)
Handler = Callable[[IncomingRequest], Any]


@dataclass(eq=False)
class RegisteredResponse:
    """
    A canned response plus the constraints that select it.

    ``query_params`` and ``body`` are constraints, not data: None means
    "don't check". ``last_used`` is stamped by the resolver each time the
    entry is selected and is the only field that changes after registration.
    """

    method: str
    path: str
    status_code: int = 200
    query_params: Optional[Dict[str, Any]] = None
    body: Any = None
    headers: Optional[Dict[str, str]] = None
    response_body: Any = None
    last_used: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegisteredResponse':
        """
        Create a registration from its wire mapping.

        Args:
            data: Mapping with method, path, query, requestBody, statusCode,
                headers and body keys

        Returns:
            RegisteredResponse

        Raises:
            ConfigurationError: If required keys are missing or mistyped
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Handler registration must be an object, got {type(data).__name__}"
            )

        path = data.get('path')
        if not isinstance(path, str) or not path:
            raise ConfigurationError("Handler registration requires a 'path'")

        query = data.get('query')
        if query is not None and not isinstance(query, dict):
            raise ConfigurationError(f"'query' for {path} must be an object")

        headers = data.get(HEADERS_KEY)
        if headers is not None and not isinstance(headers, dict):
            raise ConfigurationError(f"'headers' for {path} must be an object")

        return cls(
            method=str(data.get('method', 'GET')).upper(),
            path=path,
            status_code=data.get(STATUS_CODE_KEY, 200),
            query_params=query,
            body=data.get('requestBody'),
            headers=headers,
            response_body=data.get(BODY_KEY)
        )

    @property
    def url(self) -> str:
        """Path plus the query constraint, for listings and debug output."""
        return full_url(self.path, self.query_params)

    def to_result(self) -> Dict[str, Any]:
        """Handler result mapping served when this entry is selected."""
        result: Dict[str, Any] = {STATUS_CODE_KEY: self.status_code, BODY_KEY: self.response_body}
        if self.headers:
            result[HEADERS_KEY] = dict(self.headers)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            'method': self.method,
            'path': self.path,
            STATUS_CODE_KEY: self.status_code,
            'lastUsed': self.last_used.isoformat() if self.last_used else None
        }
        if self.query_params is not None:
            data['query'] = self.query_params
        if self.body is not None:
            data['requestBody'] = self.body
        if self.headers:
            data[HEADERS_KEY] = self.headers
        if self.response_body is not None:
            data[BODY_KEY] = self.response_body
        return data
