"""
TapMock Handler Registry

In-memory store of registered responses, keyed by method and path.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..common import ConfigLoader
from ..errors import ConfigurationError
from .models import RegisteredResponse, STATUS_CODE_KEY


class HandlerRegistry:
    """
    Mutable store of registered responses.

    Entries live in ``method -> path -> [RegisteredResponse, ...]``. Insertion
    order is kept, but the resolver picks by ``last_used``. All reads and
    writes go through ``lock`` so the resolver can filter, order and stamp
    atomically.

    Example:
        registry = HandlerRegistry()
        registry.add({'method': 'GET', 'path': '/users', 'statusCode': 200, 'body': []})
        registry.load_file('mocks.yaml')
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.lock = threading.RLock()
        self._handlers: Dict[str, Dict[str, List[RegisteredResponse]]] = {}
        self._default: Optional[Dict[str, Any]] = None
        self.logger = logging.getLogger("tapmock.registry")

    def lookup(self, method: str, path: str) -> List[RegisteredResponse]:
        """
        Get the registrations for a method and path.

        Returns:
            The stored list (empty if nothing is registered)
        """
        with self.lock:
            return list(self._handlers.get(method.upper(), {}).get(path, []))

    def record_use(self, entry: RegisteredResponse, timestamp: datetime) -> None:
        """Stamp an entry as just selected."""
        with self.lock:
            entry.last_used = timestamp

    def add(self, entry: Union[RegisteredResponse, Dict[str, Any]]) -> RegisteredResponse:
        """
        Register a response.

        Args:
            entry: RegisteredResponse or its wire mapping

        Returns:
            The stored RegisteredResponse

        Raises:
            ConfigurationError: If the mapping is malformed
        """
        if not isinstance(entry, RegisteredResponse):
            entry = RegisteredResponse.from_dict(entry)

        with self.lock:
            by_path = self._handlers.setdefault(entry.method.upper(), {})
            by_path.setdefault(entry.path, []).append(entry)

        self.logger.debug(f"Registered {entry.method} {entry.url} -> {entry.status_code}")
        return entry

    def add_many(self, entries: List[Any]) -> List[RegisteredResponse]:
        """
        Register several responses, all or nothing.

        Every mapping is parsed before any is stored, so one malformed entry
        leaves the registry untouched.
        """
        parsed = [
            e if isinstance(e, RegisteredResponse) else RegisteredResponse.from_dict(e)
            for e in entries
        ]
        with self.lock:
            return [self.add(entry) for entry in parsed]

    def remove(self, method: str, path: str) -> int:
        """
        Remove every registration for a method and path.

        Returns:
            Number of entries removed
        """
        with self.lock:
            by_path = self._handlers.get(method.upper(), {})
            removed = by_path.pop(path, [])
            if not by_path:
                self._handlers.pop(method.upper(), None)

        if removed:
            self.logger.debug(f"Removed {len(removed)} handler(s) for {method.upper()} {path}")
        return len(removed)

    def reset(self) -> int:
        """
        Drop all registrations and the default response.

        Returns:
            Number of entries removed
        """
        with self.lock:
            count = len(self)
            self._handlers.clear()
            self._default = None

        self.logger.info(f"Registry reset ({count} handler(s) removed)")
        return count

    @property
    def default_response(self) -> Optional[Dict[str, Any]]:
        """Configured fallback result mapping, or None."""
        return self._default

    def set_default(self, result: Optional[Dict[str, Any]]) -> None:
        """
        Configure the response served when nothing matches.

        Args:
            result: Handler result mapping, or None to restore the bare 200

        Raises:
            ConfigurationError: If ``result`` is not a mapping
        """
        if result is not None and not isinstance(result, dict):
            raise ConfigurationError("Default response must be an object")
        if result is not None and STATUS_CODE_KEY not in result:
            result = {STATUS_CODE_KEY: 200, **result}

        with self.lock:
            self._default = result

    def load_file(self, file_path: Union[str, Path]) -> int:
        """
        Load registrations (and an optional default) from a seed file.

        Args:
            file_path: JSON or YAML seed file

        Returns:
            Number of entries registered
        """
        data = ConfigLoader(file_path).load()
        return self.load_data(data)

    def load_data(self, data: Any) -> int:
        """Load an already parsed seed document."""
        data = ConfigLoader.normalize(data)
        added = self.add_many(data['handlers'])
        if data['default'] is not None:
            self.set_default(data['default'])

        self.logger.info(f"Loaded {len(added)} handler(s)")
        return len(added)

    def methods(self) -> List[str]:
        """Methods that have at least one registration."""
        with self.lock:
            return sorted(self._handlers)

    def entries(self, method: Optional[str] = None) -> List[RegisteredResponse]:
        """All registrations, optionally restricted to one method."""
        with self.lock:
            methods = [method.upper()] if method else list(self._handlers)
            return [
                entry
                for m in methods
                for entries in self._handlers.get(m, {}).values()
                for entry in entries
            ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        with self.lock:
            return {
                'total': len(self),
                'default': self._default,
                'handlers': [entry.to_dict() for entry in self.entries()]
            }

    def __len__(self) -> int:
        with self.lock:
            return sum(
                len(entries)
                for by_path in self._handlers.values()
                for entries in by_path.values()
            )
