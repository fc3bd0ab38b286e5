"""
TapMock Common Utilities

Request body decoding and seed file loading shared across TapMock modules.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..errors import ConfigurationError, ParseError

JSON_CONTENT_TYPE = 'application/json'


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Check whether a Content-Type header announces a JSON body."""
    return JSON_CONTENT_TYPE in (content_type or '').lower()


def decode_body(raw: Optional[bytes], content_type: Optional[str] = None) -> Any:
    """
    Decode a fully buffered request body.

    JSON is parsed only when the content type says so; everything else is
    returned as text, untouched.

    Args:
        raw: Raw body bytes (None or b'' when the request had no body)
        content_type: Value of the Content-Type header

    Returns:
        Parsed JSON value, the body text, or None for an absent body

    Raises:
        ParseError: If the content type is JSON but the body is not

    Example:
        decode_body(b'{"a":1}', 'application/json')  # {'a': 1}
        decode_body(b'{"a":1}')                      # '{"a":1}'
    """
    if not raw:
        return None

    text = raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else str(raw)

    if not is_json_content_type(content_type):
        return text

    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"Malformed JSON request body: {e}") from e


class ConfigLoader:
    """
    Loader for TapMock seed files.

    Handles the formats a registration file can take:
    - Format 1: {"handlers": [...], "default": {...}}  (wrapped format)
    - Format 2: [...]                                   (direct list format)

    JSON and YAML are both accepted; the parser is chosen by file suffix.

    Example:
        loader = ConfigLoader("mocks.yaml")
        data = loader.load()

        for entry in data['handlers']:
            print(entry['path'])
    """

    YAML_SUFFIXES = ('.yaml', '.yml')

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize config loader.

        Args:
            file_path: Path to a JSON or YAML seed file
        """
        self.file_path = Path(file_path)

    def load(self) -> Dict[str, Any]:
        """
        Load and normalize a seed file.

        Returns:
            Dict with 'handlers' (list) and 'default' (dict or None)

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigurationError: If the content is unparsable or has the wrong shape
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                if self.file_path.suffix.lower() in self.YAML_SUFFIXES:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigurationError(f"Could not parse {self.file_path}: {e}") from e

        return self.normalize(data, source=str(self.file_path))

    @staticmethod
    def normalize(data: Any, source: str = '<payload>') -> Dict[str, Any]:
        """
        Bring the accepted seed layouts into one shape.

        Args:
            data: Parsed JSON/YAML document
            source: Name used in error messages

        Returns:
            Dict with 'handlers' and 'default' keys
        """
        if data is None:
            return {'handlers': [], 'default': None}

        if isinstance(data, list):
            return {'handlers': data, 'default': None}

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Unexpected format in {source}. "
                f"Expected dict or list, got {type(data).__name__}"
            )

        handlers = data.get('handlers', [])
        if not isinstance(handlers, list):
            raise ConfigurationError(f"'handlers' in {source} must be a list")

        default = data.get('default')
        if default is not None and not isinstance(default, dict):
            raise ConfigurationError(f"'default' in {source} must be an object")

        return {'handlers': handlers, 'default': default}

    @staticmethod
    def load_from_file(file_path: Union[str, Path]) -> Dict[str, Any]:
        """Convenience method to load a seed file in one call."""
        return ConfigLoader(file_path).load()


def summarize_entries(entries: List[Dict[str, Any]]) -> str:
    """One-line summary of raw registrations, used by the CLI."""
    methods: Dict[str, int] = {}
    for entry in entries:
        method = str(entry.get('method', 'GET')).upper()
        methods[method] = methods.get(method, 0) + 1
    return ', '.join(f"{method}: {count}" for method, count in sorted(methods.items())) or 'none'
