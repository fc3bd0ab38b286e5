"""
Tests for TapMock Handler Registry

Tests registration storage including:
- RegisteredResponse parsing from the wire format
- add / lookup / remove / reset
- Default response configuration
- Loading seed files
"""

import json
from datetime import datetime, timezone

import pytest

from tapmock.errors import ConfigurationError
from tapmock.mock.models import RegisteredResponse
from tapmock.mock.registry import HandlerRegistry


@pytest.fixture
def registry():
    """Empty registry."""
    return HandlerRegistry()


class TestRegisteredResponse:
    """Test RegisteredResponse dataclass."""

    def test_from_dict(self):
        """Test creating a registration from its wire mapping."""
        entry = RegisteredResponse.from_dict({
            'method': 'post',
            'path': '/users',
            'query': {'team': 'a'},
            'requestBody': {'name': 'Jane'},
            'statusCode': 201,
            'headers': {'X-Id': '1'},
            'body': {'id': 1}
        })

        assert entry.method == 'POST'
        assert entry.query_params == {'team': 'a'}
        assert entry.body == {'name': 'Jane'}
        assert entry.status_code == 201
        assert entry.response_body == {'id': 1}
        assert entry.last_used is None

    def test_defaults(self):
        """Test method and status defaults."""
        entry = RegisteredResponse.from_dict({'path': '/ping'})

        assert entry.method == 'GET'
        assert entry.status_code == 200
        assert entry.query_params is None
        assert entry.body is None

    @pytest.mark.parametrize('data', [
        {},
        {'path': ''},
        {'path': '/a', 'query': 'a=1'},
        {'path': '/a', 'headers': ['x']},
        'not-a-mapping',
    ])
    def test_invalid_registration(self, data):
        """Test malformed registrations raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            RegisteredResponse.from_dict(data)

    def test_to_result(self):
        """Test result mapping served for an entry."""
        entry = RegisteredResponse(method='GET', path='/a', status_code=202, headers={'X': 'y'}, response_body='ok')

        assert entry.to_result() == {'statusCode': 202, 'body': 'ok', 'headers': {'X': 'y'}}

    def test_to_dict(self):
        """Test converting to dictionary."""
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = RegisteredResponse(method='GET', path='/a', query_params={'q': '1'}, last_used=stamp)

        data = entry.to_dict()

        assert data['query'] == {'q': '1'}
        assert data['lastUsed'] == stamp.isoformat()
        assert 'requestBody' not in data

    def test_url_includes_query_constraint(self):
        """Test url property renders the query constraint."""
        entry = RegisteredResponse(method='GET', path='/search', query_params={'q': 'a b'})

        assert entry.url == '/search?q=a%20b'


class TestHandlerRegistry:
    """Test HandlerRegistry class."""

    def test_add_and_lookup(self, registry):
        """Test registered entries are returned for their method and path."""
        registry.add({'method': 'GET', 'path': '/users', 'body': []})
        registry.add({'method': 'GET', 'path': '/users', 'query': {'page': '2'}})

        entries = registry.lookup('get', '/users')

        assert len(entries) == 2
        assert entries[1].query_params == {'page': '2'}
        assert len(registry) == 2

    def test_lookup_missing(self, registry):
        """Test unknown method/path yields an empty list."""
        assert registry.lookup('GET', '/nothing') == []

    def test_lookup_returns_same_entries(self, registry):
        """Test lookup copies the list but not the entries."""
        entry = registry.add({'path': '/a'})

        registry.lookup('GET', '/a').clear()

        assert registry.lookup('GET', '/a') == [entry]

    def test_record_use(self, registry):
        """Test stamping an entry."""
        entry = registry.add({'path': '/a'})
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)

        registry.record_use(entry, stamp)

        assert registry.lookup('GET', '/a')[0].last_used == stamp

    def test_add_many_is_atomic(self, registry):
        """Test one malformed entry leaves the registry untouched."""
        with pytest.raises(ConfigurationError):
            registry.add_many([{'path': '/ok'}, {'method': 'GET'}])

        assert len(registry) == 0

    def test_remove(self, registry):
        """Test removing every entry for a method and path."""
        registry.add({'method': 'GET', 'path': '/a'})
        registry.add({'method': 'GET', 'path': '/a'})
        registry.add({'method': 'POST', 'path': '/a'})

        assert registry.remove('get', '/a') == 2
        assert registry.lookup('GET', '/a') == []
        assert len(registry.lookup('POST', '/a')) == 1
        assert registry.methods() == ['POST']

    def test_reset(self, registry):
        """Test reset drops entries and the default."""
        registry.add({'path': '/a'})
        registry.set_default({'statusCode': 404})

        assert registry.reset() == 1
        assert len(registry) == 0
        assert registry.default_response is None

    def test_set_default_fills_status(self, registry):
        """Test default without statusCode gets 200."""
        registry.set_default({'body': 'nope'})

        assert registry.default_response == {'statusCode': 200, 'body': 'nope'}

    def test_set_default_rejects_non_mapping(self, registry):
        """Test default must be an object."""
        with pytest.raises(ConfigurationError):
            registry.set_default(['x'])

    def test_entries_by_method(self, registry):
        """Test listing entries across paths."""
        registry.add({'method': 'GET', 'path': '/a'})
        registry.add({'method': 'GET', 'path': '/b'})
        registry.add({'method': 'PUT', 'path': '/a'})

        assert [e.path for e in registry.entries('GET')] == ['/a', '/b']
        assert len(registry.entries()) == 3

    def test_to_dict(self, registry):
        """Test dumping the registry."""
        registry.add({'path': '/a', 'statusCode': 204})

        data = registry.to_dict()

        assert data['total'] == 1
        assert data['default'] is None
        assert data['handlers'][0]['statusCode'] == 204

    def test_load_file(self, registry, tmp_path):
        """Test loading registrations and default from a seed file."""
        path = tmp_path / 'mocks.json'
        path.write_text(json.dumps({
            'default': {'statusCode': 418},
            'handlers': [
                {'method': 'GET', 'path': '/a', 'body': 'a'},
                {'method': 'POST', 'path': '/b', 'statusCode': 201}
            ]
        }))

        assert registry.load_file(path) == 2
        assert registry.default_response == {'statusCode': 418}
        assert registry.lookup('POST', '/b')[0].status_code == 201
