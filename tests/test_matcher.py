"""
Tests for TapMock Request Matcher

Tests the matching predicates including:
- Query parameter subset matching
- Structural body matching
- Arrays in any order (and strict order)
- RequestMatcher explanations
"""

import pytest

from tapmock.mock.matcher import (
    MatchResult,
    RequestMatcher,
    body_matches,
    query_matches,
    values_equal,
)
from tapmock.mock.models import IncomingRequest, RegisteredResponse


class TestQueryMatches:
    """Test query_matches()."""

    @pytest.mark.parametrize('actual', [None, {}, {'a': '1'}, {'x': 'y', 'z': ''}])
    def test_absent_constraint_matches_anything(self, actual):
        """Test absent constraint accepts any or no query."""
        assert query_matches(actual, None) is True

    def test_subset_match(self):
        """Test extra request parameters are ignored."""
        assert query_matches({'a': '1', 'b': '2'}, {'a': '1'}) is True

    def test_missing_key_fails(self):
        """Test constrained key must be present."""
        assert query_matches({'b': '2'}, {'a': '1'}) is False

    def test_absent_actual_fails_constraint(self):
        """Test absent request query is treated as empty."""
        assert query_matches(None, {'a': '1'}) is False

    def test_different_value_fails(self):
        """Test values must be equal."""
        assert query_matches({'a': '2'}, {'a': '1'}) is False

    def test_values_are_string_coerced(self):
        """Test numeric and boolean constraints compare as strings."""
        assert query_matches({'page': '2', 'all': 'true'}, {'page': 2, 'all': True}) is True
        assert query_matches({'page': '2.0'}, {'page': 2}) is False

    def test_empty_constraint_requires_no_query(self):
        """Test empty constraint only accepts requests without query."""
        assert query_matches(None, {}) is True
        assert query_matches({}, {}) is True
        assert query_matches({'a': '1'}, {}) is False


class TestBodyMatches:
    """Test body_matches()."""

    @pytest.mark.parametrize('actual', [None, 'text', {'a': 1}, [1, 2], 0])
    def test_absent_constraint_matches_anything(self, actual):
        """Test absent constraint accepts any body."""
        assert body_matches(actual, None) is True

    @pytest.mark.parametrize('value', [
        {'a': 1},
        {'a': {'b': [1, 'x', None]}},
        [1, 2, 3],
        [{'id': 1}, {'id': 2}],
        'plain text',
        42,
        3.5,
        True,
        False,
    ])
    def test_equal_values_match(self, value):
        """Test structurally equal values always match."""
        assert body_matches(value, value) is True

    @pytest.mark.parametrize('actual,expected', [
        (1, 2),
        ('a', 'b'),
        (True, False),
        (1, True),
        (0, False),
        ('1', 1),
        (None, 0),
    ])
    def test_different_scalars_fail(self, actual, expected):
        """Test distinct scalars never match, including bool vs number."""
        assert body_matches(actual, expected) is False

    def test_int_and_float_compare_by_value(self):
        """Test 1 and 1.0 are the same JSON number."""
        assert body_matches(1, 1.0) is True

    def test_mapping_key_count_must_match(self):
        """Test extra keys in the body fail the match."""
        assert body_matches({'a': 1, 'b': 2}, {'a': 1}) is False
        assert body_matches({'a': 1}, {'a': 1, 'b': 2}) is False

    def test_mapping_same_count_different_keys(self):
        """Test same key count with different keys fails."""
        assert body_matches({'a': 1, 'c': 2}, {'a': 1, 'b': 2}) is False

    def test_nested_mapping_mismatch(self):
        """Test nested values are compared recursively."""
        assert body_matches({'a': {'b': 1}}, {'a': {'b': 2}}) is False

    def test_arrays_in_any_order(self):
        """Test list order is ignored by default."""
        assert body_matches([3, 1, 2], [1, 2, 3]) is True
        assert body_matches({'tags': [{'n': 'b'}, {'n': 'a'}]}, {'tags': [{'n': 'a'}, {'n': 'b'}]}) is True

    def test_arrays_length_must_match(self):
        """Test lists of different length fail."""
        assert body_matches([1, 2, 3], [1, 2]) is False

    def test_arrays_many_to_many(self):
        """Test one actual element may satisfy several expected elements."""
        assert body_matches(['x', 'y'], ['x', 'x']) is True
        assert body_matches(['x', 'x'], ['x', 'y']) is False

    def test_arrays_strict_order(self):
        """Test positional comparison when any-order is disabled."""
        assert body_matches([1, 2], [1, 2], allow_arrays_in_any_order=False) is True
        assert body_matches([2, 1], [1, 2], allow_arrays_in_any_order=False) is False

    @pytest.mark.parametrize('actual,expected', [
        ('text', {'a': 1}),
        ({'a': 1}, [1]),
        ([1], {'0': 1}),
        (None, {'a': 1}),
        ({'a': 1}, 'a'),
    ])
    def test_type_mismatch_is_non_match(self, actual, expected):
        """Test mismatched shapes are a non-match, not an error."""
        assert body_matches(actual, expected) is False

    def test_values_equal_direct(self):
        """Test the shared structural equality helper."""
        assert values_equal({'a': [1, {'b': None}]}, {'a': [{'b': None}, 1]}) is True


class TestRequestMatcher:
    """Test RequestMatcher class."""

    @pytest.fixture
    def entry(self):
        """Registration with both constraints."""
        return RegisteredResponse(
            method='POST',
            path='/users',
            query_params={'team': 'a'},
            body={'name': 'Jane'}
        )

    def test_matches_both_constraints(self, entry):
        """Test request satisfying query and body."""
        request = IncomingRequest('POST', '/users', {'team': 'a', 'x': '1'}, {'name': 'Jane'})

        assert RequestMatcher().matches(request, entry) is True

    def test_query_failure(self, entry):
        """Test query mismatch is reported."""
        request = IncomingRequest('POST', '/users', {'team': 'b'}, {'name': 'Jane'})
        result = RequestMatcher().explain(request, entry)

        assert result.matched is False
        assert result.reason == 'Query parameters differ'

    def test_body_failure(self, entry):
        """Test body mismatch is reported."""
        request = IncomingRequest('POST', '/users', {'team': 'a'}, {'name': 'John'})
        result = RequestMatcher().explain(request, entry)

        assert result.matched is False
        assert result.reason == 'Body differs'

    def test_strict_arrays_flag(self):
        """Test matcher honours the array order flag."""
        entry = RegisteredResponse(method='POST', path='/ids', body=[1, 2])
        request = IncomingRequest('POST', '/ids', None, [2, 1])

        assert RequestMatcher().matches(request, entry) is True
        assert RequestMatcher(allow_arrays_in_any_order=False).matches(request, entry) is False

    def test_match_result_to_dict(self, entry):
        """Test converting result to dictionary."""
        result = MatchResult(matched=True, entry=entry, reason='Query and body match')

        data = result.to_dict()

        assert data['matched'] is True
        assert data['url'] == '/users?team=a'
        assert MatchResult(matched=False).to_dict()['url'] is None
