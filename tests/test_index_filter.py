"""
Tests for IndexFilter parsing and membership.
"""

import pytest

from workspace_sync.services.index_filter import IndexFilter


class TestMembership:

    def test_empty_filter_allows_everything(self):
        index_filter = IndexFilter.unrestricted()
        assert index_filter.is_unrestricted
        assert index_filter.allows("Anything.groovy")
        assert index_filter.allows("notes.txt")

    def test_non_empty_filter_allows_only_members(self):
        index_filter = IndexFilter.of(["A.groovy", "B.groovy"])
        assert not index_filter.is_unrestricted
        assert index_filter.allows("A.groovy")
        assert not index_filter.allows("C.groovy")

    def test_names_are_stripped_and_blank_names_dropped(self):
        index_filter = IndexFilter.of([" A.groovy ", "", "   "])
        assert index_filter.names == frozenset({"A.groovy"})


class TestFromValue:

    @pytest.mark.parametrize("value", [None, "", "   ", [], (), set(), frozenset()])
    def test_absent_or_empty_is_unrestricted(self, value):
        assert IndexFilter.from_value(value).is_unrestricted

    def test_list_of_names(self):
        index_filter = IndexFilter.from_value(["A.groovy", "B.groovy"])
        assert index_filter.names == frozenset({"A.groovy", "B.groovy"})

    def test_comma_separated_string(self):
        index_filter = IndexFilter.from_value("A.groovy, B.groovy")
        assert index_filter.names == frozenset({"A.groovy", "B.groovy"})

    def test_json_array_string(self):
        index_filter = IndexFilter.from_value('["A.groovy"]')
        assert index_filter.names == frozenset({"A.groovy"})

    def test_existing_filter_is_returned(self):
        index_filter = IndexFilter.of(["A.groovy"])
        assert IndexFilter.from_value(index_filter) is index_filter

    @pytest.mark.parametrize("value", [
        42,
        3.5,
        {"indexFiles": ["A.groovy"]},
        ["A.groovy", 7],
        [None],
        '{"A.groovy": true}',
        '["A.groovy"',
        '[["A.groovy"]]',
        object(),
    ])
    def test_malformed_values_are_unrestricted(self, value):
        assert IndexFilter.from_value(value).is_unrestricted
