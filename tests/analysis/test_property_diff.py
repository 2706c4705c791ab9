"""Tests for the property diff engine."""

import pytest
from planlens.analysis.property_diff import DiffLimits, diff_properties, estimate_size, values_equal
from planlens.utils.errors import DiffError


class TestDiffProperties:
    """Test recursive before/after comparison."""

    def test_scalar_change(self):
        """Test a changed top-level scalar yields one change."""
        changes, errors = diff_properties({"ami": "ami-1", "name": "web"}, {"ami": "ami-2", "name": "web"})

        assert errors == []
        assert changes.count == 1
        assert changes.changes[0].path == ["ami"]
        assert changes.changes[0].before == "ami-1"
        assert changes.changes[0].after == "ami-2"
        assert not changes.truncated

    def test_identical_trees(self):
        """Test identical inputs produce no changes."""
        state = {"a": 1, "b": {"c": [1, 2]}}
        changes, errors = diff_properties(state, dict(state))

        assert changes.count == 0
        assert changes.changes == []
        assert errors == []

    def test_nested_maps_descend(self):
        """Test nested maps are compared key by key."""
        before = {"tags": {"env": "dev", "team": "a"}}
        after = {"tags": {"env": "prod", "team": "a"}}
        changes, _ = diff_properties(before, after)

        assert [c.path for c in changes.changes] == [["tags", "env"]]

    def test_list_compared_as_whole(self):
        """Test a grown list is one change at the list path."""
        changes, _ = diff_properties({"tags": [1, 2, 3]}, {"tags": [1, 2, 3, 4]})

        assert changes.count == 1
        assert changes.changes[0].path == ["tags"]
        assert changes.changes[0].before == [1, 2, 3]
        assert changes.changes[0].after == [1, 2, 3, 4]

    def test_max_properties_truncates(self):
        """Test the property budget caps the result and flags truncation."""
        before = {k: 1 for k in "abcde"}
        after = {k: 2 for k in "abcde"}
        changes, _ = diff_properties(before, after, DiffLimits(max_properties=2))

        assert changes.count == 2
        assert len(changes.changes) == 2
        assert changes.truncated

    def test_exact_budget_not_truncated(self):
        """Test hitting the budget exactly is not truncation."""
        changes, _ = diff_properties({"a": 1, "b": 1}, {"a": 2, "b": 2}, DiffLimits(max_properties=2))

        assert changes.count == 2
        assert not changes.truncated

    def test_size_budget_truncates(self):
        """Test the byte budget stops collection."""
        before = {"a": "x" * 10, "b": "y" * 10}
        after = {"a": "z" * 10, "b": "w" * 10}
        changes, _ = diff_properties(before, after, DiffLimits(max_total_bytes=25))

        assert changes.count == 1
        assert changes.total_size == 20
        assert changes.truncated

    def test_depth_limit_emits_opaque_change(self):
        """Test maps at the depth limit are reported whole."""
        before = {"a": {"b": {"c": 1}}}
        after = {"a": {"b": {"c": 2}}}
        changes, _ = diff_properties(before, after, DiffLimits(max_depth=1))

        assert [c.path for c in changes.changes] == [["a"]]
        assert changes.changes[0].before == {"b": {"c": 1}}
        assert changes.truncated

    def test_deterministic_order(self):
        """Test output order is sorted by key regardless of insertion order."""
        before = {"zeta": 1, "alpha": 1, "mid": 1}
        after = {"mid": 2, "zeta": 2, "alpha": 2}

        first, _ = diff_properties(before, after)
        second, _ = diff_properties(dict(reversed(list(before.items()))), after)

        assert [c.path for c in first.changes] == [["alpha"], ["mid"], ["zeta"]]
        assert first == second

    def test_create_from_none(self):
        """Test a created object yields one change per top-level property."""
        changes, errors = diff_properties(None, {"ami": "ami-1", "user_data": "boot", "tags": None})

        assert errors == []
        assert [c.path for c in changes.changes] == [["ami"], ["user_data"]]
        assert all(c.before is None for c in changes.changes)

    def test_delete_to_none(self):
        """Test a deleted object yields one removal per top-level property."""
        changes, errors = diff_properties({"engine": "postgres", "password": "pw"}, None)

        assert errors == []
        assert [c.path for c in changes.changes] == [["engine"], ["password"]]
        assert all(c.after is None for c in changes.changes)

    def test_scalar_from_none(self):
        """Test a non-map value appearing is one whole-value change."""
        changes, _ = diff_properties(None, "raw")

        assert changes.count == 1
        assert changes.changes[0].path == []

    def test_both_none(self):
        """Test two missing sides produce nothing."""
        changes, errors = diff_properties(None, None)
        assert changes.count == 0
        assert errors == []

    def test_one_sided_keys(self):
        """Test added and removed keys are reported; null one-sided keys are skipped."""
        before = {"old": "x", "gone_null": None}
        after = {"new": {"nested": 1}, "added_null": None}
        changes, _ = diff_properties(before, after)

        assert [c.path for c in changes.changes] == [["new"], ["old"]]
        assert changes.changes[0].after == {"nested": 1}
        assert changes.changes[1].after is None

    def test_value_set_to_null(self):
        """Test a key present on both sides but nulled after is a change."""
        changes, _ = diff_properties({"a": "x"}, {"a": None})
        assert changes.changes[0].path == ["a"]
        assert changes.changes[0].after is None

    def test_kind_mismatch_reports_diff_error(self):
        """Test a map replaced by a scalar is a change plus a DiffError."""
        changes, errors = diff_properties({"cfg": {"a": 1}, "x": 1}, {"cfg": "flat", "x": 2})

        assert [c.path for c in changes.changes] == [["cfg"], ["x"]]
        assert len(errors) == 1
        assert isinstance(errors[0], DiffError)
        assert errors[0].path == ["cfg"]
        assert "map" in str(errors[0])

    def test_bool_is_not_number(self):
        """Test True and 1 are different values."""
        changes, _ = diff_properties({"flag": 1}, {"flag": True})
        assert changes.count == 1

    def test_size_recorded(self):
        """Test each change carries its size estimate."""
        changes, _ = diff_properties({"name": "abc"}, {"name": "abcd"})
        assert changes.changes[0].size == 7
        assert changes.total_size == 7


class TestHelpers:
    """Test size estimate and equality helpers."""

    @pytest.mark.parametrize("value,expected", [
        (None, 0),
        (True, 1),
        (42, 8),
        (1.5, 8),
        ("abc", 3),
        ([1, "ab"], 10),
        ({"k": "vv"}, 3),
    ])
    def test_estimate_size(self, value, expected):
        """Test size estimates for each value kind."""
        assert estimate_size(value) == expected

    def test_values_equal(self):
        """Test deep equality."""
        assert values_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})
        assert not values_equal({"a": [1]}, {"a": [1, 2]})
        assert not values_equal(0, False)
        assert values_equal(1, 1.0)
