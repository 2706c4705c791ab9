"""Tests for replacement hints."""

from planlens.analysis.replacement import format_replace_path, forces_replacement, replacement_hints


class TestReplacementHints:
    """Test replace path formatting and matching."""

    def test_format_replace_path(self):
        """Test indices are rendered in brackets."""
        assert format_replace_path(["network_interface", 0, "subnet_id"]) == "network_interface.[0].subnet_id"
        assert format_replace_path(["ami"]) == "ami"
        assert format_replace_path("ami") == "ami"
        assert format_replace_path(None) == ""

    def test_hints_deduplicated(self):
        """Test hints keep order and drop duplicates and empties."""
        hints = replacement_hints([["ami"], ["subnet_id"], ["ami"], []])
        assert hints == ["ami", "subnet_id"]

    def test_no_paths(self):
        """Test missing replace paths give no hints."""
        assert replacement_hints(None) == []
        assert replacement_hints([]) == []

    def test_forces_replacement(self):
        """Test a change under a replace path forces replacement."""
        replace_paths = [["ami"], ["network_interface", 0]]

        assert forces_replacement(["ami"], replace_paths)
        assert forces_replacement(["network_interface", 0, "subnet_id"], replace_paths)
        assert not forces_replacement(["network_interface", 1, "subnet_id"], replace_paths)
        assert not forces_replacement(["instance_type"], replace_paths)
        assert not forces_replacement([], replace_paths)
