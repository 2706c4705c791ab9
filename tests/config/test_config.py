"""Tests for configuration loading."""

import tempfile
from pathlib import Path
import pytest
from planlens.config import load_config
from planlens.utils.errors import ConfigError


@pytest.fixture
def isolated_dirs(monkeypatch):
    """Point HOME and the working directory at empty temporary directories."""
    with tempfile.TemporaryDirectory() as home, tempfile.TemporaryDirectory() as project:
        monkeypatch.setenv("HOME", home)
        monkeypatch.chdir(project)
        monkeypatch.delenv("PLANLENS_EXPAND_ALL", raising=False)
        yield Path(home), Path(project)


def write_yaml(path: Path, content: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestLoadConfig:
    """Test two-tier config loading."""

    def test_defaults(self, isolated_dirs):
        """Test packaged defaults load with no user or project files."""
        config = load_config()

        assert config.sensitive_resources == []
        assert config.sensitive_properties == []
        assert config.plan.grouping.enabled
        assert config.plan.grouping.threshold == 10
        assert config.plan.limits.max_properties == 100
        assert config.plan.max_detail_length == 500

    def test_user_then_project_override(self, isolated_dirs):
        """Test project config overrides user config, which overrides defaults."""
        home, project = isolated_dirs
        write_yaml(home / ".planlens" / "config.yaml", "plan:\n  grouping:\n    threshold: 5\n  expand_all: true\n")
        write_yaml(project / ".planlens" / "config.yaml", "plan:\n  grouping:\n    threshold: 3\n")

        config = load_config()

        assert config.plan.grouping.threshold == 3
        assert config.plan.grouping.enabled
        assert config.plan.expand_all

    def test_explicit_path(self, isolated_dirs):
        """Test an explicit config file is merged over defaults."""
        _, project = isolated_dirs
        path = write_yaml(project / "custom.yaml", (
            "sensitive_resources:\n"
            "  - resource_type: aws_db_instance\n"
            "sensitive_properties:\n"
            "  - resource_type: aws_instance\n"
            "    property: user_data\n"
            "plan:\n"
            "  limits:\n"
            "    max_properties: 7\n"
        ))

        config = load_config(path)

        assert config.plan.limits.max_properties == 7
        assert config.plan.limits.max_depth == 5
        assert config.sensitivity_rules() == [
            {"resource_type": "aws_db_instance"},
            {"resource_type": "aws_instance", "property": "user_data"},
        ]

    def test_property_rule_without_property(self, isolated_dirs):
        """Test a property rule missing its property is marked as an empty property rule."""
        _, project = isolated_dirs
        path = write_yaml(project / "c.yaml", "sensitive_properties:\n  - resource_type: aws_instance\n")

        assert load_config(path).sensitivity_rules() == [{"resource_type": "aws_instance", "property": ""}]

    def test_missing_explicit_path(self, isolated_dirs):
        """Test a missing explicit file is an error."""
        with pytest.raises(ConfigError, match="not found"):
            load_config("does-not-exist.yaml")

    def test_invalid_yaml(self, isolated_dirs):
        """Test malformed YAML is an error."""
        _, project = isolated_dirs
        path = write_yaml(project / "bad.yaml", "plan: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_document(self, isolated_dirs):
        """Test a YAML list document is rejected."""
        _, project = isolated_dirs
        path = write_yaml(project / "list.yaml", "- a\n- b\n")

        with pytest.raises(ConfigError, match="dictionary"):
            load_config(path)

    def test_invalid_setting(self, isolated_dirs):
        """Test out-of-range settings are rejected."""
        _, project = isolated_dirs
        path = write_yaml(project / "c.yaml", "plan:\n  grouping:\n    threshold: 0\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_empty_file(self, isolated_dirs):
        """Test an empty config file keeps the defaults."""
        _, project = isolated_dirs
        path = write_yaml(project / "empty.yaml", "")

        assert load_config(path).plan.grouping.threshold == 10

    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("YES", True), ("0", False), ("", False)])
    def test_expand_all_env(self, isolated_dirs, monkeypatch, value, expected):
        """Test PLANLENS_EXPAND_ALL forces expansion."""
        monkeypatch.setenv("PLANLENS_EXPAND_ALL", value)
        assert load_config().plan.expand_all is expected

    def test_analysis_options(self, isolated_dirs):
        """Test settings translate into analysis options."""
        _, project = isolated_dirs
        path = write_yaml(project / "c.yaml", (
            "plan:\n"
            "  grouping:\n"
            "    enabled: false\n"
            "  workers: 2\n"
            "  max_dependencies: 9\n"
            "  limits:\n"
            "    max_depth: 3\n"
        ))

        options = load_config(path).analysis_options()

        assert not options.grouping_enabled
        assert options.workers == 2
        assert options.max_dependencies == 9
        assert options.limits.max_depth == 3
        assert options.limits.max_properties == 100
