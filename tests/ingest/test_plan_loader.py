"""Tests for plan loader."""

import json
import tempfile
from pathlib import Path
import pytest
from planlens.ingest.plan_loader import load_plan_json
from planlens.utils.errors import PlanLoadError


def write_plan(content) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        if isinstance(content, str):
            f.write(content)
        else:
            json.dump(content, f)
        return f.name


class TestPlanLoader:
    """Test plan JSON loading."""

    def test_load_valid_plan(self):
        """Test loading a valid Terraform plan JSON."""
        plan_data = {
            "format_version": "1.2",
            "terraform_version": "1.6.0",
            "resource_changes": [
                {
                    "address": "aws_lb.test",
                    "type": "aws_lb",
                    "change": {"actions": ["create"]}
                }
            ]
        }
        temp_path = write_plan(plan_data)

        try:
            result = load_plan_json(temp_path)
            assert result == plan_data
        finally:
            Path(temp_path).unlink()

    def test_load_missing_file(self):
        """Test loading non-existent file raises error."""
        with pytest.raises(PlanLoadError, match="Plan file not found"):
            load_plan_json("nonexistent.json")

    def test_load_directory(self):
        """Test a directory is rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            with pytest.raises(PlanLoadError, match="not a file"):
                load_plan_json(temp_dir)

    def test_load_invalid_json(self):
        """Test loading invalid JSON raises error."""
        temp_path = write_plan("invalid json {")

        try:
            with pytest.raises(PlanLoadError, match="Invalid JSON"):
                load_plan_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_missing_format_version(self):
        """Test a JSON document that is not a plan is rejected."""
        temp_path = write_plan({"resource_changes": []})

        try:
            with pytest.raises(PlanLoadError, match="format_version"):
                load_plan_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_non_object(self):
        """Test a top-level array is rejected."""
        temp_path = write_plan([1, 2])

        try:
            with pytest.raises(PlanLoadError, match="Invalid Terraform plan structure"):
                load_plan_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_bad_resource_changes(self):
        """Test resource_changes must be a list."""
        temp_path = write_plan({"format_version": "1.0", "resource_changes": {}})

        try:
            with pytest.raises(PlanLoadError, match="must be a list"):
                load_plan_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_missing_resource_changes(self):
        """Test loading plan without resource_changes adds empty list."""
        temp_path = write_plan({"format_version": "1.0"})

        try:
            result = load_plan_json(temp_path)
            assert result["resource_changes"] == []
        finally:
            Path(temp_path).unlink()
