"""Tests for provider grouping."""

import pytest
from planlens.analysis.grouping import PrefixProviderResolver, ProviderResolver, group_by_provider
from planlens.contracts.change_details import CollapsibleValue
from planlens.contracts.core_output import ResourceAnalysis, RiskLevel
from planlens.ingest.models import ResourceAction


def make_analysis(resource_type: str, name: str = "x") -> ResourceAnalysis:
    return ResourceAnalysis(
        address=f"{resource_type}.{name}",
        type=resource_type,
        action=ResourceAction.UPDATE,
        provider=PrefixProviderResolver().resolve(resource_type),
        risk_level=RiskLevel.LOW,
        change_details=CollapsibleValue(summary="0 property changes"),
        dependency_details=CollapsibleValue(summary="depends on 0, used by 0"),
    )


def make_plan(types):
    return [make_analysis(t, str(i)) for i, t in enumerate(types)]


class TestPrefixProviderResolver:
    """Test provider inference from resource types."""

    @pytest.mark.parametrize("resource_type,provider", [
        ("aws_instance", "aws"),
        ("google_sql_database_instance", "google"),
        ("random_id", "random"),
        ("nounderscore", "unknown"),
        ("_leading", "unknown"),
        ("", "unknown"),
    ])
    def test_resolve(self, resource_type, provider):
        """Test the prefix before the first underscore is the provider."""
        assert PrefixProviderResolver().resolve(resource_type) == provider

    def test_custom_delimiter(self):
        """Test other naming schemes via a delimiter."""
        assert PrefixProviderResolver(delimiter="::").resolve("azure::vm") == "azure"


class TestGroupByProvider:
    """Test grouping threshold and ordering."""

    def test_below_threshold(self):
        """Test nine resources over three providers are not grouped."""
        analyses = make_plan(["aws_instance", "google_compute_instance", "azurerm_vm"] * 3)
        groups, applied = group_by_provider(analyses, threshold=10)

        assert not applied
        assert groups == {}

    def test_single_provider(self):
        """Test ten resources from one provider are not grouped."""
        groups, applied = group_by_provider(make_plan(["aws_instance"] * 10), threshold=10)

        assert not applied
        assert groups == {}

    def test_two_providers_at_threshold(self):
        """Test ten resources over two providers are grouped."""
        analyses = make_plan(["aws_instance"] * 5 + ["google_compute_instance"] * 5)
        groups, applied = group_by_provider(analyses, threshold=10)

        assert applied
        assert groups == {"aws": [0, 1, 2, 3, 4], "google": [5, 6, 7, 8, 9]}

    def test_first_seen_order(self):
        """Test groups follow first appearance in the plan."""
        analyses = make_plan(["google_x", "aws_y", "google_z", "nodelim", "aws_w"])
        groups, applied = group_by_provider(analyses, threshold=1)

        assert applied
        assert list(groups) == ["google", "aws", "unknown"]
        assert groups["google"] == [0, 2]
        assert groups["unknown"] == [3]

    def test_every_analysis_in_one_group(self):
        """Test groups partition the analyses."""
        analyses = make_plan(["aws_a", "google_b", "aws_c", "azurerm_d"] * 3)
        groups, _ = group_by_provider(analyses, threshold=10)

        indices = sorted(i for members in groups.values() for i in members)
        assert indices == list(range(len(analyses)))

    def test_custom_resolver(self):
        """Test a pluggable resolver drives grouping."""
        class FirstLetterResolver(ProviderResolver):
            def resolve(self, resource_type: str) -> str:
                return resource_type[:1]

        analyses = make_plan(["aws_a", "google_b"])
        groups, applied = group_by_provider(analyses, threshold=2, resolver=FirstLetterResolver())

        assert applied
        assert groups == {"a": [0], "g": [1]}
