"""Partition resource analyses by inferred provider."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple
from ..contracts.core_output import ResourceAnalysis
from ..utils.logging import get_logger

logger = get_logger("analysis.grouping")

UNKNOWN_PROVIDER = "unknown"
DEFAULT_GROUP_THRESHOLD = 10


class ProviderResolver(ABC):
    """Maps a resource type to the provider key used for grouping."""

    @abstractmethod
    def resolve(self, resource_type: str) -> str:
        """
        Resolve the provider for a resource type.

        Returns:
            Provider key, or "unknown" when the type does not match the scheme
        """
        pass


class PrefixProviderResolver(ProviderResolver):
    """Provider is the part of the resource type before the first delimiter."""

    def __init__(self, delimiter: str = "_"):
        self.delimiter = delimiter

    def resolve(self, resource_type: str) -> str:
        head, sep, _ = (resource_type or "").partition(self.delimiter)
        if not sep or not head:
            return UNKNOWN_PROVIDER
        return head


def group_by_provider(
    analyses: Sequence[ResourceAnalysis],
    threshold: int = DEFAULT_GROUP_THRESHOLD,
    resolver: Optional[ProviderResolver] = None
) -> Tuple[Dict[str, List[int]], bool]:
    """
    Group analyses by provider when the plan is large and diverse enough.

    Grouping applies only with at least ``threshold`` analyses spread over more
    than one provider. Groups hold indices into ``analyses`` and keep the
    first-seen provider order of the plan.

    Returns:
        Tuple of (provider -> indices, applied). Groups are empty when not applied.
    """
    if len(analyses) < threshold:
        return {}, False

    resolver = resolver or PrefixProviderResolver()
    groups: Dict[str, List[int]] = {}
    for idx, analysis in enumerate(analyses):
        groups.setdefault(resolver.resolve(analysis.type), []).append(idx)

    if len(groups) <= 1:
        return {}, False

    logger.info(f"Grouped {len(analyses)} resources into {len(groups)} provider groups")
    return groups, True
