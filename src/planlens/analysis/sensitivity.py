"""Compile sensitivity rules into a read-only O(1) lookup index."""

import re
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, Field, ValidationError
from ..contracts.core_output import RuleValidationError
from ..utils.logging import get_logger

logger = get_logger("analysis.sensitivity")

# provider prefix, underscore, resource name (e.g. aws_db_instance, google_sql_database_instance)
_RESOURCE_TYPE_PATTERN = re.compile(r"^[A-Za-z0-9]+_[A-Za-z0-9_]+$")


class SensitivityRule(BaseModel):
    """Marks a resource type, or a (resource type, property) pair, as sensitive."""
    resource_type: str = Field(..., description="Resource type the rule applies to")
    property: Optional[str] = Field(default=None, description="Top-level property name; None for a resource rule")

    class Config:
        frozen = True


class SensitivityIndex:
    """
    Read-only membership index for sensitive resource types and properties.

    Built once per configuration and safe to share between threads; it exposes
    no mutating operations.
    """

    __slots__ = ("_resources", "_properties", "_rule_count")

    def __init__(self, resources: FrozenSet[str], properties: Mapping[str, FrozenSet[str]]):
        self._resources = frozenset(resources)
        self._properties: Dict[str, FrozenSet[str]] = {
            resource_type: frozenset(names) for resource_type, names in properties.items()
        }
        self._rule_count = len(self._resources) + sum(len(v) for v in self._properties.values())

    @classmethod
    def empty(cls) -> "SensitivityIndex":
        return cls(frozenset(), {})

    def is_sensitive_resource(self, resource_type: str) -> bool:
        """Check if a resource type was registered as sensitive."""
        return resource_type in self._resources

    def is_sensitive_property(self, resource_type: str, property_name: str) -> bool:
        """Check if a (resource type, property) pair was registered as sensitive."""
        names = self._properties.get(resource_type)
        return names is not None and property_name in names

    def sensitive_properties(self, resource_type: str) -> FrozenSet[str]:
        """All registered sensitive property names for a resource type."""
        return self._properties.get(resource_type, frozenset())

    def __len__(self) -> int:
        return self._rule_count

    def __repr__(self) -> str:
        return f"SensitivityIndex(resources={len(self._resources)}, property_rules={self._rule_count - len(self._resources)})"


def build_sensitivity_index(
    rules: Iterable[Union[SensitivityRule, Mapping[str, Any]]]
) -> Tuple[SensitivityIndex, List[RuleValidationError]]:
    """
    Validate sensitivity rules and compile the valid ones into an index.

    Invalid rules are excluded and reported; they never stop the build.
    Duplicate rules are logged and ignored (first registration wins).

    Args:
        rules: SensitivityRule instances or raw mappings from configuration

    Returns:
        Tuple of (index, list of rejected rules)
    """
    resources = set()
    properties: Dict[str, set] = {}
    errors: List[RuleValidationError] = []

    for idx, raw in enumerate(rules):
        rule, error = _coerce_rule(idx, raw)
        if error is not None:
            logger.warning(f"Excluding sensitivity rule #{idx}: {error.message}")
            errors.append(error)
            continue

        if rule.property is not None:
            names = properties.setdefault(rule.resource_type, set())
            if rule.property in names:
                logger.warning(f"Duplicate sensitive property rule ignored: {rule.resource_type}.{rule.property}")
                continue
            names.add(rule.property)
        else:
            if rule.resource_type in resources:
                logger.warning(f"Duplicate sensitive resource rule ignored: {rule.resource_type}")
                continue
            resources.add(rule.resource_type)

    index = SensitivityIndex(frozenset(resources), {k: frozenset(v) for k, v in properties.items()})
    logger.info(f"Built sensitivity index with {len(index)} rules ({len(errors)} excluded)")
    return index, errors


def _coerce_rule(idx: int, raw: Any) -> Tuple[Optional[SensitivityRule], Optional[RuleValidationError]]:
    """Turn a raw rule into a validated SensitivityRule, or a RuleValidationError."""
    if isinstance(raw, SensitivityRule):
        rule = raw
    elif isinstance(raw, Mapping):
        try:
            rule = SensitivityRule(**raw)
        except ValidationError as e:
            fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
            return None, RuleValidationError(
                index=idx,
                resource_type=_as_text(raw.get("resource_type")),
                property=_as_text(raw.get("property")),
                message=f"Invalid rule fields: {fields}",
            )
        except TypeError as e:
            return None, RuleValidationError(index=idx, message=f"Invalid rule: {e}")
    else:
        return None, RuleValidationError(index=idx, message=f"Rule must be a mapping, got {type(raw).__name__}")

    if not rule.resource_type:
        message = "resource_type must not be empty"
    elif not _RESOURCE_TYPE_PATTERN.match(rule.resource_type):
        message = f"resource_type '{rule.resource_type}' is not of the form provider_resource"
    elif rule.property is not None and not rule.property:
        message = "property must not be empty for a property rule"
    else:
        return rule, None

    return None, RuleValidationError(
        index=idx,
        resource_type=rule.resource_type,
        property=rule.property,
        message=message,
    )


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def is_marked_sensitive(mask: Any, path: Iterable[Any]) -> bool:
    """
    Check a plan-declared sensitivity mask (e.g. ``after_sensitive``) for a change at path.

    True when the mask marks any prefix of path, or anything below it (a
    whole-value change containing a sensitive leaf is itself sensitive).
    """
    node = mask
    if node is True:
        return True
    for part in path:
        if isinstance(node, Mapping):
            node = node.get(part)
        elif isinstance(node, list) and isinstance(part, int) and 0 <= part < len(node):
            node = node[part]
        else:
            return False
        if node is True:
            return True
    return _contains_marked(node)


def _contains_marked(node: Any) -> bool:
    if node is True:
        return True
    if isinstance(node, Mapping):
        return any(_contains_marked(v) for v in node.values())
    if isinstance(node, list):
        return any(_contains_marked(v) for v in node)
    return False
