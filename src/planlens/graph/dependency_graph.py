"""Directed dependency graph and direct-neighbour lookups for plan resources."""

import networkx as nx
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from ..contracts.change_details import DependencyInfo
from ..ingest.models import ResourceChangeInput
from ..utils.errors import DependencyError, GraphConstructionError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")

DEFAULT_MAX_RESULTS = 100


class DependencyGraph:
    """Directed dependency graph: nodes=addresses, edges=dependent -> dependency."""

    def __init__(self):
        self.graph = nx.DiGraph()
        self._changes: Dict[str, ResourceChangeInput] = {}

    def add_change(self, change: ResourceChangeInput) -> None:
        """Add a resource change as a node."""
        self.graph.add_node(change.address)
        self._changes[change.address] = change

    def _find_dependency_node(self, dep_address: str, source: ResourceChangeInput) -> str:
        """Resolve a declared dependency (full or module-relative address)."""
        if dep_address in self._changes:
            return dep_address

        if source.module:
            module_prefixed = f"module.{source.module.replace('.', '.module.')}.{dep_address}"
            if module_prefixed in self._changes:
                return module_prefixed

        logger.debug(f"Dependency not found in plan, keeping as external node: {dep_address}")
        return dep_address

    def build_from_changes(
        self,
        changes: Sequence[ResourceChangeInput],
        forward_edges: Optional[Mapping[str, Iterable[str]]] = None
    ) -> None:
        """
        Build the graph from changes in plan order.

        An unusable dependency entry is logged and skipped; the address keeps
        its node and the remaining resources keep their edges.

        Args:
            changes: Resource changes in plan order
            forward_edges: Address -> declared dependencies; defaults to each change's depends_on

        Raises:
            GraphConstructionError: If the changes themselves cannot be added
        """
        try:
            for change in changes:
                self.add_change(change)
        except Exception as e:
            raise GraphConstructionError(f"Failed to build dependency graph: {e}") from e

        for change in changes:
            try:
                self._add_edges(change, forward_edges)
            except (TypeError, AttributeError) as e:
                logger.warning(f"Skipping dependency entry for {change.address}: {e}")

        logger.info(f"Built dependency graph with {self.graph.number_of_nodes()} nodes and {self.graph.number_of_edges()} edges")

    def _add_edges(self, change: ResourceChangeInput, forward_edges: Optional[Mapping[str, Iterable[str]]]) -> None:
        deps = forward_edges.get(change.address, change.depends_on) if forward_edges is not None else change.depends_on
        for dep_address in deps:
            if not isinstance(dep_address, str):
                logger.warning(f"Ignoring non-string dependency of {change.address}: {dep_address!r}")
                continue
            dep_node = self._find_dependency_node(dep_address, change)
            if dep_node != change.address and not self.graph.has_edge(change.address, dep_node):
                self.graph.add_edge(change.address, dep_node)

    def get_dependents(self, address: str) -> List[str]:
        """Resources that directly depend on the given address (used-by), in plan order."""
        if address not in self.graph:
            return []
        return list(self.graph.predecessors(address))

    def get_dependencies(self, address: str) -> List[str]:
        """Resources the given address directly depends on."""
        if address not in self.graph:
            return []
        return list(self.graph.successors(address))

    def reverse_index(self) -> Dict[str, List[str]]:
        """Address -> addresses declaring it as a dependency (only non-empty entries)."""
        index = {}
        for node in self.graph.nodes:
            dependents = list(self.graph.predecessors(node))
            if dependents:
                index[node] = dependents
        return index

    def get_change(self, address: str) -> Optional[ResourceChangeInput]:
        """Get resource change by address."""
        return self._changes.get(address)


def build_reverse_index(
    changes: Sequence[ResourceChangeInput],
    forward_edges: Optional[Mapping[str, Iterable[str]]] = None
) -> Dict[str, List[str]]:
    """Build the plan-wide used-by index once for a whole analysis run."""
    graph = DependencyGraph()
    graph.build_from_changes(changes, forward_edges)
    return graph.reverse_index()


def extract_dependencies(
    change: ResourceChangeInput,
    forward_edges: Optional[Mapping[str, Iterable[str]]],
    reverse_index: Mapping[str, Sequence[str]],
    max_results: int = DEFAULT_MAX_RESULTS
) -> DependencyInfo:
    """
    Direct (single-hop) dependency neighbours of a change.

    Both lists are capped at ``max_results`` and ``partial`` is set when
    anything was cut.

    Raises:
        DependencyError: If the lookup structures are unusable
    """
    try:
        if forward_edges is not None and change.address in forward_edges:
            declared = forward_edges[change.address]
        else:
            declared = change.depends_on
        depends_on = _ordered_unique(declared, exclude=change.address)
        used_by = _ordered_unique(reverse_index.get(change.address, ()), exclude=change.address)
    except (TypeError, AttributeError) as e:
        raise DependencyError(change.address, str(e)) from e

    partial = len(depends_on) > max_results or len(used_by) > max_results
    if partial:
        logger.debug(f"Dependency lists for {change.address} truncated at {max_results}")

    return DependencyInfo(
        depends_on=depends_on[:max_results],
        used_by=used_by[:max_results],
        partial=partial,
    )


def _ordered_unique(addresses: Iterable[str], exclude: str) -> List[str]:
    seen = set()
    result = []
    for address in addresses:
        if address == exclude or address in seen:
            continue
        seen.add(address)
        result.append(address)
    return result
