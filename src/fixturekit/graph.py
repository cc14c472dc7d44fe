"""
Dependency graph construction, requirement collection and ordering.

The graph is built once per registry. Collection and sorting run once per
invocation, over the names the test body asked for.
"""
import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Set, Tuple

from .exceptions import CircularDependency, UnknownFixture
from .fixture import FixtureDef
from .names import is_rest_token

logger = logging.getLogger(__name__)


class DependencyGraph(Mapping):
    """Immutable mapping of fixture name to its dependency names, in declared order."""

    def __init__(self, edges: Mapping[str, Iterable[str]]):
        self._edges: Dict[str, Tuple[str, ...]] = {
            name: tuple(deps) for name, deps in edges.items()
        }

    def __getitem__(self, name: str) -> Tuple[str, ...]:
        return self._edges[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def dependencies(self, name: str) -> Tuple[str, ...]:
        """Dependencies of ``name``; unknown names have none."""
        return self._edges.get(name, ())

    def __repr__(self) -> str:
        return f"DependencyGraph({self._edges!r})"


def build_dependency_graph(definitions: Mapping[str, FixtureDef], strict: bool = False) -> DependencyGraph:
    """
    Build the dependency graph for a set of fixture definitions.

    A ``**rest`` token asks for whatever else is in the run; it is not an
    edge.

    Args:
        definitions: Registered fixtures keyed by name.
        strict: Reject dependencies on names that are not registered.

    Raises:
        UnknownFixture: In strict mode, for the first unregistered dependency.
    """
    edges: Dict[str, List[str]] = {}
    for name, definition in definitions.items():
        deps = [dep for dep in definition.dependencies if not is_rest_token(dep)]
        if strict:
            for dep in deps:
                if dep not in definitions:
                    raise UnknownFixture(dep, name)
        edges[name] = deps
        logger.debug(f"Fixture '{name}' depends on {deps}")
    return DependencyGraph(edges)


def collect_required(requested: Iterable[str], graph: DependencyGraph) -> List[str]:
    """
    Close ``requested`` over the graph.

    Names are returned in first-visit order: each requested name, then its
    dependencies depth-first in declared order. Cycles are left to
    :func:`topological_sort`.
    """
    required: List[str] = []
    seen: Set[str] = set()

    for root in requested:
        if root in seen:
            continue
        seen.add(root)
        required.append(root)
        # explicit stack, chains may be deeper than the recursion limit
        stack: List[Iterator[str]] = [iter(graph.dependencies(root))]
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                continue
            if dep in seen:
                continue
            seen.add(dep)
            required.append(dep)
            stack.append(iter(graph.dependencies(dep)))
    return required


def topological_sort(nodes: Iterable[str], graph: DependencyGraph) -> List[str]:
    """
    Order ``nodes`` so that every dependency precedes its dependents.

    Depth-first with in-progress/done marks; the result is the post-order,
    which is deterministic for a given input order and graph.

    Raises:
        CircularDependency: If a node is reached again while in progress.
    """
    done: Set[str] = set()
    in_progress: Set[str] = set()
    result: List[str] = []

    for root in nodes:
        if root in done:
            continue
        in_progress.add(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.dependencies(root)))]
        while stack:
            node, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                in_progress.discard(node)
                done.add(node)
                result.append(node)
                continue
            if dep in in_progress:
                raise CircularDependency(dep)
            if dep in done:
                continue
            in_progress.add(dep)
            stack.append((dep, iter(graph.dependencies(dep))))
    return result


def execution_order(requested: Iterable[str], graph: DependencyGraph) -> List[str]:
    """Required set of ``requested``, sorted for setup."""
    return topological_sort(collect_required(requested, graph), graph)
