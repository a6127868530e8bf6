from __future__ import annotations

from collections import deque
from typing import Dict, Generic, Hashable, Iterable, List, Tuple, TypeVar

from contentpacks.core.errors import CircularDependencyError

N = TypeVar("N", bound=Hashable)


class EntityGraph(Generic[N]):
    """Directed dependency graph kept as an adjacency mapping.

    An edge ``dependent -> dependency`` means the dependency has to exist
    before the dependent is installed. Node order is insertion order.
    """

    def __init__(self, nodes: Iterable[N] = ()):
        self._deps: Dict[N, Dict[N, None]] = {}
        for n in nodes:
            self.add_node(n)

    def add_node(self, node: N) -> bool:
        if node in self._deps:
            return False
        self._deps[node] = {}
        return True

    def put_edge(self, dependent: N, dependency: N) -> None:
        self.add_node(dependent)
        self.add_node(dependency)
        self._deps[dependent][dependency] = None

    def merge(self, other: "EntityGraph[N]") -> "EntityGraph[N]":
        for node in other.nodes():
            self.add_node(node)
        for dependent, dependency in other.edges():
            self.put_edge(dependent, dependency)
        return self

    def nodes(self) -> List[N]:
        return list(self._deps)

    def edges(self) -> List[Tuple[N, N]]:
        return [(n, d) for n, deps in self._deps.items() for d in deps]

    def dependencies_of(self, node: N) -> List[N]:
        return list(self._deps.get(node, {}))

    def dependents_of(self, node: N) -> List[N]:
        return [n for n, deps in self._deps.items() if node in deps]

    def __contains__(self, node: object) -> bool:
        return node in self._deps

    def __len__(self) -> int:
        return len(self._deps)

    def topological_order(self) -> List[N]:
        """Dependencies first. Raises CircularDependencyError on a cycle."""
        pending: Dict[N, int] = {n: len(deps) for n, deps in self._deps.items()}
        dependents: Dict[N, List[N]] = {n: [] for n in self._deps}
        for n, deps in self._deps.items():
            for d in deps:
                dependents[d].append(n)

        queue = deque(n for n, c in pending.items() if c == 0)
        order: List[N] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            for n in dependents[current]:
                pending[n] -= 1
                if pending[n] == 0:
                    queue.append(n)

        if len(order) != len(self._deps):
            stuck = [str(n) for n, c in pending.items() if c > 0]
            raise CircularDependencyError(f"Circular entity dependency detected: {', '.join(stuck)}")

        return order

    def has_cycle(self) -> bool:
        try:
            self.topological_order()
        except CircularDependencyError:
            return True
        return False

    def to_dict(self) -> Dict[str, list]:
        return {
            "nodes": [str(n) for n in self._deps],
            "edges": [{"from": str(a), "to": str(b)} for a, b in self.edges()],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityGraph):
            return NotImplemented
        return set(self.nodes()) == set(other.nodes()) and set(self.edges()) == set(other.edges())

    __hash__ = None  # type: ignore[assignment]

