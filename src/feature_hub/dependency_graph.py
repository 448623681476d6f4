"""Topological ordering of Feature Service providers registered together.

Providers passed to a single registration call may depend on each other. They
have to be created in an order where every provider comes after the providers
it depends on, so that its dependencies can be bound before its ``create``
function runs. Dependencies on providers outside the batch do not constrain
the order; they are either registered already or fail at binding time.
"""

from collections import deque
from typing import Iterable, Iterator, Mapping

from feature_hub import messages
from feature_hub.errors import DependencyCycleError

__all__ = ["DependencyGraph", "toposort_dependencies"]


class DependencyGraph:
    """
    Directed graph of provider ids, each mapped to the ids it depends on.

    Edges pointing at ids that are not nodes of the graph are dropped on
    traversal. Traversal order is deterministic: nodes become ready in the
    order they were added.
    """

    def __init__(self):
        self._dependencies: dict[str, set[str]] = {}

    def add_dependencies(self, dependee: str, dependencies: Iterable[str]):
        """
        Add a node and the ids it depends on.

        Args:
            dependee: The provider id whose dependencies are being registered.
            dependencies: Provider ids this dependee depends on.
        """
        self._dependencies.setdefault(dependee, set()).update(dependencies)

    def traverse(self) -> Iterator[str]:
        """
        Perform a topological traversal of the graph.

        Yields:
            Every node exactly once, each after all the nodes it depends on.

        Raises:
            DependencyCycleError: If the remaining nodes depend on each other
                cyclically.
        """
        remaining = {
            dependee: {
                dependency
                for dependency in dependencies
                if dependency in self._dependencies
            }
            for dependee, dependencies in self._dependencies.items()
        }

        ready = deque(
            dependee for dependee, dependencies in remaining.items() if not dependencies
        )

        while ready:
            next_item = ready.popleft()
            yield next_item

            self._remove_dependency(remaining, next_item, ready)

        if remaining:
            nodes = sorted(remaining)
            raise DependencyCycleError(messages.dependency_cycle(nodes), nodes)

    @staticmethod
    def _remove_dependency(remaining, next_item, ready):
        """
        Remove a resolved node and queue the dependents it was last blocking.

        Args:
            remaining: Unresolved nodes mapped to their unresolved dependencies.
            next_item: The node that has just been resolved.
            ready: Queue of nodes whose dependencies are all resolved.
        """
        del remaining[next_item]

        for dependee, dependencies in remaining.items():
            if next_item in dependencies:
                dependencies.discard(next_item)
                if not dependencies:
                    ready.append(dependee)


def toposort_dependencies(dependency_graph: Mapping[str, Iterable[str]]) -> list[str]:
    """Order the nodes of a dependency mapping so dependencies come first.

    Args:
        dependency_graph: Node ids mapped to the ids they depend on.

    Returns:
        All nodes of the mapping, each after the nodes it depends on.

    Raises:
        DependencyCycleError: If no such order exists.

    Example:
        >>> toposort_dependencies({"a": {"b"}, "b": set(), "c": {"external"}})
        ['b', 'c', 'a']
    """
    graph = DependencyGraph()
    for dependee, dependencies in dependency_graph.items():
        graph.add_dependencies(dependee, dependencies)
    return list(graph.traverse())
