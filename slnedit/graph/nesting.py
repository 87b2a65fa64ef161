"""Solution folder forest backed by networkx.DiGraph."""

from __future__ import annotations

from typing import Iterable

import networkx as nx

from slnedit.dotnet.entities import NestedProject
from slnedit.errors import NestingCycleError


class NestingIndex:
    """Parent/child lookups over the NestedProjects entries of one scan.

    graph: parent_id -> child_id edges, in file order
    parent_of: child_id -> parent_id, first entry wins for a child
        nested more than once
    """

    def __init__(self, edges: Iterable[NestedProject] = ()) -> None:
        self.graph = nx.DiGraph()
        self.parent_of: dict[str, str] = {}
        for edge in edges:
            self.add(edge)

    def add(self, edge: NestedProject) -> None:
        self.parent_of.setdefault(edge.child_id, edge.parent_id)
        self.graph.add_edge(
            edge.parent_id,
            edge.child_id,
            edge_type="NESTED_IN",
            line=edge.line_number,
        )

    def parent(self, project_id: str) -> str | None:
        return self.parent_of.get(project_id)

    def children(self, project_id: str) -> list[str]:
        """Direct children of a folder, in file order."""
        if not self.graph.has_node(project_id):
            return []
        return list(self.graph.successors(project_id))

    def ancestors(self, project_id: str) -> list[str]:
        """Parent ids from the nearest parent up to the root.

        Raises:
            NestingCycleError: The walk comes back to an id it has
                already visited.
        """
        path = [project_id]
        seen = {project_id}
        result = []
        current = self.parent_of.get(project_id)
        while current is not None:
            path.append(current)
            if current in seen:
                raise NestingCycleError(path[path.index(current):])
            seen.add(current)
            result.append(current)
            current = self.parent_of.get(current)
        return result

    def descendants(self, project_id: str) -> set[str]:
        if not self.graph.has_node(project_id):
            return set()
        return nx.descendants(self.graph, project_id)

    def find_cycle(self, source: str | None = None) -> list[str] | None:
        """Return the ids along one nesting cycle, or None if there is none.

        With ``source``, only the part of the forest below that id is
        searched.
        """
        if source is not None and not self.graph.has_node(source):
            return None
        try:
            edges = nx.find_cycle(self.graph, source=source)
        except nx.NetworkXNoCycle:
            return None
        return [parent for parent, _child in edges] + [edges[0][0]]

    def would_create_cycle(self, child_id: str, parent_id: str) -> bool:
        if child_id == parent_id:
            return True
        return parent_id in self.descendants(child_id)
