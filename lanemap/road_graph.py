"""Directed graph of lane connections with shortest-path search."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class ConnectionType(Enum):
    END_TO_START = 0
    END_TO_END = 1
    START_TO_START = 2
    START_TO_END = 3


_INVERSE_TYPE = {
    ConnectionType.END_TO_START: ConnectionType.START_TO_END,
    ConnectionType.START_TO_END: ConnectionType.END_TO_START,
}


@dataclass(eq=False)
class Connection:
    """A directed, weighted link between two lanes; identity is (from_id, to_id)."""

    from_id: int
    to_id: int
    weight: float = 0.0
    connection_type: ConnectionType = ConnectionType.END_TO_START

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connection):
            return NotImplemented
        return self.from_id == other.from_id and self.to_id == other.to_id

    def __hash__(self) -> int:
        return hash((self.from_id, self.to_id))

    def inverse(self) -> Connection:
        """The same link travelled the other way."""
        return Connection(
            from_id=self.to_id,
            to_id=self.from_id,
            weight=self.weight,
            connection_type=_INVERSE_TYPE.get(self.connection_type, self.connection_type),
        )

    def __str__(self) -> str:
        return f"from: {self.from_id}, to: {self.to_id}, weight: {self.weight:g}"


@dataclass
class RoadGraph:
    """Lane connections indexed by successor, predecessor and lane pair."""

    to_successors: dict[int, set[int]] = field(default_factory=dict)
    to_predecessors: dict[int, set[int]] = field(default_factory=dict)
    all_connections: dict[tuple[int, int], Connection] = field(default_factory=dict)

    def add_connection(self, connection: Connection) -> bool:
        """Record ``connection``; an existing link between the same lanes is kept."""
        self.to_successors.setdefault(connection.from_id, set()).add(connection.to_id)
        self.to_predecessors.setdefault(connection.to_id, set()).add(connection.from_id)
        self.all_connections.setdefault((connection.from_id, connection.to_id), connection)
        return True

    def best_path(self, start: int, goal: int) -> list[int]:
        """Cheapest lane sequence from ``start`` to ``goal``; empty if none exists."""
        heap: list[tuple[float, int]] = [(0.0, start)]
        shortest = {start: 0.0}
        previous: dict[int, int] = {}
        visited: set[int] = set()

        while heap:
            cost, current = heapq.heappop(heap)
            if current in visited:
                continue
            visited.add(current)
            if current == goal:
                return self._reconstruct_path(start, goal, previous)

            for successor in self.to_successors.get(current, ()):
                connection = self.find_connection(current, successor)
                if connection is None:
                    continue
                new_cost = cost + connection.weight
                if successor not in shortest or new_cost < shortest[successor]:
                    shortest[successor] = new_cost
                    previous[successor] = current
                    heapq.heappush(heap, (new_cost, successor))

        logger.warning("failed to find route to end")
        return []

    @staticmethod
    def _reconstruct_path(start: int, goal: int, previous: dict[int, int]) -> list[int]:
        path = []
        current = goal
        while current != start:
            path.append(current)
            current = previous[current]
        path.append(start)
        path.reverse()
        return path

    def find_connection(self, from_id: int, to_id: int) -> Optional[Connection]:
        return self.all_connections.get((from_id, to_id))

    def create_subgraph(self, lane_ids: Iterable[int]) -> RoadGraph:
        """Graph of the connections whose both ends are in ``lane_ids``."""
        valid = set(lane_ids)
        subgraph = RoadGraph()
        for connection in self.all_connections.values():
            if connection.from_id in valid and connection.to_id in valid:
                subgraph.add_connection(connection)
        return subgraph