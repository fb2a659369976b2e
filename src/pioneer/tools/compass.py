"""
Single-step A* pathfinder over the agent's known map.

The compass holds at most one destination and, when asked, returns the
first step of the cheapest known route from the agent's position to it.
It is stateless apart from the destination, so clearing and re-setting the
same destination gives the same step on an unchanged map.

Architecture Role:
    The Destination Walker (agent/navigator.py) asks the compass for one
    step per tick while the agent is in a MovingTo objective.

    Navigator → Compass.next_step(known_map, position) → Direction → World.move()

Design Decisions:
    - Unknown tiles are optimistic: they are assumed traversable at a higher
      cost, so routes lead into unexplored space instead of failing.
    - The destination tile is always enterable as a goal, even if it holds a
      market or sits in water. Reaching it may then fail with CannotWalk,
      which the state machine handles (face and interact instead).
    - Neighbours are expanded in a fixed order and ties are broken by an
      insertion counter, so results are deterministic.

Dependencies:
    - heapq: For the A* priority queue
    - pioneer.world: Coordinates, directions and the known-map type
"""

from __future__ import annotations

import heapq
from enum import Enum

from pioneer.world import Coord, Direction, KnownMap, manhattan

# Cost of stepping onto a tile the agent has never seen
UNKNOWN_TILE_COST = 2

_EXPANSION_ORDER = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


class MoveErrorKind(Enum):
    """Reasons the compass cannot propose a step."""

    NO_DESTINATION = "not set"
    NO_CONTENT = "unavailable (no content)"
    NO_TILE_TYPE = "unavailable (no tile type)"
    INVALID_START = "unreachable (invalid start)"
    INVALID_END = "unreachable (invalid end)"
    NO_AVAILABLE_MOVE = "unreachable (no move)"
    ALREADY_AT_DESTINATION = "reached"
    UNIMPLEMENTED = "unimplemented"


class MoveError(Exception):
    """Raised by ``Compass.next_step`` when no step can be proposed."""

    def __init__(self, kind: MoveErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class Compass:
    """
    Destination holder and A* step planner.

    Attributes:
        destination: Current target coordinate, or None.
        unknown_cost: Cost assigned to unknown tiles.
    """

    __slots__ = ("_destination", "unknown_cost")

    def __init__(self, unknown_cost: int = UNKNOWN_TILE_COST) -> None:
        self._destination: Coord | None = None
        self.unknown_cost = unknown_cost

    @property
    def destination(self) -> Coord | None:
        return self._destination

    def set_destination(self, coord: Coord) -> None:
        self._destination = (int(coord[0]), int(coord[1]))

    def clear_destination(self) -> None:
        self._destination = None

    def next_step(self, known_map: KnownMap, position: Coord) -> Direction:
        """
        First step of the cheapest route from ``position`` to the destination.

        Args:
            known_map: The agent's known map.
            position: Current agent coordinate.

        Returns:
            Direction of the first step.

        Raises:
            MoveError: NO_DESTINATION, INVALID_START, INVALID_END,
                ALREADY_AT_DESTINATION or NO_AVAILABLE_MOVE.
        """
        goal = self._destination
        if goal is None:
            raise MoveError(MoveErrorKind.NO_DESTINATION)

        size = len(known_map)
        if not _in_bounds(position, size):
            raise MoveError(MoveErrorKind.INVALID_START)
        if not _in_bounds(goal, size):
            raise MoveError(MoveErrorKind.INVALID_END)
        if position == goal:
            raise MoveError(MoveErrorKind.ALREADY_AT_DESTINATION)

        # A* with (f_score, counter, coord); the counter keeps ties stable
        counter = 0
        open_set: list[tuple[int, int, Coord]] = [(manhattan(position, goal), counter, position)]
        came_from: dict[Coord, tuple[Coord, Direction]] = {}
        g_score: dict[Coord, int] = {position: 0}
        closed: set[Coord] = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            closed.add(current)

            if current == goal:
                return self._first_step(came_from, position, goal)

            for direction in _EXPANSION_ORDER:
                neighbour = direction.apply(current)
                cost = self._step_cost(known_map, neighbour, goal)
                if cost is None:
                    continue

                tentative = g_score[current] + cost
                if tentative < g_score.get(neighbour, 1 << 30):
                    g_score[neighbour] = tentative
                    came_from[neighbour] = (current, direction)
                    counter += 1
                    heapq.heappush(
                        open_set, (tentative + manhattan(neighbour, goal), counter, neighbour)
                    )

        raise MoveError(MoveErrorKind.NO_AVAILABLE_MOVE)

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _step_cost(self, known_map: KnownMap, coord: Coord, goal: Coord) -> int | None:
        """Cost of entering ``coord``, or None when it is impassable."""
        if not _in_bounds(coord, len(known_map)):
            return None
        if coord == goal:
            return 1
        tile = known_map[coord[0]][coord[1]]
        if tile is None:
            return self.unknown_cost
        if not tile.walkable:
            return None
        return tile.tile_type.move_cost

    @staticmethod
    def _first_step(
        came_from: dict[Coord, tuple[Coord, Direction]], start: Coord, goal: Coord
    ) -> Direction:
        current = goal
        while True:
            previous, direction = came_from[current]
            if previous == start:
                return direction
            current = previous


def _in_bounds(coord: Coord, size: int) -> bool:
    return 0 <= coord[0] < size and 0 <= coord[1] < size
