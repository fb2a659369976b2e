"""
Bounded-radius, predicate-driven area scan.

The spyglass reveals the map around a centre ring by ring, spending energy
on every tile it uncovers, and stops as soon as a ring contains a tile
matching its stop predicate.

Architecture Role:
    Used by the state machine to find gather targets and unvisited
    structures while Exploring, to find a spot for the tent while Sleeping,
    and opportunistically while MovingTo to give the compass more map.

    PioneerBot → Spyglass.scan(world) → World.discover(ring) → ScanResult

Budget:
    The energy budget is counted in newly revealed tiles (one energy each in
    the sandbox). Rings that would overrun the budget are not revealed and
    the scan reports PAUSED.

Dependencies:
    - dataclasses/enum: For the result type
    - pioneer.world: World protocol and tile types
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from pioneer.world import Coord, Tile, World, WorldError, manhattan


class ScanStatus(Enum):
    """How a scan ended."""

    STOPPED = "stopped"      # stop predicate matched; matches is non-empty
    COMPLETE = "complete"    # whole radius revealed without a match
    PAUSED = "paused"        # energy budget reached
    FAILED = "failed"        # the world refused to reveal tiles


@dataclass
class ScanResult:
    """
    Outcome of a scan.

    Attributes:
        status: How the scan ended.
        matches: (tile, coord) pairs matching the stop predicate, nearest first.
        error: Reason when status is FAILED.
    """

    status: ScanStatus
    matches: list[tuple[Tile, Coord]] = field(default_factory=list)
    error: str | None = None


class Spyglass:
    """
    Ring-by-ring map reveal around a centre coordinate.

    Attributes:
        center: Coordinate the rings are centred on.
        radius: Largest Chebyshev distance revealed.
        map_size: Side length of the world.
        energy_budget: Maximum tiles to reveal, or None for unbounded.
        stop_when: Predicate ending the scan on the first matching ring.
        exclude: Coordinates whose tiles never count as a match.
    """

    __slots__ = ("center", "radius", "map_size", "energy_budget", "stop_when", "exclude")

    def __init__(
        self,
        center: Coord,
        radius: int,
        map_size: int,
        energy_budget: int | None = None,
        stop_when: Callable[[Tile], bool] | None = None,
        exclude: set[Coord] | None = None,
    ) -> None:
        self.center = center
        self.radius = max(radius, 0)
        self.map_size = map_size
        self.energy_budget = energy_budget
        self.stop_when = stop_when or (lambda tile: False)
        self.exclude = exclude or set()

    def scan(self, world: World) -> ScanResult:
        """
        Reveal rings outward from the centre until a match, the radius or
        the budget is reached.

        Args:
            world: World to reveal tiles in.

        Returns:
            ScanResult describing the outcome.
        """
        spent = 0
        for distance in range(self.radius + 1):
            ring = self._ring(distance)
            if not ring:
                continue

            known = world.known_map()
            unknown = sum(1 for r, c in ring if known[r][c] is None)
            if self.energy_budget is not None and spent + unknown > self.energy_budget:
                return ScanResult(ScanStatus.PAUSED)

            try:
                tiles = world.discover(ring)
            except WorldError as e:
                return ScanResult(ScanStatus.FAILED, error=str(e))
            spent += unknown

            hits = [
                (tile, coord) for coord, tile in tiles.items()
                if coord not in self.exclude and self.stop_when(tile)
            ]
            if hits:
                hits.sort(key=lambda hit: (manhattan(hit[1], self.center), hit[1]))
                return ScanResult(ScanStatus.STOPPED, matches=hits)

        return ScanResult(ScanStatus.COMPLETE)

    def _ring(self, distance: int) -> list[Coord]:
        """In-bounds coordinates at exactly ``distance`` (Chebyshev) from the centre."""
        row, col = self.center
        if distance == 0:
            coords = [(row, col)]
        else:
            coords = []
            for c in range(col - distance, col + distance + 1):
                coords.append((row - distance, c))
                coords.append((row + distance, c))
            for r in range(row - distance + 1, row + distance):
                coords.append((r, col - distance))
                coords.append((r, col + distance))
        return [
            (r, c) for r, c in coords
            if 0 <= r < self.map_size and 0 <= c < self.map_size
        ]
