"""
Destination walker for the Pioneer agent.

This module turns a target coordinate into single steps via the compass and
keeps the agent from getting trapped on the way. It owns the compass (the
single active destination) and a short history of recent positions.

Architecture Role:
    The walker is driven by the MovingTo objective of PioneerBot. The bot
    asks it for a step, moves, and falls back on the walker's recovery
    strategies when progress stalls:

    PioneerBot (MovingTo) → DestinationWalker.next_step() → World.move()
                          ↳ detour() / backtrack() / bridge()

Recovery Strategies:
    - Detour: when the compass proposes a recently visited tile, walk blindly
      toward the destination for 1-N steps, axis by axis, stopping once both
      axes are blocked.
    - Backtrack: when the history holds at most two distinct positions, the
      agent is oscillating; walk back toward the oldest recorded position and
      forget the history.
    - Bridge: when a gathering target cannot be walked to, place an
      increasing number of rocks in the blocking direction, destroying any
      obstruction first, until the tile becomes walkable.
    - Random destination: when MovingTo has no destination, head for the
      least-explored region of the known map.

History:
    RecentPositions is a bounded deque: appending beyond capacity evicts the
    oldest entry, so no strategy can grow it past its capacity.

Dependencies:
    - collections.deque: Bounded position history
    - numpy: Random generator for detour lengths and the locator
    - pioneer.tools: Compass pathfinder
"""

from __future__ import annotations

from collections import deque
from enum import Enum

import numpy as np

from pioneer.agent.locator import least_explored_target
from pioneer.config import PioneerConfig
from pioneer.tools import Compass
from pioneer.world import (
    Content,
    Coord,
    Direction,
    MustDestroyContentFirst,
    NotEnoughContentInBackpack,
    NotEnoughContentProvided,
    NotEnoughEnergy,
    World,
    WorldError,
)

# =============================================================================
# BRIDGE OUTCOME
# =============================================================================


class BridgeOutcome(Enum):
    """How a bridge-building attempt ended."""

    BUILT = "built"                # the blocking tile is walkable now
    NEED_CHARGE = "need_charge"    # ran out of energy
    NEED_FILLER = "need_filler"    # not enough rocks in the backpack
    UNREACHABLE = "unreachable"    # the obstruction cannot be destroyed
    FAILED = "failed"              # any other refusal, or attempts exhausted


# =============================================================================
# DESTINATION WALKER
# =============================================================================


class DestinationWalker:
    """
    Compass wrapper with stuck detection and recovery.

    Attributes:
        compass: Pathfinder holding the single active destination.
        recent: Bounded history of the agent's last positions, oldest first.
        detour_max_steps: Longest blind walk.
        bridge_max_attempts: Upper bound on put/destroy attempts per bridge.
    """

    __slots__ = ("compass", "recent", "detour_max_steps", "bridge_max_attempts")

    def __init__(self, config: PioneerConfig, compass: Compass | None = None) -> None:
        self.compass = compass or Compass()
        self.recent: deque[Coord] = deque(maxlen=config.recent_positions)
        self.detour_max_steps = config.detour_max_steps
        self.bridge_max_attempts = config.bridge_max_attempts

    # =========================================================================
    # DESTINATION
    # =========================================================================

    @property
    def destination(self) -> Coord | None:
        return self.compass.destination

    def set_destination(self, coord: Coord) -> None:
        self.compass.set_destination(coord)

    def clear_destination(self) -> None:
        self.compass.clear_destination()

    def set_random_destination(self, world: World, rng: np.random.Generator) -> Coord:
        """Point the compass at the least-explored region of the known map."""
        target = least_explored_target(world.known_map(), rng)
        self.compass.set_destination(target)
        return target

    def next_step(self, world: World) -> Direction:
        """
        Compass step from the agent's position.

        Raises:
            MoveError: When the compass cannot propose a step.
        """
        return self.compass.next_step(world.known_map(), world.position())

    # =========================================================================
    # HISTORY
    # =========================================================================

    def record(self, coord: Coord) -> None:
        self.recent.append(coord)

    def revisits(self, coord: Coord) -> bool:
        """Whether ``coord`` is one of the recently occupied positions."""
        return coord in self.recent

    def is_stuck(self) -> bool:
        """Full history spread over at most two distinct tiles."""
        return len(self.recent) == self.recent.maxlen and len(set(self.recent)) <= 2

    # =========================================================================
    # RECOVERY
    # =========================================================================

    def detour(self, world: World, rng: np.random.Generator) -> int:
        """
        Walk blindly toward the destination, ignoring the compass.

        Takes between 1 and ``detour_max_steps`` steps, each reducing the
        row distance then the column distance. Stops early once both axes
        have been blocked. Afterwards the destination is re-set and the two
        most recent history entries are replaced by the current position,
        so the agent may retrace its steps once.

        Returns:
            Number of successful moves.
        """
        destination = self.compass.destination
        if destination is None:
            return 0

        steps = int(rng.integers(self.detour_max_steps)) + 1
        moved = 0
        stuck_row = stuck_col = False
        for _ in range(steps):
            row, col = world.position()
            if row != destination[0]:
                try:
                    world.move(Direction.DOWN if row < destination[0] else Direction.UP)
                    moved += 1
                except WorldError:
                    stuck_row = True
            if col != destination[1]:
                try:
                    world.move(Direction.RIGHT if col < destination[1] else Direction.LEFT)
                    moved += 1
                except WorldError:
                    stuck_col = True
            if stuck_row and stuck_col:
                break

        self.compass.clear_destination()
        self.compass.set_destination(destination)

        for _ in range(min(2, len(self.recent))):
            self.recent.pop()
        self.recent.append(world.position())
        return moved

    def backtrack(self, world: World) -> int:
        """
        Retrace the recorded positions back toward the oldest one.

        Each step moves to the next older history entry when it is adjacent;
        the walk ends at the oldest entry or at the first refused move. The
        history is then cleared and restarted from the current position.

        Returns:
            Number of successful moves.
        """
        trail = list(self.recent)
        moved = 0
        for target in reversed(trail[:-1]):
            direction = _direction_to(world.position(), target)
            if direction is None:
                continue
            try:
                world.move(direction)
            except WorldError:
                break
            moved += 1

        self.recent.clear()
        self.recent.append(world.position())
        return moved

    def bridge(self, world: World, direction: Direction) -> BridgeOutcome:
        """
        Make the tile in ``direction`` walkable by filling it with rocks.

        Tries one rock, then one more each time the world reports that too
        few were provided, as long as the backpack holds them.

        Args:
            world: World to act in.
            direction: Direction of the blocking tile.

        Returns:
            BridgeOutcome describing the result.
        """
        rocks = 1
        for _ in range(self.bridge_max_attempts):
            try:
                world.put(Content.ROCK, rocks, direction)
            except MustDestroyContentFirst:
                try:
                    world.destroy(direction)
                except WorldError:
                    return BridgeOutcome.UNREACHABLE
                continue
            except (NotEnoughContentProvided, NotEnoughContentInBackpack):
                if world.backpack().get(Content.ROCK) <= rocks:
                    return BridgeOutcome.NEED_FILLER
                rocks += 1
                continue
            except NotEnoughEnergy:
                return BridgeOutcome.NEED_CHARGE
            except WorldError:
                return BridgeOutcome.FAILED
            return BridgeOutcome.BUILT
        return BridgeOutcome.FAILED


def _direction_to(position: Coord, target: Coord) -> Direction | None:
    for direction in Direction:
        if direction.apply(position) == target:
            return direction
    return None
