"""
Collect every known tile of one content kind around the agent.

Used by the GatheringResource objective after the agent reaches a resource:
instead of returning to the planner after one pick, it sweeps the
neighbourhood and harvests everything of the same kind it knows about.
"""

from __future__ import annotations

from pioneer.tools.compass import Compass, MoveError
from pioneer.world import Content, Coord, Direction, World, WorldError, manhattan, tile_at


def collect_all(
    world: World,
    compass: Compass,
    content: Content,
    radius: int,
    max_steps: int = 50,
) -> int:
    """
    Walk to and destroy every known ``content`` tile within ``radius``.

    The sweep is centred on the agent's position when it starts. It stops
    when nothing is left in range, the backpack is full, ``max_steps`` moves
    have been made, or any move or destroy fails. The compass destination is
    restored afterwards.

    Args:
        world: World to act in.
        compass: Pathfinder used between targets.
        content: Content kind to collect.
        radius: Chebyshev radius around the starting position.
        max_steps: Upper bound on moves.

    Returns:
        Number of items added to the backpack.
    """
    origin = world.position()
    saved = compass.destination
    collected = 0
    steps = 0

    try:
        while steps < max_steps and world.backpack().free > 0:
            position = world.position()
            targets = [
                coord for coord in _targets(world, origin, content, radius)
                if coord != position
            ]
            if not targets:
                break

            target = min(targets, key=lambda coord: (manhattan(coord, position), coord))
            direction = _adjacent_direction(position, target)
            if direction is not None:
                try:
                    collected += world.destroy(direction)
                except WorldError:
                    break
                continue

            compass.set_destination(target)
            try:
                world.move(compass.next_step(world.known_map(), position))
            except (MoveError, WorldError):
                break
            steps += 1
    finally:
        if saved is None:
            compass.clear_destination()
        else:
            compass.set_destination(saved)

    return collected


def _targets(world: World, origin: Coord, content: Content, radius: int) -> list[Coord]:
    known = world.known_map()
    size = len(known)
    found = []
    for r in range(max(origin[0] - radius, 0), min(origin[0] + radius + 1, size)):
        for c in range(max(origin[1] - radius, 0), min(origin[1] + radius + 1, size)):
            tile = tile_at(known, (r, c))
            if tile is not None and tile.content is content:
                found.append((r, c))
    return found


def _adjacent_direction(position: Coord, target: Coord) -> Direction | None:
    for direction in Direction:
        if direction.apply(position) == target:
            return direction
    return None
