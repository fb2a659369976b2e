"""
Local scanner: face the nearest matching tile in the agent's view.

Many world actions (destroy, put) act on the tile next to the agent in a
cardinal direction. This module finds a tile matching a predicate inside the
3x3 view and returns the direction to it, taking at most one step first when
the match sits in a corner or under the agent.

View Layout:
    (0,0) (0,1) (0,2)        corner   UP   corner
    (1,0) (1,1) (1,2)   =    LEFT    self  RIGHT
    (2,0) (2,1) (2,2)        corner  DOWN  corner

Reorientation Moves (tried in order, first success wins):
    (0,0): go LEFT → face UP,    go UP → face LEFT
    (0,2): go RIGHT → face UP,   go UP → face RIGHT
    (2,0): go LEFT → face DOWN,  go DOWN → face LEFT
    (2,2): go RIGHT → face DOWN, go DOWN → face RIGHT
    (1,1): go DOWN → face UP, go UP → face DOWN,
           go LEFT → face RIGHT, go RIGHT → face LEFT

Dependencies:
    - pioneer.world: World protocol and directions
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Callable

from pioneer.world import Coord, Direction, Tile, World, WorldError

TilePredicate = Callable[[Tile], bool]

_CARDINAL: dict[tuple[int, int], Direction] = {
    (0, 1): Direction.UP,
    (1, 0): Direction.LEFT,
    (1, 2): Direction.RIGHT,
    (2, 1): Direction.DOWN,
}

# view cell → ordered (move, resulting facing direction) candidates
_REORIENT: dict[tuple[int, int], tuple[tuple[Direction, Direction], ...]] = {
    (0, 0): ((Direction.LEFT, Direction.UP), (Direction.UP, Direction.LEFT)),
    (0, 2): ((Direction.RIGHT, Direction.UP), (Direction.UP, Direction.RIGHT)),
    (2, 0): ((Direction.LEFT, Direction.DOWN), (Direction.DOWN, Direction.LEFT)),
    (2, 2): ((Direction.RIGHT, Direction.DOWN), (Direction.DOWN, Direction.RIGHT)),
    (1, 1): (
        (Direction.DOWN, Direction.UP),
        (Direction.UP, Direction.DOWN),
        (Direction.LEFT, Direction.RIGHT),
        (Direction.RIGHT, Direction.LEFT),
    ),
}


def face_target(
    world: World,
    predicate: TilePredicate,
    move_allowed: bool = True,
    exclude: Collection[Coord] = (),
) -> Direction | None:
    """
    Direction of the first view tile matching ``predicate``.

    The view is scanned row-major. A cardinal match is returned directly. A
    corner or centre match is only usable if ``move_allowed``: the agent
    then takes one step so the match becomes cardinal. If no reorientation
    move succeeds, scanning continues with the next cell.

    Args:
        world: World providing the view and executing the reorientation move.
        predicate: Test applied to each visible tile.
        move_allowed: Whether one reorientation step may be taken.
        exclude: World coordinates never considered a match.

    Returns:
        The direction the agent must act in, or None.
    """
    row, col = world.position()
    for i, view_row in enumerate(world.view()):
        for j, tile in enumerate(view_row):
            if tile is None or not predicate(tile):
                continue
            if (row + i - 1, col + j - 1) in exclude:
                continue

            if (i, j) in _CARDINAL:
                return _CARDINAL[(i, j)]

            if move_allowed:
                for step, facing in _REORIENT[(i, j)]:
                    try:
                        world.move(step)
                    except WorldError:
                        continue
                    return facing
    return None


def look_ahead(position: Coord, direction: Direction) -> Coord:
    """Coordinate of the tile the agent faces in ``direction``."""
    return direction.apply(position)
