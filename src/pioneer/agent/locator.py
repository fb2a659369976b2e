"""
Least-explored locator and exploration coverage.

When the agent has no better goal, it heads for the part of the world it
knows least about. The locator finds that part by repeated quadrant
subdivision of the known map: count the revealed tiles in each quadrant,
descend into the emptiest one, and after a random number of levels return
the centre of the quadrant it ended in.

Quadrant Numbering:
         |
      0  |  1
    -----+-----
      3  |  2
         |

    Each level moves the running target by ±dim/4 on both axes toward the
    selected quadrant's centre, then halves dim.

Depth:
    The number of levels is drawn uniformly from [1, log2(N)] on each call,
    so repeated calls on the same map spread their targets over the
    under-observed region.

Exploration Coverage:
    ``exploration_coverage`` is the fraction of revealed tiles.
    ``CoverageGoal`` is an optional termination predicate: the run is over
    once coverage reaches a threshold and fewer than two markets or banks
    are still trading.

Dependencies:
    - numpy: Revealed-tile mask and per-quadrant counts
    - pioneer.world: Known-map type
"""

from __future__ import annotations

from collections.abc import Collection

import numpy as np

from pioneer.world import Coord, KnownMap

# =============================================================================
# REVEALED MASK
# =============================================================================


def revealed_mask(known_map: KnownMap) -> np.ndarray:
    """Boolean array, True where the tile is known."""
    return np.array(
        [[tile is not None for tile in row] for row in known_map], dtype=bool
    ).reshape(len(known_map), -1)


def exploration_coverage(known_map: KnownMap) -> float:
    """Fraction of the map the agent has revealed (0.0-1.0)."""
    mask = revealed_mask(known_map)
    return float(mask.mean()) if mask.size else 0.0


# =============================================================================
# LEAST-EXPLORED LOCATOR
# =============================================================================


def _quadrants(grid: np.ndarray) -> list[np.ndarray]:
    half = grid.shape[0] // 2
    return [
        grid[:half, :half],   # 0: top-left
        grid[:half, half:],   # 1: top-right
        grid[half:, half:],   # 2: bottom-right
        grid[half:, :half],   # 3: bottom-left
    ]


# ±1 multipliers of dim/4 per quadrant, (row, col)
_QUADRANT_SHIFT: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, 1), (1, -1))


def least_explored_quadrant(grid: np.ndarray) -> int:
    """
    Index of the quadrant with the fewest revealed tiles.

    Ties go to the lowest index (scan order 0, 1, 2, 3).
    """
    counts = [int(quadrant.sum()) for quadrant in _quadrants(grid)]
    return int(np.argmin(counts))


def least_explored_target(
    known_map: KnownMap,
    rng: np.random.Generator,
    precision: int | None = None,
) -> Coord:
    """
    Target coordinate biased toward the least-observed region.

    Args:
        known_map: The agent's square known map.
        rng: Random generator choosing the subdivision depth.
        precision: Subdivision depth; random in [1, log2(N)] when None.

    Returns:
        (row, col) at the centre of the finally selected quadrant.
    """
    grid = revealed_mask(known_map)
    dim = grid.shape[0]
    if dim < 2:
        return 0, 0

    if precision is None:
        precision = int(rng.integers(max(int(np.log2(dim)), 1))) + 1

    row, col = dim // 2, dim // 2
    for _ in range(precision):
        if grid.shape[0] < 2:
            break
        index = least_explored_quadrant(grid)
        quarter = grid.shape[0] // 4
        shift_row, shift_col = _QUADRANT_SHIFT[index]
        row += shift_row * quarter
        col += shift_col * quarter
        grid = _quadrants(grid)[index]

    return min(max(row, 0), dim - 1), min(max(col, 0), dim - 1)


# =============================================================================
# TERMINATION PREDICATE
# =============================================================================


class CoverageGoal:
    """
    Exploration-complete predicate.

    True once the revealed fraction of the map reaches ``coverage`` and
    fewer than two known markets or banks still trade (not exhausted and
    not tagged as depleted).

    Attributes:
        coverage: Required revealed fraction (0.0-1.0).
    """

    __slots__ = ("coverage",)

    def __init__(self, coverage: float) -> None:
        self.coverage = coverage

    def __call__(self, known_map: KnownMap, depleted: Collection[Coord]) -> bool:
        if exploration_coverage(known_map) < self.coverage:
            return False

        active = 0
        for r, row in enumerate(known_map):
            for c, tile in enumerate(row):
                if (
                    tile is not None
                    and tile.content.economic
                    and tile.amount > 0
                    and (r, c) not in depleted
                ):
                    active += 1
        return active < 2
