"""
Resource locator over the agent's known map.

Answers "where is the closest X?" and "where is the most X?" using only the
tiles the agent has already observed.

Dependencies:
    - pioneer.world: Known-map access and distance helpers
"""

from __future__ import annotations

from collections.abc import Collection

from pioneer.world import Content, Coord, KnownMap, manhattan


class ResourceNotFound(LookupError):
    """No known tile holds the requested content."""


class ResourceMapper:
    """
    Closest / most-loaded lookups over a known map.

    Exhausted economic structures (markets or banks with nothing left) are
    never returned, and callers may exclude further coordinates, such as
    the structures they have tagged as depleted.
    """

    __slots__: list[str] = []

    def find_closest(
        self,
        known_map: KnownMap,
        position: Coord,
        content: Content,
        exclude: Collection[Coord] = (),
    ) -> Coord:
        """
        Nearest known tile holding ``content`` (Manhattan distance).

        Raises:
            ResourceNotFound: If no such tile is known.
        """
        candidates = self._candidates(known_map, content, exclude)
        if not candidates:
            raise ResourceNotFound(f"no {content.name} in the known map")
        return min(candidates, key=lambda item: (manhattan(item[0], position), item[0]))[0]

    def find_most_loaded(
        self,
        known_map: KnownMap,
        position: Coord,
        content: Content,
        exclude: Collection[Coord] = (),
    ) -> Coord:
        """
        Known tile with the largest amount of ``content``; ties go to the closest.

        Raises:
            ResourceNotFound: If no such tile is known.
        """
        candidates = self._candidates(known_map, content, exclude)
        if not candidates:
            raise ResourceNotFound(f"no {content.name} in the known map")
        return min(
            candidates,
            key=lambda item: (-item[1], manhattan(item[0], position), item[0]),
        )[0]

    @staticmethod
    def _candidates(
        known_map: KnownMap, content: Content, exclude: Collection[Coord]
    ) -> list[tuple[Coord, int]]:
        found = []
        for r, row in enumerate(known_map):
            for c, tile in enumerate(row):
                if tile is None or tile.content is not content or (r, c) in exclude:
                    continue
                if content.economic and tile.amount <= 0:
                    continue
                found.append(((r, c), tile.amount))
        return found
