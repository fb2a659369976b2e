"""
World data model and interface for the Pioneer agent.

This module defines everything the decision core knows about the world it
lives in: directions, tile types, tile contents, weather, the backpack
snapshot, the events the world emits, the errors world actions raise, and
the ``World`` protocol that any simulation must satisfy.

Architecture Role:
    The world is an external collaborator. The agent never mutates its own
    position, energy or backpack directly; it reads them through ``World``
    and changes them only by calling world actions (move, destroy, put,
    craft, discover).

    PioneerBot → World.move()/destroy()/put()/craft() → Event → PioneerBot.on_event()

Coordinate System:
    All coordinates are ``(row, col)`` tuples. Row increases downward,
    column increases rightward, matching the indexing of ``known_map()``.

Error Taxonomy:
    World actions raise subclasses of ``WorldError``. The transient ones
    (CannotWalk, MustDestroyContentFirst, NotEnoughContentProvided,
    NotEnoughEnergy, NotEnoughSpace) are recovered locally by the state
    machine; anything else propagates.

Dependencies:
    - dataclasses/enum: For the value types
    - typing.Protocol: For the structural World interface
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Protocol

Coord = tuple[int, int]
KnownMap = list[list["Tile | None"]]

# =============================================================================
# DIRECTIONS
# =============================================================================


class Direction(Enum):
    """Cardinal movement direction."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Coord:
        """(row, col) offset of one step in this direction."""
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    def apply(self, coord: Coord) -> Coord:
        """Return the coordinate one step away from ``coord``."""
        dr, dc = self.delta
        return coord[0] + dr, coord[1] + dc


_DELTAS: dict[Direction, Coord] = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


# =============================================================================
# ENVIRONMENTAL CONDITIONS
# =============================================================================


class DayTime(Enum):
    """Coarse part of the day, derived from the hour."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> DayTime:
        if 6 <= hour < 13:
            return cls.MORNING
        if 13 <= hour < 20:
            return cls.AFTERNOON
        return cls.NIGHT


class WeatherType(Enum):
    """Weather condition for a day."""

    SUNNY = "sunny"
    RAINY = "rainy"
    FOGGY = "foggy"
    TRENTINO_SNOW = "snow"
    TROPICAL_MONSOON = "monsoon"

    @property
    def hazardous(self) -> bool:
        """Snow and monsoon make staying outside dangerous."""
        return self in (WeatherType.TRENTINO_SNOW, WeatherType.TROPICAL_MONSOON)


@dataclass(frozen=True)
class EnvironmentalConditions:
    """
    Snapshot of the sky.

    Attributes:
        time_of_day: Coarse part of the day.
        hour: Hour of the day (0-23).
        weather: Current weather.
        forecast: Weather of the upcoming days, index 0 = tomorrow.
    """

    time_of_day: DayTime
    hour: int
    weather: WeatherType
    forecast: tuple[WeatherType, ...] = ()


# =============================================================================
# TILES
# =============================================================================


class TileType(IntEnum):
    """Terrain of a tile. Integer values are used in numpy observations."""

    DEEP_WATER = 0
    SHALLOW_WATER = 1
    SAND = 2
    GRASS = 3
    STREET = 4
    HILL = 5
    MOUNTAIN = 6
    SNOW = 7
    LAVA = 8
    WALL = 9

    @property
    def walkable(self) -> bool:
        return self not in (TileType.DEEP_WATER, TileType.LAVA, TileType.WALL)

    @property
    def move_cost(self) -> int:
        """Energy spent to step onto this terrain."""
        return _MOVE_COSTS.get(self, 1)

    def can_hold(self, content: Content) -> bool:
        """Whether ``content`` may be placed on this terrain."""
        if content is Content.ROCK:
            return self is not TileType.WALL
        if content is Content.FISH:
            return self in (TileType.DEEP_WATER, TileType.SHALLOW_WATER)
        if content in (Content.TENT, Content.BUSH, Content.TREE, Content.COIN):
            return self in (
                TileType.SAND, TileType.GRASS, TileType.STREET,
                TileType.HILL, TileType.SNOW,
            )
        return self.walkable


_MOVE_COSTS: dict[TileType, int] = {
    TileType.SHALLOW_WATER: 3,
    TileType.SAND: 2,
    TileType.HILL: 4,
    TileType.MOUNTAIN: 8,
    TileType.SNOW: 3,
}

# Rocks needed to turn a tile into street when building a bridge
BRIDGE_COSTS: dict[TileType, int] = {
    TileType.SHALLOW_WATER: 1,
    TileType.DEEP_WATER: 3,
    TileType.LAVA: 3,
}


class Content(IntEnum):
    """Content sitting on a tile (or held in the backpack)."""

    NONE = 0
    ROCK = 1
    TREE = 2
    FISH = 3
    COIN = 4
    BUSH = 5
    TENT = 6
    MARKET = 7
    BANK = 8
    BUILDING = 9

    @property
    def destroyable(self) -> bool:
        """Destroying the content moves it into the backpack."""
        return self in (
            Content.ROCK, Content.TREE, Content.FISH,
            Content.COIN, Content.BUSH, Content.TENT,
        )

    @property
    def walkable(self) -> bool:
        return self in (Content.NONE, Content.COIN, Content.BUSH, Content.TENT)

    @property
    def gatherable(self) -> bool:
        """Resources the agent collects to sell later."""
        return self in (Content.ROCK, Content.TREE, Content.FISH)

    @property
    def economic(self) -> bool:
        """Structures that trade with the agent."""
        return self in (Content.MARKET, Content.BANK)

    @property
    def shelter(self) -> bool:
        return self in (Content.BUILDING, Content.MARKET, Content.BANK)


@dataclass
class Tile:
    """
    One cell of the world.

    Attributes:
        tile_type: Terrain.
        content: What sits on the terrain.
        amount: Quantity of the content. For markets this is the remaining
            number of items they will still buy, for banks the remaining coin
            capacity.
    """

    tile_type: TileType
    content: Content = Content.NONE
    amount: int = 0

    @property
    def walkable(self) -> bool:
        return self.tile_type.walkable and self.content.walkable

    def copy(self) -> Tile:
        return Tile(self.tile_type, self.content, self.amount)


# =============================================================================
# BACKPACK
# =============================================================================


@dataclass(frozen=True)
class Backpack:
    """
    Read-only snapshot of the agent's inventory.

    Attributes:
        size: Maximum number of items the backpack holds.
        contents: Mapping content → count. Missing keys mean zero.
    """

    size: int
    contents: dict[Content, int] = field(default_factory=dict)

    def get(self, content: Content) -> int:
        return self.contents.get(content, 0)

    @property
    def total(self) -> int:
        return sum(self.contents.values())

    @property
    def free(self) -> int:
        return max(self.size - self.total, 0)

    @property
    def load(self) -> float:
        """Fraction of the capacity in use (0.0-1.0)."""
        return self.total / self.size if self.size > 0 else 1.0


# =============================================================================
# ERRORS
# =============================================================================


class WorldError(Exception):
    """Base class for failed world actions."""


class CannotWalk(WorldError):
    """The target tile cannot be entered."""


class MustDestroyContentFirst(WorldError):
    """The target tile already holds content that must be removed first."""


class NotEnoughContentProvided(WorldError):
    """The quantity given to ``put`` is too small for the operation."""


class NotEnoughContentInBackpack(WorldError):
    """The backpack does not hold the requested quantity."""


class NotEnoughEnergy(WorldError):
    """The action costs more energy than the agent has."""


class NotEnoughSpace(WorldError):
    """The backpack has no room for the result of the action."""


class OutOfBounds(WorldError):
    """The target coordinate lies outside the world."""


class OperationNotAllowed(WorldError):
    """The action makes no sense for the target tile or content."""


# =============================================================================
# EVENTS
# =============================================================================


class EventKind(Enum):
    """Kinds of notification the world delivers to the agent."""

    READY = "ready"
    TERMINATED = "terminated"
    TIME_CHANGED = "time_changed"
    DAY_CHANGED = "day_changed"
    ENERGY_RECHARGED = "energy_recharged"
    ENERGY_CONSUMED = "energy_consumed"
    MOVED = "moved"
    TILE_CONTENT_UPDATED = "tile_content_updated"
    ADDED_TO_BACKPACK = "added_to_backpack"
    REMOVED_FROM_BACKPACK = "removed_from_backpack"


@dataclass(frozen=True)
class Event:
    """
    Notification emitted by the world.

    Only the fields relevant to ``kind`` are set:
        MOVED: coord
        TIME_CHANGED / DAY_CHANGED: conditions
        ENERGY_*: amount
        TILE_CONTENT_UPDATED: coord, content
        *_BACKPACK: content, amount
    """

    kind: EventKind
    coord: Coord | None = None
    conditions: EnvironmentalConditions | None = None
    content: Content | None = None
    amount: int = 0


# =============================================================================
# WORLD INTERFACE
# =============================================================================


class World(Protocol):
    """Structural interface the agent requires from a world simulation."""

    def position(self) -> Coord: ...

    def energy_level(self) -> int: ...

    def backpack(self) -> Backpack: ...

    def score(self) -> float: ...

    def conditions(self) -> EnvironmentalConditions: ...

    def view(self) -> KnownMap:
        """3x3 window centred on the agent; ``None`` outside the world."""
        ...

    def known_map(self) -> KnownMap:
        """Square map of every tile the agent has seen, ``None`` elsewhere."""
        ...

    def move(self, direction: Direction) -> None: ...

    def destroy(self, direction: Direction) -> int: ...

    def put(self, content: Content, quantity: int, direction: Direction) -> int: ...

    def craft(self, content: Content) -> None: ...

    def discover(self, coords: list[Coord]) -> dict[Coord, Tile]: ...


def tile_at(known_map: KnownMap, coord: Coord) -> Tile | None:
    """Known tile at ``coord`` or ``None`` if unknown or out of bounds."""
    row, col = coord
    if 0 <= row < len(known_map) and 0 <= col < len(known_map[row]):
        return known_map[row][col]
    return None


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def describe(value: Any) -> str:
    """Human-readable name of an enum member (``Content.TREE`` → ``tree``)."""
    name = getattr(value, "name", str(value))
    return name.lower().replace("_", " ")
