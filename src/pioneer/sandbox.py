"""
In-memory tile world implementing the ``World`` protocol.

The decision core treats the world as an external collaborator. This module
provides a self-contained simulation so the agent can be run from the CLI,
wrapped as a Gymnasium environment and exercised by the test suite without
any external game engine.

Architecture Role:
    SandboxWorld owns the true tile grid, the agent's position, energy,
    backpack and score, the clock and the weather schedule. It exposes them
    only through the ``World`` methods and reports every change as an
    ``Event`` to a subscribed listener (normally ``PioneerBot.on_event``).

    PioneerEnv / CLI → SandboxWorld.advance() → Event → PioneerBot.on_event()
    PioneerBot.on_tick() → SandboxWorld.move()/destroy()/put()/...

World Rules:
    - Energy: every action costs energy; ``advance()`` recharges a fixed amount.
    - Backpack: bounded by size. Destroying gatherable content moves it into
      the backpack.
    - Markets buy gatherables (coins = quantity × price) up to their
      remaining stock. Banks accept coins up to their remaining capacity;
      deposited coins add to the score.
    - Rocks put on water or lava build a street tile once enough rocks are
      supplied (see ``BRIDGE_COSTS``).
    - A tent is crafted from trees and can be pitched on open ground.
    - The agent sees a 3x3 window around itself; tiles it has seen form the
      known map. ``discover`` reveals arbitrary tiles for an energy fee.

Layout Legend (``from_layout``):
    ``.`` grass   ``s`` sand   ``=`` street   ``h`` hill   ``^`` mountain
    ``*`` snow   ``,`` shallow water   ``~`` deep water   ``L`` lava   ``#`` wall
    ``T`` tree   ``R`` rock   ``F`` fish (deep water)   ``C`` coin   ``b`` bush
    ``M`` market   ``B`` bank   ``H`` building   ``t`` tent   ``A`` agent start

Dependencies:
    - numpy: Random generator and terrain smoothing for ``generate``
    - pioneer.world: Data model and error taxonomy
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from pioneer.config import PioneerConfig
from pioneer.world import (
    BRIDGE_COSTS,
    Backpack,
    CannotWalk,
    Content,
    Coord,
    DayTime,
    Direction,
    EnvironmentalConditions,
    Event,
    EventKind,
    KnownMap,
    MustDestroyContentFirst,
    NotEnoughContentInBackpack,
    NotEnoughContentProvided,
    NotEnoughEnergy,
    NotEnoughSpace,
    OperationNotAllowed,
    OutOfBounds,
    Tile,
    TileType,
    WeatherType,
)

# =============================================================================
# WORLD CONSTANTS
# =============================================================================

# Energy spent by each action (moves use the terrain's move_cost)
DESTROY_COST = 3
PUT_COST = 2
CRAFT_COST = 5
DISCOVER_COST = 1

# Items consumed to craft one unit of the key
RECIPES: dict[Content, dict[Content, int]] = {
    Content.TENT: {Content.TREE: 2},
}

# Days of weather published in the forecast
FORECAST_DAYS = 3

_TERRAIN_CODES: dict[str, TileType] = {
    ".": TileType.GRASS,
    "s": TileType.SAND,
    "=": TileType.STREET,
    "h": TileType.HILL,
    "^": TileType.MOUNTAIN,
    "*": TileType.SNOW,
    ",": TileType.SHALLOW_WATER,
    "~": TileType.DEEP_WATER,
    "L": TileType.LAVA,
    "#": TileType.WALL,
}

# content code → (terrain underneath, content, default amount)
_CONTENT_CODES: dict[str, tuple[TileType, Content, int]] = {
    "T": (TileType.GRASS, Content.TREE, 2),
    "R": (TileType.GRASS, Content.ROCK, 1),
    "F": (TileType.DEEP_WATER, Content.FISH, 1),
    "C": (TileType.GRASS, Content.COIN, 1),
    "b": (TileType.GRASS, Content.BUSH, 1),
    "M": (TileType.GRASS, Content.MARKET, 20),
    "B": (TileType.GRASS, Content.BANK, 100),
    "H": (TileType.GRASS, Content.BUILDING, 1),
    "t": (TileType.GRASS, Content.TENT, 1),
}

Listener = Callable[[Event], None]


# =============================================================================
# SANDBOX WORLD
# =============================================================================


class SandboxWorld:
    """
    Self-contained tile world the agent can live in.

    Attributes:
        config: PioneerConfig with sandbox parameters.
        size: Side length of the square world.
        day: Days elapsed since the start.
        hour: Current hour (0-23).
    """

    def __init__(
        self,
        tiles: list[list[Tile]],
        start: Coord,
        config: PioneerConfig | None = None,
        weather: list[WeatherType] | None = None,
        start_hour: int = 8,
        seed: int | None = None,
    ) -> None:
        """
        Create a world from an explicit tile grid.

        Args:
            tiles: Square grid of tiles, indexed ``tiles[row][col]``.
            start: Agent starting coordinate.
            config: Sandbox parameters. Defaults to PioneerConfig().
            weather: Weather per day; the last entry repeats forever.
                Defaults to always sunny.
            start_hour: Hour of day at creation.
            seed: Seed for the sandbox random generator.
        """
        if not tiles or any(len(row) != len(tiles) for row in tiles):
            raise ValueError("SandboxWorld requires a square, non-empty tile grid")

        self.config = config or PioneerConfig()
        self.size = len(tiles)
        self._tiles = tiles
        self._known: KnownMap = [[None] * self.size for _ in range(self.size)]
        self._position = start
        self._energy = self.config.max_energy
        self._contents: dict[Content, int] = {}
        self._score = 0.0
        self._weather = list(weather) if weather else [WeatherType.SUNNY]
        self.day = 0
        self.hour = start_hour
        self._listeners: list[Listener] = []
        self.rng = np.random.default_rng(seed)

        if not self._in_bounds(start):
            raise ValueError(f"start {start} outside a {self.size}x{self.size} world")

        self._reveal_view()

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_layout(
        cls,
        rows: list[str],
        config: PioneerConfig | None = None,
        weather: list[WeatherType] | None = None,
        start_hour: int = 8,
        amounts: dict[Coord, int] | None = None,
    ) -> SandboxWorld:
        """
        Build a world from ASCII rows (see the module docstring legend).

        Args:
            rows: Equal-length strings, one per row. Exactly one ``A``.
            config: Sandbox parameters.
            weather: Weather schedule per day.
            start_hour: Hour of day at creation.
            amounts: Overrides of content amounts by coordinate.

        Returns:
            A new SandboxWorld.

        Raises:
            ValueError: On an unknown character or a missing agent start.
        """
        amounts = amounts or {}
        tiles: list[list[Tile]] = []
        start: Coord | None = None

        for r, line in enumerate(rows):
            row: list[Tile] = []
            for c, char in enumerate(line):
                if char == "A":
                    start = (r, c)
                    row.append(Tile(TileType.GRASS))
                elif char in _TERRAIN_CODES:
                    row.append(Tile(_TERRAIN_CODES[char]))
                elif char in _CONTENT_CODES:
                    terrain, content, amount = _CONTENT_CODES[char]
                    row.append(Tile(terrain, content, amounts.get((r, c), amount)))
                else:
                    raise ValueError(f"unknown layout character {char!r} at ({r}, {c})")
            tiles.append(row)

        if start is None:
            raise ValueError("layout has no agent start 'A'")

        return cls(tiles, start, config=config, weather=weather, start_hour=start_hour)

    @classmethod
    def generate(cls, config: PioneerConfig | None = None, seed: int | None = None) -> SandboxWorld:
        """
        Generate a random world.

        Terrain comes from a smoothed uniform noise field thresholded into
        bands (water → sand → grass → hills → mountains → snow). Resources
        and structures are scattered on suitable terrain.

        Args:
            config: Sandbox parameters (world_size, seed).
            seed: Overrides config.seed when given.

        Returns:
            A new SandboxWorld with the agent on open grass near the centre.
        """
        config = config or PioneerConfig()
        seed = config.seed if seed is None else seed
        rng = np.random.default_rng(seed)
        n = config.world_size

        # Smooth a noise field by repeated neighbourhood averaging
        height = rng.random((n, n))
        for _ in range(5):
            height = (
                height
                + np.roll(height, 1, axis=0)
                + np.roll(height, -1, axis=0)
                + np.roll(height, 1, axis=1)
                + np.roll(height, -1, axis=1)
            ) / 5.0
        height = (height - height.min()) / (np.ptp(height) or 1.0)

        bands = [
            (0.25, TileType.DEEP_WATER),
            (0.32, TileType.SHALLOW_WATER),
            (0.38, TileType.SAND),
            (0.70, TileType.GRASS),
            (0.82, TileType.HILL),
            (0.93, TileType.MOUNTAIN),
            (1.01, TileType.SNOW),
        ]
        tiles: list[list[Tile]] = []
        for r in range(n):
            row = []
            for c in range(n):
                value = height[r, c]
                terrain = next(t for limit, t in bands if value < limit)
                row.append(Tile(terrain))
            tiles.append(row)

        # Scattered resources: (content, allowed terrain, probability, max amount)
        scatter = [
            (Content.TREE, (TileType.GRASS,), 0.08, 3),
            (Content.ROCK, (TileType.GRASS, TileType.HILL, TileType.MOUNTAIN), 0.04, 2),
            (Content.FISH, (TileType.DEEP_WATER,), 0.06, 3),
            (Content.COIN, (TileType.GRASS, TileType.SAND), 0.01, 2),
            (Content.BUSH, (TileType.GRASS,), 0.02, 1),
        ]
        rolls = rng.random((n, n))
        for r in range(n):
            for c in range(n):
                tile = tiles[r][c]
                for content, terrains, chance, max_amount in scatter:
                    if tile.tile_type in terrains and rolls[r, c] < chance:
                        tile.content = content
                        tile.amount = int(rng.integers(1, max_amount + 1))
                        break

        # Structures on open ground
        open_ground = [
            (r, c) for r in range(n) for c in range(n)
            if tiles[r][c].tile_type in (TileType.GRASS, TileType.SAND)
            and tiles[r][c].content is Content.NONE
        ]
        structures = [
            (Content.MARKET, max(n // 16, 2), (20, 41)),
            (Content.BANK, max(n // 32, 1), (100, 201)),
            (Content.BUILDING, max(n // 16, 2), (1, 2)),
        ]
        for content, count, (low, high) in structures:
            for _ in range(min(count, len(open_ground))):
                index = int(rng.integers(len(open_ground)))
                r, c = open_ground.pop(index)
                tiles[r][c].content = content
                tiles[r][c].amount = int(rng.integers(low, high))

        # Start on the open tile closest to the centre
        centre = (n // 2, n // 2)
        candidates = [
            (r, c) for r in range(n) for c in range(n) if tiles[r][c].walkable
        ] or [centre]
        start = min(candidates, key=lambda rc: abs(rc[0] - centre[0]) + abs(rc[1] - centre[1]))
        if not tiles[start[0]][start[1]].walkable:
            tiles[start[0]][start[1]] = Tile(TileType.GRASS)

        weather_choices = list(WeatherType)
        weights = np.array([0.45, 0.2, 0.15, 0.1, 0.1])
        weather = [
            weather_choices[int(i)]
            for i in rng.choice(len(weather_choices), size=365, p=weights)
        ]

        return cls(tiles, start, config=config, weather=weather, seed=seed)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def subscribe(self, listener: Listener) -> None:
        """Register a callback receiving every Event the world emits."""
        self._listeners.append(listener)

    def _emit(self, event: Event) -> None:
        for listener in self._listeners:
            listener(event)

    def ready(self) -> None:
        """Announce that the agent has been placed in the world."""
        self._emit(Event(EventKind.READY, coord=self._position))

    def terminate(self) -> None:
        """Announce that the simulation is over."""
        self._emit(Event(EventKind.TERMINATED))

    # =========================================================================
    # AGENT STATE (read-only)
    # =========================================================================

    def position(self) -> Coord:
        return self._position

    def energy_level(self) -> int:
        return self._energy

    def backpack(self) -> Backpack:
        return Backpack(self.config.backpack_size, dict(self._contents))

    def score(self) -> float:
        return self._score

    def conditions(self) -> EnvironmentalConditions:
        forecast = tuple(self._weather_on(self.day + i) for i in range(1, FORECAST_DAYS + 1))
        return EnvironmentalConditions(
            time_of_day=DayTime.from_hour(self.hour),
            hour=self.hour,
            weather=self._weather_on(self.day),
            forecast=forecast,
        )

    def view(self) -> KnownMap:
        row, col = self._position
        window: KnownMap = []
        for r in range(row - 1, row + 2):
            window.append([
                self._tiles[r][c].copy() if self._in_bounds((r, c)) else None
                for c in range(col - 1, col + 2)
            ])
        return window

    def known_map(self) -> KnownMap:
        return [list(row) for row in self._known]

    def tile(self, coord: Coord) -> Tile:
        """True tile at ``coord`` (for harnesses and tests, not the agent)."""
        return self._tiles[coord[0]][coord[1]]

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def move(self, direction: Direction) -> None:
        target = self._target(direction)
        tile = self._tiles[target[0]][target[1]]
        if not tile.walkable:
            raise CannotWalk(f"cannot walk onto {tile.tile_type.name} with {tile.content.name}")

        self._spend(tile.tile_type.move_cost)
        self._position = target
        self._reveal_view()
        self._emit(Event(EventKind.MOVED, coord=target))

    def destroy(self, direction: Direction) -> int:
        target = self._target(direction)
        tile = self._tiles[target[0]][target[1]]
        if not tile.content.destroyable:
            raise OperationNotAllowed(f"{tile.content.name} cannot be destroyed")

        free = self.config.backpack_size - sum(self._contents.values())
        if free <= 0:
            raise NotEnoughSpace("backpack is full")

        self._spend(DESTROY_COST)
        content = tile.content
        collected = min(max(tile.amount, 1), free)
        remaining = max(tile.amount, 1) - collected
        if remaining > 0:
            self._set_tile(target, Tile(tile.tile_type, content, remaining))
        else:
            self._set_tile(target, Tile(tile.tile_type))

        self._add(content, collected)
        return collected

    def put(self, content: Content, quantity: int, direction: Direction) -> int:
        if quantity <= 0:
            raise OperationNotAllowed("quantity must be positive")
        if self._contents.get(content, 0) < quantity:
            raise NotEnoughContentInBackpack(
                f"holding {self._contents.get(content, 0)} {content.name}, need {quantity}"
            )

        target = self._target(direction)
        tile = self._tiles[target[0]][target[1]]

        if tile.content is Content.MARKET:
            return self._sell(target, tile, content, quantity)
        if tile.content is Content.BANK:
            return self._deposit(target, tile, content, quantity)
        if tile.content is not Content.NONE:
            raise MustDestroyContentFirst(f"{tile.content.name} is in the way")

        if content is Content.ROCK and tile.tile_type in BRIDGE_COSTS:
            needed = BRIDGE_COSTS[tile.tile_type]
            if quantity < needed:
                raise NotEnoughContentProvided(
                    f"{tile.tile_type.name} needs {needed} rocks, got {quantity}"
                )
            self._spend(PUT_COST)
            self._remove(content, needed)
            self._set_tile(target, Tile(TileType.STREET))
            return needed

        if not tile.tile_type.can_hold(content):
            raise OperationNotAllowed(f"{tile.tile_type.name} cannot hold {content.name}")

        self._spend(PUT_COST)
        self._remove(content, quantity)
        self._set_tile(target, Tile(tile.tile_type, content, quantity))
        return quantity

    def craft(self, content: Content) -> None:
        recipe = RECIPES.get(content)
        if recipe is None:
            raise OperationNotAllowed(f"no recipe for {content.name}")
        for ingredient, amount in recipe.items():
            if self._contents.get(ingredient, 0) < amount:
                raise NotEnoughContentInBackpack(f"crafting {content.name} needs {amount} {ingredient.name}")

        self._spend(CRAFT_COST)
        for ingredient, amount in recipe.items():
            self._remove(ingredient, amount)
        self._add(content, 1)

    def discover(self, coords: list[Coord]) -> dict[Coord, Tile]:
        unknown = [
            c for c in coords
            if self._in_bounds(c) and self._known[c[0]][c[1]] is None
        ]
        self._spend(DISCOVER_COST * len(unknown))

        found: dict[Coord, Tile] = {}
        for coord in coords:
            if self._in_bounds(coord):
                self._reveal(coord)
                found[coord] = self._tiles[coord[0]][coord[1]].copy()
        return found

    # =========================================================================
    # CLOCK
    # =========================================================================

    def advance(self) -> None:
        """
        Advance the clock by ``hours_per_tick`` and recharge energy.

        Emits DAY_CHANGED when midnight passes and TIME_CHANGED every call.
        """
        self.hour += self.config.hours_per_tick
        while self.hour >= 24:
            self.hour -= 24
            self.day += 1
            self._emit(Event(EventKind.DAY_CHANGED, conditions=self.conditions()))

        recharge = min(self.config.recharge_rate, self.config.max_energy - self._energy)
        if recharge > 0:
            self._energy += recharge
            self._emit(Event(EventKind.ENERGY_RECHARGED, amount=recharge))

        self._emit(Event(EventKind.TIME_CHANGED, conditions=self.conditions()))

    # =========================================================================
    # HELPERS
    # =========================================================================

    def set_energy(self, level: int) -> None:
        """Force the energy level (harness and test helper)."""
        self._energy = max(0, min(level, self.config.max_energy))

    def give(self, content: Content, quantity: int) -> None:
        """Put items straight into the backpack (harness and test helper)."""
        if quantity > 0:
            self._contents[content] = self._contents.get(content, 0) + quantity

    def reveal_all(self) -> None:
        """Mark every tile as known (harness and test helper)."""
        for r in range(self.size):
            for c in range(self.size):
                self._reveal((r, c))

    def _weather_on(self, day: int) -> WeatherType:
        return self._weather[min(day, len(self._weather) - 1)]

    def _in_bounds(self, coord: Coord) -> bool:
        return 0 <= coord[0] < self.size and 0 <= coord[1] < self.size

    def _target(self, direction: Direction) -> Coord:
        target = direction.apply(self._position)
        if not self._in_bounds(target):
            raise OutOfBounds(f"{target} is outside the world")
        return target

    def _spend(self, cost: int) -> None:
        if cost <= 0:
            return
        if self._energy < cost:
            raise NotEnoughEnergy(f"need {cost} energy, have {self._energy}")
        self._energy -= cost
        self._emit(Event(EventKind.ENERGY_CONSUMED, amount=cost))

    def _add(self, content: Content, quantity: int) -> None:
        self._contents[content] = self._contents.get(content, 0) + quantity
        self._emit(Event(EventKind.ADDED_TO_BACKPACK, content=content, amount=quantity))

    def _remove(self, content: Content, quantity: int) -> None:
        self._contents[content] = self._contents.get(content, 0) - quantity
        self._emit(Event(EventKind.REMOVED_FROM_BACKPACK, content=content, amount=quantity))

    def _reveal(self, coord: Coord) -> None:
        self._known[coord[0]][coord[1]] = self._tiles[coord[0]][coord[1]].copy()

    def _reveal_view(self) -> None:
        row, col = self._position
        for r in range(row - 1, row + 2):
            for c in range(col - 1, col + 2):
                if self._in_bounds((r, c)):
                    self._reveal((r, c))

    def _set_tile(self, coord: Coord, tile: Tile) -> None:
        self._tiles[coord[0]][coord[1]] = tile
        self._reveal(coord)
        self._emit(Event(EventKind.TILE_CONTENT_UPDATED, coord=coord, content=tile.content))

    def _sell(self, coord: Coord, market: Tile, content: Content, quantity: int) -> int:
        if not content.gatherable:
            raise OperationNotAllowed(f"markets do not buy {content.name}")

        accepted = min(quantity, market.amount)
        if accepted == 0:
            return 0

        coins = accepted * self.config.prices.get(content, 1)
        free_after = self.config.backpack_size - sum(self._contents.values()) + accepted
        if coins > free_after:
            raise NotEnoughSpace(f"no room for {coins} coins")

        self._spend(PUT_COST)
        self._remove(content, accepted)
        self._add(Content.COIN, coins)
        self._set_tile(coord, Tile(market.tile_type, Content.MARKET, market.amount - accepted))
        self._score += coins
        return accepted

    def _deposit(self, coord: Coord, bank: Tile, content: Content, quantity: int) -> int:
        if content is not Content.COIN:
            raise OperationNotAllowed("banks only accept coins")

        accepted = min(quantity, bank.amount)
        if accepted == 0:
            return 0

        self._spend(PUT_COST)
        self._remove(Content.COIN, accepted)
        self._set_tile(coord, Tile(bank.tile_type, Content.BANK, bank.amount - accepted))
        self._score += accepted * self.config.prices.get(Content.COIN, 1)
        return accepted
