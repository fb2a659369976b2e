"""
Pioneer Gymnasium environment.

This module wraps a SandboxWorld and a PioneerBot into a Gymnasium-compatible
environment. The bot plays every tick by itself; the action only lets an
outside policy (or a human at a keyboard) override the objective the bot
picks the next time it is Deciding, exactly like an assisted pilot would.

Architecture Role:
    PioneerEnv is the harness: it owns the world and the loop, forwards world
    events to the bot and advances the clock.

    PioneerEnv.step(action) → PioneerBot.request_objective()
                            → SandboxWorld.advance() → events → PioneerBot.on_event()
                            → PioneerBot.on_tick(world)

Observation Space Components:
    - tiles: (N, N) known tile types, -1 where unknown
    - contents: (N, N) known contents, -1 where unknown
    - position: (2,) agent (row, col)
    - energy: (1,) energy level
    - backpack: (10,) item counts indexed by Content value

Action Space:
    Discrete(10): 0 = no override, 1-9 = objective codes
    (see Objective.from_code).

Reward:
    Score gained during the step.

Episode End:
    terminated when the bot stops running (world terminated or termination
    predicate), truncated at ``config.max_steps``.

Usage:
    >>> from pioneer.env import PioneerEnv
    >>> env = PioneerEnv(PioneerConfig(world_size=32, verbose=False))
    >>> obs, info = env.reset(seed=0)
    >>> obs, reward, terminated, truncated, info = env.step(0)

Dependencies:
    - gymnasium: For the Gym environment interface
    - numpy: For observation arrays
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from pioneer.agent.bot import PioneerBot
from pioneer.agent.locator import exploration_coverage
from pioneer.agent.objective import Objective
from pioneer.config import PioneerConfig
from pioneer.sandbox import SandboxWorld
from pioneer.world import Content, TileType

WorldFactory = Callable[[PioneerConfig, "int | None"], SandboxWorld]

# Number of objective codes accepted as actions (0 = none)
N_ACTIONS = 10


def _generate(config: PioneerConfig, seed: int | None) -> SandboxWorld:
    return SandboxWorld.generate(config, seed)


class PioneerEnv(gym.Env):
    """
    Gymnasium environment running the Pioneer agent in a sandbox world.

    Attributes:
        config: Configuration for world, agent and episode length.
        world: Current SandboxWorld.
        bot: Current PioneerBot.
        step_count: Steps taken in the current episode.
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 4}

    def __init__(
        self,
        config: PioneerConfig | None = None,
        world_factory: WorldFactory | None = None,
        render_mode: str | None = None,
    ) -> None:
        """
        Initialize the environment.

        Args:
            config: Configuration. Defaults to PioneerConfig().
            world_factory: Callable (config, seed) → SandboxWorld. Defaults
                to random generation. Every world it builds must have the
                same size.
            render_mode: None or "ansi".
        """
        super().__init__()
        self.config = config or PioneerConfig()
        self.world_factory = world_factory or _generate
        self.render_mode = render_mode

        self.world, self.bot = self._build(self.config.seed)
        self.step_count = 0
        self._prev_score = 0.0

        n = self.world.size
        n_contents = len(Content)
        self.observation_space = spaces.Dict(
            {
                "tiles": spaces.Box(low=-1, high=len(TileType) - 1, shape=(n, n), dtype=np.int8),
                "contents": spaces.Box(low=-1, high=n_contents - 1, shape=(n, n), dtype=np.int8),
                "position": spaces.Box(low=0, high=n - 1, shape=(2,), dtype=np.int64),
                "energy": spaces.Box(
                    low=0, high=self.config.max_energy, shape=(1,), dtype=np.int64
                ),
                "backpack": spaces.Box(
                    low=0, high=self.config.backpack_size, shape=(n_contents,), dtype=np.int64
                ),
            }
        )
        self.action_space = spaces.Discrete(N_ACTIONS)

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict | None = None,
    ) -> tuple[dict[str, np.ndarray], dict[str, Any]]:
        """
        Build a fresh world and bot.

        Args:
            seed: Seed for the world and the bot. Falls back to config.seed.
            options: Unused, accepted for API compliance.

        Returns:
            Tuple of (observation, info).
        """
        super().reset(seed=seed)
        self.world, self.bot = self._build(seed if seed is not None else self.config.seed)
        self.step_count = 0
        self._prev_score = self.world.score()
        return self._get_observation(), self._get_info()

    def step(
        self, action: int
    ) -> tuple[dict[str, np.ndarray], float, bool, bool, dict[str, Any]]:
        """
        Advance the world by one tick and let the bot act.

        Args:
            action: Objective code (0 = no override).

        Returns:
            Tuple of (observation, reward, terminated, truncated, info).
        """
        code = int(action)
        if code != 0:
            self.bot.request_objective(
                Objective.from_code(code, self.config.pilot_charge_level)
            )

        self.world.advance()
        self.bot.on_tick(self.world)
        self.step_count += 1

        score = self.world.score()
        reward = float(score - self._prev_score)
        self._prev_score = score

        terminated = not self.bot.is_running()
        truncated = self.step_count >= self.config.max_steps
        return self._get_observation(), reward, terminated, truncated, self._get_info()

    def render(self) -> str | None:
        """Known map as text when render_mode is "ansi"."""
        if self.render_mode != "ansi":
            return None
        position = self.world.position()
        lines = []
        for r, row in enumerate(self.world.known_map()):
            chars = []
            for c, tile in enumerate(row):
                if (r, c) == position:
                    chars.append("@")
                elif tile is None:
                    chars.append(" ")
                elif tile.content is not Content.NONE:
                    chars.append(tile.content.name[0])
                else:
                    chars.append(str(int(tile.tile_type)))
            lines.append("".join(chars))
        return "\n".join(lines)

    def close(self) -> None:
        if self.bot.pilot is not None:
            self.bot.pilot.close()
            self.bot.pilot = None

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _build(self, seed: int | None) -> tuple[SandboxWorld, PioneerBot]:
        config = dataclasses.replace(self.config, seed=seed)
        world = self.world_factory(config, seed)
        bot = PioneerBot(config)
        world.subscribe(bot.on_event)
        world.ready()
        return world, bot

    def _get_observation(self) -> dict[str, np.ndarray]:
        n = self.world.size
        tiles = np.full((n, n), -1, dtype=np.int8)
        contents = np.full((n, n), -1, dtype=np.int8)
        for r, row in enumerate(self.world.known_map()):
            for c, tile in enumerate(row):
                if tile is not None:
                    tiles[r, c] = int(tile.tile_type)
                    contents[r, c] = int(tile.content)

        backpack = self.world.backpack()
        counts = np.zeros(len(Content), dtype=np.int64)
        for content, quantity in backpack.contents.items():
            counts[int(content)] = quantity

        return {
            "tiles": tiles,
            "contents": contents,
            "position": np.array(self.world.position(), dtype=np.int64),
            "energy": np.array([self.world.energy_level()], dtype=np.int64),
            "backpack": counts,
        }

    def _get_info(self) -> dict[str, Any]:
        return {
            "step": self.step_count,
            "position": self.world.position(),
            "energy": self.world.energy_level(),
            "score": self.world.score(),
            "objective": str(self.bot.objective),
            "next": str(self.bot.next),
            "coverage": exploration_coverage(self.world.known_map()),
            "day": self.world.day,
            "hour": self.world.hour,
        }


# =============================================================================
# ENVIRONMENT FACTORY
# =============================================================================


def make_env(
    config: PioneerConfig | None = None,
    rank: int = 0,
    seed: int = 0,
) -> Callable[[], gym.Env]:
    """
    Factory for vectorized setups (gymnasium.vector.SyncVectorEnv).

    Args:
        config: Configuration. If None, uses defaults.
        rank: Environment index for unique seeding.
        seed: Base seed (actual seed = seed + rank).

    Returns:
        Callable that builds and resets a PioneerEnv.
    """

    def _init() -> gym.Env:
        env = PioneerEnv(config=config)
        env.reset(seed=seed + rank)
        return env

    return _init
