"""
Configuration dataclass for Pioneer.

This module provides the central configuration system for the Pioneer agent.
Every policy constant the decision core uses (energy thresholds, backpack
fractions, probabilities, radii), the sandbox world parameters and the remote
pilot settings live in a single PioneerConfig dataclass.

Key Features:
    - Type-safe configuration using Python dataclasses
    - Automatic validation of parameters in __post_init__
    - Easy construction from JSON/YAML dictionaries via from_dict()

Architecture Role:
    PioneerConfig is used by:
    - agent/bot.py: Global overrides and per-objective policy constants
    - agent/planner.py, agent/manager.py: Backpack thresholds and prices
    - agent/navigator.py: Stuck detection and bridge building limits
    - agent/pilot.py: Serial port settings and timeouts
    - sandbox.py, env.py: World generation and episode length

Example Usage:
    >>> config = PioneerConfig(world_size=48, seed=7)
    >>> config.low_energy_threshold
    150
    >>> config = PioneerConfig.from_dict({"verbose": False, "unknown": 1})

Dependencies:
    - dataclasses: For the dataclass decorator and field function
    - json/pyyaml: For loading configuration files (pyyaml optional)
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from pioneer.world import Content


@dataclass
class PioneerConfig:
    """
    Configuration for the Pioneer agent, its sandbox world and remote pilot.

    Attributes:
        max_energy (int): Upper bound of the agent's energy level.
        low_energy_threshold (int): Below this, the agent stops to charge.
        charge_level (int): Energy level to recover to after a low-energy stop.
        bridge_charge_level (int): Energy level to recover to when bridge
            building runs out of energy.
        pilot_charge_level (int): Energy level requested by the pilot's
            "charge" objective.

        full_backpack_fraction (float): Backpack load at which the agent sells.
        low_backpack_fraction (float): Backpack load at or below which it gathers.
        gather_policy (str): "least" gathers the least-held resource,
            "most" the most-held one.
        prices (dict[Content, int]): Market price per unit.

        recent_positions (int): Capacity of the stuck-detection history.
        pickup_chance (float): Chance per tick of grabbing adjacent loose
            resources while moving.
        move_scan_chance (float): Chance per tick of a short area scan while moving.
        detour_chance (float): Chance of walking blindly when the pathfinder
            proposes a recently visited tile.
        detour_max_steps (int): Longest blind walk.
        bridge_max_attempts (int): Upper bound on put/destroy attempts per bridge.

        gather_radius (int): Radius of the collect-everything sweep.
        move_scan_radius (int): Radius of the opportunistic scan while moving.
        shelter_scan_radius (int): Radius searched for a tent spot.
        manual_scan_radius (int): Radius of the manual pilot's scan.
        explore_energy_fraction (float): Share of current energy the explore
            scan may spend.

        world_size (int): Side length of the generated sandbox world.
        backpack_size (int): Backpack capacity in the sandbox.
        seed (int | None): Seed for world generation and agent randomness.
        recharge_rate (int): Energy recovered per tick in the sandbox.
        hours_per_tick (int): Sandbox clock advance per tick.

        pilot_enabled (bool): Look for a remote pilot on a serial port.
        pilot_port (str | None): Serial port to use; None = first USB port.
        pilot_baudrate (int): Serial baud rate.
        pilot_timeout (float): Read timeout in seconds.
        pilot_handshake_attempts (int): Reads attempted during the handshake.
        pilot_retry_ticks (int): Ticks between reconnection attempts.

        tick_interval (float): Seconds slept between ticks by the CLI loop.
        max_steps (int): Episode length for the gym environment.
        termination_coverage (float | None): Enables the exploration-complete
            termination predicate when set.
        verbose (bool): Print progress messages to the console.
    """

    # =============================================================================
    # ENERGY POLICY
    # =============================================================================

    # Energy is bounded to [0, max_energy]
    max_energy: int = 1000

    # Below this level the agent queues its objective and charges
    low_energy_threshold: int = 150

    # Level recovered before resuming the queued objective
    charge_level: int = 250

    # Bridge building runs out of energy often, recover a little more
    bridge_charge_level: int = 300

    # The pilot's "charge" button asks for a nearly full battery
    pilot_charge_level: int = 750

    # =============================================================================
    # ECONOMY POLICY
    # =============================================================================

    # At or above this load the agent sells or deposits
    full_backpack_fraction: float = 0.8

    # At or below this load the agent gathers more resources
    low_backpack_fraction: float = 0.5

    # "least": top up the resource held the least, "most": keep farming the
    # resource held the most
    gather_policy: str = "least"

    # Coins earned per unit sold at a market
    prices: dict[Content, int] = field(
        default_factory=lambda: {
            Content.ROCK: 1,
            Content.TREE: 2,
            Content.FISH: 3,
            Content.COIN: 3,
        }
    )

    # =============================================================================
    # MOVEMENT POLICY
    # =============================================================================

    # Positions remembered for oscillation detection and backtracking
    recent_positions: int = 8

    # Probabilities rolled each tick while moving
    pickup_chance: float = 0.25
    move_scan_chance: float = 0.1
    detour_chance: float = 1 / 3

    # Blind walks take between 1 and detour_max_steps steps
    detour_max_steps: int = 4

    # Each attempt either places more rocks or clears an obstruction
    bridge_max_attempts: int = 16

    # =============================================================================
    # SCAN RADII
    # =============================================================================

    gather_radius: int = 5
    move_scan_radius: int = 5
    shelter_scan_radius: int = 20
    manual_scan_radius: int = 10

    # The explore scan may burn at most this share of the current energy
    explore_energy_fraction: float = 0.5

    # =============================================================================
    # SANDBOX WORLD
    # =============================================================================

    world_size: int = 64
    backpack_size: int = 20
    seed: int | None = None
    recharge_rate: int = 20
    hours_per_tick: int = 1

    # =============================================================================
    # REMOTE PILOT
    # =============================================================================

    pilot_enabled: bool = False
    pilot_port: str | None = None
    pilot_baudrate: int = 115_200

    # Every read on the serial port gives up after this many seconds, so a
    # disconnected pilot never stalls a tick for longer
    pilot_timeout: float = 5.0
    pilot_handshake_attempts: int = 3

    # Reconnection is attempted once every this many ticks
    pilot_retry_ticks: int = 10

    # =============================================================================
    # HARNESS
    # =============================================================================

    tick_interval: float = 1.0
    max_steps: int = 24 * 30
    termination_coverage: float | None = None
    verbose: bool = True

    def __post_init__(self) -> None:
        """
        Validate configuration after initialization.

        Raises:
            ValueError: If the energy thresholds are not ordered within
                [0, max_energy].
            ValueError: If the backpack fractions are not in (0, 1] with
                low < full.
            ValueError: If gather_policy is unknown.
            ValueError: If a probability lies outside [0, 1].
            ValueError: If recent_positions or detour_max_steps < 1.
            ValueError: If world_size < 4 or backpack_size < 1.
        """
        if not (0 <= self.low_energy_threshold < self.charge_level <= self.max_energy):
            raise ValueError(
                "energy thresholds must satisfy "
                "0 <= low_energy_threshold < charge_level <= max_energy, got "
                f"{self.low_energy_threshold}, {self.charge_level}, {self.max_energy}."
            )

        for name in ("bridge_charge_level", "pilot_charge_level"):
            value = getattr(self, name)
            if not (0 < value <= self.max_energy):
                raise ValueError(f"{name} must be in (0, {self.max_energy}], got {value}.")

        if not (0 < self.low_backpack_fraction < self.full_backpack_fraction <= 1):
            raise ValueError(
                "backpack fractions must satisfy 0 < low < full <= 1, got "
                f"low={self.low_backpack_fraction}, full={self.full_backpack_fraction}."
            )

        if self.gather_policy not in ("least", "most"):
            raise ValueError(
                f"gather_policy must be 'least' or 'most', got {self.gather_policy!r}."
            )

        for name in ("pickup_chance", "move_scan_chance", "detour_chance"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be a probability in [0, 1], got {value}.")

        if self.recent_positions < 1:
            raise ValueError(
                f"recent_positions must be >= 1, got {self.recent_positions}."
            )

        if self.detour_max_steps < 1:
            raise ValueError(
                f"detour_max_steps must be >= 1, got {self.detour_max_steps}."
            )

        if self.world_size < 4:
            raise ValueError(f"world_size must be >= 4, got {self.world_size}.")

        if self.backpack_size < 1:
            raise ValueError(f"backpack_size must be >= 1, got {self.backpack_size}.")

        if self.termination_coverage is not None and not (
            0.0 < self.termination_coverage <= 1.0
        ):
            raise ValueError(
                "termination_coverage must be in (0, 1] or None, got "
                f"{self.termination_coverage}."
            )

    @classmethod
    def from_dict(cls, d: dict) -> "PioneerConfig":
        """
        Create a PioneerConfig from a dictionary, ignoring unknown keys.

        Price tables may use content names as keys (``{"tree": 2}``), which
        is how they appear in JSON or YAML files.

        Args:
            d: Dictionary containing configuration values. Unknown keys are ignored.

        Returns:
            A new PioneerConfig instance with values from the dictionary.
            Missing keys use their default values.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in d.items() if k in valid_keys}

        if "prices" in filtered:
            filtered["prices"] = {
                key if isinstance(key, Content) else Content[str(key).upper()]: int(value)
                for key, value in filtered["prices"].items()
            }

        return cls(**filtered)

    @classmethod
    def from_file(cls, path: str | Path) -> "PioneerConfig":
        """
        Load a PioneerConfig from a JSON or YAML file.

        Args:
            path: ``.json``, ``.yaml`` or ``.yml`` file holding a mapping.

        Returns:
            A new PioneerConfig (see from_dict).

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ImportError: If a YAML file is given and PyYAML is not installed.
            ValueError: If the file does not hold a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            if path.suffix in (".yaml", ".yml"):
                try:
                    import yaml
                except ImportError:
                    raise ImportError(
                        "PyYAML is required for YAML config files. "
                        "Install it with: pip install pyyaml"
                    )
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}.")
        return cls.from_dict(data)
