"""
Shared pytest fixtures for the Pioneer test suite.

This module provides common test fixtures used across all test modules,
including deterministic configurations, ASCII-layout sandbox worlds and an
in-memory pilot transport.

Fixtures:
    default_config: Default PioneerConfig instance
    test_config: Quiet, seeded PioneerConfig with the random side-trips off
    make_world: Factory building a SandboxWorld from ASCII rows
    make_bot: Factory building a PioneerBot subscribed to a world
    open_world: 5x5 grass world with the agent in the centre
"""

import struct

import pytest

from pioneer.config import PioneerConfig
from pioneer.sandbox import SandboxWorld

# =============================================================================
# PILOT TRANSPORT FAKE
# =============================================================================


class FakeTransport:
    """
    In-memory stand-in for a serial port.

    Bytes queued in ``incoming`` are returned one read at a time; an empty
    queue behaves like a read timeout. Everything written is kept in
    ``written``. ``reset_input_buffer`` only counts calls so that tests can
    queue several commands up front.
    """

    def __init__(self, incoming: bytes = b"", fail_writes: bool = False) -> None:
        self.incoming = bytearray(incoming)
        self.written: list[bytes] = []
        self.resets = 0
        self.closed = False
        self.fail_writes = fail_writes

    def read(self, size: int = 1) -> bytes:
        data = bytes(self.incoming[:size])
        del self.incoming[:size]
        return data

    def write(self, data: bytes) -> int:
        if self.fail_writes:
            raise OSError("device unplugged")
        self.written.append(bytes(data))
        return len(data)

    def reset_input_buffer(self) -> None:
        self.resets += 1

    def close(self) -> None:
        self.closed = True

    def floats(self) -> list[float]:
        """Every 4-byte write decoded as a little-endian float32."""
        return [struct.unpack("<f", data)[0] for data in self.written if len(data) == 4]


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================


@pytest.fixture
def default_config() -> PioneerConfig:
    """
    Create a default PioneerConfig instance for testing.

    Example:
        >>> def test_config_values(default_config):
        ...     assert default_config.low_energy_threshold == 150
    """
    return PioneerConfig()


@pytest.fixture
def test_config() -> PioneerConfig:
    """
    Create a quiet, deterministic PioneerConfig.

    Returns:
        PioneerConfig with:
        - verbose: False (no console output)
        - seed: 0
        - pickup/move-scan/detour chances: 0 (no random side-trips)
    """
    return PioneerConfig(
        verbose=False,
        seed=0,
        pickup_chance=0.0,
        move_scan_chance=0.0,
        detour_chance=0.0,
    )


# =============================================================================
# WORLD FIXTURES
# =============================================================================


@pytest.fixture
def make_world(test_config: PioneerConfig):
    """
    Factory building a SandboxWorld from ASCII rows.

    Keyword arguments are passed to SandboxWorld.from_layout; ``config``
    defaults to the test_config fixture.

    Example:
        >>> def test_tree(make_world):
        ...     world = make_world(["...", ".AT", "..."])
    """

    def _make(rows, **kwargs) -> SandboxWorld:
        kwargs.setdefault("config", test_config)
        return SandboxWorld.from_layout(rows, **kwargs)

    return _make


@pytest.fixture
def open_world(make_world) -> SandboxWorld:
    """5x5 grass world, agent at (2, 2), everything revealed."""
    world = make_world([".....", ".....", "..A..", ".....", "....."])
    world.reveal_all()
    return world


@pytest.fixture
def make_bot(test_config: PioneerConfig):
    """
    Factory building a PioneerBot wired to a world's events.

    The world announces READY, so the bot's position history starts with
    the agent's position.
    """
    from pioneer.agent.bot import PioneerBot

    def _make(world: SandboxWorld, config: PioneerConfig | None = None, **kwargs) -> PioneerBot:
        bot = PioneerBot(config or test_config, **kwargs)
        world.subscribe(bot.on_event)
        world.ready()
        return bot

    return _make


# =============================================================================
# PILOT FIXTURES
# =============================================================================


@pytest.fixture
def make_transport():
    """
    Factory building a FakeTransport.

    Example:
        >>> def test_mode(make_transport):
        ...     transport = make_transport(bytes([1, 5]))
    """
    return FakeTransport
