"""
Manual pilot command controller for the Pioneer agent.

This module translates the single-byte commands of a manual pilot (arrow
buttons, "destroy", "place tent", ...) into world actions. It does not read
the device itself; the bot reads a code through agent/pilot.py and hands it
to ``ManualController.execute``.

Architecture Role:
    Pilot.get_action() → code → ManualController.execute() → World.move()/destroy()/put()

Command Codes:
    9=UP, 8=DOWN, 7=LEFT, 6=RIGHT, 5=DESTROY, 4=TENT, 3=SCAN, 2=SELL,
    1=DEPOSIT, -1=DISCONNECT. Anything else is ignored.

Failure Policy:
    A refused world action is reported and the command is dropped; the
    operator simply presses again. Only DISCONNECT ends manual control.
"""

from __future__ import annotations

from enum import IntEnum

from pioneer.agent.manager import ResourceManager
from pioneer.agent.scanner import face_target
from pioneer.config import PioneerConfig
from pioneer.tools import Spyglass
from pioneer.world import Content, Direction, World, WorldError, describe

# =============================================================================
# COMMAND CODES
# =============================================================================


class ManualAction(IntEnum):
    """Signed command codes sent by a manual pilot."""

    DISCONNECT = -1
    DEPOSIT = 1
    SELL = 2
    SCAN = 3
    TENT = 4
    DESTROY = 5
    RIGHT = 6
    LEFT = 7
    DOWN = 8
    UP = 9


_MOVES: dict[ManualAction, Direction] = {
    ManualAction.UP: Direction.UP,
    ManualAction.DOWN: Direction.DOWN,
    ManualAction.LEFT: Direction.LEFT,
    ManualAction.RIGHT: Direction.RIGHT,
}


# =============================================================================
# CONTROLLER
# =============================================================================


class ManualController:
    """
    Executes manual pilot commands against the world.

    Attributes:
        manager: Picks the content sold by SELL.
        scan_radius: Radius of the SCAN command.
    """

    __slots__ = ("manager", "scan_radius")

    def __init__(self, config: PioneerConfig, manager: ResourceManager) -> None:
        self.manager = manager
        self.scan_radius = config.manual_scan_radius

    def execute(self, world: World, code: int) -> bool:
        """
        Run one command.

        Args:
            world: World to act in.
            code: Signed command byte.

        Returns:
            False if the pilot asked to disconnect, True otherwise.
        """
        try:
            action = ManualAction(code)
        except ValueError:
            return True

        if action is ManualAction.DISCONNECT:
            return False

        try:
            if action in _MOVES:
                world.move(_MOVES[action])
            elif action is ManualAction.DESTROY:
                self._destroy(world)
            elif action is ManualAction.TENT:
                self._place_tent(world)
            elif action is ManualAction.SCAN:
                Spyglass(world.position(), self.scan_radius, len(world.known_map())).scan(world)
            elif action is ManualAction.SELL:
                self._trade(world, Content.MARKET, self.manager.content_to_sell(world.backpack()))
            elif action is ManualAction.DEPOSIT:
                self._trade(world, Content.BANK, Content.COIN)
        except WorldError as e:
            print(f"Pilot: {describe(action)} failed ({type(e).__name__})")
        return True

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    @staticmethod
    def _destroy(world: World) -> None:
        direction = face_target(world, lambda tile: tile.content.destroyable, move_allowed=False)
        if direction is not None:
            world.destroy(direction)

    @staticmethod
    def _place_tent(world: World) -> None:
        direction = face_target(
            world,
            lambda tile: tile.tile_type.can_hold(Content.TENT),
            move_allowed=False,
        )
        if direction is None:
            return
        if world.backpack().get(Content.TENT) == 0:
            world.craft(Content.TENT)
        world.put(Content.TENT, 1, direction)

    @staticmethod
    def _trade(world: World, structure: Content, content: Content) -> None:
        direction = face_target(world, lambda tile: tile.content is structure, move_allowed=False)
        if direction is None:
            return
        quantity = world.backpack().get(content)
        if quantity > 0:
            world.put(content, quantity, direction)
