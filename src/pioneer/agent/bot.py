"""
Objective state machine for the Pioneer agent.

PioneerBot is the decision core. The embedding harness owns the world and the
loop; it calls ``on_tick(world)`` once per simulation tick, forwards every
world event to ``on_event(event)`` and stops when ``is_running()`` turns
False. The bot never schedules itself.

Architecture Role:
    PioneerBot combines all agent modules into one controller:

    ┌─────────────────────────────────────────────────────────────┐
    │ PioneerBot.on_tick(world)                                   │
    │   pilot attached, manual?  → ManualController.execute()     │
    │   otherwise:                                                │
    │     1. global overrides (night → Sleeping, low energy →     │
    │        ChargingTo)                                          │
    │     2. run the current objective's handler                  │
    │        Deciding   → Pilot / request_objective / Planner     │
    │        MovingTo   → DestinationWalker + Compass             │
    │        Exploring  → Spyglass + least-explored locator       │
    │        Gathering  → face_target + collect_all               │
    │        Selling / Depositing → face_target + World.put       │
    └─────────────────────────────────────────────────────────────┘

Objective Slots:
    ``objective`` is executed every tick; ``next`` is the queued objective
    resumed when the current one completes ("popping" moves next into
    current and resets next to Idle). Both start as Idle, so the first tick
    switches to Deciding.

Failure Policy:
    Transient world errors (CannotWalk, MustDestroyContentFirst,
    NotEnoughContentProvided, NotEnoughEnergy, NotEnoughSpace) are recovered
    inside the handler that triggered them, usually by queuing a corrective
    objective. Compass errors end the MovingTo objective. A pilot that times
    out or fails is dropped and reconnected later. Any other error
    propagates to the harness.

Dependencies:
    - numpy: The bot's random generator (pickups, scans, detours, ties)
    - pioneer.agent: Planner, walker, manager, scanner, locator, pilot
    - pioneer.tools: Compass, Spyglass, mapper, forecast, collect_all
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from pioneer.agent.controller import ManualController
from pioneer.agent.locator import CoverageGoal
from pioneer.agent.manager import ResourceManager
from pioneer.agent.navigator import BridgeOutcome, DestinationWalker
from pioneer.agent.objective import Objective, ObjectiveKind
from pioneer.agent.pilot import Pilot, PilotDisconnected
from pioneer.agent.planner import Planner
from pioneer.agent.scanner import face_target, look_ahead
from pioneer.config import PioneerConfig
from pioneer.tools import (
    Forecast,
    MoveError,
    MoveErrorKind,
    ResourceMapper,
    ResourceNotFound,
    ScanStatus,
    Spyglass,
    collect_all,
)
from pioneer.world import (
    CannotWalk,
    Content,
    Coord,
    DayTime,
    Direction,
    Event,
    EventKind,
    KnownMap,
    MustDestroyContentFirst,
    NotEnoughEnergy,
    NotEnoughSpace,
    Tile,
    World,
    WorldError,
    describe,
)

PilotFactory = Callable[[PioneerConfig], "Pilot | None"]
TerminationPredicate = Callable[[KnownMap, "set[Coord]"], bool]

# Loose resources picked up on the way while moving
_LOOSE = (Content.ROCK, Content.TREE, Content.FISH, Content.COIN)

# Contents a tent may replace when pitched
_TENT_REPLACEABLE = (Content.NONE, Content.TREE, Content.ROCK, Content.COIN, Content.FISH)


def _tent_spot(tile: Tile) -> bool:
    return (
        tile.content in _TENT_REPLACEABLE
        and tile.tile_type.can_hold(Content.TENT)
        and tile.tile_type.walkable
    )


def _never(tile: Tile) -> bool:
    return False


# =============================================================================
# PIONEER BOT
# =============================================================================


class PioneerBot:
    """
    Tick-driven objective state machine.

    Attributes:
        config: Policy constants.
        objective: Current objective.
        next: Queued objective.
        pins: Coordinates already visited as "new location" goals.
        depleted: Coordinates of markets and banks seen refusing more trade.
        walker: Destination walker (owns the compass and position history).
        mapper: Resource lookups over the known map.
        forecast: Weather forecaster fed by time events.
        manager: Backpack valuation.
        planner: Autonomous planner used by Deciding.
        controller: Manual pilot command executor.
        pilot: Connected remote pilot, or None.
        running: False once the world has terminated (or the termination
            predicate fired).
        score: Score observed at the end of the last tick.
        ticks: Ticks processed.
        rng: Random generator for all stochastic choices.
    """

    def __init__(
        self,
        config: PioneerConfig | None = None,
        pilot_factory: PilotFactory | None = None,
        termination: TerminationPredicate | None = None,
    ) -> None:
        """
        Initialize the bot.

        Args:
            config: Policy constants. Defaults to PioneerConfig().
            pilot_factory: Callable returning a connected Pilot or None. When
                omitted, ``Pilot.connect`` is used if ``config.pilot_enabled``.
            termination: Predicate over (known map, depleted set) that stops
                the bot. When omitted, a CoverageGoal is used if
                ``config.termination_coverage`` is set.
        """
        self.config = config or PioneerConfig()

        # Objective slots
        self.objective = Objective.idle()
        self.next = Objective.idle()

        # Marked coordinates (grow monotonically)
        self.pins: set[Coord] = set()
        self.depleted: set[Coord] = set()

        # Collaborators
        self.walker = DestinationWalker(self.config)
        self.mapper = ResourceMapper()
        self.forecast = Forecast()
        self.manager = ResourceManager(self.config)
        self.planner = Planner(self.manager, self.mapper, self.forecast)
        self.controller = ManualController(self.config, self.manager)

        # Remote pilot
        self.pilot: Pilot | None = None
        if pilot_factory is None and self.config.pilot_enabled:
            pilot_factory = Pilot.connect
        self.pilot_factory = pilot_factory

        # Optional termination predicate
        if termination is None and self.config.termination_coverage is not None:
            termination = CoverageGoal(self.config.termination_coverage)
        self.termination = termination

        self.running = True
        self.score = 0.0
        self.ticks = 0
        self.rng = np.random.default_rng(self.config.seed)
        self._requested: Objective | None = None

        self._handlers: dict[ObjectiveKind, Callable[[World], None]] = {
            ObjectiveKind.DECIDING: self._deciding,
            ObjectiveKind.WAITING_UNTIL: self._waiting_until,
            ObjectiveKind.MOVING_TO: self._moving_to,
            ObjectiveKind.CHARGING_TO: self._charging_to,
            ObjectiveKind.SLEEPING: self._sleeping,
            ObjectiveKind.GATHERING: self._gathering,
            ObjectiveKind.SELLING: self._selling,
            ObjectiveKind.DEPOSITING: self._depositing,
            ObjectiveKind.EXPLORING: self._exploring,
            ObjectiveKind.IDLE: self._idle,
        }

    # =========================================================================
    # HARNESS INTERFACE
    # =========================================================================

    def on_tick(self, world: World) -> None:
        """Process one simulation tick."""
        if not self.running:
            return
        self.ticks += 1

        self._reconnect_pilot()
        if self.pilot is not None and self.pilot.is_manual:
            self._manual_tick(world)
        else:
            self._apply_overrides(world)
            self._handlers[self.objective.kind](world)

        self.score = world.score()

        if self.termination is not None and self.termination(world.known_map(), self.depleted):
            self._log("exploration complete, stopping")
            self.running = False

    def on_event(self, event: Event) -> None:
        """Handle a notification from the world."""
        kind = event.kind
        if kind is EventKind.READY:
            if event.coord is not None:
                self.walker.record(event.coord)
        elif kind is EventKind.TERMINATED:
            self.running = False
        elif kind is EventKind.TIME_CHANGED:
            self.forecast.process_event(event)
        elif kind is EventKind.DAY_CHANGED:
            self.forecast.process_event(event)
            self._log(f"score: {self.score}")
            if self.pilot is not None:
                try:
                    self.pilot.put_score(self.score)
                except PilotDisconnected as e:
                    self._drop_pilot(e)
        elif kind is EventKind.MOVED:
            if event.coord is not None:
                self.walker.record(event.coord)
                self._log(f"-> moved to {event.coord}")
        elif kind is EventKind.ADDED_TO_BACKPACK and event.content is not None:
            self._log(f"-> {event.amount} {describe(event.content)} added to backpack")
        elif kind is EventKind.REMOVED_FROM_BACKPACK and event.content is not None:
            self._log(f"-> {event.amount} {describe(event.content)} removed from backpack")

    def is_running(self) -> bool:
        return self.running

    def request_objective(self, objective: Objective) -> None:
        """
        Queue an operator choice for the next Deciding tick.

        It is adopted exactly like a pilot's choice; IDLE means no override.
        """
        self._requested = None if objective.kind is ObjectiveKind.IDLE else objective

    # =========================================================================
    # OBJECTIVE SLOTS
    # =========================================================================

    def _set_objective(self, objective: Objective) -> None:
        if objective != self.objective:
            self._log(f"new objective: {objective}")
        self.objective = objective

    def _pop_next(self) -> None:
        objective, self.next = self.next, Objective.idle()
        self._set_objective(objective)

    def _apply_overrides(self, world: World) -> None:
        if world.conditions().time_of_day is DayTime.NIGHT:
            if (
                self.objective.kind not in (ObjectiveKind.SLEEPING, ObjectiveKind.WAITING_UNTIL)
                and self.next.kind is not ObjectiveKind.SLEEPING
            ):
                self._log("-> time to sleep!")
                self._set_objective(Objective.sleeping())
        elif self.manager.needs_charge(world.energy_level(), self.objective, self.next):
            self._log(f"energy low ({world.energy_level()}/{self.config.max_energy})")
            self.next = self.objective
            self._set_objective(Objective.charging_to(self.config.charge_level))

    # =========================================================================
    # REMOTE PILOT
    # =========================================================================

    def _reconnect_pilot(self) -> None:
        if self.pilot is not None or self.pilot_factory is None:
            return
        if (self.ticks - 1) % self.config.pilot_retry_ticks != 0:
            return
        try:
            self.pilot = self.pilot_factory(self.config)
        except PilotDisconnected as e:
            self._log(f"Pilot: {e}")
            self.pilot = None

    def _drop_pilot(self, reason: Exception | str) -> None:
        self._log(f"Pilot disconnected ({reason}), continuing on autopilot")
        if self.pilot is not None:
            self.pilot.close()
        self.pilot = None

    def _manual_tick(self, world: World) -> None:
        assert self.pilot is not None
        self._log(f"energy: {world.energy_level()}/{self.config.max_energy}")
        try:
            code = self.pilot.get_action()
        except PilotDisconnected as e:
            self._drop_pilot(e)
            return
        if not self.controller.execute(world, code):
            self._drop_pilot("disconnect requested")

    # =========================================================================
    # DECIDING
    # =========================================================================

    def _deciding(self, world: World) -> None:
        self.walker.clear_destination()
        if world.backpack().get(Content.TENT) == 0:
            self._retrieve_tent(world)

        choice = Objective.idle()
        if self._requested is not None:
            choice, self._requested = self._requested, None
        elif self.pilot is not None:
            self._log("decide what to do now:")
            try:
                choice = self.pilot.get_objective(self.config.pilot_charge_level)
            except PilotDisconnected as e:
                self._drop_pilot(e)

        if choice.kind is not ObjectiveKind.IDLE:
            self.next = Objective.idle()
            self._set_objective(choice)
            return

        decision = self.planner.decide(world, self.rng)
        self._log(decision.reason)
        if decision.destination is not None:
            self.walker.set_destination(decision.destination)
        if decision.next is not None:
            self.next = decision.next
        self._set_objective(decision.objective)

    def _retrieve_tent(self, world: World) -> None:
        direction = face_target(world, lambda tile: tile.content is Content.TENT)
        if direction is None:
            return
        try:
            world.destroy(direction)
        except WorldError as e:
            self._log(f"could not retrieve the tent ({type(e).__name__})")
            return
        self._log("tent retrieved")

    # =========================================================================
    # RESTING
    # =========================================================================

    def _waiting_until(self, world: World) -> None:
        now = world.conditions().time_of_day
        if now is self.objective.time:
            self._log("-> time to wake up!" if now is DayTime.MORNING else "-> finished waiting")
            self._pop_next()

    def _charging_to(self, world: World) -> None:
        if world.energy_level() >= self.objective.level:
            self._pop_next()

    def _sleeping(self, world: World) -> None:
        if not self._place_tent(world):
            self._log("couldn't place the tent")
            return
        self.next = Objective.deciding()
        if world.conditions().time_of_day is DayTime.MORNING:
            self._set_objective(Objective.waiting_until(DayTime.NIGHT))
        else:
            self._set_objective(Objective.waiting_until(DayTime.MORNING))

    def _place_tent(self, world: World) -> bool:
        """
        Pitch a tent next to the agent and step into it.

        Returns:
            True if the agent can sleep now (tent pitched, or no tent could
            be crafted and it sleeps in place). False if it has to walk to
            a spot first; the objectives are then already set up for it.
        """
        if world.backpack().get(Content.TENT) == 0:
            try:
                world.craft(Content.TENT)
            except WorldError:
                self._log("need materials to craft a new tent, I'll just sleep here")
                return True
            self._log("new tent crafted")

        direction = face_target(world, _tent_spot)
        if direction is not None:
            try:
                world.put(Content.TENT, 1, direction)
            except MustDestroyContentFirst:
                try:
                    world.destroy(direction)
                    world.put(Content.TENT, 1, direction)
                except WorldError as e:
                    self._log(f"cannot clear the tent spot ({type(e).__name__})")
                    return False
            except WorldError as e:
                self._log(f"cannot pitch the tent ({type(e).__name__})")
                return False
            try:
                world.move(direction)
            except WorldError as e:
                self._log(f"cannot get into the tent ({type(e).__name__})")
            return True

        position = world.position()
        result = Spyglass(
            position,
            self.config.shelter_scan_radius,
            len(world.known_map()),
            stop_when=_tent_spot,
        ).scan(world)
        if result.status is ScanStatus.STOPPED:
            for _, coord in result.matches:
                if max(abs(coord[0] - position[0]), abs(coord[1] - position[1])) > 1:
                    self._log(f"found a spot for the tent at {coord}")
                    self.walker.set_destination(coord)
                    self.next = Objective.sleeping()
                    self._set_objective(Objective.moving_to(False))
                    return False
        self._log("I'll just sleep here")
        return True

    # =========================================================================
    # MOVING
    # =========================================================================

    def _moving_to(self, world: World) -> None:
        if self.walker.destination is None:
            target = self.walker.set_random_destination(world, self.rng)
            self._log(f"no destination, heading for unexplored ground at {target}")

        # Opportunistic pickup
        if self.rng.random() < self.config.pickup_chance and world.backpack().free > 0:
            direction = face_target(
                world, lambda tile: tile.content in _LOOSE, move_allowed=False
            )
            if direction is not None:
                try:
                    world.destroy(direction)
                    self._log("picked up some supplies while moving")
                except WorldError as e:
                    self._log(f"could not pick up ({type(e).__name__})")

        # Short scan to give the compass more map
        if self.rng.random() < self.config.move_scan_chance:
            Spyglass(
                world.position(),
                self.config.move_scan_radius,
                len(world.known_map()),
                energy_budget=world.energy_level() // 5,
                stop_when=_never,
            ).scan(world)

        if self.next.kind is not ObjectiveKind.GATHERING and self.walker.is_stuck():
            self._log("going back and forth, backtracking")
            self.walker.backtrack(world)
            return

        try:
            direction = self.walker.next_step(world)
        except MoveError as e:
            self._log(f"destination is {e.kind.value}")
            if e.kind is MoveErrorKind.ALREADY_AT_DESTINATION and self.objective.discover:
                self.pins.add(world.position())
            self.walker.clear_destination()
            self._pop_next()
            return

        if (
            self.walker.revisits(direction.apply(world.position()))
            and self.rng.random() < self.config.detour_chance
        ):
            self._log("following my heart and not my compass")
            self.walker.detour(world, self.rng)
            return

        try:
            world.move(direction)
        except CannotWalk:
            self._log(f"can't go {describe(direction)} from here")
            self._blocked(world, direction)
        except NotEnoughEnergy:
            self._log(f"out of energy ({world.energy_level()}/{self.config.max_energy})")
            # A queued objective outranks resuming the walk
            if self.next.kind is ObjectiveKind.IDLE:
                self.next = self.objective
            else:
                self.walker.clear_destination()
            self._set_objective(Objective.charging_to(self.config.charge_level))

    def _blocked(self, world: World, direction: Direction) -> None:
        if self.next.kind is ObjectiveKind.GATHERING and self.next.content is not None:
            kind = self.next.content
            facing = face_target(world, lambda tile: tile.content is kind)
            if facing is None:
                self._build_bridge(world, direction, kind)
                return
            self._log(f"{describe(kind)} is reachable {describe(facing)} from here")
            try:
                world.destroy(facing)
            except WorldError as e:
                self._log(f"could not collect it ({type(e).__name__})")
            self.walker.clear_destination()
            if self.objective.discover:
                self.pins.add(world.position())
            self._pop_next()
            return

        # Going to a coordinate that cannot be entered (a town): count it as reached
        destination = self.walker.destination
        if destination is not None and self.objective.discover:
            self.pins.add(destination)
        self.walker.clear_destination()
        self._pop_next()

    def _build_bridge(self, world: World, direction: Direction, kind: Content) -> None:
        self._log(f"building a road to the {describe(kind)}..")
        outcome = self.walker.bridge(world, direction)
        if outcome is BridgeOutcome.BUILT:
            self._log("road built")
        elif outcome is BridgeOutcome.NEED_CHARGE:
            self._log(f"too low on energy ({world.energy_level()}/{self.config.max_energy})")
            self._set_objective(Objective.charging_to(self.config.bridge_charge_level))
        elif outcome is BridgeOutcome.NEED_FILLER:
            self._log("not enough rocks right now")
            self.walker.clear_destination()
            self.next = Objective.gathering(Content.ROCK)
            self._set_objective(Objective.exploring())
        elif outcome is BridgeOutcome.UNREACHABLE:
            self._log(f"can't reach that {describe(kind)} right now")
            self.walker.clear_destination()
            self._set_objective(Objective.deciding())
        else:
            self._log(f"can't reach that {describe(kind)} right now")
            self.walker.clear_destination()
            self.next = Objective.idle()
            self._set_objective(Objective.deciding())

    # =========================================================================
    # ECONOMY
    # =========================================================================

    def _gathering(self, world: World) -> None:
        kind = self.objective.content or Content.NONE
        direction = face_target(world, lambda tile: tile.content is kind)
        if direction is not None:
            try:
                world.destroy(direction)
            except WorldError as e:
                self._log(f"could not collect {describe(kind)} ({type(e).__name__})")

        collect_all(world, self.walker.compass, kind, self.config.gather_radius)

        backpack = world.backpack()
        tomorrow = self.planner.tomorrow()
        storm = tomorrow is not None and tomorrow.hazardous
        if not self.manager.is_full(backpack) and not storm:
            try:
                coord = self.mapper.find_closest(world.known_map(), world.position(), kind)
            except ResourceNotFound:
                self._log(f"no {describe(kind)} found in the vicinity, need to explore")
                self._set_objective(Objective.exploring())
            else:
                self._log(f"found more {describe(kind)} at {coord}")
                self.walker.set_destination(coord)
                self._set_objective(Objective.moving_to(False))
            self.next = Objective.gathering(kind)
        else:
            self._log("backpack too full, selling instead")
            self._set_objective(Objective.selling(self.manager.content_to_sell(backpack)))
            self.next = Objective.idle()

    def _selling(self, world: World) -> None:
        kind = self.objective.content or Content.NONE
        self._trade(world, Content.MARKET, kind, self.objective)

    def _depositing(self, world: World) -> None:
        self._trade(world, Content.BANK, Content.COIN, self.objective)

    def _trade(self, world: World, structure: Content, content: Content, resume: Objective) -> None:
        """
        Hand ``content`` over to an adjacent ``structure``, or go find one.

        A structure that accepts only part of the quantity is tagged as
        depleted and the objective stays active to look for another one.
        """
        facing = face_target(
            world,
            lambda tile: tile.content is structure and tile.amount > 0,
            exclude=self.depleted,
        )
        if facing is None:
            try:
                coord = self.mapper.find_closest(
                    world.known_map(), world.position(), structure, exclude=self.depleted
                )
            except ResourceNotFound:
                self._log(f"no {describe(structure)} found")
                self.next = resume
                self._set_objective(Objective.exploring())
            else:
                self.walker.set_destination(coord)
                self.next = resume
                self._set_objective(Objective.moving_to(True))
            return

        quantity = world.backpack().get(content)
        if quantity == 0:
            self._pop_next()
            return

        faced = look_ahead(world.position(), facing)
        try:
            placed = world.put(content, quantity, facing)
        except NotEnoughSpace:
            self._log("no room for the coins, going to the bank first")
            self.next = resume
            self._set_objective(Objective.depositing())
            return

        if placed < quantity:
            self._log(f"the {describe(structure)} at {faced} took only {placed}/{quantity}")
            self.depleted.add(faced)
            return
        self._pop_next()

    # =========================================================================
    # EXPLORING / IDLE
    # =========================================================================

    def _exploring(self, world: World) -> None:
        known = world.known_map()
        size = len(known)

        if self.next.kind is ObjectiveKind.GATHERING and self.next.content is not None:
            kind = self.next.content
            mark_visited = False
            exclude: set[Coord] = set()

            def stop_when(tile: Tile) -> bool:
                return tile.content is kind
        else:
            mark_visited = True
            exclude = self.pins

            def stop_when(tile: Tile) -> bool:
                return tile.content.shelter

        result = Spyglass(
            world.position(),
            size // 2,
            size,
            energy_budget=int(world.energy_level() * self.config.explore_energy_fraction),
            stop_when=stop_when,
            exclude=exclude,
        ).scan(world)

        if result.status is ScanStatus.STOPPED:
            tile, coord = result.matches[0]
            self._log(f"{describe(tile.content)} found at {coord}")
            self.walker.set_destination(coord)
            self._set_objective(Objective.moving_to(mark_visited))
            return

        target = self.walker.set_random_destination(world, self.rng)
        self._log(f"nothing found with the spyglass, heading for {target}")
        self._set_objective(Objective.moving_to(False))

    def _idle(self, world: World) -> None:
        if self.next.kind is ObjectiveKind.IDLE:
            self._set_objective(Objective.deciding())
        else:
            self._pop_next()

    # =========================================================================
    # LOGGING
    # =========================================================================

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(f"[pioneer] {message}")
