"""
Autonomous planner for the Pioneer agent.

This module implements the decision the agent takes when it is Deciding and
no operator overrides it. It is NOT learned; it is a fixed priority list of
rules over the weather, the backpack and the known map.

Architecture Role:
    The planner sits at the top of the agent hierarchy. PioneerBot calls it
    from the Deciding objective, then applies the returned Decision to its
    two objective slots and the compass:

    PioneerBot (Deciding) → Planner.decide() → Decision → objective / next / destination

Priority Order:
    1. Hazardous weather now → Sleeping.
    2. Hazardous weather tomorrow → walk to the closest shelter (building,
       market, bank; else a tree to craft a tent from) and wait for the night.
    3. Backpack full → sell the most valuable resource, or deposit coins
       first if they outnumber it.
    4. Backpack low → gather the least-held (or most-held) resource.
    5. Otherwise → Exploring.

Routing:
    With a sunny forecast the agent can afford a longer trip and heads for
    the most loaded location; otherwise it heads for the closest one. A
    forecast the forecaster cannot give counts as benign weather.

Dependencies:
    - numpy: Random generator for gather tie-breaks
    - pioneer.tools: Resource lookups and the forecaster
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pioneer.agent.manager import ResourceManager
from pioneer.agent.objective import Objective
from pioneer.tools import Forecast, ForecastError, ResourceMapper, ResourceNotFound
from pioneer.world import Content, Coord, DayTime, WeatherType, World, describe

# Hours ahead the planner looks for the next day's weather
FORECAST_HORIZON = 24

# Shelter-like structures, in order of preference
SHELTERS: tuple[Content, ...] = (Content.BUILDING, Content.MARKET, Content.BANK)

# =============================================================================
# DECISION DATACLASS
# =============================================================================


@dataclass
class Decision:
    """
    Outcome of one planning step.

    Attributes:
        objective: New current objective.
        next: New queued objective, or None to leave the queue untouched.
        destination: Compass destination to set, or None for no destination.
        reason: Human-readable explanation for logging.
    """

    objective: Objective
    next: Objective | None = None
    destination: Coord | None = None
    reason: str = ""


# =============================================================================
# PLANNER
# =============================================================================


class Planner:
    """
    Rule-based strategic planner.

    Attributes:
        manager: Backpack valuation and thresholds.
        mapper: Resource lookups over the known map.
        forecast: Weather forecaster fed by the bot's events.
    """

    __slots__ = ("manager", "mapper", "forecast")

    def __init__(
        self,
        manager: ResourceManager,
        mapper: ResourceMapper,
        forecast: Forecast,
    ) -> None:
        self.manager = manager
        self.mapper = mapper
        self.forecast = forecast

    def tomorrow(self) -> WeatherType | None:
        """Forecast for the next day, or None when it is unknown."""
        try:
            return self.forecast.predict(FORECAST_HORIZON)
        except ForecastError:
            return None

    def decide(self, world: World, rng: np.random.Generator) -> Decision:
        """
        Pick the next objective by strict rule priority.

        Args:
            world: World to read weather, backpack and known map from.
            rng: Random generator for gather tie-breaks.

        Returns:
            Decision to apply to the state machine.
        """
        weather = world.conditions().weather
        tomorrow = self.tomorrow()
        backpack = world.backpack()

        # 1. The storm is already here
        if weather.hazardous:
            return Decision(
                Objective.sleeping(), reason=f"the weather today is {describe(weather)}"
            )

        # 2. The storm is coming tomorrow
        if tomorrow is not None and tomorrow.hazardous:
            return self._seek_shelter(world, tomorrow)

        # 3. Backpack full: cash in
        if self.manager.is_full(backpack):
            sellable = self.manager.content_to_sell(backpack)
            if self.manager.should_deposit(backpack, sellable):
                return self._route(
                    world, Content.BANK, Objective.depositing(), tomorrow, True,
                    reason="decided to deposit my coins",
                )
            return self._route(
                world, Content.MARKET, Objective.selling(sellable), tomorrow, True,
                reason=f"decided to sell some {describe(sellable)}",
            )

        # 4. Backpack low: gather more
        if self.manager.is_low(backpack):
            kind = self.manager.content_to_gather(backpack, rng)
            return self._route(
                world, kind, Objective.gathering(kind), tomorrow, False,
                reason=f"decided to gather some {describe(kind)}",
            )

        # 5. Nothing pressing
        return Decision(Objective.exploring(), reason="decided to explore")

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _seek_shelter(self, world: World, tomorrow: WeatherType) -> Decision:
        known = world.known_map()
        position = world.position()
        wait = Objective.waiting_until(DayTime.NIGHT)
        reason = f"the weather tomorrow is {describe(tomorrow)}, reaching shelter"

        for shelter in SHELTERS:
            try:
                coord = self.mapper.find_closest(known, position, shelter)
            except ResourceNotFound:
                continue
            return Decision(
                Objective.moving_to(True), wait, coord,
                reason=f"{reason} at a {describe(shelter)}",
            )

        # No structure known: head for wood to craft a tent from
        try:
            coord = self.mapper.find_closest(known, position, Content.TREE)
        except ResourceNotFound:
            return Decision(Objective.exploring(), wait, reason=f"{reason}, none known")
        return Decision(Objective.moving_to(False), wait, coord, reason=f"{reason} near a tree")

    def _route(
        self,
        world: World,
        target: Content,
        queued: Objective,
        tomorrow: WeatherType | None,
        discover: bool,
        reason: str,
    ) -> Decision:
        """Move to the best ``target`` location with ``queued`` as the next objective."""
        known = world.known_map()
        position = world.position()
        try:
            # Good weather: a longer trip to the most loaded location is affordable
            if tomorrow is WeatherType.SUNNY:
                coord = self.mapper.find_most_loaded(known, position, target)
            else:
                coord = self.mapper.find_closest(known, position, target)
        except ResourceNotFound:
            return Decision(
                Objective.exploring(), queued,
                reason=f"{reason}, but no {describe(target)} is known",
            )
        return Decision(Objective.moving_to(discover), queued, coord, reason=reason)
