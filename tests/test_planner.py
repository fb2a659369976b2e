"""Tests for the autonomous planner rules."""

import numpy as np
import pytest

from pioneer.agent.manager import ResourceManager
from pioneer.agent.objective import Objective, ObjectiveKind
from pioneer.agent.planner import Planner
from pioneer.tools import Forecast, ResourceMapper
from pioneer.world import Content, DayTime, Event, EventKind, WeatherType

MARKETS = [".....", ".M...", "..A..", ".....", "....M"]
MARKET_AMOUNTS = {(1, 1): 5, (4, 4): 30}


@pytest.fixture
def planner(test_config):
    return Planner(ResourceManager(test_config), ResourceMapper(), Forecast())


def observe(planner, world):
    """Feed the planner's forecaster the world's current conditions."""
    planner.forecast.process_event(Event(EventKind.TIME_CHANGED, conditions=world.conditions()))


def fill_backpack(world):
    """85% load: Tree=2, Rock=1, Coin=0, plus 14 bushes."""
    world.give(Content.TREE, 2)
    world.give(Content.ROCK, 1)
    world.give(Content.BUSH, 14)


class TestWeather:
    def test_storm_today_sleeps(self, planner, make_world):
        world = make_world(MARKETS, weather=[WeatherType.TROPICAL_MONSOON])
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.sleeping()

    def test_storm_tomorrow_seeks_building(self, planner, make_world):
        world = make_world(
            [".....", ".....", "..A..", ".....", "H...M"],
            weather=[WeatherType.SUNNY, WeatherType.TRENTINO_SNOW],
        )
        world.reveal_all()
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.moving_to(True)
        assert decision.next == Objective.waiting_until(DayTime.NIGHT)
        assert decision.destination == (4, 0)

    def test_storm_tomorrow_without_shelter_heads_for_tree(self, planner, make_world):
        world = make_world(
            [".....", ".....", "..A..", ".....", "...T."],
            weather=[WeatherType.SUNNY, WeatherType.TRENTINO_SNOW],
        )
        world.reveal_all()
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.moving_to(False)
        assert decision.destination == (4, 3)

    def test_storm_tomorrow_nothing_known_explores(self, planner, make_world):
        world = make_world(
            [".....", ".....", "..A..", ".....", "....."],
            weather=[WeatherType.SUNNY, WeatherType.TRENTINO_SNOW],
        )
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.exploring()
        assert decision.next == Objective.waiting_until(DayTime.NIGHT)


class TestFullBackpack:
    def test_sunny_sells_at_most_loaded_market(self, planner, make_world):
        world = make_world(MARKETS, amounts=MARKET_AMOUNTS, weather=[WeatherType.SUNNY])
        world.reveal_all()
        fill_backpack(world)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.moving_to(True)
        assert decision.next == Objective.selling(Content.TREE)
        assert decision.destination == (4, 4)

    def test_rainy_sells_at_closest_market(self, planner, make_world):
        world = make_world(
            MARKETS, amounts=MARKET_AMOUNTS, weather=[WeatherType.SUNNY, WeatherType.RAINY]
        )
        world.reveal_all()
        fill_backpack(world)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.next == Objective.selling(Content.TREE)
        assert decision.destination == (1, 1)

    def test_unknown_forecast_uses_closest(self, planner, make_world):
        world = make_world(MARKETS, amounts=MARKET_AMOUNTS)
        world.reveal_all()
        fill_backpack(world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.destination == (1, 1)

    def test_coins_first_go_to_bank(self, planner, make_world):
        world = make_world([".....", ".M...", "..A..", ".....", "....B"])
        world.reveal_all()
        world.give(Content.COIN, 10)
        world.give(Content.TREE, 2)
        world.give(Content.BUSH, 5)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.moving_to(True)
        assert decision.next == Objective.depositing()
        assert decision.destination == (4, 4)

    def test_no_market_known_explores(self, planner, make_world):
        world = make_world([".....", ".....", "..A..", ".....", "....."])
        fill_backpack(world)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.exploring()
        assert decision.next == Objective.selling(Content.TREE)


class TestGathering:
    def test_low_backpack_gathers_least_held(self, planner, make_world):
        world = make_world([".....", ".....", "..A..", ".....", "~~F~~"])
        world.reveal_all()
        world.give(Content.ROCK, 2)
        world.give(Content.TREE, 2)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective == Objective.moving_to(False)
        assert decision.next == Objective.gathering(Content.FISH)
        assert decision.destination == (4, 2)

    def test_unknown_resource_explores(self, planner, make_world):
        world = make_world([".....", ".....", "..A..", ".....", "....."])
        world.give(Content.ROCK, 2)
        world.give(Content.TREE, 2)
        observe(planner, world)

        decision = planner.decide(world, np.random.default_rng(0))

        assert decision.objective.kind is ObjectiveKind.EXPLORING
        assert decision.next == Objective.gathering(Content.FISH)


def test_medium_backpack_explores(planner, make_world):
    world = make_world(MARKETS, amounts=MARKET_AMOUNTS)
    world.give(Content.BUSH, 12)
    observe(planner, world)

    decision = planner.decide(world, np.random.default_rng(0))

    assert decision.objective == Objective.exploring()
    assert decision.next is None
    assert decision.destination is None
