"""Tests for the ResourceManager valuation heuristics."""

import numpy as np
import pytest

from pioneer.agent.manager import GATHERABLE, ResourceManager
from pioneer.agent.objective import Objective
from pioneer.config import PioneerConfig
from pioneer.world import Backpack, Content, DayTime


@pytest.fixture
def manager(test_config):
    return ResourceManager(test_config)


class TestLoad:
    def test_full(self, manager):
        assert manager.is_full(Backpack(20, {Content.TREE: 16}))
        assert not manager.is_full(Backpack(20, {Content.TREE: 15}))

    def test_low(self, manager):
        assert manager.is_low(Backpack(20, {Content.TREE: 10}))
        assert not manager.is_low(Backpack(20, {Content.TREE: 11}))
        assert manager.is_low(Backpack(20))


class TestSelling:
    def test_highest_value_wins(self, manager):
        backpack = Backpack(20, {Content.TREE: 2, Content.ROCK: 1, Content.BUSH: 14})
        assert manager.value(backpack, Content.TREE) == 4
        assert manager.content_to_sell(backpack) is Content.TREE

    def test_quantity_can_beat_price(self, manager):
        backpack = Backpack(20, {Content.ROCK: 5, Content.FISH: 1})
        assert manager.content_to_sell(backpack) is Content.ROCK

    def test_ties_keep_first_kind(self, manager):
        backpack = Backpack(20, {Content.ROCK: 2, Content.TREE: 1})
        assert manager.content_to_sell(backpack) is Content.ROCK

    def test_nothing_to_sell(self, manager):
        assert manager.content_to_sell(Backpack(20, {Content.COIN: 5})) is Content.NONE

    def test_should_deposit(self, manager):
        assert manager.should_deposit(Backpack(20, {Content.COIN: 5, Content.TREE: 2}), Content.TREE)
        assert not manager.should_deposit(
            Backpack(20, {Content.COIN: 2, Content.TREE: 2}), Content.TREE
        )


class TestGathering:
    def test_least_policy(self, manager):
        backpack = Backpack(20, {Content.ROCK: 3, Content.TREE: 1, Content.FISH: 2})
        assert manager.content_to_gather(backpack, np.random.default_rng(0)) is Content.TREE

    def test_most_policy(self):
        manager = ResourceManager(PioneerConfig(gather_policy="most", verbose=False))
        backpack = Backpack(20, {Content.ROCK: 3, Content.TREE: 1, Content.FISH: 2})
        assert manager.content_to_gather(backpack, np.random.default_rng(0)) is Content.ROCK

    def test_missing_kinds_count_as_zero(self, manager):
        backpack = Backpack(20, {Content.ROCK: 3, Content.TREE: 1})
        assert manager.content_to_gather(backpack, np.random.default_rng(0)) is Content.FISH

    def test_ties_broken_at_random(self, manager):
        rng = np.random.default_rng(0)
        picks = {manager.content_to_gather(Backpack(20), rng) for _ in range(100)}
        assert picks == set(GATHERABLE)


class TestEnergy:
    def test_fires_below_threshold(self, manager):
        assert manager.needs_charge(100, Objective.exploring(), Objective.idle())

    def test_not_at_threshold(self, manager):
        assert not manager.needs_charge(150, Objective.exploring(), Objective.idle())

    @pytest.mark.parametrize(
        "resting",
        [Objective.sleeping(), Objective.charging_to(250), Objective.waiting_until(DayTime.MORNING)],
    )
    def test_never_while_resting(self, manager, resting):
        assert not manager.needs_charge(10, resting, Objective.idle())
        assert not manager.needs_charge(10, Objective.exploring(), resting)
