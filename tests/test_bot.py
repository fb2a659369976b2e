"""Scenario tests for the PioneerBot objective state machine."""

import dataclasses

import numpy as np

from pioneer.agent.bot import PioneerBot
from pioneer.agent.locator import least_explored_target
from pioneer.agent.objective import Objective, ObjectiveKind
from pioneer.agent.pilot import Pilot
from pioneer.config import PioneerConfig
from pioneer.sandbox import SandboxWorld
from pioneer.world import Content, DayTime, Event, EventKind, TileType

OPEN = [".....", ".....", "..A..", ".....", "....."]


class TestLifecycle:
    def test_initial_state(self, test_config):
        bot = PioneerBot(test_config)
        assert bot.objective == Objective.idle()
        assert bot.next == Objective.idle()
        assert bot.is_running()

    def test_first_tick_decides(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)

        bot.on_tick(world)

        assert bot.objective == Objective.deciding()
        assert bot.ticks == 1

    def test_ready_records_position(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        assert list(bot.walker.recent) == [(2, 2)]

    def test_terminated_event_stops(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)

        world.terminate()
        bot.on_tick(world)

        assert not bot.is_running()
        assert bot.ticks == 0

    def test_termination_predicate(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world, termination=lambda known, depleted: True)

        bot.on_tick(world)

        assert not bot.is_running()

    def test_coverage_goal_from_config(self, test_config):
        config = PioneerConfig(termination_coverage=0.9, verbose=False)
        assert PioneerBot(config).termination is not None
        assert PioneerBot(test_config).termination is None

    def test_time_events_feed_forecast(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        assert bot.planner.tomorrow() is None

        world.advance()

        assert bot.planner.tomorrow() is not None


class TestOverrides:
    def test_low_energy_charges(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.exploring()
        world.set_energy(100)

        bot.on_tick(world)

        assert bot.objective == Objective.charging_to(250)
        assert bot.next == Objective.exploring()

    def test_charging_resumes_queued(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.charging_to(250)
        bot.next = Objective.exploring()
        world.set_energy(260)

        bot.on_tick(world)

        assert bot.objective == Objective.exploring()
        assert bot.next == Objective.idle()

    def test_no_second_charge_while_charging(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.charging_to(250)
        bot.next = Objective.exploring()
        world.set_energy(100)

        bot.on_tick(world)

        assert bot.objective == Objective.charging_to(250)
        assert bot.next == Objective.exploring()

    def test_night_sleeps_then_waits(self, make_world, make_bot):
        world = make_world(OPEN, start_hour=22)
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        assert bot.objective == Objective.waiting_until(DayTime.MORNING)
        assert bot.next == Objective.deciding()

    def test_night_override_is_idempotent(self, make_world, make_bot):
        world = make_world(OPEN, start_hour=22)
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)
        bot.on_tick(world)
        bot.on_tick(world)

        assert bot.objective == Objective.waiting_until(DayTime.MORNING)
        assert bot.next == Objective.deciding()

    def test_night_respects_queued_sleep(self, make_world, make_bot):
        world = make_world(OPEN, start_hour=22)
        bot = make_bot(world)
        bot.objective = Objective.charging_to(250)
        bot.next = Objective.sleeping()
        world.set_energy(100)

        bot.on_tick(world)

        assert bot.objective == Objective.charging_to(250)
        assert bot.next == Objective.sleeping()

    def test_wakes_up_in_the_morning(self, make_world, make_bot):
        world = make_world(OPEN, start_hour=6)
        bot = make_bot(world)
        bot.objective = Objective.waiting_until(DayTime.MORNING)
        bot.next = Objective.deciding()

        bot.on_tick(world)

        assert bot.objective == Objective.deciding()

    def test_tent_pitched_at_night(self, make_world, make_bot):
        world = make_world(OPEN, start_hour=22)
        world.give(Content.TREE, 2)
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        row, col = world.position()
        assert world.tile((row, col)).content is Content.TENT
        assert bot.objective == Objective.waiting_until(DayTime.MORNING)

    def test_tent_retrieved_when_deciding(self, make_world, make_bot):
        world = make_world(["...", ".At", "..."])
        bot = make_bot(world)
        bot.objective = Objective.deciding()

        bot.on_tick(world)

        assert world.backpack().get(Content.TENT) == 1
        assert world.tile((1, 2)).content is Content.NONE


class TestMoving:
    def test_already_at_destination_pins_and_pops(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.moving_to(True)
        bot.next = Objective.selling(Content.TREE)
        bot.walker.set_destination(world.position())

        bot.on_tick(world)

        assert bot.objective == Objective.selling(Content.TREE)
        assert bot.next == Objective.idle()
        assert (2, 2) in bot.pins
        assert bot.walker.destination is None

    def test_reached_without_discover_does_not_pin(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.walker.set_destination(world.position())

        bot.on_tick(world)

        assert not bot.pins

    def test_steps_toward_destination(self, make_world, make_bot):
        world = make_world(OPEN)
        world.reveal_all()
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.walker.set_destination((0, 2))

        bot.on_tick(world)
        assert world.position() == (1, 2)
        bot.on_tick(world)
        assert world.position() == (0, 2)
        bot.on_tick(world)

        assert bot.objective == Objective.idle()

    def test_blocked_destination_counts_as_reached(self, make_world, make_bot):
        world = make_world(["..H..", ".....", "..A..", ".....", "....."])
        world.reveal_all()
        bot = make_bot(world)
        bot.objective = Objective.moving_to(True)
        bot.next = Objective.waiting_until(DayTime.NIGHT)
        bot.walker.set_destination((0, 2))

        bot.on_tick(world)
        bot.on_tick(world)

        assert world.position() == (1, 2)
        assert (0, 2) in bot.pins
        assert bot.objective == Objective.waiting_until(DayTime.NIGHT)

    def test_blocked_destination_without_discover_is_not_pinned(self, make_world, make_bot):
        world = make_world(["..H..", ".....", "..A..", ".....", "....."])
        world.reveal_all()
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.next = Objective.selling(Content.TREE)
        bot.walker.set_destination((0, 2))

        bot.on_tick(world)
        bot.on_tick(world)

        assert not bot.pins
        assert bot.walker.destination is None
        assert bot.objective == Objective.selling(Content.TREE)

    def test_out_of_energy_resumes_walk_after_charging(self, make_world, make_bot, test_config):
        world = make_world(OPEN)
        world.reveal_all()
        world.set_energy(0)
        bot = make_bot(world, dataclasses.replace(test_config, low_energy_threshold=0))
        bot.objective = Objective.moving_to(True)
        bot.walker.set_destination((0, 0))

        bot.on_tick(world)

        assert bot.objective == Objective.charging_to(250)
        assert bot.next == Objective.moving_to(True)
        assert bot.walker.destination == (0, 0)

    def test_out_of_energy_keeps_queued_objective(self, make_world, make_bot):
        world = make_world(OPEN)
        world.reveal_all()
        world.set_energy(0)
        bot = make_bot(world)
        bot.objective = Objective.moving_to(True)
        bot.next = Objective.waiting_until(DayTime.NIGHT)
        bot.walker.set_destination((0, 0))

        bot.on_tick(world)

        assert bot.objective == Objective.charging_to(250)
        assert bot.next == Objective.waiting_until(DayTime.NIGHT)
        assert bot.walker.destination is None
        assert world.position() == (2, 2)

    def test_blocked_gather_target_is_collected(self, make_world, make_bot):
        world = make_world(["..T..", ".....", "..A..", ".....", "....."])
        world.reveal_all()
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.next = Objective.gathering(Content.TREE)
        bot.walker.set_destination((0, 2))

        bot.on_tick(world)
        bot.on_tick(world)

        assert world.backpack().get(Content.TREE) == 2
        assert bot.objective == Objective.gathering(Content.TREE)

    def test_no_destination_heads_for_unexplored(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)

        bot.on_tick(world)

        assert bot.walker.destination is not None

    def test_bridge_needs_rocks(self, make_world, make_bot):
        world = make_world([".....", ".....", "..A~~", ".....", "....."])
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.next = Objective.gathering(Content.FISH)
        bot.walker.set_destination((2, 3))

        bot.on_tick(world)

        assert bot.objective == Objective.exploring()
        assert bot.next == Objective.gathering(Content.ROCK)
        assert bot.walker.destination is None

    def test_bridge_built_with_rocks(self, make_world, make_bot):
        world = make_world([".....", ".....", "..A~~", ".....", "....."])
        world.give(Content.ROCK, 3)
        bot = make_bot(world)
        bot.objective = Objective.moving_to(False)
        bot.next = Objective.gathering(Content.FISH)
        bot.walker.set_destination((2, 3))

        bot.on_tick(world)

        assert world.tile((2, 3)).tile_type is TileType.STREET
        assert bot.objective == Objective.moving_to(False)


class TestExploring:
    ROW = "........."

    def layout(self, middle):
        return [self.ROW] * 4 + [middle] + [self.ROW] * 4

    def test_finds_structure(self, make_world, make_bot):
        world = make_world(self.layout("....A...M"))
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        assert bot.objective == Objective.moving_to(True)
        assert bot.walker.destination == (4, 8)

    def test_nearest_structure_wins(self, make_world, make_bot):
        world = make_world(self.layout("..H.A...M"))
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        assert bot.walker.destination == (4, 2)

    def test_pinned_structure_is_looked_past(self, make_world, make_bot):
        world = make_world(self.layout("..H.A...M"))
        bot = make_bot(world)
        bot.pins.add((4, 2))
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        assert bot.objective == Objective.moving_to(True)
        assert bot.walker.destination == (4, 8)

    def test_queued_gathering_targets_its_kind(self, make_world, make_bot):
        rows = self.layout("....A.M..")
        rows[0] = "....T...."
        world = make_world(rows)
        bot = make_bot(world)
        bot.objective = Objective.exploring()
        bot.next = Objective.gathering(Content.TREE)

        bot.on_tick(world)

        assert bot.objective == Objective.moving_to(False)
        assert bot.next == Objective.gathering(Content.TREE)
        assert bot.walker.destination == (0, 4)

    def test_miss_falls_back_to_least_explored(self, make_world, make_bot, test_config):
        world = make_world(self.layout("....A...."))
        bot = make_bot(world)
        bot.objective = Objective.exploring()

        bot.on_tick(world)

        expected = least_explored_target(world.known_map(), np.random.default_rng(test_config.seed))
        assert bot.objective == Objective.moving_to(False)
        assert bot.walker.destination == expected


class TestEconomy:
    def test_sell_everything(self, make_world, make_bot):
        world = make_world(["...", ".AM", "..."])
        world.give(Content.TREE, 3)
        bot = make_bot(world)
        bot.objective = Objective.selling(Content.TREE)

        bot.on_tick(world)

        assert world.backpack().get(Content.COIN) == 6
        assert bot.objective == Objective.idle()
        assert bot.score == 6

    def test_partial_sale_marks_depleted(self, make_world, make_bot):
        world = make_world(["...", ".AM", "..."], amounts={(1, 2): 1})
        world.give(Content.TREE, 3)
        bot = make_bot(world)
        bot.objective = Objective.selling(Content.TREE)

        bot.on_tick(world)

        assert (1, 2) in bot.depleted
        assert bot.objective == Objective.selling(Content.TREE)

    def test_depleted_market_is_skipped(self, make_world, make_bot):
        world = make_world(["...", ".AM", "..."], amounts={(1, 2): 1})
        world.give(Content.TREE, 3)
        bot = make_bot(world)
        bot.objective = Objective.selling(Content.TREE)

        bot.on_tick(world)
        bot.on_tick(world)

        assert bot.objective == Objective.exploring()
        assert bot.next == Objective.selling(Content.TREE)

    def test_known_market_is_walked_to(self, make_world, make_bot):
        world = make_world(["....M", ".....", "..A..", ".....", "....."])
        world.reveal_all()
        world.give(Content.FISH, 2)
        bot = make_bot(world)
        bot.objective = Objective.selling(Content.FISH)

        bot.on_tick(world)

        assert bot.objective == Objective.moving_to(True)
        assert bot.next == Objective.selling(Content.FISH)
        assert bot.walker.destination == (0, 4)

    def test_deposit(self, make_world, make_bot):
        world = make_world(["...", ".AB", "..."])
        world.give(Content.COIN, 4)
        bot = make_bot(world)
        bot.objective = Objective.depositing()

        bot.on_tick(world)

        assert world.backpack().get(Content.COIN) == 0
        assert world.score() == 12

    def test_gathering_then_looks_for_more(self, make_world, make_bot):
        world = make_world([".....", ".AT..", ".....", ".....", "....T"])
        world.reveal_all()
        bot = make_bot(world)
        bot.objective = Objective.gathering(Content.TREE)

        bot.on_tick(world)

        assert world.backpack().get(Content.TREE) == 4
        assert bot.objective == Objective.exploring()
        assert bot.next == Objective.gathering(Content.TREE)


class TestRequests:
    def test_requested_objective_replaces_planner(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.objective = Objective.deciding()
        bot.request_objective(Objective.gathering(Content.ROCK))

        bot.on_tick(world)

        assert bot.objective == Objective.gathering(Content.ROCK)

    def test_idle_request_is_ignored(self, make_world, make_bot):
        world = make_world(OPEN)
        bot = make_bot(world)
        bot.request_objective(Objective.idle())
        assert bot._requested is None


class TestPilot:
    def test_assisted_pilot_picks_objective(self, make_world, make_bot, make_transport):
        world = make_world(OPEN)
        transport = make_transport(bytes([1, 5]))
        bot = make_bot(world, pilot_factory=lambda config: Pilot.handshake(transport))

        bot.on_tick(world)
        assert bot.pilot is not None and not bot.pilot.is_manual
        bot.on_tick(world)

        assert bot.objective == Objective.gathering(Content.FISH)
        assert bot.next == Objective.idle()

    def test_silent_pilot_falls_back_to_planner(self, make_world, make_bot, make_transport):
        world = make_world(OPEN)
        transport = make_transport(bytes([1]))
        bot = make_bot(world, pilot_factory=lambda config: Pilot.handshake(transport))

        bot.on_tick(world)
        bot.on_tick(world)

        assert bot.pilot is None
        assert transport.closed
        assert bot.objective.kind is not ObjectiveKind.DECIDING

    def test_manual_pilot_moves_agent(self, make_world, make_bot, make_transport):
        world = make_world(OPEN)
        transport = make_transport(bytes([0, 6, 9]))
        bot = make_bot(world, pilot_factory=lambda config: Pilot.handshake(transport))

        bot.on_tick(world)
        bot.on_tick(world)

        assert world.position() == (1, 3)
        assert bot.objective == Objective.idle()

    def test_manual_disconnect(self, make_world, make_bot, make_transport):
        world = make_world(OPEN)
        transport = make_transport(bytes([0, 0xFF]))
        bot = make_bot(world, pilot_factory=lambda config: Pilot.handshake(transport))

        bot.on_tick(world)

        assert bot.pilot is None
        assert transport.closed

    def test_reconnects_after_retry_interval(self, make_world, make_bot):
        world = make_world(OPEN)
        calls = []

        def factory(config):
            calls.append(config)
            return None

        config = PioneerConfig(verbose=False, seed=0, pilot_retry_ticks=3)
        bot = make_bot(world, config=config, pilot_factory=factory)

        for _ in range(7):
            bot.on_tick(world)

        assert len(calls) == 3

    def test_score_reported_on_day_change(self, make_world, make_bot, make_transport):
        world = make_world(OPEN)
        transport = make_transport()
        bot = make_bot(world)
        bot.pilot = Pilot(transport, manual=False)
        bot.score = 7.0

        bot.on_event(Event(EventKind.DAY_CHANGED, conditions=world.conditions()))

        assert transport.floats() == [7.0]


def test_long_run_is_stable():
    config = PioneerConfig(world_size=16, seed=3, verbose=False)
    world = SandboxWorld.generate(config)
    bot = PioneerBot(config)
    world.subscribe(bot.on_event)
    world.ready()

    known_before = sum(tile is not None for row in world.known_map() for tile in row)

    pins = set()
    for _ in range(300):
        world.advance()
        bot.on_tick(world)
        assert pins <= bot.pins
        pins = set(bot.pins)
        assert len(bot.walker.recent) <= config.recent_positions
        assert 0 <= world.energy_level() <= config.max_energy

    known_after = sum(tile is not None for row in world.known_map() for tile in row)
    assert bot.ticks == 300
    assert world.score() >= 0
    assert known_after > known_before
