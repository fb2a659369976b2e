"""
Decision core of the Pioneer agent.

This package provides a hierarchical, rule-based agent. Nothing is learned:
a fixed-priority planner picks what to do, an objective state machine runs
it one tick at a time, and small helpers handle walking, valuation and the
optional remote pilot.

Architecture:
    ┌──────────────────────────────────────────────┐
    │           PLANNER (priority rules)            │
    │  storm now → sleep, storm tomorrow → shelter, │
    │  full → sell/deposit, low → gather, explore   │
    ├────────────┬───────────┬─────────────────────┤
    │ NAVIGATOR  │  MANAGER  │  LOCATOR            │
    │ Compass +  │ Backpack  │  Least-explored     │
    │ detour,    │ valuation │  quadrant target,   │
    │ backtrack, │ + energy  │  coverage goal      │
    │ bridge     │ override  │                     │
    ├────────────┴───────────┴─────────────────────┤
    │   PILOT (serial byte protocol) + CONTROLLER   │
    │   assisted objective codes / manual commands  │
    ├──────────────────────────────────────────────┤
    │          PioneerBot (objective FSM)           │
    │  global overrides → objective handler → pop   │
    └──────────────────────────────────────────────┘

Modules:
    - objective: The Objective tagged variant and remote objective codes
    - planner: Autonomous Deciding rules
    - manager: Backpack valuation and the low-energy rule
    - navigator: Destination walker (stuck detection, detour, backtrack, bridge)
    - locator: Least-explored target and exploration coverage
    - scanner: Face the nearest matching tile in the 3x3 view
    - pilot: Remote pilot serial protocol
    - controller: Manual pilot command execution
    - bot: PioneerBot that integrates all modules

Usage:
    from pioneer.agent import PioneerBot
    bot = PioneerBot(config)
    world.subscribe(bot.on_event)
    while bot.is_running():
        world.advance()
        bot.on_tick(world)

Dependencies:
    - numpy: Random generator and the locator's revealed mask
    - pioneer.tools: Compass, spyglass, mapper, forecast, collector
    - pyserial (optional): Remote pilot transport
"""

from pioneer.agent.bot import PioneerBot
from pioneer.agent.objective import Objective, ObjectiveKind
from pioneer.agent.pilot import Pilot, PilotDisconnected

__all__ = ["Objective", "ObjectiveKind", "Pilot", "PilotDisconnected", "PioneerBot"]
