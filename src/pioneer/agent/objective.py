"""
Objective model for the Pioneer state machine.

An objective is the agent's current high-level task. The state machine holds
two of them: the current objective, executed every tick, and a queued "next"
objective that is resumed when the current one completes. This two-slot
arrangement is the agent's only continuation mechanism; each tick runs one
step of the current objective and may queue where to go afterwards.

Architecture Role:
    Objective values are created by the planner, the pilot and the state
    machine itself, and are compared by value everywhere:

    Planner / Pilot → Objective → PioneerBot.objective / PioneerBot.next

Variants:
    DECIDING            run the pilot or the autonomous planner
    WAITING_UNTIL(t)    idle until the time of day equals t
    MOVING_TO(discover) walk to the compass destination; pin it if discover
    CHARGING_TO(level)  idle until energy >= level
    SLEEPING            pitch a tent, then wait for the other half of the day
    GATHERING(kind)     harvest kind around the agent
    SELLING(kind)       sell kind at a market
    DEPOSITING          deposit coins at a bank
    EXPLORING           scan for targets, else head for unexplored space
    IDLE                nothing to do; resume next or decide

Remote Codes:
    The remote pilot selects objectives with a single byte (1-9), see
    ``Objective.from_code``.

Dependencies:
    - dataclasses/enum: For the tagged variant
    - pioneer.world: DayTime and Content payloads
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pioneer.world import Content, DayTime, describe

# =============================================================================
# OBJECTIVE KIND
# =============================================================================


class ObjectiveKind(Enum):
    """Tag of the Objective variant."""

    DECIDING = "deciding"
    WAITING_UNTIL = "waiting_until"
    MOVING_TO = "moving_to"
    CHARGING_TO = "charging_to"
    SLEEPING = "sleeping"
    GATHERING = "gathering"
    SELLING = "selling"
    DEPOSITING = "depositing"
    EXPLORING = "exploring"
    IDLE = "idle"


# =============================================================================
# OBJECTIVE
# =============================================================================


@dataclass(frozen=True)
class Objective:
    """
    Tagged variant describing one high-level task.

    Use the classmethod constructors rather than building instances by hand;
    only the payload field relevant to ``kind`` is ever set.

    Attributes:
        kind: Which variant this is.
        time: WAITING_UNTIL target time of day.
        discover: MOVING_TO flag: record the destination as a visited pin.
        level: CHARGING_TO target energy level.
        content: GATHERING / SELLING resource kind.
    """

    kind: ObjectiveKind
    time: DayTime | None = None
    discover: bool = False
    level: int = 0
    content: Content | None = None

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def deciding(cls) -> Objective:
        return cls(ObjectiveKind.DECIDING)

    @classmethod
    def waiting_until(cls, time: DayTime) -> Objective:
        return cls(ObjectiveKind.WAITING_UNTIL, time=time)

    @classmethod
    def moving_to(cls, discover: bool = False) -> Objective:
        return cls(ObjectiveKind.MOVING_TO, discover=discover)

    @classmethod
    def charging_to(cls, level: int) -> Objective:
        return cls(ObjectiveKind.CHARGING_TO, level=level)

    @classmethod
    def sleeping(cls) -> Objective:
        return cls(ObjectiveKind.SLEEPING)

    @classmethod
    def gathering(cls, content: Content) -> Objective:
        return cls(ObjectiveKind.GATHERING, content=content)

    @classmethod
    def selling(cls, content: Content) -> Objective:
        return cls(ObjectiveKind.SELLING, content=content)

    @classmethod
    def depositing(cls) -> Objective:
        return cls(ObjectiveKind.DEPOSITING)

    @classmethod
    def exploring(cls) -> Objective:
        return cls(ObjectiveKind.EXPLORING)

    @classmethod
    def idle(cls) -> Objective:
        return cls(ObjectiveKind.IDLE)

    @classmethod
    def from_code(cls, code: int, charge_level: int = 750) -> Objective:
        """
        Map a remote pilot byte to an objective.

        Args:
            code: Byte received from the pilot.
            charge_level: Level used by the "charge" code.

        Returns:
            The selected objective, or IDLE ("no override") for any value
            outside 1-9.
        """
        table = {
            1: cls.charging_to(charge_level),
            2: cls.selling(Content.FISH),
            3: cls.selling(Content.TREE),
            4: cls.selling(Content.ROCK),
            5: cls.gathering(Content.FISH),
            6: cls.gathering(Content.TREE),
            7: cls.gathering(Content.ROCK),
            8: cls.depositing(),
            9: cls.exploring(),
        }
        return table.get(code, cls.idle())

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    @property
    def resting(self) -> bool:
        """Sleeping, waiting or charging: the low-energy override must not fire."""
        return self.kind in (
            ObjectiveKind.WAITING_UNTIL,
            ObjectiveKind.CHARGING_TO,
            ObjectiveKind.SLEEPING,
        )

    def __str__(self) -> str:
        if self.kind is ObjectiveKind.WAITING_UNTIL and self.time is not None:
            return f"waiting till {describe(self.time)}"
        if self.kind is ObjectiveKind.MOVING_TO:
            return "moving (discovering)" if self.discover else "moving"
        if self.kind is ObjectiveKind.CHARGING_TO:
            return f"charging to {self.level}"
        if self.kind is ObjectiveKind.GATHERING and self.content is not None:
            return f"gathering {describe(self.content)}"
        if self.kind is ObjectiveKind.SELLING and self.content is not None:
            return f"selling {describe(self.content)}"
        if self.kind is ObjectiveKind.DEPOSITING:
            return "going to the bank"
        if self.kind is ObjectiveKind.IDLE:
            return "doing nothing"
        return describe(self.kind)
