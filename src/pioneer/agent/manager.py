"""
Resource valuation heuristics for the Pioneer agent.

This module scores backpack contents to decide what to sell and what to
gather next, and judges how full the backpack is. It does NOT act on the
world; the planner and the state machine act on its answers.

Architecture Role:
    The manager is consulted by the planner (Deciding), by the gathering
    objective when the backpack fills up, and by the manual pilot's "sell"
    button:

    Planner → ResourceManager.content_to_sell() → SellingResource(kind)
    Planner → ResourceManager.content_to_gather() → GatheringResource(kind)

Scoring:
    - Selling: value = quantity × unit price; the highest value wins.
    - Gathering: by quantity alone; the least-held kind ("least" policy) or
      the most-held kind ("most" policy). Ties are broken uniformly at random.

Low Energy:
    ``needs_charge`` implements the energy override rule: below the
    low-water mark, unless the current or queued objective already rests.

Dependencies:
    - numpy: Random generator for tie-breaking
    - pioneer.config: Prices, fractions and policy
"""

from __future__ import annotations

import numpy as np

from pioneer.agent.objective import Objective
from pioneer.config import PioneerConfig
from pioneer.world import Backpack, Content

# Resource kinds the agent gathers and sells, in tie-break order
GATHERABLE: tuple[Content, ...] = (Content.ROCK, Content.TREE, Content.FISH)


class ResourceManager:
    """
    Rule-based valuation of the backpack.

    Attributes:
        prices: Market price per unit.
        full_fraction: Load at which the backpack counts as full.
        low_fraction: Load at or below which the backpack counts as low.
        gather_policy: "least" or "most".
        low_energy: Energy low-water mark.
    """

    __slots__ = ("prices", "full_fraction", "low_fraction", "gather_policy", "low_energy")

    def __init__(self, config: PioneerConfig) -> None:
        self.prices = dict(config.prices)
        self.full_fraction = config.full_backpack_fraction
        self.low_fraction = config.low_backpack_fraction
        self.gather_policy = config.gather_policy
        self.low_energy = config.low_energy_threshold

    # =========================================================================
    # BACKPACK LOAD
    # =========================================================================

    def is_full(self, backpack: Backpack) -> bool:
        return backpack.load >= self.full_fraction

    def is_low(self, backpack: Backpack) -> bool:
        return backpack.load <= self.low_fraction

    # =========================================================================
    # VALUATION
    # =========================================================================

    def value(self, backpack: Backpack, content: Content) -> int:
        """Coins the held quantity of ``content`` would fetch."""
        return backpack.get(content) * self.prices.get(content, 0)

    def content_to_sell(self, backpack: Backpack) -> Content:
        """
        Gatherable kind whose held quantity is worth the most.

        Returns:
            The most valuable kind, or Content.NONE if nothing sellable is held.
        """
        best, best_value = Content.NONE, 0
        for content in GATHERABLE:
            value = self.value(backpack, content)
            if value > best_value:
                best, best_value = content, value
        return best

    def content_to_gather(self, backpack: Backpack, rng: np.random.Generator) -> Content:
        """
        Gatherable kind to collect next, per the gather policy.

        Kinds not in the backpack count as zero. Equal candidates are
        chosen between uniformly at random.
        """
        quantities = {content: backpack.get(content) for content in GATHERABLE}
        if self.gather_policy == "most":
            target = max(quantities.values())
        else:
            target = min(quantities.values())

        candidates = [content for content, quantity in quantities.items() if quantity == target]
        if len(candidates) == 1:
            return candidates[0]
        return candidates[int(rng.integers(len(candidates)))]

    def should_deposit(self, backpack: Backpack, sellable: Content) -> bool:
        """Coins outnumber the sellable kind: empty them at a bank first."""
        return backpack.get(Content.COIN) > backpack.get(sellable)

    # =========================================================================
    # ENERGY
    # =========================================================================

    def needs_charge(self, energy: int, current: Objective, queued: Objective) -> bool:
        """
        Whether the low-energy override should fire.

        Never fires while either objective is sleeping, waiting or charging.
        """
        if energy >= self.low_energy:
            return False
        return not (current.resting or queued.resting)
