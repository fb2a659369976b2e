"""Pioneer - an autonomous explorer, gatherer and trader for tile worlds.

A tick-driven objective state machine that lives in a grid world, with a
self-contained sandbox world, a Gymnasium wrapper and an optional serial
remote pilot.
"""

__version__ = "0.1.0"

from pioneer.agent.bot import PioneerBot
from pioneer.config import PioneerConfig
from pioneer.env import PioneerEnv

__all__ = ["PioneerBot", "PioneerConfig", "PioneerEnv", "__version__"]
