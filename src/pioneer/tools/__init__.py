"""
Collaborator tools used by the Pioneer decision core.

The decision core treats pathfinding, area scanning, resource lookup,
weather forecasting and area sweeps as external services. This package
provides reference implementations that work against any ``World``:

    - compass: Single-step A* pathfinder over the known map
    - spyglass: Bounded-radius, predicate-driven map reveal
    - mapper: Closest / most-loaded resource lookup over the known map
    - forecast: Weather prediction fed by TIME_CHANGED events
    - collector: Collect every tile of one content kind around the agent
"""

from pioneer.tools.collector import collect_all
from pioneer.tools.compass import Compass, MoveError, MoveErrorKind
from pioneer.tools.forecast import Forecast, ForecastError
from pioneer.tools.mapper import ResourceMapper, ResourceNotFound
from pioneer.tools.spyglass import ScanResult, ScanStatus, Spyglass

__all__ = [
    "Compass",
    "Forecast",
    "ForecastError",
    "MoveError",
    "MoveErrorKind",
    "ResourceMapper",
    "ResourceNotFound",
    "ScanResult",
    "ScanStatus",
    "Spyglass",
    "collect_all",
]
