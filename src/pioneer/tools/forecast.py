"""
Weather forecaster fed by the world's time events.

The forecaster keeps the latest environmental conditions it has been told
about and answers "what will the weather be N hours from now?". It knows
nothing until the first TIME_CHANGED (or DAY_CHANGED) event arrives, and
cannot see past the forecast horizon the world publishes. Both cases raise
``ForecastError``; the planner treats that as benign weather.
"""

from __future__ import annotations

from pioneer.world import EnvironmentalConditions, Event, EventKind, WeatherType


class ForecastError(Exception):
    """The forecaster cannot predict the requested time."""


class Forecast:
    """Weather predictions from the most recent observed conditions."""

    __slots__ = ("_conditions",)

    def __init__(self) -> None:
        self._conditions: EnvironmentalConditions | None = None

    def process_event(self, event: Event) -> None:
        if event.kind in (EventKind.TIME_CHANGED, EventKind.DAY_CHANGED) and event.conditions:
            self._conditions = event.conditions

    def predict(self, hours_ahead: int) -> WeatherType:
        """
        Weather ``hours_ahead`` hours from the last observation.

        Raises:
            ForecastError: Before any observation, for negative offsets or
                beyond the published forecast.
        """
        if self._conditions is None:
            raise ForecastError("no weather observed yet")
        if hours_ahead < 0:
            raise ForecastError("cannot predict the past")

        days_ahead = (self._conditions.hour + hours_ahead) // 24
        if days_ahead == 0:
            return self._conditions.weather
        if days_ahead > len(self._conditions.forecast):
            raise ForecastError(f"{hours_ahead}h is beyond the forecast horizon")
        return self._conditions.forecast[days_ahead - 1]
