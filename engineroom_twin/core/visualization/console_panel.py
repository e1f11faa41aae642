"""
Console Rendering of Simulation Snapshots

Text equivalent of the three HMI panels (true system, engine room,
bridge) plus the timeline. Everything here is display-only: the status
levels colour gauges but never feed the alarm decisions made by the
simulation clock.

Gauge thresholds (display):
--------------------------
- Pressure:    warning > 110 bar, danger > 125 bar, bar range 80..150
- Temperature: warning > 120 °C,  danger > 130 °C,  bar range 90..150
- Consumption: no status,                           bar range 80..120
"""

import math
from enum import Enum
from typing import List, Optional, Tuple

from engineroom_twin.core.dynamics.engine_model import EngineReadings
from engineroom_twin.core.simulation.scenario import MAX_TIME
from engineroom_twin.core.simulation.simulation_clock import (
    SimulationSnapshot,
    engine_alarm_raised,
)


class StatusLevel(Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


# channel -> (warning, danger); None = no status for that channel
STATUS_THRESHOLDS = {
    'pressure': (110.0, 125.0),
    'temperature': (120.0, 130.0),
    'consumption': None,
}

# channel -> (bar min, bar max)
GAUGE_RANGES = {
    'pressure': (80.0, 150.0),
    'temperature': (90.0, 150.0),
    'consumption': (80.0, 120.0),
}

UNITS = {
    'pressure': 'bar',
    'temperature': '°C',
    'consumption': 'L/min',
}


def classify_reading(channel: str, value: float) -> StatusLevel:
    """
    Classify a reading against its display thresholds.

    Raises
    ------
    ValueError
        If `channel` is not one of the three engine-room channels
    """
    if channel not in STATUS_THRESHOLDS:
        raise ValueError(
            f"Unknown channel: {channel}. Valid channels: {list(STATUS_THRESHOLDS)}"
        )

    thresholds = STATUS_THRESHOLDS[channel]
    if thresholds is None:
        return StatusLevel.SAFE

    warning, danger = thresholds
    if value > danger:
        return StatusLevel.DANGER
    if value > warning:
        return StatusLevel.WARNING
    return StatusLevel.SAFE


def bar_fraction(value: float, lo: float, hi: float) -> float:
    """Gauge fill in [0, 1]."""
    return min(max((value - lo) / (hi - lo), 0.0), 1.0)


def format_elapsed(seconds: float) -> str:
    """MM:SS, both fields floored and zero-padded."""
    mins = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    return f"{mins:02d}:{secs:02d}"


def progress(time: float, max_time: float = MAX_TIME) -> float:
    return min(max(time / max_time, 0.0), 1.0)


class ConsolePanel:
    """
    Fixed-width text dashboard for one snapshot.

    Usage:
    ------
    >>> panel = ConsolePanel()
    >>> print(panel.render(clock.get_snapshot()))
    """

    FEEDS: Tuple[Tuple[str, str], ...] = (
        ('TRUE SYSTEM', 'true_values'),
        ('ENGINE ROOM', 'engine_values'),
        ('BRIDGE', 'bridge_values'),
    )

    STATUS_MARKS = {
        StatusLevel.SAFE: ' ',
        StatusLevel.WARNING: '!',
        StatusLevel.DANGER: 'X',
    }

    def __init__(self, bar_width: int = 20, alarm_message: str = "HIGH FUEL PRESSURE"):
        self.bar_width = bar_width
        self.alarm_message = alarm_message

    def render(self, snapshot: SimulationSnapshot, running: Optional[bool] = None) -> str:
        lines: List[str] = []
        lines.append(self._timeline(snapshot, running))

        alarms = {
            'TRUE SYSTEM': engine_alarm_raised(snapshot.true_values.pressure),
            'ENGINE ROOM': snapshot.engine_alarm,
            'BRIDGE': snapshot.bridge_alarm,
        }
        for title, attr in self.FEEDS:
            readings: EngineReadings = getattr(snapshot, attr)
            alarm = f"  ** {self.alarm_message} **" if alarms[title] else ""
            lines.append(f"{title:<12}{alarm}")
            for channel, value in readings.as_dict().items():
                lines.append(self._gauge(channel, value))
        return "\n".join(lines)

    def _timeline(self, snapshot: SimulationSnapshot, running: Optional[bool]) -> str:
        filled = int(round(progress(snapshot.time) * self.bar_width))
        bar = '=' * filled + '-' * (self.bar_width - filled)
        state = '' if running is None else (' PLAY' if running else ' STOP')
        return (
            f"{format_elapsed(snapshot.time)} [{bar}] "
            f"{snapshot.phase.label:<8}{state}"
        )

    def _gauge(self, channel: str, value: float) -> str:
        lo, hi = GAUGE_RANGES[channel]
        filled = int(round(bar_fraction(value, lo, hi) * self.bar_width))
        mark = self.STATUS_MARKS[classify_reading(channel, value)]
        bar = '#' * filled + '.' * (self.bar_width - filled)
        return f"  {channel:<12}{value:7.1f} {UNITS[channel]:<6}{mark}|{bar}|"
