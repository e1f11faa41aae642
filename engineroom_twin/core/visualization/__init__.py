"""
Visualization Module for the Engine-Room Telemetry Twin

Presentation consumers of simulation snapshots. Nothing here makes alarm
decisions.

Modules:
--------
- console_panel: Text dashboard (gauges, status levels, timeline)
- time_series_plots: matplotlib comparison of true, engine and bridge feeds
"""

from .console_panel import (
    ConsolePanel,
    StatusLevel,
    bar_fraction,
    classify_reading,
    format_elapsed,
    progress,
)
from .time_series_plots import TelemetryPlotter

__all__ = [
    'ConsolePanel',
    'StatusLevel',
    'TelemetryPlotter',
    'bar_fraction',
    'classify_reading',
    'format_elapsed',
    'progress',
]
