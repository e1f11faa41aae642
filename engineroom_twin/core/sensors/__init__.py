"""Telemetry feed models for the engine-room digital twin."""

from .telemetry_filter import DelayLine, SmoothingChannel, TelemetryFilter

__all__ = [
    'DelayLine',
    'SmoothingChannel',
    'TelemetryFilter',
]
