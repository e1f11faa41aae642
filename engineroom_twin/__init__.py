"""
Engine-Room Telemetry Manipulation Digital Twin
===============================================
A ship fuel-system process observed through two feeds: the engine room
sees the raw readings, the bridge sees a delayed and smoothed copy.
Both raise their own high-pressure alarm.

Packages:
---------
- core.dynamics: True physical process (EngineModel)
- core.sensors: Manipulated bridge feed (TelemetryFilter)
- core.simulation: Scenario constants, SimulationClock, scheduling, analysis
- core.visualization: Console panel and matplotlib plots
"""

__version__ = '1.0.0'
