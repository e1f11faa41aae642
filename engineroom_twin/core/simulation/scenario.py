"""
Fixed Scenario Parameters for the Engine-Room Telemetry Manipulation Demo

The scenario is not authored at runtime: the phase boundaries, timing and
alarm policy below are the whole definition of the exercise. Everything
that needs one of these values imports it from here.

Timeline:
---------
- Phase 1 (0-10 s):  Normal operation. All systems nominal.
- Phase 2 (10-30 s): Fuel system obstruction. Pressure rising.
- Phase 3 (30-60 s): Critical pressure. Bridge alarm delayed by cyber
  manipulation.

Manipulation:
-------------
The bridge feed is delayed by DELAY_STEPS ticks (10 s at DT = 0.1 s) and
then smoothed with a first-order exponential filter (ALPHA = 0.92).
"""

from enum import Enum


# Timing
DT: float = 0.1                 # Tick duration [s]
MAX_TIME: float = 60.0          # Scenario length [s]

# Manipulation of the bridge feed
DELAY_STEPS: int = 100          # Transport delay [ticks] (10 s)
ALPHA: float = 0.92             # Smoothing factor (weight of previous value)

# Alarm policy (shared by both feeds)
PRESSURE_HIGH_THRESHOLD: float = 120.0   # [bar]
BRIDGE_ALARM_GATE_TIME: float = 35.0     # Bridge alarm suppressed while t <= gate [s]

# Phase boundaries
PHASE_RISING_START: float = 10.0    # [s]
PHASE_CRITICAL_START: float = 30.0  # [s]

# Phase-1 steady state (also the reset value of every delayed channel)
STEADY_PRESSURE: float = 100.0      # [bar]
STEADY_TEMPERATURE: float = 110.0   # [°C]
STEADY_CONSUMPTION: float = 100.0   # [L/min]

# Phase-3 plateau
CRITICAL_PRESSURE: float = 140.0
CRITICAL_TEMPERATURE: float = 130.0
CRITICAL_CONSUMPTION: float = 104.0


class Phase(Enum):
    """Scenario phases, in timeline order."""
    NORMAL = "normal"
    RISING = "rising"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]

    @property
    def description(self) -> str:
        return _PHASE_DESCRIPTIONS[self]


_PHASE_LABELS = {
    Phase.NORMAL: "Normal",
    Phase.RISING: "Rising",
    Phase.CRITICAL: "Critical",
}

_PHASE_DESCRIPTIONS = {
    Phase.NORMAL: "Normal operation. All systems nominal.",
    Phase.RISING: "Fuel system obstruction. Pressure rising.",
    Phase.CRITICAL: "Critical pressure. Bridge alarm delayed by cyber manipulation.",
}


def phase_at(time: float) -> Phase:
    """
    Classify a simulated time into its scenario phase.

    Uses the same boundaries as the physical model, so the phase never
    disagrees with the piecewise branch that produced a reading.
    """
    if time < PHASE_RISING_START:
        return Phase.NORMAL
    if time < PHASE_CRITICAL_START:
        return Phase.RISING
    return Phase.CRITICAL
