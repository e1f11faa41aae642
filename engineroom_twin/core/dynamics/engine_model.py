"""
Fuel System Process Model

Maps elapsed simulated time to the true (unmanipulated) engine-room
readings. The model is a deterministic piecewise-linear ramp:

    Phase 1 (t < 10):       p = 100,          T = 110,          Q = 100
    Phase 2 (10 <= t < 30): p = 100 + 40 f,   T = 110 + 20 f,   Q = 100 + 4 f
    Phase 3 (t >= 30):      p = 140,          T = 130,          Q = 104

with f = (t - 10) / 20. All three quantities are continuous at both phase
boundaries.

Units: pressure [bar], temperature [°C], fuel consumption [L/min].
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np

from engineroom_twin.core.simulation.scenario import (
    PHASE_RISING_START,
    PHASE_CRITICAL_START,
    STEADY_PRESSURE,
    STEADY_TEMPERATURE,
    STEADY_CONSUMPTION,
    CRITICAL_PRESSURE,
    CRITICAL_TEMPERATURE,
    CRITICAL_CONSUMPTION,
)


@dataclass(frozen=True)
class EngineReadings:
    """One set of engine-room readings."""
    pressure: float     # [bar]
    temperature: float  # [°C]
    consumption: float  # [L/min]

    def as_dict(self) -> Dict[str, float]:
        return {
            'pressure': self.pressure,
            'temperature': self.temperature,
            'consumption': self.consumption,
        }


class EngineModel:
    """
    Stateless fuel-system model.

    The same instance may be shared freely: `evaluate` is a pure function
    of its argument and never fails.

    Usage:
    ------
    >>> model = EngineModel()
    >>> model.evaluate(25.0).pressure
    130.0
    """

    RAMP_DURATION: float = PHASE_CRITICAL_START - PHASE_RISING_START

    PRESSURE_RISE: float = CRITICAL_PRESSURE - STEADY_PRESSURE
    TEMPERATURE_RISE: float = CRITICAL_TEMPERATURE - STEADY_TEMPERATURE
    CONSUMPTION_RISE: float = CRITICAL_CONSUMPTION - STEADY_CONSUMPTION

    def evaluate(self, time: float) -> EngineReadings:
        """
        Evaluate the true readings at a simulated time.

        Parameters
        ----------
        time : float
            Elapsed simulated time [s]

        Returns
        -------
        EngineReadings
            Undistorted pressure, temperature and consumption
        """
        if time < PHASE_RISING_START:
            return EngineReadings(
                pressure=STEADY_PRESSURE,
                temperature=STEADY_TEMPERATURE,
                consumption=STEADY_CONSUMPTION,
            )

        if time < PHASE_CRITICAL_START:
            factor = (time - PHASE_RISING_START) / self.RAMP_DURATION  # 0 -> 1
            return EngineReadings(
                pressure=STEADY_PRESSURE + factor * self.PRESSURE_RISE,
                temperature=STEADY_TEMPERATURE + factor * self.TEMPERATURE_RISE,
                consumption=STEADY_CONSUMPTION + factor * self.CONSUMPTION_RISE,
            )

        return EngineReadings(
            pressure=CRITICAL_PRESSURE,
            temperature=CRITICAL_TEMPERATURE,
            consumption=CRITICAL_CONSUMPTION,
        )

    def evaluate_array(self, times: np.ndarray) -> Dict[str, np.ndarray]:
        """
        Vectorized `evaluate` over an array of times.

        Returns a dict of arrays keyed like `EngineReadings.as_dict()`,
        element-wise identical to calling `evaluate` per sample.
        """
        t = np.asarray(times, dtype=float)
        factor = (t - PHASE_RISING_START) / self.RAMP_DURATION
        conditions = [t < PHASE_RISING_START, t < PHASE_CRITICAL_START]

        def _piecewise(steady: float, rise: float, critical: float) -> np.ndarray:
            return np.select(
                conditions,
                [np.full_like(t, steady), steady + factor * rise],
                default=critical,
            )

        return {
            'pressure': _piecewise(STEADY_PRESSURE, self.PRESSURE_RISE, CRITICAL_PRESSURE),
            'temperature': _piecewise(STEADY_TEMPERATURE, self.TEMPERATURE_RISE, CRITICAL_TEMPERATURE),
            'consumption': _piecewise(STEADY_CONSUMPTION, self.CONSUMPTION_RISE, CRITICAL_CONSUMPTION),
        }
