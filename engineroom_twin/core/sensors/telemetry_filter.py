"""
Manipulated Telemetry Feed Model

This module models the compromised link between the engine room and the
bridge. The attacker does not inject false values; instead the feed is
made stale and over-smoothed so that a genuine pressure excursion reaches
the bridge late and attenuated.

Per tick, for each delayed channel (pressure, temperature):

1. The oldest sample in the channel's delay line is taken as the
   "delayed raw" value.
2. The new true sample is pushed into the delay line (fixed capacity,
   pure transport delay of DELAY_STEPS * DT seconds).
3. The displayed value is updated with a first-order IIR low-pass:

       filtered <- ALPHA * filtered + (1 - ALPHA) * delayed_raw

Fuel consumption is passed through untouched.

Both the delay lines and the filter values start at the phase-1 steady
state, so the bridge output has no start-up transient.
"""

from collections import deque
from typing import Dict, Iterator, Optional

from engineroom_twin.core.dynamics.engine_model import EngineReadings
from engineroom_twin.core.simulation.scenario import (
    ALPHA,
    DELAY_STEPS,
    STEADY_PRESSURE,
    STEADY_TEMPERATURE,
)


class DelayLine:
    """
    Fixed-capacity FIFO imposing a pure time shift on a signal.

    The line is always full: every `shift` pops exactly one sample from
    the front and appends exactly one at the back.
    """

    def __init__(self, length: int = DELAY_STEPS, fill_value: float = 0.0):
        if length < 1:
            raise ValueError(f"Delay line length must be >= 1, got {length}")
        self.length = length
        self.fill_value = fill_value
        self._buffer: deque = deque([fill_value] * length, maxlen=length)

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[float]:
        return iter(self._buffer)

    @property
    def oldest(self) -> float:
        """Sample that the next `shift` will release."""
        return self._buffer[0]

    def shift(self, sample: float) -> float:
        """
        Push a new sample and release the oldest one.

        Parameters
        ----------
        sample : float
            Newest true value

        Returns
        -------
        float
            The value pushed `length` shifts ago (or the fill value while
            the line is still primed)
        """
        released = self._buffer[0]
        # maxlen drops the front element on append
        self._buffer.append(sample)
        return released

    def reset(self) -> None:
        self._buffer = deque([self.fill_value] * self.length, maxlen=self.length)


class SmoothingChannel:
    """
    One delayed + exponentially smoothed telemetry channel.

    Owns its delay line and its filter state; nothing else writes them.
    """

    def __init__(
        self,
        steady_value: float,
        delay_steps: int = DELAY_STEPS,
        alpha: float = ALPHA,
    ):
        """
        Parameters
        ----------
        steady_value : float
            Phase-1 steady-state value used to prime the delay line and
            seed the filter
        delay_steps : int
            Transport delay in ticks
        alpha : float
            Smoothing factor in [0, 1); weight of the previous output
        """
        if not 0.0 <= alpha < 1.0:
            raise ValueError(f"Smoothing factor must be in [0, 1), got {alpha}")

        self.steady_value = steady_value
        self.alpha = alpha
        self.delay_line = DelayLine(delay_steps, fill_value=steady_value)

        self.filtered: float = steady_value
        self.last_delayed_raw: float = steady_value

    def step(self, true_value: float) -> float:
        """Advance one tick and return the new displayed value."""
        delayed_raw = self.delay_line.shift(true_value)
        self.filtered = self.alpha * self.filtered + (1.0 - self.alpha) * delayed_raw
        self.last_delayed_raw = delayed_raw
        return self.filtered

    def reset(self) -> None:
        self.delay_line.reset()
        self.filtered = self.steady_value
        self.last_delayed_raw = self.steady_value


class TelemetryFilter:
    """
    Stateful pipeline producing the bridge (manipulated) feed.

    Usage:
    ------
    >>> feed = TelemetryFilter()
    >>> bridge = feed.process(EngineReadings(100.0, 110.0, 100.0))
    >>> bridge.pressure
    100.0
    """

    DELAYED_CHANNELS = ('pressure', 'temperature')

    def __init__(
        self,
        delay_steps: int = DELAY_STEPS,
        alpha: float = ALPHA,
        steady_values: Optional[Dict[str, float]] = None,
    ):
        steady = {
            'pressure': STEADY_PRESSURE,
            'temperature': STEADY_TEMPERATURE,
        }
        if steady_values:
            steady.update(steady_values)

        self.delay_steps = delay_steps
        self.alpha = alpha
        self.channels: Dict[str, SmoothingChannel] = {
            name: SmoothingChannel(steady[name], delay_steps=delay_steps, alpha=alpha)
            for name in self.DELAYED_CHANNELS
        }

    def process(self, true_readings: EngineReadings) -> EngineReadings:
        """
        Transform one true sample into one manipulated sample.

        Parameters
        ----------
        true_readings : EngineReadings
            Undistorted readings for this tick

        Returns
        -------
        EngineReadings
            Bridge readings: delayed and smoothed pressure/temperature,
            consumption passed through
        """
        pressure = self.channels['pressure'].step(true_readings.pressure)
        temperature = self.channels['temperature'].step(true_readings.temperature)

        return EngineReadings(
            pressure=pressure,
            temperature=temperature,
            consumption=true_readings.consumption,
        )

    def current_output(self, consumption: float) -> EngineReadings:
        """Displayed bridge values without advancing the filter."""
        return EngineReadings(
            pressure=self.channels['pressure'].filtered,
            temperature=self.channels['temperature'].filtered,
            consumption=consumption,
        )

    @property
    def last_delayed_raw(self) -> Dict[str, float]:
        """Delayed raw inputs fed to each filter on the most recent tick."""
        return {name: ch.last_delayed_raw for name, ch in self.channels.items()}

    def reset(self) -> None:
        for channel in self.channels.values():
            channel.reset()
