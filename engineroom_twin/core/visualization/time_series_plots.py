"""
Time-Series Plots for the Engine-Room Telemetry Twin

Answers one question per panel: how far, and for how long, did the
bridge feed lag behind what the engine room was seeing?

Layout (shared time axis):
-------------------------
1. Pressure: true / engine room / bridge, 120 bar alarm threshold,
   shaded alarm regions for both feeds
2. Temperature: true / bridge
3. Fuel consumption: true / bridge (identical by construction)

Phase boundaries (10 s, 30 s) and the bridge alarm gate (35 s) are drawn
as vertical markers on every panel.
"""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from engineroom_twin.core.simulation.alarm_analyzer import snapshots_to_dataframe
from engineroom_twin.core.simulation.scenario import (
    BRIDGE_ALARM_GATE_TIME,
    PHASE_CRITICAL_START,
    PHASE_RISING_START,
    PRESSURE_HIGH_THRESHOLD,
)
from engineroom_twin.core.simulation.simulation_clock import SimulationSnapshot


class FeedColors:
    """Trace colours per feed."""
    TRUE: str = '#1f77b4'       # Blue - hidden reality
    ENGINE: str = '#2ca02c'     # Green - direct connection
    BRIDGE: str = '#ff7f0e'     # Orange - compromised feed
    THRESHOLD: str = '#d62728'  # Red - alarm limit
    MARKER: str = '#7f7f7f'     # Grey - phase boundaries


class TelemetryPlotter:
    """
    Plotter for completed runs.

    Usage:
    ------
    >>> plotter = TelemetryPlotter()
    >>> fig, axes = plotter.plot_run(clock.run())
    >>> fig.savefig('run.png', dpi=150)
    """

    def __init__(self, figure_size: Tuple[int, int] = (12, 9)):
        self.figure_size = figure_size

    def plot_run(
        self,
        run: Union[Sequence[SimulationSnapshot], pd.DataFrame],
        title: Optional[str] = None,
    ) -> Tuple[plt.Figure, np.ndarray]:
        """
        Plot all three channels of a run.

        Parameters
        ----------
        run : sequence of SimulationSnapshot or DataFrame
            Snapshots in time order, or their `as_dict()` table
        title : str, optional
            Figure title

        Returns
        -------
        fig : plt.Figure
        axes : np.ndarray of plt.Axes (3,)
        """
        df = run if isinstance(run, pd.DataFrame) else snapshots_to_dataframe(run)
        if len(df) == 0:
            raise ValueError("Cannot plot an empty run")

        time = df['time'].to_numpy(dtype=float)

        fig, axes = plt.subplots(3, 1, figsize=self.figure_size, sharex=True)

        # Panel 1: pressure, the alarm-relevant channel
        ax = axes[0]
        ax.plot(time, df['true_pressure'], color=FeedColors.TRUE, linewidth=2.0,
                label='True')
        ax.plot(time, df['engine_pressure'], color=FeedColors.ENGINE, linewidth=1.2,
                linestyle='--', label='Engine room')
        ax.plot(time, df['bridge_pressure'], color=FeedColors.BRIDGE, linewidth=1.5,
                label='Bridge')
        ax.axhline(PRESSURE_HIGH_THRESHOLD, color=FeedColors.THRESHOLD, linestyle=':',
                   linewidth=1.2, label=f'Alarm ({PRESSURE_HIGH_THRESHOLD:.0f} bar)')
        self._shade_alarm(ax, time, df['engine_alarm'].to_numpy(dtype=bool),
                          FeedColors.ENGINE, 'Engine alarm')
        self._shade_alarm(ax, time, df['bridge_alarm'].to_numpy(dtype=bool),
                          FeedColors.BRIDGE, 'Bridge alarm')
        ax.set_ylabel('Pressure (bar)')
        ax.legend(loc='upper left', fontsize=8)

        # Panel 2: temperature
        ax = axes[1]
        ax.plot(time, df['true_temperature'], color=FeedColors.TRUE, linewidth=2.0,
                label='True')
        ax.plot(time, df['bridge_temperature'], color=FeedColors.BRIDGE, linewidth=1.5,
                label='Bridge')
        ax.set_ylabel('Temperature (°C)')
        ax.legend(loc='upper left', fontsize=8)

        # Panel 3: consumption is not manipulated
        ax = axes[2]
        ax.plot(time, df['true_consumption'], color=FeedColors.TRUE, linewidth=2.0,
                label='True')
        ax.plot(time, df['bridge_consumption'], color=FeedColors.BRIDGE, linewidth=1.0,
                linestyle='--', label='Bridge')
        ax.set_ylabel('Consumption (L/min)')
        ax.set_xlabel('Time (s)')
        ax.legend(loc='upper left', fontsize=8)

        for ax in axes:
            for boundary in (PHASE_RISING_START, PHASE_CRITICAL_START):
                ax.axvline(boundary, color=FeedColors.MARKER, linestyle='--',
                           linewidth=0.8, alpha=0.7)
            ax.axvline(BRIDGE_ALARM_GATE_TIME, color=FeedColors.THRESHOLD,
                       linestyle=':', linewidth=0.8, alpha=0.5)
            ax.grid(True, alpha=0.3)

        fig.suptitle(title or 'Engine Room vs Bridge Telemetry')
        fig.tight_layout()

        return fig, axes

    def _shade_alarm(
        self,
        ax: plt.Axes,
        time: np.ndarray,
        alarm: np.ndarray,
        color: str,
        label: str,
    ) -> None:
        for i, (start, end) in enumerate(self._get_contiguous_regions(alarm)):
            ax.axvspan(
                time[start],
                time[end - 1],
                color=color,
                alpha=0.12,
                label=label if i == 0 else None,
            )

    def _get_contiguous_regions(self, condition: np.ndarray) -> List[Tuple[int, int]]:
        """
        Find contiguous regions where condition is True.

        Returns list of (start_idx, end_idx) tuples, end exclusive.
        """
        d = np.diff(np.concatenate(([False], condition, [False])).astype(int))
        starts = np.where(d == 1)[0]
        ends = np.where(d == -1)[0]

        return list(zip(starts, ends))
