"""
Alarm Timing Analyzer for the Engine-Room Telemetry Twin

Quantifies what the bridge crew lost to the manipulated feed, from the
snapshots of a completed run:

1. Alarm onset per feed: first time each alarm is raised (s)
2. Detection lag: bridge onset minus engine-room onset (s)
3. Peak pressure divergence: max |true - bridge| pressure (bar) and when
4. Masked time: share of the run where the engine room is in alarm but
   the bridge is not

The analysis is read-only: it consumes published snapshots (or an
equivalent table) and never touches the clock.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from engineroom_twin.core.simulation.simulation_clock import SimulationSnapshot


REQUIRED_COLUMNS = (
    'time',
    'true_pressure',
    'bridge_pressure',
    'engine_alarm',
    'bridge_alarm',
)


def snapshots_to_dataframe(snapshots: Sequence[SimulationSnapshot]) -> pd.DataFrame:
    """One row per snapshot, columns as in `SimulationSnapshot.as_dict()`."""
    return pd.DataFrame([snap.as_dict() for snap in snapshots])


@dataclass
class AlarmTimingMetrics:
    """
    Container for alarm timing metrics.

    Times in seconds, pressures in bar. Onsets are None when the alarm
    was never raised during the analysed window.
    """
    engine_alarm_onset: Optional[float] = None
    bridge_alarm_onset: Optional[float] = None
    detection_lag: Optional[float] = None

    peak_pressure_divergence: float = 0.0
    peak_divergence_time: float = 0.0

    masked_fraction: float = 0.0     # 0..1
    masked_duration: float = 0.0     # s

    total_duration: float = 0.0
    sample_count: int = 0

    metadata: Dict[str, Any] = field(default_factory=dict)


class AlarmAnalyzer:
    """
    Post-run alarm timing analysis.

    Usage:
    ------
    >>> clock = SimulationClock(ClockConfig(real_time_factor=0.0))
    >>> analyzer = AlarmAnalyzer()
    >>> metrics = analyzer.analyze(clock.run())
    >>> print(analyzer.generate_report(metrics))
    """

    def analyze(
        self,
        run: Union[Sequence[SimulationSnapshot], pd.DataFrame],
    ) -> AlarmTimingMetrics:
        """
        Compute alarm timing metrics for one run.

        Parameters
        ----------
        run : sequence of SimulationSnapshot or DataFrame
            Snapshots in time order, or a table with at least the columns
            in REQUIRED_COLUMNS

        Returns
        -------
        AlarmTimingMetrics
        """
        metrics = AlarmTimingMetrics()

        df = run.copy() if isinstance(run, pd.DataFrame) else snapshots_to_dataframe(run)
        if len(df) == 0:
            warnings.warn("Empty run, returning zero metrics")
            return metrics

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Run data is missing required columns: {missing}")

        df = df.sort_values('time').reset_index(drop=True)
        time = df['time'].to_numpy(dtype=float)
        engine_alarm = df['engine_alarm'].to_numpy(dtype=bool)
        bridge_alarm = df['bridge_alarm'].to_numpy(dtype=bool)

        metrics.sample_count = len(df)
        metrics.total_duration = float(time[-1] - time[0])
        dt = float(np.median(np.diff(time))) if len(time) > 1 else 0.0

        # 1. ONSETS
        metrics.engine_alarm_onset = self._first_time(time, engine_alarm)
        metrics.bridge_alarm_onset = self._first_time(time, bridge_alarm)
        if metrics.engine_alarm_onset is not None and metrics.bridge_alarm_onset is not None:
            metrics.detection_lag = metrics.bridge_alarm_onset - metrics.engine_alarm_onset

        # 2. DIVERGENCE
        divergence = np.abs(
            df['true_pressure'].to_numpy(dtype=float)
            - df['bridge_pressure'].to_numpy(dtype=float)
        )
        peak_idx = int(np.argmax(divergence))
        metrics.peak_pressure_divergence = float(divergence[peak_idx])
        metrics.peak_divergence_time = float(time[peak_idx])

        # 3. MASKED TIME
        masked = engine_alarm & ~bridge_alarm
        metrics.masked_fraction = float(np.mean(masked))
        metrics.masked_duration = float(np.count_nonzero(masked) * dt)

        metrics.metadata['dt'] = dt
        return metrics

    @staticmethod
    def _first_time(time: np.ndarray, flags: np.ndarray) -> Optional[float]:
        indices = np.flatnonzero(flags)
        if indices.size == 0:
            return None
        return float(time[indices[0]])

    def generate_report(self, metrics: AlarmTimingMetrics) -> str:
        """
        Generate a human-readable alarm timing report.

        Parameters
        ----------
        metrics : AlarmTimingMetrics
            Computed metrics

        Returns
        -------
        str
            Formatted report text
        """
        def _fmt(value: Optional[float]) -> str:
            return f"{value:8.1f} s" if value is not None else "   never"

        report = []
        report.append("=" * 60)
        report.append("ALARM TIMING REPORT")
        report.append("=" * 60)
        report.append("")
        report.append("ALARM ONSET:")
        report.append(f"  Engine Room:           {_fmt(metrics.engine_alarm_onset)}")
        report.append(f"  Bridge:                {_fmt(metrics.bridge_alarm_onset)}")
        report.append(f"  Detection Lag:         {_fmt(metrics.detection_lag)}")
        report.append("")
        report.append("FEED DIVERGENCE:")
        report.append(f"  Peak Pressure Gap:     {metrics.peak_pressure_divergence:8.2f} bar "
                      f"at t={metrics.peak_divergence_time:.1f} s")
        report.append(f"  Alarm Masked:          {metrics.masked_duration:8.1f} s "
                      f"({100.0 * metrics.masked_fraction:.1f}% of run)")
        report.append("")
        report.append(f"  Duration:              {metrics.total_duration:8.1f} s")
        report.append(f"  Samples:               {metrics.sample_count:8d}")
        report.append("=" * 60)

        return "\n".join(report)

    def to_dataframe(self, metrics: AlarmTimingMetrics) -> pd.DataFrame:
        """Single-row DataFrame of the metrics, for batch comparison."""
        data = {
            'engine_alarm_onset': metrics.engine_alarm_onset,
            'bridge_alarm_onset': metrics.bridge_alarm_onset,
            'detection_lag': metrics.detection_lag,
            'peak_pressure_divergence': metrics.peak_pressure_divergence,
            'peak_divergence_time': metrics.peak_divergence_time,
            'masked_fraction': metrics.masked_fraction,
            'masked_duration': metrics.masked_duration,
            'total_duration': metrics.total_duration,
            'sample_count': metrics.sample_count,
        }
        return pd.DataFrame([data])
