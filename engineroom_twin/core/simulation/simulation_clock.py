"""
Simulation Clock for the Engine-Room Telemetry Manipulation Twin

This module owns the whole mutable state of a play session and advances
it in fixed DT steps:

    tick -> EngineModel(t) -> TelemetryFilter -> alarm evaluation -> snapshot

Two consumers observe the same physical process:

- Engine room: raw readings, alarm when pressure > 120 bar.
- Bridge: delayed + smoothed readings, alarm when the displayed pressure
  > 120 bar AND t > 35 s.

Lifecycle:
---------
    play()   not-running -> running (no time reset)
    pause()  running -> not-running, all state preserved
    reset()  any -> not-running, all state re-created
    tick()   running only; auto-stops at MAX_TIME

Concurrency:
-----------
Every state transition happens under one lock, so readers of
`get_snapshot()` see either the pre-tick or the post-tick snapshot. The
wall-clock loop (`TickScheduler`) only ever calls `tick()`. `pause()` and
`reset()` stop the loop and join its thread before returning.

`play()`, `pause()` and `reset()` are serialized by a second lifecycle
lock held across both the running-flag change and the loop start/stop,
so the flag and the loop always agree. `tick()` never takes it.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from engineroom_twin.core.dynamics.engine_model import EngineModel, EngineReadings
from engineroom_twin.core.sensors.telemetry_filter import TelemetryFilter
from engineroom_twin.core.simulation.scenario import (
    BRIDGE_ALARM_GATE_TIME,
    DT,
    MAX_TIME,
    PRESSURE_HIGH_THRESHOLD,
    Phase,
    phase_at,
)
from engineroom_twin.core.simulation.tick_scheduler import TickScheduler


logger = logging.getLogger(__name__)


@dataclass
class ClockConfig:
    """Host-side configuration for the clock (scenario constants live in `scenario`)."""

    # 1.0 = real-time, 10.0 = ten ticks per DT of wall-clock time,
    # 0.0 = no scheduler: the caller drives tick()/run()
    real_time_factor: float = 1.0

    # Keep snapshots published during run()
    record_history: bool = True

    def __post_init__(self):
        if self.real_time_factor < 0.0:
            raise ValueError(
                f"real_time_factor must be >= 0, got {self.real_time_factor}"
            )


@dataclass(frozen=True)
class SimulationSnapshot:
    """Immutable composite state published once per tick."""

    time: float
    true_values: EngineReadings
    engine_values: EngineReadings
    bridge_values: EngineReadings
    engine_alarm: bool
    bridge_alarm: bool
    phase: Phase = Phase.NORMAL

    def as_dict(self) -> Dict[str, object]:
        """Flat record, one column per signal (for DataFrame construction)."""
        record: Dict[str, object] = {'time': self.time, 'phase': self.phase.value}
        for prefix, values in (
            ('true', self.true_values),
            ('engine', self.engine_values),
            ('bridge', self.bridge_values),
        ):
            for name, value in values.as_dict().items():
                record[f'{prefix}_{name}'] = value
        record['engine_alarm'] = self.engine_alarm
        record['bridge_alarm'] = self.bridge_alarm
        return record


def engine_alarm_raised(true_pressure: float) -> bool:
    """Engine-room alarm: no time gate."""
    return true_pressure > PRESSURE_HIGH_THRESHOLD


def bridge_alarm_raised(time: float, bridge_pressure: float) -> bool:
    """Bridge alarm: suppressed while time <= 35 s regardless of pressure."""
    return time > BRIDGE_ALARM_GATE_TIME and bridge_pressure > PRESSURE_HIGH_THRESHOLD


class SimulationClock:
    """
    Tick-driven simulation of the engine-room / bridge telemetry chain.

    Usage:
    ------
    >>> clock = SimulationClock(ClockConfig(real_time_factor=0.0))
    >>> history = clock.run(duration=25.0)
    >>> snap = clock.get_snapshot()
    >>> snap.engine_alarm, snap.bridge_alarm
    (True, False)

    With a positive `real_time_factor`, `play()` starts a background loop
    that ticks every DT / real_time_factor seconds of wall-clock time.
    """

    max_time: float = MAX_TIME
    dt: float = DT

    def __init__(
        self,
        config: Optional[ClockConfig] = None,
        model: Optional[EngineModel] = None,
    ):
        """
        Initialize the clock in its reset state.

        Parameters
        ----------
        config : ClockConfig, optional
            Host configuration (defaults to real-time pacing)
        model : EngineModel, optional
            Physical model; a fresh stateless model by default
        """
        self.config = config or ClockConfig()
        self.model = model or EngineModel()

        self._lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()
        self._running = False

        self._scheduler: Optional[TickScheduler] = None
        if self.config.real_time_factor > 0.0:
            self._scheduler = TickScheduler(
                self._scheduled_tick,
                period=DT / self.config.real_time_factor,
                on_error=self._on_scheduler_error,
                name="simulation-clock",
            )

        self._init_state()

    def _init_state(self) -> None:
        """(Re)create every piece of session state. Caller holds the lock or owns the object."""
        self.iteration = 0
        self.time = 0.0
        self.telemetry_filter = TelemetryFilter()

        initial = self.model.evaluate(0.0)
        self._snapshot = SimulationSnapshot(
            time=0.0,
            true_values=initial,
            engine_values=initial,
            bridge_values=self.telemetry_filter.current_output(initial.consumption),
            engine_alarm=False,
            bridge_alarm=False,
            phase=phase_at(0.0),
        )

    # ---------------------------------------- #
    #  Lifecycle                                #
    # ---------------------------------------- #

    def play(self) -> None:
        """Start (or resume) ticking. No effect if already running."""
        with self._lifecycle_lock:
            with self._lock:
                if self._running:
                    return
                self._running = True
                resumed_at = self.time

            if self._scheduler is not None:
                self._scheduler.start()

        logger.info("Simulation playing from t=%.1f s", resumed_at)

    def pause(self) -> None:
        """Stop ticking; all accumulated state is preserved for a later play()."""
        with self._lifecycle_lock:
            with self._lock:
                was_running = self._running
                self._running = False
                paused_at = self.time

            # Join outside the state lock: an in-flight tick needs it to finish
            if self._scheduler is not None:
                self._scheduler.stop()

        if was_running:
            logger.info("Simulation paused at t=%.1f s", paused_at)

    def reset(self) -> None:
        """Stop ticking and re-create all state as at construction."""
        with self._lifecycle_lock:
            with self._lock:
                self._running = False
                self._init_state()

            if self._scheduler is not None:
                self._scheduler.stop()

        logger.info("Simulation reset")

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def get_snapshot(self) -> SimulationSnapshot:
        """Latest published snapshot; safe at any time."""
        with self._lock:
            return self._snapshot

    # ---------------------------------------- #
    #  Stepping                                 #
    # ---------------------------------------- #

    def tick(self) -> SimulationSnapshot:
        """
        Advance the simulation by one DT step.

        No-op while not running. When the next time would reach MAX_TIME,
        time is clamped to MAX_TIME and the clock stops without computing
        the rest of the step.

        Returns
        -------
        SimulationSnapshot
            The snapshot current after this call
        """
        with self._lock:
            if not self._running:
                return self._snapshot

            prev = self._snapshot
            next_iteration = self.iteration + 1
            new_time = next_iteration * DT

            if new_time >= MAX_TIME:
                self.iteration = next_iteration
                self.time = MAX_TIME
                self._running = False
                self._snapshot = replace(prev, time=MAX_TIME, phase=phase_at(MAX_TIME))
                logger.info("Simulation reached t=%.1f s, stopping", MAX_TIME)
                return self._snapshot

            true_values = self.model.evaluate(new_time)
            bridge_values = self.telemetry_filter.process(true_values)

            snapshot = SimulationSnapshot(
                time=new_time,
                true_values=true_values,
                engine_values=true_values,
                bridge_values=bridge_values,
                engine_alarm=engine_alarm_raised(true_values.pressure),
                bridge_alarm=bridge_alarm_raised(new_time, bridge_values.pressure),
                phase=phase_at(new_time),
            )

            self.iteration = next_iteration
            self.time = new_time
            self._snapshot = snapshot

        self._log_alarm_edges(prev, snapshot)
        return snapshot

    def run(self, duration: Optional[float] = None) -> List[SimulationSnapshot]:
        """
        Play and tick synchronously, without wall-clock pacing.

        Runs until auto-stop at MAX_TIME or until `duration` seconds of
        simulated time have elapsed (then pauses). The returned snapshots
        are kept in memory only.

        Parameters
        ----------
        duration : float, optional
            Simulated seconds to advance (None = until MAX_TIME)

        Returns
        -------
        List[SimulationSnapshot]
            Snapshots published by this run, in order (empty when
            `config.record_history` is False)
        """
        with self._lifecycle_lock:
            if self._scheduler is not None and self._scheduler.is_active:
                raise RuntimeError("run() cannot be used while the wall-clock loop is active")

            with self._lock:
                self._running = True
                start_time = self.time

        end_time = MAX_TIME if duration is None else min(MAX_TIME, start_time + duration)

        history: List[SimulationSnapshot] = []
        # Epsilon guards the float comparison at the end boundary
        while self.is_running() and self.get_snapshot().time < end_time - 1e-9:
            snapshot = self.tick()
            if self.config.record_history:
                history.append(snapshot)

        with self._lock:
            self._running = False

        return history

    # ---------------------------------------- #
    #  Scheduler hooks                          #
    # ---------------------------------------- #

    def _scheduled_tick(self) -> bool:
        self.tick()
        return self.is_running()

    def _on_scheduler_error(self, error: BaseException) -> None:
        with self._lock:
            self._running = False
        logger.error("Simulation stopped after tick failure: %s", error)

    def _log_alarm_edges(self, prev: SimulationSnapshot, current: SimulationSnapshot) -> None:
        for feed, was, now, pressure in (
            ('Engine room', prev.engine_alarm, current.engine_alarm, current.engine_values.pressure),
            ('Bridge', prev.bridge_alarm, current.bridge_alarm, current.bridge_values.pressure),
        ):
            if now and not was:
                logger.warning(
                    "%s alarm raised at t=%.1f s (pressure %.1f bar)",
                    feed, current.time, pressure,
                )
            elif was and not now:
                logger.info("%s alarm cleared at t=%.1f s", feed, current.time)
