#!/usr/bin/env python3
"""
Command-line runner for the Engine-Room Telemetry Manipulation Twin.

Plays the fixed 60 s scenario either paced against the wall clock (with a
console dashboard once per simulated second) or headless as fast as
possible, then prints the alarm timing report.

Usage:
    python -m engineroom_twin.runner                          # real-time
    python -m engineroom_twin.runner --realtime-factor 10     # 10x speed
    python -m engineroom_twin.runner --realtime-factor 0 --plot
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from engineroom_twin.core.simulation.alarm_analyzer import AlarmAnalyzer
from engineroom_twin.core.simulation.scenario import ALPHA, DELAY_STEPS, DT, MAX_TIME
from engineroom_twin.core.simulation.simulation_clock import (
    ClockConfig,
    SimulationClock,
    SimulationSnapshot,
)
from engineroom_twin.core.visualization.console_panel import ConsolePanel


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Engine-Room Telemetry Manipulation Twin - Maritime Cyber Security Demo",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--realtime-factor",
        type=float,
        default=1.0,
        help="Wall-clock pacing (1 = real-time, 0 = headless, as fast as possible)"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Simulated seconds to run (default: until the scenario ends)"
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Show a matplotlib comparison of the feeds after the run"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress the per-second console dashboard"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for simulation events"
    )

    return parser


def run_realtime(
    clock: SimulationClock,
    duration: Optional[float],
    quiet: bool,
) -> List[SimulationSnapshot]:
    """Play against the wall clock, polling snapshots until stop."""
    panel = ConsolePanel()
    history: List[SimulationSnapshot] = []
    end_time = MAX_TIME if duration is None else min(MAX_TIME, duration)
    poll_interval = DT / clock.config.real_time_factor / 2.0

    last_time = -1.0
    last_printed_second = -1

    clock.play()
    while True:
        snap = clock.get_snapshot()
        running = clock.is_running()

        # The loop may tick once more before pause() lands
        if snap.time > end_time + 1e-9:
            clock.pause()
            break

        if snap.time != last_time:
            history.append(snap)
            last_time = snap.time

            second = int(snap.time)
            if not quiet and second != last_printed_second:
                print(panel.render(snap, running=running))
                print()
                last_printed_second = second

        if snap.time >= end_time - 1e-9:
            clock.pause()
            break
        if not running:
            break

        time.sleep(poll_interval)

    return history


def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    if args.realtime_factor < 0:
        print(f"Error: --realtime-factor must be >= 0, got {args.realtime_factor}")
        sys.exit(2)

    print("=" * 60)
    print("Engine-Room Telemetry Manipulation Twin")
    print(f"  Bridge feed: {DELAY_STEPS * DT:.0f} s delay + smoothing (alpha={ALPHA})")
    mode = "headless" if args.realtime_factor == 0 else f"{args.realtime_factor:g}x real-time"
    print(f"  Mode: {mode}")
    print("=" * 60)

    clock = SimulationClock(ClockConfig(real_time_factor=args.realtime_factor))

    try:
        if args.realtime_factor == 0:
            history = clock.run(duration=args.duration)
            if not args.quiet:
                print(ConsolePanel().render(clock.get_snapshot(), running=clock.is_running()))
                print()
        else:
            history = run_realtime(clock, args.duration, args.quiet)

        analyzer = AlarmAnalyzer()
        metrics = analyzer.analyze(history)
        print(analyzer.generate_report(metrics))

        if args.plot and history:
            import matplotlib.pyplot as plt
            from engineroom_twin.core.visualization.time_series_plots import TelemetryPlotter

            TelemetryPlotter().plot_run(history)
            plt.show()

    except KeyboardInterrupt:
        clock.pause()
        print(f"\nSimulation interrupted by user at t={clock.get_snapshot().time:.1f} s.")
        sys.exit(0)
    except Exception as e:
        clock.reset()
        print(f"\nCRITICAL FAILURE: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
