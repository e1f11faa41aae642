"""
Unit tests for the presentation consumers: console panel helpers and the
matplotlib run plot.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
import pytest

from engineroom_twin.core.simulation.simulation_clock import ClockConfig, SimulationClock
from engineroom_twin.core.visualization.console_panel import (
    ConsolePanel,
    StatusLevel,
    bar_fraction,
    classify_reading,
    format_elapsed,
    progress,
)
from engineroom_twin.core.visualization.time_series_plots import TelemetryPlotter


class TestStatusLevels:
    """Display thresholds per channel."""

    @pytest.mark.parametrize("value, level", [
        (100.0, StatusLevel.SAFE),
        (110.0, StatusLevel.SAFE),
        (110.5, StatusLevel.WARNING),
        (125.0, StatusLevel.WARNING),
        (125.5, StatusLevel.DANGER),
    ])
    def test_pressure(self, value, level):
        assert classify_reading('pressure', value) is level

    @pytest.mark.parametrize("value, level", [
        (120.0, StatusLevel.SAFE),
        (125.0, StatusLevel.WARNING),
        (130.0, StatusLevel.WARNING),
        (130.1, StatusLevel.DANGER),
    ])
    def test_temperature(self, value, level):
        assert classify_reading('temperature', value) is level

    def test_consumption_has_no_status(self):
        assert classify_reading('consumption', 500.0) is StatusLevel.SAFE

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            classify_reading('rpm', 1000.0)


class TestTimelineHelpers:
    """Time formatting and gauge fill."""

    @pytest.mark.parametrize("seconds, text", [
        (0.0, "00:00"),
        (9.9, "00:09"),
        (59.9, "00:59"),
        (60.0, "01:00"),
        (75.5, "01:15"),
    ])
    def test_format_elapsed(self, seconds, text):
        assert format_elapsed(seconds) == text

    def test_progress(self):
        assert progress(0.0) == 0.0
        assert progress(30.0) == pytest.approx(0.5)
        assert progress(60.0) == 1.0

    def test_bar_fraction_clamped(self):
        assert bar_fraction(80.0, 80.0, 150.0) == 0.0
        assert bar_fraction(115.0, 80.0, 150.0) == pytest.approx(0.5)
        assert bar_fraction(50.0, 80.0, 150.0) == 0.0
        assert bar_fraction(200.0, 80.0, 150.0) == 1.0


class TestConsolePanel:
    """Text dashboard rendering."""

    def test_render_initial(self):
        clock = SimulationClock(ClockConfig(real_time_factor=0.0))
        text = ConsolePanel().render(clock.get_snapshot(), running=False)

        assert text.startswith("00:00")
        for title in ("TRUE SYSTEM", "ENGINE ROOM", "BRIDGE"):
            assert title in text
        assert "HIGH FUEL PRESSURE" not in text
        assert "STOP" in text

    def test_render_engine_alarm(self):
        clock = SimulationClock(ClockConfig(real_time_factor=0.0))
        clock.run(duration=25.0)
        text = ConsolePanel().render(clock.get_snapshot())

        engine_line = next(l for l in text.splitlines() if l.startswith("ENGINE ROOM"))
        bridge_line = next(l for l in text.splitlines() if l.startswith("BRIDGE"))
        assert "HIGH FUEL PRESSURE" in engine_line
        assert "HIGH FUEL PRESSURE" not in bridge_line
        assert "Rising" in text


class TestTelemetryPlotter:
    """matplotlib run plot."""

    def test_plot_full_run(self):
        history = SimulationClock(ClockConfig(real_time_factor=0.0)).run()
        fig, axes = TelemetryPlotter().plot_run(history, title="Scenario")
        try:
            assert len(axes) == 3
            assert axes[0].get_ylabel() == 'Pressure (bar)'
            assert len(axes[0].get_lines()) >= 3
        finally:
            plt.close(fig)

    def test_contiguous_regions(self):
        regions = TelemetryPlotter()._get_contiguous_regions(
            np.array([False, True, True, False, True])
        )
        assert [(int(s), int(e)) for s, e in regions] == [(1, 3), (4, 5)]

    def test_empty_run_rejected(self):
        with pytest.raises(ValueError):
            TelemetryPlotter().plot_run([])
