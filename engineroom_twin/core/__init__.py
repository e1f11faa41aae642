"""Simulation core of the engine-room telemetry digital twin."""
