"""
Simulation core: scenario parameters, the tick-driven clock, its
scheduling loop and post-run alarm analysis.

Submodules are imported directly (e.g.
``engineroom_twin.core.simulation.simulation_clock``) so that the model
and filter packages can depend on ``scenario`` without import cycles.
"""
