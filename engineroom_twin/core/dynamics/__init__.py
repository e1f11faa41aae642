"""Physical process models for the engine-room digital twin."""

from .engine_model import EngineModel, EngineReadings

__all__ = [
    'EngineModel',
    'EngineReadings',
]
