from .base_engine import GeminiEngine
from .factory import EngineFactory

__all__ = ["GeminiEngine", "EngineFactory"]
