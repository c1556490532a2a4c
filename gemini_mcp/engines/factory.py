from __future__ import annotations

import importlib

from loguru import logger

from ..exceptions import ConfigurationError
from ..settings import Settings
from ..shard.enums import Capability
from .base_engine import GeminiEngine

# Capability-engine mapping. Import paths keep engine modules (and their SDK
# imports) out of the import graph until a tool actually needs them.
CAPABILITY_ENGINE_MAP: dict[Capability, type[GeminiEngine] | str] = {
    Capability.TEXT: "gemini_mcp.engines.ar.text.GeminiText",
    Capability.SVG: "gemini_mcp.engines.ar.text.GeminiText",
    Capability.IMAGE: "gemini_mcp.engines.ar.image.GeminiImage",
    Capability.SEGMENT: "gemini_mcp.engines.ar.segment.GeminiSegment",
    Capability.UPSCALE: "gemini_mcp.engines.diffusion.imagen.ImagenEngine",
    Capability.EDIT: "gemini_mcp.engines.diffusion.imagen.ImagenEngine",
}


def _load_engine_class(path_or_cls: type[GeminiEngine] | str) -> type[GeminiEngine]:
    """Resolve an engine class from either a direct class or an import path string."""
    if isinstance(path_or_cls, str):
        module_path, class_name = path_or_cls.rsplit(".", 1)
        module = importlib.import_module(module_path)
        return getattr(module, class_name)
    return path_or_cls


class EngineFactory:
    """Creates engines bound to the process settings.

    Engines are cheap and stateless; a fresh one is built per tool call so
    concurrent calls share nothing.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def create(self, capability: Capability) -> GeminiEngine:
        if not self.settings.is_configured:
            raise ConfigurationError("GEMINI_API_KEY is not configured; run the gemini_setup tool for instructions.")
        engine_class = _load_engine_class(CAPABILITY_ENGINE_MAP[capability])
        engine = engine_class(settings=self.settings)
        logger.debug(f"Created engine {engine.name} for {capability.value}")
        return engine


__all__ = ["CAPABILITY_ENGINE_MAP", "EngineFactory"]
