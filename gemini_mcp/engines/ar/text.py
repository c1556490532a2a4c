from __future__ import annotations

from typing import Any, ClassVar

from google.genai import types
from loguru import logger

from ...schema import ChatMessage, GenerationOptions, SvgResult, TextResult
from ...shard import constants as C
from ...shard.enums import Family, Model, Role
from ...utils.text_utils import strip_code_fences
from ..base_engine import GeminiEngine


class GeminiText(GeminiEngine):
    """Gemini text adapter: single prompts, conversations and SVG markup."""

    family: ClassVar[Family] = Family.AR

    @staticmethod
    def build_config(options: GenerationOptions) -> types.GenerateContentConfig:
        """Map generation options onto the upstream config, leaving unset knobs out."""
        kwargs: dict[str, Any] = {}
        if options.instructions:
            kwargs["system_instruction"] = options.instructions
        if options.max_tokens is not None:
            kwargs["max_output_tokens"] = options.max_tokens
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.top_p is not None:
            kwargs["top_p"] = options.top_p
        if options.thinking_level is not None or options.include_thoughts is not None:
            kwargs["thinking_config"] = types.ThinkingConfig(
                include_thoughts=options.include_thoughts,
                thinking_level=options.thinking_level.value.upper() if options.thinking_level else None,  # type: ignore[arg-type]
            )
        return types.GenerateContentConfig(**kwargs)

    @staticmethod
    def build_contents(messages: list[ChatMessage]) -> list[types.Content]:
        """Convert conversation turns; system messages are carried by the config instead."""
        return [types.Content(role=m.role.to_upstream(), parts=[types.Part(text=m.content)]) for m in messages if m.role != Role.SYSTEM]

    def _to_result(self, response: types.GenerateContentResponse) -> TextResult:
        reasoning = self.collect_text(response, thoughts=True)
        return TextResult(
            content=self.collect_text(response),
            reasoning=reasoning or None,
            usage=self.extract_usage(response),
        )

    async def generate(self, prompt: str, options: GenerationOptions) -> TextResult:
        response = await self._generate_content(model=options.model, contents=prompt, config=self.build_config(options))
        return self._to_result(response)

    async def generate_from_messages(self, messages: list[ChatMessage], options: GenerationOptions) -> TextResult:
        contents = self.build_contents(messages)
        logger.debug(f"{self.name}: {len(contents)} conversation turn(s)")
        response = await self._generate_content(model=options.model, contents=contents, config=self.build_config(options))
        return self._to_result(response)

    async def generate_svg(self, prompt: str, instructions: str | None = None) -> SvgResult:
        config = types.GenerateContentConfig(
            system_instruction=instructions or C.DEFAULT_SVG_INSTRUCTIONS,
            temperature=C.SVG_TEMPERATURE,
        )
        response = await self._generate_content(model=Model.GEMINI_TEXT.value, contents=prompt, config=config)
        return SvgResult(svg=strip_code_fences(self.collect_text(response)), usage=self.extract_usage(response))
