from __future__ import annotations

from typing import Any, ClassVar, NoReturn

from google import genai
from google.genai import types
from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..exceptions import ConfigurationError, ProviderError
from ..schema import ImageAsset, Usage
from ..settings import Settings
from ..shard.enums import Family
from ..utils.error_helpers import augment_with_setup_tip


class GeminiEngine(BaseModel):
    """Base for engines that translate one tool call into one upstream call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    family: ClassVar[Family]

    name: str
    settings: Settings

    def __init__(self, settings: Settings, **data: Any) -> None:
        data.setdefault("name", f"{type(self).family.value}:{type(self).__name__}")
        super().__init__(settings=settings, **data)

    # ------------------------------------------------------------------
    # Client management
    # ------------------------------------------------------------------
    def _client(self) -> genai.Client:
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable must be set to use Gemini tools")
        return genai.Client(api_key=api_key)

    def _raise_provider_error(self, exception: Exception, model: str) -> NoReturn:
        logger.warning(f"{self.name} call to {model} failed: {type(exception).__name__}: {exception}")
        raise ProviderError(augment_with_setup_tip(str(exception)), model) from exception

    async def _generate_content(self, *, model: str, contents: Any, config: types.GenerateContentConfig) -> types.GenerateContentResponse:
        """Issue a single generateContent call, wrapping upstream failures."""
        client = self._client()
        logger.debug(f"{self.name}: generate_content model={model}")
        try:
            return await client.aio.models.generate_content(model=model, contents=contents, config=config)
        except Exception as e:
            self._raise_provider_error(e, model)

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _first_candidate_parts(response: types.GenerateContentResponse) -> list[types.Part]:
        candidates = response.candidates
        if not candidates:
            return []
        content = candidates[0].content
        return list(content.parts) if content and content.parts else []

    @classmethod
    def collect_text(cls, response: types.GenerateContentResponse, *, thoughts: bool = False) -> str:
        """Concatenate the text parts of the first candidate.

        `response.text` is not used: some model variants leave it empty even
        when the candidate carries text parts. With `thoughts=True` only the
        thought summary parts are collected instead.
        """
        return "".join(part.text for part in cls._first_candidate_parts(response) if part.text and bool(part.thought) == thoughts)

    @classmethod
    def collect_inline_images(cls, response: types.GenerateContentResponse, default_mime: str) -> list[ImageAsset]:
        images: list[ImageAsset] = []
        for part in cls._first_candidate_parts(response):
            inline = part.inline_data
            if inline is None or part.thought or not inline.data:
                continue
            images.append(ImageAsset(data=inline.data, mime_type=inline.mime_type or default_mime))
        return images

    @staticmethod
    def extract_usage(response: Any) -> Usage | None:
        meta = getattr(response, "usage_metadata", None)
        if meta is None:
            return None
        return Usage(
            prompt_tokens=meta.prompt_token_count or 0,
            completion_tokens=meta.candidates_token_count or 0,
            total_tokens=meta.total_token_count or 0,
        )
