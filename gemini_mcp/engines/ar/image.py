from __future__ import annotations

from typing import Any, ClassVar

from google.genai import types
from loguru import logger

from ...schema import ImageAsset, ImageRequest, ImageResult
from ...shard import constants as C
from ...shard.enums import Family, Model
from ...utils.prompt import render_image_prompt
from ..base_engine import GeminiEngine


class GeminiImage(GeminiEngine):
    """Gemini image adapter.

    Sends an optional reference image and the prompt in one user turn and
    asks for IMAGE and TEXT back. Knobs the API has no field for are folded
    into prompt guidance via `render_image_prompt`.
    """

    family: ClassVar[Family] = Family.AR

    @staticmethod
    def _collect_dropped_params(req: ImageRequest) -> list[str]:
        dropped: list[str] = []
        if req.guidance_scale is not None:
            dropped.append("guidance_scale")
        return dropped

    @staticmethod
    def build_config(req: ImageRequest) -> types.GenerateContentConfig:
        kwargs: dict[str, Any] = {"response_modalities": ["IMAGE", "TEXT"]}
        if req.seed is not None:
            kwargs["seed"] = req.seed

        # ImageConfig only carries aspect ratio and size for Gemini image models
        image_config: dict[str, Any] = {}
        if req.image_size:
            image_config["image_size"] = req.image_size.value
        if req.aspect_ratio:
            image_config["aspect_ratio"] = req.aspect_ratio.value
        if image_config:
            kwargs["image_config"] = types.ImageConfig(**image_config)
        return types.GenerateContentConfig(**kwargs)

    @staticmethod
    def build_contents(prompt: str, reference: ImageAsset | None) -> list[types.Content]:
        parts: list[types.Part] = []
        if reference is not None:
            parts.append(types.Part.from_bytes(data=reference.data, mime_type=reference.mime_type))
        parts.append(types.Part(text=prompt))
        return [types.Content(role="user", parts=parts)]

    async def generate(self, req: ImageRequest, reference: ImageAsset | None = None) -> ImageResult:
        model = Model.GEMINI_IMAGE.value

        prompt, folded = render_image_prompt(prompt=req.prompt, negative_prompt=req.negative_prompt, num_images=req.num_images)
        dropped = self._collect_dropped_params(req)
        if folded or dropped:
            logger.debug(f"{self.name}: folded={folded} dropped={dropped}")

        response = await self._generate_content(model=model, contents=self.build_contents(prompt, reference), config=self.build_config(req))

        text = self.collect_text(response)
        return ImageResult(
            text=text or None,
            images=self.collect_inline_images(response, C.DEFAULT_MIME),
            usage=self.extract_usage(response),
        )
