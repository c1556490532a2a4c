from __future__ import annotations

from typing import ClassVar

from google.genai import types
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ...schema import ImageAsset, SegmentMask, SegmentRequest, SegmentResult
from ...shard import constants as C
from ...shard.enums import Family, Model
from ...utils.text_utils import strip_code_fences
from ..base_engine import GeminiEngine

_MASK_LIST = TypeAdapter(list[SegmentMask])


def parse_masks(text: str) -> list[SegmentMask]:
    """Parse model output into masks.

    Model output is untrusted: anything that is not a JSON array of
    well-formed mask entries yields an empty list.
    """
    cleaned = strip_code_fences(text)
    try:
        return _MASK_LIST.validate_json(cleaned)
    except ValidationError as e:
        logger.warning(f"Discarding unparseable segmentation output ({e.error_count()} error(s)): {cleaned[:120]!r}")
        return []


class GeminiSegment(GeminiEngine):
    """Gemini segmentation adapter returning box/mask/label entries."""

    family: ClassVar[Family] = Family.AR

    async def segment(self, req: SegmentRequest, image: ImageAsset) -> SegmentResult:
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                    types.Part(text=req.prompt or C.DEFAULT_SEGMENT_PROMPT),
                ],
            )
        ]
        config = types.GenerateContentConfig(temperature=C.SEGMENT_TEMPERATURE, response_modalities=["TEXT"])

        response = await self._generate_content(model=Model.GEMINI_SEGMENT.value, contents=contents, config=config)
        return SegmentResult(masks=parse_masks(self.collect_text(response)), usage=self.extract_usage(response))
