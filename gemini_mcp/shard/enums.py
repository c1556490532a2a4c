from __future__ import annotations

from enum import StrEnum


class Capability(StrEnum):
    """Upstream capabilities exposed as tools.

    Used by the engine factory to route a tool call to the engine that
    builds the upstream request.
    """

    TEXT = "text"
    IMAGE = "image"
    UPSCALE = "upscale"
    EDIT = "edit"
    SVG = "svg"
    SEGMENT = "segment"


class Family(StrEnum):
    """Engine family classifications.

    Values:
    - ``AR``: Gemini generateContent models (text, image, SVG, segmentation)
    - ``DIFFUSION``: Imagen models (upscale, edit)
    """

    AR = "ar"
    DIFFUSION = "diffusion"


class Model(StrEnum):
    """Fixed upstream model ids, one per capability.

    Only the text tools let callers override the model; everything else is
    pinned here.
    """

    GEMINI_TEXT = "gemini-3-pro-preview"
    GEMINI_IMAGE = "gemini-3-pro-image-preview"
    GEMINI_SEGMENT = "gemini-2.5-flash"
    IMAGEN_UPSCALE = "imagen-3.0-generate-002"
    IMAGEN_EDIT = "imagen-3.0-capability-001"


class Role(StrEnum):
    """Conversation roles accepted by the messages tool."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

    def to_upstream(self) -> str:
        """Gemini only knows 'user' and 'model' turns."""
        return "model" if self is Role.ASSISTANT else "user"


class ThinkingLevel(StrEnum):
    """Reasoning depth for thinking-capable models."""

    LOW = "low"
    HIGH = "high"


class ImageSize(StrEnum):
    """Output resolution tiers for Gemini image models."""

    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"


class AspectRatio(StrEnum):
    """Aspect ratios accepted by Gemini image models."""

    SQUARE = "1:1"
    PORTRAIT_2_3 = "2:3"
    LANDSCAPE_3_2 = "3:2"
    PORTRAIT_3_4 = "3:4"
    LANDSCAPE_4_3 = "4:3"
    PORTRAIT_4_5 = "4:5"
    LANDSCAPE_5_4 = "5:4"
    PORTRAIT_9_16 = "9:16"
    LANDSCAPE_16_9 = "16:9"
    ULTRAWIDE_21_9 = "21:9"


class OutputFormat(StrEnum):
    """Output encodings supported by Imagen upscale/edit."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"


class EditMode(StrEnum):
    """Edit modes for Imagen editing."""

    INPAINT = "inpaint"
    OUTPAINT = "outpaint"

    def to_upstream(self) -> str:
        if self is EditMode.OUTPAINT:
            return "EDIT_MODE_OUTPAINT"
        return "EDIT_MODE_INPAINT_INSERTION"


class UpscaleFactor(StrEnum):
    """Imagen upscale factors."""

    X2 = "x2"
    X4 = "x4"


__all__ = [
    "Capability",
    "Family",
    "Model",
    "Role",
    "ThinkingLevel",
    "ImageSize",
    "AspectRatio",
    "OutputFormat",
    "EditMode",
    "UpscaleFactor",
]
