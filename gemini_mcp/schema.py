from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .shard import constants as C
from .shard.enums import (
    AspectRatio,
    EditMode,
    ImageSize,
    OutputFormat,
    Role,
    ThinkingLevel,
    UpscaleFactor,
)


# ---------------------------- Bounded arguments ----------------------------- #
# Used by both the request models and the tool signatures in main.py.

MaxTokens = Annotated[int | None, Field(ge=1, description="Maximum tokens to generate.")]
Temperature = Annotated[float | None, Field(ge=0, le=2, description="Temperature for randomness (0-2).")]
TopP = Annotated[float | None, Field(ge=0, le=1, description="Top-p sampling parameter (0-1).")]
JpegQuality = Annotated[int | None, Field(ge=0, le=100, description="JPEG compression quality (0-100).")]
ImageCount = Annotated[int | None, Field(ge=C.MIN_N, le=C.MAX_N, description="Number of images to produce (1-4).")]


# ------------------------------- Shared payloads ---------------------------- #


class Usage(BaseModel):
    """Token counters copied from the upstream response (informational only)."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def footer(self) -> str:
        return f"**Usage:** {self.prompt_tokens} prompt, {self.completion_tokens} completion, {self.total_tokens} total"


class ImageAsset(BaseModel):
    """Binary image payload with its declared mime type."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = C.DEFAULT_MIME


class GenerationOptions(BaseModel):
    """Text generation knobs passed to the upstream config."""

    model_config = ConfigDict(frozen=True)

    model: str = C.DEFAULT_TEXT_MODEL
    instructions: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    thinking_level: ThinkingLevel | None = None
    include_thoughts: bool | None = None


# ------------------------------- Engine results ----------------------------- #


class TextResult(BaseModel):
    kind: Literal["text"] = "text"
    content: str = ""
    reasoning: str | None = None
    usage: Usage | None = None


class ImageResult(BaseModel):
    kind: Literal["image"] = "image"
    text: str | None = None
    images: list[ImageAsset] = Field(default_factory=list)
    usage: Usage | None = None


class SvgResult(BaseModel):
    kind: Literal["svg"] = "svg"
    svg: str = ""
    usage: Usage | None = None


class SegmentMask(BaseModel):
    """One detected object as returned by the segmentation model."""

    box_2d: tuple[float, float, float, float] = Field(description="[y0, x0, y1, x1] normalized to 0-1000; fractional coordinates are kept as sent.")
    mask: str = Field(description="Base64 encoded PNG probability map.")
    label: str

    @field_validator("mask")
    @classmethod
    def _strip_data_uri(cls, v: str) -> str:
        if v.startswith("data:"):
            return v.split(",", 1)[1] if "," in v else ""
        return v


class SegmentResult(BaseModel):
    kind: Literal["segment"] = "segment"
    masks: list[SegmentMask] = Field(default_factory=list)
    usage: Usage | None = None


GenerationResult = Annotated[TextResult | ImageResult | SvgResult | SegmentResult, Field(discriminator="kind")]


# ------------------------------- Text requests ------------------------------ #


class _GenerationArgs(BaseModel):
    model: str = Field(default=C.DEFAULT_TEXT_MODEL, min_length=1, description="Gemini model variant to use.")
    instructions: str | None = Field(default=None, description="System instructions for the model.")
    thinking_level: ThinkingLevel | None = Field(default=None, description="Thinking/reasoning depth level.")
    include_thoughts: bool | None = Field(default=None, description="Whether to include the model's reasoning in response.")
    max_tokens: MaxTokens = None
    temperature: Temperature = None
    top_p: TopP = None

    def to_options(self, instructions: str | None = None) -> GenerationOptions:
        return GenerationOptions(
            model=self.model,
            instructions=self.instructions or instructions,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            thinking_level=self.thinking_level,
            include_thoughts=self.include_thoughts,
        )


class GenerateRequest(_GenerationArgs):
    """Single-prompt text generation."""

    prompt: str


class ChatMessage(BaseModel):
    role: Role
    content: str


class MessagesRequest(_GenerationArgs):
    """Conversation-based text generation.

    A system-role message becomes the system instruction unless
    `instructions` is given explicitly.
    """

    messages: list[ChatMessage]

    @field_validator("messages")
    @classmethod
    def _ensure_turns(cls, v: list[ChatMessage]) -> list[ChatMessage]:
        if not any(m.role != Role.SYSTEM for m in v):
            raise ValueError("messages must contain at least one user or assistant message")
        return v

    def system_message(self) -> str | None:
        for m in self.messages:
            if m.role == Role.SYSTEM:
                return m.content
        return None

    def to_options(self, instructions: str | None = None) -> GenerationOptions:  # type: ignore[override]
        return super().to_options(instructions or self.system_message())


class SvgRequest(BaseModel):
    prompt: str
    output_path: str | None = Field(default=None, description="Path to save the SVG file.")
    instructions: str | None = Field(default=None, description="Custom system instructions for SVG generation.")


# ------------------------------- Image requests ----------------------------- #


class ImageRequest(BaseModel):
    """Generate (or restyle) an image with the Gemini image model."""

    prompt: str
    input_image: str | None = Field(default=None, description="Path to an input image used as reference.")
    output_path: str | None = Field(default=None, description="Path to save the output image; extension follows the returned format.")
    image_size: ImageSize = Field(default=C.DEFAULT_IMAGE_SIZE)
    aspect_ratio: AspectRatio | None = Field(default=None)
    negative_prompt: str | None = Field(default=None)
    num_images: ImageCount = None
    guidance_scale: float | None = Field(default=None)
    seed: int | None = Field(default=None)


class UpscaleRequest(BaseModel):
    input_image: str
    output_path: str | None = Field(default=None)
    output_format: OutputFormat | None = Field(default=None)
    jpeg_quality: JpegQuality = None
    upscale_factor: UpscaleFactor = Field(default=C.DEFAULT_UPSCALE_FACTOR)


class EditRequest(BaseModel):
    prompt: str
    input_image: str
    mask_image: str | None = Field(default=None, description="Path to mask image (white areas will be edited).")
    output_path: str | None = Field(default=None)
    edit_mode: EditMode | None = Field(default=None)
    output_format: OutputFormat | None = Field(default=None)
    jpeg_quality: JpegQuality = None
    negative_prompt: str | None = Field(default=None)
    num_images: ImageCount = None
    guidance_scale: float | None = Field(default=None)
    seed: int | None = Field(default=None)


class SegmentRequest(BaseModel):
    input_image: str
    prompt: str | None = Field(default=None, description="Custom segmentation instruction.")
    output_mask_path: str | None = Field(default=None, description="Path to save the first mask as PNG.")


# -------------------------- Public minimal tool output ----------------------- #


class ImageDescriptor(BaseModel):
    """Lightweight image metadata for structured tool outputs (no blobs)."""

    mimeType: str = Field(description="MIME type for the image.")
    file_path: str | None = Field(default=None, description="Absolute filesystem path where the image was saved, if applicable.")


class ImageToolStructured(BaseModel):
    """Public structured output for image tools without binary payloads."""

    ok: bool = Field(default=True)
    model: str = Field(description="Model used for the operation.")
    image_count: int = Field(default=0)
    images: list[ImageDescriptor] = Field(default_factory=list)
    text: str | None = Field(default=None, description="Text the model returned alongside the images.")


__all__ = [
    "MaxTokens",
    "Temperature",
    "TopP",
    "JpegQuality",
    "ImageCount",
    "Usage",
    "ImageAsset",
    "GenerationOptions",
    "TextResult",
    "ImageResult",
    "SvgResult",
    "SegmentMask",
    "SegmentResult",
    "GenerationResult",
    "GenerateRequest",
    "ChatMessage",
    "MessagesRequest",
    "SvgRequest",
    "ImageRequest",
    "UpscaleRequest",
    "EditRequest",
    "SegmentRequest",
    "ImageDescriptor",
    "ImageToolStructured",
]
