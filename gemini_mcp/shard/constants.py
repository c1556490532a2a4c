"""Project constants for Gemini tool adapters.

This module centralizes defaults shared across engines and the dispatcher.
Keep these values small in scope; upstream-specific translations belong in
individual engine adapters.
"""

from __future__ import annotations

from typing import Final

from .enums import ImageSize, Model, UpscaleFactor

# ----------------------------- General defaults ----------------------------- #

DEFAULT_TEXT_MODEL: Final[str] = Model.GEMINI_TEXT.value
DEFAULT_IMAGE_SIZE: Final[ImageSize] = ImageSize.ONE_K
DEFAULT_UPSCALE_FACTOR: Final[UpscaleFactor] = UpscaleFactor.X2

# Bounds for image counts per request.
MIN_N: Final[int] = 1
MAX_N: Final[int] = 4

# Normalized default mime type for images when the upstream or the file
# extension does not say otherwise.
DEFAULT_MIME: Final[str] = "image/png"

# Input files: extension -> mime. Content is never sniffed.
EXTENSION_MIME_TYPES: Final[dict[str, str]] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
}

SVG_TEMPERATURE: Final[float] = 0.7
SEGMENT_TEMPERATURE: Final[float] = 0.0

DEFAULT_SVG_INSTRUCTIONS: Final[str] = (
    "You are an expert SVG designer. Generate clean, optimized SVG code. "
    "Output ONLY the SVG code with no markdown fences or explanation. "
    "The SVG should be self-contained with proper viewBox and xmlns attributes."
)

DEFAULT_SEGMENT_PROMPT: Final[str] = (
    "Give the segmentation masks for all objects. Output a JSON list of segmentation masks "
    'where each entry contains the 2D bounding box in the key "box_2d" as [y0, x0, y1, x1] '
    'normalized to 0-1000, the segmentation mask as a base64 encoded PNG in key "mask", '
    'and the text label in the key "label". Use descriptive labels.'
)

# Markdown fence tags stripped from structured model output.
FENCE_LANGUAGES: Final[tuple[str, ...]] = ("svg", "xml", "json")

# Error codes used across engines and the dispatcher
ERROR_CODE_VALIDATION: Final[str] = "validation_error"
ERROR_CODE_CONFIGURATION: Final[str] = "configuration_error"
ERROR_CODE_PROVIDER_ERROR: Final[str] = "provider_error"
ERROR_CODE_NO_IMAGES: Final[str] = "no_images_generated"
ERROR_CODE_OUTPUT: Final[str] = "output_error"
