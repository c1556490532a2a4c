from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, cast

from fastmcp.tools.tool import ToolResult
from fastmcp.utilities.types import Image as FastMCPImage
from loguru import logger
from mcp.types import ContentBlock, TextContent

from .engines import EngineFactory
from .exceptions import NoImagesGeneratedError
from .schema import (
    EditRequest,
    GenerateRequest,
    GenerationResult,
    ImageAsset,
    ImageDescriptor,
    ImageRequest,
    ImageResult,
    ImageToolStructured,
    MessagesRequest,
    SegmentRequest,
    SegmentResult,
    SvgRequest,
    SvgResult,
    TextResult,
    UpscaleRequest,
)
from .settings import Settings
from .shard.enums import Capability, Model
from .shard.instructions import SETUP_INSTRUCTIONS
from .utils.image_utils import decode_base64_image, read_image_asset, save_image_assets, write_bytes, write_text
from .utils.text_utils import append_footer

if TYPE_CHECKING:
    from .engines.ar.image import GeminiImage
    from .engines.ar.segment import GeminiSegment
    from .engines.ar.text import GeminiText
    from .engines.diffusion.imagen import ImagenEngine


def _text(text: str) -> TextContent:
    return TextContent(type="text", text=text)


def _image_content(asset: ImageAsset) -> ContentBlock:
    fmt = asset.mime_type.split("/")[-1] or "png"
    return FastMCPImage(data=asset.data, format=fmt).to_image_content(mime_type=asset.mime_type)


class ToolDispatcher:
    """Runs one tool call: read input files, call the engine, write outputs, build the reply.

    Holds no per-call state; the settings it receives are fixed for the
    process lifetime.
    """

    def __init__(self, settings: Settings, factory: EngineFactory | None = None) -> None:
        self.settings = settings
        self.factory = factory or EngineFactory(settings)

    # ------------------------------------------------------------------
    # File resolution
    # ------------------------------------------------------------------
    @staticmethod
    async def _read_image(path: str, field: str) -> ImageAsset:
        return await asyncio.to_thread(read_image_asset, path, field=field)

    async def _read_optional_image(self, path: str | None, field: str) -> ImageAsset | None:
        if not path:
            return None
        return await self._read_image(path, field)

    # ------------------------------------------------------------------
    # Reply formatting
    # ------------------------------------------------------------------
    async def render(self, result: GenerationResult, *, output_path: str | None = None, model: str = "") -> ToolResult:
        """Format any engine result into MCP content blocks."""
        if isinstance(result, TextResult):
            return self._render_text(result)
        if isinstance(result, SvgResult):
            return await self._render_svg(result, output_path)
        if isinstance(result, ImageResult):
            return await self._render_images(result, output_path, model)
        if isinstance(result, SegmentResult):
            return await self._render_segments(result, output_path)
        raise TypeError(f"Unsupported result type: {type(result).__name__}")

    @staticmethod
    def _render_text(result: TextResult) -> ToolResult:
        text = result.content
        if result.reasoning:
            text = f"**Reasoning:**\n{result.reasoning}\n\n**Response:**\n{result.content}"
        text = append_footer(text, result.usage.footer() if result.usage else None)
        return ToolResult(content=[_text(text)])

    @staticmethod
    async def _render_svg(result: SvgResult, output_path: str | None) -> ToolResult:
        if output_path:
            saved = await asyncio.to_thread(write_text, output_path, result.svg)
            text = f"Saved SVG: {saved}"
        else:
            text = result.svg
        text = append_footer(text, result.usage.footer() if result.usage else None)
        return ToolResult(content=[_text(text)])

    @staticmethod
    async def _render_images(result: ImageResult, output_path: str | None, model: str) -> ToolResult:
        content: list[ContentBlock] = []
        if result.text:
            content.append(_text(result.text))

        descriptors: list[ImageDescriptor] = []
        if output_path and result.images:
            saved_paths = await asyncio.to_thread(save_image_assets, result.images, output_path)
            for asset, path in zip(result.images, saved_paths):
                content.append(_text(f"Saved: {path}"))
                descriptors.append(ImageDescriptor(mimeType=asset.mime_type, file_path=path))
        else:
            for asset in result.images:
                content.append(_image_content(asset))
                descriptors.append(ImageDescriptor(mimeType=asset.mime_type))

        if result.usage:
            content.append(_text(result.usage.footer()))

        structured = ImageToolStructured(model=model, image_count=len(descriptors), images=descriptors, text=result.text)
        return ToolResult(content=content, structured_content=structured.model_dump())

    @staticmethod
    async def _render_segments(result: SegmentResult, output_mask_path: str | None) -> ToolResult:
        content: list[ContentBlock] = []
        summary: list[dict[str, Any]] = [
            {"index": i, "label": m.label, "box_2d": list(m.box_2d), "mask_base64_length": len(m.mask)} for i, m in enumerate(result.masks)
        ]

        if not result.masks:
            content.append(_text("No objects detected for segmentation."))
        else:
            content.append(_text(f"Found {len(result.masks)} segment(s):\n{json.dumps(summary, indent=2)}"))

            if output_mask_path:
                first = result.masks[0]
                try:
                    mask_bytes = decode_base64_image(first.mask)
                except ValueError as e:
                    logger.warning(f"Mask for '{first.label}' could not be decoded: {e}")
                    content.append(_text(f"Mask for '{first.label}' is not valid base64; nothing saved."))
                else:
                    saved = await asyncio.to_thread(write_bytes, output_mask_path, mask_bytes)
                    content.append(_text(f"Saved mask: {saved} (label: {first.label})"))

        if result.usage:
            content.append(_text(result.usage.footer()))
        return ToolResult(content=content, structured_content={"masks": summary})

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------
    async def generate(self, req: GenerateRequest) -> ToolResult:
        engine = cast("GeminiText", self.factory.create(Capability.TEXT))
        result = await engine.generate(req.prompt, req.to_options())
        return await self.render(result)

    async def messages(self, req: MessagesRequest) -> ToolResult:
        engine = cast("GeminiText", self.factory.create(Capability.TEXT))
        result = await engine.generate_from_messages(req.messages, req.to_options())
        return await self.render(result)

    async def image(self, req: ImageRequest) -> ToolResult:
        engine = cast("GeminiImage", self.factory.create(Capability.IMAGE))
        reference = await self._read_optional_image(req.input_image, "input_image")
        result = await engine.generate(req, reference)
        if not result.images and not result.text:
            raise NoImagesGeneratedError(Model.GEMINI_IMAGE.value)
        return await self.render(result, output_path=req.output_path, model=Model.GEMINI_IMAGE.value)

    async def upscale(self, req: UpscaleRequest) -> ToolResult:
        engine = cast("ImagenEngine", self.factory.create(Capability.UPSCALE))
        image = await self._read_image(req.input_image, "input_image")
        result = await engine.upscale(req, image)
        return await self.render(result, output_path=req.output_path, model=Model.IMAGEN_UPSCALE.value)

    async def edit(self, req: EditRequest) -> ToolResult:
        engine = cast("ImagenEngine", self.factory.create(Capability.EDIT))
        image = await self._read_image(req.input_image, "input_image")
        mask = await self._read_optional_image(req.mask_image, "mask_image")
        result = await engine.edit(req, image, mask)
        return await self.render(result, output_path=req.output_path, model=Model.IMAGEN_EDIT.value)

    async def svg(self, req: SvgRequest) -> ToolResult:
        engine = cast("GeminiText", self.factory.create(Capability.SVG))
        result = await engine.generate_svg(req.prompt, req.instructions)
        return await self.render(result, output_path=req.output_path)

    async def segment(self, req: SegmentRequest) -> ToolResult:
        engine = cast("GeminiSegment", self.factory.create(Capability.SEGMENT))
        image = await self._read_image(req.input_image, "input_image")
        result = await engine.segment(req, image)
        return await self.render(result, output_path=req.output_mask_path)

    @staticmethod
    def setup() -> ToolResult:
        return ToolResult(content=[_text(SETUP_INSTRUCTIONS)])


__all__ = ["ToolDispatcher"]
