from __future__ import annotations

import argparse
import sys
from typing import Annotated, NoReturn

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from loguru import logger
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from .dispatcher import ToolDispatcher
from .exceptions import GeminiMCPError
from .schema import (
    ChatMessage,
    EditRequest,
    GenerateRequest,
    ImageCount,
    ImageRequest,
    JpegQuality,
    MaxTokens,
    MessagesRequest,
    SegmentRequest,
    SvgRequest,
    Temperature,
    TopP,
    UpscaleRequest,
)
from .settings import Settings, get_settings
from .shard import constants as C
from .shard.enums import AspectRatio, EditMode, ImageSize, OutputFormat, ThinkingLevel, UpscaleFactor
from .shard.instructions import (
    SERVER_INSTRUCTIONS,
    TOOL_DESCRIPTIONS,
    TOOL_EDIT,
    TOOL_GENERATE,
    TOOL_IMAGE,
    TOOL_MESSAGES,
    TOOL_SEGMENT,
    TOOL_SETUP,
    TOOL_SVG,
    TOOL_UPSCALE,
)
from .utils.error_helpers import format_validation_error

SERVER_NAME = "gemini-mcp"

_WRITES_FILES = {"readOnlyHint": False, "idempotentHint": False, "openWorldHint": True}
_TEXT_ONLY = {"readOnlyHint": True, "idempotentHint": False, "openWorldHint": True}


def _handle_tool_error(e: Exception) -> NoReturn:
    """Convert an exception to a ToolError so FastMCP replies with isError=True."""
    if isinstance(e, GeminiMCPError):
        details = f" {e.details}" if e.details else ""
        logger.warning(f"{e.code}: {e.user_message}{details}")
        raise ToolError(e.user_message) from e
    if isinstance(e, PydanticValidationError):
        raise ToolError(format_validation_error(e)) from e

    logger.exception(f"Unexpected error: {type(e).__name__}: {e}")
    raise ToolError(f"Unexpected error: {e}") from e


def _register_setup_tool(app: FastMCP, dispatcher: ToolDispatcher) -> None:
    @app.tool(
        name=TOOL_SETUP,
        description=TOOL_DESCRIPTIONS[TOOL_SETUP],
        annotations={"title": "Setup Instructions", "readOnlyHint": True, "idempotentHint": True, "openWorldHint": False},
    )
    async def gemini_setup() -> ToolResult:
        return dispatcher.setup()


def _register_capability_tools(app: FastMCP, dispatcher: ToolDispatcher) -> None:
    @app.tool(name=TOOL_GENERATE, description=TOOL_DESCRIPTIONS[TOOL_GENERATE], annotations={"title": "Generate Text", **_TEXT_ONLY})
    async def gemini_generate(
        prompt: Annotated[str, Field(description="The input text or prompt for Gemini.")],
        model: Annotated[str, Field(description="Gemini model variant to use.")] = C.DEFAULT_TEXT_MODEL,
        instructions: Annotated[str | None, Field(description="System instructions for the model.")] = None,
        thinking_level: Annotated[ThinkingLevel | None, Field(description="Thinking/reasoning depth level: 'low' | 'high'.")] = None,
        include_thoughts: Annotated[bool | None, Field(description="Whether to include the model's reasoning in response.")] = None,
        max_tokens: MaxTokens = None,
        temperature: Temperature = None,
        top_p: TopP = None,
    ) -> ToolResult:
        """Generate text from a single prompt."""
        try:
            req = GenerateRequest(
                prompt=prompt,
                model=model,
                instructions=instructions,
                thinking_level=thinking_level,
                include_thoughts=include_thoughts,
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
            )
            return await dispatcher.generate(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_MESSAGES, description=TOOL_DESCRIPTIONS[TOOL_MESSAGES], annotations={"title": "Generate From Conversation", **_TEXT_ONLY})
    async def gemini_messages(
        messages: Annotated[list[ChatMessage], Field(description="Conversation messages with role 'user' | 'assistant' | 'system'.")],
        model: Annotated[str, Field(description="Gemini model variant to use.")] = C.DEFAULT_TEXT_MODEL,
        instructions: Annotated[str | None, Field(description="System instructions; overrides any system message.")] = None,
        thinking_level: Annotated[ThinkingLevel | None, Field(description="Thinking/reasoning depth level: 'low' | 'high'.")] = None,
        include_thoughts: Annotated[bool | None, Field(description="Whether to include the model's reasoning in response.")] = None,
        max_tokens: MaxTokens = None,
        temperature: Temperature = None,
        top_p: TopP = None,
    ) -> ToolResult:
        """Generate the next turn of a conversation."""
        try:
            req = MessagesRequest(
                messages=messages,
                model=model,
                instructions=instructions,
                thinking_level=thinking_level,
                include_thoughts=include_thoughts,
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
            )
            return await dispatcher.messages(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_IMAGE, description=TOOL_DESCRIPTIONS[TOOL_IMAGE], annotations={"title": "Generate Image(s)", **_WRITES_FILES})
    async def gemini_image(
        prompt: Annotated[str, Field(description="The image generation or editing prompt.")],
        input_image: Annotated[str | None, Field(description="Path to input image for editing/manipulation.")] = None,
        output_path: Annotated[
            str | None,
            Field(description="Path to save the output image (extension is set from the returned format). Images are returned inline when omitted."),
        ] = None,
        image_size: Annotated[ImageSize, Field(description="Output image size: '1K' | '2K' | '4K'.")] = C.DEFAULT_IMAGE_SIZE,
        aspect_ratio: Annotated[AspectRatio | None, Field(description="Aspect ratio for generated image.")] = None,
        negative_prompt: Annotated[str | None, Field(description="What to avoid in the generated image.")] = None,
        num_images: ImageCount = None,
        guidance_scale: Annotated[float | None, Field(description="How closely to follow the prompt (higher = more literal).")] = None,
        seed: Annotated[int | None, Field(description="Random seed for reproducible results.")] = None,
    ) -> ToolResult:
        """Generate image(s) from a prompt and optional reference image."""
        try:
            req = ImageRequest(
                prompt=prompt,
                input_image=input_image,
                output_path=output_path,
                image_size=image_size,
                aspect_ratio=aspect_ratio,
                negative_prompt=negative_prompt,
                num_images=num_images,
                guidance_scale=guidance_scale,
                seed=seed,
            )
            return await dispatcher.image(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_UPSCALE, description=TOOL_DESCRIPTIONS[TOOL_UPSCALE], annotations={"title": "Upscale Image", **_WRITES_FILES})
    async def gemini_upscale(
        input_image: Annotated[str, Field(description="Path to input image to upscale.")],
        output_path: Annotated[str | None, Field(description="Path to save the upscaled image (extension is set from the returned format).")] = None,
        output_format: Annotated[OutputFormat | None, Field(description="Output image format: 'png' | 'jpeg' | 'webp'.")] = None,
        jpeg_quality: JpegQuality = None,
        upscale_factor: Annotated[UpscaleFactor, Field(description="Upscale factor: 'x2' | 'x4'.")] = C.DEFAULT_UPSCALE_FACTOR,
    ) -> ToolResult:
        """Upscale an image with Imagen."""
        try:
            req = UpscaleRequest(
                input_image=input_image,
                output_path=output_path,
                output_format=output_format,
                jpeg_quality=jpeg_quality,
                upscale_factor=upscale_factor,
            )
            return await dispatcher.upscale(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_EDIT, description=TOOL_DESCRIPTIONS[TOOL_EDIT], annotations={"title": "Edit Image", **_WRITES_FILES})
    async def gemini_edit(
        prompt: Annotated[str, Field(description="Description of the edit to make.")],
        input_image: Annotated[str, Field(description="Path to input image to edit.")],
        mask_image: Annotated[str | None, Field(description="Path to mask image (white areas will be edited).")] = None,
        output_path: Annotated[str | None, Field(description="Path to save the edited image (extension is set from the returned format).")] = None,
        edit_mode: Annotated[EditMode | None, Field(description="Edit mode: 'inpaint' fills masked areas, 'outpaint' extends the image.")] = None,
        output_format: Annotated[OutputFormat | None, Field(description="Output image format: 'png' | 'jpeg' | 'webp'.")] = None,
        jpeg_quality: JpegQuality = None,
        negative_prompt: Annotated[str | None, Field(description="What to avoid in the edited areas.")] = None,
        num_images: ImageCount = None,
        guidance_scale: Annotated[float | None, Field(description="How closely to follow the prompt.")] = None,
        seed: Annotated[int | None, Field(description="Random seed for reproducible results.")] = None,
    ) -> ToolResult:
        """Edit an image with a prompt and optional mask."""
        try:
            req = EditRequest(
                prompt=prompt,
                input_image=input_image,
                mask_image=mask_image,
                output_path=output_path,
                edit_mode=edit_mode,
                output_format=output_format,
                jpeg_quality=jpeg_quality,
                negative_prompt=negative_prompt,
                num_images=num_images,
                guidance_scale=guidance_scale,
                seed=seed,
            )
            return await dispatcher.edit(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_SVG, description=TOOL_DESCRIPTIONS[TOOL_SVG], annotations={"title": "Generate SVG", **_WRITES_FILES})
    async def gemini_svg(
        prompt: Annotated[str, Field(description="Description of the SVG to generate (e.g., 'a minimalist logo of a mountain').")],
        output_path: Annotated[str | None, Field(description="Path to save the SVG file.")] = None,
        instructions: Annotated[str | None, Field(description="Custom system instructions for SVG generation.")] = None,
    ) -> ToolResult:
        """Generate SVG markup."""
        try:
            req = SvgRequest(prompt=prompt, output_path=output_path, instructions=instructions)
            return await dispatcher.svg(req)
        except Exception as e:
            _handle_tool_error(e)

    @app.tool(name=TOOL_SEGMENT, description=TOOL_DESCRIPTIONS[TOOL_SEGMENT], annotations={"title": "Segment Image", **_WRITES_FILES})
    async def gemini_segment(
        input_image: Annotated[str, Field(description="Path to input image to segment.")],
        prompt: Annotated[str | None, Field(description="Custom segmentation prompt (e.g., 'segment only the person').")] = None,
        output_mask_path: Annotated[str | None, Field(description="Path to save the first mask as PNG (white = selected, black = background).")] = None,
    ) -> ToolResult:
        """Segment objects in an image."""
        try:
            req = SegmentRequest(input_image=input_image, prompt=prompt, output_mask_path=output_mask_path)
            return await dispatcher.segment(req)
        except Exception as e:
            _handle_tool_error(e)


def create_app(settings: Settings, dispatcher: ToolDispatcher | None = None) -> FastMCP:
    """Build the MCP server for the given settings.

    Without an API key only the setup tool is registered; any other tool
    name is unknown to the server.
    """
    app = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
    dispatcher = dispatcher or ToolDispatcher(settings)
    if settings.is_configured:
        _register_capability_tools(app, dispatcher)
    else:
        _register_setup_tool(app, dispatcher)
    return app


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport; logs go to stderr only
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def main() -> None:
    parser = argparse.ArgumentParser(description="Gemini MCP Server")
    # SSE is legacy; kept for older MCP hosts
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse", "streamable-http"],
        help="Transport to use (stdio, sse, http, streamable-http). Default: stdio",
    )
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    args = parser.parse_args()

    try:
        settings = get_settings()
        configure_logging(settings.log_level)
        app = create_app(settings)
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)

    transport = args.transport
    logger.info(f"Starting Gemini MCP server with {transport or 'stdio'} transport" + ("" if settings.is_configured else " (setup required)"))

    # stdio takes no host/port
    http_transports = {"http", "sse", "streamable-http"}
    try:
        if transport in http_transports:
            app.run(transport=transport, host=args.host, port=args.port)
        else:
            app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
