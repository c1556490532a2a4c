from __future__ import annotations

# Tool names advertised over MCP.
TOOL_GENERATE = "gemini_generate"
TOOL_MESSAGES = "gemini_messages"
TOOL_IMAGE = "gemini_image"
TOOL_UPSCALE = "gemini_upscale"
TOOL_EDIT = "gemini_edit"
TOOL_SVG = "gemini_svg"
TOOL_SEGMENT = "gemini_segment"
TOOL_SETUP = "gemini_setup"

CAPABILITY_TOOLS: tuple[str, ...] = (
    TOOL_GENERATE,
    TOOL_MESSAGES,
    TOOL_IMAGE,
    TOOL_UPSCALE,
    TOOL_EDIT,
    TOOL_SVG,
    TOOL_SEGMENT,
)

# Tool descriptions used by FastMCP when registering tools. Keep short and clear.
TOOL_DESCRIPTIONS: dict[str, str] = {
    TOOL_GENERATE: "Generate text using Google Gemini API with a simple input prompt. Supports thinking/reasoning modes.",
    TOOL_MESSAGES: "Generate text using Gemini with structured conversation messages. Supports thinking/reasoning modes.",
    TOOL_IMAGE: "Generate or edit images using Gemini. Pass input_image path for editing, or just prompt for generation. Saves to output_path.",
    TOOL_UPSCALE: "Upscale an image using Imagen. Supports 2x and 4x upscaling with format control.",
    TOOL_EDIT: "Edit an image using Imagen with optional mask for inpainting/outpainting.",
    TOOL_SVG: "Generate SVG code using Gemini 3 Pro. Best for logos, icons, and simple vector graphics.",
    TOOL_SEGMENT: "Segment objects in an image using Gemini 2.5. Returns masks for background removal or object isolation.",
    TOOL_SETUP: "Get setup instructions for the Gemini MCP server. GEMINI_API_KEY is not configured.",
}


SERVER_INSTRUCTIONS: str = (
    "Gemini MCP Server - Agent Instructions.\n"
    "Role: This server exposes Google Gemini and Imagen through tools for text generation "
    "(gemini_generate, gemini_messages), image generation (gemini_image), Imagen upscaling and editing "
    "(gemini_upscale, gemini_edit), SVG synthesis (gemini_svg) and segmentation (gemini_segment).\n\n"
    "Files:\n"
    "- Input images are local file paths; the mime type is taken from the file extension.\n"
    "- output_path is optional. When given, images are written next to it with an extension matching "
    "the returned format, and '_1', '_2', ... suffixes when more than one image is produced. "
    "Without it, images are returned inline.\n\n"
    "Outputs and failures (summary):\n"
    "- Text replies end with a '**Usage:**' footer; it is informational and not meant to be parsed.\n"
    "- Invalid arguments and upstream failures (auth, quota, network) are returned as tool errors."
)


SETUP_INSTRUCTIONS: str = """
Gemini MCP Server - Setup Required

GEMINI_API_KEY environment variable is not set.

Setup Steps:

1. Get an API key from Google AI Studio:
   https://aistudio.google.com/apikey

2. Add to your shell profile (~/.zshrc or ~/.bashrc):
   export GEMINI_API_KEY="your-api-key-here"

3. Restart your terminal and your MCP host

Optional - Imagen upscale/edit through Vertex AI:
   export VERTEX_PROJECT="your-project"
   export VERTEX_LOCATION="us-central1"
   export VERTEX_CREDENTIALS_PATH="/path/to/service-account.json"

After setup, restart the host to enable all Gemini tools:
- gemini_generate: Text generation with thinking modes
- gemini_messages: Conversation-based generation
- gemini_image: Image generation with control over size and aspect ratio
- gemini_upscale: Upscale images 2x or 4x
- gemini_edit: Edit images with inpainting/outpainting
- gemini_svg: SVG generation for logos and icons
- gemini_segment: Object segmentation masks
""".strip()


__all__ = [
    "TOOL_GENERATE",
    "TOOL_MESSAGES",
    "TOOL_IMAGE",
    "TOOL_UPSCALE",
    "TOOL_EDIT",
    "TOOL_SVG",
    "TOOL_SEGMENT",
    "TOOL_SETUP",
    "CAPABILITY_TOOLS",
    "TOOL_DESCRIPTIONS",
    "SERVER_INSTRUCTIONS",
    "SETUP_INSTRUCTIONS",
]
