"""
Gemini MCP Server

Exposes Google Gemini (text, conversations, images, SVG, segmentation) and
Imagen (upscaling, mask-guided editing) as MCP tools over FastMCP.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gemini-mcp")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.1.0"

__all__ = ["__version__"]
