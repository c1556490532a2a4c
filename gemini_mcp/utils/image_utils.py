from __future__ import annotations

import base64
import binascii
import os

from loguru import logger

from ..exceptions import InputImageError, OutputFileError
from ..schema import ImageAsset
from ..shard import constants as C


# --------------------------- mime / extension ------------------------------ #
def guess_mime_from_path(path: str) -> str:
    """Return the mime type for a file path based on its extension only."""
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    return C.EXTENSION_MIME_TYPES.get(ext, C.DEFAULT_MIME)


def guess_extension_from_mime(mime: str | None) -> str:
    """Pick the on-disk extension for an image of the given mime type."""
    lower = (mime or "").lower()
    if lower == "image/png":
        return ".png"
    elif lower == "image/webp":
        return ".webp"
    else:
        return ".jpg"


# --------------------------- input --------------------------------------- #
def read_image_asset(path: str, *, field: str = "input_image") -> ImageAsset:
    """Read a local image file fully into memory.

    Raises InputImageError naming `field` when the file cannot be read.
    """
    abs_path = os.path.abspath(os.path.expanduser(path))
    try:
        with open(abs_path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise InputImageError(field, abs_path, e.strerror or str(e)) from e
    if not data:
        raise InputImageError(field, abs_path, "file is empty")
    return ImageAsset(data=data, mime_type=guess_mime_from_path(abs_path))


def decode_base64_image(payload: str) -> bytes:
    """Decode a base64 payload, tolerating a data URL prefix, line breaks and missing padding.

    Raises ValueError for characters outside the base64 alphabet and for
    payloads that decode to nothing.
    """
    if payload.startswith("data:"):
        payload = payload.split(",", 1)[1] if "," in payload else ""
    payload = "".join(payload.split())
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Cannot decode base64 data: {e}") from e
    if not data:
        raise ValueError("Cannot decode base64 data: payload is empty")
    return data


# --------------------------- output -------------------------------------- #
def output_paths_for(output_path: str, assets: list[ImageAsset]) -> list[str]:
    """Compute one absolute file path per asset.

    The extension of `output_path` is replaced by one derived from each
    asset's mime type. With more than one asset a 1-based `_<index>` suffix
    keeps names distinct.
    """
    base, _ = os.path.splitext(os.path.abspath(os.path.expanduser(output_path)))
    multiple = len(assets) > 1
    paths: list[str] = []
    for i, asset in enumerate(assets, start=1):
        suffix = f"_{i}" if multiple else ""
        paths.append(f"{base}{suffix}{guess_extension_from_mime(asset.mime_type)}")
    return paths


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def write_bytes(path: str, data: bytes) -> str:
    """Write bytes to `path` (creating parent directories) and return the absolute path."""
    abs_path = os.path.abspath(os.path.expanduser(path))
    try:
        _ensure_parent(abs_path)
        with open(abs_path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise OutputFileError(abs_path, e.strerror or str(e)) from e
    logger.debug(f"Wrote {len(data)} bytes to {abs_path}")
    return abs_path


def write_text(path: str, text: str) -> str:
    """Write UTF-8 text to `path` and return the absolute path."""
    return write_bytes(path, text.encode("utf-8"))


def save_image_assets(assets: list[ImageAsset], output_path: str) -> list[str]:
    """Save every asset next to `output_path` and return the written paths in order."""
    return [write_bytes(path, asset.data) for path, asset in zip(output_paths_for(output_path, assets), assets)]


__all__ = [
    "guess_mime_from_path",
    "guess_extension_from_mime",
    "read_image_asset",
    "decode_base64_image",
    "output_paths_for",
    "write_bytes",
    "write_text",
    "save_image_assets",
]
