from __future__ import annotations

from typing import Any

from .shard import constants as C


class GeminiMCPError(Exception):
    """Base class for errors surfaced to MCP clients as tool errors.

    `user_message` is what the client sees; `code` is a stable identifier
    for logs and structured payloads.
    """

    code: str = "internal_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def user_message(self) -> str:
        return self.message


class ConfigurationError(GeminiMCPError):
    """Server configuration cannot satisfy the request (missing credentials, client setup)."""

    code = C.ERROR_CODE_CONFIGURATION


class ValidationError(GeminiMCPError):
    """A tool argument failed validation."""

    code = C.ERROR_CODE_VALIDATION

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class InputImageError(ValidationError):
    """An input image path could not be read."""

    def __init__(self, field: str, path: str, reason: str) -> None:
        super().__init__(f"Cannot read {field} '{path}': {reason}", field=field)
        self.path = path


class OutputFileError(GeminiMCPError):
    """A generated file could not be written to the requested path."""

    code = C.ERROR_CODE_OUTPUT

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write output to '{path}': {reason}", details={"path": path})
        self.path = path


class ProviderError(GeminiMCPError):
    """The upstream Gemini/Imagen API call failed."""

    code = C.ERROR_CODE_PROVIDER_ERROR

    def __init__(self, message: str, model: str | None = None) -> None:
        super().__init__(message, details={"model": model} if model else None)
        self.model = model

    @property
    def user_message(self) -> str:
        return f"Gemini API error: {self.message}"


class NoImagesGeneratedError(GeminiMCPError):
    """The upstream call succeeded but returned no images."""

    code = C.ERROR_CODE_NO_IMAGES

    def __init__(self, model: str, text: str | None = None) -> None:
        message = f"No images were returned by {model}. Try a different prompt or parameters."
        if text:
            message += f" Model said: {text}"
        super().__init__(message, details={"model": model})
        self.model = model


__all__ = [
    "GeminiMCPError",
    "ConfigurationError",
    "ValidationError",
    "InputImageError",
    "OutputFileError",
    "ProviderError",
    "NoImagesGeneratedError",
]
