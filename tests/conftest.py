from __future__ import annotations

import base64
import os
import sys

import pytest
from google.genai import types

# Add repository root to sys.path for `import gemini_mcp.*` in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gemini_mcp.settings import Settings  # noqa: E402

# 1x1 PNG
SAMPLE_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChAI" "9Ecf1UQAAAABJRU5ErkJggg=="
SAMPLE_PNG_BYTES = base64.b64decode(SAMPLE_PNG_B64)


def _make_response(*parts: types.Part, usage: tuple[int, int, int] | None = None) -> types.GenerateContentResponse:
    """Build a generateContent response with one candidate holding `parts`."""
    usage_metadata = None
    if usage is not None:
        usage_metadata = types.GenerateContentResponseUsageMetadata(
            prompt_token_count=usage[0],
            candidates_token_count=usage[1],
            total_token_count=usage[2],
        )
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))],
        usage_metadata=usage_metadata,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(gemini_api_key="test-key")


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(gemini_api_key=None)


@pytest.fixture
def png_path(tmp_path) -> str:
    path = tmp_path / "input.png"
    path.write_bytes(SAMPLE_PNG_BYTES)
    return str(path)


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def png_bytes() -> bytes:
    return SAMPLE_PNG_BYTES
