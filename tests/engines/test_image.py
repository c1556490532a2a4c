from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from google.genai import types

from gemini_mcp.engines.ar.image import GeminiImage
from gemini_mcp.schema import ImageAsset, ImageRequest


def test_build_config_sets_modalities_and_image_config():
    config = GeminiImage.build_config(ImageRequest(prompt="p", aspect_ratio="16:9", image_size="2K", seed=7))

    assert config.response_modalities == ["IMAGE", "TEXT"]
    assert config.image_config.image_size == "2K"
    assert config.image_config.aspect_ratio == "16:9"
    assert config.seed == 7


def test_build_contents_puts_reference_before_prompt(png_bytes):
    contents = GeminiImage.build_contents("make it blue", ImageAsset(data=png_bytes, mime_type="image/png"))

    assert len(contents) == 1
    parts = contents[0].parts
    assert parts[0].inline_data.data == png_bytes
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[1].text == "make it blue"


def test_build_contents_without_reference():
    contents = GeminiImage.build_contents("a red circle", None)

    assert [p.text for p in contents[0].parts] == ["a red circle"]


@patch("google.genai.Client")
async def test_generate_collects_images_and_text(mock_client_class, settings, make_response):
    response = make_response(
        types.Part(text="Here you go."),
        types.Part(inline_data=types.Blob(data=b"img-1", mime_type="image/png")),
        types.Part(inline_data=types.Blob(data=b"img-2", mime_type="image/jpeg")),
        usage=(10, 20, 30),
    )
    mock_client = MagicMock()
    mock_client_class.return_value = mock_client
    mock_client.aio.models.generate_content = AsyncMock(return_value=response)

    req = ImageRequest(prompt="a red circle", negative_prompt="text", num_images=2, guidance_scale=3.0)
    result = await GeminiImage(settings=settings).generate(req)

    assert result.text == "Here you go."
    assert [(a.data, a.mime_type) for a in result.images] == [(b"img-1", "image/png"), (b"img-2", "image/jpeg")]
    assert result.usage.total_tokens == 30

    call_args = mock_client.aio.models.generate_content.call_args
    assert call_args.kwargs["model"] == "gemini-3-pro-image-preview"
    prompt_text = call_args.kwargs["contents"][0].parts[-1].text
    assert prompt_text.startswith("a red circle")
    assert "AVOID (must not appear):" in prompt_text
    assert "Produce 2 distinct images" in prompt_text


@patch("google.genai.Client")
async def test_generate_text_only_response(mock_client_class, settings, make_response):
    mock_client = MagicMock()
    mock_client_class.return_value = mock_client
    mock_client.aio.models.generate_content = AsyncMock(return_value=make_response(types.Part(text="I cannot draw that.")))

    result = await GeminiImage(settings=settings).generate(ImageRequest(prompt="x"))

    assert result.images == []
    assert result.text == "I cannot draw that."
