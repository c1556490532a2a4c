from __future__ import annotations

import base64
import json
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from gemini_mcp.dispatcher import ToolDispatcher
from gemini_mcp.exceptions import InputImageError, NoImagesGeneratedError
from gemini_mcp.schema import (
    EditRequest,
    GenerateRequest,
    ImageAsset,
    ImageRequest,
    ImageResult,
    MessagesRequest,
    SegmentMask,
    SegmentRequest,
    SegmentResult,
    SvgRequest,
    SvgResult,
    TextResult,
    UpscaleRequest,
    Usage,
)
from gemini_mcp.shard.enums import Capability


def _dispatcher(settings, **engine_methods) -> tuple[ToolDispatcher, MagicMock]:
    engine = MagicMock()
    for name, result in engine_methods.items():
        setattr(engine, name, AsyncMock(return_value=result))
    factory = MagicMock()
    factory.create.return_value = engine
    return ToolDispatcher(settings, factory=factory), engine


async def test_generate_appends_usage_footer(settings):
    result = TextResult(content="Hello!", usage=Usage(prompt_tokens=3, completion_tokens=2, total_tokens=5))
    dispatcher, engine = _dispatcher(settings, generate=result)

    reply = await dispatcher.generate(GenerateRequest(prompt="Say hello"))

    assert len(reply.content) == 1
    assert reply.content[0].text == "Hello!\n\n**Usage:** 3 prompt, 2 completion, 5 total"
    dispatcher.factory.create.assert_called_once_with(Capability.TEXT)
    assert engine.generate.call_args.args[0] == "Say hello"


async def test_generate_without_usage_has_no_footer(settings):
    dispatcher, _ = _dispatcher(settings, generate=TextResult(content="Hello!"))

    reply = await dispatcher.generate(GenerateRequest(prompt="Say hello"))

    assert reply.content[0].text == "Hello!"


async def test_messages_shows_reasoning(settings):
    dispatcher, engine = _dispatcher(settings, generate_from_messages=TextResult(content="Fine.", reasoning="Thinking about it."))

    req = MessagesRequest(messages=[{"role": "system", "content": "Be terse."}, {"role": "user", "content": "How are you?"}])
    reply = await dispatcher.messages(req)

    assert reply.content[0].text == "**Reasoning:**\nThinking about it.\n\n**Response:**\nFine."
    options = engine.generate_from_messages.call_args.args[1]
    assert options.instructions == "Be terse."


async def test_image_saves_files(settings, tmp_path):
    result = ImageResult(
        text="Two circles.",
        images=[ImageAsset(data=b"one", mime_type="image/png"), ImageAsset(data=b"two", mime_type="image/png")],
        usage=Usage(prompt_tokens=1, completion_tokens=2, total_tokens=3),
    )
    dispatcher, _ = _dispatcher(settings, generate=result)

    reply = await dispatcher.image(ImageRequest(prompt="circles", output_path=str(tmp_path / "out.jpg"), num_images=2))

    first, second = str(tmp_path / "out_1.png"), str(tmp_path / "out_2.png")
    texts = [block.text for block in reply.content]
    assert texts == ["Two circles.", f"Saved: {first}", f"Saved: {second}", "**Usage:** 1 prompt, 2 completion, 3 total"]
    with open(first, "rb") as f:
        assert f.read() == b"one"
    assert os.path.exists(second)

    structured = reply.structured_content
    assert structured["model"] == "gemini-3-pro-image-preview"
    assert structured["image_count"] == 2
    assert [img["file_path"] for img in structured["images"]] == [first, second]


async def test_image_inline_without_output_path(settings):
    dispatcher, _ = _dispatcher(settings, generate=ImageResult(images=[ImageAsset(data=b"pixels", mime_type="image/png")]))

    reply = await dispatcher.image(ImageRequest(prompt="a dot"))

    assert len(reply.content) == 1
    block = reply.content[0]
    assert block.type == "image"
    assert block.mimeType == "image/png"
    assert base64.b64decode(block.data) == b"pixels"


async def test_image_reads_reference(settings, png_path, png_bytes):
    dispatcher, engine = _dispatcher(settings, generate=ImageResult(images=[ImageAsset(data=b"x")]))

    await dispatcher.image(ImageRequest(prompt="restyle", input_image=png_path))

    reference = engine.generate.call_args.args[1]
    assert reference.data == png_bytes
    assert reference.mime_type == "image/png"


async def test_image_empty_result_is_error(settings):
    dispatcher, _ = _dispatcher(settings, generate=ImageResult())

    with pytest.raises(NoImagesGeneratedError):
        await dispatcher.image(ImageRequest(prompt="nothing"))


async def test_missing_input_image_fails_before_upstream(settings, tmp_path):
    dispatcher, engine = _dispatcher(settings, upscale=ImageResult(images=[ImageAsset(data=b"x")]))

    with pytest.raises(InputImageError):
        await dispatcher.upscale(UpscaleRequest(input_image=str(tmp_path / "missing.png")))

    engine.upscale.assert_not_called()


async def test_upscale_inline_without_output_path(settings, png_path, png_bytes):
    dispatcher, engine = _dispatcher(settings, upscale=ImageResult(images=[ImageAsset(data=b"big", mime_type="image/png")]))

    reply = await dispatcher.upscale(UpscaleRequest(input_image=png_path, upscale_factor="x4"))

    dispatcher.factory.create.assert_called_once_with(Capability.UPSCALE)
    assert engine.upscale.call_args.args[1].data == png_bytes
    assert len(reply.content) == 1
    assert reply.content[0].type == "image"
    assert base64.b64decode(reply.content[0].data) == b"big"
    assert reply.structured_content["model"] == "imagen-3.0-generate-002"
    assert reply.structured_content["images"] == [{"mimeType": "image/png", "file_path": None}]


async def test_upscale_saves_jpeg_with_jpg_extension(settings, png_path, tmp_path):
    dispatcher, _ = _dispatcher(settings, upscale=ImageResult(images=[ImageAsset(data=b"big-jpeg", mime_type="image/jpeg")]))

    reply = await dispatcher.upscale(UpscaleRequest(input_image=png_path, output_path=str(tmp_path / "upscaled.png"), output_format="jpeg"))

    saved = tmp_path / "upscaled.jpg"
    assert reply.content[0].text == f"Saved: {saved}"
    assert saved.read_bytes() == b"big-jpeg"
    assert not (tmp_path / "upscaled.png").exists()
    assert reply.structured_content["images"] == [{"mimeType": "image/jpeg", "file_path": str(saved)}]


async def test_edit_reads_mask(settings, png_path, tmp_path):
    mask_path = tmp_path / "mask.png"
    mask_path.write_bytes(b"mask-bytes")
    dispatcher, engine = _dispatcher(settings, edit=ImageResult(images=[ImageAsset(data=b"edited", mime_type="image/jpeg")]))

    reply = await dispatcher.edit(
        EditRequest(prompt="add a hat", input_image=png_path, mask_image=str(mask_path), output_path=str(tmp_path / "edited.png"))
    )

    assert engine.edit.call_args.args[2].data == b"mask-bytes"
    assert reply.content[0].text == f"Saved: {tmp_path / 'edited.jpg'}"
    assert reply.structured_content["model"] == "imagen-3.0-capability-001"


async def test_svg_saved_to_file(settings, tmp_path):
    dispatcher, _ = _dispatcher(settings, generate_svg=SvgResult(svg="<svg/>"))

    reply = await dispatcher.svg(SvgRequest(prompt="a logo", output_path=str(tmp_path / "logo.svg")))

    assert reply.content[0].text == f"Saved SVG: {tmp_path / 'logo.svg'}"
    assert (tmp_path / "logo.svg").read_text() == "<svg/>"


async def test_svg_inline(settings):
    dispatcher, _ = _dispatcher(settings, generate_svg=SvgResult(svg="<svg/>"))

    reply = await dispatcher.svg(SvgRequest(prompt="a logo"))

    assert reply.content[0].text == "<svg/>"


async def test_segment_no_objects(settings, png_path):
    dispatcher, _ = _dispatcher(settings, segment=SegmentResult())

    reply = await dispatcher.segment(SegmentRequest(input_image=png_path))

    assert reply.content[0].text == "No objects detected for segmentation."
    assert reply.structured_content == {"masks": []}


async def test_segment_summary_and_mask_file(settings, png_path, tmp_path):
    mask_b64 = base64.b64encode(b"mask-png").decode()
    masks = [
        SegmentMask(box_2d=(1, 2, 3, 4), mask=mask_b64, label="cat"),
        SegmentMask(box_2d=(5, 6, 7, 8), mask=mask_b64, label="dog"),
    ]
    dispatcher, _ = _dispatcher(settings, segment=SegmentResult(masks=masks))

    reply = await dispatcher.segment(SegmentRequest(input_image=png_path, output_mask_path=str(tmp_path / "mask.png")))

    header, _, body = reply.content[0].text.partition("\n")
    assert header == "Found 2 segment(s):"
    summary = json.loads(body)
    assert summary[0] == {"index": 0, "label": "cat", "box_2d": [1, 2, 3, 4], "mask_base64_length": len(mask_b64)}
    assert reply.content[1].text == f"Saved mask: {tmp_path / 'mask.png'} (label: cat)"
    assert (tmp_path / "mask.png").read_bytes() == b"mask-png"


@pytest.mark.parametrize("mask", ["a", "!!!!", "data:image/png;base64"])
async def test_segment_undecodable_mask_is_reported(settings, png_path, tmp_path, mask):
    masks = [SegmentMask(box_2d=(1, 2, 3, 4), mask=mask, label="cat")]
    dispatcher, _ = _dispatcher(settings, segment=SegmentResult(masks=masks))

    reply = await dispatcher.segment(SegmentRequest(input_image=png_path, output_mask_path=str(tmp_path / "mask.png")))

    assert "not valid base64" in reply.content[1].text
    assert not (tmp_path / "mask.png").exists()


def test_setup_returns_instructions():
    reply = ToolDispatcher.setup()

    assert "GEMINI_API_KEY" in reply.content[0].text
