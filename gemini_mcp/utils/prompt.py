from __future__ import annotations

from typing import Any

import jinja2

# ---------------------------------------------------------------------------
# Jinja2 template to fold knobs the Gemini image API has no field for into
# prompt guidance
# ---------------------------------------------------------------------------

_GUIDANCE_TEMPLATE = jinja2.Environment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
).from_string(
    """
{{ prompt | trim }}
{% if fold.negative_prompt %}

AVOID (must not appear):
{{ fold.negative_prompt | trim }}
{% endif %}
{% if fold.num_images and fold.num_images > 1 %}

Produce {{ fold.num_images }} distinct images as separate outputs, each a different take on the request.
{% endif %}
"""
)


def render_image_prompt(
    *,
    prompt: str,
    negative_prompt: str | None = None,
    num_images: int | None = None,
) -> tuple[str, list[str]]:
    """Render an image prompt with guidance for fields the model cannot take natively.

    Returns (rendered_prompt, folded_fields). With nothing to fold the prompt
    is returned unchanged.
    """
    fold: dict[str, Any] = {}
    used: list[str] = []

    if negative_prompt and negative_prompt.strip():
        fold["negative_prompt"] = negative_prompt
        used.append("negative_prompt")
    if num_images is not None and num_images > 1:
        fold["num_images"] = num_images
        used.append("num_images")

    if not used:
        return prompt, used

    rendered = _GUIDANCE_TEMPLATE.render(prompt=prompt, fold=fold).strip()
    return rendered, used


__all__ = [
    "render_image_prompt",
]
