from __future__ import annotations

from typing import Any, ClassVar

from google import genai
from google.genai import types
from google.oauth2 import service_account
from loguru import logger

from ...exceptions import ConfigurationError, NoImagesGeneratedError
from ...schema import EditRequest, ImageAsset, ImageResult, UpscaleRequest
from ...shard import constants as C
from ...shard.enums import Family, Model, OutputFormat
from ..base_engine import GeminiEngine

SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
]

RAW_REFERENCE_ID = 1
MASK_REFERENCE_ID = 2


class ImagenEngine(GeminiEngine):
    """Imagen adapter for upscaling and mask-guided editing.

    Routes through Vertex AI when Vertex settings are complete; otherwise
    uses the API key client and lets the upstream decide.
    """

    family: ClassVar[Family] = Family.DIFFUSION

    # Client management

    def _client(self) -> genai.Client:
        if not self.settings.use_vertex:
            return super()._client()
        try:
            credentials = service_account.Credentials.from_service_account_file(self.settings.vertex_credentials_path, scopes=SCOPES)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load Vertex credentials from {self.settings.vertex_credentials_path}: {e}") from e
        return genai.Client(vertexai=True, project=self.settings.vertex_project, location=self.settings.vertex_location, credentials=credentials)

    # Request building

    @staticmethod
    def _to_image(asset: ImageAsset) -> types.Image:
        return types.Image(image_bytes=asset.data, mime_type=asset.mime_type)

    @staticmethod
    def _output_kwargs(output_format: OutputFormat | None, jpeg_quality: int | None) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if output_format is not None:
            kwargs["output_mime_type"] = output_format.mime_type
        if jpeg_quality is not None:
            kwargs["output_compression_quality"] = jpeg_quality
        return kwargs

    def build_reference_images(self, image: ImageAsset, mask: ImageAsset | None) -> list[Any]:
        refs: list[Any] = [types.RawReferenceImage(reference_id=RAW_REFERENCE_ID, reference_image=self._to_image(image))]
        if mask is not None:
            refs.append(
                types.MaskReferenceImage(
                    reference_id=MASK_REFERENCE_ID,
                    reference_image=self._to_image(mask),
                    config=types.MaskReferenceConfig(mask_mode=types.MaskReferenceMode.MASK_MODE_USER_PROVIDED),
                )
            )
        return refs

    def build_edit_config(self, req: EditRequest) -> types.EditImageConfig:
        kwargs = self._output_kwargs(req.output_format, req.jpeg_quality)
        if req.edit_mode is not None:
            kwargs["edit_mode"] = req.edit_mode.to_upstream()
        if req.negative_prompt:
            kwargs["negative_prompt"] = req.negative_prompt
        if req.num_images is not None:
            kwargs["number_of_images"] = req.num_images
        if req.guidance_scale is not None:
            kwargs["guidance_scale"] = req.guidance_scale
        if req.seed is not None:
            kwargs["seed"] = req.seed
        return types.EditImageConfig(include_rai_reason=True, **kwargs)

    # Response processing

    @staticmethod
    def _extract_images(response: Any, default_mime: str) -> list[ImageAsset]:
        images: list[ImageAsset] = []
        for generated in response.generated_images or []:
            image = generated.image
            if image is None or not image.image_bytes:
                continue
            images.append(ImageAsset(data=image.image_bytes, mime_type=image.mime_type or default_mime))
        return images

    @staticmethod
    def _filtered_reasons(response: Any) -> str | None:
        reasons = [g.rai_filtered_reason for g in (response.generated_images or []) if g.rai_filtered_reason]
        return "; ".join(reasons) or None

    def _to_result(self, response: Any, model: str, default_mime: str) -> ImageResult:
        images = self._extract_images(response, default_mime)
        if not images:
            raise NoImagesGeneratedError(model, self._filtered_reasons(response))
        return ImageResult(images=images)

    # API operations

    async def upscale(self, req: UpscaleRequest, image: ImageAsset) -> ImageResult:
        model = Model.IMAGEN_UPSCALE.value
        client = self._client()
        config = types.UpscaleImageConfig(**self._output_kwargs(req.output_format, req.jpeg_quality))

        logger.debug(f"{self.name}: upscale_image model={model} factor={req.upscale_factor.value}")
        try:
            response = await client.aio.models.upscale_image(
                model=model,
                image=self._to_image(image),
                upscale_factor=req.upscale_factor.value,
                config=config,
            )
        except Exception as e:
            self._raise_provider_error(e, model)

        default_mime = req.output_format.mime_type if req.output_format else C.DEFAULT_MIME
        return self._to_result(response, model, default_mime)

    async def edit(self, req: EditRequest, image: ImageAsset, mask: ImageAsset | None = None) -> ImageResult:
        model = Model.IMAGEN_EDIT.value
        client = self._client()

        logger.debug(f"{self.name}: edit_image model={model} mask={'yes' if mask else 'no'}")
        try:
            response = await client.aio.models.edit_image(
                model=model,
                prompt=req.prompt,
                reference_images=self.build_reference_images(image, mask),
                config=self.build_edit_config(req),
            )
        except Exception as e:
            self._raise_provider_error(e, model)

        default_mime = req.output_format.mime_type if req.output_format else C.DEFAULT_MIME
        return self._to_result(response, model, default_mime)
