import base64
import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from google import genai
from google.genai import types

from ..errors import UpstreamFailure
from ..settings import settings

logger = logging.getLogger("cookbook.ai.images")

# 1x1 transparent PNG returned in mock mode
MOCK_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO+X2f8AAAAASUVORK5CYII="
)


@dataclass
class GeneratedImage:
    png_bytes: bytes
    model: str
    prompt: str


def build_recipe_prompt(name: str, description: str | None) -> str:
    # tuned for a clean hero shot
    base = f"A beautiful overhead food photograph of {name}"
    if description:
        base += f". {description.strip().rstrip('.')}"
    base += ". Soft natural light, shallow depth of field, clean plating, no text, no logos, no watermark, high detail, appetizing."
    return base


class ImageGenerator:
    def __init__(
        self,
        *,
        mode: str,
        model: str,
        api_key: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        self.mode = mode
        self.model = model
        self._client = client
        if self._client is None and mode == "gemini" and api_key:
            self._client = genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls) -> "ImageGenerator":
        return cls(
            mode=settings.ai_mode,
            model=settings.gemini_image_model,
            api_key=settings.gemini_api_key,
        )

    def generate(self, prompt: str) -> GeneratedImage:
        if self.mode.lower() != "gemini":
            # Mock mode keeps the pipeline working without paid calls
            return GeneratedImage(png_bytes=MOCK_PNG, model="mock", prompt=prompt)

        if self._client is None:
            raise UpstreamFailure("Image generation", "GEMINI_API_KEY is required when AI_MODE=gemini")

        try:
            logger.info(f"Generating image with model={self.model} prompt='{prompt[:50]}...'")
            response = self._client.models.generate_content(
                model=self.model,
                contents=[prompt],
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                ),
            )
        except Exception as e:
            logger.error(f"Image generation failed: {e}")
            raise UpstreamFailure("Image generation", str(e)) from e

        # Gemini returns parts that may include inline image data
        for part in getattr(response, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            if inline.mime_type and inline.mime_type != "image/png":
                data = _to_png(data)
            return GeneratedImage(png_bytes=data, model=self.model, prompt=prompt)

        raise UpstreamFailure("Image generation", "Gemini returned no image data.")


def _to_png(data: bytes) -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.open(io.BytesIO(data)).save(buf, format="PNG")
    return buf.getvalue()


@lru_cache
def get_image_generator() -> ImageGenerator:
    return ImageGenerator.from_settings()
