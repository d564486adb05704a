"""Hero image generation for recipes: prompt -> image -> blob store -> URL."""

import logging
import uuid
from typing import Optional

from ..ai.images import ImageGenerator, build_recipe_prompt
from ..errors import UpstreamFailure
from .storage import BlobStore

logger = logging.getLogger("cookbook.hero_images")


def should_generate_image(
    *,
    requested: bool,
    current_image_url: Optional[str],
    enabled: bool,
    policy: str,
) -> bool:
    """Decide whether a create/update should (re)generate the hero image.

    policy "requested": only when the caller asked for it.
    policy "missing": also whenever the recipe has no image yet.
    """
    if not enabled:
        return False
    if requested:
        return True
    return policy == "missing" and not current_image_url


def render_hero_image(
    recipe_id: str,
    name: str,
    description: Optional[str],
    generator: ImageGenerator,
    store: BlobStore,
) -> str:
    """Generate and store a hero image, returning its URL."""
    image = generator.generate(build_recipe_prompt(name, description))
    key = f"recipes/{recipe_id}/hero/{uuid.uuid4()}.png"
    try:
        url = store.put_bytes(key, image.png_bytes, content_type="image/png")
    except Exception as e:
        logger.error(f"Storage failed for {key}: {e}")
        raise UpstreamFailure("Image storage", str(e)) from e

    logger.info(f"Stored hero image for recipe {recipe_id} (model={image.model})")
    return url
