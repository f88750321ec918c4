from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from school_portal.services.backend.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompressedImage:
    data: bytes
    width: int
    height: int
    original_size: int
    content_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.data)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Scale the longer side down to its bound, keeping the aspect ratio."""
    new_width, new_height = float(width), float(height)
    if width > height:
        if width > max_width:
            new_height *= max_width / width
            new_width = max_width
    elif height > max_height:
        new_width *= max_height / height
        new_height = max_height
    return max(1, round(new_width)), max(1, round(new_height))


def compress_image(
    data: bytes,
    *,
    max_width: int = 1200,
    max_height: int = 1200,
    quality: float = 0.8,
) -> CompressedImage:
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            width, height = fit_within(source.width, source.height, max_width, max_height)
            image = source
            if image.mode in ("RGBA", "LA", "P"):
                image = image.convert("RGBA")
                background = Image.new("RGB", image.size, (255, 255, 255))
                background.paste(image, mask=image.getchannel("A"))
                image = background
            elif image.mode != "RGB":
                image = image.convert("RGB")
            if image.size != (width, height):
                image = image.resize((width, height), Image.Resampling.LANCZOS)
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=max(1, min(95, round(quality * 100))))
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("Failed to load image", field="file") from exc

    result = CompressedImage(
        data=buffer.getvalue(),
        width=width,
        height=height,
        original_size=len(data),
    )
    logger.debug("Compressed image %.2fKB -> %.2fKB", len(data) / 1024, result.size / 1024)
    return result
