from __future__ import annotations

import io
import logging
import warnings

from PIL import Image, UnidentifiedImageError

from app.backoffice.errors import FileError

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ("JPEG", "PNG")


class ImageService:
    """Profile-picture pixel work: decode, square crop, resize, encode."""

    def get_jpg_image(self, data: bytes) -> Image.Image:
        """
        Decode uploaded bytes into an RGB bitmap.
        Only JPEG and PNG are accepted; PNGs are flattened onto white.
        """
        if not data:
            raise FileError("Empty file.")
        try:
            with warnings.catch_warnings():
                # Pillow only warns between 1x and 2x MAX_IMAGE_PIXELS; refuse those too.
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                img = Image.open(io.BytesIO(data))
                img.load()
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            logger.warning("Rejected oversized image upload: %s", e)
            raise FileError("Image is too large.") from e
        except (UnidentifiedImageError, OSError) as e:
            raise FileError("Could not read image file.") from e

        if img.format not in ALLOWED_FORMATS:
            raise FileError("Only PNG and JPG images are allowed.")

        if img.format == "PNG":
            return self.png_to_jpg(img)
        return img.convert("RGB")

    def png_to_jpg(self, img: Image.Image) -> Image.Image:
        rgba = img.convert("RGBA")
        flat = Image.new("RGB", rgba.size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.getchannel("A"))
        return flat

    def crop_square(self, img: Image.Image) -> Image.Image:
        width, height = img.size
        side = min(width, height)
        left = width // 2 - side // 2
        top = height // 2 - side // 2
        return img.crop((left, top, left + side, top + side))

    def resize(self, img: Image.Image, size: int) -> Image.Image:
        """Fit into a size x size box, keeping the aspect ratio."""
        width, height = img.size
        scale = size / max(width, height)
        target = (max(1, round(width * scale)), max(1, round(height * scale)))
        return img.resize(target, Image.Resampling.LANCZOS)

    def to_bytes(self, img: Image.Image, extension: str = "jpg") -> bytes:
        fmt = "JPEG" if extension.lower() in ("jpg", "jpeg") else extension.upper()
        buf = io.BytesIO()
        try:
            img.save(buf, format=fmt)
        except (KeyError, OSError) as e:
            raise FileError(f"Could not encode image as {extension}.") from e
        logger.debug("Encoded %sx%s image as %s (%s bytes)", img.width, img.height, fmt, buf.tell())
        return buf.getvalue()
