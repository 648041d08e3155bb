"""Image loading for ingredient detection.

Turns whatever the user pointed at (a file path, an http(s) URL, a data URI or
raw bytes) into base64 text plus a MIME type, ready for the gateway.

No size or format validation is applied: any image is forwarded as-is. When
COMPRESS_IMG is enabled, large images are re-encoded as JPEG first.
"""

import asyncio
import base64
from io import BytesIO
from pathlib import Path
from typing import NamedTuple

import aiohttp
import filetype
from PIL import Image

from src.models.errors import ImageLoadError
from src.utils.config import config
from src.utils.logger import logger

DEFAULT_MIME_TYPE = "image/jpeg"


class EncodedImage(NamedTuple):
    data: str
    mime_type: str


async def fetch_image_bytes(image_source: str | bytes | Path) -> bytes:
    """Fetch image bytes from a path, URL, data URI, or return bytes directly.

    Handles multiple image source formats:
    - Direct bytes: Returned as-is
    - HTTP/HTTPS URLs: Fetched asynchronously
    - Data URLs (data:image/jpeg;base64,...): Decoded from base64
    - Anything else: Treated as a local file path

    Raises:
        ImageLoadError: If the source cannot be read.
    """
    if isinstance(image_source, bytes):
        return image_source

    source = str(image_source)

    if source.startswith("data:"):
        try:
            _, encoded = source.split(",", 1)
            return base64.b64decode(encoded, validate=True)
        except ValueError as e:
            raise ImageLoadError(f"Invalid data URL: {e}") from e

    if source.startswith(("http://", "https://")):
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(source) as response:
                    response.raise_for_status()
                    return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ImageLoadError(f"Failed to fetch image from URL: {source}: {e}") from e

    path = Path(source).expanduser()
    try:
        return await asyncio.to_thread(path.read_bytes)
    except (OSError, ValueError) as e:
        raise ImageLoadError(f"Failed to read image file {path}: {e}") from e


def detect_mime_type(image_bytes: bytes) -> str:
    """Guess the MIME type from magic bytes, defaulting to image/jpeg."""
    kind = filetype.guess(image_bytes)
    if kind is None or not kind.mime.startswith("image/"):
        logger.debug(f"Unrecognized image type ({kind}), sending as {DEFAULT_MIME_TYPE}")
        return DEFAULT_MIME_TYPE
    return kind.mime


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Re-encode an image as JPEG, resizing it down to max_width.

    Converts color modes with alpha or palettes to RGB on a white background.
    Returns the original bytes if Pillow cannot decode the image.
    """
    try:
        img = Image.open(BytesIO(image_bytes))

        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Image compression failed, sending original: {e}")
        return image_bytes

    logger.debug(f"Image compressed: {len(image_bytes) / 1024:.1f}KB → {len(compressed) / 1024:.1f}KB")
    return compressed


def encode_image(image_bytes: bytes) -> EncodedImage:
    """Base64-encode image bytes, compressing first when enabled and worthwhile."""
    if config.COMPRESS_IMG and len(image_bytes) / 1024 >= config.COMPRESS_IMG_THRESHOLD_KB:
        image_bytes = compress_image(image_bytes, max_width=config.COMPRESS_IMG_MAX_WIDTH)

    return EncodedImage(
        data=base64.b64encode(image_bytes).decode("ascii"),
        mime_type=detect_mime_type(image_bytes),
    )


async def load_image(image_source: str | bytes | Path) -> EncodedImage:
    """Read an image from any supported source and base64-encode it.

    Raises:
        ImageLoadError: If the source cannot be read or is empty.
    """
    image_bytes = await fetch_image_bytes(image_source)
    if not image_bytes:
        raise ImageLoadError("Image is empty")
    return encode_image(image_bytes)
