"""
Raster helpers shared by the region detector and the OCR resolver.

Frames arrive either as PIL images (decoded stills) or numpy arrays (video frames
grabbed by the media layer). Everything here normalises them, crops selections and
encodes the JPEG payloads sent to the recognition models.
"""

import base64
import io
from typing import Tuple, Union

import numpy as np
from PIL import Image

from GalleryTranslator.util.logging_config import logger

Raster = Union[Image.Image, np.ndarray]

WHITE = (255, 255, 255)


def convert_image_to_rgb(image: Image.Image) -> Image.Image:
    """
    Flatten an image onto a white background and return it in RGB mode.

    Transparent pixels become white, which is also what the recognition models
    see for parts of a selection that fall outside the frame.

    Args:
        image: PIL Image object in any mode

    Returns:
        PIL Image object in RGB mode
    """
    if image.mode == 'RGB':
        return image

    if image.mode in ('RGBA', 'P', 'LA'):
        background = Image.new('RGB', image.size, WHITE)
        if image.mode == 'P':
            image = image.convert('RGBA')
        if image.mode in ('RGBA', 'LA'):
            background.paste(image, mask=image.split()[-1])
        else:
            background.paste(image)
        return background

    return image.convert('RGB')


def as_pil_image(frame: Raster) -> Image.Image:
    """Wrap a numpy frame (H x W, H x W x 3 or H x W x 4, uint8) as a PIL image."""
    if isinstance(frame, Image.Image):
        return frame
    array = np.asarray(frame)
    if array.dtype != np.uint8:
        array = np.clip(array, 0, 255).astype(np.uint8)
    return Image.fromarray(array)


def flatten_on_white(frame: Raster) -> Image.Image:
    """The frame composited onto white in RGB mode; detector and models both read this raster."""
    return convert_image_to_rgb(as_pil_image(frame))


def frame_size(frame: Raster) -> Tuple[int, int]:
    """(width, height) of a frame in pixels."""
    if isinstance(frame, Image.Image):
        return frame.size
    array = np.asarray(frame)
    if array.ndim < 2:
        return 0, 0
    return int(array.shape[1]), int(array.shape[0])


def to_rgba_array(frame: Raster) -> np.ndarray:
    """H x W x 4 uint8 array of the frame."""
    return np.asarray(as_pil_image(frame).convert('RGBA'), dtype=np.uint8)


def rgba_bytes_to_array(pixels: bytes, width: int, height: int) -> np.ndarray:
    """
    Interpret raw RGBA samples as an H x W x 4 array.

    Raises:
        ValueError: if the buffer length does not match ``width * height * 4``
    """
    expected = width * height * 4
    if len(pixels) != expected:
        raise ValueError(f"RGBA buffer holds {len(pixels)} bytes, expected {expected} for {width}x{height}")
    return np.frombuffer(pixels, dtype=np.uint8).reshape((height, width, 4))


def crop_on_white(frame: Raster, x: int, y: int, width: int, height: int) -> Image.Image:
    """
    Crop an image-space rectangle, filling anything outside the frame with white.
    """
    image = as_pil_image(frame).convert('RGBA')
    region = image.crop((x, y, x + width, y + height))
    return convert_image_to_rgb(region)


def encode_jpeg(image: Raster, quality: int = 85) -> bytes:
    """JPEG-encode a frame after flattening it onto white."""
    rgb = flatten_on_white(image)
    buffer = io.BytesIO()
    rgb.save(buffer, format='JPEG', quality=quality)
    data = buffer.getvalue()
    logger.debug(f"Encoded {rgb.width}x{rgb.height} JPEG ({len(data)} bytes, quality {quality})")
    return data


def to_data_url(image_bytes: bytes, mime_type: str = 'image/jpeg') -> str:
    """Base64 data URI for providers that take images inline."""
    encoded = base64.b64encode(image_bytes).decode('utf-8')
    return f"data:{mime_type};base64,{encoded}"
