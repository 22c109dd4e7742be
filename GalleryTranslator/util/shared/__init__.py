"""
Shared raster utilities used by the OCR pipeline.
"""

from .image_utils import (
    as_pil_image,
    convert_image_to_rgb,
    crop_on_white,
    encode_jpeg,
    frame_size,
    rgba_bytes_to_array,
    to_data_url,
    to_rgba_array,
)

__all__ = [
    "as_pil_image",
    "convert_image_to_rgb",
    "crop_on_white",
    "encode_jpeg",
    "frame_size",
    "rgba_bytes_to_array",
    "to_data_url",
    "to_rgba_array",
]
