"""Image helpers applied before uploads."""

from .compression import CompressedImage, compress_image, fit_within

__all__ = ["CompressedImage", "compress_image", "fit_within"]
