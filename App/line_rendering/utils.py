"""Pixel sampling utilities shared by every line renderer.

AIDEV-NOTE: Pixel buffers are flat, row-major sequences of RGBA colors
(Pillow's "RGBA" layout). Reads outside the buffer always return white so
renderers never have to bounds-check before sampling.
"""

import math

import numpy as np
from PIL import Image

from models import InvalidConfigurationError

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

WHITE = (255, 255, 255, 255)


def get_brightness(color) -> float:
    """Get perceived brightness of a color.

    Args:
        color: RGBA (or RGB) sequence, 0-255 per channel

    Returns:
        Brightness value from 0 (black) to 1 (white)
    """
    r, g, b = color[0], color[1], color[2]
    brightness = (
        LUMA_WEIGHTS[0] * float(r) + LUMA_WEIGHTS[1] * float(g) + LUMA_WEIGHTS[2] * float(b)
    ) / 255.0
    return clamp(brightness, 0.0, 1.0)


def get_darkness(color) -> float:
    """Darkness of a color, 0 (white) to 1 (black)."""
    return 1.0 - get_brightness(color)


def get_pixel_safe(pixels, x: int, y: int, width: int, height: int):
    """Get the color at (x, y), or opaque white when out of bounds."""
    if x < 0 or x >= width or y < 0 or y >= height:
        return WHITE
    pixel = pixels[y * width + x]
    return tuple(int(channel) for channel in pixel)


def get_darkness_at(pixels, x: int, y: int, width: int, height: int) -> float:
    """Darkness at an integer pixel coordinate (white outside the buffer)."""
    return get_darkness(get_pixel_safe(pixels, x, y, width, height))


def get_darkness_at_subpixel(
    pixels, x: float, y: float, width: int, height: int
) -> float:
    """Darkness at a fractional coordinate using bilinear interpolation.

    Args:
        pixels: Flat row-major RGBA buffer
        x: X coordinate (may be fractional)
        y: Y coordinate (may be fractional)
        width: Buffer width in pixels
        height: Buffer height in pixels

    Returns:
        Interpolated darkness in [0, 1]. Neighbours outside the buffer
        contribute white; non-finite coordinates sample as white.
    """
    if not (math.isfinite(x) and math.isfinite(y)):
        return 0.0

    x0 = math.floor(x)
    y0 = math.floor(y)
    fx = x - x0
    fy = y - y0

    d00 = get_darkness_at(pixels, x0, y0, width, height)
    d10 = get_darkness_at(pixels, x0 + 1, y0, width, height)
    d01 = get_darkness_at(pixels, x0, y0 + 1, width, height)
    d11 = get_darkness_at(pixels, x0 + 1, y0 + 1, width, height)

    return _bilinear(d00, d10, d01, d11, fx, fy)


def clamp(value, min_value, max_value):
    """Clamp value between min_value and max_value."""
    if value < min_value:
        return min_value
    if value > max_value:
        return max_value
    return value


def _bilinear(d00: float, d10: float, d01: float, d11: float, fx: float, fy: float) -> float:
    top = d00 * (1.0 - fx) + d10 * fx
    bottom = d01 * (1.0 - fx) + d11 * fx
    return clamp(top * (1.0 - fy) + bottom * fy, 0.0, 1.0)


def as_pixel_array(pixels, width: int, height: int) -> np.ndarray:
    """Normalize a pixel buffer to a (width*height, 4) uint8 array.

    Accepts numpy arrays shaped (N, 4) or (height, width, 4) and plain
    sequences of RGBA tuples.

    Raises:
        InvalidConfigurationError: If the dimensions are negative or the
            buffer length does not match width * height
    """
    if isinstance(width, bool) or not isinstance(width, (int, np.integer)) or width < 0:
        raise InvalidConfigurationError("width", f"must be a non-negative integer, got {width!r}")
    if isinstance(height, bool) or not isinstance(height, (int, np.integer)) or height < 0:
        raise InvalidConfigurationError("height", f"must be a non-negative integer, got {height!r}")

    array = np.asarray(pixels, dtype=np.uint8)
    if array.size == 0:
        array = array.reshape(0, 4)
    elif array.ndim == 3:
        array = array.reshape(-1, array.shape[-1])

    if array.ndim != 2 or array.shape[1] != 4:
        raise InvalidConfigurationError(
            "pixels", f"expected RGBA pixels, got array of shape {array.shape}"
        )
    if array.shape[0] != width * height:
        raise InvalidConfigurationError(
            "pixels",
            f"buffer holds {array.shape[0]} pixels, expected {width}x{height}={width * height}",
        )
    return array


def image_to_pixels(image: Image.Image) -> "tuple[np.ndarray, int, int]":
    """Convert a decoded Pillow image into a flat RGBA pixel buffer.

    AIDEV-NOTE: Always convert to RGBA so the channel layout matches the
    rest of the pipeline regardless of the source mode.
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    width, height = image.size
    pixels = np.asarray(image, dtype=np.uint8).reshape(-1, 4)
    return pixels, width, height


class DarknessMap:
    """Darkness of every pixel, precomputed once per render call.

    AIDEV-NOTE: Same semantics as the free sampling functions above, but
    backed by a (height, width) numpy grid so renderers can sample millions
    of times without re-deriving luminance. Read-only after construction.
    """

    def __init__(self, grid: np.ndarray):
        self.grid = grid
        self.height, self.width = grid.shape

    @classmethod
    def from_pixels(cls, pixels, width: int, height: int) -> "DarknessMap":
        array = as_pixel_array(pixels, width, height)
        rgb = array[:, :3].astype(np.float64)
        brightness = (rgb @ np.asarray(LUMA_WEIGHTS)) / 255.0
        darkness = 1.0 - np.clip(brightness, 0.0, 1.0)
        return cls(darkness.reshape(height, width))

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def at(self, x: int, y: int) -> float:
        """Darkness at an integer coordinate (0.0 outside the buffer)."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return 0.0
        return float(self.grid[y, x])

    def at_subpixel(self, x: float, y: float) -> float:
        """Bilinearly interpolated darkness at a fractional coordinate."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return 0.0

        x0 = math.floor(x)
        y0 = math.floor(y)
        fx = x - x0
        fy = y - y0

        return _bilinear(
            self.at(x0, y0),
            self.at(x0 + 1, y0),
            self.at(x0, y0 + 1),
            self.at(x0 + 1, y0 + 1),
            fx,
            fy,
        )

    def row_average(self, row: int) -> float:
        """Mean darkness across one row."""
        if self.width == 0 or not 0 <= row < self.height:
            return 0.0
        return float(self.grid[row].mean())

    def column_average(self, col: int) -> float:
        """Mean darkness down one column."""
        if self.height == 0 or not 0 <= col < self.width:
            return 0.0
        return float(self.grid[:, col].mean())
