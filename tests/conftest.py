"""Shared pixel-buffer factories for the line rendering tests."""

import numpy as np
import pytest

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def _solid(width, height, color):
    pixels = np.empty((width * height, 4), dtype=np.uint8)
    pixels[:] = color
    return pixels


@pytest.fixture
def solid_buffer():
    """Factory: solid_buffer(width, height, color=BLACK) -> (N, 4) array."""

    def make(width, height, color=BLACK):
        return _solid(width, height, color)

    return make


@pytest.fixture
def mask_buffer():
    """Factory: mask_buffer(rows) where rows[y][x] truthy means black."""

    def make(rows):
        height = len(rows)
        width = len(rows[0]) if rows else 0
        pixels = _solid(width, height, WHITE)
        for y, row in enumerate(rows):
            for x, dark in enumerate(row):
                if dark:
                    pixels[y * width + x] = BLACK
        return pixels, width, height

    return make


@pytest.fixture
def radial_buffer():
    """Factory: radial_buffer(size) - dark centre fading to white edges."""

    def make(size):
        ys, xs = np.mgrid[0:size, 0:size]
        centre = (size - 1) / 2
        distance = np.hypot(xs - centre, ys - centre) / (size / 2)
        gray = (np.clip(distance, 0.0, 1.0) * 255).astype(np.uint8).ravel()
        pixels = np.empty((size * size, 4), dtype=np.uint8)
        pixels[:, 0] = gray
        pixels[:, 1] = gray
        pixels[:, 2] = gray
        pixels[:, 3] = 255
        return pixels

    return make


@pytest.fixture
def edge_buffer():
    """Factory: edge_buffer(width, height, split) - white left of split, black from it."""

    def make(width, height, split):
        pixels = _solid(width, height, WHITE)
        grid = pixels.reshape(height, width, 4)
        grid[:, split:] = BLACK
        return pixels

    return make
