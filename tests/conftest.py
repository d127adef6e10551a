from pathlib import Path

import numpy as np
import pytest
from PIL import Image

WHITE = (255, 255, 255)
RED = (255, 0, 0)


def _square_image() -> np.ndarray:
    """10x10 white RGB image with an 8x8 red square at (1, 1)"""
    arr = np.full((10, 10, 3), 255, dtype=np.uint8)
    arr[1:9, 1:9] = RED
    return arr


@pytest.fixture
def square_rgb() -> np.ndarray:
    return _square_image()


@pytest.fixture
def write_png(tmp_path):
    """Factory: write an array (or PIL image) to tmp_path/<name> and return the path"""

    def _write(name: str, data) -> Path:
        path = tmp_path / name
        img = data if isinstance(data, Image.Image) else Image.fromarray(data)
        img.save(path)
        return path

    return _write


@pytest.fixture
def square_png(write_png) -> Path:
    return write_png("square.png", _square_image())


@pytest.fixture
def blank_png(write_png) -> Path:
    return write_png("blank.png", np.full((12, 7, 3), 40, dtype=np.uint8))
