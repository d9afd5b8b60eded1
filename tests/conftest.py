"""
Shared pytest fixtures for Magic Place tests.
"""
import os
import sys
import logging
import pytest
import numpy as np
from io import BytesIO
from PIL import Image

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from magic_place import HeatmapCache, build_heatmap


@pytest.fixture
def heatmap_cache():
    """Fresh, isolated heatmap cache."""
    return HeatmapCache()


@pytest.fixture
def flat_gray_image_file(tmp_path):
    """400x300 solid mid-gray PNG on disk."""
    img_path = tmp_path / "flat_gray.png"
    img = Image.new('RGB', (400, 300), color=(128, 128, 128))
    img.save(str(img_path))
    return str(img_path)


@pytest.fixture
def flat_gray_heatmap(flat_gray_image_file):
    """Heatmap of the 400x300 gray image (scale 0.96)."""
    return build_heatmap(flat_gray_image_file, 400, 300)


@pytest.fixture
def sample_png_bytes():
    """Encoded 64x48 blue PNG."""
    img = Image.new('RGB', (64, 48), color='blue')
    img_bytes = BytesIO()
    img.save(img_bytes, format='PNG')
    return img_bytes.getvalue()


@pytest.fixture
def busy_left_image():
    """
    400x300 RGB array: left half 2px black/white stripes, right half white.
    """
    pixels = np.full((300, 400, 3), 255, dtype=np.uint8)
    for col in range(0, 200, 4):
        pixels[:, col:col + 2] = 0
    return pixels


@pytest.fixture
def random_pixels():
    """Reproducible 30x40 random RGB array."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(30, 40, 3), dtype=np.uint8)


@pytest.fixture
def restore_engine_logger():
    """Undo handler/propagation changes made by setup_logging()."""
    from magic_place import logging_config

    logger = logging.getLogger(logging_config.ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.propagate, logger.level, logging_config._initialized)
    logging_config._initialized = False
    yield logger
    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    logger.handlers, logger.propagate, logger.level, logging_config._initialized = saved
