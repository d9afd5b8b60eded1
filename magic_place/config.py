"""Configuration and constants for the text placement engine."""

import os


def positive_int_env(name, default=None):
    """Integer setting from the environment; unset or <= 0 gives the default."""
    value = int(os.getenv(name, 0))
    return value if value > 0 else default


# Heatmap construction
MAX_HEATMAP_WIDTH = positive_int_env('MAGIC_PLACE_MAX_WIDTH', 384)  # working width ceiling (px)
SALIENCY_EPSILON = 1e-6  # floor for the normalization divisor
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)  # R, G, B

# Placement search
MIN_TARGET_PX = 6  # smallest text box edge in heatmap px
MIN_GRID_STEP = 4  # heatmap px
MAX_CONTRAST_RATIO = 21.0

# Request defaults (original-image px)
DEFAULT_ALPHA = 0.6  # saliency weight
DEFAULT_BETA = 0.4  # contrast weight
DEFAULT_MARGIN = 8
DEFAULT_AVOID_PADDING = 4

# Multi-layer placement defaults (editor toolbar)
LAYER_MARGIN = 12
LAYER_AVOID_PADDING = 8

# Heatmap cache (unset or 0 = unbounded)
CACHE_MAX_ENTRIES = positive_int_env('MAGIC_PLACE_CACHE_SIZE')

# Remote image sources
IMAGE_FETCH_TIMEOUT = float(os.getenv('MAGIC_PLACE_FETCH_TIMEOUT', 15))
