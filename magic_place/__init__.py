"""
Magic Place Package

Content-aware text placement: finds a quiet, high-contrast spot on an
image for a text box, avoiding boxes that are already there.
"""

from .cache import HeatmapCache, default_cache, get_heatmap, make_cache_key, source_identity
from .color import (
    contrast_badges,
    contrast_ratio,
    hex_to_rgb,
    make_harmonies,
    relative_luminance,
    rgb_to_hex,
)
from .errors import DecodeError, InvalidColorError, InvalidDimensionsError, MagicPlaceError
from .heatmap import Heatmap, build_heatmap
from .placer import (
    AvoidRect,
    PlacementRequest,
    PlacementResult,
    PlacementStatus,
    Rect,
    TextLayer,
    suggest,
    suggest_for_layers,
    suggest_placement,
)

__all__ = [
    'AvoidRect', 'DecodeError', 'Heatmap', 'HeatmapCache', 'InvalidColorError',
    'InvalidDimensionsError', 'MagicPlaceError', 'PlacementRequest', 'PlacementResult',
    'PlacementStatus', 'Rect', 'TextLayer', 'build_heatmap', 'contrast_badges',
    'contrast_ratio', 'default_cache', 'get_heatmap', 'hex_to_rgb', 'make_cache_key',
    'make_harmonies', 'relative_luminance', 'rgb_to_hex', 'source_identity', 'suggest',
    'suggest_for_layers', 'suggest_placement',
]
