"""
Placement Search - Main Module

Finds the top-left position for a text box where the background is
quiet (low saliency) and contrasts well with the text color, while
staying clear of other boxes.

Candidates are sampled on a fixed grid over the heatmap and scored as
    alpha * (1 - mean saliency) + beta * (contrast ratio / 21)
The grid is walked row by row (y outer, x inner) and the first
candidate with the highest score wins, so results are reproducible.
"""

import logging
import math
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .color import contrast_ratio, normalize_hex, rgb_to_hex, round_half_up
from .config import (
    DEFAULT_ALPHA,
    DEFAULT_AVOID_PADDING,
    DEFAULT_BETA,
    DEFAULT_MARGIN,
    LAYER_AVOID_PADDING,
    LAYER_MARGIN,
    MAX_CONTRAST_RATIO,
    MIN_GRID_STEP,
    MIN_TARGET_PX,
)
from .heatmap import Heatmap
from .logging_config import get_logger, get_request_logger

logger = get_logger('placer')


class PlacementStatus(str, Enum):
    PLACED = 'placed'
    FALLBACK = 'fallback'  # box does not fit inside the heatmap
    NO_CANDIDATE = 'no_candidate'  # every grid position was rejected


@dataclass
class Rect:
    """Axis-aligned box. Coordinate space is set by the caller."""
    x: float
    y: float
    width: float
    height: float


@dataclass
class AvoidRect(Rect):
    """Region a placement must not overlap (original-image px)."""
    padding: Optional[float] = None  # None = request's avoid_padding


@dataclass
class PlacementRequest:
    """Inputs for one placement search (sizes in original-image px)."""
    heatmap: Heatmap
    text_width: float
    text_height: float
    text_color: str
    alpha: float = DEFAULT_ALPHA
    beta: float = DEFAULT_BETA
    margin: float = DEFAULT_MARGIN
    avoid_rects: List[Union[Rect, Mapping]] = field(default_factory=list)
    avoid_padding: float = DEFAULT_AVOID_PADDING


@dataclass
class PlacementResult:
    """Suggested top-left corner in original-image px."""
    x: float
    y: float
    score: float  # raw objective; only comparable within one search
    status: PlacementStatus = PlacementStatus.PLACED

    @property
    def found(self) -> bool:
        return self.status == PlacementStatus.PLACED

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['status'] = self.status.value
        return data


@dataclass
class TextLayer:
    """Text box on the canvas, as far as placement cares."""
    id: str
    x: float
    y: float
    width: float
    height: float
    fill: str = '#000000'


def _field(item: Mapping, *names: str, default=None):
    for name in names:
        if name in item:
            return item[name]
    if default is not None:
        return default
    raise KeyError(f"Missing any of {names} in {dict(item)}")


def _as_avoid_rect(item: Union[Rect, Mapping]) -> AvoidRect:
    """Accept Rect/AvoidRect objects or {x, y, width|w, height|h[, padding]} dicts."""
    if isinstance(item, AvoidRect):
        return item
    if isinstance(item, Rect):
        return AvoidRect(item.x, item.y, item.width, item.height)
    return AvoidRect(
        x=item['x'],
        y=item['y'],
        width=_field(item, 'width', 'w'),
        height=_field(item, 'height', 'h'),
        padding=item.get('padding'),
    )


def _as_layer(item: Union[TextLayer, Mapping]) -> TextLayer:
    if isinstance(item, TextLayer):
        return item
    return TextLayer(
        id=item['id'],
        x=item['x'],
        y=item['y'],
        width=_field(item, 'width', 'w'),
        height=_field(item, 'height', 'h'),
        fill=item.get('fill', '#000000'),
    )


def _scale_avoid_rects(
    rects: Iterable[Union[Rect, Mapping]],
    heatmap: Heatmap,
    default_padding: float
) -> List[Tuple[int, int, int, int]]:
    """Convert avoid rects to padded (x, y, w, h) boxes in heatmap px."""
    s = heatmap.scale
    scaled = []
    for item in rects:
        rect = _as_avoid_rect(item)
        padding = default_padding if rect.padding is None else rect.padding
        pad = round_half_up(max(0, padding) * s)
        scaled.append((
            max(0, round_half_up(rect.x * s) - pad),
            max(0, round_half_up(rect.y * s) - pad),
            min(heatmap.width, round_half_up(rect.width * s) + 2 * pad),
            min(heatmap.height, round_half_up(rect.height * s) + 2 * pad),
        ))
    return scaled


def _overlaps(x: int, y: int, w: int, h: int, box: Tuple[int, int, int, int]) -> bool:
    bx, by, bw, bh = box
    return x < bx + bw and x + w > bx and y < by + bh and y + h > by


def suggest(
    request: PlacementRequest,
    log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> PlacementResult:
    """
    Find the best grid position for a text box.

    Args:
        request: Heatmap, box size, text color, weights and avoid rects
        log: Optional logger/adapter (default: module logger)

    Returns:
        PlacementResult in original-image px. status is FALLBACK when the
        box does not fit the heatmap, NO_CANDIDATE (score -inf) when every
        position overlaps an avoid rect.

    Raises:
        InvalidColorError: If text_color is not a hex color
    """
    if log is None:
        log = logger
    heatmap = request.heatmap
    s = heatmap.scale

    text_hex = normalize_hex(request.text_color)
    margin = max(0, math.floor(request.margin * s))
    tw = max(MIN_TARGET_PX, round_half_up(request.text_width * s))
    th = max(MIN_TARGET_PX, round_half_up(request.text_height * s))

    if tw >= heatmap.width or th >= heatmap.height:
        log.debug(
            f"Box {tw}x{th} does not fit heatmap {heatmap.width}x{heatmap.height}, "
            f"falling back to margin corner"
        )
        return PlacementResult(
            x=margin / s, y=margin / s, score=0.0, status=PlacementStatus.FALLBACK
        )

    step = max(MIN_GRID_STEP, min(tw, th) // 3)
    avoid = _scale_avoid_rects(request.avoid_rects, heatmap, request.avoid_padding)

    best_x, best_y, best_score = margin, margin, -math.inf
    evaluated = 0
    rejected = 0

    for y in range(margin, heatmap.height - margin - th + 1, step):
        for x in range(margin, heatmap.width - margin - tw + 1, step):
            if any(_overlaps(x, y, tw, th, box) for box in avoid):
                rejected += 1
                continue
            evaluated += 1

            avg_sal = heatmap.mean_saliency(x, y, tw, th)
            bg_hex = rgb_to_hex(heatmap.mean_rgb(x, y, tw, th))
            cr_norm = min(MAX_CONTRAST_RATIO, contrast_ratio(bg_hex, text_hex)) / MAX_CONTRAST_RATIO
            cr_norm = max(0.0, min(1.0, cr_norm))

            score = request.alpha * (1 - avg_sal) + request.beta * cr_norm
            if score > best_score:
                best_x, best_y, best_score = x, y, score

    status = PlacementStatus.PLACED if evaluated else PlacementStatus.NO_CANDIDATE
    log.debug(
        f"Searched {evaluated + rejected} positions (step={step}, box={tw}x{th}, "
        f"rejected={rejected}): best=({best_x}, {best_y}) score={best_score:.4f}"
    )

    return PlacementResult(
        x=round_half_up(best_x / s),
        y=round_half_up(best_y / s),
        score=best_score,
        status=status,
    )


def suggest_placement(
    heatmap: Heatmap,
    text_width: float,
    text_height: float,
    text_color: str,
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
    margin: float = DEFAULT_MARGIN,
    avoid_rects: Optional[List[Union[Rect, Mapping]]] = None,
    avoid_padding: float = DEFAULT_AVOID_PADDING
) -> PlacementResult:
    """Keyword form of suggest()."""
    return suggest(PlacementRequest(
        heatmap=heatmap,
        text_width=text_width,
        text_height=text_height,
        text_color=text_color,
        alpha=alpha,
        beta=beta,
        margin=margin,
        avoid_rects=list(avoid_rects or []),
        avoid_padding=avoid_padding,
    ))


def suggest_for_layers(
    heatmap: Heatmap,
    layers: List[Union[TextLayer, Mapping]],
    selected_ids: List[str],
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
    margin: float = LAYER_MARGIN,
    avoid_padding: float = LAYER_AVOID_PADDING,
    request_id: Optional[str] = None
) -> Dict[str, PlacementResult]:
    """
    Suggest positions for several selected text layers.

    Each selected layer is placed independently, avoiding the current
    boxes of every other layer (including other selected ones).

    Args:
        heatmap: Heatmap of the background image
        layers: All text layers (TextLayer objects or dicts with
            id, x, y, width, height, fill)
        selected_ids: Layers to place, in order; unknown ids are skipped
        alpha: Saliency weight
        beta: Contrast weight
        margin: Margin from the image edge (original px)
        avoid_padding: Padding around other layers (original px)
        request_id: Optional ID for log tracking

    Returns:
        Dict of layer id -> PlacementResult
    """
    log = get_request_logger('placer', request_id) if request_id else logger
    all_layers = [_as_layer(item) for item in layers]
    by_id = {layer.id: layer for layer in all_layers}

    results = {}
    for layer_id in selected_ids:
        layer = by_id.get(layer_id)
        if layer is None:
            log.warning(f"Unknown layer id, skipping: {layer_id}")
            continue

        others = [
            Rect(other.x, other.y, other.width, other.height)
            for other in all_layers if other.id != layer_id
        ]
        results[layer_id] = suggest(PlacementRequest(
            heatmap=heatmap,
            text_width=max(1, layer.width),
            text_height=max(1, layer.height),
            text_color=layer.fill,
            alpha=alpha,
            beta=beta,
            margin=margin,
            avoid_rects=others,
            avoid_padding=avoid_padding,
        ), log=log)

    log.info(f"Placed {len(results)}/{len(selected_ids)} selected layers")
    return results
