"""
Heatmap Builder

Decodes an image, downsamples it to a fixed working width and computes
a Sobel edge-magnitude saliency map plus summed-area tables (integral
images) for saliency and each RGB channel.

High saliency = busy area = poor place for overlaid text.
The integral images let the placement search average any rectangle
in O(1).
"""

import base64
import binascii
import os
from dataclasses import dataclass
from typing import Tuple, Union
from urllib.parse import unquote_to_bytes

import cv2
import numpy as np
import requests
from PIL import Image

from .color import round_half_up
from .config import (
    IMAGE_FETCH_TIMEOUT,
    LUMA_WEIGHTS,
    MAX_HEATMAP_WIDTH,
    SALIENCY_EPSILON,
)
from .errors import DecodeError, InvalidDimensionsError
from .logging_config import get_logger

logger = get_logger('heatmap')

ImageSource = Union[str, os.PathLike, bytes, bytearray, memoryview, np.ndarray, Image.Image]


@dataclass(frozen=True, eq=False)
class Heatmap:
    """Immutable saliency/color snapshot of one image at a fixed downscale."""
    width: int
    height: int
    scale: float  # downscaled = round(original * scale)
    saliency: np.ndarray  # (height, width) in [0, 1]
    integral_s: np.ndarray  # (height + 1, width + 1)
    integral_r: np.ndarray
    integral_g: np.ndarray
    integral_b: np.ndarray

    def __post_init__(self):
        for arr in (self.saliency, self.integral_s, self.integral_r,
                    self.integral_g, self.integral_b):
            arr.flags.writeable = False

    @staticmethod
    def rect_sum(integral: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        """Sum of source values in [x, x+w) x [y, y+h) from four lookups."""
        x2 = x + w
        y2 = y + h
        return float(integral[y2, x2] - integral[y, x2] - integral[y2, x] + integral[y, x])

    def rect_mean(self, integral: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        return self.rect_sum(integral, x, y, w, h) / (w * h)

    def mean_saliency(self, x: int, y: int, w: int, h: int) -> float:
        return self.rect_mean(self.integral_s, x, y, w, h)

    def mean_rgb(self, x: int, y: int, w: int, h: int) -> Tuple[float, float, float]:
        """Average background color of a rectangle (float channels)."""
        return (
            self.rect_mean(self.integral_r, x, y, w, h),
            self.rect_mean(self.integral_g, x, y, w, h),
            self.rect_mean(self.integral_b, x, y, w, h),
        )


def _to_rgba(decoded: np.ndarray, label: str) -> np.ndarray:
    """Convert an OpenCV IMREAD_UNCHANGED result to 8-bit RGBA."""
    if decoded.dtype == np.uint16:
        decoded = np.rint(decoded / 257.0).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        raise DecodeError(f"Unsupported pixel depth {decoded.dtype}: {label}")

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    if decoded.shape[2] == 3:
        return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    if decoded.shape[2] == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    raise DecodeError(f"Unsupported channel count {decoded.shape[2]}: {label}")


def _decode_bytes(data: bytes, label: str) -> np.ndarray:
    """Decode encoded image bytes to an RGBA uint8 array."""
    if not data:
        raise DecodeError(f"Empty image data: {label}")
    try:
        decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"Could not decode image: {label}") from e
    if decoded is None:
        raise DecodeError(f"Could not decode image: {label}")
    return _to_rgba(decoded, label)


def _decode_data_url(url: str) -> np.ndarray:
    header, sep, payload = url.partition(',')
    if not sep:
        raise DecodeError("Malformed data URL (no ',' separator)")
    try:
        if header.endswith(';base64'):
            data = base64.b64decode(payload, validate=True)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Malformed base64 payload in data URL") from e
    return _decode_bytes(data, 'data URL')


def _fetch_url(url: str) -> np.ndarray:
    logger.debug(f"Fetching image: {url[:80]}")
    try:
        response = requests.get(url, timeout=IMAGE_FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise DecodeError(f"Image request failed: {str(e)}") from e
    return _decode_bytes(response.content, url)


def _from_array(arr: np.ndarray) -> np.ndarray:
    """Accept H x W gray, H x W x 3 RGB or H x W x 4 RGBA pixel arrays."""
    if arr.ndim == 3 and arr.shape[2] == 4:
        pass
    elif arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] == 3):
        if arr.ndim == 2:
            arr = np.stack([arr] * 3, axis=-1)
        opaque = np.full(arr.shape[:2] + (1,), 255, dtype=arr.dtype)
        arr = np.concatenate([arr, opaque], axis=-1)
    else:
        raise DecodeError(f"Unsupported pixel array shape: {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DecodeError("Pixel array is empty")
    if arr.dtype != np.uint8:
        if not np.isfinite(arr).all():
            raise DecodeError("Pixel array contains NaN or infinite values")
        arr = np.clip(np.rint(arr), 0, 255)
    return np.array(arr, dtype=np.uint8)


def load_rgba(source: ImageSource) -> np.ndarray:
    """
    Load an image source into an RGBA pixel array.

    Args:
        source: File path, data: URL, http(s) URL, encoded bytes,
            numpy pixel array or PIL image

    Returns:
        (H, W, 4) uint8 RGBA array, straight (not premultiplied) alpha;
        sources without alpha are fully opaque

    Raises:
        DecodeError: If the source cannot be loaded or decoded
    """
    if isinstance(source, Image.Image):
        try:
            return np.array(source.convert('RGBA'), dtype=np.uint8)
        except OSError as e:
            raise DecodeError(f"Could not read PIL image: {str(e)}") from e

    if isinstance(source, np.ndarray):
        return _from_array(source)

    if isinstance(source, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(source), f'{len(source)} bytes')

    if isinstance(source, str):
        if source.startswith('data:'):
            return _decode_data_url(source)
        if source.startswith(('http://', 'https://')):
            return _fetch_url(source)

    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        if not os.path.isfile(path):
            raise DecodeError(f"Image file not found: {path}")
        decoded = cv2.imread(path, cv2.IMREAD_UNCHANGED)
        if decoded is None:
            raise DecodeError(f"Could not decode image file: {path}")
        return _to_rgba(decoded, path)

    raise DecodeError(f"Unsupported image source type: {type(source).__name__}")


def rasterize(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize RGBA pixels to (width, height) and drop alpha, canvas style.

    Non-opaque images are resized in premultiplied space so transparent
    pixels never bleed their stored color into neighbours; pixels with
    zero alpha come out black. Opaque images are resized directly.

    Returns:
        (height, width, 3) uint8 RGB array
    """
    src_h, src_w = rgba.shape[:2]
    resize = (src_w, src_h) != (width, height)
    interpolation = cv2.INTER_AREA if src_w >= width and src_h >= height else cv2.INTER_LINEAR

    if (rgba[:, :, 3] == 255).all():
        rgb = np.ascontiguousarray(rgba[:, :, :3])
        if resize:
            rgb = cv2.resize(rgb, (width, height), interpolation=interpolation)
        return rgb

    alpha = rgba[:, :, 3:4].astype(np.float64)
    premultiplied = np.concatenate([rgba[:, :, :3] * (alpha / 255.0), alpha], axis=-1)
    if resize:
        premultiplied = cv2.resize(premultiplied, (width, height), interpolation=interpolation)

    alpha = premultiplied[:, :, 3:4]
    rgb = np.zeros((height, width, 3), dtype=np.float64)
    np.divide(premultiplied[:, :, :3] * 255.0, alpha, out=rgb, where=alpha > 0)
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def heatmap_size(original_width: int, original_height: int) -> Tuple[int, int, float]:
    """
    Working raster size for an original image.

    Returns:
        Tuple of (width, height, scale)
    """
    if original_width <= 0 or original_height <= 0:
        raise InvalidDimensionsError(
            f"Image dimensions must be positive, got {original_width}x{original_height}"
        )
    target_width = min(MAX_HEATMAP_WIDTH, original_width)
    scale = target_width / original_width
    width = max(1, round_half_up(original_width * scale))
    height = max(1, round_half_up(original_height * scale))
    return width, height, scale


def compute_saliency(rgb: np.ndarray) -> np.ndarray:
    """
    Normalized Sobel gradient magnitude of the image luma.

    Args:
        rgb: (H, W, 3) RGB array

    Returns:
        (H, W) float64 map in [0, 1]; border pixels are 0
    """
    h, w = rgb.shape[:2]
    pixels = rgb.astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    luma = wr * pixels[:, :, 0] + wg * pixels[:, :, 1] + wb * pixels[:, :, 2]

    magnitude = np.zeros((h, w), dtype=np.float64)
    if h >= 3 and w >= 3:
        gx = cv2.Sobel(luma, cv2.CV_64F, 1, 0, ksize=3)
        gy = cv2.Sobel(luma, cv2.CV_64F, 0, 1, ksize=3)
        magnitude[1:-1, 1:-1] = np.hypot(gx, gy)[1:-1, 1:-1]

    max_mag = max(SALIENCY_EPSILON, float(magnitude.max()))
    return magnitude / max_mag


def build_heatmap(source: ImageSource, original_width: int, original_height: int) -> Heatmap:
    """
    Build the saliency heatmap and integral images for one image.

    Args:
        source: Image source (see load_rgba)
        original_width: Width of the image in the caller's pixel space
        original_height: Height of the image in the caller's pixel space

    Returns:
        Heatmap at a working width of at most MAX_HEATMAP_WIDTH

    Raises:
        InvalidDimensionsError: If either dimension is <= 0
        DecodeError: If the image cannot be loaded or decoded
    """
    width, height, scale = heatmap_size(original_width, original_height)

    try:
        rgba = load_rgba(source)
    except DecodeError as e:
        logger.error(f"Heatmap decode failed: {str(e)}")
        raise

    src_h, src_w = rgba.shape[:2]
    rgb = rasterize(rgba, width, height)

    # Per-channel summed-area tables, shape (height + 1, width + 1, 3)
    color_sums = cv2.integral(np.ascontiguousarray(rgb), sdepth=cv2.CV_64F)

    saliency = compute_saliency(rgb)
    integral_s = cv2.integral(saliency, sdepth=cv2.CV_64F)

    logger.debug(
        f"Built heatmap {width}x{height} (scale={scale:.4f}) "
        f"from {src_w}x{src_h} source"
    )

    return Heatmap(
        width=width,
        height=height,
        scale=scale,
        saliency=saliency,
        integral_s=integral_s,
        integral_r=np.ascontiguousarray(color_sums[:, :, 0]),
        integral_g=np.ascontiguousarray(color_sums[:, :, 1]),
        integral_b=np.ascontiguousarray(color_sums[:, :, 2]),
    )
