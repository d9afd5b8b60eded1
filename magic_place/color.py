"""
Color Utilities

Hex/RGB/HSL conversions, hue-rotated harmonies and WCAG contrast.
The placement search scores candidates with contrast_ratio(); the rest
serves the editor's color suggestions.
"""

import math
import re
from dataclasses import dataclass, asdict
from typing import Dict, NamedTuple, Optional, Sequence, Tuple, Union

from .config import LUMA_WEIGHTS
from .errors import InvalidColorError

_HEX_RE = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


class RGB(NamedTuple):
    r: float
    g: float
    b: float


class HSL(NamedTuple):
    h: float  # degrees [0, 360)
    s: float  # [0, 1]
    l: float  # [0, 1]


@dataclass
class ContrastBadges:
    """WCAG tier labels for a background/text pair."""
    ratio: float  # rounded to one decimal
    normal: Optional[str]  # 'AAA', 'AA' or None
    large: Optional[str]

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class Harmonies:
    """Hue-rotated companions of a base color."""
    complementary: str
    triad: Tuple[str, str]


def round_half_up(value: float) -> int:
    """Round .5 towards +inf (round() in Python rounds half to even)."""
    return int(math.floor(value + 0.5))


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Convert hex color to integer RGB channels.

    Args:
        hex_color: '#rrggbb', 'rrggbb' or the '#rgb' shorthand

    Returns:
        RGB with channels in [0, 255]

    Raises:
        InvalidColorError: If the string is not a hex color
    """
    match = _HEX_RE.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if match is None:
        raise InvalidColorError(f"Invalid hex color: {hex_color!r}")

    value = match.group(1)
    if len(value) == 3:
        value = ''.join(c * 2 for c in value)
    return RGB(*(int(value[i:i + 2], 16) for i in (0, 2, 4)))


def rgb_to_hex(rgb: Union[RGB, Sequence[float]]) -> str:
    """Format channels as lowercase '#rrggbb', clamping and rounding each one."""
    r, g, b = rgb
    return '#' + ''.join(
        '{:02x}'.format(int(clamp(round_half_up(v), 0, 255))) for v in (r, g, b)
    )


def normalize_hex(color: str) -> str:
    """Canonical '#rrggbb' form of any accepted hex color."""
    return rgb_to_hex(hex_to_rgb(color))


def rgb_to_hsl(rgb: Union[RGB, Sequence[float]]) -> HSL:
    r, g, b = (c / 255 for c in rgb)
    hi = max(r, g, b)
    lo = min(r, g, b)
    d = hi - lo
    h = 0.0
    s = 0.0
    l = (hi + lo) / 2

    if d != 0:
        s = d / (1 - abs(2 * l - 1))
        if hi == r:
            h = 60 * (((g - b) / d) % 6)
        elif hi == g:
            h = 60 * ((b - r) / d + 2)
        else:
            h = 60 * ((r - g) / d + 4)

    return HSL(h % 360, s, l)


def hsl_to_rgb(hsl: Union[HSL, Sequence[float]]) -> RGB:
    h, s, l = hsl
    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs((h / 60) % 2 - 1))
    m = l - c / 2

    if 0 <= h < 60:
        r1, g1, b1 = c, x, 0
    elif 60 <= h < 120:
        r1, g1, b1 = x, c, 0
    elif 120 <= h < 180:
        r1, g1, b1 = 0, c, x
    elif 180 <= h < 240:
        r1, g1, b1 = 0, x, c
    elif 240 <= h < 300:
        r1, g1, b1 = x, 0, c
    else:
        r1, g1, b1 = c, 0, x

    return RGB((r1 + m) * 255, (g1 + m) * 255, (b1 + m) * 255)


def rotate_hue(hex_color: str, delta: float) -> str:
    """Rotate the hue of a color by delta degrees, keeping s and l."""
    h, s, l = rgb_to_hsl(hex_to_rgb(hex_color))
    return rgb_to_hex(hsl_to_rgb(HSL((h + delta) % 360, s, l)))


def make_harmonies(base_hex: str) -> Harmonies:
    return Harmonies(
        complementary=rotate_hue(base_hex, 180),
        triad=(rotate_hue(base_hex, 120), rotate_hue(base_hex, -120)),
    )


def _linearize(channel: float) -> float:
    c = channel / 255
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    """WCAG relative luminance of a hex color, in [0, 1]."""
    r, g, b = hex_to_rgb(hex_color)
    wr, wg, wb = LUMA_WEIGHTS
    return wr * _linearize(r) + wg * _linearize(g) + wb * _linearize(b)


def contrast_ratio(a_hex: str, b_hex: str) -> float:
    """
    WCAG contrast ratio between two colors.

    Returns:
        Ratio in [1, 21]; symmetric in its arguments
    """
    l1 = relative_luminance(a_hex)
    l2 = relative_luminance(b_hex)
    hi, lo = (l1, l2) if l1 >= l2 else (l2, l1)
    return (hi + 0.05) / (lo + 0.05)


def contrast_badges(bg_hex: str, text_hex: str) -> ContrastBadges:
    """
    Map a background/text pair to WCAG AA/AAA labels.

    Normal text needs 7 for AAA and 4.5 for AA; large text needs 4.5 and 3.
    """
    ratio = contrast_ratio(bg_hex, text_hex)

    if ratio >= 7:
        normal = 'AAA'
    elif ratio >= 4.5:
        normal = 'AA'
    else:
        normal = None

    if ratio >= 4.5:
        large = 'AAA'
    elif ratio >= 3:
        large = 'AA'
    else:
        large = None

    return ContrastBadges(ratio=round_half_up(ratio * 10) / 10, normal=normal, large=large)


def best_text_color(bg_hex: str, candidates: Sequence[str] = ('#ffffff', '#000000')) -> str:
    """
    Pick the candidate text color that reads best on a background.

    Args:
        bg_hex: Background color
        candidates: Text colors to choose from (first wins ties)

    Returns:
        The chosen candidate, normalized to '#rrggbb'
    """
    if not candidates:
        raise InvalidColorError("No candidate text colors given")

    best = None
    best_ratio = -1.0
    for candidate in candidates:
        ratio = contrast_ratio(bg_hex, candidate)
        if ratio > best_ratio:
            best, best_ratio = candidate, ratio
    return normalize_hex(best)
