"""
Unit tests for the color module.
"""
import pytest

from magic_place.color import (
    HSL,
    RGB,
    best_text_color,
    contrast_badges,
    contrast_ratio,
    hex_to_rgb,
    hsl_to_rgb,
    make_harmonies,
    normalize_hex,
    relative_luminance,
    rgb_to_hex,
    rgb_to_hsl,
    rotate_hue,
    round_half_up,
)
from magic_place.errors import InvalidColorError


class TestHexConversion:
    """Tests for hex <-> RGB conversion."""

    def test_hex_to_rgb(self):
        """hex_to_rgb() should parse each channel."""
        assert hex_to_rgb('#ff8000') == RGB(255, 128, 0)
        assert hex_to_rgb('0a0b0c') == RGB(10, 11, 12)

    def test_hex_to_rgb_shorthand(self):
        """hex_to_rgb() should expand 3-digit shorthand."""
        assert hex_to_rgb('#fa0') == RGB(255, 170, 0)

    @pytest.mark.parametrize('bad', ['', '#12', '#12345', 'zzzzzz', '#1234567', None])
    def test_hex_to_rgb_invalid(self, bad):
        """hex_to_rgb() should reject malformed colors."""
        with pytest.raises(InvalidColorError):
            hex_to_rgb(bad)

    def test_invalid_color_is_value_error(self):
        """InvalidColorError should be catchable as ValueError."""
        with pytest.raises(ValueError):
            hex_to_rgb('nope')

    @pytest.mark.parametrize('hex_color', ['#000000', '#ffffff', '#808080', '#1a2b3c', '#fe01dc'])
    def test_round_trip(self, hex_color):
        """rgb_to_hex(hex_to_rgb(h)) should give h back."""
        assert rgb_to_hex(hex_to_rgb(hex_color)) == hex_color

    def test_rgb_to_hex_clamps_and_rounds(self):
        """rgb_to_hex() should clamp to [0, 255] and round halves up."""
        assert rgb_to_hex((300, -5, 127.5)) == '#ff0080'
        assert rgb_to_hex(RGB(0.4, 254.6, 16)) == '#00ff10'

    def test_normalize_hex(self):
        """normalize_hex() should give lowercase '#rrggbb'."""
        assert normalize_hex('FFF') == '#ffffff'
        assert normalize_hex('#ABCDEF') == '#abcdef'

    def test_round_half_up(self):
        """round_half_up() should not round half to even."""
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(-2.5) == -2
        assert round_half_up(7.49) == 7


class TestHsl:
    """Tests for HSL conversion and harmonies."""

    def test_rgb_to_hsl_primaries(self):
        """rgb_to_hsl() should place primaries at 0/120/240 degrees."""
        assert rgb_to_hsl((255, 0, 0)) == pytest.approx((0, 1, 0.5))
        assert rgb_to_hsl((0, 255, 0)) == pytest.approx((120, 1, 0.5))
        assert rgb_to_hsl((0, 0, 255)) == pytest.approx((240, 1, 0.5))

    def test_rgb_to_hsl_gray(self):
        """Grays should have zero hue and saturation."""
        h, s, l = rgb_to_hsl((128, 128, 128))
        assert h == 0
        assert s == 0
        assert l == pytest.approx(128 / 255)

    def test_hue_in_range(self):
        """Hue should stay in [0, 360) for colors with blue > green."""
        h, _, _ = rgb_to_hsl((255, 0, 128))
        assert 0 <= h < 360

    def test_hsl_to_rgb(self):
        """hsl_to_rgb() should invert rgb_to_hsl()."""
        assert hsl_to_rgb(HSL(120, 1, 0.5)) == pytest.approx((0, 255, 0))
        r, g, b = hsl_to_rgb(rgb_to_hsl((30, 144, 255)))
        assert (r, g, b) == pytest.approx((30, 144, 255))

    def test_rotate_hue(self):
        """rotate_hue() should wrap negative rotations."""
        assert rotate_hue('#ff0000', -120) == '#0000ff'
        assert rotate_hue('#ff0000', 360) == '#ff0000'

    def test_make_harmonies(self):
        """make_harmonies() should return complementary and triad colors."""
        harmonies = make_harmonies('#ff0000')
        assert harmonies.complementary == '#00ffff'
        assert harmonies.triad == ('#00ff00', '#0000ff')


class TestContrast:
    """Tests for luminance and WCAG contrast."""

    def test_relative_luminance_extremes(self):
        """Black is 0 and white is 1."""
        assert relative_luminance('#000000') == 0
        assert relative_luminance('#ffffff') == pytest.approx(1.0)

    def test_black_white_ratio(self):
        """Black on white should be the maximum ratio of 21."""
        assert contrast_ratio('#000000', '#ffffff') == pytest.approx(21.0)

    @pytest.mark.parametrize('a,b', [
        ('#000000', '#ffffff'),
        ('#808080', '#ffffff'),
        ('#123456', '#fedcba'),
        ('#ff0000', '#00ff00'),
    ])
    def test_symmetric(self, a, b):
        """contrast_ratio() should not depend on argument order."""
        assert contrast_ratio(a, b) == contrast_ratio(b, a)

    @pytest.mark.parametrize('color', ['#000000', '#ffffff', '#808080', '#3366cc'])
    def test_same_color_is_one(self, color):
        """A color against itself has ratio exactly 1."""
        assert contrast_ratio(color, color) == 1.0

    def test_ratio_range(self):
        """Ratios should stay within [1, 21]."""
        for a in ('#000000', '#404040', '#a0a0a0', '#ffffff', '#ff00ff'):
            for b in ('#000000', '#7f7f7f', '#ffffff', '#00ffff'):
                assert 1.0 <= contrast_ratio(a, b) <= 21.0 + 1e-9


class TestContrastBadges:
    """Tests for WCAG badge classification."""

    def test_max_contrast(self):
        """Black on white earns AAA for both sizes."""
        badges = contrast_badges('#ffffff', '#000000')
        assert badges.ratio == 21.0
        assert badges.normal == 'AAA'
        assert badges.large == 'AAA'

    def test_aa_normal(self):
        """#767676 on white (about 4.54) is AA normal, AAA large."""
        badges = contrast_badges('#ffffff', '#767676')
        assert badges.normal == 'AA'
        assert badges.large == 'AAA'

    def test_large_only(self):
        """Mid gray on white (about 3.9) only passes for large text."""
        badges = contrast_badges('#ffffff', '#808080')
        assert badges.normal is None
        assert badges.large == 'AA'
        assert badges.ratio == 3.9

    def test_no_badge(self):
        """Near-identical colors earn no badge."""
        badges = contrast_badges('#ffffff', '#eeeeee')
        assert badges.normal is None
        assert badges.large is None

    def test_to_dict(self):
        """to_dict() should expose ratio and both tiers."""
        data = contrast_badges('#000000', '#ffffff').to_dict()
        assert set(data) == {'ratio', 'normal', 'large'}


class TestBestTextColor:
    """Tests for best_text_color."""

    def test_dark_background(self):
        """Dark backgrounds get white text."""
        assert best_text_color('#111111') == '#ffffff'

    def test_light_background(self):
        """Light backgrounds get black text."""
        assert best_text_color('#eeeeee') == '#000000'

    def test_custom_candidates(self):
        """Candidates are normalized and the most readable one wins."""
        assert best_text_color('#000000', ['#333', '#FF0']) == '#ffff00'

    def test_no_candidates(self):
        """An empty candidate list is rejected."""
        with pytest.raises(InvalidColorError):
            best_text_color('#000000', [])
