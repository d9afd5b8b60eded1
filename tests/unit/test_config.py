"""
Unit tests for config module.
"""
from magic_place import config
from magic_place.heatmap import heatmap_size


class TestPositiveIntEnv:
    """Tests for integer environment settings."""

    def test_unset_uses_default(self, monkeypatch):
        """A missing variable gives the default."""
        monkeypatch.delenv('MAGIC_PLACE_TEST_SIZE', raising=False)
        assert config.positive_int_env('MAGIC_PLACE_TEST_SIZE', 384) == 384
        assert config.positive_int_env('MAGIC_PLACE_TEST_SIZE') is None

    def test_positive_value(self, monkeypatch):
        """Positive values override the default."""
        monkeypatch.setenv('MAGIC_PLACE_TEST_SIZE', '128')
        assert config.positive_int_env('MAGIC_PLACE_TEST_SIZE', 384) == 128

    def test_non_positive_ignored(self, monkeypatch):
        """Zero or negative widths fall back instead of yielding scale 0."""
        for value in ('0', '-5'):
            monkeypatch.setenv('MAGIC_PLACE_TEST_SIZE', value)
            assert config.positive_int_env('MAGIC_PLACE_TEST_SIZE', 384) == 384


class TestDefaults:
    """Tests for loaded settings."""

    def test_working_width_positive(self):
        """The working width is always usable for heatmap sizing."""
        assert config.MAX_HEATMAP_WIDTH > 0
        width, height, scale = heatmap_size(1000, 500)
        assert width == min(config.MAX_HEATMAP_WIDTH, 1000)
        assert scale > 0

    def test_cache_size_unbounded_or_positive(self):
        """Cache size is None (unbounded) or a positive limit."""
        assert config.CACHE_MAX_ENTRIES is None or config.CACHE_MAX_ENTRIES > 0
