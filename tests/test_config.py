import pytest

from olive_timeline.config import Settings, get_settings
from olive_timeline.core.models import Interpolation


class TestSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings == Settings()
        assert settings.undo_limit == 0
        assert settings.default_interpolation == Interpolation.LINEAR
        assert settings.log_level == "WARNING"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("OLIVE_TIMELINE_UNDO_LIMIT", "50")
        monkeypatch.setenv("OLIVE_TIMELINE_DEFAULT_INTERPOLATION", " Bezier ")
        monkeypatch.setenv("OLIVE_TIMELINE_LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.undo_limit == 50
        assert settings.default_interpolation == Interpolation.BEZIER
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["ten", "-1"])
    def test_bad_undo_limit(self, monkeypatch, raw):
        monkeypatch.setenv("OLIVE_TIMELINE_UNDO_LIMIT", raw)
        with pytest.raises(ValueError, match="UNDO_LIMIT"):
            Settings.from_env()

    def test_bad_interpolation(self, monkeypatch):
        monkeypatch.setenv("OLIVE_TIMELINE_DEFAULT_INTERPOLATION", "cubic")
        with pytest.raises(ValueError, match="linear, hold, bezier"):
            Settings.from_env()
