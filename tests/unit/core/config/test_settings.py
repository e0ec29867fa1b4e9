"""Tests for environment-driven settings."""

from __future__ import annotations

from amped.core.config.settings import get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AMPED_HOST", raising=False)
        settings = get_settings()
        assert settings.amped_host == "127.0.0.1"
        assert settings.amped_allow_insecure_bind is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("AMPED_PORT", "9100")
        monkeypatch.setenv("BEHAVIOR_DECAY_RATE", "0.05")
        monkeypatch.setenv("PERSIST_PROJECTIONS", "true")
        settings = get_settings()
        assert settings.amped_port == 9100
        assert settings.behavior_decay_rate == 0.05
        assert settings.persist_projections is True

    def test_hermetic_env_disables_persistence(self):
        assert get_settings().persist_projections is False
