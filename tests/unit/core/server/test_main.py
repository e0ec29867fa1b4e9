"""Tests for the server entry point's transport and bind checks."""

from __future__ import annotations

import pytest

from amped.core.config.settings import Settings
from amped.core.server.main import _check_bind, _is_loopback_host


class TestIsLoopbackHost:
    @pytest.mark.parametrize("host", ["127.0.0.1", "::1", "localhost", "127.0.0.2"])
    def test_loopback(self, host):
        assert _is_loopback_host(host)

    @pytest.mark.parametrize("host", ["0.0.0.0", "192.168.1.10", "example.com"])
    def test_not_loopback(self, host):
        assert not _is_loopback_host(host)


class TestCheckBind:
    def test_loopback_http_allowed(self):
        _check_bind(Settings(amped_host="127.0.0.1"))

    def test_public_http_refused(self):
        with pytest.raises(RuntimeError, match="AMPED_ALLOW_INSECURE_BIND"):
            _check_bind(Settings(amped_host="0.0.0.0"))

    def test_public_http_allowed_with_override(self):
        _check_bind(Settings(amped_host="0.0.0.0", amped_allow_insecure_bind=True))

    def test_stdio_skips_bind_check(self):
        _check_bind(Settings(amped_transport="stdio", amped_host="0.0.0.0"))

    def test_unknown_transport(self):
        with pytest.raises(ValueError, match="AMPED_TRANSPORT"):
            _check_bind(Settings(amped_transport="sse"))
