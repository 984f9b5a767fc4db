"""Tests for terminal output helpers."""

import io

from hw2nixcfg.utils.terminal import RED, colorize, print_error, print_warning, use_color


class _Tty(io.StringIO):
    def isatty(self):
        return True


class TestColor:
    def test_colorize_disabled(self):
        assert colorize("error:", RED, False) == "error:"

    def test_colorize_enabled(self):
        assert colorize("error:", RED, True) == "\033[31merror:\033[0m"

    def test_not_a_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert not use_color(io.StringIO())

    def test_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert use_color(_Tty())

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert not use_color(_Tty())


class TestDiagnostics:
    def test_print_error(self):
        stream = io.StringIO()
        print_error("something broke", stream)
        assert stream.getvalue() == "error: something broke\n"

    def test_print_warning(self):
        stream = io.StringIO()
        print_warning("duplicate_host_id: already used", stream)
        assert stream.getvalue() == "warning: duplicate_host_id: already used\n"

    def test_error_prefix_colored_on_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        stream = _Tty()
        print_error("something broke", stream)
        assert stream.getvalue() == "\033[31merror:\033[0m something broke\n"

    def test_stream_without_isatty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert not use_color(object())
