import io
import re
from datetime import datetime

import pytest

from e2ejobs.errors import ConfigurationError
from e2ejobs.ui.logger import (
    BufferWriter,
    ColorMode,
    ColorWriter,
    Logger,
    LoggerConfig,
    MultiWriter,
    PlainWriter,
    RainbowWriter,
    Severity,
    Writer,
    configure_logger,
    enabled_severities,
    select_writer,
    style_for,
)

FIXED = datetime(2024, 5, 1, 12, 30, 45)
ALL = [s for s in Severity]


def emit_every_severity(log: Logger) -> None:
    log.always("msg-always")
    log.success("msg-success")
    log.deprecated("msg-deprecated")
    log.critical("msg-critical")
    log.warning("msg-warning")
    log.info("msg-info")
    log.debug("msg-debug")


def captured_labels(log: Logger) -> set:
    return set(re.findall(r"msg-(\w+)", log.captured()))


class FakeWriter(Writer):
    def __init__(self, stream=None):
        super().__init__(io.StringIO())


class TestVerbosity:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (0, {"always", "success", "deprecated"}),
            (1, {"always", "success", "deprecated", "critical"}),
            (2, {"always", "success", "deprecated", "critical", "warning"}),
            (3, {"always", "success", "deprecated", "critical", "warning", "info"}),
            (4, {"always", "success", "deprecated", "critical", "warning", "info", "debug"}),
            (9, {"always", "success", "deprecated", "critical", "warning", "info", "debug"}),
        ],
    )
    def test_levels_against_captured_buffer(self, level, expected):
        config = LoggerConfig(verbosity=level, color=ColorMode.PLAIN, dump_logs=True)
        log = Logger(config, stream=io.StringIO())
        emit_every_severity(log)
        assert captured_labels(log) == expected

    def test_tiers_are_inclusive(self):
        for level in range(0, 5):
            assert set(enabled_severities(level)) <= set(enabled_severities(level + 1))
        assert set(enabled_severities(100)) == set(ALL)

    def test_is_enabled_follows_the_threshold(self):
        log = Logger(LoggerConfig(verbosity=1, color=ColorMode.PLAIN), stream=io.StringIO())
        assert log.is_enabled(Severity.CRITICAL)
        assert log.is_enabled(Severity.DEPRECATED)
        assert not log.is_enabled(Severity.WARNING)
        assert not log.is_enabled(Severity.DEBUG)

    def test_negative_verbosity_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            LoggerConfig.from_flags(verbose=-1)
        assert exc_info.value.option == "--verbose"


class TestLineFormat:
    def test_plain_line(self):
        log = Logger(LoggerConfig(color=ColorMode.PLAIN), stream=io.StringIO(), clock=lambda: FIXED)
        assert log.line(Severity.SUCCESS, "cluster %s ready", "c1") == "2024-05-01 12:30:45 [✔]  cluster c1 ready\n"

    def test_existing_newline_is_kept(self):
        log = Logger(LoggerConfig(color=ColorMode.PLAIN), stream=io.StringIO(), clock=lambda: FIXED)
        assert log.line(Severity.INFO, "a\nb") == "2024-05-01 12:30:45 [ℹ]  a\nb"

    def test_percent_without_args_is_literal(self):
        log = Logger(LoggerConfig(color=ColorMode.PLAIN), stream=io.StringIO(), clock=lambda: FIXED)
        assert log.line(Severity.INFO, "100% done").endswith("100% done\n")

    @pytest.mark.parametrize(
        "severity,icon,color",
        [
            (Severity.ALWAYS, "✿", "green"),
            (Severity.CRITICAL, "✖", "red"),
            (Severity.INFO, "ℹ", "cyan"),
            (Severity.DEBUG, "▶", "green"),
            (Severity.SUCCESS, "✔", "cyan"),
            (Severity.WARNING, "!", "green"),
            (Severity.DEPRECATED, "ℹ", "cyan"),
        ],
    )
    def test_style_table(self, severity, icon, color):
        assert style_for(severity) == (icon, color)

    def test_unknown_severity_falls_back_to_info_style(self):
        assert style_for("something else") == ("ℹ", "cyan")

    def test_colorized_lines_are_wrapped(self):
        log = Logger(LoggerConfig(color=ColorMode.COLORIZED), stream=io.StringIO(), clock=lambda: FIXED)
        line = log.line(Severity.CRITICAL, "boom")
        assert line.startswith("\x1b[31m")
        assert line.endswith("\x1b[0m")
        assert "[✖]  boom" in line

    def test_plain_and_fabulous_lines_are_not_wrapped(self):
        for mode in (ColorMode.PLAIN, ColorMode.FABULOUS):
            log = Logger(LoggerConfig(color=mode), stream=io.StringIO(), clock=lambda: FIXED)
            assert "\x1b[" not in log.line(Severity.CRITICAL, "boom")


class TestWriterSelection:
    def test_color_flags(self):
        assert ColorMode.from_flag("true") is ColorMode.COLORIZED
        assert ColorMode.from_flag("false") is ColorMode.PLAIN
        assert ColorMode.from_flag("fabulous") is ColorMode.FABULOUS
        with pytest.raises(ConfigurationError):
            ColorMode.from_flag("rainbow")

    def test_default_writers_are_distinct(self):
        assert type(select_writer("false")) is PlainWriter
        assert type(select_writer("true")) is ColorWriter
        assert type(select_writer("fabulous")) is RainbowWriter

    def test_substituted_factories(self):
        made = []

        def factory(name):
            def _make(stream):
                made.append(name)
                return FakeWriter(stream)
            return _make

        factories = {
            ColorMode.PLAIN: factory("plain"),
            ColorMode.COLORIZED: factory("color"),
            ColorMode.FABULOUS: factory("lol"),
        }
        select_writer("fabulous", factories=factories)
        select_writer("true", factories=factories)
        select_writer("false", factories=factories)
        assert made == ["lol", "color", "plain"]

    def test_dump_adds_buffer_next_to_primary(self):
        stream = io.StringIO()
        log = configure_logger(LoggerConfig(color="fabulous", dump_logs=True), stream=stream)
        assert isinstance(log.primary, RainbowWriter)
        assert isinstance(log.writer, MultiWriter)
        assert isinstance(log.buffer, BufferWriter)

        log.always("hello")
        assert "hello" in log.captured()
        assert "\x1b[" in stream.getvalue()

    def test_no_buffer_without_dump(self):
        log = configure_logger(LoggerConfig(color="false"), stream=io.StringIO())
        assert log.buffer is None
        assert log.writer is log.primary
        assert log.captured() == ""


class TestWriters:
    def test_rainbow_paints_each_visible_character(self):
        w = RainbowWriter(io.StringIO(), spread=1)
        painted = w.paint("ab c")
        assert painted.count("\x1b[") == 3 * 2  # color + reset per char
        assert " " in painted

    def test_colorized_buffer_matches_terminal(self):
        stream = io.StringIO()
        log = Logger(LoggerConfig(color=ColorMode.COLORIZED, dump_logs=True), stream=stream)
        assert isinstance(log.primary, ColorWriter)
        log.critical("boom")
        assert stream.getvalue() == log.captured()
        assert stream.getvalue().startswith("\x1b[31m")

    def test_buffer_clear(self):
        b = BufferWriter()
        b.write("x")
        b.clear()
        assert b.getvalue() == ""

    def test_dump_writes_file(self, tmp_path):
        log = Logger(LoggerConfig(color=ColorMode.PLAIN, dump_logs=True), stream=io.StringIO())
        log.critical("went wrong")
        path = log.dump(tmp_path / "nested" / "out.log")
        assert "went wrong" in path.read_text(encoding="utf-8")
