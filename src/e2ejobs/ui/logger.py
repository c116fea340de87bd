"""Leveled, colorized diagnostics logger used by jobs and steps."""

from __future__ import annotations

import enum
import io
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO

from pydantic import BaseModel, Field, ValidationError, field_validator
from termcolor import colored

from ..errors import ConfigurationError

TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"
MAX_VERBOSITY = 4
DEFAULT_VERBOSITY = 3


class Severity(enum.Enum):
    """Each severity carries the verbosity tier at which it starts showing."""

    ALWAYS = ("always", 0)
    SUCCESS = ("success", 0)
    DEPRECATED = ("deprecated", 0)
    CRITICAL = ("critical", 1)
    WARNING = ("warning", 2)
    INFO = ("info", 3)
    DEBUG = ("debug", 4)

    def __init__(self, label: str, tier: int):
        self.label = label
        self.tier = tier


# severity -> (icon, termcolor color)
STYLES: Dict[Severity, tuple[str, str]] = {
    Severity.ALWAYS: ("✿", "green"),
    Severity.CRITICAL: ("✖", "red"),
    Severity.INFO: ("ℹ", "cyan"),
    Severity.DEBUG: ("▶", "green"),
    Severity.SUCCESS: ("✔", "cyan"),
    Severity.WARNING: ("!", "green"),
}
DEFAULT_STYLE = ("ℹ", "cyan")


def style_for(severity: object) -> tuple[str, str]:
    return STYLES.get(severity, DEFAULT_STYLE)  # type: ignore[arg-type]


def enabled_severities(verbosity: int) -> List[Severity]:
    """Severities emitted at a verbosity level; anything above the max shows everything."""
    threshold = min(verbosity, MAX_VERBOSITY)
    return [s for s in Severity if s.tier <= threshold]


class ColorMode(str, enum.Enum):
    PLAIN = "plain"
    COLORIZED = "colorized"
    FABULOUS = "fabulous"

    @classmethod
    def from_flag(cls, value: "str | ColorMode") -> "ColorMode":
        if isinstance(value, ColorMode):
            return value
        v = str(value).strip().lower()
        aliases = {
            "true": cls.COLORIZED,
            "false": cls.PLAIN,
            "fabulous": cls.FABULOUS,
            "plain": cls.PLAIN,
            "colorized": cls.COLORIZED,
        }
        if v not in aliases:
            raise ConfigurationError(
                "--color", value, "valid options are true, false, fabulous"
            )
        return aliases[v]


class LoggerConfig(BaseModel):
    """Process-wide logger settings, built once from CLI flags or by tests."""

    verbosity: int = Field(default=DEFAULT_VERBOSITY, ge=0)
    color: ColorMode = ColorMode.COLORIZED
    dump_logs: bool = False
    dump_dir: str = ".e2ejobs/logs"

    @field_validator("color", mode="before")
    @classmethod
    def parse_color(cls, v):
        return ColorMode.from_flag(v)

    @classmethod
    def from_flags(
        cls,
        verbose: int = DEFAULT_VERBOSITY,
        color: str = "true",
        dump_logs: bool = False,
        dump_dir: str | None = None,
    ) -> "LoggerConfig":
        # flag parsing errors should read like flag errors, not pydantic dumps
        mode = ColorMode.from_flag(color)
        data = {"verbosity": verbose, "color": mode, "dump_logs": dump_logs}
        if dump_dir:
            data["dump_dir"] = dump_dir
        try:
            return cls(**data)
        except ValidationError as e:
            err = e.errors()[0]
            field = str(err["loc"][0]) if err.get("loc") else "config"
            option = {"verbosity": "--verbose", "dump_dir": "--dump-dir"}.get(field, f"--{field}")
            raise ConfigurationError(option, err.get("input"), err["msg"]) from e


# ----------------------------------------------------------------------
# Writers
# ----------------------------------------------------------------------

class Writer:
    """Thread-safe line sink. Subclasses implement `_write`."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        # resolved late so redirected stdout (click, pytest) is honored
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str) -> int:
        with self._lock:
            return self._write(text)

    def _write(self, text: str) -> int:
        n = self.stream.write(text)
        self.stream.flush()
        return n if n is not None else len(text)


class PlainWriter(Writer):
    pass


class ColorWriter(Writer):
    """
    Stdout writer for colorized mode.

    Writes as-is: `Logger.line` already wrapped the text in the severity
    color, so the capture buffer holds the same bytes as the terminal.
    """


RAINBOW = ("red", "yellow", "green", "cyan", "blue", "magenta")


class RainbowWriter(Writer):
    """Paints every character, shifting the palette a little on each line."""

    def __init__(self, stream: TextIO | None = None, spread: int = 3):
        super().__init__(stream)
        self.spread = max(1, spread)
        self._offset = 0

    def paint(self, text: str) -> str:
        out = []
        for i, ch in enumerate(text):
            if ch.isspace():
                out.append(ch)
                continue
            color = RAINBOW[((self._offset + i) // self.spread) % len(RAINBOW)]
            out.append(colored(ch, color, force_color=True))
        return "".join(out)

    def _write(self, text: str) -> int:
        painted = self.paint(text)
        self._offset += 1
        self.stream.write(painted)
        self.stream.flush()
        return len(text)


class BufferWriter(Writer):
    """Keeps everything in memory so it can be dumped after a failure."""

    def __init__(self):
        super().__init__(io.StringIO())

    def _write(self, text: str) -> int:
        return self.stream.write(text)

    def getvalue(self) -> str:
        with self._lock:
            return self.stream.getvalue()

    def clear(self) -> None:
        with self._lock:
            self._stream = io.StringIO()


class MultiWriter(Writer):
    def __init__(self, *writers: Writer):
        super().__init__()
        self.writers = list(writers)

    def _write(self, text: str) -> int:
        for w in self.writers:
            w.write(text)
        return len(text)


WriterFactory = Callable[[Optional[TextIO]], Writer]

DEFAULT_WRITERS: Dict[ColorMode, WriterFactory] = {
    ColorMode.PLAIN: PlainWriter,
    ColorMode.COLORIZED: ColorWriter,
    ColorMode.FABULOUS: RainbowWriter,
}


def select_writer(
    color: ColorMode | str,
    stream: TextIO | None = None,
    factories: Dict[ColorMode, WriterFactory] | None = None,
) -> Writer:
    """Pick exactly one primary writer for the color mode."""
    mode = ColorMode.from_flag(color)
    table = dict(DEFAULT_WRITERS)
    if factories:
        table.update(factories)
    return table[mode](stream)


# ----------------------------------------------------------------------
# Logger
# ----------------------------------------------------------------------

class Logger:
    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        writer: Writer | None = None,
        stream: TextIO | None = None,
        factories: Dict[ColorMode, WriterFactory] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or LoggerConfig()
        self.enabled = frozenset(enabled_severities(self.config.verbosity))
        self.primary = writer or select_writer(self.config.color, stream, factories)
        self.buffer: Optional[BufferWriter] = BufferWriter() if self.config.dump_logs else None
        self.writer: Writer = (
            MultiWriter(self.primary, self.buffer) if self.buffer is not None else self.primary
        )
        self._clock = clock

    # ---- formatting ----

    def line(self, severity: Severity, fmt: str, *args: object) -> str:
        if "\n" not in fmt:
            fmt = fmt + "\n"
        msg = fmt % args if args else fmt
        icon, color = style_for(severity)
        out = f"{self._clock().strftime(TIME_LAYOUT)} [{icon}]  {msg}"
        if self.config.color is ColorMode.COLORIZED:
            out = colored(out, color, force_color=True)
        return out

    def is_enabled(self, severity: Severity) -> bool:
        return severity in self.enabled

    def log(self, severity: Severity, fmt: str, *args: object) -> None:
        if not self.is_enabled(severity):
            return
        self.writer.write(self.line(severity, fmt, *args))

    def always(self, fmt: str, *args: object) -> None:
        self.log(Severity.ALWAYS, fmt, *args)

    def success(self, fmt: str, *args: object) -> None:
        self.log(Severity.SUCCESS, fmt, *args)

    def deprecated(self, fmt: str, *args: object) -> None:
        self.log(Severity.DEPRECATED, fmt, *args)

    def critical(self, fmt: str, *args: object) -> None:
        self.log(Severity.CRITICAL, fmt, *args)

    def warning(self, fmt: str, *args: object) -> None:
        self.log(Severity.WARNING, fmt, *args)

    def info(self, fmt: str, *args: object) -> None:
        self.log(Severity.INFO, fmt, *args)

    def debug(self, fmt: str, *args: object) -> None:
        self.log(Severity.DEBUG, fmt, *args)

    # ---- capture ----

    def captured(self) -> str:
        return self.buffer.getvalue() if self.buffer is not None else ""

    def dump(self, path: str | Path) -> Path:
        """Write the captured buffer to `path` (parents created)."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.captured(), encoding="utf-8")
        return p


def configure_logger(
    config: LoggerConfig,
    stream: TextIO | None = None,
    factories: Dict[ColorMode, WriterFactory] | None = None,
) -> Logger:
    return Logger(config, stream=stream, factories=factories)


def null_logger() -> Logger:
    """Logger that drops everything; the default for library use."""
    return Logger(LoggerConfig(color=ColorMode.PLAIN), writer=_NullWriter())


class _NullWriter(Writer):
    def _write(self, text: str) -> int:
        return len(text)

