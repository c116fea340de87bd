import io

import pytest

from e2ejobs.ui.logger import ColorMode, Logger, LoggerConfig


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(stream: io.StringIO) -> Logger:
    return Logger(LoggerConfig(verbosity=4, color=ColorMode.PLAIN), stream=stream)


@pytest.fixture
def dumping_logger(stream: io.StringIO, tmp_path) -> Logger:
    config = LoggerConfig(
        verbosity=4,
        color=ColorMode.PLAIN,
        dump_logs=True,
        dump_dir=str(tmp_path / "dumps"),
    )
    return Logger(config, stream=stream)
