# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


class E2EError(Exception):
    """Base class for every error raised by the harness."""


@dataclass
class ConfigurationError(E2EError):
    """A flag or setting has a value we cannot use."""
    option: str
    value: object
    message: str

    def __str__(self) -> str:
        return f"invalid value {self.value!r} for {self.option}: {self.message}"


@dataclass
class MissingResourceVerb(E2EError):
    command: str

    def __str__(self) -> str:
        return f'please provide a valid resource for "{self.command}"'


@dataclass
class UnknownResourceVerb(E2EError):
    resource: str

    def __str__(self) -> str:
        return f'unknown resource type "{self.resource}"'


@dataclass
class StepExecutionError(E2EError):
    """
    A step failed while a job was running.

    Carries enough context to tell which step of which job broke
    without needing the full traceback.
    """
    job: str
    index: int
    step: str
    cause: BaseException

    def __str__(self) -> str:
        return f"[{self.job}] step #{self.index} '{self.step}' failed: {self.cause}"


@dataclass
class MissingKeyError(E2EError, KeyError):
    key: str
    available: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"key {self.key!r} has not been produced by any previous step "
            f"(available: {sorted(self.available)})"
        )


@dataclass
class DuplicateKeyError(E2EError):
    key: str
    step: str

    def __str__(self) -> str:
        return f"step '{self.step}' produced key {self.key!r} which already exists in the context"


@dataclass
class JobCancelledError(E2EError):
    job: str
    reason: str

    def __str__(self) -> str:
        return f"[{self.job}] cancelled: {self.reason}"


@dataclass
class JobSealedError(E2EError):
    job: str

    def __str__(self) -> str:
        return f"job '{self.job}' is already running or finished and can no longer be changed"


@dataclass
class JobAlreadyRunError(E2EError):
    job: str

    def __str__(self) -> str:
        return f"job '{self.job}' has already been run; build a new job instead"


@dataclass
class CommandFailed(E2EError):
    cmd: str
    exit_code: int
    stderr: str = ""

    def __str__(self) -> str:
        msg = f"command failed (exit={self.exit_code}): {self.cmd}"
        if self.stderr:
            msg += f"\n{self.stderr.strip()}"
        return msg
