# context.py
from __future__ import annotations

import threading
import time
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .errors import DuplicateKeyError, MissingKeyError
from .ui.logger import Logger

_MISSING = object()


class Cancellation:
    """
    Cooperative cancellation token.

    The runner checks it before each step; long-running steps are expected
    to poll `cancelled` (or `wait`) themselves.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._reason = ""
        self.deadline: Optional[float] = (
            time.monotonic() + timeout if timeout is not None else None
        )

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    @property
    def reason(self) -> str:
        return self._reason

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True if cancelled meanwhile."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(seconds)
        return self.cancelled


class ExecutionContext:
    """
    Run-scoped key/value store that carries step outputs forward.

    Only the runner writes to it (through `commit`), after a step has
    returned, so a key is never visible before its producer completed.
    """

    def __init__(
        self,
        job_name: str,
        *,
        log: Logger,
        cancel: Cancellation | None = None,
        initial: Mapping[str, Any] | None = None,
    ):
        self.job_name = job_name
        self.log = log
        self.cancel = cancel or Cancellation()
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = _MISSING) -> Any:
        try:
            return self._values[key]
        except KeyError:
            if default is not _MISSING:
                return default
            raise MissingKeyError(key, list(self._values)) from None

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[str]:
        return list(self._values)

    def snapshot(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._values))

    def commit(self, step: str, outputs: Mapping[str, Any] | None) -> List[str]:
        """Merge a finished step's outputs. All-or-nothing on duplicates."""
        if not outputs:
            return []
        for key in outputs:
            if key in self._values:
                raise DuplicateKeyError(key, step)
        self._values.update(outputs)
        return list(outputs)
