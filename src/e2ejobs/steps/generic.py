# steps/generic.py
from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .. import settings
from ..context import ExecutionContext
from ..errors import CommandFailed


@dataclass
class LoadFlags:
    """Read image coordinates from the environment so later steps can use them."""
    name: str = "Load image flags"
    tag_env: str = settings.TAG_ENV
    image_namespace_env: str = settings.IMAGE_NAMESPACE_ENV
    image_registry_env: str = settings.IMAGE_REGISTRY_ENV

    def run(self, ctx: ExecutionContext) -> Dict[str, str]:
        tag = os.environ.get(self.tag_env, "")
        if not tag:
            raise ValueError(f"{self.tag_env} is not set; export the image tag under test")

        namespace = os.environ.get(self.image_namespace_env) or settings.DEFAULT_IMAGE_NAMESPACE
        registry = os.environ.get(self.image_registry_env) or settings.DEFAULT_IMAGE_REGISTRY

        ctx.log.info("image: %s/%s:%s", registry, namespace, tag)
        return {"tag": tag, "image_namespace": namespace, "image_registry": registry}


@dataclass
class CommandStep:
    """
    Run a command and optionally publish its stdout under `output_key`.

    `cmd` can be a string (run through the shell) or an argv list.
    """
    name: str
    cmd: str | List[str]
    cwd: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)
    output_key: Optional[str] = None
    timeout: float = settings.COMMAND_TIMEOUT

    def _display(self) -> str:
        return self.cmd if isinstance(self.cmd, str) else " ".join(self.cmd)

    def run(self, ctx: ExecutionContext) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.env)

        remaining = ctx.cancel.remaining()
        timeout = self.timeout if remaining is None else min(self.timeout, remaining)

        ctx.log.debug("$ %s", self._display())
        proc = subprocess.run(
            self.cmd,
            shell=isinstance(self.cmd, str),
            cwd=self.cwd,
            env=env,
            text=True,
            capture_output=True,
            timeout=timeout,
        )

        if proc.returncode != 0:
            raise CommandFailed(
                cmd=self._display(),
                exit_code=proc.returncode,
                stderr=proc.stderr[-4000:],
            )

        if self.output_key:
            return {self.output_key: proc.stdout.strip()}
        return {}
