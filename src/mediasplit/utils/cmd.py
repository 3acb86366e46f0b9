"""Subprocess helpers built on ``sh``.

ffmpeg is chatty on stderr and reports the actual problem on its last lines,
so failures keep the full stderr and expose a short tail for messages::

    try:
        run(["ffmpeg", "-i", "in.mp3", "out.m4a"], timeout=600)
    except CmdError as e:
        print(e.exit_code, e.stderr_tail())
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import sh

logger = logging.getLogger(__name__)

# Pseudo exit codes for processes that never produced one
SPAWN_FAILED = -1
TIMED_OUT = -2


def format_argv(argv: Sequence[str | Path]) -> str:
    """Render argv as a copy-pasteable shell command."""
    return shlex.join(str(a) for a in argv)


def _text(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


@dataclass
class CmdResult:
    """Captured output of a finished command."""

    argv: tuple[str, ...]
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CmdError(Exception):
    """A command exited badly, timed out, or could not be started.

    ``exit_code`` is the process status, or :data:`SPAWN_FAILED` /
    :data:`TIMED_OUT` when there is none.
    """

    def __init__(
        self,
        *,
        argv: Sequence[str | Path],
        exit_code: int,
        stdout: str | bytes | None = "",
        stderr: str | bytes | None = "",
    ) -> None:
        self.argv = tuple(str(a) for a in argv)
        self.exit_code = exit_code
        self.stdout = _text(stdout)
        self.stderr = _text(stderr)

        if exit_code == SPAWN_FAILED:
            summary = f"Could not start {self.argv[0] if self.argv else 'command'}"
        elif exit_code == TIMED_OUT:
            summary = "Command timed out"
        else:
            summary = f"Command failed with exit code {exit_code}"
        detail = self.stderr_tail()
        super().__init__(f"{summary}: {detail}" if detail else summary)

    @property
    def timed_out(self) -> bool:
        return self.exit_code == TIMED_OUT

    def stderr_tail(self, lines: int = 3) -> str:
        """Last non-blank stderr lines, joined with ``" | "``."""
        kept = [line.strip() for line in self.stderr.splitlines() if line.strip()]
        return " | ".join(kept[-lines:])


def run(
    argv: Sequence[str | Path],
    *,
    timeout: float | None = None,
    ok_codes: Iterable[int] = (0,),
    cwd: Path | None = None,
) -> CmdResult:
    """Run ``argv`` to completion and capture its output.

    Raises:
        ValueError: ``argv`` is empty
        CmdError: Exit code outside ``ok_codes``, timeout, or spawn failure
    """
    if not argv:
        raise ValueError("argv cannot be empty")
    args = [str(a) for a in argv]

    options: dict[str, Any] = {"_ok_code": list(ok_codes), "_return_cmd": True}
    if timeout is not None:
        options["_timeout"] = timeout
    if cwd is not None:
        options["_cwd"] = str(cwd)

    logger.debug("Running: %s", format_argv(args))
    try:
        finished = sh.Command(args[0])(*args[1:], **options)
    except sh.ErrorReturnCode as e:
        raise CmdError(argv=args, exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr) from e
    except sh.TimeoutException as e:
        raise CmdError(
            argv=args, exit_code=TIMED_OUT, stderr=f"timed out after {timeout:g}s"
        ) from e
    except (sh.CommandNotFound, OSError) as e:
        raise CmdError(argv=args, exit_code=SPAWN_FAILED, stderr=str(e)) from e

    return CmdResult(
        argv=tuple(args),
        stdout=_text(getattr(finished, "stdout", "")),
        stderr=_text(getattr(finished, "stderr", "")),
        exit_code=getattr(finished, "exit_code", 0),
    )
