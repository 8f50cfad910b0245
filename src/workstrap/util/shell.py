from __future__ import annotations

"""Shell command execution.

CONTRACT
- Inputs: Command (str -> shell=True, list[str] -> shell=False), cwd, env, timeout
- Outputs (required):
  - CmdResult(cmd, returncode, stdout, stderr, elapsed_s)
- Invariants:
  - Every command is logged (redacted) before it runs, with its exit code after
  - capture=False lets the command talk to the controlling terminal directly
  - Timeout maps to returncode 124, a missing binary to 127
- Failure:
  - Raises CommandError on non-zero exit when check=True (the default)
"""

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from ..errors import CommandError
from .redaction import DEFAULT_REDACTOR, Redactor


def which(cmd: str) -> str | None:
    for p in os.environ.get("PATH", "").split(os.pathsep):
        if not p:
            continue
        candidate = Path(p) / cmd
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


@dataclass(frozen=True)
class CmdResult:
    cmd: str
    returncode: int
    stdout: str
    stderr: str
    elapsed_s: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_cmd(cmd: str | list[str]) -> str:
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(str(a)) for a in cmd)


def run_cmd(
    cmd: str | list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout_s: float | None = None,
    *,
    check: bool = True,
    capture: bool = True,
    input_text: str | None = None,
    redactor: Redactor = DEFAULT_REDACTOR,
) -> CmdResult:
    """Run a command and return its result.

    - str runs through the shell, list[str] runs directly.
    - capture=True collects stdout/stderr as text; capture=False inherits the
      terminal (installers that prompt, progress bars).
    - check=True raises CommandError on a non-zero exit.
    """
    shown = redactor.redact(format_cmd(cmd))
    logger.debug("CMD {}", shown)

    use_shell = isinstance(cmd, str)
    pipe = subprocess.PIPE if capture else None

    start_t = time.time()
    try:
        p = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            shell=use_shell,
            env=(os.environ | env) if env else None,
            input=input_text,
            stdout=pipe,
            stderr=pipe,
            timeout=timeout_s,
            text=True,
        )
        rc = p.returncode
        out = p.stdout or ""
        err = p.stderr or ""
    except subprocess.TimeoutExpired:
        rc = 124
        out = ""
        err = f"Timeout expired after {timeout_s}s."
    except FileNotFoundError as e:
        rc = 127
        out = ""
        err = f"Command not found: {e.filename or shown}"
    elapsed = time.time() - start_t

    logger.debug("EXIT {} ({:.2f}s) {}", rc, elapsed, shown)
    if err and rc != 0:
        logger.debug("STDERR {}", redactor.redact(err.strip()))

    if check and rc != 0:
        raise CommandError(shown, rc, redactor.redact(err))

    return CmdResult(cmd=shown, returncode=rc, stdout=out, stderr=err, elapsed_s=elapsed)


def succeeds(cmd: str | list[str], cwd: Path | None = None, timeout_s: float | None = 30) -> bool:
    """True when the command exits 0. Never raises for a failing command."""
    return run_cmd(cmd, cwd=cwd, timeout_s=timeout_s, check=False).ok


def output_of(cmd: str | list[str], cwd: Path | None = None, timeout_s: float | None = 30) -> str | None:
    """Stripped stdout of a successful command, None when it fails."""
    res = run_cmd(cmd, cwd=cwd, timeout_s=timeout_s, check=False)
    if not res.ok:
        return None
    return res.stdout.strip()
