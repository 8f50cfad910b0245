from __future__ import annotations

"""Error taxonomy.

CONTRACT
- Inputs: step names, missing keys, underlying exceptions
- Outputs:
  - Exception instances with a human message and an exit code
- Invariants:
  - Every error is fatal to the run (no retries)
  - exit_code is 1 for every error raised by workstrap itself
- Failure:
  - None (pure data)
"""

from typing import Iterable, Sequence


class WorkstrapError(Exception):
    """Base class for every error workstrap reports to the user."""

    exit_code: int = 1


class UnknownFlagError(WorkstrapError):
    def __init__(self, flag: str, usage: str = "") -> None:
        self.flag = flag
        self.usage = usage
        super().__init__(f"Unknown flag: {flag}")


class MissingConfigurationError(WorkstrapError):
    def __init__(self, keys: Iterable[str], reason: str = "") -> None:
        self.keys = tuple(keys)
        msg = "Missing required configuration: " + ", ".join(self.keys)
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class DuplicateNameError(WorkstrapError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Step already registered: {name}")


class UnknownStepError(WorkstrapError):
    def __init__(self, names: Sequence[str]) -> None:
        self.names = tuple(names)
        super().__init__("Unknown step(s): " + ", ".join(self.names))


class SettingsError(WorkstrapError):
    pass


class PreconditionError(WorkstrapError):
    pass


class CommandError(WorkstrapError):
    """An external command exited non-zero."""

    def __init__(self, cmd: str, returncode: int, stderr: str = "") -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {cmd}"
        tail = stderr.strip().splitlines()[-5:]
        if tail:
            msg += "\n" + "\n".join(tail)
        super().__init__(msg)


class _StepError(WorkstrapError):
    phase = "step"

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"{self.phase} of step '{step}' failed: {detail}")


class StepCheckError(_StepError):
    phase = "Check"


class StepActionError(_StepError):
    phase = "Action"


class HttpError(WorkstrapError):
    """An HTTP request (download or GitHub API call) failed."""
