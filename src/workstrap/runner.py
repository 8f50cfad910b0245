from __future__ import annotations

"""Configuration resolution and fail-fast step execution.

CONTRACT
- Inputs: flag values, a prompt function, an ordered sequence of Steps
- Outputs (required):
  - resolve_configuration() -> RunConfiguration
  - run_steps() -> RunResult (status OK | ABORTED, one StepResult per step touched)
- Invariants:
  - Steps run strictly in the given order, one at a time
  - Per step: Pending -> Satisfied | Applying -> Applied | Failed
  - Failed is terminal for the whole run: later steps are never checked or applied
  - Dry runs call check only, never action
  - The prompt is never called when stdin is not a terminal
- Failure:
  - MissingConfigurationError when a required value is absent and cannot be prompted
  - Step errors are captured in RunResult.error (StepCheckError / StepActionError)
"""

import sys
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Mapping, Sequence

import typer
from loguru import logger

from .config import CONFIG_KEYS, RunConfiguration
from .errors import MissingConfigurationError, StepActionError, StepCheckError, WorkstrapError
from .registry import required_config
from .reporting import Reporter
from .steps.base import Step, StepContext, StepResult, StepStatus
from .util.redaction import Redactor

PromptFn = Callable[[str], str]

PROMPTS: dict[str, tuple[str, bool]] = {
    "hostname": ("Hostname", False),
    "version": ("Python version", False),
    "token": ("GitHub access token", True),
}


def terminal_prompt(key: str) -> str:
    label, secret = PROMPTS[key]
    return typer.prompt(label, hide_input=secret)


def stdin_is_interactive() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except ValueError:
        return False


def _clean(value: object) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def resolve_configuration(
    flags: Mapping[str, str | None],
    prompt: PromptFn | None = None,
    *,
    required: Iterable[str] = CONFIG_KEYS,
    interactive: bool | None = None,
) -> RunConfiguration:
    """Build the RunConfiguration from flag values, prompting for the rest.

    Flags win when present and non-empty. Missing keys listed in `required`
    are read through `prompt` (terminal_prompt by default), but only when
    attached to a terminal: a redirected stdin must fail loudly rather than
    silently produce empty values.
    """
    required_keys = [k for k in CONFIG_KEYS if k in set(required)]
    values: dict[str, str | None] = {k: _clean(flags.get(k)) for k in CONFIG_KEYS}

    missing = [k for k in required_keys if values[k] is None]
    if missing:
        if interactive is None:
            interactive = stdin_is_interactive()
        if not interactive:
            raise MissingConfigurationError(missing, "no terminal to prompt on; pass them as flags")
        ask = prompt or terminal_prompt
        for key in missing:
            answer = _clean(ask(key))
            if answer is None:
                raise MissingConfigurationError([key], "empty answer")
            values[key] = answer

    cfg = RunConfiguration(**values)
    logger.debug("Resolved configuration {}", cfg.redacted())
    return cfg


@dataclass(frozen=True)
class RunResult:
    status: str
    results: list[StepResult] = field(default_factory=list)
    failed_step: str | None = None
    error: WorkstrapError | None = None

    @property
    def ok(self) -> bool:
        return self.status == "OK"

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def run_steps(
    steps: Sequence[Step],
    config: RunConfiguration,
    *,
    context: StepContext | None = None,
    reporter: Reporter | None = None,
    dry_run: bool = False,
) -> RunResult:
    """Execute steps in order, halting on the first failure."""
    if context is None:
        ctx = StepContext(config=config, reporter=reporter)
    else:
        ctx = replace(context, config=config, reporter=reporter or context.reporter)
    out = ctx.reporter

    absent = [k for k in CONFIG_KEYS if k in required_config(steps) and not config.get(k)]
    if absent:
        raise MissingConfigurationError(absent)

    redactor = Redactor().with_secrets(config.token)
    results: list[StepResult] = []

    for step in steps:
        if out is not None:
            out.announce(step.name, step.description)
        start = time.monotonic()
        error: WorkstrapError | None = None
        status: StepStatus

        try:
            satisfied = bool(step.check(ctx))
        except Exception as e:
            satisfied = False
            error = StepCheckError(step.name, e)

        if error is None:
            if satisfied:
                status = StepStatus.SATISFIED
                logger.debug("Step {} already satisfied", step.name)
            elif dry_run:
                status = StepStatus.PENDING
                logger.debug("Step {} would apply", step.name)
            else:
                logger.info("Applying step {}", step.name)
                try:
                    step.action(ctx)
                    status = StepStatus.APPLIED
                except Exception as e:
                    error = StepActionError(step.name, e)

        elapsed = time.monotonic() - start
        if error is not None:
            reason = redactor.redact(str(error.cause) or type(error.cause).__name__)
            result = StepResult(step=step.name, status=StepStatus.FAILED, reason=reason, elapsed_s=elapsed)
            results.append(result)
            logger.error("Step {} failed: {}", step.name, reason)
            if out is not None:
                out.report(result)
            return RunResult(status="ABORTED", results=results, failed_step=step.name, error=error)

        result = StepResult(step=step.name, status=status, elapsed_s=elapsed)
        results.append(result)
        if out is not None:
            out.report(result)

    return RunResult(status="OK", results=results)


run = run_steps
