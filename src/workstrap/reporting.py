from __future__ import annotations

"""Console reporting.

CONTRACT
- Inputs: ColorConfig (resolved once at startup), an output stream
- Outputs:
  - Banners, step announcements, per-step results, run summary, tables
- Invariants:
  - Pure presentation; never touches system state
  - Color only when the stream is a terminal and NO_COLOR is unset/empty;
    otherwise no escape sequence is ever written
- Failure:
  - None expected (write errors propagate from the stream)
"""

import os
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping, TextIO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .steps.base import Step, StepResult, StepStatus

if TYPE_CHECKING:
    from .runner import RunResult


@dataclass(frozen=True)
class ColorConfig:
    enabled: bool

    @classmethod
    def detect(
        cls,
        environ: Mapping[str, str] | None = None,
        stream: TextIO | None = None,
        *,
        force_disable: bool = False,
    ) -> ColorConfig:
        env = os.environ if environ is None else environ
        out = sys.stdout if stream is None else stream
        if force_disable or env.get("NO_COLOR", ""):
            return cls(enabled=False)
        isatty = getattr(out, "isatty", None)
        try:
            tty = bool(isatty and isatty())
        except ValueError:
            # Closed stream.
            tty = False
        return cls(enabled=tty)


_STATUS_STYLE = {
    StepStatus.SATISFIED: ("already done", "green"),
    StepStatus.APPLIED: ("applied", "bold green"),
    StepStatus.PENDING: ("would apply", "yellow"),
    StepStatus.FAILED: ("FAILED", "bold red"),
}


class Reporter:
    def __init__(self, color: ColorConfig, stream: TextIO | None = None) -> None:
        self.color = color
        self.console = Console(
            file=stream if stream is not None else sys.stdout,
            color_system="standard" if color.enabled else None,
            force_terminal=color.enabled,
            no_color=not color.enabled,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    def _print(self, *parts: tuple[str, str] | str) -> None:
        self.console.print(Text.assemble(*parts))

    def banner(self, title: str) -> None:
        self._print(("==> ", "bold blue"), (title, "bold"))

    def announce(self, step_name: str, description: str = "") -> None:
        if description:
            self._print(("--> ", "blue"), (step_name, "bold white"), f"  {description}")
        else:
            self._print(("--> ", "blue"), (step_name, "bold white"))

    def report(self, result: StepResult) -> None:
        label, style = _STATUS_STYLE[result.status]
        parts: list[tuple[str, str] | str] = ["    ", (label, style)]
        if result.status is StepStatus.APPLIED:
            parts.append(f" ({result.elapsed_s:.1f}s)")
        if result.reason:
            parts.append(f": {result.reason}")
        self._print(*parts)

    def info(self, message: str) -> None:
        self._print("    ", message)

    def warn(self, message: str) -> None:
        self._print(("warning: ", "yellow"), message)

    def error(self, message: str) -> None:
        self._print(("error: ", "bold red"), message)

    def success(self, message: str) -> None:
        self._print((message, "green"))

    def summary(self, result: RunResult) -> None:
        counts: dict[StepStatus, int] = {}
        for r in result.results:
            counts[r.status] = counts.get(r.status, 0) + 1
        tally = ", ".join(
            f"{counts[s]} {_STATUS_STYLE[s][0]}" for s in StepStatus if counts.get(s)
        ) or "no steps"
        if result.ok:
            self._print(("Done", "bold green"), f": {tally}")
        else:
            self._print(("Aborted", "bold red"), f" at step '{result.failed_step}': {tally}")

    def step_table(self, steps: Iterable[Step]) -> None:
        table = Table(title="workstrap steps")
        table.add_column("#", justify="right")
        table.add_column("Step")
        table.add_column("Needs")
        table.add_column("After")
        table.add_column("Description")
        for i, s in enumerate(steps, start=1):
            table.add_row(
                str(i),
                s.name,
                ", ".join(sorted(s.requires)) or "-",
                ", ".join(s.prerequisites) or "-",
                s.description,
            )
        self.console.print(table)

    def preview_table(self, results: Iterable[StepResult]) -> None:
        table = Table(title="workstrap dry run")
        table.add_column("Step")
        table.add_column("Status")
        for r in results:
            label, style = _STATUS_STYLE[r.status]
            table.add_row(r.step, Text(label, style=style))
        self.console.print(table)
