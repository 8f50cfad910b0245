from __future__ import annotations

"""Step model.

CONTRACT
- Inputs: a name, a check predicate, an action, the configuration keys it reads
- Outputs:
  - Step (frozen), StepContext handed to check/action, StepResult per execution
- Invariants:
  - Step names match `[a-z0-9][a-z0-9_-]{0,47}`
  - requires is a subset of CONFIG_KEYS
  - check must be side-effect-free; action must be safe to re-run
- Failure:
  - Raises ValueError on an invalid name or unknown configuration key
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

import typer
from pydantic import BaseModel

from ..config import CONFIG_KEYS, CatalogueSettings, RunConfiguration
from ..util.http import GitHubClient
from ..util.paths import expand_home

if TYPE_CHECKING:
    from ..reporting import Reporter

_STEP_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,47}$")


def validate_step_name(name: str) -> str:
    if not _STEP_NAME_RE.match(name or ""):
        raise ValueError(f"Invalid step name: {name!r}")
    return name


class StepStatus(str, Enum):
    SATISFIED = "satisfied"
    APPLIED = "applied"
    FAILED = "failed"
    PENDING = "pending"


class StepResult(BaseModel):
    step: str
    status: StepStatus
    reason: str = ""
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is not StepStatus.FAILED


@dataclass
class StepContext:
    """Everything a step may read while checking or applying."""

    config: RunConfiguration
    settings: CatalogueSettings = field(default_factory=CatalogueSettings)
    home: Path = field(default_factory=Path.home)
    applications_dir: Path = Path("/Applications")
    interactive: bool = False
    reporter: Reporter | None = None
    github_factory: Callable[[str | None], GitHubClient] = GitHubClient
    pause_fn: Callable[[str], None] | None = None

    def path(self, p: str | Path) -> Path:
        return expand_home(p, self.home)

    def say(self, message: str) -> None:
        if self.reporter is not None:
            self.reporter.info(message)

    def github(self) -> GitHubClient:
        return self.github_factory(self.config.token)

    def pause(self, message: str = "Press any key to continue.") -> None:
        """Block until the user confirms. No-op when not attached to a terminal."""
        if not self.interactive:
            return
        if self.pause_fn is not None:
            self.pause_fn(message)
        else:
            typer.echo(message)
            typer.getchar()


@dataclass(frozen=True)
class Step:
    name: str
    check: Callable[[StepContext], bool]
    action: Callable[[StepContext], None]
    requires: frozenset[str] = frozenset()
    description: str = ""
    prerequisites: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_step_name(self.name)
        unknown = set(self.requires) - set(CONFIG_KEYS)
        if unknown:
            raise ValueError(f"Step {self.name} requires unknown configuration: {sorted(unknown)}")
        # Accept any iterable for convenience; store canonical types.
        object.__setattr__(self, "requires", frozenset(self.requires))
        object.__setattr__(self, "prerequisites", tuple(self.prerequisites))


def step(
    name: str,
    *,
    check: Callable[[StepContext], bool],
    action: Callable[[StepContext], None],
    requires: Iterable[str] = (),
    description: str = "",
    after: Iterable[str] = (),
) -> Step:
    """Shorthand used by the catalogue modules."""
    return Step(
        name=name,
        check=check,
        action=action,
        requires=frozenset(requires),
        description=description,
        prerequisites=tuple(after),
    )
