from __future__ import annotations

"""Step registry.

CONTRACT
- Inputs: Step objects, in prerequisite order
- Outputs (required):
  - all(): the registered steps as a tuple, in registration order
- Invariants:
  - Names are unique; a rejected register() leaves the registry unchanged
  - all() is replayable (a fresh tuple each call, never a one-shot cursor)
  - Order is never changed after registration; prerequisites are documented
    on each Step but not verified here
- Failure:
  - DuplicateNameError on a repeated name
  - UnknownStepError when select() is given names that are not registered
"""

from typing import Iterable, Iterator

from .errors import DuplicateNameError, UnknownStepError
from .steps.base import Step


class StepRegistry:
    def __init__(self, steps: Iterable[Step] = ()) -> None:
        self._steps: list[Step] = []
        self._by_name: dict[str, Step] = {}
        for s in steps:
            self.register(s)

    def register(self, step: Step) -> Step:
        if step.name in self._by_name:
            raise DuplicateNameError(step.name)
        self._steps.append(step)
        self._by_name[step.name] = step
        return step

    def all(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    def names(self) -> list[str]:
        return [s.name for s in self._steps]

    def get(self, name: str) -> Step:
        return self._by_name[name]

    def select(
        self,
        only: Iterable[str] | None = None,
        skip: Iterable[str] | None = None,
    ) -> tuple[Step, ...]:
        only_set = set(only) if only else None
        skip_set = set(skip or ())
        unknown = sorted(((only_set or set()) | skip_set) - set(self._by_name))
        if unknown:
            raise UnknownStepError(unknown)
        return tuple(
            s
            for s in self._steps
            if (only_set is None or s.name in only_set) and s.name not in skip_set
        )

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.all())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def required_config(steps: Iterable[Step]) -> frozenset[str]:
    keys: set[str] = set()
    for s in steps:
        keys |= s.requires
    return frozenset(keys)
