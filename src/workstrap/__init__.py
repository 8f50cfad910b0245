"""workstrap package.

Simple API for scripts that provision a machine without the CLI:

    import workstrap

    # Check everything, change nothing
    result = workstrap.provision(hostname="mbp", version="3.12.0", token="...", dry_run=True)

    # Apply two steps only
    result = workstrap.provision(only=["dock", "iterm2"])
"""

from pathlib import Path
from typing import Iterable, Optional

from .catalogue import build_registry
from .config import CatalogueSettings, RunConfiguration, load_settings
from .registry import StepRegistry, required_config
from .runner import RunResult, resolve_configuration, run_steps
from .steps.base import Step, StepContext, StepResult, StepStatus, step

__version__ = "0.3.0"


def provision(
    *,
    hostname: Optional[str] = None,
    version: Optional[str] = None,
    token: Optional[str] = None,
    settings: Optional[str | Path] = None,
    only: Optional[Iterable[str]] = None,
    skip: Optional[Iterable[str]] = None,
    dry_run: bool = False,
) -> RunResult:
    """Run the default catalogue. Never prompts.

    Args:
        hostname, version, token: run configuration values
        settings: Optional path to a settings.yaml
        only, skip: Optional step name filters
        dry_run: Only evaluate checks

    Returns:
        RunResult (status, per-step results, failing step and error if aborted)

    Raises:
        MissingConfigurationError if a selected step needs a value not given
    """
    steps = build_registry().select(only=only, skip=skip)
    config = resolve_configuration(
        {"hostname": hostname, "version": version, "token": token},
        required=required_config(steps),
        interactive=False,
    )
    ctx = StepContext(
        config=config,
        settings=load_settings(Path(settings) if settings else None),
    )
    return run_steps(steps, config, context=ctx, dry_run=dry_run)


__all__ = [
    "provision",
    "build_registry",
    "CatalogueSettings",
    "RunConfiguration",
    "RunResult",
    "Step",
    "StepContext",
    "StepRegistry",
    "StepResult",
    "StepStatus",
    "load_settings",
    "resolve_configuration",
    "run_steps",
    "step",
]
