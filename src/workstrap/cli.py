"""CLI entrypoint.

    workstrap --hostname HOST --python-version 3.12.0 --github-token TOKEN

Utilities:
- workstrap --list       show the ordered catalogue
- workstrap --dry-run    check every step, apply nothing

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit code 0 on success, --help, --list and --version
  - Exit code 1 on unknown flags, failed preconditions, missing configuration
    when non-interactive, invalid settings and any failing step
  - Exit code 130 when interrupted
- Invariants:
  - --help / --list never run a check or an action and never prompt
  - Missing values are prompted for only when stdin is a terminal
- Failure:
  - Every WorkstrapError is printed (token redacted) and mapped to its exit code
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger
from typer._click.exceptions import NoSuchOption, UsageError

from .catalogue import build_registry
from .config import DEFAULT_SETTINGS_PATH, load_settings
from .doctor import doctor_report
from .errors import PreconditionError, UnknownFlagError, WorkstrapError
from .registry import required_config
from .reporting import ColorConfig, Reporter
from .runner import resolve_configuration, run_steps, stdin_is_interactive
from .steps.base import StepContext
from .util.redaction import Redactor

PROG_NAME = "workstrap"

app = typer.Typer(
    add_completion=False,
    help="Bootstrap a macOS workstation with idempotent, fail-fast steps.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool):
    if value:
        from . import __version__

        typer.echo(f"{PROG_NAME} version: {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, log_file: Path | None, colorize: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        colorize=colorize,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> {message}",
    )
    if log_file is not None:
        logger.add(log_file, level="DEBUG", encoding="utf-8")


def _settings_path(explicit: Path | None) -> Path | None:
    if explicit is not None:
        return explicit
    default = DEFAULT_SETTINGS_PATH.expanduser()
    return default if default.is_file() else None


_HOSTNAME_OPTION = typer.Option(None, "--hostname", help="Machine HostName to set.")
_VERSION_OPTION = typer.Option(None, "--python-version", help="Python version to install with pyenv.")
_TOKEN_OPTION = typer.Option(
    None,
    "--github-token",
    envvar="WORKSTRAP_GITHUB_TOKEN",
    show_default=False,
    help="GitHub access token (SSH key upload, repository listing).",
)
_SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    help=f"Catalogue settings YAML (default: {DEFAULT_SETTINGS_PATH} if present).",
)
_ONLY_OPTION = typer.Option(None, "--only", help="Run only this step (repeatable).")
_SKIP_OPTION = typer.Option(None, "--skip", help="Skip this step (repeatable).")


@app.command()
def provision(
    hostname: str | None = _HOSTNAME_OPTION,
    python_version: str | None = _VERSION_OPTION,
    github_token: str | None = _TOKEN_OPTION,
    settings: Path | None = _SETTINGS_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Check every step, apply nothing."),
    list_steps: bool = typer.Option(False, "--list", help="List the steps in order and exit."),
    only: list[str] | None = _ONLY_OPTION,
    skip: list[str] | None = _SKIP_OPTION,
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
    verbose: bool = typer.Option(False, "--verbose", help="Log every command."),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write a debug log here."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
) -> None:
    """Provision this machine. Every step is skipped when already satisfied."""
    _configure_logging(
        verbose, log_file, ColorConfig.detect(stream=sys.stderr, force_disable=no_color).enabled
    )
    reporter = Reporter(ColorConfig.detect(force_disable=no_color))
    redactor = Redactor().with_secrets(github_token)

    try:
        steps = build_registry().select(only=only or None, skip=skip or None)
        if list_steps:
            reporter.step_table(steps)
            return

        report = doctor_report()
        if not report.ok:
            raise PreconditionError("; ".join(i.details for i in report.failures()))

        catalogue_settings = load_settings(_settings_path(settings))
        interactive = stdin_is_interactive()
        config = resolve_configuration(
            {"hostname": hostname, "version": python_version, "token": github_token},
            required=required_config(steps),
            interactive=interactive,
        )
        ctx = StepContext(
            config=config,
            settings=catalogue_settings,
            interactive=interactive,
            reporter=reporter,
        )

        reporter.banner("Dry run" if dry_run else "Provisioning")
        result = run_steps(steps, config, context=ctx, dry_run=dry_run)
    except WorkstrapError as e:
        reporter.error(redactor.redact(str(e)))
        raise typer.Exit(code=e.exit_code)

    if dry_run:
        reporter.preview_table(result.results)
    reporter.summary(result)
    if result.error is not None:
        reporter.error(redactor.redact(str(result.error)))
    raise typer.Exit(code=result.exit_code)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit code.

    Typer reports usage errors with exit code 2; workstrap reports them with
    exit code 1 (UnknownFlagError for unknown flags). Ctrl-C exits 130.
    """
    console_err = Reporter(ColorConfig.detect(stream=sys.stderr), sys.stderr)
    try:
        rv = app(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except NoSuchOption as e:
        usage = e.ctx.get_usage() if e.ctx else f"Usage: {PROG_NAME} [OPTIONS]"
        err = UnknownFlagError(e.option_name, usage)
        console_err.console.print(usage, markup=False)
        console_err.error(f"{err} (try '{PROG_NAME} --help')")
        return err.exit_code
    except UsageError as e:
        usage = e.ctx.get_usage() if e.ctx else f"Usage: {PROG_NAME} [OPTIONS]"
        console_err.console.print(usage, markup=False)
        console_err.error(e.format_message())
        return 1
    except typer.Abort:
        console_err.error("Interrupted.")
        return 130
    return rv if isinstance(rv, int) else 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
