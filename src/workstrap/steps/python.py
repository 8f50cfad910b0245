"""Python toolchain steps: pyenv interpreter, virtualenv, packages."""

from __future__ import annotations

from pathlib import Path

from ..errors import PreconditionError
from ..util.shell import output_of, run_cmd, which
from .base import StepContext
from .system import brew_bin


def _pyenv() -> str:
    pyenv = which("pyenv")
    if pyenv is None:
        # A fresh shell may not have the Homebrew prefix on PATH yet.
        brew = brew_bin()
        candidate = Path(brew).parent / "pyenv" if brew else None
        if candidate is not None and candidate.is_file():
            return str(candidate)
        raise PreconditionError("pyenv not found; add it to the Brewfile")
    return pyenv


def pyenv_root(ctx: StepContext) -> Path:
    root = output_of([_pyenv(), "root"])
    return Path(root) if root else ctx.home / ".pyenv"


def python_installed(ctx: StepContext) -> bool:
    versions = output_of([_pyenv(), "versions", "--bare"]) or ""
    return ctx.config.require("version") in versions.split()


def install_python(ctx: StepContext) -> None:
    run_cmd([_pyenv(), "install", "--skip-existing", ctx.config.require("version")], capture=False)


def _venv_dir(ctx: StepContext) -> Path:
    return pyenv_root(ctx) / "versions" / ctx.settings.virtualenv


def virtualenv_exists(ctx: StepContext) -> bool:
    return (_venv_dir(ctx) / "bin" / "python").exists()


def create_virtualenv(ctx: StepContext) -> None:
    # Requires the pyenv-virtualenv plugin (Brewfile).
    run_cmd([_pyenv(), "virtualenv", ctx.config.require("version"), ctx.settings.virtualenv])


def _requirements(ctx: StepContext) -> Path:
    return ctx.path(ctx.settings.requirements_file)


def packages_installed(ctx: StepContext) -> bool:
    reqs = _requirements(ctx)
    if not reqs.is_file():
        return False
    pip = _venv_dir(ctx) / "bin" / "pip"
    res = run_cmd([str(pip), "install", "--dry-run", "-r", str(reqs)], timeout_s=300, check=False)
    if not res.ok:
        return False
    return "Would install" not in res.stdout


def install_packages(ctx: StepContext) -> None:
    reqs = _requirements(ctx)
    if not reqs.is_file():
        raise FileNotFoundError(f"Requirements file not found: {reqs}")
    pip = _venv_dir(ctx) / "bin" / "pip"
    run_cmd([str(pip), "install", "-r", str(reqs)], capture=False)
