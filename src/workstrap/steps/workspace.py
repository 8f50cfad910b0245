"""Workspace steps: personal repositories, their install scripts, the Brewfile.

CONTRACT
- Inputs: StepContext (token, workspace path, Brewfile, install_scripts)
- Outputs (required):
  - <workspace>/<repo> clone for every repository owned by the GitHub user
  - Each install script run once per repository HEAD (stamp under ~/.local/state)
  - Every Brewfile dependency installed (and nothing outdated with brew_upgrade)
- Invariants:
  - Existing clones are never touched
  - A stamp records the commit a script was run at; a new commit re-runs it
- Failure:
  - HttpError on GitHub API errors, CommandError on git/brew/bash failures
  - PreconditionError (surfaced as StepCheckError) when brew is absent
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from ..errors import PreconditionError
from ..util.paths import ensure_dir, safe_filename
from ..util.shell import output_of, run_cmd, succeeds
from .base import StepContext
from .system import brew_bin

STAMP_DIR = Path(".local") / "state" / "workstrap"


# workspace


def workspace_dir(ctx: StepContext) -> Path:
    return ctx.path(ctx.settings.workspace)


def owned_repos(ctx: StepContext) -> list[dict[str, Any]]:
    with ctx.github() as gh:
        user = ctx.settings.github_user
        if user and user.lower() != gh.authenticated_user().lower():
            return gh.list_repos(user)
        return gh.list_repos()


def missing_repos(ctx: StepContext) -> list[dict[str, Any]]:
    ws = workspace_dir(ctx)
    return [r for r in owned_repos(ctx) if not (ws / str(r["name"]) / ".git").exists()]


def workspace_ready(ctx: StepContext) -> bool:
    if not workspace_dir(ctx).is_dir():
        return False
    return not missing_repos(ctx)


def clone_workspace(ctx: StepContext) -> None:
    ws = ensure_dir(workspace_dir(ctx))
    for repo in missing_repos(ctx):
        name = str(repo["name"])
        ctx.say(f"Cloning {name}...")
        run_cmd(["git", "clone", str(repo["ssh_url"]), str(ws / name)])


# install-scripts


def _stamp_path(ctx: StepContext, script: str) -> Path:
    return ctx.home / STAMP_DIR / (safe_filename(script) + ".head")


def _head(repo: Path) -> str | None:
    return output_of(["git", "-C", str(repo), "rev-parse", "HEAD"])


def _stale_scripts(ctx: StepContext) -> list[tuple[str, Path, str | None]]:
    ws = workspace_dir(ctx)
    stale = []
    for rel in ctx.settings.install_scripts:
        script = ws / rel
        head = _head(script.parent) if script.is_file() else None
        stamp = _stamp_path(ctx, rel)
        recorded = stamp.read_text(encoding="utf-8").strip() if stamp.is_file() else None
        if head is None or recorded != head:
            stale.append((rel, script, head))
    return stale


def install_scripts_current(ctx: StepContext) -> bool:
    return not _stale_scripts(ctx)


def run_install_scripts(ctx: StepContext) -> None:
    for rel, script, head in _stale_scripts(ctx):
        if not script.is_file():
            raise FileNotFoundError(f"Install script not found: {script}")
        ctx.say(f"Running {rel}...")
        run_cmd(["/bin/bash", str(script)], cwd=script.parent, capture=False)
        if head is None:
            logger.warning("{} is not inside a git checkout; it will run again next time", rel)
            continue
        stamp = _stamp_path(ctx, rel)
        ensure_dir(stamp.parent)
        stamp.write_text(head + "\n", encoding="utf-8")


# homebrew-bundle


def _brewfile(ctx: StepContext) -> Path:
    return ctx.path(ctx.settings.brewfile)


def _require_brew() -> str:
    brew = brew_bin()
    if brew is None:
        raise PreconditionError("brew not found; the homebrew step must run first")
    return brew


def bundle_satisfied(ctx: StepContext) -> bool:
    brew = _require_brew()
    brewfile = _brewfile(ctx)
    if not brewfile.is_file():
        return False
    if not succeeds([brew, "bundle", "check", f"--file={brewfile}"], timeout_s=120):
        return False
    if ctx.settings.brew_upgrade:
        return output_of([brew, "outdated", "--quiet"], timeout_s=120) == ""
    return True


def install_bundle(ctx: StepContext) -> None:
    brewfile = _brewfile(ctx)
    if not brewfile.is_file():
        raise FileNotFoundError(f"Brewfile not found: {brewfile}")
    brew = _require_brew()
    run_cmd([brew, "bundle", f"--file={brewfile}"], capture=False)
    if ctx.settings.brew_upgrade:
        ctx.say("Upgrading Homebrew packages...")
        run_cmd([brew, "upgrade"], capture=False)
