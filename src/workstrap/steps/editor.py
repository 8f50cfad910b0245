"""Shell and editor steps: oh-my-zsh, Vundle, Vim plugins.

CONTRACT
- Inputs: StepContext (repository URLs from settings, ~/.vimrc contents)
- Outputs (required):
  - ~/.oh-my-zsh clone (with an `upstream` remote when configured)
  - ~/.vim/bundle/Vundle.vim clone
  - one ~/.vim/bundle/<name> directory per `Plugin '...'` line in ~/.vimrc
- Invariants:
  - A step counts as done only when the clone has a .git entry
- Failure:
  - CommandError from git/vim propagates to the runner
"""

from __future__ import annotations

import re
from pathlib import Path

from ..util.shell import run_cmd, succeeds
from .base import StepContext

VUNDLE_REPO = "https://github.com/VundleVim/Vundle.vim.git"

_PLUGIN_RE = re.compile(r"""^\s*Plugin\s+['"]([^'"]+)['"](.*)$""")
_PLUGIN_NAME_OPT_RE = re.compile(r"""['"]name['"]\s*:\s*['"]([^'"]+)['"]""")


def _is_clone(path: Path) -> bool:
    return (path / ".git").exists()


# oh-my-zsh


def oh_my_zsh_installed(ctx: StepContext) -> bool:
    return _is_clone(ctx.home / ".oh-my-zsh")


def install_oh_my_zsh(ctx: StepContext) -> None:
    dest = ctx.home / ".oh-my-zsh"
    if not _is_clone(dest):
        run_cmd(["git", "clone", ctx.settings.oh_my_zsh_repo, str(dest)])
    upstream = ctx.settings.oh_my_zsh_upstream
    if upstream and not succeeds(["git", "-C", str(dest), "remote", "get-url", "upstream"]):
        run_cmd(["git", "-C", str(dest), "remote", "add", "upstream", upstream])


# vundle


def _bundle_dir(ctx: StepContext) -> Path:
    return ctx.home / ".vim" / "bundle"


def vundle_installed(ctx: StepContext) -> bool:
    return _is_clone(_bundle_dir(ctx) / "Vundle.vim")


def install_vundle(ctx: StepContext) -> None:
    run_cmd(["git", "clone", VUNDLE_REPO, str(_bundle_dir(ctx) / "Vundle.vim")])


# vim-plugins


def vimrc_plugins(text: str) -> list[str]:
    """Directory names Vundle will use for each `Plugin` line."""
    names = []
    for line in text.splitlines():
        m = _PLUGIN_RE.match(line)
        if not m:
            continue
        spec, rest = m.group(1), m.group(2)
        alias = _PLUGIN_NAME_OPT_RE.search(rest)
        if alias:
            names.append(alias.group(1))
            continue
        name = spec.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        names.append(name)
    return names


def vim_plugins_installed(ctx: StepContext) -> bool:
    vimrc = ctx.home / ".vimrc"
    if not vimrc.is_file():
        return True
    bundle = _bundle_dir(ctx)
    return all((bundle / name).is_dir() for name in vimrc_plugins(vimrc.read_text(encoding="utf-8")))


def install_vim_plugins(ctx: StepContext) -> None:
    run_cmd(["vim", "+PluginInstall", "+qall"], capture=False)
