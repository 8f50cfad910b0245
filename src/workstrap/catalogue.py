from __future__ import annotations

"""The default macOS workstation catalogue.

CONTRACT
- Inputs: none (step behavior reads CatalogueSettings from the StepContext)
- Outputs (required):
  - StepRegistry with every step, in prerequisite order
- Invariants:
  - Every name listed in a step's `after` is registered before that step
  - Registration order here is the execution order
- Failure:
  - DuplicateNameError if a name is declared twice
"""

from .registry import StepRegistry
from .steps import apps, editor, python, ssh, system, workspace
from .steps.base import step


def build_registry() -> StepRegistry:
    reg = StepRegistry()

    reg.register(step(
        "xcode-cli-tools",
        check=system.xcode_installed,
        action=system.install_xcode,
        description="Xcode Command Line Tools (git, make, compilers)",
    ))
    reg.register(step(
        "homebrew",
        check=system.homebrew_installed,
        action=system.install_homebrew,
        description="Homebrew package manager",
        after=["xcode-cli-tools"],
    ))
    reg.register(step(
        "hostname",
        check=system.hostname_set,
        action=system.set_hostname,
        requires=["hostname"],
        description="Machine HostName (scutil)",
    ))
    reg.register(step(
        "dock",
        check=system.dock_configured,
        action=system.configure_dock,
        description="Dock preferences (defaults)",
    ))
    reg.register(step(
        "wallpaper",
        check=system.wallpaper_set,
        action=system.set_wallpaper,
        description="Desktop picture (settings: wallpaper)",
        after=["dock"],
    ))
    reg.register(step(
        "iterm2",
        check=apps.iterm2_installed,
        action=apps.install_iterm2,
        description="iTerm2 terminal emulator",
    ))
    reg.register(step(
        "spectacle",
        check=apps.spectacle_installed,
        action=apps.install_spectacle,
        description="Spectacle window manager",
    ))
    reg.register(step(
        "oh-my-zsh",
        check=editor.oh_my_zsh_installed,
        action=editor.install_oh_my_zsh,
        description="oh-my-zsh shell framework",
        after=["xcode-cli-tools"],
    ))
    reg.register(step(
        "vundle",
        check=editor.vundle_installed,
        action=editor.install_vundle,
        description="Vundle Vim plugin manager",
        after=["xcode-cli-tools"],
    ))
    reg.register(step(
        "powerline-fonts",
        check=apps.powerline_fonts_installed,
        action=apps.install_powerline_fonts,
        description="Powerline-patched fonts",
        after=["xcode-cli-tools"],
    ))
    reg.register(step(
        "ssh-key",
        check=ssh.ssh_key_exists,
        action=ssh.create_ssh_key,
        description="SSH key pair",
    ))
    reg.register(step(
        "github-ssh-key",
        check=ssh.github_key_registered,
        action=ssh.upload_github_key,
        requires=["token"],
        description="Public key registered on GitHub",
        after=["ssh-key"],
    ))
    reg.register(step(
        "github-ssh-access",
        check=ssh.github_ssh_ok,
        action=ssh.enable_github_ssh,
        description="GitHub accepts the SSH key",
        after=["github-ssh-key"],
    ))
    reg.register(step(
        "workspace",
        check=workspace.workspace_ready,
        action=workspace.clone_workspace,
        requires=["token"],
        description="Clone every owned GitHub repository into the workspace",
        after=["xcode-cli-tools", "github-ssh-access"],
    ))
    reg.register(step(
        "homebrew-bundle",
        check=workspace.bundle_satisfied,
        action=workspace.install_bundle,
        description="Packages from the Brewfile",
        after=["homebrew", "workspace"],
    ))
    reg.register(step(
        "python",
        check=python.python_installed,
        action=python.install_python,
        requires=["version"],
        description="Python interpreter via pyenv",
        after=["homebrew-bundle"],
    ))
    reg.register(step(
        "virtualenv",
        check=python.virtualenv_exists,
        action=python.create_virtualenv,
        requires=["version"],
        description="Development virtualenv (pyenv-virtualenv)",
        after=["python"],
    ))
    reg.register(step(
        "python-packages",
        check=python.packages_installed,
        action=python.install_packages,
        description="Packages from requirements.txt into the virtualenv",
        after=["virtualenv", "workspace"],
    ))
    reg.register(step(
        "install-scripts",
        check=workspace.install_scripts_current,
        action=workspace.run_install_scripts,
        description="install.sh of bash-scripts, dotfiles, vim-scripts",
        after=["workspace"],
    ))
    reg.register(step(
        "vim-plugins",
        check=editor.vim_plugins_installed,
        action=editor.install_vim_plugins,
        description="Vim plugins listed in ~/.vimrc",
        after=["vundle", "install-scripts"],
    ))
    return reg
