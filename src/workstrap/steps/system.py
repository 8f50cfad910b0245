"""Base system steps: developer tools, Homebrew, hostname, Dock, wallpaper.

CONTRACT
- Inputs: StepContext (hostname for the hostname step, dock preferences from settings)
- Outputs (required):
  - Xcode Command Line Tools, Homebrew, HostName, Dock `defaults` keys in place
  - The configured desktop picture on every desktop (skipped when unset)
- Invariants:
  - Checks only read (`xcode-select -p`, PATH lookups, `scutil --get`,
    `defaults read`, System Events queries)
- Failure:
  - CommandError / PreconditionError propagate to the runner
"""

from __future__ import annotations

from pathlib import Path

from ..config import DefaultsSetting
from ..errors import PreconditionError
from ..util.http import fetch_text
from ..util.shell import output_of, run_cmd, succeeds, which
from .base import StepContext

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
BREW_LOCATIONS = ("/opt/homebrew/bin/brew", "/usr/local/bin/brew")


def brew_bin() -> str | None:
    found = which("brew")
    if found:
        return found
    for candidate in BREW_LOCATIONS:
        if Path(candidate).is_file():
            return candidate
    return None


# xcode-cli-tools


def xcode_installed(ctx: StepContext) -> bool:
    return succeeds(["xcode-select", "-p"])


def install_xcode(ctx: StepContext) -> None:
    run_cmd(["xcode-select", "--install"])
    ctx.say("Finish the Command Line Tools installer window before continuing.")
    ctx.pause("Press any key once the installer has finished.")
    if not xcode_installed(ctx):
        raise PreconditionError("Command Line Tools are still not installed")


# homebrew


def homebrew_installed(ctx: StepContext) -> bool:
    return brew_bin() is not None


def install_homebrew(ctx: StepContext) -> None:
    script = fetch_text(HOMEBREW_INSTALL_URL)
    env = {} if ctx.interactive else {"NONINTERACTIVE": "1"}
    run_cmd(["/bin/bash", "-c", script], env=env, capture=False)
    brew = brew_bin()
    if brew is None:
        raise PreconditionError("Homebrew installer finished but brew is not on disk")
    ctx.say("Updating Homebrew...")
    run_cmd([brew, "update"], capture=False)


# hostname


def hostname_set(ctx: StepContext) -> bool:
    return output_of(["scutil", "--get", "HostName"]) == ctx.config.require("hostname")


def set_hostname(ctx: StepContext) -> None:
    run_cmd(["sudo", "scutil", "--set", "HostName", ctx.config.require("hostname")], capture=False)


# dock


def _parse_defaults_array(text: str) -> list[str]:
    body = text.strip()
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]
    items = []
    for line in body.splitlines():
        item = line.strip().rstrip(",").strip().strip('"')
        if item:
            items.append(item)
    return items


def defaults_matches(pref: DefaultsSetting, current: str | None) -> bool:
    """Compare `defaults read` output with the desired value."""
    if current is None:
        return False
    if pref.type == "bool":
        return current == ("1" if pref.value else "0")
    if pref.type == "int":
        return current == str(int(pref.value))
    if pref.type == "float":
        try:
            return float(current) == float(pref.value)
        except ValueError:
            return False
    if pref.type == "array":
        return _parse_defaults_array(current) == [str(v) for v in (pref.value or [])]
    return current == str(pref.value)


def defaults_write_args(pref: DefaultsSetting) -> list[str]:
    cmd = ["defaults", "write", pref.domain, pref.key]
    if pref.type == "bool":
        return cmd + ["-bool", "true" if pref.value else "false"]
    if pref.type == "array":
        return cmd + ["-array", *[str(v) for v in (pref.value or [])]]
    return cmd + [f"-{pref.type}", str(pref.value)]


def dock_configured(ctx: StepContext) -> bool:
    return all(
        defaults_matches(p, output_of(["defaults", "read", p.domain, p.key]))
        for p in ctx.settings.dock
    )


def configure_dock(ctx: StepContext) -> None:
    for pref in ctx.settings.dock:
        run_cmd(defaults_write_args(pref))
    # Dock may not be running (e.g. over SSH).
    run_cmd(["killall", "Dock"], check=False)


# wallpaper

_GET_PICTURES = 'tell application "System Events" to get picture of every desktop'


def _applescript_str(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _wallpaper(ctx: StepContext) -> Path | None:
    return ctx.path(ctx.settings.wallpaper) if ctx.settings.wallpaper else None


def current_wallpapers() -> list[str]:
    out = output_of(["osascript", "-e", _GET_PICTURES]) or ""
    return [p.strip() for p in out.split(",") if p.strip()]


def wallpaper_set(ctx: StepContext) -> bool:
    target = _wallpaper(ctx)
    if target is None:
        # Not configured: leave the desktop alone.
        return True
    current = current_wallpapers()
    return bool(current) and all(p == str(target) for p in current)


def set_wallpaper(ctx: StepContext) -> None:
    target = _wallpaper(ctx)
    if target is None:
        return
    if not target.is_file():
        raise FileNotFoundError(f"Wallpaper not found: {target}")
    script = (
        'tell application "System Events" to tell every desktop to set picture to '
        + _applescript_str(str(target))
    )
    run_cmd(["osascript", "-e", script])
