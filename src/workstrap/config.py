from __future__ import annotations

"""Configuration models.

CONTRACT
- Inputs: resolved flag/prompt values; YAML settings file path (settings.yaml)
- Outputs (required):
  - RunConfiguration (hostname, version, token), immutable once resolved
  - CatalogueSettings for the step catalogue (versions, paths, dock keys)
- Invariants:
  - Configuration keys are exactly CONFIG_KEYS
  - Every settings key is optional; defaults are safe for a fresh macOS account
  - RunConfiguration.redacted() never exposes the token
- Failure:
  - Raises SettingsError on unreadable YAML or schema violations
  - RunConfiguration.require() raises MissingConfigurationError
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .errors import MissingConfigurationError, SettingsError

ConfigKey = Literal["hostname", "version", "token"]
CONFIG_KEYS: tuple[str, ...] = ("hostname", "version", "token")

DEFAULT_SETTINGS_PATH = Path("~/.config/workstrap/settings.yaml")


@dataclass(frozen=True)
class RunConfiguration:
    hostname: str | None = None
    version: str | None = None
    token: str | None = None

    def get(self, key: str) -> str | None:
        if key not in CONFIG_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def require(self, key: str) -> str:
        value = self.get(key)
        if not value:
            raise MissingConfigurationError([key])
        return value

    def redacted(self) -> dict[str, str | None]:
        return {
            "hostname": self.hostname,
            "version": self.version,
            "token": "[REDACTED]" if self.token else None,
        }


@dataclass(frozen=True)
class DefaultsSetting:
    """One `defaults write <domain> <key> -<type> <value>` preference."""

    domain: str
    key: str
    type: Literal["bool", "int", "float", "string", "array"]
    value: Any = None


@dataclass(frozen=True)
class SshKeySettings:
    type: Literal["ed25519", "rsa"] = "ed25519"
    bits: int | None = None
    path: str = "~/.ssh/id_ed25519"


def _default_dock() -> tuple[DefaultsSetting, ...]:
    return (
        DefaultsSetting("com.apple.dock", "autohide", "bool", True),
        DefaultsSetting("com.apple.dock", "autohide-delay", "int", 0),
        DefaultsSetting("com.apple.dock", "autohide-time-modifier", "int", 0),
        DefaultsSetting("com.apple.dock", "persistent-apps", "array", []),
        DefaultsSetting("com.apple.dock", "persistent-others", "array", []),
        DefaultsSetting("com.apple.dock", "recent-apps", "array", []),
        DefaultsSetting("com.apple.dock", "show-recents", "bool", False),
        DefaultsSetting("com.apple.dock", "tilesize", "int", 32),
        DefaultsSetting("com.apple.dock", "orientation", "string", "left"),
    )


@dataclass(frozen=True)
class CatalogueSettings:
    workspace: str = "~/Workspace"
    github_user: str | None = None
    iterm2_version: str = "3.5.11"
    spectacle_version: str = "1.2"
    oh_my_zsh_repo: str = "https://github.com/ohmyzsh/ohmyzsh.git"
    oh_my_zsh_upstream: str | None = None
    # None: derived from workspace (<workspace>/dotfiles/...)
    brewfile: str | None = None
    brew_upgrade: bool = False
    requirements_file: str | None = None
    wallpaper: str | None = None
    virtualenv: str = "dev3"
    ssh_key: SshKeySettings = field(default_factory=SshKeySettings)
    dock: tuple[DefaultsSetting, ...] = field(default_factory=_default_dock)
    install_scripts: tuple[str, ...] = (
        "bash-scripts/install.sh",
        "dotfiles/install.sh",
        "vim-scripts/install.sh",
    )

    def __post_init__(self) -> None:
        dotfiles = self.workspace.rstrip("/") + "/dotfiles"
        if self.brewfile is None:
            object.__setattr__(self, "brewfile", f"{dotfiles}/Brewfile")
        if self.requirements_file is None:
            object.__setattr__(self, "requirements_file", f"{dotfiles}/requirements.txt")


SETTINGS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "workspace": {"type": "string"},
        "github_user": {"type": ["string", "null"]},
        "iterm2_version": {"type": "string", "pattern": r"^[0-9]+(\.[0-9]+)*$"},
        "spectacle_version": {"type": "string"},
        "oh_my_zsh_repo": {"type": "string"},
        "oh_my_zsh_upstream": {"type": ["string", "null"]},
        "brewfile": {"type": ["string", "null"]},
        "brew_upgrade": {"type": "boolean"},
        "requirements_file": {"type": ["string", "null"]},
        "wallpaper": {"type": ["string", "null"]},
        "virtualenv": {"type": "string", "pattern": r"^[A-Za-z0-9][A-Za-z0-9_.-]*$"},
        "ssh_key": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "type": {"type": "string", "enum": ["ed25519", "rsa"]},
                "bits": {"type": ["integer", "null"], "minimum": 2048},
                "path": {"type": "string"},
            },
        },
        "dock": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "domain": {"type": "string"},
                    "key": {"type": "string"},
                    "type": {"type": "string", "enum": ["bool", "int", "float", "string", "array"]},
                    "value": {},
                },
                "required": ["domain", "key", "type"],
            },
        },
        "install_scripts": {"type": "array", "items": {"type": "string"}},
    },
}


def settings_from_dict(data: dict[str, Any]) -> CatalogueSettings:
    import jsonschema  # lazy import

    try:
        jsonschema.validate(instance=data, schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise SettingsError(f"Invalid settings ({where}): {e.message}") from e

    updates: dict[str, Any] = {
        k: v for k, v in data.items() if k not in {"ssh_key", "dock", "install_scripts"}
    }
    if "ssh_key" in data:
        raw = data["ssh_key"] or {}
        key_type = raw.get("type", "ed25519")
        updates["ssh_key"] = SshKeySettings(
            type=key_type,
            bits=raw.get("bits", 4096 if key_type == "rsa" else None),
            path=raw.get("path", f"~/.ssh/id_{key_type}"),
        )
    if "dock" in data:
        updates["dock"] = tuple(
            DefaultsSetting(
                domain=str(d["domain"]),
                key=str(d["key"]),
                type=d["type"],
                value=d.get("value", [] if d["type"] == "array" else None),
            )
            for d in data["dock"]
        )
    if "install_scripts" in data:
        updates["install_scripts"] = tuple(data["install_scripts"])
    return CatalogueSettings(**updates)


def load_settings(path: Path | None) -> CatalogueSettings:
    """Load catalogue settings; None (or a missing default file) yields defaults."""
    if path is None:
        return CatalogueSettings()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file must be a mapping, got {type(data).__name__}")
    return settings_from_dict(data)


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Validate a workstrap settings file")
    parser.add_argument("--settings", required=True, help="Path to settings.yaml")
    args = parser.parse_args()

    try:
        cfg = load_settings(Path(args.settings))
        print(f"Workspace: {cfg.workspace}")
        print(f"Dock preferences: {len(cfg.dock)}")
    except SettingsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
