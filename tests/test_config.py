import pytest

from workstrap.config import (
    CatalogueSettings,
    DefaultsSetting,
    RunConfiguration,
    load_settings,
    settings_from_dict,
)
from workstrap.errors import MissingConfigurationError, SettingsError


def test_run_configuration_access():
    cfg = RunConfiguration(hostname="mbp", version=None, token="secret")

    assert cfg.get("hostname") == "mbp"
    assert cfg.require("token") == "secret"
    with pytest.raises(MissingConfigurationError, match="version"):
        cfg.require("version")
    with pytest.raises(KeyError):
        cfg.get("password")


def test_redacted_never_exposes_token():
    cfg = RunConfiguration(hostname="mbp", version="3.12.0", token="secret")
    assert "secret" not in str(cfg.redacted())
    assert cfg.redacted()["token"] == "[REDACTED]"
    assert RunConfiguration().redacted()["token"] is None


def test_load_settings_defaults():
    s = load_settings(None)
    assert s == CatalogueSettings()
    assert s.ssh_key.type == "ed25519"
    assert len(s.dock) == 9


def test_load_settings_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "\n".join(
            [
                "workspace: ~/code",
                "iterm2_version: '3.4.23'",
                "install_scripts: [dotfiles/install.sh]",
                "dock:",
                "  - {domain: com.apple.dock, key: tilesize, type: int, value: 48}",
                "  - {domain: com.apple.dock, key: persistent-apps, type: array}",
            ]
        ),
        encoding="utf-8",
    )

    s = load_settings(path)

    assert s.workspace == "~/code"
    assert s.iterm2_version == "3.4.23"
    assert s.install_scripts == ("dotfiles/install.sh",)
    assert s.dock == (
        DefaultsSetting("com.apple.dock", "tilesize", "int", 48),
        DefaultsSetting("com.apple.dock", "persistent-apps", "array", []),
    )
    # Untouched keys keep their defaults.
    assert s.virtualenv == "dev3"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path) == CatalogueSettings()


def test_dotfile_paths_follow_workspace():
    s = settings_from_dict({"workspace": "~/code/"})
    assert s.brewfile == "~/code/dotfiles/Brewfile"
    assert s.requirements_file == "~/code/dotfiles/requirements.txt"

    assert CatalogueSettings().brewfile == "~/Workspace/dotfiles/Brewfile"

    s = settings_from_dict({"workspace": "~/code", "brewfile": "~/Brewfile"})
    assert s.brewfile == "~/Brewfile"
    assert s.requirements_file == "~/code/dotfiles/requirements.txt"


def test_wallpaper_and_upgrade_settings():
    s = settings_from_dict({"wallpaper": "~/Pictures/desk.jpg", "brew_upgrade": True})
    assert s.wallpaper == "~/Pictures/desk.jpg"
    assert s.brew_upgrade is True
    assert CatalogueSettings().wallpaper is None
    assert CatalogueSettings().brew_upgrade is False


def test_rsa_key_defaults():
    s = settings_from_dict({"ssh_key": {"type": "rsa"}})
    assert s.ssh_key.bits == 4096
    assert s.ssh_key.path == "~/.ssh/id_rsa"


@pytest.mark.parametrize(
    "data, where",
    [
        ({"unknown_key": 1}, "<root>"),
        ({"iterm2_version": "latest"}, "iterm2_version"),
        ({"brew_upgrade": "yes"}, "brew_upgrade"),
        ({"ssh_key": {"type": "rsa", "bits": 1024}}, "ssh_key/bits"),
        ({"dock": [{"domain": "com.apple.dock", "key": "x", "type": "color"}]}, "dock/0/type"),
    ],
)
def test_schema_errors(data, where):
    with pytest.raises(SettingsError, match=f"Invalid settings \\({where}\\)"):
        settings_from_dict(data)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("workspace: [unclosed", encoding="utf-8")
    with pytest.raises(SettingsError, match="Invalid YAML"):
        load_settings(path)


def test_non_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(SettingsError, match="must be a mapping"):
        load_settings(path)


def test_missing_file(tmp_path):
    with pytest.raises(SettingsError, match="Cannot read settings file"):
        load_settings(tmp_path / "nope.yaml")
