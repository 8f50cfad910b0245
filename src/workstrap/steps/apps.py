"""Application and font steps: iTerm2, Spectacle, Powerline fonts."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

from ..util.http import download
from ..util.shell import run_cmd
from .base import StepContext

ITERM2_URL = "https://iterm2.com/downloads/stable/iTerm2-{version}.zip"
SPECTACLE_URL = "https://s3.amazonaws.com/spectacle/downloads/Spectacle+{version}.zip"
POWERLINE_FONTS_REPO = "https://github.com/powerline/fonts.git"


def iterm2_url(version: str) -> str:
    # iTerm2 publishes 3.5.11 as iTerm2-3_5_11.zip
    return ITERM2_URL.format(version=version.replace(".", "_"))


def spectacle_url(version: str) -> str:
    return SPECTACLE_URL.format(version=version)


def install_zipped_app(ctx: StepContext, url: str, app_name: str) -> Path:
    """Download a zipped .app bundle and move it into the Applications folder."""
    target = ctx.applications_dir / app_name
    with tempfile.TemporaryDirectory(prefix="workstrap_") as tmp:
        archive = download(url, Path(tmp) / url.rsplit("/", 1)[-1])
        unpacked = Path(tmp) / "unpacked"
        # ditto keeps the bundle's symlinks and permissions intact.
        run_cmd(["ditto", "-x", "-k", str(archive), str(unpacked)])
        bundle = unpacked / app_name
        if not bundle.is_dir():
            raise FileNotFoundError(f"{app_name} not found in {url}")
        shutil.move(str(bundle), str(target))
    return target


def iterm2_installed(ctx: StepContext) -> bool:
    return (ctx.applications_dir / "iTerm.app").is_dir()


def install_iterm2(ctx: StepContext) -> None:
    install_zipped_app(ctx, iterm2_url(ctx.settings.iterm2_version), "iTerm.app")


def spectacle_installed(ctx: StepContext) -> bool:
    return (ctx.applications_dir / "Spectacle.app").is_dir()


def install_spectacle(ctx: StepContext) -> None:
    install_zipped_app(ctx, spectacle_url(ctx.settings.spectacle_version), "Spectacle.app")


def _fonts_dir(ctx: StepContext) -> Path:
    return ctx.home / "Library" / "Fonts"


def powerline_fonts_installed(ctx: StepContext) -> bool:
    fonts = _fonts_dir(ctx)
    if not fonts.is_dir():
        return False
    return any("powerline" in p.name.lower() for p in fonts.iterdir())


def install_powerline_fonts(ctx: StepContext) -> None:
    with tempfile.TemporaryDirectory(prefix="workstrap_") as tmp:
        checkout = Path(tmp) / "fonts"
        run_cmd(["git", "clone", "--depth=1", POWERLINE_FONTS_REPO, str(checkout)])
        run_cmd(["/bin/bash", "./install.sh"], cwd=checkout, env={"HOME": str(ctx.home)})
