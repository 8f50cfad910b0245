import pytest

from workstrap.config import CatalogueSettings, RunConfiguration
from workstrap.steps.base import StepContext


@pytest.fixture
def config():
    return RunConfiguration(hostname="mbp", version="3.12.0", token="ghp_" + "a" * 36)


@pytest.fixture
def ctx(tmp_path, config):
    home = tmp_path / "home"
    home.mkdir()
    apps = tmp_path / "Applications"
    apps.mkdir()
    return StepContext(
        config=config,
        settings=CatalogueSettings(),
        home=home,
        applications_dir=apps,
    )


class Recorder:
    """Stand-in for run_cmd that records every command."""

    def __init__(self, results=None):
        self.calls = []
        self.results = results or {}

    def __call__(self, cmd, *args, **kwargs):
        from workstrap.util.shell import CmdResult, format_cmd

        self.calls.append(list(cmd) if not isinstance(cmd, str) else cmd)
        rc, out = self.results.get(format_cmd(cmd), (0, ""))
        return CmdResult(cmd=format_cmd(cmd), returncode=rc, stdout=out, stderr="", elapsed_s=0.0)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def _reset_logging():
    from loguru import logger

    yield
    # The CLI installs sinks on the captured stderr of the current test.
    logger.remove()
