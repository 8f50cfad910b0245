from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from workstrap import cli
from workstrap.doctor import DoctorItem, DoctorReport
from workstrap.registry import StepRegistry
from workstrap.steps.base import step

runner = CliRunner()


@pytest.fixture
def healthy(monkeypatch):
    doctor = MagicMock(return_value=DoctorReport(ok=True, items=[DoctorItem("platform", "OK", "macOS")]))
    monkeypatch.setattr(cli, "doctor_report", doctor)
    monkeypatch.setattr(cli, "stdin_is_interactive", lambda: False)
    monkeypatch.setattr(cli, "_settings_path", lambda explicit: explicit)
    monkeypatch.setenv("NO_COLOR", "1")
    return doctor


@pytest.fixture
def fake_steps(monkeypatch):
    calls = []

    def make(name, satisfied=False, fails=False, requires=()):
        def check(ctx):
            calls.append(f"check:{name}")
            return satisfied

        def action(ctx):
            calls.append(f"action:{name}")
            if fails:
                raise RuntimeError(f"{name} exploded")

        return step(name, check=check, action=action, requires=requires)

    def install(*steps):
        monkeypatch.setattr(cli, "build_registry", lambda: StepRegistry(steps))

    return make, install, calls


def test_cli_help():
    res = runner.invoke(cli.app, ["--help"])
    assert res.exit_code == 0
    assert "--hostname" in res.stdout


def test_cli_version():
    res = runner.invoke(cli.app, ["--version"])
    assert res.exit_code == 0
    assert "workstrap version" in res.stdout


def test_help_runs_nothing(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a"))

    assert cli.main(["-h"]) == 0

    assert calls == []
    healthy.assert_not_called()
    assert "Usage" in capsys.readouterr().out


def test_unknown_flag_exits_1_with_usage(healthy, capsys):
    assert cli.main(["--unknown-flag"]) == 1

    err = capsys.readouterr().err
    assert "Usage" in err
    assert "Unknown flag: --unknown-flag" in err
    healthy.assert_not_called()


def test_list_shows_steps_without_running(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a"), make("b", requires=["hostname"]))

    assert cli.main(["--list"]) == 0

    out = capsys.readouterr().out
    assert "workstrap steps" in out
    assert calls == []
    healthy.assert_not_called()


def test_unknown_step_name(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a"))

    assert cli.main(["--only", "nope"]) == 1
    assert "Unknown step(s): nope" in capsys.readouterr().out


def test_preconditions_fail(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a"))
    healthy.return_value = DoctorReport(
        ok=False, items=[DoctorItem("platform", "FAIL", "Linux is not supported (macOS only).")]
    )

    assert cli.main([]) == 1
    assert "Linux is not supported" in capsys.readouterr().out
    assert calls == []


def test_missing_configuration_non_interactive(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a", requires=["hostname"]))

    assert cli.main([]) == 1

    out = capsys.readouterr().out
    assert "Missing required configuration: hostname" in out
    assert calls == []


def test_successful_run(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a", satisfied=True), make("b", requires=["hostname"]))

    assert cli.main(["--hostname", "mbp"]) == 0

    out = capsys.readouterr().out
    assert calls == ["check:a", "check:b", "action:b"]
    assert "Done: 1 already done, 1 applied" in out
    assert "\x1b" not in out


def test_failing_step_aborts(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a"), make("b", fails=True), make("c"))

    assert cli.main([]) == 1

    out = capsys.readouterr().out
    assert calls == ["check:a", "action:a", "check:b", "action:b"]
    assert "Aborted at step 'b'" in out
    assert "Action of step 'b' failed: b exploded" in out


def test_dry_run(healthy, fake_steps, capsys):
    make, install, calls = fake_steps
    install(make("a", satisfied=True), make("b"))

    assert cli.main(["--dry-run"]) == 0

    out = capsys.readouterr().out
    assert calls == ["check:a", "check:b"]
    assert "workstrap dry run" in out
    assert "would apply" in out


def test_token_from_env_is_redacted(healthy, fake_steps, capsys, monkeypatch):
    token = "ghp_" + "z" * 36
    monkeypatch.setenv("WORKSTRAP_GITHUB_TOKEN", token)
    make, install, calls = fake_steps

    def leak(ctx):
        raise RuntimeError(f"rejected {ctx.config.token}")

    install(step("leak", check=lambda ctx: False, action=leak, requires=["token"]))

    assert cli.main([]) == 1
    assert token not in capsys.readouterr().out


def test_invalid_settings_file(healthy, fake_steps, capsys, tmp_path):
    make, install, calls = fake_steps
    install(make("a"))
    bad = tmp_path / "settings.yaml"
    bad.write_text("nonsense_key: 1\n", encoding="utf-8")

    assert cli.main(["--settings", str(bad)]) == 1
    assert "Invalid settings" in capsys.readouterr().out
    assert calls == []


def test_stray_argument_exits_1_with_usage(healthy, capsys):
    assert cli.main(["extra"]) == 1

    assert "Usage" in capsys.readouterr().err
    healthy.assert_not_called()


def test_interrupted_step_exits_130(healthy, fake_steps):
    make, install, calls = fake_steps

    def interrupt(ctx):
        raise KeyboardInterrupt

    install(step("slow", check=lambda ctx: False, action=interrupt))

    assert cli.main([]) == 130


def test_aborted_prompt_exits_130(healthy, fake_steps, monkeypatch, capsys):
    import typer

    make, install, calls = fake_steps
    install(make("a", requires=["hostname"]))

    def abort(*args, **kwargs):
        raise typer.Abort()

    monkeypatch.setattr(cli, "resolve_configuration", abort)

    assert cli.main([]) == 130
    assert "Interrupted." in capsys.readouterr().err
    assert calls == []


@pytest.mark.parametrize("flags, colorize", [(["--no-color"], False), ([], True)])
def test_no_color_reaches_log_sink(healthy, fake_steps, monkeypatch, flags, colorize):
    make, install, calls = fake_steps
    install(make("a", satisfied=True))

    def detect(cls, environ=None, stream=None, *, force_disable=False):
        # Pretend every stream is a color terminal.
        return cls(enabled=not force_disable)

    monkeypatch.setattr(cli.ColorConfig, "detect", classmethod(detect))
    fake_logger = MagicMock()
    monkeypatch.setattr(cli, "logger", fake_logger)

    assert cli.main(flags) == 0

    stderr_sink = fake_logger.add.call_args_list[0]
    assert stderr_sink.kwargs["colorize"] is colorize
