import subprocess
from unittest.mock import MagicMock, patch

import pytest

from workstrap.errors import CommandError
from workstrap.util.redaction import Redactor
from workstrap.util.shell import format_cmd, output_of, run_cmd, succeeds, which


def test_run_cmd_success(tmp_path):
    res = run_cmd("echo 'hello'", tmp_path)

    assert res.returncode == 0
    assert res.ok
    assert res.stdout.strip() == "hello"
    assert res.elapsed_s >= 0


def test_run_cmd_failure_raises(tmp_path):
    with pytest.raises(CommandError) as exc:
        run_cmd("echo 'boom' >&2; exit 3", tmp_path)

    assert exc.value.returncode == 3
    assert "Command failed (3)" in str(exc.value)
    assert "boom" in str(exc.value)


def test_run_cmd_failure_unchecked(tmp_path):
    res = run_cmd("false", tmp_path, check=False)
    assert res.returncode != 0
    assert not res.ok


def test_run_cmd_timeout(tmp_path):
    # run_cmd catches TimeoutExpired and returns rc=124
    res = run_cmd("sleep 2", tmp_path, timeout_s=0.5, check=False)

    assert res.returncode == 124
    assert "Timeout expired" in res.stderr


def test_run_cmd_missing_binary(tmp_path):
    res = run_cmd(["definitely-not-a-real-binary-xyz"], tmp_path, check=False)
    assert res.returncode == 127


def test_run_cmd_list_mode(tmp_path):
    """A list argument runs with shell=False."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        cmd = ["ls", "-l"]
        run_cmd(cmd, tmp_path)

        args, kwargs = mock_run.call_args
        assert args[0] == cmd
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == str(tmp_path)


def test_run_cmd_env_is_merged(tmp_path):
    res = run_cmd("echo $WORKSTRAP_TEST_VAR", tmp_path, env={"WORKSTRAP_TEST_VAR": "val"})
    assert res.stdout.strip() == "val"


def test_run_cmd_redacts_secrets_in_errors(tmp_path):
    redactor = Redactor().with_secrets("s3cret-value")
    with pytest.raises(CommandError) as exc:
        run_cmd("echo s3cret-value >&2; exit 1", tmp_path, redactor=redactor)

    assert "s3cret-value" not in str(exc.value)
    assert "[REDACTED]" in str(exc.value)


def test_helpers(tmp_path):
    assert succeeds("true")
    assert not succeeds("false")
    assert output_of("echo '  padded  '") == "padded"
    assert output_of("exit 1") is None


def test_which(tmp_path, monkeypatch):
    tool = tmp_path / "mytool"
    tool.write_text("#!/bin/sh\n", encoding="utf-8")
    tool.chmod(0o755)
    monkeypatch.setenv("PATH", str(tmp_path))

    assert which("mytool") == str(tool)
    assert which("othertool") is None


def test_format_cmd():
    assert format_cmd(["echo", "a b"]) == "echo 'a b'"
    assert format_cmd("echo hi") == "echo hi"


def test_timeout_expired_is_not_raised(tmp_path):
    with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("x", 1)):
        res = run_cmd(["x"], tmp_path, timeout_s=1, check=False)
    assert res.returncode == 124
