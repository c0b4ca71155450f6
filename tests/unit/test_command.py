"""Unit tests for Command descriptors and process results."""

import errno
import subprocess
import sys
from unittest.mock import patch

import pytest

from procbuilder.core.command import Command, ExitStatus, ProcessOutput, to_string_lossy

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="signals are POSIX-only")


class TestToStringLossy:
    """Test lossy rendering of OS strings."""

    def test_plain_str(self):
        assert to_string_lossy("hello") == "hello"

    def test_valid_bytes(self):
        assert to_string_lossy("héllo".encode()) == "héllo"

    def test_invalid_bytes(self):
        assert to_string_lossy(b"a\xffb") == "a�b"


class TestExitStatus:
    """Test ExitStatus classification and rendering."""

    def test_success(self):
        status = ExitStatus(0)
        assert status.success()
        assert status.code == 0
        assert status.signal is None
        assert str(status) == "exit code: 0"

    def test_failure(self):
        status = ExitStatus(2)
        assert not status.success()
        assert status.code == 2
        assert str(status) == "exit code: 2"

    @posix_only
    def test_signal(self):
        status = ExitStatus(-9)
        assert not status.success()
        assert status.code is None
        assert status.signal == 9
        assert str(status) == "signal: 9"


class TestProcessOutput:
    """Test ProcessOutput defaults and text accessors."""

    def test_defaults(self):
        output = ProcessOutput(status=ExitStatus(0))
        assert output.stdout == b""
        assert output.stderr == b""

    def test_text_is_lossy(self):
        output = ProcessOutput(status=ExitStatus(0), stdout=b"ok\xff", stderr=b"warn")
        assert output.stdout_text == "ok�"
        assert output.stderr_text == "warn"


class TestCommandEnviron:
    """Test resolution of overrides against os.environ."""

    def test_inherits_everything_without_overrides(self, monkeypatch):
        monkeypatch.setenv("PB_CMD_VAR", "ambient")
        env = Command(program="prog").environ()
        assert env["PB_CMD_VAR"] == "ambient"

    def test_set_and_remove(self, monkeypatch):
        monkeypatch.setenv("PB_CMD_KEEP", "keep")
        monkeypatch.setenv("PB_CMD_DROP", "drop")

        env = Command(program="prog", env={"PB_CMD_NEW": "new", "PB_CMD_DROP": None}).environ()

        assert env["PB_CMD_KEEP"] == "keep"
        assert env["PB_CMD_NEW"] == "new"
        assert "PB_CMD_DROP" not in env

    def test_remove_missing_key(self, monkeypatch):
        monkeypatch.delenv("PB_CMD_MISSING", raising=False)
        env = Command(program="prog", env={"PB_CMD_MISSING": None}).environ()
        assert "PB_CMD_MISSING" not in env

    def test_argv(self):
        command = Command(program="git", args=["status", "--short"])
        assert command.argv == ["git", "status", "--short"]


class TestCommandRun:
    """Test the spawn-and-wait primitive."""

    def test_capture(self):
        command = Command(program=sys.executable, args=["-c", "print('hi')"])
        output = command.run(capture=True)
        assert output.status.success()
        assert output.stdout.strip() == b"hi"

    def test_inherit_returns_empty_output(self):
        command = Command(program=sys.executable, args=["-c", "import sys; sys.exit(4)"])
        output = command.run(capture=False)
        assert output.status.code == 4
        assert output.stdout == b""
        assert output.stderr == b""

    def test_run_arguments(self, tmp_path):
        """Test subprocess is called without a shell and without check."""
        command = Command(program="prog", args=["a"], cwd=str(tmp_path), env={"A": "1"})
        completed = subprocess.CompletedProcess(["prog", "a"], 0, b"", b"")

        with patch("procbuilder.core.command.subprocess.run", return_value=completed) as run:
            command.run(capture=True)

        args, kwargs = run.call_args
        assert args[0] == ["prog", "a"]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"]["A"] == "1"
        assert kwargs["shell"] is False
        assert kwargs["check"] is False
        assert kwargs["stdout"] is subprocess.PIPE

    def test_missing_program_raises_os_error(self):
        with pytest.raises(FileNotFoundError):
            Command(program="definitely-not-a-real-binary-xyz").run(capture=True)

    def test_invalid_env_name_raises_os_error(self):
        command = Command(program=sys.executable, args=["-c", "pass"], env={"BAD=NAME": "x"})
        with pytest.raises(OSError) as exc_info:
            command.run(capture=False)
        assert exc_info.value.errno == errno.EINVAL
        assert isinstance(exc_info.value.__cause__, ValueError)
