"""Tests for apscli.shell and apscli.profile."""

from __future__ import annotations

import os
import subprocess
import sys
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from apscli.profile import fetch_profile_names, parse_profile_names
from apscli.shell import ShellError, ShellResult, ShellRunner, change_directory, is_cd

# ── ShellRunner ────────────────────────────────────────────────────────────


def _popen(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.communicate.return_value = (stdout, stderr)
    proc.returncode = returncode
    return proc


class TestShellRunner:
    @patch("apscli.shell.subprocess.Popen")
    def test_builds_command_line(self, mock_popen: MagicMock) -> None:
        mock_popen.return_value = _popen("hi\n")
        result = ShellRunner("pwsh", ["-NoLogo", "-Command"], timeout=5).run("Get-Date")
        args, kwargs = mock_popen.call_args
        assert args[0] == ["pwsh", "-NoLogo", "-Command", "Get-Date"]
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["errors"] == "replace"
        mock_popen.return_value.communicate.assert_called_once_with(timeout=5)
        assert result == ShellResult("hi\n", "", 0)

    @patch("apscli.shell.subprocess.Popen")
    def test_nonzero_exit_is_not_an_error(self, mock_popen: MagicMock) -> None:
        mock_popen.return_value = _popen("", "boom\n", 1)
        result = ShellRunner("sh", ["-c"]).run("false")
        assert result.returncode == 1
        assert result.stderr == "boom\n"

    @patch("apscli.shell.subprocess.Popen", side_effect=FileNotFoundError)
    def test_missing_executable(self, mock_popen: MagicMock) -> None:
        with pytest.raises(ShellError, match="shell not found: nosuchshell"):
            ShellRunner("nosuchshell").run("x")

    @patch("apscli.shell.subprocess.Popen")
    def test_timeout_kills_child(self, mock_popen: MagicMock) -> None:
        proc = _popen()
        proc.communicate.side_effect = [subprocess.TimeoutExpired(cmd="x", timeout=1), ("", "")]
        mock_popen.return_value = proc
        with pytest.raises(ShellError, match="timed out"):
            ShellRunner("sh", ["-c"], timeout=1).run("sleep 5")
        proc.kill.assert_called_once_with()

    @patch("apscli.shell.subprocess.Popen", side_effect=PermissionError("denied"))
    def test_os_error(self, mock_popen: MagicMock) -> None:
        with pytest.raises(ShellError, match="denied"):
            ShellRunner("sh").run("x")

    def test_undecodable_output_is_replaced(self) -> None:
        runner = ShellRunner(sys.executable, ["-c"], timeout=30)
        result = runner.run("import sys; sys.stdout.buffer.write(b'\\xff\\xfe bad')")
        assert result.stdout == "\ufffd\ufffd bad"
        assert result.returncode == 0

    def test_terminate_kills_running_child(self) -> None:
        runner = ShellRunner(sys.executable, ["-c"], timeout=60)
        results: list[ShellResult] = []
        worker = threading.Thread(
            target=lambda: results.append(runner.run("import time; time.sleep(30)"))
        )
        start = time.monotonic()
        worker.start()
        time.sleep(0.5)
        runner.terminate()
        worker.join(10)
        assert not worker.is_alive()
        assert time.monotonic() - start < 10
        assert results[0].returncode != 0

    def test_terminated_runner_kills_new_children(self) -> None:
        runner = ShellRunner(sys.executable, ["-c"], timeout=60)
        runner.terminate()
        start = time.monotonic()
        result = runner.run("import time; time.sleep(30)")
        assert time.monotonic() - start < 10
        assert result.returncode != 0

    @pytest.mark.parametrize(
        ("executable", "expected"),
        [
            ("powershell", True),
            ("pwsh", True),
            (r"C:\Windows\System32\WindowsPowerShell\v1.0\powershell.exe", True),
            ("/usr/bin/pwsh", True),
            ("sh", False),
            ("bash", False),
        ],
    )
    def test_is_powershell(self, executable: str, expected: bool) -> None:
        assert ShellRunner(executable).is_powershell is expected


# ── cd handling ────────────────────────────────────────────────────────────


class TestChangeDirectory:
    @pytest.mark.parametrize(
        ("line", "expected"),
        [("cd", True), ("cd src", True), ("CD ..", True), ("cdx", False), ("ls", False), ("", False)],
    )
    def test_is_cd(self, line: str, expected: bool) -> None:
        assert is_cd(line) is expected

    def test_relative(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "a b").mkdir()
        monkeypatch.chdir(tmp_path)
        assert change_directory('cd "a b"') == (tmp_path / "a b").resolve()

    def test_no_argument_goes_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
        monkeypatch.chdir(os.sep)
        assert change_directory("cd") == tmp_path.resolve()

    def test_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(OSError):
            change_directory("cd missing")


# ── Profile parsing ────────────────────────────────────────────────────────

PROFILE = """\
# My profile
function Git-Sync { git pull --rebase }
  function ll {
    Get-ChildItem -Force
  }
FUNCTION Up-Dir { Set-Location .. }
Set-Alias gs Get-Status
Set-Alias -Name np -Value notepad
New-Alias which Get-Command
# function commented-out
$x = "function inline"
Set-Alias gs Get-Status
"""


class TestParseProfileNames:
    def test_functions_then_aliases(self) -> None:
        assert parse_profile_names(PROFILE) == [
            "Git-Sync",
            "ll",
            "Up-Dir",
            "gs",
            "np",
            "which",
        ]

    def test_empty(self) -> None:
        assert parse_profile_names("") == []


class TestFetchProfileNames:
    def _runner(self, stdout: str = "", powershell: bool = True) -> MagicMock:
        runner = MagicMock(spec=ShellRunner)
        runner.is_powershell = powershell
        runner.run.return_value = ShellResult(stdout, "", 0)
        return runner

    def test_reads_profile(self, tmp_path: Path) -> None:
        profile = tmp_path / "Microsoft.PowerShell_profile.ps1"
        profile.write_text(PROFILE, encoding="utf-8-sig")
        runner = self._runner(f"{profile}\n")
        assert fetch_profile_names(runner)[:2] == ["Git-Sync", "ll"]
        runner.run.assert_called_once_with("Write-Output $PROFILE")

    def test_missing_profile(self, tmp_path: Path) -> None:
        assert fetch_profile_names(self._runner(f"{tmp_path / 'none.ps1'}\n")) == []

    def test_no_output(self) -> None:
        assert fetch_profile_names(self._runner("")) == []

    def test_shell_failure(self) -> None:
        runner = self._runner()
        runner.run.side_effect = ShellError("shell not found: pwsh")
        assert fetch_profile_names(runner) == []

    def test_not_powershell(self) -> None:
        runner = self._runner(powershell=False)
        assert fetch_profile_names(runner) == []
        runner.run.assert_not_called()
