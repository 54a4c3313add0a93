"""External shell invocation.

Each submitted line runs as ``<executable> <args...> <line>`` in a fresh
process; the wrapper never keeps a shell alive between commands. Output is
decoded as UTF-8 with undecodable bytes replaced.
"""

from __future__ import annotations

import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath


class ShellError(Exception):
    """The shell could not be launched or did not finish in time."""


@dataclass
class ShellResult:
    stdout: str
    stderr: str
    returncode: int


class ShellRunner:
    def __init__(
        self,
        executable: str,
        args: list[str] | None = None,
        timeout: float | None = 120,
    ) -> None:
        self.executable = executable
        self.args = list(args or [])
        self.timeout = timeout
        self._lock = threading.Lock()
        self._procs: set[subprocess.Popen[str]] = set()
        self._closed = False

    @property
    def is_powershell(self) -> bool:
        name = PureWindowsPath(self.executable).name.lower()
        return name.removesuffix(".exe") in ("powershell", "pwsh")

    def run(self, line: str) -> ShellResult:
        """Run *line* to completion and capture its output.

        Raises:
            ShellError: If the executable is missing, the call times out or
                the OS refuses to start it.
        """
        try:
            proc = subprocess.Popen(
                [self.executable, *self.args, line],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise ShellError(f"shell not found: {self.executable}") from e
        except OSError as e:
            raise ShellError(str(e)) from e

        with self._lock:
            self._procs.add(proc)
            if self._closed:
                proc.kill()
        try:
            stdout, stderr = proc.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            proc.communicate()
            raise ShellError(f"timed out after {self.timeout}s: {line}") from e
        finally:
            with self._lock:
                self._procs.discard(proc)
        return ShellResult(stdout, stderr, proc.returncode)

    def terminate(self) -> None:
        """Kill every running child and refuse to leave new ones running."""
        with self._lock:
            self._closed = True
            procs = list(self._procs)
        for proc in procs:
            proc.kill()


def is_cd(line: str) -> bool:
    parts = line.split(maxsplit=1)
    return bool(parts) and parts[0].lower() == "cd"


def change_directory(line: str) -> Path:
    """Apply a ``cd`` line to the process working directory.

    No argument goes to the home directory. Surrounding quotes are removed.

    Raises:
        OSError: If the target does not exist or is not a directory.
    """
    parts = line.split(maxsplit=1)
    target = parts[1].strip().strip("\"'") if len(parts) > 1 else ""
    os.chdir(os.path.expanduser(target or "~"))
    return Path.cwd()
