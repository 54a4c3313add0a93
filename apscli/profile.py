"""Discover user-defined functions and aliases from the PowerShell profile."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from apscli.shell import ShellError, ShellRunner

logger = logging.getLogger(__name__)

_FUNCTION_RE = re.compile(r"^\s*function\s+(\w+[-\w]*)", re.IGNORECASE | re.MULTILINE)
_ALIAS_RE = re.compile(
    r"^\s*(?:Set|New)-Alias\s+(?:-Name\s+)?(\w+[-\w]*)", re.IGNORECASE | re.MULTILINE
)


def parse_profile_names(text: str) -> list[str]:
    """Function names, then alias names, declared at line start in *text*."""
    names = _FUNCTION_RE.findall(text) + _ALIAS_RE.findall(text)
    return list(dict.fromkeys(names))


def fetch_profile_names(runner: ShellRunner) -> list[str]:
    """Ask the shell where its profile lives, read it and parse it.

    Returns an empty list for non-PowerShell shells and on any failure.
    """
    if not runner.is_powershell:
        return []
    try:
        result = runner.run("Write-Output $PROFILE")
    except ShellError as e:
        logger.warning("could not query profile path: %s", e)
        return []

    lines = result.stdout.strip().splitlines()
    if not lines:
        return []
    profile = Path(lines[-1].strip())
    try:
        text = profile.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as e:
        logger.warning("could not read profile %s: %s", profile, e)
        return []
    return parse_profile_names(text)
