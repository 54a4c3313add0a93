"""Settings for apscli: shell, completion, local commands, status thresholds.

Files are TOML. ``--config PATH`` wins over ``~/.config/apscli/config.toml``;
whatever a file leaves out keeps its value from ``DEFAULT_CONFIG``.
"""

from __future__ import annotations

import copy
import shutil
import sys
import tomllib
from pathlib import Path
from typing import Any


def _default_shell() -> dict[str, Any]:
    """Pick the shell to wrap: PowerShell where it exists, ``sh`` otherwise."""
    if sys.platform == "win32":
        return {"executable": "powershell", "args": ["-NoLogo", "-Command"]}
    if shutil.which("pwsh"):
        return {"executable": "pwsh", "args": ["-NoLogo", "-Command"]}
    return {"executable": "sh", "args": ["-c"]}


DEFAULT_CONFIG: dict[str, Any] = {
    "refresh_interval": 1.5,
    "scrollback": 1000,
    "shell": {**_default_shell(), "timeout": 120},
    "completion": {
        "script_prefix": "npm run ",
        "manifest": "package.json",
        "max_display": 10,
        "parallel": True,
    },
    "commands": {"prefix": "/", "plugin_dir": ""},
    "thresholds": {
        "cpu_percent": {"warning": 80.0, "critical": 95.0},
        "ram_percent": {"warning": 85.0, "critical": 95.0},
        "disk_percent": {"warning": 85.0, "critical": 95.0},
    },
    "log": {"file": "", "level": "WARNING"},
}

_DEFAULT_PATH = Path.home() / ".config" / "apscli" / "config.toml"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *overlay* applied; tables merge at every depth.

    A value whose type differs from the default it replaces is dropped with a
    warning, so ``args = "-c"`` cannot stand in for a list.
    """
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        elif key in merged and not _same_kind(current, value):
            print(
                f"apscli: warning: ignoring {key} = {value!r}, "
                f"expected {type(current).__name__}",
                file=sys.stderr,
            )
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _same_kind(default: Any, value: Any) -> bool:
    if default is None:
        return True
    if isinstance(default, bool) or isinstance(value, bool):
        return type(default) is type(value)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Build the effective configuration.

    An explicit *path* (``--config``) must exist and parse, otherwise the
    process exits with status 1. Without one, a broken file at the default
    location is reported and skipped. The result never shares state with
    ``DEFAULT_CONFIG``.
    """
    if path is None:
        if not _DEFAULT_PATH.is_file():
            return copy.deepcopy(DEFAULT_CONFIG)
        try:
            return _deep_merge(DEFAULT_CONFIG, _read_toml(_DEFAULT_PATH))
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"apscli: warning: ignoring {_DEFAULT_PATH}: {e}", file=sys.stderr)
            return copy.deepcopy(DEFAULT_CONFIG)

    try:
        user_config = _read_toml(path)
    except FileNotFoundError as e:
        print(f"apscli: config file not found: {path}", file=sys.stderr)
        raise SystemExit(1) from e
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"apscli: cannot load {path}: {e}", file=sys.stderr)
        raise SystemExit(1) from e
    return _deep_merge(DEFAULT_CONFIG, user_config)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return str(value)


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# apscli configuration",
        "# Place this file at ~/.config/apscli/config.toml",
        "",
        f"refresh_interval = {DEFAULT_CONFIG['refresh_interval']}",
        f"scrollback = {DEFAULT_CONFIG['scrollback']}",
        "",
    ]

    for section in ("shell", "completion", "commands", "log"):
        lines.append(f"[{section}]")
        for key, value in DEFAULT_CONFIG[section].items():
            lines.append(f"{key} = {_toml_value(value)}")
        lines.append("")

    for metric, levels in DEFAULT_CONFIG["thresholds"].items():
        lines.append(f"[thresholds.{metric}]")
        lines.append(f"warning = {levels['warning']}")
        lines.append(f"critical = {levels['critical']}")
        lines.append("")

    return "\n".join(lines) + "\n"
