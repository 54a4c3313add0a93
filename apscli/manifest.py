"""Project manifest (package.json) reading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_manifest(path: Path) -> dict[str, Any]:
    """Return the parsed manifest, or ``{}`` when it is absent or unreadable."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.debug("ignoring unreadable manifest %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def load_scripts(path: Path) -> dict[str, str]:
    """Return the ``scripts`` table of the manifest at *path*.

    Non-string script bodies are dropped; anything malformed yields ``{}``.
    """
    scripts = load_manifest(path).get("scripts")
    if not isinstance(scripts, dict):
        return {}
    return {name: body for name, body in scripts.items() if isinstance(body, str)}
