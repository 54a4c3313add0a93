"""Tab completion: candidate providers and the cycling completion engine.

Providers are merged in a fixed priority order (script names, then names
from the shell profile, then filesystem entries, then static keywords) and
deduplicated keeping the first occurrence. The engine caches the merged list
for the last input it saw and cycles through it on repeated requests.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from apscli.manifest import load_scripts

logger = logging.getLogger(__name__)

# Lower runs first in the merged list.
PRIORITY_SCRIPT = 0
PRIORITY_DYNAMIC = 1
PRIORITY_FILESYSTEM = 2
PRIORITY_STATIC = 3


class CandidateProvider(Protocol):
    priority: int

    def produce(self, text: str) -> Sequence[str]: ...


def _prefix_filter(names: Sequence[str], text: str) -> list[str]:
    needle = text.lower()
    return [name for name in names if name.lower().startswith(needle)]


# ── Providers ──────────────────────────────────────────────────────────────


class StaticKeywordProvider:
    """Fixed keyword list, case-insensitive prefix match. Empty input yields nothing."""

    priority = PRIORITY_STATIC

    def __init__(self, keywords: Sequence[str]) -> None:
        self.keywords = list(keywords)

    def produce(self, text: str) -> list[str]:
        if not text:
            return []
        return _prefix_filter(self.keywords, text)


class FilesystemProvider:
    """Complete the last word of the input as a path.

    ``"cd src/co"`` lists ``src`` (relative to *root*, default the current
    directory) and returns ``"cd src/core/"`` style candidates. Directories
    carry a trailing separator; a missing directory yields nothing.
    """

    priority = PRIORITY_FILESYSTEM

    def __init__(self, root: Path | None = None) -> None:
        self.root = root

    def produce(self, text: str) -> list[str]:
        head, sep, fragment = text.rpartition(" ")
        lead = head + sep
        if fragment == "~":
            fragment = "~" + os.sep
        dirname, base = os.path.split(fragment)
        base_dir = self.root if self.root is not None else Path.cwd()
        target = base_dir / os.path.expanduser(dirname) if dirname else base_dir
        try:
            entries = os.listdir(target)
        except OSError:
            return []

        needle = base.lower()
        results: list[str] = []
        for name in entries:
            if not name.lower().startswith(needle):
                continue
            path = os.path.join(dirname, name) if dirname else name
            if (target / name).is_dir():
                path += os.sep
            results.append(lead + path)
        return results


class ScriptNameProvider:
    """Manifest script names behind a fixed prefix such as ``"npm run "``.

    The bare prefix without its trailing space (``"npm run"``) lists every
    script.
    """

    priority = PRIORITY_SCRIPT

    def __init__(
        self,
        manifest: Path | Callable[[], Path],
        prefix: str = "npm run ",
    ) -> None:
        self.manifest = manifest
        self.prefix = prefix

    def _manifest_path(self) -> Path:
        if callable(self.manifest):
            return self.manifest()
        return self.manifest

    def produce(self, text: str) -> list[str]:
        if text == self.prefix.rstrip():
            fragment = ""
        elif text.startswith(self.prefix):
            fragment = text[len(self.prefix) :]
        else:
            return []
        scripts = load_scripts(self._manifest_path())
        return [self.prefix + name for name in _prefix_filter(list(scripts), fragment)]


class DynamicNameProvider:
    """Names discovered at runtime and cached by the host (profile functions, aliases)."""

    priority = PRIORITY_DYNAMIC

    def __init__(self, names: Callable[[], Sequence[str]]) -> None:
        self.names = names

    def produce(self, text: str) -> list[str]:
        if not text:
            return []
        return _prefix_filter(list(self.names()), text)


# ── Engine ─────────────────────────────────────────────────────────────────


@dataclass
class CompletionState:
    """Completion state of one input session.

    ``raw_input`` is None when idle; ``cursor`` is -1 until the first
    ``advance_cursor``.
    """

    raw_input: str | None = None
    candidates: list[str] = field(default_factory=lambda: list[str]())
    cursor: int = -1


def _safe_produce(provider: CandidateProvider, text: str) -> list[str]:
    try:
        return list(provider.produce(text))
    except Exception:
        logger.debug("completion provider %r failed", provider, exc_info=True)
        return []


class CompletionEngine:
    """Merge provider output for an input and cycle through the result.

    With an *executor*, providers are queried concurrently; the merge order
    is always the providers' priority order.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self.state = CompletionState()
        self.executor = executor

    def request_suggestions(
        self, text: str, providers: Sequence[CandidateProvider]
    ) -> list[str]:
        if self.state.raw_input is not None and text == self.state.raw_input:
            return list(self.state.candidates)

        ordered = sorted(providers, key=lambda p: p.priority)
        if self.executor is not None and len(ordered) > 1:
            futures = [self.executor.submit(_safe_produce, p, text) for p in ordered]
            batches = [f.result() for f in futures]
        else:
            batches = [_safe_produce(p, text) for p in ordered]

        merged = dict.fromkeys(c for batch in batches for c in batch)
        self.state.raw_input = text
        self.state.candidates = list(merged)
        self.state.cursor = -1
        return list(self.state.candidates)

    def advance_cursor(self) -> str | None:
        candidates = self.state.candidates
        if not candidates:
            return None
        self.state.cursor = (self.state.cursor + 1) % len(candidates)
        return candidates[self.state.cursor]

    def reset(self) -> None:
        self.state.raw_input = None
        self.state.candidates = []
        self.state.cursor = -1

    @property
    def active(self) -> bool:
        return self.state.raw_input is not None
