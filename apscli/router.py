"""Command routing: classify a submitted line and dispatch it.

A line starting with the command prefix (``/`` by default) is a local
command looked up in a :class:`CommandRegistry`; anything else non-empty is
passed through to the external shell.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from apscli.output import ERROR, WARNING, OutputSink

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/"


class Outcome(enum.Enum):
    """What the host should do after a dispatch."""

    CONTINUE = "continue"
    QUIT = "quit"


# ── Routed command variants ────────────────────────────────────────────────


@dataclass
class Local:
    name: str
    args: list[str] = field(default_factory=lambda: list[str]())


@dataclass
class Passthrough:
    line: str


@dataclass
class Empty:
    pass


RoutedCommand = Local | Passthrough | Empty


# ── Commands and registry ──────────────────────────────────────────────────


class Command(ABC):
    """A local command. ``execute`` may return :attr:`Outcome.QUIT`."""

    name: str = ""
    description: str = ""

    @abstractmethod
    def execute(self, args: Sequence[str], sink: OutputSink) -> Outcome | None: ...

    def describe(self) -> str:
        return self.description


class CommandRegistry:
    """Name → command mapping, keyed case-sensitively."""

    def __init__(self, commands: Iterable[Command] = ()) -> None:
        self._commands: dict[str, Command] = {}
        for command in commands:
            self.register(command)

    def register(self, command: Command) -> None:
        if not command.name:
            raise ValueError(f"command {command!r} has no name")
        if command.name in self._commands:
            raise ValueError(f"duplicate command name: {command.name}")
        self._commands[command.name] = command

    def get(self, name: str) -> Command | None:
        return self._commands.get(name)

    def names(self) -> list[str]:
        return list(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)


# ── Routing ────────────────────────────────────────────────────────────────


def classify(line: str, prefix: str = DEFAULT_PREFIX) -> RoutedCommand:
    stripped = line.strip()
    if not stripped:
        return Empty()
    if stripped.startswith(prefix):
        tokens = stripped[len(prefix) :].split()
        if not tokens:
            return Local("")
        return Local(tokens[0], tokens[1:])
    return Passthrough(stripped)


def dispatch(
    routed: RoutedCommand,
    registry: CommandRegistry,
    sink: OutputSink,
    shell: Callable[[str], object] | None = None,
) -> Outcome:
    """Run *routed* against *registry*.

    Handler failures and unknown names are reported to *sink* and never
    raised. Passthrough lines go to *shell*.
    """
    if isinstance(routed, Local):
        command = registry.get(routed.name)
        if command is None:
            sink.append(f"Unknown command: {routed.name}", WARNING)
            return Outcome.CONTINUE
        try:
            outcome = command.execute(list(routed.args), sink)
        except Exception as e:
            logger.exception("command %s failed", routed.name)
            sink.append(f"Error executing command {routed.name}: {e}", ERROR)
            return Outcome.CONTINUE
        return Outcome.QUIT if outcome is Outcome.QUIT else Outcome.CONTINUE

    if isinstance(routed, Passthrough):
        if shell is None:
            sink.append(f"No shell available for: {routed.line}", WARNING)
        else:
            shell(routed.line)
    return Outcome.CONTINUE
