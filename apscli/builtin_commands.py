"""The always-available local commands: help, clear and quit."""

from __future__ import annotations

from collections.abc import Sequence

from apscli.keywords import CATEGORIES
from apscli.output import PROMPT, SUCCESS, OutputSink
from apscli.router import Command, CommandRegistry, Outcome

SHORTCUTS: list[tuple[str, str]] = [
    ("Tab", "Command auto-completion (press again to cycle)"),
    ("Enter", "Run the current line"),
    ("Esc", "Clear current input"),
    ("PgUp/PgDn", "Scroll the output log"),
    ("Ctrl+C", "Quit the application"),
]


class HelpCommand(Command):
    name = "help"
    description = "Show available commands and help information"

    def __init__(
        self,
        registry: CommandRegistry,
        categories: dict[str, list[str]] | None = None,
        prefix: str = "/",
    ) -> None:
        self.registry = registry
        self.categories = CATEGORIES if categories is None else categories
        self.prefix = prefix

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append("Available Slash Commands:", SUCCESS)
        width = max((len(c.name) for c in self.registry), default=0) + len(self.prefix)
        for command in sorted(self.registry, key=lambda c: c.name):
            label = f"{self.prefix}{command.name}"
            sink.append(f"  {label:<{width}}  - {command.describe()}", PROMPT)

        for title, commands in self.categories.items():
            sink.append("")
            sink.append(f"{title}:", SUCCESS)
            for cmd in commands:
                sink.append(f"  {cmd}", PROMPT)

        sink.append("")
        sink.append("Keyboard Shortcuts:", SUCCESS)
        for key, text in SHORTCUTS:
            sink.append(f"  {key:<10}  - {text}", PROMPT)


class ClearCommand(Command):
    name = "clear"
    description = "Clear the terminal output"

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.clear()


class QuitCommand(Command):
    name = "quit"
    description = "Exit the application"

    def execute(self, args: Sequence[str], sink: OutputSink) -> Outcome:
        return Outcome.QUIT
