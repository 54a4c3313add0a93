"""Building the command registry.

Built-in and project commands are registered explicitly. Extra commands can
be dropped into a plugin directory: every ``*.py`` file there is imported and
must define a module-level ``COMMAND`` (a :class:`~apscli.router.Command`
instance). Files that fail to import or lack a usable ``COMMAND`` are logged
and skipped.
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path

from apscli.builtin_commands import ClearCommand, HelpCommand, QuitCommand
from apscli.project_commands import (
    AnalyzeCommand,
    CreateCommand,
    FindPackCommand,
    InstructCommand,
    ListCommand,
    RunExternal,
    SummaryCommand,
)
from apscli.router import Command, CommandRegistry

logger = logging.getLogger(__name__)


def load_plugin_commands(directory: Path) -> list[Command]:
    """Import every ``*.py`` in *directory* and collect their ``COMMAND``s."""
    commands: list[Command] = []
    try:
        files = sorted(directory.glob("*.py"))
    except OSError as e:
        logger.warning("cannot read plugin directory %s: %s", directory, e)
        return commands

    for path in files:
        module_name = f"apscli_plugin_{path.stem}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ImportError("no loader")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            logger.warning("skipping plugin %s: %s", path.name, e)
            continue

        command = getattr(module, "COMMAND", None)
        if not isinstance(command, Command) or not command.name:
            logger.warning("skipping plugin %s: no COMMAND defined", path.name)
            continue
        commands.append(command)
    return commands


def build_registry(
    run: RunExternal,
    prefix: str = "/",
    manifest: str = "package.json",
    plugin_dir: Path | None = None,
) -> CommandRegistry:
    registry = CommandRegistry()
    for command in (
        HelpCommand(registry, prefix=prefix),
        ClearCommand(),
        QuitCommand(),
        AnalyzeCommand(manifest),
        SummaryCommand(manifest),
        InstructCommand(prefix),
        CreateCommand(run),
        FindPackCommand(run),
        ListCommand(run),
    ):
        registry.register(command)

    if plugin_dir is not None:
        for command in load_plugin_commands(plugin_dir):
            if command.name in registry:
                logger.warning("plugin command %s shadows a built-in, skipped", command.name)
                continue
            registry.register(command)
    return registry
