"""Tests for apscli.router."""

from __future__ import annotations

from collections.abc import Sequence
from unittest.mock import MagicMock

import pytest

from apscli.output import ERROR, WARNING, OutputLog, OutputSink
from apscli.router import (
    Command,
    CommandRegistry,
    Empty,
    Local,
    Outcome,
    Passthrough,
    classify,
    dispatch,
)


class EchoCommand(Command):
    name = "echo"
    description = "Echo arguments"

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append(" ".join(args))


class BoomCommand(Command):
    name = "boom"
    description = "Always fails"

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        raise RuntimeError("kaboom")


class StopCommand(Command):
    name = "stop"

    def execute(self, args: Sequence[str], sink: OutputSink) -> Outcome:
        return Outcome.QUIT


# ── classify ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("", Empty()),
        ("   ", Empty()),
        ("\t\n", Empty()),
        ("/help", Local("help", [])),
        ("/create license", Local("create", ["license"])),
        ("  /findpack  left  pad ", Local("findpack", ["left", "pad"])),
        ("/Help", Local("Help", [])),
        ("/", Local("", [])),
        ("ls -la", Passthrough("ls -la")),
        ("  Get-ChildItem  ", Passthrough("Get-ChildItem")),
        ("npm run build", Passthrough("npm run build")),
    ],
)
def test_classify(line: str, expected: object) -> None:
    assert classify(line) == expected


def test_classify_custom_prefix() -> None:
    assert classify(":help", prefix=":") == Local("help", [])
    assert classify("/help", prefix=":") == Passthrough("/help")


# ── CommandRegistry ────────────────────────────────────────────────────────


class TestCommandRegistry:
    def test_lookup_is_case_sensitive(self) -> None:
        registry = CommandRegistry([EchoCommand()])
        assert registry.get("echo") is not None
        assert registry.get("Echo") is None
        assert "echo" in registry

    def test_duplicate_rejected(self) -> None:
        registry = CommandRegistry([EchoCommand()])
        with pytest.raises(ValueError):
            registry.register(EchoCommand())

    def test_nameless_rejected(self) -> None:
        cmd = MagicMock(spec=Command)
        cmd.name = ""
        with pytest.raises(ValueError):
            CommandRegistry().register(cmd)

    def test_names_and_len(self) -> None:
        registry = CommandRegistry([EchoCommand(), BoomCommand()])
        assert registry.names() == ["echo", "boom"]
        assert len(registry) == 2
        assert [c.name for c in registry] == ["echo", "boom"]

    def test_describe_defaults_to_description(self) -> None:
        assert EchoCommand().describe() == "Echo arguments"


# ── dispatch ───────────────────────────────────────────────────────────────


class TestDispatch:
    def test_local_runs_handler_with_args(self) -> None:
        log = OutputLog()
        outcome = dispatch(Local("echo", ["a", "b"]), CommandRegistry([EchoCommand()]), log)
        assert outcome is Outcome.CONTINUE
        assert list(log.lines) == [("info", "a b")]

    def test_unknown_command_one_warning(self) -> None:
        log = OutputLog()
        outcome = dispatch(Local("nonexistent", []), CommandRegistry(), log)
        assert outcome is Outcome.CONTINUE
        assert len(log) == 1
        level, text = log.lines[0]
        assert level == WARNING
        assert "nonexistent" in text

    def test_handler_failure_one_error(self) -> None:
        log = OutputLog()
        registry = CommandRegistry([BoomCommand(), EchoCommand()])
        outcome = dispatch(Local("boom", []), registry, log)
        assert outcome is Outcome.CONTINUE
        assert len(log) == 1
        level, text = log.lines[0]
        assert level == ERROR
        assert "kaboom" in text

        # The next cycle works normally
        dispatch(classify("/echo again"), registry, log)
        assert log.lines[-1] == ("info", "again")

    def test_quit_signal_returned(self) -> None:
        log = OutputLog()
        assert dispatch(Local("stop", []), CommandRegistry([StopCommand()]), log) is Outcome.QUIT
        assert len(log) == 0

    def test_passthrough_goes_to_shell(self) -> None:
        shell = MagicMock()
        log = OutputLog()
        dispatch(Passthrough("ls -la"), CommandRegistry(), log, shell)
        shell.assert_called_once_with("ls -la")
        assert len(log) == 0

    def test_passthrough_without_shell_warns(self) -> None:
        log = OutputLog()
        assert dispatch(Passthrough("ls"), CommandRegistry(), log) is Outcome.CONTINUE
        assert log.lines[0][0] == WARNING

    def test_empty_is_noop(self) -> None:
        shell = MagicMock()
        sink = MagicMock()
        assert dispatch(Empty(), CommandRegistry(), sink, shell) is Outcome.CONTINUE
        shell.assert_not_called()
        sink.append.assert_not_called()
        sink.clear.assert_not_called()

    def test_handler_receives_sink(self) -> None:
        sink = MagicMock()
        dispatch(Local("echo", ["hi"]), CommandRegistry([EchoCommand()]), sink)
        sink.append.assert_called_once_with("hi")
