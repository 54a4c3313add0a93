"""One interactive session: input buffer, completion, routing and shell jobs.

The session is driven from a single thread (the terminal loop). Slow work
(shell commands, profile discovery, completion lookups) runs on worker
threads; finished shell jobs and profile lookups are applied to the output
sink only from :meth:`Session.poll`, on the driving thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

from apscli.completion import (
    CandidateProvider,
    CompletionEngine,
    DynamicNameProvider,
    FilesystemProvider,
    ScriptNameProvider,
    StaticKeywordProvider,
)
from apscli.config import DEFAULT_CONFIG
from apscli.keywords import completion_keywords
from apscli.output import ERROR, INFO, PROMPT, SUCCESS, WARNING, OutputSink
from apscli.plugins import build_registry
from apscli.profile import fetch_profile_names
from apscli.router import Empty, Outcome, classify, dispatch
from apscli.shell import ShellError, ShellResult, ShellRunner, change_directory, is_cd

logger = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        config: dict[str, Any],
        sink: OutputSink,
        runner: ShellRunner | None = None,
    ) -> None:
        shell_cfg: dict[str, Any] = config.get("shell", DEFAULT_CONFIG["shell"])
        comp_cfg: dict[str, Any] = config.get("completion", DEFAULT_CONFIG["completion"])
        cmd_cfg: dict[str, Any] = config.get("commands", DEFAULT_CONFIG["commands"])

        self.sink = sink
        self.runner = runner or ShellRunner(
            str(shell_cfg["executable"]),
            list(shell_cfg.get("args", [])),
            shell_cfg.get("timeout"),
        )
        self.prefix = str(cmd_cfg.get("prefix", "/"))
        self.buffer = ""
        self.profile_names: list[str] = []

        self._shell_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="apscli-shell")
        self._io_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="apscli-io")
        self._job: Future[ShellResult] | None = None
        self._job_line = ""
        self._profile_job: Future[list[str]] | None = None

        self.engine = CompletionEngine(self._io_pool if comp_cfg.get("parallel", True) else None)
        manifest = str(comp_cfg.get("manifest", "package.json"))
        self.providers: list[CandidateProvider] = [
            ScriptNameProvider(lambda: Path.cwd() / manifest, str(comp_cfg["script_prefix"])),
            DynamicNameProvider(lambda: self.profile_names),
            FilesystemProvider(),
            StaticKeywordProvider(completion_keywords()),
        ]

        plugin_dir = str(cmd_cfg.get("plugin_dir") or "")
        self.registry = build_registry(
            self.run_external,
            prefix=self.prefix,
            manifest=manifest,
            plugin_dir=Path(plugin_dir).expanduser() if plugin_dir else None,
        )

    # ── Input editing ──────────────────────────────────────────────────────

    @property
    def prompt(self) -> str:
        return f"PS {Path.cwd()}>"

    def insert(self, text: str) -> None:
        self.buffer += text
        self.engine.reset()

    def backspace(self) -> None:
        self.buffer = self.buffer[:-1]
        self.engine.reset()

    def cancel(self) -> None:
        self.buffer = ""
        self.engine.reset()

    def complete(self) -> str | None:
        """Tab: fill the buffer with the next suggestion for what was typed.

        Repeated calls cycle because the query stays the text typed before
        the first Tab.
        """
        raw = self.engine.state.raw_input
        query = raw if raw is not None else self.buffer
        self.engine.request_suggestions(query, self.providers)
        suggestion = self.engine.advance_cursor()
        if suggestion is not None:
            self.buffer = suggestion
        return suggestion

    @property
    def suggestions(self) -> list[str]:
        return list(self.engine.state.candidates)

    # ── Submission ─────────────────────────────────────────────────────────

    def submit(self) -> Outcome:
        line = self.buffer
        self.buffer = ""
        self.engine.reset()
        routed = classify(line, self.prefix)
        if isinstance(routed, Empty):
            return Outcome.CONTINUE
        self.sink.append(f"{self.prompt} {line.strip()}", PROMPT)
        return dispatch(routed, self.registry, self.sink, self.run_external)

    @property
    def busy(self) -> bool:
        return self._job is not None

    def run_external(self, line: str) -> bool:
        """Start *line* on the shell unless another command is still running.

        ``cd`` is applied immediately. Returns False when the line was
        rejected as busy.
        """
        if is_cd(line):
            try:
                change_directory(line)
            except OSError as e:
                self.sink.append(f"cd: {e}", ERROR)
            return True
        if self._job is not None:
            self.sink.append(f"busy: '{self._job_line}' is still running", WARNING)
            return False
        logger.debug("running %r", line)
        self._job_line = line
        self._job = self._shell_pool.submit(self.runner.run, line)
        return True

    # ── Background work ────────────────────────────────────────────────────

    def load_profile_names(self) -> None:
        if self._profile_job is None:
            self._profile_job = self._io_pool.submit(fetch_profile_names, self.runner)

    def poll(self) -> bool:
        """Apply finished background work to the sink. True if anything changed."""
        changed = False
        job = self._job
        if job is not None and job.done():
            self._job = None
            self._job_line = ""
            self._report(job)
            changed = True

        profile_job = self._profile_job
        if profile_job is not None and profile_job.done():
            self._profile_job = None
            self._apply_profile(profile_job)
            changed = True
        return changed

    def _report(self, job: Future[ShellResult]) -> None:
        try:
            result = job.result()
        except ShellError as e:
            logger.warning("shell failed: %s", e)
            self.sink.append(f"Error: {e}", ERROR)
            return
        except Exception as e:
            logger.exception("shell job crashed")
            self.sink.append(f"Error: {e}", ERROR)
            return
        if result.stderr.strip():
            self.sink.append(result.stderr.rstrip(), WARNING)
        if result.stdout.strip():
            self.sink.append(result.stdout.rstrip(), INFO)

    def _apply_profile(self, job: Future[list[str]]) -> None:
        try:
            self.profile_names = job.result()
        except Exception as e:
            logger.exception("profile discovery crashed")
            self.sink.append(f"Could not load PowerShell profile: {e}", ERROR)
            return
        if self.runner.is_powershell:
            self.sink.append(
                f"Loaded {len(self.profile_names)} commands from PowerShell profile",
                SUCCESS,
            )

    def wait(self, timeout: float | None = None) -> None:
        """Block until outstanding background work finishes, then poll."""
        pending = [f for f in (self._job, self._profile_job) if f is not None]
        if pending:
            wait(pending, timeout=timeout)
        self.poll()

    def close(self) -> None:
        """Kill running shell children and stop the worker pools without waiting."""
        self.runner.terminate()
        self._shell_pool.shutdown(wait=False, cancel_futures=True)
        self._io_pool.shutdown(wait=False, cancel_futures=True)
