"""Interactive terminal dashboard for apscli, a shell wrapper.

Shows a system status line, the command output log, completion hints and
an input line using curses. Lines typed at the prompt go to the wrapped
shell; ``/``-prefixed lines run local commands.

Usage:
    uv run apscli
    uv run apscli --interval 2 --config path/to/config.toml
"""

from __future__ import annotations

import argparse
import curses
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import psutil

from apscli.config import DEFAULT_CONFIG, dump_default_config, load_config
from apscli.output import ERROR, INFO, PROMPT, SUCCESS, WARNING, OutputLog
from apscli.router import Outcome
from apscli.session import Session

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────

BAR_FILL = "█"
BAR_EMPTY = "░"
TITLE = "APS CLI"
KEY_TIMEOUT_MS = 100

# Curses colour-pair IDs
C_NORMAL = 1
C_WARNING = 2
C_CRITICAL = 3
C_TITLE = 4
C_DIM = 5
C_BLUE = 6

LEVEL_COLORS: dict[str, int] = {
    INFO: C_DIM,
    PROMPT: C_NORMAL,
    SUCCESS: C_NORMAL,
    WARNING: C_WARNING,
    ERROR: C_CRITICAL,
}


# ── Colour helpers ─────────────────────────────────────────────────────────


def _init_colors() -> None:
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_NORMAL, curses.COLOR_GREEN, -1)
    curses.init_pair(C_WARNING, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_CRITICAL, curses.COLOR_RED, -1)
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    curses.init_pair(C_BLUE, curses.COLOR_BLUE, -1)


def _severity_color(value: float, warn: float, crit: float) -> int:
    if value >= crit:
        return C_CRITICAL
    if value >= warn:
        return C_WARNING
    return C_NORMAL


# ── Status line data ───────────────────────────────────────────────────────


@dataclass
class StatusData:
    """System-wide usage shown in the status line."""

    cpu_percent: float = 0.0
    ram_percent: float = 0.0
    ram_used: int = 0
    ram_total: int = 0
    disk_percent: float = 0.0


def collect_status() -> StatusData:
    cpu = psutil.cpu_percent(interval=None)
    ram = psutil.virtual_memory()
    disk = psutil.disk_usage(Path.cwd().anchor or "/")
    return StatusData(
        cpu_percent=cpu,
        ram_percent=ram.percent,
        ram_used=ram.used,
        ram_total=ram.total,
        disk_percent=disk.percent,
    )


def fmt_bytes(n: int | float) -> str:
    """Human-readable byte count (binary prefixes)."""
    v = float(n)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(v) < 1024:
            return f"{v:.1f} {unit}"
        v /= 1024
    return f"{v:.1f} TiB"


def mini_bar(pct: float, width: int = 10) -> str:
    filled = int(width * min(max(pct, 0.0), 100.0) / 100.0)
    return BAR_FILL * filled + BAR_EMPTY * (width - filled)


def completion_hint(candidates: list[str], max_display: int) -> list[str]:
    """Rows for the completion box: a count, the first entries, then a remainder."""
    rows = [f"Available completions ({len(candidates)}):"]
    rows.extend(candidates[:max_display])
    remaining = len(candidates) - max_display
    if remaining > 0:
        rows.append(f"...and {remaining} more")
    return rows


# ── Curses drawing primitives ──────────────────────────────────────────────


def _put(win: curses.window, y: int, x: int, text: str, attr: int = 0) -> None:
    """Write *text* at (y, x), clipped to the window's right edge."""
    max_y, max_x = win.getmaxyx()
    room = max_x - x - 1
    if not 0 <= y < max_y or room <= 0:
        return
    try:
        win.addstr(y, x, text[:room], attr)
    except curses.error:
        # the bottom-right cell still refuses a write
        pass


def _panel(
    win: curses.window, y: int, h: int, title: str = "", border: int = 0
) -> curses.window | None:
    """Full-width bordered panel starting at row *y*; None if it does not fit."""
    max_y, max_x = win.getmaxyx()
    h = min(h, max_y - y)
    if h < 3 or max_x < 4:
        return None
    try:
        sub = win.subwin(h, max_x, y, 0)
    except curses.error:
        return None
    sub.attron(border)
    sub.box()
    sub.attroff(border)
    if title:
        _put(sub, 0, 2, f" {title} ", curses.color_pair(C_TITLE) | curses.A_BOLD)
    return sub


# ── Panel renderers ────────────────────────────────────────────────────────


def _draw_header(win: curses.window, w: int) -> None:
    ts = time.strftime("%H:%M:%S")
    attr = curses.color_pair(C_TITLE) | curses.A_REVERSE
    _put(win, 0, 0, " " * w, attr)
    _put(win, 0, 1, TITLE, attr | curses.A_BOLD)
    hint = "tab: complete  /help  ctrl+c: quit"
    _put(win, 0, max(0, w - len(hint) - 2), hint, attr)
    _put(win, 0, (w - len(ts)) // 2, ts, attr)


def draw_status_line(
    win: curses.window, y: int, w: int, data: StatusData, thresh: dict[str, Any]
) -> None:
    x = 1
    for label, key, value, extra in (
        ("CPU", "cpu_percent", data.cpu_percent, ""),
        ("MEM", "ram_percent", data.ram_percent, f" {fmt_bytes(data.ram_used)}"),
        ("DISK", "disk_percent", data.disk_percent, ""),
    ):
        warn = float(thresh.get(key, {}).get("warning", 80))
        crit = float(thresh.get(key, {}).get("critical", 95))
        color = _severity_color(value, warn, crit)
        reading = f"{mini_bar(value)} {value:5.1f}%{extra}"
        width = len(label) + 1 + len(reading) + 3
        if x + width >= w:
            break
        _put(win, y, x, f"{label} ", curses.color_pair(C_DIM))
        _put(win, y, x + len(label) + 1, reading, curses.color_pair(color) | curses.A_BOLD)
        x += width


def draw_output_panel(
    win: curses.window, y: int, w: int, h: int, log: OutputLog
) -> None:
    title = "Terminal Output" if log.offset == 0 else f"Terminal Output (+{log.offset})"
    box = _panel(win, y, h, title)
    if not box:
        return
    for row, (level, text) in enumerate(log.visible(h - 2), start=1):
        _put(box, row, 1, text, curses.color_pair(LEVEL_COLORS[level]))


def draw_completion_panel(
    win: curses.window, y: int, w: int, h: int, rows: list[str], selected: str | None
) -> None:
    box = _panel(win, y, h, "Completions", curses.color_pair(C_TITLE))
    if not box:
        return
    for i, text in enumerate(rows[: h - 2], start=1):
        attr = curses.color_pair(C_NORMAL)
        if i == 1:
            attr = curses.color_pair(C_TITLE)
        elif text == selected:
            attr |= curses.A_REVERSE
        _put(box, i, 1, text, attr)


def draw_input(win: curses.window, y: int, w: int, session: Session) -> tuple[int, int]:
    """Draw the prompt box; return the screen position for the cursor."""
    box = _panel(win, y, 3)
    if not box:
        return y, 0
    prompt = session.prompt + " "
    room = max(1, w - 3 - len(prompt))
    text = session.buffer[-room:]
    _put(box, 1, 1, prompt, curses.color_pair(C_NORMAL) | curses.A_BOLD)
    _put(box, 1, 1 + len(prompt), text, curses.color_pair(C_DIM) | curses.A_BOLD)
    return y + 1, min(w - 2, 1 + len(prompt) + len(text))


# ── Key handling ───────────────────────────────────────────────────────────


def handle_key(session: Session, log: OutputLog, key: str | int, page: int) -> Outcome:
    """Apply one key from ``get_wch`` to the session."""
    if key == "\t":
        session.complete()
    elif key in ("\n", "\r", curses.KEY_ENTER):
        return session.submit()
    elif key == "\x1b":
        session.cancel()
    elif key in ("\x7f", "\b", curses.KEY_BACKSPACE):
        session.backspace()
    elif key == curses.KEY_PPAGE:
        log.scroll(page, page)
    elif key == curses.KEY_NPAGE:
        log.scroll(-page, page)
    elif isinstance(key, str) and key.isprintable():
        session.insert(key)
    return Outcome.CONTINUE


# ── Main loop ──────────────────────────────────────────────────────────────


def _dashboard_loop(
    stdscr: curses.window, config: dict[str, Any], interval: float
) -> None:
    _init_colors()
    try:
        curses.curs_set(1)
    except curses.error:
        pass
    stdscr.keypad(True)
    stdscr.timeout(KEY_TIMEOUT_MS)

    thresh: dict[str, Any] = config.get("thresholds", DEFAULT_CONFIG["thresholds"])
    max_display = int(config.get("completion", {}).get("max_display", 10))
    log = OutputLog(int(config.get("scrollback", 1000)))
    session = Session(config, log)
    logger.info("wrapping %s with %d local commands", session.runner.executable, len(session.registry))
    session.load_profile_names()

    # Warm-up psutil internal deltas
    psutil.cpu_percent(interval=None)
    status = StatusData()
    last_sample = 0.0

    try:
        while True:
            session.poll()
            now = time.monotonic()
            if now - last_sample >= interval:
                status = collect_status()
                last_sample = now

            max_y, max_x = stdscr.getmaxyx()
            stdscr.erase()

            if max_y < 10 or max_x < 40:
                _put(stdscr, 0, 0, "Terminal too small (need 40x10+)")
                cursor = (0, 0)
            else:
                _draw_header(stdscr, max_x)
                draw_status_line(stdscr, 1, max_x, status, thresh)

                input_y = max_y - 3
                comp_h = 0
                if session.engine.active and session.suggestions:
                    rows = completion_hint(session.suggestions, max_display)
                    comp_h = min(len(rows) + 2, max(3, (max_y - 5) // 2))
                    draw_completion_panel(
                        stdscr, input_y - comp_h, max_x, comp_h, rows, session.buffer
                    )
                draw_output_panel(stdscr, 2, max_x, input_y - comp_h - 2, log)
                cursor = draw_input(stdscr, input_y, max_x, session)

            try:
                stdscr.move(*cursor)
            except curses.error:
                pass
            stdscr.refresh()

            try:
                key = stdscr.get_wch()
            except curses.error:
                continue
            if key == curses.KEY_RESIZE:
                stdscr.clear()
                continue
            page = max(1, max_y - 10)
            if handle_key(session, log, key, page) is Outcome.QUIT:
                return
    finally:
        session.close()


# ── Logging ────────────────────────────────────────────────────────────────


def setup_logging(log_cfg: dict[str, Any], log_file: Path | None = None) -> None:
    """Send logs to a file when one is configured; curses owns the terminal."""
    root = logging.getLogger()
    root.setLevel(str(log_cfg.get("level", "WARNING")).upper())
    path = log_file or (Path(log_cfg["file"]).expanduser() if log_cfg.get("file") else None)
    if path is None:
        root.addHandler(logging.NullHandler())
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )
    root.addHandler(handler)


# ── CLI entry point ────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Terminal dashboard wrapping PowerShell with completion and slash commands.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between status refreshes (default: from config, 1.5)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write logs to this file",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default configuration as TOML and exit",
    )
    args = parser.parse_args()

    if args.dump_config:
        print(dump_default_config(), end="")
        return

    config = load_config(args.config)
    setup_logging(config.get("log", DEFAULT_CONFIG["log"]), args.log_file)
    interval = args.interval or float(config.get("refresh_interval", 1.5))
    try:
        curses.wrapper(_dashboard_loop, config, interval)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
