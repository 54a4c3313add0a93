"""Project scaffolding commands: /analyze, /summary, /instruct, /create, /findpack, /list.

File-writing commands work in the current directory. Commands that need an
external program hand the command line to ``run``, which schedules it on the
session's shell runner and reports whether it was accepted.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from apscli.output import SUCCESS, WARNING, OutputSink
from apscli.router import Command

RunExternal = Callable[[str], bool]

PRETTIERRC = """module.exports = {
    semi: true,
    trailingComma: 'all',
    singleQuote: true,
    printWidth: 120,
    tabWidth: 4,
}
"""

PRETTIERIGNORE = "node_modules\ndist\n"

TSCONFIG = {
    "compilerOptions": {
        "target": "es2020",
        "module": "commonjs",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
    }
}

VITEST_CONFIG = """import { defineConfig } from 'vitest/config';

export default defineConfig({
    test: {},
});
"""

MIUI_CSS = "/* Material UI styles */\n"

MIUI_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>MIUI</title>
    <link rel="stylesheet" href="miui.css">
</head>
<body>
    <h1>Hello MIUI!</h1>
</body>
</html>
"""


def _read_manifest(name: str) -> dict[str, Any]:
    """Strict manifest read; errors propagate so the router reports them."""
    data = json.loads((Path.cwd() / name).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{name} is not a JSON object")
    return data


def render_readme(manifest: dict[str, Any]) -> str:
    lines = [
        f"# {manifest.get('name') or 'Project'}",
        "",
        manifest.get("description") or "",
        "",
        "## Installation",
        "",
        "```bash",
        "npm install",
        "```",
        "",
        "## Available Scripts",
        "",
    ]
    for script, body in (manifest.get("scripts") or {}).items():
        lines.append(f"*   `{script}`: `{body}`")
    lines += ["", "## Dependencies", ""]
    for dep, version in (manifest.get("dependencies") or {}).items():
        lines.append(f"*   {dep}: {version}")
    lines.append("")
    dev = manifest.get("devDependencies")
    if dev:
        lines += ["## Dev Dependencies", ""]
        for dep, version in dev.items():
            lines.append(f"*   {dep}: {version}")
        lines.append("")
    return "\n".join(lines) + "\n"


class AnalyzeCommand(Command):
    name = "analyze"
    description = "Analyzes the project and creates a README.md file"

    def __init__(self, manifest: str = "package.json") -> None:
        self.manifest = manifest

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append("Analyzing project...", WARNING)
        readme = render_readme(_read_manifest(self.manifest))
        (Path.cwd() / "README.md").write_text(readme, encoding="utf-8")
        sink.append("Successfully created README.md", SUCCESS)


class SummaryCommand(Command):
    name = "summary"
    description = "Creates a docs/Summary.md file"

    def __init__(self, manifest: str = "package.json") -> None:
        self.manifest = manifest

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append("Creating summary...", WARNING)
        data = _read_manifest(self.manifest)
        docs = Path.cwd() / "docs"
        docs.mkdir(parents=True, exist_ok=True)
        text = f"# {data.get('name') or 'Project'}\n\n{data.get('description') or ''}\n"
        (docs / "Summary.md").write_text(text, encoding="utf-8")
        sink.append("Successfully created docs/Summary.md", SUCCESS)


class InstructCommand(Command):
    name = "instruct"
    description = "Creates a gemini.md file with instructions"

    def __init__(self, prefix: str = "/") -> None:
        self.prefix = prefix

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append("Creating gemini.md...", WARNING)
        p = self.prefix
        text = (
            "# Gemini CLI Instructions\n\n"
            "This is an interactive CLI. Here are some available commands:\n\n"
            "## Slash Commands\n\n"
            f"*   {p}findpack <package-name>: Searches for an npm package.\n"
            f"*   {p}analyze: Analyzes the project and creates a README.md file.\n"
            f"*   {p}summary: Creates a docs/Summary.md file.\n"
            f"*   {p}instruct: Creates this gemini.md file.\n"
            f"*   {p}create <kind>: Creates project files.\n"
            f"*   {p}list: Lists packages and checks for updates.\n"
        )
        (Path.cwd() / "gemini.md").write_text(text, encoding="utf-8")
        sink.append("Successfully created gemini.md", SUCCESS)


class CreateCommand(Command):
    name = "create"
    description = "Creates various project files"
    kinds = ("license", "eslint", "prettier", "tsconfig", "test", "electron", "miui")

    def __init__(self, run: RunExternal) -> None:
        self.run = run

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        kind = args[0] if args else ""
        cwd = Path.cwd()
        if kind == "license":
            sink.append("Creating license...", WARNING)
            self.run("npx create-license -o LICENSE")
        elif kind == "eslint":
            sink.append("Setting up ESLint...", WARNING)
            self.run("npm init @eslint/config")
        elif kind == "prettier":
            sink.append("Setting up Prettier...", WARNING)
            (cwd / ".prettierrc.cjs").write_text(PRETTIERRC, encoding="utf-8")
            (cwd / ".prettierignore").write_text(PRETTIERIGNORE, encoding="utf-8")
            sink.append("Successfully created .prettierrc.cjs and .prettierignore", SUCCESS)
        elif kind == "tsconfig":
            sink.append("Creating tsconfig.json...", WARNING)
            (cwd / "tsconfig.json").write_text(
                json.dumps(TSCONFIG, indent=4) + "\n", encoding="utf-8"
            )
            sink.append("Successfully created tsconfig.json", SUCCESS)
        elif kind == "test":
            sink.append("Setting up vitest...", WARNING)
            (cwd / "vitest.config.js").write_text(VITEST_CONFIG, encoding="utf-8")
            if self.run("npm install -D vitest"):
                sink.append("Created vitest.config.js, installing vitest", SUCCESS)
        elif kind == "electron":
            sink.append("Electron setup not yet implemented.", WARNING)
        elif kind == "miui":
            sink.append("Creating miui files...", WARNING)
            (cwd / "miui.css").write_text(MIUI_CSS, encoding="utf-8")
            (cwd / "index.html").write_text(MIUI_HTML, encoding="utf-8")
            sink.append("Successfully created miui.css and index.html", SUCCESS)
        else:
            sink.append(f"Usage: /create <{'|'.join(self.kinds)}>", WARNING)


class FindPackCommand(Command):
    name = "findpack"
    description = "Searches for an npm package"

    def __init__(self, run: RunExternal) -> None:
        self.run = run

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        if not args:
            sink.append("Usage: /findpack <package-name>", WARNING)
            return
        self.run(f"npm search {' '.join(args)}")


class ListCommand(Command):
    name = "list"
    description = "Lists packages and checks for updates"

    def __init__(self, run: RunExternal) -> None:
        self.run = run

    def execute(self, args: Sequence[str], sink: OutputSink) -> None:
        sink.append("Listing packages and checking for updates...", WARNING)
        self.run("npm list --depth=0")
