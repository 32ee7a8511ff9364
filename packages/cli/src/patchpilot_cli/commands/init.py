"""Scaffold the reviewer configuration in a repository.

Writes .patchpilot/config.json with the built-in defaults, an empty
.patchpilot/prompt.md for team-specific instructions, and optionally a GitHub
Actions workflow that runs the review on every pull request.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console

from patchpilot_core.config import CONFIG_PATH, DEFAULT_MODELS, PROMPT_ADDENDUM_PATH, default_config_document

console = Console()

WORKFLOW_PATH = ".github/workflows/patchpilot.yml"

_WORKFLOW_TEMPLATE = """\
name: patchpilot review

on:
  pull_request:
    types: [opened, synchronize, reopened]
  workflow_dispatch:
    inputs:
      pr:
        description: Pull request number
        required: true

jobs:
  review:
    runs-on: ubuntu-latest
    permissions:
      contents: write
      pull-requests: write

    steps:
      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install patchpilot
        run: pip install patchpilot

      - name: Review pull request
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
        run: patchpilot review
"""


def _api_key_env(provider: str) -> str:
    return "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"


def _write_file(path: Path, content: str, force: bool) -> bool:
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists, leaving it untouched (use --force to overwrite).[/yellow]")
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]Created {path}[/green]")
    return True


@click.command("init")
@click.option(
    "--provider",
    type=click.Choice(sorted(DEFAULT_MODELS)),
    default=None,
    help="Completion provider. Prompted for when omitted.",
)
@click.option("--workflow/--no-workflow", default=None, help="Also write a GitHub Actions workflow.")
@click.option("--force", is_flag=True, help="Overwrite existing files.")
@click.option(
    "--dir",
    "root",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Repository root to write into.",
)
def init_cmd(provider: str | None, workflow: bool | None, force: bool, root: str):
    """Set up patchpilot in a repository."""
    console.print("\n[bold cyan]patchpilot init[/bold cyan]\n")

    if provider is None:
        provider = click.prompt("Completion provider", type=click.Choice(sorted(DEFAULT_MODELS)), default="openai")

    document = default_config_document()
    document["provider"] = provider
    document["model"] = DEFAULT_MODELS[provider]

    base = Path(root)
    _write_file(base / CONFIG_PATH, json.dumps(document, indent=2) + "\n", force)
    _write_file(base / PROMPT_ADDENDUM_PATH, "", force)

    if workflow is None:
        workflow = click.confirm(f"\nGenerate {WORKFLOW_PATH} for GitHub Actions?", default=True)
    if workflow:
        api_key_env = _api_key_env(provider)
        if _write_file(base / WORKFLOW_PATH, _WORKFLOW_TEMPLATE.format(api_key_env=api_key_env), force):
            console.print(
                f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
                "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
            )

    console.print("\n[bold green]Setup complete![/bold green]")
