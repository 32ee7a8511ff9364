"""CLI entry point for patchpilot.

Commands:
  review   review a pull request and publish comments, tests and docs
  init     scaffold .patchpilot/ configuration in a repository
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from patchpilot_cli.commands.init import init_cmd
from patchpilot_cli.commands.review import review_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # Keep HTTP client chatter out of --verbose output.
    for noisy in ("httpx", "httpcore", "urllib3", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("patchpilot"),
    prog_name="patchpilot",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
def main(verbose: bool):
    """Automated code review for GitHub pull requests."""
    _configure_logging(verbose)


main.add_command(review_cmd)
main.add_command(init_cmd)
