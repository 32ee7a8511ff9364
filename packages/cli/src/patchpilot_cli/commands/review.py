"""Review a pull request and publish the results."""

from __future__ import annotations

import logging

import click
from github import GithubException
from rich.console import Console

from patchpilot_core.errors import PatchPilotError
from patchpilot_core.gh.actions import resolve_pull_context
from patchpilot_core.reviewer import ReviewSummary, run_review

console = Console()
logger = logging.getLogger(__name__)


def _print_summary(summary: ReviewSummary) -> None:
    console.print(
        f"[bold]{summary.repo}#{summary.pr_number}[/bold] @ {summary.head_sha[:7]}: "
        f"{len(summary.reviewed_files)} file(s) reviewed, {len(summary.skipped_files)} skipped, "
        f"{summary.total_comments} comment(s) ({summary.outcome})"
    )
    if summary.commit_sha:
        console.print(f"Committed {', '.join(summary.committed_files)} as {summary.commit_sha[:7]}")


@click.command("review")
@click.option("--repo", default=None, help="GitHub repository in owner/name format. Defaults to GITHUB_REPOSITORY.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Defaults to the pull request of the current GitHub Actions event.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Local config file to use instead of the repository's .patchpilot/config.json.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print what would be posted and committed without touching the PR.",
)
@click.pass_context
def review_cmd(ctx, repo: str | None, pr_number: int | None, config_path: str | None, shadow: bool):
    """Review a pull request with a language model.

    Posts inline review comments where they can be anchored to the diff (a
    single summary comment otherwise) and commits generated tests and docs to
    the PR branch.

    \b
    Environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      OPENAI_API_KEY       Required for provider "openai" (default)
      OPENAI_ORG_ID        Optional OpenAI organization
      ANTHROPIC_API_KEY    Required for provider "anthropic"
    """
    from patchpilot_cli.auth import resolve_github_token
    from patchpilot_core.config import load_config_file

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    if repo is None or pr_number is None:
        try:
            env_repo, env_pr = resolve_pull_context()
        except PatchPilotError as e:
            raise click.UsageError(f"{e}. Pass --repo and --pr explicitly.")
        repo = repo or env_repo
        pr_number = pr_number or env_pr

    config = None
    if config_path:
        try:
            config = load_config_file(config_path)
        except FileNotFoundError as e:
            raise click.UsageError(str(e))

    try:
        summary = run_review(repo=repo, pr_number=pr_number, token=token, config=config, shadow=shadow)
    except (PatchPilotError, GithubException) as e:
        logger.error("Review of %s#%s failed: %s", repo, pr_number, e)
        raise click.ClickException(str(e))

    _print_summary(summary)
