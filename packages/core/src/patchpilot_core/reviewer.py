"""Core PR review orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from github import GithubException
from rich.console import Console

from patchpilot_core.config import CONFIG_PATH, PROMPT_ADDENDUM_PATH, ReviewConfig, load_config
from patchpilot_core.dispatcher import (
    OUTCOME_INLINE,
    OUTCOME_NONE,
    CommentPlan,
    commit_generated_files,
    plan_comments,
    publish_comments,
)
from patchpilot_core.errors import PatchPilotError
from patchpilot_core.gh.pull_request import get_diff, get_pull, get_repo, get_text_file
from patchpilot_core.prompt import PromptDiff, build_prompt
from patchpilot_core.providers.anthropic import AnthropicCompletionClient
from patchpilot_core.providers.base import BaseCompletionClient
from patchpilot_core.providers.openai import OpenAICompletionClient
from patchpilot_core.schema import ReviewOutput
from patchpilot_core.utils.context import gather_context
from patchpilot_core.utils.diff import count_added_lines, trim_patch_for_prompt
from patchpilot_core.utils.globs import matches
from patchpilot_core.validator import validate_output

console = Console()
logger = logging.getLogger(__name__)

REVIEW_MAX_TOKENS = 2000
REPAIR_MAX_TOKENS = 2200


@dataclass
class ReviewSummary:
    """What a run did, returned to the CLI for reporting."""

    repo: str
    pr_number: int
    head_sha: str
    reviewed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    total_comments: int = 0
    inline_comments: int = 0
    outcome: str = OUTCOME_NONE  # "inline" | "fallback" | "none"
    committed_files: list[str] = field(default_factory=list)
    commit_sha: str | None = None
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class DiffSelection:
    prompt_diffs: list[PromptDiff] = field(default_factory=list)
    # Full, untrimmed patches used for positioning.
    patches: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)


def get_completion_client(config: ReviewConfig) -> BaseCompletionClient:
    if config.provider == "openai":
        if not config.openai_api_key:
            raise PatchPilotError("OPENAI_API_KEY environment variable is not set.")
        return OpenAICompletionClient(
            api_key=config.openai_api_key,
            model=config.model,
            temperature=config.temperature,
            organization=config.openai_org_id,
        )
    if config.provider == "anthropic":
        if not config.anthropic_api_key:
            raise PatchPilotError("ANTHROPIC_API_KEY environment variable is not set.")
        return AnthropicCompletionClient(
            api_key=config.anthropic_api_key,
            model=config.model,
            temperature=config.temperature,
        )
    raise ValueError(f"Unknown completion provider: {config.provider!r}. Choose 'openai' or 'anthropic'.")


def _skip_reason(file, config: ReviewConfig) -> str | None:
    if not file.patch:
        # GitHub omits the patch for binary files and very large diffs.
        return "no patch"
    if file.status == "removed":
        return "removed"
    if file.filename.startswith(".github/"):
        return "workflow/config path"
    if not matches(file.filename, config.target_globs):
        return "outside target globs"
    return None


def select_diffs(files, config: ReviewConfig) -> DiffSelection:
    """Pick the changed files to review, keeping GitHub's file order."""
    selection = DiffSelection()
    for file in files:
        reason = _skip_reason(file, config)
        if reason:
            logger.debug("Skipping %s (%s)", file.filename, reason)
            selection.skipped.append(file.filename)
            continue
        logger.debug("Reviewing %s (%d added line(s))", file.filename, count_added_lines(file.patch))
        selection.prompt_diffs.append(
            PromptDiff(filename=file.filename, patch=trim_patch_for_prompt(file.patch, config.max_patch_chars))
        )
        selection.patches[file.filename] = file.patch
    return selection


def apply_feature_flags(output: ReviewOutput, config: ReviewConfig) -> ReviewOutput:
    """Drop disabled outputs and cut comments down to the configured cap."""
    return output.model_copy(
        update={
            "comments": list(output.comments[: config.max_comments]),
            "tests": list(output.tests) if config.tests_enabled else [],
            "docs": list(output.docs) if config.docs_enabled else [],
        }
    )


def print_shadow_plan(plan: CommentPlan, output: ReviewOutput) -> None:
    """Print what would be published without touching the pull request."""
    if not plan.has_comments:
        console.print("[yellow]Shadow mode: no comments generated.[/yellow]")
    else:
        console.print(
            f"\n[bold]Shadow review: {len(plan.fallback_entries)} comment(s), "
            f"{len(plan.inline)} anchorable (not posted)[/bold]\n"
        )
        for c in plan.inline:
            console.print(f"[bold cyan]{c.path}[/bold cyan]  position [bold]{c.position}[/bold]")
            console.print(f"  {c.body}")
            console.print()
        if len(plan.inline) < len(plan.fallback_entries):
            console.print("[bold]Fallback comment:[/bold]")
            console.print(plan.fallback_body(), markup=False)
    for f in [*output.tests, *output.docs]:
        console.print(f"[dim]Would commit: {f.path}[/dim]")


def run_review(
    repo: str,
    pr_number: int,
    token: str | None = None,
    config: ReviewConfig | None = None,
    shadow: bool = False,
    repo_obj=None,
    client: BaseCompletionClient | None = None,
) -> ReviewSummary:
    """Run the full review pipeline for one pull request.

    ``config`` overrides the repository's ``.patchpilot/config.json``; ``client``
    overrides the provider selected by the config. Fatal errors propagate.
    """
    this_repo = repo_obj if repo_obj is not None else get_repo(repo, token=token)

    try:
        this_pr = get_pull(this_repo, pr_number)
    except GithubException as e:
        if e.status == 404:
            raise PatchPilotError(f"PR #{pr_number} not found in {repo}.") from e
        raise

    head_sha = this_pr.head.sha
    head_ref = this_pr.head.ref

    if config is None:
        config = load_config(get_text_file(this_repo, CONFIG_PATH))
    addendum = get_text_file(this_repo, PROMPT_ADDENDUM_PATH)

    files = get_diff(this_pr)
    selection = select_diffs(files, config)
    summary = ReviewSummary(
        repo=repo,
        pr_number=pr_number,
        head_sha=head_sha,
        reviewed_files=[d.filename for d in selection.prompt_diffs],
        skipped_files=selection.skipped,
    )

    if not selection.prompt_diffs:
        console.print("[yellow]No eligible diffs to review.[/yellow]")
        return summary

    console.print(f"Reviewing {len(selection.prompt_diffs)} file(s) with {config.provider}:{config.model}")

    repo_context = gather_context(this_repo, head_sha)
    prompt = build_prompt(config, selection.prompt_diffs, repo_context, addendum)
    completion = client if client is not None else get_completion_client(config)

    raw = completion.complete(prompt.messages(), max_tokens=REVIEW_MAX_TOKENS)
    output = validate_output(
        raw,
        repair=lambda: completion.complete(prompt.repair_messages(), max_tokens=REPAIR_MAX_TOKENS),
    )
    output = apply_feature_flags(output, config)

    plan = plan_comments(output.comments, selection.patches)
    summary.total_comments = len(output.comments)
    summary.committed_files = [f.path for f in [*output.tests, *output.docs]]

    if shadow:
        print_shadow_plan(plan, output)
        summary.inline_comments = len(plan.inline)
        console.print("[bold]Shadow review complete. Nothing was posted.[/bold]")
        return summary

    summary.outcome = publish_comments(this_repo, this_pr, plan, head_sha)
    if summary.outcome == OUTCOME_INLINE:
        summary.inline_comments = len(plan.inline)
    console.print(f"Comments: {summary.total_comments} ({summary.outcome})")

    summary.commit_sha = commit_generated_files(this_repo, this_pr, head_sha, head_ref, output.tests, output.docs)
    if summary.commit_sha:
        console.print(f"[green]Pushed {len(summary.committed_files)} file(s) to {head_ref}.[/green]")

    console.print("[green]Review complete.[/green]")
    return summary
