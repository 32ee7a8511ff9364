"""Publish validated review output to the pull request.

Comments go out as one batched inline review when at least one of them can be
anchored to a diff position. If none can, or if GitHub rejects the batch with a
422, every proposed comment is posted instead as a single issue comment, so no
feedback is lost. Generated tests and docs are committed to the PR branch
independently of how the comments were published.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from github import GithubException, InputGitTreeElement

from patchpilot_core.errors import PublishRejected, RefUpdateConflictError
from patchpilot_core.gh.pull_request import get_text_file
from patchpilot_core.schema import GeneratedDoc, GeneratedTest, ProposedComment
from patchpilot_core.utils.diff import as_ordinal, resolve_position

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "chore: add tests/docs from automated review"
FILES_PUSHED_BODY = "Pushed proposed tests/docs to the PR branch."
FALLBACK_HEADER = (
    "Unable to anchor inline comments to the diff (likely a diff context mismatch or truncated patch).\n"
    "Here’s the review as a single comment instead:\n"
)

OUTCOME_INLINE = "inline"
OUTCOME_FALLBACK = "fallback"
OUTCOME_NONE = "none"


@dataclass(frozen=True)
class ResolvedComment:
    path: str
    position: int  # absolute position in the file's unified diff
    body: str

    def to_api(self) -> dict:
        return {"path": self.path, "position": self.position, "body": self.body}


@dataclass
class CommentPlan:
    inline: list[ResolvedComment] = field(default_factory=list)
    # One entry per proposed comment, anchorable or not, in model order.
    fallback_entries: list[str] = field(default_factory=list)

    @property
    def has_comments(self) -> bool:
        return bool(self.fallback_entries)

    def fallback_body(self) -> str:
        return "\n".join([FALLBACK_HEADER, "\n\n".join(self.fallback_entries)])


def suggestion_block(comment: ProposedComment) -> str:
    if not comment.suggestion:
        return ""
    return f"\n\n```suggestion\n{comment.suggestion}\n```"


def fallback_entry(comment: ProposedComment) -> str:
    ordinal = as_ordinal(comment.line)
    shown = comment.line if ordinal is None else ordinal
    where = f" (added line #{shown})" if comment.line else ""
    return f"• {comment.path}{where}\n{comment.body}{suggestion_block(comment)}"


def plan_comments(comments: list[ProposedComment], patches: dict[str, str]) -> CommentPlan:
    """Resolve each comment against its file's full patch.

    ``patches`` maps path -> untrimmed patch for the files under review; a
    comment on any other path is never anchorable.
    """
    plan = CommentPlan()
    for comment in comments:
        plan.fallback_entries.append(fallback_entry(comment))
        position = resolve_position(patches.get(comment.path), comment.line)
        if position is None:
            logger.debug("No diff position for %s line %s", comment.path, comment.line)
            continue
        plan.inline.append(
            ResolvedComment(path=comment.path, position=position, body=comment.body + suggestion_block(comment))
        )
    return plan


def post_inline_review(repo, pr, head_sha: str, comments: list[ResolvedComment]) -> None:
    """Post one review containing every comment; raise PublishRejected on 422."""
    try:
        pr.create_review(
            commit=repo.get_commit(head_sha),
            body=f"Automated review for {head_sha[:7]}.",
            event="COMMENT",
            comments=[c.to_api() for c in comments],
        )
    except GithubException as e:
        if e.status == 422:
            raise PublishRejected(f"Inline review rejected: {e.data}") from e
        raise


def publish_comments(repo, pr, plan: CommentPlan, head_sha: str) -> str:
    """Publish the plan and return which channel was used."""
    if not plan.has_comments:
        return OUTCOME_NONE

    if plan.inline:
        try:
            post_inline_review(repo, pr, head_sha, plan.inline)
            logger.info("Posted inline review with %d comment(s)", len(plan.inline))
            return OUTCOME_INLINE
        except PublishRejected as e:
            logger.warning("Inline review rejected (422). Falling back to issue comment. %s", e)
    else:
        logger.info("No comment could be anchored to the diff; posting a single comment")

    pr.create_issue_comment(plan.fallback_body())
    return OUTCOME_FALLBACK


def _appended_content(repo, doc: GeneratedDoc, head_sha: str) -> str:
    existing = get_text_file(repo, doc.path, head_sha)
    if not existing:
        return doc.content
    separator = "" if existing.endswith("\n") else "\n"
    return existing + separator + doc.content


def commit_generated_files(
    repo,
    pr,
    head_sha: str,
    head_ref: str,
    tests: list[GeneratedTest],
    docs: list[GeneratedDoc],
) -> str | None:
    """Commit tests then docs on top of ``head_sha`` and fast-forward the branch.

    Returns the new commit SHA, or None when there is nothing to commit. The
    ref update is never forced: if the branch moved since ``head_sha``,
    RefUpdateConflictError is raised and the new commit is left dangling.
    """
    if not tests and not docs:
        return None

    elements: list[InputGitTreeElement] = []
    for test in tests:
        blob = repo.create_git_blob(test.content, "utf-8")
        elements.append(InputGitTreeElement(test.path, "100644", "blob", sha=blob.sha))
    for doc in docs:
        content = _appended_content(repo, doc, head_sha) if doc.append else doc.content
        blob = repo.create_git_blob(content, "utf-8")
        elements.append(InputGitTreeElement(doc.path, "100644", "blob", sha=blob.sha))

    base_commit = repo.get_git_commit(head_sha)
    tree = repo.create_git_tree(elements, base_tree=base_commit.tree)
    commit = repo.create_git_commit(COMMIT_MESSAGE, tree, [base_commit])

    ref = repo.get_git_ref(f"heads/{head_ref}")
    try:
        ref.edit(commit.sha, force=False)
    except GithubException as e:
        if e.status == 422:
            raise RefUpdateConflictError(
                f"Branch {head_ref} moved since {head_sha[:7]}; refusing to overwrite it with {commit.sha[:7]}"
            ) from e
        raise
    logger.info("Committed %d generated file(s) as %s", len(elements), commit.sha[:7])

    pr.create_issue_comment(FILES_PUSHED_BODY)
    return commit.sha
