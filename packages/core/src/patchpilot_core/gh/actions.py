"""Resolve the repository and pull request number inside GitHub Actions.

Lookup order for the PR number (first hit wins):
  1. GITHUB_EVENT_PULL_REQUEST_NUMBER (set explicitly by the workflow)
  2. the event payload at GITHUB_EVENT_PATH: pull_request.number, then inputs.pr
     (the latter for workflow_dispatch runs)
  3. GITHUB_REF of the form refs/pull/<number>/merge
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from patchpilot_core.errors import PullRequestContextError

logger = logging.getLogger(__name__)


def _as_pr_number(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def _number_from_event(event_path: str | None) -> int | None:
    if not event_path:
        return None
    try:
        event = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Could not read event payload %s: %s", event_path, e)
        return None
    if not isinstance(event, dict):
        return None
    pull_request = event.get("pull_request")
    if isinstance(pull_request, dict):
        number = _as_pr_number(pull_request.get("number"))
        if number:
            return number
    inputs = event.get("inputs")
    if isinstance(inputs, dict):
        return _as_pr_number(inputs.get("pr"))
    return None


def _number_from_ref(ref: str | None) -> int | None:
    parts = (ref or "").split("/")
    if len(parts) > 2 and parts[1] == "pull":
        return _as_pr_number(parts[2])
    return None


def resolve_pull_context(environ: dict | None = None) -> tuple[str, int]:
    """Return ``(owner/name, pr_number)`` from the Actions environment."""
    env = os.environ if environ is None else environ

    repo = env.get("GITHUB_REPOSITORY")
    if not repo:
        raise PullRequestContextError("GITHUB_REPOSITORY not set")

    pr_number = (
        _as_pr_number(env.get("GITHUB_EVENT_PULL_REQUEST_NUMBER"))
        or _number_from_event(env.get("GITHUB_EVENT_PATH"))
        or _number_from_ref(env.get("GITHUB_REF"))
    )
    if not pr_number:
        raise PullRequestContextError("Unable to determine PR number. For workflow_dispatch, pass inputs.pr")
    return repo, pr_number
