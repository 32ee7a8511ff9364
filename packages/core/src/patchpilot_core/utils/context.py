"""Light repository context for the review prompt.

A handful of well-known project files tell the model which stack it is looking
at (and therefore where tests and docs belong) for the cost of a few API calls.
Each is fetched from the PR's head SHA so the context matches the diff.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from patchpilot_core.gh.pull_request import get_text_file

logger = logging.getLogger(__name__)

# Ordered as they appear in the prompt.
CONTEXT_FILES = ("README.md", "package.json", "pyproject.toml", "go.mod")


@dataclass
class RepoContext:
    # path -> content, only for files that exist and are non-empty
    files: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.files)


def gather_context(repo, ref: str | None = None) -> RepoContext:
    context = RepoContext()
    for path in CONTEXT_FILES:
        content = get_text_file(repo, path, ref)
        if content:
            context.files[path] = content
    logger.debug("Repository context: %s", ", ".join(context.files) or "none")
    return context


def build_context_section(repo_context: RepoContext | None) -> str:
    """Render the context files as ``path:\\ncontent`` blocks, or "" if there are none."""
    if not repo_context:
        return ""
    return "\n".join(f"{path}:\n{content}" for path, content in repo_context.files.items())
