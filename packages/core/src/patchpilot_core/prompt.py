"""Prompt construction for the review request and its repair round-trip.

Both requests share the same user message so the model re-answers the same
question; only the JSON-only instructions differ.
"""

from __future__ import annotations

from dataclasses import dataclass

from patchpilot_core.config import ReviewConfig
from patchpilot_core.schema import SCHEMA_HINT
from patchpilot_core.utils.context import RepoContext, build_context_section

REPAIR_SYSTEM_SUFFIX = "Return ONLY a valid JSON object (no code fences, no prose)."
REPAIR_USER_SUFFIX = "Your last reply was invalid JSON. Reprint the SAME answer as valid JSON only."


@dataclass(frozen=True)
class PromptDiff:
    filename: str
    patch: str  # trimmed for the prompt, not for positioning


@dataclass(frozen=True)
class ReviewPrompt:
    system: str
    user: str
    addendum: str = ""

    def messages(self) -> list[dict]:
        return _messages(self.system, self.user, self.addendum)

    def repair_messages(self) -> list[dict]:
        return _messages(
            self.system + "\n" + REPAIR_SYSTEM_SUFFIX,
            self.user + "\n\n" + REPAIR_USER_SUFFIX,
            self.addendum,
        )


def _messages(system: str, user: str, addendum: str) -> list[dict]:
    extra = [{"role": "system", "content": addendum}] if addendum else []
    return [{"role": "system", "content": system}, *extra, {"role": "user", "content": user}]


def build_system_prompt() -> str:
    return "\n".join(
        [
            "You are a meticulous senior engineer.",
            "Return strict JSON matching this schema:",
            SCHEMA_HINT,
            "Guidelines:",
            "- Limit to high-signal issues. Keep total comments under the supplied cap.",
            "- Tie each comment to a specific added line within the provided unified diffs.",
            "- 'line' is the 1-based index among the added ('+') lines of that file's diff.",
            "- Where reasonable, include a minimal 'suggestion' replacement block.",
            "- Generate minimal tests under tests/ or __tests__/ respecting the stack.",
            "- Create concise docs under docs/ or append to README.md if appropriate.",
            "- Be terse and actionable.",
        ]
    )


def build_user_prompt(config: ReviewConfig, diffs: list[PromptDiff], repo_context: RepoContext | None = None) -> str:
    cap_info = (
        f"Comment cap: {config.prompt_comment_cap}\n"
        f"Tests enabled: {str(config.tests_enabled).lower()}\n"
        f"Docs enabled: {str(config.docs_enabled).lower()}"
    )
    sections = ["Repository context:", cap_info]
    context_section = build_context_section(repo_context)
    if context_section:
        sections.append(context_section)
    sections.append("Changed files with unified diffs:")
    sections.extend(f"\n=== {d.filename} ===\n{d.patch}" for d in diffs)
    return "\n".join(sections)


def build_prompt(
    config: ReviewConfig,
    diffs: list[PromptDiff],
    repo_context: RepoContext | None = None,
    addendum: str = "",
) -> ReviewPrompt:
    return ReviewPrompt(
        system=build_system_prompt(),
        user=build_user_prompt(config, diffs, repo_context),
        addendum=addendum.strip(),
    )
