"""Parse and validate the completion service's output, repairing it once if needed.

Three stages, tried in order, stopping at the first success:

1. the raw text as JSON;
2. the contents of a fenced code block found in the raw text;
3. the response to exactly one repair request, parsed as JSON with no fence
   extraction.

Each stage returns a StageResult instead of raising, so the pipeline is a flat
sequence of checks and the only exception that leaves this module is
SchemaValidationError (plus whatever the repair call itself raises).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError

from patchpilot_core.errors import SchemaValidationError
from patchpilot_core.schema import ReviewOutput

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE_RE = re.compile(r"```\s*([\s\S]*?)```")


@dataclass(frozen=True)
class StageResult:
    output: ReviewOutput | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.output is not None


def parse_and_validate(text: str | None) -> StageResult:
    if text is None:
        return StageResult(error="no content")
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        # ValueError includes JSONDecodeError and the int digit limit. Deep nesting
        # raises RecursionError.
        return StageResult(error=f"invalid JSON: {type(e).__name__}: {e}")
    try:
        return StageResult(output=ReviewOutput.model_validate(data))
    except ValidationError as e:
        return StageResult(error=f"schema mismatch: {e.error_count()} error(s): {e}")


def extract_fenced_block(text: str) -> str | None:
    """Return the body of the first ```json fence, else of the first ``` fence."""
    match = _JSON_FENCE_RE.search(text) or _ANY_FENCE_RE.search(text)
    return match.group(1) if match else None


def _fenced_stage(text: str) -> StageResult:
    block = extract_fenced_block(text)
    if block is None:
        return StageResult(error="no fenced block")
    return parse_and_validate(block)


def validate_output(raw: str, repair: Callable[[], str]) -> ReviewOutput:
    """Return the validated output for ``raw``, calling ``repair`` at most once.

    ``repair`` must issue the repair request and return the new raw text.
    """
    reasons: list[str] = []

    direct = parse_and_validate(raw)
    if direct.ok:
        return direct.output
    reasons.append(f"direct: {direct.error}")

    fenced = _fenced_stage(raw)
    if fenced.ok:
        logger.info("Recovered review output from a fenced code block")
        return fenced.output
    reasons.append(f"fenced: {fenced.error}")

    logger.warning("First parse failed; requesting a JSON-only reprint. %s", direct.error)
    repaired = parse_and_validate(repair())
    if repaired.ok:
        return repaired.output
    reasons.append(f"repair: {repaired.error}")

    raise SchemaValidationError(
        "Model output did not match the review schema after repair: " + "; ".join(reasons),
        reasons=reasons,
    )
