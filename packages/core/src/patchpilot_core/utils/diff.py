"""Unified diff helpers for anchoring review comments.

GitHub's review comment API accepts a ``position``: a 1-based offset into the
file's ``patch`` text. The model refers to lines by their ordinal among the
*added* lines only ("the 3rd '+' line"), so every inline comment goes through
``resolve_position`` before it can be posted.

Positions count every line of the patch: @@ headers, context, additions and
deletions alike. Getting this off by one does not fail loudly, it just puts
every comment on the wrong line.
"""

from __future__ import annotations


def _is_added_line(line: str) -> bool:
    return line.startswith("+") and not line.startswith("+++")


def build_added_line_positions(patch: str | None) -> list[int]:
    """Return the diff position of each added line, in order.

    ``positions[k - 1]`` is the position of the k-th added line.
    """
    positions: list[int] = []
    if not patch:
        return positions

    for position, line in enumerate(patch.split("\n"), start=1):
        if _is_added_line(line):
            positions.append(position)
    return positions


def as_ordinal(value: int | float | None) -> int | None:
    """Return ``value`` as an int if it is a whole number, else None.

    JSON has a single number type, so ``2.0`` is the same line as ``2``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def resolve_position(patch: str | None, added_ordinal: int | float | None) -> int | None:
    """Map a 1-based added-line ordinal to its diff position.

    Returns None when the ordinal is missing, not a whole number, not positive,
    or past the last added line. None means the comment cannot be anchored inline.
    """
    ordinal = as_ordinal(added_ordinal)
    if not patch or ordinal is None or ordinal < 1:
        return None
    positions = build_added_line_positions(patch)
    if ordinal > len(positions):
        return None
    return positions[ordinal - 1]


def count_added_lines(patch: str | None) -> int:
    return len(build_added_line_positions(patch))


def trim_patch_for_prompt(patch: str | None, max_chars: int) -> str:
    """Shrink a patch for the model: keep hunk headers and +/- lines, then truncate.

    Only the prompt copy is trimmed. Positions are always resolved against the
    untouched patch, and the ordinal of each added line is unchanged because no
    '+' line is dropped before the character limit.
    """
    if not patch:
        return ""
    kept = [line for line in patch.split("\n") if line.startswith(("@@", "+", "-"))]
    return "\n".join(kept)[:max_chars]
