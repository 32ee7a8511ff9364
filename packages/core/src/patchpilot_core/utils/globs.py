"""Path filtering with ``*`` / ``**`` globs.

``fnmatch`` is not used because its ``*`` crosses directory separators:
``src/*.py`` would match ``src/a/b.py``. Here ``*`` stays within one path
segment and ``**`` spans any number of them.
"""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob into an anchored regex.

    ``**`` → ``.*``, ``*`` → ``[^/]*``, everything else is matched literally.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def matches(path: str, patterns: list[str] | tuple[str, ...] | None) -> bool:
    """Return True if ``path`` matches any pattern. No patterns means everything matches."""
    if not patterns:
        return True
    return any(compile_glob(p).match(path) for p in patterns)
