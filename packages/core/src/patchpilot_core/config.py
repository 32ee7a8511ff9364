"""Review configuration.

The configuration lives in the reviewed repository at ``.patchpilot/config.json``
and is read once per run into an immutable ReviewConfig that is passed
explicitly to whatever needs it. Every key is optional; a missing file, a file
that does not parse, or a key with the wrong type falls back to the default for
that key rather than failing the run.

The file is parsed as JSON. Text that is not valid JSON is retried with
``yaml.safe_load`` so teams that prefer YAML can use it.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = ".patchpilot/config.json"
PROMPT_ADDENDUM_PATH = ".patchpilot/prompt.md"

DEFAULT_PROVIDER = "openai"
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}
PROVIDERS = tuple(DEFAULT_MODELS)


@dataclass(frozen=True)
class ReviewConfig:
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODELS[DEFAULT_PROVIDER]
    temperature: float = 0.2
    max_patch_chars: int = 20000
    max_comments: int = 30
    target_globs: tuple[str, ...] = ("src/**", "lib/**")
    tests_enabled: bool = True
    docs_enabled: bool = True
    # Credentials are resolved from the environment, never from the repo file.
    openai_api_key: str | None = field(default=None, repr=False)
    openai_org_id: str | None = field(default=None, repr=False)
    anthropic_api_key: str | None = field(default=None, repr=False)

    @property
    def prompt_comment_cap(self) -> int:
        """The cap advertised to the model, clamped to 1..60."""
        return max(1, min(self.max_comments, 60))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _positive_int(value) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def config_from_dict(data: dict, base: ReviewConfig | None = None) -> ReviewConfig:
    """Overlay recognised keys from ``data`` onto ``base`` (defaults if None)."""
    config = base or ReviewConfig()
    updates: dict = {}

    provider = data.get("provider")
    if provider in PROVIDERS:
        updates["provider"] = provider
        updates["model"] = DEFAULT_MODELS[provider]
    elif provider is not None:
        logger.warning("Ignoring unknown provider %r; using %r", provider, config.provider)

    model = data.get("model")
    if isinstance(model, str) and model:
        updates["model"] = model

    if _is_number(data.get("temperature")):
        updates["temperature"] = float(data["temperature"])

    review = _section(data, "review")
    max_patch_chars = _positive_int(review.get("maxPatchChars"))
    if max_patch_chars:
        updates["max_patch_chars"] = max_patch_chars
    max_comments = _positive_int(review.get("maxComments"))
    if max_comments:
        updates["max_comments"] = max_comments
    globs = review.get("targetGlobs")
    if isinstance(globs, list):
        updates["target_globs"] = tuple(str(g) for g in globs)

    tests = _section(data, "tests")
    if "enabled" in tests:
        updates["tests_enabled"] = bool(tests["enabled"])
    docs = _section(data, "docs")
    if "enabled" in docs:
        updates["docs_enabled"] = bool(docs["enabled"])

    return replace(config, **updates)


def _parse_document(text: str):
    """JSON first; YAML only for text that is not JSON.

    YAML 1.1 rejects tab indentation and reads ``1e-1`` as a string, so valid
    JSON must never reach ``yaml.safe_load``.
    """
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return yaml.safe_load(text)


def load_config(text: str | None, environ: dict | None = None) -> ReviewConfig:
    """Build a ReviewConfig from the raw text of a config file.

    ``text`` may be None or empty (no config file). Credentials are always taken
    from ``environ`` (``os.environ`` by default).
    """
    env = os.environ if environ is None else environ
    config = ReviewConfig(
        openai_api_key=env.get("OPENAI_API_KEY"),
        openai_org_id=env.get("OPENAI_ORG_ID"),
        anthropic_api_key=env.get("ANTHROPIC_API_KEY"),
    )
    if not text or not text.strip():
        return config

    try:
        data = _parse_document(text)
    except (yaml.YAMLError, RecursionError) as e:
        logger.warning("%s present but invalid, ignoring: %s", CONFIG_PATH, e)
        return config

    if not isinstance(data, dict):
        logger.warning("%s is not an object, ignoring", CONFIG_PATH)
        return config

    return config_from_dict(data, config)


def load_config_file(path: str, environ: dict | None = None) -> ReviewConfig:
    """Load configuration from a local file instead of the reviewed repository."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return load_config(p.read_text(encoding="utf-8"), environ)


def default_config_document() -> dict:
    """The defaults rendered in the on-disk format, used by ``patchpilot init``."""
    defaults = ReviewConfig()
    return {
        "provider": defaults.provider,
        "model": defaults.model,
        "temperature": defaults.temperature,
        "review": {
            "maxPatchChars": defaults.max_patch_chars,
            "maxComments": defaults.max_comments,
            "targetGlobs": list(defaults.target_globs),
        },
        "tests": {"enabled": defaults.tests_enabled},
        "docs": {"enabled": defaults.docs_enabled},
    }
