from __future__ import annotations

from anthropic import Anthropic, APIConnectionError, APIStatusError
from anthropic.types import TextBlock

from patchpilot_core.providers.base import BaseCompletionClient, classify_failure, lowercase_headers


def _error_type(body) -> str | None:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("type")
    return None


class AnthropicCompletionClient(BaseCompletionClient):
    """Claude via the Messages API.

    The Messages API has no JSON response mode, so the system prompt carries the
    JSON-only instruction and the validator's repair round-trip absorbs any drift.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        temperature: float = 0.2,
    ):
        super().__init__(model, temperature)
        self.client = Anthropic(api_key=api_key, max_retries=0, timeout=self.TIMEOUT)

    def _call_api(self, messages: list[dict], max_tokens: int) -> str:
        # System messages go in the dedicated parameter; the rest keep their order.
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        conversation = [m for m in messages if m["role"] != "system"]

        try:
            response = self.client.messages.create(
                model=self.model,
                system=system,
                messages=conversation,
                temperature=self.temperature,
                max_tokens=max_tokens,
            )
        except APIStatusError as e:
            raise classify_failure(
                f"Anthropic error status {e.status_code}: {e.message}",
                status=e.status_code,
                code=_error_type(e.body),
                headers=lowercase_headers(e.response.headers),
            ) from e
        except APIConnectionError as e:
            raise classify_failure(f"Anthropic connection error: {e}") from e

        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks)
