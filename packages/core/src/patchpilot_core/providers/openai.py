from __future__ import annotations

from openai import APIConnectionError, APIStatusError, OpenAI

from patchpilot_core.providers.base import BaseCompletionClient, classify_failure, lowercase_headers


class OpenAICompletionClient(BaseCompletionClient):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        organization: str | None = None,
    ):
        super().__init__(model, temperature)
        # max_retries=0: the SDK's own retries would hide 429s from our backoff.
        self.client = OpenAI(
            api_key=api_key,
            organization=organization,
            max_retries=0,
            timeout=self.TIMEOUT,
        )

    def _call_api(self, messages: list[dict], max_tokens: int) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
        except APIStatusError as e:
            raise classify_failure(
                f"OpenAI error status {e.status_code} code {e.code}: {e.message}",
                status=e.status_code,
                code=e.code,
                headers=lowercase_headers(e.response.headers),
            ) from e
        except APIConnectionError as e:
            raise classify_failure(f"OpenAI connection error: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
