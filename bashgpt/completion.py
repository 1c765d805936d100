"""Chat-completion backed command suggestions."""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from .config import BashGPTSettings
from .errors import CompletionError

logger = structlog.get_logger(__name__)


SYSTEM_PROMPT = """You are bash shell autocompletion utility. Users are invoking
you via a terminal by writing a query at the bash prompt and utilizing bash's
autocomplete feature to convert their query into appropriate bash
commands. Please write your responses in strict bash shell syntax without any
additional information. Only respond with a single code block which encapsulates
the user's query. When responding with a code block that includes curl or wget,
please explicitly specify the same user agent as Google Chrome on Windows 10."""


def build_messages(prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def parse_response(content: str) -> str:
    """Return the lines inside ``` fences, or the whole reply if it has none."""
    if "```" not in content:
        return content

    lines = []
    in_block = False
    for line in content.split("\n"):
        if line.startswith("```"):
            in_block = not in_block
        elif in_block:
            lines.append(line + "\n")
    return "".join(lines)


class CompletionClient:
    """Minimal OpenAI chat-completions client."""

    def __init__(
        self,
        settings: BashGPTSettings,
        api_key: str,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._client = client

    def suggest(self, prompt: str) -> str:
        """Ask for a command for ``prompt`` and return its text."""
        content = self._request(build_messages(prompt))
        return parse_response(content)

    def _request(self, messages: List[Dict[str, str]]) -> str:
        url = f"{self._settings.openai_base_url.rstrip('/')}/chat/completions"
        payload: Dict[str, Any] = {"model": self._settings.model, "messages": messages}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, headers=headers)
            else:
                response = httpx.post(
                    url, json=payload, headers=headers, timeout=self._settings.http_timeout
                )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("completion_http_error", status=exc.response.status_code)
            raise CompletionError(
                f"Completion request failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("completion_request_failed", error=str(exc))
            raise CompletionError(f"Completion request failed: {exc}") from exc
        except ValueError as exc:
            raise CompletionError("Completion response was not JSON") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or len(choices) != 1:
            count = len(choices) if isinstance(choices, list) else 0
            raise CompletionError(f"Expected 1 response, got {count}")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise CompletionError("Completion response had no message content")
        return content
