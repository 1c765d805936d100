"""Tests for ``bashgpt sh`` helpers and the completion client."""

import json
import sys

import httpx
import pytest

from bashgpt.completion import SYSTEM_PROMPT, CompletionClient, parse_response
from bashgpt.errors import CommandFailedError, CompletionError
from bashgpt.shell import run_command, split_prompt_and_command


def test_split_without_delimiter():
    prompt, command = split_prompt_and_command(["list", "pdf", "files"])

    assert prompt == "list pdf files"
    assert command == []


def test_split_with_delimiter():
    prompt, command = split_prompt_and_command(
        ["undo", "my", "edits", "--", "git", "checkout", "--", "README.md"]
    )

    assert prompt == "undo my edits"
    assert command == ["git", "checkout", "--", "README.md"]


def test_split_keeps_later_delimiters_in_command():
    prompt, command = split_prompt_and_command(
        ["restore", "readme", "--", "git", "checkout", "--", "README.md", "--", "x"]
    )

    assert prompt == "restore readme"
    assert command == ["git", "checkout", "--", "README.md", "--", "x"]


def test_split_with_trailing_delimiter_only():
    prompt, command = split_prompt_and_command(["list", "files", "--"])

    assert prompt == "list files"
    assert command == []


def test_parse_response_extracts_code_block():
    reply = "Here you go:\n```bash\nfind . -name '*.pdf'\nls -la\n```\nEnjoy"

    assert parse_response(reply) == "find . -name '*.pdf'\nls -la\n"


def test_parse_response_passes_plain_text():
    assert parse_response("ls -la") == "ls -la"


def test_run_command_success():
    run_command([sys.executable, "-c", "raise SystemExit(0)"])


def test_run_command_failure():
    with pytest.raises(CommandFailedError) as excinfo:
        run_command([sys.executable, "-c", "raise SystemExit(3)"])

    assert excinfo.value.returncode == 3


def _completion_client(settings, handler):
    return CompletionClient(
        settings, "sk-test", client=httpx.Client(transport=httpx.MockTransport(handler))
    )


def test_completion_request(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": "```\nls -la\n```"}}]},
        )

    suggestion = _completion_client(settings, handler).suggest("list everything")

    assert suggestion == "ls -la\n"
    request = seen[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == settings.model
    assert body["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "list everything"},
    ]


def test_completion_requires_single_choice(settings):
    def handler(request):
        return httpx.Response(200, json={"choices": []})

    with pytest.raises(CompletionError, match="Expected 1 response, got 0"):
        _completion_client(settings, handler).suggest("anything")


def test_completion_http_error(settings):
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    with pytest.raises(CompletionError, match="401"):
        _completion_client(settings, handler).suggest("anything")
