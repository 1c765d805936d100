"""Prompt/command splitting and command execution for ``bashgpt sh``."""

import os
import shlex
import subprocess
from typing import List, Sequence, Tuple

import structlog

from .errors import BashGPTError, CommandFailedError

logger = structlog.get_logger(__name__)

# Separates the user's query from the command suggested for it. The
# autocomplete script appends "-- <command>" so that pressing enter runs the
# command and the whole line lands in .bash_history. Keep in sync with
# data/bashgpt_autocomplete.sh.
PROMPT_DELIM = "--"


def split_prompt_and_command(words: Sequence[str]) -> Tuple[str, List[str]]:
    """Split ``words`` at the first ``--`` into (prompt, command words)."""
    prompt_words: List[str] = []
    command: List[str] = []
    found_delim = False

    for word in words:
        if word == PROMPT_DELIM and not found_delim:
            found_delim = True
            continue
        if found_delim:
            command.append(word)
        else:
            prompt_words.append(word)

    return " ".join(prompt_words), command


def run_command(command: Sequence[str]) -> None:
    """Run an already suggested command attached to this terminal."""
    if not command:
        raise BashGPTError("No command to run")

    logger.debug("running_command", command=command)
    try:
        completed = subprocess.run(list(command), env=os.environ.copy(), check=False)
    except OSError as exc:
        raise BashGPTError(f"Could not run {command[0]}: {exc}") from exc

    if completed.returncode != 0:
        raise CommandFailedError(shlex.join(command), completed.returncode)
