"""Operator prompts for reclaim.

The orchestrator asks its questions through a ``Prompter`` so a run can be
driven from the console, from preset answers (config file or CLI flags), or
from a test.
"""

from typing import Any, Mapping, Optional, Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt

# Prompt keys used by the orchestrator
TIER = "tier"
CONTINUE_UNELEVATED = "continue_unelevated"
UPDATE_CLEANUP = "update_cleanup"
LARGE_FILE_SCAN = "large_file_scan"

TRUE_WORDS = frozenset({"y", "yes", "true", "1", "on"})
FALSE_WORDS = frozenset({"n", "no", "false", "0", "off"})


class Prompter(Protocol):
    def choose(self, key: str, message: str, options: list[str], default: str) -> str: ...

    def confirm(self, key: str, message: str, default: bool) -> bool: ...


def parse_bool(value: Any) -> bool:
    """Interpret a preset answer as yes/no."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_WORDS:
        return True
    if text in FALSE_WORDS:
        return False
    raise ValueError(f"Expected a yes/no answer, got {value!r}")


class ConsolePrompter:
    """Asks the operator on the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console

    def choose(self, key: str, message: str, options: list[str], default: str) -> str:
        return Prompt.ask(message, choices=options, default=default, console=self.console)

    def confirm(self, key: str, message: str, default: bool) -> bool:
        return Confirm.ask(message, default=default, console=self.console)


class PresetPrompter:
    """
    Answers from a mapping of prompt keys, then from a fallback.

    Without a fallback, unanswered prompts take their default, which makes
    headless runs possible. ``assume_yes`` answers every unanswered
    confirmation with yes.
    """

    def __init__(
        self,
        answers: Optional[Mapping[str, Any]] = None,
        fallback: Optional[Prompter] = None,
        assume_yes: bool = False,
    ):
        self.answers = dict(answers or {})
        self.fallback = fallback
        self.assume_yes = assume_yes
        self.asked: list[str] = []

    def choose(self, key: str, message: str, options: list[str], default: str) -> str:
        self.asked.append(key)
        if key in self.answers:
            answer = str(self.answers[key]).strip().lower()
            for option in options:
                if option.lower() == answer:
                    return option
            raise ValueError(f"Invalid answer for {key}: {self.answers[key]!r}")
        if self.fallback is not None:
            return self.fallback.choose(key, message, options, default)
        return default

    def confirm(self, key: str, message: str, default: bool) -> bool:
        self.asked.append(key)
        if key in self.answers:
            return parse_bool(self.answers[key])
        if self.assume_yes:
            return True
        if self.fallback is not None:
            return self.fallback.confirm(key, message, default)
        return default
