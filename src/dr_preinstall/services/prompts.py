"""Operator input collection for dr-preinstall."""

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Prompt


class PromptService:
    """Collects typed answers from the terminal.

    Modules never read stdin directly; they receive an instance of this class
    (or a scripted stand-in) so every question can be answered without a
    terminal.
    """

    def __init__(self, console: Console):
        self.console = console

    def ask(self, question: str, default: Optional[str] = None, password: bool = False) -> str:
        kwargs = {"console": self.console, "password": password}
        if default is not None:
            kwargs["default"] = default
            kwargs["show_default"] = True
        answer = Prompt.ask(question, **kwargs)
        return (answer or "").strip()

    def choose(self, title: str, options: Sequence[str]) -> Optional[int]:
        """Shows a numbered menu and returns the zero-based index, or None if invalid."""
        self.console.print(title)
        for position, option in enumerate(options, start=1):
            self.console.print(f"{position}. {option}")

        answer = self.ask("Enter the number corresponding to your choice")
        return self.parse_choice(answer, len(options))

    def confirm(self, question: str) -> Optional[bool]:
        answer = self.ask(f"{question} (y/n)")
        return self.parse_yes_no(answer)

    @staticmethod
    def parse_choice(answer: str, option_count: int) -> Optional[int]:
        try:
            index = int(answer.strip())
        except ValueError:
            return None
        if 1 <= index <= option_count:
            return index - 1
        return None

    @staticmethod
    def parse_yes_no(answer: str) -> Optional[bool]:
        normalized = answer.strip().lower()
        if normalized.startswith("y"):
            return True
        if normalized.startswith("n"):
            return False
        return None
