import subprocess

import pytest

from dr_preinstall.errors import InstallerError
from dr_preinstall.services.prompts import PromptService


class DummyLogger:
    def __init__(self):
        self.messages = []

    def _record(self, level, message, *args):
        self.messages.append((level, message % args if args else message))

    def debug(self, message, *args, **_kwargs):
        self._record("debug", message, *args)

    def info(self, message, *args, **_kwargs):
        self._record("info", message, *args)

    def warning(self, message, *args, **_kwargs):
        self._record("warning", message, *args)

    def error(self, message, *args, **_kwargs):
        self._record("error", message, *args)

    def text(self, level=None):
        return "\n".join(message for lvl, message in self.messages if level in (None, lvl))


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class ScriptedPrompts:
    """Answers prompts from a fixed list, in order."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []

    def _next(self, question):
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question}")
        return self.answers.pop(0)

    def ask(self, question, default=None, password=False):
        answer = self._next(question)
        return answer if answer or default is None else default

    def choose(self, title, options):
        return PromptService.parse_choice(self._next(title), len(options))

    def confirm(self, question):
        return PromptService.parse_yes_no(self._next(question))


class FakeRunner:
    """Records commands; `responses` maps a command prefix to (returncode, stdout)."""

    def __init__(self, responses=None, available=()):
        self.responses = responses or {}
        self.available = set(available)
        self.calls = []
        self.inputs = []

    def is_available(self, tool):
        return tool in self.available

    def run(self, cmd, check=True, capture_output=False, input_text=None):
        self.calls.append(list(cmd))
        self.inputs.append(input_text)

        returncode, stdout = 0, ""
        best = -1
        for prefix, response in self.responses.items():
            if tuple(cmd[: len(prefix)]) == tuple(prefix) and len(prefix) > best:
                best = len(prefix)
                returncode, stdout = response

        if returncode != 0 and check:
            raise InstallerError(f"Command failed ({returncode}): {' '.join(cmd)}")
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    def commands_starting_with(self, *prefix):
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]


@pytest.fixture
def logger():
    return DummyLogger()


@pytest.fixture
def console():
    return DummyConsole()


@pytest.fixture
def prompts_factory():
    return ScriptedPrompts


@pytest.fixture
def runner_factory():
    return FakeRunner
