"""Console UI: prompt for user input and print the agent's progress to stdout."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

TERMINAL_RESET = "\033[0m"
TERMINAL_GREEN = "\033[32m"
TERMINAL_YELLOW = "\033[33m"
TERMINAL_BLUE = "\033[34m"
TERMINAL_CYAN = "\033[36m"
TERMINAL_GREY = "\033[90m"
TERMINAL_BRIGHT_GREEN = "\033[92m"
TERMINAL_MAGENTA = "\033[95m"
TERMINAL_RED = "\033[91m"


class ConsoleUI:
    """Line-oriented terminal front end.

    Reads one user message per line from stdin (None at end of input) and
    renders context injection, model output and tool activity with ANSI
    colours.
    """

    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        color: bool = True,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self.color = color

    def _paint(self, color: str, text: str) -> str:
        return f"{color}{text}{TERMINAL_RESET}" if self.color else text

    def _print(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self._stdout, flush=True)

    def get_user_message(self) -> Optional[str]:
        self._print(self._paint(TERMINAL_MAGENTA, "You") + ": ", end="")
        line = self._stdin.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def print_banner(self, model: str, tool_names: list[str], retrieval_enabled: bool) -> None:
        self._print(f"Chat with {model} (use 'ctrl-c' to quit)")
        self._print(self._paint(TERMINAL_GREY, f"Tools: {', '.join(tool_names)}"))
        if not retrieval_enabled:
            self._print(self._paint(TERMINAL_GREY, "Context retrieval disabled (no embedding provider)"))

    def show_context(self, context: str) -> None:
        self._print(self._paint(TERMINAL_GREEN, f"Injecting Context:\n{context}"), end="")

    def show_thinking(self) -> None:
        self._print(self._paint(TERMINAL_BLUE, "Thinking..."))

    def show_assistant_text(self, text: str) -> None:
        self._print(self._paint(TERMINAL_CYAN, f"Assistant: {text}"))

    def show_tool_execution(self, name: str) -> None:
        self._print(self._paint(TERMINAL_YELLOW, f"Executing: {name}"))

    def show_observing(self) -> None:
        self._print(self._paint(TERMINAL_GREEN, "Observing results..."))

    def show_error(self, message: str) -> None:
        self._print(self._paint(TERMINAL_RED, f"Error: {message}"))

    def show_interrupted(self) -> None:
        self._print("\nReceived interrupt signal, shutting down...")

    def show_goodbye(self) -> None:
        self._print("\nGoodbye!")
