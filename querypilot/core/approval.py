"""
Approval gate - human sign-off for mutating commands.
Decisions are never cached: every mutating command prompts again.
"""

from abc import ABC, abstractmethod
from typing import Callable

from ..util.logging import logger


APPROVE_ANSWERS = ("yes", "y")


class ApprovalGate(ABC):
    """Synchronous yes/no decision for a single command."""

    @abstractmethod
    def approve(self, command: str, language: str) -> bool:
        pass


class ConsoleApprovalGate(ApprovalGate):
    """Prompts on the terminal. Anything other than yes/y declines."""

    def __init__(self, input_func: Callable[[str], str] = input, output_func: Callable[[str], None] = print):
        self.input_func = input_func
        self.output_func = output_func

    def approve(self, command: str, language: str) -> bool:
        self.output_func("⚠️  Approval required for mutating command.")
        self.output_func(f"Language: {language}")
        self.output_func(f"Command:\n{command}")
        try:
            response = self.input_func("Approve execution? (yes/no): ").strip().lower()
        except EOFError:
            logger.warning("Approval prompt closed without an answer, treating as rejection")
            return False
        return response in APPROVE_ANSWERS


class RejectingApprovalGate(ApprovalGate):
    """Non-interactive gate (HTTP API, batch runs). Declines every mutating command."""

    def approve(self, command: str, language: str) -> bool:
        logger.info("No interactive approver available, rejecting mutating command")
        return False
