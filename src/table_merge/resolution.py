"""
Conflict resolution for contested fields.

A decision is made once per conflicting entity and applies to all of its
contested fields. The interactive strategy reads from an injected input
channel; a channel that fails falls back to A and the run continues.
"""

import logging
import sys
from collections.abc import Sequence
from typing import Protocol, TextIO

from .diff import FieldDiff, display_value
from .errors import InputError
from .models import KEY_SEPARATOR, NULL_KEY_SENTINEL, ConflictStrategy, Side

logger = logging.getLogger(__name__)

PROMPT = "  >>> Choose the side to keep (A/B): "


class InputChannel(Protocol):
    """Line-oriented, blocking input that stays usable across prompts."""

    def show(self, text: str) -> None:
        ...

    def read_line(self) -> str:
        """Return the next line. Raises InputError when the channel is unusable."""
        ...


class ConsoleChannel:
    """
    Input channel over one pair of text streams.

    The same stream objects are reused for every prompt so input typed ahead
    of a prompt is never lost.
    """

    def __init__(self, input_stream: TextIO | None = None, output_stream: TextIO | None = None):
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.output_stream = output_stream if output_stream is not None else sys.stdout

    def show(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()

    def read_line(self) -> str:
        try:
            line = self.input_stream.readline()
        except (OSError, ValueError) as e:
            raise InputError(f"Cannot read input: {e}", operation="read_line") from e
        if line == "":
            raise InputError("Input closed", operation="read_line")
        return line


def normalize_choice(line: str) -> Side | None:
    choice = line.strip().upper()
    if choice == "A":
        return Side.A
    if choice == "B":
        return Side.B
    return None


class ResolutionPolicy:
    """Chooses the winning side for the contested fields of one entity."""

    def __init__(self, strategy: ConflictStrategy, channel: InputChannel | None = None):
        self.strategy = ConflictStrategy.parse(strategy)
        if self.strategy is ConflictStrategy.INTERACTIVE and channel is None:
            channel = ConsoleChannel()
        self.channel = channel

    def decide(self, key: str, contested: Sequence[FieldDiff]) -> Side:
        """
        Pick A or B for every field in ``contested``.

        Args:
            key: Entity key, shown to the user in interactive mode
            contested: Fields where both sides hold different non-empty values
        """
        if self.strategy is ConflictStrategy.PREFER_A:
            return Side.A
        if self.strategy is ConflictStrategy.PREFER_B:
            return Side.B
        return self._ask(key, contested)

    def _ask(self, key: str, contested: Sequence[FieldDiff]) -> Side:
        self.channel.show(self._describe(key, contested))
        while True:
            self.channel.show(PROMPT)
            try:
                line = self.channel.read_line()
            except InputError as e:
                logger.warning(f"Interactive input failed, keeping A for this entity: {e}")
                return Side.A

            choice = normalize_choice(line)
            if choice is not None:
                logger.info(f"User chose {choice.value} for {len(contested)} contested field(s)")
                return choice
            self.channel.show(f"  Invalid input {line.strip()!r}, enter A or B\n")

    @staticmethod
    def _describe(key: str, contested: Sequence[FieldDiff]) -> str:
        lines = ["", f"Contested fields for key [{printable_key(key)}]:"]
        for diff in contested:
            lines.append(
                f"    {diff.name}: A={display_value(diff.value_a):<30} B={display_value(diff.value_b)}"
            )
        lines.append("  A: keep table A values    B: take table B values")
        return "\n".join(lines) + "\n"


def printable_key(key: str) -> str:
    """Key with its reserved separator and NULL sentinel made readable."""
    return key.replace(NULL_KEY_SENTINEL, "<NULL>").replace(KEY_SEPARATOR, ", ")
