"""
Loading programs from their text form.

The format is line oriented::

    st x 1      # store 1 to x
    ld x        # load x
    ld y
    ---         # end of thread 0
    st y 2
    st x 2
    ---

``st x, 1`` (the form the pretty printer writes) is accepted too.  Blank lines
are ignored and ``#`` starts a comment.  Instructions after the last ``---``
form a final thread.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from conscheck.common import DEFAULT_BOUNDS, Bounds, Instruction, Program, ProgramSyntaxError

THREAD_SEPARATOR = "---"

COMMENT_PATTERN = re.compile(r"#.*$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def parse_instruction(line: str, lineno: int | None = None) -> Instruction:
    """Parse one ``st``/``ld`` line into an :class:`Instruction`."""
    tokens = line.replace(",", " ").split()
    if not tokens:
        raise ProgramSyntaxError("empty instruction", lineno)
    op, operands = tokens[0], tokens[1:]
    if op == "st":
        if len(operands) != 2:
            raise ProgramSyntaxError(f"'st' takes a variable and a value, got {line.strip()!r}", lineno)
        variable, value = operands
        if not INTEGER_PATTERN.match(value):
            raise ProgramSyntaxError(f"store value must be an integer, got {value!r}", lineno)
        return Instruction.store(variable, int(value))
    if op == "ld":
        if len(operands) != 1:
            raise ProgramSyntaxError(f"'ld' takes exactly one variable, got {line.strip()!r}", lineno)
        return Instruction.load(operands[0])
    raise ProgramSyntaxError(f"unknown operation {op!r}", lineno)


def parse_program(text: str | Iterable[str], bounds: Bounds = DEFAULT_BOUNDS) -> Program:
    """Parse program text and validate it against *bounds*.

    Args:
        text: The whole program as a string, or an iterable of lines
        bounds: Limits the loaded program must fit in

    Raises:
        ProgramSyntaxError: on a malformed line
        ProgramError: if the program is empty or exceeds *bounds*
    """
    lines = text.splitlines() if isinstance(text, str) else text

    threads: list[list[Instruction]] = []
    current: list[Instruction] = []
    for lineno, raw in enumerate(lines, start=1):
        line = COMMENT_PATTERN.sub("", raw).strip()
        if not line:
            continue
        if line == THREAD_SEPARATOR:
            threads.append(current)
            current = []
            if len(threads) > bounds.max_threads:
                raise ProgramSyntaxError(f"more than {bounds.max_threads} threads", lineno)
            continue
        current.append(parse_instruction(line, lineno))
        if len(current) > bounds.max_instructions:
            raise ProgramSyntaxError(
                f"thread {len(threads)} has more than {bounds.max_instructions} instructions", lineno
            )
    if current:
        threads.append(current)

    return Program(threads).validate(bounds)


def load_program(path: str | Path, bounds: Bounds = DEFAULT_BOUNDS) -> Program:
    """Read and parse a program file."""
    return parse_program(Path(path).read_text(encoding="utf-8"), bounds)
