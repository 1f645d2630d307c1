"""Human-readable rendering of programs, solution sets, and witnesses.

The report layout is fixed; existing consumers diff the text::

    PROGRAM LOADED:
    <one row per program position, threads separated by tabs>

    IBM370 (STORE-ATOMIC) POSSIBLE SOLUTIONS:
    [x]==1; [y]==2; x==1; y==2;
    ...

    TSO (WRITE-ATOMIC) POSSIBLE SOLUTIONS (* breaks store atomicity):
    [x]==1; [y]==2; x==1; y==0; *
"""

from __future__ import annotations

from collections.abc import Sequence

from conscheck.common import Instruction, Program
from conscheck.outcome import SolutionSet
from conscheck.search import LoadSource, ModelComparison, TraceStep

VIOLATION_MARKER = "*"

_CELL_SEPARATOR = "\t\t"
_EMPTY_CELL = "\t\t\t"


def format_instruction(instr: Instruction) -> str:
    return str(instr)


def format_program(program: Program) -> str:
    """Lay the threads out side by side, one program position per row."""
    rows: list[str] = []
    for i in range(program.max_instructions):
        cells = []
        for thread in program.threads:
            if i < len(thread):
                cells.append(format_instruction(thread[i]) + _CELL_SEPARATOR)
            else:
                cells.append(_EMPTY_CELL)
        rows.append("".join(cells))
    return "\n".join(rows) + "\n"


def format_witness(steps: Sequence[TraceStep]) -> str:
    """One line per executed instruction of a witness interleaving."""
    if not steps:
        return ""
    labels = [str(step.iid) for step in steps]
    width = max(len(label) for label in labels)
    instr_width = max(len(str(step.instruction)) for step in steps)
    lines = []
    for label, step in zip(labels, steps):
        line = f"  {label.ljust(width)}  {str(step.instruction).ljust(instr_width)}  -> {step.value}"
        if step.source is LoadSource.FORWARDED:
            line += " (forwarded)"
        lines.append(line)
    return "\n".join(lines) + "\n"


def format_solutions(
    heading: str,
    solutions: SolutionSet,
    *,
    reference: SolutionSet | None = None,
    show_witnesses: bool = False,
) -> str:
    """Render a solution set under *heading*, outcomes in sorted order.

    Args:
        heading: Title line, printed followed by a colon.
        solutions: The outcomes to print.
        reference: If given, outcomes absent from it are marked with ``*``.
        show_witnesses: Print the witness interleaving under each outcome.
    """
    parts = [f"{heading}:\n"]
    for key in solutions.sorted():
        marker = VIOLATION_MARKER if reference is not None and key not in reference else ""
        parts.append(f"{key}{marker}\n")
        if show_witnesses:
            parts.append(format_witness(solutions.witness(key)))
    parts.append("\n")
    return "".join(parts)


def format_report(comparison: ModelComparison, *, show_witnesses: bool = False) -> str:
    """The full report: the program, then both models' solutions."""
    store_atomic = comparison.store_atomic
    write_atomic = comparison.write_atomic
    return "".join(
        [
            "PROGRAM LOADED:\n",
            format_program(comparison.program),
            "\n",
            format_solutions(
                f"{store_atomic.model.title} POSSIBLE SOLUTIONS",
                store_atomic.solutions,
                show_witnesses=show_witnesses,
            ),
            format_solutions(
                f"{write_atomic.model.title} POSSIBLE SOLUTIONS ({VIOLATION_MARKER} breaks store atomicity)",
                write_atomic.solutions,
                reference=store_atomic.solutions,
                show_witnesses=show_witnesses,
            ),
        ]
    )
