"""Mutable execution state shared by one search: executed flags, memory, load values."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from conscheck.common import InstrId, InvariantViolation, Program


class Memory:
    """The shared memory image: every program variable, initially 0.

    Variables keep the order in which they were declared, which is the order
    they are rendered in canonical outcomes.
    """

    __slots__ = ("_values",)

    def __init__(self, variables) -> None:
        self._values: dict[str, int] = dict.fromkeys(variables, 0)

    def __repr__(self) -> str:
        return f"Memory({self._values!r})"

    def __contains__(self, variable: str) -> bool:
        return variable in self._values

    def read(self, variable: str) -> int:
        try:
            return self._values[variable]
        except KeyError:
            raise InvariantViolation(f"read of undeclared variable {variable!r}") from None

    def write(self, variable: str, value: int) -> int:
        """Store *value* and return the value it replaced."""
        previous = self.read(variable)
        self._values[variable] = value
        return previous

    def items(self) -> list[tuple[str, int]]:
        return list(self._values.items())


@dataclass(slots=True)
class _TrailEntry:
    iid: InstrId
    prior: int


class ExecutionState:
    """Which instructions have run, the memory image, and what each load saw.

    Mutations follow a strict stack discipline: :meth:`undo` only reverses the
    most recent :meth:`execute`.  Breaking that discipline raises
    :class:`~conscheck.common.InvariantViolationError`.
    """

    def __init__(self, program: Program) -> None:
        self.program = program
        self.memory = Memory(program.variables)
        self._executed: set[InstrId] = set()
        self._load_values: dict[InstrId, int] = dict.fromkeys(program.loads(), 0)
        self._trail: list[_TrailEntry] = []
        self._total = program.total_instructions

    @property
    def depth(self) -> int:
        return len(self._trail)

    def is_executed(self, iid: InstrId) -> bool:
        return iid in self._executed

    def is_complete(self) -> bool:
        return len(self._executed) == self._total

    def load_value(self, iid: InstrId) -> int:
        return self._load_values[iid]

    def load_values(self) -> list[tuple[InstrId, int]]:
        """Recorded load values in thread-then-position order."""
        return sorted(self._load_values.items())

    def execute(self, iid: InstrId, observed: int | None = None) -> int:
        """Execute one instruction and return what must be restored on undo.

        A store writes its value to memory and returns the overwritten value.
        A load records *observed* and returns the previously recorded value.
        """
        if iid in self._executed:
            raise InvariantViolation(f"{iid} executed twice")
        instr = self.program[iid]
        if instr.is_store:
            assert instr.value is not None
            prior = self.memory.write(instr.variable, instr.value)
        else:
            if observed is None:
                raise InvariantViolation(f"load {iid} executed without a resolved value")
            prior = self._load_values[iid]
            self._load_values[iid] = observed
        self._executed.add(iid)
        self._trail.append(_TrailEntry(iid, prior))
        return prior

    def undo(self, iid: InstrId, prior: int) -> None:
        """Reverse the most recent :meth:`execute` of *iid*."""
        if not self._trail:
            raise InvariantViolation(f"undo of {iid} with nothing executed")
        top = self._trail[-1]
        if top.iid != iid:
            raise InvariantViolation(f"undo of {iid} but the most recent instruction is {top.iid}")
        self._trail.pop()
        instr = self.program[iid]
        if instr.is_store:
            self.memory.write(instr.variable, prior)
        else:
            self._load_values[iid] = prior
        self._executed.discard(iid)

    @contextmanager
    def executing(self, iid: InstrId, observed: int | None = None) -> Iterator[int]:
        """Execute *iid* for the duration of the block, undoing it on exit."""
        prior = self.execute(iid, observed)
        try:
            yield prior
        finally:
            self.undo(iid, prior)
