"""Shared data structures for conscheck."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


class ProgramError(ValueError):
    """Raised when a program model is malformed or exceeds the configured bounds."""


class ProgramSyntaxError(ProgramError):
    """Raised by the loader when a line of program text cannot be parsed."""

    def __init__(self, message: str, lineno: int | None = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class InvariantViolationError(RuntimeError):
    """Raised when the search driver breaks the execute/undo contract.

    This is never a recoverable condition: it means the program model or the
    search itself is inconsistent, and the enumeration is aborted.
    """


# Convenience alias used throughout the codebase.
InvariantViolation = InvariantViolationError


class Op(Enum):
    LOAD = "ld"
    STORE = "st"


@dataclass(frozen=True)
class Instruction:
    """A single load or store on a named scalar variable.

    Attributes:
        op: Whether this is a load or a store
        variable: Name of the shared variable accessed
        value: Value written by a store; always None for a load
    """

    op: Op
    variable: str
    value: int | None = None

    def __post_init__(self):
        if not self.variable:
            raise ProgramError("Instruction must name a variable")
        if self.op is Op.STORE and (not isinstance(self.value, int) or isinstance(self.value, bool)):
            raise ProgramError(f"Store to {self.variable!r} needs an integer value, got {self.value!r}")
        if self.op is Op.LOAD and self.value is not None:
            raise ProgramError(f"Load from {self.variable!r} cannot carry a value")

    @classmethod
    def load(cls, variable: str) -> Instruction:
        return cls(Op.LOAD, variable)

    @classmethod
    def store(cls, variable: str, value: int) -> Instruction:
        return cls(Op.STORE, variable, value)

    @property
    def is_load(self) -> bool:
        return self.op is Op.LOAD

    @property
    def is_store(self) -> bool:
        return self.op is Op.STORE

    def __str__(self):
        if self.is_store:
            return f"st {self.variable}, {self.value}"
        return f"ld {self.variable}"


class InstrId(NamedTuple):
    """Position of an instruction: (thread index, index within the thread)."""

    thread: int
    index: int

    def __str__(self):
        return f"T{self.thread}.{self.index}"


@dataclass(frozen=True)
class Bounds:
    """Static limits a program must fit in before it is explored.

    Attributes:
        max_threads: Largest number of threads accepted
        max_instructions: Largest number of instructions accepted in one thread
    """

    max_threads: int = 6
    max_instructions: int = 10

    def __post_init__(self):
        if self.max_threads < 1 or self.max_instructions < 1:
            raise ValueError("Bounds must allow at least one thread and one instruction")


DEFAULT_BOUNDS = Bounds()


class Program:
    """An immutable multi-threaded straight-line program.

    Each thread is an ordered sequence of instructions. Program order inside a
    thread is fixed; only the order *across* threads is explored.
    """

    def __init__(self, threads: Sequence[Sequence[Instruction]]):
        """Initialize a program from per-thread instruction sequences.

        Args:
            threads: One sequence of Instruction objects per thread, in thread order
        """
        self.threads: tuple[tuple[Instruction, ...], ...] = tuple(tuple(thread) for thread in threads)
        self._validate()
        self.variables: tuple[str, ...] = tuple(dict.fromkeys(instr.variable for _, instr in self.items()))

    @classmethod
    def from_threads(cls, threads: Iterable[Iterable[Instruction]]) -> Program:
        return cls([list(thread) for thread in threads])

    def _validate(self):
        """Validate that the program is well-formed."""
        if not self.threads:
            raise ProgramError("Program must contain at least one thread")
        for thread in self.threads:
            for instr in thread:
                if not isinstance(instr, Instruction):
                    raise ProgramError(f"Expected an Instruction, got {instr!r}")
        if self.total_instructions == 0:
            raise ProgramError("Program must contain at least one instruction")

    def validate(self, bounds: Bounds = DEFAULT_BOUNDS) -> Program:
        """Check the program against *bounds*, returning it unchanged.

        Raises:
            ProgramError: if there are too many threads or a thread is too long
        """
        if self.num_threads > bounds.max_threads:
            raise ProgramError(f"Program has {self.num_threads} threads; at most {bounds.max_threads} are supported")
        for t, thread in enumerate(self.threads):
            if len(thread) > bounds.max_instructions:
                raise ProgramError(
                    f"Thread {t} has {len(thread)} instructions; at most {bounds.max_instructions} are supported"
                )
        return self

    @property
    def num_threads(self) -> int:
        return len(self.threads)

    @property
    def total_instructions(self) -> int:
        return sum(len(thread) for thread in self.threads)

    @property
    def max_instructions(self) -> int:
        return max(len(thread) for thread in self.threads)

    def __getitem__(self, iid: InstrId) -> Instruction:
        return self.threads[iid.thread][iid.index]

    def ids(self) -> Iterator[InstrId]:
        """Yield every instruction id in thread-then-position order."""
        for t, thread in enumerate(self.threads):
            for i in range(len(thread)):
                yield InstrId(t, i)

    def items(self) -> Iterator[tuple[InstrId, Instruction]]:
        for iid in self.ids():
            yield iid, self[iid]

    def loads(self) -> list[InstrId]:
        return [iid for iid, instr in self.items() if instr.is_load]

    def later_in_thread(self, iid: InstrId) -> Iterator[InstrId]:
        for i in range(iid.index + 1, len(self.threads[iid.thread])):
            yield InstrId(iid.thread, i)

    def prior_stores(self, iid: InstrId) -> list[InstrId]:
        """Earlier stores in the same thread to the same variable, nearest first."""
        variable = self[iid].variable
        thread = self.threads[iid.thread]
        return [
            InstrId(iid.thread, i)
            for i in range(iid.index - 1, -1, -1)
            if thread[i].is_store and thread[i].variable == variable
        ]

    def __eq__(self, other):
        if not isinstance(other, Program):
            return NotImplemented
        return self.threads == other.threads

    def __hash__(self):
        return hash(self.threads)

    def __repr__(self):
        return f"Program({[[str(instr) for instr in thread] for thread in self.threads]!r})"
