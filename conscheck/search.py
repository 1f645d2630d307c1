"""
Exhaustive interleaving search under a consistency model.

The search is a depth-first backtracking walk over execution orders.  At each
point, every instruction that has not yet executed and no longer waits on
anything (see :class:`~conscheck.models.DependencyGraph`) is a candidate for
the next step.  Each candidate is executed, the search recurses, and the
instruction is undone before the next candidate is tried.  Every completed
execution is canonicalized into the model's :class:`SolutionSet`.

Loads are where the models differ.  Under IBM370 a load always reads shared
memory.  Under TSO a load may run ahead of an earlier store to the same
variable in its own thread; while that store is still buffered the load is
resolved by forwarding the buffered value.  How a load is resolved is an
explicit choice (:class:`LoadSource`) that the search iterates over just like
the candidate instructions.

Usage::

    from conscheck.common import Instruction, Program
    from conscheck.search import compare_models

    program = Program([
        [Instruction.store("x", 1), Instruction.load("x"), Instruction.load("y")],
        [Instruction.store("y", 2), Instruction.store("x", 2)],
    ])
    comparison = compare_models(program)
    assert comparison.violations == ["[x]==1; [y]==2; x==1; y==0; "]
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from conscheck.common import DEFAULT_BOUNDS, Bounds, Instruction, InstrId, Program
from conscheck.models import ConsistencyModel, DependencyGraph
from conscheck.outcome import SolutionSet, canonicalize, store_atomicity_violations
from conscheck.state import ExecutionState


class LoadSource(Enum):
    """Where a load takes its value from."""

    MEMORY = "memory"
    FORWARDED = "forwarded"


@dataclass(frozen=True)
class TraceStep:
    """One executed instruction of a witness interleaving.

    Attributes:
        iid: Which instruction ran
        instruction: The instruction itself
        value: Value written (store) or observed (load)
        source: How a load was resolved; None for stores
    """

    iid: InstrId
    instruction: Instruction
    value: int
    source: LoadSource | None = None


@dataclass
class EnumerationResult:
    """Result of exploring one program under one model.

    Attributes:
        model: The consistency model that was explored.
        solutions: Distinct outcomes, each with a witness interleaving.
        executions_explored: Completed executions, counting duplicates.
    """

    model: ConsistencyModel
    solutions: SolutionSet = field(default_factory=SolutionSet)
    executions_explored: int = 0


@dataclass
class ModelComparison:
    """Results of both models for the same program."""

    program: Program
    store_atomic: EnumerationResult
    write_atomic: EnumerationResult

    @property
    def violations(self) -> list[str]:
        """Write-atomic outcomes that break store atomicity."""
        return store_atomicity_violations(self.write_atomic.solutions, self.store_atomic.solutions)


class SearchContext:
    """All mutable state of one search: built fresh for every model run."""

    def __init__(
        self,
        program: Program,
        model: ConsistencyModel,
        *,
        read_around_pending_stores: bool = False,
    ) -> None:
        self.program = program
        self.model = model
        self.read_around_pending_stores = read_around_pending_stores
        self.graph = DependencyGraph(program, model)
        self.state = ExecutionState(program)
        self.result = EnumerationResult(model)
        self.trace: list[TraceStep] = []

    def eligible(self) -> list[InstrId]:
        """Instructions that may execute next, in thread-then-position order."""
        return [
            iid
            for iid in self.program.ids()
            if not self.state.is_executed(iid) and not self.graph.has_dependencies(iid)
        ]

    def load_sources(self, iid: InstrId) -> list[LoadSource]:
        """The ways the load *iid* may be resolved in the current state."""
        if self.model is ConsistencyModel.IBM370:
            return [LoadSource.MEMORY]
        pending = self.program.prior_stores(iid)
        if not pending or any(self.state.is_executed(store) for store in pending):
            return [LoadSource.MEMORY]
        if self.read_around_pending_stores:
            return [LoadSource.FORWARDED, LoadSource.MEMORY]
        return [LoadSource.FORWARDED]

    def resolve(self, iid: InstrId, source: LoadSource) -> int:
        instr = self.program[iid]
        if source is LoadSource.FORWARDED:
            nearest = self.program[self.program.prior_stores(iid)[0]]
            assert nearest.value is not None
            return nearest.value
        return self.state.memory.read(instr.variable)

    def choices(self, iid: InstrId) -> list[tuple[LoadSource | None, int]]:
        """Every (source, value) the instruction can execute with right now."""
        instr = self.program[iid]
        if instr.is_store:
            assert instr.value is not None
            return [(None, instr.value)]
        return [(source, self.resolve(iid, source)) for source in self.load_sources(iid)]

    @contextmanager
    def step(self, iid: InstrId, source: LoadSource | None, value: int) -> Iterator[None]:
        """Execute one instruction for the duration of the block.

        The execution state, the dependency edges, and the trace are all
        restored on every exit path.
        """
        observed = None if source is None else value
        with self.graph.satisfied(iid), self.state.executing(iid, observed):
            self.trace.append(TraceStep(iid, self.program[iid], value, source))
            try:
                yield
            finally:
                self.trace.pop()

    def run(self) -> EnumerationResult:
        self._search()
        return self.result

    def _search(self) -> None:
        for iid in self.eligible():
            for source, value in self.choices(iid):
                with self.step(iid, source, value):
                    if self.state.is_complete():
                        self._record()
                    else:
                        self._search()

    def _record(self) -> None:
        self.result.executions_explored += 1
        self.result.solutions.add(canonicalize(self.program, self.state), self.trace)


def explore(
    program: Program,
    model: ConsistencyModel,
    *,
    bounds: Bounds | None = None,
    read_around_pending_stores: bool = False,
) -> EnumerationResult:
    """Enumerate every outcome of *program* under *model*.

    Args:
        program: The program to explore.
        model: Which consistency model's ordering rules to apply.
        bounds: Limits the program must fit in (default: 6 threads of 10 instructions).
        read_around_pending_stores: TSO only. Also let a load that runs ahead
            of its own thread's buffered store read shared memory instead of
            the forwarded value.

    Returns:
        EnumerationResult with the distinct outcomes and exploration count.

    Raises:
        ProgramError: if the program exceeds *bounds*; no search is started.
    """
    program.validate(bounds or DEFAULT_BOUNDS)
    context = SearchContext(program, model, read_around_pending_stores=read_around_pending_stores)
    return context.run()


def enumerate_outcomes(program: Program, model: ConsistencyModel, **kwargs) -> SolutionSet:
    """Like :func:`explore`, returning only the solution set."""
    return explore(program, model, **kwargs).solutions


def compare_models(
    program: Program,
    *,
    bounds: Bounds | None = None,
    read_around_pending_stores: bool = False,
) -> ModelComparison:
    """Explore *program* under IBM370 and TSO, each with a fresh search context."""
    program.validate(bounds or DEFAULT_BOUNDS)
    store_atomic = explore(program, ConsistencyModel.IBM370, bounds=bounds)
    write_atomic = explore(
        program,
        ConsistencyModel.TSO,
        bounds=bounds,
        read_around_pending_stores=read_around_pending_stores,
    )
    return ModelComparison(program=program, store_atomic=store_atomic, write_atomic=write_atomic)
