"""
Consistency models and the per-thread dependency graph they induce.

A consistency model decides which earlier instructions of a thread a later
instruction has to wait for before it may execute.  Nothing orders
instructions of *different* threads; that freedom is exactly what the search
explores.

Both supported models share two rules:

1. Stores are totally ordered among themselves in program order.
2. A load is a barrier: nothing after it in program order may run first.

They differ only in how a load relates to an earlier store:

* **IBM370** (store-atomic): a load waits for every earlier store to the
  same variable.
* **TSO** (write-atomic): a load never waits for an earlier store, which
  models the store buffer.  The thread can still see its own buffered
  store through forwarding (see :mod:`conscheck.search`).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from conscheck.common import Instruction, InstrId, Program


class ConsistencyModel(Enum):
    IBM370 = "ibm370"
    TSO = "tso"

    @property
    def title(self) -> str:
        """Heading used when reporting this model's solutions."""
        if self is ConsistencyModel.IBM370:
            return "IBM370 (STORE-ATOMIC)"
        return "TSO (WRITE-ATOMIC)"

    @property
    def store_atomic(self) -> bool:
        return self is ConsistencyModel.IBM370

    def must_wait(self, earlier: Instruction, later: Instruction) -> bool:
        """Return True if *later* may not execute before *earlier*.

        Both instructions belong to the same thread and *earlier* precedes
        *later* in program order.
        """
        if earlier.is_load:
            return True
        if later.is_store:
            return True
        # Store followed by a load.
        return self.store_atomic and earlier.variable == later.variable


class DependencyGraph:
    """Unresolved same-thread ordering edges for one program under one model.

    ``waits_on[d]`` holds the earlier instructions that *d* still waits for.
    Executing an instruction removes its outgoing edges (:meth:`satisfy`);
    undoing it puts them back by re-applying the model's rule
    (:meth:`restore`).  An instruction is eligible once it waits on nothing.
    """

    def __init__(self, program: Program, model: ConsistencyModel) -> None:
        self.program = program
        self.model = model
        self._waits_on: dict[InstrId, set[InstrId]] = {iid: set() for iid in program.ids()}
        for iid in program.ids():
            self._add_edges(iid)

    def _add_edges(self, iid: InstrId) -> None:
        earlier = self.program[iid]
        for later in self.program.later_in_thread(iid):
            if self.model.must_wait(earlier, self.program[later]):
                self._waits_on[later].add(iid)

    def _remove_edges(self, iid: InstrId) -> None:
        for later in self.program.later_in_thread(iid):
            self._waits_on[later].discard(iid)

    def has_dependencies(self, iid: InstrId) -> bool:
        return bool(self._waits_on[iid])

    def dependencies(self, iid: InstrId) -> frozenset[InstrId]:
        return frozenset(self._waits_on[iid])

    def edges(self) -> list[tuple[InstrId, InstrId]]:
        """All unresolved edges as ``(later, earlier)`` pairs, sorted."""
        return sorted((later, earlier) for later, deps in self._waits_on.items() for earlier in deps)

    def satisfy(self, iid: InstrId) -> None:
        self._remove_edges(iid)

    def restore(self, iid: InstrId) -> None:
        self._add_edges(iid)

    @contextmanager
    def satisfied(self, iid: InstrId) -> Iterator[None]:
        """Drop *iid*'s outgoing edges for the duration of the block."""
        self.satisfy(iid)
        try:
            yield
        finally:
            self.restore(iid)
