"""Canonical outcomes and the deduplicating solution set."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from conscheck.common import InstrId, Program

if TYPE_CHECKING:
    from conscheck.search import TraceStep
    from conscheck.state import ExecutionState


@dataclass(frozen=True)
class Outcome:
    """Final memory image plus the value observed by every load.

    Attributes:
        memory: ``(variable, value)`` pairs in declaration order
        loads: ``(load id, variable, value)`` triples in thread-then-position order
    """

    memory: tuple[tuple[str, int], ...]
    loads: tuple[tuple[InstrId, str, int], ...]

    @property
    def canonical(self) -> str:
        """Order-independent text key, e.g. ``"[x]==1; [y]==2; x==1; y==0; "``."""
        parts = [f"[{name}]=={value}; " for name, value in self.memory]
        parts.extend(f"{name}=={value}; " for _, name, value in self.loads)
        return "".join(parts)

    def __str__(self):
        return self.canonical


def canonicalize(program: Program, state: ExecutionState) -> Outcome:
    """Snapshot a completed execution state as an :class:`Outcome`."""
    return Outcome(
        memory=tuple(state.memory.items()),
        loads=tuple((iid, program[iid].variable, value) for iid, value in state.load_values()),
    )


class SolutionSet:
    """Distinct outcomes keyed by canonical string, in insertion order.

    Each entry remembers the first interleaving (witness) that produced it.
    Membership tests accept either a canonical string or an :class:`Outcome`.
    """

    def __init__(self) -> None:
        self._outcomes: dict[str, Outcome] = {}
        self._witnesses: dict[str, tuple[TraceStep, ...]] = {}

    def add(self, outcome: Outcome, witness: Sequence[TraceStep] = ()) -> bool:
        """Insert *outcome*; return False if an equal outcome was already present."""
        key = outcome.canonical
        if key in self._outcomes:
            return False
        self._outcomes[key] = outcome
        self._witnesses[key] = tuple(witness)
        return True

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Outcome):
            item = item.canonical
        return item in self._outcomes

    def __iter__(self) -> Iterator[str]:
        return iter(self._outcomes)

    def __len__(self) -> int:
        return len(self._outcomes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SolutionSet):
            return set(self._outcomes) == set(other._outcomes)
        if isinstance(other, (set, frozenset)):
            return set(self._outcomes) == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"SolutionSet({self.sorted()!r})"

    def sorted(self) -> list[str]:
        return sorted(self._outcomes)

    def keys(self) -> frozenset[str]:
        return frozenset(self._outcomes)

    def outcome(self, key: str) -> Outcome:
        return self._outcomes[key]

    def witness(self, key: str) -> tuple[TraceStep, ...]:
        return self._witnesses[key]

    def issubset(self, other: SolutionSet) -> bool:
        return all(key in other for key in self)


def store_atomicity_violations(write_atomic: SolutionSet, store_atomic: SolutionSet) -> list[str]:
    """Outcomes reachable under the write-atomic model but not the store-atomic one."""
    return sorted(key for key in write_atomic if key not in store_atomic)
