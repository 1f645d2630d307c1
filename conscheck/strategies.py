"""Hypothesis strategies for generating small litmus programs."""

from __future__ import annotations

from collections.abc import Sequence

from conscheck.common import Instruction, Program


def program_strategy(
    max_threads: int = 3,
    max_instructions: int = 3,
    variables: Sequence[str] = ("x", "y"),
    values: Sequence[int] = (1, 2),
    max_total: int | None = None,
):
    """Hypothesis strategy for generating random load/store programs.

    Every generated program has at least one instruction.  Keep the sizes
    small: the number of interleavings grows factorially with the total
    instruction count.

    For use with hypothesis @given decorator in your own tests:

        >>> from hypothesis import given
        >>> from conscheck.models import ConsistencyModel
        >>> from conscheck.search import enumerate_outcomes
        >>> from conscheck.strategies import program_strategy
        >>>
        >>> @given(program=program_strategy(max_threads=2))
        ... def test_store_atomic_is_weaker(program):
        ...     ibm = enumerate_outcomes(program, ConsistencyModel.IBM370)
        ...     tso = enumerate_outcomes(program, ConsistencyModel.TSO)
        ...     assert ibm.issubset(tso)

    Args:
        max_threads: Largest thread count to generate.
        max_instructions: Largest per-thread instruction count.
        variables: Variable names to draw from.
        values: Store values to draw from.
        max_total: Cap on the total instruction count across all threads.
    """
    from hypothesis import strategies as st

    instruction = st.one_of(
        st.builds(Instruction.load, st.sampled_from(list(variables))),
        st.builds(Instruction.store, st.sampled_from(list(variables)), st.sampled_from(list(values))),
    )

    @st.composite
    def _program(draw: st.DrawFn) -> Program:
        num_threads = draw(st.integers(min_value=1, max_value=max_threads))
        budget = max_total if max_total is not None else num_threads * max_instructions
        threads: list[list[Instruction]] = []
        for t in range(num_threads):
            # Reserve room so the first thread is never empty.
            low = 1 if t == 0 else 0
            high = max(low, min(max_instructions, budget))
            thread = draw(st.lists(instruction, min_size=low, max_size=high))
            budget -= len(thread)
            threads.append(thread)
        return Program(threads)

    return _program()
