"""
Tests for the program model: instructions, programs, and bounds.
"""

from __future__ import annotations

import pytest

from conscheck.common import (
    Bounds,
    Instruction,
    InstrId,
    InvariantViolation,
    InvariantViolationError,
    Op,
    Program,
    ProgramError,
    ProgramSyntaxError,
)
from tests.litmus_programs import STORE_FORWARDING

ld = Instruction.load
st = Instruction.store


class TestInstruction:
    def test_store(self) -> None:
        instr = st("x", 1)
        assert instr.op is Op.STORE
        assert instr.is_store and not instr.is_load
        assert instr.value == 1
        assert str(instr) == "st x, 1"

    def test_load(self) -> None:
        instr = ld("y")
        assert instr.op is Op.LOAD
        assert instr.is_load and not instr.is_store
        assert instr.value is None
        assert str(instr) == "ld y"

    def test_store_requires_integer_value(self) -> None:
        with pytest.raises(ProgramError, match="integer value"):
            Instruction(Op.STORE, "x")

    @pytest.mark.parametrize("value", [True, False])
    def test_store_rejects_bool_value(self, value) -> None:
        with pytest.raises(ProgramError, match="integer value"):
            st("x", value)

    def test_load_rejects_value(self) -> None:
        with pytest.raises(ProgramError, match="cannot carry a value"):
            Instruction(Op.LOAD, "x", 3)

    def test_variable_required(self) -> None:
        with pytest.raises(ProgramError):
            ld("")

    def test_immutable(self) -> None:
        instr = st("x", 1)
        with pytest.raises(AttributeError):
            instr.value = 2  # type: ignore[misc]

    def test_equality(self) -> None:
        assert st("x", 1) == st("x", 1)
        assert st("x", 1) != st("x", 2)


class TestProgram:
    def test_shape(self) -> None:
        assert STORE_FORWARDING.num_threads == 2
        assert STORE_FORWARDING.total_instructions == 5
        assert STORE_FORWARDING.max_instructions == 3

    def test_ids_thread_then_position(self) -> None:
        assert list(STORE_FORWARDING.ids()) == [
            InstrId(0, 0),
            InstrId(0, 1),
            InstrId(0, 2),
            InstrId(1, 0),
            InstrId(1, 1),
        ]

    def test_getitem(self) -> None:
        assert STORE_FORWARDING[InstrId(1, 1)] == st("x", 2)

    def test_variables_in_first_appearance_order(self) -> None:
        program = Program([[ld("b"), st("a", 1)], [st("c", 2), ld("a")]])
        assert program.variables == ("b", "a", "c")

    def test_loads(self) -> None:
        assert STORE_FORWARDING.loads() == [InstrId(0, 1), InstrId(0, 2)]

    def test_prior_stores_nearest_first(self) -> None:
        program = Program([[st("x", 1), st("y", 5), st("x", 2), ld("x"), ld("y")]])
        assert program.prior_stores(InstrId(0, 3)) == [InstrId(0, 2), InstrId(0, 0)]
        assert program.prior_stores(InstrId(0, 4)) == [InstrId(0, 1)]
        assert program.prior_stores(InstrId(0, 0)) == []

    def test_prior_stores_same_thread_only(self) -> None:
        program = Program([[st("x", 1)], [ld("x")]])
        assert program.prior_stores(InstrId(1, 0)) == []

    def test_later_in_thread(self) -> None:
        assert list(STORE_FORWARDING.later_in_thread(InstrId(0, 0))) == [InstrId(0, 1), InstrId(0, 2)]
        assert list(STORE_FORWARDING.later_in_thread(InstrId(1, 1))) == []

    def test_empty_threads_allowed(self) -> None:
        program = Program([[st("x", 1)], []])
        assert program.num_threads == 2
        assert program.total_instructions == 1

    def test_no_threads_rejected(self) -> None:
        with pytest.raises(ProgramError, match="at least one thread"):
            Program([])

    def test_no_instructions_rejected(self) -> None:
        with pytest.raises(ProgramError, match="at least one instruction"):
            Program([[], []])

    def test_non_instruction_rejected(self) -> None:
        with pytest.raises(ProgramError, match="Expected an Instruction"):
            Program([["st x 1"]])  # type: ignore[list-item]

    def test_from_threads(self) -> None:
        program = Program.from_threads(iter([iter([st("x", 1)]), iter([ld("x")])]))
        assert program == Program([[st("x", 1)], [ld("x")]])

    def test_hashable(self) -> None:
        assert hash(Program([[ld("x")]])) == hash(Program([[ld("x")]]))


class TestBounds:
    def test_defaults(self) -> None:
        bounds = Bounds()
        assert bounds.max_threads == 6
        assert bounds.max_instructions == 10

    def test_validate_passes_within_bounds(self) -> None:
        assert STORE_FORWARDING.validate(Bounds(max_threads=2, max_instructions=3)) is STORE_FORWARDING

    def test_too_many_threads(self) -> None:
        program = Program([[ld("x")] for _ in range(7)])
        with pytest.raises(ProgramError, match="7 threads"):
            program.validate()

    def test_thread_too_long(self) -> None:
        program = Program([[ld("x")], [ld("x")] * 11])
        with pytest.raises(ProgramError, match="Thread 1 has 11 instructions"):
            program.validate()

    def test_custom_bounds(self) -> None:
        with pytest.raises(ProgramError):
            STORE_FORWARDING.validate(Bounds(max_threads=1))

    def test_degenerate_bounds_rejected(self) -> None:
        with pytest.raises(ValueError):
            Bounds(max_threads=0)


class TestErrors:
    def test_alias(self) -> None:
        assert InvariantViolation is InvariantViolationError
        assert issubclass(InvariantViolation, RuntimeError)

    def test_syntax_error_is_program_error(self) -> None:
        err = ProgramSyntaxError("bad", lineno=3)
        assert isinstance(err, ProgramError)
        assert isinstance(err, ValueError)
        assert err.lineno == 3
        assert str(err) == "line 3: bad"
