"""
End-to-end use of the public API, following the workflow in the package docstring.
"""

from pathlib import Path

import conscheck
from conscheck.common import Instruction, Program
from conscheck.loader import parse_program
from conscheck.models import ConsistencyModel
from conscheck.report import format_report
from conscheck.search import compare_models, enumerate_outcomes
from tests.litmus_programs import (
    STORE_FORWARDING_IBM370,
    STORE_FORWARDING_TEXT,
    STORE_FORWARDING_TSO,
    STORE_FORWARDING_VIOLATION,
)


def test_text_to_report():
    program = parse_program(STORE_FORWARDING_TEXT)
    comparison = compare_models(program)
    assert comparison.store_atomic.solutions.keys() == STORE_FORWARDING_IBM370
    assert comparison.write_atomic.solutions.keys() == STORE_FORWARDING_TSO
    assert comparison.violations == [STORE_FORWARDING_VIOLATION]
    assert f"{STORE_FORWARDING_VIOLATION}*\n" in format_report(comparison)


def test_built_program_matches_parsed_one():
    ld, st = Instruction.load, Instruction.store
    built = Program([[st("x", 1), ld("x"), ld("y")], [st("y", 2), st("x", 2)]])
    assert built == parse_program(STORE_FORWARDING_TEXT)
    assert enumerate_outcomes(built, ConsistencyModel.TSO).keys() == STORE_FORWARDING_TSO


def test_version_matches_project_metadata():
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    assert f'version = "{conscheck.__version__}"' in pyproject.read_text(encoding="utf-8")
