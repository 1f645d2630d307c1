"""
Shared pytest configuration for the conscheck tests.

Usage:
    - Litmus programs live in tests/litmus_programs.py
    - Mark slow exhaustive cross-checks with @pytest.mark.exhaustive
"""

import os
import sys

import pytest

# Add parent directory to path so we can import conscheck and tests.*
_conscheck_path = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _conscheck_path not in sys.path:
    sys.path.insert(0, _conscheck_path)

from conscheck.common import Instruction, Program  # noqa: E402
from conscheck.models import ConsistencyModel  # noqa: E402
from tests.litmus_programs import STORE_FORWARDING  # noqa: E402


def pytest_configure(config):
    """Register conscheck-specific markers."""
    config.addinivalue_line(
        "markers",
        "exhaustive: cross-checks the search against the brute-force permutation oracle",
    )


@pytest.fixture
def store_forwarding_program() -> Program:
    return STORE_FORWARDING


@pytest.fixture(params=list(ConsistencyModel), ids=lambda model: model.value)
def model(request) -> ConsistencyModel:
    """Run a test once per consistency model."""
    return request.param


@pytest.fixture
def two_thread_program() -> Program:
    return Program(
        [
            [Instruction.store("x", 1), Instruction.load("y")],
            [Instruction.load("x")],
        ]
    )
