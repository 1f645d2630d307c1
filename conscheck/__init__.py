"""
conscheck: enumerate litmus-test outcomes under store-atomic and write-atomic memory models.

Building programs::

    from conscheck.common import Instruction, Program
    from conscheck.loader import parse_program

Exploring one model::

    from conscheck.models import ConsistencyModel
    from conscheck.search import enumerate_outcomes, explore

Comparing IBM370 (store-atomic) against TSO (write-atomic)::

    from conscheck.search import compare_models
    from conscheck.report import format_report

Property-based testing::

    from conscheck.strategies import program_strategy
"""

__version__ = "0.1.0"
