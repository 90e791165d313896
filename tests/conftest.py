"""
Pytest configuration for the Higgs Hierarchy test suite.

Provides the benchmark spectrum, a smooth stand-in for the closed-form
expansions and configurable fakes of the exact two-loop oracle.
"""

import pytest
import sys
import numpy as np
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from higgs_hierarchy.core.expansion_table import ExpansionTable
from higgs_hierarchy.core.hierarchies import ExpansionDepth, HierarchyTag, as_tag
from higgs_hierarchy.core.parameters import ParameterSet


def pytest_configure(config):
    """Called after command line options have been parsed."""
    # Add markers for test organization
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# Reference spectrum (SPheno-like benchmark point, DR-bar' at Q = 1973.75 GeV)
BENCHMARK = dict(
    scale=1973.75,
    mu=1999.82,
    g3=1.02907,
    vd=49.5751,
    vu=236.115,
    mq2=np.diag([4.00428e6, 4.00428e6, 3.99786e6]),
    md2=np.diag([4.00361e6, 4.00361e6, 4.00346e6]),
    mu2=np.diag([4.00363e6, 4.00363e6, 3.99067e6]),
    At=6992.34,
    Ab=9996.81,
    MA=1992.14,
    MG=2000.96,
    MW=76.7777,
    MZ=88.4219,
    Mt=147.295,
    Mb=2.23149,
    MSt=[1745.3, 2232.1],
    MSb=[2000.14, 2001.09],
    s2t=-0.999995,
    s2b=-0.550527,
)

# (S11, S12, S22) of the h3 hierarchy at the benchmark point, top sector, MDR scheme
H3_REFERENCE = {
    1: (-1033.437882123761, -394.3521101999062, 17633.47392819223),
    2: (-13.48340821650015, 11.12436787252288, 1476.660068002361),
    3: (1.096612614742133, 9.986750150481939, 370.2505433664134),
}


def make_params(**overrides) -> ParameterSet:
    """Benchmark ParameterSet with some fields replaced."""
    values = dict(BENCHMARK)
    values.update(overrides)
    return ParameterSet(**values)


def smooth_expansion(loop_order: int):
    """
    Smooth stand-in for a closed-form expansion of the given loop order.

    Depends on the sfermion masses, on every expansion-depth flag and on
    the truncation switch, so all code paths feeding the bundle matter.
    """
    def expansion(b):
        order = b.Al4p ** (loop_order - 1)
        depth = sum(b.depth(flag) for flag in ExpansionDepth) / len(ExpansionDepth)
        log_ratio = np.log(b.Mst1 * b.Mst2 / b.Mt**2)
        s1 = -order * b.Mt**2 * b.MuSUSY**2 * b.s2t**2 / (b.Mst1 * b.Mst2)
        s2 = order * b.Mt**4 * (2 * log_ratio + 0.1 * depth + b.upcut(0.05))
        s12 = order * b.Mt**3 * b.MuSUSY * b.s2t / (b.Mst1 + b.Mst2)
        return s1, s2, s12
    return expansion


class RecordingExpansionTable(ExpansionTable):
    """ExpansionTable remembering every (tag, loop order, bundle) it evaluates."""

    def __init__(self, functions=None):
        super().__init__(functions)
        self.calls = []

    def evaluate(self, tag, loop_order, bundle):
        self.calls.append((as_tag(tag), loop_order, bundle))
        return super().evaluate(tag, loop_order, bundle)


def make_table(tags=None) -> RecordingExpansionTable:
    """Register smooth_expansion for all loop orders of `tags` (default: all)."""
    table = RecordingExpansionTable()
    for tag in (tags if tags is not None else HierarchyTag):
        for loop_order in (1, 2, 3):
            table.register(tag, loop_order, smooth_expansion(loop_order))
    return table


class FakeOracle:
    """
    Stand-in for the exact two-loop routine.

    Returns `result` = (S11, S22, S12) unless `fail_when(call)` is true, in
    which case all entries are NaN. Every call is recorded as a dict.
    """

    ARGS = ("mt2", "mg", "mst1_sq", "mst2_sq", "st", "ct", "q2", "mu", "tanb", "v2", "gs", "os")

    def __init__(self, result=(-13.48, 1476.66, 11.12), fail_when=None):
        self.result = result
        self.fail_when = fail_when
        self.calls = []

    def __call__(self, *args):
        call = dict(zip(self.ARGS, args))
        self.calls.append(call)
        if self.fail_when is not None and self.fail_when(call):
            return np.nan, np.nan, np.nan
        return self.result


@pytest.fixture
def benchmark_params():
    """Benchmark spectrum."""
    return make_params()


@pytest.fixture
def stub_table():
    """Smooth expansions registered for every hierarchy and loop order."""
    return make_table()


@pytest.fixture
def fake_oracle():
    """Always-finite two-loop oracle."""
    return FakeOracle()
