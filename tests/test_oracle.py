"""
Unit tests for the two-loop oracle binding.
"""

import shutil
import subprocess
import sys
import pytest
import numpy as np

from higgs_hierarchy.core.oracle import DSZLibraryOracle
from higgs_hierarchy.core.self_energy import exact_two_loop_matrix
from tests.conftest import FakeOracle

# Stand-in with the DSZHiggs calling convention (all arguments by reference)
SHIM_SOURCE = r"""
void dszhiggs_(double *t, double *mg, double *T1, double *T2, double *st, double *ct,
               double *q, double *mu, double *tanb, double *v2, double *gs, int *os,
               double *S11, double *S22, double *S12)
{
    *S11 = 1 * *t + 2 * *mg + 3 * *T1 + 4 * *T2 + 5 * *st + 6 * *ct
         + 7 * *q + 8 * *mu + 9 * *tanb + 10 * *v2 + 11 * *gs;
    *S22 = 100.0 * *os;
    *S12 = *T2 - *T1;
}
"""


@pytest.fixture
def shim_library(tmp_path):
    """Compile SHIM_SOURCE into tmp_path; skip without a C compiler."""
    if sys.platform.startswith("win"):
        pytest.skip("shared library build not supported on Windows")
    compiler = shutil.which("cc") or shutil.which("gcc") or shutil.which("clang")
    if compiler is None:
        pytest.skip("no C compiler available")
    suffix = ".dylib" if sys.platform == "darwin" else ".so"
    source = tmp_path / "dszshim.c"
    source.write_text(SHIM_SOURCE)
    library = tmp_path / f"libdszshim{suffix}"
    subprocess.run([compiler, "-shared", "-fPIC", "-o", str(library), str(source)], check=True)
    return tmp_path


@pytest.mark.unit
class TestDSZLibraryOracle:
    """Loading DSZHiggs from a shared library."""

    def test_missing_library(self, tmp_path):
        with pytest.raises(OSError):
            DSZLibraryOracle("libDoesNotExist", tmp_path)

    def test_symbol_manglings(self):
        assert "dszhiggs_" in DSZLibraryOracle.SYMBOLS

    def test_call_passes_arguments_in_order(self, shim_library):
        oracle = DSZLibraryOracle("libdszshim", shim_library)
        args = [10.0**k for k in range(11)]
        S11, S22, S12 = oracle(*args, 1)
        assert S11 == sum((k + 1) * x for k, x in enumerate(args))
        assert S22 == 100.0
        assert S12 == args[3] - args[2]

    def test_unknown_symbol(self, shim_library):
        with pytest.raises(AttributeError):
            DSZLibraryOracle("libdszshim", shim_library, symbol="not_there_")

    def test_drives_two_loop_matrix(self, shim_library, benchmark_params):
        oracle = DSZLibraryOracle("libdszshim", shim_library)
        m = exact_two_loop_matrix(benchmark_params, False, (1745.3, 2232.1), oracle)
        # (S11, S22, S12) from the library become [[S11, S12], [S12, S22]]
        assert m[1, 1] == 0.0
        assert m[0, 1] == m[1, 0] == pytest.approx(2232.1**2 - 1745.3**2)


@pytest.mark.unit
class TestOracleProtocol:
    """Any callable with the oracle signature can stand in."""

    def test_plain_function(self, benchmark_params):
        def oracle(mt2, mg, mst1_sq, mst2_sq, st, ct, q2, mu, tanb, v2, gs, os):
            return mt2 / mst1_sq, mt2 / mst2_sq, 0.0

        m = exact_two_loop_matrix(benchmark_params, False, (1745.3, 2232.1), oracle)
        assert m[0, 0] == pytest.approx(147.295**2 / 1745.3**2)
        assert m[1, 1] == pytest.approx(147.295**2 / 2232.1**2)
        assert m[0, 1] == 0.0

    def test_fake_records_arguments(self, benchmark_params):
        oracle = FakeOracle()
        exact_two_loop_matrix(benchmark_params, False, (1745.3, 2232.1), oracle)
        assert list(oracle.calls[0]) == list(FakeOracle.ARGS)
        assert np.isclose(oracle.calls[0]["st"]**2 + oracle.calls[0]["ct"]**2, 1.0)
