"""
Unit tests for the Mass Matrix Assembler.
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from higgs_hierarchy.core.assembler import MassMatrixAssembler
from higgs_hierarchy.core.errors import UnsupportedHierarchy
from higgs_hierarchy.core.expansion_table import ExpansionTable
from higgs_hierarchy.core.hierarchies import ExpansionDepth, HierarchyTag as H, family_spec
from higgs_hierarchy.core.mdr_shift import MDRShifter
from higgs_hierarchy.core.parameters import DerivedConstants
from higgs_hierarchy.core.self_energy import lightest_mass, tree_level_matrix
from tests.conftest import H3_REFERENCE, make_params, make_table


def make_assembler(params, table, mdr_flag=1):
    constants = DerivedConstants.from_parameters(params)
    return MassMatrixAssembler(params, constants, table, mdr_flag=mdr_flag)


@pytest.mark.unit
class TestBundles:
    """Masses and family quantities handed to the expansions."""

    @pytest.fixture
    def assembler(self, benchmark_params, stub_table):
        return make_assembler(benchmark_params, stub_table)

    def test_masses_per_loop_order(self, assembler):
        shifter = assembler.shifter
        assert assembler.masses(H.h6b, False, 1) == shifter.shift_masses(H.h6b, False, 0, 0)
        assert assembler.masses(H.h6b, False, 2) == shifter.shift_masses(H.h6b, False, 1, 0)
        assert assembler.masses(H.h6b, False, 3) == shifter.shift_masses(H.h6b, False, 1, 1)

    def test_recorded_bundles(self, assembler, stub_table):
        assembler.calculate_hierarchy(H.h6, False, 1, 1, 1)
        orders = [(tag, order) for tag, order, _ in stub_table.calls]
        assert orders == [(H.h6, 1), (H.h6, 2), (H.h6, 3)]
        two_loop = stub_table.calls[1][2]
        assert (two_loop.Mst1, two_loop.Mst2) == assembler.shifter.shift_masses(H.h6, False, 1, 0)
        assert two_loop.shiftst1 == 1
        assert two_loop.truncated is False

    def test_h3_family_quantities(self, assembler):
        b = assembler.bundle(H.h32q2g, False, 2)
        c = assembler.constants
        assert b.Dmglst1 == pytest.approx(c.Mgl - b.Mst1)
        assert b.Dmsqst1 == pytest.approx(c.Msq**2 - b.Mst1**2)
        assert b.Dmst12 == pytest.approx(b.Mst1**2 - b.Mst2**2)
        expected_msusy = (b.Mst1 + b.Mst2 + c.Mgl + 10 * c.Msq) / 13.
        assert b.lmMsusy == pytest.approx(np.log((1973.75 / expected_msusy)**2))
        assert b.Dmglst2 is None and b.xDR2DRMOD == 0

    def test_h4_family_quantities(self, assembler):
        b = assembler.bundle(H.h4, False, 1)
        assert b.Msusy == pytest.approx((1745.3 + 2232.1 + 2000.96) / 3.)

    def test_h6b_family_quantities(self, assembler):
        b = assembler.bundle(H.h6b, False, 3)
        assert b.Dmglst2 == pytest.approx(2000.96 - b.Mst2)
        assert b.Dmsqst2 == pytest.approx(assembler.constants.Msq - b.Mst2)
        assert b.xDR2DRMOD == 1

    def test_sector_inputs(self, assembler):
        top = assembler.bundle(H.h9, False, 1)
        bottom = assembler.bundle(H.h9, True, 1)
        assert (top.At, top.Mt, top.s2t) == (6992.34, 147.295, -0.999995)
        assert (bottom.At, bottom.Mt, bottom.s2t) == (9996.81, 2.23149, -0.550527)
        assert (bottom.Mst1, bottom.Mst2) == (2000.14, 2001.09)
        assert top.lmMt == pytest.approx(np.log((1973.75 / 147.295)**2))

    def test_dr_scheme(self, benchmark_params, stub_table):
        """mdr_flag = 0 keeps DR-bar' masses and switches shiftst off."""
        assembler = make_assembler(benchmark_params, stub_table, mdr_flag=0)
        for loop_order in (1, 2, 3):
            b = assembler.bundle(H.h6b, False, loop_order)
            assert (b.Mst1, b.Mst2) == (1745.3, 2232.1)
            assert (b.shiftst1, b.shiftst2, b.shiftst3) == (0, 0, 0)

    def test_invalid_mdr_flag(self, benchmark_params, stub_table):
        with pytest.raises(ValueError):
            make_assembler(benchmark_params, stub_table, mdr_flag=2)


@pytest.mark.unit
class TestCalculateHierarchy:
    """Expanded matrices of one hierarchy."""

    @pytest.fixture
    def assembler(self, benchmark_params, stub_table):
        return make_assembler(benchmark_params, stub_table)

    @pytest.mark.parametrize("tag", [H.h3, H.h4, H.h5g1, H.h6, H.h6bq22g, H.h9q2])
    def test_additivity(self, assembler, tag):
        total = assembler.calculate_hierarchy(tag, False, 1, 1, 1)
        parts = sum(assembler.calculate_hierarchy(tag, False, *flags)
                    for flags in ((1, 0, 0), (0, 1, 0), (0, 0, 1)))
        assert_allclose(total, parts, rtol=1e-13)

    def test_symmetric(self, assembler):
        m = assembler.calculate_hierarchy(H.h5, True, 1, 1, 1)
        assert m[0, 1] == m[1, 0]

    def test_no_orders_requested(self, assembler, stub_table):
        m = assembler.calculate_hierarchy(H.h3, False, 0, 0, 0)
        assert_allclose(m, np.zeros((2, 2)))
        assert stub_table.calls == []

    @pytest.mark.parametrize("family", [
        (H.h3, H.h32q2g, H.h3q22g),
        (H.h6b, H.h6b2qg2, H.h6bq22g, H.h6bq2g2),
        (H.h9, H.h9q2),
    ])
    def test_one_loop_agrees_within_family(self, assembler, family):
        reference = assembler.calculate_hierarchy(family[0], False, 1, 0, 0)
        for tag in family[1:]:
            assert_allclose(assembler.calculate_hierarchy(tag, False, 1, 0, 0), reference, rtol=1e-13)

    def test_two_loop_depends_on_family(self, assembler):
        h3 = assembler.calculate_hierarchy(H.h3, False, 0, 1, 0)
        h6 = assembler.calculate_hierarchy(H.h6, False, 0, 1, 0)
        assert not np.allclose(h3, h6, rtol=1e-10, atol=0)

    def test_deterministic(self, assembler):
        first = assembler.calculate_hierarchy(H.h6b, False, 0, 0, 1)
        second = assembler.calculate_hierarchy(H.h6b, False, 0, 0, 1)
        assert np.array_equal(first, second)

    def test_tag_by_name(self, assembler):
        assert np.array_equal(
            assembler.calculate_hierarchy("h9", False, 0, 1, 0),
            assembler.calculate_hierarchy(H.h9, False, 0, 1, 0),
        )

    def test_unknown_hierarchy(self, assembler):
        with pytest.raises(UnsupportedHierarchy):
            assembler.calculate_hierarchy(42, False, 1, 0, 0)

    def test_missing_expansion(self, benchmark_params):
        assembler = make_assembler(benchmark_params, make_table(tags=[H.h3]))
        with pytest.raises(UnsupportedHierarchy):
            assembler.calculate_hierarchy(H.h6, False, 0, 1, 0)

    @pytest.mark.parametrize("flags", [(2, 0, 0), (0, -1, 0), (0, 0, 5)])
    def test_invalid_flags(self, assembler, flags):
        with pytest.raises(ValueError):
            assembler.calculate_hierarchy(H.h3, False, *flags)


@pytest.mark.unit
class TestNormalization:
    """Scaling of the expansion output by the one-loop prefactor."""

    # 3 / (2 pi^2 vu^2) at the benchmark point, evaluated by hand
    PREFAC = 2.7261162e-6

    @pytest.mark.parametrize("loop_order", [1, 2, 3])
    def test_h3_prefactor_scaling(self, benchmark_params, loop_order):
        """Expansion values times the benchmark prefactor give the h3 matrices."""
        S11, S12, S22 = H3_REFERENCE[loop_order]
        table = ExpansionTable({
            (H.h3, loop_order): lambda b: (S11 / self.PREFAC, S22 / self.PREFAC, S12 / self.PREFAC),
        })
        assembler = make_assembler(benchmark_params, table)
        flags = [0, 0, 0]
        flags[loop_order - 1] = 1
        m = assembler.calculate_hierarchy(H.h3, False, *flags)
        assert_allclose(m, [[S11, S12], [S12, S22]], rtol=1e-6)

    def test_prefactor_uses_up_type_vev(self, benchmark_params):
        """Swapping vu and vd changes the normalisation by (vu / vd)^2."""
        table = ExpansionTable({(H.h3, 1): lambda b: (1.0, 1.0, 1.0)})
        m = make_assembler(benchmark_params, table).calculate_hierarchy(H.h3, False, 1, 0, 0)
        swapped = make_params(vu=49.5751, vd=236.115)
        m_swapped = make_assembler(swapped, table).calculate_hierarchy(H.h3, False, 1, 0, 0)
        assert_allclose(m_swapped / m, (236.115 / 49.5751)**2, rtol=1e-12)


@pytest.mark.unit
class TestExpansionUncertainty:
    """Truncation of the family expansion variables."""

    @pytest.fixture
    def assembler(self, benchmark_params, stub_table):
        return make_assembler(benchmark_params, stub_table)

    @pytest.mark.parametrize("loop_order", [1, 2, 3])
    def test_quadrature_sum(self, assembler, benchmark_params, loop_order):
        tag = H.h6b
        base = tree_level_matrix(benchmark_params)
        flags = [0, 0, 0]
        flags[loop_order - 1] = 1
        Mh = lightest_mass(base + assembler.calculate_hierarchy(tag, False, *flags))
        diffs = [
            Mh - lightest_mass(base + assembler.calculate_hierarchy(
                tag, False, *flags, expansion_depth={variable: 0}))
            for variable in family_spec(tag).uncertainty_flags
        ]
        expected = np.sqrt(np.sum(np.square(diffs)))
        result = assembler.expansion_uncertainty(tag, False, loop_order, base)
        assert result > 0
        assert_allclose(result, expected, rtol=1e-12)

    def test_no_depth_dependence(self, benchmark_params):
        table = ExpansionTable({(H.h4, 2): lambda b: (0.0, b.Mt**4, 0.0)})
        assembler = make_assembler(benchmark_params, table)
        base = tree_level_matrix(benchmark_params)
        assert assembler.expansion_uncertainty(H.h4, False, 2, base) == 0.0

    def test_only_family_variables_are_truncated(self, benchmark_params):
        """h3 does not list xxMsq, so truncating it has no effect."""
        table = ExpansionTable({
            (H.h3, 2): lambda b: (0.0, b.Mt**4 * (1 + b.depth(ExpansionDepth.xxMsq)), 0.0),
        })
        assembler = make_assembler(benchmark_params, table)
        base = tree_level_matrix(benchmark_params)
        assert assembler.expansion_uncertainty(H.h3, False, 2, base) == 0.0

    def test_invalid_loop_order(self, assembler, benchmark_params):
        with pytest.raises(ValueError):
            assembler.expansion_uncertainty(H.h3, False, 4, tree_level_matrix(benchmark_params))
