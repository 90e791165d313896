"""
Mass Matrix Assembler - expanded self-energies of one hierarchy.

For every requested loop order the assembler:
    1. shifts the sfermion masses to the MDR scheme at the precision of
       that order (DR-bar' masses if mdr_flag is 0),
    2. computes the family-derived quantities (mass differences, logs),
    3. evaluates the registered expansion (s1, s2, s12),
and returns prefac * [[s1, s12], [s12, s2]] summed over the orders.

It also estimates the expansion uncertainty of an order by lowering the
depth of each family expansion variable in turn.
"""

from typing import Mapping, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from higgs_hierarchy.core.constants import MDR_FLAG as MDR_FLAG_DEFAULT
from higgs_hierarchy.core.expansion_table import ExpansionBundle, ExpansionTable
from higgs_hierarchy.core.hierarchies import (
    ExpansionDepth,
    HierarchyTag,
    as_tag,
    family_spec,
    full_expansion_depth,
)
from higgs_hierarchy.core.mdr_shift import MDRShifter, check_flag
from higgs_hierarchy.core.parameters import ParameterSet, DerivedConstants
from higgs_hierarchy.core.self_energy import lightest_mass, symmetric_matrix


class MassMatrixAssembler:
    """
    Expanded 1-, 2- and 3-loop Higgs mass matrices for a hierarchy.

    Usage:
        assembler = MassMatrixAssembler(params, constants, table)
        dmh2 = assembler.calculate_hierarchy(HierarchyTag.h3, False, 0, 1, 0)
    """

    def __init__(
        self,
        params: ParameterSet,
        constants: DerivedConstants,
        expansion_table: ExpansionTable,
        shifter: Optional[MDRShifter] = None,
        mdr_flag: Optional[int] = None,
    ):
        """
        Args:
            params: Input spectrum.
            constants: Session constants derived from params.
            expansion_table: Registered closed-form expansions.
            shifter: MDR shifter; built from params if None.
            mdr_flag: 1 evaluates the expansions with MDR masses, 0 with
                DR-bar' masses. If None, loads from constants.json.
        """
        self.params = params
        self.constants = constants
        self.table = expansion_table
        self.shifter = shifter if shifter is not None else MDRShifter(params, constants)
        self.mdr_flag = check_flag("mdr_flag", mdr_flag if mdr_flag is not None else MDR_FLAG_DEFAULT)

    def masses(self, tag, is_bottom: bool, loop_order: int) -> Tuple[float, float]:
        """Sfermion masses entering the expansion of the given loop order."""
        if not self.mdr_flag:
            sector = self.params.sector(is_bottom)
            return sector.Msf1, sector.Msf2
        if loop_order == 3:
            return self.shifter.shift_masses(tag, is_bottom, 1, 1)
        return self.shifter.shift_masses(tag, is_bottom, 1 if loop_order == 2 else 0, 0)

    def bundle(
        self,
        tag,
        is_bottom: bool,
        loop_order: int,
        expansion_depth: Optional[Mapping[ExpansionDepth, int]] = None,
        truncated: bool = False,
    ) -> ExpansionBundle:
        """Collect the inputs of the (tag, loop_order) expansion."""
        p, c = self.params, self.constants
        sector = p.sector(is_bottom)
        Mst1, Mst2 = self.masses(tag, is_bottom, loop_order)
        derived = family_spec(tag).derive(Mst1, Mst2, c.Mgl, c.Msq, p.scale)

        depth = full_expansion_depth()
        if expansion_depth:
            depth.update(expansion_depth)

        beta = np.arctan(p.tan_beta)
        return ExpansionBundle(
            At=sector.A,
            Mt=sector.Mq,
            s2t=sector.s2,
            Mst1=Mst1,
            Mst2=Mst2,
            MuSUSY=p.mu,
            Tbeta=p.tan_beta,
            Sbeta=float(np.sin(beta)),
            Cbeta=float(np.cos(beta)),
            scale=p.scale,
            lmMt=float(np.log((p.scale / sector.Mq)**2)),
            Mgl=c.Mgl,
            Msq=c.Msq,
            lmMgl=c.lmMgl,
            lmMsq=c.lmMsq,
            Al4p=c.Al4p,
            z2=c.z2,
            z3=c.z3,
            z4=c.z4,
            B4=c.B4,
            D3=c.D3,
            DN=c.DN,
            OepS2=c.OepS2,
            S2=c.S2,
            T1ep=c.T1ep,
            shiftst1=self.mdr_flag,
            shiftst2=self.mdr_flag,
            shiftst3=self.mdr_flag,
            expansion_depth=depth,
            truncated=truncated,
            **derived,
        )

    def calculate_hierarchy(
        self,
        tag,
        is_bottom: bool,
        one_loop_flag: int,
        two_loop_flag: int,
        three_loop_flag: int,
        expansion_depth: Optional[Mapping[ExpansionDepth, int]] = None,
        truncated: bool = False,
    ) -> NDArray:
        """
        Expanded self-energy matrix of `tag` for the selected loop orders.

        Args:
            tag: Hierarchy (HierarchyTag, its value or its name).
            is_bottom: O(alpha_b) instead of O(alpha_t).
            one_loop_flag, two_loop_flag, three_loop_flag: 0/1 order switches.
            expansion_depth: Depth overrides (ExpansionDepth -> 0/1).
            truncated: Cut the terms dropped when comparing hierarchies.

        Returns:
            Symmetric 2x2 matrix in GeV^2.

        Raises:
            UnsupportedHierarchy: Unknown tag or missing expansion.
            ValueError: A flag outside {0, 1}.
        """
        tag = as_tag(tag)
        flags = (
            check_flag("one_loop_flag", one_loop_flag),
            check_flag("two_loop_flag", two_loop_flag),
            check_flag("three_loop_flag", three_loop_flag),
        )

        s1 = s2 = s12 = 0.
        for loop_order, flag in enumerate(flags, start=1):
            if not flag:
                continue
            b = self.bundle(tag, is_bottom, loop_order, expansion_depth, truncated)
            ds1, ds2, ds12 = self.table.evaluate(tag, loop_order, b)
            s1 += ds1
            s2 += ds2
            s12 += ds12

        return self.constants.prefac * symmetric_matrix(s1, s12, s2)

    def expansion_uncertainty(self, tag: HierarchyTag, is_bottom: bool,
                              loop_order: int, base: NDArray) -> float:
        """
        Uncertainty of the `loop_order` expansion on the lightest mass.

        Each expansion variable of the family is truncated by one order;
        the shifts of the lightest mass are added in quadrature.

        Args:
            tag: Hierarchy.
            is_bottom: O(alpha_b) instead of O(alpha_t).
            loop_order: 1, 2 or 3.
            base: Mass matrix of all lower orders (tree level included).
        """
        if loop_order not in (1, 2, 3):
            raise ValueError(f"Loop order has to be 1, 2 or 3, got {loop_order}")
        flags = [0, 0, 0]
        flags[loop_order - 1] = 1
        Mh = lightest_mass(base + self.calculate_hierarchy(tag, is_bottom, *flags))

        variance = 0.
        for variable in family_spec(tag).uncertainty_flags:
            truncated = self.calculate_hierarchy(tag, is_bottom, *flags,
                                                 expansion_depth={variable: 0})
            variance += (Mh - lightest_mass(base + truncated))**2
        return float(np.sqrt(variance))
