"""
DR-bar' to MDR-bar' conversion of the stop/sbottom masses.

The MDR scheme absorbs the large gluino and squark logarithms that would
otherwise spoil the convergence of the heavy-gluino (h6) and
heavy-squark (h6b) expansions (cf. arXiv:1005.5709, eqs. (46)-(49)).
The shift is multiplicative:

    M_MDR = M_DR * sqrt(1 + delta)

where delta depends on the hierarchy family and on the loop-order
switches two_loop_flag and three_loop_flag. The shift always starts from
the DR-bar' input masses, so applying it twice never compounds.
"""

from typing import Tuple
import warnings
import numpy as np

from higgs_hierarchy.core.hierarchies import HierarchyFamily, family_of
from higgs_hierarchy.core.parameters import ParameterSet, DerivedConstants


def check_flag(name: str, value: int) -> int:
    """Loop and scheme flags are 0/1 switches."""
    if value not in (0, 1):
        raise ValueError(f"{name} has to be 0 or 1, got {value}")
    return int(value)


class MDRShifter:
    """
    Family-specific MDR shift of the two sfermion masses.

    Usage:
        shifter = MDRShifter(params, constants)
        Mst1, Mst2 = shifter.shift_masses(HierarchyTag.h6, False, 1, 0)
    """

    def __init__(self, params: ParameterSet, constants: DerivedConstants):
        self.params = params
        self.constants = constants

    def _kappa(self, is_bottom: bool, three_loop_flag: int) -> Tuple[float, float]:
        """Three-loop squark contributions common to all families."""
        c = self.constants
        sector = self.params.sector(is_bottom)
        Mst1, Mst2 = sector.Msf1, sector.Msf2
        lmMst2 = np.log(self.params.scale**2 / Mst2**2)

        ka1 = (-8. * three_loop_flag * c.Al4p**2
               * (10 * c.Msq**2 * (-1 + 2 * c.lmMsq + 2 * c.z2)
                  + Mst2**2 * (-1 + 2 * lmMst2 + 2 * c.z2))) / (3. * Mst1**2)
        ka2 = (-80. * three_loop_flag * c.Al4p**2 * c.Msq**2
               * (-1 + 2 * c.lmMsq + 2 * c.z2)) / (3. * Mst2**2)
        return ka1, ka2

    def _factor(self, family: HierarchyFamily, mass: float, kappa: float,
                Dmglst2: float, two_loop_flag: int, three_loop_flag: int) -> float:
        """The factor 1 + delta multiplying mass^2."""
        c = self.constants
        Al4p, Mgl, Msq, z2 = c.Al4p, c.Mgl, c.Msq, c.z2
        lmMgl, lmMsq = c.lmMgl, c.lmMsq

        if family is HierarchyFamily.H6:
            return (144 * two_loop_flag * Al4p * (1 + lmMgl) * Mgl**2 * Msq**4
                    + 27 * (1 + kappa) * Msq**4 * mass**2
                    + three_loop_flag * Al4p**2 * Mgl * (
                        -5 * (67 + 84 * lmMgl - 84 * lmMsq) * Mgl**5
                        - 40 * (43 + 30 * lmMgl - 30 * lmMsq) * Mgl**3 * Msq**2
                        + 288 * Dmglst2 * Msq**4 * (1 - 2 * z2)
                        + 12 * Mgl * Msq**4 * (79 + 144 * lmMgl**2 - 150 * lmMsq
                                               + 90 * lmMsq**2 - 90 * lmMgl * (-3 + 2 * lmMsq)
                                               + 208 * z2))
                    ) / (27. * Msq**4 * mass**2)

        if family is HierarchyFamily.H6B:
            return (48 * two_loop_flag * Al4p * (1 + lmMgl) * Mgl**2
                    + 9 * (1 + kappa) * mass**2
                    + 8 * three_loop_flag * Al4p**2 * (
                        -135 * Msq**2 + 12 * Dmglst2 * Mgl * (1 - 22 * z2)
                        + Mgl**2 * (77 + 135 * lmMgl + 72 * lmMgl**2 - 75 * lmMsq
                                    - 90 * lmMgl * lmMsq + 45 * lmMsq**2 + 104 * z2))
                    ) / (9. * mass**2)

        # h3, h4, h5 and h9 only receive the three-loop squark term
        return 1 + kappa

    def shift_masses(self, tag, is_bottom: bool, two_loop_flag: int,
                     three_loop_flag: int) -> Tuple[float, float]:
        """
        Shift both sfermion masses of the given sector to the MDR scheme.

        Args:
            tag: Hierarchy tag (the family decides the formula).
            is_bottom: Shift sbottom instead of stop masses.
            two_loop_flag: 1 enables the O(alpha_s) part of the shift.
            three_loop_flag: 1 enables the O(alpha_s^2) part of the shift.

        Returns:
            (Mst1_MDR, Mst2_MDR). A non-physical shift (negative factor)
            yields NaN with a RuntimeWarning.
        """
        two_loop_flag = check_flag("two_loop_flag", two_loop_flag)
        three_loop_flag = check_flag("three_loop_flag", three_loop_flag)
        family = family_of(tag)
        sector = self.params.sector(is_bottom)
        Dmglst2 = self.constants.Mgl - sector.Msf2
        ka1, ka2 = self._kappa(is_bottom, three_loop_flag)

        shifted = []
        for mass, kappa in ((sector.Msf1, ka1), (sector.Msf2, ka2)):
            factor = self._factor(family, mass, kappa, Dmglst2, two_loop_flag, three_loop_flag)
            if factor < 0:
                warnings.warn(
                    f"MDR shift of {mass:.6g} GeV is non-physical for {family.value} "
                    f"(factor {factor:.6g})",
                    RuntimeWarning,
                )
                shifted.append(float("nan"))
            else:
                shifted.append(float(mass * np.sqrt(factor)))
        return shifted[0], shifted[1]

    def shift_mst1(self, tag, is_bottom: bool, two_loop_flag: int, three_loop_flag: int) -> float:
        return self.shift_masses(tag, is_bottom, two_loop_flag, three_loop_flag)[0]

    def shift_mst2(self, tag, is_bottom: bool, two_loop_flag: int, three_loop_flag: int) -> float:
        return self.shift_masses(tag, is_bottom, two_loop_flag, three_loop_flag)[1]
