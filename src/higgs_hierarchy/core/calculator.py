"""
HierarchyCalculator - one evaluation session for a fixed spectrum.

Combines the components into the full pipeline:
    ParameterSet -> DerivedConstants
                 -> SuitabilityClassifier (which hierarchies apply)
                 -> HierarchySelector     (best hierarchy vs. exact 2L)
                 -> MassMatrixAssembler   (expanded 2L/3L of that hierarchy)
                 -> HierarchyResult

The session owns its DerivedConstants and holds no state that changes
between calls, so repeated calls return identical results.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import numpy as np
from numpy.typing import NDArray
from tabulate import tabulate

from higgs_hierarchy.core.assembler import MassMatrixAssembler
from higgs_hierarchy.core.constants import MAX_LOOP_ORDER, VERBOSE as VERBOSE_DEFAULT
from higgs_hierarchy.core.expansion_table import ExpansionTable
from higgs_hierarchy.core.hierarchies import HierarchyTag, family_of
from higgs_hierarchy.core.mdr_shift import MDRShifter, check_flag
from higgs_hierarchy.core.oracle import TwoLoopOracle
from higgs_hierarchy.core.parameters import ParameterSet, DerivedConstants
from higgs_hierarchy.core.selector import CandidateReport, HierarchySelector
from higgs_hierarchy.core.self_energy import (
    eigen_masses,
    exact_one_loop_matrix,
    tree_level_matrix,
)
from higgs_hierarchy.core.suitability import SuitabilityClassifier


def _format_matrix(matrix: NDArray) -> str:
    (a, b), (c, d) = matrix
    return f"[[{a:.6g}, {b:.6g}], [{c:.6g}, {d:.6g}]]"


@dataclass(frozen=True, eq=False)
class HierarchyResult:
    """
    Result of one (ParameterSet, sector) evaluation.

    dmh[0] is the tree-level matrix, dmh[1] the exact one-loop matrix
    (including the MDR shift when mdr_flag is 1), dmh[2] and dmh[3] the
    expanded two- and three-loop matrices of the selected hierarchy.
    The one-loop matrix is exact, so expansion_uncertainty[1] is 0.
    """
    is_bottom: bool
    tag: HierarchyTag
    dmh: Dict[int, NDArray]
    expansion_uncertainty: Dict[int, float]
    abs_diff_2l: float
    rel_diff_2l: float
    mdr_shift: NDArray
    mdr_masses: Tuple[float, float]
    mdr_flag: int
    candidates: Tuple[CandidateReport, ...] = field(default_factory=tuple)

    @property
    def hierarchy_name(self) -> str:
        return self.tag.name

    def get_dmh(self, loops: int) -> NDArray:
        """Contribution of exactly `loops` loops (0 = tree level)."""
        if loops not in range(0, MAX_LOOP_ORDER + 1):
            raise ValueError(f"Higgs mass matrix for {loops} loop(s) is not available")
        return self.dmh[loops]

    def get_expansion_uncertainty(self, loops: int) -> float:
        if loops not in range(1, MAX_LOOP_ORDER + 1):
            raise ValueError(f"Expansion uncertainty for {loops} loop(s) is not available")
        return self.expansion_uncertainty[loops]

    def mass_matrix(self, loops: int = MAX_LOOP_ORDER) -> NDArray:
        """Mass matrix including all contributions up to `loops` loops."""
        self.get_dmh(loops)
        return sum((self.dmh[k] for k in range(loops + 1)), np.zeros((2, 2)))

    def eigenvalues(self, loops: int = MAX_LOOP_ORDER) -> NDArray:
        """CP-even Higgs masses (GeV, ascending) at `loops` loops."""
        return eigen_masses(self.mass_matrix(loops))

    def lightest_mass(self, loops: int = MAX_LOOP_ORDER) -> float:
        return float(self.eigenvalues(loops)[0])

    def format_table(self) -> str:
        """Plain-text summary of the result."""
        rows = [
            ["Sector", "sbottom (alpha_b)" if self.is_bottom else "stop (alpha_t)"],
            ["Hierarchy", f"{self.hierarchy_name} ({family_of(self.tag).value} family)"],
            ["MDR scheme", "yes" if self.mdr_flag else "no"],
            ["MDR masses [GeV]", f"{self.mdr_masses[0]:.6f}, {self.mdr_masses[1]:.6f}"],
            ["Abs. diff 2L [GeV]", f"{self.abs_diff_2l:.6g}"],
            ["Rel. diff 2L [%]", f"{100 * self.rel_diff_2l:.6g}"],
        ]
        for loops in range(MAX_LOOP_ORDER + 1):
            label = "Mh^2 tree" if loops == 0 else f"DMh^2 {loops}L"
            rows.append([f"{label} [GeV^2]", _format_matrix(self.dmh[loops])])
        for loops in range(MAX_LOOP_ORDER + 1):
            label = "tree" if loops == 0 else f"{loops}L"
            rows.append([f"Mh {label} [GeV]", f"{self.lightest_mass(loops):.6f}"])
        for loops in range(1, MAX_LOOP_ORDER + 1):
            rows.append([f"Exp. uncert. {loops}L [GeV]",
                         f"{self.expansion_uncertainty[loops]:.6g}"])
        rows.append(["DR' -> MDR' shift [GeV^2]", _format_matrix(self.mdr_shift)])
        return tabulate(rows, headers=["Quantity", "Value"], tablefmt="grid")


class HierarchyCalculator:
    """
    Hierarchy selection and Higgs mass matrix assembly for one spectrum.

    Usage:
        calc = HierarchyCalculator(params, table, DSZLibraryOracle("libDSZ", libdir))
        result = calc.calculate(is_bottom=False)
        print(result.hierarchy_name, result.lightest_mass())
    """

    def __init__(
        self,
        params: ParameterSet,
        expansion_table: ExpansionTable,
        two_loop_oracle: TwoLoopOracle,
        delta_dsz: Optional[float] = None,
        mdr_flag: Optional[int] = None,
        mass_splitting_ratio: Optional[float] = None,
        h9q2_uses_mass_splitting: Optional[bool] = None,
        verbose: Optional[bool] = None,
    ):
        """
        Initialize the session.

        Args:
            params: Validated input spectrum.
            expansion_table: Registered hierarchy expansions.
            two_loop_oracle: Exact O(alpha_t alpha_s) routine.
            delta_dsz: Oracle retry offset in GeV.
            mdr_flag: 1 for MDR-bar' masses in the expansions, 0 for DR-bar'.
            mass_splitting_ratio: Threshold of the h5/h6/h6b predicates.
            h9q2_uses_mass_splitting: Alternative h9q2 predicate.
            verbose: Print diagnostic information.

        Every argument left as None is loaded from constants.json.

        Raises:
            InvalidSpectrum: If the derived average squark mass is not positive.
            ValueError: If mdr_flag is not 0 or 1.
        """
        self.params = params
        self.verbose = verbose if verbose is not None else VERBOSE_DEFAULT
        self.constants = DerivedConstants.from_parameters(params)
        self.shifter = MDRShifter(params, self.constants)
        self.assembler = MassMatrixAssembler(
            params, self.constants, expansion_table, self.shifter, mdr_flag=mdr_flag
        )
        self.classifier = SuitabilityClassifier(mass_splitting_ratio, h9q2_uses_mass_splitting)
        self.selector = HierarchySelector(
            self.assembler, self.classifier, two_loop_oracle,
            delta_dsz=delta_dsz, verbose=self.verbose,
        )

        if self.verbose:
            print("=== HierarchyCalculator Initialized ===")
            print(f"  scale = {params.scale:.4f} GeV, tan(beta) = {params.tan_beta:.4f}")
            print(f"  Mgl = {self.constants.Mgl:.4f} GeV, Msq = {self.constants.Msq:.4f} GeV")
            print(f"  MDR scheme: {'on' if self.assembler.mdr_flag else 'off'}")
            print(f"  Oracle retry offset: {self.selector.delta_dsz:g} GeV")

    @property
    def mdr_flag(self) -> int:
        return self.assembler.mdr_flag

    def suitable_hierarchies(self, is_bottom: bool = False):
        """Suitable hierarchies in canonical order."""
        return self.selector.suitable_hierarchies(bool(check_flag("is_bottom", is_bottom)))

    def select_hierarchy(self, is_bottom: bool = False) -> HierarchyTag:
        """Best hierarchy for the sector; raises InvalidSpectrum if none applies."""
        return self.selector.select(bool(check_flag("is_bottom", is_bottom))).tag

    def calculate_hierarchy(self, tag, is_bottom: bool, one_loop_flag: int,
                            two_loop_flag: int, three_loop_flag: int) -> NDArray:
        """Expanded self-energy matrix of `tag` for the selected loop orders."""
        return self.assembler.calculate_hierarchy(
            tag, bool(check_flag("is_bottom", is_bottom)),
            one_loop_flag, two_loop_flag, three_loop_flag,
        )

    def calculate(self, is_bottom: bool = False) -> HierarchyResult:
        """
        Full evaluation for the stop (False) or sbottom (True) sector.

        Returns:
            HierarchyResult of the selected hierarchy.

        Raises:
            InvalidSpectrum: No hierarchy is suitable or all were excluded.
        """
        is_bottom = bool(check_flag("is_bottom", is_bottom))
        selection = self.selector.select(is_bottom)
        tag = selection.tag

        dmh = {
            0: tree_level_matrix(self.params),
            1: exact_one_loop_matrix(self.params, is_bottom) + selection.mdr_shift,
            2: self.assembler.calculate_hierarchy(tag, is_bottom, 0, 1, 0),
            3: self.assembler.calculate_hierarchy(tag, is_bottom, 0, 0, 1),
        }

        # the one-loop matrix is exact; higher orders are expanded on top of
        # tree + exact one loop (+ MDR shift) + lower expanded orders
        uncertainty = {1: 0.0}
        base = dmh[0] + dmh[1]
        for loops in range(2, MAX_LOOP_ORDER + 1):
            uncertainty[loops] = self.assembler.expansion_uncertainty(tag, is_bottom, loops, base)
            base = base + dmh[loops]

        mdr_masses = tuple(sorted(self.shifter.shift_masses(tag, is_bottom, 1, 1)))

        result = HierarchyResult(
            is_bottom=is_bottom,
            tag=tag,
            dmh=dmh,
            expansion_uncertainty=uncertainty,
            abs_diff_2l=selection.abs_diff,
            rel_diff_2l=selection.rel_diff,
            mdr_shift=selection.mdr_shift,
            mdr_masses=mdr_masses,
            mdr_flag=self.mdr_flag,
            candidates=selection.candidates,
        )

        if self.verbose:
            print(result.format_table())

        return result
