"""
Hierarchy Selector - pick the expansion closest to the exact two-loop result.

For every suitable hierarchy, in canonical order:
    reference = lightest mass of  tree + 1L(exact) + shift + 2L(oracle)
    candidate = lightest mass of  tree + 1L(exact) + 2L(expanded, truncated)
    error     = |reference - candidate|
The hierarchy with the smallest error wins; on exact ties the first one
scanned is kept.

A non-finite oracle result is retried once with the heavier sfermion mass
moved by delta_dsz. That offset is an argument of the single retry and is
never stored, so independent selections cannot affect each other.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import warnings
import numpy as np
from numpy.typing import NDArray

from higgs_hierarchy.core.assembler import MassMatrixAssembler
from higgs_hierarchy.core.constants import DELTA_DSZ as DELTA_DSZ_DEFAULT
from higgs_hierarchy.core.errors import InvalidSpectrum, NumericalSingularity
from higgs_hierarchy.core.hierarchies import HierarchyTag
from higgs_hierarchy.core.oracle import TwoLoopOracle
from higgs_hierarchy.core.self_energy import (
    exact_one_loop_matrix,
    exact_two_loop_matrix,
    lightest_mass,
    mdr_shift_matrix,
    require_finite,
    tree_level_matrix,
)
from higgs_hierarchy.core.suitability import MassOrdering, SuitabilityClassifier


@dataclass(frozen=True)
class CandidateReport:
    """
    Selection diagnostics of one suitable hierarchy.

    mh_exact and mh_expanded are NaN and `excluded` holds the reason when
    the hierarchy could not take part in the comparison.
    """
    tag: HierarchyTag
    mh_exact: float
    mh_expanded: float
    abs_diff: float
    rel_diff: float
    retried: bool = False
    excluded: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Selection:
    """Outcome of one selection pass."""
    tag: HierarchyTag
    abs_diff: float
    rel_diff: float
    mdr_shift: NDArray
    candidates: Tuple[CandidateReport, ...]


class HierarchySelector:
    """
    Rank the suitable hierarchies against the exact two-loop oracle.

    Usage:
        selector = HierarchySelector(assembler, SuitabilityClassifier(), oracle)
        selection = selector.select(is_bottom=False)
        print(selection.tag.name, selection.abs_diff)
    """

    def __init__(
        self,
        assembler: MassMatrixAssembler,
        classifier: SuitabilityClassifier,
        oracle: TwoLoopOracle,
        delta_dsz: Optional[float] = None,
        verbose: bool = False,
    ):
        """
        Args:
            assembler: Provides the expanded matrices and the MDR shifter.
            classifier: Suitability predicates.
            oracle: Exact O(alpha_t alpha_s) routine.
            delta_dsz: GeV added to the heavier mass on the single retry.
                If None, loads from constants.json.
            verbose: Print one line per scanned hierarchy.
        """
        self.assembler = assembler
        self.params = assembler.params
        self.constants = assembler.constants
        self.classifier = classifier
        self.oracle = oracle
        self.delta_dsz = delta_dsz if delta_dsz is not None else DELTA_DSZ_DEFAULT
        self.verbose = verbose

    def mass_ordering(self, is_bottom: bool) -> MassOrdering:
        sector = self.params.sector(is_bottom)
        return MassOrdering(sector.Msf1, sector.Msf2, self.constants.Mgl, self.constants.Msq)

    def suitable_hierarchies(self, is_bottom: bool) -> List[HierarchyTag]:
        return self.classifier.suitable_tags(self.mass_ordering(is_bottom))

    def _reference_masses(self, tag: HierarchyTag, is_bottom: bool) -> Tuple[float, float]:
        """Masses handed to the oracle, MDR-shifted at one loop if mdr_flag is set."""
        if self.assembler.mdr_flag:
            return self.assembler.shifter.shift_masses(tag, is_bottom, 1, 0)
        sector = self.params.sector(is_bottom)
        return sector.Msf1, sector.Msf2

    def shift_matrix(self, tag: HierarchyTag, is_bottom: bool) -> NDArray:
        """One-loop M(MDR) - M(DR) for `tag`; zero when mdr_flag is 0."""
        if not self.assembler.mdr_flag:
            return np.zeros((2, 2))
        return mdr_shift_matrix(self.params, is_bottom, self._reference_masses(tag, is_bottom))

    def exact_two_loop(self, tag: HierarchyTag, is_bottom: bool) -> Tuple[NDArray, bool]:
        """
        Oracle matrix for `tag`, retried once on a spurious pole.

        Returns:
            (matrix, retried)

        Raises:
            NumericalSingularity: Still non-finite after the retry.
        """
        masses = self._reference_masses(tag, is_bottom)
        matrix = exact_two_loop_matrix(self.params, is_bottom, masses, self.oracle, 0.0)
        if np.all(np.isfinite(matrix)):
            return matrix, False

        warnings.warn(
            f"Two-loop oracle returned a non-finite result for {tag.name}; "
            f"retrying with delta_dsz = {self.delta_dsz:g} GeV",
            RuntimeWarning,
        )
        matrix = exact_two_loop_matrix(self.params, is_bottom, masses, self.oracle, self.delta_dsz)
        return require_finite(matrix, f"Two-loop oracle result for {tag.name}"), True

    def evaluate_candidate(self, tag: HierarchyTag, is_bottom: bool,
                           base: NDArray) -> CandidateReport:
        """
        Compare expanded and exact two-loop masses for one hierarchy.

        Args:
            tag: A suitable hierarchy.
            is_bottom: O(alpha_b) instead of O(alpha_t).
            base: tree + exact one-loop matrix.
        """
        try:
            exact2l, retried = self.exact_two_loop(tag, is_bottom)
        except NumericalSingularity as e:
            warnings.warn(f"Excluding hierarchy {tag.name}: {e}", RuntimeWarning)
            return CandidateReport(tag, np.nan, np.nan, np.nan, np.nan, True, str(e))

        mh_exact = lightest_mass(base + self.shift_matrix(tag, is_bottom) + exact2l)
        expanded = self.assembler.calculate_hierarchy(tag, is_bottom, 0, 1, 0, truncated=True)
        mh_expanded = lightest_mass(base + expanded)

        abs_diff = abs(mh_exact - mh_expanded)
        if not np.isfinite(abs_diff):
            reason = f"non-finite lightest mass (exact {mh_exact}, expanded {mh_expanded})"
            warnings.warn(f"Excluding hierarchy {tag.name}: {reason}", RuntimeWarning)
            return CandidateReport(tag, mh_exact, mh_expanded, np.nan, np.nan, retried, reason)

        return CandidateReport(tag, mh_exact, mh_expanded, abs_diff, abs_diff / mh_exact, retried)

    def select(self, is_bottom: bool) -> Selection:
        """
        Choose the hierarchy that reproduces the exact two-loop mass best.

        Raises:
            InvalidSpectrum: No hierarchy is suitable, or every suitable
                one was excluded on numerical grounds.
        """
        suitable = self.suitable_hierarchies(is_bottom)
        if not suitable:
            raise InvalidSpectrum(
                f"No suitable hierarchy for {self.mass_ordering(is_bottom)}"
            )

        base = tree_level_matrix(self.params) + exact_one_loop_matrix(self.params, is_bottom)

        if self.verbose:
            print(f"\n=== Hierarchy selection ({'sbottom' if is_bottom else 'stop'} sector) ===")
            print(f"  Suitable: {', '.join(tag.name for tag in suitable)}")

        best: Optional[CandidateReport] = None
        reports = []
        for tag in suitable:
            report = self.evaluate_candidate(tag, is_bottom, base)
            reports.append(report)
            if self.verbose:
                status = report.excluded or f"|dMh| = {report.abs_diff:.6g} GeV"
                print(f"  {tag.name:>8}: Mh(exact) = {report.mh_exact:.6f}, "
                      f"Mh(expanded) = {report.mh_expanded:.6f}  {status}")
            if report.excluded is not None:
                continue
            # strict comparison keeps the first hierarchy on ties
            if best is None or report.abs_diff < best.abs_diff:
                best = report

        if best is None:
            raise InvalidSpectrum(
                "Every suitable hierarchy was excluded: "
                + "; ".join(f"{r.tag.name}: {r.excluded}" for r in reports)
            )

        if self.verbose:
            print(f"  Selected: {best.tag.name}")

        return Selection(
            tag=best.tag,
            abs_diff=best.abs_diff,
            rel_diff=best.rel_diff,
            mdr_shift=self.shift_matrix(best.tag, is_bottom),
            candidates=tuple(reports),
        )
