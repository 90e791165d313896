"""
Higgs Hierarchy - three-loop Higgs mass corrections from hierarchy expansions.

Selects, for a given SUSY spectrum, the mass hierarchy whose asymptotic
expansion best reproduces the exact O(alpha_t alpha_s) result, and
assembles the CP-even Higgs mass matrix up to O(alpha_t alpha_s^2).

Main Interface:
    from higgs_hierarchy import HierarchyCalculator, ParameterSet

    calc = HierarchyCalculator(params, expansion_table, oracle)
    result = calc.calculate(is_bottom=False)
    print(f"Hierarchy: {result.hierarchy_name}, Mh = {result.lightest_mass()} GeV")

Components:
- HierarchyCalculator: Main interface
- SuitabilityClassifier: Which hierarchies fit a mass ordering
- MDRShifter: DR-bar' to MDR-bar' stop/sbottom masses
- HierarchySelector: Ranking against the exact two-loop oracle
- MassMatrixAssembler: Expanded 1/2/3-loop matrices
"""

from higgs_hierarchy.core import (
    HierarchyError,
    InvalidSpectrum,
    UnsupportedHierarchy,
    NumericalSingularity,
    ParameterSet,
    DerivedConstants,
    HierarchyTag,
    HierarchyFamily,
    ExpansionDepth,
    SuitabilityClassifier,
    MDRShifter,
    ExpansionBundle,
    ExpansionTable,
    TwoLoopOracle,
    DSZLibraryOracle,
    MassMatrixAssembler,
    HierarchySelector,
    HierarchyCalculator,
    HierarchyResult,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "HierarchyError",
    "InvalidSpectrum",
    "UnsupportedHierarchy",
    "NumericalSingularity",
    # Input
    "ParameterSet",
    "DerivedConstants",
    # Hierarchies
    "HierarchyTag",
    "HierarchyFamily",
    "ExpansionDepth",
    # Components
    "SuitabilityClassifier",
    "MDRShifter",
    "ExpansionBundle",
    "ExpansionTable",
    "TwoLoopOracle",
    "DSZLibraryOracle",
    "MassMatrixAssembler",
    "HierarchySelector",
    # MAIN INTERFACE
    "HierarchyCalculator",
    "HierarchyResult",
]
