"""
Core module for the hierarchy calculator.

Contains the input spectrum, the hierarchy registry, the MDR shifter,
the suitability classifier, the selector, the assembler and the
session facade:
- HierarchyCalculator: Main interface (select + assemble)
- HierarchySelector: Best hierarchy against the exact two-loop oracle
- MassMatrixAssembler: Expanded matrices of one hierarchy
- ExpansionTable: Registry of the closed-form expansions
"""

from higgs_hierarchy.core.constants import (
    DELTA_DSZ,
    MASS_SPLITTING_RATIO,
    MDR_FLAG,
    MAX_LOOP_ORDER,
)
from higgs_hierarchy.core.errors import (
    HierarchyError,
    InvalidSpectrum,
    UnsupportedHierarchy,
    NumericalSingularity,
)
from higgs_hierarchy.core.parameters import ParameterSet, DerivedConstants, QuarkSector
from higgs_hierarchy.core.hierarchies import (
    HierarchyTag,
    HierarchyFamily,
    ExpansionDepth,
    FAMILY_SPECS,
    family_of,
)
from higgs_hierarchy.core.suitability import MassOrdering, SuitabilityClassifier
from higgs_hierarchy.core.mdr_shift import MDRShifter
from higgs_hierarchy.core.expansion_table import ExpansionBundle, ExpansionTable
from higgs_hierarchy.core.oracle import TwoLoopOracle, DSZLibraryOracle
from higgs_hierarchy.core.assembler import MassMatrixAssembler
from higgs_hierarchy.core.selector import HierarchySelector, Selection, CandidateReport
from higgs_hierarchy.core.calculator import HierarchyCalculator, HierarchyResult

__all__ = [
    # Configuration
    "DELTA_DSZ",
    "MASS_SPLITTING_RATIO",
    "MDR_FLAG",
    "MAX_LOOP_ORDER",
    # Errors
    "HierarchyError",
    "InvalidSpectrum",
    "UnsupportedHierarchy",
    "NumericalSingularity",
    # Input
    "ParameterSet",
    "DerivedConstants",
    "QuarkSector",
    # Hierarchies
    "HierarchyTag",
    "HierarchyFamily",
    "ExpansionDepth",
    "FAMILY_SPECS",
    "family_of",
    "MassOrdering",
    "SuitabilityClassifier",
    "MDRShifter",
    # Expansions and oracle
    "ExpansionBundle",
    "ExpansionTable",
    "TwoLoopOracle",
    "DSZLibraryOracle",
    # Pipeline (MAIN INTERFACE)
    "MassMatrixAssembler",
    "HierarchySelector",
    "Selection",
    "CandidateReport",
    "HierarchyCalculator",
    "HierarchyResult",
]
