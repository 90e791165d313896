"""
Hierarchy tags, families and the per-family registry.

Every tag belongs to exactly one family. The family decides which MDR
shift formula is applied, which intermediate quantities the expansion
expressions receive, and which expansion variables are truncated when
estimating the expansion uncertainty.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Dict, Tuple
import numpy as np

from higgs_hierarchy.core.errors import UnsupportedHierarchy


class HierarchyTag(IntEnum):
    """Mass hierarchies, in the canonical scan order."""
    h3 = 0
    h32q2g = 1
    h3q22g = 2
    h4 = 3
    h5 = 4
    h5g1 = 5
    h6 = 6
    h6b = 7
    h6b2qg2 = 8
    h6bq22g = 9
    h6bq2g2 = 10
    h6g2 = 11
    h9 = 12
    h9q2 = 13

    @classmethod
    def from_name(cls, name: str) -> "HierarchyTag":
        try:
            return cls[name]
        except KeyError:
            raise UnsupportedHierarchy(f"Hierarchy '{name}' not included") from None


class ExpansionDepth(IntEnum):
    """Flags that lower the expansion depth of one variable by one order."""
    xx = 14         # two-loop terms at the three-loop expansion depth
    xxMst = 15
    xxDmglst1 = 16
    xxDmsqst1 = 17
    xxDmst12 = 18
    xxAt = 19
    xxlmMsusy = 20
    xxMsq = 21
    xxMsusy = 22
    xxDmglst2 = 23
    xxDmsqst2 = 24
    xxMgl = 25


def full_expansion_depth() -> Dict[ExpansionDepth, int]:
    """All expansion variables at their full depth."""
    return {flag: 1 for flag in ExpansionDepth}


class HierarchyFamily(Enum):
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    H6B = "h6b"
    H9 = "h9"


def _lm(scale: float, mass: float) -> float:
    return float(np.log((scale / mass)**2))


def _derive_h3(Mst1, Mst2, Mgl, Msq, scale):
    return dict(
        Dmglst1=Mgl - Mst1,
        Dmsqst1=Msq**2 - Mst1**2,
        Dmst12=Mst1**2 - Mst2**2,
        lmMst1=_lm(scale, Mst1),
        lmMsusy=_lm(scale, (Mst1 + Mst2 + Mgl + 10 * Msq) / 13.),
    )


def _derive_h4(Mst1, Mst2, Mgl, Msq, scale):
    Msusy = (Mst1 + Mst2 + Mgl) / 3.
    return dict(Msusy=Msusy, lmMsusy=_lm(scale, Msusy))


def _derive_h5(Mst1, Mst2, Mgl, Msq, scale):
    return dict(
        Dmglst1=Mgl - Mst1,
        lmMst1=_lm(scale, Mst1),
        lmMst2=_lm(scale, Mst2),
    )


def _derive_h6(Mst1, Mst2, Mgl, Msq, scale):
    return dict(
        Dmglst2=Mgl - Mst2,
        lmMst1=_lm(scale, Mst1),
        lmMst2=_lm(scale, Mst2),
        xDR2DRMOD=1,
    )


def _derive_h6b(Mst1, Mst2, Mgl, Msq, scale):
    # Dmsqst2 is a mass difference, not a difference of squares
    return dict(
        Dmglst2=Mgl - Mst2,
        Dmsqst2=Msq - Mst2,
        lmMst1=_lm(scale, Mst1),
        lmMst2=_lm(scale, Mst2),
        xDR2DRMOD=1,
    )


def _derive_h9(Mst1, Mst2, Mgl, Msq, scale):
    return dict(
        lmMst1=_lm(scale, Mst1),
        Dmst12=Mst1**2 - Mst2**2,
        Dmsqst1=Msq**2 - Mst1**2,
    )


@dataclass(frozen=True)
class FamilySpec:
    """
    Static description of a hierarchy family.

    Attributes:
        family: The family key.
        derive: (Mst1, Mst2, Mgl, Msq, scale) -> dict of the intermediate
            quantities handed to the expansion expressions.
        uncertainty_flags: Expansion variables truncated one at a time to
            estimate the expansion uncertainty.
    """
    family: HierarchyFamily
    derive: Callable[..., Dict[str, float]]
    uncertainty_flags: Tuple[ExpansionDepth, ...]


FAMILY_SPECS: Dict[HierarchyFamily, FamilySpec] = {
    HierarchyFamily.H3: FamilySpec(
        HierarchyFamily.H3, _derive_h3,
        (ExpansionDepth.xxDmglst1, ExpansionDepth.xxDmsqst1, ExpansionDepth.xxDmst12),
    ),
    HierarchyFamily.H4: FamilySpec(
        HierarchyFamily.H4, _derive_h4,
        (ExpansionDepth.xxAt, ExpansionDepth.xxlmMsusy, ExpansionDepth.xxMsq, ExpansionDepth.xxMsusy),
    ),
    HierarchyFamily.H5: FamilySpec(
        HierarchyFamily.H5, _derive_h5,
        (ExpansionDepth.xxDmglst1, ExpansionDepth.xxMsq),
    ),
    HierarchyFamily.H6: FamilySpec(
        HierarchyFamily.H6, _derive_h6,
        (ExpansionDepth.xxDmglst2, ExpansionDepth.xxMsq),
    ),
    HierarchyFamily.H6B: FamilySpec(
        HierarchyFamily.H6B, _derive_h6b,
        (ExpansionDepth.xxDmglst2, ExpansionDepth.xxDmsqst2),
    ),
    HierarchyFamily.H9: FamilySpec(
        HierarchyFamily.H9, _derive_h9,
        (ExpansionDepth.xxDmsqst1, ExpansionDepth.xxDmst12, ExpansionDepth.xxMgl),
    ),
}

HIERARCHY_FAMILIES: Dict[HierarchyTag, HierarchyFamily] = {
    HierarchyTag.h3: HierarchyFamily.H3,
    HierarchyTag.h32q2g: HierarchyFamily.H3,
    HierarchyTag.h3q22g: HierarchyFamily.H3,
    HierarchyTag.h4: HierarchyFamily.H4,
    HierarchyTag.h5: HierarchyFamily.H5,
    HierarchyTag.h5g1: HierarchyFamily.H5,
    HierarchyTag.h6: HierarchyFamily.H6,
    HierarchyTag.h6g2: HierarchyFamily.H6,
    HierarchyTag.h6b: HierarchyFamily.H6B,
    HierarchyTag.h6b2qg2: HierarchyFamily.H6B,
    HierarchyTag.h6bq22g: HierarchyFamily.H6B,
    HierarchyTag.h6bq2g2: HierarchyFamily.H6B,
    HierarchyTag.h9: HierarchyFamily.H9,
    HierarchyTag.h9q2: HierarchyFamily.H9,
}


def as_tag(tag) -> HierarchyTag:
    """Coerce an int, name or HierarchyTag, raising UnsupportedHierarchy."""
    if isinstance(tag, HierarchyTag):
        return tag
    if isinstance(tag, str):
        return HierarchyTag.from_name(tag)
    try:
        return HierarchyTag(tag)
    except ValueError:
        raise UnsupportedHierarchy(f"Hierarchy {tag} not included") from None


def family_of(tag) -> HierarchyFamily:
    return HIERARCHY_FAMILIES[as_tag(tag)]


def family_spec(tag) -> FamilySpec:
    return FAMILY_SPECS[family_of(tag)]
