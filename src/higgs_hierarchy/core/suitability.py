"""
Hierarchy suitability predicates.

Each hierarchy is valid only for a specific ordering of the light and
heavy stop (sbottom) masses, the gluino mass and the average light-squark
mass. The predicates below decide, for one spectrum, which hierarchies
may be used. Near the boundaries of the ordering regions several
families can be suitable at once; the selector resolves that by
comparing against the exact two-loop result.
"""

from typing import Callable, Dict, List, NamedTuple, Optional

from higgs_hierarchy.core.constants import (
    MASS_SPLITTING_RATIO as MASS_SPLITTING_RATIO_DEFAULT,
    H9Q2_USES_MASS_SPLITTING as H9Q2_USES_MASS_SPLITTING_DEFAULT,
)
from higgs_hierarchy.core.hierarchies import HierarchyTag, as_tag


class MassOrdering(NamedTuple):
    """The four masses the predicates compare (GeV)."""
    Mst1: float
    Mst2: float
    Mgl: float
    Msq: float


Predicate = Callable[[MassOrdering, float], bool]


def _split(m: MassOrdering, r: float) -> bool:
    return m.Mst2 - m.Mst1 > r * m.Mst1


def _gluino_near_st1(m: MassOrdering) -> bool:
    return (m.Mgl - m.Mst1) < abs(m.Mgl - m.Mst2)


def _gluino_near_st2(m: MassOrdering) -> bool:
    return (m.Mst2 - m.Mgl) < abs(m.Mgl - m.Mst1)


_PREDICATES: Dict[HierarchyTag, Predicate] = {
    HierarchyTag.h3: lambda m, r: m.Mgl > m.Mst2,
    HierarchyTag.h32q2g: lambda m, r: m.Mst2 >= m.Msq and m.Mst2 > m.Mgl,
    HierarchyTag.h3q22g: lambda m, r: m.Msq > m.Mst2 and m.Mst2 > m.Mgl,
    HierarchyTag.h4: lambda m, r: m.Mst1 < m.Msq and m.Mst1 >= m.Mgl,
    HierarchyTag.h5: lambda m, r: (_split(m, r) and _gluino_near_st1(m)
                                   and m.Mst2 < m.Msq and m.Mst1 >= m.Mgl),
    HierarchyTag.h5g1: lambda m, r: (_split(m, r) and _gluino_near_st1(m)
                                     and m.Mst2 < m.Msq and m.Mgl > m.Mst1),
    HierarchyTag.h6: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                   and m.Mst2 < m.Msq and m.Mst2 >= m.Mgl),
    HierarchyTag.h6g2: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                     and m.Mst2 < m.Msq and m.Mgl > m.Mst2),
    HierarchyTag.h6b: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                    and m.Mst2 >= m.Msq and m.Mst2 >= m.Mgl),
    HierarchyTag.h6b2qg2: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                        and m.Mst2 >= m.Msq and m.Mgl > m.Mst2),
    HierarchyTag.h6bq22g: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                        and m.Msq > m.Mst2 and m.Mst2 >= m.Mgl),
    HierarchyTag.h6bq2g2: lambda m, r: (_split(m, r) and _gluino_near_st2(m)
                                        and m.Msq > m.Mst2 and m.Mgl > m.Mst2),
    HierarchyTag.h9: lambda m, r: m.Mst2 >= m.Msq and (m.Mst2 - m.Mst1) < (m.Mst1 - m.Mgl),
    # published form: compares (Mst1 - Mst1), i.e. reduces to Mst1 > Mgl
    HierarchyTag.h9q2: lambda m, r: m.Msq > m.Mst2 and (m.Mst1 - m.Mst1) < (m.Mst1 - m.Mgl),
}


def _h9q2_with_mass_splitting(m: MassOrdering, r: float) -> bool:
    return m.Msq > m.Mst2 and (m.Mst2 - m.Mst1) < (m.Mst1 - m.Mgl)


class SuitabilityClassifier:
    """
    Pure predicates deciding which hierarchies fit a mass ordering.

    Usage:
        classifier = SuitabilityClassifier()
        ordering = MassOrdering(Mst1=1745.3, Mst2=2232.1, Mgl=2000.96, Msq=2001.1)
        classifier.suitable_tags(ordering)
    """

    def __init__(
        self,
        mass_splitting_ratio: Optional[float] = None,
        h9q2_uses_mass_splitting: Optional[bool] = None,
    ):
        """
        Args:
            mass_splitting_ratio: r in the "Mst2 - Mst1 > r Mst1" condition of
                the h5, h6 and h6b families. If None, loads from constants.json.
            h9q2_uses_mass_splitting: If True, h9q2 uses the (Mst2 - Mst1)
                condition of h9 instead of its published form.
                If None, loads from constants.json.
        """
        self.mass_splitting_ratio = (
            mass_splitting_ratio if mass_splitting_ratio is not None
            else MASS_SPLITTING_RATIO_DEFAULT
        )
        self.h9q2_uses_mass_splitting = (
            h9q2_uses_mass_splitting if h9q2_uses_mass_splitting is not None
            else H9Q2_USES_MASS_SPLITTING_DEFAULT
        )
        self._predicates = dict(_PREDICATES)
        if self.h9q2_uses_mass_splitting:
            self._predicates[HierarchyTag.h9q2] = _h9q2_with_mass_splitting

    def is_suitable(self, tag, ordering: MassOrdering) -> bool:
        """Return True if the hierarchy `tag` applies to `ordering`."""
        predicate = self._predicates[as_tag(tag)]
        return bool(predicate(ordering, self.mass_splitting_ratio))

    def suitable_tags(self, ordering: MassOrdering) -> List[HierarchyTag]:
        """All suitable hierarchies, in canonical order."""
        return [tag for tag in HierarchyTag if self.is_suitable(tag, ordering)]
