"""
Registry of the closed-form hierarchy expansions.

Each (hierarchy, loop order) pair maps to one pure function that takes an
ExpansionBundle and returns the three self-energy entries (s1, s2, s12)
before normalization. The expressions themselves are generated from a
symbolic-computation source and registered by the caller:

    table = ExpansionTable()

    @table.expansion(HierarchyTag.h3, 1)
    def h3_one_loop(b):
        ...
        return s1, s2, s12

The registry is a plain mapping and carries no state besides it.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from higgs_hierarchy.core.constants import MAX_LOOP_ORDER
from higgs_hierarchy.core.errors import UnsupportedHierarchy
from higgs_hierarchy.core.hierarchies import (
    ExpansionDepth,
    HierarchyTag,
    as_tag,
    full_expansion_depth,
)


@dataclass(frozen=True)
class ExpansionBundle:
    """
    Every quantity the expansion expressions may depend on.

    Masses in GeV; lm* are log(scale^2 / M^2). Family-specific quantities
    that the current family does not define are None.
    """

    # sector input (Mst1/Mst2 are MDR-shifted when mdr_flag is set)
    At: float
    Mt: float
    s2t: float
    Mst1: float
    Mst2: float
    MuSUSY: float
    Tbeta: float
    Sbeta: float
    Cbeta: float
    scale: float
    lmMt: float

    # session constants
    Mgl: float
    Msq: float
    lmMgl: float
    lmMsq: float
    Al4p: float
    z2: float
    z3: float
    z4: float
    B4: float
    D3: float
    DN: float
    OepS2: float
    S2: float
    T1ep: float

    # MDR switches inside the expressions
    shiftst1: int = 1
    shiftst2: int = 1
    shiftst3: int = 1

    # family-derived quantities
    Dmglst1: Optional[float] = None
    Dmglst2: Optional[float] = None
    Dmsqst1: Optional[float] = None
    Dmsqst2: Optional[float] = None
    Dmst12: Optional[float] = None
    lmMst1: Optional[float] = None
    lmMst2: Optional[float] = None
    Msusy: Optional[float] = None
    lmMsusy: Optional[float] = None
    xDR2DRMOD: int = 0

    # truncation controls
    expansion_depth: Mapping[ExpansionDepth, int] = field(default_factory=full_expansion_depth)
    truncated: bool = False

    def depth(self, flag: ExpansionDepth) -> int:
        """Expansion-depth switch for one variable (1 = full depth)."""
        return self.expansion_depth.get(flag, 1)

    def upcut(self, value: float) -> float:
        """Drop a term while comparing hierarchies at two-loop level."""
        return 0.0 if self.truncated else value


ExpansionFunction = Callable[[ExpansionBundle], Tuple[float, float, float]]


class ExpansionTable:
    """Mapping (HierarchyTag, loop order) -> expansion function."""

    def __init__(self, functions: Optional[Mapping[Tuple[HierarchyTag, int], ExpansionFunction]] = None):
        self._functions: Dict[Tuple[HierarchyTag, int], ExpansionFunction] = {}
        for (tag, loop_order), func in (functions or {}).items():
            self.register(tag, loop_order, func)

    @staticmethod
    def _key(tag, loop_order: int) -> Tuple[HierarchyTag, int]:
        if loop_order not in range(1, MAX_LOOP_ORDER + 1):
            raise ValueError(f"Loop order has to be 1, 2 or 3, got {loop_order}")
        return as_tag(tag), int(loop_order)

    def register(self, tag, loop_order: int, func: ExpansionFunction) -> ExpansionFunction:
        self._functions[self._key(tag, loop_order)] = func
        return func

    def expansion(self, tag, loop_order: int) -> Callable[[ExpansionFunction], ExpansionFunction]:
        """Decorator form of register()."""
        def decorator(func: ExpansionFunction) -> ExpansionFunction:
            return self.register(tag, loop_order, func)
        return decorator

    def has(self, tag, loop_order: int) -> bool:
        return self._key(tag, loop_order) in self._functions

    def evaluate(self, tag, loop_order: int, bundle: ExpansionBundle) -> Tuple[float, float, float]:
        """Evaluate the expansion; may return non-finite values for degenerate input."""
        key = self._key(tag, loop_order)
        try:
            func = self._functions[key]
        except KeyError:
            raise UnsupportedHierarchy(
                f"No {loop_order}-loop expansion registered for hierarchy {key[0].name}"
            ) from None
        s1, s2, s12 = func(bundle)
        return float(s1), float(s2), float(s12)

    def __contains__(self, key) -> bool:
        return self.has(*key)

    def __iter__(self) -> Iterator[Tuple[HierarchyTag, int]]:
        return iter(sorted(self._functions))

    def __len__(self) -> int:
        return len(self._functions)
