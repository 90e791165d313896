"""
Exact O(alpha_t alpha_s) two-loop self-energy oracle.

The hierarchy selector compares every suitable expansion against the
exact two-loop result of Degrassi, Slavich and Zwirner (DSZ). Any
callable with the TwoLoopOracle signature can play that role; the
reference implementation is the Fortran routine DSZHiggs, bound here
from a shared library through numpy.ctypeslib.

Arguments follow the Fortran routine: masses enter squared.
"""

import ctypes
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union
import numpy as np


class TwoLoopOracle(Protocol):
    """
    Exact two-loop self-energy routine.

    Args:
        mt2: Squared top (bottom) mass.
        mg: Gluino mass.
        mst1_sq, mst2_sq: Squared stop (sbottom) masses.
        st, ct: sin and cos of the sfermion mixing angle.
        q2: Squared renormalization scale.
        mu: Higgsino mass parameter (DSZ sign convention).
        tanb: tan(beta).
        v2: vu^2 + vd^2.
        gs: Strong coupling.
        os: 0 for DR-bar input, 1 for on-shell input.

    Returns:
        (S11, S22, S12). May be non-finite near degenerate masses.
    """

    def __call__(self, mt2: float, mg: float, mst1_sq: float, mst2_sq: float,
                 st: float, ct: float, q2: float, mu: float, tanb: float,
                 v2: float, gs: float, os: int) -> Tuple[float, float, float]:
        ...


_DOUBLE_P = ctypes.POINTER(ctypes.c_double)
_INT_P = ctypes.POINTER(ctypes.c_int)


class DSZLibraryOracle:
    """
    DSZHiggs from a compiled shared library (e.g. libDSZ.so).

    Usage:
        oracle = DSZLibraryOracle("libDSZ", "/opt/himalaya/lib")
        S11, S22, S12 = oracle(mt2, mg, mst1_sq, mst2_sq, st, ct, q2, mu, tanb, v2, gs, 0)
    """

    # gfortran lower-cases and appends an underscore
    SYMBOLS = ("dszhiggs_", "DSZHiggs_")

    def __init__(self, libname: str = "libDSZ",
                 loader_path: Union[str, Path] = ".",
                 symbol: Optional[str] = None):
        """
        Args:
            libname: Library name, with or without platform extension.
            loader_path: Directory searched for the library.
            symbol: Exported routine name. If None, the usual Fortran
                manglings of DSZHiggs are tried.

        Raises:
            OSError: If the library cannot be loaded.
            AttributeError: If the routine is not exported.
        """
        self._lib = np.ctypeslib.load_library(libname, str(loader_path))
        candidates = (symbol,) if symbol else self.SYMBOLS
        routine = None
        for name in candidates:
            routine = getattr(self._lib, name, None)
            if routine is not None:
                break
        if routine is None:
            raise AttributeError(f"{libname} exports none of {candidates}")
        routine.restype = None
        routine.argtypes = [_DOUBLE_P] * 11 + [_INT_P] + [_DOUBLE_P] * 3
        self._routine = routine

    def __call__(self, mt2, mg, mst1_sq, mst2_sq, st, ct, q2, mu, tanb, v2, gs, os):
        inputs = [ctypes.c_double(x) for x in (mt2, mg, mst1_sq, mst2_sq, st, ct, q2, mu, tanb, v2, gs)]
        os_flag = ctypes.c_int(os)
        S11, S22, S12 = ctypes.c_double(), ctypes.c_double(), ctypes.c_double()
        self._routine(*[ctypes.byref(x) for x in inputs], ctypes.byref(os_flag),
                      ctypes.byref(S11), ctypes.byref(S22), ctypes.byref(S12))
        return S11.value, S22.value, S12.value
