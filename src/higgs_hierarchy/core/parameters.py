"""
Input spectrum and the constants derived from it.

ParameterSet is the immutable physical input of one mass-point evaluation
(DR-bar' masses, mixings, couplings and the renormalization scale).
DerivedConstants caches everything computed once from it: zeta values,
polylogarithm combinations, the average light-squark mass Msq, the
logarithms of scale ratios and the self-energy normalization prefactor.
"""

from dataclasses import dataclass, fields
from typing import NamedTuple
import numpy as np
from numpy.typing import NDArray
from scipy.special import spence, zeta

from higgs_hierarchy.core.constants import (
    PI, SQRT2, SQRT3, LOG2, LOG3,
    POLYLOG4_HALF, POLYLOG3_EXP_PI6_SQRT3,
)
from higgs_hierarchy.core.errors import InvalidSpectrum


class QuarkSector(NamedTuple):
    """Third-generation quantities for the O(alpha_t) or O(alpha_b) case."""
    Mq: float   # top or bottom mass
    Msf1: float  # lighter stop/sbottom
    Msf2: float  # heavier stop/sbottom
    s2: float   # sin(2 theta) of the sfermion mixing
    A: float    # trilinear coupling


def _frozen_array(values, shape) -> NDArray:
    arr = np.array(values, dtype=float).reshape(shape)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ParameterSet:
    """
    Low-energy SUSY input for one Higgs mass evaluation.

    All masses in GeV, soft squark masses squared in GeV^2.

    Attributes:
        scale: Renormalization scale Q.
        mu: Higgsino mass parameter.
        g3: Strong gauge coupling.
        vd, vu: Higgs VEVs, tan(beta) = vu/vd.
        mq2, md2, mu2: 3x3 soft-breaking squark mass matrices.
        At, Ab: Trilinear couplings.
        MA: CP-odd Higgs mass.
        MG: Gluino mass.
        MW, MZ: Electroweak gauge boson masses.
        Mt, Mb: Top and bottom quark masses.
        MSt, MSb: Stop and sbottom masses (light, heavy).
        s2t, s2b: sin(2 theta) of the stop and sbottom mixing.
    """

    scale: float
    mu: float
    g3: float
    vd: float
    vu: float
    mq2: NDArray
    md2: NDArray
    mu2: NDArray
    At: float
    Ab: float
    MA: float
    MG: float
    MW: float
    MZ: float
    Mt: float
    Mb: float
    MSt: NDArray
    MSb: NDArray
    s2t: float
    s2b: float

    def __post_init__(self):
        """Freeze arrays, order sfermion masses and validate."""
        for name in ("mq2", "md2", "mu2"):
            object.__setattr__(self, name, _frozen_array(getattr(self, name), (3, 3)))

        # relabel mass eigenstates so that index 0 is the lighter one;
        # swapping the eigenstates flips the sign of sin(2 theta)
        for masses, mixing in (("MSt", "s2t"), ("MSb", "s2b")):
            pair = np.array(getattr(self, masses), dtype=float).reshape(2)
            if pair[0] > pair[1]:
                pair = pair[::-1]
                object.__setattr__(self, mixing, -getattr(self, mixing))
            object.__setattr__(self, masses, _frozen_array(pair, (2,)))

        self._validate()

    def _validate(self):
        """Validate parameter values."""
        for name in ("scale", "MA", "MG", "MW", "MZ", "Mt", "Mb", "vu", "vd", "g3"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidSpectrum(f"{name} must be positive, got {value}")
        for name in ("MSt", "MSb"):
            masses = getattr(self, name)
            if not np.all(np.isfinite(masses)) or np.any(masses <= 0):
                raise InvalidSpectrum(f"{name} must be positive, got {masses}")
        for name in ("s2t", "s2b"):
            value = getattr(self, name)
            if not -1.0 <= value <= 1.0:
                raise InvalidSpectrum(f"|{name}| must not exceed 1, got {value}")
        for name in ("mq2", "md2", "mu2"):
            diagonal = np.diag(getattr(self, name))
            if np.any(diagonal < 0):
                raise InvalidSpectrum(f"{name} has negative diagonal entries: {diagonal}")
        if self.MW >= self.MZ:
            raise InvalidSpectrum(f"MW ({self.MW}) must be smaller than MZ ({self.MZ})")

    @property
    def tan_beta(self) -> float:
        return self.vu / self.vd

    @property
    def v2(self) -> float:
        """Squared electroweak VEV vu^2 + vd^2."""
        return self.vu**2 + self.vd**2

    def sector(self, is_bottom: bool) -> QuarkSector:
        """Return the top (is_bottom=False) or bottom sector quantities."""
        if is_bottom:
            return QuarkSector(self.Mb, float(self.MSb[0]), float(self.MSb[1]), self.s2b, self.Ab)
        return QuarkSector(self.Mt, float(self.MSt[0]), float(self.MSt[1]), self.s2t, self.At)

    def to_dict(self) -> dict:
        """Plain-Python representation (arrays as nested lists)."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.tolist() if isinstance(value, np.ndarray) else value
        return out


@dataclass(frozen=True)
class DerivedConstants:
    """
    Session-wide constants computed once from a ParameterSet.

    Depends only on the ParameterSet; build a new instance with
    from_parameters() whenever the input changes.
    """

    # Riemann zeta values
    z2: float
    z3: float
    z4: float

    # polylogarithm combinations used by the three-loop expressions
    B4: float
    D3: float
    DN: float
    OepS2: float
    S2: float
    T1ep: float

    # spectrum-derived quantities
    beta: float
    sw2: float
    Al4p: float
    Mgl: float
    Msq: float
    lmMsq: float
    lmMgl: float
    prefac: float

    @classmethod
    def from_parameters(cls, p: ParameterSet) -> "DerivedConstants":
        z2 = PI**2 / 6.0
        z3 = float(zeta(3.0))
        z4 = PI**4 / 90.0

        # Im PolyLog[2, Exp[I Pi/3]], with Li2(z) = spence(1 - z)
        im_li2_pi3 = float(np.imag(spence(1.0 - np.exp(1j * PI / 3.0))))
        im_li3 = POLYLOG3_EXP_PI6_SQRT3.imag

        B4 = -4 * z2 * LOG2**2 + 2 / 3. * LOG2**4 - 13 / 2. * z4 + 16. * POLYLOG4_HALF
        D3 = 6 * z3 - 15 / 4. * z4 - 6. * im_li2_pi3**2
        DN = 6 * z3 - 4 * z2 * LOG2**2 + 2 / 3. * LOG2**4 - 21 / 2. * z4 + 16. * POLYLOG4_HALF
        OepS2 = (-763 / 32. - (9 * PI * SQRT3 * LOG3**2) / 16. - (35 * PI**3 * SQRT3) / 48.
                 + 195 / 16. * z2 - 15 / 4. * z3 + 57 / 16. * z4 + 45 * SQRT3 / 2. * im_li2_pi3
                 - 27 * SQRT3 * im_li3)
        S2 = 4 * im_li2_pi3 / (9. * SQRT3)
        T1ep = (-45 / 2. - (PI * SQRT3 * LOG3**2) / 8. - (35 * PI**3 * SQRT3) / 216. - 9 / 2. * z2 + z3
                + 6. * SQRT3 * im_li2_pi3 - 6. * SQRT3 * im_li3)

        beta = np.arctan(p.vu / p.vd)
        sw2 = 1 - (p.MW / p.MZ)**2
        Al4p = (p.g3 / (4 * PI))**2
        Mgl = p.MG

        # average of the ten light squark masses, sbottoms with D-terms
        c2b = np.cos(2 * beta)
        Msq = (2 * np.sqrt(p.mq2[0, 0]) + np.sqrt(p.mu2[0, 0]) + np.sqrt(p.md2[0, 0])
               + 2 * np.sqrt(p.mq2[1, 1]) + np.sqrt(p.mu2[1, 1]) + np.sqrt(p.md2[1, 1])
               + np.sqrt(p.mq2[2, 2] + p.Mb**2 - (1 / 2. - 1 / 3. * sw2) * p.MZ**2 * c2b)
               + np.sqrt(p.md2[2, 2] + p.Mb**2 - 1 / 3. * sw2 * p.MZ**2 * c2b)) / 10.
        if not Msq > 0:
            raise InvalidSpectrum(f"average squark mass must be positive, got {Msq}")

        lmMsq = np.log((p.scale / Msq)**2)
        lmMgl = np.log((p.scale / Mgl)**2)

        # GF = 1/(sqrt(2) v^2) in the DR-bar scheme
        prefac = 3. / (SQRT2 * p.v2 * SQRT2 * PI**2 * np.sin(beta)**2)

        return cls(
            z2=z2, z3=z3, z4=z4,
            B4=B4, D3=D3, DN=DN, OepS2=OepS2, S2=S2, T1ep=T1ep,
            beta=float(beta), sw2=float(sw2), Al4p=float(Al4p), Mgl=float(Mgl),
            Msq=float(Msq), lmMsq=float(lmMsq), lmMgl=float(lmMgl), prefac=float(prefac),
        )
