"""
Exact self-energy contributions to the CP-even Higgs mass matrix.

All matrices are symmetric 2x2 numpy arrays in the (phi_d, phi_u) basis,
in GeV^2:

    tree_level_matrix       - tree level, from MZ, MA and tan(beta)
    exact_one_loop_matrix   - O(alpha_t) (or O(alpha_b)) one-loop result
    mdr_shift_matrix        - one-loop change from DR-bar' to MDR-bar' masses
    exact_two_loop_matrix   - O(alpha_t alpha_s) result of the two-loop oracle

The helpers eigen_masses and lightest_mass turn a mass matrix into the
physical masses.
"""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from higgs_hierarchy.core.constants import PI, SQRT2
from higgs_hierarchy.core.errors import NumericalSingularity
from higgs_hierarchy.core.oracle import TwoLoopOracle
from higgs_hierarchy.core.parameters import ParameterSet


def symmetric_matrix(s11: float, s12: float, s22: float) -> NDArray:
    """Build the symmetric matrix [[s11, s12], [s12, s22]]."""
    return np.array([[s11, s12], [s12, s22]], dtype=float)


def eigen_masses(matrix: NDArray) -> NDArray:
    """
    Square roots of the eigenvalues, ascending.

    A negative eigenvalue (tachyonic state) or a non-finite matrix yields NaN.
    """
    matrix = np.asarray(matrix, dtype=float)
    if not np.all(np.isfinite(matrix)):
        return np.full(2, np.nan)
    eigenvalues = np.linalg.eigvalsh(matrix)
    with np.errstate(invalid="ignore"):
        return np.sqrt(eigenvalues)


def lightest_mass(matrix: NDArray) -> float:
    return float(eigen_masses(matrix)[0])


def _sector_masses(params: ParameterSet, is_bottom: bool) -> Tuple[np.float64, ...]:
    """(Mq, Msf1, Msf2, s2) as numpy scalars; degenerate masses give inf/NaN, not an exception."""
    sector = params.sector(is_bottom)
    return tuple(np.float64(x) for x in (sector.Mq, sector.Msf1, sector.Msf2, sector.s2))


def _fermi_constant(params: ParameterSet) -> float:
    # DR-bar value, GF = 1 / (sqrt(2) v^2)
    return 1. / (SQRT2 * params.v2)


def tree_level_matrix(params: ParameterSet) -> NDArray:
    """Tree-level CP-even mass matrix."""
    tb = params.tan_beta
    s2b = np.sin(2 * np.arctan(tb))
    MZ2, MA2 = params.MZ**2, params.MA**2
    return symmetric_matrix(
        s2b / 2. * (MZ2 / tb + MA2 * tb),
        s2b / 2. * (-MZ2 - MA2),
        s2b / 2. * (MZ2 * tb + MA2 / tb),
    )


@np.errstate(divide="ignore", invalid="ignore")
def exact_one_loop_matrix(params: ParameterSet, is_bottom: bool) -> NDArray:
    """
    Full one-loop O(alpha_t) / O(alpha_b) contribution with DR-bar' masses.

    Args:
        params: Input spectrum.
        is_bottom: Use the bottom/sbottom sector.

    Degenerate sfermion masses give a non-finite matrix.
    """
    Mt, Mst1, Mst2, s2t = _sector_masses(params, is_bottom)
    mu = params.mu
    GF = _fermi_constant(params)
    beta = np.arctan(params.tan_beta)
    csc2 = 1. / np.sin(beta)**2
    cot = 1. / np.tan(beta)

    lMst1, lMst2 = np.log(Mst1), np.log(Mst2)
    dM2 = Mst1**2 - Mst2**2
    # recurring one-loop function of the two sfermion masses
    F = -Mst1**2 + Mst2**2 + (Mst1**2 + Mst2**2) * (lMst1 - lMst2)

    S11 = (-3 * GF * Mt**2 * mu**2 * csc2 * F * s2t**2) / (4. * SQRT2 * dM2 * PI**2)

    S12 = (3 * GF * csc2
           * (-(Mt**3 * mu * (lMst1 - lMst2) * s2t) / 2.
              + (Mt**2 * mu**2 * cot * F * s2t**2) / (4. * dM2)
              + (Mt * mu * F * s2t**3) / 8.)
           ) / (SQRT2 * PI**2)

    S22 = (3 * GF * csc2
           * (Mt**4 * (lMst1 + lMst2 - 2 * np.log(Mt))
              + Mt**3 * mu * cot * (lMst1 - lMst2) * s2t
              + (Mt**2 * csc2
                 * (-mu**2 * np.cos(beta)**2 * F
                    + 2 * np.sin(beta)**2 * dM2**2 * (lMst1 - lMst2))
                 * s2t**2) / (4. * dM2)
              - (Mt * mu * cot * F * s2t**3) / 4.
              - (dM2 * F * s2t**4) / 16.)
           ) / (SQRT2 * PI**2)

    return symmetric_matrix(S11, S12, S22)


@np.errstate(divide="ignore", invalid="ignore")
def mdr_shift_matrix(params: ParameterSet, is_bottom: bool,
                     shifted_masses: Tuple[float, float]) -> NDArray:
    """
    One-loop matrix change when the sfermion masses move to the MDR scheme.

    Args:
        params: Input spectrum (DR-bar' masses).
        is_bottom: Use the bottom/sbottom sector.
        shifted_masses: (Mst1, Mst2) after the one-loop-consistent MDR shift
            (two_loop_flag = 1, three_loop_flag = 0).

    Degenerate DR-bar' masses give a non-finite matrix.
    """
    Mt, Mst1, Mst2, s2t = _sector_masses(params, is_bottom)
    mu = params.mu
    GF = _fermi_constant(params)
    beta = np.arctan(params.tan_beta)
    csc2 = 1. / np.sin(beta)**2
    cot = 1. / np.tan(beta)

    d1 = shifted_masses[0] - Mst1
    d2 = shifted_masses[1] - Mst2
    L1, L2 = np.log(Mst1), np.log(Mst2)
    dL = L1 - L2
    inv_dM2sq = 1. / (Mst1**2 - Mst2**2)**2
    G = 4 * dL * Mst1**2 * Mst2**2 - Mst1**4 + Mst2**4
    m1, m2 = Mst1, Mst2
    mc2 = mu**2 * cot**2

    S11 = (3 * GF * (d2 * m1 - d1 * m2) * Mt**2 * mu**2 / PI**2 * csc2 * inv_dM2sq
           * s2t**2 * G) / (4. * SQRT2 * m1 * m2)

    S12 = (-3 * GF * Mt * mu / PI**2 * csc2 * inv_dM2sq * s2t
           * (-((m1**2 - m2**2)**2
                * (4 * (-(d2 * m1) + d1 * m2) * Mt**2
                   + (-2 * m1 * m2 * (d1 * m1 + d2 * m2) * dL
                      + (d2 * m1 + d1 * m2) * m1**2
                      - (d2 * m1 + d1 * m2) * m2**2) * s2t**2))
              + 2 * (d2 * m1 - d1 * m2) * Mt * mu * cot * G * s2t)
           ) / (8. * SQRT2 * m1 * m2)

    mixed = (2 * d2 * m1**7 - 2 * d1 * m1**6 * m2 - 2 * d2 * m1 * m2**6 + 2 * d1 * m2**7
             - 4 * d1 * m1**6 * m2 * dL + 4 * d2 * m1 * m2**6 * dL
             - d2 * m1**5 * mc2 - d1 * m2**5 * mc2
             + 2 * d2 * m2**2 * (m1**5 * (-3 + 2 * dL) + 2 * dL * mc2 * m1**3)
             - 2 * d1 * m1**2 * (m2**5 * (3 + 2 * dL) + 2 * dL * mc2 * m2**3)
             + d1 * m2 * mc2 * m1**4 + 6 * d1 * m2**3 * m1**4 + 8 * d1 * dL * m2**3 * m1**4
             + d2 * m1 * mc2 * m2**4 + 6 * d2 * m1**3 * m2**4 - 8 * d2 * dL * m1**3 * m2**4)

    S22 = (3 * GF / PI**2 * csc2
           * ((Mt * mu * cot
               * (-(d1 * m1) + d2 * m2 + 2 * (d1 * m1 + d2 * m2) * dL
                  - (d2 * m1**2) / m2 + (d1 * m2**2) / m1) * s2t**3) / 4.
              + (Mt**2 * inv_dM2sq * s2t**2 * mixed) / (4. * m1 * m2)
              - ((d2 * m1 + d1 * m2) * Mt**4) / (m1 * m2)
              - ((d2 * m1**5 + d1 * m2**5
                  - 4 * d2 * m2**2 * m1**3 - 4 * d1 * m1**2 * m2**3
                  + 3 * d1 * m2 * m1**4 - 4 * d1 * m2 * dL * m1**4
                  + 3 * d2 * m1 * m2**4 + 4 * d2 * m1 * dL * m2**4) * s2t**4) / (16. * m1 * m2)
              + (-(d1 / m1) + d2 / m2) * mu * cot * Mt**3 * s2t)
           ) / SQRT2

    return symmetric_matrix(S11, S12, S22)


def exact_two_loop_matrix(params: ParameterSet, is_bottom: bool,
                          shifted_masses: Tuple[float, float],
                          oracle: TwoLoopOracle, delta_dsz: float = 0.0) -> NDArray:
    """
    O(alpha_t alpha_s) matrix from the two-loop oracle with MDR masses.

    Args:
        params: Input spectrum.
        is_bottom: Use the bottom/sbottom sector.
        shifted_masses: One-loop-consistent MDR masses (Mst1, Mst2).
        oracle: Exact two-loop routine.
        delta_dsz: Offset added to the heavier mass to step off a
            spurious pole of the oracle.

    Returns:
        The matrix as returned by the oracle; entries may be non-finite.
    """
    sector = params.sector(is_bottom)
    theta = np.arcsin(sector.s2) / 2.
    # the oracle uses the opposite sign convention for mu
    S11, S22, S12 = oracle(
        sector.Mq**2,
        params.MG,
        shifted_masses[0]**2,
        (shifted_masses[1] + delta_dsz)**2,
        float(np.sin(theta)),
        float(np.cos(theta)),
        params.scale**2,
        -params.mu,
        params.tan_beta,
        params.v2,
        params.g3,
        0,
    )
    return symmetric_matrix(S11, S12, S22)


def require_finite(matrix: NDArray, what: str) -> NDArray:
    """Raise NumericalSingularity unless every entry of `matrix` is finite."""
    if not np.all(np.isfinite(matrix)):
        raise NumericalSingularity(f"{what} is not finite: {matrix.tolist()}")
    return matrix
