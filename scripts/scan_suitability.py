"""
Scan of the suitable hierarchies along the heavy stop mass.

Starting from the benchmark spectrum, the heavy stop mass is varied while
everything else is kept fixed. For each point the script lists which
hierarchies are suitable and the MDR-bar' stop masses of the first one.
No two-loop oracle is needed.

Key things to watch:
- Where h6/h6b switch on (mass splitting above the threshold)
- Where the h3 family hands over to h9 (near-degenerate stops)
- Non-physical MDR shifts (NaN masses)
"""

import dataclasses
import warnings
import numpy as np
from tabulate import tabulate

from higgs_hierarchy.core.mdr_shift import MDRShifter
from higgs_hierarchy.core.parameters import ParameterSet, DerivedConstants
from higgs_hierarchy.core.suitability import MassOrdering, SuitabilityClassifier


BENCHMARK = ParameterSet(
    scale=1973.75,
    mu=1999.82,
    g3=1.02907,
    vd=49.5751,
    vu=236.115,
    mq2=np.diag([4.00428e6, 4.00428e6, 3.99786e6]),
    md2=np.diag([4.00361e6, 4.00361e6, 4.00346e6]),
    mu2=np.diag([4.00363e6, 4.00363e6, 3.99067e6]),
    At=6992.34,
    Ab=9996.81,
    MA=1992.14,
    MG=2000.96,
    MW=76.7777,
    MZ=88.4219,
    Mt=147.295,
    Mb=2.23149,
    MSt=[1745.3, 2232.1],
    MSb=[2000.14, 2001.09],
    s2t=-0.999995,
    s2b=-0.550527,
)


def scan_point(heavy_stop_mass, classifier):
    """Suitable hierarchies and MDR masses for one heavy stop mass."""
    params = dataclasses.replace(BENCHMARK, MSt=[BENCHMARK.MSt[0], heavy_stop_mass])
    constants = DerivedConstants.from_parameters(params)
    ordering = MassOrdering(float(params.MSt[0]), float(params.MSt[1]), constants.Mgl, constants.Msq)
    suitable = classifier.suitable_tags(ordering)

    mdr_masses = (np.nan, np.nan)
    if suitable:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            mdr_masses = MDRShifter(params, constants).shift_masses(suitable[0], False, 1, 1)

    return {
        'Mst1': float(params.MSt[0]),
        'Mst2': float(params.MSt[1]),
        'suitable': suitable,
        'mdr_masses': mdr_masses,
    }


def main():
    print("="*80)
    print("SUITABLE HIERARCHIES ALONG THE HEAVY STOP MASS")
    print("="*80)

    classifier = SuitabilityClassifier()
    constants = DerivedConstants.from_parameters(BENCHMARK)
    print(f"\n  Mgl = {constants.Mgl:.2f} GeV, Msq = {constants.Msq:.2f} GeV")
    print(f"  Mass splitting ratio: {classifier.mass_splitting_ratio}")

    heavy_masses = np.linspace(1800.0, 3000.0, 13)
    results = [scan_point(m, classifier) for m in heavy_masses]

    table_data = []
    for r in results:
        names = ", ".join(tag.name for tag in r['suitable']) or "---"
        m1, m2 = r['mdr_masses']
        mdr_str = "---" if np.isnan(m1) or np.isnan(m2) else f"{m1:.2f}, {m2:.2f}"
        table_data.append([f"{r['Mst1']:.1f}", f"{r['Mst2']:.1f}", names, mdr_str])

    headers = ['Mst1 (GeV)', 'Mst2 (GeV)', 'Suitable hierarchies', 'MDR masses (GeV)']
    print()
    print(tabulate(table_data, headers=headers, tablefmt='grid'))

    uncovered = [r['Mst2'] for r in results if not r['suitable']]
    if uncovered:
        print(f"\nNo hierarchy is suitable at Mst2 = {', '.join(f'{m:.1f}' for m in uncovered)} GeV")


if __name__ == '__main__':
    main()
