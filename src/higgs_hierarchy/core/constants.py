"""
Numerical constants and run configuration for the hierarchy calculator.

Transcendental constants that have no closed form in scipy are stored as
literals. Run configuration (retry perturbation, suitability thresholds,
scheme flags) is loaded from constants.json if available, otherwise
default values are used.
"""

import json
import numpy as np
from pathlib import Path
from typing import Dict, Any

# =============================================================================
# Load Run Configuration from JSON
# =============================================================================

# Path to constants.json (same directory as this file)
_CONSTANTS_JSON_PATH = Path(__file__).parent / "constants.json"

# Default values (used if constants.json is missing)
_DEFAULT_CONSTANTS: Dict[str, Any] = {
    "delta_dsz": 1.0e-6,  # GeV added to the heavy MDR mass on the oracle retry
    "mass_splitting_ratio": 0.1,  # (Mst2 - Mst1) > ratio * Mst1 in h5/h6/h6b
    "mdr_flag": 1,  # 1 = MDR-bar masses in the expansions, 0 = DR-bar
    "h9q2_uses_mass_splitting": False,  # see suitability.py
    "verbose": False,
}


def load_constants_from_json(path: Path = _CONSTANTS_JSON_PATH) -> Dict[str, Any]:
    """
    Load run configuration from a JSON file, constants.json by default.

    Keys missing from the file keep their default values. A missing or
    unreadable file gives the defaults.
    """
    result = _DEFAULT_CONSTANTS.copy()
    if not path.exists():
        return result
    try:
        with open(path, 'r', encoding='utf-8') as f:
            result.update(json.load(f))
    except (json.JSONDecodeError, IOError) as e:
        print(f"Warning: Failed to load {path.name}: {e}. Using defaults.")
        return _DEFAULT_CONSTANTS.copy()
    return result


# Load configuration at module import time
_LOADED_CONSTANTS = load_constants_from_json()

DELTA_DSZ: float = float(_LOADED_CONSTANTS["delta_dsz"])
MASS_SPLITTING_RATIO: float = float(_LOADED_CONSTANTS["mass_splitting_ratio"])
MDR_FLAG: int = int(_LOADED_CONSTANTS["mdr_flag"])
H9Q2_USES_MASS_SPLITTING: bool = bool(_LOADED_CONSTANTS["h9q2_uses_mass_splitting"])
VERBOSE: bool = bool(_LOADED_CONSTANTS["verbose"])

# =============================================================================
# Polylogarithm values without a scipy implementation
# =============================================================================

# PolyLog[4, 1/2]
POLYLOG4_HALF: float = 0.51747906167389934317668576113647

# PolyLog[3, Exp[-I Pi/6] / Sqrt[3]]
POLYLOG3_EXP_PI6_SQRT3: complex = complex(
    0.51928806536375962552715984277228,
    -0.33358157526196370641686908633664,
)

# =============================================================================
# Numerical housekeeping
# =============================================================================

PI: float = np.pi
SQRT2: float = np.sqrt(2.0)
SQRT3: float = np.sqrt(3.0)
LOG2: float = np.log(2.0)
LOG3: float = np.log(3.0)

# Highest loop order handled by the expansion table
MAX_LOOP_ORDER: int = 3
